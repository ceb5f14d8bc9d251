#!/usr/bin/env python3
"""
Single-configuration PnL CLI.

Runs one stochastic configuration on a bar series and prints the full
statistics record (optionally with every closed trade).
"""
import argparse
import sys

from oscsetups.evaluation import TradeSimulator, aggregate
from oscsetups.indicators import compute_with_seed
from oscsetups.shared.defaults import K_LENGTH, K_SMOOTHING, D_LENGTH
from oscsetups.shared.errors import ExchangeError, InsufficientDataError
from oscsetups.shared.types import StochasticConfig

from .common import (
    add_data_arguments, add_simulation_arguments, apply_symbol_filters, build_config,
    describe_source, load_bars, setup_logging,
)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Show PnL statistics for one stochastic configuration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m cli.pnl --k-length 14 --k-smoothing 3 --d-length 3
    python -m cli.pnl --csv data/eth.csv --k-length 9 --fee 0.001 --trades
        """
    )
    add_data_arguments(parser)
    add_simulation_arguments(parser)
    parser.add_argument("--k-length", type=int, default=K_LENGTH, help=f"Look-back window (default: {K_LENGTH})")
    parser.add_argument("--k-smoothing", type=int, default=K_SMOOTHING, help=f"%%K smoothing (default: {K_SMOOTHING})")
    parser.add_argument("--d-length", type=int, default=D_LENGTH, help=f"%%D period (default: {D_LENGTH})")
    parser.add_argument("--trades", action="store_true", help="List every closed trade")
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        stochastic = StochasticConfig(args.k_length, args.k_smoothing, args.d_length)
        # Ranges are not used here; keep the single values out of build_config
        args.k_length = args.k_smoothing = args.d_length = None
        config = build_config(args, name="pnl")
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        config = apply_symbol_filters(config, args)
        bars = load_bars(config, cache_dir=args.cache_dir)
        seed, points = compute_with_seed(bars, stochastic)
    except (FileNotFoundError, ExchangeError, InsufficientDataError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    simulator = TradeSimulator(config.simulation)
    trades = simulator.simulate(bars, points, seed=seed)
    pnl = aggregate(
        trades,
        bars.first_close,
        bars.last_close,
        with_commission=config.simulation.exchange_fee is not None,
    )

    print("=" * 60)
    print(f"PnL: {describe_source(config)}")
    print(
        f"k_length={stochastic.k_length}, k_smoothing={stochastic.k_smoothing}, "
        f"d_length={stochastic.d_length} ({len(bars)} bars)"
    )
    print("=" * 60)
    for key, value in pnl.to_dict().items():
        if value is None:
            continue
        print(f"  {key:<30} {value:.4f}" if isinstance(value, float) else f"  {key:<30} {value}")

    if args.trades:
        print()
        print("Trades:")
        for t in trades:
            print(
                f"  {t.direction.value:<5} {t.entry_index:>5} -> {t.exit_index:<5} "
                f"{t.entry_price:.4f} -> {t.exit_price:.4f}  qty={t.qty:g}  "
                f"profit={t.realized_profit:.4f} ({t.exit_reason.value})"
            )
    return 0


if __name__ == "__main__":
    sys.exit(main())
