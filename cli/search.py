#!/usr/bin/env python3
"""
Stochastic setup search CLI.

Evaluates every (k_length, k_smoothing, d_length) in the given ranges on one
bar series and prints the results ascending by net profit, best last.
"""
import argparse
import multiprocessing
import signal
import sys
import threading
import time
from dataclasses import replace

from oscsetups.search import search
from oscsetups.shared.errors import ExchangeError, SearchCancelledError

from .common import (
    add_data_arguments, add_simulation_arguments, apply_symbol_filters, build_config,
    describe_source, load_bars, setup_logging,
)


def format_result(result) -> str:
    p = result.params
    return (
        f"Net profit: {result.pnl.net_profit:.4f}, Parameters: "
        f"k_length={p.k_length}, k_smoothing={p.k_smoothing}, d_length={p.d_length}"
    )


def print_results(results) -> None:
    for result in results:
        print(format_result(result))


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Search stochastic oscillator configurations by net profit",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Default grid on Binance ETH/USDT 4h
    python -m cli.search

    # Coinbase hourly candles, custom ranges, 0.1% fee
    python -m cli.search --exchange coinbase --quote USD --interval 1h \\
        --k-length 5:30 --k-smoothing 1:5 --d-length 1:5 --fee 0.001

    # From a YAML config and a CSV file
    python -m cli.search --config configs/default.yaml --csv data/eth.csv

    # Binance minimum qty/price, entries only from the 20/80 zones
    python -m cli.search --min-from-exchange --zones
        """
    )
    add_data_arguments(parser)
    add_simulation_arguments(parser)
    parser.add_argument("--k-length", help="k_length range, e.g. 5:20 (inclusive)")
    parser.add_argument("--k-smoothing", help="k_smoothing range, e.g. 3:5")
    parser.add_argument("--d-length", help="d_length range, e.g. 3:5")
    parser.add_argument(
        "--top",
        type=int,
        help="Keep only the N most profitable configurations (default: 100)",
    )
    parser.add_argument(
        "--all",
        action="store_true",
        help="Keep every evaluated configuration",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Parallel worker processes (default: config value, else CPU count; 1 = in-process, 0 = CPU count)",
    )
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        config = build_config(args, name="search")
        if args.top is not None:
            config = replace(config, top_n=args.top)
        if args.all:
            config = replace(config, top_n=None)
        if args.workers is not None:
            config = replace(config, workers=args.workers or None)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Loading bars: {describe_source(config)}", file=sys.stderr)
    try:
        config = apply_symbol_filters(config, args)
        bars = load_bars(config, cache_dir=args.cache_dir)
    except (FileNotFoundError, ExchangeError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if config.workers != 1:
        # Use spawn to avoid fork-related issues with pandas/numpy
        try:
            multiprocessing.set_start_method('spawn', force=True)
        except RuntimeError:
            pass

    # Ctrl-C stops the search and prints what was evaluated so far
    cancel = threading.Event()
    previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: cancel.set())

    ranges = config.ranges
    print(
        f"Searching {ranges.size} configurations on {len(bars)} bars "
        f"(k_length {ranges.k_length}, k_smoothing {ranges.k_smoothing}, d_length {ranges.d_length})...",
        file=sys.stderr,
    )
    start = time.time()
    try:
        results = search(
            bars,
            ranges,
            config=config.simulation,
            top_n=config.top_n,
            max_workers=config.workers,
            cancel_event=cancel,
        )
    except SearchCancelledError as e:
        print(f"Search cancelled, {len(e.partial_results)} results so far:", file=sys.stderr)
        print_results(e.partial_results)
        return 1
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    print(f"Evaluated in {time.time() - start:.1f}s, {len(results)} results", file=sys.stderr)
    if not results:
        print("No configuration fits the available bars", file=sys.stderr)
        return 0

    print_results(results)

    return 0


if __name__ == "__main__":
    sys.exit(main())
