"""
Arguments and helpers shared by the CLI entry points.
"""
import argparse
import logging
from dataclasses import replace
from typing import Optional

from oscsetups.data import Exchange, Interval, fetch_bars, get_client, load_bars_csv
from oscsetups.evaluation import ReversalPolicy
from oscsetups.search import ParamRange, SearchConfig, SearchRanges, load_config_from_yaml
from oscsetups.shared.defaults import KLINE_CACHE_DIR, STANDARD_OVERBOUGHT, STANDARD_OVERSOLD
from oscsetups.shared.types import BarSeries


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def add_data_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config", "-c",
        type=str,
        help="YAML config file (flags below override its values)",
    )
    parser.add_argument(
        "--exchange", "-e",
        choices=[e.value for e in Exchange],
        help="Market data source (default: binance)",
    )
    parser.add_argument("--base", help="Base asset (default: ETH)")
    parser.add_argument("--quote", help="Quote asset (default: USDT)")
    parser.add_argument(
        "--interval",
        choices=[i.value for i in Interval],
        help="Kline interval (default: 4h)",
    )
    parser.add_argument("--limit", type=int, help="Number of completed bars (default: 1000)")
    parser.add_argument("--base-url", help="Exchange API base URL")
    parser.add_argument(
        "--source",
        choices=["api", "file"],
        help="api: always request the exchange; file: use the kline cache, fetching when missing",
    )
    parser.add_argument(
        "--cache-dir",
        default=KLINE_CACHE_DIR,
        help=f"Kline cache directory (default: {KLINE_CACHE_DIR})",
    )
    parser.add_argument("--csv", type=str, help="Load bars from a CSV file instead of an exchange")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")


def add_simulation_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--fee", type=float, help="Exchange fee per side (e.g. 0.001 = 0.1%%)")
    parser.add_argument("--min-qty", type=float, help="Minimum tradable quantity")
    parser.add_argument("--min-price", type=float, help="Minimum tradable price")
    parser.add_argument("--capital", type=float, help="Notional per entry (default: 1000)")
    parser.add_argument(
        "--reversal",
        choices=[p.value for p in ReversalPolicy],
        help="On an opposite crossover: flip to the other side or flatten (default: flip)",
    )
    parser.add_argument("--oversold", type=float, help="Only enter longs from below this level")
    parser.add_argument("--overbought", type=float, help="Only enter shorts from above this level")
    parser.add_argument(
        "--zones",
        action="store_true",
        help=f"Filter entries at the standard {STANDARD_OVERSOLD:g}/{STANDARD_OVERBOUGHT:g} levels "
             "(--oversold/--overbought override)",
    )
    parser.add_argument(
        "--min-from-exchange",
        action="store_true",
        help="Take min qty/price from the Binance symbol filters (--min-qty/--min-price override)",
    )


def build_config(args: argparse.Namespace, name: str = "cli") -> SearchConfig:
    """
    Merge the optional YAML config with command-line overrides.

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If a value is invalid
    """
    config = load_config_from_yaml(args.config) if args.config else SearchConfig(name=name)

    data_overrides = {
        "exchange": args.exchange,
        "base_asset": args.base,
        "quote_asset": args.quote,
        "interval": args.interval,
        "limit": args.limit,
        "base_url": args.base_url,
        "source": args.source,
        "csv_path": args.csv,
    }
    config = replace(config, **{k: v for k, v in data_overrides.items() if v is not None})

    sim_overrides = {
        "exchange_fee": args.fee,
        "min_qty": args.min_qty,
        "min_price": args.min_price,
        "capital": args.capital,
        "reversal": args.reversal,
        "oversold": args.oversold,
        "overbought": args.overbought,
    }
    sim_overrides = {k: v for k, v in sim_overrides.items() if v is not None}
    if getattr(args, "zones", False):
        sim_overrides.setdefault("oversold", STANDARD_OVERSOLD)
        sim_overrides.setdefault("overbought", STANDARD_OVERBOUGHT)
    if sim_overrides:
        config = replace(config, simulation=replace(config.simulation, **sim_overrides))

    range_overrides = {
        name: ParamRange.parse(value)
        for name, value in (
            ("k_length", getattr(args, "k_length", None)),
            ("k_smoothing", getattr(args, "k_smoothing", None)),
            ("d_length", getattr(args, "d_length", None)),
        )
        if value is not None
    }
    if range_overrides:
        config = replace(config, ranges=replace(config.ranges, **range_overrides))

    return config


def load_bars(config: SearchConfig, cache_dir: Optional[str] = None) -> BarSeries:
    """
    Load the bar series a config points at (CSV file or exchange).

    Raises:
        FileNotFoundError: If the CSV file doesn't exist
        ExchangeError: If the exchange request fails
        ValueError: If the data or the request parameters are invalid
    """
    if config.csv_path is not None:
        return load_bars_csv(config.csv_path)
    return fetch_bars(config.exchange, config.kline_params(), cache_dir=cache_dir)


def describe_source(config: SearchConfig) -> str:
    if config.csv_path is not None:
        return str(config.csv_path)
    return (
        f"{config.exchange.value} {config.base_asset}/{config.quote_asset} "
        f"{config.interval.code} x{config.limit}"
    )


def apply_symbol_filters(config: SearchConfig, args: argparse.Namespace) -> SearchConfig:
    """
    Fill min_qty/min_price from the Binance symbol filters when --min-from-exchange is set.

    Values given with --min-qty/--min-price are kept.

    Raises:
        ExchangeError: If exchangeInfo cannot be fetched or parsed
        ValueError: If the configured exchange has no symbol filters
    """
    if not getattr(args, "min_from_exchange", False):
        return config
    if config.exchange is not Exchange.BINANCE:
        raise ValueError(f"--min-from-exchange is only supported for binance, not {config.exchange.value}")

    client = get_client(config.exchange, cache_dir=args.cache_dir)
    filters = client.symbol_filters(config.kline_params())
    overrides = {}
    if args.min_qty is None:
        overrides["min_qty"] = filters.min_qty
    if args.min_price is None:
        overrides["min_price"] = filters.min_price
    return replace(config, simulation=replace(config.simulation, **overrides))
