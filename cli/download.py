#!/usr/bin/env python3
"""
Kline download CLI.

Fetches klines from an exchange and writes them to the JSON cache so later
runs can use --source file.
"""
import argparse
import sys

from oscsetups.data import Exchange, Interval, KlineParams, get_client
from oscsetups.shared.defaults import KLINE_CACHE_DIR, KLINE_INTERVAL, KLINE_LIMIT
from oscsetups.shared.errors import ExchangeError

from .common import setup_logging


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Download klines into the local cache",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m cli.download --pair ETH/USDT --pair BTC/USDT
    python -m cli.download --exchange coinbase --pair ETH/USD --interval 1h --limit 2000
        """
    )
    parser.add_argument(
        "--exchange", "-e",
        choices=[e.value for e in Exchange],
        default=Exchange.BINANCE.value,
        help="Market data source (default: binance)",
    )
    parser.add_argument(
        "--pair", "-p",
        action="append",
        required=True,
        help="Trading pair BASE/QUOTE (repeatable)",
    )
    parser.add_argument(
        "--interval",
        choices=[i.value for i in Interval],
        default=KLINE_INTERVAL,
        help=f"Kline interval (default: {KLINE_INTERVAL})",
    )
    parser.add_argument("--limit", type=int, default=KLINE_LIMIT, help=f"Completed bars (default: {KLINE_LIMIT})")
    parser.add_argument("--base-url", help="Exchange API base URL")
    parser.add_argument(
        "--cache-dir",
        default=KLINE_CACHE_DIR,
        help=f"Kline cache directory (default: {KLINE_CACHE_DIR})",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    client = get_client(args.exchange, cache_dir=args.cache_dir)
    failed = []

    for pair in args.pair:
        base, _, quote = pair.partition("/")
        try:
            params = KlineParams(
                base_asset=base.strip().upper(),
                quote_asset=quote.strip().upper(),
                interval=args.interval,
                limit=args.limit,
                base_url=args.base_url,
            )
            rows = client.fetch_remote(params)
        except (ExchangeError, ValueError) as e:
            print(f"  ✗ {pair}: {e}")
            failed.append(pair)
            continue
        path = client.cache.save(client.base_url(params), client.symbol(params), rows)
        print(f"  ✓ {pair}: {len(rows)} klines -> {path}")

    print(f"Downloaded {len(args.pair) - len(failed)}/{len(args.pair)} pairs")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
