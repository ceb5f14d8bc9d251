"""
Market data module.

Fetches completed klines from Binance, Coinbase or Yahoo Finance (with an
optional JSON cache) and loads bar series from CSV files.
"""
from .klines import DataSource, Exchange, Interval, KlineParams
from .cache import KlineCache
from .base import ExchangeClient
from .binance import BinanceClient, SymbolFilters
from .coinbase import CoinbaseClient
from .yahoo import YahooClient
from .exchanges import get_client, fetch_bars
from .loader import load_bars_csv

__all__ = [
    'DataSource',
    'Exchange',
    'Interval',
    'KlineParams',
    'KlineCache',
    'ExchangeClient',
    'BinanceClient',
    'SymbolFilters',
    'CoinbaseClient',
    'YahooClient',
    'get_client',
    'fetch_bars',
    'load_bars_csv',
]
