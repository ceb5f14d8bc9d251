"""
Exchange client registry.
"""
from pathlib import Path
from typing import Dict, Optional, Type, Union

from ..shared.types import BarSeries
from .base import ExchangeClient
from .binance import BinanceClient
from .cache import KlineCache
from .coinbase import CoinbaseClient
from .klines import Exchange, KlineParams
from .yahoo import YahooClient

CLIENTS: Dict[Exchange, Type[ExchangeClient]] = {
    Exchange.BINANCE: BinanceClient,
    Exchange.COINBASE: CoinbaseClient,
    Exchange.YAHOO: YahooClient,
}


def get_client(
    exchange: Union[Exchange, str],
    cache_dir: Optional[Union[str, Path]] = None,
) -> ExchangeClient:
    """Create the client for an exchange tag ("binance", Exchange.COINBASE, ...)."""
    if isinstance(exchange, str):
        exchange = Exchange.from_name(exchange)
    return CLIENTS[exchange](cache=KlineCache(cache_dir))


def fetch_bars(
    exchange: Union[Exchange, str],
    params: KlineParams,
    cache_dir: Optional[Union[str, Path]] = None,
) -> BarSeries:
    """Fetch completed bars from an exchange (see ExchangeClient.fetch)."""
    return get_client(exchange, cache_dir).fetch(params)
