"""
Base class for exchange clients.

A client turns KlineParams into a BarSeries of completed bars, oldest
first. Subclasses implement the remote request and the row conversion;
caching and the DataSource switch live here.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional

from ..shared.errors import ExchangeError
from ..shared.types import Bar, BarSeries
from .cache import KlineCache
from .klines import DataSource, Exchange, KlineParams

logger = logging.getLogger(__name__)


class ExchangeClient(ABC):
    """Base class for all market data clients."""

    exchange: Exchange
    default_base_url: str

    def __init__(self, cache: Optional[KlineCache] = None):
        self.cache = cache or KlineCache()

    def base_url(self, params: KlineParams) -> str:
        return (params.base_url or self.default_base_url).rstrip("/")

    @abstractmethod
    def symbol(self, params: KlineParams) -> str:
        """Exchange-specific symbol of the trading pair."""
        pass

    @abstractmethod
    def fetch_remote(self, params: KlineParams) -> List[Any]:
        """
        Request raw rows from the exchange, oldest first.

        Returns:
            Up to limit + 1 rows; the newest one may still be forming

        Raises:
            ExchangeError: If the request fails
        """
        pass

    @abstractmethod
    def row_to_bar(self, row: Any, params: KlineParams) -> Bar:
        """Convert one raw row to a Bar."""
        pass

    def rows(self, params: KlineParams) -> List[Any]:
        """Raw rows from the configured source (cache with remote fallback, or API)."""
        if params.source is DataSource.FILE:
            base_url = self.base_url(params)
            symbol = self.symbol(params)
            try:
                return self.cache.load(base_url, symbol)
            except FileNotFoundError:
                logger.warning("No cached klines for %s, pulling data from remote", symbol)
            rows = self.fetch_remote(params)
            self.cache.save(base_url, symbol, rows)
            return rows
        return self.fetch_remote(params)

    def fetch(self, params: KlineParams) -> BarSeries:
        """
        Fetch completed bars for the trading pair.

        Raises:
            ExchangeError: If the request fails or no completed bar is returned
        """
        rows = self.rows(params)
        # Newest kline has not completed yet
        rows = rows[-(params.limit + 1):][:-1]
        try:
            bars = tuple(self.row_to_bar(row, params) for row in rows)
        except (TypeError, ValueError, IndexError, KeyError) as e:
            raise ExchangeError(f"Malformed kline data from {self.exchange.value}: {e}") from e
        if not bars:
            raise ExchangeError(f"No completed klines returned for {self.symbol(params)}")
        logger.info(
            "Fetched %d %s bars for %s from %s",
            len(bars), params.interval.code, self.symbol(params), self.exchange.value,
        )
        return BarSeries(bars, symbol=self.symbol(params))
