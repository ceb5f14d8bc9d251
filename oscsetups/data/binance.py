"""
Binance kline client (GET /api/v3/klines).

Rows are [open_time, open, high, low, close, volume, close_time, ...] with
prices as strings.

Also reads the symbol trading rules (GET /api/v3/exchangeInfo): the
LOT_SIZE filter gives the minimum quantity and PRICE_FILTER the minimum
price the simulator accepts for an entry.
"""
import logging
from typing import Any, Dict, List, NamedTuple, Optional

import requests

from ..shared.defaults import BINANCE_BASE_URL, HTTP_TIMEOUT_S
from ..shared.errors import ExchangeError
from ..shared.types import Bar
from .base import ExchangeClient
from .klines import DataSource, Exchange, KlineParams

logger = logging.getLogger(__name__)

KLINES_ENDPOINT = "/api/v3/klines"
EXCHANGE_INFO_ENDPOINT = "/api/v3/exchangeInfo"
EXCHANGE_INFO_FOLDER = "exchangeInfo"


class SymbolFilters(NamedTuple):
    """Trading floors of one symbol; None where the exchange sets none."""
    min_qty: Optional[float]
    min_price: Optional[float]


def _filter_value(entry: Dict[str, Any], key: str) -> Optional[float]:
    value = float(entry[key])
    # Binance disables a filter bound with 0
    return value if value > 0 else None


class BinanceClient(ExchangeClient):
    exchange = Exchange.BINANCE
    default_base_url = BINANCE_BASE_URL

    def symbol(self, params: KlineParams) -> str:
        return f"{params.base_asset}{params.quote_asset}".upper()

    def _get(self, url: str, query: Dict[str, Any]) -> Any:
        try:
            resp = requests.get(url, params=query, timeout=HTTP_TIMEOUT_S)
        except requests.exceptions.RequestException as e:
            raise ExchangeError(f"Binance request failed: {e}") from e

        if resp.status_code == 404:
            raise ExchangeError(f"Resource not found at url: {resp.url}")
        if not resp.ok:
            try:
                body = resp.json()
            except ValueError:
                body = {}
            raise ExchangeError(
                f"Error: code {body.get('code')}, message {body.get('msg')} (HTTP {resp.status_code})"
            )

        logger.debug("x-mbx-used-weight: %s", resp.headers.get("x-mbx-used-weight"))
        logger.debug("x-mbx-used-weight-1m: %s", resp.headers.get("x-mbx-used-weight-1m"))

        try:
            return resp.json()
        except ValueError as e:
            raise ExchangeError(f"Invalid JSON from Binance: {e}") from e

    def fetch_remote(self, params: KlineParams) -> List[Any]:
        query = {
            "symbol": self.symbol(params),
            "interval": params.interval.code,
            "limit": params.limit + 1,
        }
        rows = self._get(self.base_url(params) + KLINES_ENDPOINT, query)
        if not isinstance(rows, list):
            raise ExchangeError(f"Unexpected Binance response: {rows!r}")
        return rows

    def row_to_bar(self, row: Any, params: KlineParams) -> Bar:
        return Bar(
            high=float(row[2]),
            low=float(row[3]),
            close=float(row[4]),
            open=float(row[1]),
            volume=float(row[5]),
            time_open=int(row[0]),
            time_close=int(row[6]),
        )

    def exchange_info_remote(self, params: KlineParams) -> Dict[str, Any]:
        """Request exchangeInfo for the trading pair."""
        info = self._get(self.base_url(params) + EXCHANGE_INFO_ENDPOINT, {"symbol": self.symbol(params)})
        if not isinstance(info, dict) or not isinstance(info.get("symbols"), list):
            raise ExchangeError(f"Unexpected Binance exchangeInfo response: {info!r}")
        return info

    def exchange_info(self, params: KlineParams) -> Dict[str, Any]:
        """exchangeInfo from the configured source (cache with remote fallback, or API)."""
        if params.source is DataSource.FILE:
            base_url = self.base_url(params)
            symbol = self.symbol(params)
            try:
                return self.cache.load_document(base_url, symbol, EXCHANGE_INFO_FOLDER)
            except FileNotFoundError:
                logger.warning("No cached exchangeInfo for %s, pulling data from remote", symbol)
            info = self.exchange_info_remote(params)
            self.cache.save(base_url, symbol, info, folder=EXCHANGE_INFO_FOLDER)
            return info
        return self.exchange_info_remote(params)

    def symbol_filters(self, params: KlineParams) -> SymbolFilters:
        """
        Minimum quantity (LOT_SIZE) and minimum price (PRICE_FILTER) of the pair.

        Raises:
            ExchangeError: If the request fails, the symbol is not listed or
                a filter is malformed
        """
        symbol = self.symbol(params)
        info = self.exchange_info(params)
        entry = next(
            (s for s in info.get("symbols") or [] if isinstance(s, dict) and s.get("symbol") == symbol),
            None,
        )
        if entry is None:
            raise ExchangeError(f"Symbol {symbol} not listed in Binance exchangeInfo")

        min_qty = min_price = None
        try:
            for f in entry.get("filters", []):
                if f.get("filterType") == "LOT_SIZE":
                    min_qty = _filter_value(f, "minQty")
                elif f.get("filterType") == "PRICE_FILTER":
                    min_price = _filter_value(f, "minPrice")
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ExchangeError(f"Malformed filters for {symbol}: {e}") from e

        logger.info("%s filters: min_qty=%s, min_price=%s", symbol, min_qty, min_price)
        return SymbolFilters(min_qty=min_qty, min_price=min_price)
