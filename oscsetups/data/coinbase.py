"""
Coinbase Exchange candle client (GET /products/{BASE-QUOTE}/candles).

The endpoint returns at most 300 candles per request, newest first, as
[time, low, high, open, close, volume] with time in epoch seconds. Longer
histories are requested in windows walking backwards from now.
"""
import logging
import math
import platform
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

import requests

from .. import __version__
from ..shared.defaults import (
    COINBASE_BASE_URL, COINBASE_MAX_CANDLES, COINBASE_PAGE_PAUSE_S, HTTP_TIMEOUT_S,
)
from ..shared.errors import ExchangeError
from ..shared.types import Bar
from .base import ExchangeClient
from .klines import Exchange, KlineParams

logger = logging.getLogger(__name__)

# Granularities (seconds) accepted by the candles endpoint
GRANULARITIES = (60, 300, 900, 3600, 21600, 86400)


def user_agent() -> str:
    return f"oscillator-setups/{__version__} ({platform.system()} {platform.release()})"


class CoinbaseClient(ExchangeClient):
    exchange = Exchange.COINBASE
    default_base_url = COINBASE_BASE_URL

    def symbol(self, params: KlineParams) -> str:
        return f"{params.base_asset}-{params.quote_asset}".upper()

    @staticmethod
    def granularity(params: KlineParams) -> int:
        seconds = params.interval.seconds
        if seconds not in GRANULARITIES:
            raise ValueError(
                f"Coinbase does not support interval '{params.interval.code}'. "
                f"Supported granularities (s): {list(GRANULARITIES)}"
            )
        return seconds

    def fetch_remote(self, params: KlineParams) -> List[Any]:
        granularity = self.granularity(params)
        wanted = params.limit + 1
        pages = math.ceil(wanted / COINBASE_MAX_CANDLES)
        url = f"{self.base_url(params)}/products/{self.symbol(params)}/candles"
        headers = {"User-Agent": user_agent()}

        candles: Dict[int, List[Any]] = {}
        end_time = datetime.now(timezone.utc)
        for page in range(pages):
            start_time = end_time - timedelta(seconds=granularity * COINBASE_MAX_CANDLES)
            query = {
                "granularity": granularity,
                "start": start_time.isoformat(),
                "end": end_time.isoformat(),
            }
            for row in self._get(url, query, headers):
                candles[int(row[0])] = list(row)
            logger.debug("Coinbase page %d/%d: %d candles so far", page + 1, pages, len(candles))

            if page < pages - 1:
                time.sleep(COINBASE_PAGE_PAUSE_S)
            end_time = start_time

        rows = [candles[t] for t in sorted(candles)]
        return rows[-wanted:]

    def _get(self, url: str, query: Dict[str, Any], headers: Dict[str, str]) -> List[Any]:
        try:
            resp = requests.get(url, params=query, headers=headers, timeout=HTTP_TIMEOUT_S)
        except requests.exceptions.RequestException as e:
            raise ExchangeError(f"Coinbase request failed: {e}") from e

        if resp.status_code == 404:
            raise ExchangeError(f"Resource not found at url: {resp.url}")
        if not resp.ok:
            try:
                message = resp.json().get("message")
            except ValueError:
                message = resp.text
            raise ExchangeError(f"Coinbase error (HTTP {resp.status_code}): {message}")

        try:
            rows = resp.json()
        except ValueError as e:
            raise ExchangeError(f"Invalid JSON from Coinbase: {e}") from e
        if not isinstance(rows, list):
            raise ExchangeError(f"Unexpected Coinbase response: {rows!r}")
        return rows

    def row_to_bar(self, row: Any, params: KlineParams) -> Bar:
        granularity = params.interval.seconds
        timestamp = int(row[0])
        return Bar(
            high=float(row[2]),
            low=float(row[1]),
            close=float(row[4]),
            open=float(row[3]),
            volume=float(row[5]),
            time_open=timestamp * 1000,
            time_close=timestamp * 1000 + granularity * 1000 - 1,
        )
