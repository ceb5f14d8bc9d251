"""
Yahoo Finance client via yfinance.

Rows are normalized to [time_open_ms, open, high, low, close, volume] so
they can be cached as JSON like the exchange rows.
"""
import logging
import warnings
from typing import Any, List

import pandas as pd
import yfinance as yf

from ..shared.errors import ExchangeError
from ..shared.types import Bar
from .base import ExchangeClient
from .klines import Exchange, Interval, KlineParams

logger = logging.getLogger(__name__)

# Suppress yfinance's pandas deprecation warnings
warnings.filterwarnings('ignore', message='.*Timestamp.utcnow.*')

# Interval -> (yfinance interval code, longest period yfinance serves for it)
YF_INTERVALS = {
    Interval.M1: ("1m", "7d"),
    Interval.M5: ("5m", "60d"),
    Interval.M15: ("15m", "60d"),
    Interval.M30: ("30m", "60d"),
    Interval.H1: ("1h", "730d"),
    Interval.D1: ("1d", "max"),
    Interval.W1: ("1wk", "max"),
}


class YahooClient(ExchangeClient):
    exchange = Exchange.YAHOO
    default_base_url = "https://finance.yahoo.com"

    def symbol(self, params: KlineParams) -> str:
        return f"{params.base_asset}-{params.quote_asset}".upper()

    def fetch_remote(self, params: KlineParams) -> List[Any]:
        if params.interval not in YF_INTERVALS:
            raise ValueError(
                f"Yahoo Finance does not support interval '{params.interval.code}'. "
                f"Supported: {[i.code for i in YF_INTERVALS]}"
            )
        yf_interval, period = YF_INTERVALS[params.interval]
        ticker = self.symbol(params)

        try:
            df = yf.download(ticker, period=period, interval=yf_interval, progress=False)
        except Exception as e:
            raise ExchangeError(f"Yahoo Finance download failed for {ticker}: {e}") from e

        if df is None or df.empty:
            raise ExchangeError(f"No data returned for {ticker}")

        # Flatten multi-level columns if present (yfinance sometimes returns these)
        if isinstance(df.columns, pd.MultiIndex):
            df.columns = df.columns.get_level_values(0)

        df = df.dropna(subset=["High", "Low", "Close"]).sort_index()
        df = df.tail(params.limit + 1)

        rows = []
        for ts, row in df.iterrows():
            rows.append([
                int(pd.Timestamp(ts).value // 1_000_000),
                float(row["Open"]),
                float(row["High"]),
                float(row["Low"]),
                float(row["Close"]),
                float(row["Volume"]) if "Volume" in row and pd.notna(row["Volume"]) else 0.0,
            ])
        return rows

    def row_to_bar(self, row: Any, params: KlineParams) -> Bar:
        time_open = int(row[0])
        return Bar(
            high=float(row[2]),
            low=float(row[3]),
            close=float(row[4]),
            open=float(row[1]),
            volume=float(row[5]),
            time_open=time_open,
            time_close=time_open + params.interval.seconds * 1000 - 1,
        )
