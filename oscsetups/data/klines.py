"""
Kline request types shared by all exchange clients.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Exchange(Enum):
    """Supported market data sources."""
    BINANCE = "binance"
    COINBASE = "coinbase"
    YAHOO = "yahoo"

    @classmethod
    def from_name(cls, name: str) -> "Exchange":
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown exchange '{name}'. Available: {[e.value for e in cls]}"
            ) from None


class DataSource(Enum):
    """Where klines are read from."""
    API = "api"  # Always request the exchange
    FILE = "file"  # Read the JSON cache; fall back to the API and write the cache


_INTERVAL_SECONDS = {
    "1s": 1,
    "1m": 60,
    "3m": 180,
    "5m": 300,
    "15m": 900,
    "30m": 1800,
    "1h": 3600,
    "2h": 7200,
    "4h": 14400,
    "6h": 21600,
    "8h": 28800,
    "12h": 43200,
    "1d": 86400,
    "3d": 259200,
    "1w": 604800,
}


class Interval(Enum):
    """Kline interval; the value is the exchange string code."""
    S1 = "1s"
    M1 = "1m"
    M3 = "3m"
    M5 = "5m"
    M15 = "15m"
    M30 = "30m"
    H1 = "1h"
    H2 = "2h"
    H4 = "4h"
    H6 = "6h"
    H8 = "8h"
    H12 = "12h"
    D1 = "1d"
    D3 = "3d"
    W1 = "1w"

    @property
    def code(self) -> str:
        return self.value

    @property
    def seconds(self) -> int:
        return _INTERVAL_SECONDS[self.value]

    @classmethod
    def from_code(cls, code: str) -> "Interval":
        try:
            return cls(code.strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown interval '{code}'. Available: {[i.value for i in cls]}"
            ) from None


@dataclass(frozen=True)
class KlineParams:
    """
    Parameters of one kline request.

    limit is the number of completed bars wanted; clients request one more
    and drop the newest (still forming) kline.
    """
    base_asset: str
    quote_asset: str
    interval: Interval = Interval.H4
    limit: int = 1000
    base_url: Optional[str] = None
    source: DataSource = DataSource.API

    def __post_init__(self) -> None:
        if isinstance(self.interval, str):
            object.__setattr__(self, "interval", Interval.from_code(self.interval))
        if isinstance(self.source, str):
            object.__setattr__(self, "source", DataSource(self.source.lower()))
        if not self.base_asset or not self.quote_asset:
            raise ValueError("base_asset and quote_asset are required")
        if self.limit < 1:
            raise ValueError(f"limit must be positive, got {self.limit}")
