"""
Shared types for the stochastic pipeline.

This module consolidates the price bar containers and the indicator
configuration/sample types used across the indicator, evaluation and
search modules.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional, Sequence, Tuple, Union, overload

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class Bar:
    """
    A single price bar.

    Only high/low/close are used by the pipeline; open, volume and the
    open/close times (milliseconds since epoch) are carried for collaborators.
    """
    high: float
    low: float
    close: float
    open: Optional[float] = None
    volume: Optional[float] = None
    time_open: Optional[int] = None
    time_close: Optional[int] = None

    def __post_init__(self) -> None:
        if self.high < self.low:
            raise ValueError(f"Bar high ({self.high}) must not be below low ({self.low})")


# Column aliases accepted by BarSeries.from_frame (lower-cased)
_FRAME_COLUMNS = {
    "high": "high",
    "low": "low",
    "close": "close",
    "open": "open",
    "volume": "volume",
}


@dataclass(frozen=True)
class BarSeries:
    """
    Chronologically ordered, immutable sequence of bars.

    Order encodes time: re-ordering changes every downstream result.
    Numpy views of highs/lows/closes are built once and are read-only.
    """
    bars: Tuple[Bar, ...]
    symbol: Optional[str] = None

    _highs: np.ndarray = field(init=False, repr=False, compare=False)
    _lows: np.ndarray = field(init=False, repr=False, compare=False)
    _closes: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        bars = tuple(self.bars)
        object.__setattr__(self, "bars", bars)
        for name, attr in (("_highs", "high"), ("_lows", "low"), ("_closes", "close")):
            values = np.array([getattr(b, attr) for b in bars], dtype=float)
            values.flags.writeable = False
            object.__setattr__(self, name, values)

    def __len__(self) -> int:
        return len(self.bars)

    def __iter__(self) -> Iterator[Bar]:
        return iter(self.bars)

    @overload
    def __getitem__(self, index: int) -> Bar: ...

    @overload
    def __getitem__(self, index: slice) -> "BarSeries": ...

    def __getitem__(self, index: Union[int, slice]) -> Union[Bar, "BarSeries"]:
        if isinstance(index, slice):
            return BarSeries(self.bars[index], symbol=self.symbol)
        return self.bars[index]

    @property
    def highs(self) -> np.ndarray:
        return self._highs

    @property
    def lows(self) -> np.ndarray:
        return self._lows

    @property
    def closes(self) -> np.ndarray:
        return self._closes

    @property
    def first_close(self) -> float:
        if not self.bars:
            raise IndexError("Bar series is empty")
        return float(self.bars[0].close)

    @property
    def last_close(self) -> float:
        if not self.bars:
            raise IndexError("Bar series is empty")
        return float(self.bars[-1].close)

    @classmethod
    def from_frame(cls, df: pd.DataFrame, symbol: Optional[str] = None) -> "BarSeries":
        """
        Build a series from an OHLCV DataFrame.

        Column names are matched case-insensitively; High/Low/Close are
        required. A DatetimeIndex is carried over as bar open time (ms).

        Raises:
            ValueError: If a required column is missing or prices contain NaN
        """
        rename_map = {}
        for col in df.columns:
            key = str(col).strip().lower()
            if key in _FRAME_COLUMNS:
                rename_map[col] = _FRAME_COLUMNS[key]
        frame = df.rename(columns=rename_map)

        missing = [c for c in ("high", "low", "close") if c not in frame.columns]
        if missing:
            raise ValueError(f"Missing required price columns: {missing}")
        if frame[["high", "low", "close"]].isna().any().any():
            raise ValueError("Price columns must not contain NaN values")

        times: Sequence[Optional[int]]
        if isinstance(frame.index, pd.DatetimeIndex):
            times = [int(ts.value // 1_000_000) for ts in frame.index]
        else:
            times = [None] * len(frame)

        has_open = "open" in frame.columns
        has_volume = "volume" in frame.columns
        bars = []
        for pos, row in enumerate(frame.itertuples(index=False)):
            bars.append(Bar(
                high=float(row.high),
                low=float(row.low),
                close=float(row.close),
                open=float(row.open) if has_open else None,
                volume=float(row.volume) if has_volume else None,
                time_open=times[pos],
            ))
        return cls(tuple(bars), symbol=symbol)

    def to_frame(self) -> pd.DataFrame:
        """Return the series as a DataFrame with Open/High/Low/Close/Volume columns."""
        df = pd.DataFrame({
            "Open": [b.open for b in self.bars],
            "High": self._highs,
            "Low": self._lows,
            "Close": self._closes,
            "Volume": [b.volume for b in self.bars],
        })
        if self.bars and all(b.time_open is not None for b in self.bars):
            df.index = pd.to_datetime([b.time_open for b in self.bars], unit="ms")
        return df


@dataclass(frozen=True)
class StochasticConfig:
    """Stochastic Oscillator window configuration."""
    k_length: int
    k_smoothing: int
    d_length: int

    def __post_init__(self) -> None:
        for name in ("k_length", "k_smoothing", "d_length"):
            value = getattr(self, name)
            if not isinstance(value, (int, np.integer)) or isinstance(value, bool):
                raise ValueError(f"{name} must be an integer, got {value!r}")
            if value < 1:
                raise ValueError(f"{name} must be >= 1, got {value}")

    @property
    def min_bars(self) -> int:
        """Minimum number of bars a series needs for this configuration."""
        return self.k_length + self.k_smoothing + self.d_length - 2


@dataclass(frozen=True)
class IndicatorPoint:
    """One aligned stochastic sample; `index` points back into the bar series."""
    index: int
    k: float
    d: float
