"""
Stochastic Oscillator calculation.

Raw %K = 100 * (close - lowest low) / (highest high - lowest low) over k_length bars
%K (fast line) = SMA(raw %K, k_smoothing)
%D (signal line) = SMA(%K, d_length)

A flat window (highest high == lowest low) yields raw %K = 0.
"""
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .base import Indicator, price_columns
from ..shared.defaults import K_LENGTH, K_SMOOTHING, D_LENGTH
from ..shared.errors import InsufficientDataError
from ..shared.types import Bar, BarSeries, IndicatorPoint, StochasticConfig


def sma(values: pd.Series, period: int) -> pd.Series:
    """Simple moving average; NaN until `period` defined values are available."""
    if period < 1:
        raise ValueError("period must be positive")
    return values.rolling(window=period, min_periods=period).mean()


def raw_k(high: pd.Series, low: pd.Series, close: pd.Series, k_length: int) -> pd.Series:
    """Raw %K over a rolling window of k_length bars."""
    highest = high.rolling(window=k_length, min_periods=k_length).max()
    lowest = low.rolling(window=k_length, min_periods=k_length).min()
    spread = highest - lowest

    value = 100.0 * (close - lowest) / spread.replace(0.0, np.nan)
    return value.mask(spread == 0.0, 0.0)


def stochastic_frame(
    high: pd.Series,
    low: pd.Series,
    close: pd.Series,
    config: StochasticConfig,
) -> pd.DataFrame:
    """
    Calculate raw %K, %K and %D aligned with the input index.

    Warm-up rows are NaN; defined values are clipped to [0, 100] to absorb
    floating point drift of the rolling means.
    """
    raw = raw_k(high, low, close, config.k_length)
    k_line = sma(raw, config.k_smoothing)
    d_line = sma(k_line, config.d_length)
    return pd.DataFrame({
        "raw_k": raw.clip(0.0, 100.0),
        "k": k_line.clip(0.0, 100.0),
        "d": d_line.clip(0.0, 100.0),
    }, index=close.index)


def compute_with_seed(
    bars: Union[BarSeries, Sequence[Bar]],
    config: StochasticConfig,
) -> Tuple[IndicatorPoint, List[IndicatorPoint]]:
    """
    Compute the aligned (%K, %D) sequence together with its seed sample.

    The seed is the first bar at which both lines are defined (index
    config.min_bars - 1). It is the `prev` sample of the first crossover
    comparison; the points follow from the next bar onward, so they hold
    len(bars) - config.min_bars samples in chronological order.

    Raises:
        InsufficientDataError: If the series has fewer than config.min_bars bars
    """
    if not isinstance(bars, BarSeries):
        bars = BarSeries(tuple(bars))

    available = len(bars)
    if available < config.min_bars:
        raise InsufficientDataError(required=config.min_bars, available=available)

    frame = stochastic_frame(
        pd.Series(bars.highs),
        pd.Series(bars.lows),
        pd.Series(bars.closes),
        config,
    )
    k_values = frame["k"].to_numpy()
    d_values = frame["d"].to_numpy()

    samples = [
        IndicatorPoint(index=i, k=float(k_values[i]), d=float(d_values[i]))
        for i in range(config.min_bars - 1, available)
    ]
    return samples[0], samples[1:]


def compute(
    bars: Union[BarSeries, Sequence[Bar]],
    config: StochasticConfig,
) -> List[IndicatorPoint]:
    """
    Compute the aligned (%K, %D) sequence for a bar series, without the seed.

    Pass the seed from `compute_with_seed` to the simulator so a crossover
    on the first emitted bar is not lost.

    Raises:
        InsufficientDataError: If the series has fewer than config.min_bars bars
    """
    return compute_with_seed(bars, config)[1]


class StochasticIndicator(Indicator):
    """Stochastic Oscillator indicator (%K fast line, %D signal line)."""

    def __init__(
        self,
        k_length: int = K_LENGTH,
        k_smoothing: int = K_SMOOTHING,
        d_length: int = D_LENGTH,
    ):
        self.config = StochasticConfig(k_length, k_smoothing, d_length)

    @classmethod
    def from_config(cls, config: StochasticConfig) -> "StochasticIndicator":
        return cls(config.k_length, config.k_smoothing, config.d_length)

    @property
    def min_bars(self) -> int:
        return self.config.min_bars

    def calculate(self, frame: pd.DataFrame) -> pd.DataFrame:
        """Calculate raw_k, k and d columns for an OHLC DataFrame."""
        prices = price_columns(frame)
        return stochastic_frame(prices["high"], prices["low"], prices["close"], self.config)

    def get_value_at(self, frame: pd.DataFrame, timestamp: pd.Timestamp) -> Optional[Tuple[float, float]]:
        """Get (%K, %D) at a specific timestamp."""
        values = self.calculate(frame)
        if timestamp not in values.index:
            return None
        row = values.loc[timestamp]
        if pd.isna(row["k"]) or pd.isna(row["d"]):
            return None
        return float(row["k"]), float(row["d"])

    def points(self, bars: Union[BarSeries, Sequence[Bar]]) -> List[IndicatorPoint]:
        """Aligned indicator samples for the simulator (see `compute`)."""
        return compute(bars, self.config)
