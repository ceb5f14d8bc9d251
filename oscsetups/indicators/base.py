"""
Base oscillator interface.

An oscillator is computed two ways:
1. `calculate` on an OHLC DataFrame, returning columns aligned to its index
2. `points` on a BarSeries, returning the warm-up-free samples the trade
   simulator consumes
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Tuple, Union

import pandas as pd

from ..shared.types import Bar, BarSeries, IndicatorPoint

PRICE_COLUMNS = ("high", "low", "close")


def price_columns(frame: pd.DataFrame) -> Dict[str, pd.Series]:
    """
    Resolve High/Low/Close columns case-insensitively as float Series.

    Raises:
        ValueError: If a price column is missing
    """
    columns = {str(c).strip().lower(): c for c in frame.columns}
    missing = [c for c in PRICE_COLUMNS if c not in columns]
    if missing:
        raise ValueError(f"Missing required price columns: {missing}")
    return {name: frame[columns[name]].astype(float) for name in PRICE_COLUMNS}


class Indicator(ABC):
    """
    Base class for bar-based oscillators.

    Indicators only compute values; crossover trading on them is the
    simulator's job.
    """

    @property
    @abstractmethod
    def min_bars(self) -> int:
        """Number of bars before the first fully defined sample."""
        pass

    @abstractmethod
    def calculate(self, frame: pd.DataFrame) -> pd.DataFrame:
        """
        Args:
            frame: OHLC DataFrame (High/Low/Close columns, any case)

        Returns:
            DataFrame with indicator columns (same index as frame, NaN during warm-up)
        """
        pass

    @abstractmethod
    def points(self, bars: Union[BarSeries, Sequence[Bar]]) -> List[IndicatorPoint]:
        """Aligned samples for trade simulation, oldest first."""
        pass

    @abstractmethod
    def get_value_at(self, frame: pd.DataFrame, timestamp: pd.Timestamp) -> Optional[Tuple[float, ...]]:
        """Indicator values at `timestamp`, or None while warming up or if absent."""
        pass
