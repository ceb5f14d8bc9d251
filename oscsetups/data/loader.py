"""
CSV bar loader.

Reads OHLCV CSV files (first column a datetime index, as written by
pandas/yfinance) into a BarSeries.
"""
import pandas as pd
from pathlib import Path
from typing import Optional, Union

from ..shared.types import BarSeries


def load_bars_csv(
    path: Union[str, Path],
    symbol: Optional[str] = None,
) -> BarSeries:
    """
    Load a bar series from CSV.

    Args:
        path: CSV file with a datetime first column and High/Low/Close
            (Open/Volume optional) columns
        symbol: Series symbol (default: file stem)

    Returns:
        BarSeries sorted oldest first

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If price columns are missing or contain NaN
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")

    df = pd.read_csv(path, index_col=0)

    # Ensure index is datetime where it parses as one
    try:
        df.index = pd.to_datetime(df.index)
    except (ValueError, TypeError):
        pass
    else:
        df = df.sort_index()

    return BarSeries.from_frame(df, symbol=symbol or path.stem)
