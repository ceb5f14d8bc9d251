"""
Stochastic oscillator setup search.

Provides:
- Market data loading (Binance, Coinbase, Yahoo Finance, CSV)
- Stochastic %K/%D calculation
- Crossover trade simulation and PnL statistics
- Exhaustive search over stochastic configurations
"""
__version__ = "0.1.0"

from .shared import (
    Bar,
    BarSeries,
    StochasticConfig,
    IndicatorPoint,
    OscSetupsError,
    InsufficientDataError,
    InvalidRangeError,
    SearchCancelledError,
    ExchangeError,
)
from .indicators import compute, compute_with_seed
from .evaluation import PnL, SimulatorConfig, Trade, aggregate, simulate
from .search import ParamRange, PnLParams, SearchRanges, SearchResult, evaluate, search
