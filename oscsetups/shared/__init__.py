"""
Shared types, errors and defaults for the stochastic pipeline.

This module provides:
- Bar / BarSeries price containers
- StochasticConfig and IndicatorPoint
- Exception hierarchy
- Centralized default values for all parameters
"""
from .types import Bar, BarSeries, StochasticConfig, IndicatorPoint
from .errors import (
    OscSetupsError,
    InsufficientDataError,
    InvalidRangeError,
    SearchCancelledError,
    ExchangeError,
)
from .defaults import (
    K_LENGTH, K_SMOOTHING, D_LENGTH,
    OVERSOLD, OVERBOUGHT,
    CAPITAL, REVERSAL_POLICY, TOP_N,
)

__all__ = [
    'Bar',
    'BarSeries',
    'StochasticConfig',
    'IndicatorPoint',
    'OscSetupsError',
    'InsufficientDataError',
    'InvalidRangeError',
    'SearchCancelledError',
    'ExchangeError',
    'K_LENGTH', 'K_SMOOTHING', 'D_LENGTH',
    'OVERSOLD', 'OVERBOUGHT',
    'CAPITAL', 'REVERSAL_POLICY', 'TOP_N',
]
