"""
Indicator calculation module.

Provides the Stochastic Oscillator family:
- Raw %K, smoothed %K (fast line) and %D (signal line)
- Aligned IndicatorPoint sequences for trade simulation

All indicators follow a unified interface for calculation.
"""
from .base import Indicator
from .stochastic import StochasticIndicator, compute, compute_with_seed, raw_k, sma, stochastic_frame

__all__ = [
    'Indicator',
    'StochasticIndicator',
    'compute',
    'compute_with_seed',
    'raw_k',
    'sma',
    'stochastic_frame',
]
