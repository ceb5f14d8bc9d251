"""
Parameter search module.

Enumerates stochastic configurations over inclusive ranges, evaluates each
one and ranks the results by net profit.
"""
from .config import ParamRange, PnLParams, SearchConfig, SearchRanges
from .grid_search import SearchResult, evaluate, search
from .config_loader import load_config_from_yaml, save_config_to_yaml

__all__ = [
    'ParamRange',
    'PnLParams',
    'SearchConfig',
    'SearchRanges',
    'SearchResult',
    'evaluate',
    'search',
    'load_config_from_yaml',
    'save_config_to_yaml',
]
