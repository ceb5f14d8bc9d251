"""
YAML configuration loader for parameter searches.

Loads search configurations from YAML files so data source, ranges and
simulation settings can be shared without code changes.
"""
import yaml
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..evaluation.simulator import SimulatorConfig
from ..shared.defaults import (
    CAPITAL, REVERSAL_POLICY, OVERSOLD, OVERBOUGHT,
    K_LENGTH_RANGE, K_SMOOTHING_RANGE, D_LENGTH_RANGE,
    KLINE_INTERVAL, KLINE_LIMIT, SEARCH_WORKERS, TOP_N,
)
from .config import ParamRange, SearchConfig, SearchRanges


def _optional_int(value: Any, name: str) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def _ranges_from_dict(ranges: Dict[str, Any]) -> SearchRanges:
    return SearchRanges(
        k_length=ParamRange.parse(ranges.get('k_length', list(K_LENGTH_RANGE))),
        k_smoothing=ParamRange.parse(ranges.get('k_smoothing', list(K_SMOOTHING_RANGE))),
        d_length=ParamRange.parse(ranges.get('d_length', list(D_LENGTH_RANGE))),
    )


def _simulation_from_dict(simulation: Dict[str, Any]) -> SimulatorConfig:
    return SimulatorConfig(
        capital=float(simulation.get('capital', CAPITAL)),
        exchange_fee=simulation.get('exchange_fee'),
        min_qty=simulation.get('min_qty'),
        min_price=simulation.get('min_price'),
        reversal=simulation.get('reversal', REVERSAL_POLICY),
        oversold=simulation.get('oversold', OVERSOLD),
        overbought=simulation.get('overbought', OVERBOUGHT),
    )


def load_config_from_yaml(yaml_path: Union[str, Path]) -> SearchConfig:
    """
    Load search configuration from YAML file.

    Args:
        yaml_path: Path to YAML configuration file

    Returns:
        SearchConfig object

    Raises:
        FileNotFoundError: If YAML file doesn't exist
        ValueError: If YAML is invalid or a value is out of range
    """
    yaml_path = Path(yaml_path)

    if not yaml_path.exists():
        raise FileNotFoundError(f"Config file not found: {yaml_path}")

    with open(yaml_path, 'r') as f:
        config_dict = yaml.safe_load(f)

    if not config_dict:
        raise ValueError(f"Empty config file: {yaml_path}")
    if not isinstance(config_dict, dict):
        raise ValueError(f"Config file must contain a mapping: {yaml_path}")

    data = config_dict.get('data') or {}
    ranges = config_dict.get('ranges') or {}
    simulation = config_dict.get('simulation') or {}
    search = config_dict.get('search') or {}

    return SearchConfig(
        name=config_dict.get('name', yaml_path.stem),
        description=config_dict.get('description', ''),
        exchange=data.get('exchange', 'binance'),
        base_asset=data.get('base_asset', 'ETH'),
        quote_asset=data.get('quote_asset', 'USDT'),
        interval=data.get('interval', KLINE_INTERVAL),
        limit=int(data.get('limit', KLINE_LIMIT)),
        source=data.get('source', 'api'),
        base_url=data.get('base_url'),
        csv_path=data.get('csv_path'),
        ranges=_ranges_from_dict(ranges),
        simulation=_simulation_from_dict(simulation),
        top_n=_optional_int(search.get('top_n', TOP_N), 'top_n'),
        workers=_optional_int(search.get('workers', SEARCH_WORKERS), 'workers'),
    )


def save_config_to_yaml(config: SearchConfig, yaml_path: Union[str, Path]):
    """
    Save search configuration to YAML file.

    Args:
        config: SearchConfig object to save
        yaml_path: Path where to save YAML file
    """
    yaml_path = Path(yaml_path)
    sim = config.simulation

    config_dict = {
        'name': config.name,
        'description': config.description,
        'data': {
            'exchange': config.exchange.value,
            'base_asset': config.base_asset,
            'quote_asset': config.quote_asset,
            'interval': config.interval.code,
            'limit': config.limit,
            'source': config.source.value,
        },
        'ranges': {
            'k_length': [config.ranges.k_length.start, config.ranges.k_length.end],
            'k_smoothing': [config.ranges.k_smoothing.start, config.ranges.k_smoothing.end],
            'd_length': [config.ranges.d_length.start, config.ranges.d_length.end],
        },
        'simulation': {
            'capital': sim.capital,
            'exchange_fee': sim.exchange_fee,
            'min_qty': sim.min_qty,
            'min_price': sim.min_price,
            'reversal': sim.reversal.value,
            'oversold': sim.oversold,
            'overbought': sim.overbought,
        },
        'search': {
            'top_n': config.top_n,
            'workers': config.workers,
        },
    }
    if config.base_url:
        config_dict['data']['base_url'] = config.base_url
    if config.csv_path is not None:
        config_dict['data']['csv_path'] = str(config.csv_path)

    yaml_path.parent.mkdir(parents=True, exist_ok=True)
    with open(yaml_path, 'w') as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)
