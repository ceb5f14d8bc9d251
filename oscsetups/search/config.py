"""
Configuration types for the stochastic parameter search.

ParamRange/SearchRanges bound the 3-dimensional grid; PnLParams is the
search key; SearchConfig bundles data, simulation and search settings for
the CLI drivers.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from itertools import product
from pathlib import Path
from typing import Iterator, Optional, Sequence, Tuple, Union

from ..data.klines import DataSource, Exchange, Interval, KlineParams
from ..evaluation.simulator import SimulatorConfig
from ..shared.defaults import (
    K_LENGTH_RANGE, K_SMOOTHING_RANGE, D_LENGTH_RANGE,
    KLINE_INTERVAL, KLINE_LIMIT, SEARCH_WORKERS, TOP_N,
)
from ..shared.errors import InvalidRangeError
from ..shared.types import StochasticConfig


@dataclass(frozen=True, order=True)
class PnLParams:
    """Stochastic configuration used to produce one PnL record (ordered k_length, k_smoothing, d_length)."""
    k_length: int
    k_smoothing: int
    d_length: int

    def to_config(self) -> StochasticConfig:
        return StochasticConfig(self.k_length, self.k_smoothing, self.d_length)

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.k_length, self.k_smoothing, self.d_length)


@dataclass(frozen=True)
class ParamRange:
    """Inclusive integer range with positive bounds."""
    start: int
    end: int

    def __post_init__(self) -> None:
        for name in ("start", "end"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidRangeError(f"Range {name} must be an integer, got {value!r}")
        if self.start < 1 or self.end < 1:
            raise InvalidRangeError(f"Range bounds must be positive, got {self.start}..={self.end}")
        if self.start > self.end:
            raise InvalidRangeError(f"Range start ({self.start}) must not exceed end ({self.end})")

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.start, self.end + 1))

    def __len__(self) -> int:
        return self.end - self.start + 1

    def __str__(self) -> str:
        return f"{self.start}..={self.end}"

    @classmethod
    def single(cls, value: int) -> "ParamRange":
        return cls(value, value)

    @classmethod
    def parse(cls, value: Union[str, int, Sequence[int], "ParamRange"]) -> "ParamRange":
        """
        Parse "5:20", "5..20", "7", 7, [5, 20] or (5, 20) into a range.

        Raises:
            InvalidRangeError: If the value cannot be parsed or is invalid
        """
        if isinstance(value, ParamRange):
            return value
        if isinstance(value, bool):
            raise InvalidRangeError(f"Cannot parse range from {value!r}")
        if isinstance(value, int):
            return cls(value, value)
        if isinstance(value, str):
            text = value.strip().replace("..=", ":").replace("..", ":").replace("-", ":")
            parts = [p.strip() for p in text.split(":")]
            try:
                bounds = [int(p) for p in parts]
            except ValueError:
                raise InvalidRangeError(f"Cannot parse range from {value!r}") from None
        else:
            try:
                bounds = [int(v) for v in value]
            except (TypeError, ValueError):
                raise InvalidRangeError(f"Cannot parse range from {value!r}") from None
        if len(bounds) == 1:
            return cls(bounds[0], bounds[0])
        if len(bounds) != 2:
            raise InvalidRangeError(f"Range needs one or two bounds, got {value!r}")
        return cls(bounds[0], bounds[1])


@dataclass(frozen=True)
class SearchRanges:
    """Bounds of the k_length x k_smoothing x d_length grid."""
    k_length: ParamRange
    k_smoothing: ParamRange
    d_length: ParamRange

    def __post_init__(self) -> None:
        for name in ("k_length", "k_smoothing", "d_length"):
            value = getattr(self, name)
            if not isinstance(value, ParamRange):
                object.__setattr__(self, name, ParamRange.parse(value))

    @property
    def size(self) -> int:
        return len(self.k_length) * len(self.k_smoothing) * len(self.d_length)

    def iter_params(self) -> Iterator[PnLParams]:
        """All configurations, k_length ascending, then k_smoothing, then d_length."""
        for k_length, k_smoothing, d_length in product(self.k_length, self.k_smoothing, self.d_length):
            yield PnLParams(k_length, k_smoothing, d_length)

    @classmethod
    def single(cls, params: PnLParams) -> "SearchRanges":
        return cls(
            ParamRange.single(params.k_length),
            ParamRange.single(params.k_smoothing),
            ParamRange.single(params.d_length),
        )


def _default_ranges() -> SearchRanges:
    return SearchRanges(
        ParamRange(*K_LENGTH_RANGE),
        ParamRange(*K_SMOOTHING_RANGE),
        ParamRange(*D_LENGTH_RANGE),
    )


@dataclass
class SearchConfig:
    """Configuration for one search run (data source, simulation, grid)."""

    name: str
    description: str = ""

    # Data
    exchange: Exchange = Exchange.BINANCE
    base_asset: str = "ETH"
    quote_asset: str = "USDT"
    interval: Interval = Interval.from_code(KLINE_INTERVAL)
    limit: int = KLINE_LIMIT
    source: DataSource = DataSource.API
    base_url: Optional[str] = None
    csv_path: Optional[Path] = None  # Load bars from CSV instead of an exchange

    # Grid and simulation
    ranges: SearchRanges = field(default_factory=_default_ranges)
    simulation: SimulatorConfig = field(default_factory=SimulatorConfig)

    # Search
    top_n: Optional[int] = TOP_N
    workers: Optional[int] = SEARCH_WORKERS  # None = CPU count, 1 = in-process

    def __post_init__(self) -> None:
        if isinstance(self.exchange, str):
            self.exchange = Exchange.from_name(self.exchange)
        if isinstance(self.interval, str):
            self.interval = Interval.from_code(self.interval)
        if isinstance(self.source, str):
            self.source = DataSource(self.source.lower())
        if self.csv_path is not None:
            self.csv_path = Path(self.csv_path)
        if self.limit < 1:
            raise ValueError(f"limit must be positive, got {self.limit}")
        if self.top_n is not None and self.top_n < 1:
            raise ValueError(f"top_n must be positive, got {self.top_n}")
        if self.workers is not None and self.workers < 1:
            raise ValueError(f"workers must be positive, got {self.workers}")

    def kline_params(self) -> KlineParams:
        return KlineParams(
            base_asset=self.base_asset,
            quote_asset=self.quote_asset,
            interval=self.interval,
            limit=self.limit,
            base_url=self.base_url,
            source=self.source,
        )
