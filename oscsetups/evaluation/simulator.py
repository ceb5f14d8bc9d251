"""
Crossover trade simulator.

Walks the aligned %K/%D samples in chronological order and trades the
crossovers:
- Flat: a bullish crossover opens a long, a bearish crossover opens a short
- Long/Short: the opposite crossover closes the position and, under the
  FLIP policy, reopens on the other side at the same close
- At the end of the series any open position is closed at the last close

Exactly zero or one position is open at any time (no pyramiding, no hedging).
"""
import logging
from dataclasses import dataclass, replace
from decimal import Decimal, ROUND_DOWN
from typing import List, Optional, Sequence, Union

from ..shared.defaults import CAPITAL, OVERSOLD, OVERBOUGHT, REVERSAL_POLICY
from ..shared.types import Bar, BarSeries, IndicatorPoint
from .trade_types import Direction, ExitReason, Position, ReversalPolicy, Trade

logger = logging.getLogger(__name__)

__all__ = ["SimulatorConfig", "TradeSimulator", "simulate"]


@dataclass(frozen=True)
class SimulatorConfig:
    """
    Trade simulation settings. Optional fields default to unset.

    capital: Notional committed to every entry (qty = capital / entry price)
    exchange_fee: Fee as fraction of trade value per side (e.g. 0.001 = 0.1%)
    min_qty: Smallest tradable quantity; also sets the quantity step
    min_price: Smallest tradable price
    reversal: FLIP (default) or FLATTEN on an opposite crossover
    oversold / overbought: When set, bullish entries need both lines below
        oversold and bearish entries need both lines above overbought on the
        sample before the crossover
    """
    capital: float = CAPITAL
    exchange_fee: Optional[float] = None
    min_qty: Optional[float] = None
    min_price: Optional[float] = None
    reversal: ReversalPolicy = ReversalPolicy(REVERSAL_POLICY)
    oversold: Optional[float] = OVERSOLD
    overbought: Optional[float] = OVERBOUGHT

    def __post_init__(self) -> None:
        if isinstance(self.reversal, str):
            try:
                object.__setattr__(self, "reversal", ReversalPolicy(self.reversal.lower()))
            except ValueError:
                raise ValueError(
                    f"reversal must be one of {[p.value for p in ReversalPolicy]}, got {self.reversal!r}"
                ) from None
        if self.capital <= 0:
            raise ValueError(f"capital must be positive, got {self.capital}")
        if self.exchange_fee is not None and not (0 <= self.exchange_fee < 1):
            raise ValueError(f"exchange_fee must be in [0, 1), got {self.exchange_fee}")
        if self.min_qty is not None and self.min_qty < 0:
            raise ValueError(f"min_qty must not be negative, got {self.min_qty}")
        if self.min_price is not None and self.min_price < 0:
            raise ValueError(f"min_price must not be negative, got {self.min_price}")
        for name in ("oversold", "overbought"):
            level = getattr(self, name)
            if level is not None and not (0 <= level <= 100):
                raise ValueError(f"{name} must be within [0, 100], got {level}")
        if (
            self.oversold is not None
            and self.overbought is not None
            and self.oversold >= self.overbought
        ):
            raise ValueError(
                f"oversold ({self.oversold}) must be less than overbought ({self.overbought})"
            )


def _qty_quantum(min_qty: Optional[float]) -> Optional[Decimal]:
    """Quantity step implied by the decimal places of min_qty (0.001 -> 0.001, 5 -> 1)."""
    if not min_qty:
        return None
    exponent = Decimal(repr(float(min_qty))).normalize().as_tuple().exponent
    return Decimal(1).scaleb(min(int(exponent), 0))


class TradeSimulator:
    """
    Simulates crossover trading on a single bar series.

    The configuration is evaluated once here; `simulate` holds no state
    between calls.
    """

    def __init__(self, config: Optional[SimulatorConfig] = None):
        """
        Initialize the simulator.

        Args:
            config: Simulation settings (default: SimulatorConfig())
        """
        self.config = config or SimulatorConfig()
        self._qty_quantum = _qty_quantum(self.config.min_qty)

    def _fee_for_side(self, price: float, qty: float) -> float:
        """Fee for one side (entry or exit): trade value * exchange_fee."""
        return price * qty * (self.config.exchange_fee or 0.0)

    def _entry_qty(self, price: float) -> Optional[float]:
        """Quantity bought for `capital` at `price`, or None when the entry would be degenerate."""
        cfg = self.config
        if price <= 0:
            return None
        if cfg.min_price is not None and price < cfg.min_price:
            return None

        qty = cfg.capital / price
        if self._qty_quantum is not None:
            qty = float(Decimal(repr(qty)).quantize(self._qty_quantum, rounding=ROUND_DOWN))
        if qty <= 0:
            return None
        if cfg.min_qty is not None and qty < cfg.min_qty:
            return None
        return qty

    def _qualifies(self, direction: Direction, prev: IndicatorPoint) -> bool:
        """Zone filter for entries (always true when the zone is unset)."""
        if direction is Direction.LONG:
            level = self.config.oversold
            return level is None or (prev.k < level and prev.d < level)
        level = self.config.overbought
        return level is None or (prev.k > level and prev.d > level)

    @staticmethod
    def crossover(prev: IndicatorPoint, point: IndicatorPoint) -> Optional[Direction]:
        """LONG for %K crossing above %D, SHORT for crossing below, else None."""
        if prev.k <= prev.d and point.k > point.d:
            return Direction.LONG
        if prev.k >= prev.d and point.k < point.d:
            return Direction.SHORT
        return None

    def _open(self, direction: Direction, index: int, price: float) -> Optional[Position]:
        qty = self._entry_qty(price)
        if qty is None:
            logger.debug(
                "Skipping degenerate %s entry at bar %d (price=%s, min_price=%s, min_qty=%s)",
                direction.value, index, price, self.config.min_price, self.config.min_qty,
            )
            return None
        return Position(direction=direction, entry_index=index, entry_price=price, qty=qty)

    def _close(self, position: Position, index: int, price: float, reason: ExitReason) -> Trade:
        commission = None
        if self.config.exchange_fee is not None:
            commission = (
                self._fee_for_side(position.entry_price, position.qty)
                + self._fee_for_side(price, position.qty)
            )
        return Trade(
            entry_index=position.entry_index,
            exit_index=index,
            entry_price=position.entry_price,
            exit_price=price,
            direction=position.direction,
            qty=position.qty,
            commission=commission,
            exit_reason=reason,
        )

    def simulate(
        self,
        bars: Union[BarSeries, Sequence[Bar]],
        points: Sequence[IndicatorPoint],
        seed: Optional[IndicatorPoint] = None,
    ) -> List[Trade]:
        """
        Run the crossover state machine.

        Args:
            bars: Bar series the points were computed from
            points: Aligned indicator samples, strictly increasing by index
            seed: Sample before the first point; compared against it for the
                first crossover. Without it the first point only seeds.

        Returns:
            Closed trades in chronological order

        Raises:
            ValueError: If a point is out of range or points are not in order
        """
        if not isinstance(bars, BarSeries):
            bars = BarSeries(tuple(bars))
        if len(bars) == 0:
            return []

        closes = bars.closes
        last_index = len(bars) - 1
        trades: List[Trade] = []
        position: Optional[Position] = None
        prev: Optional[IndicatorPoint] = None
        if seed is not None:
            if not 0 <= seed.index <= last_index:
                raise ValueError(f"Seed index {seed.index} outside bar series")
            prev = seed

        for point in points:
            if not 0 <= point.index <= last_index:
                raise ValueError(f"Indicator point index {point.index} outside bar series")
            if prev is not None and point.index <= prev.index:
                raise ValueError("Indicator points must be strictly increasing by index")

            signal = self.crossover(prev, point) if prev is not None else None
            if signal is not None:
                price = float(closes[point.index])

                if position is not None and position.direction is signal.opposite:
                    trades.append(self._close(position, point.index, price, ExitReason.SIGNAL))
                    position = None
                    reopen = self.config.reversal is ReversalPolicy.FLIP
                else:
                    reopen = True

                # No entry on the final bar: nothing would remain to exit on
                if (
                    reopen
                    and position is None
                    and point.index < last_index
                    and self._qualifies(signal, prev)
                ):
                    position = self._open(signal, point.index, price)

            prev = point

        if position is not None:
            trades.append(
                self._close(position, last_index, float(closes[last_index]), ExitReason.END_OF_DATA)
            )
        return trades


def simulate(
    bars: Union[BarSeries, Sequence[Bar]],
    points: Sequence[IndicatorPoint],
    exchange_fee: Optional[float] = None,
    min_qty: Optional[float] = None,
    min_price: Optional[float] = None,
    *,
    config: Optional[SimulatorConfig] = None,
    seed: Optional[IndicatorPoint] = None,
) -> List[Trade]:
    """
    Simulate crossover trades; explicit fee/min_qty/min_price override `config`.

    `seed` is the sample preceding `points` (see `compute_with_seed`).
    """
    config = config or SimulatorConfig()
    overrides = {
        name: value
        for name, value in (
            ("exchange_fee", exchange_fee),
            ("min_qty", min_qty),
            ("min_price", min_price),
        )
        if value is not None
    }
    if overrides:
        config = replace(config, **overrides)
    return TradeSimulator(config).simulate(bars, points, seed=seed)
