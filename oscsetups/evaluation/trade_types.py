"""
Trade simulation types: direction, open position, closed trade.

Extracted for reuse and to keep simulator.py focused on the state machine.
The PnL aggregator imports these types without pulling in TradeSimulator.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Direction(Enum):
    """Side of a position."""
    LONG = "long"
    SHORT = "short"

    @property
    def sign(self) -> int:
        return 1 if self is Direction.LONG else -1

    @property
    def opposite(self) -> "Direction":
        return Direction.SHORT if self is Direction.LONG else Direction.LONG


class ReversalPolicy(Enum):
    """What the simulator does when an opposite crossover closes a position."""
    FLIP = "flip"  # Close and immediately reopen on the opposite side
    FLATTEN = "flatten"  # Close and stay flat until the next crossover


class ExitReason(Enum):
    """Why a trade was closed."""
    SIGNAL = "signal"  # Opposite crossover
    END_OF_DATA = "end_of_data"  # Force-closed at the last bar


@dataclass(frozen=True)
class Position:
    """The single open position during a simulation run."""
    direction: Direction
    entry_index: int
    entry_price: float
    qty: float


@dataclass(frozen=True)
class Trade:
    """A closed trade. Immutable once the simulator emits it."""
    entry_index: int
    exit_index: int
    entry_price: float
    exit_price: float
    direction: Direction
    qty: float
    commission: Optional[float] = None  # None when no exchange fee is configured
    exit_reason: ExitReason = ExitReason.SIGNAL

    @property
    def duration(self) -> int:
        """Holding time in bars."""
        return self.exit_index - self.entry_index

    @property
    def gross_profit(self) -> float:
        """Profit before commission."""
        return self.direction.sign * (self.exit_price - self.entry_price) * self.qty

    @property
    def realized_profit(self) -> float:
        """Profit after commission."""
        return self.gross_profit - (self.commission or 0.0)
