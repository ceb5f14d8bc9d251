"""
Trade simulation and performance evaluation module.

Simulates crossover trades on %K/%D samples and reduces the resulting
trades to a PnL statistics record.
"""
from .trade_types import Direction, ExitReason, Position, ReversalPolicy, Trade
from .simulator import SimulatorConfig, TradeSimulator, simulate
from .pnl import PnL, aggregate, buy_and_hold_return

__all__ = [
    'Direction',
    'ExitReason',
    'Position',
    'ReversalPolicy',
    'Trade',
    'SimulatorConfig',
    'TradeSimulator',
    'simulate',
    'PnL',
    'aggregate',
    'buy_and_hold_return',
]
