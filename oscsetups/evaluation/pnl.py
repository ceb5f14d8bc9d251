"""
PnL aggregation: reduce a sequence of closed trades to one statistics record.

Trades with realized profit > 0 are winning; all others (including exactly
zero) are losing. Zero-profit trades count towards the losing class but do
not take part in the largest win/loss extrema.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Sequence

from .trade_types import Trade


@dataclass(frozen=True)
class PnL:
    """Performance statistics for one stochastic configuration."""
    net_profit: float
    gross_profit: float
    gross_loss: float  # Sum of non-positive trades (negative or zero)
    buy_and_hold_return: float  # Percent change first -> last close
    profit_factor: float  # gross_profit / |gross_loss|; inf when there are no losses
    commission_paid: Optional[float]  # None when no exchange fee was configured
    total_closed_trades: int
    num_winning_trades: int
    num_losing_trades: int
    percent_profitable: float
    avg_winning_trade: float
    avg_losing_trade: float  # Negative number
    ratio_avg_win_loss: float
    largest_winning_trade: float
    largest_losing_trade: float  # Negative number
    avg_ticks_in_winning_trades: float  # Average holding time in bars
    avg_ticks_in_losing_trades: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


def buy_and_hold_return(first_bar_close: float, last_bar_close: float) -> float:
    """Percent return of holding from the first to the last close."""
    if first_bar_close == 0:
        return 0.0
    return 100.0 * (last_bar_close - first_bar_close) / first_bar_close


def _mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def aggregate(
    trades: Sequence[Trade],
    first_bar_close: float,
    last_bar_close: float,
    *,
    with_commission: Optional[bool] = None,
) -> PnL:
    """
    Aggregate closed trades into a PnL record in a single pass.

    Args:
        trades: Closed trades of one simulation run
        first_bar_close: Close of the first bar (buy-and-hold baseline)
        last_bar_close: Close of the last bar
        with_commission: Report commission_paid (True), omit it (False) or
            infer it from the trades carrying a commission (None)

    Returns:
        PnL record; with no trades every derived field is zero
    """
    wins: List[float] = []
    losses: List[float] = []
    win_ticks: List[int] = []
    loss_ticks: List[int] = []
    commission = 0.0
    fee_seen = False

    for trade in trades:
        profit = trade.realized_profit
        if trade.commission is not None:
            commission += trade.commission
            fee_seen = True
        if profit > 0:
            wins.append(profit)
            win_ticks.append(trade.duration)
        else:
            losses.append(profit)
            loss_ticks.append(trade.duration)

    gross_profit = sum(wins)
    gross_loss = sum(losses)
    total = len(wins) + len(losses)

    if gross_loss != 0:
        profit_factor = gross_profit / abs(gross_loss)
    elif gross_profit > 0:
        profit_factor = float("inf")
    else:
        profit_factor = 0.0

    avg_win = _mean(wins)
    avg_loss = _mean(losses)
    strict_losses = [p for p in losses if p < 0]

    if with_commission is None:
        with_commission = fee_seen

    return PnL(
        net_profit=gross_profit + gross_loss,
        gross_profit=gross_profit,
        gross_loss=gross_loss,
        buy_and_hold_return=buy_and_hold_return(first_bar_close, last_bar_close),
        profit_factor=profit_factor,
        commission_paid=commission if with_commission else None,
        total_closed_trades=total,
        num_winning_trades=len(wins),
        num_losing_trades=len(losses),
        percent_profitable=(100.0 * len(wins) / total) if total else 0.0,
        avg_winning_trade=avg_win,
        avg_losing_trade=avg_loss,
        ratio_avg_win_loss=(avg_win / abs(avg_loss)) if avg_loss != 0 else 0.0,
        largest_winning_trade=max(wins) if wins else 0.0,
        largest_losing_trade=min(strict_losses) if strict_losses else 0.0,
        avg_ticks_in_winning_trades=_mean(win_ticks),
        avg_ticks_in_losing_trades=_mean(loss_ticks),
    )
