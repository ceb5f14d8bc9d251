"""
Tests for the crossover trade simulator.
"""
import math

import pytest

from oscsetups.evaluation.simulator import SimulatorConfig, TradeSimulator, simulate
from oscsetups.evaluation.trade_types import Direction, ExitReason, ReversalPolicy
from oscsetups.indicators.stochastic import compute
from oscsetups.shared.types import Bar, BarSeries, IndicatorPoint, StochasticConfig


CLOSES = [100.0, 100.0, 110.0, 120.0, 90.0, 80.0, 95.0]

# bullish crossover at 1, bearish at 4, bullish at 6 (last bar)
KD = [(20, 30), (40, 30), (50, 40), (60, 50), (30, 50), (20, 40), (45, 40)]


def _bars(closes):
    return BarSeries(tuple(Bar(high=c + 1, low=c - 1, close=c) for c in closes))


def _points(pairs, start=0):
    return [IndicatorPoint(index=start + i, k=float(k), d=float(d)) for i, (k, d) in enumerate(pairs)]


class TestCrossover:
    def test_bullish(self):
        prev = IndicatorPoint(0, 20.0, 30.0)
        assert TradeSimulator.crossover(prev, IndicatorPoint(1, 40.0, 30.0)) is Direction.LONG

    def test_bearish(self):
        prev = IndicatorPoint(0, 60.0, 50.0)
        assert TradeSimulator.crossover(prev, IndicatorPoint(1, 30.0, 50.0)) is Direction.SHORT

    def test_touch_then_cross_counts(self):
        prev = IndicatorPoint(0, 30.0, 30.0)
        assert TradeSimulator.crossover(prev, IndicatorPoint(1, 31.0, 30.0)) is Direction.LONG
        assert TradeSimulator.crossover(prev, IndicatorPoint(1, 29.0, 30.0)) is Direction.SHORT

    def test_no_cross(self):
        prev = IndicatorPoint(0, 40.0, 30.0)
        assert TradeSimulator.crossover(prev, IndicatorPoint(1, 45.0, 30.0)) is None
        flat = IndicatorPoint(1, 30.0, 30.0)
        assert TradeSimulator.crossover(IndicatorPoint(0, 30.0, 30.0), flat) is None

    def test_direction_opposite(self):
        assert Direction.LONG.opposite is Direction.SHORT
        assert Direction.SHORT.opposite is Direction.LONG


class TestReversalPolicy:
    """Flip vs flatten on an opposite crossover."""

    def test_flip_reopens_opposite_side(self):
        trades = simulate(_bars(CLOSES), _points(KD))
        assert len(trades) == 2

        long_trade, short_trade = trades
        assert long_trade.direction is Direction.LONG
        assert (long_trade.entry_index, long_trade.exit_index) == (1, 4)
        assert long_trade.qty == pytest.approx(10.0)
        assert long_trade.realized_profit == pytest.approx(-100.0)
        assert long_trade.exit_reason is ExitReason.SIGNAL

        assert short_trade.direction is Direction.SHORT
        assert (short_trade.entry_index, short_trade.exit_index) == (4, 6)
        assert short_trade.entry_price == 90.0
        assert short_trade.realized_profit == pytest.approx(-(95.0 - 90.0) * 1000.0 / 90.0)

    def test_flatten_goes_flat(self):
        config = SimulatorConfig(reversal=ReversalPolicy.FLATTEN)
        trades = simulate(_bars(CLOSES), _points(KD), config=config)
        assert len(trades) == 1
        assert trades[0].direction is Direction.LONG
        assert trades[0].exit_index == 4

    def test_flatten_reenters_on_next_crossover(self):
        closes = CLOSES + [100.0, 105.0]
        kd = KD + [(50, 42), (55, 45)]
        config = SimulatorConfig(reversal="flatten")
        trades = simulate(_bars(closes), _points(kd), config=config)
        assert [t.direction for t in trades] == [Direction.LONG, Direction.LONG]
        assert trades[1].entry_index == 6
        assert trades[1].exit_reason is ExitReason.END_OF_DATA


class TestStateMachine:
    def test_force_close_at_end(self):
        trades = simulate(_bars(CLOSES[:4]), _points(KD[:4]))
        assert len(trades) == 1
        assert trades[0].exit_index == 3
        assert trades[0].exit_price == 120.0
        assert trades[0].exit_reason is ExitReason.END_OF_DATA

    def test_no_entry_on_last_bar(self):
        trades = simulate(_bars(CLOSES[:2]), _points(KD[:2]))
        assert trades == []

    def test_no_crossover_no_trades(self):
        trades = simulate(_bars(CLOSES), _points([(40, 30)] * len(CLOSES)))
        assert trades == []

    def test_empty_inputs(self):
        assert simulate(_bars([]), []) == []
        assert simulate(_bars(CLOSES), []) == []

    def test_points_need_not_start_at_zero(self):
        closes = [100.0] * 5 + CLOSES
        trades = simulate(_bars(closes), _points(KD, start=5))
        assert [(t.entry_index, t.exit_index) for t in trades] == [(6, 9), (9, 11)]

    def test_unordered_points_rejected(self):
        points = [IndicatorPoint(2, 20.0, 30.0), IndicatorPoint(1, 40.0, 30.0)]
        with pytest.raises(ValueError):
            simulate(_bars(CLOSES), points)

    def test_out_of_range_point_rejected(self):
        with pytest.raises(ValueError):
            simulate(_bars(CLOSES), [IndicatorPoint(len(CLOSES), 20.0, 30.0)])

    def test_single_position_and_exit_after_entry(self):
        closes = [100 + 15 * math.sin(i / 3.0) + (i % 5) for i in range(200)]
        bars = _bars(closes)
        trades = simulate(bars, compute(bars, StochasticConfig(5, 3, 3)))
        assert trades
        for trade in trades:
            assert trade.exit_index > trade.entry_index
        for a, b in zip(trades, trades[1:]):
            assert b.entry_index >= a.exit_index

    def test_inputs_not_mutated(self):
        bars = _bars(CLOSES)
        points = _points(KD)
        snapshot = list(points)
        simulate(bars, points)
        assert points == snapshot


class TestSeed:
    """The sample before the first point takes part in the first comparison."""

    def test_seed_crossover_on_first_point(self):
        seed = IndicatorPoint(0, 20.0, 30.0)
        trades = simulate(_bars(CLOSES), _points(KD[1:], start=1), seed=seed)
        assert [(t.direction, t.entry_index, t.exit_index) for t in trades] == [
            (Direction.LONG, 1, 4),
            (Direction.SHORT, 4, 6),
        ]

    def test_without_seed_first_point_only_compares(self):
        trades = simulate(_bars(CLOSES), _points(KD[1:], start=1))
        assert [(t.direction, t.entry_index) for t in trades] == [(Direction.SHORT, 4)]

    def test_seed_matches_leading_point(self):
        seeded = simulate(_bars(CLOSES), _points(KD[1:], start=1), seed=_points(KD)[0])
        assert seeded == simulate(_bars(CLOSES), _points(KD))

    def test_seed_must_precede_points(self):
        with pytest.raises(ValueError):
            simulate(_bars(CLOSES), _points(KD[1:], start=1), seed=IndicatorPoint(1, 20.0, 30.0))

    def test_seed_out_of_range(self):
        with pytest.raises(ValueError):
            TradeSimulator().simulate(_bars(CLOSES), [], seed=IndicatorPoint(len(CLOSES), 20.0, 30.0))


class TestFeesAndLimits:
    def test_commission_both_sides(self):
        trades = simulate(_bars(CLOSES[:5]), _points(KD[:5]), exchange_fee=0.001,
                          config=SimulatorConfig(reversal="flatten"))
        assert len(trades) == 1
        trade = trades[0]
        assert trade.commission == pytest.approx((100.0 * 10 + 90.0 * 10) * 0.001)
        assert trade.realized_profit == pytest.approx(-100.0 - 1.9)

    def test_no_fee_means_no_commission(self):
        trades = simulate(_bars(CLOSES), _points(KD))
        assert all(t.commission is None for t in trades)

    def test_qty_floored_to_min_qty_step(self):
        trades = simulate(_bars(CLOSES), _points(KD), min_qty=0.001)
        assert trades[1].qty == pytest.approx(11.111)

    def test_min_qty_skip(self):
        assert simulate(_bars(CLOSES), _points(KD), min_qty=20) == []

    def test_min_price_skip(self):
        trades = simulate(_bars(CLOSES), _points(KD), min_price=95.0)
        assert len(trades) == 1
        assert trades[0].direction is Direction.LONG

    def test_capital_sets_qty(self):
        trades = simulate(_bars(CLOSES), _points(KD), config=SimulatorConfig(capital=500.0))
        assert trades[0].qty == pytest.approx(5.0)

    def test_overrides_apply_over_config(self):
        config = SimulatorConfig(exchange_fee=0.01)
        trades = simulate(_bars(CLOSES), _points(KD), exchange_fee=0.001, config=config)
        assert trades[0].commission == pytest.approx(1.9)


class TestZoneFilter:
    def test_oversold_blocks_long_entry(self):
        assert simulate(_bars(CLOSES[:4]), _points(KD[:4]), config=SimulatorConfig(oversold=30.0)) == []

    def test_oversold_allows_long_entry(self):
        trades = simulate(_bars(CLOSES[:4]), _points(KD[:4]), config=SimulatorConfig(oversold=35.0))
        assert len(trades) == 1

    def test_overbought_blocks_flip_but_still_closes(self):
        trades = simulate(_bars(CLOSES), _points(KD), config=SimulatorConfig(overbought=55.0))
        assert len(trades) == 1
        assert trades[0].direction is Direction.LONG
        assert trades[0].exit_index == 4


class TestSimulatorConfig:
    def test_defaults(self):
        config = SimulatorConfig()
        assert config.capital == 1000.0
        assert config.reversal is ReversalPolicy.FLIP
        assert config.exchange_fee is None
        assert config.oversold is None and config.overbought is None

    def test_reversal_from_string(self):
        assert SimulatorConfig(reversal="FLATTEN").reversal is ReversalPolicy.FLATTEN

    @pytest.mark.parametrize("kwargs", [
        {"capital": 0},
        {"exchange_fee": -0.1},
        {"min_qty": -1},
        {"min_price": -1},
        {"reversal": "hold"},
        {"oversold": 80.0, "overbought": 20.0},
        {"oversold": 120.0},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            SimulatorConfig(**kwargs)
