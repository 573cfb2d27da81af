"""
Tests for the Momentum Engine

- warm-up behaviour with a short price history
- momentum formula, exposure bias and velocity identity
- order-flow intensity bounds
"""

import math

import pytest

from engines.momentum.momentum_engine import MomentumEngine, order_flow_intensity
from engines.smoothing.moving_averages import hull_average
from storage.history_buffer import HistoryBuffer


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def engine():
    return MomentumEngine({"hma_period": 10, "acceleration_window": 20})


@pytest.fixture
def history():
    return HistoryBuffer(capacity=500)


def feed(engine, history, snapshots):
    points = []
    for snapshot in snapshots:
        point = engine.run(history, snapshot)
        history.push(point)
        points.append(point)
    return points


# =============================================================================
# ORDER FLOW INTENSITY
# =============================================================================

class TestOrderFlowIntensity:

    def test_balanced_flow_is_fifty(self):
        assert order_flow_intensity(0.0, 0.0, 0.0) == 50.0

    def test_call_premium_pushes_up(self):
        assert order_flow_intensity(1_000_000.0, 0.0, 0.0) == pytest.approx(60.0)

    def test_put_premium_pushes_down(self):
        assert order_flow_intensity(0.0, 1_000_000.0, 0.0) == pytest.approx(40.0)

    def test_velocity_term(self):
        assert order_flow_intensity(0.0, 0.0, 1_000_000.0) == pytest.approx(65.0)

    @pytest.mark.parametrize(
        "call_delta,put_delta,velocity",
        [
            (1e12, 0.0, 0.0),
            (0.0, 1e12, 0.0),
            (0.0, 0.0, -1e15),
            (float("inf"), 0.0, 0.0),
            (0.0, float("inf"), 0.0),
        ],
    )
    def test_always_clamped(self, call_delta, put_delta, velocity):
        score = order_flow_intensity(call_delta, put_delta, velocity)
        assert 0.0 <= score <= 100.0

    def test_opposing_infinities_resolve_to_fifty(self):
        assert order_flow_intensity(float("inf"), 0.0, float("-inf")) == 50.0
        assert order_flow_intensity(float("inf"), float("inf"), 0.0) == 50.0


# =============================================================================
# WARM-UP
# =============================================================================

class TestWarmUp:

    def test_first_point(self, engine, history, make_snapshot):
        point = engine.run(history, make_snapshot(price=6830.0))

        assert point.momentum == 0.0
        assert point.velocity == 0.0
        assert point.acceleration == 0.0
        assert point.order_flow_intensity == 50.0
        assert point.exposure_change == 0.0
        assert point.previous_timestamp is None

    def test_price_velocity_zero_below_hma_period(self, engine, history, make_snapshot):
        snapshots = [make_snapshot(price=6800.0 + 5 * i, index=i) for i in range(9)]
        points = feed(engine, history, snapshots)
        assert all(p.momentum == 0.0 for p in points)

    def test_acceleration_is_last_velocity_before_window_fills(self, engine, history, make_snapshot):
        snapshots = [make_snapshot(price=6800.0 + 2 * i, index=i) for i in range(14)]
        points = feed(engine, history, snapshots)
        for point in points:
            assert point.acceleration == pytest.approx(point.velocity)

    def test_run_does_not_mutate_history(self, engine, history, make_snapshot):
        feed(engine, history, [make_snapshot(index=0)])
        engine.run(history, make_snapshot(index=1))
        assert len(history) == 1


# =============================================================================
# MOMENTUM
# =============================================================================

class TestMomentum:

    def test_matches_formula(self, engine, history, make_snapshot):
        prices = [6800.0 + 3 * i for i in range(12)]
        snapshots = [make_snapshot(price=p, index=i, volume=250_000.0) for i, p in enumerate(prices)]
        points = feed(engine, history, snapshots)

        hma_now = hull_average(prices, 10)
        hma_prev = hull_average(prices[:-1], 10)
        expected = (hma_now - hma_prev) / hma_prev * math.log(250_000.0) * 1.2 * 5_000_000.0
        assert points[-1].momentum == pytest.approx(expected)
        assert points[-1].momentum > 0

    def test_negative_exposure_uses_bearish_bias(self, history, make_snapshot):
        prices = [6800.0 + 3 * i for i in range(12)]
        positive = feed(
            MomentumEngine({}), HistoryBuffer(), [make_snapshot(price=p, index=i) for i, p in enumerate(prices)]
        )
        negative = feed(
            MomentumEngine({}),
            history,
            [make_snapshot(price=p, index=i, exposure=-2_000_000.0) for i, p in enumerate(prices)],
        )
        assert positive[-1].momentum / negative[-1].momentum == pytest.approx(1.5)

    def test_flip_above_spot_uses_bearish_bias(self, make_snapshot):
        prices = [6800.0 + 3 * i for i in range(12)]
        snapshots = [make_snapshot(price=p, index=i) for i, p in enumerate(prices)]
        default_engine = MomentumEngine({})
        default = feed(default_engine, HistoryBuffer(), snapshots)

        history = HistoryBuffer()
        flipped_engine = MomentumEngine({})
        for snapshot in snapshots:
            history.push(flipped_engine.run(history, snapshot, flip_estimate=snapshot.price + 50.0))
        assert history.latest().momentum == pytest.approx(default[-1].momentum * 0.8 / 1.2)

    def test_zero_volume_gives_zero_momentum(self, engine, history, make_snapshot):
        snapshots = [make_snapshot(price=6800.0 + 3 * i, index=i, volume=0.0) for i in range(12)]
        points = feed(engine, history, snapshots)
        assert points[-1].momentum == 0.0

    def test_velocity_identity(self, engine, history, make_snapshot):
        prices = [6830.0, 6832.0, 6829.5, 6835.0, 6840.0, 6838.0, 6845.0, 6850.0,
                  6847.0, 6852.0, 6860.0, 6858.0, 6849.0, 6841.0, 6844.0]
        snapshots = [make_snapshot(price=p, index=i) for i, p in enumerate(prices)]
        points = feed(engine, history, snapshots)

        assert points[0].velocity == 0.0
        for previous, current in zip(points, points[1:]):
            assert current.velocity == pytest.approx(current.momentum - previous.momentum)
            assert current.previous_timestamp == previous.timestamp

    def test_premium_and_exposure_deltas(self, engine, history, make_snapshot):
        first = make_snapshot(index=0, call_premium=10_000_000.0, put_premium=8_000_000.0, exposure=1_000_000.0)
        second = make_snapshot(index=1, call_premium=11_000_000.0, put_premium=8_000_000.0, exposure=1_500_000.0)
        points = feed(engine, history, [first, second])

        assert points[1].exposure_change == pytest.approx(500_000.0)
        # +1M net call premium, no velocity yet
        assert points[1].order_flow_intensity == pytest.approx(60.0)

    def test_duplicate_timestamp_is_not_its_own_predecessor(self, engine, history, make_snapshot):
        feed(engine, history, [make_snapshot(index=0), make_snapshot(index=1, exposure=3_000_000.0)])
        again = engine.run(history, make_snapshot(index=1, exposure=3_500_000.0))

        assert again.previous_timestamp == history.points()[0].timestamp
        assert again.exposure_change == pytest.approx(1_500_000.0)
