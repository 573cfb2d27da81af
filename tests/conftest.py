from datetime import datetime, timedelta, timezone

import pytest

from engines.regime.range_engine import classify_regime, expected_ranges
from schemas.core_schemas import AnalyticPacket, MarketSnapshot, StrikeLevel, StructuralLevels

BASE_TIME = datetime(2025, 1, 6, 15, 0, tzinfo=timezone.utc)


@pytest.fixture
def base_time():
    return BASE_TIME


@pytest.fixture
def make_snapshot():
    """Factory for market snapshots, one poll step (3 minutes) apart by index."""

    def _create(
        price=6830.0,
        index=0,
        exposure=2_000_000.0,
        volume=100_000.0,
        call_premium=0.0,
        put_premium=0.0,
        strikes=None,
        **overrides,
    ):
        return MarketSnapshot(
            timestamp=overrides.pop("timestamp", BASE_TIME + timedelta(minutes=3 * index)),
            ticker="SPX",
            price=price,
            exposure=exposure,
            volume=volume,
            call_premium=call_premium,
            put_premium=put_premium,
            strikes=strikes or [],
            **overrides,
        )

    return _create


@pytest.fixture
def make_packet():
    """Factory for analytic packets with neutral defaults."""

    def _create(
        price=6830.0,
        momentum=0.0,
        ofi=50.0,
        exposure=2_000_000.0,
        volatility_trigger=None,
        levels=None,
        timestamp=None,
    ):
        return AnalyticPacket(
            ticker="SPX",
            timestamp=timestamp or BASE_TIME,
            price=price,
            exposure=exposure,
            exposure_oi=0.0,
            exposure_1dte=0.0,
            exposure_1dte_oi=0.0,
            exposure_change=0.0,
            volume=100_000.0,
            call_premium=0.0,
            put_premium=0.0,
            vix=15.0,
            implied_move=30.0,
            momentum=momentum,
            velocity=0.0,
            acceleration=0.0,
            order_flow_intensity=ofi,
            regime=classify_regime(exposure),
            levels=levels or StructuralLevels(),
            volatility_trigger=volatility_trigger,
            ranges=expected_ranges(price, 15.0, 30.0, exposure),
        )

    return _create


@pytest.fixture
def strike_table():
    """Near-spot strike table around 6830."""
    return [
        StrikeLevel(price=6800, call_volume=1_000, put_volume=4_000, net_gex=-3_000_000, open_interest=9_000, dark_pool_volume=100),
        StrikeLevel(price=6820, call_volume=2_000, put_volume=2_500, net_gex=-500_000, open_interest=12_000, dark_pool_volume=700),
        StrikeLevel(price=6830, call_volume=3_000, put_volume=1_000, net_gex=50_000, open_interest=15_000, dark_pool_volume=300),
        StrikeLevel(price=6850, call_volume=9_000, put_volume=2_000, net_gex=4_500_000, open_interest=20_000, dark_pool_volume=900),
        StrikeLevel(price=6870, call_volume=1_500, put_volume=500, net_gex=1_200_000, open_interest=7_000, dark_pool_volume=50),
    ]
