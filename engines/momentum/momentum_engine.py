"""Momentum Engine - hedging-pressure momentum, velocity, acceleration and order-flow intensity."""

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

from loguru import logger

from engines.smoothing.moving_averages import hull_average
from schemas.core_schemas import EnrichedPoint, MarketSnapshot
from storage.history_buffer import HistoryBuffer


def order_flow_intensity(
    call_premium_delta: float,
    put_premium_delta: float,
    velocity: float,
    premium_scale: float = 1_000_000.0,
    velocity_scale: float = 1_000_000.0,
    premium_weight: float = 10.0,
    velocity_weight: float = 15.0,
) -> float:
    """Score premium-flow imbalance on a 0-100 scale, 50 being balanced.

    Net call premium buying and positive velocity push the score up; put
    buying and negative velocity push it down.
    """
    net_premium_delta = call_premium_delta - put_premium_delta
    score = (
        50.0
        + premium_weight * net_premium_delta / premium_scale
        + velocity_weight * velocity / velocity_scale
    )
    if math.isnan(score):
        return 50.0
    return max(0.0, min(100.0, score))


class MomentumEngine:
    """
    Converts the price history plus a new snapshot into an enriched point.

    Momentum is the Hull-smoothed price velocity scaled by log volume and a
    dealer-exposure bias. Velocity is its first difference and acceleration is
    the Hull average of velocity over roughly one hour of cycles.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize Momentum Engine.

        Args:
            config: Engine configuration (``MomentumConfig`` fields plus
                ``hma_period`` and ``acceleration_window``)
        """
        self.config = config
        self.hma_period = int(config.get("hma_period", 10))
        self.scale = float(config.get("scale", 5_000_000.0))
        self.flip_offset = float(config.get("flip_offset", 10.0))
        self.bias_bullish = float(config.get("bias_bullish", 1.2))
        self.bias_bearish = float(config.get("bias_bearish", 0.8))
        self.acceleration_window = max(1, int(config.get("acceleration_window", 20)))
        logger.info(
            f"MomentumEngine initialized (hma_period={self.hma_period}, "
            f"acceleration_window={self.acceleration_window})"
        )

    def run(
        self,
        history: HistoryBuffer,
        snapshot: MarketSnapshot,
        flip_estimate: Optional[float] = None,
    ) -> EnrichedPoint:
        """
        Enrich ``snapshot`` against ``history`` without modifying the buffer.

        Args:
            history: Buffer of previously enriched points
            snapshot: New market snapshot
            flip_estimate: Best known flip strike; ``spot - flip_offset`` when None

        Returns:
            EnrichedPoint ready to be pushed into the buffer
        """
        points = history.points()
        # a duplicate timestamp replaces the newest point, so it is not its own predecessor
        if points and points[-1].timestamp == snapshot.timestamp:
            points = points[:-1]
        previous = points[-1] if points else None

        prices: List[float] = [p.price for p in points] + [snapshot.price]
        price_velocity = self._price_velocity(prices)

        volume_factor = math.log(max(snapshot.volume, 1.0))
        if flip_estimate is None:
            flip_estimate = snapshot.price - self.flip_offset
        exposure_bias = self._exposure_bias(snapshot.price, flip_estimate, snapshot.exposure)

        momentum = price_velocity * volume_factor * exposure_bias * self.scale
        velocity = momentum - (previous.momentum if previous else 0.0)

        velocities = [p.velocity for p in points] + [velocity]
        acceleration = hull_average(velocities, self.acceleration_window)

        if previous is not None:
            call_delta = snapshot.call_premium - previous.call_premium
            put_delta = snapshot.put_premium - previous.put_premium
            exposure_change = snapshot.exposure - previous.exposure
        else:
            call_delta = put_delta = exposure_change = 0.0

        ofi = order_flow_intensity(
            call_delta,
            put_delta,
            velocity,
            premium_scale=float(self.config.get("premium_scale", 1_000_000.0)),
            velocity_scale=float(self.config.get("velocity_scale", 1_000_000.0)),
            premium_weight=float(self.config.get("premium_weight", 10.0)),
            velocity_weight=float(self.config.get("velocity_weight", 15.0)),
        )

        logger.debug(
            f"MomentumEngine {snapshot.ticker} @ {snapshot.timestamp.isoformat()}: "
            f"momentum={momentum:.1f} velocity={velocity:.1f} accel={acceleration:.1f} ofi={ofi:.1f}"
        )

        return EnrichedPoint(
            timestamp=snapshot.timestamp,
            ticker=snapshot.ticker,
            price=snapshot.price,
            exposure=snapshot.exposure,
            exposure_oi=snapshot.exposure_oi,
            exposure_1dte=snapshot.exposure_1dte,
            exposure_1dte_oi=snapshot.exposure_1dte_oi,
            volume=snapshot.volume,
            call_premium=snapshot.call_premium,
            put_premium=snapshot.put_premium,
            momentum=momentum,
            velocity=velocity,
            acceleration=acceleration,
            order_flow_intensity=ofi,
            exposure_change=exposure_change,
            previous_timestamp=previous.timestamp if previous else None,
        )

    def _price_velocity(self, prices: List[float]) -> float:
        # both averages are still in their warm-up state
        if len(prices) < self.hma_period:
            return 0.0
        hma_now = hull_average(prices, self.hma_period)
        hma_prev = hull_average(prices[:-1], self.hma_period)
        denominator = hma_prev if hma_prev != 0 else 1.0
        return (hma_now - hma_prev) / denominator

    def _exposure_bias(self, spot: float, flip_estimate: float, exposure: float) -> float:
        if spot > flip_estimate and exposure > 0:
            return self.bias_bullish
        return self.bias_bearish
