"""Gamma Regime Agent - rule-based recommendation collaborator."""

from __future__ import annotations

from typing import Any, Dict, Optional

from loguru import logger

from agents.recommendation_parser import parse_recommendation_text
from schemas.core_schemas import AnalyticPacket, DirectionEnum, GexRegime, RecommendationResult

_PATTERNS = {
    (DirectionEnum.LONG, GexRegime.POSITIVE): "Pin Drift",
    (DirectionEnum.LONG, GexRegime.NEGATIVE): "Squeeze Continuation",
    (DirectionEnum.SHORT, GexRegime.POSITIVE): "Wall Rejection",
    (DirectionEnum.SHORT, GexRegime.NEGATIVE): "Fuel Flush",
    (DirectionEnum.NEUTRAL, GexRegime.POSITIVE): "Range Balance",
    (DirectionEnum.NEUTRAL, GexRegime.NEGATIVE): "Unstable Balance",
}


class GammaRegimeAgent:
    """Deterministic stand-in for the language-model recommendation step.

    Writes the same marker-based report an external model would and runs it
    through ``parse_recommendation_text``, so both paths share one contract.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.bullish_ofi = float(self.config.get("bullish_ofi", 60.0))
        self.bearish_ofi = float(self.config.get("bearish_ofi", 40.0))
        logger.info(f"GammaRegimeAgent initialized (ofi thresholds {self.bearish_ofi:.0f}/{self.bullish_ofi:.0f})")

    async def recommend(self, packet: AnalyticPacket) -> RecommendationResult:
        direction = self._direction(packet)
        report = self.build_report(packet, direction)
        logger.debug(f"GammaRegimeAgent: {direction.value} for {packet.ticker} @ {packet.price:.2f}")
        return parse_recommendation_text(report)

    def _direction(self, packet: AnalyticPacket) -> DirectionEnum:
        ofi = packet.order_flow_intensity
        vt = packet.volatility_trigger

        if ofi >= self.bullish_ofi and packet.momentum > 0:
            # in the glue regime price must hold above the trigger
            if packet.regime == GexRegime.NEGATIVE or vt is None or packet.price > vt:
                return DirectionEnum.LONG
        if ofi <= self.bearish_ofi and packet.momentum < 0:
            return DirectionEnum.SHORT
        return DirectionEnum.NEUTRAL

    def build_report(self, packet: AnalyticPacket, direction: DirectionEnum) -> str:
        levels = packet.levels
        vt = f"{packet.volatility_trigger:.2f}" if packet.volatility_trigger is not None else "n/a"
        dominant = f"{levels.dominant_node.price:.0f}" if levels.dominant_node else "n/a"
        flip = f"{levels.flip_node.price:.0f}" if levels.flip_node else "n/a"
        hvn = f"{levels.high_volume_node.price:.0f}" if levels.high_volume_node else "n/a"
        adjusted = packet.ranges.exposure_adjusted

        if packet.regime == GexRegime.POSITIVE:
            regime_text = "Positive gamma, dampened volatility"
            invalidation = f"Loss of the volatility trigger at {vt}"
        else:
            regime_text = "Negative gamma, amplified volatility"
            invalidation = f"Reclaim of the volatility trigger at {vt}"

        if direction == DirectionEnum.LONG:
            execution = f"- Entry: {packet.price:.2f}\n- Target: {adjusted.high:.2f}\n- Stop: {adjusted.low:.2f}"
        elif direction == DirectionEnum.SHORT:
            execution = f"- Entry: {packet.price:.2f}\n- Target: {adjusted.low:.2f}\n- Stop: {adjusted.high:.2f}"
        else:
            execution = f"- Stand aside inside {adjusted.low:.2f} - {adjusted.high:.2f}"

        return (
            f"{packet.ticker} gamma report\n"
            f"Recommendation: {direction.value} | Pattern: {_PATTERNS[(direction, packet.regime)]}\n"
            f"\n"
            f"Diagnosis: Spot {packet.price:.2f} vs dominant node {dominant}, flip {flip}, HVN {hvn}, "
            f"VT {vt}. Momentum {packet.momentum:,.0f}, OFI {packet.order_flow_intensity:.1f}.\n"
            f"\n"
            f"Execution:\n{execution}\n"
            f"\n"
            f"Risk: {invalidation}\n"
            f"\n"
            f"Regime: {regime_text}\n"
        )
