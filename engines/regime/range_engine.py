"""Regime & Range Engine - volatility trigger and expected daily ranges.

Positive aggregate exposure is the "glue" regime: dealer hedging leans
against moves, so the trigger sits below the liquidity band and ranges
compress. Negative exposure is the "fuel" regime: hedging chases moves, the
trigger sits above the band and ranges widen.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from loguru import logger

from schemas.core_schemas import ExpectedRange, GexRegime, RangeEstimates


def classify_regime(exposure: float) -> GexRegime:
    return GexRegime.POSITIVE if exposure >= 0 else GexRegime.NEGATIVE


def volatility_trigger(
    spot: float,
    hvn: float,
    exposure: float,
    offset_down: float = 15.0,
    offset_up: float = 10.0,
) -> float:
    """Price level where regime-driven hedging acceleration is expected to begin."""
    if exposure >= 0:
        return min(spot, hvn) - offset_down
    return max(spot, hvn) + offset_up


def symmetric_range(model: str, spot: float, points: float) -> ExpectedRange:
    return ExpectedRange(model=model, points=points, low=spot - points, high=spot + points)


def expected_ranges(
    spot: float,
    vix: float,
    implied_move: float,
    exposure: float,
    rule_of_16_divisor: float = 1600.0,
    implied_move_multiplier: float = 1.25,
    glue_multiplier: float = 0.75,
    fuel_multiplier: float = 1.25,
) -> RangeEstimates:
    """Rule-of-16, implied-move and exposure-adjusted ranges around ``spot``."""
    rule_points = spot * (vix / rule_of_16_divisor)
    implied_points = implied_move * implied_move_multiplier
    adjustment = glue_multiplier if exposure >= 0 else fuel_multiplier
    adjusted_points = rule_points * adjustment

    return RangeEstimates(
        rule_of_16=symmetric_range("rule_of_16", spot, rule_points),
        implied_move=symmetric_range("implied_move", spot, implied_points),
        exposure_adjusted=symmetric_range("exposure_adjusted", spot, adjusted_points),
    )


class RegimeRangeEngine:
    """Applies configured offsets and multipliers to the pure range functions."""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.offset_down = float(config.get("vt_offset_down", 15.0))
        self.offset_up = float(config.get("vt_offset_up", 10.0))
        self.default_vix = float(config.get("default_vix", 15.0))
        self.default_implied_move = float(config.get("default_implied_move", 30.0))
        logger.info("RegimeRangeEngine initialized")

    def trigger(self, spot: float, hvn: Optional[float], exposure: float) -> Optional[float]:
        """Volatility trigger, or None without a high-volume node."""
        if hvn is None:
            return None
        return volatility_trigger(spot, hvn, exposure, self.offset_down, self.offset_up)

    def ranges(
        self,
        spot: float,
        exposure: float,
        vix: Optional[float] = None,
        implied_move: Optional[float] = None,
    ) -> RangeEstimates:
        return expected_ranges(
            spot,
            vix if vix is not None else self.default_vix,
            implied_move if implied_move is not None else self.default_implied_move,
            exposure,
            rule_of_16_divisor=float(self.config.get("rule_of_16_divisor", 1600.0)),
            implied_move_multiplier=float(self.config.get("implied_move_multiplier", 1.25)),
            glue_multiplier=float(self.config.get("glue_multiplier", 0.75)),
            fuel_multiplier=float(self.config.get("fuel_multiplier", 1.25)),
        )
