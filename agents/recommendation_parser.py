"""Parse free-text recommendation reports into RecommendationResult."""

from __future__ import annotations

import re
from typing import Optional

from schemas.core_schemas import DirectionEnum, RecommendationResult

DEFAULT_REGIME = "Normal volatility"
DEFAULT_RISK = "Respect the levels."

_DIRECTION = re.compile(r"Recommendation:\s*(LONG|SHORT|NEUTRAL)", re.IGNORECASE)
_PATTERN = re.compile(r"Pattern:[ \t]*([\w \t-]+)", re.IGNORECASE)
_REGIME = re.compile(r"Regime:[ \t]*(.+)", re.IGNORECASE)


def _block(text: str, marker: str) -> str:
    """Text following ``marker`` up to the next blank line."""
    match = re.search(rf"{marker}:[ \t]*([\s\S]*?)(?=\n[ \t]*\n|\Z)", text, re.IGNORECASE)
    return match.group(1).strip() if match else ""


def parse_recommendation_text(text: Optional[str]) -> RecommendationResult:
    """
    Extract direction, pattern, regime, rationale and risk from a report.

    Missing markers fall back to NEUTRAL, "Normal volatility" and
    "Respect the levels.". The rationale joins the diagnosis and execution
    blocks.
    """
    text = text or ""

    direction_match = _DIRECTION.search(text)
    direction = DirectionEnum(direction_match.group(1).upper()) if direction_match else DirectionEnum.NEUTRAL

    pattern_match = _PATTERN.search(text)
    pattern = pattern_match.group(1).strip() if pattern_match else None

    regime_match = _REGIME.search(text)
    regime = regime_match.group(1).strip() if regime_match else ""

    parts = []
    diagnosis = _block(text, "Diagnosis")
    if diagnosis:
        parts.append(f"[Diagnosis] {diagnosis}")
    execution = _block(text, "Execution")
    if execution:
        parts.append(f"[Execution] {execution}")

    return RecommendationResult(
        direction=direction,
        regime=regime or DEFAULT_REGIME,
        rationale="\n\n".join(parts),
        risk=_block(text, "Risk") or DEFAULT_RISK,
        pattern=pattern or None,
        raw=text,
    )
