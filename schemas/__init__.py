"""Core schemas for GEX Sentinel."""

from schemas.core_schemas import (
    AlertStatistics,
    AnalyticPacket,
    DirectionEnum,
    EnrichedPoint,
    ExpectedRange,
    GexRegime,
    MarketSnapshot,
    RangeEstimates,
    RankedStrike,
    RecommendationResult,
    Severity,
    StrikeLevel,
    StructuralLevels,
    SystemAlert,
    TradingAlert,
)

__all__ = [
    "AlertStatistics",
    "AnalyticPacket",
    "DirectionEnum",
    "EnrichedPoint",
    "ExpectedRange",
    "GexRegime",
    "MarketSnapshot",
    "RangeEstimates",
    "RankedStrike",
    "RecommendationResult",
    "Severity",
    "StrikeLevel",
    "StructuralLevels",
    "SystemAlert",
    "TradingAlert",
]
