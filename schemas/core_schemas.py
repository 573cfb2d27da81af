"""Core Pydantic schemas for GEX Sentinel."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DirectionEnum(str, Enum):
    """Recommendation direction enum."""

    LONG = "LONG"
    SHORT = "SHORT"
    NEUTRAL = "NEUTRAL"


class GexRegime(str, Enum):
    """Dealer gamma regime: positive exposure dampens moves, negative amplifies them."""

    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"


class Severity(str, Enum):
    """Severity of a surfaced system condition."""

    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class StrikeLevel(BaseModel):
    """Per-strike aggregates for one snapshot."""

    model_config = ConfigDict(frozen=True)

    price: float
    call_volume: float = 0.0
    put_volume: float = 0.0
    total_volume: float = 0.0
    net_gex: float = 0.0
    open_interest: float = 0.0
    dark_pool_volume: float = 0.0

    @model_validator(mode="before")
    @classmethod
    def _fill_total_volume(cls, data: Any) -> Any:
        # total defaults to call + put when the provider omits it
        if isinstance(data, dict) and data.get("total_volume") is None:
            data = dict(data)
            data["total_volume"] = float(data.get("call_volume") or 0.0) + float(data.get("put_volume") or 0.0)
        return data

    @property
    def side(self) -> str:
        return "Call" if self.call_volume > self.put_volume else "Put"


class MarketSnapshot(BaseModel):
    """Raw market snapshot produced once per poll cycle."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    ticker: str = "SPX"
    price: float
    exposure: float = 0.0
    exposure_oi: float = 0.0
    exposure_1dte: float = 0.0
    exposure_1dte_oi: float = 0.0
    # next-day structure, drive clamped to [0, 1]
    wall_1dte: Optional[float] = None
    block_1dte: float = 0.0
    drive_1dte: float = 0.0
    volume: float = 0.0
    call_premium: float = 0.0
    put_premium: float = 0.0
    vix: Optional[float] = None
    implied_move: Optional[float] = None
    strikes: List[StrikeLevel] = Field(default_factory=list)


class EnrichedPoint(BaseModel):
    """Snapshot scalars plus momentum metrics, as stored in the history buffer."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    ticker: str = "SPX"
    price: float
    exposure: float = 0.0
    exposure_oi: float = 0.0
    exposure_1dte: float = 0.0
    exposure_1dte_oi: float = 0.0
    volume: float = 0.0
    call_premium: float = 0.0
    put_premium: float = 0.0
    momentum: float = 0.0
    velocity: float = 0.0
    acceleration: float = 0.0
    order_flow_intensity: float = 50.0
    exposure_change: float = 0.0
    previous_timestamp: Optional[datetime] = None

    @property
    def regime(self) -> GexRegime:
        return GexRegime.POSITIVE if self.exposure >= 0 else GexRegime.NEGATIVE


class RankedStrike(BaseModel):
    """One entry of a ranked top-N strike list."""

    model_config = ConfigDict(frozen=True)

    price: float
    value: float
    side: str


class StructuralLevels(BaseModel):
    """Named structural strikes for the current snapshot.

    Absent levels mean insufficient data, never zero exposure.
    """

    model_config = ConfigDict(frozen=True)

    dominant_node: Optional[StrikeLevel] = None
    flip_node: Optional[StrikeLevel] = None
    high_volume_node: Optional[StrikeLevel] = None
    most_positive: Optional[StrikeLevel] = None
    most_negative: Optional[StrikeLevel] = None
    top_open_interest: List[RankedStrike] = Field(default_factory=list)
    top_dark_pool: List[RankedStrike] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.dominant_node is None


class ExpectedRange(BaseModel):
    """Symmetric expected range around spot."""

    model_config = ConfigDict(frozen=True)

    model: str
    points: float
    low: float
    high: float


class RangeEstimates(BaseModel):
    """The three independent expected-range estimates."""

    model_config = ConfigDict(frozen=True)

    rule_of_16: ExpectedRange
    implied_move: ExpectedRange
    exposure_adjusted: ExpectedRange


class AnalyticPacket(BaseModel):
    """Per-cycle packet handed to the analysis gate and recommendation collaborator."""

    model_config = ConfigDict(frozen=True)

    ticker: str
    timestamp: datetime
    price: float
    exposure: float
    exposure_oi: float
    exposure_1dte: float
    exposure_1dte_oi: float
    wall_1dte: Optional[float] = None
    block_1dte: float = 0.0
    drive_1dte: float = 0.0
    exposure_change: float
    volume: float
    call_premium: float
    put_premium: float
    vix: float
    implied_move: float
    momentum: float
    velocity: float
    acceleration: float
    order_flow_intensity: float
    regime: GexRegime
    levels: StructuralLevels
    volatility_trigger: Optional[float] = None
    ranges: RangeEstimates


class RecommendationResult(BaseModel):
    """Structured output expected from a recommendation collaborator."""

    direction: DirectionEnum = DirectionEnum.NEUTRAL
    regime: str = ""
    rationale: str = ""
    risk: str = ""
    pattern: Optional[str] = None
    raw: str = ""


class TradingAlert(BaseModel):
    """Recorded recommendation, as shown in the alert feed."""

    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: datetime
    price: float
    direction: DirectionEnum
    regime: str
    rationale: str
    risk: str = ""
    pattern: Optional[str] = None


class SystemAlert(BaseModel):
    """Severity-tagged condition surfaced to the UI collaborator."""

    model_config = ConfigDict(frozen=True)

    message: str
    code: Optional[str] = None
    severity: Severity = Severity.WARNING
    timestamp: datetime
    retryable: bool = True
    consecutive_failures: int = 0
    degraded: bool = False


class AlertStatistics(BaseModel):
    """Aggregate counts over the alert log."""

    total: int = 0
    long: int = 0
    short: int = 0
    neutral: int = 0
    by_regime: Dict[str, int] = Field(default_factory=dict)
    by_pattern: Dict[str, int] = Field(default_factory=dict)
