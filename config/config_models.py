"""Configuration data models."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class SmoothingConfig(BaseModel):
    """Configuration for the Hull smoothing primitives."""

    hma_period: int = 10


class MomentumConfig(BaseModel):
    """Configuration for the Momentum Pipeline."""

    scale: float = 5_000_000.0
    flip_offset: float = 10.0  # provisional flip = spot - offset
    bias_bullish: float = 1.2
    bias_bearish: float = 0.8
    premium_scale: float = 1_000_000.0
    velocity_scale: float = 1_000_000.0
    premium_weight: float = 10.0
    velocity_weight: float = 15.0


class LevelsConfig(BaseModel):
    """Configuration for the Strike-Level Ranker."""

    band_pct: float = 0.05
    top_n: int = 3


class RegimeConfig(BaseModel):
    """Configuration for the Regime & Range Calculator."""

    vt_offset_down: float = 15.0
    vt_offset_up: float = 10.0
    default_vix: float = 15.0
    default_implied_move: float = 30.0
    rule_of_16_divisor: float = 1600.0
    implied_move_multiplier: float = 1.25
    glue_multiplier: float = 0.75
    fuel_multiplier: float = 1.25


class GateConfig(BaseModel):
    """Configuration for the Analysis Gate."""

    max_interval_seconds: float = 180.0
    whale_threshold: float = 5_000_000.0


class AgentConfig(BaseModel):
    """Thresholds for the rule-based gamma regime agent."""

    bullish_ofi: float = 60.0
    bearish_ofi: float = 40.0


class PollingConfig(BaseModel):
    """Configuration for the monitoring loop."""

    interval_seconds: float = Field(180.0, gt=0)
    timeout_seconds: float = Field(10.0, gt=0)
    failure_escalation_threshold: int = 3

    @property
    def cycles_per_hour(self) -> int:
        """Number of polling cycles in one hour (at least one)."""
        return max(1, round(3600.0 / self.interval_seconds))


class HistoryConfig(BaseModel):
    """Configuration for the history buffer and alert log."""

    capacity: int = 500
    alert_capacity: int = 50


class DataSourcesConfig(BaseModel):
    """Primary data source selection and fallback flags."""

    ticker: str = "SPX"
    primary: str = "unusual_whales"  # unusual_whales or synthetic
    base_url: str = "https://api.unusualwhales.com"
    fallback_to_synthetic: bool = True
    synthetic_seed: Optional[int] = None
    synthetic_start_price: float = 5240.0


class TrackingConfig(BaseModel):
    """Configuration for logging."""

    log_level: str = "INFO"
    log_file: Optional[str] = None


class AppConfig(BaseModel):
    """Top-level application configuration."""

    smoothing: SmoothingConfig = Field(default_factory=SmoothingConfig)
    momentum: MomentumConfig = Field(default_factory=MomentumConfig)
    levels: LevelsConfig = Field(default_factory=LevelsConfig)
    regime: RegimeConfig = Field(default_factory=RegimeConfig)
    gate: GateConfig = Field(default_factory=GateConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    data_sources: DataSourcesConfig = Field(default_factory=DataSourcesConfig)
    tracking: TrackingConfig = Field(default_factory=TrackingConfig)
