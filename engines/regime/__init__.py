"""Regime classification, volatility trigger and expected ranges."""

from engines.regime.range_engine import (
    RegimeRangeEngine,
    classify_regime,
    expected_ranges,
    volatility_trigger,
)

__all__ = ["RegimeRangeEngine", "classify_regime", "expected_ranges", "volatility_trigger"]
