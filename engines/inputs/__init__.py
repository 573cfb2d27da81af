"""Input adapters for engines."""

from engines.inputs.parsing import parse_number_or, parse_snapshot, parse_strike_levels
from engines.inputs.synthetic_generator import SyntheticSnapshotSource
from engines.inputs.unusual_whales_adapter import UnusualWhalesSpotExposureAdapter

__all__ = [
    "SyntheticSnapshotSource",
    "UnusualWhalesSpotExposureAdapter",
    "parse_number_or",
    "parse_snapshot",
    "parse_strike_levels",
]
