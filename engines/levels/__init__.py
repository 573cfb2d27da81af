"""Strike-level ranking."""

from engines.levels.strike_ranker import (
    StrikeLevelRanker,
    filter_near_spot,
    rank_strike_levels,
    top_ranked,
)

__all__ = ["StrikeLevelRanker", "filter_near_spot", "rank_strike_levels", "top_ranked"]
