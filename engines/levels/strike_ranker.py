"""Strike-Level Ranker - structural price levels from a per-strike distribution."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence

from loguru import logger

from schemas.core_schemas import RankedStrike, StrikeLevel, StructuralLevels


def filter_near_spot(strikes: Sequence[StrikeLevel], spot: float, band_pct: float = 0.05) -> List[StrikeLevel]:
    """Strikes within ``band_pct`` of spot, inclusive."""
    if spot <= 0:
        return []
    return [s for s in strikes if abs(s.price - spot) <= spot * band_pct]


def _argmax(strikes: Sequence[StrikeLevel], key: Callable[[StrikeLevel], float]) -> StrikeLevel:
    # lowest strike wins a tie
    return min(strikes, key=lambda s: (-key(s), s.price))


def _argmin(strikes: Sequence[StrikeLevel], key: Callable[[StrikeLevel], float]) -> StrikeLevel:
    return min(strikes, key=lambda s: (key(s), s.price))


def top_ranked(
    strikes: Sequence[StrikeLevel],
    key: Callable[[StrikeLevel], float],
    top_n: int = 3,
) -> List[RankedStrike]:
    """Top ``top_n`` strikes by ``key`` descending, each tagged with its dominant side."""
    ordered = sorted(strikes, key=lambda s: (-key(s), s.price))[:top_n]
    return [RankedStrike(price=s.price, value=key(s), side=s.side) for s in ordered]


def rank_strike_levels(strikes: Sequence[StrikeLevel], top_n: int = 3) -> StructuralLevels:
    """Extract the named structural levels from an already-filtered strike set."""
    if not strikes:
        return StructuralLevels()

    return StructuralLevels(
        dominant_node=_argmax(strikes, lambda s: abs(s.net_gex)),
        flip_node=_argmin(strikes, lambda s: abs(s.net_gex)),
        high_volume_node=_argmax(strikes, lambda s: s.total_volume),
        most_positive=_argmax(strikes, lambda s: s.net_gex),
        most_negative=_argmin(strikes, lambda s: s.net_gex),
        top_open_interest=top_ranked(strikes, lambda s: s.open_interest, top_n),
        top_dark_pool=top_ranked(strikes, lambda s: s.dark_pool_volume, top_n),
    )


class StrikeLevelRanker:
    """Filters a snapshot's strikes to the near-spot band and ranks them."""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.band_pct = float(config.get("band_pct", 0.05))
        self.top_n = int(config.get("top_n", 3))
        logger.info(f"StrikeLevelRanker initialized (band={self.band_pct:.1%}, top_n={self.top_n})")

    def run(self, strikes: Sequence[StrikeLevel], spot: float) -> StructuralLevels:
        near = filter_near_spot(strikes, spot, self.band_pct)
        if not near:
            logger.warning(f"No strikes within {self.band_pct:.1%} of spot {spot:.2f}; levels unavailable")
            return StructuralLevels()

        levels = rank_strike_levels(near, self.top_n)
        logger.debug(
            f"StrikeLevelRanker: {len(near)} strikes, king={self._price(levels.dominant_node)}, "
            f"flip={self._price(levels.flip_node)}, hvn={self._price(levels.high_volume_node)}"
        )
        return levels

    @staticmethod
    def _price(level: Optional[StrikeLevel]) -> str:
        return f"{level.price:.0f}" if level is not None else "n/a"
