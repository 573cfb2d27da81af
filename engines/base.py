"""Collaborator protocols."""

from __future__ import annotations

from typing import Optional, Protocol

from schemas.core_schemas import AnalyticPacket, MarketSnapshot, RecommendationResult


class SnapshotSource(Protocol):
    """Protocol for market snapshot providers."""

    async def fetch(self, ticker: str) -> Optional[MarketSnapshot]:
        """
        Fetch the latest snapshot for a ticker.

        Args:
            ticker: Underlying symbol

        Returns:
            Latest MarketSnapshot, or None when the provider has no data
        """
        ...


class RecommendationCollaborator(Protocol):
    """Protocol for the downstream recommendation step."""

    async def recommend(self, packet: AnalyticPacket) -> RecommendationResult:
        ...
