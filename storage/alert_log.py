"""Bounded newest-first log of recommendation alerts."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from loguru import logger

from schemas.core_schemas import (
    AlertStatistics,
    AnalyticPacket,
    DirectionEnum,
    RecommendationResult,
    TradingAlert,
)


class AlertLog:
    """Keeps the most recent ``capacity`` alerts, newest first."""

    def __init__(self, capacity: int = 50):
        self.capacity = capacity
        self._alerts: List[TradingAlert] = []

    def record(
        self,
        packet: AnalyticPacket,
        result: RecommendationResult,
        timestamp: Optional[datetime] = None,
    ) -> TradingAlert:
        """Turn a collaborator result into an alert and store it."""
        alert = TradingAlert(
            id=uuid.uuid4().hex[:9],
            timestamp=timestamp or datetime.now(timezone.utc),
            price=packet.price,
            direction=result.direction,
            regime=result.regime or "Unknown",
            rationale=result.rationale,
            risk=result.risk,
            pattern=result.pattern,
        )
        self._alerts = [alert, *self._alerts][: self.capacity]
        logger.info(f"Alert {alert.id}: {alert.direction.value} @ {alert.price:.2f} ({alert.regime})")
        return alert

    @property
    def alerts(self) -> List[TradingAlert]:
        return list(self._alerts)

    def statistics(self) -> AlertStatistics:
        stats = AlertStatistics(total=len(self._alerts))
        for alert in self._alerts:
            if alert.direction == DirectionEnum.LONG:
                stats.long += 1
            elif alert.direction == DirectionEnum.SHORT:
                stats.short += 1
            else:
                stats.neutral += 1
            regime = alert.regime or "Unspecified"
            stats.by_regime[regime] = stats.by_regime.get(regime, 0) + 1
            pattern = alert.pattern or "Unknown pattern"
            stats.by_pattern[pattern] = stats.by_pattern.get(pattern, 0) + 1
        return stats

    def search(self, text: str) -> List[TradingAlert]:
        """Alerts whose pattern, regime or rationale contains ``text`` (case-insensitive)."""
        needle = text.lower()
        return [
            a
            for a in self._alerts
            if needle in (a.pattern or "").lower()
            or needle in a.regime.lower()
            or needle in a.rationale.lower()
        ]

    def __len__(self) -> int:
        return len(self._alerts)
