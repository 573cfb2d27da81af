"""Bounded, time-ordered store of enriched points."""

from __future__ import annotations

from collections import deque
from datetime import datetime
from typing import Deque, Iterator, List, Optional

from loguru import logger

from engines.errors import HistoryOrderError
from schemas.core_schemas import EnrichedPoint

REGIME_FILTERS = ("ALL", "POSITIVE", "NEGATIVE")


class HistoryBuffer:
    """FIFO of enriched points with a fixed capacity.

    Points must arrive in timestamp order. Pushing a point whose timestamp is
    already stored replaces that point in place; once capacity is exceeded the
    oldest point is evicted.
    """

    def __init__(self, capacity: int = 500):
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._points: Deque[EnrichedPoint] = deque(maxlen=capacity)

    def push(self, point: EnrichedPoint) -> None:
        """Append ``point`` or replace the stored point with the same timestamp."""
        for idx in range(len(self._points) - 1, -1, -1):
            existing = self._points[idx]
            if existing.timestamp == point.timestamp:
                self._points[idx] = point
                logger.debug(f"HistoryBuffer: replaced point at {point.timestamp.isoformat()}")
                return
            if existing.timestamp < point.timestamp:
                break

        newest = self.latest()
        if newest is not None and point.timestamp < newest.timestamp:
            raise HistoryOrderError(
                f"point at {point.timestamp.isoformat()} is older than newest {newest.timestamp.isoformat()}"
            )
        self._points.append(point)

    def latest(self) -> Optional[EnrichedPoint]:
        return self._points[-1] if self._points else None

    def prices(self) -> List[float]:
        return [p.price for p in self._points]

    def velocities(self) -> List[float]:
        return [p.velocity for p in self._points]

    def points(self) -> List[EnrichedPoint]:
        """Snapshot of stored points, oldest first."""
        return list(self._points)

    def filter(
        self,
        regime: str = "ALL",
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[EnrichedPoint]:
        """Points matching a regime and an inclusive time window, newest first."""
        regime = regime.upper()
        if regime not in REGIME_FILTERS:
            raise ValueError(f"regime must be one of {REGIME_FILTERS}, got {regime!r}")

        matches = []
        for point in reversed(self._points):
            if regime == "POSITIVE" and not point.exposure > 0:
                continue
            if regime == "NEGATIVE" and not point.exposure < 0:
                continue
            if start is not None and point.timestamp < start:
                continue
            if end is not None and point.timestamp > end:
                continue
            matches.append(point)
        return matches

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[EnrichedPoint]:
        return iter(list(self._points))
