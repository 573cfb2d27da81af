"""Analysis gate - decides when a packet goes to the recommendation collaborator.

At most one recommendation call is outstanding. A trigger that arrives while
a call is in flight is dropped, not queued.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from loguru import logger

from engines.base import RecommendationCollaborator
from schemas.core_schemas import AnalyticPacket, RecommendationResult

ResultCallback = Callable[[AnalyticPacket, RecommendationResult], None]
ErrorCallback = Callable[[AnalyticPacket, Exception], None]


class AnalysisGate:
    """Time/threshold gate with an in-flight guard around the collaborator call."""

    def __init__(
        self,
        collaborator: RecommendationCollaborator,
        config: Dict[str, Any],
        on_result: Optional[ResultCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ):
        self.collaborator = collaborator
        self.config = config
        self.max_interval = timedelta(seconds=float(config.get("max_interval_seconds", 180.0)))
        self.whale_threshold = float(config.get("whale_threshold", 5_000_000.0))
        self.on_result = on_result
        self.on_error = on_error

        self.in_flight = False
        self.last_trigger_timestamp: Optional[datetime] = None
        self.calls = 0
        self._task: Optional[asyncio.Task] = None
        logger.info(
            f"AnalysisGate initialized (max_interval={self.max_interval.total_seconds():.0f}s, "
            f"whale_threshold={self.whale_threshold:,.0f})"
        )

    def should_fire(self, packet: AnalyticPacket, now: datetime, force: bool = False) -> bool:
        if self.in_flight:
            return False
        if force:
            return True
        if self.last_trigger_timestamp is None:
            return True
        if now - self.last_trigger_timestamp > self.max_interval:
            return True
        return abs(packet.momentum) > self.whale_threshold

    def evaluate(
        self,
        packet: AnalyticPacket,
        now: Optional[datetime] = None,
        force: bool = False,
    ) -> Optional[asyncio.Task]:
        """Launch the collaborator call if the gate opens.

        Must be called from a running event loop. Returns the launched task,
        or None when the gate stays shut.
        """
        now = now or datetime.now(timezone.utc)
        if not self.should_fire(packet, now, force=force):
            if self.in_flight:
                logger.debug("AnalysisGate: recommendation already in flight, trigger dropped")
            return None

        self.in_flight = True
        self.last_trigger_timestamp = now
        self.calls += 1
        reason = "forced" if force else f"momentum={packet.momentum:,.0f}"
        logger.info(f"AnalysisGate: firing recommendation for {packet.ticker} @ {packet.price:.2f} ({reason})")
        self._task = asyncio.get_running_loop().create_task(self._run(packet))
        return self._task

    async def _run(self, packet: AnalyticPacket) -> Optional[RecommendationResult]:
        try:
            result = await self.collaborator.recommend(packet)
            if self.on_result is not None:
                self.on_result(packet, result)
            return result
        except Exception as error:
            logger.exception(f"Recommendation collaborator failed: {error}")
            if self.on_error is not None:
                self.on_error(packet, error)
            return None
        finally:
            self.in_flight = False

    async def wait_idle(self) -> None:
        """Wait for the outstanding recommendation call, if any."""
        if self._task is not None and not self._task.done():
            await asyncio.wait({self._task})
