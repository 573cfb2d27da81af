"""Pipeline orchestration runner.

``SentinelPipeline`` turns one snapshot into one analytic packet. It is a
plain pull-based call: the caller hands in the next snapshot and gets the
next packet back, the history buffer being the only state carried between
calls.

``MonitoringLoop`` drives one pipeline per ticker on a fixed interval:
- one cycle at a time (fetch, enrich, rank, range, gate)
- cycle-level failures caught at the cycle boundary
- consecutive-failure escalation without halting the loop
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from config.config_models import AppConfig
from engines.base import RecommendationCollaborator, SnapshotSource
from engines.errors import AuthError, SentinelError
from engines.levels.strike_ranker import StrikeLevelRanker
from engines.momentum.momentum_engine import MomentumEngine
from engines.orchestration.analysis_gate import AnalysisGate
from engines.regime.range_engine import RegimeRangeEngine, classify_regime
from schemas.core_schemas import (
    AnalyticPacket,
    MarketSnapshot,
    RecommendationResult,
    Severity,
    SystemAlert,
    TradingAlert,
)
from storage.alert_log import AlertLog
from storage.history_buffer import HistoryBuffer


class SentinelPipeline:
    """Snapshot -> enriched point -> structural levels -> ranges -> packet."""

    def __init__(
        self,
        config: AppConfig,
        history: Optional[HistoryBuffer] = None,
    ):
        self.config = config
        self.history = history or HistoryBuffer(config.history.capacity)
        momentum_config = {
            **config.momentum.model_dump(),
            "hma_period": config.smoothing.hma_period,
            "acceleration_window": config.polling.cycles_per_hour,
        }
        self.momentum = MomentumEngine(momentum_config)
        self.ranker = StrikeLevelRanker(config.levels.model_dump())
        self.regime = RegimeRangeEngine(config.regime.model_dump())
        self._last_flip: Optional[float] = None

    def process(self, snapshot: MarketSnapshot) -> AnalyticPacket:
        """
        Run one cycle's analytics for ``snapshot``.

        Args:
            snapshot: Validated market snapshot

        Returns:
            Immutable AnalyticPacket
        """
        point = self.momentum.run(self.history, snapshot, flip_estimate=self._last_flip)
        self.history.push(point)

        levels = self.ranker.run(snapshot.strikes, snapshot.price)
        if levels.flip_node is not None:
            self._last_flip = levels.flip_node.price

        hvn = levels.high_volume_node.price if levels.high_volume_node is not None else None
        trigger = self.regime.trigger(snapshot.price, hvn, snapshot.exposure)
        vix = snapshot.vix if snapshot.vix is not None else self.regime.default_vix
        implied_move = snapshot.implied_move if snapshot.implied_move is not None else self.regime.default_implied_move
        ranges = self.regime.ranges(snapshot.price, snapshot.exposure, vix, implied_move)

        return AnalyticPacket(
            ticker=snapshot.ticker,
            timestamp=snapshot.timestamp,
            price=snapshot.price,
            exposure=snapshot.exposure,
            exposure_oi=snapshot.exposure_oi,
            exposure_1dte=snapshot.exposure_1dte,
            exposure_1dte_oi=snapshot.exposure_1dte_oi,
            wall_1dte=snapshot.wall_1dte,
            block_1dte=snapshot.block_1dte,
            drive_1dte=snapshot.drive_1dte,
            exposure_change=point.exposure_change,
            volume=snapshot.volume,
            call_premium=snapshot.call_premium,
            put_premium=snapshot.put_premium,
            vix=vix,
            implied_move=implied_move,
            momentum=point.momentum,
            velocity=point.velocity,
            acceleration=point.acceleration,
            order_flow_intensity=point.order_flow_intensity,
            regime=classify_regime(snapshot.exposure),
            levels=levels,
            volatility_trigger=trigger,
            ranges=ranges,
        )


class MonitoringLoop:
    """Fixed-interval monitoring loop for a single ticker.

    Uplink status is ``live`` after a successful primary fetch, ``simulated``
    when the snapshot came from the fallback source and ``error`` after a
    failed cycle.
    """

    def __init__(
        self,
        config: AppConfig,
        source: Optional[SnapshotSource],
        collaborator: RecommendationCollaborator,
        fallback: Optional[SnapshotSource] = None,
        ticker: Optional[str] = None,
    ):
        self.config = config
        self.ticker = (ticker or config.data_sources.ticker).upper()
        self.source = source
        self.fallback = fallback
        self.pipeline = SentinelPipeline(config)
        # fallback snapshots run on their own wall clock and price path
        self.simulated_pipeline = SentinelPipeline(config)
        self._active = self.pipeline if source is not None else self.simulated_pipeline
        self.alert_log = AlertLog(config.history.alert_capacity)
        self.gate = AnalysisGate(
            collaborator,
            config.gate.model_dump(),
            on_result=self._record_result,
            on_error=self._record_analysis_error,
        )
        self.timeout = config.polling.timeout_seconds
        self.interval = config.polling.interval_seconds
        self.escalation_threshold = config.polling.failure_escalation_threshold

        self.latest_packet: Optional[AnalyticPacket] = None
        self.system_alert: Optional[SystemAlert] = None
        self.uplink_status = "simulated"
        self.consecutive_failures = 0
        self.cycles = 0
        logger.info(f"MonitoringLoop initialized for {self.ticker} (interval={self.interval:.0f}s)")

    @property
    def history(self) -> HistoryBuffer:
        """History of whichever source produced the latest packet."""
        return self._active.history

    @property
    def alerts(self) -> List[TradingAlert]:
        return self.alert_log.alerts

    @property
    def degraded(self) -> bool:
        # any cycle that yields a packet, live or simulated, ends the streak
        return self.consecutive_failures >= self.escalation_threshold

    async def run_cycle(self, now: Optional[datetime] = None, force: bool = False) -> Optional[AnalyticPacket]:
        """Run one fetch/enrich/gate cycle. Returns the packet, or None on failure."""
        self.cycles += 1
        try:
            snapshot, status = await self._acquire()
            if snapshot is None:
                logger.warning(f"No snapshot available for {self.ticker} this cycle")
                return None
            pipeline = self.pipeline if status == "live" else self.simulated_pipeline
            packet = pipeline.process(snapshot)
        except Exception as error:
            self._record_failure(error)
            return None

        self._active = pipeline
        self.uplink_status = status
        self._clear_fetch_alert()
        self.latest_packet = packet
        self.gate.evaluate(packet, now=now, force=force)
        return packet

    async def force_analysis(self, now: Optional[datetime] = None) -> Optional[asyncio.Task]:
        """Manual trigger on the latest packet; still blocked while a call is in flight."""
        if self.latest_packet is None:
            logger.warning("No packet available for a forced analysis")
            return None
        return self.gate.evaluate(self.latest_packet, now=now, force=True)

    async def run(
        self,
        max_cycles: Optional[int] = None,
        on_cycle: Optional[Callable[["MonitoringLoop"], None]] = None,
    ) -> None:
        """Poll until cancelled or ``max_cycles`` cycles have run."""
        logger.info(f"Monitoring loop started for {self.ticker}")
        completed = 0
        try:
            while max_cycles is None or completed < max_cycles:
                await self.run_cycle()
                completed += 1
                if on_cycle is not None:
                    on_cycle(self)
                if max_cycles is not None and completed >= max_cycles:
                    break
                await asyncio.sleep(self.interval)
        finally:
            await self.gate.wait_idle()
            logger.info(f"Monitoring loop stopped for {self.ticker} after {completed} cycles")

    async def _acquire(self):
        if self.source is not None:
            snapshot = await asyncio.wait_for(self.source.fetch(self.ticker), timeout=self.timeout)
            if snapshot is not None:
                return snapshot, "live"
        if self.fallback is not None and self.config.data_sources.fallback_to_synthetic:
            snapshot = await asyncio.wait_for(self.fallback.fetch(self.ticker), timeout=self.timeout)
            return snapshot, "simulated"
        return None, self.uplink_status

    def _record_failure(self, error: Exception) -> None:
        self.consecutive_failures += 1
        self.uplink_status = "error"

        if isinstance(error, asyncio.TimeoutError):
            code, message, retryable = "TIMEOUT", f"Snapshot fetch timed out after {self.timeout:.0f}s", True
        elif isinstance(error, SentinelError):
            code, message, retryable = error.code, error.message, error.retryable
        else:
            code, message, retryable = "CYCLE_FAILED", str(error) or type(error).__name__, True

        if isinstance(error, AuthError):
            severity = Severity.CRITICAL
        elif self.degraded:
            severity = Severity.ERROR
        else:
            severity = Severity.WARNING

        self.system_alert = SystemAlert(
            message=message,
            code=code,
            severity=severity,
            timestamp=datetime.now(timezone.utc),
            retryable=retryable,
            consecutive_failures=self.consecutive_failures,
            degraded=self.degraded,
        )
        log = logger.error if severity != Severity.WARNING else logger.warning
        log(f"Cycle failed for {self.ticker} ({code}, {self.consecutive_failures} consecutive): {message}")

    def _clear_fetch_alert(self) -> None:
        self.consecutive_failures = 0
        if self.system_alert is not None and self.system_alert.code != "ANALYSIS_FAILED":
            self.system_alert = None

    def _record_result(self, packet: AnalyticPacket, result: RecommendationResult) -> None:
        self.alert_log.record(packet, result)

    def _record_analysis_error(self, packet: AnalyticPacket, error: Exception) -> None:
        self.system_alert = SystemAlert(
            message=f"Recommendation step failed: {error}",
            code="ANALYSIS_FAILED",
            severity=Severity.ERROR,
            timestamp=datetime.now(timezone.utc),
            retryable=True,
            consecutive_failures=self.consecutive_failures,
            degraded=self.degraded,
        )

    def status(self) -> Dict[str, Any]:
        return {
            "ticker": self.ticker,
            "uplink": self.uplink_status,
            "cycles": self.cycles,
            "history": len(self.history),
            "alerts": len(self.alert_log),
            "in_flight": self.gate.in_flight,
            "consecutive_failures": self.consecutive_failures,
            "degraded": self.degraded,
        }
