"""
Integration tests for MonitoringLoop

Drives full cycles through scripted snapshot sources:
- failure escalation and recovery
- fallback to the synthetic source
- gate and alert log wiring
"""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from agents.gamma_agent import GammaRegimeAgent
from config.config_models import AppConfig, PollingConfig
from engines.errors import AuthError, FetchError, RateLimitError
from engines.inputs.synthetic_generator import SyntheticSnapshotSource
from engines.orchestration.pipeline_runner import MonitoringLoop
from schemas.core_schemas import Severity


# =============================================================================
# FIXTURES
# =============================================================================

class ScriptedSource:
    """Replays snapshots, ``None`` results and exceptions in order."""

    def __init__(self, script):
        self.script = list(script)
        self.calls = 0

    async def fetch(self, ticker):
        self.calls += 1
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class SlowSource:
    async def fetch(self, ticker):
        await asyncio.sleep(5)


@pytest.fixture
def config():
    return AppConfig(polling=PollingConfig(interval_seconds=0.01, timeout_seconds=0.05))


@pytest.fixture
def make_loop(config):
    def _create(source, fallback=None, collaborator=None):
        return MonitoringLoop(
            config,
            source=source,
            collaborator=collaborator or GammaRegimeAgent(),
            fallback=fallback,
        )
    return _create


# =============================================================================
# FAILURE HANDLING
# =============================================================================

class TestFailureEscalation:

    @pytest.mark.asyncio
    async def test_escalates_after_three_consecutive_failures(self, make_loop):
        loop = make_loop(ScriptedSource([FetchError("down")] * 4))

        severities = []
        for _ in range(4):
            assert await loop.run_cycle() is None
            severities.append(loop.system_alert.severity)

        assert severities == [Severity.WARNING, Severity.WARNING, Severity.ERROR, Severity.ERROR]
        assert loop.system_alert.degraded is True
        assert loop.system_alert.consecutive_failures == 4
        assert loop.uplink_status == "error"
        assert len(loop.history) == 0

    @pytest.mark.asyncio
    async def test_auth_failure_is_critical(self, make_loop):
        loop = make_loop(ScriptedSource([AuthError("bad token", status=401)]))
        await loop.run_cycle()

        assert loop.system_alert.severity == Severity.CRITICAL
        assert loop.system_alert.code == "AUTH_FAILED"
        assert loop.system_alert.retryable is False

    @pytest.mark.asyncio
    async def test_rate_limit_code(self, make_loop):
        loop = make_loop(ScriptedSource([RateLimitError("slow down", retry_after=30)]))
        await loop.run_cycle()
        assert loop.system_alert.code == "RATE_LIMIT"
        assert loop.system_alert.retryable is True

    @pytest.mark.asyncio
    async def test_timeout_leaves_history_untouched(self, make_loop):
        loop = make_loop(SlowSource())
        await loop.run_cycle()

        assert loop.system_alert.code == "TIMEOUT"
        assert len(loop.history) == 0
        assert loop.latest_packet is None

    @pytest.mark.asyncio
    async def test_live_success_resets_failures(self, make_loop, make_snapshot):
        source = ScriptedSource([FetchError("down")] * 3 + [make_snapshot(index=0)])
        loop = make_loop(source)

        for _ in range(3):
            await loop.run_cycle()
        assert loop.degraded

        packet = await loop.run_cycle()
        await loop.gate.wait_idle()

        assert packet is not None
        assert loop.consecutive_failures == 0
        assert not loop.degraded
        assert loop.system_alert is None
        assert loop.uplink_status == "live"
        assert len(loop.history) == 1

    @pytest.mark.asyncio
    async def test_simulated_success_resets_failures(self, make_loop):
        source = ScriptedSource([FetchError("down")] * 3 + [None])
        loop = make_loop(source, fallback=SyntheticSnapshotSource(seed=3))

        for _ in range(3):
            await loop.run_cycle()
        assert loop.degraded

        assert await loop.run_cycle() is not None
        await loop.gate.wait_idle()

        assert loop.consecutive_failures == 0
        assert not loop.degraded
        assert loop.system_alert is None
        assert loop.uplink_status == "simulated"


# =============================================================================
# SOURCES
# =============================================================================

class TestSources:

    @pytest.mark.asyncio
    async def test_empty_live_payload_uses_fallback(self, make_loop, base_time):
        fallback = SyntheticSnapshotSource(seed=2, start=base_time)
        loop = make_loop(ScriptedSource([None]), fallback=fallback)

        packet = await loop.run_cycle()
        await loop.gate.wait_idle()

        assert packet is not None
        assert loop.uplink_status == "simulated"
        assert len(loop.history) == 1

    @pytest.mark.asyncio
    async def test_live_resumes_after_empty_payload(self, make_loop, make_snapshot):
        live = [make_snapshot(price=6830.0 + i, index=i) for i in range(5)]
        source = ScriptedSource(live[:4] + [None] + live[4:])
        # wall-clock stamps run far ahead of the scripted live times
        loop = make_loop(source, fallback=SyntheticSnapshotSource(seed=2))

        for _ in range(4):
            await loop.run_cycle()
        simulated = await loop.run_cycle()
        assert simulated is not None
        assert loop.uplink_status == "simulated"
        assert len(loop.simulated_pipeline.history) == 1

        packet = await loop.run_cycle()
        await loop.gate.wait_idle()

        assert packet is not None
        assert packet.price == 6834.0
        assert loop.uplink_status == "live"
        assert loop.system_alert is None
        assert loop.consecutive_failures == 0
        assert [p.price for p in loop.history.points()] == [6830.0, 6831.0, 6832.0, 6833.0, 6834.0]
        assert packet.velocity == pytest.approx(packet.momentum - loop.history.points()[-2].momentum)

    @pytest.mark.asyncio
    async def test_synthetic_only(self, make_loop, base_time):
        loop = make_loop(None, fallback=SyntheticSnapshotSource(seed=2, start=base_time))
        await loop.run(max_cycles=15)

        assert len(loop.history) == 15
        assert loop.uplink_status == "simulated"
        points = loop.history.points()
        for previous, current in zip(points, points[1:]):
            assert current.velocity == pytest.approx(current.momentum - previous.momentum)

    @pytest.mark.asyncio
    async def test_no_source_at_all(self, make_loop):
        loop = make_loop(None)
        assert await loop.run_cycle() is None
        assert loop.system_alert is None

    @pytest.mark.asyncio
    async def test_failed_fetch_does_not_fall_back(self, make_loop, base_time):
        fallback = SyntheticSnapshotSource(seed=2, start=base_time)
        loop = make_loop(ScriptedSource([FetchError("down")]), fallback=fallback)

        assert await loop.run_cycle() is None
        assert len(loop.history) == 0


# =============================================================================
# GATE AND ALERTS
# =============================================================================

class TestRecommendations:

    @pytest.mark.asyncio
    async def test_first_packet_produces_alert(self, make_loop, make_snapshot, strike_table):
        loop = make_loop(ScriptedSource([make_snapshot(index=0, strikes=strike_table)]))
        await loop.run_cycle()
        await loop.gate.wait_idle()

        assert len(loop.alerts) == 1
        assert loop.alerts[0].price == 6830.0

    @pytest.mark.asyncio
    async def test_quiet_cycles_do_not_refire(self, make_loop, make_snapshot, base_time):
        loop = make_loop(ScriptedSource([make_snapshot(index=i) for i in range(3)]))
        for i in range(3):
            await loop.run_cycle(now=base_time)
            await loop.gate.wait_idle()

        assert loop.gate.calls == 1
        assert len(loop.alerts) == 1

    @pytest.mark.asyncio
    async def test_force_analysis(self, make_loop, make_snapshot, base_time):
        loop = make_loop(ScriptedSource([make_snapshot(index=0)]))
        assert await loop.force_analysis() is None

        await loop.run_cycle(now=base_time)
        await loop.gate.wait_idle()
        task = await loop.force_analysis(now=base_time)
        assert task is not None
        await task
        assert len(loop.alerts) == 2

    @pytest.mark.asyncio
    async def test_collaborator_failure_surfaces_system_alert(self, make_loop, make_snapshot):
        collaborator = Mock()
        collaborator.recommend = AsyncMock(side_effect=RuntimeError("model offline"))
        loop = make_loop(ScriptedSource([make_snapshot(index=0)]), collaborator=collaborator)

        await loop.run_cycle()
        await loop.gate.wait_idle()

        assert loop.system_alert.code == "ANALYSIS_FAILED"
        assert loop.system_alert.severity == Severity.ERROR
        assert loop.system_alert.retryable is True
        assert loop.alerts == []
        assert not loop.gate.in_flight

    @pytest.mark.asyncio
    async def test_status(self, make_loop, base_time):
        loop = make_loop(None, fallback=SyntheticSnapshotSource(seed=4, start=base_time))
        await loop.run(max_cycles=2)

        status = loop.status()
        assert status["history"] == 2
        assert status["uplink"] == "simulated"
        assert status["in_flight"] is False
