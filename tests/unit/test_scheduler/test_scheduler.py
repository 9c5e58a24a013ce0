"""
Unit tests for the sync scheduler
"""

import asyncio

import pytest
from unittest.mock import Mock, AsyncMock, patch
from apscheduler.triggers.interval import IntervalTrigger

from scheduler import SyncScheduler, SYNC_JOB_ID
from sync import SyncCycleReport


@pytest.fixture
def mock_orchestrator():
    orchestrator = Mock()
    orchestrator.run_sync_cycle = AsyncMock(return_value=SyncCycleReport())
    return orchestrator


@pytest.mark.unit
class TestSyncScheduler:

    @pytest.mark.asyncio
    async def test_start_registers_interval_job(self, mock_orchestrator):
        scheduler = SyncScheduler(mock_orchestrator, interval_ms=30000)
        await scheduler.start()
        try:
            job = scheduler.scheduler.get_job(SYNC_JOB_ID)
            assert job is not None
            assert isinstance(job.trigger, IntervalTrigger)
            assert job.trigger.interval.total_seconds() == 30
            assert job.max_instances == 1
            assert job.coalesce is True
            assert scheduler.running is True
        finally:
            await scheduler.shutdown()

    @pytest.mark.asyncio
    async def test_first_cycle_runs_immediately(self, mock_orchestrator):
        scheduler = SyncScheduler(mock_orchestrator, interval_ms=60000)
        await scheduler.start()
        try:
            for _ in range(50):
                if mock_orchestrator.run_sync_cycle.await_count:
                    break
                await asyncio.sleep(0.02)
            mock_orchestrator.run_sync_cycle.assert_awaited()
        finally:
            await scheduler.shutdown()

    @pytest.mark.asyncio
    async def test_disabled_scheduler_does_not_start(self, mock_orchestrator):
        scheduler = SyncScheduler(mock_orchestrator, enabled=False)
        await scheduler.start()
        assert scheduler.running is False
        assert scheduler.get_status()['next_run_time'] is None

    @pytest.mark.asyncio
    async def test_trigger_now(self, mock_orchestrator):
        scheduler = SyncScheduler(mock_orchestrator)
        report = await scheduler.trigger_now()
        assert report == SyncCycleReport()
        mock_orchestrator.run_sync_cycle.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_shutdown_cancels_timer(self, mock_orchestrator):
        scheduler = SyncScheduler(mock_orchestrator, interval_ms=60000)
        await scheduler.start()
        await scheduler.shutdown()
        assert scheduler.running is False
        # 重复关闭不报错
        await scheduler.shutdown()

    @pytest.mark.asyncio
    async def test_shutdown_waits_for_deferred_stop(self, mock_orchestrator):
        scheduler = SyncScheduler(mock_orchestrator, interval_ms=60000)
        await scheduler.start()
        real_shutdown = scheduler.scheduler.shutdown
        loop = asyncio.get_running_loop()

        def deferred_shutdown(wait=True):
            loop.call_soon(real_shutdown, wait)

        with patch.object(scheduler.scheduler, "shutdown", side_effect=deferred_shutdown) as spy:
            await scheduler.shutdown()
            assert scheduler.running is False

            await scheduler.shutdown()
            assert spy.call_count == 1

    @pytest.mark.asyncio
    async def test_concurrent_shutdown_requests_stop_once(self, mock_orchestrator):
        scheduler = SyncScheduler(mock_orchestrator, interval_ms=60000)
        await scheduler.start()

        with patch.object(scheduler.scheduler, "shutdown", wraps=scheduler.scheduler.shutdown) as spy:
            await asyncio.gather(scheduler.shutdown(), scheduler.shutdown())

        assert spy.call_count == 1
        assert scheduler.running is False

    @pytest.mark.asyncio
    async def test_status(self, mock_orchestrator):
        scheduler = SyncScheduler(mock_orchestrator, interval_ms=45000)
        await scheduler.start()
        try:
            status = scheduler.get_status()
            assert status['running'] is True
            assert status['interval_ms'] == 45000
            assert status['enabled'] is True
        finally:
            await scheduler.shutdown()
