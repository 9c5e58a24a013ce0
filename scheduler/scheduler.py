"""
Sync scheduler for the quote system.
Uses APScheduler to run the sync cycle periodically.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_MISSED

from utils import scheduler_logger
from sync.orchestrator import SyncOrchestrator, SyncCycleReport

SYNC_JOB_ID = "quote_sync"
SHUTDOWN_POLLS = 100
SHUTDOWN_POLL_INTERVAL = 0.01


class SyncScheduler:
    """同步调度器

    启动后立即执行一次同步，此后每 interval_ms 毫秒执行一次。
    max_instances=1 与 coalesce=True 保证定时器本身不会叠加执行，
    编排器的忙碌标志则覆盖手动触发与定时触发之间的重叠。
    """

    def __init__(self, orchestrator: SyncOrchestrator, interval_ms: int = 30000, enabled: bool = True):
        self.orchestrator = orchestrator
        self.interval_ms = interval_ms
        self.enabled = enabled
        self.scheduler = AsyncIOScheduler()
        self.job = None
        self._stopping = False

    @property
    def running(self) -> bool:
        return self.scheduler.running

    async def start(self):
        """启动调度器"""
        if not self.enabled:
            scheduler_logger.info("[Scheduler] Sync scheduler disabled, skipping start")
            return
        if self.scheduler.running:
            scheduler_logger.warning("[Scheduler] Sync scheduler already running")
            return

        try:
            self.scheduler.add_listener(self._job_error_listener, EVENT_JOB_ERROR)
            self.scheduler.add_listener(self._job_missed_listener, EVENT_JOB_MISSED)

            self.job = self.scheduler.add_job(
                self._run_cycle,
                trigger=IntervalTrigger(seconds=self.interval_ms / 1000),
                id=SYNC_JOB_ID,
                name="Quote sync cycle",
                replace_existing=True,
                next_run_time=datetime.now(timezone.utc),
                max_instances=1,
                coalesce=True,
                misfire_grace_time=max(1, self.interval_ms // 1000),
            )

            self.scheduler.start()
            scheduler_logger.info(f"[Scheduler] Sync scheduler started, interval={self.interval_ms}ms")

        except Exception as e:
            scheduler_logger.error(f"[Scheduler] Failed to start sync scheduler: {e}")
            raise

    async def _run_cycle(self) -> SyncCycleReport:
        try:
            return await self.orchestrator.run_sync_cycle()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            scheduler_logger.error(f"[Scheduler] Sync job execution failed: {e}")
            raise

    async def trigger_now(self) -> SyncCycleReport:
        """立即执行一次同步（不影响定时计划）"""
        scheduler_logger.info("[Scheduler] Manual sync triggered")
        return await self.orchestrator.run_sync_cycle()

    def _job_error_listener(self, event):
        """任务错误监听器"""
        job_id = getattr(event, 'job_id', 'unknown')
        exception = getattr(event, 'exception', 'Unknown error')
        scheduled_time = getattr(event, 'scheduled_run_time', None)
        scheduler_logger.error(f"[Scheduler] Job {job_id} failed at {scheduled_time}: {exception}")

    def _job_missed_listener(self, event):
        """任务错过监听器"""
        job_id = getattr(event, 'job_id', 'unknown')
        scheduled_time = getattr(event, 'scheduled_run_time', None)
        scheduler_logger.warning(f"[Scheduler] Job {job_id} missed at {scheduled_time}")

    def get_status(self) -> Dict[str, Any]:
        """获取调度状态"""
        next_run_time: Optional[datetime] = None
        if self.scheduler.running:
            job = self.scheduler.get_job(SYNC_JOB_ID)
            next_run_time = getattr(job, 'next_run_time', None) if job else None

        return {
            'enabled': self.enabled,
            'running': self.scheduler.running,
            'interval_ms': self.interval_ms,
            'next_run_time': next_run_time.isoformat() if next_run_time else None,
        }

    async def shutdown(self):
        """关闭调度器，取消后续的定时同步，返回时调度器已停止"""
        if self._stopping or not self.scheduler.running:
            return

        self._stopping = True
        try:
            scheduler_logger.info("[Scheduler] Shutting down sync scheduler...")
            self.scheduler.shutdown(wait=False)
            # AsyncIOScheduler 可能只把关闭排入事件循环，等待其真正停止
            for _ in range(SHUTDOWN_POLLS):
                if not self.scheduler.running:
                    break
                await asyncio.sleep(SHUTDOWN_POLL_INTERVAL)
            else:
                scheduler_logger.warning("[Scheduler] Sync scheduler still running after shutdown request")
                return
            scheduler_logger.info("[Scheduler] Sync scheduler shutdown completed")
        except Exception as e:
            scheduler_logger.error(f"[Scheduler] Error during shutdown: {e}")
        finally:
            self._stopping = False
