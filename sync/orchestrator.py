"""
Sync orchestration: one fetch -> reconcile -> notify -> push cycle.

A cycle in progress blocks any overlapping cycle; the busy flag is set
before the first suspension and cleared on every exit path.
"""

import asyncio
import inspect
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from utils import sync_logger, sync_metrics, remote_metrics, logging_manager
from database.repository import QuoteRepository
from data_sources.base_source import BaseRemoteGateway, FetchResult, PushResult
from .reconciler import Reconciler, MergeResult

SyncObserver = Callable[[MergeResult], Union[None, Awaitable[None]]]


class SyncState(str, Enum):
    """同步状态，失败后回到 IDLE，不存在终止的失败状态"""
    IDLE = "idle"
    SYNCING = "syncing"


@dataclass
class SyncCycleReport:
    """单次同步周期报告"""
    skipped: bool = False
    fetched_ok: bool = False
    remote_count: int = 0
    merge: Optional[MergeResult] = None
    pushed_ok: bool = False
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    duration: float = 0.0

    @property
    def changed(self) -> bool:
        return self.merge is not None and self.merge.changed

    def to_dict(self) -> Dict[str, Any]:
        return {
            'skipped': self.skipped,
            'fetched_ok': self.fetched_ok,
            'remote_count': self.remote_count,
            'changed': self.changed,
            'added': self.merge.added if self.merge else 0,
            'updated': self.merge.updated if self.merge else 0,
            'conflicts': self.merge.conflicts if self.merge else 0,
            'pushed_ok': self.pushed_ok,
            'error': self.error,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'duration': round(self.duration, 3),
        }


class SyncOrchestrator:
    """同步编排器"""

    def __init__(self, repository: QuoteRepository, gateway: BaseRemoteGateway,
                 reconciler: Optional[Reconciler] = None, cycle_timeout: float = 10.0):
        self.repository = repository
        self.gateway = gateway
        self.reconciler = reconciler or Reconciler()
        self.cycle_timeout = cycle_timeout
        self._state = SyncState.IDLE
        self._observers: List[SyncObserver] = []
        self.cycles_run = 0
        self.cycles_skipped = 0
        self.last_report: Optional[SyncCycleReport] = None

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def is_busy(self) -> bool:
        return self._state is SyncState.SYNCING

    def add_observer(self, observer: SyncObserver) -> None:
        """注册变更观察者（如刷新过滤视图）"""
        self._observers.append(observer)

    def remove_observer(self, observer: SyncObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    async def run_sync_cycle(self) -> SyncCycleReport:
        """执行一次同步周期，已有周期在运行时直接跳过"""
        if self.is_busy:
            self.cycles_skipped += 1
            sync_logger.info("[Sync] Cycle already in progress, skipping")
            return SyncCycleReport(skipped=True)

        self._state = SyncState.SYNCING
        report = SyncCycleReport(started_at=datetime.now(timezone.utc))
        start = time.monotonic()
        try:
            fetch_result = await self._fetch()
            report.fetched_ok = fetch_result.ok
            report.remote_count = len(fetch_result.quotes)
            if not fetch_result.ok:
                report.error = fetch_result.error

            try:
                merge_result = await self.reconciler.merge(self.repository, fetch_result.quotes)
            except Exception as e:
                sync_logger.error(f"[Sync] Reconcile failed: {e}")
                report.error = str(e)
            else:
                report.merge = merge_result
                if merge_result.changed:
                    await self._notify_observers(merge_result)

            # 无论本次是否有变化都推送，保证本地新增能传播出去
            push_result = await self.push_now()
            report.pushed_ok = push_result.ok
        finally:
            report.duration = time.monotonic() - start
            self.cycles_run += 1
            self.last_report = report
            self._state = SyncState.IDLE

        sync_metrics.timing("cycle", report.duration)
        sync_logger.info(
            f"[Sync] Cycle finished in {report.duration:.2f}s: fetched_ok={report.fetched_ok} "
            f"remote={report.remote_count} changed={report.changed} pushed_ok={report.pushed_ok}"
        )
        return report

    async def push_now(self) -> PushResult:
        """立即推送本地全部语录"""
        try:
            return await asyncio.wait_for(
                self.gateway.push_local(self.repository.list()), timeout=self.cycle_timeout
            )
        except asyncio.TimeoutError:
            sync_logger.warning(f"[Sync] Push exceeded {self.cycle_timeout}s, abandoned")
            return PushResult(ok=False, error="timeout")

    async def _fetch(self) -> FetchResult:
        try:
            return await asyncio.wait_for(self.gateway.fetch_remote(), timeout=self.cycle_timeout)
        except asyncio.TimeoutError:
            sync_logger.warning(f"[Sync] Fetch exceeded {self.cycle_timeout}s, treated as empty")
            return FetchResult.failure("timeout")

    async def _notify_observers(self, merge_result: MergeResult) -> None:
        for observer in list(self._observers):
            try:
                outcome = observer(merge_result)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                sync_logger.error(f"[Sync] Observer {getattr(observer, '__name__', observer)} failed: {e}")

    def status(self) -> Dict[str, Any]:
        """获取同步状态"""
        return {
            'state': self._state.value,
            'cycles_run': self.cycles_run,
            'cycles_skipped': self.cycles_skipped,
            'last_report': self.last_report.to_dict() if self.last_report else None,
            'gateway': self.gateway.get_gateway_info(),
            'policy': self.reconciler.policy.name,
            # 进程级指标：网关请求计数与同步耗时
            'metrics': {**remote_metrics.get_metrics(), **sync_metrics.get_metrics()},
            'operations': logging_manager.get_metrics(),
        }
