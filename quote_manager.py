"""
Quote Manager for the quote sync system.
Wires storage, repository, remote gateway, reconciler, orchestrator and
scheduler together and exposes the user-level operations (browse, filter,
add, import, export, sync).
"""

import json
import random
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from utils import (
    main_logger, config_manager, log_execution, UnifiedConfigManager,
    StorageError, EXPORT_FILENAME
)
from database import (
    Quote, QuoteRepository, KeyValueStore, MemoryKeyValueStore, create_store, ALL_CATEGORIES
)
from data_sources import BaseRemoteGateway, PushResult, create_gateway
from sync import (
    ConflictPolicy, MergeResult, Reconciler, SyncCycleReport, SyncOrchestrator, create_policy
)
from sync.reconciler import ConflictDecider
from scheduler import SyncScheduler

LAST_QUOTE_KEY = "lastQuote"
LAST_FILTER_KEY = "lastFilter"


class QuoteManager:
    """语录管理器

    durable store 保存语录列表和上次选择的分类；session store 只在当前
    会话内保存上次展示的语录。
    """

    def __init__(self,
                 config: Optional[UnifiedConfigManager] = None,
                 store: Optional[KeyValueStore] = None,
                 session_store: Optional[KeyValueStore] = None,
                 gateway: Optional[BaseRemoteGateway] = None,
                 policy: Optional[ConflictPolicy] = None,
                 decide: Optional[ConflictDecider] = None):
        self.config = config or config_manager
        self.sync_config = self.config.get_sync_config()

        self.store = store if store is not None else create_store(self.config.get_storage_config())
        self.session_store = session_store if session_store is not None else MemoryKeyValueStore()
        self.repository = QuoteRepository(self.store)
        self.gateway = gateway if gateway is not None else create_gateway(self.config.get_remote_config())

        self.reconciler = Reconciler(policy or create_policy(self.sync_config.conflict_policy, decide))
        self.orchestrator = SyncOrchestrator(
            self.repository,
            self.gateway,
            self.reconciler,
            cycle_timeout=self.sync_config.cycle_timeout_seconds,
        )
        self.scheduler = SyncScheduler(
            self.orchestrator,
            interval_ms=self.sync_config.interval_ms,
            enabled=self.sync_config.enabled,
        )
        self.orchestrator.add_observer(self._on_remote_merged)

        self.current_filter = self.load_last_filter()
        self.last_notification: Optional[str] = None

    @log_execution("Main", "initialize")
    async def initialize(self, start_scheduler: bool = False) -> None:
        """初始化远程网关，按需启动定时同步"""
        await self.gateway.initialize()
        if start_scheduler:
            await self.scheduler.start()
        main_logger.info(f"[QuoteManager] Ready with {len(self.repository)} quotes, filter='{self.current_filter}'")

    async def close(self) -> None:
        """关闭调度器、网关和存储"""
        await self.scheduler.shutdown()
        self.orchestrator.remove_observer(self._on_remote_merged)
        await self.gateway.close()
        self.store.close()
        self.session_store.close()
        main_logger.info("[QuoteManager] Closed")

    # ========================================================================
    # 浏览与过滤
    # ========================================================================

    def list_quotes(self, category: Optional[str] = None) -> Tuple[Quote, ...]:
        """按分类列出语录，未指定时使用当前过滤条件"""
        return self.repository.filter_by_category(category if category is not None else self.current_filter)

    def categories(self) -> List[str]:
        return self.repository.distinct_categories()

    def select_filter(self, category: str) -> Tuple[Quote, ...]:
        """切换过滤分类并持久化"""
        self.current_filter = category
        try:
            self.store.set(LAST_FILTER_KEY, category)
        except StorageError as e:
            main_logger.error(f"[QuoteManager] Failed to persist filter '{category}': {e}")
        return self.repository.filter_by_category(category)

    def load_last_filter(self) -> str:
        try:
            return self.store.get(LAST_FILTER_KEY) or ALL_CATEGORIES
        except StorageError as e:
            main_logger.error(f"[QuoteManager] Failed to load last filter: {e}")
            return ALL_CATEGORIES

    def random_quote(self, category: Optional[str] = None) -> Optional[Quote]:
        """随机选取一条语录并记入会话；分类下没有语录时返回 None"""
        candidates = self.list_quotes(category)
        if not candidates:
            main_logger.info("[QuoteManager] No quotes available for this category.")
            return None

        quote = random.choice(candidates)
        try:
            self.session_store.set(LAST_QUOTE_KEY, json.dumps(quote.to_dict(), ensure_ascii=False))
        except StorageError as e:
            main_logger.error(f"[QuoteManager] Failed to remember last quote: {e}")
        return quote

    def restore_last_quote(self) -> Optional[Quote]:
        """恢复本会话上次展示的语录"""
        raw = self.session_store.get(LAST_QUOTE_KEY)
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except ValueError:
            main_logger.warning("[QuoteManager] Stored last quote is not valid JSON, ignoring")
            return None
        if not isinstance(data, dict) or not isinstance(data.get('text'), str) \
                or not isinstance(data.get('category'), str):
            return None
        return Quote.from_dict(data)

    # ========================================================================
    # 修改操作（完成后立即推送）
    # ========================================================================

    async def add_quote(self, text: Any, category: Any) -> Quote:
        """新增语录；校验失败抛出 ValidationError"""
        quote = self.repository.add(text, category)
        await self._eager_push()
        return quote

    async def import_quotes(self, raw: str) -> List[Quote]:
        """从 JSON 文本导入；格式错误或没有有效记录时抛出异常"""
        imported = self.repository.import_json(raw)
        main_logger.info(f"[QuoteManager] Quotes imported successfully ({len(imported)})")
        await self._eager_push()
        return imported

    async def import_file(self, path: Union[str, Path]) -> List[Quote]:
        return await self.import_quotes(Path(path).read_text(encoding='utf-8'))

    def export_json(self) -> str:
        return self.repository.export_json()

    def export_to_file(self, path: Optional[Union[str, Path]] = None) -> Path:
        """导出到文件，默认文件名 quotes.json"""
        target = Path(path) if path else Path(EXPORT_FILENAME)
        if target.is_dir():
            target = target / EXPORT_FILENAME
        target.write_text(self.export_json(), encoding='utf-8')
        main_logger.info(f"[QuoteManager] Exported {len(self.repository)} quotes to {target}")
        return target

    async def _eager_push(self) -> Optional[PushResult]:
        if not self.sync_config.eager_push:
            return None
        return await self.orchestrator.push_now()

    # ========================================================================
    # 同步
    # ========================================================================

    async def sync_now(self) -> SyncCycleReport:
        """立即执行一次同步周期"""
        return await self.scheduler.trigger_now()

    def _on_remote_merged(self, result: MergeResult) -> None:
        """同步带来变化后的通知"""
        self.last_notification = result.message
        main_logger.info(f"[QuoteManager] {result.message}")
        if self.current_filter != ALL_CATEGORIES and not self.list_quotes():
            main_logger.info(f"[QuoteManager] Filter '{self.current_filter}' no longer matches any quote")

    def status(self) -> Dict[str, Any]:
        """获取整体状态"""
        return {
            'quotes': len(self.repository),
            'categories': len(self.categories()),
            'filter': self.current_filter,
            'last_notification': self.last_notification,
            'sync': self.orchestrator.status(),
            'scheduler': self.scheduler.get_status(),
        }
