"""
Quote repository for the quote sync system.
Owns the in-memory ordered quote list and writes it through to a key-value store.
"""

import json
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from utils import (
    repo_logger, log_execution, QuoteValidator,
    EmptyImportError, StorageError, ErrorCodes
)
from .kv_store import KeyValueStore
from .models import Quote, DEFAULT_QUOTES

QUOTES_KEY = "quotes"
ALL_CATEGORIES = "all"


def find_first_index(quotes: Sequence[Quote], text: str) -> Optional[int]:
    """按 text 精确查找第一条匹配记录的位置"""
    for index, quote in enumerate(quotes):
        if quote.text == text:
            return index
    return None


class QuoteRepository:
    """语录仓库

    内存中的有序列表是当前进程生命周期内的唯一数据源；每次修改后写穿到
    本地存储，写入失败只记录日志，不影响内存状态。
    """

    def __init__(self, store: KeyValueStore, defaults: Iterable[Quote] = DEFAULT_QUOTES):
        self.store = store
        self._quotes: List[Quote] = self._load(list(defaults))

    def _load(self, defaults: List[Quote]) -> List[Quote]:
        """从本地存储加载，缺失或损坏时使用默认语录"""
        try:
            raw = self.store.get(QUOTES_KEY)
        except StorageError as e:
            repo_logger.error(f"[Repository] Failed to load quotes, using defaults: {e}")
            return defaults

        if raw is None:
            repo_logger.info(f"[Repository] No stored quotes, starting with {len(defaults)} defaults")
            return defaults

        records = QuoteValidator.parse_stored_quotes(raw)
        if records is None:
            repo_logger.warning("[Repository] Stored quotes are corrupted, using defaults")
            return defaults

        quotes = [Quote.from_dict(record) for record in records]
        repo_logger.info(f"[Repository] Loaded {len(quotes)} quotes from store")
        return quotes

    # ========================================================================
    # 读取操作
    # ========================================================================

    def list(self) -> Tuple[Quote, ...]:
        """返回完整语录序列（只读）"""
        return tuple(self._quotes)

    def __len__(self) -> int:
        return len(self._quotes)

    def filter_by_category(self, category: str) -> Tuple[Quote, ...]:
        """按分类过滤；"all" 区分大小写，返回全部；其余忽略大小写精确匹配"""
        if category == ALL_CATEGORIES:
            return self.list()
        wanted = category.lower()
        return tuple(q for q in self._quotes if q.category.lower() == wanted)

    def distinct_categories(self) -> List[str]:
        """按首次出现顺序返回去重后的分类"""
        return list(dict.fromkeys(q.category for q in self._quotes))

    # ========================================================================
    # 用户修改操作（写穿持久化）
    # ========================================================================

    def add(self, text: Any, category: Any) -> Quote:
        """新增一条语录"""
        quote = Quote(
            text=QuoteValidator.clean_field(text, 'text'),
            category=QuoteValidator.clean_field(category, 'category'),
        )
        self._quotes.append(quote)
        repo_logger.info(f"[Repository] Added quote in category '{quote.category}'")
        self.save()
        return quote

    @log_execution("Repository", "import_many")
    def import_many(self, candidates: Iterable[Any]) -> List[Quote]:
        """批量导入，丢弃无效记录，全部无效时报错"""
        valid = QuoteValidator.filter_candidates(candidates)
        if not valid:
            raise EmptyImportError("No valid quotes found in file.", ErrorCodes.IMPORT_EMPTY)

        imported = [Quote.from_dict(record) for record in valid]
        self._quotes.extend(imported)
        repo_logger.info(f"[Repository] Imported {len(imported)} quotes")
        self.save()
        return imported

    def import_json(self, raw: str) -> List[Quote]:
        """从 JSON 文本导入"""
        return self.import_many(QuoteValidator.parse_import_payload(raw))

    def export_json(self) -> str:
        """导出为格式化的 JSON 数组"""
        return json.dumps([q.to_dict() for q in self._quotes], indent=2, ensure_ascii=False)

    # ========================================================================
    # 合并结果落地（整体替换后统一持久化一次）
    # ========================================================================

    def apply_merged(self, quotes: Sequence[Quote]) -> bool:
        """用合并后的完整序列替换当前序列并持久化"""
        self._quotes = list(quotes)
        return self.save()

    # ========================================================================
    # 持久化
    # ========================================================================

    def save(self) -> bool:
        """写穿到本地存储，失败只记录日志"""
        payload = json.dumps([q.to_dict() for q in self._quotes], ensure_ascii=False)
        try:
            self.store.set(QUOTES_KEY, payload)
            return True
        except Exception as e:
            repo_logger.error(f"[Repository] Failed to persist {len(self._quotes)} quotes: {e}")
            return False
