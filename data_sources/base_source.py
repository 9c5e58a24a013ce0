"""
Base remote gateway for the quote sync system.
Fetch and push never raise: every failure becomes an explicit result object.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from utils import remote_logger, remote_metrics, MappingConfig, TransportError, ErrorCodes
from database.models import Quote


@dataclass(frozen=True)
class FetchResult:
    """远程拉取结果

    失败时 quotes 为空元组。合并逻辑只使用 quotes，因此"远程不可达"与
    "远程为空"对合并而言无法区分，ok 字段仅用于日志和状态展示。
    """
    ok: bool
    quotes: Tuple[Quote, ...] = ()
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str) -> "FetchResult":
        return cls(ok=False, quotes=(), error=error)


@dataclass(frozen=True)
class PushResult:
    """远程推送结果"""
    ok: bool
    status: Optional[int] = None
    error: Optional[str] = None
    response: Any = field(default=None, compare=False)


@dataclass(frozen=True)
class FieldMapping:
    """远程记录到语录的字段映射"""
    text_field: str = "title"
    category_field: str = "body"
    category_length: int = 20

    @classmethod
    def from_config(cls, mapping_config: MappingConfig) -> Optional["FieldMapping"]:
        if not mapping_config.enabled:
            return None
        return cls(
            text_field=mapping_config.text_field,
            category_field=mapping_config.category_field,
            category_length=mapping_config.category_length,
        )

    def apply(self, record: Dict[str, Any]) -> Dict[str, Any]:
        text = record.get(self.text_field)
        body = record.get(self.category_field)
        category = body[:self.category_length] if isinstance(body, str) else body
        return {'text': text, 'category': category}


def parse_remote_payload(payload: Any, mapping: Optional[FieldMapping]) -> Tuple[Quote, ...]:
    """将远程 JSON 载荷转换为语录，任一记录无法转换则整个载荷视为格式错误"""
    if not isinstance(payload, list):
        raise TransportError(
            f"Remote payload must be an array, got {type(payload).__name__}",
            ErrorCodes.NETWORK_MALFORMED_PAYLOAD
        )

    quotes: List[Quote] = []
    for position, record in enumerate(payload):
        if not isinstance(record, dict):
            raise TransportError(
                f"Remote record #{position} is not an object",
                ErrorCodes.NETWORK_MALFORMED_PAYLOAD
            )
        mapped = mapping.apply(record) if mapping else record
        text, category = mapped.get('text'), mapped.get('category')
        if not isinstance(text, str) or not text or not isinstance(category, str) or not category:
            raise TransportError(
                f"Remote record #{position} cannot be mapped to a quote",
                ErrorCodes.NETWORK_MALFORMED_PAYLOAD
            )
        quotes.append(Quote(text=text, category=category))
    return tuple(quotes)


class BaseRemoteGateway(ABC):
    """远程网关基类"""

    def __init__(self, name: str):
        self.name = name
        self.is_initialized = False

    async def initialize(self):
        """初始化网关"""
        if not self.is_initialized:
            remote_logger.info(f"[{self.name}] Initializing remote gateway...")
            await self._initialize_impl()
            self.is_initialized = True

    async def _initialize_impl(self):
        """初始化实现，子类按需重写"""
        pass

    async def close(self):
        """关闭网关"""
        self.is_initialized = False
        remote_logger.info(f"[{self.name}] Remote gateway closed")

    async def fetch_remote(self) -> FetchResult:
        """拉取远程语录，任何失败都转换为空结果"""
        try:
            quotes = await self._fetch_impl()
        except TransportError as e:
            remote_logger.warning(f"[{self.name}] Fetch failed: {e.message}")
            remote_metrics.increment("fetch_failed")
            return FetchResult.failure(e.message)
        except Exception as e:
            remote_logger.warning(f"[{self.name}] Fetch failed: {e}")
            remote_metrics.increment("fetch_failed")
            return FetchResult.failure(str(e) or type(e).__name__)

        remote_metrics.increment("fetch_ok")
        remote_logger.info(f"[{self.name}] Fetched {len(quotes)} remote quotes")
        return FetchResult(ok=True, quotes=quotes)

    async def push_local(self, quotes: Sequence[Quote]) -> PushResult:
        """推送本地全部语录，失败只记录日志，不重试"""
        try:
            result = await self._push_impl([q.to_dict() for q in quotes])
        except TransportError as e:
            remote_logger.warning(f"[{self.name}] Push failed: {e.message}")
            remote_metrics.increment("push_failed")
            return PushResult(ok=False, status=e.context.get('status'), error=e.message)
        except Exception as e:
            remote_logger.warning(f"[{self.name}] Push failed: {e}")
            remote_metrics.increment("push_failed")
            return PushResult(ok=False, error=str(e) or type(e).__name__)

        remote_metrics.increment("push_ok")
        remote_logger.info(f"[{self.name}] Quotes posted to server ({len(quotes)} quotes)")
        return result

    @abstractmethod
    async def _fetch_impl(self) -> Tuple[Quote, ...]:
        """拉取实现，失败时抛出异常"""

    @abstractmethod
    async def _push_impl(self, payload: List[Dict[str, str]]) -> PushResult:
        """推送实现，失败时抛出异常"""

    def get_gateway_info(self) -> Dict[str, Any]:
        """获取网关信息"""
        return {
            'name': self.name,
            'is_initialized': self.is_initialized,
        }
