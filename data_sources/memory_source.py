"""
In-memory remote gateway.
Serves a configurable remote quote list and records every pushed snapshot.
Used for offline mode and tests.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

from .base_source import BaseRemoteGateway, FieldMapping, PushResult, parse_remote_payload
from utils import TransportError, ErrorCodes
from database.models import Quote


class InMemoryRemoteGateway(BaseRemoteGateway):
    """内存远程网关"""

    def __init__(self, remote_records: Optional[Iterable[Dict[str, Any]]] = None,
                 mapping: Optional[FieldMapping] = None, name: str = "memory"):
        super().__init__(name)
        self.remote_records: List[Dict[str, Any]] = list(remote_records or [])
        self.mapping = mapping
        self.pushed: List[List[Dict[str, str]]] = []
        self.fetch_calls = 0
        self.push_calls = 0
        self.fail_fetch = False
        self.fail_push = False

    def set_remote(self, records: Iterable[Dict[str, Any]]) -> None:
        self.remote_records = list(records)

    async def _fetch_impl(self) -> Tuple[Quote, ...]:
        self.fetch_calls += 1
        if self.fail_fetch:
            raise TransportError("Simulated fetch failure", ErrorCodes.NETWORK_CONNECTION_ERROR)
        return parse_remote_payload(list(self.remote_records), self.mapping)

    async def _push_impl(self, payload: List[Dict[str, str]]) -> PushResult:
        self.push_calls += 1
        if self.fail_push:
            raise TransportError("Simulated push failure", ErrorCodes.NETWORK_CONNECTION_ERROR,
                                 {'status': 503})
        self.pushed.append(payload)
        return PushResult(ok=True, status=201, response={'received': len(payload)})

    @property
    def last_pushed(self) -> Optional[List[Dict[str, str]]]:
        return self.pushed[-1] if self.pushed else None
