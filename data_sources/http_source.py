"""
HTTP remote gateway implementation using aiohttp.
Targets a JSONPlaceholder-style endpoint: GET returns a JSON array, POST accepts one.
"""

import asyncio
from typing import Dict, List, Optional, Tuple

import aiohttp

from .base_source import BaseRemoteGateway, FieldMapping, PushResult, parse_remote_payload
from utils import remote_logger, TransportError, ErrorCodes
from database.models import Quote


class HttpRemoteGateway(BaseRemoteGateway):
    """基于 aiohttp 的远程网关"""

    def __init__(self, url: str, timeout_seconds: float = 5.0,
                 mapping: Optional[FieldMapping] = FieldMapping(), name: str = "http"):
        super().__init__(name)
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.mapping = mapping
        self.session: Optional[aiohttp.ClientSession] = None

    async def _initialize_impl(self):
        """创建异步HTTP会话"""
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        self.session = aiohttp.ClientSession(
            timeout=timeout,
            headers={'Accept': 'application/json'}
        )
        remote_logger.info(f"[{self.name}] HTTP session ready for {self.url} (timeout={self.timeout_seconds}s)")

    async def close(self):
        if self.session:
            await self.session.close()
            self.session = None
        await super().close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.is_initialized = False
            await self.initialize()
        return self.session

    async def _fetch_impl(self) -> Tuple[Quote, ...]:
        session = await self._ensure_session()
        try:
            async with session.get(self.url) as response:
                if response.status < 200 or response.status >= 300:
                    raise TransportError(
                        f"Failed to fetch from server: HTTP {response.status}",
                        ErrorCodes.NETWORK_BAD_STATUS,
                        {'status': response.status}
                    )
                payload = await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise TransportError("Fetch timed out", ErrorCodes.NETWORK_TIMEOUT) from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Fetch connection error: {e}", ErrorCodes.NETWORK_CONNECTION_ERROR) from e
        except ValueError as e:
            raise TransportError(f"Fetch returned invalid JSON: {e}", ErrorCodes.NETWORK_MALFORMED_PAYLOAD) from e

        return parse_remote_payload(payload, self.mapping)

    async def _push_impl(self, payload: List[Dict[str, str]]) -> PushResult:
        session = await self._ensure_session()
        try:
            async with session.post(self.url, json=payload) as response:
                if response.status < 200 or response.status >= 300:
                    raise TransportError(
                        f"Failed to post to server: HTTP {response.status}",
                        ErrorCodes.NETWORK_BAD_STATUS,
                        {'status': response.status}
                    )
                body = await response.json(content_type=None)
                return PushResult(ok=True, status=response.status, response=body)
        except asyncio.TimeoutError as e:
            raise TransportError("Push timed out", ErrorCodes.NETWORK_TIMEOUT) from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Push connection error: {e}", ErrorCodes.NETWORK_CONNECTION_ERROR) from e
        except ValueError as e:
            raise TransportError(f"Push returned invalid JSON: {e}", ErrorCodes.NETWORK_MALFORMED_PAYLOAD) from e

    def get_gateway_info(self):
        info = super().get_gateway_info()
        info.update({
            'url': self.url,
            'timeout_seconds': self.timeout_seconds,
            'mapping': None if self.mapping is None else {
                'text_field': self.mapping.text_field,
                'category_field': self.mapping.category_field,
                'category_length': self.mapping.category_length,
            },
        })
        return info
