"""
Remote gateways for the quote sync system.
"""

from .base_source import BaseRemoteGateway, FetchResult, PushResult, FieldMapping, parse_remote_payload
from .http_source import HttpRemoteGateway
from .memory_source import InMemoryRemoteGateway
from .source_factory import create_gateway

__all__ = [
    'BaseRemoteGateway',
    'FetchResult',
    'PushResult',
    'FieldMapping',
    'parse_remote_payload',
    'HttpRemoteGateway',
    'InMemoryRemoteGateway',
    'create_gateway',
]
