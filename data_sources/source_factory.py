"""
Remote gateway factory.
Builds the configured gateway implementation from RemoteConfig.
"""

from typing import Dict, Type

from utils import remote_logger, RemoteConfig, ConfigurationError
from .base_source import BaseRemoteGateway, FieldMapping
from .http_source import HttpRemoteGateway
from .memory_source import InMemoryRemoteGateway


GATEWAY_TYPES: Dict[str, Type[BaseRemoteGateway]] = {
    'http': HttpRemoteGateway,
    'memory': InMemoryRemoteGateway,
}


def create_gateway(remote_config: RemoteConfig) -> BaseRemoteGateway:
    """根据配置创建远程网关"""
    backend = remote_config.backend.lower()
    if backend not in GATEWAY_TYPES:
        raise ConfigurationError(f"Unsupported remote backend: {remote_config.backend}")

    mapping = FieldMapping.from_config(remote_config.mapping)
    if backend == 'http':
        gateway = HttpRemoteGateway(
            url=remote_config.url,
            timeout_seconds=remote_config.timeout_seconds,
            mapping=mapping,
        )
    else:
        gateway = InMemoryRemoteGateway(mapping=mapping)

    remote_logger.info(f"[GatewayFactory] Created '{backend}' remote gateway")
    return gateway
