"""
统一的配置管理模块
整合底层配置操作和应用层类型安全访问
"""

import json
import logging
from typing import Any, Optional, Dict, TypeVar
from dataclasses import dataclass, field
from pathlib import Path

from .exceptions import ConfigurationError, ErrorCodes
from .path_utils import CONFIG_DIR

# 获取配置专用日志器
config_logger = logging.getLogger("Config")

# 为泛型类型定义一个TypeVar
T = TypeVar('T')

# ============================================================================
# 配置数据类型定义
# ============================================================================

@dataclass
class LoggingModuleConfig:
    """模块日志配置"""
    level: str = "INFO"
    enabled: bool = True

@dataclass
class FileLoggingConfig:
    """文件日志配置"""
    enabled: bool = True
    directory: str = "log"
    filename: str = "sys.log"
    rotation: Optional[Dict[str, Any]] = None

@dataclass
class ConsoleLoggingConfig:
    """控制台日志配置"""
    enabled: bool = True

@dataclass
class LoggingConfig:
    """完整日志配置"""
    level: str = "INFO"
    format: str = "[%(levelname)s][%(asctime)s][%(filename)s:%(lineno)d] - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    file_config: FileLoggingConfig = field(default_factory=FileLoggingConfig)
    console_config: ConsoleLoggingConfig = field(default_factory=ConsoleLoggingConfig)
    modules: Dict[str, LoggingModuleConfig] = field(default_factory=dict)

@dataclass
class StorageConfig:
    """本地存储配置"""
    backend: str = "sqlite"  # sqlite 或 memory
    db_path: str = "data/quotes.db"

@dataclass
class MappingConfig:
    """远程字段映射配置"""
    enabled: bool = True
    text_field: str = "title"
    category_field: str = "body"
    category_length: int = 20

@dataclass
class RemoteConfig:
    """远程服务配置"""
    backend: str = "http"  # http 或 memory
    url: str = "https://jsonplaceholder.typicode.com/posts"
    timeout_seconds: float = 5.0
    mapping: MappingConfig = field(default_factory=MappingConfig)

@dataclass
class SyncConfig:
    """同步配置"""
    enabled: bool = True
    interval_ms: int = 30000
    conflict_policy: str = "server_wins"  # server_wins / interactive / local_wins
    eager_push: bool = True
    cycle_timeout_seconds: float = 10.0

@dataclass
class ApiConfig:
    """API配置"""
    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 8000
    reload: bool = False


# ============================================================================
# 统一配置管理器
# ============================================================================

class UnifiedConfigManager:
    """统一配置管理器 - 整合底层操作和应用层抽象"""

    def __init__(self, config_dir: Optional[str] = None):
        self._config_dir = Path(config_dir) if config_dir else CONFIG_DIR
        self._config_data: Dict[str, Any] = {}

        # 类型化配置缓存
        self._typed_cache: Dict[str, Any] = {}

        # 初始化配置
        self._load_config()

    def _load_config(self) -> None:
        """加载配置目录下的全部 json 文件并合并"""
        merged_config = {}
        config_logger.info(f"Loading configuration from directory: {self._config_dir}")

        if not self._config_dir.is_dir():
            raise ConfigurationError(
                f"Configuration path is not a directory: {self._config_dir}",
                ErrorCodes.CONFIG_NOT_FOUND
            )

        # 按文件名排序加载，确保加载顺序一致
        config_files = sorted(self._config_dir.glob('*.json'))
        if not config_files:
            raise ConfigurationError(
                f"No configuration files (.json) found in: {self._config_dir}",
                ErrorCodes.CONFIG_NOT_FOUND
            )

        for config_file in config_files:
            if config_file.name == "config.merged.json":
                continue
            try:
                with open(config_file, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(
                    f"Invalid JSON in configuration file {config_file.name}: {e}",
                    ErrorCodes.CONFIG_INVALID_FORMAT
                ) from e
            except OSError as e:
                raise ConfigurationError(
                    f"Failed to read configuration file {config_file.name}: {e}",
                    ErrorCodes.CONFIG_LOAD_ERROR
                ) from e

            if not isinstance(data, dict):
                raise ConfigurationError(
                    f"Configuration file {config_file.name} must contain a JSON object",
                    ErrorCodes.CONFIG_INVALID_FORMAT
                )
            merged_config.update(data)
            config_logger.debug(f"Loaded and merged: {config_file.name}")

        self._config_data = merged_config
        config_logger.info(f"Configuration loaded and merged from {len(config_files)} files.")
        self._typed_cache.clear()

    # ========================================================================
    # 底层访问方法
    # ========================================================================

    def get_nested(self, path: str, default: Optional[T] = None) -> Optional[T]:
        """获取嵌套配置值，支持点分隔路径"""
        keys = path.split('.')
        current = self._config_data

        for key in keys:
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default

        return current

    def set_nested(self, path: str, value: Any) -> None:
        """设置嵌套配置值"""
        keys = path.split('.')
        current = self._config_data

        for key in keys[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value
        self._typed_cache.clear()

    # ========================================================================
    # 类型安全访问方法
    # ========================================================================

    def get_logging_config(self) -> LoggingConfig:
        """获取日志配置（类型安全）"""
        if 'logging_config' not in self._typed_cache:
            try:
                logging_data = self.get_nested('logging_config', {})

                file_data = logging_data.get('file_config', {})
                file_config = FileLoggingConfig(
                    enabled=file_data.get('enabled', True),
                    directory=file_data.get('directory', 'log'),
                    filename=file_data.get('filename', 'sys.log'),
                    rotation=file_data.get('rotation')
                )

                console_data = logging_data.get('console_config', {})
                console_config = ConsoleLoggingConfig(
                    enabled=console_data.get('enabled', True)
                )

                modules = {}
                for module_name, module_data in logging_data.get('modules', {}).items():
                    modules[module_name] = LoggingModuleConfig(
                        level=module_data.get('level', 'INFO'),
                        enabled=module_data.get('enabled', True)
                    )

                self._typed_cache['logging_config'] = LoggingConfig(
                    level=logging_data.get('level', 'INFO'),
                    format=logging_data.get('format', LoggingConfig.format),
                    date_format=logging_data.get('date_format', LoggingConfig.date_format),
                    file_config=file_config,
                    console_config=console_config,
                    modules=modules
                )
            except Exception as e:
                config_logger.error(f"Failed to parse logging config: {e}")
                self._typed_cache['logging_config'] = LoggingConfig()

        return self._typed_cache['logging_config']

    def get_storage_config(self) -> StorageConfig:
        """获取本地存储配置（类型安全）"""
        if 'storage_config' not in self._typed_cache:
            try:
                storage_data = self.get_nested('storage_config', {})
                self._typed_cache['storage_config'] = StorageConfig(
                    backend=storage_data.get('backend', 'sqlite'),
                    db_path=storage_data.get('db_path', 'data/quotes.db')
                )
            except Exception as e:
                config_logger.error(f"Failed to parse storage config: {e}")
                self._typed_cache['storage_config'] = StorageConfig()

        return self._typed_cache['storage_config']

    def get_remote_config(self) -> RemoteConfig:
        """获取远程服务配置（类型安全）"""
        if 'remote_config' not in self._typed_cache:
            try:
                remote_data = self.get_nested('remote_config', {})
                mapping_data = remote_data.get('mapping', {})
                mapping = MappingConfig(
                    enabled=mapping_data.get('enabled', True),
                    text_field=mapping_data.get('text_field', 'title'),
                    category_field=mapping_data.get('category_field', 'body'),
                    category_length=int(mapping_data.get('category_length', 20))
                )
                self._typed_cache['remote_config'] = RemoteConfig(
                    backend=remote_data.get('backend', 'http'),
                    url=remote_data.get('url', RemoteConfig.url),
                    timeout_seconds=float(remote_data.get('timeout_seconds', 5.0)),
                    mapping=mapping
                )
            except Exception as e:
                config_logger.error(f"Failed to parse remote config: {e}")
                self._typed_cache['remote_config'] = RemoteConfig()

        return self._typed_cache['remote_config']

    def get_sync_config(self) -> SyncConfig:
        """获取同步配置（类型安全）"""
        if 'sync_config' not in self._typed_cache:
            try:
                sync_data = self.get_nested('sync_config', {})
                self._typed_cache['sync_config'] = SyncConfig(
                    enabled=sync_data.get('enabled', True),
                    interval_ms=int(sync_data.get('interval_ms', 30000)),
                    conflict_policy=sync_data.get('conflict_policy', 'server_wins'),
                    eager_push=sync_data.get('eager_push', True),
                    cycle_timeout_seconds=float(sync_data.get('cycle_timeout_seconds', 10.0))
                )
            except Exception as e:
                config_logger.error(f"Failed to parse sync config: {e}")
                self._typed_cache['sync_config'] = SyncConfig()

        return self._typed_cache['sync_config']

    def get_api_config(self) -> ApiConfig:
        """获取API配置（类型安全）"""
        if 'api_config' not in self._typed_cache:
            try:
                api_data = self.get_nested('api_config', {})
                self._typed_cache['api_config'] = ApiConfig(
                    enabled=api_data.get('enabled', True),
                    host=api_data.get('host', '127.0.0.1'),
                    port=int(api_data.get('port', 8000)),
                    reload=api_data.get('reload', False)
                )
            except Exception as e:
                config_logger.error(f"Failed to parse api config: {e}")
                self._typed_cache['api_config'] = ApiConfig()

        return self._typed_cache['api_config']



# ============================================================================
# 全局单例实例
# ============================================================================

config_manager = UnifiedConfigManager()
