"""
工具模块包
提供项目所需的通用工具和功能
"""

# 导出核心工具
from .config_manager import (
    config_manager,
    UnifiedConfigManager,
    LoggingConfig,
    StorageConfig,
    RemoteConfig,
    MappingConfig,
    SyncConfig,
    ApiConfig,
)
from .exceptions import (
    QuoteSyncError,
    ConfigurationError,
    ValidationError,
    EmptyImportError,
    MalformedImportError,
    TransportError,
    StorageError,
    ErrorCodes,
    create_error_response,
)
from .logging_manager import (
    LogContext,
    log_execution,
    MetricsLogger,
    logging_manager,
    logger,
    sync_metrics,
    remote_metrics,
    LogConfig,
    initialize_logging,
    ModuleLoggers,
    repo_logger,
    storage_logger,
    remote_logger,
    reconciler_logger,
    sync_logger,
    scheduler_logger,
    api_logger,
    config_logger,
    main_logger,
)
from .validation import QuoteValidator
from .path_utils import BASE_DIR, CONFIG_DIR, LOG_DIR, EXPORT_FILENAME

__version__ = "1.0.0"

__all__ = [
    # 配置管理
    "config_manager",
    "UnifiedConfigManager",
    "LoggingConfig",
    "StorageConfig",
    "RemoteConfig",
    "MappingConfig",
    "SyncConfig",
    "ApiConfig",

    # 异常处理
    "QuoteSyncError",
    "ConfigurationError",
    "ValidationError",
    "EmptyImportError",
    "MalformedImportError",
    "TransportError",
    "StorageError",
    "ErrorCodes",
    "create_error_response",

    # 日志工具
    "LogContext",
    "log_execution",
    "MetricsLogger",
    "logging_manager",
    "logger",
    "sync_metrics",
    "remote_metrics",
    "LogConfig",
    "initialize_logging",
    "ModuleLoggers",
    "repo_logger",
    "storage_logger",
    "remote_logger",
    "reconciler_logger",
    "sync_logger",
    "scheduler_logger",
    "api_logger",
    "config_logger",
    "main_logger",

    # 验证工具
    "QuoteValidator",

    # 路径工具
    "BASE_DIR",
    "CONFIG_DIR",
    "LOG_DIR",
    "EXPORT_FILENAME",
]
