"""
统一异常定义模块
提供语录同步系统的异常类和错误处理机制
"""

from typing import Optional, Dict, Any


class QuoteSyncError(Exception):
    """语录系统基础异常类"""

    def __init__(self, message: str, error_code: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class ConfigurationError(QuoteSyncError):
    """配置相关错误"""
    pass


class ValidationError(QuoteSyncError):
    """语录字段验证错误（新增语录时字段为空或类型错误）"""
    pass


class EmptyImportError(QuoteSyncError):
    """批量导入时没有任何有效记录"""
    pass


class MalformedImportError(QuoteSyncError):
    """导入文件顶层不是 JSON 数组"""
    pass


class TransportError(QuoteSyncError):
    """远程拉取/推送失败，只在网关边界内部使用，不向外传播"""
    pass


class StorageError(QuoteSyncError):
    """本地持久化失败"""
    pass


# 错误代码常量
class ErrorCodes:
    """错误代码常量"""

    # 配置错误
    CONFIG_NOT_FOUND = "CONFIG_001"
    CONFIG_INVALID_FORMAT = "CONFIG_002"
    CONFIG_LOAD_ERROR = "CONFIG_003"

    # 验证错误
    VALIDATION_MISSING_TEXT = "VAL_001"
    VALIDATION_MISSING_CATEGORY = "VAL_002"

    # 导入错误
    IMPORT_EMPTY = "IMP_001"
    IMPORT_NOT_ARRAY = "IMP_002"
    IMPORT_INVALID_JSON = "IMP_003"

    # 网络错误
    NETWORK_TIMEOUT = "NET_001"
    NETWORK_CONNECTION_ERROR = "NET_002"
    NETWORK_BAD_STATUS = "NET_003"
    NETWORK_MALFORMED_PAYLOAD = "NET_004"

    # 存储错误
    STORAGE_WRITE_FAILED = "STO_001"
    STORAGE_READ_FAILED = "STO_002"


def create_error_response(error: QuoteSyncError,
                         include_traceback: bool = False) -> Dict[str, Any]:
    """创建标准化的错误响应"""
    response = {
        "error": True,
        "error_code": error.error_code,
        "message": error.message,
        "context": error.context
    }

    if include_traceback:
        import traceback
        response["traceback"] = traceback.format_exc()

    return response
