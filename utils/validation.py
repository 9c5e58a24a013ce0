"""
Data validation utilities for the quote sync system.
Provides functions to validate quote candidates and import payloads.
"""

import json
from typing import Any, Iterable, List, Optional

from .exceptions import ErrorCodes, MalformedImportError, ValidationError
from .logging_manager import ModuleLoggers

validation_logger = ModuleLoggers.get_logger("Validation")


class QuoteValidator:
    """语录数据验证器"""

    @staticmethod
    def is_valid_field(value: Any) -> bool:
        """字段必须是非空字符串"""
        return isinstance(value, str) and value != ""

    @staticmethod
    def is_valid_candidate(candidate: Any) -> bool:
        """导入候选记录：必须是字典，且 text/category 都是非空字符串"""
        if not isinstance(candidate, dict):
            return False
        return (QuoteValidator.is_valid_field(candidate.get('text'))
                and QuoteValidator.is_valid_field(candidate.get('category')))

    @staticmethod
    def clean_field(value: Any, field_name: str) -> str:
        """用户输入：去除首尾空白后必须非空"""
        if not isinstance(value, str):
            raise ValidationError(
                f"Quote {field_name} must be a string",
                ErrorCodes.VALIDATION_MISSING_TEXT if field_name == 'text'
                else ErrorCodes.VALIDATION_MISSING_CATEGORY,
                {'field': field_name}
            )
        cleaned = value.strip()
        if not cleaned:
            raise ValidationError(
                f"Quote {field_name} is required",
                ErrorCodes.VALIDATION_MISSING_TEXT if field_name == 'text'
                else ErrorCodes.VALIDATION_MISSING_CATEGORY,
                {'field': field_name}
            )
        return cleaned

    @staticmethod
    def filter_candidates(candidates: Iterable[Any]) -> List[dict]:
        """筛选有效候选记录，保持原始顺序"""
        valid = []
        dropped = 0
        for candidate in candidates:
            if QuoteValidator.is_valid_candidate(candidate):
                valid.append(candidate)
            else:
                dropped += 1
        if dropped:
            validation_logger.info(f"Dropped {dropped} invalid import candidates")
        return valid

    @staticmethod
    def parse_import_payload(raw: str) -> List[Any]:
        """解析导入文件内容，顶层必须是数组"""
        try:
            payload = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise MalformedImportError(
                f"Import file is not valid JSON: {e}",
                ErrorCodes.IMPORT_INVALID_JSON
            ) from e

        if not isinstance(payload, list):
            raise MalformedImportError(
                "Invalid format: expected an array",
                ErrorCodes.IMPORT_NOT_ARRAY,
                {'type': type(payload).__name__}
            )
        return payload

    @staticmethod
    def parse_stored_quotes(raw: Optional[str]) -> Optional[List[dict]]:
        """解析本地存储中的语录数组，无法解析时返回 None"""
        if raw is None:
            return None
        try:
            payload = json.loads(raw)
        except ValueError:
            validation_logger.warning("Stored quotes payload is not valid JSON")
            return None
        if not isinstance(payload, list):
            validation_logger.warning("Stored quotes payload is not an array")
            return None
        return [item for item in payload if QuoteValidator.is_valid_candidate(item)]
