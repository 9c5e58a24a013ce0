"""
API data models for the quote sync system.
Pydantic models for request/response validation.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class QuoteModel(BaseModel):
    """语录"""
    text: str = Field(..., description="语录内容")
    category: str = Field(..., description="分类")


class QuoteCreateRequest(BaseModel):
    """新增语录请求，首尾空白会被去除"""
    text: str = Field(..., description="语录内容")
    category: str = Field(..., description="分类")


class QuoteListResponse(BaseModel):
    """语录列表响应"""
    category: str = Field(..., description="过滤分类，all 表示全部")
    total: int = Field(..., description="返回数量")
    quotes: List[QuoteModel] = Field(default_factory=list)


class ImportResponse(BaseModel):
    """导入结果"""
    message: str = "Quotes imported successfully!"
    imported: int = Field(..., description="本次导入数量")
    total: int = Field(..., description="导入后语录总数")


class CategoriesResponse(BaseModel):
    """分类列表，按首次出现顺序"""
    categories: List[str] = Field(default_factory=list)


class FilterRequest(BaseModel):
    """切换过滤分类"""
    category: str = Field(..., min_length=1, description="分类名或 all")


class FilterResponse(BaseModel):
    """当前过滤分类"""
    category: str
    total: int = Field(..., description="该分类下的语录数量")


class SyncReportResponse(BaseModel):
    """单次同步周期结果"""
    skipped: bool
    fetched_ok: bool
    remote_count: int
    changed: bool
    added: int = 0
    updated: int = 0
    conflicts: int = 0
    pushed_ok: bool
    error: Optional[str] = None
    started_at: Optional[str] = None
    duration: float = 0.0
    message: Optional[str] = Field(None, description="同步通知消息，仅在本地发生变化时存在")


class SyncStatusResponse(BaseModel):
    """同步状态"""
    quotes: int
    categories: int
    filter: str
    last_notification: Optional[str] = None
    sync: Dict[str, Any]
    scheduler: Dict[str, Any]
