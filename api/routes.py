"""
API routes for the quote sync system.
Defines the REST endpoints over the QuoteManager.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Depends, Request
from fastapi.responses import Response

from quote_manager import QuoteManager
from utils import api_logger, QuoteSyncError, create_error_response, EXPORT_FILENAME
from .models import (
    QuoteModel, QuoteCreateRequest, QuoteListResponse, ImportResponse, CategoriesResponse,
    FilterRequest, FilterResponse, SyncReportResponse, SyncStatusResponse
)

router = APIRouter()


def get_quote_manager(request: Request) -> QuoteManager:
    """从应用状态中获取 QuoteManager"""
    manager = getattr(request.app.state, 'quote_manager', None)
    if manager is None:
        raise HTTPException(status_code=503, detail="Quote manager is not initialized")
    return manager


def _bad_request(error: QuoteSyncError) -> HTTPException:
    api_logger.warning(f"[API] Request rejected: {error}")
    return HTTPException(status_code=400, detail=create_error_response(error))


# Quotes
@router.get("/quotes", response_model=QuoteListResponse, tags=["Quotes"])
async def list_quotes(
    category: Optional[str] = Query(None, description="分类，all 表示全部；缺省时使用上次选择的分类"),
    manager: QuoteManager = Depends(get_quote_manager)
):
    """获取语录列表"""
    selected = category if category is not None else manager.current_filter
    quotes = manager.list_quotes(selected)
    return QuoteListResponse(
        category=selected,
        total=len(quotes),
        quotes=[QuoteModel(**q.to_dict()) for q in quotes]
    )


@router.post("/quotes", response_model=QuoteModel, status_code=201, tags=["Quotes"])
async def add_quote(body: QuoteCreateRequest, manager: QuoteManager = Depends(get_quote_manager)):
    """新增语录"""
    try:
        quote = await manager.add_quote(body.text, body.category)
    except QuoteSyncError as e:
        raise _bad_request(e)
    return QuoteModel(**quote.to_dict())


@router.post("/quotes/import", response_model=ImportResponse, tags=["Quotes"])
async def import_quotes(request: Request, manager: QuoteManager = Depends(get_quote_manager)):
    """导入语录，请求体为 JSON 数组"""
    raw = (await request.body()).decode('utf-8', errors='replace')
    try:
        imported = await manager.import_quotes(raw)
    except QuoteSyncError as e:
        raise _bad_request(e)
    return ImportResponse(imported=len(imported), total=len(manager.repository))


@router.get("/quotes/export", tags=["Quotes"])
async def export_quotes(manager: QuoteManager = Depends(get_quote_manager)):
    """导出全部语录为 JSON 文件"""
    return Response(
        content=manager.export_json(),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'}
    )


@router.get("/quotes/random", response_model=QuoteModel, tags=["Quotes"])
async def random_quote(
    category: Optional[str] = Query(None, description="分类；缺省时使用上次选择的分类"),
    manager: QuoteManager = Depends(get_quote_manager)
):
    """随机获取一条语录"""
    quote = manager.random_quote(category)
    if quote is None:
        raise HTTPException(status_code=404, detail="No quotes available for this category.")
    return QuoteModel(**quote.to_dict())


# Categories & filter
@router.get("/categories", response_model=CategoriesResponse, tags=["Categories"])
async def get_categories(manager: QuoteManager = Depends(get_quote_manager)):
    """获取分类列表"""
    return CategoriesResponse(categories=manager.categories())


@router.get("/filter", response_model=FilterResponse, tags=["Categories"])
async def get_filter(manager: QuoteManager = Depends(get_quote_manager)):
    """获取当前过滤分类"""
    return FilterResponse(category=manager.current_filter, total=len(manager.list_quotes()))


@router.put("/filter", response_model=FilterResponse, tags=["Categories"])
async def set_filter(body: FilterRequest, manager: QuoteManager = Depends(get_quote_manager)):
    """切换过滤分类"""
    quotes = manager.select_filter(body.category)
    return FilterResponse(category=body.category, total=len(quotes))


# Sync
@router.post("/sync", response_model=SyncReportResponse, tags=["Sync"])
async def trigger_sync(manager: QuoteManager = Depends(get_quote_manager)):
    """立即执行一次同步"""
    report = await manager.sync_now()
    return SyncReportResponse(
        **report.to_dict(),
        message=report.merge.message if report.changed else None
    )


@router.get("/sync/status", response_model=SyncStatusResponse, tags=["Sync"])
async def get_sync_status(manager: QuoteManager = Depends(get_quote_manager)):
    """获取同步状态"""
    return SyncStatusResponse(**manager.status())
