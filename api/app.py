"""
FastAPI application for the quote sync system.
Main application entry point for the API server.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

import uvicorn
from fastapi import FastAPI

from utils import api_logger, config_manager
from quote_manager import QuoteManager

from .routes import router
from .middleware import setup_middleware

API_VERSION = "1.0.0"


def create_app(manager: Optional[QuoteManager] = None, start_scheduler: bool = True) -> FastAPI:
    """创建 FastAPI 应用；未传入 manager 时在启动阶段按配置创建"""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """应用生命周期管理"""
        api_logger.info("[API] Starting Quote Sync API...")

        if app.state.quote_manager is None:
            app.state.quote_manager = QuoteManager()
        await app.state.quote_manager.initialize(start_scheduler=start_scheduler)
        api_logger.info("[API] QuoteManager initialized successfully")

        yield

        api_logger.info("[API] Shutting down Quote Sync API...")
        try:
            await app.state.quote_manager.close()
        except Exception as e:
            api_logger.error(f"[API] Error during shutdown: {e}")

    app = FastAPI(
        title="Quote Sync API",
        description="Local-first quote manager with periodic server sync",
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan
    )
    app.state.quote_manager = manager

    setup_middleware(app)
    app.include_router(router, prefix="/api/v1")

    @app.get("/")
    async def root():
        """根路径"""
        return {
            "message": "Quote Sync API",
            "version": API_VERSION,
            "docs": "/docs",
            "status": "running"
        }

    @app.get("/health")
    async def health_check():
        """健康检查端点"""
        return {
            "status": "healthy" if app.state.quote_manager is not None else "starting",
            "timestamp": datetime.now().isoformat(),
            "version": API_VERSION
        }

    return app


def run_server(manager: Optional[QuoteManager] = None):
    """按 api_config 启动 uvicorn"""
    api_config = config_manager.get_api_config()
    api_logger.info(f"[API] Starting server on {api_config.host}:{api_config.port}")

    # 开发模式
    if api_config.reload:
        uvicorn.run(
            "api.app:create_app",
            factory=True,
            host=api_config.host,
            port=api_config.port,
            reload=True,
            log_level="info"
        )
    # 生产模式
    else:
        uvicorn.run(
            create_app(manager),
            host=api_config.host,
            port=api_config.port,
            log_level="info"
        )


if __name__ == "__main__":
    run_server()
