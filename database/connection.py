"""
Database connection management.
Provides a synchronous SQLite engine for the key-value store.
"""

import os
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from utils import storage_logger


class DatabaseManager:
    """数据库管理器"""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self.sync_engine = None
        self.SessionLocal: Optional[sessionmaker] = None

    @property
    def url(self) -> str:
        if self.db_path == ":memory:":
            return "sqlite://"
        return f"sqlite:///{self.db_path}"

    def initialize(self):
        """初始化数据库连接并建表"""
        try:
            if self.db_path != ":memory:":
                # 确保数据目录存在
                directory = os.path.dirname(self.db_path)
                if directory:
                    os.makedirs(directory, exist_ok=True)
            storage_logger.info(f"[Database] Using database path: {self.db_path}")

            self.sync_engine = create_engine(
                self.url,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False}
            )

            self.SessionLocal = sessionmaker(
                autocommit=False,
                autoflush=False,
                bind=self.sync_engine
            )

            self.create_tables()
            storage_logger.info("[Database] Database connection initialized successfully")

        except Exception as e:
            storage_logger.error(f"[Database] Failed to initialize database: {e}")
            raise

    def create_tables(self):
        """创建数据库表"""
        from .models import Base

        Base.metadata.create_all(bind=self.sync_engine)
        storage_logger.debug("[Database] Database tables created successfully")

    def get_session(self) -> Session:
        """获取同步数据库会话"""
        if not self.SessionLocal:
            raise RuntimeError("Database not initialized")
        return self.SessionLocal()

    def close(self):
        """关闭数据库连接"""
        try:
            if self.sync_engine:
                self.sync_engine.dispose()
            storage_logger.info("[Database] Database connections closed")
        except Exception as e:
            storage_logger.error(f"[Database] Error closing database connections: {e}")
