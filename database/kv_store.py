"""
Key-value stores for the quote sync system.

The repository and session state only need ``get``/``set`` on string keys
with opaque string values. Two backends are provided:

* ``MemoryKeyValueStore`` - process/session scoped, used for the
  "last shown quote" and in tests.
* ``SQLiteKeyValueStore`` - durable, backed by SQLAlchemy on SQLite.
"""

import os
from abc import ABC, abstractmethod
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from utils import storage_logger, StorageError, ConfigurationError, ErrorCodes, StorageConfig, BASE_DIR
from .connection import DatabaseManager
from .models import KeyValueEntryDB


class KeyValueStore(ABC):
    """同步键值存储接口"""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """读取值，不存在时返回 None"""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """写入值"""

    def close(self) -> None:
        pass


class MemoryKeyValueStore(KeyValueStore):
    """内存键值存储"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StorageError(f"Value for '{key}' must be a string", ErrorCodes.STORAGE_WRITE_FAILED)
        self._data[key] = value

    def clear(self) -> None:
        self._data.clear()


class SQLiteKeyValueStore(KeyValueStore):
    """基于 SQLite 的持久化键值存储"""

    def __init__(self, db_path: str):
        self.db = DatabaseManager(db_path)
        self.db.initialize()

    def get(self, key: str) -> Optional[str]:
        try:
            with self.db.get_session() as session:
                entry = session.get(KeyValueEntryDB, key)
                return entry.value if entry is not None else None
        except SQLAlchemyError as e:
            storage_logger.error(f"[KVStore] Failed to read key '{key}': {e}")
            raise StorageError(
                f"Failed to read key '{key}': {e}",
                ErrorCodes.STORAGE_READ_FAILED,
                {'key': key}
            ) from e

    def set(self, key: str, value: str) -> None:
        try:
            with self.db.get_session() as session:
                entry = session.get(KeyValueEntryDB, key)
                if entry is None:
                    session.add(KeyValueEntryDB(key=key, value=value))
                else:
                    entry.value = value
                session.commit()
            storage_logger.debug(f"[KVStore] Stored key '{key}' ({len(value)} chars)")
        except SQLAlchemyError as e:
            storage_logger.error(f"[KVStore] Failed to write key '{key}': {e}")
            raise StorageError(
                f"Failed to write key '{key}': {e}",
                ErrorCodes.STORAGE_WRITE_FAILED,
                {'key': key}
            ) from e

    def close(self) -> None:
        self.db.close()


def create_store(storage_config: StorageConfig) -> KeyValueStore:
    """根据配置创建持久化存储"""
    backend = storage_config.backend.lower()
    if backend == "memory":
        return MemoryKeyValueStore()
    if backend == "sqlite":
        db_path = storage_config.db_path
        # 相对路径相对于项目根目录
        if db_path != ":memory:" and not os.path.isabs(db_path):
            db_path = str(BASE_DIR / db_path)
        return SQLiteKeyValueStore(db_path)
    raise ConfigurationError(f"Unsupported storage backend: {storage_config.backend}")
