"""
Database module for the quote sync system.
Provides key-value persistence and the quote repository.
"""

from .models import Quote, KeyValueEntryDB, DEFAULT_QUOTES
from .connection import DatabaseManager
from .kv_store import KeyValueStore, MemoryKeyValueStore, SQLiteKeyValueStore, create_store
from .repository import QuoteRepository, QUOTES_KEY, ALL_CATEGORIES, find_first_index

__all__ = [
    'Quote', 'KeyValueEntryDB', 'DEFAULT_QUOTES',
    'DatabaseManager',
    'KeyValueStore', 'MemoryKeyValueStore', 'SQLiteKeyValueStore', 'create_store',
    'QuoteRepository', 'QUOTES_KEY', 'ALL_CATEGORIES', 'find_first_index',
]
