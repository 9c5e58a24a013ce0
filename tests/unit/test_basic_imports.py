"""
Basic import tests to verify module structure
"""


def test_basic_imports():
    """Test basic module imports"""
    # utils
    from utils.config_manager import UnifiedConfigManager
    from utils.logging_manager import LoggingManager
    from utils.validation import QuoteValidator

    # database
    from database import QuoteRepository, SQLiteKeyValueStore, MemoryKeyValueStore

    # data sources
    from data_sources import HttpRemoteGateway, InMemoryRemoteGateway, create_gateway

    # sync / scheduler
    from sync import Reconciler, SyncOrchestrator
    from scheduler import SyncScheduler

    # API
    from api.app import create_app

    # main
    from main import QuoteSyncApp
    from quote_manager import QuoteManager

    assert True  # All imports succeeded


def test_class_instantiation():
    """Test basic class instantiation"""
    from database import QuoteRepository, MemoryKeyValueStore
    from sync import Reconciler

    repo = QuoteRepository(MemoryKeyValueStore())
    assert len(repo) == 3

    reconciler = Reconciler()
    assert reconciler.policy.name == "server_wins"
