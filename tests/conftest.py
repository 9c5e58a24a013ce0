"""
pytest configuration and fixtures for Quote Sync System tests
"""

import json
import shutil
import sys
import tempfile
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from database import MemoryKeyValueStore, QuoteRepository, Quote
from data_sources import InMemoryRemoteGateway
from utils.config_manager import UnifiedConfigManager


@pytest.fixture(scope="session")
def test_config():
    """Test configuration fixture"""
    return {
        "logging_config": {
            "level": "WARNING",  # Reduce noise in tests
            "file_config": {"enabled": False},
            "console_config": {"enabled": False}
        },
        "storage_config": {
            "backend": "memory",
            "db_path": ":memory:"
        },
        "remote_config": {
            "backend": "memory",
            "url": "http://quotes.test/posts",
            "timeout_seconds": 1,
            "mapping": {"enabled": False}
        },
        "sync_config": {
            "enabled": True,
            "interval_ms": 30000,
            "conflict_policy": "server_wins",
            "eager_push": True,
            "cycle_timeout_seconds": 2
        },
        "api_config": {
            "host": "127.0.0.1",
            "port": 8001,  # Different port for tests
            "cors_origins": ["http://localhost:3000"]
        }
    }


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files"""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path)


@pytest.fixture
def config_dir(test_config, temp_dir):
    """Configuration directory with a single config.json"""
    path = temp_dir / "config"
    path.mkdir()
    with open(path / "config.json", 'w', encoding='utf-8') as f:
        json.dump(test_config, f)
    return path


@pytest.fixture
def test_config_manager(config_dir):
    """Configuration manager backed by the test configuration"""
    return UnifiedConfigManager(str(config_dir))


@pytest.fixture
def memory_store():
    return MemoryKeyValueStore()


@pytest.fixture
def repository(memory_store):
    """Empty repository (no default seed quotes)"""
    return QuoteRepository(memory_store, defaults=())


@pytest.fixture
def seeded_repository(memory_store):
    """Repository with three local quotes"""
    repo = QuoteRepository(memory_store, defaults=())
    repo.import_many([
        {"text": "Stay hungry, stay foolish.", "category": "Life"},
        {"text": "Simplicity is the ultimate sophistication.", "category": "Design"},
        {"text": "Well begun is half done.", "category": "Motivation"},
    ])
    return repo


@pytest.fixture
def memory_gateway():
    """In-memory remote gateway, records read as {text, category}"""
    return InMemoryRemoteGateway()


@pytest.fixture
def quote_manager(test_config_manager, memory_store, memory_gateway):
    """QuoteManager wired to in-memory store and gateway"""
    from quote_manager import QuoteManager
    return QuoteManager(
        config=test_config_manager,
        store=memory_store,
        session_store=MemoryKeyValueStore(),
        gateway=memory_gateway,
    )


@pytest.fixture
def mock_logger():
    """Mock logger for testing"""
    mock = Mock()
    mock.debug = Mock()
    mock.info = Mock()
    mock.warning = Mock()
    mock.error = Mock()
    return mock


@pytest.fixture
def make_quote():
    """Factory to create test quotes"""
    def _make_quote(text="Be yourself; everyone else is already taken.", category="Life"):
        return Quote(text=text, category=category)
    return _make_quote


# Pytest configuration
def pytest_configure(config):
    """Configure pytest"""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
