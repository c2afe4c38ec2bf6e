import sys
import logging
from pathlib import Path

# Add backend directory to Python path FIRST
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Now import after path is set
import pytest
from sqlalchemy.orm import sessionmaker

from database import build_engine, dispose_engine
from init_db import init_database
from config.store_config import reset_settings
from dependencies import reset_repositories
from repositories.backing_store import InMemoryBackingStore
from repositories.sql_backing_store import SqlAlchemyBackingStore


@pytest.fixture
def engine():
    """Create in-memory database for testing"""
    engine = build_engine('sqlite:///:memory:')
    init_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def file_session_factory(tmp_path):
    """File-backed SQLite, for tests that use several connections at once"""
    engine = build_engine(f"sqlite:///{tmp_path / 'store.db'}")
    init_database(engine)
    yield sessionmaker(bind=engine, expire_on_commit=False)
    engine.dispose()


@pytest.fixture(params=['memory', 'sql'])
def backing_store(request, session_factory):
    """Each test using this runs once per backing store implementation"""
    if request.param == 'memory':
        return InMemoryBackingStore()
    return SqlAlchemyBackingStore(session_factory, 'customer')


@pytest.fixture
def app_env(tmp_path, monkeypatch):
    """Point settings at a scratch directory and drop cached singletons"""
    monkeypatch.setenv('TICKETING_DATA_DIR', str(tmp_path))
    monkeypatch.setenv('TICKETING_BACKEND', 'memory')
    monkeypatch.delenv('TICKETING_DATABASE_URL', raising=False)
    reset_settings()
    reset_repositories()
    dispose_engine()
    yield monkeypatch
    reset_repositories()
    reset_settings()
    dispose_engine()
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if getattr(handler, '_ticketing_handler', False):
            root_logger.removeHandler(handler)
            handler.close()
