from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from newsletter_api.adapters.clock import SystemClock
from newsletter_api.adapters.dev_email import DevEmailAdapter
from newsletter_api.adapters.sqlite.migrator import SQLiteMigrator
from newsletter_api.adapters.sqlite_db import SQLiteConnectionPool, SQLiteSubscriptionStore
from newsletter_api.api.deps import (
    get_clock,
    get_email_sender,
    get_settings,
    get_subscription_store,
)
from newsletter_api.api.main import app
from newsletter_api.settings import Settings

PROJECT_ROOT = Path(__file__).resolve().parents[1]
MIGRATIONS_DIR = str(PROJECT_ROOT / "migrations")
CONFIG_DIR = PROJECT_ROOT / "configuration"


@pytest.fixture
def migrations_dir() -> str:
    return MIGRATIONS_DIR


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """Fresh database with every migration applied."""
    path = str(tmp_path / "newsletter.db")
    SQLiteMigrator(path, MIGRATIONS_DIR).run_migrations()
    return path


@pytest.fixture
def pool(db_path: str) -> Generator[SQLiteConnectionPool, None, None]:
    pool = SQLiteConnectionPool(db_path, pool_size=3, timeout_seconds=0.5)
    yield pool
    pool.close()


@pytest.fixture
def store(pool: SQLiteConnectionPool) -> SQLiteSubscriptionStore:
    return SQLiteSubscriptionStore(pool)


@pytest.fixture
def settings(db_path: str) -> Settings:
    return Settings.model_validate(
        {
            "application": {"host": "127.0.0.1", "port": 8000, "base_url": "http://127.0.0.1:8000"},
            "database": {"path": db_path, "migrations_dir": MIGRATIONS_DIR},
            "email_client": {
                "enabled": False,
                "base_url": "http://localhost",
                "sender_email": "newsletter@gmail.com",
                "authorization_token": "test-token",
            },
        }
    )


@pytest.fixture
def email_adapter() -> DevEmailAdapter:
    return DevEmailAdapter()


@pytest.fixture
def client(
    settings: Settings,
    store: SQLiteSubscriptionStore,
    email_adapter: DevEmailAdapter,
) -> Generator[TestClient, None, None]:
    """Test client wired to the temporary database and the dev email adapter."""
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_subscription_store] = lambda: store
    app.dependency_overrides[get_email_sender] = lambda: email_adapter
    app.dependency_overrides[get_clock] = SystemClock

    yield TestClient(app)

    app.dependency_overrides.clear()
