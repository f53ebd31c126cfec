# tests/conftest.py
import pytest

from flashcards.config import StoreConfig

STORE_ENV_VARS = (
    "DATABASE_URL",
    "DB_DRIVER",
    "DB_HOST",
    "DB_PORT",
    "DB_NAME",
    "DB_USER",
    "DB_PASSWORD",
    "FLASHCARDS_COLLECTION",
    "TEARDOWN_TIMEOUT",
    "CREATE_COLLECTION",
)


@pytest.fixture(autouse=True)
def clean_store_env(monkeypatch):
    for name in STORE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def db_url(tmp_path):
    """URL of a disposable SQLite database file."""
    return f"sqlite:///{tmp_path / 'flashcards.db'}"


@pytest.fixture
def sqlite_config(db_url):
    return StoreConfig(database_url=db_url, create_collection=True, teardown_timeout=2.0)
