import os
from collections.abc import Generator
from typing import Any

import psycopg
import pytest

from pii_agent.config.settings import Settings
from pii_agent.database.connection import build_conninfo, close_pool, get_connection, init_pool
from pii_agent.database.repositories.preferences_repository import PreferencesRepository


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "pii_agent_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        with psycopg.connect(build_conninfo(test_settings), connect_timeout=3):
            pass
        init_pool(test_settings)
    except Exception as e:
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env to point at a scratch database"
        )
    try:
        PreferencesRepository().ensure_schema()
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def preference_keys(db_conn: psycopg.Connection[Any]) -> Generator[list[str], None, None]:
    keys: list[str] = []
    yield keys
    if not keys:
        return
    with db_conn.cursor() as cur:
        for key in keys:
            cur.execute("DELETE FROM agent_preferences WHERE key = %s", (key,))
    db_conn.commit()
