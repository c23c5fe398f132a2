"""Unit tests for engine setup: no database required."""

import os

from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-unit-tests")

from diary_bridge.database import engine_options


def test_sqlite_shares_one_connection():
    opts = engine_options("sqlite+aiosqlite://")
    assert opts["poolclass"] is StaticPool
    assert opts["connect_args"] == {"check_same_thread": False}


def test_postgres_uses_pre_ping_pool():
    assert engine_options("postgresql+asyncpg://u:p@db/diary") == {"pool_pre_ping": True}
