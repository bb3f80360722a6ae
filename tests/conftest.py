"""
Shared fixtures: a throwaway SQLite database per test.
"""

from __future__ import annotations

import os

# Must be set before tenant_auth.core.config is imported anywhere.
os.environ.setdefault("TA_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("TA_SECRET_KEY", "test-secret-key-0123456789abcdef0123456789")
os.environ.setdefault("TA_BCRYPT_ROUNDS", "4")
os.environ.setdefault("TA_LOG_FORMAT", "text")

import pytest
from sqlalchemy import func
from sqlmodel import select

from tenant_auth.core.database import build_engine, build_session_factory, init_db
from tenant_auth.services.registration import register

PASSWORD = "Secret123!"


@pytest.fixture
async def engine(tmp_path):
    eng = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'auth.db'}", echo=False)
    await init_db(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def count_rows(session_factory):
    """Count rows of a model in a fresh session."""

    async def _count(model) -> int:
        async with session_factory() as session:
            result = await session.execute(select(func.count()).select_from(model))
            return result.scalar_one()

    return _count


@pytest.fixture
def register_user(session_factory):
    """Register a user through the real registration path and return the result."""

    async def _register(email="ada@example.com", password=PASSWORD, name="Ada", account_name=None):
        async with session_factory() as session:
            result = await register(session, email, password, name, account_name)
        assert result.success, result.errors
        return result

    return _register
