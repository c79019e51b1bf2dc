"""Shared fixtures: an in-memory SQLite database per test and a clean pattern cache.

Every test gets its own aiosqlite engine (``StaticPool`` keeps the single
in-memory connection alive across sessions) with the schema created from the
ORM metadata. The module-level pattern cache is keyed by ``(bank, workspace)``
only, so it is reset around each test to keep databases from leaking rules
into one another.
"""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from compasso.application.categorization.matcher import pattern_cache
from compasso.infrastructure.database.connection import init_models
from compasso.infrastructure.database.repositories.finance import (
    CategoryPatternRepository,
    CategoryRepository,
    LedgerRepository,
    RecurringPatternRepository,
    TransactionRepository,
)


@pytest.fixture(autouse=True)
def _fresh_pattern_cache():
    pattern_cache.invalidate()
    yield
    pattern_cache.invalidate()


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_models(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
async def session(engine):
    factory = async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)
    async with factory() as s:
        yield s


@pytest.fixture
def repos(session):
    return {
        "category_repo": CategoryRepository(session),
        "pattern_repo": CategoryPatternRepository(session),
        "ledger_repo": LedgerRepository(session),
        "tx_repo": TransactionRepository(session),
        "recurring_repo": RecurringPatternRepository(session),
    }
