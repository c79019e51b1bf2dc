"""FastAPI dependency injection: DB session and CompassoFacade."""
from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from compasso.application.categorization.matcher import pattern_cache
from compasso.infrastructure.database.connection import PATTERNS_CHANGED, get_db_session
from compasso.interfaces.facade import CompassoFacade

# ── Session ───────────────────────────────────────────────────────────────────


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    session: AsyncSession | None = None
    try:
        async with get_db_session() as session:
            yield session
    finally:
        # after commit or rollback, drop rule sets other requests cached meanwhile
        if session is not None and session.info.pop(PATTERNS_CHANGED, False):
            pattern_cache.invalidate()


# ── Repositories (lazy imports to avoid circular) ────────────────────────────

def _build_facade(session: AsyncSession) -> CompassoFacade:
    from compasso.infrastructure.database.repositories.finance import (
        CategoryPatternRepository,
        CategoryRepository,
        LedgerRepository,
        RecurringPatternRepository,
        TransactionRepository,
    )

    return CompassoFacade(
        category_repo=CategoryRepository(session),
        pattern_repo=CategoryPatternRepository(session),
        ledger_repo=LedgerRepository(session),
        transaction_repo=TransactionRepository(session),
        recurring_repo=RecurringPatternRepository(session),
    )


async def get_facade(session: Annotated[AsyncSession, Depends(get_db)]) -> CompassoFacade:
    return _build_facade(session)


# Type aliases for cleaner signatures
Facade = Annotated[CompassoFacade, Depends(get_facade)]
# Workspace membership is checked upstream; the id arrives as a plain request field
WorkspaceId = Annotated[int, Query(gt=0)]
