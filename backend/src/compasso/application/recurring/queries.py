"""Recurring pattern read-side queries."""
from __future__ import annotations

from compasso.application.errors import NotFoundError
from compasso.domain.finance.entities import RecurringPattern, Transaction
from compasso.domain.finance.repositories import (
    IRecurringPatternRepository,
    ITransactionRepository,
    RecurringSummary,
)


async def list_recurring_patterns(
    *, workspace_id: int, repo: IRecurringPatternRepository
) -> list[RecurringPattern]:
    return await repo.list_by_workspace(workspace_id)


async def get_pattern_transactions(
    *,
    pattern_id: int,
    workspace_id: int,
    recurring_repo: IRecurringPatternRepository,
    tx_repo: ITransactionRepository,
) -> list[Transaction]:
    if await recurring_repo.get_by_id(pattern_id, workspace_id) is None:
        raise NotFoundError(f"Recurring pattern {pattern_id} not found")
    return await tx_repo.list_by_recurring_pattern(pattern_id, workspace_id)


async def get_recurring_summary(
    *, workspace_id: int, repo: IRecurringPatternRepository
) -> RecurringSummary:
    return await repo.summary(workspace_id)
