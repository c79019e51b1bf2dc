"""Recurring pattern management commands."""
from __future__ import annotations

from decimal import Decimal

from compasso.application.errors import NotFoundError, ValidationError
from compasso.domain.finance.entities import RecurringFrequency, RecurringPattern
from compasso.domain.finance.repositories import IRecurringPatternRepository


async def _get_owned_pattern(
    pattern_id: int, workspace_id: int, repo: IRecurringPatternRepository
) -> RecurringPattern:
    pattern = await repo.get_by_id(pattern_id, workspace_id)
    if pattern is None:
        raise NotFoundError(f"Recurring pattern {pattern_id} not found")
    return pattern


async def update_recurring_pattern(
    *,
    pattern_id: int,
    workspace_id: int,
    description_pattern: str | None = None,
    frequency: str | None = None,
    avg_amount: Decimal | None = None,
    is_active: bool | None = None,
    repo: IRecurringPatternRepository,
) -> RecurringPattern:
    pattern = await _get_owned_pattern(pattern_id, workspace_id, repo)
    if description_pattern is not None:
        if not description_pattern.strip():
            raise ValidationError("Description pattern cannot be empty")
        pattern.description_pattern = description_pattern
    if frequency is not None:
        pattern.frequency = RecurringFrequency(frequency)
    if avg_amount is not None:
        if avg_amount <= 0:
            raise ValidationError("Average amount must be positive")
        pattern.avg_amount = avg_amount
    if is_active is not None:
        pattern.is_active = is_active
    return await repo.save(pattern)


async def toggle_recurring_pattern(
    *,
    pattern_id: int,
    workspace_id: int,
    is_active: bool,
    repo: IRecurringPatternRepository,
) -> RecurringPattern:
    pattern = await _get_owned_pattern(pattern_id, workspace_id, repo)
    pattern.is_active = is_active
    return await repo.save(pattern)


async def delete_recurring_pattern(
    *,
    pattern_id: int,
    workspace_id: int,
    repo: IRecurringPatternRepository,
) -> None:
    """Delete a pattern; its transactions stay, unlinked."""
    if not await repo.delete(pattern_id, workspace_id):
        raise NotFoundError(f"Recurring pattern {pattern_id} not found")
