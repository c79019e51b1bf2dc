"""Repository interfaces for the Finance bounded context."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Protocol

from .entities import (
    Category,
    CategoryPattern,
    Ledger,
    RecurringFrequency,
    RecurringPattern,
    Transaction,
)


@dataclass(frozen=True)
class PatternRecord:
    """A category pattern joined with its owning category's name."""
    id: int
    category_id: int
    category_name: str
    pattern: str
    priority: int


@dataclass(frozen=True)
class CandidateTransaction:
    id: int
    description: str
    bank_id: str


@dataclass(frozen=True)
class HistoryTransaction:
    id: int
    description: str
    amount: Decimal
    date: date
    is_income: bool


@dataclass(frozen=True)
class RecurringSummary:
    total_active: int
    estimated_monthly_cost: Decimal


class ICategoryRepository(Protocol):
    async def get_by_id(self, category_id: int, workspace_id: int) -> Category | None: ...
    async def get_by_name(self, workspace_id: int, name: str) -> Category | None: ...
    async def list_by_workspace(self, workspace_id: int) -> list[Category]: ...
    async def count_by_workspace(self, workspace_id: int) -> int: ...
    async def save(self, category: Category) -> Category: ...
    async def delete(self, category_id: int, workspace_id: int) -> bool: ...


class ICategoryPatternRepository(Protocol):
    async def list_for_matching(self, bank_id: str, workspace_id: int) -> list[PatternRecord]: ...
    async def list_by_category(self, category_id: int, bank_id: str | None = None) -> list[CategoryPattern]: ...
    async def find_category_name_by_pattern(self, workspace_id: int, bank_id: str, pattern: str) -> str | None: ...
    async def save(self, pattern: CategoryPattern) -> CategoryPattern: ...
    async def delete(self, pattern_id: int, category_id: int) -> bool: ...


class ILedgerRepository(Protocol):
    async def get_by_id(self, ledger_id: int) -> Ledger | None: ...
    async def get_by_file_hash(self, file_hash: str, workspace_id: int) -> Ledger | None: ...
    async def save(self, ledger: Ledger) -> Ledger: ...
    async def delete(self, ledger_id: int) -> None: ...


class ITransactionRepository(Protocol):
    async def get_by_id(self, transaction_id: int, workspace_id: int) -> Transaction | None: ...
    async def bulk_save(self, transactions: list[Transaction]) -> list[Transaction]: ...
    async def save(self, transaction: Transaction) -> Transaction: ...
    async def list_recategorization_candidates(
        self, workspace_id: int, bank_id: str, other_category_id: int | None
    ) -> list[CandidateTransaction]: ...
    async def set_category(self, transaction_id: int, category_id: int) -> None: ...
    async def list_history(self, workspace_id: int) -> list[HistoryTransaction]: ...
    async def link_recurring_pattern(self, transaction_ids: list[int], pattern_id: int) -> None: ...
    async def list_by_recurring_pattern(self, pattern_id: int, workspace_id: int) -> list[Transaction]: ...


class IRecurringPatternRepository(Protocol):
    async def get_by_id(self, pattern_id: int, workspace_id: int) -> RecurringPattern | None: ...
    async def find(
        self, workspace_id: int, description_pattern: str, frequency: RecurringFrequency
    ) -> RecurringPattern | None: ...
    async def list_by_workspace(self, workspace_id: int) -> list[RecurringPattern]: ...
    async def save(self, pattern: RecurringPattern) -> RecurringPattern: ...
    async def delete(self, pattern_id: int, workspace_id: int) -> bool: ...
    async def summary(self, workspace_id: int) -> RecurringSummary: ...
