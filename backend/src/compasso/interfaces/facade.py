"""CompassoFacade: the single entry point to the application layer.

Routers go through this facade instead of calling application functions
directly, which keeps the API layer thin.
"""
from __future__ import annotations

from decimal import Decimal

from compasso.application.categorization import commands as cat_commands
from compasso.application.categorization.matcher import CategoryMatch, match_category
from compasso.application.categorization.recategorizer import (
    RecategorizeResult,
    recategorize_by_pattern,
)
from compasso.application.recurring import commands as rec_commands
from compasso.application.recurring import queries as rec_queries
from compasso.application.recurring.detector import DetectionResult, detect_recurring_patterns
from compasso.application.statements import commands as stmt_commands
from compasso.domain.finance.entities import Category, CategoryPattern, RecurringPattern, Transaction
from compasso.domain.finance.repositories import RecurringSummary
from compasso.domain.statement.entities import BankConfig
from compasso.infrastructure.statements.registry import BANK_CONFIGS


class CompassoFacade:
    """Aggregates all application use cases. Injected via FastAPI dependency."""

    def __init__(
        self,
        category_repo,
        pattern_repo,
        ledger_repo,
        transaction_repo,
        recurring_repo,
    ) -> None:
        self._category_repo = category_repo
        self._pattern_repo = pattern_repo
        self._ledger_repo = ledger_repo
        self._transaction_repo = transaction_repo
        self._recurring_repo = recurring_repo

    # ── Banks ─────────────────────────────────────────────────────────────────

    def list_banks(self) -> list[BankConfig]:
        return list(BANK_CONFIGS.values())

    # ── Statements ────────────────────────────────────────────────────────────

    async def process_upload(
        self, workspace_id: int, filename: str, bank_id: str, file_bytes: bytes
    ) -> stmt_commands.UploadResult:
        return await stmt_commands.process_upload(
            workspace_id=workspace_id, filename=filename, bank_id=bank_id, file_bytes=file_bytes,
            ledger_repo=self._ledger_repo, category_repo=self._category_repo,
            pattern_repo=self._pattern_repo,
        )

    async def confirm_transactions(
        self, ledger_id: int, workspace_id: int, transactions: list[stmt_commands.ConfirmedTransaction]
    ) -> int:
        return await stmt_commands.confirm_transactions(
            ledger_id=ledger_id, workspace_id=workspace_id, transactions=transactions,
            ledger_repo=self._ledger_repo, tx_repo=self._transaction_repo,
        )

    async def update_transaction_category(
        self, transaction_id: int, workspace_id: int, category_id: int | None
    ) -> Transaction:
        return await stmt_commands.update_transaction_category(
            transaction_id=transaction_id, workspace_id=workspace_id, category_id=category_id,
            tx_repo=self._transaction_repo, category_repo=self._category_repo,
        )

    # ── Categories ────────────────────────────────────────────────────────────

    async def list_categories(self, workspace_id: int) -> list[Category]:
        return await cat_commands.list_categories(workspace_id=workspace_id, repo=self._category_repo)

    async def create_category(
        self, workspace_id: int, name: str, color: str | None = None, icon: str | None = None
    ) -> Category:
        return await cat_commands.create_category(
            workspace_id=workspace_id, name=name, color=color, icon=icon, repo=self._category_repo,
        )

    async def update_category(
        self,
        category_id: int,
        workspace_id: int,
        name: str | None = None,
        color: str | None = None,
        icon: str | None = None,
    ) -> Category:
        return await cat_commands.update_category(
            category_id=category_id, workspace_id=workspace_id,
            name=name, color=color, icon=icon, repo=self._category_repo,
        )

    async def delete_category(self, category_id: int, workspace_id: int) -> None:
        await cat_commands.delete_category(
            category_id=category_id, workspace_id=workspace_id, repo=self._category_repo,
        )

    async def get_category(
        self, category_id: int, workspace_id: int, bank_id: str | None = None
    ) -> cat_commands.CategoryWithPatterns:
        return await cat_commands.get_category_with_patterns(
            category_id=category_id, workspace_id=workspace_id, bank_id=bank_id,
            category_repo=self._category_repo, pattern_repo=self._pattern_repo,
        )

    async def seed_categories(self, workspace_id: int) -> list[Category]:
        return await cat_commands.seed_workspace_categories(
            workspace_id=workspace_id,
            category_repo=self._category_repo, pattern_repo=self._pattern_repo,
        )

    async def create_pattern(
        self, category_id: int, workspace_id: int, bank_id: str, pattern: str, priority: int = 0
    ) -> cat_commands.CreatePatternResult:
        return await cat_commands.create_pattern(
            category_id=category_id, workspace_id=workspace_id, bank_id=bank_id,
            pattern=pattern, priority=priority,
            category_repo=self._category_repo, pattern_repo=self._pattern_repo,
            tx_repo=self._transaction_repo,
        )

    async def create_quick_pattern(
        self, category_id: int, workspace_id: int, bank_id: str, pattern: str
    ) -> CategoryPattern:
        return await cat_commands.create_quick_pattern(
            category_id=category_id, workspace_id=workspace_id, bank_id=bank_id, pattern=pattern,
            category_repo=self._category_repo, pattern_repo=self._pattern_repo,
        )

    async def delete_pattern(self, category_id: int, pattern_id: int, workspace_id: int) -> None:
        await cat_commands.delete_pattern(
            category_id=category_id, pattern_id=pattern_id, workspace_id=workspace_id,
            category_repo=self._category_repo, pattern_repo=self._pattern_repo,
        )

    async def check_pattern_exists(
        self, workspace_id: int, bank_id: str, pattern: str
    ) -> cat_commands.PatternExists:
        return await cat_commands.check_pattern_exists(
            workspace_id=workspace_id, bank_id=bank_id, pattern=pattern,
            pattern_repo=self._pattern_repo,
        )

    async def match_category(self, description: str, bank_id: str, workspace_id: int) -> CategoryMatch | None:
        return await match_category(description, bank_id, workspace_id, pattern_repo=self._pattern_repo)

    async def recategorize(self, bank_id: str, workspace_id: int, category_id: int) -> RecategorizeResult:
        return await recategorize_by_pattern(
            bank_id, workspace_id, category_id,
            category_repo=self._category_repo, pattern_repo=self._pattern_repo,
            tx_repo=self._transaction_repo,
        )

    # ── Recurring ─────────────────────────────────────────────────────────────

    async def detect_recurring(self, workspace_id: int) -> DetectionResult:
        return await detect_recurring_patterns(
            workspace_id=workspace_id,
            tx_repo=self._transaction_repo, recurring_repo=self._recurring_repo,
        )

    async def list_recurring(self, workspace_id: int) -> list[RecurringPattern]:
        return await rec_queries.list_recurring_patterns(workspace_id=workspace_id, repo=self._recurring_repo)

    async def recurring_summary(self, workspace_id: int) -> RecurringSummary:
        return await rec_queries.get_recurring_summary(workspace_id=workspace_id, repo=self._recurring_repo)

    async def recurring_transactions(self, pattern_id: int, workspace_id: int) -> list[Transaction]:
        return await rec_queries.get_pattern_transactions(
            pattern_id=pattern_id, workspace_id=workspace_id,
            recurring_repo=self._recurring_repo, tx_repo=self._transaction_repo,
        )

    async def update_recurring(
        self,
        pattern_id: int,
        workspace_id: int,
        description_pattern: str | None = None,
        frequency: str | None = None,
        avg_amount: Decimal | None = None,
        is_active: bool | None = None,
    ) -> RecurringPattern:
        return await rec_commands.update_recurring_pattern(
            pattern_id=pattern_id, workspace_id=workspace_id,
            description_pattern=description_pattern, frequency=frequency,
            avg_amount=avg_amount, is_active=is_active, repo=self._recurring_repo,
        )

    async def toggle_recurring(self, pattern_id: int, workspace_id: int, is_active: bool) -> RecurringPattern:
        return await rec_commands.toggle_recurring_pattern(
            pattern_id=pattern_id, workspace_id=workspace_id, is_active=is_active,
            repo=self._recurring_repo,
        )

    async def delete_recurring(self, pattern_id: int, workspace_id: int) -> None:
        await rec_commands.delete_recurring_pattern(
            pattern_id=pattern_id, workspace_id=workspace_id, repo=self._recurring_repo,
        )
