"""Statement use-case commands: upload, confirm, manual categorization."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from compasso.application.categorization.matcher import PatternCache, apply_category_suggestions
from compasso.application.errors import NotFoundError, UnsupportedBankError, ValidationError
from compasso.domain.finance.entities import Ledger, Transaction
from compasso.domain.finance.repositories import (
    ICategoryPatternRepository,
    ICategoryRepository,
    ILedgerRepository,
    ITransactionRepository,
)
from compasso.domain.statement.entities import ParsedTransaction
from compasso.infrastructure.statements.registry import (
    get_parser,
    parse_statement,
    supported_bank_ids,
)
from compasso.logging_setup import get_logger

logger = get_logger(__name__)


@dataclass
class UploadResult:
    ledger_id: int
    filename: str
    bank_id: str
    transactions: list[ParsedTransaction] = field(default_factory=list)
    period_start: date | None = None
    period_end: date | None = None
    replaced_ledger_id: int | None = None

    @property
    def transaction_count(self) -> int:
        return len(self.transactions)


@dataclass
class ConfirmedTransaction:
    """A parsed row as accepted (and possibly edited) by the user."""
    date: date
    description: str
    amount: Decimal
    is_income: bool
    balance: Decimal | None = None
    category_id: int | None = None
    raw_text: str | None = None


async def process_upload(
    *,
    workspace_id: int,
    filename: str,
    bank_id: str,
    file_bytes: bytes,
    ledger_repo: ILedgerRepository,
    category_repo: ICategoryRepository,
    pattern_repo: ICategoryPatternRepository,
    cache: PatternCache | None = None,
) -> UploadResult:
    """Parse a statement, (re)create its ledger and suggest categories.

    Uploading the same bytes again into a workspace replaces the previous
    ledger and its transactions.
    """
    if get_parser(bank_id) is None:
        raise UnsupportedBankError(bank_id, supported_bank_ids())
    if not file_bytes:
        raise ValidationError("Uploaded file is empty")

    result = parse_statement(file_bytes, bank_id)

    replaced: int | None = None
    existing = await ledger_repo.get_by_file_hash(result.file_hash, workspace_id)
    if existing is not None:
        logger.info("replacing ledger %s (%s) with a re-upload of the same file", existing.id, existing.filename)
        await ledger_repo.delete(existing.id)
        replaced = existing.id

    ledger = await ledger_repo.save(Ledger(
        id=None,
        workspace_id=workspace_id,
        filename=filename,
        bank_id=bank_id,
        file_hash=result.file_hash,
        period_start=result.period_start,
        period_end=result.period_end,
    ))

    suggested = await apply_category_suggestions(
        result.transactions,
        bank_id,
        workspace_id,
        category_repo=category_repo,
        pattern_repo=pattern_repo,
        cache=cache,
    )
    return UploadResult(
        ledger_id=ledger.id,
        filename=filename,
        bank_id=bank_id,
        transactions=suggested,
        period_start=result.period_start,
        period_end=result.period_end,
        replaced_ledger_id=replaced,
    )


async def confirm_transactions(
    *,
    ledger_id: int,
    workspace_id: int,
    transactions: list[ConfirmedTransaction],
    ledger_repo: ILedgerRepository,
    tx_repo: ITransactionRepository,
) -> int:
    if not transactions:
        raise ValidationError("At least one transaction is required")
    ledger = await ledger_repo.get_by_id(ledger_id)
    if ledger is None or ledger.workspace_id != workspace_id:
        raise NotFoundError(f"Ledger {ledger_id} not found")

    try:
        rows = [
            Transaction(
                id=None,
                ledger_id=ledger_id,
                date=tx.date,
                description=tx.description,
                amount=tx.amount,
                is_income=tx.is_income,
                balance=tx.balance,
                category_id=tx.category_id,
                raw_text=tx.raw_text,
            )
            for tx in transactions
        ]
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc

    await tx_repo.bulk_save(rows)
    logger.info("confirmed %d transaction(s) into ledger %s", len(rows), ledger_id)
    return len(rows)


async def update_transaction_category(
    *,
    transaction_id: int,
    workspace_id: int,
    category_id: int | None,
    tx_repo: ITransactionRepository,
    category_repo: ICategoryRepository,
) -> Transaction:
    """Set a category by hand; automatic recategorization never overrides it."""
    tx = await tx_repo.get_by_id(transaction_id, workspace_id)
    if tx is None:
        raise NotFoundError(f"Transaction {transaction_id} not found")
    if category_id is not None and await category_repo.get_by_id(category_id, workspace_id) is None:
        raise NotFoundError(f"Category {category_id} not found")
    tx.assign_category(category_id, manual=True)
    return await tx_repo.save(tx)
