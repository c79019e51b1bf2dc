"""Concrete SQLAlchemy repository implementations for the finance context."""
from decimal import Decimal

from sqlalchemy import delete, false, func as sqlfunc, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from compasso.domain.finance.entities import (
    Category,
    CategoryPattern,
    Ledger,
    RecurringFrequency,
    RecurringPattern,
    Transaction,
)
from compasso.domain.finance.repositories import (
    CandidateTransaction,
    HistoryTransaction,
    PatternRecord,
    RecurringSummary,
)
from compasso.infrastructure.database.connection import PATTERNS_CHANGED
from compasso.infrastructure.database.models.finance import (
    CategoryModel,
    CategoryPatternModel,
    LedgerModel,
    RecurringPatternModel,
    TransactionModel,
)

_WEEKS_PER_MONTH = Decimal("4.33")
_MONTHS_PER_YEAR = Decimal("12")
_CENTS = Decimal("0.01")


class CategoryRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._s = session

    async def get_by_id(self, category_id: int, workspace_id: int) -> Category | None:
        stmt = select(CategoryModel).where(
            CategoryModel.id == category_id,
            CategoryModel.workspace_id == workspace_id,
        )
        row = (await self._s.execute(stmt)).scalar_one_or_none()
        return _to_category(row) if row else None

    async def get_by_name(self, workspace_id: int, name: str) -> Category | None:
        stmt = select(CategoryModel).where(
            CategoryModel.workspace_id == workspace_id,
            CategoryModel.name == name,
        )
        row = (await self._s.execute(stmt)).scalar_one_or_none()
        return _to_category(row) if row else None

    async def list_by_workspace(self, workspace_id: int) -> list[Category]:
        stmt = (
            select(CategoryModel)
            .where(CategoryModel.workspace_id == workspace_id)
            .order_by(CategoryModel.name)
        )
        rows = (await self._s.execute(stmt)).scalars().all()
        return [_to_category(r) for r in rows]

    async def count_by_workspace(self, workspace_id: int) -> int:
        stmt = select(sqlfunc.count(CategoryModel.id)).where(CategoryModel.workspace_id == workspace_id)
        return (await self._s.execute(stmt)).scalar_one()

    async def save(self, category: Category) -> Category:
        existing = await self._s.get(CategoryModel, category.id) if category.id else None
        if existing:
            existing.name = category.name
            existing.color = category.color
            existing.icon = category.icon
            # cached rule sets carry category names
            self._s.info[PATTERNS_CHANGED] = True
        else:
            model = CategoryModel(
                workspace_id=category.workspace_id,
                name=category.name,
                color=category.color,
                icon=category.icon,
                is_default=category.is_default,
                created_at=category.created_at,
            )
            self._s.add(model)
            await self._s.flush()
            category.id = model.id
        await self._s.flush()
        return category

    async def delete(self, category_id: int, workspace_id: int) -> bool:
        model = await self._s.get(CategoryModel, category_id)
        if model is None or model.workspace_id != workspace_id:
            return False
        # rules and transaction links by hand; SQLite only cascades with foreign_keys pragma on
        await self._s.execute(delete(CategoryPatternModel).where(CategoryPatternModel.category_id == category_id))
        await self._s.execute(
            update(TransactionModel)
            .where(TransactionModel.category_id == category_id)
            .values(category_id=None)
        )
        await self._s.delete(model)
        await self._s.flush()
        self._s.info[PATTERNS_CHANGED] = True
        return True


class CategoryPatternRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._s = session

    async def list_for_matching(self, bank_id: str, workspace_id: int) -> list[PatternRecord]:
        stmt = (
            select(
                CategoryPatternModel.id,
                CategoryPatternModel.category_id,
                CategoryModel.name,
                CategoryPatternModel.pattern,
                CategoryPatternModel.priority,
            )
            .join(CategoryModel, CategoryModel.id == CategoryPatternModel.category_id)
            .where(
                CategoryPatternModel.bank_id == bank_id,
                CategoryModel.workspace_id == workspace_id,
            )
            .order_by(CategoryPatternModel.priority.desc(), CategoryPatternModel.id.asc())
        )
        rows = (await self._s.execute(stmt)).all()
        return [
            PatternRecord(
                id=r.id,
                category_id=r.category_id,
                category_name=r.name,
                pattern=r.pattern,
                priority=r.priority,
            )
            for r in rows
        ]

    async def list_by_category(self, category_id: int, bank_id: str | None = None) -> list[CategoryPattern]:
        stmt = select(CategoryPatternModel).where(CategoryPatternModel.category_id == category_id)
        if bank_id is not None:
            stmt = stmt.where(CategoryPatternModel.bank_id == bank_id)
        stmt = stmt.order_by(CategoryPatternModel.priority.desc(), CategoryPatternModel.id.asc())
        rows = (await self._s.execute(stmt)).scalars().all()
        return [_to_pattern(r) for r in rows]

    async def find_category_name_by_pattern(
        self, workspace_id: int, bank_id: str, pattern: str
    ) -> str | None:
        stmt = (
            select(CategoryModel.name)
            .join(CategoryPatternModel, CategoryPatternModel.category_id == CategoryModel.id)
            .where(
                CategoryModel.workspace_id == workspace_id,
                CategoryPatternModel.bank_id == bank_id,
                CategoryPatternModel.pattern == pattern,
            )
            .limit(1)
        )
        return (await self._s.execute(stmt)).scalar_one_or_none()

    async def save(self, pattern: CategoryPattern) -> CategoryPattern:
        existing = await self._s.get(CategoryPatternModel, pattern.id) if pattern.id else None
        if existing:
            existing.pattern = pattern.pattern
            existing.priority = pattern.priority
        else:
            model = CategoryPatternModel(
                category_id=pattern.category_id,
                bank_id=pattern.bank_id,
                pattern=pattern.pattern,
                priority=pattern.priority,
                created_at=pattern.created_at,
            )
            self._s.add(model)
            await self._s.flush()
            pattern.id = model.id
        await self._s.flush()
        self._s.info[PATTERNS_CHANGED] = True
        return pattern

    async def delete(self, pattern_id: int, category_id: int) -> bool:
        stmt = delete(CategoryPatternModel).where(
            CategoryPatternModel.id == pattern_id,
            CategoryPatternModel.category_id == category_id,
        )
        result = await self._s.execute(stmt)
        await self._s.flush()
        self._s.info[PATTERNS_CHANGED] = True
        return result.rowcount > 0


class LedgerRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._s = session

    async def get_by_id(self, ledger_id: int) -> Ledger | None:
        row = await self._s.get(LedgerModel, ledger_id)
        return _to_ledger(row) if row else None

    async def get_by_file_hash(self, file_hash: str, workspace_id: int) -> Ledger | None:
        stmt = select(LedgerModel).where(
            LedgerModel.file_hash == file_hash,
            LedgerModel.workspace_id == workspace_id,
        )
        row = (await self._s.execute(stmt)).scalars().first()
        return _to_ledger(row) if row else None

    async def save(self, ledger: Ledger) -> Ledger:
        model = LedgerModel(
            workspace_id=ledger.workspace_id,
            filename=ledger.filename,
            bank_id=ledger.bank_id,
            file_hash=ledger.file_hash,
            period_start=ledger.period_start,
            period_end=ledger.period_end,
            upload_date=ledger.upload_date,
        )
        self._s.add(model)
        await self._s.flush()
        ledger.id = model.id
        return ledger

    async def delete(self, ledger_id: int) -> None:
        # transactions first; SQLite only cascades with foreign_keys pragma on
        await self._s.execute(delete(TransactionModel).where(TransactionModel.ledger_id == ledger_id))
        await self._s.execute(delete(LedgerModel).where(LedgerModel.id == ledger_id))
        await self._s.flush()


class TransactionRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._s = session

    async def get_by_id(self, transaction_id: int, workspace_id: int) -> Transaction | None:
        stmt = (
            select(TransactionModel)
            .join(LedgerModel, LedgerModel.id == TransactionModel.ledger_id)
            .where(
                TransactionModel.id == transaction_id,
                LedgerModel.workspace_id == workspace_id,
            )
        )
        row = (await self._s.execute(stmt)).scalar_one_or_none()
        return _to_transaction(row) if row else None

    async def save(self, transaction: Transaction) -> Transaction:
        existing = await self._s.get(TransactionModel, transaction.id) if transaction.id else None
        if existing:
            existing.description = transaction.description
            existing.category_id = transaction.category_id
            existing.is_manual = transaction.is_manual
            existing.recurring_pattern_id = transaction.recurring_pattern_id
            await self._s.flush()
            return transaction
        return (await self.bulk_save([transaction]))[0]

    async def bulk_save(self, transactions: list[Transaction]) -> list[Transaction]:
        models = [
            TransactionModel(
                ledger_id=tx.ledger_id,
                transaction_date=tx.date,
                description=tx.description,
                amount=tx.amount,
                balance=tx.balance,
                category_id=tx.category_id,
                is_income=tx.is_income,
                is_manual=tx.is_manual,
                raw_text=tx.raw_text,
                recurring_pattern_id=tx.recurring_pattern_id,
                created_at=tx.created_at,
            )
            for tx in transactions
        ]
        self._s.add_all(models)
        await self._s.flush()
        for tx, model in zip(transactions, models):
            tx.id = model.id
        return transactions

    async def list_recategorization_candidates(
        self, workspace_id: int, bank_id: str, other_category_id: int | None
    ) -> list[CandidateTransaction]:
        if other_category_id is not None:
            category_filter = or_(
                TransactionModel.category_id.is_(None),
                TransactionModel.category_id == other_category_id,
            )
        else:
            category_filter = TransactionModel.category_id.is_(None)

        stmt = (
            select(TransactionModel.id, TransactionModel.description, LedgerModel.bank_id)
            .join(LedgerModel, LedgerModel.id == TransactionModel.ledger_id)
            .where(
                LedgerModel.workspace_id == workspace_id,
                LedgerModel.bank_id == bank_id,
                or_(TransactionModel.is_manual == false(), TransactionModel.is_manual.is_(None)),
                category_filter,
            )
            .order_by(TransactionModel.id)
        )
        rows = (await self._s.execute(stmt)).all()
        return [CandidateTransaction(id=r.id, description=r.description, bank_id=r.bank_id) for r in rows]

    async def set_category(self, transaction_id: int, category_id: int) -> None:
        await self._s.execute(
            update(TransactionModel)
            .where(TransactionModel.id == transaction_id)
            .values(category_id=category_id)
        )

    async def list_history(self, workspace_id: int) -> list[HistoryTransaction]:
        stmt = (
            select(
                TransactionModel.id,
                TransactionModel.description,
                TransactionModel.amount,
                TransactionModel.transaction_date,
                TransactionModel.is_income,
            )
            .join(LedgerModel, LedgerModel.id == TransactionModel.ledger_id)
            .where(LedgerModel.workspace_id == workspace_id)
            .order_by(TransactionModel.transaction_date.asc(), TransactionModel.id.asc())
        )
        rows = (await self._s.execute(stmt)).all()
        return [
            HistoryTransaction(
                id=r.id,
                description=r.description,
                amount=Decimal(r.amount),
                date=r.transaction_date,
                is_income=bool(r.is_income),
            )
            for r in rows
        ]

    async def link_recurring_pattern(self, transaction_ids: list[int], pattern_id: int) -> None:
        if not transaction_ids:
            return
        await self._s.execute(
            update(TransactionModel)
            .where(TransactionModel.id.in_(transaction_ids))
            .values(recurring_pattern_id=pattern_id)
        )

    async def list_by_recurring_pattern(self, pattern_id: int, workspace_id: int) -> list[Transaction]:
        stmt = (
            select(TransactionModel)
            .join(LedgerModel, LedgerModel.id == TransactionModel.ledger_id)
            .where(
                TransactionModel.recurring_pattern_id == pattern_id,
                LedgerModel.workspace_id == workspace_id,
            )
            .order_by(TransactionModel.transaction_date.desc(), TransactionModel.id.desc())
        )
        rows = (await self._s.execute(stmt)).scalars().all()
        return [_to_transaction(r) for r in rows]


class RecurringPatternRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._s = session

    async def get_by_id(self, pattern_id: int, workspace_id: int) -> RecurringPattern | None:
        stmt = select(RecurringPatternModel).where(
            RecurringPatternModel.id == pattern_id,
            RecurringPatternModel.workspace_id == workspace_id,
        )
        row = (await self._s.execute(stmt)).scalar_one_or_none()
        return _to_recurring(row) if row else None

    async def find(
        self, workspace_id: int, description_pattern: str, frequency: RecurringFrequency
    ) -> RecurringPattern | None:
        stmt = select(RecurringPatternModel).where(
            RecurringPatternModel.workspace_id == workspace_id,
            RecurringPatternModel.description_pattern == description_pattern,
            RecurringPatternModel.frequency == str(frequency),
        )
        row = (await self._s.execute(stmt)).scalars().first()
        return _to_recurring(row) if row else None

    async def list_by_workspace(self, workspace_id: int) -> list[RecurringPattern]:
        stmt = (
            select(RecurringPatternModel)
            .where(RecurringPatternModel.workspace_id == workspace_id)
            .order_by(RecurringPatternModel.occurrence_count.desc(), RecurringPatternModel.id.asc())
        )
        rows = (await self._s.execute(stmt)).scalars().all()
        return [_to_recurring(r) for r in rows]

    async def save(self, pattern: RecurringPattern) -> RecurringPattern:
        existing = await self._s.get(RecurringPatternModel, pattern.id) if pattern.id else None
        if existing:
            existing.description_pattern = pattern.description_pattern
            existing.frequency = str(pattern.frequency)
            existing.avg_amount = pattern.avg_amount
            existing.occurrence_count = pattern.occurrence_count
            existing.is_active = pattern.is_active
        else:
            model = RecurringPatternModel(
                workspace_id=pattern.workspace_id,
                description_pattern=pattern.description_pattern,
                frequency=str(pattern.frequency),
                avg_amount=pattern.avg_amount,
                occurrence_count=pattern.occurrence_count,
                is_active=pattern.is_active,
                created_at=pattern.created_at,
            )
            self._s.add(model)
            await self._s.flush()
            pattern.id = model.id
        await self._s.flush()
        return pattern

    async def delete(self, pattern_id: int, workspace_id: int) -> bool:
        model = await self._s.get(RecurringPatternModel, pattern_id)
        if model is None or model.workspace_id != workspace_id:
            return False
        await self._s.execute(
            update(TransactionModel)
            .where(TransactionModel.recurring_pattern_id == pattern_id)
            .values(recurring_pattern_id=None)
        )
        await self._s.delete(model)
        await self._s.flush()
        return True

    async def summary(self, workspace_id: int) -> RecurringSummary:
        stmt = select(RecurringPatternModel.frequency, RecurringPatternModel.avg_amount).where(
            RecurringPatternModel.workspace_id == workspace_id,
            RecurringPatternModel.is_active.is_(True),
        )
        total_active = 0
        monthly_cost = Decimal("0")
        for frequency, avg_amount in (await self._s.execute(stmt)).all():
            total_active += 1
            amount = Decimal(avg_amount)
            if frequency == RecurringFrequency.WEEKLY:
                monthly_cost += amount * _WEEKS_PER_MONTH
            elif frequency == RecurringFrequency.MONTHLY:
                monthly_cost += amount
            elif frequency == RecurringFrequency.YEARLY:
                monthly_cost += amount / _MONTHS_PER_YEAR
        return RecurringSummary(
            total_active=total_active,
            estimated_monthly_cost=monthly_cost.quantize(_CENTS),
        )


# ── Mappers ───────────────────────────────────────────────────────────────────

def _to_category(m: CategoryModel) -> Category:
    return Category(
        id=m.id,
        workspace_id=m.workspace_id,
        name=m.name,
        color=m.color,
        icon=m.icon,
        is_default=m.is_default,
        created_at=m.created_at,
    )


def _to_pattern(m: CategoryPatternModel) -> CategoryPattern:
    return CategoryPattern(
        id=m.id,
        category_id=m.category_id,
        bank_id=m.bank_id,
        pattern=m.pattern,
        priority=m.priority,
        created_at=m.created_at,
    )


def _to_ledger(m: LedgerModel) -> Ledger:
    return Ledger(
        id=m.id,
        workspace_id=m.workspace_id,
        filename=m.filename,
        bank_id=m.bank_id,
        file_hash=m.file_hash,
        period_start=m.period_start,
        period_end=m.period_end,
        upload_date=m.upload_date,
    )


def _to_transaction(m: TransactionModel) -> Transaction:
    return Transaction(
        id=m.id,
        ledger_id=m.ledger_id,
        date=m.transaction_date,
        description=m.description,
        amount=Decimal(m.amount),
        is_income=m.is_income,
        balance=Decimal(m.balance) if m.balance is not None else None,
        category_id=m.category_id,
        is_manual=bool(m.is_manual),
        raw_text=m.raw_text,
        recurring_pattern_id=m.recurring_pattern_id,
        created_at=m.created_at,
    )


def _to_recurring(m: RecurringPatternModel) -> RecurringPattern:
    return RecurringPattern(
        id=m.id,
        workspace_id=m.workspace_id,
        description_pattern=m.description_pattern,
        frequency=RecurringFrequency(m.frequency),
        avg_amount=Decimal(m.avg_amount),
        occurrence_count=m.occurrence_count,
        is_active=m.is_active,
        created_at=m.created_at,
    )
