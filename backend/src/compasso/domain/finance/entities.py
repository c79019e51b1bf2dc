"""Domain entities for the Finance bounded context."""
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import StrEnum


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PatternKind(StrEnum):
    WORD = "word"
    REGEX = "regex"


class RecurringFrequency(StrEnum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


# Canonical interval in days for each frequency
FREQUENCY_INTERVAL_DAYS: dict[RecurringFrequency, int] = {
    RecurringFrequency.WEEKLY: 7,
    RecurringFrequency.MONTHLY: 30,
    RecurringFrequency.YEARLY: 365,
}

INCOME_CATEGORY_NAME = "Income"
OTHER_CATEGORY_NAME = "Other"

_EXCLUSION_PREFIX = "!"
_REGEX_PREFIX = "regex:"


def split_pattern_tags(pattern: str) -> tuple[bool, PatternKind, str]:
    """``"!regex:^TFI"`` → ``(True, PatternKind.REGEX, "^TFI")``."""
    text = pattern.strip()
    is_exclusion = text.startswith(_EXCLUSION_PREFIX)
    if is_exclusion:
        text = text[len(_EXCLUSION_PREFIX):]
    if text.startswith(_REGEX_PREFIX):
        return is_exclusion, PatternKind.REGEX, text[len(_REGEX_PREFIX):]
    return is_exclusion, PatternKind.WORD, text


@dataclass
class Category:
    id: int | None
    workspace_id: int
    name: str
    color: str | None = None
    icon: str | None = None
    is_default: bool = False
    created_at: datetime = field(default_factory=_utcnow)


@dataclass
class CategoryPattern:
    """A stored matching rule.

    The ``pattern`` string is persisted verbatim and carries its own tags:
    ``!`` marks an exclusion, ``regex:`` a full regular expression, anything
    else a case-insensitive whole-word literal.
    """
    id: int | None
    category_id: int
    bank_id: str
    pattern: str
    priority: int = 0
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def is_exclusion(self) -> bool:
        return split_pattern_tags(self.pattern)[0]

    @property
    def kind(self) -> PatternKind:
        return split_pattern_tags(self.pattern)[1]


@dataclass
class Ledger:
    """One uploaded statement."""
    id: int | None
    workspace_id: int
    filename: str
    bank_id: str
    file_hash: str
    period_start: date | None = None
    period_end: date | None = None
    upload_date: datetime = field(default_factory=_utcnow)


@dataclass
class Transaction:
    id: int | None
    ledger_id: int
    date: date
    description: str
    amount: Decimal
    is_income: bool
    balance: Decimal | None = None
    category_id: int | None = None
    is_manual: bool = False
    raw_text: str | None = None
    recurring_pattern_id: int | None = None
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError("Transaction amount cannot be negative")

    def assign_category(self, category_id: int | None, *, manual: bool = False) -> None:
        self.category_id = category_id
        if manual:
            self.is_manual = True


@dataclass
class RecurringPattern:
    id: int | None
    workspace_id: int
    description_pattern: str
    frequency: RecurringFrequency
    avg_amount: Decimal
    occurrence_count: int = 0
    is_active: bool = True
    created_at: datetime = field(default_factory=_utcnow)

    def refresh(self, *, occurrence_count: int, avg_amount: Decimal) -> None:
        self.occurrence_count = occurrence_count
        self.avg_amount = avg_amount
