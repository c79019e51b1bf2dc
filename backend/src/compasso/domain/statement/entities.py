"""Domain entities for the Statement bounded context (ephemeral parse output)."""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import StrEnum


class DirectionSource(StrEnum):
    SIGN = "sign"           # signed amount column
    COLUMNS = "columns"     # separate debit / credit columns
    BALANCE = "balance"     # new balance compared to the previous one
    KEYWORDS = "keywords"   # description heuristics, best effort only


@dataclass(frozen=True)
class PositionedFragment:
    """A text run as placed on the page; ``y`` grows upwards from the bottom edge."""
    text: str
    x: float
    y: float


@dataclass
class ParsedTransaction:
    date: date
    value_date: date
    description: str
    amount: Decimal                # magnitude, never negative
    balance: Decimal | None
    is_income: bool
    raw_text: str
    direction_source: DirectionSource = DirectionSource.SIGN
    transaction_type: str | None = None  # e.g. "card_purchase", from the bank's row labels
    suggested_category_id: int | None = None
    suggested_category_name: str | None = None

    @property
    def needs_review(self) -> bool:
        return self.direction_source == DirectionSource.KEYWORDS


@dataclass
class ParseResult:
    transactions: list[ParsedTransaction] = field(default_factory=list)
    period_start: date | None = None
    period_end: date | None = None
    file_hash: str = ""


@dataclass(frozen=True)
class BankConfig:
    id: str
    name: str
    country: str
    currency: str
    date_format: str
    decimal_format: str  # 'european' (1.234,56) or 'standard' (1,234.56)
