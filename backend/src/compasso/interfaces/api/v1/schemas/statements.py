"""Pydantic v2 schemas for statement upload, confirmation and transactions."""
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from compasso.domain.statement.entities import DirectionSource


class BankResponse(BaseModel):
    id: str
    name: str
    country: str
    currency: str
    date_format: str
    decimal_format: str

    model_config = {"from_attributes": True}


class ParsedTransactionResponse(BaseModel):
    date: date
    value_date: date
    description: str
    amount: Decimal
    balance: Decimal | None
    is_income: bool
    raw_text: str
    direction_source: DirectionSource
    transaction_type: str | None
    needs_review: bool
    suggested_category_id: int | None
    suggested_category_name: str | None

    model_config = {"from_attributes": True}


class UploadResponse(BaseModel):
    ledger_id: int
    filename: str
    bank_id: str
    transaction_count: int
    transactions: list[ParsedTransactionResponse]
    period_start: date | None
    period_end: date | None
    replaced_ledger_id: int | None = None

    model_config = {"from_attributes": True}


class ConfirmTransactionItem(BaseModel):
    date: date
    description: str = Field(min_length=1, max_length=500)
    amount: Decimal = Field(ge=0)
    is_income: bool
    balance: Decimal | None = None
    category_id: int | None = None
    raw_text: str | None = None

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("description cannot be blank")
        return v


class ConfirmTransactionsRequest(BaseModel):
    workspace_id: int = Field(gt=0)
    transactions: list[ConfirmTransactionItem] = Field(min_length=1)


class ConfirmTransactionsResponse(BaseModel):
    ledger_id: int
    inserted: int


class TransactionCategoryUpdate(BaseModel):
    workspace_id: int = Field(gt=0)
    category_id: int | None = Field(default=None, gt=0)


class TransactionResponse(BaseModel):
    id: int
    ledger_id: int
    date: date
    description: str
    amount: Decimal
    balance: Decimal | None
    is_income: bool
    category_id: int | None
    is_manual: bool
    raw_text: str | None
    recurring_pattern_id: int | None
    created_at: datetime

    model_config = {"from_attributes": True}
