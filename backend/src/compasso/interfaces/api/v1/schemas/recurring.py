"""Pydantic v2 schemas for recurring patterns."""
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from compasso.domain.finance.entities import RecurringFrequency

Frequency = Literal["weekly", "monthly", "yearly"]


class RecurringPatternResponse(BaseModel):
    id: int
    description_pattern: str
    frequency: RecurringFrequency
    avg_amount: Decimal
    occurrence_count: int
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class DetectRequest(BaseModel):
    workspace_id: int = Field(gt=0)


class DetectedPatternResponse(BaseModel):
    description_pattern: str
    frequency: RecurringFrequency
    avg_amount: Decimal
    transaction_ids: list[int]

    model_config = {"from_attributes": True}


class DetectResponse(BaseModel):
    detected: int
    patterns: list[DetectedPatternResponse]

    model_config = {"from_attributes": True}


class RecurringSummaryResponse(BaseModel):
    total_active: int
    estimated_monthly_cost: Decimal

    model_config = {"from_attributes": True}


class RecurringPatternUpdate(BaseModel):
    workspace_id: int = Field(gt=0)
    description_pattern: str | None = Field(default=None, min_length=1, max_length=500)
    frequency: Frequency | None = None
    avg_amount: Decimal | None = Field(default=None, gt=0)
    is_active: bool | None = None

    @model_validator(mode="after")
    def at_least_one_field(self) -> "RecurringPatternUpdate":
        fields = (self.description_pattern, self.frequency, self.avg_amount, self.is_active)
        if all(v is None for v in fields):
            raise ValueError("At least one field must be provided")
        return self
