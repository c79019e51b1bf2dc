"""Pydantic v2 schemas for categories and matching rules."""
from datetime import datetime

from pydantic import BaseModel, Field

from compasso.domain.finance.entities import PatternKind


class CategoryCreate(BaseModel):
    workspace_id: int = Field(gt=0)
    name: str = Field(min_length=1, max_length=100)
    color: str | None = Field(default=None, pattern=r"^#[0-9a-fA-F]{6}$")
    icon: str | None = None


class CategoryUpdate(BaseModel):
    workspace_id: int = Field(gt=0)
    name: str | None = Field(default=None, min_length=1, max_length=100)
    color: str | None = Field(default=None, pattern=r"^#[0-9a-fA-F]{6}$")
    icon: str | None = None


class CategoryResponse(BaseModel):
    id: int
    name: str
    color: str | None
    icon: str | None
    is_default: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class PatternResponse(BaseModel):
    id: int
    category_id: int
    bank_id: str
    pattern: str
    priority: int
    is_exclusion: bool
    kind: PatternKind
    created_at: datetime

    model_config = {"from_attributes": True}


class CategoryWithPatternsResponse(CategoryResponse):
    patterns: list[PatternResponse] = []


class PatternCreate(BaseModel):
    workspace_id: int = Field(gt=0)
    bank_id: str = Field(min_length=1)
    pattern: str = Field(min_length=1, max_length=500)
    priority: int = Field(default=0, ge=0)


class QuickPatternCreate(BaseModel):
    workspace_id: int = Field(gt=0)
    bank_id: str = Field(min_length=1)
    pattern: str = Field(min_length=1, max_length=500)


class PatternCreateResponse(BaseModel):
    pattern: PatternResponse
    recategorized: int


class PatternExistsResponse(BaseModel):
    exists: bool
    category_name: str | None = None


class SeedRequest(BaseModel):
    workspace_id: int = Field(gt=0)
