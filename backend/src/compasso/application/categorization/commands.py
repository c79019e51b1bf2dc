"""Category use-case commands: categories, rules and default seeding."""
from __future__ import annotations

from dataclasses import dataclass

from compasso.application.errors import (
    DuplicateResourceError,
    NotFoundError,
    UnsupportedBankError,
    ValidationError,
)
from compasso.domain.finance.entities import Category, CategoryPattern
from compasso.domain.finance.repositories import (
    ICategoryPatternRepository,
    ICategoryRepository,
    ITransactionRepository,
)
from compasso.infrastructure.statements.registry import (
    BANK_CATEGORY_PATTERNS,
    supported_bank_ids,
)
from compasso.logging_setup import get_logger

from .matcher import PatternCache, pattern_cache
from .recategorizer import recategorize_by_pattern

logger = get_logger(__name__)


@dataclass(frozen=True)
class DefaultCategory:
    name: str
    color: str
    icon: str


DEFAULT_CATEGORIES: list[DefaultCategory] = [
    DefaultCategory("Uncategorized", "#a1a1aa", "help-circle"),
    DefaultCategory("Groceries", "#22c55e", "shopping-cart"),
    DefaultCategory("Fuel", "#f97316", "fuel"),
    DefaultCategory("Health", "#ef4444", "heart"),
    DefaultCategory("Fitness", "#8b5cf6", "dumbbell"),
    DefaultCategory("Entertainment", "#ec4899", "film"),
    DefaultCategory("Dining", "#f59e0b", "utensils"),
    DefaultCategory("Shopping", "#6366f1", "bag"),
    DefaultCategory("Utilities", "#14b8a6", "zap"),
    DefaultCategory("Housing", "#0ea5e9", "home"),
    DefaultCategory("Insurance", "#64748b", "shield"),
    DefaultCategory("Income", "#10b981", "trending-up"),
    DefaultCategory("Transfers", "#3b82f6", "repeat"),
    DefaultCategory("Fees", "#94a3b8", "percent"),
    DefaultCategory("Cash", "#78716c", "banknote"),
    DefaultCategory("Other", "#a1a1aa", "more-horizontal"),
]


@dataclass
class CategoryWithPatterns:
    category: Category
    patterns: list[CategoryPattern]


@dataclass
class CreatePatternResult:
    pattern: CategoryPattern
    recategorized: int


@dataclass
class PatternExists:
    exists: bool
    category_name: str | None = None


async def _get_owned_category(
    category_id: int, workspace_id: int, category_repo: ICategoryRepository
) -> Category:
    category = await category_repo.get_by_id(category_id, workspace_id)
    if category is None:
        raise NotFoundError(f"Category {category_id} not found")
    return category


async def _assert_pattern_not_duplicate(
    workspace_id: int, bank_id: str, pattern: str, pattern_repo: ICategoryPatternRepository
) -> None:
    owner = await pattern_repo.find_category_name_by_pattern(workspace_id, bank_id, pattern)
    if owner is not None:
        raise DuplicateResourceError(f'This pattern already exists in category "{owner}"')


def _validate_pattern_input(bank_id: str, pattern: str) -> str:
    if not bank_id:
        raise ValidationError("Bank ID is required")
    if bank_id not in supported_bank_ids():
        raise UnsupportedBankError(bank_id, supported_bank_ids())
    if not pattern or not pattern.strip():
        raise ValidationError("Pattern is required")
    return pattern


# ── Categories ───────────────────────────────────────────────────────────────

async def create_category(
    *,
    workspace_id: int,
    name: str,
    color: str | None = None,
    icon: str | None = None,
    repo: ICategoryRepository,
) -> Category:
    name = name.strip()
    if not name:
        raise ValidationError("Category name is required")
    if await repo.get_by_name(workspace_id, name) is not None:
        raise DuplicateResourceError("Category name already exists in this workspace")
    category = Category(id=None, workspace_id=workspace_id, name=name, color=color, icon=icon)
    return await repo.save(category)


async def update_category(
    *,
    category_id: int,
    workspace_id: int,
    name: str | None = None,
    color: str | None = None,
    icon: str | None = None,
    repo: ICategoryRepository,
    cache: PatternCache | None = None,
) -> Category:
    cache = cache or pattern_cache
    if name is None and color is None and icon is None:
        raise ValidationError("No fields to update")
    category = await _get_owned_category(category_id, workspace_id, repo)

    if name is not None:
        name = name.strip()
        if not name:
            raise ValidationError("Category name is required")
        other = await repo.get_by_name(workspace_id, name)
        if other is not None and other.id != category_id:
            raise DuplicateResourceError("Category name already exists in this workspace")
        category.name = name
    if color is not None:
        category.color = color
    if icon is not None:
        category.icon = icon

    saved = await repo.save(category)
    cache.invalidate()
    return saved


async def delete_category(
    *,
    category_id: int,
    workspace_id: int,
    repo: ICategoryRepository,
    cache: PatternCache | None = None,
) -> None:
    """Remove a category with its rules; its transactions become uncategorized."""
    cache = cache or pattern_cache
    if not await repo.delete(category_id, workspace_id):
        raise NotFoundError(f"Category {category_id} not found")
    cache.invalidate()
    logger.info("deleted category %s from workspace %s", category_id, workspace_id)


async def list_categories(*, workspace_id: int, repo: ICategoryRepository) -> list[Category]:
    return await repo.list_by_workspace(workspace_id)


async def get_category_with_patterns(
    *,
    category_id: int,
    workspace_id: int,
    bank_id: str | None = None,
    category_repo: ICategoryRepository,
    pattern_repo: ICategoryPatternRepository,
) -> CategoryWithPatterns:
    category = await _get_owned_category(category_id, workspace_id, category_repo)
    patterns = await pattern_repo.list_by_category(category_id, bank_id)
    return CategoryWithPatterns(category=category, patterns=patterns)


# ── Rules ────────────────────────────────────────────────────────────────────

async def create_pattern(
    *,
    category_id: int,
    workspace_id: int,
    bank_id: str,
    pattern: str,
    priority: int = 0,
    category_repo: ICategoryRepository,
    pattern_repo: ICategoryPatternRepository,
    tx_repo: ITransactionRepository,
    cache: PatternCache | None = None,
) -> CreatePatternResult:
    """Store a rule, then pull matching "Other"/uncategorized rows into it."""
    cache = cache or pattern_cache
    _validate_pattern_input(bank_id, pattern)
    if priority < 0:
        raise ValidationError("Priority must be zero or greater")
    await _get_owned_category(category_id, workspace_id, category_repo)
    await _assert_pattern_not_duplicate(workspace_id, bank_id, pattern, pattern_repo)

    saved = await pattern_repo.save(CategoryPattern(
        id=None,
        category_id=category_id,
        bank_id=bank_id,
        pattern=pattern,
        priority=priority,
    ))
    cache.invalidate()

    result = await recategorize_by_pattern(
        bank_id,
        workspace_id,
        category_id,
        category_repo=category_repo,
        pattern_repo=pattern_repo,
        tx_repo=tx_repo,
        cache=cache,
    )
    return CreatePatternResult(pattern=saved, recategorized=result.recategorized)


async def create_quick_pattern(
    *,
    category_id: int,
    workspace_id: int,
    bank_id: str,
    pattern: str,
    category_repo: ICategoryRepository,
    pattern_repo: ICategoryPatternRepository,
    cache: PatternCache | None = None,
) -> CategoryPattern:
    """Store a priority-0 rule without touching existing transactions."""
    cache = cache or pattern_cache
    _validate_pattern_input(bank_id, pattern)
    await _get_owned_category(category_id, workspace_id, category_repo)
    await _assert_pattern_not_duplicate(workspace_id, bank_id, pattern, pattern_repo)

    saved = await pattern_repo.save(CategoryPattern(
        id=None,
        category_id=category_id,
        bank_id=bank_id,
        pattern=pattern,
        priority=0,
    ))
    cache.invalidate()
    return saved


async def delete_pattern(
    *,
    category_id: int,
    pattern_id: int,
    workspace_id: int,
    category_repo: ICategoryRepository,
    pattern_repo: ICategoryPatternRepository,
    cache: PatternCache | None = None,
) -> None:
    cache = cache or pattern_cache
    await _get_owned_category(category_id, workspace_id, category_repo)
    deleted = await pattern_repo.delete(pattern_id, category_id)
    cache.invalidate()
    if not deleted:
        raise NotFoundError(f"Pattern {pattern_id} not found")


async def check_pattern_exists(
    *,
    workspace_id: int,
    bank_id: str,
    pattern: str,
    pattern_repo: ICategoryPatternRepository,
) -> PatternExists:
    owner = await pattern_repo.find_category_name_by_pattern(workspace_id, bank_id, pattern)
    return PatternExists(exists=owner is not None, category_name=owner)


# ── Seeding ──────────────────────────────────────────────────────────────────

async def seed_workspace_categories(
    *,
    workspace_id: int,
    category_repo: ICategoryRepository,
    pattern_repo: ICategoryPatternRepository,
    cache: PatternCache | None = None,
) -> list[Category]:
    """Create the default categories and every bank's default rules.

    A workspace that already has categories is left untouched.
    """
    cache = cache or pattern_cache
    if await category_repo.count_by_workspace(workspace_id) > 0:
        return await category_repo.list_by_workspace(workspace_id)

    by_name: dict[str, Category] = {}
    for default in DEFAULT_CATEGORIES:
        by_name[default.name] = await category_repo.save(Category(
            id=None,
            workspace_id=workspace_id,
            name=default.name,
            color=default.color,
            icon=default.icon,
            is_default=True,
        ))

    seeded = 0
    for bank_id, rules in BANK_CATEGORY_PATTERNS.items():
        for category_name, patterns in rules.items():
            category = by_name.get(category_name)
            if category is None:
                continue
            for priority, pattern in enumerate(patterns):
                await pattern_repo.save(CategoryPattern(
                    id=None,
                    category_id=category.id,
                    bank_id=bank_id,
                    pattern=pattern,
                    priority=priority,
                ))
                seeded += 1
    cache.invalidate()

    logger.info(
        "seeded workspace %s with %d categories and %d rule(s)",
        workspace_id, len(by_name), seeded,
    )
    return list(by_name.values())
