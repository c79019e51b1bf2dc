"""Category matching: score a description against a bank's stored rules.

Rule strings keep three tags: ``!`` (exclusion), ``regex:`` (full regular
expression) and plain text (case-insensitive whole-word literal). Each
non-exclusion hit adds ``priority + 1`` to its category; a category hit by any
exclusion can never win; the highest positive score wins and ties go to the
category seen first in ``(priority desc, id asc)`` order.
"""
from __future__ import annotations

import re
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, replace

from compasso.config import get_settings
from compasso.domain.finance.entities import (
    INCOME_CATEGORY_NAME,
    OTHER_CATEGORY_NAME,
    PatternKind,
    split_pattern_tags,
)
from compasso.domain.finance.repositories import (
    ICategoryPatternRepository,
    ICategoryRepository,
    PatternRecord,
)
from compasso.domain.statement.entities import ParsedTransaction
from compasso.logging_setup import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CategoryMatch:
    category_id: int
    category_name: str


@dataclass(frozen=True)
class CompiledPattern:
    id: int
    category_id: int
    category_name: str
    pattern: str
    priority: int
    is_exclusion: bool
    regex: re.Pattern | None  # None when the stored regex does not compile

    def matches(self, description: str) -> bool:
        return self.regex is not None and self.regex.search(description) is not None


def compile_pattern(record: PatternRecord) -> CompiledPattern:
    is_exclusion, kind, body = split_pattern_tags(record.pattern)
    source = body if kind == PatternKind.REGEX else rf"\b{re.escape(body)}\b"

    try:
        regex = re.compile(source, re.I)
    except re.error as exc:
        logger.warning("pattern %s (%r) does not compile, ignoring: %s", record.id, record.pattern, exc)
        regex = None

    return CompiledPattern(
        id=record.id,
        category_id=record.category_id,
        category_name=record.category_name,
        pattern=record.pattern,
        priority=record.priority,
        is_exclusion=is_exclusion,
        regex=regex,
    )


def compile_patterns(records: Iterable[PatternRecord]) -> tuple[CompiledPattern, ...]:
    ordered = sorted(records, key=lambda r: (-r.priority, r.id))
    return tuple(compile_pattern(r) for r in ordered)


def score_description(description: str, patterns: Sequence[CompiledPattern]) -> CategoryMatch | None:
    """Pure scoring step; ``patterns`` must already be in evaluation order."""
    scores: dict[int, int] = {}
    names: dict[int, str] = {}
    excluded: set[int] = set()

    for p in patterns:
        if not p.matches(description):
            continue
        names.setdefault(p.category_id, p.category_name)
        scores.setdefault(p.category_id, 0)
        if p.is_exclusion:
            excluded.add(p.category_id)
        elif p.category_id not in excluded:
            scores[p.category_id] += p.priority + 1

    best_id: int | None = None
    best_score = 0
    for category_id, score in scores.items():
        if category_id in excluded or score <= 0:
            continue
        if score > best_score:
            best_id, best_score = category_id, score

    if best_id is None:
        return None
    return CategoryMatch(category_id=best_id, category_name=names[best_id])


class PatternCache:
    """Compiled pattern sets per ``(bank_id, workspace_id)`` with a short TTL.

    Entries are immutable tuples; ``invalidate()`` swaps in a fresh dict.
    """

    def __init__(
        self,
        ttl_seconds: float | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[tuple[str, int], tuple[float, tuple[CompiledPattern, ...]]] = {}

    @property
    def ttl_seconds(self) -> float:
        if self._ttl is not None:
            return self._ttl
        return get_settings().pattern_cache_ttl_seconds

    def get(self, bank_id: str, workspace_id: int) -> tuple[CompiledPattern, ...] | None:
        entry = self._entries.get((bank_id, workspace_id))
        if entry is None:
            return None
        expires_at, patterns = entry
        if self._clock() >= expires_at:
            return None
        return patterns

    def put(self, bank_id: str, workspace_id: int, patterns: tuple[CompiledPattern, ...]) -> None:
        self._entries[(bank_id, workspace_id)] = (self._clock() + self.ttl_seconds, patterns)

    def invalidate(self) -> None:
        self._entries = {}


pattern_cache = PatternCache()


async def load_patterns(
    bank_id: str,
    workspace_id: int,
    *,
    pattern_repo: ICategoryPatternRepository,
    cache: PatternCache | None = None,
) -> tuple[CompiledPattern, ...]:
    cache = cache or pattern_cache
    patterns = cache.get(bank_id, workspace_id)
    if patterns is None:
        records = await pattern_repo.list_for_matching(bank_id, workspace_id)
        patterns = compile_patterns(records)
        cache.put(bank_id, workspace_id, patterns)
    return patterns


async def match_category(
    description: str,
    bank_id: str,
    workspace_id: int,
    *,
    pattern_repo: ICategoryPatternRepository,
    cache: PatternCache | None = None,
) -> CategoryMatch | None:
    patterns = await load_patterns(bank_id, workspace_id, pattern_repo=pattern_repo, cache=cache)
    return score_description(description, patterns)


async def apply_category_suggestions(
    transactions: list[ParsedTransaction],
    bank_id: str,
    workspace_id: int,
    *,
    category_repo: ICategoryRepository,
    pattern_repo: ICategoryPatternRepository,
    cache: PatternCache | None = None,
) -> list[ParsedTransaction]:
    """Fill the suggested category of every parsed row.

    Income rows go to the workspace "Income" category, the rest to the best
    rule match, then to "Other"; rows stay unsuggested when neither exists.
    """
    income = await category_repo.get_by_name(workspace_id, INCOME_CATEGORY_NAME)
    other = await category_repo.get_by_name(workspace_id, OTHER_CATEGORY_NAME)
    patterns = await load_patterns(bank_id, workspace_id, pattern_repo=pattern_repo, cache=cache)

    suggested: list[ParsedTransaction] = []
    for tx in transactions:
        if tx.is_income and income is not None:
            suggested.append(replace(tx, suggested_category_id=income.id, suggested_category_name=income.name))
            continue
        match = score_description(tx.description, patterns)
        if match is not None:
            suggested.append(replace(tx, suggested_category_id=match.category_id,
                                     suggested_category_name=match.category_name))
        elif other is not None:
            suggested.append(replace(tx, suggested_category_id=other.id, suggested_category_name=other.name))
        else:
            suggested.append(tx)
    return suggested
