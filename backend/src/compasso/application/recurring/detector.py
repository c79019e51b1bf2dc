"""Recurring charge / income detection over a workspace's history.

Transactions are grouped by a normalized description (upper case, dates and
long reference numbers removed) and split by direction. A group with at least
three members is recurring when the mean gap between consecutive dates falls in
a frequency band and the gaps are regular enough:

    weekly   5-9 days     std dev <= 0.3 * 7
    monthly  25-35 days   std dev <= 0.3 * 30
    yearly   350-380 days std dev <= 0.3 * 365
"""
from __future__ import annotations

import math
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from compasso.domain.finance.entities import (
    FREQUENCY_INTERVAL_DAYS,
    RecurringFrequency,
    RecurringPattern,
)
from compasso.domain.finance.repositories import (
    HistoryTransaction,
    IRecurringPatternRepository,
    ITransactionRepository,
)
from compasso.logging_setup import get_logger

logger = get_logger(__name__)

MIN_OCCURRENCES = 3
MAX_STDDEV_RATIO = 0.3

# (frequency, lowest mean gap, highest mean gap), inclusive
_FREQUENCY_BANDS: list[tuple[RecurringFrequency, float, float]] = [
    (RecurringFrequency.WEEKLY, 5, 9),
    (RecurringFrequency.MONTHLY, 25, 35),
    (RecurringFrequency.YEARLY, 350, 380),
]

_SLASH_DATE_RE = re.compile(r"\d{2}/\d{2}/\d{4}")
_ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
_REFERENCE_RE = re.compile(r"\b\d{6,}\b")
_WS_RE = re.compile(r"\s+")
_CENTS = Decimal("0.01")


@dataclass
class DetectedPattern:
    description_pattern: str
    frequency: RecurringFrequency
    avg_amount: Decimal
    transaction_ids: list[int] = field(default_factory=list)


@dataclass
class DetectionResult:
    detected: int
    patterns: list[DetectedPattern]


def normalize_description(description: str) -> str:
    text = description.upper()
    text = _SLASH_DATE_RE.sub("", text)
    text = _ISO_DATE_RE.sub("", text)
    text = _REFERENCE_RE.sub("", text)
    return _WS_RE.sub(" ", text).strip()


def classify_interval(mean_gap: float) -> RecurringFrequency | None:
    for frequency, low, high in _FREQUENCY_BANDS:
        if low <= mean_gap <= high:
            return frequency
    return None


def _gaps_in_days(history: Sequence[HistoryTransaction]) -> list[int]:
    dates = sorted(tx.date for tx in history)
    return [(later - earlier).days for earlier, later in zip(dates, dates[1:])]


def _population_stddev(values: Sequence[float]) -> float:
    if len(values) < 2:
        return 0.0
    mean = sum(values) / len(values)
    return math.sqrt(sum((v - mean) ** 2 for v in values) / len(values))


def analyze_group(history: Sequence[HistoryTransaction], description_pattern: str) -> DetectedPattern | None:
    """Fit one same-direction group; None when it is not regular enough."""
    gaps = _gaps_in_days(history)
    if not gaps:
        return None

    frequency = classify_interval(sum(gaps) / len(gaps))
    if frequency is None:
        return None
    if _population_stddev(gaps) > FREQUENCY_INTERVAL_DAYS[frequency] * MAX_STDDEV_RATIO:
        return None

    total = sum((tx.amount for tx in history), Decimal("0"))
    avg_amount = abs(total / len(history)).quantize(_CENTS, rounding=ROUND_HALF_UP)
    return DetectedPattern(
        description_pattern=description_pattern,
        frequency=frequency,
        avg_amount=avg_amount,
        transaction_ids=[tx.id for tx in history],
    )


def find_recurring_groups(history: Sequence[HistoryTransaction]) -> list[DetectedPattern]:
    """Pure analysis step: group, split by direction, fit each side."""
    groups: dict[str, list[HistoryTransaction]] = {}
    for tx in history:
        groups.setdefault(normalize_description(tx.description), []).append(tx)

    found: list[DetectedPattern] = []
    for key, members in groups.items():
        if len(members) < MIN_OCCURRENCES:
            continue
        expenses = [tx for tx in members if not tx.is_income]
        incomes = [tx for tx in members if tx.is_income]
        for side in (expenses, incomes):
            if len(side) < MIN_OCCURRENCES:
                continue
            pattern = analyze_group(side, key)
            if pattern is not None:
                found.append(pattern)
    return found


async def detect_recurring_patterns(
    *,
    workspace_id: int,
    tx_repo: ITransactionRepository,
    recurring_repo: IRecurringPatternRepository,
) -> DetectionResult:
    """Analyze the workspace history and upsert the patterns found.

    Runs inside the caller's session transaction; a failure part way through
    leaves nothing behind once the session rolls back.
    """
    history = await tx_repo.list_history(workspace_id)
    found = find_recurring_groups(history)

    detected = 0
    for pattern in found:
        existing = await recurring_repo.find(workspace_id, pattern.description_pattern, pattern.frequency)
        if existing is not None:
            existing.refresh(
                occurrence_count=len(pattern.transaction_ids),
                avg_amount=pattern.avg_amount,
            )
            stored = await recurring_repo.save(existing)
        else:
            stored = await recurring_repo.save(RecurringPattern(
                id=None,
                workspace_id=workspace_id,
                description_pattern=pattern.description_pattern,
                frequency=pattern.frequency,
                avg_amount=pattern.avg_amount,
                occurrence_count=len(pattern.transaction_ids),
            ))
            detected += 1
        await tx_repo.link_recurring_pattern(pattern.transaction_ids, stored.id)

    logger.info(
        "recurring detection for workspace %s: %d transaction(s), %d group(s), %d new",
        workspace_id, len(history), len(found), detected,
    )
    return DetectionResult(detected=detected, patterns=found)
