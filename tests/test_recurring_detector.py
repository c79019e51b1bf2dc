"""Recurring detection: grouping, interval bands, regularity and idempotent re-runs."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

import pytest

from compasso.application.errors import NotFoundError, ValidationError
from compasso.application.recurring import commands, queries
from compasso.application.recurring.detector import (
    classify_interval,
    detect_recurring_patterns,
    find_recurring_groups,
    normalize_description,
)
from compasso.domain.finance.entities import Ledger, RecurringFrequency, RecurringPattern, Transaction
from compasso.domain.finance.repositories import HistoryTransaction

WORKSPACE_ID = 1


def _history(description: str, start: date, gaps: list[int], amount: str = "15.99", *, is_income: bool = False):
    dates = [start]
    for gap in gaps:
        dates.append(dates[-1] + timedelta(days=gap))
    return [
        HistoryTransaction(id=i + 1, description=description, amount=Decimal(amount), date=d, is_income=is_income)
        for i, d in enumerate(dates)
    ]


# ---- Pure analysis ------------------------------------------------------------


def test_normalize_description_strips_dates_and_references():
    assert normalize_description("Pagamento 12/03/2024 ref 1234567  netflix") == "PAGAMENTO REF NETFLIX"
    assert normalize_description("Spotify 2024-03-01") == "SPOTIFY"
    assert normalize_description("MB 12345 NOS") == "MB 12345 NOS"


@pytest.mark.parametrize(
    ("gap", "expected"),
    [
        (4, None),
        (5, RecurringFrequency.WEEKLY),
        (9, RecurringFrequency.WEEKLY),
        (12, None),
        (25, RecurringFrequency.MONTHLY),
        (35, RecurringFrequency.MONTHLY),
        (100, None),
        (365, RecurringFrequency.YEARLY),
        (381, None),
    ],
)
def test_classify_interval(gap, expected):
    assert classify_interval(gap) == expected


def test_monthly_with_small_jitter_is_detected():
    (found,) = find_recurring_groups(_history("NETFLIX.COM 123456789", date(2024, 1, 1), [30, 31, 29]))

    assert found.frequency == RecurringFrequency.MONTHLY
    assert found.description_pattern == "NETFLIX.COM"
    assert found.avg_amount == Decimal("15.99")
    assert found.transaction_ids == [1, 2, 3, 4]


def test_irregular_spacing_is_rejected():
    # mean gap 25.75 is in the monthly band, but the spread is far too wide
    assert find_recurring_groups(_history("GINASIO", date(2024, 1, 1), [9, 9, 81, 4])) == []


def test_fewer_than_three_occurrences_is_not_a_pattern():
    assert find_recurring_groups(_history("SPOTIFY", date(2024, 1, 1), [30])) == []


def test_weekly_and_yearly_bands():
    weekly = find_recurring_groups(_history("LAVANDARIA", date(2024, 1, 1), [7, 7, 8, 6]))
    yearly = find_recurring_groups(_history("SEGURO AUTO", date(2020, 3, 1), [365, 366, 365], "240.00"))

    assert [p.frequency for p in weekly] == [RecurringFrequency.WEEKLY]
    assert [p.frequency for p in yearly] == [RecurringFrequency.YEARLY]


def test_directions_are_analyzed_separately():
    charges = _history("TRF JOAO", date(2024, 1, 1), [30, 30, 30])
    refunds = [
        HistoryTransaction(id=100 + i, description="TRF JOAO", amount=Decimal("5.00"),
                           date=date(2024, 1, 10) + timedelta(days=30 * i), is_income=True)
        for i in range(2)
    ]
    (found,) = find_recurring_groups(charges + refunds)
    assert found.transaction_ids == [1, 2, 3, 4]


def test_average_amount_is_rounded_to_cents():
    history = _history("EDP", date(2024, 1, 1), [30, 30])
    amounts = [Decimal("10.00"), Decimal("10.00"), Decimal("10.01")]
    history = [HistoryTransaction(h.id, h.description, a, h.date, h.is_income) for h, a in zip(history, amounts)]

    (found,) = find_recurring_groups(history)
    assert found.avg_amount == Decimal("10.00")


# ---- Persistence ----------------------------------------------------------------


async def _ledger_with(repos: dict, descriptions_and_dates: list[tuple[str, date]], amount: str = "15.99"):
    ledger = await repos["ledger_repo"].save(Ledger(
        id=None, workspace_id=WORKSPACE_ID, filename="x.pdf", bank_id="cgd",
        file_hash=f"{len(descriptions_and_dates):064d}",
    ))
    return await repos["tx_repo"].bulk_save([
        Transaction(id=None, ledger_id=ledger.id, date=d, description=desc, amount=Decimal(amount), is_income=False)
        for desc, d in descriptions_and_dates
    ])


def _monthly(description: str, count: int) -> list[tuple[str, date]]:
    return [(description, date(2024, 1, 5) + timedelta(days=30 * i)) for i in range(count)]


def _detector_repos(repos: dict) -> dict:
    return {"tx_repo": repos["tx_repo"], "recurring_repo": repos["recurring_repo"]}


async def test_detection_persists_and_links_transactions(repos):
    rows = await _ledger_with(repos, _monthly("NETFLIX", 4))

    result = await detect_recurring_patterns(workspace_id=WORKSPACE_ID, **_detector_repos(repos))

    assert result.detected == 1
    (stored,) = await queries.list_recurring_patterns(workspace_id=WORKSPACE_ID, repo=repos["recurring_repo"])
    assert stored.description_pattern == "NETFLIX"
    assert stored.occurrence_count == 4
    assert stored.is_active

    linked = await queries.get_pattern_transactions(
        pattern_id=stored.id, workspace_id=WORKSPACE_ID,
        recurring_repo=repos["recurring_repo"], tx_repo=repos["tx_repo"],
    )
    assert sorted(tx.id for tx in linked) == sorted(tx.id for tx in rows)


async def test_rerun_refreshes_without_creating_duplicates(repos):
    await _ledger_with(repos, _monthly("NETFLIX", 4))
    await detect_recurring_patterns(workspace_id=WORKSPACE_ID, **_detector_repos(repos))

    again = await detect_recurring_patterns(workspace_id=WORKSPACE_ID, **_detector_repos(repos))
    assert again.detected == 0
    assert len(again.patterns) == 1

    await _ledger_with(repos, [("NETFLIX", date(2024, 1, 5) + timedelta(days=120))])
    await detect_recurring_patterns(workspace_id=WORKSPACE_ID, **_detector_repos(repos))
    (stored,) = await queries.list_recurring_patterns(workspace_id=WORKSPACE_ID, repo=repos["recurring_repo"])
    assert stored.occurrence_count == 5


async def test_empty_history_detects_nothing(repos):
    result = await detect_recurring_patterns(workspace_id=WORKSPACE_ID, **_detector_repos(repos))
    assert (result.detected, result.patterns) == (0, [])


async def test_summary_converts_to_monthly_cost(repos):
    recurring_repo = repos["recurring_repo"]
    for description, frequency, amount, active in (
        ("NETFLIX", RecurringFrequency.MONTHLY, "15.99", True),
        ("LAVANDARIA", RecurringFrequency.WEEKLY, "10.00", True),
        ("SEGURO", RecurringFrequency.YEARLY, "120.00", True),
        ("GINASIO", RecurringFrequency.MONTHLY, "40.00", False),
    ):
        await recurring_repo.save(RecurringPattern(
            id=None, workspace_id=WORKSPACE_ID, description_pattern=description,
            frequency=frequency, avg_amount=Decimal(amount), is_active=active,
        ))

    summary = await queries.get_recurring_summary(workspace_id=WORKSPACE_ID, repo=recurring_repo)

    assert summary.total_active == 3
    # 15.99 + 10.00 * 4.33 + 120.00 / 12
    assert summary.estimated_monthly_cost == Decimal("69.29")


async def test_update_toggle_and_delete(repos):
    rows = await _ledger_with(repos, _monthly("SPOTIFY", 3))
    await detect_recurring_patterns(workspace_id=WORKSPACE_ID, **_detector_repos(repos))
    recurring_repo = repos["recurring_repo"]
    (pattern,) = await queries.list_recurring_patterns(workspace_id=WORKSPACE_ID, repo=recurring_repo)

    updated = await commands.update_recurring_pattern(
        pattern_id=pattern.id, workspace_id=WORKSPACE_ID, frequency="yearly", avg_amount=Decimal("9.99"),
        repo=recurring_repo,
    )
    assert (updated.frequency, updated.avg_amount) == (RecurringFrequency.YEARLY, Decimal("9.99"))
    with pytest.raises(ValidationError):
        await commands.update_recurring_pattern(
            pattern_id=pattern.id, workspace_id=WORKSPACE_ID, description_pattern="  ", repo=recurring_repo,
        )

    toggled = await commands.toggle_recurring_pattern(
        pattern_id=pattern.id, workspace_id=WORKSPACE_ID, is_active=False, repo=recurring_repo,
    )
    assert toggled.is_active is False

    with pytest.raises(NotFoundError):
        await commands.delete_recurring_pattern(pattern_id=pattern.id, workspace_id=2, repo=recurring_repo)
    await commands.delete_recurring_pattern(pattern_id=pattern.id, workspace_id=WORKSPACE_ID, repo=recurring_repo)

    assert await queries.list_recurring_patterns(workspace_id=WORKSPACE_ID, repo=recurring_repo) == []
    tx = await repos["tx_repo"].get_by_id(rows[0].id, WORKSPACE_ID)
    assert tx is not None
    assert tx.recurring_pattern_id is None


async def test_missing_pattern_transactions(repos):
    with pytest.raises(NotFoundError):
        await queries.get_pattern_transactions(
            pattern_id=42, workspace_id=WORKSPACE_ID,
            recurring_repo=repos["recurring_repo"], tx_repo=repos["tx_repo"],
        )
