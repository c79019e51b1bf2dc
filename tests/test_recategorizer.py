"""Recategorization after a new rule: only unmanaged Other/uncategorized rows move."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from compasso.application.categorization.recategorizer import recategorize_by_pattern
from compasso.domain.finance.entities import Category, CategoryPattern, Ledger, Transaction

WORKSPACE_ID = 1


async def _category(repo, name: str) -> Category:
    return await repo.save(Category(id=None, workspace_id=WORKSPACE_ID, name=name))


async def _ledger(repo, bank_id: str, file_hash: str) -> Ledger:
    return await repo.save(Ledger(
        id=None, workspace_id=WORKSPACE_ID, filename=f"{file_hash}.pdf", bank_id=bank_id, file_hash=file_hash,
    ))


def _tx(ledger_id: int, description: str, *, category_id: int | None = None, manual: bool = False) -> Transaction:
    return Transaction(
        id=None,
        ledger_id=ledger_id,
        date=date(2024, 1, 15),
        description=description,
        amount=Decimal("20.00"),
        is_income=False,
        category_id=category_id,
        is_manual=manual,
    )


async def test_moves_only_eligible_rows_into_the_new_category(repos):
    category_repo, pattern_repo, tx_repo = repos["category_repo"], repos["pattern_repo"], repos["tx_repo"]
    other = await _category(category_repo, "Other")
    fuel = await _category(category_repo, "Fuel")
    dining = await _category(category_repo, "Dining")
    cgd = await _ledger(repos["ledger_repo"], "cgd", "a" * 64)
    nb = await _ledger(repos["ledger_repo"], "novo_banco", "b" * 64)

    rows = await tx_repo.bulk_save([
        _tx(cgd.id, "COMPRA GALP PORTO"),                                    # uncategorized: moves
        _tx(cgd.id, "COMPRA GALP LISBOA", category_id=other.id),             # in Other: moves
        _tx(cgd.id, "COMPRA GALP FARO", category_id=dining.id),              # already categorized
        _tx(cgd.id, "COMPRA GALP BRAGA", category_id=other.id, manual=True),  # set by hand
        _tx(cgd.id, "COMPRA GALP CAFE"),                                     # Dining outscores Fuel
        _tx(cgd.id, "COMPRA PINGO DOCE"),                                    # no rule at all
        _tx(nb.id, "COMPRA GALP EVORA"),                                     # another bank
    ])
    await pattern_repo.save(CategoryPattern(id=None, category_id=fuel.id, bank_id="cgd", pattern="Galp"))
    await pattern_repo.save(CategoryPattern(id=None, category_id=dining.id, bank_id="cgd", pattern="cafe", priority=9))

    result = await recategorize_by_pattern("cgd", WORKSPACE_ID, fuel.id, **_pick(repos))

    assert result.total_checked == 4
    assert result.recategorized == 2

    categories = [(await tx_repo.get_by_id(tx.id, WORKSPACE_ID)).category_id for tx in rows]
    assert categories == [fuel.id, fuel.id, dining.id, other.id, None, None, None]


async def test_without_an_other_category_only_uncategorized_rows_are_checked(repos):
    category_repo, pattern_repo, tx_repo = repos["category_repo"], repos["pattern_repo"], repos["tx_repo"]
    fuel = await _category(category_repo, "Fuel")
    shopping = await _category(category_repo, "Shopping")
    cgd = await _ledger(repos["ledger_repo"], "cgd", "c" * 64)
    await tx_repo.bulk_save([
        _tx(cgd.id, "BP NORTE"),
        _tx(cgd.id, "BP SUL", category_id=shopping.id),
    ])
    await pattern_repo.save(CategoryPattern(id=None, category_id=fuel.id, bank_id="cgd", pattern="BP"))

    result = await recategorize_by_pattern("cgd", WORKSPACE_ID, fuel.id, **_pick(repos))

    assert (result.total_checked, result.recategorized) == (1, 1)


async def test_nothing_to_do(repos):
    fuel = await _category(repos["category_repo"], "Fuel")
    result = await recategorize_by_pattern("cgd", WORKSPACE_ID, fuel.id, **_pick(repos))
    assert (result.total_checked, result.recategorized) == (0, 0)


def _pick(repos: dict) -> dict:
    return {k: repos[k] for k in ("category_repo", "pattern_repo", "tx_repo")}
