"""Category and rule management, default seeding and cache invalidation."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from compasso.application.categorization import commands
from compasso.application.categorization.matcher import match_category
from compasso.application.errors import (
    DuplicateResourceError,
    NotFoundError,
    UnsupportedBankError,
    ValidationError,
)
from compasso.domain.finance.entities import Ledger, Transaction
from compasso.infrastructure.statements.cgd import CATEGORY_PATTERNS as CGD_PATTERNS

WORKSPACE_ID = 1


def _rule_repos(repos: dict) -> dict:
    return {"category_repo": repos["category_repo"], "pattern_repo": repos["pattern_repo"]}


async def _seed(repos: dict):
    return await commands.seed_workspace_categories(workspace_id=WORKSPACE_ID, **_rule_repos(repos))


async def test_seeding_creates_defaults_and_bank_rules(repos):
    seeded = await _seed(repos)

    assert len(seeded) == len(commands.DEFAULT_CATEGORIES) == 16
    assert all(c.is_default for c in seeded)

    cgd_rules = await repos["pattern_repo"].list_for_matching("cgd", WORKSPACE_ID)
    assert len(cgd_rules) == sum(len(p) for p in CGD_PATTERNS.values())

    fuel = next(c for c in seeded if c.name == "Fuel")
    fuel_rules = await repos["pattern_repo"].list_by_category(fuel.id, "cgd")
    # priority is the position in the default list; listing is priority desc
    assert [r.pattern for r in fuel_rules] == list(reversed(CGD_PATTERNS["Fuel"]))
    assert [r.priority for r in fuel_rules] == list(reversed(range(len(CGD_PATTERNS["Fuel"]))))


async def test_seeding_twice_is_a_no_op(repos):
    await _seed(repos)
    again = await _seed(repos)

    assert len(again) == 16
    assert await repos["category_repo"].count_by_workspace(WORKSPACE_ID) == 16


async def test_seeded_rules_categorize_real_descriptions(repos):
    await _seed(repos)
    pattern_repo = repos["pattern_repo"]

    match = await match_category("COMPRA CONTINENTE LISBOA", "cgd", WORKSPACE_ID, pattern_repo=pattern_repo)
    assert match.category_name == "Groceries"
    match = await match_category("1,50 COM SI", "cgd", WORKSPACE_ID, pattern_repo=pattern_repo)
    assert match.category_name == "Fees"
    assert await match_category("TRF BPI", "novo_banco", WORKSPACE_ID, pattern_repo=pattern_repo) is None


async def test_category_names_are_unique_per_workspace(repos):
    await commands.create_category(workspace_id=WORKSPACE_ID, name="Pets", repo=repos["category_repo"])
    with pytest.raises(DuplicateResourceError):
        await commands.create_category(workspace_id=WORKSPACE_ID, name=" Pets ", repo=repos["category_repo"])
    other_ws = await commands.create_category(workspace_id=2, name="Pets", repo=repos["category_repo"])
    assert other_ws.id is not None


async def test_create_pattern_validates_input(repos):
    pets = await commands.create_category(workspace_id=WORKSPACE_ID, name="Pets", repo=repos["category_repo"])
    kwargs = dict(category_id=pets.id, workspace_id=WORKSPACE_ID, tx_repo=repos["tx_repo"], **_rule_repos(repos))

    with pytest.raises(UnsupportedBankError, match="Unsupported bank: millennium. Supported banks: novo_banco, cgd"):
        await commands.create_pattern(bank_id="millennium", pattern="Zooplus", **kwargs)
    with pytest.raises(ValidationError):
        await commands.create_pattern(bank_id="cgd", pattern="   ", **kwargs)
    with pytest.raises(ValidationError):
        await commands.create_pattern(bank_id="cgd", pattern="Zooplus", priority=-1, **kwargs)
    with pytest.raises(NotFoundError):
        await commands.create_pattern(
            category_id=pets.id, workspace_id=2, bank_id="cgd", pattern="Zooplus",
            tx_repo=repos["tx_repo"], **_rule_repos(repos),
        )


async def test_duplicate_pattern_names_its_owner(repos):
    pets = await commands.create_category(workspace_id=WORKSPACE_ID, name="Pets", repo=repos["category_repo"])
    toys = await commands.create_category(workspace_id=WORKSPACE_ID, name="Toys", repo=repos["category_repo"])
    await commands.create_quick_pattern(
        category_id=pets.id, workspace_id=WORKSPACE_ID, bank_id="cgd", pattern="Zooplus", **_rule_repos(repos),
    )

    with pytest.raises(DuplicateResourceError, match='"Pets"'):
        await commands.create_quick_pattern(
            category_id=toys.id, workspace_id=WORKSPACE_ID, bank_id="cgd", pattern="Zooplus", **_rule_repos(repos),
        )
    # the same text for another bank is a different rule
    await commands.create_quick_pattern(
        category_id=toys.id, workspace_id=WORKSPACE_ID, bank_id="novo_banco", pattern="Zooplus",
        **_rule_repos(repos),
    )

    found = await commands.check_pattern_exists(
        workspace_id=WORKSPACE_ID, bank_id="cgd", pattern="Zooplus", pattern_repo=repos["pattern_repo"],
    )
    assert (found.exists, found.category_name) == (True, "Pets")


async def test_create_pattern_recategorizes_but_quick_pattern_does_not(repos):
    await _seed(repos)
    category_repo, tx_repo = repos["category_repo"], repos["tx_repo"]
    pets = await commands.create_category(workspace_id=WORKSPACE_ID, name="Pets", repo=category_repo)
    other = await category_repo.get_by_name(WORKSPACE_ID, "Other")
    ledger = await repos["ledger_repo"].save(Ledger(
        id=None, workspace_id=WORKSPACE_ID, filename="jan.pdf", bank_id="cgd", file_hash="f" * 64,
    ))
    rows = await tx_repo.bulk_save([
        Transaction(id=None, ledger_id=ledger.id, date=date(2024, 1, d), description=desc,
                    amount=Decimal("9.99"), is_income=False, category_id=other.id)
        for d, desc in ((3, "COMPRA ZOOPLUS"), (4, "COMPRA KIWOKO"))
    ])

    quick = await commands.create_quick_pattern(
        category_id=pets.id, workspace_id=WORKSPACE_ID, bank_id="cgd", pattern="Kiwoko", **_rule_repos(repos),
    )
    assert quick.priority == 0
    assert (await tx_repo.get_by_id(rows[1].id, WORKSPACE_ID)).category_id == other.id

    created = await commands.create_pattern(
        category_id=pets.id, workspace_id=WORKSPACE_ID, bank_id="cgd", pattern="Zooplus", priority=2,
        tx_repo=tx_repo, **_rule_repos(repos),
    )
    assert created.pattern.id is not None
    # both rows now resolve to Pets, the earlier quick rule included
    assert created.recategorized == 2
    assert (await tx_repo.get_by_id(rows[0].id, WORKSPACE_ID)).category_id == pets.id


async def test_rule_changes_invalidate_cached_rules(repos):
    pets = await commands.create_category(workspace_id=WORKSPACE_ID, name="Pets", repo=repos["category_repo"])
    pattern_repo = repos["pattern_repo"]
    assert await match_category("ZOOPLUS", "cgd", WORKSPACE_ID, pattern_repo=pattern_repo) is None

    rule = await commands.create_quick_pattern(
        category_id=pets.id, workspace_id=WORKSPACE_ID, bank_id="cgd", pattern="Zooplus", **_rule_repos(repos),
    )
    assert (await match_category("ZOOPLUS", "cgd", WORKSPACE_ID, pattern_repo=pattern_repo)).category_id == pets.id

    await commands.delete_pattern(
        category_id=pets.id, pattern_id=rule.id, workspace_id=WORKSPACE_ID, **_rule_repos(repos),
    )
    assert await match_category("ZOOPLUS", "cgd", WORKSPACE_ID, pattern_repo=pattern_repo) is None


async def test_delete_missing_pattern(repos):
    pets = await commands.create_category(workspace_id=WORKSPACE_ID, name="Pets", repo=repos["category_repo"])
    with pytest.raises(NotFoundError):
        await commands.delete_pattern(
            category_id=pets.id, pattern_id=999, workspace_id=WORKSPACE_ID, **_rule_repos(repos),
        )


async def test_category_with_patterns_filters_by_bank(repos):
    pets = await commands.create_category(workspace_id=WORKSPACE_ID, name="Pets", repo=repos["category_repo"])
    for bank_id in ("cgd", "novo_banco"):
        await commands.create_quick_pattern(
            category_id=pets.id, workspace_id=WORKSPACE_ID, bank_id=bank_id, pattern="Zooplus",
            **_rule_repos(repos),
        )

    everything = await commands.get_category_with_patterns(
        category_id=pets.id, workspace_id=WORKSPACE_ID, **_rule_repos(repos),
    )
    only_cgd = await commands.get_category_with_patterns(
        category_id=pets.id, workspace_id=WORKSPACE_ID, bank_id="cgd", **_rule_repos(repos),
    )
    assert len(everything.patterns) == 2
    assert [p.bank_id for p in only_cgd.patterns] == ["cgd"]


async def test_update_category_renames_and_refreshes_cached_rules(repos):
    category_repo, pattern_repo = repos["category_repo"], repos["pattern_repo"]
    pets = await commands.create_category(workspace_id=WORKSPACE_ID, name="Pets", repo=category_repo)
    await commands.create_category(workspace_id=WORKSPACE_ID, name="Toys", repo=category_repo)
    await commands.create_quick_pattern(
        category_id=pets.id, workspace_id=WORKSPACE_ID, bank_id="cgd", pattern="Zooplus", **_rule_repos(repos),
    )
    assert (await match_category("ZOOPLUS", "cgd", WORKSPACE_ID, pattern_repo=pattern_repo)).category_name == "Pets"

    updated = await commands.update_category(
        category_id=pets.id, workspace_id=WORKSPACE_ID, name=" Animals ", color="#112233", repo=category_repo,
    )

    assert (updated.name, updated.color) == ("Animals", "#112233")
    assert (await category_repo.get_by_id(pets.id, WORKSPACE_ID)).name == "Animals"
    assert (await match_category("ZOOPLUS", "cgd", WORKSPACE_ID, pattern_repo=pattern_repo)).category_name == "Animals"


async def test_update_category_validation(repos):
    category_repo = repos["category_repo"]
    pets = await commands.create_category(workspace_id=WORKSPACE_ID, name="Pets", repo=category_repo)
    await commands.create_category(workspace_id=WORKSPACE_ID, name="Toys", repo=category_repo)

    with pytest.raises(ValidationError):
        await commands.update_category(category_id=pets.id, workspace_id=WORKSPACE_ID, repo=category_repo)
    with pytest.raises(ValidationError):
        await commands.update_category(category_id=pets.id, workspace_id=WORKSPACE_ID, name="  ", repo=category_repo)
    with pytest.raises(DuplicateResourceError):
        await commands.update_category(category_id=pets.id, workspace_id=WORKSPACE_ID, name="Toys", repo=category_repo)
    with pytest.raises(NotFoundError):
        await commands.update_category(category_id=pets.id, workspace_id=2, icon="paw", repo=category_repo)

    # keeping its own name is not a duplicate
    same = await commands.update_category(
        category_id=pets.id, workspace_id=WORKSPACE_ID, name="Pets", icon="paw", repo=category_repo,
    )
    assert same.icon == "paw"


async def test_delete_category_drops_rules_and_uncategorizes_rows(repos):
    category_repo, pattern_repo, tx_repo = repos["category_repo"], repos["pattern_repo"], repos["tx_repo"]
    pets = await commands.create_category(workspace_id=WORKSPACE_ID, name="Pets", repo=category_repo)
    await commands.create_quick_pattern(
        category_id=pets.id, workspace_id=WORKSPACE_ID, bank_id="cgd", pattern="Zooplus", **_rule_repos(repos),
    )
    ledger = await repos["ledger_repo"].save(Ledger(
        id=None, workspace_id=WORKSPACE_ID, filename="jan.pdf", bank_id="cgd", file_hash="e" * 64,
    ))
    [row] = await tx_repo.bulk_save([
        Transaction(id=None, ledger_id=ledger.id, date=date(2024, 1, 3), description="COMPRA ZOOPLUS",
                    amount=Decimal("9.99"), is_income=False, category_id=pets.id),
    ])
    assert await match_category("ZOOPLUS", "cgd", WORKSPACE_ID, pattern_repo=pattern_repo) is not None

    await commands.delete_category(category_id=pets.id, workspace_id=WORKSPACE_ID, repo=category_repo)

    assert await category_repo.get_by_id(pets.id, WORKSPACE_ID) is None
    assert await pattern_repo.list_by_category(pets.id) == []
    assert (await tx_repo.get_by_id(row.id, WORKSPACE_ID)).category_id is None
    assert await match_category("ZOOPLUS", "cgd", WORKSPACE_ID, pattern_repo=pattern_repo) is None

    with pytest.raises(NotFoundError):
        await commands.delete_category(category_id=pets.id, workspace_id=WORKSPACE_ID, repo=category_repo)


async def test_delete_category_checks_workspace(repos):
    pets = await commands.create_category(workspace_id=WORKSPACE_ID, name="Pets", repo=repos["category_repo"])
    with pytest.raises(NotFoundError):
        await commands.delete_category(category_id=pets.id, workspace_id=2, repo=repos["category_repo"])
    assert await repos["category_repo"].get_by_id(pets.id, WORKSPACE_ID) is not None
