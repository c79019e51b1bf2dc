"""Re-run the matcher over stored transactions after a rule is added."""
from __future__ import annotations

from dataclasses import dataclass

from compasso.domain.finance.entities import OTHER_CATEGORY_NAME
from compasso.domain.finance.repositories import (
    ICategoryPatternRepository,
    ICategoryRepository,
    ITransactionRepository,
)
from compasso.logging_setup import get_logger

from .matcher import PatternCache, load_patterns, score_description

logger = get_logger(__name__)


@dataclass(frozen=True)
class RecategorizeResult:
    total_checked: int
    recategorized: int


async def recategorize_by_pattern(
    bank_id: str,
    workspace_id: int,
    new_category_id: int,
    *,
    category_repo: ICategoryRepository,
    pattern_repo: ICategoryPatternRepository,
    tx_repo: ITransactionRepository,
    cache: PatternCache | None = None,
) -> RecategorizeResult:
    """Move eligible transactions into ``new_category_id`` when the full rule
    set now resolves them there.

    Eligible: not manually categorized, from a ledger of this workspace and
    bank, and either uncategorized or sitting in "Other".
    """
    other = await category_repo.get_by_name(workspace_id, OTHER_CATEGORY_NAME)
    candidates = await tx_repo.list_recategorization_candidates(
        workspace_id, bank_id, other.id if other else None
    )
    patterns = await load_patterns(bank_id, workspace_id, pattern_repo=pattern_repo, cache=cache)

    recategorized = 0
    for tx in candidates:
        match = score_description(tx.description, patterns)
        if match is not None and match.category_id == new_category_id:
            await tx_repo.set_category(tx.id, new_category_id)
            recategorized += 1

    logger.info(
        "recategorized %d of %d candidate(s) into category %s (bank=%s, workspace=%s)",
        recategorized, len(candidates), new_category_id, bank_id, workspace_id,
    )
    return RecategorizeResult(total_checked=len(candidates), recategorized=recategorized)
