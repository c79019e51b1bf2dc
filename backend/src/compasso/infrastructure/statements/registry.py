"""Registry of supported banks: metadata, default rules and line parsers."""
from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field

from compasso.domain.statement.entities import BankConfig, ParseResult
from compasso.logging_setup import get_logger

from . import cgd, novo_banco
from .common import hash_file
from .lines import extract_lines

logger = get_logger(__name__)


@dataclass(frozen=True)
class BankParserDefinition:
    config: BankConfig
    parse_lines: Callable[[list[str]], ParseResult]
    category_patterns: dict[str, list[str]] = field(default_factory=dict)


_DEFINITIONS: list[BankParserDefinition] = [
    BankParserDefinition(
        config=novo_banco.CONFIG,
        parse_lines=novo_banco.parse_novo_banco_lines,
        category_patterns=novo_banco.CATEGORY_PATTERNS,
    ),
    BankParserDefinition(
        config=cgd.CONFIG,
        parse_lines=cgd.parse_cgd_lines,
        category_patterns=cgd.CATEGORY_PATTERNS,
    ),
]


def _constant_name(bank_id: str) -> str:
    return re.sub(r"[^A-Z0-9]", "_", bank_id.upper())


# e.g. {"NOVO_BANCO": "novo_banco", "CGD": "cgd"}
SUPPORTED_BANKS: dict[str, str] = {_constant_name(d.config.id): d.config.id for d in _DEFINITIONS}
BANK_CONFIGS: dict[str, BankConfig] = {d.config.id: d.config for d in _DEFINITIONS}
BANK_CATEGORY_PATTERNS: dict[str, dict[str, list[str]]] = {
    d.config.id: d.category_patterns for d in _DEFINITIONS
}
_PARSERS: dict[str, BankParserDefinition] = {d.config.id: d for d in _DEFINITIONS}


def supported_bank_ids() -> list[str]:
    return list(SUPPORTED_BANKS.values())


def get_parser(bank_id: str) -> BankParserDefinition | None:
    return _PARSERS.get(bank_id)


def parse_statement(pdf_bytes: bytes, bank_id: str) -> ParseResult:
    """Full pipeline: raw PDF bytes → ParseResult for the given bank.

    The hash is taken over the untouched bytes before any extraction so the
    same upload always maps to the same ledger.
    """
    definition = get_parser(bank_id)
    if definition is None:
        raise LookupError(f"No parser registered for bank {bank_id!r}")

    file_hash = hash_file(pdf_bytes)
    lines = extract_lines(pdf_bytes)
    result = definition.parse_lines(lines)
    result.file_hash = file_hash
    logger.info(
        "parsed %s statement: %d line(s), %d transaction(s), period %s..%s",
        bank_id, len(lines), len(result.transactions), result.period_start, result.period_end,
    )
    return result
