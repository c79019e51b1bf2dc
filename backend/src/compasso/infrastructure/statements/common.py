"""Primitives shared by the per-bank statement parsers."""
from __future__ import annotations

import hashlib
import re
from datetime import date
from decimal import Decimal, InvalidOperation

_WS_RE = re.compile(r"\s+")
_LEADING_DETACHED_MINUS_RE = re.compile(r"^-\s+")
_DOTTED_FULL_RE = re.compile(r"(\d{2})\.(\d{2})\.(\d{4})")
_DOTTED_SHORT_RE = re.compile(r"(\d{2})\.(\d{2})\.(\d{2})")

# two-digit years above this pivot belong to the 1900s
_CENTURY_PIVOT = 50


def hash_file(content: bytes) -> str:
    """SHA-256 hex digest of file bytes."""
    return hashlib.sha256(content).hexdigest()


def collapse_whitespace(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def parse_european_decimal(value: str | None) -> Decimal:
    """Parse ``1.234,56`` style numbers; ``.`` groups thousands, ``,`` is the
    decimal mark. A detached leading sign (``- 24,30``) is accepted.

    >>> parse_european_decimal("1.234,56")
    Decimal('1234.56')
    >>> parse_european_decimal("")
    Decimal('0')
    """
    if value is None or not value.strip():
        return Decimal("0")
    normalized = _LEADING_DETACHED_MINUS_RE.sub("-", value.strip())
    normalized = normalized.replace(".", "").replace(",", ".")
    try:
        return Decimal(normalized)
    except InvalidOperation as exc:
        raise ValueError(f"Not a European decimal: {value!r}") from exc


def parse_iso_date(text: str) -> date:
    return date.fromisoformat(text)


def parse_dotted_date(text: str) -> date:
    """``DD.MM.YYYY`` or ``DD.MM.YY`` → date (``YY`` > 50 ⇒ 19YY, else 20YY)."""
    m = _DOTTED_FULL_RE.search(text)
    if m:
        day, month, year = m.groups()
        return date(int(year), int(month), int(day))
    m = _DOTTED_SHORT_RE.search(text)
    if m:
        day, month, yy = m.groups()
        century = 1900 if int(yy) > _CENTURY_PIVOT else 2000
        return date(century + int(yy), int(month), int(day))
    raise ValueError(f"Not a dotted date: {text!r}")


def classify_transaction_type(description: str, patterns: dict[str, re.Pattern]) -> str | None:
    """First label whose pattern matches the description (dict order), or None."""
    for label, pattern in patterns.items():
        if pattern.search(description):
            return label
    return None
