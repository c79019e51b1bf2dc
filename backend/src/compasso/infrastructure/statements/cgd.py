"""Parser for CGD (Caixa Geral de Depósitos, Portugal) account statements.

Row layout once the page is flattened into lines:

    - - 2024-01-15 COMPRA CONTINENTE LISBOA -45,30 1.234,56

The two leading dashes are empty columns, then the ISO movement date, the
description, the signed amount (negative = debit) and the running balance.
"""
from __future__ import annotations

import re
from datetime import date

from compasso.domain.statement.entities import (
    BankConfig,
    DirectionSource,
    ParsedTransaction,
    ParseResult,
)

from .common import (
    classify_transaction_type,
    collapse_whitespace,
    parse_european_decimal,
    parse_iso_date,
)

CONFIG = BankConfig(
    id="cgd",
    name="CGD",
    country="PT",
    currency="EUR",
    date_format="YYYY-MM-DD",
    decimal_format="european",
)

# ── Row grammar ──────────────────────────────────────────────────────────────
_ROW_START_RE = re.compile(r"^-\s+-\s+(\d{4}-\d{2}-\d{2})\s+")
_AMOUNT_RE = re.compile(r"-?[\d.]+,\d{2}")
_PERIOD_RE = re.compile(
    r"Per[ií]odo\s+(\d{4}-\d{2}-\d{2})\s+a\s+(\d{4}-\d{2}-\d{2})", re.I
)

# ── Row labels ───────────────────────────────────────────────────────────────
TRANSACTION_PATTERNS: dict[str, re.Pattern] = {
    "card_purchase": re.compile(r"^COMPRA\s+", re.I),
    "direct_debit": re.compile(r"^MAPFRE|^MEO\s+SERV|^KUBOO", re.I),
    "transfer_in": re.compile(r"^TFI\s+|^TRF\s+|^CREDIT\s+VOUCHER", re.I),
    "transfer_out": re.compile(r"^Trf\s+Mbway", re.I),
    "bill_payment": re.compile(r"^PAGAMENTO\s+TSU|^IRC$|^Multi\s+Imposto", re.I),
    "standing_order": re.compile(r"^ORD\s+", re.I),
    "bank_fee": re.compile(r"^MANUT\s+CONTA|^IMPOSTO\s+SELO|^\d+[,.]\d+\s+COM\s+S[BI]", re.I),
}

# ── Default category rules (seeded per workspace, priority = list index) ─────
CATEGORY_PATTERNS: dict[str, list[str]] = {
    "Groceries": ["Continente", "Pingo Doce", "Lidl", "Aldi", "Mercadona", "Intermarche", "Mini Preco"],
    "Fuel": ["BP", "Galp", "Repsol", "Cepsa", "Disa", "Petrogal"],
    "Health": ["Hospital", "Farmacia", "Clinica", "Dentista", "Psicologi", "Medis"],
    "Fitness": ["Solinca", "Decathlon", "Ginasio", "Fitness", "Holmes Place"],
    "Entertainment": ["Netflix", "Spotify", "Disney", "HBO", "Cinemas", "Fnac"],
    "Dining": [
        "McDonald", "KFC", "Burger", "Pizza", "Uber Eats", "Restaurante", "Cafe",
        "Telepizza", "H3", "Poke House", "Pans Company", "Nashi Sushi",
    ],
    "Shopping": ["Amazon EU", "Amazon Payments", "Zara", "Primark", "Worten", "IKEA"],
    "Utilities": ["MEO SERV", "NOS", "Vodafone", "EDP", "Galp Energia", "Agua", "Digi Portugal"],
    "Housing": ["Condominio", "Renda", "Hipoteca"],
    "Insurance": ["Mapfre", "Fidelidade", "Allianz", "Tranquilidade", "Ageas", "Seguro"],
    "Transfers": ["Trf Mbway", r"regex:^TFI\s+", r"regex:^TRF\s+"],
    "Fees": ["Manut Conta", "Imposto Selo", r"regex:\d+[,.]\d+\s+COM\s+S[BI]"],
    "Cash": ["Levantamento"],
}


def _parse_period(text: str) -> tuple[date | None, date | None]:
    m = _PERIOD_RE.search(text)
    if not m:
        return None, None
    try:
        return parse_iso_date(m.group(1)), parse_iso_date(m.group(2))
    except ValueError:
        return None, None


def _parse_row(line: str) -> ParsedTransaction | None:
    m = _ROW_START_RE.match(line)
    if not m:
        return None

    amounts = list(_AMOUNT_RE.finditer(line, m.end()))
    if len(amounts) < 2:
        return None
    amount_match, balance_match = amounts[-2], amounts[-1]

    # Fee rows carry their base amount inside the description ("1,50 COM SI"),
    # so the description runs up to the signed amount column.
    description = collapse_whitespace(line[m.end():amount_match.start()])
    if not description:
        return None

    try:
        tx_date = parse_iso_date(m.group(1))
        signed = parse_european_decimal(amount_match.group())
        balance = parse_european_decimal(balance_match.group())
    except ValueError:
        return None

    return ParsedTransaction(
        date=tx_date,
        value_date=tx_date,
        description=description,
        amount=abs(signed),
        balance=balance,
        is_income=signed > 0,
        raw_text=line,
        direction_source=DirectionSource.SIGN,
        transaction_type=classify_transaction_type(description, TRANSACTION_PATTERNS),
    )


def parse_cgd_lines(lines: list[str]) -> ParseResult:
    """Parse the reconstructed lines of a CGD statement.

    Lines that do not start with the ``- - YYYY-MM-DD`` signature, or that lack
    an amount and a balance, are skipped.
    """
    period_start, period_end = _parse_period("\n".join(lines))
    transactions: list[ParsedTransaction] = []
    for line in lines:
        tx = _parse_row(line)
        if tx is not None:
            transactions.append(tx)
    return ParseResult(
        transactions=transactions,
        period_start=period_start,
        period_end=period_end,
    )
