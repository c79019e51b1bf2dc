"""Parser for Novo Banco (Portugal) "Extrato Integrado" statements.

The integrated statement mixes several sections (accounts, cards, savings);
only rows inside a ``MOVIMENTOS DE CONTA`` section are account movements:

    15.01.24 15.01.24 Compra Cartão Pingo Doce 24,30 1.210,26

Debits and credits live in two unsigned columns, so after flattening a row
usually shows one amount plus the balance and the direction has to be
recovered from how the balance moved.
"""
from __future__ import annotations

import re
from datetime import date
from decimal import Decimal

from compasso.domain.statement.entities import (
    BankConfig,
    DirectionSource,
    ParsedTransaction,
    ParseResult,
)

from .common import (
    classify_transaction_type,
    collapse_whitespace,
    parse_dotted_date,
    parse_european_decimal,
)

CONFIG = BankConfig(
    id="novo_banco",
    name="Novo Banco",
    country="PT",
    currency="EUR",
    date_format="DD.MM.YY",
    decimal_format="european",
)

# ── Sections ─────────────────────────────────────────────────────────────────
_SECTION_START = "MOVIMENTOS DE CONTA"
_SECTION_END_BALANCE = "SALDO CONTABILÍSTICO"
_OPENING_BALANCE = "SALDO ANTERIOR"

# Column headers and the words the layout wraps onto their own lines
_HEADER_FRAGMENTS = ("Data Descritivo", "Débito Crédito", "Saldo (Euros)")
_ARTEFACT_LINES = frozenset({
    "Data", "Valor", "Online", "Banco", "Digital", "-", "DN",
    "Computador", "por", "Processado",
})

# ── Row grammar ──────────────────────────────────────────────────────────────
_ROW_START_RE = re.compile(r"^(\d{2}\.\d{2}\.\d{2})\s+")
_VALUE_DATE_RE = re.compile(r"(\d{2}\.\d{2}\.\d{2})\s+")
# debits are sometimes printed with a detached sign: "- 24,30"
_AMOUNT_RE = re.compile(r"-?\s?[\d.]+,\d{2}")
_PERIOD_RE = re.compile(r"de\s+(\d{2}\.\d{2}\.\d{4})\s+a\s+(\d{2}\.\d{2}\.\d{4})", re.I)

# "Trf ... de <name>" and refunds are money coming in
_INCOME_TRANSFER_KEYWORD = "trf"
_INCOME_TRANSFER_FROM = " de "
_INCOME_REFUND_KEYWORD = "reembolso"

# ── Row labels ───────────────────────────────────────────────────────────────
TRANSACTION_PATTERNS: dict[str, re.Pattern] = {
    "card_purchase": re.compile(r"^Compra\s+(Mb\s+)?Cartão|^Compra\s+Mbway", re.I),
    "direct_debit": re.compile(r"^Cobrança\s+Sdd", re.I),
    "transfer_in": re.compile(r"^Trf\s+(Imediata\s+)?Sepa\+?\s+De|^Trf\s+Cred\s+Sepa", re.I),
    "transfer_out": re.compile(r"^Trf\s+(Imediata\s+)?Sepa\+?\s+App|^Trf\s+Cred\s+Intrab", re.I),
    "atm": re.compile(r"^Levantamento\s+Mb\s+Cartão", re.I),
    "bill_payment": re.compile(r"^Pag\s+Serv", re.I),
    "loan_payment": re.compile(r"^Pagamento\s+Prestação", re.I),
    "standing_order": re.compile(r"^Ordem\s+Permanente", re.I),
    "bank_fee": re.compile(r"^Manutencao\s+Conta|^Imposto\s+Do\s+Selo", re.I),
}

# ── Default category rules (seeded per workspace, priority = list index) ─────
CATEGORY_PATTERNS: dict[str, list[str]] = {
    "Groceries": ["Pingo Doce", "Lidl", "Continente", "Aldi", "Mercadona", "Intermarche", "Frutaria"],
    "Fuel": ["BP", "Disa", "Petrogal", "Galp", "Repsol", "Cepsa"],
    "Health": ["Hospital", "Psicologi", "Medis", "Farmacia", "Clinica", "Dentista"],
    "Fitness": ["Solinca", "Decathlon", "Taekwon", "Ginasio", "Fitness", "Holmes Place"],
    "Entertainment": ["Cinemas", "Fnac", "Netflix", "Spotify", "Disney", "HBO", "Amazon Prime"],
    "Dining": ["McDonald", "Leitaria", "Restaurante", "Cafe", "Pizza", "Burger", "KFC", "Telepizza"],
    "Shopping": ["Zara", "Tiger", "Primark", "H&M", "Worten", "Media Markt", "IKEA"],
    "Utilities": ["Digi Portugal", "Simas", "EDP", "Galp Energia", "NOS", "MEO", "Vodafone", "Agua"],
    "Housing": ["Condominio", "Renda", "Prestação", "Habitação", "Hipoteca"],
    "Insurance": ["Seguro", "Mapfre", "Fidelidade", "Allianz", "Tranquilidade", "Ageas"],
    "Transfers": ["Transferência Conta Serviço", "Trf Cred Intrab"],
    "Fees": ["Manutencao Conta", "Imposto Do Selo", "Comissão", "Taxa"],
    "Cash": ["Levantamento"],
}


def _parse_period(text: str) -> tuple[date | None, date | None]:
    m = _PERIOD_RE.search(text)
    if not m:
        return None, None
    try:
        return parse_dotted_date(m.group(1)), parse_dotted_date(m.group(2))
    except ValueError:
        return None, None


def _ends_section(normalized: str) -> bool:
    if _SECTION_END_BALANCE in normalized:
        return True
    if "TOTAL" in normalized and "MOVIMENTOS" not in normalized:
        return True
    return "MOVIMENTOS DE" in normalized and _SECTION_START not in normalized


def _is_layout_artefact(normalized: str) -> bool:
    return normalized in _ARTEFACT_LINES or any(h in normalized for h in _HEADER_FRAGMENTS)


def _keyword_says_income(description: str) -> bool:
    lower = description.lower()
    if _INCOME_TRANSFER_KEYWORD in lower and _INCOME_TRANSFER_FROM in lower:
        return True
    return _INCOME_REFUND_KEYWORD in lower


def _parse_row(line: str, previous_balance: Decimal | None) -> ParsedTransaction | None:
    m = _ROW_START_RE.match(line)
    if not m:
        return None
    if len(line.split()) < 4:
        return None

    prefix_end = m.end()
    value_m = _VALUE_DATE_RE.match(line, prefix_end)
    if value_m:
        prefix_end = value_m.end()

    amounts = list(_AMOUNT_RE.finditer(line, prefix_end))
    if len(amounts) < 2:
        return None

    description = collapse_whitespace(line[prefix_end:amounts[0].start()])
    if not description:
        return None

    try:
        tx_date = parse_dotted_date(m.group(1))
        value_date = parse_dotted_date(value_m.group(1)) if value_m else tx_date
        values = [parse_european_decimal(a.group()) for a in amounts]
    except ValueError:
        return None

    if len(values) == 3:
        debit, credit, balance = values
        if credit > 0 and debit == 0:
            amount, is_income = credit, True
        else:
            amount, is_income = debit, False
        source = DirectionSource.COLUMNS
    else:
        amount, balance = values[-2], values[-1]
        if previous_balance is not None:
            is_income = balance > previous_balance
            source = DirectionSource.BALANCE
        else:
            is_income = _keyword_says_income(description)
            source = DirectionSource.KEYWORDS

    return ParsedTransaction(
        date=tx_date,
        value_date=value_date,
        description=description,
        amount=abs(amount),
        balance=balance,
        is_income=is_income,
        raw_text=line,
        direction_source=source,
        transaction_type=classify_transaction_type(description, TRANSACTION_PATTERNS),
    )


def parse_novo_banco_lines(lines: list[str]) -> ParseResult:
    """Parse the reconstructed lines of a Novo Banco integrated statement.

    The running balance of each accepted row becomes the reference for the
    next one; ``SALDO ANTERIOR`` provides the first reference.
    """
    period_start, period_end = _parse_period("\n".join(lines))
    transactions: list[ParsedTransaction] = []
    in_section = False
    previous_balance: Decimal | None = None

    for line in lines:
        if not line:
            continue
        normalized = collapse_whitespace(line)

        if _SECTION_START in normalized:
            in_section = True
            continue
        if _ends_section(normalized):
            in_section = False
            continue
        if not in_section or _is_layout_artefact(normalized):
            continue

        if _OPENING_BALANCE in normalized:
            opening = _AMOUNT_RE.findall(line)
            if opening:
                previous_balance = parse_european_decimal(opening[-1])
            continue

        tx = _parse_row(line, previous_balance)
        if tx is None:
            continue
        transactions.append(tx)
        previous_balance = tx.balance

    return ParseResult(
        transactions=transactions,
        period_start=period_start,
        period_end=period_end,
    )
