"""Novo Banco rows: unsigned debit/credit columns, direction from the balance."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from compasso.domain.statement.entities import DirectionSource
from compasso.infrastructure.statements.novo_banco import parse_novo_banco_lines

STATEMENT = [
    "NOVO BANCO Extrato Integrado de 01.01.2024 a 31.01.2024",
    "10.01.24 10.01.24 Linha fora da secção 9,99 99,99",
    "MOVIMENTOS DE CONTA",
    "Data Valor Descritivo Débito Crédito Saldo (Euros)",
    "SALDO ANTERIOR 1.234,56",
    "15.01.24 15.01.24 Compra Cartão Pingo Doce 24,30 1.210,26",
    "Data",
    "16.01.24 17.01.24 Trf Sepa+ De Joao Silva 500,00 1.710,26",
    "SALDO CONTABILÍSTICO 1.710,26",
    "MOVIMENTOS DE CARTÃO",
    "20.01.24 20.01.24 Compra Cartão Lidl 10,00 1.700,26",
]


def test_only_account_section_rows_are_parsed():
    result = parse_novo_banco_lines(STATEMENT)

    assert [tx.description for tx in result.transactions] == [
        "Compra Cartão Pingo Doce",
        "Trf Sepa+ De Joao Silva",
    ]
    assert result.period_start == date(2024, 1, 1)
    assert result.period_end == date(2024, 1, 31)


def test_direction_follows_balance_movement():
    purchase, transfer = parse_novo_banco_lines(STATEMENT).transactions

    assert purchase.is_income is False
    assert purchase.amount == Decimal("24.30")
    assert purchase.balance == Decimal("1210.26")
    assert purchase.direction_source == DirectionSource.BALANCE
    assert purchase.transaction_type == "card_purchase"

    assert transfer.is_income is True
    assert transfer.amount == Decimal("500.00")
    assert transfer.date == date(2024, 1, 16)
    assert transfer.value_date == date(2024, 1, 17)
    assert transfer.transaction_type == "transfer_in"


def test_keyword_fallback_without_opening_balance():
    lines = [
        "MOVIMENTOS DE CONTA",
        "02.02.24 02.02.24 Trf Sepa+ De Maria Costa 100,00 600,00",
        "03.02.24 03.02.24 Compra Cartão Continente 50,00 550,00",
    ]
    first, second = parse_novo_banco_lines(lines).transactions

    assert first.is_income is True
    assert first.direction_source == DirectionSource.KEYWORDS
    assert first.needs_review
    # from here on the previous row's balance is the reference
    assert second.is_income is False
    assert second.direction_source == DirectionSource.BALANCE
    assert not second.needs_review


def test_refund_keyword_means_income():
    lines = [
        "MOVIMENTOS DE CONTA",
        "05.02.24 05.02.24 Reembolso Worten 19,99 619,99",
    ]
    (refund,) = parse_novo_banco_lines(lines).transactions
    assert refund.is_income is True


def test_three_amounts_read_as_debit_credit_balance():
    lines = [
        "MOVIMENTOS DE CONTA",
        "SALDO ANTERIOR 600,00",
        "20.01.24 20.01.24 Devolução Loja 0,00 15,00 615,00",
    ]
    (row,) = parse_novo_banco_lines(lines).transactions

    assert row.direction_source == DirectionSource.COLUMNS
    assert row.is_income is True
    assert row.amount == Decimal("15.00")
    assert row.balance == Decimal("615.00")


def test_detached_minus_is_tolerated():
    lines = [
        "MOVIMENTOS DE CONTA",
        "SALDO ANTERIOR 100,00",
        "21.01.24 21.01.24 Pag Serv Agua - 24,30 75,70",
    ]
    (row,) = parse_novo_banco_lines(lines).transactions

    assert row.description == "Pag Serv Agua"
    assert row.amount == Decimal("24.30")
    assert row.is_income is False
    assert row.transaction_type == "bill_payment"


def test_short_rows_are_skipped():
    lines = ["MOVIMENTOS DE CONTA", "21.01.24 1,00 2,00"]
    assert parse_novo_banco_lines(lines).transactions == []
