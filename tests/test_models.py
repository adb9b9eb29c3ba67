from decimal import Decimal

import pytest

from statement_import.models import (
    ParsedTransaction,
    ParseReport,
    ParseResult,
    SkippedRow,
    TransactionType,
)


def _tx(**overrides) -> ParsedTransaction:
    fields = {
        "date": "2025-12-07",
        "description": "PicPay - Pix Enviado",
        "category_original": "Pix Enviado",
        "amount": Decimal("10.00"),
        "type": TransactionType.EXPENSE,
        "original_line": "Page 1",
    }
    fields.update(overrides)
    return ParsedTransaction(**fields)


def test_transaction_rejects_negative_amount_and_blank_description():
    with pytest.raises(ValueError):
        _tx(amount=Decimal("-1.00"))
    with pytest.raises(ValueError):
        _tx(description="   ")


def test_failure_result_shape():
    result = ParseResult.failure("file is not a PDF")
    assert result.transactions == ()
    assert result.errors == ("file is not a PDF",)
    assert not result.ok
    assert ParseResult().ok


def test_skipped_rows_do_not_affect_equality():
    skip = SkippedRow(page=1, index=0, anchor="05/01", reason="exhausted")
    assert ParseResult.build([_tx()], (), [skip]) == ParseResult.build([_tx()])


def test_report_json_shape():
    skip = SkippedRow(page=2, index=7, anchor="05/01", reason="aborted")
    result = ParseResult.build([_tx(card_name="JOAO (final 1234)")], (), [skip])

    payload = ParseReport.from_result(result, source="extrato.pdf").to_json_dict()
    assert payload["source"] == "extrato.pdf"
    assert payload["errors"] == []
    assert "skipped" not in payload
    tx = payload["transactions"][0]
    assert tx["amount"] == "10.00"
    assert tx["categoryOriginal"] == "Pix Enviado"
    assert tx["originalLine"] == "Page 1"
    assert tx["installment"] == "Única"
    assert tx["cardName"] == "JOAO (final 1234)"
    assert "cardLastDigits" not in tx

    with_skips = ParseReport.from_result(result, include_skipped=True).to_json_dict()
    assert "source" not in with_skips
    assert with_skips["skipped"] == [
        {"page": 2, "index": 7, "anchor": "05/01", "reason": "aborted"}
    ]
