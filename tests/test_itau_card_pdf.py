from datetime import date
from decimal import Decimal

from statement_import.ingest.adapters.itau_card_pdf import (
    DEFAULT_CARD_LABEL,
    CardScanState,
    ItauCardParser,
    find_due_date,
    is_summary_line,
)
from statement_import.ingest.tokens import InMemoryDocument
from statement_import.models import TransactionType


def _parser(year: int = 2030) -> ItauCardParser:
    return ItauCardParser(clock=lambda: date(year, 6, 1))


def _parse(*pages: list[str], year: int = 2030):
    return _parser(year).parse(InMemoryDocument(pages))


def test_due_date_year_inference():
    result = _parse(
        [
            "Vencimento:",
            "25/01/2026",
            "26/12",
            "LOJA EXEMPLO",
            "649,00",
            "10/01",
            "MERCADO",
            "SAO PAULO",
            "1.234,56",
        ]
    )
    assert result.errors == ()
    assert [(t.date, t.description, t.amount) for t in result.transactions] == [
        ("2025-12-26", "LOJA EXEMPLO", Decimal("649.00")),
        ("2026-01-10", "MERCADO SAO PAULO", Decimal("1234.56")),
    ]
    for tx in result.transactions:
        assert tx.type is TransactionType.EXPENSE
        assert tx.category_original == "Itaú Import"
        assert tx.installment == "Única"
        assert tx.original_line == "Page 1"
        assert tx.card_name == DEFAULT_CARD_LABEL


def test_due_date_found_on_later_page_applies_from_there():
    result = _parse(
        ["26/12", "LOJA A", "10,00"],
        ["Vencimento: 25/01/2026", "26/12", "LOJA B", "20,00"],
    )
    assert [t.date for t in result.transactions] == ["2030-12-26", "2025-12-26"]


def test_missing_due_date_falls_back_to_clock_year():
    result = _parse(["05/03", "PADARIA", "12,50"], year=2031)
    assert [t.date for t in result.transactions] == ["2031-03-05"]


def test_negative_amount_is_stored_as_magnitude():
    result = _parse(["05/03", "ESTORNO LOJA", "-10,00"])
    assert result.transactions[0].amount == Decimal("10.00")
    assert result.transactions[0].type is TransactionType.EXPENSE


def test_summary_lines_are_excluded_in_any_case():
    result = _parse(
        [
            "20/01",
            "Total dos lançamentos atuais",
            "1.000,00",
            "21/01",
            "saldo anterior",
            "500,00",
            "22/01",
            "FARMACIA",
            "30,00",
        ]
    )
    assert [t.description for t in result.transactions] == ["FARMACIA"]
    assert [s.reason for s in result.skipped] == ["summary line", "summary line"]
    assert result.errors == ()


def test_window_aborted_by_date_resumes_at_that_date():
    result = _parse(["05/01", "LOJA SEM VALOR", "06/01", "MERCADO", "30,00"])
    assert [(t.date, t.description) for t in result.transactions] == [("2030-01-06", "MERCADO")]
    assert [(s.anchor, s.reason) for s in result.skipped] == [("05/01", "aborted")]


def test_window_aborted_by_section_header():
    result = _parse(["05/01", "LOJA", "Lançamentos: compras e saques", "10,00"])
    assert result.transactions == ()
    assert result.errors == ()


def test_window_exhausted_after_fourteen_fragments():
    filler = [f"PARTE{i}" for i in range(14)]
    result = _parse(["05/01", *filler, "10,00"])
    assert result.transactions == ()
    assert result.skipped[0].reason == "exhausted"

    result = _parse(["05/01", *filler[:13], "10,00"])
    assert len(result.transactions) == 1


def test_row_without_description_is_skipped():
    result = _parse(["05/01", "10,00", "06/01", "LOJA", "20,00"])
    assert [t.description for t in result.transactions] == ["LOJA"]
    assert result.skipped[0].reason == "empty description"


def test_invalid_calendar_date_is_skipped():
    result = _parse(["31/02", "LOJA", "10,00"])
    assert result.transactions == ()
    assert result.skipped[0].reason == "invalid date"


def test_card_label_carries_over_pages_until_replaced():
    result = _parse(
        [
            "05/01",
            "LOJA A",
            "10,00",
            "JOAO S SILVA (final 1234)",
            "06/01",
            "LOJA B",
            "20,00",
        ],
        [
            "07/01",
            "LOJA C",
            "30,00",
            "MARIA S SILVA (final 5678)",
            "08/01",
            "LOJA D",
            "40,00",
        ],
    )
    assert [t.card_name for t in result.transactions] == [
        DEFAULT_CARD_LABEL,
        "JOAO S SILVA (final 1234)",
        "JOAO S SILVA (final 1234)",
        "MARIA S SILVA (final 5678)",
    ]


def test_repeated_rows_across_pages_are_deduplicated():
    page = ["05/01", "ASSINATURA", "29,90"]
    result = _parse(page, page)
    assert len(result.transactions) == 1


def test_empty_documents_yield_empty_result():
    assert _parse().transactions == ()
    assert _parse().errors == ()
    result = _parse(["Fatura", "Resumo", "R$ 1.000,00"], [])
    assert result.transactions == ()
    assert result.errors == ()


def test_extraction_failure_becomes_single_error():
    class BrokenDocument:
        page_count = 2

        def get_page_tokens(self, page_number: int):
            raise RuntimeError("encrypted content stream")

    result = _parser().parse(BrokenDocument())
    assert result.transactions == ()
    assert result.errors == ("encrypted content stream",)


def test_find_due_date_strategies():
    assert find_due_date(["Vencimento:", "25/01/2026"]) == date(2026, 1, 25)
    assert find_due_date(["Vencimento: 10/02/2026"]) == date(2026, 2, 10)
    assert find_due_date(["vencimento: 11/03/2026 total"]) == date(2026, 3, 11)
    assert find_due_date(["Total a pagar", "12/04/2026", "R$ 1.000,00"]) == date(2026, 4, 12)
    assert find_due_date(["Vencimento:", "99/99/2026"]) is None
    assert find_due_date(["26/12", "LOJA", "10,00"]) is None


def test_card_scan_state_keeps_first_due_date():
    state = CardScanState(fallback_year=2030).with_due_date(["Vencimento:", "25/01/2026"])
    assert state.with_due_date(["Vencimento:", "25/06/2027"]).due_date == date(2026, 1, 25)
    assert state.year_for(12) == 2025
    assert state.observe("FULANO (final 9999)").card_label == "FULANO (final 9999)"
    assert state.observe("(final sem fechamento").card_label == DEFAULT_CARD_LABEL


def test_is_summary_line():
    assert is_summary_line("TOTAL DA FATURA")
    assert is_summary_line("Saldo anterior")
    assert not is_summary_line("POSTO SHELL")
