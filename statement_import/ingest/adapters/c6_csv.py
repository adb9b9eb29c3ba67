"""Adapter for C6 Bank credit card CSV exports.

CSV header (``;``-separated, exact order)::

    Data de Compra;Nome no Cartão;Final do Cartão;Categoria;Descrição;
    Parcela;Valor (em US$);Cotação (em R$);Valor (em R$)

Mapping rules:

- ``date``: ``Data de Compra`` (``DD/MM/YYYY``) shifted forward by
  ``k - 1`` months for installment ``k/n``, so each installment lands in the
  month it is billed;
- ``amount``: ``Valor (em R$)`` (dot decimal); zero and negative values are
  payments or credits and are skipped;
- ``category_original``: ``Categoria``; ``installment``: ``Parcela`` or
  ``"Única"``; ``card_name``/``card_last_digits`` from the card columns.

Fee reversals and bill payments (see ``IGNORED_PHRASES``) are skipped. Lines
with missing columns or unreadable values are reported in ``errors`` as
``"Line N: ..."`` and the rest of the file is still imported.
"""

from __future__ import annotations

from ...logging_setup import get_logger
from ...models import SINGLE_INSTALLMENT, ParseResult, ParsedTransaction, TransactionType
from ...normalizers import add_months, parse_full_date, parse_plain_amount
from ..utils import iter_data_lines

logger = get_logger(__name__)

EXPECTED_COLUMNS = 9

IGNORED_PHRASES: tuple[str, ...] = (
    "Inclusao de Pagamento",
    "Anuidade Diferenciada",
    "Estorno Tarifa",
)


def _installment_offset(label: str) -> int:
    """Months to add for an installment label like ``"4/10"`` (0 when none)."""

    if "/" not in label:
        return 0
    current, _, _total = label.partition("/")
    try:
        n = int(current)
    except ValueError:
        return 0
    return n - 1 if n > 1 else 0


def parse_c6_csv(csv_text: str) -> ParseResult:
    """Convert a C6 card export into transactions plus per-line errors."""

    transactions: list[ParsedTransaction] = []
    errors: list[str] = []

    for line_no, cols in iter_data_lines(csv_text):
        if len(cols) < EXPECTED_COLUMNS:
            errors.append(f"Line {line_no}: Insufficient columns")
            continue

        date_raw, card_name, last_digits, category, description, installment_raw = cols[:6]
        amount_raw = cols[8]
        installment = installment_raw or SINGLE_INSTALLMENT

        if any(phrase in description for phrase in IGNORED_PHRASES):
            continue

        try:
            amount = parse_plain_amount(amount_raw)
        except ValueError:
            errors.append(f"Line {line_no}: Invalid amount")
            continue
        if amount <= 0:
            continue

        try:
            purchased = parse_full_date(date_raw)
            billed = add_months(purchased, _installment_offset(installment))
            transactions.append(
                ParsedTransaction(
                    date=billed.isoformat(),
                    description=description,
                    category_original=category,
                    amount=amount,
                    type=TransactionType.EXPENSE,
                    original_line=f"Line {line_no}",
                    installment=installment,
                    card_name=card_name or None,
                    card_last_digits=last_digits or None,
                )
            )
        except ValueError as e:
            errors.append(f"Line {line_no}: Parsing error - {e}")

    logger.info("C6: %d transaction(s), %d line error(s)", len(transactions), len(errors))
    return ParseResult.build(transactions, errors)


__all__ = ["parse_c6_csv"]
