"""Adapter for XP Investimentos credit card CSV exports.

CSV header (``;``-separated)::

    Data;Estabelecimento;Portador;Valor;Parcela

``Valor`` is pt-BR formatted (``R$ 1.234,56``, ``R$ -3.253,12``) and
``Parcela`` reads ``"2 de 4"`` or ``"-"``. ``Data`` is the purchase date, so an
installment ``k de n`` is moved ``k - 1`` months forward and the description
gets a ``" (k/n)"`` suffix to keep installments of one purchase apart.
Non-positive amounts are payments and are skipped.
"""

from __future__ import annotations

from ...logging_setup import get_logger
from ...models import ParseResult, ParsedTransaction, TransactionType
from ...normalizers import add_months, parse_brl_amount, parse_full_date
from ..utils import iter_data_lines

logger = get_logger(__name__)

MIN_COLUMNS = 4
NO_INSTALLMENT = "-"
_INSTALLMENT_SEP = " de "


def _split_installment(label: str) -> tuple[int, int] | None:
    if _INSTALLMENT_SEP not in label:
        return None
    current, _, total = label.partition(_INSTALLMENT_SEP)
    try:
        return int(current), int(total)
    except ValueError:
        return None


def parse_xp_csv(csv_text: str) -> ParseResult:
    """Convert an XP card export into transactions plus per-line errors."""

    transactions: list[ParsedTransaction] = []
    errors: list[str] = []

    for line_no, cols in iter_data_lines(csv_text):
        if len(cols) < MIN_COLUMNS:
            errors.append(f"Line {line_no}: Insufficient columns")
            continue

        date_raw, establishment, card_holder, amount_raw = cols[:4]
        installment = (cols[4] if len(cols) > 4 else "") or NO_INSTALLMENT

        try:
            amount = parse_brl_amount(amount_raw)
        except ValueError:
            errors.append(f"Line {line_no}: Invalid amount: {amount_raw}")
            continue
        if amount <= 0:
            continue

        description = establishment
        offset = 0
        parts = _split_installment(installment)
        if parts is not None:
            current, total = parts
            description = f"{establishment} ({current}/{total})"
            offset = current - 1 if current > 1 else 0

        try:
            billed = add_months(parse_full_date(date_raw), offset)
            transactions.append(
                ParsedTransaction(
                    date=billed.isoformat(),
                    description=description,
                    category_original=establishment,
                    amount=amount,
                    type=TransactionType.EXPENSE,
                    original_line=f"Line {line_no}",
                    installment=installment,
                    card_name=card_holder or None,
                )
            )
        except ValueError as e:
            errors.append(f"Line {line_no}: Parsing error - {e}")

    logger.info("XP: %d transaction(s), %d line error(s)", len(transactions), len(errors))
    return ParseResult.build(transactions, errors)


__all__ = ["parse_xp_csv"]
