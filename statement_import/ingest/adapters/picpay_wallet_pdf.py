"""Adapter for PicPay wallet statements (PDF, token stream).

Extracted rows read::

    07/12/2025 | 19:26:50 | Pix Enviado  | - R$ 10,00  | ...
    07/12/2025 | 07:22:52 | Pix Recebido | R$ 200,00   | ...

A full ``DD/MM/YYYY`` date opens a row and the next fragment is the time of
day (not kept). From the fragment after the time, up to eight fragments are
searched for one of the transfer labels; the label gives the direction and
the fragment right after it is the amount. The printed sign is ignored since
the label already says which way the money went.

Rows that do not match this shape are dropped without an error.
"""

from __future__ import annotations

from ...models import PageTokens, ParsedTransaction, SkippedRow, TransactionType
from ...normalizers import FULL_DATE_RE, full_date_to_iso, parse_brl_amount
from ...scanner import Verdict, WindowHit, WindowSpec, scan_tokens
from ..base import StatementParser

PIX_SENT = "Pix Enviado"
PIX_RECEIVED = "Pix Recebido"

TRANSFER_TYPES: dict[str, TransactionType] = {
    PIX_SENT: TransactionType.EXPENSE,
    PIX_RECEIVED: TransactionType.INCOME,
}

DESCRIPTION_PREFIX = "PicPay"

ROW_WINDOW_SIZE = 10


def classify_row_token(token: str) -> Verdict:
    return Verdict.ACCEPT if token in TRANSFER_TYPES else Verdict.IGNORE


ROW_WINDOW = WindowSpec(
    anchor=FULL_DATE_RE,
    size=ROW_WINDOW_SIZE,
    classify=classify_row_token,
    # The fragment right after the date is the time of day.
    start_offset=2,
)


class PicPayWalletParser(StatementParser[None]):
    """PicPay wallet (Pix transfers) statement parser."""

    issuer = "picpay"
    display_name = "PicPay"

    def initial_state(self) -> None:
        return None

    def scan_page(
        self, page_number: int, tokens: PageTokens, state: None
    ) -> tuple[None, list[ParsedTransaction], list[SkippedRow]]:
        rows: list[ParsedTransaction] = []
        skips: list[SkippedRow] = []

        for visit in scan_tokens(tokens, ROW_WINDOW):
            window = visit.window
            if window is None:
                continue
            if not isinstance(window, WindowHit):
                skips.append(SkippedRow(page_number, window.anchor_index, window.anchor, window.reason))
                continue
            row = self._build_row(page_number, window)
            if isinstance(row, str):
                skips.append(SkippedRow(page_number, window.anchor_index, window.anchor, row))
            else:
                rows.append(row)

        return state, rows, skips

    def _build_row(self, page_number: int, hit: WindowHit) -> ParsedTransaction | str:
        label = hit.terminal
        if not hit.following:
            return "missing amount"
        try:
            amount = parse_brl_amount(hit.following)
        except ValueError:
            return "invalid amount"
        try:
            iso_date = full_date_to_iso(hit.anchor)
        except ValueError:
            return "invalid date"

        return ParsedTransaction(
            date=iso_date,
            description=f"{DESCRIPTION_PREFIX} - {label}",
            category_original=label,
            amount=abs(amount),
            type=TRANSFER_TYPES[label],
            original_line=f"Page {page_number}",
        )


__all__ = [
    "PIX_RECEIVED",
    "PIX_SENT",
    "PicPayWalletParser",
    "ROW_WINDOW",
    "classify_row_token",
]
