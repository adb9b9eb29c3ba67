"""Adapter for Itaú credit card statements (PDF, token stream).

Rows look like ``26/12 | LOJA EXEMPLO | SAO PAULO | 649,00``: a ``DD/MM`` date,
one or more description fragments, and a pt-BR amount. The statement never
prints the year of a row; it is inferred from the due date printed once per
document (``Vencimento: 25/01/2026``). Card sections are introduced by a label
such as ``JOAO S SILVA (final 1234)`` which applies to every row that follows
until the next label.

Every row is an expense. Summary lines (``Total dos lançamentos``,
``SALDO ANTERIOR``) have the same date/amount shape and are dropped by
description.

Lookahead per row
-----------------
After the anchor, up to 14 fragments are examined (indexes below
``anchor + 15``):

- an amount fragment closes the row;
- another ``DD/MM`` fragment, or one containing ``Lançamentos``, abandons it;
- anything else is part of the description.

A closed row with a description consumes its window: scanning resumes after
the amount.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import date

from ...logging_setup import get_logger
from ...models import PageTokens, ParsedTransaction, SkippedRow, TransactionType
from ...normalizers import (
    AMOUNT_RE,
    FULL_DATE_RE,
    SHORT_DATE_RE,
    infer_statement_year,
    parse_brl_amount,
    parse_full_date,
    short_date_to_iso,
)
from ...scanner import Verdict, WindowHit, WindowSpec, scan_tokens
from ..base import StatementParser

logger = get_logger(__name__)

DUE_DATE_MARKER = "Vencimento:"
CARD_MARKER = "(final"
SECTION_HEADER_MARKER = "Lançamentos"
SUMMARY_MARKERS = ("TOTAL", "SALDO")

DEFAULT_CARD_LABEL = "Itaú Card"
CATEGORY_TAG = "Itaú Import"

ROW_WINDOW_SIZE = 15

_DUE_DATE_INLINE_RE = re.compile(r"Vencimento:\s*(\d{2}/\d{2}/\d{4})", re.ASCII)
_DUE_DATE_TEXT_RE = re.compile(r"Vencimento:\s*(\d{2}/\d{2}/\d{4})", re.ASCII | re.IGNORECASE)
_DATE_BEFORE_CURRENCY_RE = re.compile(r"(\d{2}/\d{2}/\d{4})\s*R\$", re.ASCII)


# ---------------------------------------------------------------------------
# Due date discovery
# ---------------------------------------------------------------------------


def _as_date(text: str) -> date | None:
    try:
        return parse_full_date(text)
    except ValueError:
        return None


def find_due_date(tokens: PageTokens) -> date | None:
    """Locate the statement due date on one page.

    Tried in order, first hit wins:

    1. a fragment containing ``Vencimento:`` followed by a ``DD/MM/YYYY``
       fragment, or a single fragment ``Vencimento: DD/MM/YYYY``;
    2. ``Vencimento: DD/MM/YYYY`` anywhere in the page text (case-insensitive);
    3. a ``DD/MM/YYYY`` immediately followed by ``R$`` in the page text (the
       summary box prints the due date next to the amount due).

    Matches that are not real calendar dates are ignored.
    """

    for k, token in enumerate(tokens):
        if DUE_DATE_MARKER in token and k + 1 < len(tokens):
            nxt = tokens[k + 1]
            if FULL_DATE_RE.fullmatch(nxt):
                found = _as_date(nxt)
                if found is not None:
                    return found
        m = _DUE_DATE_INLINE_RE.search(token)
        if m:
            found = _as_date(m.group(1))
            if found is not None:
                return found

    full_text = " ".join(tokens)
    for pattern in (_DUE_DATE_TEXT_RE, _DATE_BEFORE_CURRENCY_RE):
        for m in pattern.finditer(full_text):
            found = _as_date(m.group(1))
            if found is not None:
                return found
    return None


# ---------------------------------------------------------------------------
# Scan state and row window
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CardScanState:
    """Carry-over state folded over every token the cursor visits."""

    fallback_year: int
    card_label: str = DEFAULT_CARD_LABEL
    due_date: date | None = None

    def observe(self, token: str) -> CardScanState:
        if CARD_MARKER in token and ")" in token and token != self.card_label:
            return replace(self, card_label=token)
        return self

    def with_due_date(self, tokens: PageTokens) -> CardScanState:
        if self.due_date is not None:
            return self
        found = find_due_date(tokens)
        if found is None:
            return self
        logger.debug("Itaú due date: %s", found.isoformat())
        return replace(self, due_date=found)

    def year_for(self, month: int) -> int:
        return infer_statement_year(month, self.due_date, self.fallback_year)


def classify_row_token(token: str) -> Verdict:
    if AMOUNT_RE.fullmatch(token):
        return Verdict.ACCEPT
    if SHORT_DATE_RE.fullmatch(token) or SECTION_HEADER_MARKER in token:
        return Verdict.ABORT
    return Verdict.COLLECT


ROW_WINDOW = WindowSpec(
    anchor=SHORT_DATE_RE,
    size=ROW_WINDOW_SIZE,
    classify=classify_row_token,
    require_parts=True,
    skip_ahead=True,
)


def is_summary_line(description: str) -> bool:
    upper = description.upper()
    return any(marker in upper for marker in SUMMARY_MARKERS)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class ItauCardParser(StatementParser[CardScanState]):
    """Itaú credit card statement parser.

    ``clock`` supplies the fallback year used when no due date is found; it
    defaults to :meth:`datetime.date.today` and exists so tests can pin it.
    """

    issuer = "itau"
    display_name = "Itaú"

    def __init__(self, *, clock: Callable[[], date] = date.today) -> None:
        self._clock = clock

    def initial_state(self) -> CardScanState:
        return CardScanState(fallback_year=self._clock().year)

    def scan_page(
        self, page_number: int, tokens: PageTokens, state: CardScanState
    ) -> tuple[CardScanState, list[ParsedTransaction], list[SkippedRow]]:
        state = state.with_due_date(tokens)
        rows: list[ParsedTransaction] = []
        skips: list[SkippedRow] = []

        for visit in scan_tokens(tokens, ROW_WINDOW):
            state = state.observe(visit.token)
            window = visit.window
            if window is None:
                continue
            if not isinstance(window, WindowHit):
                skips.append(SkippedRow(page_number, window.anchor_index, window.anchor, window.reason))
                continue
            row = self._build_row(page_number, window, state)
            if isinstance(row, str):
                skips.append(SkippedRow(page_number, window.anchor_index, window.anchor, row))
            else:
                rows.append(row)

        return state, rows, skips

    def _build_row(
        self, page_number: int, hit: WindowHit, state: CardScanState
    ) -> ParsedTransaction | str:
        """Return the transaction for ``hit`` or the reason it was dropped."""

        description = " ".join(hit.parts)
        try:
            amount = parse_brl_amount(hit.terminal)
        except ValueError:
            return "invalid amount"

        month = int(hit.anchor.split("/")[1])
        try:
            iso_date = short_date_to_iso(hit.anchor, state.year_for(month))
        except ValueError:
            return "invalid date"

        if is_summary_line(description):
            return "summary line"

        return ParsedTransaction(
            date=iso_date,
            description=description,
            category_original=CATEGORY_TAG,
            amount=abs(amount),
            type=TransactionType.EXPENSE,
            original_line=f"Page {page_number}",
            card_name=state.card_label,
        )


__all__ = [
    "CardScanState",
    "ItauCardParser",
    "ROW_WINDOW",
    "classify_row_token",
    "find_due_date",
    "is_summary_line",
]
