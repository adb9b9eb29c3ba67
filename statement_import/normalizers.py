"""Amount and date normalization shared by every statement adapter.

Brazilian statements write amounts as ``1.234,56`` (``.`` thousands separator,
``,`` decimal separator, optional leading ``-`` and ``R$`` marker) and dates as
``DD/MM`` or ``DD/MM/YYYY``. The helpers here turn those into ``Decimal``
values and ISO ``YYYY-MM-DD`` strings. All patterns match ASCII digits only and
are meant to be used with ``fullmatch`` against a single trimmed token.
"""

from __future__ import annotations

import calendar
import re
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

# ---------------------------------------------------------------------------
# Token grammar
# ---------------------------------------------------------------------------

SHORT_DATE_RE = re.compile(r"\d{2}/\d{2}", re.ASCII)
"""Short date anchor: ``DD/MM`` with no year."""

FULL_DATE_RE = re.compile(r"\d{2}/\d{2}/\d{4}", re.ASCII)
"""Full date anchor: ``DD/MM/YYYY``."""

AMOUNT_RE = re.compile(r"-?[\d.]*,\d{2}", re.ASCII)
"""Amount token: optional ``-``, digits and ``.`` groups, ``,`` and two digits."""

CURRENCY_MARKER = "R$"

# What is left after separators are rewritten must be a plain positional
# number; Decimal alone would also accept "NaN", "1e3" and "1_000".
_PLAIN_NUMBER_RE = re.compile(r"\d*\.?\d+", re.ASCII)

_CENTS = Decimal("0.01")


# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------


def parse_brl_amount(raw: str | None) -> Decimal:
    """Parse a pt-BR formatted amount into a signed ``Decimal``.

    Strips the ``R$`` marker and surrounding whitespace, records and removes a
    leading ``-``, drops ``.`` thousands separators and turns the ``,`` decimal
    separator into ``.``. The result is quantized to cents.

    Raises ``ValueError`` when the remaining text is not a number.

    >>> parse_brl_amount("1.234,56")
    Decimal('1234.56')
    >>> parse_brl_amount("- R$ 10,00")
    Decimal('-10.00')
    """

    if raw is None:
        raise ValueError("amount is required")
    s = raw.replace(CURRENCY_MARKER, "", 1).strip()
    negative = s.startswith("-")
    if negative:
        s = s[1:].strip()
    s = s.replace(".", "").replace(",", ".", 1)
    if not _PLAIN_NUMBER_RE.fullmatch(s):
        raise ValueError(f"invalid amount: {raw!r}")
    try:
        d = Decimal(s)
    except InvalidOperation as exc:  # pragma: no cover - guarded by the regex
        raise ValueError(f"invalid amount: {raw!r}") from exc
    d = d.quantize(_CENTS, rounding=ROUND_HALF_UP)
    return -d if negative else d


def parse_plain_amount(raw: str | None) -> Decimal:
    """Parse a dot-decimal amount such as ``"1234.56"`` or ``"-3.10"``."""

    if raw is None:
        raise ValueError("amount is required")
    s = raw.strip()
    negative = s.startswith("-")
    if negative:
        s = s[1:].strip()
    if not _PLAIN_NUMBER_RE.fullmatch(s):
        raise ValueError(f"invalid amount: {raw!r}")
    d = Decimal(s).quantize(_CENTS, rounding=ROUND_HALF_UP)
    return -d if negative else d


def fmt_amount(d: Decimal) -> str:
    # Exactly two decimals; ASCII dot; leading minus for negatives.
    q = d.quantize(_CENTS, rounding=ROUND_HALF_UP)
    return f"{q:.2f}"


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def parse_full_date(token: str) -> date:
    """Parse ``DD/MM/YYYY`` into a ``date``; ``ValueError`` when not a real date."""

    if not FULL_DATE_RE.fullmatch(token.strip()):
        raise ValueError(f"invalid DD/MM/YYYY date: {token!r}")
    day, month, year = (int(p) for p in token.strip().split("/"))
    return date(year, month, day)


def full_date_to_iso(token: str) -> str:
    return parse_full_date(token).isoformat()


def short_date_to_iso(token: str, year: int) -> str:
    """Combine a ``DD/MM`` token with ``year`` into ``YYYY-MM-DD``."""

    if not SHORT_DATE_RE.fullmatch(token.strip()):
        raise ValueError(f"invalid DD/MM date: {token!r}")
    day, month = (int(p) for p in token.strip().split("/"))
    return date(year, month, day).isoformat()


def infer_statement_year(month: int, due_date: date | None, fallback_year: int) -> int:
    """Return the calendar year of a ``DD/MM`` entry on a card statement.

    Entries from a month later than the due date's month belong to the
    previous cycle (a December purchase on a January bill). Without a due date
    ``fallback_year`` (normally the current year) is used; that is a
    best-effort guess, not a guarantee.
    """

    if due_date is None:
        return fallback_year
    if month > due_date.month:
        return due_date.year - 1
    return due_date.year


def add_months(d: date, months: int) -> date:
    """Shift ``d`` by ``months`` calendar months, clamping to the month's end."""

    index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


__all__ = [
    "AMOUNT_RE",
    "CURRENCY_MARKER",
    "FULL_DATE_RE",
    "SHORT_DATE_RE",
    "add_months",
    "fmt_amount",
    "full_date_to_iso",
    "infer_statement_year",
    "parse_brl_amount",
    "parse_full_date",
    "parse_plain_amount",
    "short_date_to_iso",
]
