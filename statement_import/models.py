"""Data models and type aliases for ``statement_import``.

Core records are frozen ``dataclass`` objects created once per parse call and
never mutated afterwards. The pydantic models at the bottom are the export
DTOs: they fix the camelCase JSON shape handed to consumers (the import UI)
without leaking serialization concerns into the parsers.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel

from .normalizers import fmt_amount

# ---------------------------------------------------------------------------
# Token stream
# ---------------------------------------------------------------------------

type PageTokens = Sequence[str]
"""Ordered, trimmed, non-empty text fragments of one page, in extraction order."""


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

SINGLE_INSTALLMENT = "Única"


class TransactionType(StrEnum):
    EXPENSE = "EXPENSE"
    INCOME = "INCOME"


@dataclass(frozen=True, slots=True)
class ParsedTransaction:
    """One transaction reconstructed from a statement.

    Attributes
    ----------
    date:
        ISO ``YYYY-MM-DD``; the year may have been inferred.
    description:
        Merchant or counterparty label, possibly several tokens joined.
    category_original:
        Category hint taken from the source, or a fixed tag when the source
        has none.
    amount:
        Absolute value in BRL. Direction lives in ``type``, never in the sign.
    type:
        ``EXPENSE`` or ``INCOME``.
    original_line:
        Provenance tag (``"Page 2"``, ``"Line 14"``); diagnostic only.
    installment:
        Installment label, ``"Única"`` when the source has none.
    card_name:
        Card label in force when the row was read (card statements only).
    card_last_digits:
        Last digits of the card when the source lists them separately.
    """

    date: str
    description: str
    category_original: str
    amount: Decimal
    type: TransactionType
    original_line: str
    installment: str = SINGLE_INSTALLMENT
    card_name: str | None = None
    card_last_digits: str | None = None

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError(f"amount must be non-negative, got {self.amount}")
        if not self.description.strip():
            raise ValueError("description must be non-empty")

    @property
    def dedupe_key(self) -> tuple[str, str, Decimal]:
        return (self.date, self.description, self.amount)


@dataclass(frozen=True, slots=True)
class SkippedRow:
    """A candidate row that was dropped without being reported as an error.

    Recorded for observability only; consumers that follow the default
    contract look at ``ParseResult.errors`` and ignore these.
    """

    page: int
    index: int
    anchor: str
    reason: str


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Outcome of one parse call: transactions in order plus error messages."""

    transactions: tuple[ParsedTransaction, ...] = ()
    errors: tuple[str, ...] = ()
    skipped: tuple[SkippedRow, ...] = field(default=(), compare=False)

    @classmethod
    def failure(cls, message: str) -> ParseResult:
        """Document-level failure: no transactions and a single error."""

        return cls(transactions=(), errors=(message,))

    @classmethod
    def build(
        cls,
        transactions: Iterable[ParsedTransaction],
        errors: Iterable[str] = (),
        skipped: Iterable[SkippedRow] = (),
    ) -> ParseResult:
        return cls(tuple(transactions), tuple(errors), tuple(skipped))

    @property
    def ok(self) -> bool:
        return not self.errors


# ---------------------------------------------------------------------------
# Export DTOs (JSON boundary)
# ---------------------------------------------------------------------------


class TransactionOut(BaseModel):
    """JSON view of a :class:`ParsedTransaction` with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True, extra="forbid"
    )

    date: str
    description: str
    category_original: str
    amount: Decimal
    type: TransactionType
    original_line: str
    installment: str
    card_name: str | None = None
    card_last_digits: str | None = None

    @field_serializer("amount")
    def _amount_as_string(self, v: Decimal) -> str:
        return fmt_amount(v)

    @classmethod
    def from_transaction(cls, tx: ParsedTransaction) -> TransactionOut:
        return cls(
            date=tx.date,
            description=tx.description,
            category_original=tx.category_original,
            amount=tx.amount,
            type=tx.type,
            original_line=tx.original_line,
            installment=tx.installment,
            card_name=tx.card_name,
            card_last_digits=tx.card_last_digits,
        )


class SkippedRowOut(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    page: int
    index: int
    anchor: str
    reason: str


class ParseReport(BaseModel):
    """Top-level JSON document for one parsed statement."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    source: str | None = None
    transactions: list[TransactionOut]
    errors: list[str]
    skipped: list[SkippedRowOut] | None = None

    @classmethod
    def from_result(
        cls, result: ParseResult, *, source: str | None = None, include_skipped: bool = False
    ) -> ParseReport:
        return cls(
            source=source,
            transactions=[TransactionOut.from_transaction(t) for t in result.transactions],
            errors=list(result.errors),
            skipped=(
                [
                    SkippedRowOut(page=s.page, index=s.index, anchor=s.anchor, reason=s.reason)
                    for s in result.skipped
                ]
                if include_skipped
                else None
            ),
        )

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


__all__ = [
    "PageTokens",
    "ParseReport",
    "ParseResult",
    "ParsedTransaction",
    "SINGLE_INSTALLMENT",
    "SkippedRow",
    "SkippedRowOut",
    "TransactionOut",
    "TransactionType",
]
