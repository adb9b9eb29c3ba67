"""Shared boundary for token-stream statement parsers.

:class:`StatementParser` implements the part every PDF adapter has in common:
walking pages in increasing order, threading the adapter's carry-over state
from page to page, de-duplicating the collected rows, and turning any
document-level failure into a well-formed :class:`ParseResult`. Subclasses
only describe how one page is scanned.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import ClassVar, Generic, TypeVar

from ..duplicates import dedupe_transactions
from ..logging_setup import get_logger
from ..models import PageTokens, ParseResult, ParsedTransaction, SkippedRow
from .tokens import TokenDocument

logger = get_logger(__name__)

S = TypeVar("S")


def error_message(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


class StatementParser(ABC, Generic[S]):
    """Base class for parsers that read a :class:`TokenDocument`.

    ``S`` is the type of the carry-over state folded over pages. Instances
    hold configuration only; all per-document state lives inside one
    :meth:`parse` call, so a single instance can parse several documents,
    concurrently or not.
    """

    issuer: ClassVar[str]
    display_name: ClassVar[str]

    def parse(self, document: TokenDocument) -> ParseResult:
        """Parse ``document`` into transactions; never raises."""

        try:
            result = self._parse_pages(document)
        except Exception as exc:
            logger.exception("%s statement parse failed", self.display_name)
            return ParseResult.failure(error_message(exc))
        logger.info(
            "%s: %d transaction(s), %d skipped row(s)",
            self.display_name,
            len(result.transactions),
            len(result.skipped),
        )
        return result

    def _parse_pages(self, document: TokenDocument) -> ParseResult:
        transactions: list[ParsedTransaction] = []
        skipped: list[SkippedRow] = []
        state = self.initial_state()
        for page_number in range(1, document.page_count + 1):
            tokens = document.get_page_tokens(page_number)
            state, page_rows, page_skips = self.scan_page(page_number, tokens, state)
            transactions.extend(page_rows)
            skipped.extend(page_skips)
            for skip in page_skips:
                logger.debug(
                    "%s page %d token %d (%s): %s",
                    self.display_name,
                    skip.page,
                    skip.index,
                    skip.anchor,
                    skip.reason,
                )

        unique = dedupe_transactions(transactions)
        if len(unique) != len(transactions):
            logger.debug(
                "%s: dropped %d duplicate row(s)",
                self.display_name,
                len(transactions) - len(unique),
            )
        return ParseResult.build(unique, (), skipped)

    @abstractmethod
    def initial_state(self) -> S:
        """Carry-over state at the start of a document."""

    @abstractmethod
    def scan_page(
        self, page_number: int, tokens: PageTokens, state: S
    ) -> tuple[S, Sequence[ParsedTransaction], Sequence[SkippedRow]]:
        """Scan one page; return the updated state and the page's rows/skips."""


__all__ = ["StatementParser", "error_message"]
