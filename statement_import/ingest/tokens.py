"""Token stream adapters: documents as per-page sequences of text fragments.

Parsers only ever see a :class:`TokenDocument`. It exposes how many pages a
document has and, for a 1-based page number, the ordered text fragments of
that page, trimmed, with empty fragments removed. Glyph positions, fonts and
coordinates are never exposed.

Two implementations are provided:

- :class:`InMemoryDocument` wraps fragments that were already extracted (by a
  browser-side extractor, a fixture, or a test).
- :class:`PdfTokenDocument` extracts fragments from a PDF with ``pdfplumber``.
  Words are grouped with ``keep_blank_chars=True`` so a text run such as
  ``"Pix Enviado"`` or ``"- R$ 10,00"`` stays one fragment, and
  ``use_text_flow=True`` keeps the content-stream order instead of re-sorting
  by position.
"""

from __future__ import annotations

import io
from collections.abc import Iterable, Sequence
from os import PathLike
from types import TracebackType
from typing import Any, Protocol, runtime_checkable

import pdfplumber

from ..logging_setup import get_logger
from ..models import PageTokens

logger = get_logger(__name__)


@runtime_checkable
class TokenDocument(Protocol):
    """Boundary contract between text extraction and statement parsers."""

    @property
    def page_count(self) -> int: ...

    def get_page_tokens(self, page_number: int) -> PageTokens:
        """Return the fragments of page ``page_number`` (1..page_count)."""
        ...


def clean_tokens(fragments: Iterable[str | None]) -> list[str]:
    """Trim fragments and drop the empty ones, preserving order."""

    out: list[str] = []
    for frag in fragments:
        if frag is None:
            continue
        s = frag.strip()
        if s:
            out.append(s)
    return out


def _check_page_number(page_number: int, page_count: int) -> None:
    if not 1 <= page_number <= page_count:
        raise IndexError(f"page {page_number} out of range 1..{page_count}")


class InMemoryDocument:
    """A document whose pages are given as lists of fragments."""

    def __init__(self, pages: Iterable[Sequence[str]]) -> None:
        self._pages: tuple[tuple[str, ...], ...] = tuple(
            tuple(clean_tokens(page)) for page in pages
        )

    @property
    def page_count(self) -> int:
        return len(self._pages)

    def get_page_tokens(self, page_number: int) -> PageTokens:
        _check_page_number(page_number, self.page_count)
        return self._pages[page_number - 1]

    def __repr__(self) -> str:
        return f"InMemoryDocument(pages={self.page_count})"


# pdfplumber word-grouping options; see module docstring.
_WORD_OPTIONS: dict[str, Any] = {
    "keep_blank_chars": True,
    "use_text_flow": True,
    "x_tolerance": 3,
    "y_tolerance": 3,
}


class PdfTokenDocument:
    """A PDF opened with ``pdfplumber`` and exposed as a token stream.

    Accepts a filesystem path or the raw bytes of the file. Pages are
    extracted lazily and cached, so each page is read once per document. Use
    as a context manager (or call :meth:`close`) to release the file.
    """

    def __init__(self, source: str | PathLike[str] | bytes, *, password: str | None = None) -> None:
        if isinstance(source, bytes):
            self._pdf = pdfplumber.open(io.BytesIO(source), password=password)
            self.name = "<bytes>"
        else:
            self._pdf = pdfplumber.open(source, password=password)
            self.name = str(source)
        self._cache: dict[int, tuple[str, ...]] = {}

    @property
    def page_count(self) -> int:
        return len(self._pdf.pages)

    def get_page_tokens(self, page_number: int) -> PageTokens:
        _check_page_number(page_number, self.page_count)
        cached = self._cache.get(page_number)
        if cached is not None:
            return cached
        page = self._pdf.pages[page_number - 1]
        words = page.extract_words(**_WORD_OPTIONS)
        tokens = tuple(clean_tokens(w.get("text") for w in words))
        logger.debug("%s page %d: %d tokens", self.name, page_number, len(tokens))
        self._cache[page_number] = tokens
        return tokens

    def close(self) -> None:
        self._pdf.close()

    def __enter__(self) -> PdfTokenDocument:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def dump_tokens(document: TokenDocument, *, separator: str = " | ") -> Iterable[str]:
    """Yield one ``--- Page N ---`` header and joined fragments per page.

    Debug aid for writing new issuer heuristics against a real statement.
    """

    for page_number in range(1, document.page_count + 1):
        yield f"--- Page {page_number} ---"
        yield separator.join(document.get_page_tokens(page_number))


__all__ = [
    "InMemoryDocument",
    "PdfTokenDocument",
    "TokenDocument",
    "clean_tokens",
    "dump_tokens",
]
