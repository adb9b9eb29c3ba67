"""Public API for the ``statement_import`` package.

Callers pick the issuer of a statement (the import flow asks the user) and
hand over either an already-extracted token stream or a file. Every entry
point returns a :class:`~statement_import.models.ParseResult`; unreadable
files and parser failures are reported in ``errors`` instead of raised. The
only exception surfaced to callers is ``ValueError`` for an unknown issuer,
which is a programming error rather than a property of the document.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from os import PathLike
from typing import Literal

from .ingest.adapters.c6_csv import parse_c6_csv
from .ingest.adapters.itau_card_pdf import ItauCardParser
from .ingest.adapters.picpay_wallet_pdf import PicPayWalletParser
from .ingest.adapters.xp_csv import parse_xp_csv
from .ingest.base import StatementParser, error_message
from .ingest.tokens import PdfTokenDocument, TokenDocument
from .ingest.utils import read_export_text
from .logging_setup import get_logger
from .models import ParseResult
from .pmap import p_map

logger = get_logger(__name__)

type StatementSource = str | PathLike[str] | bytes


@dataclass(frozen=True, slots=True)
class Issuer:
    """A supported statement source."""

    code: str
    name: str
    format: Literal["pdf", "csv"]
    description: str


ISSUERS: dict[str, Issuer] = {
    "itau": Issuer("itau", "Itaú", "pdf", "Credit card statement (fatura)"),
    "picpay": Issuer("picpay", "PicPay", "pdf", "Wallet statement, Pix transfers"),
    "c6": Issuer("c6", "C6 Bank", "csv", "Credit card export"),
    "xp": Issuer("xp", "XP Inv.", "csv", "Credit card export"),
}

_ALIASES: dict[str, str] = {
    "itaú": "itau",
    "pic_pay": "picpay",
    "c6_bank": "c6",
    "c6bank": "c6",
    "xp_investimentos": "xp",
}

_CSV_PARSERS: dict[str, Callable[[str], ParseResult]] = {
    "c6": parse_c6_csv,
    "xp": parse_xp_csv,
}


def resolve_issuer(name: str) -> Issuer:
    """Look up an issuer by code or alias (case and spacing insensitive)."""

    key = name.strip().lower().replace(" ", "_").replace("-", "_")
    key = _ALIASES.get(key, key)
    try:
        return ISSUERS[key]
    except KeyError:
        raise ValueError(
            f"unknown issuer: {name!r}. Supported: {', '.join(sorted(ISSUERS))}"
        ) from None


def get_parser(issuer: str, *, clock: Callable[[], date] | None = None) -> StatementParser:
    """Return a token-stream parser for a PDF issuer."""

    info = resolve_issuer(issuer)
    if info.code == "itau":
        return ItauCardParser(clock=clock) if clock is not None else ItauCardParser()
    if info.code == "picpay":
        return PicPayWalletParser()
    raise ValueError(f"issuer {info.code!r} exports CSV, not a PDF token stream")


def parse_document(
    document: TokenDocument, *, issuer: str, clock: Callable[[], date] | None = None
) -> ParseResult:
    """Parse an already-extracted token stream."""

    return get_parser(issuer, clock=clock).parse(document)


def parse_csv_text(csv_text: str, *, issuer: str) -> ParseResult:
    """Parse the text of a card CSV export."""

    info = resolve_issuer(issuer)
    parser = _CSV_PARSERS.get(info.code)
    if parser is None:
        raise ValueError(f"issuer {info.code!r} does not export CSV")
    try:
        return parser(csv_text)
    except Exception as exc:
        logger.exception("%s CSV import failed", info.name)
        return ParseResult.failure(error_message(exc))


def parse_statement(
    source: StatementSource, *, issuer: str, clock: Callable[[], date] | None = None
) -> ParseResult:
    """Open ``source`` (path or raw bytes) and parse it as ``issuer``'s format."""

    info = resolve_issuer(issuer)
    if info.format == "csv":
        try:
            text = (
                source.decode("utf-8-sig", errors="replace")
                if isinstance(source, bytes)
                else read_export_text(source)
            )
        except OSError as exc:
            logger.error("Could not read %s: %s", source, exc)
            return ParseResult.failure(error_message(exc))
        return parse_csv_text(text, issuer=info.code)

    parser = get_parser(info.code, clock=clock)
    try:
        document = PdfTokenDocument(source)
    except Exception as exc:
        logger.exception("%s PDF could not be opened", info.name)
        return ParseResult.failure(error_message(exc))
    with document:
        return parser.parse(document)


def resolve_max_workers(n_items: int) -> int:
    """Resolve the worker count for multi-document parsing.

    Honors ``STATEMENT_IMPORT_MAX_WORKERS`` when it is a positive integer,
    caps to ``n_items`` and to 32, and never returns less than 1.
    """

    env_workers = os.getenv("STATEMENT_IMPORT_MAX_WORKERS")
    try:
        max_workers = int(env_workers) if env_workers else None
    except ValueError:
        max_workers = None
    if max_workers is not None and max_workers > 0:
        return max(1, min(max_workers, n_items, 32))
    return max(1, min(4, n_items))


def parse_statements(
    sources: Iterable[StatementSource],
    *,
    issuer: str,
    concurrency: int | None = None,
    clock: Callable[[], date] | None = None,
) -> list[ParseResult]:
    """Parse several documents of the same issuer, results in input order."""

    items: Sequence[StatementSource] = list(sources)
    if not items:
        return []
    resolve_issuer(issuer)
    workers = concurrency if concurrency is not None else resolve_max_workers(len(items))
    return p_map(
        items,
        lambda src: parse_statement(src, issuer=issuer, clock=clock),
        concurrency=workers,
    )


__all__ = [
    "ISSUERS",
    "Issuer",
    "get_parser",
    "parse_csv_text",
    "parse_document",
    "parse_statement",
    "parse_statements",
    "resolve_issuer",
    "resolve_max_workers",
]
