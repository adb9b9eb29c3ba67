"""Public interface for the ``statement_import`` package.

This module re-exports the API functions, parsers and models that make up the
stable import surface. There is no runtime logic here, only symbol
re-exports.
"""

from .api import (
    ISSUERS,
    Issuer,
    get_parser,
    parse_csv_text,
    parse_document,
    parse_statement,
    parse_statements,
    resolve_issuer,
)
from .duplicates import dedupe_transactions
from .ingest.adapters.itau_card_pdf import ItauCardParser
from .ingest.adapters.picpay_wallet_pdf import PicPayWalletParser
from .ingest.tokens import InMemoryDocument, PdfTokenDocument, TokenDocument
from .models import (
    PageTokens,
    ParsedTransaction,
    ParseReport,
    ParseResult,
    SkippedRow,
    TransactionOut,
    TransactionType,
)

__all__ = [
    # API
    "ISSUERS",
    "Issuer",
    "get_parser",
    "parse_csv_text",
    "parse_document",
    "parse_statement",
    "parse_statements",
    "resolve_issuer",
    "dedupe_transactions",
    # Parsers / token streams
    "ItauCardParser",
    "PicPayWalletParser",
    "InMemoryDocument",
    "PdfTokenDocument",
    "TokenDocument",
    # Models / types
    "PageTokens",
    "ParsedTransaction",
    "ParseReport",
    "ParseResult",
    "SkippedRow",
    "TransactionOut",
    "TransactionType",
]
