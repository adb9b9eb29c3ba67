"""CLI for the ``statement_import`` package.

This module exposes callable command handlers (``cmd_parse``, ``cmd_tokens``)
and a Typer-based console interface. Environment variables are loaded from a
local ``.env`` using ``python-dotenv`` before any command runs. Business logic
lives in :mod:`statement_import.api` and the issuer adapters.
"""

from __future__ import annotations

import csv
import io
import json
import sys
from collections.abc import Sequence
from enum import StrEnum
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv

from .logging_setup import configure_logging


class OutputFormat(StrEnum):
    JSON = "json"
    CSV = "csv"


CSV_COLUMNS: tuple[str, ...] = (
    "source",
    "date",
    "description",
    "categoryOriginal",
    "amount",
    "type",
    "originalLine",
    "installment",
    "cardName",
    "cardLastDigits",
)


def _render_json(reports: Sequence[dict]) -> str:
    payload: object = reports[0] if len(reports) == 1 else list(reports)
    return json.dumps(payload, ensure_ascii=False, indent=2) + "\n"


def _render_csv(reports: Sequence[dict]) -> str:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=CSV_COLUMNS, extrasaction="ignore")
    writer.writeheader()
    for report in reports:
        for tx in report.get("transactions", []):
            writer.writerow({"source": report.get("source", ""), **tx})
    return buf.getvalue()


def cmd_parse(
    paths: Sequence[str],
    *,
    issuer: str,
    output_format: OutputFormat = OutputFormat.JSON,
    output: str | None = None,
    show_skipped: bool = False,
    concurrency: int | None = None,
) -> int:
    """Parse statement files and write a report.

    Behavior
    --------
    - Resolves ``issuer`` (``itau``, ``picpay``, ``c6``, ``xp``); an unknown
      issuer is reported on stderr with exit status ``2``.
    - Parses every file, several at a time, keeping input order.
    - Writes JSON (one report object, or an array for several files) or CSV
      (one row per transaction with a ``source`` column) to ``output`` or
      stdout.
    - Document errors are echoed to stderr as ``"<path>: <error>"``.

    Returns ``0`` when no document reported errors, ``1`` otherwise.
    """

    from .api import parse_statements, resolve_issuer
    from .models import ParseReport

    try:
        info = resolve_issuer(issuer)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        results = parse_statements(paths, issuer=info.code, concurrency=concurrency)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    reports = [
        ParseReport.from_result(result, source=path, include_skipped=show_skipped).to_json_dict()
        for path, result in zip(paths, results, strict=True)
    ]
    rendered = _render_json(reports) if output_format is OutputFormat.JSON else _render_csv(reports)

    if output:
        try:
            Path(output).write_text(rendered, encoding="utf-8")
        except OSError as e:
            print(f"Error: could not write '{output}': {e}", file=sys.stderr)
            return 1
    else:
        sys.stdout.write(rendered)

    failed = False
    for path, result in zip(paths, results, strict=True):
        for err in result.errors:
            print(f"{path}: {err}", file=sys.stderr)
            failed = True
    return 1 if failed else 0


def cmd_tokens(path: str) -> int:
    """Print the token stream of a PDF, one ``|``-joined line per page."""

    from .ingest.tokens import PdfTokenDocument, dump_tokens

    try:
        with PdfTokenDocument(path) as document:
            print(f"PDF loaded, pages: {document.page_count}")
            for line in dump_tokens(document):
                print(line)
    except Exception as e:
        print(f"Error: could not read '{path}': {e}", file=sys.stderr)
        return 1
    return 0


app = typer.Typer(
    name="statement-import",
    help="Reconstruct transactions from bank and wallet statements.",
    no_args_is_help=True,
    add_completion=False,
)


@app.command("parse")
def parse_cmd(
    files: Annotated[list[Path], typer.Argument(help="Statement files (PDF or CSV).", dir_okay=False)],
    issuer: Annotated[str, typer.Option("--issuer", "-i", help="Statement issuer: itau, picpay, c6, xp.")],
    output_format: Annotated[
        OutputFormat, typer.Option("--format", "-f", help="Report format.")
    ] = OutputFormat.JSON,
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write the report here instead of stdout.")
    ] = None,
    show_skipped: Annotated[
        bool, typer.Option("--show-skipped", help="Include silently skipped rows in JSON reports.")
    ] = False,
    concurrency: Annotated[
        int | None,
        typer.Option(
            min=1, help="Files parsed at once (default: STATEMENT_IMPORT_MAX_WORKERS or 4)."
        ),
    ] = None,
) -> None:
    code = cmd_parse(
        [str(f) for f in files],
        issuer=issuer,
        output_format=output_format,
        output=str(output) if output is not None else None,
        show_skipped=show_skipped,
        concurrency=concurrency,
    )
    raise typer.Exit(code)


@app.command("tokens")
def tokens_cmd(
    file: Annotated[Path, typer.Argument(help="PDF statement to dump.", dir_okay=False)],
) -> None:
    """Dump the extracted token stream of a PDF (for writing new heuristics)."""

    raise typer.Exit(cmd_tokens(str(file)))


@app.command("issuers")
def issuers_cmd() -> None:
    """List supported statement issuers."""

    from .api import ISSUERS

    for info in ISSUERS.values():
        typer.echo(f"{info.code}\t{info.format}\t{info.name}: {info.description}")


@app.callback()
def _root(
    log_level: Annotated[
        str | None,
        typer.Option(help="Logging level (default: STATEMENT_IMPORT_LOG_LEVEL or INFO)."),
    ] = None,
) -> None:
    """Load ``.env`` from the working directory and configure logging."""

    # override=False keeps variables already set in the environment.
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level)


def main() -> None:  # pragma: no cover - console script entry point
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
