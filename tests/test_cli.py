import csv
import io
import json
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from statement_import.cli import app

runner = CliRunner()

XP_HEADER = "Data;Estabelecimento;Portador;Valor;Parcela\n"


class _FakePage:
    def __init__(self, words: list[str]) -> None:
        self._words = words

    def extract_words(self, **kwargs: Any) -> list[dict[str, Any]]:
        return [{"text": w} for w in self._words]


class _FakePdf:
    def __init__(self, *pages: list[str]) -> None:
        self.pages = [_FakePage(p) for p in pages]

    def close(self) -> None:
        pass


@pytest.fixture(autouse=True)
def _in_tmp_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    # Keep load_dotenv() away from any .env in the working tree.
    monkeypatch.chdir(tmp_path)


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_parse_writes_single_json_report(tmp_path: Path):
    src = _write(tmp_path / "xp.csv", XP_HEADER + "20/12/2025;RESTAURANTE;MARIA SOUZA;R$ 85,50;-\n")
    out = tmp_path / "report.json"

    result = runner.invoke(app, ["parse", str(src), "--issuer", "xp", "--output", str(out)])

    assert result.exit_code == 0, result.output
    report = json.loads(out.read_text(encoding="utf-8"))
    assert report == {
        "source": str(src),
        "transactions": [
            {
                "date": "2025-12-20",
                "description": "RESTAURANTE",
                "categoryOriginal": "RESTAURANTE",
                "amount": "85.50",
                "type": "EXPENSE",
                "originalLine": "Line 2",
                "installment": "-",
                "cardName": "MARIA SOUZA",
            }
        ],
        "errors": [],
    }


def test_parse_several_files_as_csv(tmp_path: Path):
    a = _write(tmp_path / "a.csv", XP_HEADER + "01/12/2025;LOJA A;MARIA;R$ 1,00;-\n")
    b = _write(tmp_path / "b.csv", XP_HEADER + "02/12/2025;LOJA B;MARIA;R$ 2,00;-\n")
    out = tmp_path / "report.csv"

    result = runner.invoke(
        app, ["parse", str(a), str(b), "-i", "xp", "-f", "csv", "-o", str(out), "--concurrency", "2"]
    )

    assert result.exit_code == 0, result.output
    rows = list(csv.DictReader(io.StringIO(out.read_text(encoding="utf-8"))))
    assert [(r["source"], r["description"], r["amount"]) for r in rows] == [
        (str(a), "LOJA A", "1.00"),
        (str(b), "LOJA B", "2.00"),
    ]


def test_parse_several_files_as_json_array(tmp_path: Path):
    a = _write(tmp_path / "a.csv", XP_HEADER + "01/12/2025;LOJA A;MARIA;R$ 1,00;-\n")
    b = _write(tmp_path / "b.csv", XP_HEADER)
    out = tmp_path / "report.json"

    result = runner.invoke(app, ["parse", str(a), str(b), "-i", "xp", "-o", str(out)])

    assert result.exit_code == 0, result.output
    reports = json.loads(out.read_text(encoding="utf-8"))
    assert [r["source"] for r in reports] == [str(a), str(b)]
    assert reports[1]["transactions"] == []


def test_parse_reports_line_errors_with_exit_1(tmp_path: Path):
    src = _write(tmp_path / "c6.csv", "header\n10/01/2026;JOAO;1234\n")
    out = tmp_path / "report.json"

    result = runner.invoke(app, ["parse", str(src), "--issuer", "c6", "-o", str(out)])

    assert result.exit_code == 1
    assert f"{src}: Line 2: Insufficient columns" in result.output
    assert json.loads(out.read_text(encoding="utf-8"))["errors"] == ["Line 2: Insufficient columns"]


def test_parse_unknown_issuer_exits_2(tmp_path: Path):
    src = _write(tmp_path / "x.csv", XP_HEADER)
    result = runner.invoke(app, ["parse", str(src), "--issuer", "nubank"])
    assert result.exit_code == 2
    assert "unknown issuer" in result.output


def test_parse_pdf_with_skipped_rows(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    fake = _FakePdf(
        ["07/12/2025", "19:26:50", "Pix Enviado", "- R$ 10,00", "08/12/2025", "10:00:00", "Boleto"]
    )
    monkeypatch.setattr(
        "statement_import.ingest.tokens.pdfplumber.open", lambda src, password=None: fake
    )
    src = tmp_path / "picpay.pdf"
    src.write_bytes(b"%PDF-1.7")
    out = tmp_path / "report.json"

    result = runner.invoke(
        app,
        ["--log-level", "DEBUG", "parse", str(src), "-i", "picpay", "-o", str(out), "--show-skipped"],
    )

    assert result.exit_code == 0, result.output
    report = json.loads(out.read_text(encoding="utf-8"))
    assert [t["type"] for t in report["transactions"]] == ["EXPENSE"]
    assert report["skipped"] == [
        {"page": 1, "index": 4, "anchor": "08/12/2025", "reason": "exhausted"}
    ]


def test_tokens_dumps_pages(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    fake = _FakePdf(["Vencimento:", "25/01/2026"], ["26/12", "LOJA", "649,00"])
    monkeypatch.setattr(
        "statement_import.ingest.tokens.pdfplumber.open", lambda src, password=None: fake
    )
    src = tmp_path / "fatura.pdf"
    src.write_bytes(b"%PDF-1.7")

    result = runner.invoke(app, ["tokens", str(src)])

    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == [
        "PDF loaded, pages: 2",
        "--- Page 1 ---",
        "Vencimento: | 25/01/2026",
        "--- Page 2 ---",
        "26/12 | LOJA | 649,00",
    ]


def test_issuers_lists_codes():
    result = runner.invoke(app, ["issuers"])
    assert result.exit_code == 0
    codes = [line.split("\t")[0] for line in result.output.splitlines()]
    assert codes == ["itau", "picpay", "c6", "xp"]
