"""CLI integration tests for row-stamper."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

from openpyxl import Workbook, load_workbook
from typer.testing import CliRunner

import row_stamper.cli as cli_mod
from row_stamper import __version__
from row_stamper.cli import app

runner = CliRunner()


def _write_workbook(path: Path, rows: list[list[object]], title: str = "Readings") -> Path:
    wb = Workbook()
    ws = wb.active
    assert ws is not None
    ws.title = title
    ws.append(["Date", "Systolic", "Diastolic", "Pulse"])
    for row in rows:
        ws.append(row)
    wb.save(path)
    return path


def _write_csv(tmp_path: Path, name: str, text: str) -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_version_flag_prints_version() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_edit_completing_first_row_stamps_and_inserts(tmp_path: Path) -> None:
    path = _write_workbook(
        tmp_path / "bp.xlsx", [[None, 120, None, 72], [datetime(2024, 2, 1, 7, 0), 118, 79, 66]]
    )

    result = runner.invoke(
        app,
        ["edit", "--input", str(path), "--row", "2", "--column", "3", "--value", "130", "--quiet"],
    )

    assert result.exit_code == 0, result.output
    ws = load_workbook(path)["Readings"]
    assert isinstance(ws.cell(row=2, column=1).value, datetime)
    assert ws.cell(row=2, column=3).value == 130
    assert [ws.cell(row=3, column=c).value for c in range(1, 5)] == [None, None, None, None]
    assert ws.cell(row=4, column=1).value == datetime(2024, 2, 1, 7, 0)
    assert ws.cell(row=4, column=2).value == 118


def test_edit_incomplete_row_saves_value_without_stamp(tmp_path: Path) -> None:
    path = _write_workbook(tmp_path / "bp.xlsx", [[None, None, None, None]])

    result = runner.invoke(
        app,
        ["edit", "-i", str(path), "-r", "2", "-c", "2", "-v", "100", "--quiet"],
    )

    assert result.exit_code == 0, result.output
    ws = load_workbook(path)["Readings"]
    assert ws.cell(row=2, column=2).value == 100
    assert ws.cell(row=2, column=1).value is None
    assert ws.max_row == 2


def test_edit_on_unwatched_sheet_changes_nothing(tmp_path: Path) -> None:
    path = _write_workbook(tmp_path / "bp.xlsx", [[None, 120, 80, 70]], title="Archive")
    before = path.stat().st_mtime_ns

    result = runner.invoke(app, ["edit", "--input", str(path), "--row", "2", "--column", "2"])

    assert result.exit_code == 0, result.output
    assert "not the right sheet" in result.output
    assert "file left untouched" in result.output
    assert path.stat().st_mtime_ns == before
    assert load_workbook(path)["Archive"].cell(row=2, column=1).value is None


def test_edit_csv_with_overrides_and_record(tmp_path: Path) -> None:
    csv_path = _write_csv(
        tmp_path,
        "log.csv",
        "Weight,Fat,When\n80,20,2024-01-01 07:00:00\n81,,\n",
    )
    record = tmp_path / "out" / "record.json"

    result = runner.invoke(
        app,
        [
            "edit",
            "--input", str(csv_path),
            "--row", "3",
            "--column", "2",
            "--value", "21",
            "--watch-sheet", "log",
            "--date-column", "3",
            "--watch", "1",
            "--watch", "2",
            "--insert-row-at", "last",
            "--record", str(record),
            "--quiet",
        ],
    )

    assert result.exit_code == 0, result.output
    lines = csv_path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "Weight,Fat,When"
    assert lines[2].startswith("81,21,")
    assert lines[3] == ",,"
    payload = json.loads(record.read_text(encoding="utf-8"))
    assert payload["config"] == {
        "columns": {"date": 3, "toWatch": [1, 2]},
        "insertRowAt": "last",
        "sheet": {"name": "log"},
    }
    assert payload["classification"]["decision"] == "complete"
    assert payload["mutation"]["inserted_after"] == 3
    assert payload["notification"] == {"sheet_name": "log", "row": 3, "column": 2}


def test_edit_with_config_file_and_insertion_disabled(tmp_path: Path) -> None:
    path = _write_workbook(tmp_path / "bp.xlsx", [[None, 120, 80, None]])
    config_path = tmp_path / "stamp.json"
    config_path.write_text(
        json.dumps({"columns": {"date": 1, "toWatch": [2, 3, 4]}, "sheet": {"name": "Readings"}}),
        encoding="utf-8",
    )

    result = runner.invoke(
        app,
        [
            "edit", "-i", str(path), "-r", "2", "-c", "4", "-v", "66",
            "--config", str(config_path), "--insert-row-at", "none", "--quiet",
        ],
    )

    assert result.exit_code == 0, result.output
    ws = load_workbook(path)["Readings"]
    assert isinstance(ws.cell(row=2, column=1).value, datetime)
    assert ws.max_row == 2


def test_edit_rejects_overlapping_columns(tmp_path: Path) -> None:
    path = _write_workbook(tmp_path / "bp.xlsx", [[None, 120, 80, 70]])

    result = runner.invoke(
        app,
        ["edit", "-i", str(path), "-r", "2", "-c", "2", "--date-column", "2", "--quiet"],
    )

    assert result.exit_code == 2
    assert "date column" in result.output


def test_edit_rejects_row_zero_and_unknown_sheet(tmp_path: Path) -> None:
    path = _write_workbook(tmp_path / "bp.xlsx", [])

    zero = runner.invoke(app, ["edit", "-i", str(path), "-r", "0", "-c", "2"])
    missing = runner.invoke(app, ["edit", "-i", str(path), "-r", "2", "-c", "2", "-s", "Nope"])

    assert zero.exit_code == 2
    assert missing.exit_code == 2
    assert "not found" in missing.output


def test_edit_unexpected_error_exits_one(tmp_path: Path, monkeypatch) -> None:  # type: ignore[no-untyped-def]
    path = _write_workbook(tmp_path / "bp.xlsx", [[None, 120, 80, 70]])

    def _boom(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError("grid exploded")

    monkeypatch.setattr(cli_mod, "on_edit", _boom)

    result = runner.invoke(app, ["edit", "-i", str(path), "-r", "2", "-c", "2", "--quiet"])

    assert result.exit_code == 1
    assert "Unexpected internal error: grid exploded" in result.output


def test_check_is_read_only_and_reports_insert(tmp_path: Path) -> None:
    path = _write_workbook(tmp_path / "bp.xlsx", [[None, 120, 80, 70]])
    before = path.read_bytes()

    result = runner.invoke(app, ["check", "--input", str(path), "--row", "2", "--column", "2"])

    assert result.exit_code == 0, result.output
    assert "complete" in result.output
    assert "after row 2" in result.output
    assert path.read_bytes() == before


def test_check_reports_blank_columns(tmp_path: Path) -> None:
    path = _write_workbook(tmp_path / "bp.xlsx", [[None, 120, None, None]])

    result = runner.invoke(app, ["check", "-i", str(path), "-r", "2", "-c", "2"])

    assert result.exit_code == 0, result.output
    assert "row_incomplete" in result.output
    assert "3, 4" in result.output


def test_edit_csv_keeps_text_tokens_and_integer_values(tmp_path: Path) -> None:
    csv_path = _write_csv(
        tmp_path,
        "Readings.csv",
        "Date,Systolic,Diastolic,Pulse,Notes\n,120,80,,NA\n",
    )

    result = runner.invoke(
        app,
        ["edit", "-i", str(csv_path), "-r", "2", "-c", "4", "-v", "70", "--delimiter", ",", "--quiet"],
    )

    assert result.exit_code == 0, result.output
    lines = csv_path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "Date,Systolic,Diastolic,Pulse,Notes"
    assert lines[1].endswith(",120,80,70,NA")
    assert lines[1] != ",120,80,70,NA"
    assert lines[2] == ",,,,"


def test_parse_cell_value_only_casts_plain_decimals() -> None:
    assert cli_mod._parse_cell_value("70") == 70
    assert cli_mod._parse_cell_value("-3") == -3
    assert cli_mod._parse_cell_value("36.6") == 36.6
    assert cli_mod._parse_cell_value(".5") == 0.5
    assert cli_mod._parse_cell_value("  ") is None
    for text in ("nan", "inf", "-Infinity", "1_000", "1e3", "N/A"):
        assert cli_mod._parse_cell_value(text) == text
