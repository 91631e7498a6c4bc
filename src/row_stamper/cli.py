"""CLI entry point for row-stamper."""

from __future__ import annotations

import re
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table as RichTable

from row_stamper import __version__
from row_stamper.classifier import evaluate
from row_stamper.config import DEFAULT_CONFIG, load_config, override_config
from row_stamper.handler import on_edit
from row_stamper.io import GridDocument, open_grid, write_json
from row_stamper.models import (
    Classification,
    EditNotification,
    EditOutcome,
    InsertRowAt,
    StampConfig,
)
from row_stamper.mutator import boundary_row
from row_stamper.utils import utcnow_iso

app = typer.Typer(
    name="rstamp",
    help="row-stamper — Timestamp completed rows in measurement log sheets.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()

_INT_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+\.[0-9]*|\.[0-9]+)")


class InsertRowAtOption(str, Enum):
    first = "first"
    last = "last"
    none = "none"


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {msg}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"row-stamper v{__version__}")
        raise typer.Exit()


def _parse_cell_value(raw: str) -> Any:
    """Turn a CLI string into what a user typing into the cell would store.

    Only plain decimal literals become numbers; ``nan``, ``inf`` and ``1_000``
    stay text.
    """
    text = raw.strip()
    if not text:
        return None
    if _INT_RE.fullmatch(text):
        return int(text)
    if _FLOAT_RE.fullmatch(text):
        return float(text)
    return raw


def _build_config(
    config_path: Path | None,
    watch_sheet: str | None,
    date_column: int | None,
    watch: list[int] | None,
    insert_row_at: InsertRowAtOption | None,
) -> StampConfig:
    base = load_config(config_path) if config_path else DEFAULT_CONFIG
    overrides: dict[str, Any] = {}
    if insert_row_at is not None:
        overrides["insert_row_at"] = (
            None if insert_row_at is InsertRowAtOption.none else InsertRowAt(insert_row_at.value)
        )
    return override_config(
        base,
        sheet_name=watch_sheet,
        date_column=date_column,
        watched_columns=watch,
        **overrides,
    )


def _open(
    input_file: Path,
    sheet: str | None,
    delimiter: str | None,
    row: int,
    column: int,
    config_args: tuple[Path | None, str | None, int | None, list[int] | None, InsertRowAtOption | None],
) -> tuple[StampConfig, GridDocument, EditNotification]:
    try:
        config = _build_config(*config_args)
        doc = open_grid(input_file, sheet=sheet, delimiter=delimiter)
        notification = EditNotification(doc.sheet_name, row, column)
    except (FileNotFoundError, ValueError, TypeError, KeyError, OSError) as exc:
        _err(str(exc))
        raise typer.Exit(code=2)
    return config, doc, notification


def _describe_config(config: StampConfig) -> str:
    insert = config.insert_row_at.value if config.insert_row_at else "off"
    watched = ", ".join(str(c) for c in config.watched_columns)
    return (
        f"sheet={config.sheet_name!r}, date column={config.date_column}, "
        f"watched=[{watched}], insert row at={insert}"
    )


def _decision_table(
    title: str, notification: EditNotification, classification: Classification
) -> RichTable:
    tbl = RichTable(title=title, show_lines=True)
    tbl.add_column("Check", style="bold")
    tbl.add_column("Result")
    tbl.add_row("Sheet", notification.sheet_name)
    tbl.add_row("Cell", f"row {notification.row}, column {notification.column}")
    if classification.is_complete:
        tbl.add_row("Decision", f"[green]{classification.decision.value}[/green]")
    else:
        tbl.add_row("Decision", f"[yellow]{classification.decision.value}[/yellow]")
    tbl.add_row("Message", classification.decision.message)
    if classification.blank_columns:
        tbl.add_row("Blank columns", ", ".join(str(c) for c in classification.blank_columns))
    return tbl


def _outcome_table(outcome: EditOutcome) -> RichTable:
    tbl = _decision_table("Edit Outcome", outcome.notification, outcome.classification)
    mutation = outcome.mutation
    if mutation is not None:
        tbl.add_row(
            "Stamped",
            f"row {mutation.target.row}, column {mutation.target.column} = {mutation.timestamp}",
        )
        if mutation.inserted_after is not None:
            tbl.add_row("Inserted row", f"{mutation.new_row} (after row {mutation.inserted_after})")
        else:
            tbl.add_row("Inserted row", "[dim]none[/dim]")
    return tbl


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """row-stamper CLI."""


# ── edit command ─────────────────────────────────────────────────


@app.command()
def edit(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to the CSV or XLSX sheet to edit.",
        exists=True, readable=True,
    ),
    row: int = typer.Option(..., "--row", "-r", help="1-based row of the edited cell."),
    column: int = typer.Option(..., "--column", "-c", help="1-based column of the edited cell."),
    value: str | None = typer.Option(
        None, "--value", "-v",
        help="New cell value. Omit to replay an edit on the cell's current content.",
    ),
    sheet: str | None = typer.Option(
        None, "--sheet", "-s",
        help="Edited sheet (default: the workbook's active sheet, or the CSV file stem).",
    ),
    delimiter: str | None = typer.Option(
        None, "--delimiter", help="CSV delimiter (default: sniffed on read, ',' on write).",
    ),
    config_path: Path | None = typer.Option(
        None, "--config",
        help="JSON config: {columns: {date, toWatch}, sheet: {name}, insertRowAt}.",
    ),
    watch_sheet: str | None = typer.Option(
        None, "--watch-sheet", help="Name of the sheet to act on.",
    ),
    date_column: int | None = typer.Option(
        None, "--date-column", help="1-based column that receives the timestamp.",
    ),
    watch: list[int] | None = typer.Option(
        None, "--watch", "-w",
        help="1-based column that must be filled before stamping (repeatable).",
    ),
    insert_row_at: InsertRowAtOption | None = typer.Option(
        None, "--insert-row-at",
        help="Insert a blank row when the first/last data row is completed, or none.",
    ),
    record: Path | None = typer.Option(
        None, "--record",
        help="Write the edit outcome as JSON to this path.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output.",
    ),
) -> None:
    """Apply a single-cell edit, stamp the row if it is now complete, and save."""
    echo = _printer(quiet)
    config, doc, notification = _open(
        input_file, sheet, delimiter, row, column,
        (config_path, watch_sheet, date_column, watch, insert_row_at),
    )

    if not quiet:
        console.print(Panel(
            f"[bold]row-stamper[/bold] v{__version__}\n"
            f"Input: {input_file}\nSheet: {doc.sheet_name}",
            title="Edit", border_style="blue",
        ))
        console.print(f"  Config: {_describe_config(config)}")

    try:
        if value is not None:
            echo(f"[blue]>[/blue] Setting row {row}, column {column} to {value!r} …")
            doc.grid.get_cell(row, column).set_value(_parse_cell_value(value))

        outcome = on_edit(notification, doc.grid, config)
        echo(_outcome_table(outcome))

        if value is not None or outcome.mutation is not None:
            saved_path = doc.save()
            echo(f"  Saved -> {saved_path}")
        else:
            echo("  Nothing changed; file left untouched")

        if record:
            payload = {
                "tool": "row-stamper",
                "version": __version__,
                "created_at_utc": utcnow_iso(),
                "input_path": str(input_file.resolve()),
                "config": config.to_dict(),
                **outcome.to_dict(),
            }
            record_path = write_json(record, payload)
            echo(f"  Record -> {record_path}")
    except OSError as exc:
        _err(f"Could not save {input_file}: {exc}")
        raise typer.Exit(code=2)
    except Exception as exc:
        _err(f"Unexpected internal error: {exc}")
        raise typer.Exit(code=1)


# ── check command ────────────────────────────────────────────────


@app.command()
def check(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to the CSV or XLSX sheet to inspect.",
        exists=True, readable=True,
    ),
    row: int = typer.Option(..., "--row", "-r", help="1-based row of the edited cell."),
    column: int = typer.Option(..., "--column", "-c", help="1-based column of the edited cell."),
    sheet: str | None = typer.Option(
        None, "--sheet", "-s",
        help="Edited sheet (default: the workbook's active sheet, or the CSV file stem).",
    ),
    delimiter: str | None = typer.Option(None, "--delimiter", help="CSV delimiter."),
    config_path: Path | None = typer.Option(None, "--config", help="JSON config file."),
    watch_sheet: str | None = typer.Option(None, "--watch-sheet", help="Sheet to act on."),
    date_column: int | None = typer.Option(None, "--date-column", help="Timestamp column."),
    watch: list[int] | None = typer.Option(None, "--watch", "-w", help="Watched column."),
    insert_row_at: InsertRowAtOption | None = typer.Option(
        None, "--insert-row-at", help="first, last or none.",
    ),
) -> None:
    """Dry-run: report what an edit at the given cell would do. Never writes.

    Exit 0 whatever the decision; exit 2 on bad input.
    """
    config, doc, notification = _open(
        input_file, sheet, delimiter, row, column,
        (config_path, watch_sheet, date_column, watch, insert_row_at),
    )
    try:
        classification = evaluate(notification, config, doc.grid)
        tbl = _decision_table("Dry Run", notification, classification)
        if classification.target is not None:
            boundary = boundary_row(config, doc.grid)
            if boundary is not None and classification.target.row == boundary:
                tbl.add_row("Would insert row", f"after row {boundary}")
            else:
                tbl.add_row("Would insert row", "[dim]no[/dim]")
        console.print(tbl)
    except Exception as exc:
        _err(f"Unexpected internal error: {exc}")
        raise typer.Exit(code=1)
