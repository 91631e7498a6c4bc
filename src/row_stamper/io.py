"""I/O helpers — open sheets as grids, save them back, write JSON records."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Literal

import pandas as pd
from openpyxl import Workbook, load_workbook

from row_stamper.grid import MemoryGrid, WorksheetGrid

XLSX_SUFFIXES = (".xlsx", ".xlsm", ".xltx", ".xltm")

# ── Loading ──────────────────────────────────────────────────────


def _grid_value(val: Any) -> Any:
    try:
        if pd.isna(val):
            return None
    except (TypeError, ValueError):
        return val
    return val


def frame_to_grid(df: pd.DataFrame) -> MemoryGrid:
    """Every parsed row becomes a grid row, so a frame read with ``header=None``
    keeps the header line verbatim as row 1."""
    return MemoryGrid(
        [_grid_value(v) for v in row_vals]
        for row_vals in df.itertuples(index=False, name=None)
    )


def grid_to_frame(grid: MemoryGrid) -> pd.DataFrame:
    """Object dtype keeps ints as typed (no float upcast next to blanks)."""
    return pd.DataFrame(grid.to_rows(), dtype=object)


def load_csv_grid(path: Path, delimiter: str | None = None) -> MemoryGrid:
    """Load a CSV file into an in-memory grid.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    ValueError
        If CSV decoding/parsing fails.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    last_exc: Exception | None = None
    sep = delimiter if delimiter else None
    engine: Literal["c", "python"] = "c" if delimiter else "python"
    for encoding in ("utf-8-sig", "utf-8", "latin-1"):
        try:
            df = pd.read_csv(
                path,
                header=None,
                dtype="string",
                sep=sep,
                engine=engine,
                encoding=encoding,
                encoding_errors="strict",
                # only empty fields are blank; "NA", "null" etc. stay text
                keep_default_na=False,
                na_values=[""],
            )
        except (UnicodeDecodeError, pd.errors.ParserError) as exc:
            last_exc = exc
            continue
        return frame_to_grid(df)
    raise ValueError(f"Could not read CSV {path} (decode or parse failed)") from last_exc


def load_workbook_grid(path: Path, sheet: str | None = None) -> tuple[Workbook, WorksheetGrid]:
    """Open an Excel workbook and return it with a grid over *sheet* (default: active)."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    wb = load_workbook(path, keep_vba=path.suffix.lower() == ".xlsm")
    if sheet is None:
        ws = wb.active
        if ws is None:
            raise ValueError(f"Workbook {path} has no active sheet")
    else:
        if sheet not in wb.sheetnames:
            raise ValueError(
                f"Sheet {sheet!r} not found in {path.name} "
                f"(available: {', '.join(wb.sheetnames)})"
            )
        ws = wb[sheet]
    return wb, WorksheetGrid(ws)


@dataclass
class GridDocument:
    """A loaded sheet plus what is needed to write it back."""

    path: Path
    grid: MemoryGrid | WorksheetGrid
    sheet_name: str
    workbook: Workbook | None = None
    delimiter: str | None = None

    def save(self) -> Path:
        if self.workbook is not None:
            return save_workbook(self.path, self.workbook)
        assert isinstance(self.grid, MemoryGrid)
        return save_csv_grid(self.path, self.grid, delimiter=self.delimiter)


def open_grid(
    path: Path, *, sheet: str | None = None, delimiter: str | None = None
) -> GridDocument:
    """Open a CSV or Excel file as a :class:`GridDocument`.

    For CSV input the sheet name is *sheet* if given, else the file stem.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".csv":
        grid = load_csv_grid(path, delimiter=delimiter)
        return GridDocument(path, grid, sheet or path.stem, delimiter=delimiter)
    if suffix in XLSX_SUFFIXES:
        wb, ws_grid = load_workbook_grid(path, sheet)
        return GridDocument(path, ws_grid, ws_grid.title, workbook=wb)
    raise ValueError(f"Unsupported file type: {suffix!r}. Use .csv or .xlsx")


# ── Writing ──────────────────────────────────────────────────────


def save_csv_grid(path: Path, grid: MemoryGrid, delimiter: str | None = None) -> Path:
    """Write *grid* back to CSV (atomic)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df = grid_to_frame(grid)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    df.to_csv(tmp_path, index=False, header=False, sep=delimiter or ",", encoding="utf-8")
    tmp_path.replace(path)
    return path


def save_workbook(path: Path, wb: Workbook) -> Path:
    """Save *wb* to *path* via a temp file in the same directory."""
    path = Path(path)
    tmp_path = path.with_name(f"{path.stem}.tmp{path.suffix}")
    wb.save(tmp_path)
    tmp_path.replace(path)
    return path


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    item = getattr(obj, "item", None)
    if callable(item):
        converted = item()
        if isinstance(converted, (str, int, float, bool)) or converted is None:
            return converted
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    ) + "\n"
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(payload, encoding="utf-8")
    tmp_path.replace(path)
    return path
