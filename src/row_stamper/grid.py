"""Grid capability interface + in-memory and openpyxl backends.

The classifier and mutator only ever talk to :class:`Grid` and :class:`Cell`.
All coordinates are 1-based. Anything outside the populated extent reads as
blank; ``None`` and ``""`` are blank, everything else (including whitespace
and ``0``) is not.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, datetime
from typing import Any, Protocol

from openpyxl.worksheet.worksheet import Worksheet

TIMESTAMP_FMT = "yyyy-mm-dd hh:mm:ss"
DATE_FMT = "yyyy-mm-dd"


def is_blank_value(value: Any) -> bool:
    return value is None or value == ""


def _check_coords(row: int, column: int) -> None:
    if row < 1 or column < 1:
        raise ValueError(f"Cell coordinates must be 1-based; received ({row}, {column})")


class Cell(Protocol):
    def is_blank(self) -> bool: ...

    def set_value(self, value: Any) -> None: ...


class Grid(Protocol):
    def get_cell(self, row: int, column: int) -> Cell: ...

    def get_last_row(self) -> int: ...

    def insert_blank_row_after(self, row: int) -> None: ...


# ── In-memory grid ───────────────────────────────────────────────


class MemoryCell:
    def __init__(self, grid: MemoryGrid, row: int, column: int) -> None:
        self._grid = grid
        self.row = row
        self.column = column

    @property
    def value(self) -> Any:
        return self._grid.value(self.row, self.column)

    def is_blank(self) -> bool:
        return is_blank_value(self.value)

    def set_value(self, value: Any) -> None:
        self._grid.set_value(self.row, self.column, value)


class MemoryGrid:
    """List-of-rows grid. Row 1 is ``rows[0]``; rows may be ragged."""

    def __init__(self, rows: Iterable[Sequence[Any]] = ()) -> None:
        self._rows: list[list[Any]] = [list(row) for row in rows]

    def value(self, row: int, column: int) -> Any:
        _check_coords(row, column)
        if row > len(self._rows):
            return None
        cells = self._rows[row - 1]
        if column > len(cells):
            return None
        return cells[column - 1]

    def set_value(self, row: int, column: int, value: Any) -> None:
        _check_coords(row, column)
        while len(self._rows) < row:
            self._rows.append([])
        cells = self._rows[row - 1]
        if len(cells) < column:
            cells.extend([None] * (column - len(cells)))
        cells[column - 1] = value

    def get_cell(self, row: int, column: int) -> MemoryCell:
        _check_coords(row, column)
        return MemoryCell(self, row, column)

    def get_last_row(self) -> int:
        for idx in range(len(self._rows), 0, -1):
            if any(not is_blank_value(v) for v in self._rows[idx - 1]):
                return idx
        return 0

    def insert_blank_row_after(self, row: int) -> None:
        if row < 0:
            raise ValueError(f"Row numbers must be >= 0; received {row}")
        while len(self._rows) < row:
            self._rows.append([])
        self._rows.insert(row, [])

    @property
    def width(self) -> int:
        return max((len(cells) for cells in self._rows), default=0)

    def to_rows(self) -> list[list[Any]]:
        """Return a rectangular copy, padded with ``None`` to :attr:`width`."""
        width = self.width
        return [cells + [None] * (width - len(cells)) for cells in self._rows]


# ── openpyxl worksheet grid ──────────────────────────────────────


class WorksheetCell:
    def __init__(self, ws: Worksheet, row: int, column: int) -> None:
        self._ws = ws
        self.row = row
        self.column = column

    @property
    def value(self) -> Any:
        # ws.cell() registers the cell and inflates max_row; reads stay inside the extent
        if self.row > self._ws.max_row or self.column > self._ws.max_column:
            return None
        return self._ws.cell(row=self.row, column=self.column).value

    def is_blank(self) -> bool:
        return is_blank_value(self.value)

    def set_value(self, value: Any) -> None:
        cell = self._ws.cell(row=self.row, column=self.column, value=value)
        if isinstance(value, datetime):
            cell.number_format = TIMESTAMP_FMT
        elif isinstance(value, date):
            cell.number_format = DATE_FMT


class WorksheetGrid:
    """Grid view over an openpyxl worksheet (mutated in place)."""

    def __init__(self, ws: Worksheet) -> None:
        self.ws = ws

    @property
    def title(self) -> str:
        return self.ws.title

    def get_cell(self, row: int, column: int) -> WorksheetCell:
        _check_coords(row, column)
        return WorksheetCell(self.ws, row, column)

    def get_last_row(self) -> int:
        for row in range(self.ws.max_row, 0, -1):
            values = next(self.ws.iter_rows(min_row=row, max_row=row, values_only=True))
            if any(not is_blank_value(v) for v in values):
                return row
        return 0

    def insert_blank_row_after(self, row: int) -> None:
        if row < 0:
            raise ValueError(f"Row numbers must be >= 0; received {row}")
        self.ws.insert_rows(row + 1)
