"""Row mutation — stamp the completed row, then grow the table at its edge."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from row_stamper import HEADER_ROW
from row_stamper.grid import Grid
from row_stamper.models import InsertRowAt, MutationReport, StampConfig, StampTarget
from row_stamper.utils import local_now


def boundary_row(config: StampConfig, grid: Grid) -> int | None:
    """Return the row whose completion triggers a row insert.

    ``first`` skips the header, so it is the row below it; ``last`` is the
    grid's current last row. ``None`` when insertion is disabled.
    """
    if config.insert_row_at is None:
        return None
    if config.insert_row_at is InsertRowAt.first:
        return HEADER_ROW + 1
    return grid.get_last_row()


def apply(
    target: StampTarget,
    grid: Grid,
    config: StampConfig,
    *,
    clock: Callable[[], Any] | None = None,
) -> MutationReport:
    """Write the timestamp into *target*, then insert a blank row if needed.

    Only call this with a target returned by the classifier. The timestamp
    write always happens before the boundary check.
    """
    timestamp = (clock or local_now)()
    grid.get_cell(target.row, target.column).set_value(timestamp)
    report = MutationReport(target=target, timestamp=timestamp)

    boundary = boundary_row(config, grid)
    report.boundary_row = boundary
    if boundary is not None and target.row == boundary:
        grid.insert_blank_row_after(boundary)
        report.inserted_after = boundary
    return report
