"""Edit classification — decides whether an edit just completed its row.

Pure functions over the :class:`~row_stamper.grid.Grid` interface; nothing
here writes to the grid.
"""

from __future__ import annotations

from row_stamper.grid import Grid
from row_stamper.models import (
    Classification,
    Decision,
    EditNotification,
    StampConfig,
    StampTarget,
)


def blank_watched_columns(row: int, config: StampConfig, grid: Grid) -> list[int]:
    """Return the watched columns of *row* that are still blank, in config order."""
    return [
        column
        for column in config.watched_columns
        if grid.get_cell(row, column).is_blank()
    ]


def evaluate(
    notification: EditNotification, config: StampConfig, grid: Grid
) -> Classification:
    """Classify *notification* and report which check decided the outcome.

    The checks run in a fixed order: sheet, column, timestamp latch, then
    row completeness. The first one that fails wins.
    """
    if notification.sheet_name != config.sheet_name:
        return Classification(Decision.wrong_sheet)

    if notification.column not in config.watched_columns:
        return Classification(Decision.unwatched_column)

    if not grid.get_cell(notification.row, config.date_column).is_blank():
        return Classification(Decision.already_stamped)

    blanks = blank_watched_columns(notification.row, config, grid)
    if blanks:
        return Classification(Decision.row_incomplete, blank_columns=blanks)

    return Classification(
        Decision.complete,
        target=StampTarget(row=notification.row, column=config.date_column),
    )


def classify(
    notification: EditNotification, config: StampConfig, grid: Grid
) -> StampTarget | None:
    """Return the timestamp cell to stamp, or ``None`` if the edit does not qualify."""
    return evaluate(notification, config, grid).target
