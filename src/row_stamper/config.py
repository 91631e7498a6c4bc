"""Static default configuration + JSON config loading."""

from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from row_stamper.models import InsertRowAt, StampConfig

DEFAULT_CONFIG = StampConfig(
    sheet_name="Readings",  # the sheet holding the blood pressure readings
    date_column=1,  # first column gets the date and time
    watched_columns=(2, 3, 4),  # systolic, diastolic, pulse
    insert_row_at=InsertRowAt.first,
)

_UNSET: Any = object()


def load_config(path: Path) -> StampConfig:
    """Load a config file in the ``{columns, sheet, insertRowAt}`` JSON shape.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    ValueError
        If the file is not valid JSON or does not describe a valid config.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    if path.is_dir():
        raise ValueError(f"Config is a directory, not a file: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Config {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Config {path} must contain a JSON object")
    return StampConfig.from_dict(data)


def override_config(
    base: StampConfig,
    *,
    sheet_name: str | None = None,
    date_column: int | None = None,
    watched_columns: Sequence[int] | None = None,
    insert_row_at: InsertRowAt | None = _UNSET,
) -> StampConfig:
    """Return *base* with any non-``None`` field replaced.

    ``insert_row_at`` distinguishes "not given" from an explicit ``None``,
    which disables row insertion.
    """
    return StampConfig(
        sheet_name=base.sheet_name if sheet_name is None else sheet_name,
        date_column=base.date_column if date_column is None else date_column,
        watched_columns=(
            base.watched_columns if not watched_columns else tuple(watched_columns)
        ),
        insert_row_at=base.insert_row_at if insert_row_at is _UNSET else insert_row_at,
    )
