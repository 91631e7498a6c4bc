"""Data models shared by the classifier, the mutator and the CLI."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from numbers import Integral
from typing import Any


def _to_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 1:
        raise ValueError(f"{field_name} must be >= 1")
    return result


def _to_column_tuple(values: Sequence[Any] | None, field_name: str) -> tuple[int, ...]:
    if values is None:
        return ()
    if isinstance(values, (str, bytes)):
        raise TypeError(f"{field_name} must be a sequence of integers")
    normalized: list[int] = []
    for item in values:
        column = _to_positive_int(item, f"{field_name} items")
        if column in normalized:
            raise ValueError(f"{field_name} contains duplicate column {column}")
        normalized.append(column)
    return tuple(normalized)


class InsertRowAt(str, Enum):
    first = "first"
    last = "last"


class Decision(str, Enum):
    """Why classification stopped where it did."""

    wrong_sheet = "wrong_sheet"
    unwatched_column = "unwatched_column"
    already_stamped = "already_stamped"
    row_incomplete = "row_incomplete"
    complete = "complete"

    @property
    def message(self) -> str:
        return _DECISION_MESSAGES[self]


_DECISION_MESSAGES: dict[Decision, str] = {
    Decision.wrong_sheet: "Not doing anything since it is not the right sheet!",
    Decision.unwatched_column: "Not doing anything since it is not the right column!",
    Decision.already_stamped: "Not doing anything since date and time are already set!",
    Decision.row_incomplete: "Not doing anything since some of the cells are still blank!",
    Decision.complete: "Row is complete, stamping date and time.",
}


@dataclass(frozen=True)
class StampConfig:
    """Which sheet to watch and which columns drive the stamp.

    Column indexes are 1-based. ``insert_row_at=None`` disables row insertion.
    """

    sheet_name: str
    date_column: int
    watched_columns: tuple[int, ...]
    insert_row_at: InsertRowAt | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.sheet_name, str):
            raise TypeError("sheet_name must be a string")
        if not self.sheet_name:
            raise ValueError("sheet_name must not be empty")
        date_column = _to_positive_int(self.date_column, "date_column")
        watched = _to_column_tuple(self.watched_columns, "watched_columns")
        if not watched:
            raise ValueError("watched_columns must contain at least one column")
        if date_column in watched:
            raise ValueError(
                f"watched_columns must not include the date column ({date_column})"
            )
        insert_row_at = self.insert_row_at
        if insert_row_at is not None and not isinstance(insert_row_at, InsertRowAt):
            try:
                insert_row_at = InsertRowAt(insert_row_at)
            except ValueError as exc:
                raise ValueError(
                    f"insert_row_at must be 'first', 'last' or unset, got {insert_row_at!r}"
                ) from exc
        # frozen: normalize through object.__setattr__
        object.__setattr__(self, "date_column", date_column)
        object.__setattr__(self, "watched_columns", watched)
        object.__setattr__(self, "insert_row_at", insert_row_at)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> StampConfig:
        """Build a config from the ``{columns, sheet, insertRowAt}`` shape."""
        try:
            columns = data["columns"]
            sheet_name = data["sheet"]["name"]
            date_column = columns["date"]
            watched_columns = columns["toWatch"]
        except KeyError as exc:
            raise ValueError(f"Config is missing required key {exc}") from exc
        return cls(
            sheet_name=sheet_name,
            date_column=date_column,
            watched_columns=watched_columns,
            insert_row_at=data.get("insertRowAt"),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "columns": {"date": self.date_column, "toWatch": list(self.watched_columns)},
            "sheet": {"name": self.sheet_name},
        }
        if self.insert_row_at is not None:
            payload["insertRowAt"] = self.insert_row_at.value
        return payload


@dataclass(frozen=True)
class EditNotification:
    """The single cell the host reports as edited."""

    sheet_name: str
    row: int
    column: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "row", _to_positive_int(self.row, "row"))
        object.__setattr__(self, "column", _to_positive_int(self.column, "column"))

    def to_dict(self) -> dict[str, Any]:
        return {"sheet_name": self.sheet_name, "row": self.row, "column": self.column}


@dataclass(frozen=True)
class StampTarget:
    """Address of the timestamp cell of a row that just became complete."""

    row: int
    column: int

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row, "column": self.column}


@dataclass
class Classification:
    decision: Decision
    target: StampTarget | None = None
    blank_columns: list[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        if (self.decision is Decision.complete) != (self.target is not None):
            raise ValueError("target must be set if and only if decision is 'complete'")

    @property
    def is_complete(self) -> bool:
        return self.target is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "decision": self.decision.value,
            "message": self.decision.message,
            "target": self.target.to_dict() if self.target else None,
            "blank_columns": list(self.blank_columns),
        }


@dataclass
class MutationReport:
    """What the mutator changed in the grid."""

    target: StampTarget
    timestamp: Any
    boundary_row: int | None = None
    inserted_after: int | None = None

    @property
    def new_row(self) -> int | None:
        if self.inserted_after is None:
            return None
        return self.inserted_after + 1

    def to_dict(self) -> dict[str, Any]:
        timestamp = self.timestamp
        if isinstance(timestamp, datetime):
            timestamp = timestamp.isoformat()
        return {
            "target": self.target.to_dict(),
            "timestamp": timestamp,
            "boundary_row": self.boundary_row,
            "inserted_after": self.inserted_after,
            "new_row": self.new_row,
        }


@dataclass
class EditOutcome:
    notification: EditNotification
    classification: Classification
    mutation: MutationReport | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "notification": self.notification.to_dict(),
            "classification": self.classification.to_dict(),
            "mutation": self.mutation.to_dict() if self.mutation else None,
        }
