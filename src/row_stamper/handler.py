"""The edit callback: classify one single-cell edit, then mutate if it qualifies."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from row_stamper.classifier import evaluate
from row_stamper.grid import Grid
from row_stamper.models import EditNotification, EditOutcome, StampConfig
from row_stamper.mutator import apply


def on_edit(
    notification: EditNotification,
    grid: Grid,
    config: StampConfig,
    *,
    clock: Callable[[], Any] | None = None,
) -> EditOutcome:
    classification = evaluate(notification, config, grid)
    outcome = EditOutcome(notification=notification, classification=classification)
    if classification.target is not None:
        outcome.mutation = apply(classification.target, grid, config, clock=clock)
    return outcome
