"""Shared helpers — timestamps."""

from __future__ import annotations

from datetime import datetime, timezone


def local_now() -> datetime:
    """Return the local wall-clock time, truncated to whole seconds."""
    return datetime.now().replace(microsecond=0)


def utcnow_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()
