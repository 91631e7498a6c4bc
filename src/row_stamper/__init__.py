"""row-stamper — Timestamp completed rows in measurement log sheets."""

__version__ = "0.1.0"

HEADER_ROW: int = 1
