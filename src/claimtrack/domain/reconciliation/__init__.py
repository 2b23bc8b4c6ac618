"""Batch reconciliation of imported claim rows.

Flow:
1) normalize raw rows and collapse repeated claim numbers (last row wins)
2) look up each surviving claim in the external system and grade it
3) classify against the stored claim (new, updated, unchanged, errored)
4) release newly approved claims, persist touched claims and one batch record
"""

from __future__ import annotations

from .engine import BatchImportResult, RowOutcome, RowResult, import_batch
from .normalize import NormalizationResult, NormalizedRow, RawRow, normalize_rows, parse_row

__all__ = [
    "BatchImportResult",
    "NormalizationResult",
    "NormalizedRow",
    "RawRow",
    "RowOutcome",
    "RowResult",
    "import_batch",
    "normalize_rows",
    "parse_row",
]
