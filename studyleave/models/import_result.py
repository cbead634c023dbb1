from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .diagnostics import ImportDiagnostics

"""Import result models.

SheetSelection records what the header resolver decided for one worksheet;
ImportResult aggregates a finished import for the CLI / HTTP caller and the
SUMMARY line.
"""

__all__ = [
    "SheetSelection",
    "ImportResult",
]


@dataclass(frozen=True)
class SheetSelection:
    """Header resolution outcome for one worksheet."""
    title: str
    part_name: str
    rows: list[list[str]]
    header_map: Mapping[str, int]
    missing: list[str] = field(default_factory=list)
    data_start: int | None = None  # None when no data row was found

    @property
    def qualifies(self) -> bool:
        return not self.missing and self.data_start is not None


@dataclass(frozen=True)
class ImportResult:
    source_name: str
    sheets: list[str]  # titles of the worksheets that contributed rows
    diagnostics: ImportDiagnostics
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    dry_run: bool = False

    @property
    def inserted(self) -> int:
        return self.diagnostics.inserted

    @property
    def skipped(self) -> int:
        return self.diagnostics.skipped

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "originalName": self.source_name,
            "sheets": list(self.sheets),
            "dry_run": self.dry_run,
            **self.diagnostics.to_dict(),
        }
