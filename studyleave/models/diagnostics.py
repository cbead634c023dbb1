from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

"""Per-import diagnostics: counters plus bounded example lists.

Created fresh for each import and returned to the caller; only a summary
(inserted / skipped counts) is persisted in import_logs.
"""

__all__ = [
    "ImportDiagnostics",
    "MAX_SKIPPED_REPORTS",
    "MAX_DUPLICATE_EXAMPLES",
]

MAX_SKIPPED_REPORTS = 200
MAX_DUPLICATE_EXAMPLES = 20


@dataclass
class ImportDiagnostics:
    inserted: int = 0
    skipped: int = 0
    duplicate_count: int = 0
    skipped_rows: list[dict[str, Any]] = field(default_factory=list)
    duplicates: list[dict[str, Any]] = field(default_factory=list)
    max_skipped_reports: int = MAX_SKIPPED_REPORTS
    max_duplicate_examples: int = MAX_DUPLICATE_EXAMPLES

    def record_insert(self) -> None:
        self.inserted += 1

    def record_skip(self, row: int, reason: str, **context: Any) -> None:
        """Count a skipped row; keep its details while under the report limit."""
        self.skipped += 1
        if len(self.skipped_rows) < self.max_skipped_reports:
            self.skipped_rows.append({"row": row, "reason": reason, **context})

    def record_duplicate(
        self,
        row: int,
        source: str,
        *,
        cid: str,
        full_name: str,
        order_no: str,
        start_date: str,
        end_date: str,
        **context: Any,
    ) -> None:
        """Count a duplicate row; it is counted as skipped too."""
        self.duplicate_count += 1
        if len(self.duplicates) < self.max_duplicate_examples:
            self.duplicates.append(
                {
                    "row": row,
                    "cid": cid,
                    "full_name": full_name,
                    "order_no": order_no,
                    "start_date": start_date,
                    "end_date": end_date,
                    "source": source,
                }
            )
        self.record_skip(row, "duplicate", cid=cid, order_no=order_no, source=source, **context)

    def to_dict(self) -> dict[str, Any]:
        return {
            "inserted": self.inserted,
            "skipped": self.skipped,
            "duplicate_count": self.duplicate_count,
            "duplicates": list(self.duplicates),
            "skipped_rows": list(self.skipped_rows),
        }
