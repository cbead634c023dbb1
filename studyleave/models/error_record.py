from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the import audit trail.

One JSON Lines record per skipped row, duplicate row or workbook-level
failure. row=-1 marks events that are not tied to a single row (unreadable
worksheet, missing columns, commit failure).
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured audit record.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        source: uploaded file name
        sheet: worksheet title, or "<WORKBOOK>" for file-level events
        row: 1-based row number within the decoded worksheet rows, -1 if none
        error_type: classification in UPPER_SNAKE_CASE
        detail: human readable reason
    """
    timestamp: str
    source: str
    sheet: str
    row: int
    error_type: str
    detail: str

    @staticmethod
    def create(source: str, sheet: str, row: int, error_type: str, detail: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            source=source,
            sheet=sheet,
            row=row,
            error_type=error_type,
            detail=detail,
        )

    def to_json_line(self) -> str:
        # fixed key set: dataclass -> dict -> json
        return json.dumps(asdict(self), ensure_ascii=False)
