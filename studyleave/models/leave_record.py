from __future__ import annotations

from collections.abc import Mapping
from dataclasses import astuple, dataclass, fields
from datetime import date
from typing import Any

"""Study-leave record models.

LeaveRecordDraft is one reconciled roster row, ready for the study_leaves
table. DedupKey is the identity used to keep re-imports idempotent.
"""

__all__ = [
    "LEAVE_COLUMNS",
    "DedupKey",
    "LeaveRecordDraft",
]


def _key_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def _key_date(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


@dataclass(frozen=True)
class DedupKey:
    """Composite identity: national id, order number and date range."""
    cid: str
    order_no: str
    start_date: str  # ISO
    end_date: str  # ISO

    @classmethod
    def of(cls, cid: Any, order_no: Any, start_date: Any, end_date: Any) -> DedupKey:
        return cls(
            cid=_key_text(cid),
            order_no=_key_text(order_no),
            start_date=_key_date(start_date),
            end_date=_key_date(end_date),
        )

    @classmethod
    def from_record(cls, record: Mapping[str, Any] | tuple[Any, ...]) -> DedupKey:
        """Key of an existing record: a mapping or a (cid, order_no, start, end) tuple."""
        if isinstance(record, Mapping):
            return cls.of(
                record.get("cid"),
                record.get("order_no"),
                record.get("start_date"),
                record.get("end_date"),
            )
        cid, order_no, start_date, end_date = record
        return cls.of(cid, order_no, start_date, end_date)


@dataclass(frozen=True)
class LeaveRecordDraft:
    """One normalized study-leave record (column order = study_leaves insert order)."""
    cid: str
    full_name: str
    position_level: str
    position_title: str
    position_hospital: str
    position_office: str
    position_no: str
    workplace: str
    program: str
    program_years: int
    institute: str
    start_date: str  # ISO yyyy-mm-dd
    end_date: str  # ISO yyyy-mm-dd
    note: str | None
    order_no: str

    @property
    def dedup_key(self) -> DedupKey:
        return DedupKey.of(self.cid, self.order_no, self.start_date, self.end_date)

    def as_row(self) -> tuple[Any, ...]:
        return astuple(self)

    def to_dict(self) -> dict[str, Any]:
        return dict(zip(LEAVE_COLUMNS, self.as_row()))


LEAVE_COLUMNS: tuple[str, ...] = tuple(f.name for f in fields(LeaveRecordDraft))
