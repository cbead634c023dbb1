from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from ..excel.dates import is_date_candidate, parse_date
from ..excel.headers import get_cell
from ..excel.positions import PositionParts, join_position, split_position
from ..models.diagnostics import MAX_DUPLICATE_EXAMPLES, MAX_SKIPPED_REPORTS, ImportDiagnostics
from ..models.leave_record import DedupKey, LeaveRecordDraft

"""Row reconciliation: decoded worksheet rows -> LeaveRecordDraft batch.

Each row from the data start row on is normalized (dates, program years,
position parts), keyed, and then accepted, skipped or marked duplicate.
Row problems never abort the import; they are counted in ImportDiagnostics.

A single Reconciler is shared by every worksheet of one import so that the
in-file duplicate check spans worksheets.
"""

__all__ = [
    "Reconciler",
    "reconcile",
    "build_existing_keys",
    "parse_program_years",
]

logger = logging.getLogger(__name__)

SKIP_MISSING_IDENTITY = "missing cid and full_name"
SKIP_INVALID_DATES = "invalid start/end date"

_FLOAT_INTEGER_RE = re.compile(r"^(\d+)\.0+$")


def build_existing_keys(records: Iterable[Mapping[str, Any] | tuple[Any, ...]]) -> set[DedupKey]:
    """DedupKeys of already persisted records ({cid, order_no, start_date, end_date})."""
    return {DedupKey.from_record(record) for record in records}


def parse_program_years(raw: object) -> int:
    """Digits of ``raw`` as an int; 1 when blank, garbled or not positive."""
    text = "" if raw is None else str(raw).strip()
    match = _FLOAT_INTEGER_RE.match(text)
    if match:
        text = match.group(1)
    digits = re.sub(r"\D", "", text)
    years = int(digits) if digits else 0
    return years if years > 0 else 1


def _clean_cid(value: str | None) -> str:
    # national ids typed as numbers come back as "1234567890123.0"
    value = value or ""
    match = _FLOAT_INTEGER_RE.match(value)
    return match.group(1) if match else value


class Reconciler:
    """Accumulates accepted drafts and diagnostics over one import."""

    def __init__(
        self,
        existing_keys: Iterable[DedupKey] = (),
        *,
        max_skipped_reports: int = MAX_SKIPPED_REPORTS,
        max_duplicate_examples: int = MAX_DUPLICATE_EXAMPLES,
    ) -> None:
        self.existing_keys = frozenset(existing_keys)
        self.seen: set[DedupKey] = set()
        self.drafts: list[LeaveRecordDraft] = []
        self.diagnostics = ImportDiagnostics(
            max_skipped_reports=max_skipped_reports,
            max_duplicate_examples=max_duplicate_examples,
        )

    def reconcile_sheet(
        self,
        rows: Sequence[Sequence[str]],
        header_map: Mapping[str, int],
        data_start: int,
        sheet: str | None = None,
    ) -> list[LeaveRecordDraft]:
        """Reconcile ``rows[data_start:]``; returns the drafts accepted from this sheet."""
        accepted: list[LeaveRecordDraft] = []
        for index in range(data_start, len(rows)):
            draft = self._reconcile_row(rows[index], header_map, index + 1, sheet)
            if draft is not None:
                accepted.append(draft)
        logger.debug(
            "sheet=%s rows=%d accepted=%d total_skipped=%d",
            sheet,
            max(len(rows) - data_start, 0),
            len(accepted),
            self.diagnostics.skipped,
        )
        return accepted

    def _context(self, sheet: str | None, **values: Any) -> dict[str, Any]:
        if sheet is not None:
            values["sheet"] = sheet
        return values

    def _reconcile_row(
        self,
        row: Sequence[str],
        header_map: Mapping[str, int],
        row_no: int,
        sheet: str | None,
    ) -> LeaveRecordDraft | None:
        def cell(field: str) -> str | None:
            return get_cell(row, header_map, field)

        cid = _clean_cid(cell("cid"))
        full_name = cell("full_name") or ""
        if not cid and not full_name:
            self.diagnostics.record_skip(row_no, SKIP_MISSING_IDENTITY, **self._context(sheet))
            return None

        start_raw = cell("start_date")
        end_raw = cell("end_date")
        approval_raw = cell("approval_year")
        start_date = parse_date(start_raw)
        end_date = parse_date(end_raw)
        approval_date = parse_date(approval_raw) if is_date_candidate(approval_raw) else None
        if approval_date is not None and (
            end_date is None
            or (start_date is not None and end_date <= start_date and approval_date >= start_date)
        ):
            end_date = approval_date
        if start_date is None or end_date is None:
            self.diagnostics.record_skip(
                row_no,
                SKIP_INVALID_DATES,
                **self._context(
                    sheet,
                    cid=cid,
                    full_name=full_name,
                    start_date=start_raw,
                    end_date=end_raw,
                    approval_year=approval_raw,
                ),
            )
            return None

        position_raw = cell("position_level") or ""
        if "position_title" in header_map:
            parts = PositionParts(
                title=cell("position_title") or "",
                hospital=cell("position_hospital") or "",
                office=cell("position_office") or "",
            )
        else:
            parts = split_position(position_raw)

        order_no = cell("order_no") or ""
        key = DedupKey.of(cid, order_no, start_date, end_date)
        if key in self.existing_keys or key in self.seen:
            source = "existing" if key in self.existing_keys else "file"
            self.diagnostics.record_duplicate(
                row_no,
                source,
                cid=cid,
                full_name=full_name,
                order_no=order_no,
                start_date=start_date,
                end_date=end_date,
                **self._context(sheet),
            )
            return None

        draft = LeaveRecordDraft(
            cid=cid,
            full_name=full_name,
            position_level=join_position(parts, fallback=position_raw),
            position_title=parts.title,
            position_hospital=parts.hospital,
            position_office=parts.office,
            position_no=cell("position_no") or "",
            workplace=cell("workplace") or "",
            program=cell("program") or "",
            program_years=parse_program_years(cell("program_years")),
            institute=cell("institute") or "",
            start_date=start_date,
            end_date=end_date,
            note=cell("note") or None,
            order_no=order_no,
        )
        self.seen.add(key)
        self.drafts.append(draft)
        self.diagnostics.record_insert()
        return draft


def reconcile(
    rows: Sequence[Sequence[str]],
    header_map: Mapping[str, int],
    data_start: int,
    existing_keys: Iterable[DedupKey] = (),
) -> tuple[list[LeaveRecordDraft], ImportDiagnostics]:
    """Reconcile a single worksheet against a snapshot of existing keys."""
    reconciler = Reconciler(existing_keys)
    reconciler.reconcile_sheet(rows, header_map, data_start)
    return reconciler.drafts, reconciler.diagnostics
