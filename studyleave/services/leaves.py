from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..excel.dates import parse_date
from ..excel.positions import PositionParts, split_position
from ..models.leave_record import LeaveRecordDraft
from .reconcile import parse_program_years

"""Validation of a single study leave entered by hand (add/edit)."""

__all__ = [
    "REQUIRED_LEAVE_FIELDS",
    "LeaveValidationError",
    "prepare_leave",
]

REQUIRED_LEAVE_FIELDS = (
    "cid",
    "full_name",
    "position_level",
    "position_no",
    "workplace",
    "program",
    "program_years",
    "institute",
    "start_date",
    "end_date",
    "order_no",
)


class LeaveValidationError(ValueError):
    pass


def _text(payload: Mapping[str, Any], field: str) -> str:
    value = payload.get(field)
    return "" if value is None else str(value).strip()


def prepare_leave(payload: Mapping[str, Any]) -> LeaveRecordDraft:
    """Validate ``payload`` and normalize it into a LeaveRecordDraft.

    Raises:
        LeaveValidationError: a required field is blank, or a date does not parse
    """
    for field in REQUIRED_LEAVE_FIELDS:
        if not _text(payload, field):
            raise LeaveValidationError(f"Missing field: {field}")

    start_date = parse_date(payload["start_date"])
    end_date = parse_date(payload["end_date"])
    if start_date is None or end_date is None:
        raise LeaveValidationError("Invalid date format")

    position_raw = _text(payload, "position_level")
    given = PositionParts(
        title=_text(payload, "position_title"),
        hospital=_text(payload, "position_hospital"),
        office=_text(payload, "position_office"),
    )
    parts = given if any((given.title, given.hospital, given.office)) else split_position(position_raw)

    return LeaveRecordDraft(
        cid=_text(payload, "cid"),
        full_name=_text(payload, "full_name"),
        position_level=position_raw,
        position_title=parts.title,
        position_hospital=parts.hospital,
        position_office=parts.office,
        position_no=_text(payload, "position_no"),
        workplace=_text(payload, "workplace"),
        program=_text(payload, "program"),
        program_years=parse_program_years(payload["program_years"]),
        institute=_text(payload, "institute"),
        start_date=start_date,
        end_date=end_date,
        note=_text(payload, "note") or None,
        order_no=_text(payload, "order_no"),
    )
