from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime, timedelta
from typing import Any

from ..excel.positions import classify_position, extract_position_title

"""Dashboard and report aggregates over stored study leaves.

Every function takes ``today`` explicitly; the CLI passes the current date in
the configured timezone.
"""

__all__ = [
    "LEAVE_STATUSES",
    "compute_leave_status",
    "leave_view",
    "dashboard_summary",
    "reports_summary",
]

LEAVE_STATUSES = ("active", "pending", "completed")
STATUS_FILTERS = ("all",) + LEAVE_STATUSES
TOP_POSITIONS = 4
FULL_TIME_MIN_YEARS = 2


def _as_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def compute_leave_status(start: Any, end: Any, today: date) -> str:
    """pending before start, completed after end, active in between (inclusive)."""
    if today < _as_date(start):
        return "pending"
    if today > _as_date(end):
        return "completed"
    return "active"


def _is_due(end: Any, today: date, window_days: int) -> bool:
    return today <= _as_date(end) <= today + timedelta(days=window_days)


def leave_view(leave: Mapping[str, Any], today: date) -> dict[str, Any]:
    """Listing row: the stored columns plus derived status and display fields."""
    view = dict(leave)
    view["status"] = compute_leave_status(leave["start_date"], leave["end_date"], today)
    view["position"] = leave.get("position_level")
    view["type"] = f"{leave.get('program_years')} ปี"
    return view


def dashboard_summary(
    leaves: Iterable[Mapping[str, Any]],
    today: date,
    status: str = "all",
    due_window_days: int = 90,
    recent_imports: Sequence[Mapping[str, Any]] = (),
) -> dict[str, Any]:
    if status not in STATUS_FILTERS:
        status = "all"

    total = 0
    due = 0
    titles: Counter[str] = Counter()
    categories: Counter[str] = Counter()
    for leave in leaves:
        leave_status = compute_leave_status(leave["start_date"], leave["end_date"], today)
        if status != "all" and leave_status != status:
            continue
        total += 1
        if _is_due(leave["end_date"], today, due_window_days):
            due += 1
        title = extract_position_title(leave.get("position_title") or leave.get("position_level"))
        titles[title] += 1
        categories[classify_position(title)] += 1

    top = [{"position": title, "count": count} for title, count in titles.most_common(TOP_POSITIONS)]
    return {
        "total_leaves": total,
        "due_to_reinstate": due,
        "top_positions": top,
        "other_positions": max(0, total - sum(item["count"] for item in top)),
        "position_categories": dict(categories),
        "recent_imports": [dict(item) for item in recent_imports],
    }


def reports_summary(
    leaves: Iterable[Mapping[str, Any]],
    today: date,
    due_window_days: int = 90,
) -> dict[str, Any]:
    total = 0
    full_time = 0
    due = 0
    status_counts = dict.fromkeys(LEAVE_STATUSES, 0)
    for leave in leaves:
        total += 1
        if int(leave.get("program_years") or 0) >= FULL_TIME_MIN_YEARS:
            full_time += 1
        status_counts[compute_leave_status(leave["start_date"], leave["end_date"], today)] += 1
        if _is_due(leave["end_date"], today, due_window_days):
            due += 1

    return {
        "leave_counts": {
            "total": total,
            "full_time": full_time,
            "part_time": total - full_time,
        },
        "status_counts": status_counts,
        "due_reinstates": due,
    }
