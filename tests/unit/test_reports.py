from __future__ import annotations

from datetime import date, datetime

import pytest

from studyleave.services.reports import (
    compute_leave_status,
    dashboard_summary,
    leave_view,
    reports_summary,
)

TODAY = date(2024, 1, 15)


def _leave(start, end, position="พยาบาลวิชาชีพ", years=2, title=""):
    return {
        "id": 1,
        "start_date": start,
        "end_date": end,
        "position_level": position,
        "position_title": title,
        "program_years": years,
    }


@pytest.mark.parametrize(
    "start, end, expected",
    [
        ("2024-02-01", "2025-01-31", "pending"),
        ("2023-01-01", "2024-01-14", "completed"),
        ("2024-01-15", "2024-01-15", "active"),
        (date(2023, 6, 1), date(2025, 5, 31), "active"),
        (datetime(2023, 6, 1, 8), "2024-01-15 00:00:00", "active"),
    ],
)
def test_compute_leave_status(start, end, expected):
    assert compute_leave_status(start, end, TODAY) == expected


def test_leave_view_adds_derived_fields():
    view = leave_view(_leave("2023-06-01", "2025-05-31"), TODAY)
    assert view["status"] == "active"
    assert view["type"] == "2 ปี"
    assert view["position"] == "พยาบาลวิชาชีพ"


def test_dashboard_summary_counts_due_and_positions():
    leaves = [
        _leave("2023-06-01", "2024-01-15", "พยาบาลวิชาชีพ\nรพ.สต.บ้านใหม่"),
        _leave("2023-06-01", "2024-04-14", "พยาบาลวิชาชีพ"),
        _leave("2023-06-01", "2024-04-15", "นายแพทย์"),
        _leave("2023-06-01", "2025-05-31", "เภสัชกร"),
        _leave("2023-06-01", "2025-05-31", "ทันตแพทย์"),
        _leave("2023-06-01", "2025-05-31", "นักวิชาการสาธารณสุข"),
        _leave("2022-01-01", "2023-01-01", ""),
    ]
    summary = dashboard_summary(leaves, TODAY, recent_imports=[{"original_name": "a.xlsx"}])
    assert summary["total_leaves"] == 7
    # window is [today, today + 90 days] inclusive
    assert summary["due_to_reinstate"] == 2
    assert summary["top_positions"][0] == {"position": "พยาบาลวิชาชีพ", "count": 2}
    assert len(summary["top_positions"]) == 4
    assert summary["other_positions"] == 7 - sum(p["count"] for p in summary["top_positions"])
    assert summary["position_categories"]["nurse"] == 2
    assert summary["position_categories"]["doctor"] == 1
    assert summary["position_categories"]["dentist"] == 1
    assert summary["position_categories"]["other"] == 2
    assert summary["recent_imports"] == [{"original_name": "a.xlsx"}]


def test_dashboard_summary_status_filter():
    leaves = [
        _leave("2023-06-01", "2025-05-31"),
        _leave("2024-06-01", "2025-05-31"),
        _leave("2020-06-01", "2021-05-31"),
    ]
    assert dashboard_summary(leaves, TODAY, status="active")["total_leaves"] == 1
    assert dashboard_summary(leaves, TODAY, status="pending")["total_leaves"] == 1
    assert dashboard_summary(leaves, TODAY, status="bogus")["total_leaves"] == 3


def test_dashboard_summary_prefers_position_title():
    summary = dashboard_summary([_leave("2023-06-01", "2025-05-31", "x y z", title="เภสัชกร")], TODAY)
    assert summary["top_positions"] == [{"position": "เภสัชกร", "count": 1}]
    assert summary["position_categories"] == {"pharmacist": 1}


def test_reports_summary():
    leaves = [
        _leave("2023-06-01", "2024-02-01", years=2),
        _leave("2024-06-01", "2025-05-31", years=1),
        _leave("2020-06-01", "2021-05-31", years="3"),
    ]
    summary = reports_summary(leaves, TODAY)
    assert summary["leave_counts"] == {"total": 3, "full_time": 2, "part_time": 1}
    assert summary["status_counts"] == {"active": 1, "pending": 1, "completed": 1}
    assert summary["due_reinstates"] == 1


def test_reports_summary_empty():
    summary = reports_summary([], TODAY)
    assert summary["leave_counts"]["total"] == 0
    assert summary["status_counts"] == {"active": 0, "pending": 0, "completed": 0}
