from __future__ import annotations

import pytest

from studyleave.excel.headers import find_data_start, resolve
from studyleave.models.leave_record import DedupKey
from studyleave.services.reconcile import (
    SKIP_INVALID_DATES,
    SKIP_MISSING_IDENTITY,
    Reconciler,
    build_existing_keys,
    parse_program_years,
    reconcile,
)
from tests.helpers import ROSTER_HEADER, ROSTER_TITLE, roster_row


def _sheet(*data_rows: list[str]) -> tuple[list[list[str]], dict[str, int], int]:
    rows = [ROSTER_TITLE, ROSTER_HEADER, *data_rows]
    header_map = resolve(rows)
    return rows, header_map, find_data_start(rows, header_map)


def test_reconcile_accepts_valid_row_and_normalizes_fields():
    rows, header_map, start = _sheet(roster_row(1, "1100100000011.0", "นางสาวสมหญิง ใจดี"))
    drafts, diagnostics = reconcile(rows, header_map, start)
    assert diagnostics.inserted == 1 and diagnostics.skipped == 0
    draft = drafts[0]
    assert draft.cid == "1100100000011"
    assert draft.start_date == "2023-06-01"
    assert draft.end_date == "2025-05-31"
    assert draft.program_years == 2
    assert draft.position_title == "พยาบาลวิชาชีพ"
    assert draft.position_hospital == "รพ.สต.บ้านใหม่"
    assert draft.position_office == "สสจ.เชียงใหม่"
    assert draft.position_level == "พยาบาลวิชาชีพ รพ.สต.บ้านใหม่ สสจ.เชียงใหม่"
    assert draft.note is None


def test_reconcile_skips_rows_without_identity_or_dates():
    rows, header_map, start = _sheet(
        roster_row(1, "1100100000011", "สมหญิง"),
        roster_row(2, "", "", position="พยาบาล"),
        roster_row(3, "1100100000033", "มาลี", start="ไม่ระบุ"),
    )
    drafts, diagnostics = reconcile(rows, header_map, start)
    assert len(drafts) == 1
    assert diagnostics.skipped == 2
    reasons = [(e["row"], e["reason"]) for e in diagnostics.skipped_rows]
    assert reasons == [(4, SKIP_MISSING_IDENTITY), (5, SKIP_INVALID_DATES)]
    invalid = diagnostics.skipped_rows[1]
    assert invalid["cid"] == "1100100000033"
    assert invalid["start_date"] == "ไม่ระบุ"


def test_reconcile_counts_in_file_duplicates():
    row = roster_row(1, "1100100000011", "สมหญิง")
    rows, header_map, start = _sheet(row, roster_row(2, "1100100000011", "สมหญิง"))
    drafts, diagnostics = reconcile(rows, header_map, start)
    assert len(drafts) == 1
    assert diagnostics.duplicate_count == 1
    assert diagnostics.skipped == 1
    assert diagnostics.duplicates[0]["source"] == "file"
    assert diagnostics.duplicates[0]["row"] == 4
    assert diagnostics.skipped_rows[0]["reason"] == "duplicate"


def test_reconcile_detects_existing_keys_case_insensitively():
    existing = build_existing_keys(
        [{"cid": " 1100100000011 ", "order_no": "สธ 0201/123", "start_date": "2023-06-01", "end_date": "2025-05-31"}]
    )
    rows, header_map, start = _sheet(roster_row(1, "1100100000011", "สมหญิง"))
    drafts, diagnostics = reconcile(rows, header_map, start, existing)
    assert drafts == []
    assert diagnostics.duplicates[0]["source"] == "existing"


def test_approval_date_fills_missing_end_date():
    header = ROSTER_HEADER + ["ปีที่อนุมัติ"]
    data = roster_row(1, "1100100000011", "สมหญิง", end="") + ["31/5/2568"]
    rows = [header, data]
    header_map = resolve(rows)
    drafts, _ = reconcile(rows, header_map, find_data_start(rows, header_map))
    assert drafts[0].end_date == "2025-05-31"


def test_approval_year_number_is_not_a_date():
    header = ROSTER_HEADER + ["ปีที่อนุมัติ"]
    data = roster_row(1, "1100100000011", "สมหญิง", end="") + ["2566"]
    rows = [header, data]
    header_map = resolve(rows)
    drafts, diagnostics = reconcile(rows, header_map, find_data_start(rows, header_map))
    assert drafts == []
    assert diagnostics.skipped_rows[0]["reason"] == SKIP_INVALID_DATES
    assert diagnostics.skipped_rows[0]["approval_year"] == "2566"


def test_approval_date_replaces_end_not_after_start():
    header = ROSTER_HEADER + ["ปีที่อนุมัติ"]
    data = roster_row(1, "1100100000011", "สมหญิง", start="1/6/2566", end="1/6/2566") + ["31/5/2568"]
    rows = [header, data]
    header_map = resolve(rows)
    drafts, _ = reconcile(rows, header_map, find_data_start(rows, header_map))
    assert drafts[0].end_date == "2025-05-31"


def test_position_columns_are_used_when_present():
    rows = [
        ["เลขประจำตัวประชาชน", "ชื่อ-สกุล", "ตำแหน่ง", "โรงพยาบาล", "สังกัด", "ตั้งแต่", "ถึง"],
        ["1100100000011", "สมหญิง", "พยาบาลวิชาชีพ", "รพ.ลำพูน", "สสจ.ลำพูน", "1/6/2566", "31/5/2568"],
    ]
    header_map = {"cid": 0, "full_name": 1, "position_title": 2, "position_hospital": 3,
                  "position_office": 4, "start_date": 5, "end_date": 6}
    drafts, _ = reconcile(rows, header_map, 1)
    draft = drafts[0]
    assert (draft.position_title, draft.position_hospital, draft.position_office) == (
        "พยาบาลวิชาชีพ",
        "รพ.ลำพูน",
        "สสจ.ลำพูน",
    )
    assert draft.position_level == "พยาบาลวิชาชีพ รพ.ลำพูน สสจ.ลำพูน"


def test_shared_reconciler_spans_worksheets():
    reconciler = Reconciler()
    rows, header_map, start = _sheet(roster_row(1, "1100100000011", "สมหญิง"))
    reconciler.reconcile_sheet(rows, header_map, start, sheet="2566")
    reconciler.reconcile_sheet(rows, header_map, start, sheet="2567")
    assert len(reconciler.drafts) == 1
    assert reconciler.diagnostics.duplicate_count == 1
    assert reconciler.diagnostics.skipped_rows[0]["sheet"] == "2567"


def test_accepted_keys_are_unique_and_disjoint_from_existing():
    existing = {DedupKey.of("1100100000022", "สธ 0201/124", "2023-06-01", "2025-05-31")}
    rows, header_map, start = _sheet(
        roster_row(1, "1100100000011", "ก"),
        roster_row(2, "1100100000022", "ข", order_no="สธ 0201/124"),
        roster_row(3, "1100100000011", "ก"),
        roster_row(4, "1100100000011", "ก", order_no="สธ 0201/999"),
    )
    drafts, diagnostics = reconcile(rows, header_map, start, existing)
    keys = [d.dedup_key for d in drafts]
    assert len(keys) == len(set(keys)) == 2
    assert not set(keys) & existing
    assert diagnostics.inserted + diagnostics.skipped == 4


def test_skipped_reports_are_bounded():
    reconciler = Reconciler(max_skipped_reports=2)
    rows = [ROSTER_TITLE, ROSTER_HEADER, *[roster_row(i, "", "") for i in range(5)]]
    reconciler.reconcile_sheet(rows, resolve(rows), 2)
    assert reconciler.diagnostics.skipped == 5
    assert len(reconciler.diagnostics.skipped_rows) == 2


@pytest.mark.parametrize(
    "raw, expected",
    [("2", 2), ("2 ปี", 2), ("2.0", 2), ("๓", 3), ("", 1), (None, 1), ("0", 1), ("ไม่ระบุ", 1)],
)
def test_parse_program_years(raw, expected):
    assert parse_program_years(raw) == expected
