"""Roster rows and workbook writer shared by the test modules."""
from __future__ import annotations

from pathlib import Path

import pandas as pd

ROSTER_TITLE = ["บัญชีรายชื่อข้าราชการที่ได้รับอนุมัติให้ลาศึกษา ปีงบประมาณ 2566"]
ROSTER_HEADER = [
    "ลำดับ",
    "เลขประจำตัวประชาชน",
    "ชื่อ-สกุล",
    "ตำแหน่ง/ส่วนราชการตาม จ.18",
    "ตำแหน่งเลขที่",
    "สถานที่ปฏิบัติงานจริง",
    "หลักสูตร",
    "หลักสูตร(ปี)",
    "สถานที่ศึกษา",
    "ตั้งแต่ (ว.ด.ป.)",
    "ถึง (ว.ด.ป.)",
    "หมายเหตุ",
    "เลขที่คำสั่ง",
]


def roster_row(
    seq: int,
    cid: str,
    name: str,
    start: str = "1/6/2566",
    end: str = "31/5/2568",
    order_no: str = "สธ 0201/123",
    position: str = "พยาบาลวิชาชีพ รพ.สต.บ้านใหม่ สสจ.เชียงใหม่",
    years: str = "2",
) -> list[str]:
    return [
        str(seq),
        cid,
        name,
        position,
        "12345",
        "รพ.สต.บ้านใหม่",
        "พยาบาลศาสตรมหาบัณฑิต",
        years,
        "มหาวิทยาลัยเชียงใหม่",
        start,
        end,
        "",
        order_no,
    ]


def make_excel_file(directory: Path, name: str, sheets: dict[str, list[list[object]]]) -> Path:
    """Write a real .xlsx (openpyxl engine) with one worksheet per entry."""
    excel_path = directory / name
    with pd.ExcelWriter(excel_path, engine="openpyxl") as writer:
        for sheet_name, rows in sheets.items():
            df = pd.DataFrame(rows)
            df.to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return excel_path


def make_draft(**overrides):
    """LeaveRecordDraft with plausible values; keyword arguments override fields."""
    from studyleave.models.leave_record import LeaveRecordDraft

    values = dict(
        cid="1100100000011",
        full_name="สมหญิง ใจดี",
        position_level="พยาบาลวิชาชีพ",
        position_title="พยาบาลวิชาชีพ",
        position_hospital="",
        position_office="",
        position_no="12345",
        workplace="รพ.สต.บ้านใหม่",
        program="พยาบาลศาสตรมหาบัณฑิต",
        program_years=2,
        institute="มหาวิทยาลัยเชียงใหม่",
        start_date="2023-06-01",
        end_date="2025-05-31",
        note=None,
        order_no="สธ 0201/123",
    )
    values.update(overrides)
    return LeaveRecordDraft(**values)
