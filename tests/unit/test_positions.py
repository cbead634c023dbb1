from __future__ import annotations

import pytest

from studyleave.excel.positions import (
    PositionParts,
    classify_position,
    extract_position_title,
    join_position,
    split_position,
)


def test_split_position_title_hospital_office():
    parts = split_position("พยาบาลวิชาชีพ รพ.สต.บ้านใหม่ สสจ.เชียงใหม่")
    assert parts == PositionParts("พยาบาลวิชาชีพ", "รพ.สต.บ้านใหม่", "สสจ.เชียงใหม่")


def test_split_position_multi_token_parts():
    parts = split_position("นักวิชาการสาธารณสุข ชำนาญการ โรงพยาบาล ลำพูน สำนักงานสาธารณสุขจังหวัดลำพูน")
    assert parts.title == "นักวิชาการสาธารณสุข ชำนาญการ"
    assert parts.hospital == "โรงพยาบาล ลำพูน"
    assert parts.office == "สำนักงานสาธารณสุขจังหวัดลำพูน"


def test_split_position_office_only():
    parts = split_position("เจ้าพนักงานสาธารณสุข สสอ.เมือง")
    assert parts == PositionParts("เจ้าพนักงานสาธารณสุข", "", "สสอ.เมือง")


def test_split_position_hospital_only():
    parts = split_position("เภสัชกร รพ.นครพิงค์")
    assert parts == PositionParts("เภสัชกร", "รพ.นครพิงค์", "")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("a b c d", PositionParts("a b", "c", "d")),
        ("a b", PositionParts("a", "b", "")),
        ("a", PositionParts("a", "", "")),
        ("", PositionParts()),
        (None, PositionParts()),
    ],
)
def test_split_position_without_anchors(raw, expected):
    assert split_position(raw) == expected


def test_join_position():
    assert join_position(PositionParts("a", "", "c")) == "a c"
    assert join_position(PositionParts(), fallback="raw") == "raw"


@pytest.mark.parametrize(
    "title, category",
    [
        ("ทันตแพทย์ชำนาญการ", "dentist"),
        ("เภสัชกรปฏิบัติการ", "pharmacist"),
        ("พยาบาลวิชาชีพ", "nurse"),
        ("นายแพทย์ชำนาญการพิเศษ", "doctor"),
        ("Staff Nurse", "nurse"),
        ("นักวิชาการสาธารณสุข", "other"),
        ("", "other"),
        (None, "other"),
    ],
)
def test_classify_position(title, category):
    assert classify_position(title) == category


def test_extract_position_title():
    assert extract_position_title("พยาบาลวิชาชีพ\nรพ.สต.บ้านใหม่") == "พยาบาลวิชาชีพ"
    assert extract_position_title("  นัก   วิชาการ  ") == "นัก วิชาการ"
    assert extract_position_title("") == "ไม่ระบุตำแหน่ง"
    assert extract_position_title(None) == "ไม่ระบุตำแหน่ง"
