from __future__ import annotations

"""Static vocabulary tables for roster ingestion.

Pure data: header labels, Thai month names, position anchors and
professional category keywords. Loaded once at import time and never
mutated; the matching logic lives in headers.py / dates.py / positions.py.

Header labels cover every roster generation seen so far:
- early sheets: one combined "ตำแหน่ง/ส่วนราชการตาม ว.18" column
- mid sheets: "ตำแหน่ง/ระดับ" style combined columns, approval year column
- late sheets: separate title / hospital / office columns
Order matters: when two labels normalize to the same key the first one wins.
"""

__all__ = [
    "CANONICAL_FIELDS",
    "HEADER_LABELS",
    "EXPECTED_HEADERS",
    "DEFAULT_REQUIRED_FIELDS",
    "THAI_MONTHS",
    "OFFICE_ANCHORS",
    "HOSPITAL_ANCHORS",
    "POSITION_CATEGORIES",
]

CANONICAL_FIELDS: tuple[str, ...] = (
    "cid",
    "full_name",
    "position_level",
    "position_title",
    "position_hospital",
    "position_office",
    "position_no",
    "workplace",
    "program",
    "program_years",
    "institute",
    "start_date",
    "end_date",
    "note",
    "order_no",
    "approval_year",
)

HEADER_LABELS: tuple[tuple[str, str], ...] = (
    # canonical names are always accepted as-is
    *((name, name) for name in CANONICAL_FIELDS),
    # cid
    ("เลขประจำตัวประชาชน", "cid"),
    ("เลขบัตรประชาชน", "cid"),
    ("เลขบัตรประจำตัวประชาชน", "cid"),
    ("เลขประจำตัวประชาชน13หลัก", "cid"),
    ("national id", "cid"),
    # full_name
    ("ชื่อสกุล", "full_name"),
    ("ชื่อ-สกุล", "full_name"),
    ("ชื่อ - สกุล", "full_name"),
    ("ชื่อ-นามสกุล", "full_name"),
    ("ชื่อ นามสกุล", "full_name"),
    ("name", "full_name"),
    # position_level (early + mid generations)
    ("ตำแหน่งส่วนราชการตามว18", "position_level"),
    ("ตำแหน่งส่วนราชการตามว๑๘", "position_level"),
    ("ตำแหน่งส่วนราชการตามจ18", "position_level"),
    ("ตำแหน่งส่วนราชการตามจ๑๘", "position_level"),
    ("ตำแหน่ง/ส่วนราชการตาม จ.18", "position_level"),
    ("ตำแหน่ง/ส่วนราชการ", "position_level"),
    ("ตำแหน่ง/ระดับ", "position_level"),
    ("ตำแหน่งและระดับ", "position_level"),
    ("ตำแหน่ง/สังกัด", "position_level"),
    ("position", "position_level"),
    # position parts (late generation)
    ("ตำแหน่ง", "position_title"),
    ("ชื่อตำแหน่ง", "position_title"),
    ("position title", "position_title"),
    ("โรงพยาบาล", "position_hospital"),
    ("หน่วยบริการ", "position_hospital"),
    ("สถานบริการ", "position_hospital"),
    ("hospital", "position_hospital"),
    ("สำนักงานสาธารณสุข", "position_office"),
    ("สังกัด", "position_office"),
    ("ส่วนราชการ", "position_office"),
    ("office", "position_office"),
    # position_no
    ("ตำแหน่งเลขที่", "position_no"),
    ("เลขที่ตำแหน่ง", "position_no"),
    # workplace
    ("สถานที่ปฏิบัติงานจริง", "workplace"),
    ("สถานที่ปฏิบัติงาน", "workplace"),
    # program / program_years
    ("หลักสูตร", "program"),
    ("สาขาวิชา", "program"),
    ("หลักสูตรปี", "program_years"),
    ("หลักสูตร(ปี)", "program_years"),
    ("ระยะเวลาหลักสูตร", "program_years"),
    ("ระยะเวลา(ปี)", "program_years"),
    # institute
    ("สถานที่ศึกษา", "institute"),
    ("สถาบันการศึกษา", "institute"),
    ("สถาบัน", "institute"),
    # start_date / end_date
    ("เริ่มต้นวด้ป", "start_date"),
    ("เริ่มต้น (ว.ด.ป.)", "start_date"),
    ("ตั้งแต่วดป", "start_date"),
    ("ตั้งแต่ (ว.ด.ป.)", "start_date"),
    ("วันที่เริ่มลาศึกษา", "start_date"),
    ("วันเริ่มต้น", "start_date"),
    ("สิ้นสุดวด้ป", "end_date"),
    ("สิ้นสุด (ว.ด.ป.)", "end_date"),
    ("ถึงวดป", "end_date"),
    ("ถึง (ว.ด.ป.)", "end_date"),
    ("วันที่สิ้นสุดการลาศึกษา", "end_date"),
    ("วันที่กลับเข้าปฏิบัติงาน", "end_date"),
    ("วันสิ้นสุด", "end_date"),
    # note
    ("หมายเหตุ", "note"),
    ("โควตา", "note"),
    # order_no
    ("เลขที่คำสั่ง", "order_no"),
    ("คำสั่งเลขที่", "order_no"),
    # approval_year
    ("ปีที่อนุมัติ", "approval_year"),
    ("ปีงบประมาณที่อนุมัติ", "approval_year"),
    ("ปีที่สำเร็จการศึกษา", "approval_year"),
    ("ครบกำหนด", "approval_year"),
)

# Shown to users when required columns cannot be mapped; independent of the
# synonym table so the message stays stable.
EXPECTED_HEADERS: tuple[str, ...] = (
    "cid",
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
)

DEFAULT_REQUIRED_FIELDS: tuple[str, ...] = (
    "cid",
    "full_name",
    "position_level",
    "start_date",
    "end_date",
)

# Full names and abbreviations. Dotted abbreviations are also matched with
# "/" in place of "." because separators are normalized first.
THAI_MONTHS: dict[str, int] = {
    "มกราคม": 1,
    "กุมภาพันธ์": 2,
    "มีนาคม": 3,
    "เมษายน": 4,
    "พฤษภาคม": 5,
    "มิถุนายน": 6,
    "กรกฎาคม": 7,
    "สิงหาคม": 8,
    "กันยายน": 9,
    "ตุลาคม": 10,
    "พฤศจิกายน": 11,
    "ธันวาคม": 12,
    "ม.ค.": 1,
    "ก.พ.": 2,
    "มี.ค.": 3,
    "เม.ย.": 4,
    "พ.ค.": 5,
    "มิ.ย.": 6,
    "ก.ค.": 7,
    "ส.ค.": 8,
    "ก.ย.": 9,
    "ต.ค.": 10,
    "พ.ย.": 11,
    "ธ.ค.": 12,
}

OFFICE_ANCHORS: tuple[str, ...] = (
    "สำนักงานสาธารณสุขจังหวัด",
    "สำนักงานสาธารณสุขอำเภอ",
    "สำนักงานสาธารณสุข",
    "สสจ.",
    "สสจ",
    "สสอ.",
    "สสอ",
)

HOSPITAL_ANCHORS: tuple[str, ...] = (
    "โรงพยาบาลส่งเสริมสุขภาพตำบล",
    "โรงพยาบาล",
    "รพ.สต.",
    "รพสต.",
    "รพสต",
    "รพ.",
    "รพ",
)

# Checked in order; dentist comes before doctor because "ทันตแพทย์" also
# contains "แพทย์".
POSITION_CATEGORIES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("dentist", ("ทันตแพทย์", "ทันตกรรม", "dentist")),
    ("pharmacist", ("เภสัชกร", "เภสัช", "pharmacist")),
    ("nurse", ("พยาบาล", "nurse")),
    ("doctor", ("นายแพทย์", "แพทย์", "doctor", "physician")),
)
