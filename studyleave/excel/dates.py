from __future__ import annotations

import re
import warnings
from datetime import date, datetime, timedelta

import pandas as pd

from .vocabulary import THAI_MONTHS

"""Date normalization for roster cells.

Accepted inputs:
- spreadsheet serial numbers (day 0 = 1899-12-30)
- d/m/Y and d-m-Y strings, also with "." or "\\" separators
- Thai digits (๐-๙) and Thai month names / abbreviations
- Buddhist Era years (>= 2400), converted to Gregorian by subtracting 543
- anything pandas.to_datetime understands (day first) as a last resort

parse_date never raises; unparseable values give None and the caller
records a skip reason.
"""

__all__ = [
    "parse_date",
    "is_date_candidate",
    "correct_buddhist_year",
]

EXCEL_EPOCH = date(1899, 12, 30)
BUDDHIST_ERA_OFFSET = 543
BUDDHIST_ERA_THRESHOLD = 2400
# Plain numbers below this are years, counts or codes rather than serials.
SERIAL_CANDIDATE_MIN = 20000

_THAI_DIGITS = str.maketrans("๐๑๒๓๔๕๖๗๘๙", "0123456789")
_NUMERIC_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
_THAI_SCRIPT_RE = re.compile(r"[\u0e00-\u0e7f]")
_SEPARATOR_RE = re.compile(r"[/\-.\\\s]")
_YEAR_TOKEN_RE = re.compile(r"(?<!\d)(\d{4})(?!\d)")
_STRICT_FORMATS = (
    re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$"),
    re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})$"),
)


def _month_patterns() -> list[tuple[re.Pattern[str], int]]:
    # longest name first so "มีนาคม" is consumed before "มี.ค." can match
    names = sorted(THAI_MONTHS, key=len, reverse=True)
    patterns = []
    for name in names:
        source = re.escape(name).replace(r"\.", "[./]?")
        patterns.append((re.compile(source), THAI_MONTHS[name]))
    return patterns


_MONTH_PATTERNS = _month_patterns()


def correct_buddhist_year(year: int) -> int:
    if year >= BUDDHIST_ERA_THRESHOLD:
        return year - BUDDHIST_ERA_OFFSET
    return year


def _correct_date(value: date) -> date:
    year = correct_buddhist_year(value.year)
    if year == value.year:
        return value
    try:
        return value.replace(year=year)
    except ValueError:
        # 29 Feb in a year that is not leap after conversion rolls forward
        return date(year, 3, 1)


def _from_serial(value: float) -> str | None:
    try:
        day = EXCEL_EPOCH + timedelta(days=int(value))
    except (OverflowError, ValueError):
        return None
    return _correct_date(day).isoformat()


def _build_date(day: int, month: int, year: int) -> date:
    """date() in the written calendar, then in the converted one.

    29 Feb is valid in either 2567 BE (= 2024) or 2568 BE (leap by number);
    the latter rolls to 1 March through _correct_date.
    """
    try:
        return _correct_date(date(year, month, day))
    except ValueError:
        return date(correct_buddhist_year(year), month, day)


def _strict_parse(text: str) -> str | None:
    for pattern in _STRICT_FORMATS:
        match = pattern.match(text)
        if match is None:
            continue
        day, month, year = (int(part) for part in match.groups())
        try:
            return _build_date(day, month, year).isoformat()
        except ValueError:
            continue
    return None


def _loose_parse(text: str) -> str | None:
    # relative words ("today", "now") must not turn into dates
    if not any(ch.isdigit() for ch in text):
        return None
    text = _YEAR_TOKEN_RE.sub(lambda m: str(correct_buddhist_year(int(m.group(1)))), text)
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        try:
            parsed = pd.to_datetime(text, dayfirst=True, errors="coerce")
        except (ValueError, TypeError, OverflowError):
            return None
    if parsed is None or pd.isna(parsed):
        return None
    return _correct_date(parsed.date()).isoformat()


def _replace_month_names(text: str) -> str:
    for pattern, month in _MONTH_PATTERNS:
        text = pattern.sub(f"/{month}/", text)
    return text


def parse_date(raw: object) -> str | None:
    """Convert a raw cell value to an ISO date string, or None.

    Examples:
        >>> parse_date("15/03/2566")
        '2023-03-15'
        >>> parse_date(1)
        '1899-12-31'
        >>> parse_date("๑๕ มี.ค. ๒๕๖๖")
        '2023-03-15'
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, datetime):
        return _correct_date(raw.date()).isoformat()
    if isinstance(raw, date):
        return _correct_date(raw).isoformat()
    if isinstance(raw, (int, float)):
        return _from_serial(raw)

    text = str(raw).strip()
    if not text:
        return None
    if _NUMERIC_RE.match(text):
        return _from_serial(float(text))

    text = text.translate(_THAI_DIGITS)
    text = text.replace(".", "/").replace("\\", "/")
    spaced = re.sub(r"\s+", " ", text)
    slashed = _replace_month_names(spaced).strip()
    slashed = re.sub(r"\s+", "/", slashed)
    slashed = re.sub(r"/{2,}", "/", slashed).strip("/")

    result = _strict_parse(slashed)
    if result is not None:
        return result
    for candidate in dict.fromkeys((slashed, spaced)):
        result = _loose_parse(candidate)
        if result is not None:
            return result
    return None


def is_date_candidate(raw: object) -> bool:
    """Whether ``raw`` is worth trying as a date.

    Bare numbers below 20000 (e.g. "2566" in an approval-year column) are
    not; anything with a separator or Thai script is.
    """
    if raw is None or isinstance(raw, bool):
        return False
    if isinstance(raw, (date, datetime)):
        return True
    if isinstance(raw, (int, float)):
        return raw >= SERIAL_CANDIDATE_MIN
    text = str(raw).strip()
    if not text:
        return False
    if _NUMERIC_RE.match(text):
        return float(text) >= SERIAL_CANDIDATE_MIN
    return bool(_THAI_SCRIPT_RE.search(text) or _SEPARATOR_RE.search(text))
