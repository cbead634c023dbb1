from __future__ import annotations

import unicodedata
from collections.abc import Iterable, Mapping, Sequence
from types import MappingProxyType

from .vocabulary import DEFAULT_REQUIRED_FIELDS, EXPECTED_HEADERS, HEADER_LABELS

"""Header resolution: map human-authored header cells to canonical fields.

Rosters put their header row anywhere in the first few rows, under a title
block, and spell the same column many ways (Thai/Arabic numerals, dots,
spaces, slashes). Every label is normalized the same way on both sides, so
matching is a plain dictionary lookup.
"""

__all__ = [
    "MissingColumnsError",
    "DataStartNotFoundError",
    "SYNONYMS",
    "normalize_header",
    "resolve",
    "find_data_start",
    "missing_required",
    "get_cell",
    "has_position",
]

HEADER_SCAN_ROWS = 30
DATA_START_SCAN_ROWS = 40

POSITION_FIELDS = ("position_level", "position_title")


class MissingColumnsError(Exception):
    """Raised when required canonical fields cannot be mapped on any worksheet."""

    def __init__(self, missing: Sequence[str], sheet: str | None = None) -> None:
        self.missing = list(missing)
        self.expected = list(EXPECTED_HEADERS)
        self.sheet = sheet
        where = f" in sheet '{sheet}'" if sheet else ""
        super().__init__(f"missing required columns{where}: {self.missing}")

    def to_dict(self) -> dict[str, object]:
        return {
            "error": "Missing required columns",
            "missing": self.missing,
            "expected": self.expected,
        }


class DataStartNotFoundError(Exception):
    """Raised when no row carries both a name and a position."""


def normalize_header(text: object) -> str:
    """Normalize a header label to its lookup key.

    Only letters and digits are kept, then the result is casefolded. Thai
    vowel and tone marks are combining marks and are dropped too, so
    "เริ่มต้น (ว.ด.ป.)" and a label typed with a stray mark share one key.
    Applying it twice gives the same key.
    """
    if text is None:
        return ""
    kept = [
        ch
        for ch in str(text).strip()
        if unicodedata.category(ch)[0] in ("L", "N")
    ]
    return "".join(kept).casefold()


def _build_synonyms(labels: Iterable[tuple[str, str]]) -> Mapping[str, str]:
    table: dict[str, str] = {}
    for label, field in labels:
        key = normalize_header(label)
        if key and key not in table:
            table[key] = field
    return MappingProxyType(table)


SYNONYMS: Mapping[str, str] = _build_synonyms(HEADER_LABELS)


def resolve(rows: Sequence[Sequence[str]], max_scan_rows: int = HEADER_SCAN_ROWS) -> Mapping[str, int]:
    """Build the field -> column index map from the first ``max_scan_rows`` rows.

    The first cell seen for a field wins; later header cells for an already
    mapped field are ignored.
    """
    mapping: dict[str, int] = {}
    for row in rows[:max_scan_rows]:
        for index, label in enumerate(row):
            if not label:
                continue
            field = SYNONYMS.get(normalize_header(label))
            if field is not None and field not in mapping:
                mapping[field] = index
    return MappingProxyType(mapping)


def get_cell(row: Sequence[str], header_map: Mapping[str, int], field: str) -> str | None:
    """Trimmed cell value for ``field``; None when unmapped or past the row end."""
    index = header_map.get(field)
    if index is None or index >= len(row):
        return None
    return str(row[index]).strip()


def has_position(header_map: Mapping[str, int]) -> bool:
    return any(field in header_map for field in POSITION_FIELDS)


def missing_required(
    header_map: Mapping[str, int],
    required: Iterable[str] = DEFAULT_REQUIRED_FIELDS,
) -> list[str]:
    """Required fields absent from ``header_map``, in ``required`` order.

    ``position_level`` is satisfied by either position column.
    """
    missing = []
    for field in required:
        if field == "position_level":
            if not has_position(header_map):
                missing.append(field)
        elif field not in header_map:
            missing.append(field)
    return missing


def _is_header_label(value: str) -> bool:
    return normalize_header(value) in SYNONYMS


def find_data_start(
    rows: Sequence[Sequence[str]],
    header_map: Mapping[str, int],
    limit: int = DATA_START_SCAN_ROWS,
) -> int:
    """Index of the first data row.

    A data row has a non-empty name and a non-empty position (either
    position column). The header row itself satisfies that test, so rows
    whose name cell is a known header label are passed over.

    Raises:
        DataStartNotFoundError: when no such row exists within ``limit`` rows
    """
    for index, row in enumerate(rows[:limit]):
        name = get_cell(row, header_map, "full_name")
        if not name or _is_header_label(name):
            continue
        for field in POSITION_FIELDS:
            position = get_cell(row, header_map, field)
            if position:
                return index
    raise DataStartNotFoundError(f"no data row found in the first {limit} rows")
