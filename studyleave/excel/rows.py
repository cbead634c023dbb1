from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from xml.etree import ElementTree as ET

from .archive import local_name

"""Worksheet XML -> ordered rows of string cells.

Cells the package omitted (empty or sparse cells) are re-created as "" so
every value stays under its original column index.
"""

__all__ = [
    "column_index",
    "decode_rows",
]

logger = logging.getLogger(__name__)

_LETTERS_RE = re.compile(r"[^A-Z]")


def column_index(cell_ref: str) -> int:
    """Zero-based column index of a cell reference ("A1" -> 0, "AB7" -> 27).

    Returns -1 when the reference carries no column letters.
    """
    letters = _LETTERS_RE.sub("", cell_ref.upper())
    index = 0
    for letter in letters:
        index = index * 26 + (ord(letter) - 64)
    return index - 1


def _text_of(element: ET.Element) -> str:
    return "".join(t.text or "" for t in element.iter() if local_name(t.tag) == "t")


def _cell_value(cell: ET.Element, shared_strings: Sequence[str]) -> str:
    cell_type = cell.get("t", "")
    raw = ""
    inline = None
    for child in cell:
        name = local_name(child.tag)
        if name == "v":
            raw = child.text or ""
        elif name == "is":
            inline = child

    if cell_type == "s":
        try:
            return shared_strings[int(raw)]
        except (ValueError, IndexError):
            return ""
    if cell_type == "inlineStr" and inline is not None:
        return _text_of(inline)
    return raw


def decode_rows(xml: bytes | str, shared_strings: Sequence[str]) -> list[list[str]]:
    """Decode one worksheet part into RawRows.

    Rows without any non-empty cell are dropped. A worksheet that is not
    well-formed XML yields [] (logged) instead of failing the import.
    """
    try:
        root = ET.fromstring(xml)
    except ET.ParseError as e:
        logger.warning("worksheet XML unreadable, sheet ignored: %s", e)
        return []

    rows: list[list[str]] = []
    for row in root.iter():
        if local_name(row.tag) != "row":
            continue
        cells: dict[int, str] = {}
        next_index = 0
        for cell in row:
            if local_name(cell.tag) != "c":
                continue
            index = column_index(cell.get("r", ""))
            if index < 0:
                index = next_index
            cells[index] = _cell_value(cell, shared_strings)
            next_index = index + 1

        if not any(cells.values()):
            continue
        width = max(cells) + 1
        rows.append([cells.get(i, "") for i in range(width)])
    return rows
