from __future__ import annotations

import logging
import posixpath
import re
import zipfile
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from xml.etree import ElementTree as ET

"""Minimal .xlsx package reader.

Only the parts the importer needs are read: the shared-string table, the
worksheet parts and (for display names) the workbook + its relationships.
No styles, formulas or merged cells.
"""

__all__ = [
    "ArchiveError",
    "WorksheetPart",
    "Workbook",
    "read_workbook",
    "local_name",
]

logger = logging.getLogger(__name__)

SHARED_STRINGS_PART = "xl/sharedStrings.xml"
WORKBOOK_PART = "xl/workbook.xml"
WORKBOOK_RELS_PART = "xl/_rels/workbook.xml.rels"
WORKSHEET_PART_RE = re.compile(r"^xl/worksheets/[^/]+\.xml$")
_REL_ID_ATTR = "{http://schemas.openxmlformats.org/officeDocument/2006/relationships}id"


class ArchiveError(Exception):
    """Raised when the spreadsheet package cannot be opened or read."""


@dataclass(frozen=True)
class WorksheetPart:
    part_name: str  # e.g. xl/worksheets/sheet2.xml
    title: str  # sheet tab name, falls back to the part stem
    xml: bytes


@dataclass(frozen=True)
class Workbook:
    shared_strings: list[str]
    worksheets: list[WorksheetPart] = field(default_factory=list)


def local_name(tag: str) -> str:
    """Element tag without its namespace."""
    return tag.rsplit("}", 1)[-1]


def _natural_key(name: str) -> list[object]:
    return [int(part) if part.isdigit() else part.lower() for part in re.split(r"(\d+)", name)]


def _parse_shared_strings(data: bytes) -> list[str]:
    root = ET.fromstring(data)
    strings: list[str] = []
    for si in root:
        if local_name(si.tag) != "si":
            continue
        plain = next((child for child in si if local_name(child.tag) == "t"), None)
        if plain is not None:
            strings.append(plain.text or "")
            continue
        # rich text: concatenate the <t> of every run, skipping phonetic hints
        text = []
        for run in si:
            if local_name(run.tag) != "r":
                continue
            for t in run:
                if local_name(t.tag) == "t":
                    text.append(t.text or "")
        strings.append("".join(text))
    return strings


def _sheet_titles(zf: zipfile.ZipFile, names: set[str]) -> dict[str, str]:
    """Map worksheet part name -> tab name. Best effort; {} on any problem."""
    if WORKBOOK_PART not in names or WORKBOOK_RELS_PART not in names:
        return {}
    try:
        workbook = ET.fromstring(zf.read(WORKBOOK_PART))
        rels = ET.fromstring(zf.read(WORKBOOK_RELS_PART))
    except ET.ParseError as e:
        logger.debug("workbook relationships unreadable: %s", e)
        return {}

    targets: dict[str, str] = {}
    for rel in rels:
        if local_name(rel.tag) != "Relationship":
            continue
        target = rel.get("Target", "")
        if not target:
            continue
        if target.startswith("/"):
            part = target.lstrip("/")
        else:
            part = posixpath.normpath(posixpath.join("xl", target))
        targets[rel.get("Id", "")] = part

    titles: dict[str, str] = {}
    for element in workbook.iter():
        if local_name(element.tag) != "sheet":
            continue
        part = targets.get(element.get(_REL_ID_ATTR, ""))
        if part:
            titles[part] = element.get("name", "")
    return titles


def read_workbook(path: Path | str) -> Workbook:
    """Read shared strings and every worksheet part from an .xlsx package.

    Worksheets come back in natural part-name order (sheet2 before sheet10).
    The package is closed before returning, on success and on failure.

    Raises:
        ArchiveError: if the file is missing, is not a zip package, or its
            shared-string table is not valid XML
    """
    path = Path(path)
    try:
        with zipfile.ZipFile(path) as zf:
            names = set(zf.namelist())
            shared: list[str] = []
            if SHARED_STRINGS_PART in names:
                try:
                    shared = _parse_shared_strings(zf.read(SHARED_STRINGS_PART))
                except ET.ParseError as e:
                    raise ArchiveError(f"invalid shared strings in {path.name}: {e}") from e

            titles = _sheet_titles(zf, names)
            parts = sorted((n for n in names if WORKSHEET_PART_RE.match(n)), key=_natural_key)
            worksheets = [
                WorksheetPart(
                    part_name=name,
                    title=titles.get(name) or posixpath.splitext(posixpath.basename(name))[0],
                    xml=zf.read(name),
                )
                for name in parts
            ]
    except ArchiveError:
        raise
    except (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, OSError, KeyError) as e:
        raise ArchiveError(f"unable to open spreadsheet {path.name}: {e}") from e

    logger.debug(
        "workbook=%s shared_strings=%d worksheets=%s",
        path.name,
        len(shared),
        [w.part_name for w in worksheets],
    )
    return Workbook(shared_strings=shared, worksheets=worksheets)
