from __future__ import annotations

import re
from dataclasses import dataclass

from .vocabulary import HOSPITAL_ANCHORS, OFFICE_ANCHORS, POSITION_CATEGORIES

"""Position text splitting and classification.

Older rosters keep "title / hospital / office" in one free-text cell, e.g.
"นักวิชาการสาธารณสุข รพ.สต.บ้านใหม่ สสจ.เชียงใหม่". split_position cuts it at
the first office and hospital anchor tokens. It is a best-effort heuristic
and loses information when the text does not follow the usual order.
"""

__all__ = [
    "PositionParts",
    "split_position",
    "join_position",
    "classify_position",
    "extract_position_title",
]

UNSPECIFIED_POSITION = "ไม่ระบุตำแหน่ง"


@dataclass(frozen=True)
class PositionParts:
    title: str = ""
    hospital: str = ""
    office: str = ""


def _first_anchor(tokens: list[str], anchors: tuple[str, ...]) -> int | None:
    for index, token in enumerate(tokens):
        if token.startswith(anchors):
            return index
    return None


def split_position(raw: str | None) -> PositionParts:
    tokens = (raw or "").split()
    if not tokens:
        return PositionParts()

    office_at = _first_anchor(tokens, OFFICE_ANCHORS)
    hospital_at = _first_anchor(tokens, HOSPITAL_ANCHORS)

    if office_at is not None:
        office = " ".join(tokens[office_at:])
        if hospital_at is not None and hospital_at < office_at:
            return PositionParts(
                title=" ".join(tokens[:hospital_at]),
                hospital=" ".join(tokens[hospital_at:office_at]),
                office=office,
            )
        return PositionParts(title=" ".join(tokens[:office_at]), office=office)

    if hospital_at is not None:
        return PositionParts(
            title=" ".join(tokens[:hospital_at]),
            hospital=" ".join(tokens[hospital_at:]),
        )

    if len(tokens) >= 3:
        return PositionParts(
            title=" ".join(tokens[:-2]),
            hospital=tokens[-2],
            office=tokens[-1],
        )
    if len(tokens) == 2:
        return PositionParts(title=tokens[0], hospital=tokens[1])
    return PositionParts(title=tokens[0])


def join_position(parts: PositionParts, fallback: str = "") -> str:
    """Space-joined non-empty parts, or ``fallback`` when all are empty."""
    joined = " ".join(p for p in (parts.title, parts.hospital, parts.office) if p)
    return joined or fallback


def classify_position(title: str | None) -> str:
    """Coarse professional category: dentist, pharmacist, nurse, doctor or other."""
    key = re.sub(r"\s+", "", title or "").casefold()
    if not key:
        return "other"
    for category, keywords in POSITION_CATEGORIES:
        if any(keyword in key for keyword in keywords):
            return category
    return "other"


def extract_position_title(value: str | None) -> str:
    """First line of a position cell, whitespace collapsed."""
    raw = (value or "").strip()
    if not raw:
        return UNSPECIFIED_POSITION
    first = raw.splitlines()[0].strip() or raw
    return re.sub(r"\s+", " ", first)
