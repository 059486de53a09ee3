"""
Field extractor — typed scalar values out of raw records.

``extract`` returns the decoded value of the first candidate property present
on the record. ``first_value`` keeps looking until a candidate decodes to
something non-empty, which is what lets legacy and current column names
coexist. Neither function raises.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from typing import Any

from renohub.models.records import (
    DateProperty,
    FormulaProperty,
    MultiSelectProperty,
    NumberProperty,
    PeopleProperty,
    Property,
    RawRecord,
    RelationProperty,
    RichTextProperty,
    SelectProperty,
    StatusProperty,
    TextRun,
    TitleProperty,
    UnknownProperty,
)


def _first_text(runs: list[TextRun] | None) -> str:
    if not runs:
        return ""
    return runs[0].plain_text.strip()


def _finite(value: float | int | None) -> float | None:
    if value is None:
        return None
    number = float(value)
    return number if math.isfinite(number) else None


def decode(prop: Property) -> Any:
    """Decode a single property by its kind."""
    match prop:
        case TitleProperty(title=runs):
            return _first_text(runs)
        case RichTextProperty(rich_text=runs):
            return _first_text(runs)
        case NumberProperty(number=number):
            return _finite(number)
        case SelectProperty(select=option) | StatusProperty(status=option):
            return option.name if option else ""
        case MultiSelectProperty(multi_select=options):
            return [o.name for o in options or [] if o.name]
        case PeopleProperty(people=people):
            return [p.name or p.id for p in people or [] if p.name or p.id]
        case DateProperty(date=value):
            return value.start if value else None
        case FormulaProperty(formula=formula):
            if formula is None:
                return None
            if formula.number is not None:
                return _finite(formula.number)
            if formula.string is not None:
                return formula.string
            if formula.boolean is not None:
                return formula.boolean
            if formula.date is not None:
                return formula.date.start
            return None
        case RelationProperty(relation=refs):
            return [r.id for r in refs or [] if r.id]
        case UnknownProperty():
            return None
    return None


def extract(record: RawRecord, candidate_names: Iterable[str]) -> Any:
    """Decoded value of the first candidate property present on ``record``."""
    for name in candidate_names:
        prop = record.properties.get(name)
        if prop is not None:
            return decode(prop)
    return None


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == []


def first_value(record: RawRecord, candidate_names: Iterable[str]) -> Any:
    """First non-empty decoded value among ``candidate_names``."""
    for name in candidate_names:
        prop = record.properties.get(name)
        if prop is None:
            continue
        value = decode(prop)
        if not _is_empty(value):
            return value
    return None
