"""
Raw record models — the shape the record store hands back.

Each property is one variant of a tagged union keyed on its ``type``. Parsing
is total: anything that does not validate becomes :class:`UnknownProperty`
and a non-object record becomes an empty one.
"""

from __future__ import annotations

import logging
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, ValidationError

logger = logging.getLogger("renohub.models.records")


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class TextRun(_Lenient):
    plain_text: str = ""


class SelectOption(_Lenient):
    id: str | None = None
    name: str = ""


class DateValue(_Lenient):
    start: str | None = None
    end: str | None = None


class FormulaValue(_Lenient):
    type: str = ""
    number: StrictInt | StrictFloat | None = None
    string: str | None = None
    boolean: bool | None = None
    date: DateValue | None = None


class RelationRef(_Lenient):
    id: str = ""


class Person(_Lenient):
    id: str = ""
    name: str | None = None


class TitleProperty(_Lenient):
    type: Literal["title"] = "title"
    title: list[TextRun] | None = None


class RichTextProperty(_Lenient):
    type: Literal["rich_text"] = "rich_text"
    rich_text: list[TextRun] | None = None


class NumberProperty(_Lenient):
    type: Literal["number"] = "number"
    number: StrictInt | StrictFloat | None = None


class SelectProperty(_Lenient):
    type: Literal["select"] = "select"
    select: SelectOption | None = None


class StatusProperty(_Lenient):
    type: Literal["status"] = "status"
    status: SelectOption | None = None


class MultiSelectProperty(_Lenient):
    type: Literal["multi_select"] = "multi_select"
    multi_select: list[SelectOption] | None = None


class DateProperty(_Lenient):
    type: Literal["date"] = "date"
    date: DateValue | None = None


class FormulaProperty(_Lenient):
    type: Literal["formula"] = "formula"
    formula: FormulaValue | None = None


class RelationProperty(_Lenient):
    type: Literal["relation"] = "relation"
    relation: list[RelationRef] | None = None


class PeopleProperty(_Lenient):
    type: Literal["people"] = "people"
    people: list[Person] | None = None


class UnknownProperty(_Lenient):
    type: str = "unknown"


Property = Union[
    TitleProperty,
    RichTextProperty,
    NumberProperty,
    SelectProperty,
    StatusProperty,
    MultiSelectProperty,
    DateProperty,
    FormulaProperty,
    RelationProperty,
    PeopleProperty,
    UnknownProperty,
]

_PROPERTY_TYPES: dict[str, type[_Lenient]] = {
    "title": TitleProperty,
    "rich_text": RichTextProperty,
    "number": NumberProperty,
    "select": SelectProperty,
    "status": StatusProperty,
    "multi_select": MultiSelectProperty,
    "date": DateProperty,
    "formula": FormulaProperty,
    "relation": RelationProperty,
    "people": PeopleProperty,
}


def parse_property(raw: Any) -> Property:
    """Parse one raw property object into its variant. Never raises."""
    if not isinstance(raw, dict):
        return UnknownProperty()
    kind = raw.get("type")
    model = _PROPERTY_TYPES.get(kind) if isinstance(kind, str) else None
    if model is None:
        return UnknownProperty(type=kind if isinstance(kind, str) else "unknown")
    try:
        return model.model_validate(raw)  # type: ignore[return-value]
    except ValidationError as e:
        logger.debug("Unparseable %s property: %s", kind, e.errors()[:1])
        return UnknownProperty(type=kind)


class RawRecord(_Lenient):
    """One page/row from a record store collection."""

    id: str = ""
    url: str = ""
    properties: dict[str, Property] = Field(default_factory=dict)

    @classmethod
    def from_api(cls, raw: Any) -> RawRecord:
        """Build a record from the store's JSON, degrading instead of failing."""
        if not isinstance(raw, dict):
            return cls()
        props = raw.get("properties")
        parsed: dict[str, Property] = {}
        if isinstance(props, dict):
            for name, value in props.items():
                parsed[str(name)] = parse_property(value)
        record_id = raw.get("id")
        url = raw.get("url")
        return cls(
            id=record_id if isinstance(record_id, str) else "",
            url=url if isinstance(url, str) else "",
            properties=parsed,
        )
