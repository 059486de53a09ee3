"""Tests for raw record parsing and the field extractor."""

from __future__ import annotations

from typing import Any

import pytest
from factories import date_prop, formula_number, formula_string, number, rich_text, select, status, title

from renohub.models.records import (
    NumberProperty,
    RawRecord,
    TitleProperty,
    UnknownProperty,
    parse_property,
)
from renohub.normalize.extractor import decode, extract, first_value


def _record(properties: dict[str, Any]) -> RawRecord:
    return RawRecord.from_api({"id": "p1", "url": "https://notion.so/p1", "properties": properties})


class TestParseProperty:
    def test_known_variant(self) -> None:
        prop = parse_property(title("Kitchen"))
        assert isinstance(prop, TitleProperty)

    def test_unknown_type(self) -> None:
        prop = parse_property({"type": "rollup", "rollup": {"number": 3}})
        assert isinstance(prop, UnknownProperty)
        assert prop.type == "rollup"

    @pytest.mark.parametrize("raw", [None, 42, "text", [], {"no_type": True}])
    def test_garbage_never_raises(self, raw: Any) -> None:
        assert isinstance(parse_property(raw), UnknownProperty)

    def test_wrong_payload_shape_degrades(self) -> None:
        prop = parse_property({"type": "number", "number": "not a number"})
        assert isinstance(prop, UnknownProperty)

    def test_boolean_is_not_a_number(self) -> None:
        assert isinstance(parse_property({"type": "number", "number": True}), UnknownProperty)

    def test_integer_number(self) -> None:
        prop = parse_property(number(12))
        assert isinstance(prop, NumberProperty)
        assert prop.number == 12


class TestRawRecord:
    def test_non_object_is_empty(self) -> None:
        record = RawRecord.from_api("nope")
        assert record.id == ""
        assert record.properties == {}

    def test_missing_properties(self) -> None:
        record = RawRecord.from_api({"id": "abc"})
        assert record.id == "abc"
        assert record.properties == {}

    def test_non_string_id(self) -> None:
        assert RawRecord.from_api({"id": 7, "properties": {}}).id == ""


class TestDecode:
    def test_title_first_run_trimmed(self) -> None:
        prop = parse_property({"type": "title", "title": [{"plain_text": "  Tiles  "}, {"plain_text": "x"}]})
        assert decode(prop) == "Tiles"

    def test_empty_title(self) -> None:
        assert decode(parse_property({"type": "title", "title": []})) == ""

    def test_select_and_status(self) -> None:
        assert decode(parse_property(select("G2"))) == "G2"
        assert decode(parse_property(status("Approved"))) == "Approved"
        assert decode(parse_property({"type": "select", "select": None})) == ""

    def test_date_start(self) -> None:
        assert decode(parse_property(date_prop("2025-03-01"))) == "2025-03-01"
        assert decode(parse_property(date_prop(None))) is None

    def test_formula_variants(self) -> None:
        assert decode(parse_property(formula_number(9.5))) == 9.5
        assert decode(parse_property(formula_string("🟢 On Track"))) == "🟢 On Track"
        assert decode(parse_property({"type": "formula", "formula": None})) is None

    def test_multi_select_and_relation(self) -> None:
        ms = {"type": "multi_select", "multi_select": [{"name": "Solomon"}, {"name": ""}]}
        assert decode(parse_property(ms)) == ["Solomon"]
        rel = {"type": "relation", "relation": [{"id": "r1"}, {"id": "r2"}]}
        assert decode(parse_property(rel)) == ["r1", "r2"]

    def test_people_prefers_name(self) -> None:
        people = {"type": "people", "people": [{"id": "u1", "name": "Harminder"}, {"id": "u2"}]}
        assert decode(parse_property(people)) == ["Harminder", "u2"]


class TestExtract:
    def test_first_present_candidate_wins(self) -> None:
        record = _record({"Title": title(""), "Name": title("Fallback")})
        assert extract(record, ["Title", "Name"]) == ""

    def test_first_value_skips_empty(self) -> None:
        record = _record({"Title": title(""), "Name": title("Fallback")})
        assert first_value(record, ["Title", "Name"]) == "Fallback"

    def test_absent_names(self) -> None:
        record = _record({"Other": rich_text("x")})
        assert extract(record, ["Title"]) is None
        assert first_value(record, ["Title"]) is None

    def test_zero_is_not_empty(self) -> None:
        record = _record({"Amount (RM)": number(0), "Amount": number(50)})
        assert first_value(record, ["Amount (RM)", "Amount"]) == 0.0
