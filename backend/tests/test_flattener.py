"""
Unit tests for the Notion page flattener.

Covers every property type in the dispatch table, field selection,
base-field precedence and totality on malformed input.
"""

import copy

import pytest

from app.services.flattener import flatten_page, flatten_property


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_page(properties=None, **overrides) -> dict:
    """Return a minimal Notion page object."""
    page = {
        "object": "page",
        "id": "page-1",
        "created_time": "2024-01-01T10:00:00.000Z",
        "last_edited_time": "2024-01-02T11:30:00.000Z",
        "url": "https://www.notion.so/page-1",
        "properties": properties if properties is not None else {},
    }
    page.update(overrides)
    return page


def _text(*fragments: str) -> list:
    return [{"type": "text", "plain_text": f} for f in fragments]


# ---------------------------------------------------------------------------
# Base fields
# ---------------------------------------------------------------------------

class TestBaseFields:
    """The four page-level fields are always present."""

    def test_base_fields_copied(self):
        result = flatten_page(_make_page())
        assert result == {
            "id": "page-1",
            "created_time": "2024-01-01T10:00:00.000Z",
            "last_edited_time": "2024-01-02T11:30:00.000Z",
            "url": "https://www.notion.so/page-1",
        }

    def test_missing_base_fields_are_none(self):
        result = flatten_page({"properties": {}})
        assert result == {
            "id": None,
            "created_time": None,
            "last_edited_time": None,
            "url": None,
        }

    def test_base_fields_come_first_then_properties_in_order(self):
        page = _make_page({
            "Zeta": {"type": "number", "number": 1},
            "Alpha": {"type": "checkbox", "checkbox": True},
        })
        keys = list(flatten_page(page))
        assert keys == ["id", "created_time", "last_edited_time", "url", "Zeta", "Alpha"]

    def test_property_named_like_base_field_does_not_overwrite_it(self):
        """A user property called 'url' or 'id' never shadows the page's own value."""
        page = _make_page({
            "url": {"type": "url", "url": "https://example.com/other"},
            "id": {"type": "rich_text", "rich_text": _text("custom-id")},
            "Name": {"type": "title", "title": _text("Row")},
        })
        result = flatten_page(page)
        assert result["url"] == "https://www.notion.so/page-1"
        assert result["id"] == "page-1"
        assert result["Name"] == "Row"


# ---------------------------------------------------------------------------
# Text types
# ---------------------------------------------------------------------------

class TestTextProperties:

    def test_title_concatenates_fragments(self):
        prop = {"type": "title", "title": _text("Hello", ", ", "world")}
        assert flatten_property(prop) == "Hello, world"

    def test_rich_text_concatenates_fragments(self):
        prop = {"type": "rich_text", "rich_text": _text("a", "b")}
        assert flatten_property(prop) == "ab"

    def test_empty_title_is_empty_string(self):
        assert flatten_property({"type": "title", "title": []}) == ""

    def test_missing_payload_is_empty_string(self):
        assert flatten_property({"type": "rich_text"}) == ""

    def test_fragment_without_plain_text_is_skipped(self):
        prop = {"type": "title", "title": [{"type": "mention"}, {"plain_text": "ok"}]}
        assert flatten_property(prop) == "ok"


# ---------------------------------------------------------------------------
# Scalar types
# ---------------------------------------------------------------------------

class TestNumberProperty:

    def test_number_passes_through(self):
        assert flatten_property({"type": "number", "number": 42.5}) == 42.5

    def test_zero_is_preserved(self):
        assert flatten_property({"type": "number", "number": 0}) == 0

    def test_missing_number_is_none(self):
        assert flatten_property({"type": "number", "number": None}) is None

    def test_non_numeric_payload_is_none(self):
        assert flatten_property({"type": "number", "number": {"bad": 1}}) is None


class TestSelectAndStatus:

    def test_select_returns_option_name(self):
        prop = {"type": "select", "select": {"id": "x", "name": "High", "color": "red"}}
        assert flatten_property(prop) == "High"

    def test_empty_select_is_none(self):
        assert flatten_property({"type": "select", "select": None}) is None

    def test_status_returns_option_name(self):
        prop = {"type": "status", "status": {"name": "In progress"}}
        assert flatten_property(prop) == "In progress"

    def test_empty_status_is_none(self):
        assert flatten_property({"type": "status", "status": None}) is None


class TestCheckbox:

    def test_true(self):
        assert flatten_property({"type": "checkbox", "checkbox": True}) is True

    def test_false(self):
        assert flatten_property({"type": "checkbox", "checkbox": False}) is False

    def test_absent_value_is_false(self):
        assert flatten_property({"type": "checkbox"}) is False


class TestDate:

    def test_date_range(self):
        prop = {
            "type": "date",
            "date": {"start": "2024-03-01", "end": "2024-03-05", "time_zone": None},
        }
        assert flatten_property(prop) == {"start": "2024-03-01", "end": "2024-03-05"}

    def test_single_date_has_null_end(self):
        prop = {"type": "date", "date": {"start": "2024-03-01"}}
        assert flatten_property(prop) == {"start": "2024-03-01", "end": None}

    def test_absent_date_is_none(self):
        assert flatten_property({"type": "date", "date": None}) is None


class TestStringTypes:

    @pytest.mark.parametrize("tag,value", [
        ("url", "https://example.com"),
        ("email", "someone@example.com"),
        ("phone_number", "+1 555 0100"),
    ])
    def test_value_passes_through(self, tag, value):
        assert flatten_property({"type": tag, tag: value}) == value

    @pytest.mark.parametrize("tag", ["url", "email", "phone_number"])
    def test_missing_value_is_none(self, tag):
        assert flatten_property({"type": tag, tag: None}) is None

    @pytest.mark.parametrize("tag", ["url", "email", "phone_number"])
    def test_empty_string_is_none(self, tag):
        assert flatten_property({"type": tag, tag: ""}) is None


# ---------------------------------------------------------------------------
# List types
# ---------------------------------------------------------------------------

class TestMultiSelect:

    def test_names_in_order(self):
        prop = {"type": "multi_select", "multi_select": [{"name": "A"}, {"name": "B"}]}
        assert flatten_property(prop) == ["A", "B"]

    def test_empty(self):
        assert flatten_property({"type": "multi_select", "multi_select": []}) == []

    def test_missing_payload_is_empty_list(self):
        assert flatten_property({"type": "multi_select"}) == []


class TestPeople:

    def test_names_with_id_fallback(self):
        prop = {
            "type": "people",
            "people": [
                {"object": "user", "id": "u1", "name": "Ada"},
                {"object": "user", "id": "u2"},
                {"object": "user", "id": "u3", "name": ""},
            ],
        }
        assert flatten_property(prop) == ["Ada", "u2", "u3"]


class TestFiles:

    def test_hosted_and_external_urls(self):
        prop = {
            "type": "files",
            "files": [
                {"name": "a.pdf", "type": "file", "file": {"url": "https://s3/a.pdf"}},
                {"name": "b", "type": "external", "external": {"url": "https://ex.com/b"}},
            ],
        }
        assert flatten_property(prop) == ["https://s3/a.pdf", "https://ex.com/b"]

    def test_hosted_url_preferred_over_external(self):
        prop = {
            "type": "files",
            "files": [{"file": {"url": "https://s3/a"}, "external": {"url": "https://ex/a"}}],
        }
        assert flatten_property(prop) == ["https://s3/a"]

    def test_entries_without_url_are_dropped(self):
        prop = {
            "type": "files",
            "files": [
                {"name": "broken"},
                {"file": {"url": ""}},
                {"external": {"url": "https://ex.com/ok"}},
            ],
        }
        assert flatten_property(prop) == ["https://ex.com/ok"]


class TestRelation:

    def test_ids_in_order(self):
        prop = {"type": "relation", "relation": [{"id": "r1"}, {"id": "r2"}]}
        assert flatten_property(prop) == ["r1", "r2"]


# ---------------------------------------------------------------------------
# Formula
# ---------------------------------------------------------------------------

class TestFormula:

    @pytest.mark.parametrize("result_type,value", [
        ("string", "computed"),
        ("number", 7),
        ("boolean", True),
    ])
    def test_scalar_results(self, result_type, value):
        prop = {"type": "formula", "formula": {"type": result_type, result_type: value}}
        assert flatten_property(prop) == value

    def test_date_result_is_normalised(self):
        prop = {
            "type": "formula",
            "formula": {"type": "date", "date": {"start": "2024-05-01", "end": None, "time_zone": None}},
        }
        assert flatten_property(prop) == {"start": "2024-05-01", "end": None}

    def test_null_result_value(self):
        prop = {"type": "formula", "formula": {"type": "number", "number": None}}
        assert flatten_property(prop) is None

    def test_formula_without_type_is_none(self):
        assert flatten_property({"type": "formula", "formula": {"string": "x"}}) is None

    def test_missing_formula_is_none(self):
        assert flatten_property({"type": "formula"}) is None


# ---------------------------------------------------------------------------
# Unknown / missing tags
# ---------------------------------------------------------------------------

class TestUnrecognisedProperties:

    def test_unknown_tag_is_none(self):
        prop = {"type": "rollup", "rollup": {"type": "number", "number": 3}}
        assert flatten_property(prop) is None

    def test_missing_tag_is_none(self):
        assert flatten_property({"number": 3}) is None

    def test_none_property_is_none(self):
        assert flatten_property(None) is None

    def test_unknown_and_untagged_become_null_fields(self):
        page = _make_page({
            "Rollup": {"type": "rollup", "rollup": {}},
            "Untagged": {},
            "Null": None,
        })
        result = flatten_page(page)
        assert result["Rollup"] is None
        assert result["Untagged"] is None
        assert result["Null"] is None


# ---------------------------------------------------------------------------
# Field selection
# ---------------------------------------------------------------------------

class TestSelectProperties:

    def test_only_selected_properties_are_flattened(self):
        page = _make_page({
            "x": {"type": "number", "number": 1},
            "y": {"type": "number", "number": 2},
        })
        result = flatten_page(page, ["x"])
        assert result["x"] == 1
        assert "y" not in result
        assert result["id"] == "page-1"
        assert result["url"] == "https://www.notion.so/page-1"

    def test_empty_selection_means_all(self):
        page = _make_page({
            "x": {"type": "number", "number": 1},
            "y": {"type": "number", "number": 2},
        })
        result = flatten_page(page, [])
        assert result["x"] == 1
        assert result["y"] == 2

    def test_selection_of_unknown_name_keeps_only_base_fields(self):
        page = _make_page({"x": {"type": "number", "number": 1}})
        result = flatten_page(page, ["nope"])
        assert set(result) == {"id", "created_time", "last_edited_time", "url"}

    def test_non_list_selection_is_ignored(self):
        page = _make_page({"x": {"type": "number", "number": 1}})
        assert flatten_page(page, "x")["x"] == 1


# ---------------------------------------------------------------------------
# Totality and purity
# ---------------------------------------------------------------------------

class TestTotality:
    """flatten_page must never raise, whatever Notion sends back."""

    @pytest.mark.parametrize("page", [
        None,
        "not a page",
        [],
        {},
        {"properties": None},
        {"properties": ["not", "a", "dict"]},
        {"properties": {"x": "just a string"}},
        {"properties": {"x": {"type": 5}}},
        {"properties": {"x": {"type": "title", "title": "not a list"}}},
        {"properties": {"x": {"type": "title", "title": [None, 3, {"plain_text": 4}]}}},
        {"properties": {"x": {"type": "select", "select": "High"}}},
        {"properties": {"x": {"type": "multi_select", "multi_select": {"name": "A"}}}},
        {"properties": {"x": {"type": "date", "date": "2024-01-01"}}},
        {"properties": {"x": {"type": "people", "people": [None, "u1"]}}},
        {"properties": {"x": {"type": "files", "files": [{"file": "s3"}, {"external": None}]}}},
        {"properties": {"x": {"type": "relation", "relation": "r1"}}},
        {"properties": {"x": {"type": "formula", "formula": {"type": "string", "string": {"a": 1}}}}},
        {"properties": {"x": {"type": "formula", "formula": "1 + 1"}}},
        {"properties": {"x": {"type": "url", "url": 123}}},
    ])
    def test_malformed_input_never_raises(self, page):
        result = flatten_page(page)
        assert isinstance(result, dict)
        assert "id" in result

    def test_malformed_shapes_degrade(self):
        page = _make_page({
            "t": {"type": "title", "title": "oops"},
            "m": {"type": "multi_select", "multi_select": "oops"},
            "s": {"type": "select", "select": "oops"},
            "d": {"type": "date", "date": "oops"},
        })
        result = flatten_page(page)
        assert result["t"] == ""
        assert result["m"] == []
        assert result["s"] is None
        assert result["d"] is None

    def test_flatten_is_idempotent_and_does_not_mutate_input(self):
        page = _make_page({
            "Name": {"type": "title", "title": _text("Hi")},
            "Tags": {"type": "multi_select", "multi_select": [{"name": "A"}]},
            "When": {"type": "date", "date": {"start": "2024-01-01", "end": None}},
        })
        snapshot = copy.deepcopy(page)

        first = flatten_page(page, ["Name", "Tags", "When"])
        second = flatten_page(page, ["Name", "Tags", "When"])

        assert first == second
        assert first is not second
        assert page == snapshot
