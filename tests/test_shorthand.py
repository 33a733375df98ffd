"""Tests for hypercli.shorthand -- terse key: value notation."""

from __future__ import annotations

import pytest

from hypercli.exceptions import InvalidUsageError
from hypercli.shorthand import parse, render


class TestRender:
    def test_flat(self) -> None:
        assert render({"name": "Rex", "age": 3}) == "name: Rex, age: 3"

    def test_nested_mapping_uses_dotted_keys(self) -> None:
        assert render({"owner": {"name": "Kari", "city": "Oslo"}}) == (
            "owner.name: Kari, owner.city: Oslo"
        )

    def test_lists(self) -> None:
        assert render({"tags": ["a", "b"]}) == "tags: [a, b]"

    def test_mapping_inside_list(self) -> None:
        assert render({"items": [{"id": 1}]}) == "items: [{id: 1}]"

    def test_values_that_would_change_type_are_quoted(self) -> None:
        assert render({"a": "true", "b": "42", "c": ""}) == 'a: "true", b: "42", c: ""'

    def test_special_characters_are_quoted(self) -> None:
        assert render({"note": "a, b"}) == 'note: "a, b"'

    def test_scalars(self) -> None:
        assert render({"x": None, "y": False, "z": 1.5}) == "x: null, y: false, z: 1.5"


class TestParse:
    def test_flat(self) -> None:
        assert parse("name: Rex, age: 3") == {"name": "Rex", "age": 3}

    def test_dotted_keys_expand(self) -> None:
        assert parse("owner.name: Kari, owner.city: Oslo") == {
            "owner": {"name": "Kari", "city": "Oslo"}
        }

    def test_lists_and_nested(self) -> None:
        assert parse("tags: [a, b], meta: {x: 1}") == {"tags": ["a", "b"], "meta": {"x": 1}}

    def test_json_document_passes_through(self) -> None:
        assert parse('{"a": [1, 2]}') == {"a": [1, 2]}

    def test_empty(self) -> None:
        assert parse("   ") == {}

    def test_invalid(self) -> None:
        with pytest.raises(InvalidUsageError, match="Invalid shorthand"):
            parse("a: [1, 2")

    def test_render_output_parses_back(self) -> None:
        value = {"name": "Rex", "owner": {"id": 7}, "tags": ["good", "true"], "note": "a, b"}
        assert parse(render(value)) == value
