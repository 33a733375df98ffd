"""Tests for hypercli.generator.body -- request bodies from args and stdin."""

from __future__ import annotations

import io
import json

import pytest
import yaml

from hypercli.exceptions import InvalidUsageError
from hypercli.generator.body import build_body, marshal


class _Tty(io.StringIO):
    def isatty(self) -> bool:
        return True


class TestBuildBody:
    def test_nothing_given(self) -> None:
        assert build_body("application/json", []) is None

    def test_shorthand_to_json(self) -> None:
        body = build_body("application/json", ["name:", "Rex,", "tags:", "[a,", "b]"])
        assert json.loads(body) == {"name": "Rex", "tags": ["a", "b"]}

    def test_shorthand_to_yaml(self) -> None:
        body = build_body("application/yaml", ["owner.name:", "Kari"])
        assert yaml.safe_load(body) == {"owner": {"name": "Kari"}}

    def test_vendor_json_type_is_structured(self) -> None:
        body = build_body("application/vnd.acme+json", ["a:", "1"])
        assert json.loads(body) == {"a": 1}

    def test_unstructured_media_type_joins_args(self) -> None:
        assert build_body("text/plain", ["hello", "world"]) == "hello world"

    def test_piped_stdin_sent_verbatim(self) -> None:
        assert build_body("application/json", [], io.StringIO('{"raw": true}')) == '{"raw": true}'

    def test_blank_stdin_is_no_body(self) -> None:
        assert build_body("application/json", [], io.StringIO("\n  ")) is None

    def test_tty_is_not_read(self) -> None:
        assert build_body("application/json", [], _Tty('{"ignored": 1}')) is None

    def test_args_merge_over_stdin(self) -> None:
        stdin = io.StringIO('{"name": "Old", "owner": {"id": 1, "city": "Oslo"}}')
        body = build_body("application/json", ["name:", "New,", "owner.id:", "2"], stdin)
        assert json.loads(body) == {"name": "New", "owner": {"id": 2, "city": "Oslo"}}

    def test_undecodable_stdin(self) -> None:
        with pytest.raises(InvalidUsageError, match="stdin"):
            build_body("application/json", ["a:", "1"], io.StringIO("{unclosed: ["))

    def test_bad_shorthand(self) -> None:
        with pytest.raises(InvalidUsageError):
            build_body("application/json", ["a:", "[1,", "2"])


class TestMarshal:
    def test_json_keeps_unicode(self) -> None:
        assert marshal("application/json", {"name": "Ærlig"}) == '{"name": "Ærlig"}'

    def test_yaml_keeps_key_order(self) -> None:
        assert marshal("application/x-yaml", {"b": 1, "a": 2}) == "b: 1\na: 2\n"
