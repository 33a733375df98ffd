"""Tests for hypercli.parser.compiler -- description to operations."""

from __future__ import annotations

import copy
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from hypercli.exceptions import DescriptionParseError, ResolutionError
from hypercli.models import API, ParameterLocation, ParameterStyle, ScalarKind
from hypercli.parser.compiler import compile_api, select_media_type, slugify

PETSTORE_ENTRYPOINT = "https://petstore.example.com"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _doc(paths: dict[str, Any], servers: list[dict[str, Any]] | None = None) -> dict[str, Any]:
    doc: dict[str, Any] = {"openapi": "3.1.0", "info": {"title": "T"}, "paths": paths}
    if servers is not None:
        doc["servers"] = servers
    return doc


def _ops(api: API) -> dict[str, Any]:
    return {op.name: op for op in api.operations}


# ---------------------------------------------------------------------------
# Petstore compilation
# ---------------------------------------------------------------------------


class TestPetstore:
    def test_operations_in_document_order(self, petstore_api: API) -> None:
        names = [op.name for op in petstore_api.operations]
        assert names == ["list-pets", "create-pet", "get-pet", "delete-pet"]

    def test_api_metadata(self, petstore_api: API) -> None:
        assert petstore_api.title == "Petstore"
        assert petstore_api.description == "A sample pet store."

    def test_uri_templates_include_server_base_path(self, petstore_api: API) -> None:
        ops = _ops(petstore_api)
        assert ops["list-pets"].uri_template == "https://petstore.example.com/v1/pets"
        assert ops["get-pet"].uri_template == "https://petstore.example.com/v1/pets/{petId}"

    def test_methods_upper_case(self, petstore_api: API) -> None:
        ops = _ops(petstore_api)
        assert ops["list-pets"].method == "GET"
        assert ops["create-pet"].method == "POST"
        assert ops["delete-pet"].method == "DELETE"

    def test_parameters_grouped_by_location(self, petstore_api: API) -> None:
        op = _ops(petstore_api)["list-pets"]
        assert [p.name for p in op.query_params] == ["limit", "tags"]
        assert [p.name for p in op.header_params] == ["X-Request-Id"]
        assert op.path_params == ()

    def test_cookie_parameters_are_not_exposed(self, petstore_api: API) -> None:
        op = _ops(petstore_api)["list-pets"]
        all_names = [p.name for p in (*op.query_params, *op.header_params, *op.path_params)]
        assert "session" not in all_names

    def test_parameter_types_and_defaults(self, petstore_api: API) -> None:
        limit, tags = _ops(petstore_api)["list-pets"].query_params
        assert limit.type.kind == ScalarKind.INTEGER
        assert limit.default == 20
        assert limit.description == "How many items to return"
        assert str(tags.type) == "array[string]"
        assert tags.style == ParameterStyle.FORM
        assert tags.explode is True

    def test_path_level_parameters_are_inherited(self, petstore_api: API) -> None:
        ops = _ops(petstore_api)
        for name in ("get-pet", "delete-pet"):
            (pet_id,) = ops[name].path_params
            assert pet_id.name == "petId"
            assert pet_id.location == ParameterLocation.PATH
            assert pet_id.required is True
            assert pet_id.type.kind == ScalarKind.INTEGER

    def test_x_cli_name_overrides_operation_id(self, petstore_api: API) -> None:
        assert petstore_api.find("get-pet") is not None
        assert petstore_api.find("show-pet-by-id") is None

    def test_aliases(self, petstore_api: API) -> None:
        op = petstore_api.find("add-pet")
        assert op is not None
        assert op.name == "create-pet"
        assert op.aliases == ("add-pet",)

    def test_hidden_operation(self, petstore_api: API) -> None:
        ops = _ops(petstore_api)
        assert ops["delete-pet"].hidden is True
        assert ops["get-pet"].hidden is False

    def test_ignored_path_is_dropped(self, petstore_api: API) -> None:
        assert petstore_api.find("metrics") is None
        assert all("internal" not in op.uri_template for op in petstore_api.operations)

    def test_body_media_type_prefers_json(self, petstore_api: API) -> None:
        ops = _ops(petstore_api)
        assert ops["create-pet"].body_media_type == "application/json"
        assert ops["list-pets"].body_media_type is None

    def test_body_example_becomes_usage_example(self, petstore_api: API) -> None:
        op = _ops(petstore_api)["create-pet"]
        assert op.examples == ("name: Rex, tag: dog",)
        assert "## Input Example" in op.long_description
        assert "name: Rex, tag: dog" in op.long_description

    def test_request_schema_omits_read_only(self, petstore_api: API) -> None:
        desc = _ops(petstore_api)["create-pet"].long_description
        assert "## Request Schema (application/json)" in desc
        assert "```schema" in desc
        assert "secret: (string)" in desc
        assert "id*" not in desc

    def test_response_docs_sorted_by_status(self, petstore_api: API) -> None:
        desc = _ops(petstore_api)["get-pet"].long_description
        ok = desc.index("## Response 200 (application/json)")
        missing = desc.index("## Response 404")
        assert ok < missing
        assert "Not found" in desc

    def test_response_schema_omits_write_only(self, petstore_api: API) -> None:
        desc = _ops(petstore_api)["get-pet"].long_description
        assert "id*: (integer format:int64)" in desc
        assert "secret" not in desc

    def test_short_description_from_summary(self, petstore_api: API) -> None:
        assert _ops(petstore_api)["list-pets"].short_description == "List all pets"

    def test_local_description_is_cacheable_for_a_week(self, petstore_raw: dict[str, Any]) -> None:
        fetched = datetime(2026, 1, 1, tzinfo=timezone.utc)
        api = compile_api(petstore_raw, PETSTORE_ENTRYPOINT, fetched_at=fetched)
        assert api.cache_until == fetched + timedelta(days=7)

    def test_no_store_description_is_not_reusable(self, petstore_raw: dict[str, Any]) -> None:
        fetched = datetime(2026, 1, 1, tzinfo=timezone.utc)
        api = compile_api(
            petstore_raw,
            PETSTORE_ENTRYPOINT,
            headers={"Cache-Control": "no-store"},
            fetched_at=fetched,
        )
        assert api.cache_until == fetched

    def test_input_document_is_not_mutated(self, petstore_raw: dict[str, Any]) -> None:
        before = copy.deepcopy(petstore_raw)
        compile_api(petstore_raw, PETSTORE_ENTRYPOINT)
        assert petstore_raw == before


# ---------------------------------------------------------------------------
# Base path selection
# ---------------------------------------------------------------------------


class TestBasePath:
    def test_server_on_other_host_is_ignored(self) -> None:
        doc = _doc(
            {"/items": {"get": {"operationId": "list"}}},
            servers=[{"url": "https://other.example.com/api"}],
        )
        api = compile_api(doc, "https://api.example.com")
        assert api.operations[0].uri_template == "https://api.example.com/items"

    def test_host_prefix_must_end_at_a_boundary(self) -> None:
        doc = _doc(
            {"/items": {"get": {"operationId": "list"}}},
            servers=[{"url": "https://api.example.com.evil.test/x"}],
        )
        api = compile_api(doc, "https://api.example.com")
        assert api.operations[0].uri_template == "https://api.example.com/items"

    def test_first_matching_server_wins(self) -> None:
        doc = _doc(
            {"/items": {"get": {"operationId": "list"}}},
            servers=[
                {"url": "https://other.example.com/a"},
                {"url": "https://api.example.com/b/"},
                {"url": "https://api.example.com/c"},
            ],
        )
        api = compile_api(doc, "https://api.example.com")
        assert api.operations[0].uri_template == "https://api.example.com/b/items"

    def test_server_variables_use_defaults(self) -> None:
        doc = _doc(
            {"/items": {"get": {"operationId": "list"}}},
            servers=[{
                "url": "https://api.example.com/{version}",
                "variables": {"version": {"default": "v2"}},
            }],
        )
        api = compile_api(doc, "https://api.example.com")
        assert api.operations[0].uri_template == "https://api.example.com/v2/items"


# ---------------------------------------------------------------------------
# URI resolver collaborator
# ---------------------------------------------------------------------------


class TestResolver:
    def test_callable_resolver_receives_base_path_and_template(self) -> None:
        seen: list[str] = []

        def resolve(uri: str) -> str:
            seen.append(uri)
            return "https://proxy.test" + uri

        doc = _doc(
            {"/items/{id}": {"get": {
                "operationId": "show",
                "parameters": [{"name": "id", "in": "path", "schema": {"type": "string"}}],
            }}},
            servers=[{"url": "https://api.example.com/v1"}],
        )
        api = compile_api(doc, "https://api.example.com", resolve)
        assert seen == ["/v1/items/{id}"]
        assert api.operations[0].uri_template == "https://proxy.test/v1/items/{id}"

    def test_resolver_failure_becomes_resolution_error(self) -> None:
        def resolve(uri: str) -> str:
            raise ValueError("boom")

        doc = _doc({"/items": {"get": {"operationId": "list"}}})
        with pytest.raises(ResolutionError, match="boom"):
            compile_api(doc, "https://api.example.com", resolve)


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


class TestNaming:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("listPets", "list-pets"),
            ("get /pets/{petId}", "get-pets-pet-id"),
            ("HTMLParser", "html-parser"),
            ("already-kebab", "already-kebab"),
            ("___", "operation"),
        ],
    )
    def test_slugify(self, value: str, expected: str) -> None:
        assert slugify(value) == expected

    def test_name_without_operation_id_uses_method_and_path(self) -> None:
        api = compile_api(_doc({"/users/{id}/keys": {"delete": {}}}), "https://a.test")
        assert api.operations[0].name == "delete-users-id-keys"

    def test_duplicate_names_get_method_suffix(self) -> None:
        doc = _doc({
            "/a": {"get": {"x-cli-name": "thing"}},
            "/b": {"get": {"x-cli-name": "thing"}, "put": {"x-cli-name": "thing"}},
        })
        names = [op.name for op in compile_api(doc, "https://a.test").operations]
        assert names == ["thing", "thing-get", "thing-put"]

    def test_alias_clashing_with_existing_name_is_dropped(self) -> None:
        doc = _doc({
            "/a": {"get": {"operationId": "first"}},
            "/b": {"get": {"operationId": "second", "x-cli-aliases": ["first", "other"]}},
        })
        op = compile_api(doc, "https://a.test").operations[1]
        assert op.aliases == ("other",)

    def test_x_cli_description_replaces_description(self) -> None:
        doc = _doc({"/a": {"get": {
            "operationId": "a",
            "description": "original",
            "x-cli-description": "replacement",
        }}})
        op = compile_api(doc, "https://a.test").operations[0]
        assert op.long_description.startswith("replacement")
        assert "original" not in op.long_description

    def test_path_item_hidden_applies_to_all_operations(self) -> None:
        doc = _doc({"/a": {
            "x-cli-hidden": True,
            "get": {"operationId": "a"},
            "put": {"operationId": "b", "x-cli-hidden": False},
        }})
        ops = _ops(compile_api(doc, "https://a.test"))
        assert ops["a"].hidden is True
        assert ops["b"].hidden is False


# ---------------------------------------------------------------------------
# Ignore
# ---------------------------------------------------------------------------


class TestIgnore:
    def test_ignored_operation_is_dropped(self) -> None:
        doc = _doc({"/pets": {
            "get": {"operationId": "listPets"},
            "post": {"operationId": "createPet", "x-cli-ignore": True},
        }})
        api = compile_api(doc, "https://a.test")
        assert [op.name for op in api.operations] == ["list-pets"]
        assert api.find("create-pet") is None

    def test_ignore_wins_over_other_operation_extensions(self) -> None:
        doc = _doc({"/pets": {
            "get": {"operationId": "listPets"},
            "delete": {
                "operationId": "purge",
                "x-cli-ignore": True,
                "x-cli-name": "wipe",
                "x-cli-aliases": ["nuke", "clear"],
                "x-cli-hidden": False,
                "x-cli-description": "Remove every pet.",
            },
        }})
        api = compile_api(doc, "https://a.test")

        assert len(api.operations) == 1
        for name in ("purge", "wipe", "nuke", "clear"):
            assert api.find(name) is None
        assert all(not op.aliases for op in api.operations)

    def test_ignore_wins_over_path_item_extensions(self) -> None:
        doc = _doc({
            "/pets": {"get": {"operationId": "listPets"}},
            "/internal": {
                "x-cli-ignore": True,
                "x-cli-hidden": False,
                "get": {"x-cli-name": "stats", "x-cli-aliases": ["metrics"]},
                "post": {"operationId": "reset", "x-cli-ignore": False},
            },
        })
        api = compile_api(doc, "https://a.test")

        assert [op.name for op in api.operations] == ["list-pets"]
        for name in ("stats", "metrics", "reset"):
            assert api.find(name) is None

    def test_ignored_operation_does_not_reserve_its_name(self) -> None:
        doc = _doc({
            "/a": {"get": {"x-cli-name": "thing", "x-cli-ignore": True}},
            "/b": {"get": {"x-cli-name": "thing"}},
        })
        api = compile_api(doc, "https://a.test")
        assert [op.name for op in api.operations] == ["thing"]
        assert api.operations[0].uri_template == "https://a.test/b"


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------


class TestParameters:
    def _compile_params(self, params: list[dict[str, Any]], path: str = "/x") -> Any:
        doc = _doc({path: {"get": {"operationId": "op", "parameters": params}}})
        return compile_api(doc, "https://a.test").operations[0]

    def test_operation_parameter_overrides_path_parameter(self) -> None:
        doc = _doc({"/x": {
            "parameters": [{"name": "q", "in": "query", "schema": {"type": "string"}}],
            "get": {
                "operationId": "op",
                "parameters": [{"name": "q", "in": "query", "schema": {"type": "integer"}}],
            },
        }})
        (q,) = compile_api(doc, "https://a.test").operations[0].query_params
        assert q.type.kind == ScalarKind.INTEGER

    def test_ignored_query_parameter_is_dropped(self) -> None:
        op = self._compile_params([
            {"name": "keep", "in": "query"},
            {"name": "drop", "in": "query", "x-cli-ignore": True},
        ])
        assert [p.name for p in op.query_params] == ["keep"]

    def test_ignore_does_not_apply_to_path_parameters(self) -> None:
        op = self._compile_params(
            [{"name": "id", "in": "path", "x-cli-ignore": True}], path="/x/{id}",
        )
        assert [p.name for p in op.path_params] == ["id"]

    def test_display_name_from_extension(self) -> None:
        op = self._compile_params([{"name": "page[size]", "in": "query", "x-cli-name": "page-size"}])
        (param,) = op.query_params
        assert param.name == "page[size]"
        assert param.cli_name == "page-size"

    def test_missing_schema_defaults_to_string(self) -> None:
        (param,) = self._compile_params([{"name": "q", "in": "query"}]).query_params
        assert str(param.type) == "string"

    def test_schema_from_content(self) -> None:
        (param,) = self._compile_params([{
            "name": "filter",
            "in": "query",
            "content": {"application/json": {"schema": {"type": "integer"}}},
        }]).query_params
        assert param.type.kind == ScalarKind.INTEGER

    def test_openapi_31_nullable_type_list(self) -> None:
        (param,) = self._compile_params([
            {"name": "n", "in": "query", "schema": {"type": ["null", "number"]}},
        ]).query_params
        assert param.type.kind == ScalarKind.NUMBER

    def test_style_other_than_form_is_simple(self) -> None:
        (param,) = self._compile_params([
            {"name": "ids", "in": "query", "style": "pipeDelimited",
             "schema": {"type": "array", "items": {"type": "integer"}}},
        ]).query_params
        assert param.style == ParameterStyle.SIMPLE
        assert str(param.type) == "array[integer]"

    def test_textual_default_is_coerced(self) -> None:
        op = self._compile_params([
            {"name": "n", "in": "query", "schema": {"type": "integer", "default": "5"}},
            {"name": "b", "in": "query", "schema": {"type": "boolean", "default": "true"}},
            {"name": "bad", "in": "query", "schema": {"type": "integer", "default": "many"}},
        ])
        defaults = {p.name: p.default for p in op.query_params}
        assert defaults == {"n": 5, "b": True, "bad": "many"}

    def test_example_precedence(self) -> None:
        op = self._compile_params([
            {"name": "a", "in": "query", "example": "param", "schema": {"example": "schema"}},
            {"name": "b", "in": "query", "examples": {"x": {"value": "named"}}},
            {"name": "c", "in": "query", "schema": {"example": "schema"}},
            {"name": "d", "in": "query", "schema": {"default": "dflt"}},
        ])
        examples = {p.name: p.example for p in op.query_params}
        assert examples == {"a": "param", "b": "named", "c": "schema", "d": "dflt"}

    def test_non_boolean_explode_is_rejected(self) -> None:
        with pytest.raises(DescriptionParseError, match="explode"):
            self._compile_params([{"name": "q", "in": "query", "explode": "yes"}])

    def test_parameter_without_name_is_rejected(self) -> None:
        with pytest.raises(DescriptionParseError, match="without a name"):
            self._compile_params([{"in": "query"}])


# ---------------------------------------------------------------------------
# Malformed documents
# ---------------------------------------------------------------------------


class TestMalformed:
    @pytest.mark.parametrize(
        ("extension", "value"),
        [
            ("x-cli-ignore", "yes"),
            ("x-cli-hidden", 1),
            ("x-cli-name", 42),
            ("x-cli-aliases", "one"),
            ("x-cli-description", ["a"]),
        ],
    )
    def test_extension_with_wrong_type(self, extension: str, value: Any) -> None:
        doc = _doc({"/a": {"get": {"operationId": "a", extension: value}}})
        with pytest.raises(DescriptionParseError, match=extension):
            compile_api(doc, "https://a.test")

    def test_swagger_2_is_rejected(self) -> None:
        with pytest.raises(DescriptionParseError, match="Swagger"):
            compile_api({"swagger": "2.0", "paths": {}}, "https://a.test")

    def test_non_object_operation_is_rejected(self) -> None:
        with pytest.raises(DescriptionParseError):
            compile_api(_doc({"/a": {"get": "nope"}}), "https://a.test")

    def test_parameters_not_a_list(self) -> None:
        doc = _doc({"/a": {"get": {"operationId": "a", "parameters": {"name": "q"}}}})
        with pytest.raises(DescriptionParseError, match="parameters"):
            compile_api(doc, "https://a.test")

    def test_dangling_ref(self) -> None:
        doc = _doc({"/a": {"get": {
            "operationId": "a",
            "parameters": [{"$ref": "#/components/parameters/Missing"}],
        }}})
        with pytest.raises(DescriptionParseError, match="Missing"):
            compile_api(doc, "https://a.test")

    def test_empty_paths_compile_to_no_operations(self) -> None:
        api = compile_api(_doc({}), "https://a.test")
        assert api.operations == ()


# ---------------------------------------------------------------------------
# Media type preference
# ---------------------------------------------------------------------------


class TestSelectMediaType:
    def test_json_first(self) -> None:
        assert select_media_type(["text/plain", "application/merge-patch+json"]) == (
            "application/merge-patch+json"
        )

    def test_yaml_when_no_json(self) -> None:
        assert select_media_type(["text/plain", "application/yaml"]) == "application/yaml"

    def test_first_declared_otherwise(self) -> None:
        assert select_media_type(["text/plain", "application/octet-stream"]) == "text/plain"

    def test_empty(self) -> None:
        assert select_media_type([]) is None
