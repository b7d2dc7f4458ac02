import pytest

from api_guidelines.document.base import Severity
from api_guidelines.ruleset import (
    RULES,
    RULES_BY_CODE,
    all_parameters,
    chain,
    collection_gets,
    get_rule,
    named_schema_entries,
    operation_body_schemas,
    operations,
    path_parameters,
    responses_with_code,
)


class TestRegistry:
    def test_codes_are_unique_and_prefixed(self):
        codes = [rule.code for rule in RULES]
        assert len(codes) == len(set(codes))
        assert all(code.startswith("lmn-") for code in codes)

    @pytest.mark.parametrize(
        "code,severity",
        [
            ("lmn-version-policy", Severity.ERROR),
            ("lmn-path-case-convention", Severity.ERROR),
            ("lmn-path-characters", Severity.ERROR),
            ("lmn-request-body-not-allowed", Severity.ERROR),
            ("lmn-formdata", Severity.INFO),
            ("lmn-request-body-optional", Severity.INFO),
            ("lmn-error-response", Severity.WARNING),
        ],
    )
    def test_default_severities(self, code, severity):
        assert get_rule(code).severity is severity

    def test_naming_rules_carry_options(self):
        assert RULES_BY_CODE["lmn-datetime-naming-convention"].options == {"type": "date-time", "match": "_at$"}
        assert RULES_BY_CODE["lmn-boolean-naming-convention"].options == {"type": "boolean", "notMatch": "^is_"}

    def test_fixed_messages(self):
        assert RULES_BY_CODE["lmn-datetime-naming-convention"].message == 'Use an "_at" suffix in names of date-time values.'
        assert RULES_BY_CODE["lmn-schema-type-and-format"].message is None

    def test_unknown_code(self):
        with pytest.raises(KeyError):
            get_rule("lmn-nope")


class TestSelectors:
    doc = {
        "swagger": "2.0",
        "parameters": {"Q": {"name": "q", "in": "query"}},
        "paths": {
            "/v1/pets": {
                "parameters": [{"$ref": "#/parameters/Q"}],
                "get": {"responses": {204: {}, "200": {}}},
                "post": {"parameters": [{"name": "body", "in": "body"}]},
            },
            "/v1/pets/{pet_id}": {
                "parameters": [{"name": "pet_id", "in": "path"}],
                "get": {},
            },
            "/v1/broken": "not a path item",
        },
    }

    def test_operations_filtered_by_method(self):
        assert [path for _, path in operations("post")(self.doc)] == [["paths", "/v1/pets", "post"]]

    def test_collection_gets_skip_item_paths(self):
        assert [path[1] for _, path in collection_gets(self.doc)] == ["/v1/pets"]

    def test_responses_with_int_codes(self):
        assert [path for _, path in responses_with_code("204")(self.doc)] == [["paths", "/v1/pets", "get", "responses", "204"]]

    def test_all_parameters_follow_refs(self):
        selected = list(all_parameters(self.doc))
        assert selected[0] == ({"name": "q", "in": "query"}, ["paths", "/v1/pets", "parameters", 0])
        assert [path for _, path in selected][1:] == [
            ["paths", "/v1/pets", "post", "parameters", 0],
            ["paths", "/v1/pets/{pet_id}", "parameters", 0],
        ]

    def test_path_parameters(self):
        assert [param["name"] for param, _ in path_parameters(self.doc)] == ["pet_id"]

    def test_operation_body_schemas(self):
        doc = {
            "openapi": "3.0.3",
            "paths": {
                "/v1/pets": {
                    "post": {
                        "requestBody": {"content": {"application/json": {"schema": {"type": "object"}}}},
                        "responses": {"201": {"content": {"application/json": {"schema": {"type": "integer"}}}}},
                    }
                }
            },
            "components": {"schemas": {"Pet": {"type": "object"}}},
        }
        assert [path for _, path in operation_body_schemas(doc)] == [
            ["paths", "/v1/pets", "post", "requestBody", "content", "application/json", "schema"],
            ["paths", "/v1/pets", "post", "responses", "201", "content", "application/json", "schema"],
        ]
        combined = chain(operation_body_schemas, named_schema_entries)
        assert [path[-1] for _, path in combined(doc)] == ["schema", "schema", "Pet"]
