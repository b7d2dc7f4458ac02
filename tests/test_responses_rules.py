from api_guidelines.document.base import DocumentRef, RuleContext
from api_guidelines.rules.responses import (
    default_response,
    delete_response_codes,
    error_response,
    no_response_body,
)

OAS2 = {"swagger": "2.0"}
OAS3 = {"openapi": "3.0.3"}


def _ctx(path, doc=None):
    return RuleContext(path=path, document=DocumentRef(data=doc if doc is not None else OAS2))


def _error_schema(**overrides):
    schema = {
        "type": "object",
        "required": ["error"],
        "properties": {
            "error": {
                "type": "object",
                "required": ["code", "message"],
                "properties": {
                    "code": {"type": "string"},
                    "message": {"type": "string"},
                },
            }
        },
    }
    schema["properties"]["error"].update(overrides)
    return schema


class TestDefaultResponse:
    def test_missing_default(self):
        op = {"responses": {"200": {}}}
        findings = default_response(op, {}, _ctx(["paths", "/v1/a", "get"]))
        assert len(findings) == 1
        assert findings[0].path == ["paths", "/v1/a", "get", "responses"]

    def test_default_present(self):
        assert default_response({"responses": {"default": {}}}, {}, _ctx(["paths", "/v1/a", "get"])) == []

    def test_no_responses_reports_operation(self):
        findings = default_response({}, {}, _ctx(["paths", "/v1/a", "get"]))
        assert findings[0].path == ["paths", "/v1/a", "get"]


class TestDeleteResponseCodes:
    def test_delete_with_200_fails(self):
        op = {"responses": {"200": {"description": "ok"}}}
        findings = delete_response_codes(op, {}, _ctx(["paths", "/test", "delete"]))
        assert len(findings) == 1
        assert findings[0].message == "A delete operation should have a `204` response."
        assert findings[0].path == ["paths", "/test", "delete", "responses"]

    def test_delete_with_202_or_204_passes(self):
        assert delete_response_codes({"responses": {"202": {}}}, {}, _ctx(["paths", "/test", "delete"])) == []
        assert delete_response_codes({"responses": {204: {}}}, {}, _ctx(["paths", "/test", "delete"])) == []


class TestNoResponseBody:
    def test_204_with_schema(self):
        findings = no_response_body({"schema": {"type": "object"}}, {}, _ctx(["paths", "/a", "delete", "responses", "204"]))
        assert findings[0].message == "A 204 response should not have a response body."

    def test_204_with_content(self):
        assert no_response_body({"content": {}}, {}, _ctx(["x"]))

    def test_empty_204(self):
        assert no_response_body({"description": "gone"}, {}, _ctx(["x"])) == []


class TestErrorResponse:
    base = ["paths", "/v1/a", "get", "responses"]

    def test_conforming_oas2(self):
        responses = {"400": {"schema": _error_schema()}, "default": {"schema": _error_schema()}}
        assert error_response(responses, {}, _ctx(self.base)) == []

    def test_conforming_oas3(self):
        responses = {"500": {"content": {"application/json": {"schema": _error_schema()}}}}
        assert error_response(responses, {}, _ctx(self.base, OAS3)) == []

    def test_oas3_path_points_into_content(self):
        responses = {"500": {"content": {"application/json": {"schema": {"type": "string"}}}}}
        findings = error_response(responses, {}, _ctx(self.base, OAS3))
        assert findings[0].message == "Error response schema must be an object schema."
        assert findings[0].path == [*self.base, "500", "content", "application/json", "schema"]

    def test_missing_schema(self):
        findings = error_response({"404": {"description": "nope"}}, {}, _ctx(self.base))
        assert findings[0].message == "Error response should have a schema."
        assert findings[0].path == [*self.base, "404"]

    def test_head_exempt_from_missing_schema(self):
        base = ["paths", "/v1/a", "head", "responses"]
        assert error_response({"404": {"description": "nope"}}, {}, _ctx(base)) == []

    def test_missing_error_property(self):
        schema = {"type": "object", "properties": {"message": {"type": "string"}}}
        findings = error_response({"400": {"schema": schema}}, {}, _ctx(self.base))
        assert len(findings) == 1
        assert findings[0].path == [*self.base, "400", "schema", "properties", "error"]

    def test_missing_message(self):
        schema = _error_schema(properties={"code": {"type": "string"}}, required=["code"])
        messages = [f.message for f in error_response({"400": {"schema": schema}}, {}, _ctx(self.base))]
        assert "Error schema should contain `message` property." in messages

    def test_code_and_message_not_required(self):
        schema = _error_schema(required=[])
        findings = error_response({"400": {"schema": schema}}, {}, _ctx(self.base))
        assert [f.message for f in findings] == ["Error schema should define `code` and `message` properties as required."]
        assert findings[0].path[-3:] == ["properties", "error", "required"]

    def test_error_not_required(self):
        schema = _error_schema()
        schema["required"] = []
        findings = error_response({"400": {"schema": schema}}, {}, _ctx(self.base))
        assert findings[0].message == "The `error` property in the error response schema should be required."

    def test_optional_members_checked(self):
        props = {
            "code": {"type": "string"},
            "message": {"type": "string"},
            "target": {"type": "integer"},
            "details": {"type": "object"},
            "innererror": {"type": "string"},
        }
        findings = error_response({"400": {"schema": _error_schema(properties=props)}}, {}, _ctx(self.base))
        assert [f.path[-1] for f in findings] == ["target", "details", "innererror"]

    def test_success_responses_ignored(self):
        assert error_response({"200": {"description": "ok"}}, {}, _ctx(self.base)) == []

    def test_follows_local_refs(self):
        doc = {
            "swagger": "2.0",
            "definitions": {
                "ErrorResponse": {
                    "type": "object",
                    "required": ["error"],
                    "properties": {"error": {"$ref": "#/definitions/ErrorDetail"}},
                },
                "ErrorDetail": _error_schema()["properties"]["error"],
            },
        }
        responses = {"default": {"schema": {"$ref": "#/definitions/ErrorResponse"}}}
        assert error_response(responses, {}, _ctx(self.base, doc)) == []
