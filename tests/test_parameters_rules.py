from api_guidelines.document.base import DocumentRef, RuleContext
from api_guidelines.rules.parameters import (
    formdata,
    parameter_description,
    path_parameter_schema,
    unique_parameter_names,
)


def _ctx(path, doc=None):
    return RuleContext(path=path, document=DocumentRef(data=doc or {}))


class TestUniqueParameterNames:
    def test_case_insensitive_duplicate_in_operation(self):
        path_item = {"get": {"parameters": [{"name": "user_id", "in": "path"}, {"name": "USER_ID", "in": "query"}]}}
        findings = unique_parameter_names(path_item, {}, _ctx(["paths", "/v1/users/{user_id}"]))
        assert len(findings) == 1
        assert findings[0].message == "Duplicate parameter name (ignoring case) with get.parameters.0."
        assert findings[0].path == ["paths", "/v1/users/{user_id}", "get", "parameters", 1, "name"]

    def test_swapped_order_reports_other_occurrence(self):
        path_item = {"get": {"parameters": [{"name": "USER_ID", "in": "query"}, {"name": "user_id", "in": "path"}]}}
        findings = unique_parameter_names(path_item, {}, _ctx(["paths", "/v1/users/{user_id}"]))
        assert len(findings) == 1
        assert findings[0].path[-2] == 1

    def test_operation_duplicates_path_level(self):
        path_item = {
            "parameters": [{"name": "tenant", "in": "header"}],
            "post": {"parameters": [{"name": "Tenant", "in": "query"}]},
        }
        findings = unique_parameter_names(path_item, {}, _ctx(["paths", "/v1/a"]))
        assert findings[0].message == "Duplicate parameter name (ignoring case) with parameters.0."
        assert findings[0].path == ["paths", "/v1/a", "post", "parameters", 0, "name"]

    def test_path_level_duplicates(self):
        path_item = {"parameters": [{"name": "a"}, {"name": "b"}, {"name": "A"}]}
        findings = unique_parameter_names(path_item, {}, _ctx(["paths", "/v1/a"]))
        assert [f.path for f in findings] == [["paths", "/v1/a", "parameters", 2, "name"]]

    def test_unique_names_pass(self):
        path_item = {"get": {"parameters": [{"name": "a"}, {"name": "b"}]}}
        assert unique_parameter_names(path_item, {}, _ctx(["paths", "/v1/a"])) == []


class TestPathParameterSchema:
    def _doc(self, method="put", codes=("201",)):
        return {"paths": {"/v1/users/{user_id}": {method: {"responses": {c: {} for c in codes}}}}}

    def _path(self, method="put"):
        return ["paths", "/v1/users/{user_id}", method, "parameters", 0]

    def test_non_string_type(self):
        param = {"name": "user_id", "in": "path", "type": "integer"}
        findings = path_parameter_schema(param, {}, _ctx(self._path("get"), self._doc("get")))
        assert findings[0].message == "Path parameter should be defined as type: string."
        assert findings[0].path == [*self._path("get"), "type"]

    def test_put_201_requires_max_length_and_pattern(self):
        param = {"name": "user_id", "in": "path", "type": "string"}
        findings = path_parameter_schema(param, {}, _ctx(self._path(), self._doc()))
        assert findings[0].message == (
            "Path parameter should specify a maximum length (maxLength) and characters allowed (pattern)."
        )

    def test_put_201_max_length_too_large(self):
        param = {"name": "user_id", "in": "path", "type": "string", "maxLength": 3000, "pattern": "^[a-z]+$"}
        findings = path_parameter_schema(param, {}, _ctx(self._path(), self._doc()))
        assert findings[0].path[-1] == "maxLength"

    def test_oas3_schema_is_checked(self):
        param = {"name": "user_id", "in": "path", "schema": {"type": "string", "maxLength": 64}}
        findings = path_parameter_schema(param, {}, _ctx(self._path("patch"), self._doc("patch")))
        assert findings[0].message == "Path parameter should specify characters allowed (pattern)."
        assert findings[0].path == [*self._path("patch"), "schema"]

    def test_bounded_parameter_passes(self):
        param = {"name": "user_id", "in": "path", "type": "string", "maxLength": 64, "pattern": "^[a-z]+$"}
        assert path_parameter_schema(param, {}, _ctx(self._path(), self._doc())) == []

    def test_without_201_only_type_checked(self):
        param = {"name": "user_id", "in": "path", "type": "string"}
        assert path_parameter_schema(param, {}, _ctx(self._path(), self._doc(codes=("200",)))) == []

    def test_non_path_parameters_ignored(self):
        param = {"name": "q", "in": "query", "type": "integer"}
        assert path_parameter_schema(param, {}, _ctx(self._path(), self._doc())) == []


class TestParameterDescription:
    def test_description_on_parameter_or_schema(self):
        assert parameter_description({"name": "a", "description": "x"}, {}, _ctx(["p"])) == []
        assert parameter_description({"name": "a", "schema": {"description": "x"}}, {}, _ctx(["p"])) == []

    def test_missing_description(self):
        findings = parameter_description({"name": "a"}, {}, _ctx(["p", 0]))
        assert findings[0].message == "Parameter should have a description."
        assert findings[0].path == ["p", 0]


class TestFormData:
    def test_formdata_reported(self):
        findings = formdata({"name": "file", "in": "formData"}, {}, _ctx(["p", 0]))
        assert len(findings) == 1

    def test_other_locations_pass(self):
        assert formdata({"name": "q", "in": "query"}, {}, _ctx(["p", 0])) == []
