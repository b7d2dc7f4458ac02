import pytest

from api_guidelines.document.base import DocumentRef, RuleContext
from api_guidelines.rules.paths import (
    api_version,
    path_case_convention,
    path_characters,
    path_parameter_names,
    path_parameter_order,
)


def _ctx(path, doc=None):
    return RuleContext(path=path, document=DocumentRef(data=doc or {}))


class TestApiVersion:
    @pytest.mark.parametrize("path_key", ["/v1/users", "/v2", "/v10/users/{id}"])
    def test_versioned_paths_pass(self, path_key):
        assert api_version({}, {}, _ctx(["paths", path_key])) == []

    @pytest.mark.parametrize("path_key", ["/users", "/V1/users", "/v1.1/users", "/vx/users", "/api/v1/users"])
    def test_unversioned_paths_fail(self, path_key):
        findings = api_version({}, {}, _ctx(["paths", path_key]))
        assert len(findings) == 1
        assert findings[0].path == ["paths", path_key]
        assert "version identifier" in findings[0].message


class TestPathCaseConvention:
    def test_kebab_case_passes(self):
        assert path_case_convention({}, {}, _ctx(["paths", "/v1/user-groups/{group_id}/members"])) == []

    def test_custom_method_suffix_ignored(self):
        assert path_case_convention({}, {}, _ctx(["paths", "/v1/users:search"])) == []

    def test_camel_case_fails_once(self):
        findings = path_case_convention({}, {}, _ctx(["paths", "/v1/userGroups/memberList"]))
        assert len(findings) == 1
        assert findings[0].message == "Static path segments should be kebab-case."


class TestPathCharacters:
    def test_allowed_characters(self):
        assert path_characters({}, {}, _ctx(["paths", "/v1/users/{user_id}/files.json"])) == []

    def test_disallowed_characters(self):
        findings = path_characters({}, {}, _ctx(["paths", "/v1/users$/{id}"]))
        assert findings[0].message == "Path contains non-recommended characters."


class TestPathParameterNames:
    def test_inconsistent_names_reported_on_second_path(self):
        paths = {"/users/{user_id}/profile": {}, "/users/{id}/posts": {}}
        findings = path_parameter_names(paths, {}, _ctx(["paths"]))
        assert len(findings) == 1
        assert findings[0].message == 'Inconsistent parameter names "user_id" and "id" for path segment "users".'
        assert findings[0].path == ["paths", "/users/{id}/posts"]

    def test_consistent_names_pass(self):
        paths = {"/v1/users/{user_id}": {}, "/v1/users/{user_id}/posts": {}}
        assert path_parameter_names(paths, {}, _ctx(["paths"])) == []

    def test_non_mapping_paths(self):
        assert path_parameter_names(None, {}, _ctx(["paths"])) == []


class TestPathParameterOrder:
    def test_path_level_order_mismatch(self):
        paths = {
            "/v1/users/{user_id}/posts/{post_id}": {
                "parameters": [
                    {"name": "post_id", "in": "path"},
                    {"name": "user_id", "in": "path"},
                ]
            }
        }
        findings = path_parameter_order(paths, {}, _ctx(["paths"]))
        assert len(findings) == 1
        assert findings[0].message == 'Path parameter "user_id" should appear before "post_id".'
        assert findings[0].path == ["paths", "/v1/users/{user_id}/posts/{post_id}", "parameters"]

    def test_method_level_continues_from_path_level(self):
        paths = {
            "/v1/users/{user_id}/posts/{post_id}": {
                "parameters": [{"name": "user_id", "in": "path"}],
                "get": {"parameters": [{"name": "post_id", "in": "path"}, {"name": "q", "in": "query"}]},
            }
        }
        assert path_parameter_order(paths, {}, _ctx(["paths"])) == []

    def test_method_level_mismatch(self):
        paths = {
            "/v1/users/{user_id}/posts/{post_id}": {
                "delete": {
                    "parameters": [
                        {"name": "post_id", "in": "path"},
                        {"name": "user_id", "in": "path"},
                    ]
                },
            }
        }
        findings = path_parameter_order(paths, {}, _ctx(["paths"]))
        assert len(findings) == 1
        assert findings[0].path[-2:] == ["delete", "parameters"]

    def test_missing_parameters_not_reported(self):
        paths = {"/v1/users/{user_id}/posts/{post_id}": {"get": {"parameters": [{"name": "user_id", "in": "path"}]}}}
        assert path_parameter_order(paths, {}, _ctx(["paths"])) == []
