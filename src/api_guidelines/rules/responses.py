"""Rules over operation responses: default and delete responses, empty 204s, error shape."""

import re
from typing import Any

from api_guidelines.document.base import Finding, PathSegment, RuleContext
from api_guidelines.document.detect import detect_dialect, has_body, response_schema
from api_guidelines.document.pointer import deref, extend

ERROR_STATUS_RE = re.compile(r"^[45]\d\d$")

DELETE_SUCCESS_CODES = ("202", "204")


def _responses(operation: Any) -> dict | None:
    if not isinstance(operation, dict):
        return None
    responses = operation.get("responses")
    return responses if isinstance(responses, dict) else None


def _codes(responses: dict) -> set[str]:
    # YAML loads unquoted status codes as ints
    return {str(code) for code in responses}


def default_response(operation: Any, _options: dict, context: RuleContext) -> list[Finding]:
    if not isinstance(operation, dict):
        return []
    responses = _responses(operation)
    if responses is not None and "default" in responses:
        return []
    path = extend(context.path, "responses") if responses is not None else list(context.path)
    return [Finding(message="Operation is missing a default response.", path=path)]


def delete_response_codes(operation: Any, _options: dict, context: RuleContext) -> list[Finding]:
    """A delete operation must declare a ``204`` or ``202`` response."""
    if not isinstance(operation, dict):
        return []
    responses = _responses(operation)
    if responses is not None and _codes(responses) & set(DELETE_SUCCESS_CODES):
        return []
    path = extend(context.path, "responses") if responses is not None else list(context.path)
    return [Finding(message="A delete operation should have a `204` response.", path=path)]


def no_response_body(response: Any, _options: dict, context: RuleContext) -> list[Finding]:
    """A ``204 No Content`` response must not declare a schema or content."""
    if not has_body(response):
        return []
    return [Finding(message="A 204 response should not have a response body.", path=list(context.path))]


def _is_array_schema(schema: dict) -> bool:
    return schema.get("type") == "array" or bool(schema.get("items"))


def _is_object_schema(schema: dict) -> bool:
    return schema.get("type") == "object" or bool(schema.get("properties")) or bool(schema.get("$ref"))


def _required(schema: dict) -> list:
    required = schema.get("required")
    return required if isinstance(required, list) else []


def _error_schema_findings(schema: Any, path: list[PathSegment], document: Any) -> list[Finding]:
    """Check the ``{"error": {"code": ..., "message": ...}}`` envelope.

    Local ``$ref``s are followed; findings stay at the referencing location.
    """
    findings = []

    schema = deref(document, schema)
    properties = schema.get("properties") if isinstance(schema, dict) else None
    if not properties or not isinstance(properties, dict):
        return [Finding(message="Error response schema must be an object schema.", path=path)]

    error = deref(document, properties.get("error"))
    if not isinstance(error, dict) or not isinstance(error.get("properties"), dict):
        return [
            Finding(
                message=(
                    "Error response body must contain an object property named `error` "
                    "having `message` and `code` properties."
                ),
                path=extend(path, "properties", "error"),
            )
        ]

    if "error" not in _required(schema):
        findings.append(
            Finding(
                message="The `error` property in the error response schema should be required.",
                path=extend(path, "required"),
            )
        )

    error_path = extend(path, "properties", "error")
    error_props = error["properties"]
    code = deref(document, error_props.get("code"))
    message = deref(document, error_props.get("message"))

    if not code and message:
        findings.append(Finding(message="Error schema should contain `code` property.", path=extend(error_path, "properties")))
    elif code and not message:
        findings.append(Finding(message="Error schema should contain `message` property.", path=extend(error_path, "properties")))
    elif not code and not message:
        findings.append(
            Finding(message="Error schema should contain `code` and `message` properties.", path=extend(error_path, "properties"))
        )

    if code and (not isinstance(code, dict) or code.get("type") != "string"):
        findings.append(
            Finding(
                message="The `code` property of error schema should be type `string`.",
                path=extend(error_path, "properties", "code", "type"),
            )
        )
    if message and (not isinstance(message, dict) or message.get("type") != "string"):
        findings.append(
            Finding(
                message="The `message` property of error schema should be type `string`.",
                path=extend(error_path, "properties", "message", "type"),
            )
        )

    required = _required(error)
    if "code" not in required and "message" not in required:
        findings.append(
            Finding(message="Error schema should define `code` and `message` properties as required.", path=extend(error_path, "required"))
        )
    elif "code" not in required:
        findings.append(Finding(message="Error schema should define `code` property as required.", path=extend(error_path, "required")))
    elif "message" not in required:
        findings.append(Finding(message="Error schema should define `message` property as required.", path=extend(error_path, "required")))

    target = deref(document, error_props.get("target"))
    if target and (not isinstance(target, dict) or target.get("type") != "string"):
        findings.append(
            Finding(
                message="The `target` property of the error schema should be type `string`.",
                path=extend(error_path, "properties", "target"),
            )
        )

    details = deref(document, error_props.get("details"))
    if details and (not isinstance(details, dict) or not _is_array_schema(details)):
        findings.append(
            Finding(
                message="The `details` property of the error schema should be an array.",
                path=extend(error_path, "properties", "details"),
            )
        )

    innererror = error_props.get("innererror")
    if innererror and (not isinstance(innererror, dict) or not _is_object_schema(innererror)):
        findings.append(
            Finding(
                message="The `innererror` property of the error schema should be an object.",
                path=extend(error_path, "properties", "innererror"),
            )
        )

    return findings


def _error_response_findings(response: Any, response_path: list[PathSegment], document: Any) -> list[Finding]:
    response = deref(document, response)
    if not response:
        return []

    located = response_schema(response, detect_dialect(document))
    if located is not None and located.node:
        return _error_schema_findings(located.node, extend(response_path, *located.path), document)

    # HEAD responses carry no body
    method = response_path[-3] if len(response_path) >= 3 else None
    if method == "head":
        return []
    return [Finding(message="Error response should have a schema.", path=list(response_path))]


def error_response(responses: Any, _options: dict, context: RuleContext) -> list[Finding]:
    """Every ``4xx``/``5xx``/``default`` response must carry the standard error envelope.

    *responses* is an operation's ``responses`` map; the schema is looked up
    in the location matching the document's dialect.
    """
    if not isinstance(responses, dict):
        return []
    document = context.document.data

    findings = []
    if "default" in responses:
        findings.extend(_error_response_findings(responses["default"], extend(context.path, "default"), document))

    for code, response in responses.items():
        if ERROR_STATUS_RE.match(str(code)):
            findings.extend(_error_response_findings(response, extend(context.path, str(code)), document))
    return findings
