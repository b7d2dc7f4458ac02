"""Rules over operations and their request bodies."""

from typing import Any

from api_guidelines.document.base import Finding, RuleContext
from api_guidelines.document.detect import (
    detect_dialect,
    request_body,
    request_body_schema,
    response_schema,
)
from api_guidelines.document.pointer import deref, extend

PUT_RESOURCE_CODES = ("201", "200")


def operation_summary_or_description(operation: Any, _options: dict, context: RuleContext) -> list[Finding]:
    if not isinstance(operation, dict):
        return []
    if operation.get("summary") or operation.get("description"):
        return []
    return [Finding(message="Operation should have a summary or description.", path=list(context.path))]


def request_body_not_allowed(operation: Any, _options: dict, context: RuleContext) -> list[Finding]:
    """get and delete operations take no request body."""
    if not isinstance(operation, dict):
        return []
    body = request_body(operation, detect_dialect(context.document.data))
    if body is None:
        return []
    return [
        Finding(
            message="A get or delete operation must not accept a body parameter.",
            path=extend(context.path, *body.path),
        )
    ]


def request_body_optional(operation: Any, _options: dict, context: RuleContext) -> list[Finding]:
    """put, post and patch bodies must be marked ``required: true``."""
    if not isinstance(operation, dict):
        return []
    body = request_body(operation, detect_dialect(context.document.data))
    if body is None or body.node.get("required") is True:
        return []
    return [Finding(message="The body parameter is not marked as required.", path=extend(context.path, *body.path))]


def request_body_type(operation: Any, _options: dict, context: RuleContext) -> list[Finding]:
    """A request body must be an object so it can grow without breaking clients."""
    if not isinstance(operation, dict):
        return []
    located = request_body_schema(operation, detect_dialect(context.document.data))
    if located is None:
        return []
    schema = deref(context.document.data, located.node)
    if not isinstance(schema, dict) or schema.get("type") != "array":
        return []
    path = extend(context.path, *located.path)
    # point at the inline type; a referenced array is reported at the reference
    if schema is located.node:
        path = extend(path, "type")
    return [Finding(message="The request body must not be a bare array.", path=path)]


def _ref(located) -> str | None:
    if located is None or not isinstance(located.node, dict):
        return None
    ref = located.node.get("$ref")
    return ref if isinstance(ref, str) and ref else None


def put_request_response_schema(operation: Any, _options: dict, context: RuleContext) -> list[Finding]:
    """A PUT request body and its 201/200 response body must use the same schema."""
    if not isinstance(operation, dict):
        return []
    dialect = detect_dialect(context.document.data)

    responses = operation.get("responses")
    responses = responses if isinstance(responses, dict) else {}
    response_ref = None
    for code in PUT_RESOURCE_CODES:
        response = responses.get(code, responses.get(int(code)))
        response_ref = _ref(response_schema(response, dialect))
        if response_ref:
            break

    request_ref = _ref(request_body_schema(operation, dialect))

    if response_ref and request_ref and response_ref != request_ref:
        return [
            Finding(
                message="A PUT operation should use the same schema for the request and response body.",
                path=list(context.path),
            )
        ]
    return []
