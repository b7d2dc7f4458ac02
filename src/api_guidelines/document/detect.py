"""Detect the OpenAPI dialect and locate dialect-dependent data.

Swagger 2.0 keeps request bodies in a ``body`` parameter and response
schemas directly on the response; OpenAPI 3.x moves both under
``content``. The accessors below hide that difference and return None
instead of raising when the expected shape is missing.
"""

from enum import Enum
from typing import Any, NamedTuple

from .base import PathSegment
from .pointer import extend

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

JSON_MEDIA_TYPE = "application/json"


class Dialect(str, Enum):
    OAS2 = "oas2"
    OAS3 = "oas3"


class Located(NamedTuple):
    """A node together with its path relative to the owning object."""

    node: Any
    path: list[PathSegment]


def detect_dialect(document: Any) -> Dialect | None:
    """Return the dialect of *document*, or None when it is neither.

    OAS3 iff ``openapi`` starts with ``3.``; OAS2 iff ``swagger`` is ``2.0``.
    """
    if not isinstance(document, dict):
        return None
    openapi = document.get("openapi")
    if isinstance(openapi, str) and openapi.startswith("3."):
        return Dialect.OAS3
    if document.get("swagger") == "2.0":
        return Dialect.OAS2
    return None


def is_oas3(document: Any) -> bool:
    return detect_dialect(document) is Dialect.OAS3


def named_schemas(document: Any) -> Located | None:
    """Return the mapping of named schemas for the document's dialect.

    Documents that declare no dialect are probed for ``definitions`` first,
    then ``components.schemas``.
    """
    if not isinstance(document, dict):
        return None
    dialect = detect_dialect(document)
    definitions = document.get("definitions")
    components = document.get("components")
    schemas = components.get("schemas") if isinstance(components, dict) else None

    if dialect is not Dialect.OAS3 and isinstance(definitions, dict):
        return Located(definitions, ["definitions"])
    if dialect is not Dialect.OAS2 and isinstance(schemas, dict):
        return Located(schemas, ["components", "schemas"])
    return None


def iter_operations(paths: Any, methods: tuple[str, ...] = HTTP_METHODS):
    """Yield ``(path_key, method, operation)`` for every operation object."""
    if not isinstance(paths, dict):
        return
    for path_key, path_item in paths.items():
        if not isinstance(path_item, dict):
            continue
        for method in methods:
            operation = path_item.get(method)
            if isinstance(operation, dict):
                yield path_key, method, operation


def parameters_of(owner: Any) -> list:
    """Return the ``parameters`` list of a path item or operation, or []."""
    if not isinstance(owner, dict):
        return []
    params = owner.get("parameters")
    return params if isinstance(params, list) else []


def body_parameter(operation: Any) -> Located | None:
    """Return the OAS2 ``in: body`` parameter of *operation*, if any."""
    for index, param in enumerate(parameters_of(operation)):
        if isinstance(param, dict) and param.get("in") == "body":
            return Located(param, ["parameters", index])
    return None


def request_body(operation: Any, dialect: Dialect | None) -> Located | None:
    """Return the request body holder: the body parameter or ``requestBody``."""
    if dialect is Dialect.OAS3:
        body = operation.get("requestBody") if isinstance(operation, dict) else None
        return Located(body, ["requestBody"]) if isinstance(body, dict) else None
    return body_parameter(operation)


def request_body_schema(operation: Any, dialect: Dialect | None) -> Located | None:
    """Locate the request body schema of *operation*.

    OAS2: the body parameter's ``schema``.
    OAS3: ``requestBody.content["application/json"].schema``.
    """
    if dialect is Dialect.OAS3:
        body = operation.get("requestBody") if isinstance(operation, dict) else None
        return _media_schema(body, ["requestBody"])
    found = body_parameter(operation)
    if found is None or "schema" not in found.node:
        return None
    return Located(found.node["schema"], extend(found.path, "schema"))


def response_schema(response: Any, dialect: Dialect | None) -> Located | None:
    """Locate the schema of a single response object.

    OAS2: ``response.schema``. OAS3: ``response.content["application/json"].schema``.
    Paths are relative to the response.
    """
    if not isinstance(response, dict):
        return None
    if dialect is Dialect.OAS3:
        return _media_schema(response, [])
    if "schema" not in response:
        return None
    return Located(response["schema"], ["schema"])


def has_body(response: Any) -> bool:
    """True when a response declares a payload in either dialect."""
    return isinstance(response, dict) and ("schema" in response or "content" in response)


def _media_schema(holder: Any, path: list[PathSegment]) -> Located | None:
    if not isinstance(holder, dict):
        return None
    content = holder.get("content")
    if not isinstance(content, dict):
        return None
    media = content.get(JSON_MEDIA_TYPE)
    if not isinstance(media, dict) or "schema" not in media:
        return None
    return Located(media["schema"], extend(path, "content", JSON_MEDIA_TYPE, "schema"))


def media_schemas(holder: Any, path: list[PathSegment]) -> list[Located]:
    """Every ``content[<media type>].schema`` of a request body or response."""
    content = holder.get("content") if isinstance(holder, dict) else None
    if not isinstance(content, dict):
        return []
    return [
        Located(media["schema"], extend(path, "content", media_type, "schema"))
        for media_type, media in content.items()
        if isinstance(media, dict) and "schema" in media
    ]


def body_schemas(operation: Any, dialect: Dialect | None) -> list[Located]:
    """Request and response schemas written on *operation*, in document order.

    Covers every media type, not only JSON. Paths are relative to the
    operation; ``$ref`` schemas are returned as they are.
    """
    if not isinstance(operation, dict):
        return []
    found: list[Located] = []
    if dialect is Dialect.OAS3:
        found.extend(media_schemas(operation.get("requestBody"), ["requestBody"]))
    else:
        body = request_body_schema(operation, dialect)
        if body is not None:
            found.append(body)

    responses = operation.get("responses")
    if not isinstance(responses, dict):
        return found
    for code, response in responses.items():
        base = ["responses", str(code)]
        if dialect is Dialect.OAS3:
            found.extend(media_schemas(response, base))
        elif isinstance(response, dict) and "schema" in response:
            found.append(Located(response["schema"], extend(base, "schema")))
    return found
