"""Naming-convention rules for parameters, properties and schemas."""

import re
from enum import Enum
from typing import Any, Callable

from api_guidelines.document.base import Finding, PathSegment, RuleContext
from api_guidelines.document.detect import Dialect, detect_dialect, iter_operations, named_schemas
from api_guidelines.document.pointer import extend
from api_guidelines.document.schema import SchemaNode, walk

SNAKE_CASE_RE = re.compile(r"^[\d_a-z]+$")
HEADER_CASE_RE = re.compile(r"^([A-Z][\da-z]*)(-[A-Z][\da-z]*)*$")
PROPERTY_SNAKE_CASE_RE = re.compile(r"^[a-z][a-z0-9]*(_[a-z0-9]+)*$")
PASCAL_CASE_RE = re.compile(r"^[A-Z][A-Za-z0-9]*(\.[A-Z][A-Za-z0-9]*)*$")

_REGEX_LITERAL_RE = re.compile(r"^/(?P<body>.+)/(?P<flags>[a-z]*)$", re.DOTALL)
_FLAG_MAP = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL}


class NamingCheck(str, Enum):
    """Kinds of schema a naming convention can be attached to."""

    BOOLEAN = "boolean"
    DATE_TIME = "date-time"

    @classmethod
    def parse(cls, value: Any) -> "NamingCheck | None":
        try:
            return cls(value)
        except ValueError:
            return None


def is_boolean_schema(schema: Any) -> bool:
    return isinstance(schema, dict) and schema.get("type") == "boolean"


def is_date_time_schema(schema: Any) -> bool:
    return isinstance(schema, dict) and schema.get("type") == "string" and schema.get("format") == "date-time"


NAMING_CHECKS: dict[NamingCheck, Callable[[Any], bool]] = {
    NamingCheck.BOOLEAN: is_boolean_schema,
    NamingCheck.DATE_TIME: is_date_time_schema,
}


def register_naming_check(check: NamingCheck, predicate: Callable[[Any], bool]) -> None:
    NAMING_CHECKS[check] = predicate


def _never(_schema: Any) -> bool:
    return False


def schema_type_check(value: Any) -> Callable[[Any], bool]:
    """Return the type predicate registered for *value*; unknown types match nothing."""
    check = NamingCheck.parse(value)
    if check is None:
        return _never
    return NAMING_CHECKS.get(check, _never)


def compile_pattern(pattern: str) -> re.Pattern:
    """Compile a plain regex or a ``/regex/flags`` literal."""
    literal = _REGEX_LITERAL_RE.match(pattern)
    if literal is None:
        return re.compile(pattern)
    flags = 0
    for flag in literal.group("flags"):
        flags |= _FLAG_MAP.get(flag, 0)
    return re.compile(literal.group("body"), flags)


def violates_pattern(value: Any, options: dict) -> bool:
    """True when *value* fails ``match`` or satisfies ``notMatch``."""
    if not isinstance(value, str):
        return False
    match = options.get("match")
    if match is not None and not compile_pattern(match).search(value):
        return True
    not_match = options.get("notMatch")
    if not_match is not None and compile_pattern(not_match).search(value):
        return True
    return False


def _property_naming(schema: Any, options: dict, path: list[PathSegment]) -> list[Finding]:
    is_type = schema_type_check(options.get("type"))

    def visit(node: SchemaNode, node_path: list[PathSegment]) -> list[Finding]:
        properties = node.raw.get("properties")
        if not isinstance(properties, dict):
            return []
        return [
            Finding(
                message=f'Property "{name}" does not follow {options.get("type")} naming convention',
                path=extend(node_path, "properties", name),
            )
            for name, prop in properties.items()
            if is_type(prop) and violates_pattern(name, options)
        ]

    return walk(schema, visit, path)


def naming_convention(document: Any, options: dict, context: RuleContext) -> list[Finding]:
    """Check names of properties and parameters of one schema kind against a pattern.

    ``options["type"]`` selects the kind (``boolean`` or ``date-time``);
    ``match``/``notMatch`` give the pattern. Parameters, request and
    response bodies and named schemas are all covered.
    """
    if not isinstance(document, dict) or not isinstance(options, dict):
        return []

    dialect = detect_dialect(document)
    is_type = schema_type_check(options.get("type"))
    base = list(context.path)
    findings = []

    operations = iter_operations(document.get("paths")) if dialect is not None else ()
    for path_key, method, operation in operations:
        op_path = extend(base, "paths", path_key, method)
        params = operation.get("parameters")
        params = params if isinstance(params, list) else []

        for index, param in enumerate(params):
            if not isinstance(param, dict):
                continue
            if dialect is Dialect.OAS3:
                typed = param.get("schema")
            else:
                typed = param if param.get("in") != "body" else None
            if typed is not None and is_type(typed) and violates_pattern(param.get("name"), options):
                findings.append(
                    Finding(
                        message=f'Parameter "{param.get("name")}" does not follow {options.get("type")} naming convention',
                        path=extend(op_path, "parameters", index, "name"),
                    )
                )

        responses = operation.get("responses")
        responses = responses if isinstance(responses, dict) else {}

        if dialect is Dialect.OAS3:
            findings.extend(_content_naming(operation.get("requestBody"), options, extend(op_path, "requestBody")))
            for code, response in responses.items():
                findings.extend(_content_naming(response, options, extend(op_path, "responses", str(code))))
        else:
            for index, param in enumerate(params):
                if isinstance(param, dict) and param.get("in") == "body":
                    findings.extend(_property_naming(param.get("schema"), options, extend(op_path, "parameters", index, "schema")))
                    break
            for code, response in responses.items():
                if isinstance(response, dict) and response.get("schema"):
                    findings.extend(_property_naming(response["schema"], options, extend(op_path, "responses", str(code), "schema")))

    schemas = named_schemas(document)
    if schemas is not None:
        for name, schema in schemas.node.items():
            findings.extend(_property_naming(schema, options, extend(base, *schemas.path, name)))
    return findings


def _content_naming(holder: Any, options: dict, path: list[PathSegment]) -> list[Finding]:
    if not isinstance(holder, dict) or not isinstance(holder.get("content"), dict):
        return []
    findings = []
    for media_type, media in holder["content"].items():
        if isinstance(media, dict) and media.get("schema"):
            findings.extend(_property_naming(media["schema"], options, extend(path, "content", media_type, "schema")))
    return findings


def parameter_names_convention(param: Any, _options: dict, context: RuleContext) -> list[Finding]:
    """Path and query parameters are snake_case; headers are ``Kebab-Case``."""
    if not isinstance(param, dict):
        return []
    name = param.get("name")
    location = param.get("in")
    if not location or not name or not isinstance(name, str):
        return []

    findings = []
    name_path = extend(context.path, "name")

    if name[0] in "$@":
        findings.append(Finding(message=f"Parameter name \"{name}\" should not begin with '$' or '@'.", path=name_path))

    if location in ("path", "query") and not SNAKE_CASE_RE.match(name):
        findings.append(Finding(message=f'Parameter name "{name}" should be snake_case.', path=name_path))

    if location == "header" and not HEADER_CASE_RE.match(name):
        findings.append(
            Finding(
                message=(
                    f'Header parameter name "{name}" should be kebab-case with capitalized '
                    "first letters (e.g., 'Api-Version')."
                ),
                path=name_path,
            )
        )
    return findings


def property_names_convention(schema: Any, _options: dict, context: RuleContext) -> list[Finding]:
    """Every property name, at any depth, must be snake_case."""

    def visit(node: SchemaNode, path: list[PathSegment]) -> list[Finding]:
        properties = node.raw.get("properties")
        if not isinstance(properties, dict):
            return []
        return [
            Finding(message="Property name should be snake case.", path=extend(path, "properties", name))
            for name in properties
            if not isinstance(name, str) or not PROPERTY_SNAKE_CASE_RE.match(name)
        ]

    return walk(schema, visit, context.path)


def schema_names_convention(_schema: Any, _options: dict, context: RuleContext) -> list[Finding]:
    """Named schemas use PascalCase; dot-separated PascalCase parts are allowed."""
    name = context.path[-1] if context.path else None
    if not isinstance(name, str) or PASCAL_CASE_RE.match(name):
        return []
    return [Finding(message="Schema name should be Pascal case.", path=list(context.path))]
