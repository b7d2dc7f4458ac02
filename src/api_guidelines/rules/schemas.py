"""Rules over schemas: type/format, defaults, readOnly usage, documentation, unused definitions."""

from typing import Any

from api_guidelines.analysis.reachability import ReachabilityCache, is_request_reachable
from api_guidelines.document.base import Finding, PathSegment, RuleContext
from api_guidelines.document.pointer import DEFINITIONS_PREFIX, extend, ref_name
from api_guidelines.document.schema import (
    PRIMITIVE_TYPES,
    WELL_KNOWN_TYPES,
    SchemaKind,
    SchemaNode,
    walk,
)

INTEGER_FORMATS = ("int32", "int64", "unixtime")
NUMBER_FORMATS = ("float", "double", "decimal")


def _type_and_format(node: SchemaNode, path: list[PathSegment]) -> list[Finding]:
    declared = node.type
    fmt = node.format

    if declared is not None and declared not in WELL_KNOWN_TYPES:
        return [Finding(message="Schema should use well-defined type and format.", path=extend(path, "type"))]

    if node.kind in (SchemaKind.INTEGER, SchemaKind.NUMBER):
        allowed = INTEGER_FORMATS if node.kind is SchemaKind.INTEGER else NUMBER_FORMATS
        if not fmt:
            return [Finding(message=f"Schema with type: {declared} should specify format", path=list(path))]
        if fmt not in allowed:
            return [Finding(message=f"Schema with type: {declared} has unrecognized format: {fmt}", path=extend(path, "format"))]
    elif node.kind is SchemaKind.BOOLEAN:
        if fmt:
            return [Finding(message="Schema with type: boolean should not specify format", path=extend(path, "format"))]
    elif declared == "array" and node.items is None:
        return [Finding(message="Schema with type: array should specify items", path=list(path))]
    return []


def _descends_past_primitives(node: SchemaNode) -> bool:
    return node.type not in PRIMITIVE_TYPES


def schema_type_and_format(schema: Any, _options: dict, context: RuleContext) -> list[Finding]:
    """Schemas use a well-known type with a format valid for that type.

    ``integer`` and ``number`` require a format from a fixed list,
    ``boolean`` must not carry one and ``array`` must declare ``items``.
    ``string`` formats are not checked.
    Nested ``properties``, ``items`` and ``allOf`` members are checked too.
    """
    return walk(schema, _type_and_format, context.path, compositions=("allOf",), descend=_descends_past_primitives)


def _required_default(node: SchemaNode, path: list[PathSegment]) -> list[Finding]:
    properties = node.raw.get("properties")
    if not isinstance(properties, dict):
        return []
    findings = []
    for name in node.required:
        prop = properties.get(name) if isinstance(name, str) else None
        if isinstance(prop, dict) and prop.get("default") is not None:
            findings.append(
                Finding(
                    message=f'Schema property "{name}" is required and cannot have a default value.',
                    path=extend(path, "properties", name, "default"),
                )
            )
    return findings


def default_value_not_allowed_for_required_properties(schema: Any, _options: dict, context: RuleContext) -> list[Finding]:
    """Required properties cannot declare a ``default``, at any nesting level."""
    return walk(schema, _required_default, context.path, compositions=("allOf",))


def readonly_in_response_only_schema(schema: Any, _options: dict, context: RuleContext) -> list[Finding]:
    """Properties of a response-only named schema must not be marked readOnly.

    *schema* is an entry of ``definitions``; its name is the last segment of
    the context path. readOnly only means something on a schema that is
    also sent in requests.
    """
    if not isinstance(schema, dict) or not context.path:
        return []
    name = context.path[-1]
    document = context.document.data

    cache = context.reachability if isinstance(context.reachability, ReachabilityCache) else None
    if is_request_reachable(str(name), document, cache):
        return []

    properties = schema.get("properties")
    if not isinstance(properties, dict):
        return []
    return [
        Finding(
            message="Property of response-only schema should not be marked readOnly",
            path=extend(context.path, "properties", prop_name, "readOnly"),
        )
        for prop_name, prop in properties.items()
        if isinstance(prop, dict) and prop.get("readOnly") is True
    ]


def _collect_refs(node: Any, path: list[PathSegment], found: list[tuple[str, list[PathSegment]]]) -> None:
    if isinstance(node, dict):
        ref = node.get("$ref")
        if isinstance(ref, str):
            found.append((ref, path))
        for key, value in node.items():
            _collect_refs(value, extend(path, key), found)
    elif isinstance(node, list):
        for index, value in enumerate(node):
            _collect_refs(value, extend(path, index), found)


def referenced_definitions(document: Any) -> set[str]:
    """Names of ``definitions`` entries referenced from outside their own body."""
    found: list[tuple[str, list[PathSegment]]] = []
    _collect_refs(document, [], found)
    referenced = set()
    for ref, path in found:
        name = ref_name(ref, DEFINITIONS_PREFIX)
        if name is None:
            continue
        if path[:2] == ["definitions", name]:
            continue
        referenced.add(name)
    return referenced


def unused_definition(definitions: Any, _options: dict, context: RuleContext) -> list[Finding]:
    """Report definitions nothing refers to.

    A definition whose ``allOf`` references a used definition is not
    reported: it is a subtype reached through polymorphism.
    """
    if not isinstance(definitions, dict):
        return []

    referenced = referenced_definitions(context.document.data)
    unused = [name for name in definitions if name not in referenced]
    unused_set = set(unused)

    def extends_used_schema(name: str) -> bool:
        schema = definitions.get(name)
        members = schema.get("allOf") if isinstance(schema, dict) else None
        if not isinstance(members, list):
            return False
        for member in members:
            if isinstance(member, dict) and isinstance(member.get("$ref"), str):
                target = member["$ref"].split("/")[-1]
                if target not in unused_set:
                    return True
        return False

    return [
        Finding(message="Potentially unused definition has been detected.", path=extend(context.path, name))
        for name in unused
        if not extends_used_schema(name)
    ]


def _is_composed(prop: dict) -> bool:
    return "$ref" in prop or any(keyword in prop for keyword in ("allOf", "anyOf", "oneOf"))


def _property_check(message: str, passes):
    def visit(node: SchemaNode, path: list[PathSegment]) -> list[Finding]:
        properties = node.raw.get("properties")
        if not isinstance(properties, dict):
            return []
        return [
            Finding(message=message, path=extend(path, "properties", name))
            for name, prop in properties.items()
            if isinstance(prop, dict) and not passes(prop)
        ]

    return visit


_property_description = _property_check(
    "Property should have a description.",
    lambda prop: bool(prop.get("description")) or "$ref" in prop,
)

_property_type = _property_check(
    "Property should have a defined type.",
    lambda prop: "type" in prop or _is_composed(prop),
)


def property_description(schema: Any, _options: dict, context: RuleContext) -> list[Finding]:
    return walk(schema, _property_description, context.path)


def property_type(schema: Any, _options: dict, context: RuleContext) -> list[Finding]:
    return walk(schema, _property_type, context.path)


def schema_description_or_title(schema: Any, _options: dict, context: RuleContext) -> list[Finding]:
    if not isinstance(schema, dict) or schema.get("description") or schema.get("title"):
        return []
    return [Finding(message="Schema should have a description or title.", path=list(context.path))]
