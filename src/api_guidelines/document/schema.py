"""Schema classification and recursive traversal.

Raw schema mappings are classified once into a SchemaNode tree whose
``kind`` tells traversal code what shape it is looking at. The walker
then descends ``properties``, ``items`` and the composition keywords in a
fixed, depth-first, left-to-right order so findings come out stable.
"""

from enum import Enum
from typing import Any, Callable, Iterable

from pydantic import BaseModel, ConfigDict, Field

from .base import Finding, PathSegment
from .pointer import extend

COMPOSITION_KEYWORDS = ("allOf", "anyOf", "oneOf")

PRIMITIVE_TYPES = ("string", "number", "integer", "boolean")
WELL_KNOWN_TYPES = (*PRIMITIVE_TYPES, "array", "object")


class SchemaKind(str, Enum):
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"
    REF = "ref"
    COMPOSITE = "composite"
    UNTYPED = "untyped"


class SchemaNode(BaseModel):
    """A classified schema with its children already built."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    kind: SchemaKind
    raw: dict
    properties: dict[str, "SchemaNode"] = Field(default_factory=dict)
    items: "SchemaNode | None" = None
    compositions: dict[str, list["SchemaNode"]] = Field(default_factory=dict)

    @property
    def type(self) -> Any:
        return self.raw.get("type")

    @property
    def format(self) -> Any:
        return self.raw.get("format")

    @property
    def ref(self) -> str | None:
        ref = self.raw.get("$ref")
        return ref if isinstance(ref, str) else None

    @property
    def required(self) -> list:
        required = self.raw.get("required")
        return required if isinstance(required, list) else []


SchemaNode.model_rebuild()


def classify(raw: dict) -> SchemaKind:
    """Decide which variant a raw schema mapping represents."""
    declared = raw.get("type")
    if declared in WELL_KNOWN_TYPES:
        return SchemaKind(declared)
    if isinstance(raw.get("$ref"), str):
        return SchemaKind.REF
    if any(isinstance(raw.get(keyword), list) for keyword in COMPOSITION_KEYWORDS):
        return SchemaKind.COMPOSITE
    if "items" in raw:
        return SchemaKind.ARRAY
    if isinstance(raw.get("properties"), dict):
        return SchemaKind.OBJECT
    return SchemaKind.UNTYPED


def build(raw: Any, _active: frozenset = frozenset()) -> SchemaNode | None:
    """Build a SchemaNode tree from a raw schema mapping.

    Returns None when *raw* is not a mapping. Mappings already on the
    current descent (possible once refs have been resolved in place) are
    not expanded again.
    """
    if not isinstance(raw, dict):
        return None
    node = SchemaNode(kind=classify(raw), raw=raw)
    if id(raw) in _active:
        return node
    active = _active | {id(raw)}

    properties = raw.get("properties")
    if isinstance(properties, dict):
        for name, value in properties.items():
            child = build(value, active)
            if child is not None:
                node.properties[name] = child

    items = build(raw.get("items"), active)
    if items is not None:
        node.items = items

    for keyword in COMPOSITION_KEYWORDS:
        members = raw.get(keyword)
        if isinstance(members, list):
            # keep positions aligned with the raw list; non-mappings become UNTYPED
            node.compositions[keyword] = [
                build(member, active) or SchemaNode(kind=SchemaKind.UNTYPED, raw={})
                for member in members
            ]
    return node


Visitor = Callable[[SchemaNode, list[PathSegment]], Iterable[Finding]]


def walk(
    schema: Any,
    visit: Visitor,
    path: list[PathSegment],
    compositions: Iterable[str] = COMPOSITION_KEYWORDS,
    descend: Callable[[SchemaNode], bool] | None = None,
) -> list[Finding]:
    """Apply *visit* to *schema* and every nested schema, collecting findings.

    *schema* may be a raw mapping or an already built SchemaNode; anything
    else yields no findings. *compositions* limits which of ``allOf``,
    ``anyOf`` and ``oneOf`` are followed. *descend*, when given, decides
    whether the children of a visited node are walked at all.
    """
    node = schema if isinstance(schema, SchemaNode) else build(schema)
    if node is None:
        return []
    compositions = tuple(compositions)
    findings: list[Finding] = []
    _walk(node, visit, list(path), compositions, descend, findings)
    return findings


def _walk(node, visit, path, compositions, descend, findings) -> None:
    findings.extend(visit(node, path))
    if descend is not None and not descend(node):
        return

    for name, child in node.properties.items():
        _walk(child, visit, extend(path, "properties", name), compositions, descend, findings)

    if node.items is not None:
        _walk(node.items, visit, extend(path, "items"), compositions, descend, findings)

    for keyword in compositions:
        for index, member in enumerate(node.compositions.get(keyword, [])):
            _walk(member, visit, extend(path, keyword, index), compositions, descend, findings)
