"""Location helpers for JSON-Pointer style path arrays.

Paths are lists of string keys and integer indices, e.g.
``["paths", "/v1/users", "get", "parameters", 0, "name"]``.
"""

from typing import Any

from .base import PathSegment

DEFINITIONS_PREFIX = "#/definitions/"
COMPONENT_SCHEMAS_PREFIX = "#/components/schemas/"

_MISSING = object()


def extend(path: list[PathSegment], *segments: PathSegment) -> list[PathSegment]:
    """Return a new path with *segments* appended; *path* is left untouched."""
    return [*path, *segments]


def escape(segment: PathSegment) -> str:
    return str(segment).replace("~", "~0").replace("/", "~1")


def unescape(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def to_pointer(path: list[PathSegment]) -> str:
    """Render a path as an RFC 6901 JSON Pointer string."""
    if not path:
        return ""
    return "/" + "/".join(escape(segment) for segment in path)


def from_pointer(pointer: str) -> list[PathSegment]:
    """Parse a JSON Pointer (optionally prefixed with ``#``) into a path.

    Tokens made only of digits become integer indices.
    """
    if pointer.startswith("#"):
        pointer = pointer[1:]
    if not pointer:
        return []
    if not pointer.startswith("/"):
        raise ValueError(f"Invalid JSON pointer: {pointer!r}")
    segments: list[PathSegment] = []
    for token in pointer[1:].split("/"):
        token = unescape(token)
        segments.append(int(token) if token.isdigit() else token)
    return segments


def _dict_key(node: dict, segment: PathSegment) -> Any:
    # YAML loads unquoted status codes such as 200 as int keys
    if segment in node:
        return segment
    if isinstance(segment, int):
        return str(segment)
    if isinstance(segment, str) and segment.isdigit():
        return int(segment)
    return segment


def resolve(document: Any, path: list[PathSegment], default: Any = None) -> Any:
    """Return the node found at *path* inside *document*, or *default*."""
    node = document
    for segment in path:
        if isinstance(node, dict):
            node = node.get(_dict_key(node, segment), _MISSING)
        elif isinstance(node, list) and isinstance(segment, int):
            node = node[segment] if 0 <= segment < len(node) else _MISSING
        else:
            return default
        if node is _MISSING:
            return default
    return node


def ref_name(ref: Any, prefix: str = DEFINITIONS_PREFIX) -> str | None:
    """Extract the schema name from a local ``$ref`` such as ``#/definitions/Pet``."""
    if not isinstance(ref, str) or not ref.startswith(prefix):
        return None
    name = ref[len(prefix):]
    return unescape(name) if name else None


def deref(document: Any, node: Any) -> Any:
    """Follow local ``$ref`` chains such as ``#/definitions/Error`` inside *document*.

    Returns *node* unchanged when it is not a local reference, and the last
    node reached when a reference is dangling or circular.
    """
    seen = set()
    while isinstance(node, dict) and isinstance(node.get("$ref"), str) and node["$ref"].startswith("#"):
        ref = node["$ref"]
        if ref in seen:
            return node
        seen.add(ref)
        try:
            target = resolve(document, from_pointer(ref), _MISSING)
        except ValueError:
            return node
        if target is _MISSING:
            return node
        node = target
    return node
