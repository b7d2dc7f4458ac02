"""Request-body reachability over Swagger 2.0 ``definitions``.

A named schema is *request-reachable* when it can appear in the body of
a put/post/patch request: referenced by a body parameter directly, or
transitively through property, ``items``, ``additionalProperties`` and
``allOf`` references. Subtypes of a discriminated base (schemas whose
``allOf`` references the base) are reachable along with the base, and
their own subtypes in turn. Anything outside that set is *response-only*.

The analysis works on raw, unresolved ``#/definitions/...`` refs.
Results are cached per document content hash by a ReachabilityCache
instance owned by whoever runs the validation.
"""

import hashlib
import json
import logging
import threading
from collections import OrderedDict
from typing import Any

from api_guidelines.document.detect import iter_operations, parameters_of
from api_guidelines.document.pointer import DEFINITIONS_PREFIX, ref_name

logger = logging.getLogger(__name__)

REQUEST_METHODS = ("put", "post", "patch")

DEFAULT_MAX_ENTRIES = 32


def _string_keys(node: Any) -> Any:
    # YAML loads unquoted status codes as ints; sort_keys cannot order int and str together
    if isinstance(node, dict):
        return {str(key): _string_keys(value) for key, value in node.items()}
    if isinstance(node, list):
        return [_string_keys(value) for value in node]
    return node


def document_hash(document: Any) -> str:
    """Deterministic 64-bit content hash of a JSON-like document."""
    payload = json.dumps(_string_keys(document), sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.blake2b(payload.encode("utf-8"), digest_size=8).hexdigest()


def request_schemas(document: Any) -> frozenset[str]:
    """Compute the names of all request-reachable schemas in *document*."""
    if not isinstance(document, dict):
        return frozenset()
    definitions = document.get("definitions")
    if not isinstance(definitions, dict):
        definitions = {}

    pending: list[str] = []
    for _, _, operation in iter_operations(document.get("paths"), REQUEST_METHODS):
        for param in parameters_of(operation):
            if not isinstance(param, dict) or param.get("in") != "body":
                continue
            schema = param.get("schema")
            name = ref_name(schema.get("$ref")) if isinstance(schema, dict) else None
            if name is not None and name not in pending:
                pending.append(name)

    reachable: set[str] = set()
    # schemas taking part in a discriminated hierarchy fan out to their subtypes
    polymorphic: set[str] = set()

    def enqueue(name: str | None) -> None:
        if name is not None and name not in reachable and name not in pending:
            pending.append(name)

    while pending:
        name = pending.pop()
        reachable.add(name)
        schema = definitions.get(name)
        if not isinstance(schema, dict):
            continue

        properties = schema.get("properties")
        if isinstance(properties, dict):
            for prop in properties.values():
                for ref in _property_refs(prop):
                    enqueue(ref_name(ref))

        for member in _as_list(schema.get("allOf")):
            if isinstance(member, dict):
                enqueue(ref_name(member.get("$ref")))

        if schema.get("discriminator") or name in polymorphic:
            for subtype in _subtypes(definitions, name):
                if subtype in polymorphic:
                    continue
                polymorphic.add(subtype)
                # revisit subtypes reached earlier so their own subtypes fan out
                if subtype not in pending:
                    pending.append(subtype)

    return frozenset(reachable)


def _property_refs(prop: Any) -> list:
    if not isinstance(prop, dict):
        return []
    refs = [prop.get("$ref")]
    for key in ("items", "additionalProperties"):
        nested = prop.get(key)
        if isinstance(nested, dict):
            refs.append(nested.get("$ref"))
    return [ref for ref in refs if isinstance(ref, str)]


def _subtypes(definitions: dict, base: str) -> list[str]:
    base_ref = DEFINITIONS_PREFIX + base
    return [
        name
        for name, schema in definitions.items()
        if isinstance(schema, dict)
        and any(isinstance(m, dict) and m.get("$ref") == base_ref for m in _as_list(schema.get("allOf")))
    ]


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


class ReachabilityCache:
    """Read-through cache of request-reachable schema sets, keyed by content hash.

    Keying on the serialized content means a new document, or the same
    document object mutated between queries, always gets a fresh result.
    Safe to share between threads.
    """

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES):
        self.max_entries = max_entries
        self._entries: OrderedDict[str, frozenset[str]] = OrderedDict()
        self._lock = threading.Lock()

    def request_schemas(self, document: Any) -> frozenset[str]:
        key = document_hash(document)
        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                self._entries.move_to_end(key)
                logger.debug("reachability cache hit for document %s", key)
                return cached

        logger.debug("reachability cache miss for document %s", key)
        result = request_schemas(document)
        with self._lock:
            self._entries[key] = result
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
        return result

    def is_request_reachable(self, schema_name: str, document: Any) -> bool:
        return schema_name in self.request_schemas(document)

    def is_response_only(self, schema_name: str, document: Any) -> bool:
        return not self.is_request_reachable(schema_name, document)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def is_request_reachable(schema_name: str, document: Any, cache: ReachabilityCache | None = None) -> bool:
    """True when *schema_name* can appear in a request body of *document*."""
    if cache is None:
        return schema_name in request_schemas(document)
    return cache.is_request_reachable(schema_name, document)
