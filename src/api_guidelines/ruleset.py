"""Rule registry.

Single source of truth for every rule code this package evaluates. Each
Rule pairs a predicate with a ``given`` selector that yields the nodes
the predicate applies to, a default severity and static options.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator

from api_guidelines.document.base import Finding, PathSegment, RuleContext, Severity
from api_guidelines.document.detect import (
    HTTP_METHODS,
    body_schemas,
    detect_dialect,
    iter_operations,
    named_schemas,
    parameters_of,
)
from api_guidelines.document.pointer import deref
from api_guidelines.rules import naming, pagination, parameters, paths, requests, responses, schemas

Selection = Iterator[tuple[Any, list[PathSegment]]]
Selector = Callable[[dict], Selection]
Predicate = Callable[[Any, dict, RuleContext], list[Finding]]


@dataclass(frozen=True)
class Rule:
    code: str
    description: str
    severity: Severity
    given: Selector
    then: Predicate
    options: dict = field(default_factory=dict)
    # replaces the predicate's own wording when set
    message: str | None = None


# ── Selectors ───────────────────────────────────────────────────────


def root(document: dict) -> Selection:
    yield document, []


def paths_object(document: dict) -> Selection:
    if isinstance(document.get("paths"), dict):
        yield document["paths"], ["paths"]


def path_items(document: dict) -> Selection:
    paths_map = document.get("paths")
    if not isinstance(paths_map, dict):
        return
    for path_key, path_item in paths_map.items():
        if isinstance(path_item, dict):
            yield path_item, ["paths", path_key]


def operations(*methods: str) -> Selector:
    methods = methods or HTTP_METHODS

    def select(document: dict) -> Selection:
        for path_key, method, operation in iter_operations(document.get("paths"), methods):
            yield operation, ["paths", path_key, method]

    return select


def collection_gets(document: dict) -> Selection:
    """get operations on paths that do not end in a parameter, i.e. collections."""
    for operation, path in operations("get")(document):
        if not str(path[1]).endswith("}"):
            yield operation, path


def operation_responses(document: dict) -> Selection:
    for path_key, method, operation in iter_operations(document.get("paths")):
        if isinstance(operation.get("responses"), dict):
            yield operation["responses"], ["paths", path_key, method, "responses"]


def responses_with_code(code: str) -> Selector:
    def select(document: dict) -> Selection:
        for responses_map, path in operation_responses(document):
            for key, response in responses_map.items():
                if str(key) == code:
                    yield response, [*path, str(key)]

    return select


def all_parameters(document: dict) -> Selection:
    """Path-level and operation-level parameters, with local $refs followed."""
    for path_item, path in path_items(document):
        for index, param in enumerate(parameters_of(path_item)):
            yield deref(document, param), [*path, "parameters", index]
        for method in HTTP_METHODS:
            operation = path_item.get(method)
            for index, param in enumerate(parameters_of(operation)):
                yield deref(document, param), [*path, method, "parameters", index]


def path_parameters(document: dict) -> Selection:
    for param, path in all_parameters(document):
        if isinstance(param, dict) and param.get("in") == "path":
            yield param, path


def named_schema_entries(document: dict) -> Selection:
    located = named_schemas(document)
    if located is None:
        return
    for name, schema in located.node.items():
        yield schema, [*located.path, name]


def operation_body_schemas(document: dict) -> Selection:
    """Request body and response schemas of every operation, every media type."""
    dialect = detect_dialect(document)
    for path_key, method, operation in iter_operations(document.get("paths")):
        for located in body_schemas(operation, dialect):
            yield located.node, ["paths", path_key, method, *located.path]


def chain(*selectors: Selector) -> Selector:
    def select(document: dict) -> Selection:
        for selector in selectors:
            yield from selector(document)

    return select


def definitions_entries(document: dict) -> Selection:
    definitions = document.get("definitions")
    if isinstance(definitions, dict):
        for name, schema in definitions.items():
            yield schema, ["definitions", name]


def definitions_object(document: dict) -> Selection:
    if isinstance(document.get("definitions"), dict):
        yield document["definitions"], ["definitions"]


# ── Rules ───────────────────────────────────────────────────────────

RULES: tuple[Rule, ...] = (
    Rule(
        "lmn-version-policy",
        "Paths start with a major version segment such as /v1.",
        Severity.ERROR,
        path_items,
        paths.api_version,
    ),
    Rule(
        "lmn-path-case-convention",
        "Static path segments are kebab-case.",
        Severity.ERROR,
        path_items,
        paths.path_case_convention,
    ),
    Rule(
        "lmn-path-characters",
        "Paths only use recommended characters.",
        Severity.ERROR,
        path_items,
        paths.path_characters,
    ),
    Rule(
        "lmn-path-parameter-names",
        "A static segment is followed by the same parameter name in every path.",
        Severity.WARNING,
        paths_object,
        paths.path_parameter_names,
    ),
    Rule(
        "lmn-parameter-order",
        "Path parameters are declared in template order.",
        Severity.WARNING,
        paths_object,
        paths.path_parameter_order,
    ),
    Rule(
        "lmn-parameter-names-unique",
        "Parameter names are unique, ignoring case.",
        Severity.WARNING,
        path_items,
        parameters.unique_parameter_names,
    ),
    Rule(
        "lmn-parameter-names-convention",
        "Path and query parameters are snake_case, headers Kebab-Case.",
        Severity.WARNING,
        all_parameters,
        naming.parameter_names_convention,
    ),
    Rule(
        "lmn-parameter-description",
        "Parameters have a description.",
        Severity.WARNING,
        all_parameters,
        parameters.parameter_description,
    ),
    Rule(
        "lmn-path-parameter-schema",
        "Path parameters are bounded strings.",
        Severity.WARNING,
        path_parameters,
        parameters.path_parameter_schema,
    ),
    Rule(
        "lmn-formdata",
        "formData parameters are discouraged.",
        Severity.INFO,
        all_parameters,
        parameters.formdata,
    ),
    Rule(
        "lmn-operation-summary-or-description",
        "Operations have a summary or description.",
        Severity.WARNING,
        operations(),
        requests.operation_summary_or_description,
    ),
    Rule(
        "lmn-request-body-not-allowed",
        "get and delete operations take no body.",
        Severity.ERROR,
        operations("get", "delete"),
        requests.request_body_not_allowed,
    ),
    Rule(
        "lmn-request-body-optional",
        "Request bodies are marked required.",
        Severity.INFO,
        operations("put", "post", "patch"),
        requests.request_body_optional,
    ),
    Rule(
        "lmn-request-body-type",
        "Request bodies are not bare arrays.",
        Severity.WARNING,
        operations("put", "post", "patch"),
        requests.request_body_type,
    ),
    Rule(
        "lmn-put-request-and-response-body",
        "PUT request and response bodies share a schema.",
        Severity.WARNING,
        operations("put"),
        requests.put_request_response_schema,
    ),
    Rule(
        "lmn-pagination-parameters",
        "Collection get operations use the standard pagination parameters.",
        Severity.WARNING,
        collection_gets,
        pagination.pagination_parameters,
    ),
    Rule(
        "lmn-default-response",
        "Operations declare a default response.",
        Severity.WARNING,
        operations(),
        responses.default_response,
    ),
    Rule(
        "lmn-delete-response-codes",
        "delete operations return 204 or 202.",
        Severity.WARNING,
        operations("delete"),
        responses.delete_response_codes,
    ),
    Rule(
        "lmn-204-no-response-body",
        "204 responses have no body.",
        Severity.WARNING,
        responses_with_code("204"),
        responses.no_response_body,
    ),
    Rule(
        "lmn-error-response",
        "Error responses use the standard error envelope.",
        Severity.WARNING,
        operation_responses,
        responses.error_response,
    ),
    Rule(
        "lmn-datetime-naming-convention",
        'date-time properties and parameters end in "_at".',
        Severity.WARNING,
        root,
        naming.naming_convention,
        {"type": "date-time", "match": "_at$"},
        message='Use an "_at" suffix in names of date-time values.',
    ),
    Rule(
        "lmn-boolean-naming-convention",
        'Boolean properties and parameters do not use an "is_" prefix.',
        Severity.WARNING,
        root,
        naming.naming_convention,
        {"type": "boolean", "notMatch": "^is_"},
        message='Do not use an "is_" prefix in names of boolean values.',
    ),
    Rule(
        "lmn-schema-names-convention",
        "Named schemas are PascalCase.",
        Severity.WARNING,
        named_schema_entries,
        naming.schema_names_convention,
    ),
    Rule(
        "lmn-schema-description-or-title",
        "Named schemas have a description or title.",
        Severity.WARNING,
        named_schema_entries,
        schemas.schema_description_or_title,
    ),
    Rule(
        "lmn-property-names-convention",
        "Property names are snake_case.",
        Severity.WARNING,
        named_schema_entries,
        naming.property_names_convention,
    ),
    Rule(
        "lmn-property-description",
        "Properties have a description.",
        Severity.WARNING,
        named_schema_entries,
        schemas.property_description,
    ),
    Rule(
        "lmn-property-type",
        "Properties declare a type.",
        Severity.WARNING,
        named_schema_entries,
        schemas.property_type,
    ),
    Rule(
        "lmn-property-default-not-allowed",
        "Required properties have no default.",
        Severity.WARNING,
        named_schema_entries,
        schemas.default_value_not_allowed_for_required_properties,
    ),
    Rule(
        "lmn-schema-type-and-format",
        "Schemas use a well-defined type and format.",
        Severity.WARNING,
        chain(operation_body_schemas, named_schema_entries),
        schemas.schema_type_and_format,
    ),
    Rule(
        "lmn-readonly-properties-in-response-only-schema",
        "Response-only schemas do not mark properties readOnly.",
        Severity.WARNING,
        definitions_entries,
        schemas.readonly_in_response_only_schema,
    ),
    Rule(
        "lmn-unused-definition",
        "Every definition is referenced.",
        Severity.WARNING,
        definitions_object,
        schemas.unused_definition,
    ),
)

RULES_BY_CODE: dict[str, Rule] = {rule.code: rule for rule in RULES}


def _assert_registry_invariants() -> None:
    """Fail fast on duplicate codes; called at import time."""
    counts = Counter(rule.code for rule in RULES)
    dupes = sorted(code for code, count in counts.items() if count > 1)
    if dupes:
        raise RuntimeError(f"Duplicate rule codes: {dupes}")


_assert_registry_invariants()


def get_rule(code: str) -> Rule:
    return RULES_BY_CODE[code]
