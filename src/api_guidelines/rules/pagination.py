"""Pagination, sorting and field-selection query parameters.

Collection operations take some of ``limit``, ``offset``, ``sort`` and
``fields``:

    GET /v1/users?limit=10&offset=20&fields=id,name,email
    GET /v1/users?sort=name asc,created_at desc

Each recognised parameter is checked for type, optionality, default
value and its standard description. ``sort`` examples must use ``asc``
or ``desc`` as the direction when one is given.
"""

from typing import Any, Callable

from pydantic import BaseModel

from api_guidelines.document.base import Finding, PathSegment, RuleContext
from api_guidelines.document.pointer import deref, extend

PAGINATION_PARAMS = ("limit", "offset", "sort", "fields")
SORT_DIRECTIONS = ("asc", "desc")

MISSING_MESSAGE = "Pagination parameters (limit, offset, sort, or fields) are missing."

_UNSET = object()


class ExpectedParameter(BaseModel):
    name: str
    types: tuple[str, ...]
    required: bool = False
    default: int | None = None
    description: str


EXPECTED_PARAMETERS = (
    ExpectedParameter(
        name="limit",
        types=("integer",),
        description="Specifies the maximum number of items to return in a single response.",
    ),
    ExpectedParameter(
        name="offset",
        types=("integer",),
        default=0,
        description="Specifies the number of items to skip before starting to collect the result set.",
    ),
    ExpectedParameter(
        name="filter",
        types=("string",),
        description="Allows filtering of the results based on certain criteria. Typically, this is a string value.",
    ),
    ExpectedParameter(
        name="sort",
        types=("string", "array"),
        description=(
            "Specifies the order in which results should be returned. Can be a single field or an array "
            "of fields, optionally followed by 'asc' or 'desc' to define the sorting direction."
        ),
    ),
    ExpectedParameter(
        name="fields",
        types=("string", "array"),
        description="Specifies which fields to include in the response. Can be a string or an array of strings.",
    ),
)


def _lower_name(param: Any) -> str | None:
    name = param.get("name") if isinstance(param, dict) else None
    return name.lower() if isinstance(name, str) else None


def _schema_of(param: dict, param_path: list[PathSegment]) -> tuple[dict, list[PathSegment]]:
    # OAS3 nests type information under schema; OAS2 keeps it inline
    schema = param.get("schema")
    if isinstance(schema, dict):
        return schema, extend(param_path, "schema")
    return param, param_path


class _Checker:
    def __init__(self):
        self.findings: list[Finding] = []

    def report(self, message: str, path: list[PathSegment]) -> None:
        self.findings.append(Finding(message=message, path=path))

    def check_type(self, schema: dict, schema_path, expected: ExpectedParameter) -> None:
        actual = schema.get("type")
        if len(expected.types) > 1:
            if actual not in expected.types:
                self.report(
                    f"{expected.name} parameter must be of type {' or '.join(expected.types)}",
                    extend(schema_path, "type"),
                )
            elif actual == "array":
                items = schema.get("items")
                if not isinstance(items, dict) or items.get("type") != "string":
                    self.report(
                        f"{expected.name} parameter array items must be of type string",
                        extend(schema_path, "items", "type"),
                    )
        elif actual != expected.types[0]:
            self.report(f"{expected.name} parameter must be of type {expected.types[0]}", extend(schema_path, "type"))

    def check_required(self, param: dict, param_path, expected: ExpectedParameter) -> None:
        if expected.required and not param.get("required"):
            self.report(f"{expected.name} parameter must be required", extend(param_path, "required"))
        elif not expected.required and param.get("required"):
            self.report(f"{expected.name} parameter must be optional", extend(param_path, "required"))

    def check_default(self, schema: dict, schema_path, expected: ExpectedParameter) -> None:
        if expected.default is None:
            return
        value = schema.get("default", _UNSET)
        if value is _UNSET or value != expected.default or isinstance(value, bool):
            self.report(
                f"{expected.name} parameter must have a default value of {expected.default}",
                extend(schema_path, "default"),
            )

    def check_description(self, param: dict, param_path, expected: ExpectedParameter) -> None:
        if param.get("description") != expected.description:
            self.report(
                f'{expected.name} parameter should have the following description: "{expected.description}"',
                extend(param_path, "description"),
            )

    def check_sort_value(self, value: Any, label: str, example_path) -> None:
        if not isinstance(value, str):
            return
        # a single example may list several clauses: "name asc,created_at desc"
        for clause in value.split(","):
            parts = clause.split()
            if len(parts) == 2 and parts[1].lower() not in SORT_DIRECTIONS:
                self.report(
                    f"{label} parameter must end with either 'asc' or 'desc' if direction is specified.",
                    example_path,
                )
            elif len(parts) > 2:
                self.report(f"{label} parameter must be in the format 'field asc' or 'field desc'.", example_path)

    def check_sort(self, param: dict, schema: dict, schema_path, expected: ExpectedParameter) -> None:
        example_path = extend(schema_path, "example")
        if schema.get("type") == "string":
            self.check_sort_value(param.get("example") or schema.get("example"), expected.name, example_path)
        elif schema.get("type") == "array":
            items = schema.get("items")
            if not isinstance(items, dict) or items.get("type") != "string":
                return
            examples = schema.get("example") or []
            if isinstance(examples, list):
                for index, item in enumerate(examples):
                    self.check_sort_value(item, f"{expected.name}[{index}]", example_path)


CustomCheck = Callable[[_Checker, dict, dict, list, ExpectedParameter], None]

CUSTOM_CHECKS: dict[str, CustomCheck] = {
    "sort": _Checker.check_sort,
}


def pagination_parameters(operation: Any, _options: dict, context: RuleContext) -> list[Finding]:
    """Validate the pagination query parameters of a collection operation."""
    if not isinstance(operation, dict):
        return []

    base = list(context.path)
    params = operation.get("parameters")
    if not isinstance(params, list) or not params:
        return [Finding(message=MISSING_MESSAGE, path=base)]

    params = [deref(context.document.data, param) for param in params]
    names = [_lower_name(param) for param in params]
    if not any(name in PAGINATION_PARAMS for name in names):
        return [Finding(message=MISSING_MESSAGE, path=base)]

    checker = _Checker()
    for expected in EXPECTED_PARAMETERS:
        if expected.name not in names:
            continue
        index = names.index(expected.name)
        param = params[index]
        param_path = extend(base, "parameters", index)
        schema, schema_path = _schema_of(param, param_path)

        checker.check_type(schema, schema_path, expected)
        checker.check_required(param, param_path, expected)
        checker.check_default(schema, schema_path, expected)
        checker.check_description(param, param_path, expected)

        custom = CUSTOM_CHECKS.get(expected.name)
        if custom is not None:
            custom(checker, param, schema, schema_path, expected)

    return checker.findings
