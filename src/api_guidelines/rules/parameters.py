"""Rules over parameters: uniqueness, path parameter schemas, descriptions, formData."""

from typing import Any

from api_guidelines.document.base import Finding, RuleContext
from api_guidelines.document.detect import parameters_of
from api_guidelines.document.pointer import extend, resolve

URL_MAX_LENGTH = 2083

UNIQUE_METHODS = ("get", "post", "put", "patch", "delete", "options", "head")


def canonical(name: Any) -> Any:
    """Canonical casing used for duplicate detection."""
    return name.lower() if isinstance(name, str) else name


def _param_names(owner: Any) -> list:
    return [param.get("name") if isinstance(param, dict) else None for param in parameters_of(owner)]


def _duplicates(names: list) -> list:
    seen = set()
    duplicates = []
    for name in names:
        key = canonical(name)
        if key is None:
            continue
        if key in seen:
            if key not in duplicates:
                duplicates.append(key)
        else:
            seen.add(key)
    return duplicates


def unique_parameter_names(path_item: Any, _options: dict, context: RuleContext) -> list[Finding]:
    """Parameter names must be unique, ignoring case and ``in`` location.

    Path-level parameters are checked among themselves, then each method's
    parameters together with the path-level ones. Every occurrence after
    the first is reported against the array that holds it.
    """
    if not isinstance(path_item, dict):
        return []

    findings = []
    path_names = _param_names(path_item)

    for dup in _duplicates(path_names):
        keys = [index for index, name in enumerate(path_names) if canonical(name) == dup]
        first = f"parameters.{keys[0]}"
        for key in keys[1:]:
            findings.append(
                Finding(
                    message=f"Duplicate parameter name (ignoring case) with {first}.",
                    path=extend(context.path, "parameters", key, "name"),
                )
            )

    for method in UNIQUE_METHODS:
        operation = path_item.get(method)
        if not isinstance(operation, dict) or not isinstance(operation.get("parameters"), list):
            continue
        all_names = path_names + _param_names(operation)
        offset = len(path_names)

        for dup in _duplicates(all_names):
            keys = [index for index, name in enumerate(all_names) if canonical(name) == dup]
            first = f"parameters.{keys[0]}" if keys[0] < offset else f"{method}.parameters.{keys[0] - offset}"
            for key in keys[1:]:
                if key >= offset:
                    findings.append(
                        Finding(
                            message=f"Duplicate parameter name (ignoring case) with {first}.",
                            path=extend(context.path, method, "parameters", key - offset, "name"),
                        )
                    )
    return findings


def path_parameter_schema(param: Any, _options: dict, context: RuleContext) -> list[Finding]:
    """Path parameters are strings; on put/patch returning 201 they are also bounded.

    The bound is a ``maxLength`` below the practical URL limit plus a
    ``pattern`` for the allowed characters. OAS3 parameters carry these
    on ``schema``; OAS2 parameters carry them inline.
    """
    if not isinstance(param, dict):
        return []
    if not param.get("in") or not param.get("name") or param.get("in") != "path":
        return []

    findings = []
    path = list(context.path)
    if isinstance(param.get("schema"), dict):
        schema = param["schema"]
        path = extend(path, "schema")
    else:
        schema = param

    if schema.get("type") != "string":
        findings.append(Finding(message="Path parameter should be defined as type: string.", path=extend(path, "type")))

    api_path = context.path[1] if len(context.path) > 1 else ""
    method = context.path[2] if len(context.path) > 2 else ""
    if not isinstance(api_path, str) or not api_path.endswith("{" + str(param["name"]) + "}"):
        return findings
    if method not in ("put", "patch"):
        return findings

    responses = resolve(context.document.data, ["paths", api_path, method, "responses"])
    if not isinstance(responses, dict) or not ("201" in responses or 201 in responses):
        return findings

    max_length = schema.get("maxLength")
    pattern = schema.get("pattern")
    if not max_length and not pattern:
        findings.append(
            Finding(
                message="Path parameter should specify a maximum length (maxLength) and characters allowed (pattern).",
                path=path,
            )
        )
    elif not max_length:
        findings.append(Finding(message="Path parameter should specify a maximum length (maxLength).", path=path))
    elif isinstance(max_length, (int, float)) and max_length >= URL_MAX_LENGTH:
        findings.append(
            Finding(
                message=f"Path parameter maximum length should be less than {URL_MAX_LENGTH}",
                path=extend(path, "maxLength"),
            )
        )
    elif not pattern:
        findings.append(Finding(message="Path parameter should specify characters allowed (pattern).", path=path))
    return findings


def parameter_description(param: Any, _options: dict, context: RuleContext) -> list[Finding]:
    """A parameter needs a description, on itself or on its schema."""
    if not isinstance(param, dict):
        return []
    if param.get("description"):
        return []
    schema = param.get("schema")
    if isinstance(schema, dict) and schema.get("description"):
        return []
    return [Finding(message="Parameter should have a description.", path=list(context.path))]


def formdata(param: Any, _options: dict, context: RuleContext) -> list[Finding]:
    if not isinstance(param, dict) or param.get("in") != "formData":
        return []
    return [Finding(message="Avoid formData parameters; use a JSON request body instead.", path=list(context.path))]
