"""Rules over path templates: versioning, casing, characters and path parameters."""

import re
from typing import Any

from api_guidelines.document.base import Finding, RuleContext
from api_guidelines.document.detect import parameters_of
from api_guidelines.document.pointer import extend

VERSION_RE = re.compile(r"^/v\d+(/|$)")
PARAM_NAME_RE = re.compile(r"[^{}]+(?=})")
KEBAB_SEGMENT_RE = re.compile(r"^[a-z0-9]+([-.][a-z0-9]+)*$")
PATH_CHARACTERS_RE = re.compile(r"^(/([A-Za-z0-9\-._~:]|\{[^{}/]+\})*)+$")

ORDER_METHODS = ("get", "post", "put", "patch", "delete", "options", "head")


def _path_key(context: RuleContext) -> str | None:
    key = context.path[-1] if context.path else None
    return key if isinstance(key, str) else None


def api_version(_node: Any, _options: dict, context: RuleContext) -> list[Finding]:
    """The first path segment must be a version identifier such as ``v1``."""
    key = _path_key(context)
    if key is None:
        return []
    if VERSION_RE.match(key):
        return []
    return [
        Finding(
            message="The path should contain a version identifier (e.g., /v1/ or /v2/).",
            path=list(context.path),
        )
    ]


def path_case_convention(_node: Any, _options: dict, context: RuleContext) -> list[Finding]:
    """Static path segments must be lower-case kebab-case.

    A trailing custom-method suffix (``/users:search``) is ignored.
    """
    key = _path_key(context)
    if key is None:
        return []
    for segment in key.split("/")[1:]:
        if not segment or "{" in segment:
            continue
        static = segment.split(":", 1)[0]
        if static and not KEBAB_SEGMENT_RE.match(static):
            return [Finding(message="Static path segments should be kebab-case.", path=list(context.path))]
    return []


def path_characters(_node: Any, _options: dict, context: RuleContext) -> list[Finding]:
    key = _path_key(context)
    if key is None or PATH_CHARACTERS_RE.match(key):
        return []
    return [Finding(message="Path contains non-recommended characters.", path=list(context.path))]


def path_parameter_names(paths: Any, _options: dict, context: RuleContext) -> list[Finding]:
    """The parameter that follows a static segment must be named the same in every path.

    The first template seen for a segment fixes the expected name; later
    templates using a different name are reported.
    """
    if not isinstance(paths, dict):
        return []

    findings = []
    param_for_segment: dict[str, str] = {}

    for path_key in paths:
        if not isinstance(path_key, str):
            continue
        segments = path_key.split("/")[1:]
        for index, segment in enumerate(segments[1:]):
            if "}" not in segment:
                continue
            match = PARAM_NAME_RE.search(segment)
            if match is None:
                continue
            param_name = match.group(0)
            preceding = segments[index]

            if preceding not in param_for_segment:
                param_for_segment[preceding] = param_name
            elif param_for_segment[preceding] != param_name:
                findings.append(
                    Finding(
                        message=(
                            f'Inconsistent parameter names "{param_for_segment[preceding]}" '
                            f'and "{param_name}" for path segment "{preceding}".'
                        ),
                        path=extend(context.path, path_key),
                    )
                )
    return findings


def _path_param_names(owner: Any) -> list:
    return [
        param.get("name")
        for param in parameters_of(owner)
        if isinstance(param, dict) and param.get("in") == "path"
    ]


def _first_mismatch(declared: list, template: list[str], offset: int) -> int:
    for index, name in enumerate(declared):
        position = offset + index
        if position >= len(template) or name != template[position]:
            return index
    return -1


def path_parameter_order(paths: Any, _options: dict, context: RuleContext) -> list[Finding]:
    """Declared path parameters must follow the order of the ``{}`` placeholders.

    Path-level declarations come first; method-level declarations continue
    from where the path-level ones stop. Missing parameters are left to a
    different rule.
    """
    if not isinstance(paths, dict):
        return []

    findings = []
    for path_key, path_item in paths.items():
        if not isinstance(path_key, str) or not isinstance(path_item, dict):
            continue
        in_template = PARAM_NAME_RE.findall(path_key)
        if not in_template:
            continue

        path_level = _path_param_names(path_item)
        mismatch = _first_mismatch(path_level, in_template, 0)
        if 0 <= mismatch < len(in_template):
            findings.append(
                Finding(
                    message=f'Path parameter "{in_template[mismatch]}" should appear before "{path_level[mismatch]}".',
                    path=extend(context.path, path_key, "parameters"),
                )
            )
            continue

        offset = len(path_level)
        for method in ORDER_METHODS:
            operation = path_item.get(method)
            if not isinstance(operation, dict):
                continue
            declared = _path_param_names(operation)
            mismatch = _first_mismatch(declared, in_template, offset)
            if mismatch >= 0 and offset + mismatch < len(in_template):
                findings.append(
                    Finding(
                        message=(
                            f'Path parameter "{in_template[offset + mismatch]}" '
                            f'should appear before "{declared[mismatch]}".'
                        ),
                        path=extend(context.path, path_key, method, "parameters"),
                    )
                )
    return findings
