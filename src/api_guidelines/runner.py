"""Applies registered rules to a document and collects diagnostics."""

import logging
import time
from typing import Any, Iterable

from api_guidelines.analysis.reachability import ReachabilityCache
from api_guidelines.config import LintConfig
from api_guidelines.document.base import Diagnostic, DocumentRef, RuleContext, Severity
from api_guidelines.ruleset import RULES, Rule

logger = logging.getLogger(__name__)


def select_rules(config: LintConfig | None = None, rules: Iterable[Rule] = RULES) -> list[Rule]:
    """Filter *rules* by the allow-list and disable-list in *config*."""
    config = config or LintConfig()
    selected = []
    for rule in rules:
        if config.rules and rule.code not in config.rules:
            continue
        if rule.code in config.disable:
            continue
        selected.append(rule)
    return selected


def run_rule(rule: Rule, document: dict, reachability: ReachabilityCache, severity: Severity | None = None) -> list[Diagnostic]:
    """Evaluate one rule over every node its selector yields."""
    severity = severity or rule.severity
    ref = DocumentRef(data=document)
    diagnostics = []

    for node, path in rule.given(document):
        context = RuleContext(path=list(path), document=ref, reachability=reachability)
        try:
            findings = rule.then(node, dict(rule.options), context) or []
        except Exception:
            logger.exception("Rule %s failed at %s", rule.code, path)
            diagnostics.append(
                Diagnostic(
                    code=rule.code,
                    severity=Severity.ERROR,
                    message=f"Rule {rule.code} could not be evaluated.",
                    path=list(path),
                )
            )
            continue
        for finding in findings:
            diagnostics.append(
                Diagnostic(code=rule.code, severity=severity, message=rule.message or finding.message, path=finding.path)
            )
    return diagnostics


def run_rules(
    document: Any,
    rules: Iterable[Rule] | None = None,
    config: LintConfig | None = None,
    reachability: ReachabilityCache | None = None,
) -> list[Diagnostic]:
    """Run *rules* (default: all registered rules filtered by *config*) over *document*.

    Diagnostics come out in rule order, then in each rule's traversal order.
    A ReachabilityCache is created for the run unless one is passed in.
    """
    if not isinstance(document, dict):
        logger.warning("Document root is not a mapping; nothing to check")
        return []

    config = config or LintConfig()
    selected = select_rules(config, RULES if rules is None else rules)
    reachability = reachability if reachability is not None else ReachabilityCache()

    diagnostics: list[Diagnostic] = []
    for rule in selected:
        started = time.perf_counter()
        found = run_rule(rule, document, reachability, config.severity.get(rule.code))
        logger.debug("%s: %d finding(s) in %.1f ms", rule.code, len(found), (time.perf_counter() - started) * 1000)
        diagnostics.extend(found)
    return diagnostics


def should_fail(diagnostics: Iterable[Diagnostic], fail_on: Severity) -> bool:
    """True when any diagnostic is at least as severe as *fail_on*."""
    return any(d.severity.rank <= fail_on.rank for d in diagnostics)
