"""CLI entry point for api-guidelines."""

import json
import logging
from pathlib import Path

import click

from api_guidelines.config import ConfigError, LintConfig, build_config, load_config
from api_guidelines.document.base import Diagnostic, Severity
from api_guidelines.document.loader import DocumentLoadError, load_document
from api_guidelines.document.pointer import to_pointer
from api_guidelines.ruleset import RULES
from api_guidelines.runner import run_rules, should_fail

logger = logging.getLogger(__name__)

SEVERITY_CHOICES = [s.value for s in Severity]


def _resolve_config(config_path: Path | None, rules: tuple[str, ...], disable: tuple[str, ...], fail_on: str | None) -> LintConfig:
    """Load the config file (if any) and apply command-line overrides."""
    base = load_config(config_path) if config_path else build_config(None)
    return base.merged(
        rules=list(rules),
        disable=[*base.disable, *disable] if disable else None,
        fail_on=fail_on,
    )


def _format_text(diagnostics: list[Diagnostic]) -> str:
    lines = [f"{d.severity.value:<7} {d.code:<48} {to_pointer(d.path) or '/'}  {d.message}" for d in diagnostics]
    counts = {s: sum(1 for d in diagnostics if d.severity is s) for s in Severity}
    summary = ", ".join(f"{n} {s.value}" for s, n in counts.items() if n)
    lines.append(f"{len(diagnostics)} problem(s)" + (f" ({summary})" if summary else ""))
    return "\n".join(lines)


def _format_json(diagnostics: list[Diagnostic]) -> str:
    return json.dumps([d.model_dump(mode="json") for d in diagnostics], indent=2)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """API Guidelines: lint OpenAPI 2.0 and 3.x documents against API design rules."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.option("--format", "fmt", default="text", type=click.Choice(["text", "json"]), help="Output format.")
@click.option("--rule", "rules", multiple=True, help="Only run this rule code (repeatable).")
@click.option("--disable", multiple=True, help="Skip this rule code (repeatable).")
@click.option("--fail-on", default=None, type=click.Choice(SEVERITY_CHOICES), help="Exit 1 when a finding is at least this severe.")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, path_type=Path), help="YAML lint configuration.")
def lint(doc_path: Path, fmt: str, rules: tuple[str, ...], disable: tuple[str, ...], fail_on: str | None, config_path: Path | None):
    """Check an OpenAPI document against the guideline rules."""
    try:
        config = _resolve_config(config_path, rules, disable, fail_on)
        document = load_document(doc_path)
    except (ConfigError, DocumentLoadError) as e:
        raise click.ClickException(str(e)) from e

    logger.debug("Linting %s", doc_path)
    diagnostics = run_rules(document, config=config)

    click.echo(_format_json(diagnostics) if fmt == "json" else _format_text(diagnostics))

    if should_fail(diagnostics, config.fail_on):
        click.get_current_context().exit(1)


@main.command("rules")
def list_rules():
    """List every rule code with its default severity."""
    for rule in RULES:
        click.echo(f"{rule.code:<48} {rule.severity.value:<7} {rule.description}")
