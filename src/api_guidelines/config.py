"""Lint configuration: which rules run, their severities, and the failure threshold."""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from api_guidelines.document.base import Severity
from api_guidelines.ruleset import RULES_BY_CODE


class ConfigError(ValueError):
    """The configuration names unknown rules or is malformed."""


def _check_codes(codes) -> None:
    unknown = sorted(code for code in codes if code not in RULES_BY_CODE)
    if unknown:
        raise ValueError(f"unknown rule code(s): {', '.join(unknown)}")


class LintConfig(BaseModel):
    rules: list[str] = Field(default_factory=list)  # empty = every rule
    disable: list[str] = Field(default_factory=list)
    severity: dict[str, Severity] = Field(default_factory=dict)
    fail_on: Severity = Severity.ERROR

    @field_validator("rules", "disable")
    @classmethod
    def _known_codes(cls, codes: list[str]) -> list[str]:
        _check_codes(codes)
        return codes

    @field_validator("severity")
    @classmethod
    def _known_severity_codes(cls, severity: dict[str, Severity]) -> dict[str, Severity]:
        _check_codes(severity)
        return severity

    def merged(self, **overrides) -> "LintConfig":
        """Return a copy with every non-empty override applied."""
        data = self.model_dump()
        for key, value in overrides.items():
            if value:
                data[key] = value
        return build_config(data)


def build_config(data: dict | None) -> LintConfig:
    try:
        return LintConfig(**(data or {}))
    except ValidationError as e:
        raise ConfigError(str(e)) from e


def load_config(file_path: Path) -> LintConfig:
    """Read a YAML configuration file."""
    try:
        data = yaml.safe_load(file_path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot load config {file_path}: {e}") from e
    if data is not None and not isinstance(data, dict):
        raise ConfigError(f"Config {file_path} must be a mapping")
    return build_config(data)
