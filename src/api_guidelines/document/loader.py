"""Read an OpenAPI / Swagger document from disk.

YAML is a superset of JSON, so yaml.safe_load handles both; a JSON
parse is attempted as a fallback for files the YAML loader rejects
(e.g. tabs in indentation).
"""

import json
import logging
from pathlib import Path

import yaml

from api_guidelines.document.detect import detect_dialect

logger = logging.getLogger(__name__)


class DocumentLoadError(ValueError):
    """The file could not be read as an OpenAPI document."""


def load_document(file_path: Path) -> dict:
    """Parse *file_path* and return the root mapping."""
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise DocumentLoadError(f"Cannot read {file_path}: {e}") from e

    return parse_document(text, source=str(file_path))


def parse_document(text: str, source: str = "<string>") -> dict:
    """Parse YAML or JSON *text* into the root mapping."""
    try:
        doc = yaml.safe_load(text)
    except yaml.YAMLError as yaml_error:
        try:
            doc = json.loads(text)
        except (json.JSONDecodeError, ValueError):
            raise DocumentLoadError(f"{source} is neither valid YAML nor JSON: {yaml_error}") from yaml_error

    if not isinstance(doc, dict):
        raise DocumentLoadError(f"{source} does not contain a mapping at its root")

    if detect_dialect(doc) is None:
        logger.warning("%s declares neither swagger: '2.0' nor openapi: '3.x'", source)
    return doc
