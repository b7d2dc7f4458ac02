"""Shared data models for rule evaluation.

Predicates receive a node plus a RuleContext and hand back Finding
objects; the runner wraps findings into Diagnostic records.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

PathSegment = str | int


class Severity(str, Enum):
    """Diagnostic severity, ordered from most to least severe."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    HINT = "hint"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.ERROR: 0,
    Severity.WARNING: 1,
    Severity.INFO: 2,
    Severity.HINT: 3,
}


class Finding(BaseModel):
    """A single guideline violation located inside the document."""

    model_config = ConfigDict(frozen=True)

    message: str
    path: list[PathSegment]


class DocumentRef(BaseModel):
    """Wrapper around the parsed root document."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    data: Any


class RuleContext(BaseModel):
    """Location of the node under evaluation plus the whole document."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    path: list[PathSegment] = Field(default_factory=list)
    document: DocumentRef
    reachability: Any = None  # ReachabilityCache; owned by the caller

    def at(self, *segments: PathSegment) -> "RuleContext":
        """Return a copy of this context positioned at a child location."""
        return self.model_copy(update={"path": [*self.path, *segments]})


class Diagnostic(BaseModel):
    """A Finding attributed to a rule code and severity by the runner."""

    model_config = ConfigDict(frozen=True)

    code: str
    severity: Severity
    message: str
    path: list[PathSegment]
