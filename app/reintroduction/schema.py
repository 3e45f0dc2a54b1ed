"""
Schema Boundary

Structural validation of raw (JSON-like) input at the edge of the engine.

parse_protocol_state() never raises for bad data: it returns a SchemaResult
that is either ok (with the parsed ProtocolState) or a list of path-qualified
issues. The orchestrator turns a failed result into SchemaValidationError,
because malformed input is a caller-contract violation and not something
the engine can decide on.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from .models import ProtocolState, parse_iso_datetime


class SchemaIssue(BaseModel):
    """One structural problem, located by its JSON path."""
    path: str = Field(description="Dotted JSON path e.g. 'currentTest.doses.0.dayNumber'")
    reason: str

    class Config:
        frozen = True


class SchemaResult(BaseModel):
    """Discriminated parse outcome: ok with value, or not ok with issues."""
    ok: bool
    value: Optional[ProtocolState] = None
    issues: List[SchemaIssue] = Field(default_factory=list)

    class Config:
        frozen = True


class SchemaValidationError(ValueError):
    """Input failed structural validation. Fatal for the call."""

    def __init__(self, issues: List[SchemaIssue], subject: str = "ProtocolState"):
        self.issues = issues
        self.subject = subject
        summary = "; ".join(f"{i.path or '<root>'}: {i.reason}" for i in issues[:5])
        if len(issues) > 5:
            summary += f"; (+{len(issues) - 5} more)"
        super().__init__(f"Invalid {subject}: {summary}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "SCHEMA_VALIDATION_ERROR",
            "subject": self.subject,
            "issues": [issue.model_dump() for issue in self.issues],
        }


def issues_from_validation_error(exc: ValidationError) -> List[SchemaIssue]:
    """Flatten pydantic errors into path/reason pairs."""
    return [
        SchemaIssue(
            path=".".join(str(part) for part in error["loc"]),
            reason=error["msg"],
        )
        for error in exc.errors()
    ]


def parse_protocol_state(data: Union[ProtocolState, Dict[str, Any]]) -> SchemaResult:
    """
    Validate a raw protocol snapshot against the structural schema.

    Already-parsed ProtocolState instances pass through unchanged.
    """
    if isinstance(data, ProtocolState):
        return SchemaResult(ok=True, value=data)

    if not isinstance(data, dict):
        return SchemaResult(
            ok=False,
            issues=[SchemaIssue(path="", reason=f"expected an object, got {type(data).__name__}")],
        )

    try:
        state = ProtocolState.model_validate(data)
    except ValidationError as exc:
        return SchemaResult(ok=False, issues=issues_from_validation_error(exc))

    return SchemaResult(ok=True, value=state)


def parse_timestamp(value: Union[datetime, str], field: str = "now") -> datetime:
    """
    Parse the injected current time.

    Raises:
        SchemaValidationError: value is not an ISO-8601 datetime
    """
    try:
        return parse_iso_datetime(value)
    except ValueError as exc:
        raise SchemaValidationError([SchemaIssue(path=field, reason=str(exc))], subject=field)
