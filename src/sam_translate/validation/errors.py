"""Translation issue types and error codes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ValidationSeverity(Enum):
    """Severity level for translation issues."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class ValidationLocation:
    """Where in the template an issue was found."""

    logical_id: str | None = None
    """Logical ID of the offending resource, if the issue is resource-scoped."""

    property_path: str | None = None
    """Dotted property path inside the resource (e.g., 'Properties.Handler')."""

    section: str = "Resources"
    """Top-level template section."""

    def __str__(self) -> str:
        """Format location as a dotted template path."""
        parts = [self.section]
        if self.logical_id:
            parts.append(self.logical_id)
        if self.property_path:
            parts.append(self.property_path)
        return ".".join(parts)


@dataclass(frozen=True)
class ValidationIssue:
    """A single translation issue."""

    code: str
    """Stable error code (e.g., 'E200', 'W001')."""

    message: str
    """Human-readable message."""

    severity: ValidationSeverity
    """Severity level."""

    location: ValidationLocation | None = None
    """Location in the template."""

    suggestion: str | None = None
    """Suggested fix."""

    context: dict[str, Any] = field(default_factory=dict)
    """Additional context for debugging."""

    def __str__(self) -> str:
        """Format issue as string."""
        parts = [f"[{self.code}]", self.severity.value.upper(), self.message]
        if self.location:
            parts.append(f"at {self.location}")
        if self.suggestion:
            parts.append(f"(hint: {self.suggestion})")
        return " ".join(parts)


@dataclass
class ValidationResult:
    """Ordered collection of translation issues."""

    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def errors(self) -> list[ValidationIssue]:
        """Get only error-level issues."""
        return [i for i in self.issues if i.severity == ValidationSeverity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        """Get only warning-level issues."""
        return [i for i in self.issues if i.severity == ValidationSeverity.WARNING]

    @property
    def is_valid(self) -> bool:
        """Check if there are no errors (warnings are OK)."""
        return not self.errors

    def add(self, issue: ValidationIssue) -> None:
        """Add an issue to the result."""
        self.issues.append(issue)

    def add_error(
        self,
        code: str,
        message: str,
        logical_id: str | None = None,
        property_path: str | None = None,
        suggestion: str | None = None,
        section: str = "Resources",
        **context: Any,
    ) -> None:
        """Add an error issue."""
        self._add(
            ValidationSeverity.ERROR,
            code,
            message,
            ValidationLocation(logical_id, property_path, section),
            suggestion,
            context,
        )

    def add_warning(
        self,
        code: str,
        message: str,
        logical_id: str | None = None,
        property_path: str | None = None,
        suggestion: str | None = None,
        section: str = "Resources",
        **context: Any,
    ) -> None:
        """Add a warning issue."""
        self._add(
            ValidationSeverity.WARNING,
            code,
            message,
            ValidationLocation(logical_id, property_path, section),
            suggestion,
            context,
        )

    def _add(
        self,
        severity: ValidationSeverity,
        code: str,
        message: str,
        location: ValidationLocation,
        suggestion: str | None,
        context: dict[str, Any],
    ) -> None:
        self.add(
            ValidationIssue(
                code=code,
                message=message,
                severity=severity,
                location=location,
                suggestion=suggestion,
                context=context,
            )
        )

    def logical_ids(self) -> list[str]:
        """Logical IDs named by error issues, in first-seen order."""
        seen: dict[str, None] = {}
        for issue in self.errors:
            if issue.location and issue.location.logical_id:
                seen.setdefault(issue.location.logical_id, None)
        return list(seen)

    def merge(self, other: ValidationResult) -> None:
        """Merge another result into this one."""
        self.issues.extend(other.issues)


class ErrorCodes:
    """Stable translation error codes."""

    # E0xx - Document errors
    E001_INVALID_DOCUMENT = "E001"
    E002_MISSING_RESOURCES = "E002"
    E003_INVALID_RESOURCE = "E003"
    E004_UNKNOWN_GLOBALS_SECTION = "E004"

    # E1xx - Logical ID errors
    E100_DUPLICATE_LOGICAL_ID = "E100"
    E101_INVALID_LOGICAL_ID = "E101"
    E102_RESERVED_PREFIX = "E102"

    # E2xx - Property errors
    E200_MISSING_OR_INVALID_PROPERTY = "E200"
    E201_INVALID_EVENT = "E201"

    # E3xx - Policy template errors
    E300_UNKNOWN_POLICY_TEMPLATE = "E300"
    E301_MISSING_TEMPLATE_PARAMETER = "E301"

    # E4xx - Address errors
    E400_INVALID_ARN = "E400"

    # E5xx - Pipeline errors
    E500_PIPELINE_HOOK_FAILED = "E500"
    E501_RESOURCE_CONVERSION_FAILED = "E501"

    # W0xx - Warnings
    W001_UNUSED_GLOBALS = "W001"
    W002_MISSING_TRANSFORM = "W002"
