"""Exceptions raised while translating a template.

Two propagation modes exist. Errors raised inside a plugin hook abort the
translation immediately as :class:`PipelineHookError`. Errors raised while
converting a single resource are wrapped in :class:`ResourceConversionError`
and collected; once every resource has been attempted they surface together
as one :class:`TransformError`.
"""

from __future__ import annotations

from collections.abc import Sequence

from sam_translate.validation.errors import (
    ErrorCodes,
    ValidationIssue,
    ValidationLocation,
    ValidationResult,
    ValidationSeverity,
)


class SamTranslateError(Exception):
    """Base class for every translation error."""

    code = ErrorCodes.E001_INVALID_DOCUMENT

    def __init__(self, message: str, path: str | None = None) -> None:
        """Initialize the error.

        Args:
        ----
            message: What went wrong.
            path: Optional dotted property path the message refers to.

        """
        self.message = message
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)

    def to_issue(self, logical_id: str | None = None) -> ValidationIssue:
        """Render the error as a validation issue for the CLI formatter."""
        return ValidationIssue(
            code=self.code,
            message=self.message,
            severity=ValidationSeverity.ERROR,
            location=ValidationLocation(logical_id=logical_id, property_path=self.path),
        )


class InvalidDocumentError(SamTranslateError):
    """The template as a whole is malformed."""

    def __str__(self) -> str:
        return f"invalid document: {super().__str__()}"


class MissingOrInvalidPropertyError(SamTranslateError):
    """A resource lacks a required property or has one of the wrong shape."""

    code = ErrorCodes.E200_MISSING_OR_INVALID_PROPERTY


class InvalidEventError(SamTranslateError):
    """An event source declared on a resource is invalid."""

    code = ErrorCodes.E201_INVALID_EVENT

    def __init__(self, event_id: str, message: str, logical_id: str | None = None) -> None:
        self.event_id = event_id
        self.logical_id = logical_id
        super().__init__(message, path=f"Properties.Events.{event_id}")

    def __str__(self) -> str:
        if self.logical_id:
            return (
                f"invalid event '{self.event_id}' on resource '{self.logical_id}': "
                f"{self.message}"
            )
        return f"invalid event '{self.event_id}': {self.message}"


class UnknownMacroError(SamTranslateError):
    """A policy template name is not in the catalog."""

    code = ErrorCodes.E300_UNKNOWN_POLICY_TEMPLATE

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"unknown policy template '{name}'")


class MissingMacroParameterError(SamTranslateError):
    """A policy template was expanded without one of its declared parameters."""

    code = ErrorCodes.E301_MISSING_TEMPLATE_PARAMETER

    def __init__(self, name: str, parameter: str) -> None:
        self.name = name
        self.parameter = parameter
        super().__init__(f"policy template '{name}' is missing required parameter '{parameter}'")


class InvalidAddressError(SamTranslateError):
    """A string is not a well-formed ARN."""

    code = ErrorCodes.E400_INVALID_ARN

    def __init__(self, arn: str, reason: str) -> None:
        self.arn = arn
        super().__init__(f"invalid ARN '{arn}': {reason}")


class DuplicateOrInvalidIdentifierError(SamTranslateError):
    """A logical ID violates the naming or uniqueness constraints."""

    code = ErrorCodes.E101_INVALID_LOGICAL_ID

    def __init__(self, logical_id: str, reason: str, code: str | None = None) -> None:
        self.logical_id = logical_id
        if code is not None:
            self.code = code
        super().__init__(f"logical ID '{logical_id}': {reason}")


class ResourceConversionError(SamTranslateError):
    """Wraps a failure converting one resource with its logical ID."""

    code = ErrorCodes.E501_RESOURCE_CONVERSION_FAILED

    def __init__(self, logical_id: str, error: Exception) -> None:
        self.logical_id = logical_id
        self.error = error
        super().__init__(f"invalid resource '{logical_id}': {error}")

    def to_issue(self, logical_id: str | None = None) -> ValidationIssue:
        """Render the wrapped error, keeping its own code and property path."""
        if isinstance(self.error, SamTranslateError):
            inner = self.error.to_issue(self.logical_id)
            return ValidationIssue(
                code=inner.code,
                message=str(self.error),
                severity=inner.severity,
                location=inner.location,
            )
        return ValidationIssue(
            code=self.code,
            message=str(self.error),
            severity=ValidationSeverity.ERROR,
            location=ValidationLocation(logical_id=self.logical_id),
        )


class PipelineHookError(SamTranslateError):
    """A plugin hook failed; the translation was aborted."""

    code = ErrorCodes.E500_PIPELINE_HOOK_FAILED

    def __init__(self, plugin: str, phase: str, error: Exception) -> None:
        self.plugin = plugin
        self.phase = phase
        self.error = error
        super().__init__(f"plugin {plugin} failed during {phase}: {error}")


class TransformError(SamTranslateError):
    """Aggregate of every per-resource conversion failure."""

    code = ErrorCodes.E501_RESOURCE_CONVERSION_FAILED

    def __init__(self, errors: Sequence[ResourceConversionError]) -> None:
        self.errors = list(errors)
        if len(self.errors) == 1:
            message = str(self.errors[0])
        else:
            lines = "\n".join(f"  - {e}" for e in self.errors)
            message = f"multiple errors:\n{lines}"
        super().__init__(message)

    @property
    def logical_ids(self) -> list[str]:
        """Logical IDs of every failing resource, in conversion order."""
        return [e.logical_id for e in self.errors]

    def to_result(self) -> ValidationResult:
        """Collect the wrapped errors into a validation result."""
        result = ValidationResult()
        for error in self.errors:
            result.add(error.to_issue())
        return result
