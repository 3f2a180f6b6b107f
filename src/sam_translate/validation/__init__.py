"""Error types and template checks.

This module defines:
- ValidationIssue / ValidationResult: issue records rendered by the CLI
- ErrorCodes: stable codes for every issue kind
- SamTranslateError and its subclasses: exceptions raised by the engine

Template-level checks live in ``sam_translate.validation.validator`` and are
imported from there directly.
"""

from sam_translate.validation.errors import (
    ErrorCodes,
    ValidationIssue,
    ValidationLocation,
    ValidationResult,
    ValidationSeverity,
)
from sam_translate.validation.exceptions import (
    DuplicateOrInvalidIdentifierError,
    InvalidAddressError,
    InvalidDocumentError,
    InvalidEventError,
    MissingMacroParameterError,
    MissingOrInvalidPropertyError,
    PipelineHookError,
    ResourceConversionError,
    SamTranslateError,
    TransformError,
    UnknownMacroError,
)

__all__ = [
    "DuplicateOrInvalidIdentifierError",
    "ErrorCodes",
    "InvalidAddressError",
    "InvalidDocumentError",
    "InvalidEventError",
    "MissingMacroParameterError",
    "MissingOrInvalidPropertyError",
    "PipelineHookError",
    "ResourceConversionError",
    "SamTranslateError",
    "TransformError",
    "UnknownMacroError",
    "ValidationIssue",
    "ValidationLocation",
    "ValidationResult",
    "ValidationSeverity",
]
