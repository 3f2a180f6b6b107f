"""Translate pydantic errors into template-oriented messages."""

from __future__ import annotations

from pydantic import ValidationError
from pydantic_core import ErrorDetails

from sam_translate.validation.exceptions import MissingOrInvalidPropertyError

ERROR_TRANSLATIONS: dict[str, str] = {
    "missing": "is required but was not provided",
    "extra_forbidden": "is not a supported property",
    "string_type": "must be a string",
    "int_type": "must be an integer",
    "int_parsing": "must be an integer",
    "bool_type": "must be true or false",
    "bool_parsing": "must be true or false",
    "list_type": "must be a list",
    "dict_type": "must be a map",
    "model_type": "must be a map",
    "literal_error": "must be one of the allowed values",
    "value_error": "has an invalid value",
    "string_too_short": "must not be empty",
    "too_short": "must not be empty",
    "union_tag_invalid": "has an unsupported type",
}


def translate_pydantic_error(error: ErrorDetails) -> str:
    """Translate a single pydantic error to a short message.

    Args:
    ----
        error: The pydantic error details.

    Returns:
    -------
        Message fragment meant to follow the property name.

    """
    error_type = error["type"]
    ctx = error.get("ctx") or {}

    if error_type == "literal_error":
        return f"must be one of: {ctx.get('expected', 'unknown')}"
    if error_type == "value_error":
        return str(ctx.get("error", error["msg"]))
    return ERROR_TRANSLATIONS.get(error_type, error["msg"])


def format_pydantic_location(loc: tuple[str | int, ...]) -> str:
    """Format a pydantic location tuple as a dotted path with list indices."""
    parts: list[str] = []
    for part in loc:
        if isinstance(part, int):
            parts.append(f"[{part}]")
        else:
            if parts:
                parts.append(".")
            parts.append(str(part))
    return "".join(parts)


def get_suggestion_for_error(error: ErrorDetails) -> str | None:
    """Suggest a fix for common pydantic error types."""
    ctx = error.get("ctx") or {}
    suggestions: dict[str, str] = {
        "missing": "Add the required property to the resource",
        "extra_forbidden": "Remove this property or check for typos",
        "literal_error": f"Use one of: {ctx.get('expected', 'the documented values')}",
        "dict_type": "Use a YAML mapping (key: value) here",
        "list_type": "Use a YAML list (- item) here",
    }
    return suggestions.get(error["type"])


def property_error(
    error: ValidationError, prefix: str = "Properties"
) -> MissingOrInvalidPropertyError:
    """Convert the first error of a pydantic ``ValidationError`` to a property error.

    Args:
    ----
        error: Raised while validating a resource's property bag.
        prefix: Path prefix for the property location.

    Returns:
    -------
        A ``MissingOrInvalidPropertyError`` naming the property path.

    """
    details = error.errors()
    first = details[0]
    location = format_pydantic_location(first["loc"])
    path = f"{prefix}.{location}" if location else prefix
    message = f"{location or prefix} {translate_pydantic_error(first)}"
    if len(details) > 1:
        message += f" (and {len(details) - 1} more issue(s))"
    return MissingOrInvalidPropertyError(message, path=path)
