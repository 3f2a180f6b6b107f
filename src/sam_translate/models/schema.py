"""JSON Schema structural check of a raw template.

This pass runs before the pydantic shape check and reports every structural
problem at once, each with a ``/``-joined location.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator, FormatChecker
from jsonschema.exceptions import ValidationError as SchemaValidationError

from sam_translate.models.loader import LoaderError, load_template

SCHEMA_PATH = Path(__file__).with_name("template_schema.json")
MAX_REPORTED_ERRORS = 50


@lru_cache(maxsize=1)
def load_schema() -> dict[str, Any]:
    with SCHEMA_PATH.open("r", encoding="utf-8") as f:
        return json.load(f)


def _validator() -> Draft202012Validator:
    return Draft202012Validator(load_schema(), format_checker=FormatChecker())


def format_schema_error(source: str, error: SchemaValidationError) -> str:
    loc = "/".join(str(p) for p in error.path)
    if loc:
        loc = f"/{loc}"
    return f"- {source}{loc}: {error.message}"


def schema_errors(data: Any) -> list[SchemaValidationError]:
    """Every structural error of a raw template, sorted by location."""
    return sorted(_validator().iter_errors(data), key=lambda e: [str(p) for p in e.path])


def validate_template_schema(data: Any, source: str = "template") -> list[str]:
    """Validate a raw template against the structural schema.

    Args:
    ----
        data: The parsed template.
        source: Name shown in front of each location (usually the file name).

    Returns:
    -------
        Formatted error lines, sorted by location (empty if valid).

    """
    errors = schema_errors(data)
    lines = [format_schema_error(source, err) for err in errors[:MAX_REPORTED_ERRORS]]
    if len(errors) > MAX_REPORTED_ERRORS:
        lines.append(f"  ... {len(errors) - MAX_REPORTED_ERRORS} more errors")
    return lines


def validate_template_file(path: Path | str) -> list[str]:
    """Load a template file and validate it against the structural schema."""
    path = Path(path)
    try:
        data = load_template(path)
    except LoaderError as e:
        return [str(e)]
    return validate_template_schema(data, path.name)
