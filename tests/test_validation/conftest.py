"""Fixtures for validation tests."""

from __future__ import annotations

from typing import Any

import pytest

from sam_translate.validation.validator import TemplateValidator


@pytest.fixture
def validator() -> TemplateValidator:
    """Create a non-strict template validator."""
    return TemplateValidator()


@pytest.fixture
def table_template() -> dict[str, Any]:
    """Return a valid template holding one simple table."""
    return {
        "Transform": "AWS::Serverless-2016-10-31",
        "Resources": {"Table": {"Type": "AWS::Serverless::SimpleTable"}},
    }
