"""Fixtures for converter tests."""

from typing import Any

import pytest

from sam_translate.converters.base import ConversionContext
from sam_translate.models.options import TransformOptions


@pytest.fixture
def context() -> ConversionContext:
    """Return a fresh conversion context with default options."""
    return ConversionContext(options=TransformOptions())


@pytest.fixture
def zip_function() -> dict[str, Any]:
    """Return a minimal zip-packaged serverless function."""
    return {
        "Type": "AWS::Serverless::Function",
        "Properties": {
            "Handler": "app.handler",
            "Runtime": "python3.12",
            "CodeUri": "s3://artifacts/app.zip",
        },
    }


@pytest.fixture
def with_events(zip_function: dict[str, Any]):
    """Return a factory that attaches events to the zip function."""

    def factory(**events: dict[str, Any]) -> dict[str, Any]:
        zip_function["Properties"]["Events"] = events
        return zip_function

    return factory
