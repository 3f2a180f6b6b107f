"""Shared test fixtures for transform tests."""

from typing import Any

import pytest


@pytest.fixture
def function_resource() -> dict[str, Any]:
    """Return a serverless function resource."""
    return {
        "Type": "AWS::Serverless::Function",
        "Properties": {
            "Handler": "app.handler",
            "Runtime": "python3.12",
            "CodeUri": "s3://artifacts/app.zip",
        },
    }


@pytest.fixture
def broken_function() -> dict[str, Any]:
    """Return a serverless function missing its Handler."""
    return {
        "Type": "AWS::Serverless::Function",
        "Properties": {"Runtime": "python3.12", "CodeUri": "s3://artifacts/app.zip"},
    }
