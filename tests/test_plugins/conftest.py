"""Shared fixtures for plugin tests."""

from typing import Any

import pytest


@pytest.fixture
def api_function() -> dict[str, Any]:
    """Return a function with one implicit REST API route."""
    return {
        "Type": "AWS::Serverless::Function",
        "Properties": {
            "Handler": "index.handler",
            "Runtime": "python3.12",
            "CodeUri": "s3://bucket/code.zip",
            "Events": {"Get": {"Type": "Api", "Properties": {"Path": "/items", "Method": "get"}}},
        },
    }
