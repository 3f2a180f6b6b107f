"""Shared test fixtures for model tests."""

from typing import Any

import pytest


@pytest.fixture
def table_resource() -> dict[str, Any]:
    """Return a simple table resource with a primary key."""
    return {
        "Type": "AWS::Serverless::SimpleTable",
        "Properties": {"PrimaryKey": {"Name": "pk", "Type": "String"}},
    }


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove region variables from the environment."""
    monkeypatch.delenv("AWS_REGION", raising=False)
    monkeypatch.delenv("AWS_DEFAULT_REGION", raising=False)
    return monkeypatch
