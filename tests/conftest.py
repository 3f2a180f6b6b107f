"""Pytest configuration and shared fixtures."""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from sam_translate.logging_config import PACKAGE_LOGGER

HELLO_WORLD_YAML = """\
AWSTemplateFormatVersion: '2010-09-09'
Transform: AWS::Serverless-2016-10-31
Description: Hello world
Globals:
  Function:
    Runtime: python3.12
    Timeout: 10
Parameters:
  Stage:
    Type: String
    Default: dev
Resources:
  HelloFunction:
    Type: AWS::Serverless::Function
    Properties:
      Handler: app.handler
      CodeUri: s3://artifacts/hello.zip
      Environment:
        Variables:
          STAGE: !Ref Stage
      Events:
        Hello:
          Type: Api
          Properties:
            Path: /hello
            Method: get
Outputs:
  HelloArn:
    Value: !GetAtt HelloFunction.Arn
"""


@pytest.fixture
def hello_world_yaml() -> str:
    """Return a small SAM template as YAML text."""
    return HELLO_WORLD_YAML


@pytest.fixture
def minimal_template() -> dict[str, Any]:
    """Return the smallest SAM template with one function."""
    return {
        "Transform": "AWS::Serverless-2016-10-31",
        "Resources": {
            "Fn": {
                "Type": "AWS::Serverless::Function",
                "Properties": {
                    "Handler": "app.handler",
                    "Runtime": "python3.12",
                    "CodeUri": "s3://artifacts/app.zip",
                },
            }
        },
    }


@pytest.fixture
def write_template(tmp_path: Path) -> Callable[[str, str], Path]:
    """Return a factory writing template text to a file under tmp_path."""

    def factory(text: str, name: str = "template.yaml") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return factory


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo handlers installed by configure_logging so caplog keeps working."""
    yield
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True
