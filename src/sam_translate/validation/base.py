"""Validator building blocks.

A validator inspects a parsed template and records issues on a shared
``ValidationResult``. Resource validators are called once per entry of the
``Resources`` section; stages group validators so that a caller can stop
between groups once an error has been recorded.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from sam_translate.validation.errors import ValidationResult


def template_resources(template: dict[str, Any]) -> dict[str, Any]:
    """The ``Resources`` map of a template, or an empty map if it has none."""
    resources = template.get("Resources")
    return resources if isinstance(resources, dict) else {}


class BaseValidator(ABC):
    """Checks a whole template."""

    @abstractmethod
    def validate(self, template: dict[str, Any], result: ValidationResult) -> None:
        """Validate the template and add issues to result.

        Args:
        ----
            template: The parsed SAM template.
            result: The result object to add issues to.

        """
        ...


class ResourceValidator(BaseValidator):
    """Checks the template one resource at a time, in template order."""

    def validate(self, template: dict[str, Any], result: ValidationResult) -> None:
        for logical_id, resource in template_resources(template).items():
            self.validate_resource(str(logical_id), resource, result)

    @abstractmethod
    def validate_resource(self, logical_id: str, resource: Any, result: ValidationResult) -> None:
        """Validate one entry of ``Resources``; ``resource`` may be any value."""
        ...


class ValidationStage(BaseValidator):
    """A named group of validators that always runs in full."""

    def __init__(self, name: str, validators: Iterable[BaseValidator]) -> None:
        self.name = name
        self.validators = list(validators)

    def validate(self, template: dict[str, Any], result: ValidationResult) -> None:
        for validator in self.validators:
            validator.validate(template, result)
