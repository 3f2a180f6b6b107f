"""Template validator combining structural, identifier and translation checks."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from sam_translate.core.logical_id import IDVerifier
from sam_translate.models.options import TransformOptions
from sam_translate.models.schema import schema_errors
from sam_translate.models.template import GLOBALS_SECTIONS, SamTemplate, is_serverless_type
from sam_translate.transform import SamTranslator
from sam_translate.validation.base import (
    BaseValidator,
    ResourceValidator,
    ValidationStage,
    template_resources,
)
from sam_translate.validation.errors import ErrorCodes, ValidationResult
from sam_translate.validation.exceptions import (
    DuplicateOrInvalidIdentifierError,
    SamTranslateError,
    TransformError,
)
from sam_translate.validation.pydantic_errors import (
    format_pydantic_location,
    get_suggestion_for_error,
    translate_pydantic_error,
)

logger = logging.getLogger(__name__)

SUPPORTED_SERVERLESS_TYPES = frozenset(
    {
        "AWS::Serverless::Function",
        "AWS::Serverless::Api",
        "AWS::Serverless::HttpApi",
        "AWS::Serverless::SimpleTable",
        "AWS::Serverless::LayerVersion",
        "AWS::Serverless::StateMachine",
        "AWS::Serverless::Application",
        "AWS::Serverless::GraphQLApi",
        "AWS::Serverless::Connector",
    }
)


class SchemaValidator(BaseValidator):
    """Validates the template against the bundled JSON Schema."""

    def validate(self, template: dict[str, Any], result: ValidationResult) -> None:
        for error in schema_errors(template):
            path = [str(p) for p in error.path]
            section = path[0] if path else "Template"
            logical_id = path[1] if section == "Resources" and len(path) > 1 else None
            rest = path[2:] if logical_id else path[1:]
            result.add_error(
                code=ErrorCodes.E001_INVALID_DOCUMENT,
                message=error.message,
                logical_id=logical_id,
                property_path=".".join(rest) or None,
                section=section,
            )


class ShapeValidator(BaseValidator):
    """Validates the overall template shape with the pydantic model."""

    def validate(self, template: dict[str, Any], result: ValidationResult) -> None:
        if "Resources" not in template:
            result.add_error(
                code=ErrorCodes.E002_MISSING_RESOURCES,
                message="template has no Resources section",
                section="Template",
                suggestion="Add a Resources map with at least one resource",
            )
            return
        try:
            SamTemplate.model_validate(template)
        except ValidationError as e:
            for error in e.errors():
                location = format_pydantic_location(error["loc"])
                result.add_error(
                    code=ErrorCodes.E003_INVALID_RESOURCE,
                    message=translate_pydantic_error(error),
                    property_path=location or None,
                    section="Template",
                    suggestion=get_suggestion_for_error(error),
                )


class LogicalIdValidator(ResourceValidator):
    """Validates resource logical IDs: format, length and reserved prefixes."""

    def __init__(self) -> None:
        self._verifier = IDVerifier()

    def validate(self, template: dict[str, Any], result: ValidationResult) -> None:
        self._verifier = IDVerifier()
        super().validate(template, result)

    def validate_resource(self, logical_id: str, resource: Any, result: ValidationResult) -> None:
        try:
            self._verifier.verify(logical_id)
        except DuplicateOrInvalidIdentifierError as e:
            result.add_error(code=e.code, message=e.message, logical_id=logical_id)


class ResourceTypeValidator(ResourceValidator):
    """Validates that every serverless resource kind is supported."""

    def validate_resource(self, logical_id: str, resource: Any, result: ValidationResult) -> None:
        resource_type = resource.get("Type") if isinstance(resource, dict) else None
        if is_serverless_type(resource_type) and resource_type not in SUPPORTED_SERVERLESS_TYPES:
            result.add_error(
                code=ErrorCodes.E003_INVALID_RESOURCE,
                message=f"unsupported resource type '{resource_type}'",
                logical_id=logical_id,
                property_path="Type",
            )


class GlobalsValidator(BaseValidator):
    """Validates Globals sections and flags the ones nothing uses."""

    def validate(self, template: dict[str, Any], result: ValidationResult) -> None:
        globals_ = template.get("Globals")
        if not isinstance(globals_, dict):
            return
        used_types = {
            resource.get("Type")
            for resource in template_resources(template).values()
            if isinstance(resource, dict)
        }
        for section in globals_:
            if section not in GLOBALS_SECTIONS:
                result.add_error(
                    code=ErrorCodes.E004_UNKNOWN_GLOBALS_SECTION,
                    message=f"unsupported Globals section '{section}'",
                    section="Globals",
                    suggestion=f"Supported sections: {', '.join(GLOBALS_SECTIONS)}",
                )
            elif GLOBALS_SECTIONS[section] not in used_types:
                result.add_warning(
                    code=ErrorCodes.W001_UNUSED_GLOBALS,
                    message=f"Globals section '{section}' applies to no resource",
                    section="Globals",
                )


class TransformDeclarationValidator(BaseValidator):
    """Warns when the template does not declare the SAM transform."""

    def validate(self, template: dict[str, Any], result: ValidationResult) -> None:
        try:
            declared = SamTemplate.model_validate(template).has_sam_transform()
        except ValidationError:
            return
        if not declared:
            result.add_warning(
                code=ErrorCodes.W002_MISSING_TRANSFORM,
                message="template does not declare the AWS::Serverless-2016-10-31 transform",
                section="Transform",
            )


class TranslationValidator(BaseValidator):
    """Runs a full translation and reports every error it raises."""

    def __init__(self, options: TransformOptions | None = None) -> None:
        self.options = options

    def validate(self, template: dict[str, Any], result: ValidationResult) -> None:
        try:
            SamTranslator(self.options).transform(template)
        except TransformError as e:
            result.merge(e.to_result())
        except SamTranslateError as e:
            result.add(e.to_issue())


class TemplateValidator:
    """Main validator for SAM templates.

    Checks run in stages: structure, then identifiers and types, then a
    dry-run translation. A stage only runs if the ones before it recorded
    no error.
    """

    def __init__(self, strict: bool = False, options: TransformOptions | None = None) -> None:
        """Initialize validator.

        Args:
        ----
            strict: If True, treat warnings as errors.
            options: Translation options used by the dry-run translation.

        """
        self.strict = strict
        self.stages = [
            ValidationStage("structure", [SchemaValidator(), ShapeValidator()]),
            ValidationStage(
                "semantics",
                [
                    LogicalIdValidator(),
                    ResourceTypeValidator(),
                    GlobalsValidator(),
                    TransformDeclarationValidator(),
                ],
            ),
            ValidationStage("translation", [TranslationValidator(options)]),
        ]

    def validate(self, template: Any) -> ValidationResult:
        """Validate a parsed template.

        Args:
        ----
            template: The template to validate.

        Returns:
        -------
            ValidationResult with all issues found.

        """
        result = ValidationResult()
        if not isinstance(template, dict):
            result.add_error(
                code=ErrorCodes.E001_INVALID_DOCUMENT,
                message="template must be a map",
                section="Template",
            )
            return result

        for stage in self.stages:
            stage.validate(template, result)
            if not result.is_valid:
                logger.debug("Stage %s failed with %d error(s)", stage.name, len(result.errors))
                break
        return result

    def validate_and_raise(self, template: Any) -> None:
        """Validate and raise exception if invalid.

        Raises
        ------
            TemplateValidationError: If validation fails.

        """
        result = self.validate(template)
        if not result.is_valid or (self.strict and result.warnings):
            raise TemplateValidationError(result)


class TemplateValidationError(Exception):
    """Raised when template validation fails."""

    def __init__(self, result: ValidationResult) -> None:
        self.result = result
        parts = []
        if result.errors:
            parts.append(f"{len(result.errors)} error(s)")
        if result.warnings:
            parts.append(f"{len(result.warnings)} warning(s)")
        super().__init__(f"Validation failed: {', '.join(parts)}")

    def format_issues(self) -> str:
        lines = [f"ERROR: {issue}" for issue in self.result.errors]
        lines.extend(f"WARNING: {issue}" for issue in self.result.warnings)
        return "\n".join(lines)
