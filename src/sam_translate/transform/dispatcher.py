"""Route every resource of a template to the converter of its kind."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from sam_translate.converters import ConversionContext, ResourceConverter, default_converters
from sam_translate.converters.connector import embedded_connectors
from sam_translate.core.intrinsics import deep_copy, rewrite_references
from sam_translate.logging_config import LogContext
from sam_translate.models.template import is_serverless_type
from sam_translate.validation.errors import ErrorCodes
from sam_translate.validation.exceptions import (
    DuplicateOrInvalidIdentifierError,
    MissingOrInvalidPropertyError,
    ResourceConversionError,
    SamTranslateError,
    TransformError,
)

logger = logging.getLogger(__name__)

EMBEDDED_CONNECTORS = "Connectors"

# Attributes copied from the source resource onto its primary target resource
PRIMARY_ATTRIBUTES = ("DependsOn", "DeletionPolicy", "UpdateReplacePolicy")


class ConversionDispatcher:
    """Converts the serverless resources of a template, one kind at a time.

    Kinds run in the order of the converter list. Resources of other types
    are copied through unchanged, ahead of everything generated. A failing
    resource does not stop the others; every failure is collected and raised
    together as one :class:`TransformError`.

    Usage:
        dispatcher = ConversionDispatcher()
        resources = dispatcher.dispatch(context)
    """

    def __init__(self, converters: Iterable[ResourceConverter] | None = None) -> None:
        self._converters = list(converters) if converters is not None else default_converters()

    @property
    def converters(self) -> list[ResourceConverter]:
        return list(self._converters)

    def dispatch(self, context: ConversionContext) -> dict[str, Any]:
        """Convert ``context.resources`` into ``context.converted``.

        Args:
        ----
            context: Conversion state holding the template's resources.

        Returns:
        -------
            The converted resources, pass-through resources first.

        Raises:
        ------
            TransformError: If one or more resources failed to convert.

        """
        errors: list[ResourceConversionError] = []
        resources = context.resources

        # Pass-through resources first; their IDs are taken before conversion starts
        for logical_id, resource in resources.items():
            if not is_serverless_type(resource.get("Type")):
                context.converted[logical_id] = resource

        # Embedded connectors become standalone connectors converted last
        for logical_id, resource in list(resources.items()):
            if EMBEDDED_CONNECTORS not in resource:
                continue
            connectors = resource.pop(EMBEDDED_CONNECTORS)
            try:
                resources.update(embedded_connectors(logical_id, connectors, resources))
            except SamTranslateError as e:
                errors.append(self._failure(logical_id, e))

        handled = {converter.resource_type for converter in self._converters}
        for logical_id, resource in resources.items():
            resource_type = resource.get("Type")
            if is_serverless_type(resource_type) and resource_type not in handled:
                error = MissingOrInvalidPropertyError(
                    f"unsupported resource type '{resource_type}'", path="Type"
                )
                errors.append(self._failure(logical_id, error))

        for converter in self._converters:
            for logical_id, resource in list(resources.items()):
                if resource.get("Type") != converter.resource_type:
                    continue
                with LogContext(phase="convert", logical_id=logical_id):
                    try:
                        generated = converter.convert(logical_id, resource, context)
                        self._add(logical_id, resource, generated, context)
                    except SamTranslateError as e:
                        errors.append(self._failure(logical_id, e))

        if errors:
            raise TransformError(errors)

        for old_id, new_id in context.renamed.items():
            context.converted = rename_references(context.converted, old_id, new_id)
        return context.converted

    def _add(
        self,
        logical_id: str,
        source: dict[str, Any],
        generated: dict[str, dict[str, Any]],
        context: ConversionContext,
    ) -> None:
        for new_id in generated:
            if new_id in context.converted:
                raise DuplicateOrInvalidIdentifierError(
                    new_id,
                    "duplicate logical ID detected",
                    code=ErrorCodes.E100_DUPLICATE_LOGICAL_ID,
                )

        primary_id = next(iter(generated), None)
        for new_id, target in generated.items():
            if source.get("Condition") is not None:
                target["Condition"] = source["Condition"]
            if new_id != primary_id:
                continue
            for attribute in PRIMARY_ATTRIBUTES:
                if source.get(attribute) is not None and attribute not in target:
                    target[attribute] = deep_copy(source[attribute])
            if context.options.pass_through_metadata and source.get("Metadata") is not None:
                target["Metadata"] = {**target.get("Metadata", {}), **deep_copy(source["Metadata"])}

        context.converted.update(generated)
        logger.debug("Converted %s into %s", logical_id, ", ".join(generated))

    def _failure(self, logical_id: str, error: SamTranslateError) -> ResourceConversionError:
        logger.warning("Failed to convert %s: %s", logical_id, error)
        return ResourceConversionError(logical_id, error)


def rename_references(tree: Any, old_id: str, new_id: str) -> Any:
    """Point ``Ref``, ``Fn::GetAtt`` and ``DependsOn`` at a renamed resource."""
    tree = rewrite_references(tree, old_id, new_id)
    if isinstance(tree, dict):
        for resource in tree.values():
            if not isinstance(resource, dict):
                continue
            depends_on = resource.get("DependsOn")
            if depends_on == old_id:
                resource["DependsOn"] = new_id
            elif isinstance(depends_on, list):
                resource["DependsOn"] = [new_id if d == old_id else d for d in depends_on]
    return tree
