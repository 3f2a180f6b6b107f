"""SAM template to CloudFormation template translator."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from sam_translate.converters import ConversionContext
from sam_translate.core.intrinsics import deep_copy
from sam_translate.models.options import TransformOptions
from sam_translate.models.template import DEFAULT_TEMPLATE_FORMAT_VERSION, SamTemplate
from sam_translate.plugins import PluginPipeline, default_pipeline
from sam_translate.transform.dispatcher import ConversionDispatcher, rename_references
from sam_translate.validation.exceptions import InvalidDocumentError
from sam_translate.validation.pydantic_errors import format_pydantic_location

logger = logging.getLogger(__name__)

# Top-level sections copied to the output unchanged
PASS_THROUGH_SECTIONS = ("Description", "Parameters", "Mappings", "Conditions", "Metadata")


class SamTranslator:
    """Translate SAM templates into plain CloudFormation.

    This is the main entry point of the package. One instance may translate
    any number of templates; each call works on its own deep copy of the
    input and never mutates it.

    Usage:
        translator = SamTranslator(TransformOptions(region="eu-west-1"))
        cloudformation = translator.transform(sam_template)
    """

    def __init__(
        self,
        options: TransformOptions | None = None,
        pipeline: PluginPipeline | None = None,
        dispatcher: ConversionDispatcher | None = None,
    ) -> None:
        """Initialize the translator.

        Args:
        ----
            options: Translation options (region, account, stack name ...).
            pipeline: Plugin pipeline; defaults to every built-in plugin.
            dispatcher: Resource dispatcher; defaults to every built-in converter.

        """
        self.options = options or TransformOptions()
        self.pipeline = pipeline if pipeline is not None else default_pipeline()
        self.dispatcher = dispatcher or ConversionDispatcher()

    def transform(self, template: dict[str, Any]) -> dict[str, Any]:
        """Translate a SAM template.

        Args:
        ----
            template: The parsed SAM template.

        Returns:
        -------
            The CloudFormation template.

        Raises:
        ------
            InvalidDocumentError: If the template does not have the shape of a
                SAM template.
            PipelineHookError: If a plugin hook fails.
            TransformError: If one or more resources cannot be converted.

        """
        check_template_shape(template)
        document = deep_copy(template)

        # Plugins rewrite the SAM document in place
        self.pipeline.run_before(document)

        # Convert resources kind by kind
        context = ConversionContext(options=self.options, resources=document["Resources"])
        resources = self.dispatcher.dispatch(context)

        output = build_output(document, resources)
        for old_id, new_id in context.renamed.items():
            if "Outputs" in output:
                output["Outputs"] = rename_references(output["Outputs"], old_id, new_id)

        self.pipeline.run_after(output)
        logger.info(
            "Translated %d resources into %d", len(template["Resources"]), len(resources)
        )
        return output


def check_template_shape(template: Any) -> None:
    """Validate the overall shape of a SAM template.

    Raises
    ------
        InvalidDocumentError: Naming the first offending location.

    """
    if not isinstance(template, dict):
        raise InvalidDocumentError("template must be a map")
    try:
        SamTemplate.model_validate(template)
    except ValidationError as e:
        first = e.errors()[0]
        location = format_pydantic_location(first["loc"])
        raise InvalidDocumentError(first["msg"], path=location or None) from e


def build_output(document: dict[str, Any], resources: dict[str, Any]) -> dict[str, Any]:
    """Assemble the CloudFormation template from the translated document.

    The transform marker and ``Globals`` are dropped; the format version is
    kept or defaulted.
    """
    output: dict[str, Any] = {
        "AWSTemplateFormatVersion": document.get(
            "AWSTemplateFormatVersion", DEFAULT_TEMPLATE_FORMAT_VERSION
        )
    }
    for section in PASS_THROUGH_SECTIONS:
        if section in document:
            output[section] = document[section]
    output["Resources"] = resources
    if "Outputs" in document:
        output["Outputs"] = document["Outputs"]
    return output
