"""Pydantic models and file loading for SAM templates.

Primary Entry Points:
    load_template(path): Load a YAML/JSON template into a dictionary
    load_sam_template(path): Load a template and check its overall shape
    validate_template_file(path): JSON Schema structural check, list of errors
    TransformOptions: per-call translation options

Example:
-------
    >>> from sam_translate.models import load_template, TransformOptions
    >>> template = load_template("template.yaml")
    >>> options = TransformOptions(region="eu-west-1")

Model Hierarchy:
    SamTemplate (root)
    └── ResourceModel - one entry of Resources
        └── *Properties - typed property bag per AWS::Serverless::* kind

"""

from sam_translate.models.loader import (
    LoaderError,
    TemplateLoader,
    dump_template,
    load_sam_template,
    load_template,
    output_format_for,
    parse_template_text,
    validate_sam_template,
)
from sam_translate.models.options import TransformOptions
from sam_translate.models.properties import (
    ApiProperties,
    ApplicationProperties,
    ConnectorEndpoint,
    ConnectorProperties,
    EventSource,
    FunctionProperties,
    GraphQLApiProperties,
    HttpApiProperties,
    LayerVersionProperties,
    PrimaryKey,
    PropertyModel,
    SimpleTableProperties,
    StateMachineProperties,
    parse_properties,
)
from sam_translate.models.schema import validate_template_file, validate_template_schema
from sam_translate.models.template import (
    SAM_TRANSFORM,
    ResourceModel,
    SamTemplate,
    is_serverless_type,
)

__all__ = [
    "SAM_TRANSFORM",
    "ApiProperties",
    "ApplicationProperties",
    "ConnectorEndpoint",
    "ConnectorProperties",
    "EventSource",
    "FunctionProperties",
    "GraphQLApiProperties",
    "HttpApiProperties",
    "LayerVersionProperties",
    "LoaderError",
    "PrimaryKey",
    "PropertyModel",
    "ResourceModel",
    "SamTemplate",
    "SimpleTableProperties",
    "StateMachineProperties",
    "TemplateLoader",
    "TransformOptions",
    "dump_template",
    "is_serverless_type",
    "load_sam_template",
    "load_template",
    "output_format_for",
    "parse_properties",
    "parse_template_text",
    "validate_sam_template",
    "validate_template_file",
    "validate_template_schema",
]
