"""``AWS::Serverless::Application`` to a nested ``AWS::CloudFormation::Stack``."""

from __future__ import annotations

from typing import Any

from sam_translate.converters.base import (
    ConversionContext,
    ResourceConverter,
    Resources,
    cfn_resource,
    tag_list,
)
from sam_translate.core.intrinsics import is_intrinsic, sub
from sam_translate.models.properties import ApplicationProperties, parse_properties
from sam_translate.models.template import SAM_TRANSFORM, SERVERLESS_APPLICATION
from sam_translate.validation.exceptions import MissingOrInvalidPropertyError

CLOUDFORMATION_STACK = "AWS::CloudFormation::Stack"
SERVERLESS_REPO_MARKER = ":serverlessrepo:"


def is_repository_application(value: Any) -> bool:
    """True for an ARN of an application published to the Serverless Application Repository."""
    return isinstance(value, str) and value.startswith("arn:") and SERVERLESS_REPO_MARKER in value


def repository_template_url(application_id: Any, semantic_version: Any = None) -> dict[str, Any]:
    """``Fn::Transform`` that resolves a repository application at deploy time."""
    parameters: dict[str, Any] = {"ApplicationId": application_id}
    if semantic_version is not None:
        parameters["SemanticVersion"] = semantic_version
    return {"Fn::Transform": {"Name": SAM_TRANSFORM, "Parameters": parameters}}


def s3_template_url(bucket: Any, key: Any, version: Any = None) -> Any:
    """HTTPS URL of a template object, as ``Fn::Sub`` when any part is an intrinsic."""
    if isinstance(bucket, str) and isinstance(key, str) and not is_intrinsic(version):
        url = f"https://{bucket}.s3.amazonaws.com/{key}"
        if version is not None:
            url += f"?versionId={version}"
        return url

    variables: dict[str, Any] = {"Bucket": bucket, "Key": key}
    template = "https://${Bucket}.s3.amazonaws.com/${Key}"
    if version is not None:
        template += "?versionId=${Version}"
        variables["Version"] = version
    return sub(template, variables)


def template_url(location: Any) -> Any:
    """Resolve an application ``Location`` to the stack's ``TemplateURL``.

    Args:
    ----
        location: A repository ARN, a URL, an ``{ApplicationId,
            SemanticVersion}`` map or a ``{Bucket, Key, Version}`` map.

    Returns:
    -------
        A URL string, an ``Fn::Sub`` or an ``Fn::Transform`` map.

    Raises:
    ------
        MissingOrInvalidPropertyError: If the location has none of these shapes.

    """
    if isinstance(location, str):
        if is_repository_application(location):
            return repository_template_url(location)
        return location

    if isinstance(location, dict):
        if "ApplicationId" in location:
            return repository_template_url(
                location["ApplicationId"], location.get("SemanticVersion")
            )
        if "Bucket" in location:
            if "Key" not in location:
                raise MissingOrInvalidPropertyError(
                    "Location with Bucket requires Key", path="Properties.Location"
                )
            return s3_template_url(location["Bucket"], location["Key"], location.get("Version"))
        if is_intrinsic(location):
            return location

    raise MissingOrInvalidPropertyError(
        "Location must be a URL, an ApplicationId/SemanticVersion map or a Bucket/Key map",
        path="Properties.Location",
    )


class ApplicationConverter(ResourceConverter):
    resource_type = SERVERLESS_APPLICATION

    def convert(
        self, logical_id: str, resource: dict[str, Any], context: ConversionContext
    ) -> Resources:
        props = parse_properties(ApplicationProperties, resource.get("Properties"), logical_id)

        stack: dict[str, Any] = {"TemplateURL": template_url(props.location)}
        if props.parameters:
            stack["Parameters"] = props.parameters
        if props.notification_arns:
            stack["NotificationARNs"] = props.notification_arns
        if props.tags:
            stack["Tags"] = tag_list(props.tags)
        if props.timeout_in_minutes is not None:
            stack["TimeoutInMinutes"] = props.timeout_in_minutes
        return {logical_id: cfn_resource(CLOUDFORMATION_STACK, stack)}
