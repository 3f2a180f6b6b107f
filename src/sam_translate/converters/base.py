"""Shared converter interface and per-call conversion state."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from sam_translate.core.arn import ArnBuilder
from sam_translate.core.logical_id import LogicalIdGenerator
from sam_translate.models.options import TransformOptions
from sam_translate.validation.exceptions import MissingOrInvalidPropertyError

Resources = dict[str, dict[str, Any]]

S3_SCHEME = "s3://"
LAMBDA_PERMISSION = "AWS::Lambda::Permission"
LAMBDA_CODE_KEYS = ("S3Bucket", "S3Key", "S3ObjectVersion")


@dataclass
class ConversionContext:
    """State shared by every converter during one translation.

    Attributes
    ----------
        options: Options of the translation call.
        resources: The template's ``Resources`` after the plugin pipeline ran.
        converted: Target resources produced so far, in output order.
        id_generator: Logical ID generator shared by all converters.
        arn_builder: ARN builder bound to the options' partition, region and account.
        renamed: Old logical ID to new logical ID, for converters that rename.

    """

    options: TransformOptions = field(default_factory=TransformOptions)
    resources: dict[str, Any] = field(default_factory=dict)
    converted: Resources = field(default_factory=dict)
    id_generator: LogicalIdGenerator = field(default_factory=LogicalIdGenerator)
    arn_builder: ArnBuilder = field(init=False)
    renamed: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.arn_builder = self.options.arn_builder()

    def resource_type(self, logical_id: str) -> str | None:
        """Type of a resource, preferring its converted form."""
        for source in (self.converted, self.resources):
            resource = source.get(logical_id)
            if isinstance(resource, dict) and isinstance(resource.get("Type"), str):
                return resource["Type"]
        return None


class ResourceConverter(ABC):
    """Converts one ``AWS::Serverless::*`` kind into CloudFormation resources.

    The first entry of the returned map is the primary resource, the one that
    receives ``Condition``, ``DependsOn`` and ``Metadata`` from the source.
    """

    resource_type: str = ""

    @abstractmethod
    def convert(
        self, logical_id: str, resource: dict[str, Any], context: ConversionContext
    ) -> Resources:
        """Convert a serverless resource.

        Args:
        ----
            logical_id: Logical ID of the source resource.
            resource: The source resource (``Type``, ``Properties`` ...).
            context: Shared conversion state.

        Returns:
        -------
            Generated logical IDs mapped to target resources, primary first.

        Raises:
        ------
            SamTranslateError: If the resource cannot be converted.

        """
        ...


def cfn_resource(
    resource_type: str, properties: dict[str, Any], **attributes: Any
) -> dict[str, Any]:
    """Build ``{"Type": ..., "Properties": ...}`` plus optional resource attributes."""
    resource: dict[str, Any] = {"Type": resource_type, "Properties": properties}
    resource.update({key: value for key, value in attributes.items() if value is not None})
    return resource


def copy_properties(source: dict[str, Any], target: dict[str, Any], *names: str) -> None:
    """Copy each named property that is present in ``source``."""
    for name in names:
        if source.get(name) is not None:
            target[name] = source[name]


def tag_list(tags: dict[str, Any] | None, created_by: str | None = None) -> list[dict[str, Any]]:
    """Render a tag map as a CloudFormation ``[{Key, Value}]`` list.

    ``created_by`` puts a ``<created_by>:createdBy=SAM`` tag first; the user's
    tags follow in key order.
    """
    result: list[dict[str, Any]] = []
    if created_by:
        result.append({"Key": f"{created_by}:createdBy", "Value": "SAM"})
    for key in sorted(tags or {}):
        result.append({"Key": key, "Value": tags[key]})  # type: ignore[index]
    return result


def s3_location(
    value: Any,
    property_name: str,
    keys: tuple[str, str, str] = ("Bucket", "Key", "Version"),
) -> dict[str, Any]:
    """Turn an ``s3://bucket/key`` URI or a ``{Bucket, Key, Version}`` map into a location.

    Args:
    ----
        value: The property value.
        property_name: Property name used in error paths.
        keys: Output names for the bucket, key and version fields.

    Returns:
    -------
        The location map, e.g. ``{"S3Bucket": ..., "S3Key": ...}``.

    Raises:
    ------
        MissingOrInvalidPropertyError: If the URI or the map is malformed.

    """
    bucket_key, key_key, version_key = keys
    path = f"Properties.{property_name}"

    if isinstance(value, str):
        if not value.startswith(S3_SCHEME):
            raise MissingOrInvalidPropertyError(
                f"invalid S3 URI: must start with {S3_SCHEME}", path=path
            )
        bucket, _, key = value[len(S3_SCHEME) :].partition("/")
        if not bucket or not key:
            raise MissingOrInvalidPropertyError(
                "invalid S3 URI: must have bucket and key", path=path
            )
        return {bucket_key: bucket, key_key: key}

    if isinstance(value, dict):
        location: dict[str, Any] = {}
        for source, target in (("Bucket", bucket_key), ("Key", key_key)):
            if value.get(source) is None:
                raise MissingOrInvalidPropertyError(
                    f"{property_name} object missing {source} property", path=path
                )
            location[target] = value[source]
        if value.get("Version") is not None:
            location[version_key] = value["Version"]
        return location

    raise MissingOrInvalidPropertyError(
        f"{property_name} must be an S3 URI or a map with Bucket and Key", path=path
    )


def lambda_permission(
    function_ref: Any,
    principal: Any,
    source_arn: Any = None,
    source_account: Any = None,
) -> dict[str, Any]:
    """Build an ``AWS::Lambda::Permission`` allowing ``principal`` to invoke a function."""
    properties: dict[str, Any] = {
        "Action": "lambda:InvokeFunction",
        "FunctionName": function_ref,
        "Principal": principal,
    }
    if source_account is not None:
        properties["SourceAccount"] = source_account
    if source_arn is not None:
        properties["SourceArn"] = source_arn
    return cfn_resource(LAMBDA_PERMISSION, properties)
