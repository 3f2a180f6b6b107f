"""Typed property models for each AWS::Serverless::* resource kind.

Every model accepts unknown keys into ``model_extra`` so a converter can
report them instead of failing on properties it does not translate. Values
that CloudFormation lets you compute with intrinsics (``Ref``, ``Fn::Sub``,
...) are typed ``Any``.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from sam_translate.validation.exceptions import MissingOrInvalidPropertyError
from sam_translate.validation.pydantic_errors import property_error

logger = logging.getLogger(__name__)


class PropertyModel(BaseModel):
    """Base model for a resource's ``Properties`` map."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @property
    def unknown_properties(self) -> dict[str, Any]:
        """Properties present in the template but not modelled."""
        return dict(self.model_extra or {})


class EventSource(BaseModel):
    """One entry of an ``Events`` map."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    type: Annotated[str, Field(alias="Type", min_length=1)]
    properties: Annotated[dict[str, Any], Field(alias="Properties", default_factory=dict)]


class FunctionProperties(PropertyModel):
    """``AWS::Serverless::Function`` properties."""

    handler: Annotated[Any, Field(alias="Handler")] = None
    runtime: Annotated[Any, Field(alias="Runtime")] = None
    code_uri: Annotated[Any, Field(alias="CodeUri")] = None
    inline_code: Annotated[Any, Field(alias="InlineCode")] = None
    image_uri: Annotated[Any, Field(alias="ImageUri")] = None
    package_type: Annotated[Literal["Zip", "Image"] | None, Field(alias="PackageType")] = None
    function_name: Annotated[Any, Field(alias="FunctionName")] = None
    description: Annotated[Any, Field(alias="Description")] = None
    memory_size: Annotated[Any, Field(alias="MemorySize")] = None
    timeout: Annotated[Any, Field(alias="Timeout")] = None
    role: Annotated[Any, Field(alias="Role")] = None
    role_path: Annotated[Any, Field(alias="RolePath")] = None
    policies: Annotated[Any, Field(alias="Policies")] = None
    permissions_boundary: Annotated[Any, Field(alias="PermissionsBoundary")] = None
    assume_role_policy_document: Annotated[
        dict[str, Any] | None, Field(alias="AssumeRolePolicyDocument")
    ] = None
    environment: Annotated[dict[str, Any] | None, Field(alias="Environment")] = None
    vpc_config: Annotated[dict[str, Any] | None, Field(alias="VpcConfig")] = None
    events: Annotated[dict[str, EventSource], Field(alias="Events", default_factory=dict)]
    tags: Annotated[dict[str, Any], Field(alias="Tags", default_factory=dict)]
    tracing: Annotated[Any, Field(alias="Tracing")] = None
    layers: Annotated[list[Any] | None, Field(alias="Layers")] = None
    architectures: Annotated[list[Any] | None, Field(alias="Architectures")] = None
    auto_publish_alias: Annotated[Any, Field(alias="AutoPublishAlias")] = None
    auto_publish_code_sha256: Annotated[str | None, Field(alias="AutoPublishCodeSha256")] = None
    ephemeral_storage: Annotated[dict[str, Any] | None, Field(alias="EphemeralStorage")] = None
    reserved_concurrent_executions: Annotated[
        Any, Field(alias="ReservedConcurrentExecutions")
    ] = None
    provisioned_concurrency_config: Annotated[
        dict[str, Any] | None, Field(alias="ProvisionedConcurrencyConfig")
    ] = None
    kms_key_arn: Annotated[Any, Field(alias="KmsKeyArn")] = None
    dead_letter_queue: Annotated[dict[str, Any] | None, Field(alias="DeadLetterQueue")] = None
    image_config: Annotated[dict[str, Any] | None, Field(alias="ImageConfig")] = None
    file_system_configs: Annotated[list[Any] | None, Field(alias="FileSystemConfigs")] = None
    logging_config: Annotated[dict[str, Any] | None, Field(alias="LoggingConfig")] = None
    snap_start: Annotated[dict[str, Any] | None, Field(alias="SnapStart")] = None


class ApiProperties(PropertyModel):
    """``AWS::Serverless::Api`` properties."""

    stage_name: Annotated[Any, Field(alias="StageName")]
    name: Annotated[Any, Field(alias="Name")] = None
    description: Annotated[Any, Field(alias="Description")] = None
    definition_body: Annotated[dict[str, Any] | None, Field(alias="DefinitionBody")] = None
    definition_uri: Annotated[Any, Field(alias="DefinitionUri")] = None
    binary_media_types: Annotated[list[Any] | None, Field(alias="BinaryMediaTypes")] = None
    minimum_compression_size: Annotated[Any, Field(alias="MinimumCompressionSize")] = None
    endpoint_configuration: Annotated[Any, Field(alias="EndpointConfiguration")] = None
    fail_on_warnings: Annotated[Any, Field(alias="FailOnWarnings")] = None
    disable_execute_api_endpoint: Annotated[Any, Field(alias="DisableExecuteApiEndpoint")] = None
    api_key_source_type: Annotated[Any, Field(alias="ApiKeySourceType")] = None
    mode: Annotated[Any, Field(alias="Mode")] = None
    tags: Annotated[dict[str, Any], Field(alias="Tags", default_factory=dict)]
    variables: Annotated[dict[str, Any] | None, Field(alias="Variables")] = None
    cache_cluster_enabled: Annotated[Any, Field(alias="CacheClusterEnabled")] = None
    cache_cluster_size: Annotated[Any, Field(alias="CacheClusterSize")] = None
    tracing_enabled: Annotated[Any, Field(alias="TracingEnabled")] = None
    access_log_setting: Annotated[dict[str, Any] | None, Field(alias="AccessLogSetting")] = None
    method_settings: Annotated[list[Any] | None, Field(alias="MethodSettings")] = None
    canary_setting: Annotated[dict[str, Any] | None, Field(alias="CanarySetting")] = None
    cors: Annotated[Any, Field(alias="Cors")] = None
    auth: Annotated[dict[str, Any] | None, Field(alias="Auth")] = None
    open_api_version: Annotated[str | None, Field(alias="OpenApiVersion")] = None


class HttpApiProperties(PropertyModel):
    """``AWS::Serverless::HttpApi`` properties."""

    stage_name: Annotated[Any, Field(alias="StageName")] = None
    name: Annotated[Any, Field(alias="Name")] = None
    description: Annotated[Any, Field(alias="Description")] = None
    definition_body: Annotated[dict[str, Any] | None, Field(alias="DefinitionBody")] = None
    definition_uri: Annotated[Any, Field(alias="DefinitionUri")] = None
    cors_configuration: Annotated[Any, Field(alias="CorsConfiguration")] = None
    fail_on_warnings: Annotated[Any, Field(alias="FailOnWarnings")] = None
    disable_execute_api_endpoint: Annotated[Any, Field(alias="DisableExecuteApiEndpoint")] = None
    tags: Annotated[dict[str, Any], Field(alias="Tags", default_factory=dict)]
    access_log_settings: Annotated[dict[str, Any] | None, Field(alias="AccessLogSettings")] = None
    default_route_settings: Annotated[
        dict[str, Any] | None, Field(alias="DefaultRouteSettings")
    ] = None
    route_settings: Annotated[dict[str, Any] | None, Field(alias="RouteSettings")] = None
    stage_variables: Annotated[dict[str, Any] | None, Field(alias="StageVariables")] = None
    auth: Annotated[dict[str, Any] | None, Field(alias="Auth")] = None


class PrimaryKey(BaseModel):
    """``PrimaryKey`` of a simple table."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    name: Annotated[Any, Field(alias="Name")]
    type: Annotated[Literal["String", "Number", "Binary"], Field(alias="Type")]


class SimpleTableProperties(PropertyModel):
    """``AWS::Serverless::SimpleTable`` properties."""

    primary_key: Annotated[PrimaryKey | None, Field(alias="PrimaryKey")] = None
    provisioned_throughput: Annotated[
        dict[str, Any] | None, Field(alias="ProvisionedThroughput")
    ] = None
    table_name: Annotated[Any, Field(alias="TableName")] = None
    sse_specification: Annotated[dict[str, Any] | None, Field(alias="SSESpecification")] = None
    point_in_time_recovery_specification: Annotated[
        dict[str, Any] | None, Field(alias="PointInTimeRecoverySpecification")
    ] = None
    tags: Annotated[dict[str, Any], Field(alias="Tags", default_factory=dict)]


class LayerVersionProperties(PropertyModel):
    """``AWS::Serverless::LayerVersion`` properties."""

    content_uri: Annotated[Any, Field(alias="ContentUri")]
    layer_name: Annotated[Any, Field(alias="LayerName")] = None
    description: Annotated[Any, Field(alias="Description")] = None
    compatible_runtimes: Annotated[list[Any] | None, Field(alias="CompatibleRuntimes")] = None
    compatible_architectures: Annotated[
        list[Any] | None, Field(alias="CompatibleArchitectures")
    ] = None
    license_info: Annotated[Any, Field(alias="LicenseInfo")] = None
    retention_policy: Annotated[str | None, Field(alias="RetentionPolicy")] = None


class StateMachineProperties(PropertyModel):
    """``AWS::Serverless::StateMachine`` properties."""

    definition: Annotated[dict[str, Any] | None, Field(alias="Definition")] = None
    definition_uri: Annotated[Any, Field(alias="DefinitionUri")] = None
    definition_substitutions: Annotated[
        dict[str, Any] | None, Field(alias="DefinitionSubstitutions")
    ] = None
    role: Annotated[Any, Field(alias="Role")] = None
    role_path: Annotated[Any, Field(alias="RolePath")] = None
    policies: Annotated[Any, Field(alias="Policies")] = None
    permissions_boundary: Annotated[Any, Field(alias="PermissionsBoundary")] = None
    name: Annotated[Any, Field(alias="Name")] = None
    type: Annotated[Any, Field(alias="Type")] = None
    tags: Annotated[dict[str, Any], Field(alias="Tags", default_factory=dict)]
    tracing: Annotated[dict[str, Any] | None, Field(alias="Tracing")] = None
    logging: Annotated[dict[str, Any] | None, Field(alias="Logging")] = None
    events: Annotated[dict[str, EventSource], Field(alias="Events", default_factory=dict)]


class ApplicationProperties(PropertyModel):
    """``AWS::Serverless::Application`` properties."""

    location: Annotated[Any, Field(alias="Location")]
    parameters: Annotated[dict[str, Any] | None, Field(alias="Parameters")] = None
    notification_arns: Annotated[list[Any] | None, Field(alias="NotificationARNs")] = None
    tags: Annotated[dict[str, Any], Field(alias="Tags", default_factory=dict)]
    timeout_in_minutes: Annotated[Any, Field(alias="TimeoutInMinutes")] = None


class GraphQLApiProperties(PropertyModel):
    """``AWS::Serverless::GraphQLApi`` properties."""

    name: Annotated[Any, Field(alias="Name")] = None
    auth: Annotated[dict[str, Any] | None, Field(alias="Auth")] = None
    schema_inline: Annotated[Any, Field(alias="SchemaInline")] = None
    schema_uri: Annotated[Any, Field(alias="SchemaUri")] = None
    data_sources: Annotated[dict[str, Any], Field(alias="DataSources", default_factory=dict)]
    functions: Annotated[dict[str, Any], Field(alias="Functions", default_factory=dict)]
    resolvers: Annotated[dict[str, Any], Field(alias="Resolvers", default_factory=dict)]
    api_keys: Annotated[dict[str, Any] | None, Field(alias="ApiKeys")] = None
    cache: Annotated[dict[str, Any] | None, Field(alias="Cache")] = None
    logging: Annotated[Any, Field(alias="Logging")] = None
    xray_enabled: Annotated[Any, Field(alias="XrayEnabled")] = None
    tags: Annotated[dict[str, Any], Field(alias="Tags", default_factory=dict)]


class ConnectorEndpoint(BaseModel):
    """Source or destination of a connector."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    id: Annotated[str | None, Field(alias="Id")] = None
    type: Annotated[str | None, Field(alias="Type")] = None
    arn: Annotated[Any, Field(alias="Arn")] = None
    role_name: Annotated[Any, Field(alias="RoleName")] = None
    queue_url: Annotated[Any, Field(alias="QueueUrl")] = None
    name: Annotated[Any, Field(alias="Name")] = None
    resource_id: Annotated[Any, Field(alias="ResourceId")] = None
    qualifier: Annotated[Any, Field(alias="Qualifier")] = None


class ConnectorProperties(PropertyModel):
    """``AWS::Serverless::Connector`` properties."""

    source: Annotated[ConnectorEndpoint, Field(alias="Source")]
    destination: Annotated[
        ConnectorEndpoint | list[ConnectorEndpoint], Field(alias="Destination")
    ]
    permissions: Annotated[
        list[Literal["Read", "Write"]], Field(alias="Permissions", min_length=1)
    ]

    @property
    def destinations(self) -> list[ConnectorEndpoint]:
        if isinstance(self.destination, list):
            return self.destination
        return [self.destination]


PropertyModelT = TypeVar("PropertyModelT", bound=BaseModel)


def parse_properties(
    model: type[PropertyModelT],
    properties: Any,
    logical_id: str | None = None,
) -> PropertyModelT:
    """Validate a raw ``Properties`` map against a property model.

    Args:
    ----
        model: The property model class for the resource kind.
        properties: The raw ``Properties`` value (``None`` means empty).
        logical_id: Used only for logging unknown properties.

    Returns:
    -------
        The validated model instance.

    Raises:
    ------
        MissingOrInvalidPropertyError: If the map is malformed, naming the
            offending property path.

    """
    if properties is None:
        properties = {}
    if not isinstance(properties, dict):
        raise MissingOrInvalidPropertyError("Properties must be a map", path="Properties")

    try:
        parsed = model.model_validate(properties)
    except ValidationError as e:
        raise property_error(e) from e

    if isinstance(parsed, PropertyModel) and parsed.unknown_properties:
        logger.warning(
            "Resource %s: ignoring unsupported properties %s",
            logical_id or "<unknown>",
            ", ".join(sorted(parsed.unknown_properties)),
        )
    return parsed
