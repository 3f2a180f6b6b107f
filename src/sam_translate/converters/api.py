"""``AWS::Serverless::Api`` to a REST API with its deployment and stage.

The deployment's logical ID carries a hash of the API definition, so any
change to the definition yields a new deployment resource and CloudFormation
redeploys the stage.
"""

from __future__ import annotations

import logging
from typing import Any

from sam_translate.converters.base import (
    ConversionContext,
    ResourceConverter,
    Resources,
    cfn_resource,
    copy_properties,
    lambda_permission,
    s3_location,
    tag_list,
)
from sam_translate.core.arn import lambda_invocation_uri_sub
from sam_translate.core.intrinsics import ref, sub
from sam_translate.core.logical_id import canonical_json, hash_data
from sam_translate.models.properties import ApiProperties, parse_properties
from sam_translate.models.template import APIGATEWAY_REST_API, SERVERLESS_API
from sam_translate.validation.exceptions import MissingOrInvalidPropertyError

logger = logging.getLogger(__name__)

APIGATEWAY_DEPLOYMENT = "AWS::ApiGateway::Deployment"
APIGATEWAY_STAGE = "AWS::ApiGateway::Stage"
APIGATEWAY_AUTHORIZER = "AWS::ApiGateway::Authorizer"

COGNITO_AUTHORIZER = "COGNITO_USER_POOLS"
TOKEN_AUTHORIZER = "TOKEN"
REQUEST_AUTHORIZER = "REQUEST"

_IDENTITY_SOURCES = (
    ("Headers", "method.request.header"),
    ("QueryStrings", "method.request.querystring"),
    ("StageVariables", "stageVariables"),
    ("Context", "context"),
)


def definition_text(props: ApiProperties) -> str:
    """Text whose hash identifies one version of the API definition."""
    if props.definition_body is not None:
        return canonical_json(props.definition_body)
    if isinstance(props.definition_uri, str):
        return props.definition_uri
    if props.definition_uri is not None:
        return canonical_json(props.definition_uri)
    return ""


def endpoint_configuration(value: Any) -> Any:
    """``EndpointConfiguration`` as a type name or ``{Type, VPCEndpointIds}``."""
    if isinstance(value, str):
        return {"Types": [value]}
    if isinstance(value, dict) and ("Type" in value or "VPCEndpointIds" in value):
        config: dict[str, Any] = {}
        if value.get("Type") is not None:
            config["Types"] = [value["Type"]]
        if value.get("VPCEndpointIds") is not None:
            config["VpcEndpointIds"] = value["VPCEndpointIds"]
        return config
    return value


class ApiConverter(ResourceConverter):
    """Builds ``RestApi`` + ``Deployment`` + ``Stage`` and any Lambda/Cognito authorizers."""

    resource_type = SERVERLESS_API

    def convert(
        self, logical_id: str, resource: dict[str, Any], context: ConversionContext
    ) -> Resources:
        raw = resource.get("Properties") or {}
        props = parse_properties(ApiProperties, raw, logical_id)
        if props.stage_name is None or props.stage_name == "":
            raise MissingOrInvalidPropertyError(
                "StageName is required", path="Properties.StageName"
            )

        rest_api: dict[str, Any] = {}
        copy_properties(raw, rest_api, "Name", "Description")
        if props.definition_body is not None:
            rest_api["Body"] = props.definition_body
        elif props.definition_uri is not None:
            rest_api["BodyS3Location"] = s3_location(props.definition_uri, "DefinitionUri")
        copy_properties(
            raw,
            rest_api,
            "BinaryMediaTypes",
            "MinimumCompressionSize",
            "FailOnWarnings",
            "DisableExecuteApiEndpoint",
            "ApiKeySourceType",
            "Mode",
        )
        if props.endpoint_configuration is not None:
            rest_api["EndpointConfiguration"] = endpoint_configuration(
                props.endpoint_configuration
            )
        if props.tags:
            rest_api["Tags"] = tag_list(props.tags)

        spec_text = definition_text(props)
        deployment_id = context.id_generator.deployment_id(logical_id, spec_text)
        deployment = {
            "RestApiId": ref(logical_id),
            "Description": f"RestApi deployment id: {hash_data(spec_text)}",
        }

        stage_part = props.stage_name if isinstance(props.stage_name, str) else ""
        stage_id = context.id_generator.generate(logical_id, stage_part, "Stage")
        stage: dict[str, Any] = {
            "RestApiId": ref(logical_id),
            "StageName": props.stage_name,
            "DeploymentId": ref(deployment_id),
        }
        copy_properties(
            raw,
            stage,
            "Variables",
            "CacheClusterEnabled",
            "CacheClusterSize",
            "TracingEnabled",
            "AccessLogSetting",
            "MethodSettings",
            "CanarySetting",
        )
        if props.tags:
            stage["Tags"] = tag_list(props.tags)

        result: Resources = {
            logical_id: cfn_resource(APIGATEWAY_REST_API, rest_api),
            deployment_id: cfn_resource(APIGATEWAY_DEPLOYMENT, deployment),
            stage_id: cfn_resource(APIGATEWAY_STAGE, stage),
        }
        result.update(self._authorizers(logical_id, props, context))
        logger.debug("Api %s deployed as %s", logical_id, deployment_id)
        return result

    def _authorizers(
        self, logical_id: str, props: ApiProperties, context: ConversionContext
    ) -> Resources:
        auth = props.auth or {}
        authorizers = auth.get("Authorizers") or {}
        if not isinstance(authorizers, dict):
            raise MissingOrInvalidPropertyError(
                "Auth.Authorizers must be a map", path="Properties.Auth.Authorizers"
            )

        result: Resources = {}
        for name, config in authorizers.items():
            if not isinstance(config, dict):
                raise MissingOrInvalidPropertyError(
                    f"authorizer '{name}' must be a map", path=f"Properties.Auth.Authorizers.{name}"
                )
            # A definition body already declares its authorizers as security schemes.
            if props.definition_body is None:
                authorizer = authorizer_properties(logical_id, name, config)
                if authorizer is not None:
                    result[context.id_generator.generate(logical_id, name, "Authorizer")] = (
                        cfn_resource(APIGATEWAY_AUTHORIZER, authorizer)
                    )
            if "FunctionArn" in config:
                permission_id = context.id_generator.generate(
                    logical_id, name, "AuthorizerPermission"
                )
                result[permission_id] = lambda_permission(
                    config["FunctionArn"],
                    "apigateway.amazonaws.com",
                    source_arn=sub(
                        "arn:${AWS::Partition}:execute-api:${AWS::Region}:${AWS::AccountId}:"
                        "${__ApiId__}/authorizers/*",
                        {"__ApiId__": ref(logical_id)},
                    ),
                )
        return result


def authorizer_properties(
    api_logical_id: str, name: str, config: dict[str, Any]
) -> dict[str, Any] | None:
    """Properties of an ``AWS::ApiGateway::Authorizer``, or None for unknown shapes.

    Args:
    ----
        api_logical_id: The REST API the authorizer belongs to.
        name: Authorizer name from ``Auth.Authorizers``.
        config: Its configuration map.

    Returns:
    -------
        The properties map, or None if ``config`` has neither ``UserPoolArn``
        nor ``FunctionArn``.

    """
    identity = config.get("Identity")
    identity = identity if isinstance(identity, dict) else {}
    header = identity.get("Header", "Authorization")

    properties: dict[str, Any] = {"Name": name, "RestApiId": ref(api_logical_id)}
    if "UserPoolArn" in config:
        arns = config["UserPoolArn"]
        properties["Type"] = COGNITO_AUTHORIZER
        properties["ProviderARNs"] = arns if isinstance(arns, list) else [arns]
        properties["IdentitySource"] = f"method.request.header.{header}"
    elif "FunctionArn" in config:
        payload = str(config.get("FunctionPayloadType", TOKEN_AUTHORIZER)).upper()
        if payload != REQUEST_AUTHORIZER:
            payload = TOKEN_AUTHORIZER
        properties["Type"] = payload
        properties["AuthorizerUri"] = lambda_invocation_uri_sub(config["FunctionArn"])
        if properties["Type"] == TOKEN_AUTHORIZER:
            properties["IdentitySource"] = f"method.request.header.{header}"
        else:
            sources = request_identity_sources(identity)
            if sources:
                properties["IdentitySource"] = sources
        if config.get("FunctionInvokeRole") is not None:
            properties["AuthorizerCredentials"] = config["FunctionInvokeRole"]
    else:
        return None

    if identity.get("ValidationExpression") is not None:
        properties["IdentityValidationExpression"] = identity["ValidationExpression"]
    if identity.get("ReauthorizeEvery") is not None:
        properties["AuthorizerResultTtlInSeconds"] = identity["ReauthorizeEvery"]
    return properties


def request_identity_sources(identity: dict[str, Any]) -> str:
    """Comma-joined identity sources of a ``REQUEST`` authorizer."""
    sources: list[str] = []
    for key, prefix in _IDENTITY_SOURCES:
        for value in identity.get(key) or []:
            sources.append(f"{prefix}.{value}")
    return ", ".join(sources)
