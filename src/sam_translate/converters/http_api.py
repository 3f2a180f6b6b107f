"""``AWS::Serverless::HttpApi`` to ``AWS::ApiGatewayV2::Api`` + ``Stage``."""

from __future__ import annotations

from typing import Any

from sam_translate.converters.base import (
    ConversionContext,
    ResourceConverter,
    Resources,
    cfn_resource,
    copy_properties,
    s3_location,
)
from sam_translate.core.arn import lambda_invocation_uri_sub
from sam_translate.core.intrinsics import ref
from sam_translate.models.properties import HttpApiProperties, parse_properties
from sam_translate.models.template import APIGATEWAYV2_API, SERVERLESS_HTTP_API
from sam_translate.openapi.generator import DEFAULT_PAYLOAD_FORMAT_VERSION
from sam_translate.openapi.routes import HTTP_DEFAULT_ROUTE
from sam_translate.validation.exceptions import MissingOrInvalidPropertyError

APIGATEWAYV2_STAGE = "AWS::ApiGatewayV2::Stage"
APIGATEWAYV2_AUTHORIZER = "AWS::ApiGatewayV2::Authorizer"

DEFAULT_IDENTITY_SOURCE = "$request.header.Authorization"

DEFAULT_CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]
DEFAULT_CORS_HEADERS = [
    "Content-Type",
    "X-Amz-Date",
    "Authorization",
    "X-Api-Key",
    "X-Amz-Security-Token",
]

DEFAULT_ACCESS_LOG_FORMAT = (
    '{"requestId":"$context.requestId","ip":"$context.identity.sourceIp",'
    '"requestTime":"$context.requestTime","httpMethod":"$context.httpMethod",'
    '"routeKey":"$context.routeKey","status":"$context.status",'
    '"protocol":"$context.protocol","responseLength":"$context.responseLength"}'
)

_CORS_FIELDS = (
    "AllowOrigins",
    "AllowMethods",
    "AllowHeaders",
    "ExposeHeaders",
    "AllowCredentials",
    "MaxAge",
)


def cors_configuration(value: Any) -> dict[str, Any] | None:
    """``CorsConfiguration`` from ``true``, a single origin, or a map."""
    if value is True:
        return {
            "AllowOrigins": ["*"],
            "AllowMethods": list(DEFAULT_CORS_METHODS),
            "AllowHeaders": list(DEFAULT_CORS_HEADERS),
        }
    if isinstance(value, str):
        return {"AllowOrigins": [value]}
    if isinstance(value, dict):
        config: dict[str, Any] = {}
        copy_properties(value, config, *_CORS_FIELDS)
        return config
    return None


class HttpApiConverter(ResourceConverter):
    resource_type = SERVERLESS_HTTP_API

    def convert(
        self, logical_id: str, resource: dict[str, Any], context: ConversionContext
    ) -> Resources:
        raw = resource.get("Properties") or {}
        props = parse_properties(HttpApiProperties, raw, logical_id)

        api: dict[str, Any] = {
            "ProtocolType": "HTTP",
            "Name": props.name if props.name is not None else logical_id,
        }
        copy_properties(raw, api, "Description")
        if props.definition_body is not None:
            api["Body"] = props.definition_body
        elif props.definition_uri is not None:
            api["BodyS3Location"] = s3_location(props.definition_uri, "DefinitionUri")
        cors = cors_configuration(props.cors_configuration)
        if cors is not None:
            api["CorsConfiguration"] = cors
        copy_properties(raw, api, "FailOnWarnings", "DisableExecuteApiEndpoint")
        if props.tags:
            api["Tags"] = dict(props.tags)

        stage: dict[str, Any] = {
            "ApiId": ref(logical_id),
            "StageName": props.stage_name if props.stage_name is not None else HTTP_DEFAULT_ROUTE,
            "AutoDeploy": True,
        }
        if props.access_log_settings:
            settings = dict(props.access_log_settings)
            if settings.get("DestinationArn") is not None:
                settings.setdefault("Format", DEFAULT_ACCESS_LOG_FORMAT)
            stage["AccessLogSettings"] = settings
        copy_properties(raw, stage, "DefaultRouteSettings", "RouteSettings", "StageVariables")
        if props.tags:
            stage["Tags"] = dict(props.tags)

        result: Resources = {
            logical_id: cfn_resource(APIGATEWAYV2_API, api),
            context.id_generator.generate(logical_id, "Stage"): cfn_resource(
                APIGATEWAYV2_STAGE, stage
            ),
        }
        result.update(self._authorizers(logical_id, props, context))
        return result

    def _authorizers(
        self, logical_id: str, props: HttpApiProperties, context: ConversionContext
    ) -> Resources:
        authorizers = (props.auth or {}).get("Authorizers") or {}
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
            authorizer: dict[str, Any] = {"ApiId": ref(logical_id), "Name": name}
            if "JwtConfiguration" in config:
                authorizer["AuthorizerType"] = "JWT"
                authorizer["JwtConfiguration"] = config["JwtConfiguration"]
                authorizer["IdentitySource"] = config.get(
                    "IdentitySource", [DEFAULT_IDENTITY_SOURCE]
                )
            elif "FunctionArn" in config:
                authorizer["AuthorizerType"] = "REQUEST"
                authorizer["AuthorizerUri"] = lambda_invocation_uri_sub(config["FunctionArn"])
                authorizer["AuthorizerPayloadFormatVersion"] = config.get(
                    "AuthorizerPayloadFormatVersion", DEFAULT_PAYLOAD_FORMAT_VERSION
                )
                copy_properties(
                    config,
                    authorizer,
                    "EnableSimpleResponses",
                    "IdentitySource",
                    "AuthorizerResultTtlInSeconds",
                )
            else:
                raise MissingOrInvalidPropertyError(
                    f"authorizer '{name}' needs JwtConfiguration or FunctionArn",
                    path=f"Properties.Auth.Authorizers.{name}",
                )
            # A definition body already declares its authorizers as security schemes.
            if props.definition_body is None:
                authorizer_id = context.id_generator.generate(logical_id, name, "Authorizer")
                result[authorizer_id] = cfn_resource(APIGATEWAYV2_AUTHORIZER, authorizer)
        return result
