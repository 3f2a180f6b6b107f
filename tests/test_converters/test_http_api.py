"""Tests for the HTTP API converter."""

from typing import Any

import pytest

from sam_translate.converters.base import ConversionContext
from sam_translate.converters.http_api import (
    DEFAULT_ACCESS_LOG_FORMAT,
    HttpApiConverter,
    cors_configuration,
)
from sam_translate.validation.exceptions import MissingOrInvalidPropertyError


def convert(properties: dict[str, Any], context: ConversionContext) -> dict[str, Any]:
    resource = {"Type": "AWS::Serverless::HttpApi", "Properties": properties}
    return HttpApiConverter().convert("Http", resource, context)


class TestHttpApiConverter:
    """Tests for HttpApiConverter."""

    def test_defaults(self, context: ConversionContext) -> None:
        """Should emit an HTTP API and an auto-deployed default stage."""
        result = convert({}, context)

        assert list(result) == ["Http", "HttpStage"]
        api = result["Http"]
        assert api["Type"] == "AWS::ApiGatewayV2::Api"
        assert api["Properties"] == {"ProtocolType": "HTTP", "Name": "Http"}
        stage = result["HttpStage"]["Properties"]
        assert stage == {"ApiId": {"Ref": "Http"}, "StageName": "$default", "AutoDeploy": True}

    def test_named_stage(self, context: ConversionContext) -> None:
        """Should keep the stage ID when the stage is named."""
        result = convert({"StageName": "v1"}, context)

        assert result["HttpStage"]["Properties"]["StageName"] == "v1"

    def test_access_log_format_default(self, context: ConversionContext) -> None:
        """Should fill in a log format for a destination without one."""
        result = convert({"AccessLogSettings": {"DestinationArn": "arn:logs"}}, context)

        settings = result["HttpStage"]["Properties"]["AccessLogSettings"]
        assert settings["Format"] == DEFAULT_ACCESS_LOG_FORMAT

    def test_tags_as_map(self, context: ConversionContext) -> None:
        """Should keep HTTP API tags as a map."""
        result = convert({"Tags": {"env": "dev"}}, context)

        assert result["Http"]["Properties"]["Tags"] == {"env": "dev"}
        assert result["HttpStage"]["Properties"]["Tags"] == {"env": "dev"}

    def test_jwt_authorizer(self, context: ConversionContext) -> None:
        """Should build a JWT authorizer with the default identity source."""
        jwt = {"Issuer": "https://issuer", "Audience": ["app"]}
        result = convert({"Auth": {"Authorizers": {"Jwt": {"JwtConfiguration": jwt}}}}, context)

        authorizer = result["HttpJwtAuthorizer"]["Properties"]
        assert authorizer["AuthorizerType"] == "JWT"
        assert authorizer["JwtConfiguration"] == jwt
        assert authorizer["IdentitySource"] == ["$request.header.Authorization"]

    def test_lambda_authorizer(self, context: ConversionContext) -> None:
        """Should build a REQUEST authorizer with payload format 2.0."""
        result = convert(
            {
                "Auth": {
                    "Authorizers": {
                        "Fn": {"FunctionArn": "arn:fn", "EnableSimpleResponses": True}
                    }
                }
            },
            context,
        )

        authorizer = result["HttpFnAuthorizer"]["Properties"]
        assert authorizer["AuthorizerType"] == "REQUEST"
        assert authorizer["AuthorizerPayloadFormatVersion"] == "2.0"
        assert authorizer["EnableSimpleResponses"] is True

    def test_authorizer_in_body_only(self, context: ConversionContext) -> None:
        """Should leave authorizers to the definition body when one is present."""
        body = {
            "openapi": "3.0.1",
            "paths": {},
            "components": {"securitySchemes": {"Jwt": {"type": "oauth2"}}},
        }
        jwt = {"Issuer": "https://issuer", "Audience": ["app"]}

        result = convert(
            {
                "DefinitionBody": body,
                "Auth": {"Authorizers": {"Jwt": {"JwtConfiguration": jwt}}},
            },
            context,
        )

        assert list(result) == ["Http", "HttpStage"]
        assert result["Http"]["Properties"]["Body"] == body

    def test_authorizer_without_kind(self, context: ConversionContext) -> None:
        """Should reject an authorizer that is neither JWT nor Lambda."""
        with pytest.raises(MissingOrInvalidPropertyError, match="JwtConfiguration"):
            convert({"Auth": {"Authorizers": {"Bad": {}}}}, context)


class TestCorsConfiguration:
    """Tests for cors_configuration."""

    def test_true(self) -> None:
        """Should allow every origin."""
        config = cors_configuration(True)

        assert config is not None
        assert config["AllowOrigins"] == ["*"]
        assert "OPTIONS" in config["AllowMethods"]

    def test_origin_string(self) -> None:
        """Should wrap a single origin."""
        assert cors_configuration("https://a.example") == {"AllowOrigins": ["https://a.example"]}

    def test_map_filters_fields(self) -> None:
        """Should keep only known CORS fields."""
        config = cors_configuration({"AllowOrigins": ["*"], "MaxAge": 60, "Other": 1})

        assert config == {"AllowOrigins": ["*"], "MaxAge": 60}

    def test_unset(self) -> None:
        """Should return None when CORS is not configured."""
        assert cors_configuration(None) is None
