"""Tests for the REST API converter."""

from typing import Any

import pytest

from sam_translate.converters.api import (
    ApiConverter,
    authorizer_properties,
    endpoint_configuration,
    request_identity_sources,
)
from sam_translate.converters.base import ConversionContext
from sam_translate.validation.exceptions import MissingOrInvalidPropertyError

BODY = {"swagger": "2.0", "info": {"title": "t"}, "paths": {}}


def convert(properties: dict[str, Any], context: ConversionContext) -> dict[str, Any]:
    resource = {"Type": "AWS::Serverless::Api", "Properties": properties}
    return ApiConverter().convert("MyApi", resource, context)


class TestApiConverter:
    """Tests for RestApi, Deployment and Stage generation."""

    def test_rest_api_deployment_stage(self, context: ConversionContext) -> None:
        """Should emit the API, a hashed deployment and a stage."""
        result = convert({"StageName": "Prod", "DefinitionBody": BODY}, context)

        api_id, deployment_id, stage_id = result
        assert api_id == "MyApi"
        assert deployment_id.startswith("MyApiDeployment")
        assert len(deployment_id) == len("MyApiDeployment") + 8
        assert stage_id == "MyApiProdStage"

        assert result["MyApi"]["Properties"]["Body"] == BODY
        stage = result[stage_id]["Properties"]
        assert stage["StageName"] == "Prod"
        assert stage["DeploymentId"] == {"Ref": deployment_id}
        deployment = result[deployment_id]["Properties"]
        assert deployment["RestApiId"] == {"Ref": "MyApi"}
        assert deployment["Description"] == (
            f"RestApi deployment id: {deployment_id[-8:]}"
        )

    def test_deployment_follows_definition(self) -> None:
        """Should change the deployment ID when the definition changes."""
        first = convert({"StageName": "Prod", "DefinitionBody": BODY}, ConversionContext())
        changed = {**BODY, "paths": {"/": {}}}
        second = convert({"StageName": "Prod", "DefinitionBody": changed}, ConversionContext())

        assert list(first)[1] != list(second)[1]

    def test_definition_uri(self, context: ConversionContext) -> None:
        """Should map DefinitionUri to BodyS3Location."""
        result = convert({"StageName": "Prod", "DefinitionUri": "s3://b/api.yaml"}, context)

        location = result["MyApi"]["Properties"]["BodyS3Location"]
        assert location == {"Bucket": "b", "Key": "api.yaml"}

    def test_stage_settings(self, context: ConversionContext) -> None:
        """Should copy stage-level settings onto the stage."""
        result = convert(
            {"StageName": "dev", "TracingEnabled": True, "Variables": {"a": "b"}}, context
        )

        stage = result["MyApidevStage"]["Properties"]
        assert stage["TracingEnabled"] is True
        assert stage["Variables"] == {"a": "b"}

    def test_empty_stage_name(self, context: ConversionContext) -> None:
        """Should reject an empty StageName."""
        with pytest.raises(MissingOrInvalidPropertyError) as exc_info:
            convert({"StageName": ""}, context)

        assert exc_info.value.path == "Properties.StageName"

    def test_missing_stage_name(self, context: ConversionContext) -> None:
        """Should require StageName."""
        with pytest.raises(MissingOrInvalidPropertyError) as exc_info:
            convert({}, context)

        assert exc_info.value.path == "Properties.StageName"

    def test_tags_on_api_and_stage(self, context: ConversionContext) -> None:
        """Should tag both the API and the stage."""
        result = convert({"StageName": "Prod", "Tags": {"env": "dev"}}, context)

        assert result["MyApi"]["Properties"]["Tags"] == [{"Key": "env", "Value": "dev"}]
        assert result["MyApiProdStage"]["Properties"]["Tags"] == [
            {"Key": "env", "Value": "dev"}
        ]


class TestEndpointConfiguration:
    """Tests for endpoint_configuration."""

    def test_string(self) -> None:
        """Should wrap a type name."""
        assert endpoint_configuration("REGIONAL") == {"Types": ["REGIONAL"]}

    def test_private_map(self) -> None:
        """Should rename VPCEndpointIds."""
        assert endpoint_configuration({"Type": "PRIVATE", "VPCEndpointIds": ["vpce-1"]}) == {
            "Types": ["PRIVATE"],
            "VpcEndpointIds": ["vpce-1"],
        }


class TestAuthorizers:
    """Tests for REST API authorizers."""

    def test_cognito(self) -> None:
        """Should build a Cognito user pool authorizer."""
        props = authorizer_properties("MyApi", "Pool", {"UserPoolArn": "arn:pool"})

        assert props == {
            "Name": "Pool",
            "RestApiId": {"Ref": "MyApi"},
            "Type": "COGNITO_USER_POOLS",
            "ProviderARNs": ["arn:pool"],
            "IdentitySource": "method.request.header.Authorization",
        }

    def test_token_lambda(self) -> None:
        """Should default Lambda authorizers to TOKEN with a TTL."""
        props = authorizer_properties(
            "MyApi",
            "Token",
            {"FunctionArn": "arn:fn", "Identity": {"Header": "X-Token", "ReauthorizeEvery": 60}},
        )

        assert props is not None
        assert props["Type"] == "TOKEN"
        assert props["IdentitySource"] == "method.request.header.X-Token"
        assert props["AuthorizerResultTtlInSeconds"] == 60
        assert props["AuthorizerUri"]["Fn::Sub"][1] == {"__FunctionArn__": "arn:fn"}

    def test_request_lambda(self) -> None:
        """Should join request identity sources."""
        props = authorizer_properties(
            "MyApi",
            "Req",
            {
                "FunctionArn": "arn:fn",
                "FunctionPayloadType": "REQUEST",
                "Identity": {"Headers": ["Auth"], "QueryStrings": ["token"]},
            },
        )

        assert props is not None
        assert props["Type"] == "REQUEST"
        assert props["IdentitySource"] == (
            "method.request.header.Auth, method.request.querystring.token"
        )

    def test_request_identity_sources_empty(self) -> None:
        """Should return an empty string without sources."""
        assert request_identity_sources({}) == ""

    def test_unknown_shape(self) -> None:
        """Should return None for an authorizer with neither ARN."""
        assert authorizer_properties("MyApi", "X", {"Other": 1}) is None

    def test_authorizer_resources_without_body(self, context: ConversionContext) -> None:
        """Should emit the authorizer and its permission."""
        result = convert(
            {"StageName": "Prod", "Auth": {"Authorizers": {"Token": {"FunctionArn": "arn:fn"}}}},
            context,
        )

        assert result["MyApiTokenAuthorizer"]["Type"] == "AWS::ApiGateway::Authorizer"
        permission = result["MyApiTokenAuthorizerPermission"]["Properties"]
        assert permission["FunctionName"] == "arn:fn"
        assert permission["SourceArn"]["Fn::Sub"][0].endswith("${__ApiId__}/authorizers/*")

    def test_body_skips_authorizer_resource(self, context: ConversionContext) -> None:
        """Should keep only the permission when a body declares the authorizers."""
        result = convert(
            {
                "StageName": "Prod",
                "DefinitionBody": BODY,
                "Auth": {"Authorizers": {"Token": {"FunctionArn": "arn:fn"}}},
            },
            context,
        )

        assert "MyApiTokenAuthorizer" not in result
        assert "MyApiTokenAuthorizerPermission" in result

    def test_authorizers_not_a_map(self, context: ConversionContext) -> None:
        """Should reject a non-map Authorizers value."""
        with pytest.raises(MissingOrInvalidPropertyError) as exc_info:
            convert({"StageName": "Prod", "Auth": {"Authorizers": ["x"]}}, context)

        assert exc_info.value.path == "Properties.Auth.Authorizers"
