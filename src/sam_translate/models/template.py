"""Top-level SAM template model and resource type names."""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

SAM_TRANSFORM = "AWS::Serverless-2016-10-31"
DEFAULT_TEMPLATE_FORMAT_VERSION = "2010-09-09"

# Serverless resource kinds
SERVERLESS_FUNCTION = "AWS::Serverless::Function"
SERVERLESS_API = "AWS::Serverless::Api"
SERVERLESS_HTTP_API = "AWS::Serverless::HttpApi"
SERVERLESS_SIMPLE_TABLE = "AWS::Serverless::SimpleTable"
SERVERLESS_LAYER_VERSION = "AWS::Serverless::LayerVersion"
SERVERLESS_STATE_MACHINE = "AWS::Serverless::StateMachine"
SERVERLESS_APPLICATION = "AWS::Serverless::Application"
SERVERLESS_GRAPHQL_API = "AWS::Serverless::GraphQLApi"
SERVERLESS_CONNECTOR = "AWS::Serverless::Connector"

SERVERLESS_PREFIX = "AWS::Serverless::"

# CloudFormation resource kinds referenced across converters
LAMBDA_FUNCTION = "AWS::Lambda::Function"
STEP_FUNCTIONS_STATE_MACHINE = "AWS::StepFunctions::StateMachine"
APIGATEWAY_REST_API = "AWS::ApiGateway::RestApi"
APIGATEWAYV2_API = "AWS::ApiGatewayV2::Api"
DYNAMODB_TABLE = "AWS::DynamoDB::Table"
SNS_TOPIC = "AWS::SNS::Topic"
SQS_QUEUE = "AWS::SQS::Queue"
S3_BUCKET = "AWS::S3::Bucket"
EVENTS_RULE = "AWS::Events::Rule"
EVENTS_EVENT_BUS = "AWS::Events::EventBus"
APPSYNC_GRAPHQL_API = "AWS::AppSync::GraphQLApi"
LOCATION_PLACE_INDEX = "AWS::Location::PlaceIndex"

# Globals section name -> resource kind it applies to
GLOBALS_SECTIONS: dict[str, str] = {
    "Function": SERVERLESS_FUNCTION,
    "Api": SERVERLESS_API,
    "HttpApi": SERVERLESS_HTTP_API,
    "SimpleTable": SERVERLESS_SIMPLE_TABLE,
}


class ResourceModel(BaseModel):
    """Shape check for one entry of ``Resources``."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: Annotated[str, Field(alias="Type", min_length=1)]
    properties: Annotated[dict[str, Any] | None, Field(alias="Properties")] = None
    condition: Annotated[str | None, Field(alias="Condition")] = None
    depends_on: Annotated[str | list[str] | None, Field(alias="DependsOn")] = None
    metadata: Annotated[dict[str, Any] | None, Field(alias="Metadata")] = None
    connectors: Annotated[dict[str, Any] | None, Field(alias="Connectors")] = None


class SamTemplate(BaseModel):
    """Shape check for a whole SAM template.

    Only the structure is validated here. Resource properties are checked by
    the converter of each kind.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    template_format_version: Annotated[
        str | None, Field(alias="AWSTemplateFormatVersion")
    ] = None
    description: Annotated[Any, Field(alias="Description")] = None
    transform: Annotated[str | list[Any] | None, Field(alias="Transform")] = None
    globals: Annotated[dict[str, dict[str, Any]] | None, Field(alias="Globals")] = None
    resources: Annotated[dict[str, ResourceModel], Field(alias="Resources", min_length=1)]
    parameters: Annotated[dict[str, Any] | None, Field(alias="Parameters")] = None
    outputs: Annotated[dict[str, Any] | None, Field(alias="Outputs")] = None
    mappings: Annotated[dict[str, Any] | None, Field(alias="Mappings")] = None
    conditions: Annotated[dict[str, Any] | None, Field(alias="Conditions")] = None
    metadata: Annotated[dict[str, Any] | None, Field(alias="Metadata")] = None

    @field_validator("transform")
    @classmethod
    def _check_transform(cls, value: str | list[Any] | None) -> str | list[Any] | None:
        if isinstance(value, list):
            for item in value:
                if not isinstance(item, (str, dict)):
                    raise ValueError("each Transform entry must be a name or a macro map")
        return value

    def has_sam_transform(self) -> bool:
        if isinstance(self.transform, str):
            return self.transform == SAM_TRANSFORM
        if isinstance(self.transform, list):
            return SAM_TRANSFORM in self.transform
        return False


def is_serverless_type(resource_type: Any) -> bool:
    return isinstance(resource_type, str) and resource_type.startswith(SERVERLESS_PREFIX)
