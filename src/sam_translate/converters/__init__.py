"""Per-kind converters from AWS::Serverless::* resources to CloudFormation.

Converters, in dispatch order:
    FunctionConverter: AWS::Serverless::Function
    SimpleTableConverter: AWS::Serverless::SimpleTable
    LayerVersionConverter: AWS::Serverless::LayerVersion
    StateMachineConverter: AWS::Serverless::StateMachine
    ApiConverter: AWS::Serverless::Api
    HttpApiConverter: AWS::Serverless::HttpApi
    ApplicationConverter: AWS::Serverless::Application
    GraphQLApiConverter: AWS::Serverless::GraphQLApi
    ConnectorConverter: AWS::Serverless::Connector (always last)
"""

from sam_translate.converters.api import ApiConverter
from sam_translate.converters.application import ApplicationConverter
from sam_translate.converters.base import ConversionContext, ResourceConverter, Resources
from sam_translate.converters.connector import ConnectorConverter, embedded_connectors
from sam_translate.converters.function import FunctionConverter
from sam_translate.converters.graphql_api import GraphQLApiConverter
from sam_translate.converters.http_api import HttpApiConverter
from sam_translate.converters.layer_version import LayerVersionConverter
from sam_translate.converters.simple_table import SimpleTableConverter
from sam_translate.converters.state_machine import StateMachineConverter


def default_converters() -> list[ResourceConverter]:
    """One converter per serverless kind, in dispatch order."""
    return [
        FunctionConverter(),
        SimpleTableConverter(),
        LayerVersionConverter(),
        StateMachineConverter(),
        ApiConverter(),
        HttpApiConverter(),
        ApplicationConverter(),
        GraphQLApiConverter(),
        ConnectorConverter(),
    ]


__all__ = [
    "ApiConverter",
    "ApplicationConverter",
    "ConnectorConverter",
    "ConversionContext",
    "FunctionConverter",
    "GraphQLApiConverter",
    "HttpApiConverter",
    "LayerVersionConverter",
    "ResourceConverter",
    "Resources",
    "SimpleTableConverter",
    "StateMachineConverter",
    "default_converters",
    "embedded_connectors",
]
