"""Tests for the connector converter and its profiles."""

from typing import Any

import pytest

from sam_translate.converters.base import ConversionContext
from sam_translate.converters.connector import ConnectorConverter, embedded_connectors
from sam_translate.converters.connector_profiles import get_profile, normalize_type
from sam_translate.validation.exceptions import (
    DuplicateOrInvalidIdentifierError,
    MissingOrInvalidPropertyError,
)

TABLE_ARN = {"Fn::GetAtt": ["Table", "Arn"]}
FUNCTION_ARN = {"Fn::GetAtt": ["Fn", "Arn"]}


@pytest.fixture
def populated_context() -> ConversionContext:
    """Return a context holding a converted function, table and queue."""
    context = ConversionContext()
    context.converted.update(
        {
            "Fn": {
                "Type": "AWS::Lambda::Function",
                "Properties": {"Role": {"Fn::GetAtt": ["FnRole", "Arn"]}},
            },
            "Table": {"Type": "AWS::DynamoDB::Table", "Properties": {}},
        }
    )
    context.resources["Queue"] = {"Type": "AWS::SQS::Queue"}
    return context


def convert(properties: dict[str, Any], context: ConversionContext) -> dict[str, Any]:
    resource = {"Type": "AWS::Serverless::Connector", "Properties": properties}
    return ConnectorConverter().convert("Conn", resource, context)


class TestManagedPolicyConnectors:
    """Tests for connectors granted through a managed policy."""

    def test_function_reads_table(self, populated_context: ConversionContext) -> None:
        """Should attach a read policy to the function's role."""
        result = convert(
            {"Source": {"Id": "Fn"}, "Destination": {"Id": "Table"}, "Permissions": ["Read"]},
            populated_context,
        )

        policy = result["ConnPolicy"]
        assert policy["Type"] == "AWS::IAM::ManagedPolicy"
        assert policy["Properties"]["Roles"] == [{"Ref": "FnRole"}]
        statement = policy["Properties"]["PolicyDocument"]["Statement"][0]
        assert "dynamodb:GetItem" in statement["Action"]
        assert statement["Resource"] == [
            TABLE_ARN,
            {"Fn::Sub": ["${DestinationArn}/index/*", {"DestinationArn": TABLE_ARN}]},
        ]
        assert policy["Metadata"] == {
            "aws:sam:connectors": {
                "Conn": {
                    "Source": {"Type": "AWS::Lambda::Function"},
                    "Destination": {"Type": "AWS::DynamoDB::Table"},
                }
            }
        }

    def test_one_statement_per_permission(self, populated_context: ConversionContext) -> None:
        """Should emit a statement for each permission, without duplicates."""
        result = convert(
            {
                "Source": {"Id": "Fn"},
                "Destination": {"Id": "Table"},
                "Permissions": ["Read", "Write", "Read"],
            },
            populated_context,
        )

        statements = result["ConnPolicy"]["Properties"]["PolicyDocument"]["Statement"]
        assert len(statements) == 2
        assert "dynamodb:PutItem" in statements[1]["Action"]

    def test_stream_uses_destination_role(self, populated_context: ConversionContext) -> None:
        """Should grant stream reads to the consuming function's role."""
        result = convert(
            {"Source": {"Id": "Table"}, "Destination": {"Id": "Fn"}, "Permissions": ["Read"]},
            populated_context,
        )

        props = result["ConnPolicy"]["Properties"]
        assert props["Roles"] == [{"Ref": "FnRole"}]
        statement = props["PolicyDocument"]["Statement"][0]
        assert statement["Resource"] == [
            {"Fn::Sub": ["${SourceArn}/stream/*", {"SourceArn": TABLE_ARN}]}
        ]

    def test_explicit_role_name(self, populated_context: ConversionContext) -> None:
        """Should prefer an explicit RoleName."""
        result = convert(
            {
                "Source": {"Type": "AWS::Lambda::Function", "Arn": "arn:fn", "RoleName": "r"},
                "Destination": {"Id": "Table"},
                "Permissions": ["Write"],
            },
            populated_context,
        )

        assert result["ConnPolicy"]["Properties"]["Roles"] == ["r"]

    def test_unknown_role(self, populated_context: ConversionContext) -> None:
        """Should ask for RoleName when the role cannot be found."""
        with pytest.raises(MissingOrInvalidPropertyError) as exc_info:
            convert(
                {
                    "Source": {"Type": "AWS::Lambda::Function", "Arn": "arn:fn"},
                    "Destination": {"Id": "Table"},
                    "Permissions": ["Read"],
                },
                populated_context,
            )

        assert exc_info.value.path == "Properties.Source.RoleName"

    def test_multiple_destinations(self, populated_context: ConversionContext) -> None:
        """Should number the grants of each destination."""
        result = convert(
            {
                "Source": {"Id": "Fn"},
                "Destination": [{"Id": "Table"}, {"Type": "AWS::SNS::Topic", "Arn": "arn:topic"}],
                "Permissions": ["Write"],
            },
            populated_context,
        )

        assert list(result) == ["ConnDestination0Policy", "ConnDestination1Policy"]
        statement = result["ConnDestination1Policy"]["Properties"]["PolicyDocument"][
            "Statement"
        ][0]
        assert statement["Action"] == ["sns:Publish"]
        assert statement["Resource"] == ["arn:topic"]


class TestResourcePolicyConnectors:
    """Tests for connectors granted on the destination."""

    def test_topic_invokes_function(self, populated_context: ConversionContext) -> None:
        """Should allow SNS to invoke the function."""
        result = convert(
            {
                "Source": {"Type": "AWS::SNS::Topic", "Arn": "arn:topic"},
                "Destination": {"Id": "Fn"},
                "Permissions": ["Write"],
            },
            populated_context,
        )

        permission = result["ConnWriteLambdaPermission"]
        assert permission["Properties"] == {
            "Action": "lambda:InvokeFunction",
            "FunctionName": FUNCTION_ARN,
            "Principal": "sns.amazonaws.com",
            "SourceArn": "arn:topic",
        }
        assert "aws:sam:connectors" in permission["Metadata"]

    def test_rule_sends_to_queue(self, populated_context: ConversionContext) -> None:
        """Should add a queue policy conditioned on the rule ARN."""
        result = convert(
            {
                "Source": {"Type": "AWS::Events::Rule", "Arn": "arn:rule"},
                "Destination": {"Id": "Queue"},
                "Permissions": ["Write"],
            },
            populated_context,
        )

        props = result["ConnQueuePolicy"]["Properties"]
        assert props["Queues"] == [{"Ref": "Queue"}]
        statement = props["PolicyDocument"]["Statement"][0]
        assert statement["Principal"] == {"Service": "events.amazonaws.com"}
        assert statement["Condition"] == {"ArnEquals": {"aws:SourceArn": "arn:rule"}}

    def test_api_source_arn(self, populated_context: ConversionContext) -> None:
        """Should build an execute-api ARN for API sources."""
        populated_context.resources["Api"] = {"Type": "AWS::Serverless::Api"}

        result = convert(
            {"Source": {"Id": "Api"}, "Destination": {"Id": "Fn"}, "Permissions": ["Write"]},
            populated_context,
        )

        source_arn = result["ConnWriteLambdaPermission"]["Properties"]["SourceArn"]
        template, variables = source_arn["Fn::Sub"]
        assert template.endswith("${__ApiId__}/*")
        assert variables == {"__ApiId__": {"Ref": "Api"}}


class TestConnectorErrors:
    """Tests for invalid connectors."""

    def test_unsupported_pair(self, populated_context: ConversionContext) -> None:
        """Should reject pairs without a profile."""
        with pytest.raises(MissingOrInvalidPropertyError, match="not supported"):
            convert(
                {
                    "Source": {"Id": "Queue"},
                    "Destination": {"Id": "Table"},
                    "Permissions": ["Read"],
                },
                populated_context,
            )

    def test_unsupported_permission(self, populated_context: ConversionContext) -> None:
        """Should reject a permission the profile has no actions for."""
        with pytest.raises(MissingOrInvalidPropertyError) as exc_info:
            convert(
                {
                    "Source": {"Id": "Fn"},
                    "Destination": {"Type": "AWS::SNS::Topic", "Arn": "arn:topic"},
                    "Permissions": ["Read"],
                },
                populated_context,
            )

        assert exc_info.value.path == "Properties.Permissions"

    def test_missing_resource(self, populated_context: ConversionContext) -> None:
        """Should reject an Id not found in the template."""
        with pytest.raises(MissingOrInvalidPropertyError) as exc_info:
            convert(
                {"Source": {"Id": "Nope"}, "Destination": {"Id": "Table"}, "Permissions": ["Read"]},
                populated_context,
            )

        assert exc_info.value.path == "Properties.Source.Id"

    def test_invalid_permission_name(self, populated_context: ConversionContext) -> None:
        """Should only accept Read and Write."""
        with pytest.raises(MissingOrInvalidPropertyError):
            convert(
                {"Source": {"Id": "Fn"}, "Destination": {"Id": "Table"}, "Permissions": ["All"]},
                populated_context,
            )


class TestEmbeddedConnectors:
    """Tests for embedded_connectors."""

    def test_expands_with_source(self) -> None:
        """Should prefix the connector name with the source ID."""
        connectors = {
            "ToTable": {"Properties": {"Destination": {"Id": "T"}, "Permissions": ["Read"]}}
        }

        result = embedded_connectors("Fn", connectors, {"Fn": {}, "T": {}})

        assert result == {
            "FnToTable": {
                "Type": "AWS::Serverless::Connector",
                "Properties": {
                    "Source": {"Id": "Fn"},
                    "Destination": {"Id": "T"},
                    "Permissions": ["Read"],
                },
            }
        }

    def test_collision(self) -> None:
        """Should reject a generated ID that already exists."""
        with pytest.raises(DuplicateOrInvalidIdentifierError):
            embedded_connectors("Fn", {"X": {"Properties": {}}}, {"FnX": {}})

    def test_missing_properties(self) -> None:
        """Should require a Properties map."""
        with pytest.raises(MissingOrInvalidPropertyError):
            embedded_connectors("Fn", {"X": {}}, {})


class TestProfiles:
    """Tests for profile lookup."""

    def test_serverless_types_normalized(self) -> None:
        """Should look up serverless types by the type they become."""
        assert normalize_type("AWS::Serverless::Function") == "AWS::Lambda::Function"
        assert get_profile("AWS::Serverless::Function", "AWS::Serverless::SimpleTable") is not None

    def test_unknown_pair(self) -> None:
        """Should return None for unsupported pairs."""
        assert get_profile("AWS::SQS::Queue", "AWS::DynamoDB::Table") is None
