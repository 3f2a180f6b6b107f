"""Tests for resource dispatch."""

from typing import Any

import pytest

from sam_translate.converters import ConversionContext
from sam_translate.models.options import TransformOptions
from sam_translate.transform import ConversionDispatcher, rename_references
from sam_translate.validation.errors import ErrorCodes
from sam_translate.validation.exceptions import DuplicateOrInvalidIdentifierError, TransformError


def dispatch(resources: dict[str, Any]) -> dict[str, Any]:
    return ConversionDispatcher().dispatch(ConversionContext(resources=resources))


class TestDispatchOrder:
    """Tests for output order and pass-through."""

    def test_pass_through_first(self, function_resource: dict[str, Any]) -> None:
        """Should copy non-serverless resources unchanged, ahead of generated ones."""
        queue = {"Type": "AWS::SQS::Queue", "Properties": {"VisibilityTimeout": 30}}

        result = dispatch({"Fn": function_resource, "Queue": queue})

        assert list(result) == ["Queue", "Fn", "FnRole"]
        assert result["Queue"] == queue

    def test_kind_order(self, function_resource: dict[str, Any]) -> None:
        """Should convert functions before tables regardless of template order."""
        table = {"Type": "AWS::Serverless::SimpleTable"}

        result = dispatch({"Table": table, "Fn": function_resource})

        assert list(result) == ["Fn", "FnRole", "Table"]

    def test_connector_after_its_endpoints(self, function_resource: dict[str, Any]) -> None:
        """Should convert a connector declared first after the function whose role it reads."""
        connector = {
            "Type": "AWS::Serverless::Connector",
            "Properties": {
                "Source": {"Id": "Fn"},
                "Destination": {"Id": "Table"},
                "Permissions": ["Read"],
            },
        }
        table = {"Type": "AWS::Serverless::SimpleTable"}

        result = dispatch({"Conn": connector, "Fn": function_resource, "Table": table})

        assert list(result) == ["Fn", "FnRole", "Table", "ConnPolicy"]
        assert result["ConnPolicy"]["Properties"]["Roles"] == [{"Ref": "FnRole"}]


class TestResourceAttributes:
    """Tests for attributes copied from the source resource."""

    def test_condition_on_every_resource(self, function_resource: dict[str, Any]) -> None:
        """Should propagate Condition to every generated resource."""
        function_resource["Condition"] = "IsProd"

        result = dispatch({"Fn": function_resource})

        assert result["Fn"]["Condition"] == "IsProd"
        assert result["FnRole"]["Condition"] == "IsProd"

    def test_primary_attributes(self, function_resource: dict[str, Any]) -> None:
        """Should copy DependsOn and Metadata onto the primary resource only."""
        function_resource["DependsOn"] = ["Queue"]
        function_resource["Metadata"] = {"BuildMethod": "makefile"}
        queue = {"Type": "AWS::SQS::Queue"}

        result = dispatch({"Queue": queue, "Fn": function_resource})

        assert result["Fn"]["DependsOn"] == ["Queue"]
        assert result["Fn"]["Metadata"] == {"BuildMethod": "makefile"}
        assert "DependsOn" not in result["FnRole"]
        assert "Metadata" not in result["FnRole"]

    def test_metadata_pass_through_disabled(self, function_resource: dict[str, Any]) -> None:
        """Should drop resource Metadata when disabled in the options."""
        function_resource["Metadata"] = {"BuildMethod": "makefile"}
        context = ConversionContext(
            options=TransformOptions(pass_through_metadata=False),
            resources={"Fn": function_resource},
        )

        result = ConversionDispatcher().dispatch(context)

        assert "Metadata" not in result["Fn"]


class TestDispatchErrors:
    """Tests for error collection."""

    def test_collects_every_failure(self, broken_function: dict[str, Any]) -> None:
        """Should report all failing resources together."""
        with pytest.raises(TransformError) as exc_info:
            dispatch({"A": broken_function, "B": dict(broken_function)})

        error = exc_info.value
        assert error.logical_ids == ["A", "B"]
        assert str(error).startswith("multiple errors:\n  - invalid resource 'A'")

    def test_single_failure_message(self, broken_function: dict[str, Any]) -> None:
        """Should use the single error's text as the message."""
        with pytest.raises(TransformError) as exc_info:
            dispatch({"A": broken_function})

        assert str(exc_info.value) == (
            "invalid resource 'A': Properties.Handler: Handler is required for PackageType Zip"
        )

    def test_unsupported_serverless_type(self) -> None:
        """Should reject serverless types without a converter."""
        with pytest.raises(TransformError, match="unsupported resource type"):
            dispatch({"X": {"Type": "AWS::Serverless::Unknown"}})

    def test_generated_id_collision(self, function_resource: dict[str, Any]) -> None:
        """Should reject a generated ID that is already taken."""
        taken = {"Type": "AWS::SQS::Queue"}

        with pytest.raises(TransformError) as exc_info:
            dispatch({"FnRole": taken, "Fn": function_resource})

        inner = exc_info.value.errors[0].error
        assert isinstance(inner, DuplicateOrInvalidIdentifierError)
        assert inner.code == ErrorCodes.E100_DUPLICATE_LOGICAL_ID


class TestRenames:
    """Tests for reference rewriting after renames."""

    def test_layer_references_follow_rename(self, function_resource: dict[str, Any]) -> None:
        """Should point function layers at the hashed layer ID."""
        function_resource["Properties"]["Layers"] = [{"Ref": "Deps"}]
        layer = {
            "Type": "AWS::Serverless::LayerVersion",
            "Properties": {"ContentUri": "s3://layers/deps.zip"},
        }

        result = dispatch({"Fn": function_resource, "Deps": layer})

        layer_id = next(key for key in result if key.startswith("Deps"))
        assert layer_id != "Deps"
        assert result["Fn"]["Properties"]["Layers"] == [{"Ref": layer_id}]

    def test_rename_references_depends_on(self) -> None:
        """Should rewrite DependsOn strings and lists."""
        tree = {
            "A": {"DependsOn": "Old"},
            "B": {"DependsOn": ["Old", "Other"]},
            "C": {"Properties": {"X": {"Fn::GetAtt": ["Old", "Arn"]}}},
        }

        result = rename_references(tree, "Old", "New")

        assert result["A"]["DependsOn"] == "New"
        assert result["B"]["DependsOn"] == ["New", "Other"]
        assert result["C"]["Properties"]["X"] == {"Fn::GetAtt": ["New", "Arn"]}


class TestEmbeddedConnectors:
    """Tests for the Connectors resource attribute."""

    def test_embedded_connector_converted(self, function_resource: dict[str, Any]) -> None:
        """Should expand and convert an embedded connector."""
        function_resource["Connectors"] = {
            "ToTable": {"Properties": {"Destination": {"Id": "Table"}, "Permissions": ["Read"]}}
        }
        table = {"Type": "AWS::Serverless::SimpleTable"}

        result = dispatch({"Fn": function_resource, "Table": table})

        assert "Connectors" not in result["Fn"]
        assert result["FnToTablePolicy"]["Properties"]["Roles"] == [{"Ref": "FnRole"}]
