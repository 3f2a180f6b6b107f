"""Tests for the JSON Schema structural check."""

from typing import Any

from sam_translate.models.schema import (
    MAX_REPORTED_ERRORS,
    load_schema,
    validate_template_file,
    validate_template_schema,
)


class TestValidateTemplateSchema:
    """Tests for validate_template_schema."""

    def test_valid(self, table_resource: dict[str, Any]) -> None:
        """Should report nothing for a well-formed template."""
        assert validate_template_schema({"Resources": {"Table": table_resource}}) == []

    def test_missing_resources(self) -> None:
        """Should report the missing Resources section at the root."""
        errors = validate_template_schema({"Description": "x"}, "t.yaml")

        assert errors == ["- t.yaml: 'Resources' is a required property"]

    def test_empty_resources(self) -> None:
        """Should require at least one resource."""
        errors = validate_template_schema({"Resources": {}})

        assert len(errors) == 1
        assert errors[0].startswith("- template/Resources:")

    def test_resource_location(self) -> None:
        """Should point at the offending resource."""
        errors = validate_template_schema({"Resources": {"Q": {"Properties": {}}}})

        assert errors == ["- template/Resources/Q: 'Type' is a required property"]

    def test_format_version(self, table_resource: dict[str, Any]) -> None:
        """Should accept only the one template format version."""
        template = {"AWSTemplateFormatVersion": "2020-01-01", "Resources": {"T": table_resource}}

        errors = validate_template_schema(template)

        assert len(errors) == 1
        assert "/AWSTemplateFormatVersion" in errors[0]

    def test_outputs_need_value(self, table_resource: dict[str, Any]) -> None:
        """Should require Value on each output."""
        template = {"Resources": {"T": table_resource}, "Outputs": {"Name": {"Export": {}}}}

        errors = validate_template_schema(template)

        assert errors == ["- template/Outputs/Name: 'Value' is a required property"]

    def test_parameters_need_type(self, table_resource: dict[str, Any]) -> None:
        """Should require Type on each parameter."""
        template = {"Resources": {"T": table_resource}, "Parameters": {"Stage": {}}}

        assert len(validate_template_schema(template)) == 1

    def test_embedded_connector_needs_properties(self) -> None:
        """Should require Properties on embedded connectors."""
        resource = {"Type": "AWS::Serverless::Function", "Connectors": {"ToTable": {}}}

        errors = validate_template_schema({"Resources": {"Fn": resource}})

        assert errors == [
            "- template/Resources/Fn/Connectors/ToTable: 'Properties' is a required property"
        ]

    def test_error_cap(self) -> None:
        """Should cap the number of reported errors."""
        resources = {f"R{i}": {} for i in range(MAX_REPORTED_ERRORS + 5)}

        errors = validate_template_schema({"Resources": resources})

        assert len(errors) == MAX_REPORTED_ERRORS + 1
        assert errors[-1] == "  ... 5 more errors"


class TestValidateTemplateFile:
    """Tests for validate_template_file."""

    def test_valid_file(self, write_template, hello_world_yaml: str) -> None:
        """Should validate a loaded file."""
        assert validate_template_file(write_template(hello_world_yaml)) == []

    def test_uses_file_name(self, write_template) -> None:
        """Should prefix errors with the file name."""
        path = write_template("Description: x\n", "bad.yaml")

        assert validate_template_file(path) == ["- bad.yaml: 'Resources' is a required property"]

    def test_loader_error(self, write_template) -> None:
        """Should return the loader error as a single line."""
        errors = validate_template_file(write_template("", "empty.yaml"))

        assert len(errors) == 1
        assert "File is empty" in errors[0]


class TestLoadSchema:
    """Tests for load_schema."""

    def test_cached(self) -> None:
        """Should return the same parsed schema each call."""
        assert load_schema() is load_schema()
        assert load_schema()["required"] == ["Resources"]
