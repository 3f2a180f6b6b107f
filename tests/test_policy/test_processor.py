"""Tests for the policy template processor."""

import json

import pytest
from pydantic import ValidationError

from sam_translate.policy import PolicyTemplateProcessor
from sam_translate.validation.exceptions import (
    MissingMacroParameterError,
    MissingOrInvalidPropertyError,
    UnknownMacroError,
)

CATALOG = {
    "Version": "1.0",
    "Templates": {
        "QueuePolicy": {
            "Description": "Send to a queue",
            "Parameters": {"QueueName": {"Description": "Queue name"}},
            "Definition": {
                "Statement": [
                    {
                        "Effect": "Allow",
                        "Action": "sqs:SendMessage",
                        "Resource": {
                            "Fn::Sub": [
                                "arn:${AWS::Partition}:sqs:${AWS::Region}:${AWS::AccountId}:${q}",
                                {"q": {"Ref": "QueueName"}},
                            ]
                        },
                    }
                ]
            },
        },
        "BrokenPolicy": {"Definition": {"Statement": "not-a-list"}},
        "NoParamsPolicy": {
            "Definition": {"Statement": [{"Effect": "Allow", "Action": "x:Y", "Resource": "*"}]}
        },
    },
}


@pytest.fixture
def processor() -> PolicyTemplateProcessor:
    """Return a processor over a small catalog."""
    return PolicyTemplateProcessor.from_json(json.dumps(CATALOG))


class TestCatalog:
    """Tests for catalog loading."""

    def test_bundled_catalog_loads(self) -> None:
        """Should load the bundled catalog with the common templates."""
        processor = PolicyTemplateProcessor.default()
        for name in ("S3ReadPolicy", "DynamoDBCrudPolicy", "SQSPollerPolicy", "VPCAccessPolicy"):
            assert processor.has_template(name)
        assert processor.version()

    def test_default_is_shared(self) -> None:
        """Should return the same processor on every call."""
        assert PolicyTemplateProcessor.default() is PolicyTemplateProcessor.default()

    def test_template_names_sorted(self, processor: PolicyTemplateProcessor) -> None:
        """Should list template names in sorted order."""
        assert processor.template_names() == ["BrokenPolicy", "NoParamsPolicy", "QueuePolicy"]

    def test_invalid_catalog(self) -> None:
        """Should reject a catalog of the wrong shape."""
        with pytest.raises(ValidationError):
            PolicyTemplateProcessor.from_json('{"Version": "1"}')


class TestExpand:
    """Tests for template expansion."""

    def test_substitutes_parameters(self, processor: PolicyTemplateProcessor) -> None:
        """Should replace Ref parameters inside Sub variable maps."""
        doc = processor.expand("QueuePolicy", {"QueueName": {"Ref": "MyQueue"}})
        resource = doc["Statement"][0]["Resource"]

        assert resource["Fn::Sub"][1] == {"q": {"Ref": "MyQueue"}}

    def test_does_not_mutate_catalog(self, processor: PolicyTemplateProcessor) -> None:
        """Should leave the catalog definition untouched."""
        processor.expand("QueuePolicy", {"QueueName": "a"})
        template = processor.get_template("QueuePolicy")

        assert template is not None
        sub = template.definition["Statement"][0]["Resource"]["Fn::Sub"]
        assert sub[1] == {"q": {"Ref": "QueueName"}}

    def test_unknown_template(self, processor: PolicyTemplateProcessor) -> None:
        """Should raise UnknownMacroError for names outside the catalog."""
        with pytest.raises(UnknownMacroError, match="Nope"):
            processor.expand("Nope", {})

    def test_missing_parameter(self, processor: PolicyTemplateProcessor) -> None:
        """Should name the missing parameter."""
        with pytest.raises(MissingMacroParameterError) as exc_info:
            processor.expand("QueuePolicy", {})
        assert exc_info.value.parameter == "QueueName"

    def test_expand_statements(self, processor: PolicyTemplateProcessor) -> None:
        """Should return only the statement list."""
        statements = processor.expand_statements("NoParamsPolicy", {})
        assert statements == [{"Effect": "Allow", "Action": "x:Y", "Resource": "*"}]

    def test_expand_statements_requires_list(self, processor: PolicyTemplateProcessor) -> None:
        """Should reject a definition without a statement list."""
        with pytest.raises(MissingOrInvalidPropertyError):
            processor.expand_statements("BrokenPolicy", {})


class TestExpandPolicies:
    """Tests for expanding a Policies property value."""

    def test_string_passes_through(self, processor: PolicyTemplateProcessor) -> None:
        """Should keep a managed policy name as is."""
        assert processor.expand_policies("AmazonS3ReadOnlyAccess") == "AmazonS3ReadOnlyAccess"

    def test_single_map_becomes_list(self, processor: PolicyTemplateProcessor) -> None:
        """Should wrap a single template reference in a list."""
        result = processor.expand_policies({"NoParamsPolicy": {}})
        assert isinstance(result, list)
        assert result[0]["Statement"][0]["Action"] == "x:Y"

    def test_mixed_list(self, processor: PolicyTemplateProcessor) -> None:
        """Should expand templates and keep everything else."""
        inline = {"Statement": [{"Effect": "Allow", "Action": "s3:*", "Resource": "*"}]}
        result = processor.expand_policies(["ReadOnlyAccess", {"NoParamsPolicy": {}}, inline])

        assert result[0] == "ReadOnlyAccess"
        assert "Statement" in result[1]
        assert result[2] == inline

    def test_unknown_single_key_map_passes_through(
        self, processor: PolicyTemplateProcessor
    ) -> None:
        """Should leave single-key maps that name no template alone."""
        entry = {"Ref": "ManagedPolicyParam"}
        assert processor.expand_policies([entry]) == [entry]

    def test_non_map_parameters(self, processor: PolicyTemplateProcessor) -> None:
        """Should reject template parameters that are not a map."""
        with pytest.raises(MissingOrInvalidPropertyError):
            processor.expand_policies([{"QueuePolicy": "MyQueue"}])
