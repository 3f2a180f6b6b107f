"""Tests for IAM role and policy builders."""

import pytest

from sam_translate.converters.iam import (
    allow_statement,
    assume_role_policy,
    build_role,
    split_policies,
)
from sam_translate.core.arn import ArnBuilder
from sam_translate.validation.exceptions import MissingOrInvalidPropertyError


@pytest.fixture
def arns() -> ArnBuilder:
    """Return an ARN builder for the commercial partition."""
    return ArnBuilder("us-east-1", "123456789012", "aws")


class TestStatements:
    """Tests for statement and document helpers."""

    def test_allow_statement_wraps_resource(self) -> None:
        """Should wrap a single resource in a list."""
        assert allow_statement(["s3:GetObject"], "arn:b") == {
            "Effect": "Allow",
            "Action": ["s3:GetObject"],
            "Resource": ["arn:b"],
        }

    def test_assume_role_policy(self) -> None:
        """Should trust the service principal."""
        document = assume_role_policy("lambda")

        assert document["Version"] == "2012-10-17"
        assert document["Statement"][0]["Action"] == ["sts:AssumeRole"]


class TestSplitPolicies:
    """Tests for split_policies."""

    def test_none(self, arns: ArnBuilder) -> None:
        """Should return nothing for no policies."""
        assert split_policies("Fn", None, arns) == ([], [])

    def test_single_name(self, arns: ArnBuilder) -> None:
        """Should resolve a bare managed policy name."""
        managed, inline = split_policies("Fn", "AWSLambdaExecute", arns)

        assert managed == ["arn:aws:iam::aws:policy/AWSLambdaExecute"]
        assert inline == []

    def test_arn_and_intrinsic_kept(self, arns: ArnBuilder) -> None:
        """Should keep ARNs and intrinsics as they are."""
        managed, _ = split_policies("Fn", ["arn:aws:iam::1:policy/x", {"Ref": "Policy"}], arns)

        assert managed == ["arn:aws:iam::1:policy/x", {"Ref": "Policy"}]

    def test_document(self, arns: ArnBuilder) -> None:
        """Should name inline documents after their position."""
        statement = {"Effect": "Allow", "Action": "s3:*", "Resource": "*"}

        _, inline = split_policies("Fn", {"Statement": [statement]}, arns)

        assert inline == [
            {
                "PolicyName": "FnRolePolicy0",
                "PolicyDocument": {"Version": "2012-10-17", "Statement": [statement]},
            }
        ]

    def test_invalid_entry(self, arns: ArnBuilder) -> None:
        """Should reject a map without a Statement."""
        with pytest.raises(MissingOrInvalidPropertyError):
            split_policies("Fn", [{"Effect": "Allow"}], arns)


class TestBuildRole:
    """Tests for build_role."""

    def test_minimal(self) -> None:
        """Should only carry the trust policy."""
        role = build_role("states")

        assert role["Type"] == "AWS::IAM::Role"
        assert list(role["Properties"]) == ["AssumeRolePolicyDocument"]

    def test_custom_trust_policy(self) -> None:
        """Should prefer a given trust policy."""
        document = {"Version": "2012-10-17", "Statement": []}

        role = build_role("lambda", assume_role_policy_document=document)

        assert role["Properties"]["AssumeRolePolicyDocument"] is document

    def test_optional_properties(self) -> None:
        """Should copy path and permissions boundary."""
        role = build_role("lambda", path="/app/", permissions_boundary="arn:boundary")

        assert role["Properties"]["Path"] == "/app/"
        assert role["Properties"]["PermissionsBoundary"] == "arn:boundary"
