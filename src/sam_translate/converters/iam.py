"""IAM role and policy document builders shared by the converters."""

from __future__ import annotations

from typing import Any

from sam_translate.core.arn import ArnBuilder
from sam_translate.core.intrinsics import is_intrinsic
from sam_translate.core.region import service_principal
from sam_translate.validation.exceptions import MissingOrInvalidPropertyError

IAM_ROLE = "AWS::IAM::Role"
IAM_MANAGED_POLICY = "AWS::IAM::ManagedPolicy"
POLICY_VERSION = "2012-10-17"


def policy_document(statements: list[Any]) -> dict[str, Any]:
    return {"Version": POLICY_VERSION, "Statement": statements}


def allow_statement(actions: list[str], resources: Any) -> dict[str, Any]:
    """``Effect: Allow`` statement; a single resource is wrapped in a list."""
    if not isinstance(resources, list):
        resources = [resources]
    return {"Effect": "Allow", "Action": list(actions), "Resource": resources}


def assume_role_policy(service: str) -> dict[str, Any]:
    """Trust policy letting ``<service>.amazonaws.com`` assume the role."""
    return policy_document(
        [
            {
                "Effect": "Allow",
                "Principal": {"Service": [service_principal(service)]},
                "Action": ["sts:AssumeRole"],
            }
        ]
    )


def inline_policy(name: str, statements: list[Any]) -> dict[str, Any]:
    return {"PolicyName": name, "PolicyDocument": policy_document(statements)}


def split_policies(
    logical_id: str, policies: Any, arn_builder: ArnBuilder
) -> tuple[list[Any], list[dict[str, Any]]]:
    """Sort a ``Policies`` value into managed policy ARNs and inline policies.

    Policy templates are already expanded at this point, so every entry is
    either a managed policy (a name, an ARN or an intrinsic) or a policy
    document carrying a ``Statement``.

    Args:
    ----
        logical_id: Owner of the role; inline policies are named ``<id>RolePolicy<i>``.
        policies: The ``Policies`` property (string, map or list).
        arn_builder: Resolves bare AWS managed policy names to ARNs.

    Returns:
    -------
        ``(managed_policy_arns, inline_policies)``.

    Raises:
    ------
        MissingOrInvalidPropertyError: If an entry has none of the shapes above.

    """
    if policies is None:
        return [], []
    if not isinstance(policies, list):
        policies = [policies]

    managed: list[Any] = []
    inline: list[dict[str, Any]] = []
    for index, policy in enumerate(policies):
        if isinstance(policy, str):
            if not policy.startswith("arn:"):
                policy = arn_builder.iam_managed_policy(policy)
            managed.append(policy)
        elif is_intrinsic(policy):
            managed.append(policy)
        elif isinstance(policy, dict) and "Statement" in policy:
            document = {"Version": policy.get("Version", POLICY_VERSION), **policy}
            inline.append(
                {"PolicyName": f"{logical_id}RolePolicy{index}", "PolicyDocument": document}
            )
        else:
            raise MissingOrInvalidPropertyError(
                "policy entries must be a managed policy or a document with a Statement",
                path=f"Properties.Policies.{index}",
            )
    return managed, inline


def build_role(
    service: str,
    managed_policy_arns: list[Any] | None = None,
    policies: list[dict[str, Any]] | None = None,
    path: Any = None,
    permissions_boundary: Any = None,
    tags: list[dict[str, Any]] | None = None,
    assume_role_policy_document: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build an ``AWS::IAM::Role`` resource trusted by one service."""
    properties: dict[str, Any] = {
        "AssumeRolePolicyDocument": assume_role_policy_document or assume_role_policy(service),
    }
    if managed_policy_arns:
        properties["ManagedPolicyArns"] = list(managed_policy_arns)
    if policies:
        properties["Policies"] = policies
    if path is not None:
        properties["Path"] = path
    if permissions_boundary is not None:
        properties["PermissionsBoundary"] = permissions_boundary
    if tags:
        properties["Tags"] = tags
    return {"Type": IAM_ROLE, "Properties": properties}
