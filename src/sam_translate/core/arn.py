"""ARN construction and parsing.

:class:`ArnBuilder` produces concrete ARN strings for a fixed partition,
region and account. The ``*_sub`` helpers at the bottom produce ``Fn::Sub``
forms using pseudo parameters, for ARNs that are only known at deploy time.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Any

from sam_translate.core.intrinsics import sub
from sam_translate.core.region import DEFAULT_REGION, VALID_PARTITIONS, partition_for_region
from sam_translate.validation.exceptions import InvalidAddressError

_ARN_PATTERN = re.compile(r"^arn:([^:]+):([^:]+):([^:]*):([^:]*):(.+)$")


@dataclass(frozen=True)
class Arn:
    """A parsed ARN."""

    partition: str
    service: str
    region: str
    account_id: str
    resource: str

    def __str__(self) -> str:
        return ":".join(
            ["arn", self.partition, self.service, self.region, self.account_id, self.resource]
        )

    @classmethod
    def parse(cls, value: str) -> Arn:
        """Parse an ARN string.

        Raises
        ------
            InvalidAddressError: If ``value`` is empty or malformed.

        """
        if not value:
            raise InvalidAddressError(value, "ARN cannot be empty")
        match = _ARN_PATTERN.match(value)
        if not match:
            raise InvalidAddressError(
                value, "expected arn:partition:service:region:account:resource"
            )
        return cls(*match.groups())


def parse_arn(value: str) -> Arn:
    return Arn.parse(value)


def is_valid_arn(value: str) -> bool:
    return bool(value) and _ARN_PATTERN.match(value) is not None


def replace_partition(value: str, partition: str) -> str:
    return str(replace(Arn.parse(value), partition=partition))


def replace_region(value: str, region: str) -> str:
    return str(replace(Arn.parse(value), region=region))


def replace_account(value: str, account_id: str) -> str:
    return str(replace(Arn.parse(value), account_id=account_id))


def verify_arn(value: str) -> Arn:
    """Parse ``value`` and check its partition, service and resource.

    Raises
    ------
        InvalidAddressError: If the ARN is malformed or has an unknown partition.

    """
    arn = Arn.parse(value)
    if arn.partition not in VALID_PARTITIONS:
        raise InvalidAddressError(value, f"unknown partition '{arn.partition}'")
    if not arn.service:
        raise InvalidAddressError(value, "service cannot be empty")
    if not arn.resource:
        raise InvalidAddressError(value, "resource cannot be empty")
    return arn


class ArnBuilder:
    """Builds ARNs for one partition, region and account."""

    def __init__(
        self,
        region: str | None = None,
        account_id: str = "",
        partition: str | None = None,
    ) -> None:
        """Initialize the builder.

        Args:
        ----
            region: Region code; defaults to ``us-east-1``.
            account_id: Twelve-digit account ID.
            partition: Explicit partition; derived from ``region`` when omitted.

        """
        self.region = region or DEFAULT_REGION
        self.account_id = account_id
        self.partition = partition or partition_for_region(self.region)

    def build(self, service: str, resource: str, region: str = "", account_id: str = "") -> str:
        return str(Arn(self.partition, service, region, account_id, resource))

    # Lambda
    def lambda_function(self, name: str) -> str:
        return self.generic("lambda", f"function:{name}")

    def lambda_alias(self, name: str, alias: str) -> str:
        return self.generic("lambda", f"function:{name}:{alias}")

    def lambda_version(self, name: str, version: str) -> str:
        return self.generic("lambda", f"function:{name}:{version}")

    def lambda_layer(self, name: str) -> str:
        return self.generic("lambda", f"layer:{name}")

    def lambda_layer_version(self, name: str, version: int) -> str:
        return self.generic("lambda", f"layer:{name}:{version}")

    # API Gateway
    def rest_api(self, api_id: str) -> str:
        return self.generic_no_account("apigateway", f"/restapis/{api_id}")

    def rest_api_stage(self, api_id: str, stage: str) -> str:
        return self.generic_no_account("apigateway", f"/restapis/{api_id}/stages/{stage}")

    def http_api(self, api_id: str) -> str:
        return self.generic_no_account("apigateway", f"/apis/{api_id}")

    def execute_api(self, api_id: str, stage: str, method: str, path: str) -> str:
        return self.generic("execute-api", f"{api_id}/{stage}/{method}{path}")

    # IAM
    def iam_role(self, name: str) -> str:
        return self.generic_global("iam", f"role/{name}")

    def iam_role_with_path(self, path: str, name: str) -> str:
        if not path or path == "/":
            return self.iam_role(name)
        path = "/" + path.strip("/") + "/"
        return self.generic_global("iam", f"role{path}{name}")

    def iam_policy(self, name: str) -> str:
        return self.generic_global("iam", f"policy/{name}")

    def iam_managed_policy(self, name: str) -> str:
        """ARN of an AWS managed policy, e.g. ``AWSLambdaBasicExecutionRole``."""
        return self.build("iam", f"policy/{name}", account_id="aws")

    # S3
    def s3_bucket(self, bucket: str) -> str:
        return self.build("s3", bucket)

    def s3_object(self, bucket: str, key: str) -> str:
        return self.build("s3", f"{bucket}/{key}")

    # DynamoDB
    def dynamodb_table(self, table: str) -> str:
        return self.generic("dynamodb", f"table/{table}")

    def dynamodb_index(self, table: str, index: str) -> str:
        return self.generic("dynamodb", f"table/{table}/index/{index}")

    def dynamodb_stream(self, table: str, label: str) -> str:
        return self.generic("dynamodb", f"table/{table}/stream/{label}")

    # Messaging and streaming
    def sns_topic(self, name: str) -> str:
        return self.generic("sns", name)

    def sqs_queue(self, name: str) -> str:
        return self.generic("sqs", name)

    def kinesis_stream(self, name: str) -> str:
        return self.generic("kinesis", f"stream/{name}")

    def state_machine(self, name: str) -> str:
        return self.generic("states", f"stateMachine:{name}")

    def events_rule(self, name: str) -> str:
        return self.generic("events", f"rule/{name}")

    def event_bus(self, name: str) -> str:
        return self.generic("events", f"event-bus/{name}")

    # Monitoring
    def log_group(self, name: str) -> str:
        return self.generic("logs", f"log-group:{name}")

    def cloudwatch_alarm(self, name: str) -> str:
        return self.generic("cloudwatch", f"alarm:{name}")

    # Security
    def secret(self, name: str) -> str:
        return self.generic("secretsmanager", f"secret:{name}")

    def kms_key(self, key_id: str) -> str:
        return self.generic("kms", f"key/{key_id}")

    def kms_alias(self, alias: str) -> str:
        if not alias.startswith("alias/"):
            alias = f"alias/{alias}"
        return self.generic("kms", alias)

    def cognito_user_pool(self, pool_id: str) -> str:
        return self.generic("cognito-idp", f"userpool/{pool_id}")

    # CodeDeploy
    def codedeploy_application(self, name: str) -> str:
        return self.generic("codedeploy", f"application:{name}")

    def codedeploy_deployment_group(self, application: str, group: str) -> str:
        return self.generic("codedeploy", f"deploymentgroup:{application}/{group}")

    # Generic forms
    def generic(self, service: str, resource: str) -> str:
        return self.build(service, resource, self.region, self.account_id)

    def generic_global(self, service: str, resource: str) -> str:
        return self.build(service, resource, account_id=self.account_id)

    def generic_no_account(self, service: str, resource: str) -> str:
        return self.build(service, resource, region=self.region)


def managed_policy_sub(name: str) -> dict[str, Any]:
    """``Fn::Sub`` ARN of an AWS managed policy in the deploying partition."""
    return sub(f"arn:${{AWS::Partition}}:iam::aws:policy/{name}")


def execute_api_sub(
    api_logical_id: str, method: str = "*", path: str = "/*", stage: str = "*"
) -> dict[str, Any]:
    """``Fn::Sub`` source ARN for an API Gateway invocation of a Lambda function."""
    method = "*" if method.upper() == "ANY" else method.upper()
    path = "/" + path.lstrip("/") if path else "/*"
    path = re.sub(r"\{[^}]+\}", "*", path)
    return sub(
        "arn:${AWS::Partition}:execute-api:${AWS::Region}:${AWS::AccountId}:"
        f"${{__ApiId__}}/{stage}/{method}{path}",
        {"__ApiId__": {"Ref": api_logical_id}},
    )


def lambda_invocation_uri_sub(function_arn: Any) -> dict[str, Any]:
    """``Fn::Sub`` integration URI that invokes a Lambda function from API Gateway."""
    return sub(
        "arn:${AWS::Partition}:apigateway:${AWS::Region}:lambda:path/2015-03-31/"
        "functions/${__FunctionArn__}/invocations",
        {"__FunctionArn__": function_arn},
    )
