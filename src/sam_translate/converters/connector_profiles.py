"""Connector profiles: what a source may do to a destination, and how it is granted.

Each profile is keyed by a ``(source type, destination type)`` pair and says
which resource kind carries the grant, the actions behind ``Read`` and
``Write``, and the resources those actions apply to. Resource patterns are
``Fn::Sub`` templates over ``${SourceArn}`` and ``${DestinationArn}``; a
pattern that is exactly one of those variables stands for the ARN itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sam_translate.converters.base import LAMBDA_PERMISSION
from sam_translate.converters.iam import IAM_MANAGED_POLICY
from sam_translate.core.intrinsics import sub
from sam_translate.models.template import (
    APIGATEWAY_REST_API,
    APIGATEWAYV2_API,
    APPSYNC_GRAPHQL_API,
    DYNAMODB_TABLE,
    EVENTS_EVENT_BUS,
    EVENTS_RULE,
    LAMBDA_FUNCTION,
    LOCATION_PLACE_INDEX,
    S3_BUCKET,
    SERVERLESS_API,
    SERVERLESS_FUNCTION,
    SERVERLESS_HTTP_API,
    SERVERLESS_SIMPLE_TABLE,
    SERVERLESS_STATE_MACHINE,
    SNS_TOPIC,
    SQS_QUEUE,
    STEP_FUNCTIONS_STATE_MACHINE,
)

SQS_QUEUE_POLICY = "AWS::SQS::QueuePolicy"
SNS_TOPIC_POLICY = "AWS::SNS::TopicPolicy"

READ = "Read"
WRITE = "Write"

SOURCE_ARN = "${SourceArn}"
DESTINATION_ARN = "${DestinationArn}"

_SERVERLESS_TYPES = {
    SERVERLESS_FUNCTION: LAMBDA_FUNCTION,
    SERVERLESS_STATE_MACHINE: STEP_FUNCTIONS_STATE_MACHINE,
    SERVERLESS_API: APIGATEWAY_REST_API,
    SERVERLESS_HTTP_API: APIGATEWAYV2_API,
    SERVERLESS_SIMPLE_TABLE: DYNAMODB_TABLE,
}


def normalize_type(resource_type: str) -> str:
    """Map an ``AWS::Serverless::*`` type to the CloudFormation type it becomes."""
    return _SERVERLESS_TYPES.get(resource_type, resource_type)


@dataclass(frozen=True)
class ConnectorProfile:
    """Grant recipe for one source/destination pair.

    Attributes
    ----------
        kind: Resource type that carries the grant.
        read_actions: Actions behind the ``Read`` permission.
        write_actions: Actions behind the ``Write`` permission.
        resources: Resource patterns the actions apply to.
        principal: Service principal for resource-based grants.
        role_on_destination: Attach the managed policy to the destination's
            role rather than the source's.

    """

    kind: str
    read_actions: tuple[str, ...] = ()
    write_actions: tuple[str, ...] = ()
    resources: tuple[str, ...] = (DESTINATION_ARN,)
    principal: str | None = None
    role_on_destination: bool = False

    def actions(self, permission: str) -> list[str]:
        if permission == READ:
            return list(self.read_actions)
        if permission == WRITE:
            return list(self.write_actions)
        return []

    def render_resources(self, source_arn: Any, destination_arn: Any) -> list[Any]:
        """Resolve every resource pattern against the two endpoint ARNs."""
        variables = {"SourceArn": source_arn, "DestinationArn": destination_arn}
        rendered: list[Any] = []
        for pattern in self.resources:
            if pattern == SOURCE_ARN:
                rendered.append(source_arn)
            elif pattern == DESTINATION_ARN:
                rendered.append(destination_arn)
            else:
                used = {k: v for k, v in variables.items() if f"${{{k}}}" in pattern}
                rendered.append(sub(pattern, used))
        return rendered


def _policy(
    read: tuple[str, ...] = (),
    write: tuple[str, ...] = (),
    *resources: str,
    role_on_destination: bool = False,
) -> ConnectorProfile:
    return ConnectorProfile(
        IAM_MANAGED_POLICY,
        read,
        write,
        resources or (DESTINATION_ARN,),
        role_on_destination=role_on_destination,
    )


def _invoke(principal: str) -> ConnectorProfile:
    return ConnectorProfile(
        LAMBDA_PERMISSION, write_actions=("lambda:InvokeFunction",), principal=principal
    )


_TABLE_INDEXES = (DESTINATION_ARN, "${DestinationArn}/index/*")
_BUCKET_OBJECTS = (DESTINATION_ARN, "${DestinationArn}/*")

_DYNAMODB_READ = (
    "dynamodb:GetItem",
    "dynamodb:Query",
    "dynamodb:Scan",
    "dynamodb:BatchGetItem",
    "dynamodb:ConditionCheckItem",
    "dynamodb:PartiQLSelect",
)
_DYNAMODB_WRITE = (
    "dynamodb:PutItem",
    "dynamodb:UpdateItem",
    "dynamodb:DeleteItem",
    "dynamodb:BatchWriteItem",
    "dynamodb:PartiQLDelete",
    "dynamodb:PartiQLInsert",
    "dynamodb:PartiQLUpdate",
)
_S3_READ = (
    "s3:GetObject",
    "s3:GetObjectAcl",
    "s3:GetObjectLegalHold",
    "s3:GetObjectRetention",
    "s3:GetObjectTorrent",
    "s3:GetObjectVersion",
    "s3:GetObjectVersionAcl",
    "s3:GetObjectVersionForReplication",
    "s3:GetObjectVersionTorrent",
    "s3:ListBucket",
    "s3:ListBucketMultipartUploads",
    "s3:ListBucketVersions",
    "s3:ListMultipartUploadParts",
)
_S3_WRITE = (
    "s3:AbortMultipartUpload",
    "s3:DeleteObject",
    "s3:DeleteObjectVersion",
    "s3:PutObject",
    "s3:PutObjectLegalHold",
    "s3:PutObjectRetention",
    "s3:RestoreObject",
)
_PUT_EVENTS = ("events:PutEvents",)

PROFILES: dict[tuple[str, str], ConnectorProfile] = {
    # Lambda function as source
    (LAMBDA_FUNCTION, DYNAMODB_TABLE): _policy(_DYNAMODB_READ, _DYNAMODB_WRITE, *_TABLE_INDEXES),
    (LAMBDA_FUNCTION, S3_BUCKET): _policy(_S3_READ, _S3_WRITE, *_BUCKET_OBJECTS),
    (LAMBDA_FUNCTION, SQS_QUEUE): _policy(
        ("sqs:ReceiveMessage", "sqs:GetQueueAttributes"),
        ("sqs:DeleteMessage", "sqs:SendMessage", "sqs:ChangeMessageVisibility", "sqs:PurgeQueue"),
    ),
    (LAMBDA_FUNCTION, SNS_TOPIC): _policy((), ("sns:Publish",)),
    (LAMBDA_FUNCTION, STEP_FUNCTIONS_STATE_MACHINE): _policy(
        ("states:DescribeStateMachine", "states:ListExecutions"),
        ("states:StartExecution", "states:StartSyncExecution"),
    ),
    (LAMBDA_FUNCTION, LOCATION_PLACE_INDEX): _policy(
        (
            "geo:SearchPlaceIndexForPosition",
            "geo:SearchPlaceIndexForSuggestions",
            "geo:SearchPlaceIndexForText",
            "geo:GetPlace",
        ),
    ),
    (LAMBDA_FUNCTION, EVENTS_EVENT_BUS): _policy((), _PUT_EVENTS),
    # Event producers invoking a function
    (SNS_TOPIC, LAMBDA_FUNCTION): _invoke("sns.amazonaws.com"),
    (S3_BUCKET, LAMBDA_FUNCTION): _invoke("s3.amazonaws.com"),
    (SQS_QUEUE, LAMBDA_FUNCTION): _invoke("sqs.amazonaws.com"),
    (EVENTS_RULE, LAMBDA_FUNCTION): _invoke("events.amazonaws.com"),
    (APIGATEWAY_REST_API, LAMBDA_FUNCTION): _invoke("apigateway.amazonaws.com"),
    (APIGATEWAYV2_API, LAMBDA_FUNCTION): _invoke("apigateway.amazonaws.com"),
    # A stream is read by the consuming function's role
    (DYNAMODB_TABLE, LAMBDA_FUNCTION): _policy(
        (
            "dynamodb:DescribeStream",
            "dynamodb:GetRecords",
            "dynamodb:GetShardIterator",
            "dynamodb:ListStreams",
        ),
        (),
        "${SourceArn}/stream/*",
        role_on_destination=True,
    ),
    # EventBridge rule as source
    (EVENTS_RULE, SNS_TOPIC): ConnectorProfile(
        SNS_TOPIC_POLICY, write_actions=("sns:Publish",), principal="events.amazonaws.com"
    ),
    (EVENTS_RULE, SQS_QUEUE): ConnectorProfile(
        SQS_QUEUE_POLICY, write_actions=("sqs:SendMessage",), principal="events.amazonaws.com"
    ),
    (EVENTS_RULE, STEP_FUNCTIONS_STATE_MACHINE): _policy((), ("states:StartExecution",)),
    (EVENTS_RULE, EVENTS_EVENT_BUS): _policy((), _PUT_EVENTS),
    # State machine as source
    (STEP_FUNCTIONS_STATE_MACHINE, LAMBDA_FUNCTION): _policy(
        (), ("lambda:InvokeAsync", "lambda:InvokeFunction")
    ),
    (STEP_FUNCTIONS_STATE_MACHINE, STEP_FUNCTIONS_STATE_MACHINE): _policy(
        ("states:DescribeExecution", "states:StopExecution"),
        ("states:StartExecution", "states:StartSyncExecution"),
    ),
    (STEP_FUNCTIONS_STATE_MACHINE, DYNAMODB_TABLE): _policy(
        _DYNAMODB_READ[:5], _DYNAMODB_WRITE[:4], *_TABLE_INDEXES
    ),
    (STEP_FUNCTIONS_STATE_MACHINE, SQS_QUEUE): _policy((), ("sqs:SendMessage",)),
    (STEP_FUNCTIONS_STATE_MACHINE, SNS_TOPIC): _policy((), ("sns:Publish",)),
    (STEP_FUNCTIONS_STATE_MACHINE, EVENTS_EVENT_BUS): _policy((), _PUT_EVENTS),
    (STEP_FUNCTIONS_STATE_MACHINE, S3_BUCKET): _policy(
        ("s3:GetObject", "s3:ListBucket"), ("s3:PutObject", "s3:DeleteObject"), *_BUCKET_OBJECTS
    ),
    # SNS fan-out into a queue
    (SNS_TOPIC, SQS_QUEUE): ConnectorProfile(
        SQS_QUEUE_POLICY, write_actions=("sqs:SendMessage",), principal="sns.amazonaws.com"
    ),
    # AppSync data sources
    (APPSYNC_GRAPHQL_API, LAMBDA_FUNCTION): _policy((), ("lambda:InvokeFunction",)),
    (APPSYNC_GRAPHQL_API, DYNAMODB_TABLE): _policy(
        _DYNAMODB_READ[:4], _DYNAMODB_WRITE[:4], *_TABLE_INDEXES
    ),
    (APPSYNC_GRAPHQL_API, EVENTS_EVENT_BUS): _policy((), _PUT_EVENTS),
}


def get_profile(source_type: str, destination_type: str) -> ConnectorProfile | None:
    """Profile for a pair of (possibly serverless) resource types, or None."""
    return PROFILES.get((normalize_type(source_type), normalize_type(destination_type)))
