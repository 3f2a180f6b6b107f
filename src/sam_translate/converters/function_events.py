"""Event sources of ``AWS::Serverless::Function``.

Each handler turns one entry of ``Events`` into the CloudFormation resources
that wire the source to the function: a permission for push sources, an
event source mapping for poll-based ones. Poll-based sources also register
the managed policy the function role needs to read from them.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from sam_translate.converters.base import (
    ConversionContext,
    Resources,
    cfn_resource,
    copy_properties,
    lambda_permission,
)
from sam_translate.converters.iam import allow_statement, inline_policy
from sam_translate.core.arn import execute_api_sub
from sam_translate.core.intrinsics import get_att, ref, referenced_logical_id, sub
from sam_translate.models.template import S3_BUCKET
from sam_translate.openapi.routes import (
    ANY_METHOD,
    API_EVENT,
    HTTP_API_EVENT,
    HTTP_DEFAULT_ROUTE,
    IMPLICIT_HTTP_API,
    IMPLICIT_REST_API,
)
from sam_translate.validation.exceptions import InvalidEventError

logger = logging.getLogger(__name__)

EVENT_SOURCE_MAPPING = "AWS::Lambda::EventSourceMapping"
SNS_SUBSCRIPTION = "AWS::SNS::Subscription"
EVENTS_RULE = "AWS::Events::Rule"
LOGS_SUBSCRIPTION_FILTER = "AWS::Logs::SubscriptionFilter"
IOT_TOPIC_RULE = "AWS::IoT::TopicRule"

# Managed policies granting the Lambda poller read access to each stream/queue kind.
POLLER_POLICIES = {
    "SQS": "service-role/AWSLambdaSQSQueueExecutionRole",
    "Kinesis": "service-role/AWSLambdaKinesisExecutionRole",
    "DynamoDB": "service-role/AWSLambdaDynamoDBExecutionRole",
    "MSK": "service-role/AWSLambdaMSKExecutionRole",
}

MQ_POLICY_NAME = "SamAutoGeneratedAMQPolicy"

_QUEUE_OPTIONAL = ("BatchSize", "Enabled", "MaximumBatchingWindowInSeconds", "FilterCriteria")

_STREAM_OPTIONAL = (
    *_QUEUE_OPTIONAL,
    "FunctionResponseTypes",
    "BisectBatchOnFunctionError",
    "MaximumRecordAgeInSeconds",
    "MaximumRetryAttempts",
    "ParallelizationFactor",
    "TumblingWindowInSeconds",
    "DestinationConfig",
    "StartingPositionTimestamp",
)


@dataclass
class FunctionTarget:
    """The function an event is wired to, plus what its role must gain."""

    logical_id: str
    function_ref: dict[str, Any]
    function_arn: dict[str, Any]
    managed_policies: list[str] = field(default_factory=list)
    inline_policies: list[dict[str, Any]] = field(default_factory=list)

    def add_managed_policy(self, name: str) -> None:
        if name not in self.managed_policies:
            self.managed_policies.append(name)


EventHandler = Callable[[FunctionTarget, str, dict[str, Any], ConversionContext], Resources]


def _require(target: FunctionTarget, event_id: str, props: dict[str, Any], *names: str) -> None:
    for name in names:
        if props.get(name) is None:
            raise InvalidEventError(
                event_id, f"missing required property '{name}'", target.logical_id
            )


def _permission_id(context: ConversionContext, target: FunctionTarget, event_id: str) -> str:
    return context.id_generator.generate(target.logical_id, event_id, "Permission")


def api_event(
    target: FunctionTarget, event_id: str, props: dict[str, Any], context: ConversionContext
) -> Resources:
    path = props.get("Path")
    method = props.get("Method")
    if not isinstance(path, str) or not isinstance(method, str):
        raise InvalidEventError(
            event_id, "Api events require string Path and Method", target.logical_id
        )
    api_id = referenced_logical_id(props.get("RestApiId")) or IMPLICIT_REST_API
    permission = lambda_permission(
        target.function_ref,
        "apigateway.amazonaws.com",
        source_arn=execute_api_sub(api_id, method, path),
    )
    return {_permission_id(context, target, event_id): permission}


def http_api_event(
    target: FunctionTarget, event_id: str, props: dict[str, Any], context: ConversionContext
) -> Resources:
    path = props.get("Path", HTTP_DEFAULT_ROUTE)
    method = props.get("Method", ANY_METHOD)
    if not isinstance(path, str) or not isinstance(method, str):
        raise InvalidEventError(
            event_id, "HttpApi events require string Path and Method", target.logical_id
        )
    if path == HTTP_DEFAULT_ROUTE:
        path, method = "/*", ANY_METHOD
    api_id = referenced_logical_id(props.get("ApiId")) or IMPLICIT_HTTP_API
    permission = lambda_permission(
        target.function_ref,
        "apigateway.amazonaws.com",
        source_arn=execute_api_sub(api_id, method, path),
    )
    return {_permission_id(context, target, event_id): permission}


def _event_source_mapping(
    target: FunctionTarget, source_arn: Any, properties: dict[str, Any]
) -> dict[str, Any]:
    return cfn_resource(
        EVENT_SOURCE_MAPPING,
        {"EventSourceArn": source_arn, "FunctionName": target.function_ref, **properties},
    )


def sqs_event(
    target: FunctionTarget, event_id: str, props: dict[str, Any], context: ConversionContext
) -> Resources:
    _require(target, event_id, props, "Queue")
    mapping: dict[str, Any] = {}
    copy_properties(props, mapping, *_QUEUE_OPTIONAL, "FunctionResponseTypes", "ScalingConfig")
    target.add_managed_policy(POLLER_POLICIES["SQS"])
    mapping_id = context.id_generator.generate(target.logical_id, event_id)
    return {mapping_id: _event_source_mapping(target, props["Queue"], mapping)}


def _stream_event(kind: str) -> EventHandler:
    def handler(
        target: FunctionTarget, event_id: str, props: dict[str, Any], context: ConversionContext
    ) -> Resources:
        _require(target, event_id, props, "Stream", "StartingPosition")
        mapping: dict[str, Any] = {"StartingPosition": props["StartingPosition"]}
        copy_properties(props, mapping, *_STREAM_OPTIONAL)
        target.add_managed_policy(POLLER_POLICIES[kind])
        mapping_id = context.id_generator.generate(target.logical_id, event_id)
        return {mapping_id: _event_source_mapping(target, props["Stream"], mapping)}

    handler.__name__ = f"{kind.lower()}_event"
    return handler


def msk_event(
    target: FunctionTarget, event_id: str, props: dict[str, Any], context: ConversionContext
) -> Resources:
    _require(target, event_id, props, "Stream", "StartingPosition", "Topics")
    mapping: dict[str, Any] = {
        "StartingPosition": props["StartingPosition"],
        "Topics": props["Topics"],
    }
    copy_properties(props, mapping, *_QUEUE_OPTIONAL, "SourceAccessConfigurations")
    if props.get("ConsumerGroupId") is not None:
        mapping["AmazonManagedKafkaEventSourceConfig"] = {
            "ConsumerGroupId": props["ConsumerGroupId"]
        }
    target.add_managed_policy(POLLER_POLICIES["MSK"])
    mapping_id = context.id_generator.generate(target.logical_id, event_id)
    return {mapping_id: _event_source_mapping(target, props["Stream"], mapping)}


def mq_event(
    target: FunctionTarget, event_id: str, props: dict[str, Any], context: ConversionContext
) -> Resources:
    _require(target, event_id, props, "Broker", "Queues", "SourceAccessConfigurations")
    mapping: dict[str, Any] = {
        "Queues": props["Queues"],
        "SourceAccessConfigurations": props["SourceAccessConfigurations"],
    }
    copy_properties(props, mapping, *_QUEUE_OPTIONAL)

    secrets = [
        config["URI"]
        for config in props["SourceAccessConfigurations"]
        if isinstance(config, dict) and config.get("Type") == "BASIC_AUTH" and "URI" in config
    ]
    if not secrets:
        raise InvalidEventError(
            event_id,
            "SourceAccessConfigurations must contain a BASIC_AUTH entry with a URI",
            target.logical_id,
        )
    statements = [
        allow_statement(["secretsmanager:GetSecretValue"], secrets),
        allow_statement(["mq:DescribeBroker"], props["Broker"]),
        allow_statement(
            [
                "ec2:CreateNetworkInterface",
                "ec2:DeleteNetworkInterface",
                "ec2:DescribeNetworkInterfaces",
                "ec2:DescribeSecurityGroups",
                "ec2:DescribeSubnets",
                "ec2:DescribeVpcs",
            ],
            "*",
        ),
    ]
    target.inline_policies.append(inline_policy(MQ_POLICY_NAME, statements))
    mapping_id = context.id_generator.generate(target.logical_id, event_id)
    return {mapping_id: _event_source_mapping(target, props["Broker"], mapping)}


def sns_event(
    target: FunctionTarget, event_id: str, props: dict[str, Any], context: ConversionContext
) -> Resources:
    _require(target, event_id, props, "Topic")
    subscription: dict[str, Any] = {
        "Endpoint": target.function_arn,
        "Protocol": "lambda",
        "TopicArn": props["Topic"],
    }
    copy_properties(
        props, subscription, "Region", "FilterPolicy", "FilterPolicyScope", "RedrivePolicy"
    )
    return {
        context.id_generator.generate(target.logical_id, event_id): cfn_resource(
            SNS_SUBSCRIPTION, subscription
        ),
        _permission_id(context, target, event_id): lambda_permission(
            target.function_ref, "sns.amazonaws.com", source_arn=props["Topic"]
        ),
    }


def s3_event(
    target: FunctionTarget, event_id: str, props: dict[str, Any], context: ConversionContext
) -> Resources:
    _require(target, event_id, props, "Bucket", "Events")
    permission_id = _permission_id(context, target, event_id)
    permission = lambda_permission(
        target.function_ref, "s3.amazonaws.com", source_account=ref("AWS::AccountId")
    )

    # A bucket declared in the same template gets the notification wired in.
    bucket_id = referenced_logical_id(props["Bucket"])
    bucket = context.converted.get(bucket_id) if bucket_id else None
    if isinstance(bucket, dict) and bucket.get("Type") == S3_BUCKET:
        _add_bucket_notification(bucket, permission_id, target, props)
    else:
        logger.debug("S3 event %s targets a bucket outside the template", event_id)
    return {permission_id: permission}


def _add_bucket_notification(
    bucket: dict[str, Any], permission_id: str, target: FunctionTarget, props: dict[str, Any]
) -> None:
    events = props["Events"] if isinstance(props["Events"], list) else [props["Events"]]
    properties = bucket.get("Properties") or {}
    bucket["Properties"] = properties
    notifications = properties.setdefault("NotificationConfiguration", {})
    configurations = notifications.setdefault("LambdaConfigurations", [])
    for event in events:
        configuration: dict[str, Any] = {"Event": event, "Function": target.function_arn}
        if props.get("Filter") is not None:
            configuration["Filter"] = props["Filter"]
        configurations.append(configuration)

    depends_on = bucket.get("DependsOn", [])
    if isinstance(depends_on, str):
        depends_on = [depends_on]
    if permission_id not in depends_on:
        bucket["DependsOn"] = [*depends_on, permission_id]


def _rule_state(props: dict[str, Any]) -> str | None:
    if props.get("State") is not None:
        return props["State"]
    if props.get("Enabled") is not None:
        return "ENABLED" if props["Enabled"] else "DISABLED"
    return None


def _events_rule(
    target: FunctionTarget,
    event_id: str,
    rule: dict[str, Any],
    props: dict[str, Any],
    context: ConversionContext,
) -> Resources:
    copy_properties(props, rule, "Name", "Description", "EventBusName")
    state = _rule_state(props)
    if state is not None:
        rule["State"] = state

    rule_target: dict[str, Any] = {
        "Arn": target.function_arn,
        "Id": context.id_generator.generate(target.logical_id, event_id, "LambdaTarget"),
    }
    copy_properties(props, rule_target, "Input", "InputPath", "DeadLetterConfig", "RetryPolicy")
    rule["Targets"] = [rule_target]

    rule_id = context.id_generator.generate(target.logical_id, event_id)
    return {
        rule_id: cfn_resource(EVENTS_RULE, rule),
        _permission_id(context, target, event_id): lambda_permission(
            target.function_ref, "events.amazonaws.com", source_arn=get_att(rule_id, "Arn")
        ),
    }


def schedule_event(
    target: FunctionTarget, event_id: str, props: dict[str, Any], context: ConversionContext
) -> Resources:
    _require(target, event_id, props, "Schedule")
    return _events_rule(
        target, event_id, {"ScheduleExpression": props["Schedule"]}, props, context
    )


def event_rule_event(
    target: FunctionTarget, event_id: str, props: dict[str, Any], context: ConversionContext
) -> Resources:
    _require(target, event_id, props, "Pattern")
    return _events_rule(target, event_id, {"EventPattern": props["Pattern"]}, props, context)


def cloudwatch_logs_event(
    target: FunctionTarget, event_id: str, props: dict[str, Any], context: ConversionContext
) -> Resources:
    _require(target, event_id, props, "LogGroupName", "FilterPattern")
    permission_id = _permission_id(context, target, event_id)
    permission = lambda_permission(
        target.function_ref,
        sub("logs.${AWS::Region}.amazonaws.com"),
        source_arn=sub(
            "arn:${AWS::Partition}:logs:${AWS::Region}:${AWS::AccountId}:"
            "log-group:${__LogGroupName__}:*",
            {"__LogGroupName__": props["LogGroupName"]},
        ),
    )
    subscription = cfn_resource(
        LOGS_SUBSCRIPTION_FILTER,
        {
            "DestinationArn": target.function_arn,
            "FilterPattern": props["FilterPattern"],
            "LogGroupName": props["LogGroupName"],
        },
        DependsOn=[permission_id],
    )
    return {
        permission_id: permission,
        context.id_generator.generate(target.logical_id, event_id): subscription,
    }


def iot_rule_event(
    target: FunctionTarget, event_id: str, props: dict[str, Any], context: ConversionContext
) -> Resources:
    _require(target, event_id, props, "Sql")
    payload: dict[str, Any] = {
        "Sql": props["Sql"],
        "RuleDisabled": False,
        "Actions": [{"Lambda": {"FunctionArn": target.function_arn}}],
    }
    copy_properties(props, payload, "AwsIotSqlVersion")
    rule_id = context.id_generator.generate(target.logical_id, event_id)
    permission = lambda_permission(
        target.function_ref,
        "iot.amazonaws.com",
        source_account=ref("AWS::AccountId"),
        source_arn=sub(
            "arn:${AWS::Partition}:iot:${AWS::Region}:${AWS::AccountId}:rule/${RuleName}",
            {"RuleName": ref(rule_id)},
        ),
    )
    return {
        rule_id: cfn_resource(IOT_TOPIC_RULE, {"TopicRulePayload": payload}),
        _permission_id(context, target, event_id): permission,
    }


EVENT_HANDLERS: dict[str, EventHandler] = {
    API_EVENT: api_event,
    HTTP_API_EVENT: http_api_event,
    "SQS": sqs_event,
    "Kinesis": _stream_event("Kinesis"),
    "DynamoDB": _stream_event("DynamoDB"),
    "MSK": msk_event,
    "MQ": mq_event,
    "SNS": sns_event,
    "S3": s3_event,
    "Schedule": schedule_event,
    "CloudWatchEvent": event_rule_event,
    "EventBridgeRule": event_rule_event,
    "CloudWatchLogs": cloudwatch_logs_event,
    "IoTRule": iot_rule_event,
}


def convert_event(
    target: FunctionTarget,
    event_id: str,
    event_type: str,
    props: dict[str, Any],
    context: ConversionContext,
) -> Resources:
    """Convert one function event into the resources that connect it.

    Raises
    ------
        InvalidEventError: If the type is unsupported or a required property is missing.

    """
    handler = EVENT_HANDLERS.get(event_type)
    if handler is None:
        raise InvalidEventError(
            event_id,
            f"unsupported event type '{event_type}' (supported: {', '.join(EVENT_HANDLERS)})",
            target.logical_id,
        )
    logger.debug("Converting %s event %s of %s", event_type, event_id, target.logical_id)
    return handler(target, event_id, props, context)
