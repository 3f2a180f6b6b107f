"""``AWS::Serverless::StateMachine`` to ``AWS::StepFunctions::StateMachine``."""

from __future__ import annotations

import json
import logging
from typing import Any

from sam_translate.converters.base import (
    ConversionContext,
    ResourceConverter,
    Resources,
    cfn_resource,
    copy_properties,
    s3_location,
    tag_list,
)
from sam_translate.converters.iam import allow_statement, build_role, inline_policy, split_policies
from sam_translate.core.arn import managed_policy_sub
from sam_translate.core.intrinsics import get_att, ref
from sam_translate.models.properties import StateMachineProperties, parse_properties
from sam_translate.models.template import (
    EVENTS_RULE,
    SERVERLESS_STATE_MACHINE,
    STEP_FUNCTIONS_STATE_MACHINE,
)
from sam_translate.validation.exceptions import InvalidEventError, MissingOrInvalidPropertyError

logger = logging.getLogger(__name__)

SCHEDULER_SCHEDULE = "AWS::Scheduler::Schedule"
XRAY_POLICY = "AWSXrayWriteOnlyAccess"
START_EXECUTION = "states:StartExecution"

RULE_EVENTS = ("Schedule", "CloudWatchEvent", "EventBridgeRule")
SCHEDULE_V2_EVENT = "ScheduleV2"


def definition_string(definition: dict[str, Any]) -> dict[str, Any]:
    """Render an inline definition as ``Fn::Join`` of its indented JSON lines."""
    return {"Fn::Join": ["\n", json.dumps(definition, indent=2).split("\n")]}


class StateMachineConverter(ResourceConverter):
    """Builds the state machine, its role and its event rules or schedules."""

    resource_type = SERVERLESS_STATE_MACHINE

    def convert(
        self, logical_id: str, resource: dict[str, Any], context: ConversionContext
    ) -> Resources:
        raw = resource.get("Properties") or {}
        props = parse_properties(StateMachineProperties, raw, logical_id)

        machine: dict[str, Any] = {}
        if props.definition is not None:
            machine["DefinitionString"] = definition_string(props.definition)
        elif props.definition_uri is not None:
            machine["DefinitionS3Location"] = s3_location(props.definition_uri, "DefinitionUri")
        else:
            raise MissingOrInvalidPropertyError(
                "either Definition or DefinitionUri is required", path="Properties.Definition"
            )
        copy_properties(raw, machine, "DefinitionSubstitutions")
        if props.name is not None:
            machine["StateMachineName"] = props.name
        if props.type is not None:
            machine["StateMachineType"] = props.type

        role_id = context.id_generator.generate(logical_id, "Role")
        machine["RoleArn"] = props.role if props.role is not None else get_att(role_id, "Arn")
        machine["Tags"] = tag_list(props.tags, created_by="stateMachine")
        if props.tracing is not None:
            machine["TracingConfiguration"] = props.tracing
        if props.logging is not None:
            machine["LoggingConfiguration"] = props.logging

        result: Resources = {logical_id: cfn_resource(STEP_FUNCTIONS_STATE_MACHINE, machine)}
        if props.role is None:
            result[role_id] = self._role(logical_id, props, context)
        for event_id, event in props.events.items():
            result.update(self._event(logical_id, event_id, event.type, event.properties, context))
        logger.debug("State machine %s produced %d resources", logical_id, len(result))
        return result

    def _role(
        self, logical_id: str, props: StateMachineProperties, context: ConversionContext
    ) -> dict[str, Any]:
        managed, inline = split_policies(logical_id, props.policies, context.arn_builder)
        if props.tracing and props.tracing.get("Enabled"):
            managed.append(managed_policy_sub(XRAY_POLICY))
        return build_role(
            "states",
            managed_policy_arns=managed,
            policies=inline,
            path=props.role_path,
            permissions_boundary=props.permissions_boundary,
            tags=tag_list(props.tags, created_by="stateMachine"),
        )

    def _event(
        self,
        logical_id: str,
        event_id: str,
        event_type: str,
        props: dict[str, Any],
        context: ConversionContext,
    ) -> Resources:
        ids = context.id_generator
        role_id = ids.generate(logical_id, event_id, "Role")

        if event_type in RULE_EVENTS:
            rule = self._rule(logical_id, event_id, event_type, props)
            rule_target: dict[str, Any] = {
                "Id": ids.generate(logical_id, event_id, "StepFunctionsTarget"),
                "Arn": ref(logical_id),
                "RoleArn": get_att(role_id, "Arn"),
            }
            copy_properties(props, rule_target, "Input", "InputPath")
            rule["Targets"] = [rule_target]
            return {
                ids.generate(logical_id, event_id): cfn_resource(EVENTS_RULE, rule),
                role_id: self._event_role(logical_id, event_id, "events"),
            }

        if event_type == SCHEDULE_V2_EVENT:
            if props.get("ScheduleExpression") is None:
                raise InvalidEventError(
                    event_id, "missing required property 'ScheduleExpression'", logical_id
                )
            schedule: dict[str, Any] = {
                "ScheduleExpression": props["ScheduleExpression"],
                "FlexibleTimeWindow": props.get("FlexibleTimeWindow") or {"Mode": "OFF"},
            }
            copy_properties(
                props,
                schedule,
                "Name",
                "Description",
                "GroupName",
                "State",
                "ScheduleExpressionTimezone",
                "StartDate",
                "EndDate",
                "KmsKeyArn",
            )
            schedule_target: dict[str, Any] = {
                "Arn": ref(logical_id),
                "RoleArn": get_att(role_id, "Arn"),
            }
            copy_properties(props, schedule_target, "Input", "RetryPolicy", "DeadLetterConfig")
            schedule["Target"] = schedule_target
            return {
                ids.generate(logical_id, event_id): cfn_resource(SCHEDULER_SCHEDULE, schedule),
                role_id: self._event_role(logical_id, event_id, "scheduler"),
            }

        raise InvalidEventError(
            event_id,
            f"unsupported event type '{event_type}' for a state machine "
            f"(supported: {', '.join((*RULE_EVENTS, SCHEDULE_V2_EVENT))})",
            logical_id,
        )

    def _rule(
        self, logical_id: str, event_id: str, event_type: str, props: dict[str, Any]
    ) -> dict[str, Any]:
        source, key = ("Schedule", "ScheduleExpression")
        if event_type != "Schedule":
            source, key = ("Pattern", "EventPattern")
        if props.get(source) is None:
            raise InvalidEventError(event_id, f"missing required property '{source}'", logical_id)
        rule: dict[str, Any] = {key: props[source]}
        copy_properties(props, rule, "Name", "Description", "EventBusName")

        if props.get("State") is not None:
            rule["State"] = props["State"]
        elif event_type == "Schedule":
            rule["State"] = "ENABLED" if props.get("Enabled", True) else "DISABLED"
        return rule

    def _event_role(self, logical_id: str, event_id: str, service: str) -> dict[str, Any]:
        policy = inline_policy(
            f"{logical_id}{event_id}RolePolicy",
            [allow_statement([START_EXECUTION], ref(logical_id))],
        )
        return build_role(service, policies=[policy])
