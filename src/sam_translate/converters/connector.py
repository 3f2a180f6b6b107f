"""``AWS::Serverless::Connector`` to the IAM or resource policies it stands for.

Connectors run after every other kind so endpoint types and roles can be read
from the resources those kinds produced.
"""

from __future__ import annotations

import logging
from typing import Any

from sam_translate.converters.base import (
    LAMBDA_PERMISSION,
    ConversionContext,
    ResourceConverter,
    Resources,
    cfn_resource,
    lambda_permission,
)
from sam_translate.converters.connector_profiles import (
    SNS_TOPIC_POLICY,
    SQS_QUEUE_POLICY,
    ConnectorProfile,
    get_profile,
    normalize_type,
)
from sam_translate.converters.iam import IAM_MANAGED_POLICY, allow_statement, policy_document
from sam_translate.core.intrinsics import get_att, intrinsic_name, ref, sub
from sam_translate.models.properties import (
    ConnectorEndpoint,
    ConnectorProperties,
    parse_properties,
)
from sam_translate.models.template import (
    APIGATEWAY_REST_API,
    APIGATEWAYV2_API,
    LAMBDA_FUNCTION,
    SERVERLESS_CONNECTOR,
    SNS_TOPIC,
    STEP_FUNCTIONS_STATE_MACHINE,
)
from sam_translate.validation.errors import ErrorCodes
from sam_translate.validation.exceptions import (
    DuplicateOrInvalidIdentifierError,
    MissingOrInvalidPropertyError,
)

logger = logging.getLogger(__name__)

CONNECTORS_METADATA = "aws:sam:connectors"

# Types whose Ref is already the ARN
_REF_IS_ARN = (SNS_TOPIC, STEP_FUNCTIONS_STATE_MACHINE)
_API_TYPES = (APIGATEWAY_REST_API, APIGATEWAYV2_API)
# Property holding the execution role of a resource that has one
_ROLE_PROPERTIES = {LAMBDA_FUNCTION: "Role", STEP_FUNCTIONS_STATE_MACHINE: "RoleArn"}


def connector_metadata(
    connector_id: str, source_type: str, destination_type: str
) -> dict[str, Any]:
    return {
        CONNECTORS_METADATA: {
            connector_id: {
                "Source": {"Type": source_type},
                "Destination": {"Type": destination_type},
            }
        }
    }


def embedded_connectors(
    source_id: str, connectors: Any, existing: dict[str, Any]
) -> dict[str, dict[str, Any]]:
    """Expand a resource's ``Connectors`` attribute into standalone connectors.

    Args:
    ----
        source_id: Logical ID of the resource carrying the attribute.
        connectors: The attribute value, ``{Name: {Properties: {...}}}``.
        existing: Logical IDs already taken in the template.

    Returns:
    -------
        ``AWS::Serverless::Connector`` resources keyed ``<source_id><Name>``.

    Raises:
    ------
        MissingOrInvalidPropertyError: If an entry is not a map with ``Properties``.
        DuplicateOrInvalidIdentifierError: If a generated ID is already taken.

    """
    if not isinstance(connectors, dict):
        raise MissingOrInvalidPropertyError("Connectors must be a map", path="Connectors")

    result: dict[str, dict[str, Any]] = {}
    for name, entry in connectors.items():
        properties = entry.get("Properties") if isinstance(entry, dict) else None
        if not isinstance(properties, dict):
            raise MissingOrInvalidPropertyError(
                "embedded connector must have a Properties map", path=f"Connectors.{name}"
            )
        connector_id = f"{source_id}{name}"
        if connector_id in existing:
            raise DuplicateOrInvalidIdentifierError(
                connector_id,
                "embedded connector collides with an existing resource",
                code=ErrorCodes.E100_DUPLICATE_LOGICAL_ID,
            )
        result[connector_id] = {
            "Type": SERVERLESS_CONNECTOR,
            "Properties": {"Source": {"Id": source_id}, **properties},
        }
    return result


class ConnectorConverter(ResourceConverter):
    """Turns a connector into managed policies, permissions or resource policies."""

    resource_type = SERVERLESS_CONNECTOR

    def convert(
        self, logical_id: str, resource: dict[str, Any], context: ConversionContext
    ) -> Resources:
        props = parse_properties(ConnectorProperties, resource.get("Properties"), logical_id)
        permissions = list(dict.fromkeys(props.permissions))
        destinations = props.destinations

        result: Resources = {}
        for index, destination in enumerate(destinations):
            connector_id = logical_id
            if len(destinations) > 1:
                connector_id = context.id_generator.generate(logical_id, f"Destination{index}")
            result.update(
                self._connect(connector_id, props.source, destination, permissions, context)
            )
        return result

    def _connect(
        self,
        connector_id: str,
        source: ConnectorEndpoint,
        destination: ConnectorEndpoint,
        permissions: list[str],
        context: ConversionContext,
    ) -> Resources:
        source_type = self._endpoint_type(source, "Source", context)
        destination_type = self._endpoint_type(destination, "Destination", context)
        profile = get_profile(source_type, destination_type)
        if profile is None:
            raise MissingOrInvalidPropertyError(
                f"unable to create connector from {source_type} to {destination_type}; "
                "the combination is not supported",
                path="Properties",
            )

        for permission in permissions:
            if not profile.actions(permission):
                raise MissingOrInvalidPropertyError(
                    f"permission '{permission}' is not supported "
                    f"from {source_type} to {destination_type}",
                    path="Properties.Permissions",
                )

        metadata = connector_metadata(connector_id, source_type, destination_type)
        source_arn = self._arn(source, source_type, "Source")
        destination_arn = self._arn(destination, destination_type, "Destination")
        ids = context.id_generator
        logger.debug(
            "Connector %s: %s -> %s via %s",
            connector_id,
            source_type,
            destination_type,
            profile.kind,
        )

        if profile.kind == IAM_MANAGED_POLICY:
            statements = [
                allow_statement(
                    profile.actions(permission),
                    profile.render_resources(source_arn, destination_arn),
                )
                for permission in permissions
            ]
            if profile.role_on_destination:
                role = self._role(destination, destination_type, "Destination", context)
            else:
                role = self._role(source, source_type, "Source", context)
            policy = {"PolicyDocument": policy_document(statements), "Roles": [role]}
            return {
                ids.generate(connector_id, "Policy"): cfn_resource(
                    IAM_MANAGED_POLICY, policy, Metadata=metadata
                )
            }

        if profile.kind == LAMBDA_PERMISSION:
            result: Resources = {}
            for permission in permissions:
                grant = lambda_permission(destination_arn, profile.principal, source_arn=source_arn)
                grant["Metadata"] = metadata
                result[ids.generate(connector_id, permission, "LambdaPermission")] = grant
            return result

        statement = self._resource_statement(profile, permissions, source_arn, destination_arn)
        if profile.kind == SQS_QUEUE_POLICY:
            queue_url = destination.queue_url
            if queue_url is None:
                queue_url = ref(self._require_id(destination, "Destination", "QueueUrl"))
            queue_policy = {"PolicyDocument": policy_document([statement]), "Queues": [queue_url]}
            return {
                ids.generate(connector_id, "QueuePolicy"): cfn_resource(
                    SQS_QUEUE_POLICY, queue_policy, Metadata=metadata
                )
            }

        topic_policy = {
            "PolicyDocument": policy_document([statement]),
            "Topics": [destination_arn],
        }
        return {
            ids.generate(connector_id, "TopicPolicy"): cfn_resource(
                SNS_TOPIC_POLICY, topic_policy, Metadata=metadata
            )
        }

    def _resource_statement(
        self,
        profile: ConnectorProfile,
        permissions: list[str],
        source_arn: Any,
        destination_arn: Any,
    ) -> dict[str, Any]:
        actions: list[str] = []
        for permission in permissions:
            actions.extend(a for a in profile.actions(permission) if a not in actions)
        statement = allow_statement(actions, destination_arn)
        statement["Principal"] = {"Service": profile.principal}
        statement["Condition"] = {"ArnEquals": {"aws:SourceArn": source_arn}}
        return statement

    def _endpoint_type(
        self, endpoint: ConnectorEndpoint, side: str, context: ConversionContext
    ) -> str:
        if endpoint.type:
            return normalize_type(endpoint.type)
        if endpoint.id is None:
            raise MissingOrInvalidPropertyError(
                f"{side} must have an Id or a Type", path=f"Properties.{side}"
            )
        resource_type = context.resource_type(endpoint.id)
        if resource_type is None:
            raise MissingOrInvalidPropertyError(
                f"resource '{endpoint.id}' not found in template", path=f"Properties.{side}.Id"
            )
        return normalize_type(resource_type)

    def _arn(self, endpoint: ConnectorEndpoint, resource_type: str, side: str) -> Any:
        if endpoint.arn is not None:
            return endpoint.arn
        if resource_type in _API_TYPES:
            api_id = endpoint.resource_id
            if api_id is None:
                api_id = ref(self._require_id(endpoint, side, "ResourceId"))
            qualifier = endpoint.qualifier if endpoint.qualifier is not None else "*"
            return sub(
                "arn:${AWS::Partition}:execute-api:${AWS::Region}:${AWS::AccountId}:"
                f"${{__ApiId__}}/{qualifier}",
                {"__ApiId__": api_id},
            )
        logical_id = self._require_id(endpoint, side, "Arn")
        if resource_type in _REF_IS_ARN:
            return ref(logical_id)
        return get_att(logical_id, "Arn")

    def _role(
        self,
        endpoint: ConnectorEndpoint,
        resource_type: str,
        side: str,
        context: ConversionContext,
    ) -> Any:
        if endpoint.role_name is not None:
            return endpoint.role_name
        role_property = _ROLE_PROPERTIES.get(resource_type)
        if endpoint.id is not None and role_property is not None:
            resource = context.converted.get(endpoint.id) or context.resources.get(endpoint.id)
            role = ((resource or {}).get("Properties") or {}).get(role_property)
            if intrinsic_name(role) == "Fn::GetAtt":
                target = role["Fn::GetAtt"]
                return ref(target[0] if isinstance(target, list) else str(target).split(".")[0])
            if isinstance(role, str) and ":role/" in role:
                return role.rsplit("/", 1)[-1]
        raise MissingOrInvalidPropertyError(
            f"unable to determine the role of the {side.lower()}; set RoleName",
            path=f"Properties.{side}.RoleName",
        )

    def _require_id(self, endpoint: ConnectorEndpoint, side: str, alternative: str) -> str:
        if endpoint.id is None:
            raise MissingOrInvalidPropertyError(
                f"{side} needs an Id or {alternative}", path=f"Properties.{side}"
            )
        return endpoint.id
