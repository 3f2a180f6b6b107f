"""``AWS::Serverless::Function`` to ``AWS::Lambda::Function`` and friends."""

from __future__ import annotations

import logging
from typing import Any

from sam_translate.converters.base import (
    LAMBDA_CODE_KEYS,
    ConversionContext,
    ResourceConverter,
    Resources,
    cfn_resource,
    copy_properties,
    s3_location,
    tag_list,
)
from sam_translate.converters.function_events import FunctionTarget, convert_event
from sam_translate.converters.iam import allow_statement, build_role, inline_policy, split_policies
from sam_translate.core.intrinsics import get_att, ref
from sam_translate.models.properties import FunctionProperties, parse_properties
from sam_translate.models.template import LAMBDA_FUNCTION, SERVERLESS_FUNCTION
from sam_translate.validation.exceptions import MissingOrInvalidPropertyError

logger = logging.getLogger(__name__)

LAMBDA_VERSION = "AWS::Lambda::Version"
LAMBDA_ALIAS = "AWS::Lambda::Alias"

BASIC_EXECUTION_POLICY = "service-role/AWSLambdaBasicExecutionRole"
XRAY_WRITE_POLICY = "AWSXRayDaemonWriteAccess"

_COPIED_PROPERTIES = (
    "Handler",
    "Runtime",
    "FunctionName",
    "Description",
    "MemorySize",
    "Timeout",
    "Environment",
    "VpcConfig",
    "Layers",
    "Architectures",
    "EphemeralStorage",
    "ReservedConcurrentExecutions",
    "KmsKeyArn",
    "ImageConfig",
    "FileSystemConfigs",
    "LoggingConfig",
    "SnapStart",
)

_DEAD_LETTER_ACTIONS = {"SQS": "sqs:SendMessage", "SNS": "sns:Publish"}


class FunctionConverter(ResourceConverter):
    """Builds the function, its execution role, version, alias and event wiring."""

    resource_type = SERVERLESS_FUNCTION

    def convert(
        self, logical_id: str, resource: dict[str, Any], context: ConversionContext
    ) -> Resources:
        raw = resource.get("Properties") or {}
        props = parse_properties(FunctionProperties, raw, logical_id)

        package_type = props.package_type or ("Image" if props.image_uri is not None else "Zip")
        if package_type == "Zip":
            for name in ("Handler", "Runtime"):
                if raw.get(name) is None:
                    raise MissingOrInvalidPropertyError(
                        f"{name} is required for PackageType Zip", path=f"Properties.{name}"
                    )

        code = self._code(props)
        function: dict[str, Any] = {"Code": code}
        if package_type == "Image":
            function["PackageType"] = "Image"
        copy_properties(raw, function, *_COPIED_PROPERTIES)

        dead_letter_statement = None
        if props.dead_letter_queue is not None:
            function["DeadLetterConfig"], dead_letter_statement = self._dead_letter(
                props.dead_letter_queue
            )
        if props.tracing is not None:
            function["TracingConfig"] = {"Mode": props.tracing}
        function["Tags"] = tag_list(props.tags, created_by="lambda")

        role_id = context.id_generator.generate(logical_id, "Role")
        function["Role"] = props.role if props.role is not None else get_att(role_id, "Arn")

        result: Resources = {logical_id: cfn_resource(LAMBDA_FUNCTION, function)}

        function_ref = ref(logical_id)
        function_arn = get_att(logical_id, "Arn")
        version_alias: Resources = {}
        if props.auto_publish_alias is not None:
            version_alias = self._version_and_alias(logical_id, props, code, context)
            alias_id = list(version_alias)[-1]
            function_ref = function_arn = ref(alias_id)

        target = FunctionTarget(logical_id, function_ref, function_arn)
        events: Resources = {}
        for event_id, event in props.events.items():
            events.update(convert_event(target, event_id, event.type, event.properties, context))

        if props.role is None:
            result[role_id] = self._role(logical_id, props, target, dead_letter_statement, context)
        result.update(version_alias)
        result.update(events)
        logger.debug("Function %s produced %d resources", logical_id, len(result))
        return result

    def _code(self, props: FunctionProperties) -> dict[str, Any]:
        if props.image_uri is not None:
            return {"ImageUri": props.image_uri}
        if props.inline_code is not None:
            return {"ZipFile": props.inline_code}
        if props.code_uri is not None:
            return s3_location(props.code_uri, "CodeUri", LAMBDA_CODE_KEYS)
        raise MissingOrInvalidPropertyError(
            "one of CodeUri, InlineCode or ImageUri is required", path="Properties.CodeUri"
        )

    def _dead_letter(self, config: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
        queue_type = config.get("Type")
        target_arn = config.get("TargetArn")
        if queue_type not in _DEAD_LETTER_ACTIONS or target_arn is None:
            raise MissingOrInvalidPropertyError(
                "DeadLetterQueue needs Type (SQS or SNS) and TargetArn",
                path="Properties.DeadLetterQueue",
            )
        statement = allow_statement([_DEAD_LETTER_ACTIONS[queue_type]], target_arn)
        return {"TargetArn": target_arn}, statement

    def _role(
        self,
        logical_id: str,
        props: FunctionProperties,
        target: FunctionTarget,
        dead_letter_statement: dict[str, Any] | None,
        context: ConversionContext,
    ) -> dict[str, Any]:
        arns = context.arn_builder

        managed: list[Any] = [arns.iam_managed_policy(BASIC_EXECUTION_POLICY)]
        if props.tracing == "Active":
            managed.append(arns.iam_managed_policy(XRAY_WRITE_POLICY))
        managed.extend(arns.iam_managed_policy(name) for name in target.managed_policies)

        user_managed, inline = split_policies(logical_id, props.policies, arns)
        managed.extend(arn for arn in user_managed if arn not in managed)
        inline.extend(target.inline_policies)
        if dead_letter_statement is not None:
            inline.append(
                inline_policy(f"{logical_id}DeadLetterQueuePolicy", [dead_letter_statement])
            )

        return build_role(
            "lambda",
            managed_policy_arns=managed,
            policies=inline,
            path=props.role_path,
            permissions_boundary=props.permissions_boundary,
            tags=tag_list(props.tags, created_by="lambda"),
            assume_role_policy_document=props.assume_role_policy_document,
        )

    def _version_and_alias(
        self,
        logical_id: str,
        props: FunctionProperties,
        code: dict[str, Any],
        context: ConversionContext,
    ) -> Resources:
        alias_name = props.auto_publish_alias
        if not isinstance(alias_name, str) or not alias_name:
            raise MissingOrInvalidPropertyError(
                "AutoPublishAlias must be a non-empty string", path="Properties.AutoPublishAlias"
            )

        hashed = dict(code)
        if props.auto_publish_code_sha256:
            hashed["CodeSha256"] = props.auto_publish_code_sha256
        version_id = context.id_generator.generate_hashed(hashed, logical_id, "Version")
        alias_id = context.id_generator.generate(logical_id, "Alias", alias_name)

        alias: dict[str, Any] = {
            "Name": alias_name,
            "FunctionName": ref(logical_id),
            "FunctionVersion": get_att(version_id, "Version"),
        }
        if props.provisioned_concurrency_config is not None:
            alias["ProvisionedConcurrencyConfig"] = props.provisioned_concurrency_config

        return {
            version_id: cfn_resource(
                LAMBDA_VERSION, {"FunctionName": ref(logical_id)}, DeletionPolicy="Retain"
            ),
            alias_id: cfn_resource(LAMBDA_ALIAS, alias),
        }
