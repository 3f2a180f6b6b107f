"""``AWS::Serverless::SimpleTable`` to ``AWS::DynamoDB::Table``."""

from __future__ import annotations

from typing import Any

from sam_translate.converters.base import (
    ConversionContext,
    ResourceConverter,
    Resources,
    cfn_resource,
    copy_properties,
    tag_list,
)
from sam_translate.models.properties import SimpleTableProperties, parse_properties
from sam_translate.models.template import DYNAMODB_TABLE, SERVERLESS_SIMPLE_TABLE

DEFAULT_KEY_NAME = "id"
DEFAULT_KEY_TYPE = "String"

ATTRIBUTE_TYPES = {"String": "S", "Number": "N", "Binary": "B"}


class SimpleTableConverter(ResourceConverter):
    """Single-key DynamoDB table, billed on demand unless throughput is given."""

    resource_type = SERVERLESS_SIMPLE_TABLE

    def convert(
        self, logical_id: str, resource: dict[str, Any], context: ConversionContext
    ) -> Resources:
        raw = resource.get("Properties") or {}
        props = parse_properties(SimpleTableProperties, raw, logical_id)

        key_name: Any = DEFAULT_KEY_NAME
        key_type = DEFAULT_KEY_TYPE
        if props.primary_key is not None:
            key_name, key_type = props.primary_key.name, props.primary_key.type

        table: dict[str, Any] = {
            "AttributeDefinitions": [
                {"AttributeName": key_name, "AttributeType": ATTRIBUTE_TYPES[key_type]}
            ],
            "KeySchema": [{"AttributeName": key_name, "KeyType": "HASH"}],
        }
        if props.provisioned_throughput is not None:
            table["ProvisionedThroughput"] = props.provisioned_throughput
        else:
            table["BillingMode"] = "PAY_PER_REQUEST"

        copy_properties(
            raw, table, "TableName", "SSESpecification", "PointInTimeRecoverySpecification"
        )
        if props.tags:
            table["Tags"] = tag_list(props.tags)
        return {logical_id: cfn_resource(DYNAMODB_TABLE, table)}
