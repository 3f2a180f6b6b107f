"""``AWS::Serverless::LayerVersion`` to ``AWS::Lambda::LayerVersion``.

Layer versions are immutable, so the converted resource gets a new logical
ID carrying a hash of its content location. A content change then creates a
new version instead of replacing the old one in place. References to the
original ID are rewritten by the dispatcher through ``context.renamed``.
"""

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
)
from sam_translate.models.properties import LayerVersionProperties, parse_properties
from sam_translate.models.template import SERVERLESS_LAYER_VERSION

logger = logging.getLogger(__name__)

LAMBDA_LAYER_VERSION = "AWS::Lambda::LayerVersion"

RETAIN = "Retain"
DELETE = "Delete"


class LayerVersionConverter(ResourceConverter):
    resource_type = SERVERLESS_LAYER_VERSION

    def convert(
        self, logical_id: str, resource: dict[str, Any], context: ConversionContext
    ) -> Resources:
        raw = resource.get("Properties") or {}
        props = parse_properties(LayerVersionProperties, raw, logical_id)

        content = s3_location(props.content_uri, "ContentUri", LAMBDA_CODE_KEYS)
        layer: dict[str, Any] = {
            "Content": content,
            "LayerName": props.layer_name if props.layer_name is not None else logical_id,
        }
        copy_properties(
            raw,
            layer,
            "Description",
            "CompatibleRuntimes",
            "CompatibleArchitectures",
            "LicenseInfo",
        )

        retention = (props.retention_policy or RETAIN).lower()
        deletion_policy = DELETE if retention == DELETE.lower() else RETAIN

        new_id = context.id_generator.generate_hashed(content, logical_id)
        context.renamed[logical_id] = new_id
        logger.debug("Layer %s renamed to %s", logical_id, new_id)
        return {new_id: cfn_resource(LAMBDA_LAYER_VERSION, layer, DeletionPolicy=deletion_policy)}
