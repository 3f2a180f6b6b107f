"""Expand policy templates in function and state machine ``Policies``."""

from __future__ import annotations

import logging
from typing import Any

from sam_translate.models.template import SERVERLESS_FUNCTION, SERVERLESS_STATE_MACHINE
from sam_translate.plugins.base import Plugin
from sam_translate.policy.processor import PolicyTemplateProcessor
from sam_translate.validation.exceptions import ResourceConversionError, SamTranslateError

logger = logging.getLogger(__name__)

POLICY_OWNER_TYPES = (SERVERLESS_FUNCTION, SERVERLESS_STATE_MACHINE)


class PolicyTemplatesPlugin(Plugin):
    """Replace ``{TemplateName: {params}}`` policy entries with policy documents."""

    name = "PolicyTemplatesPlugin"
    priority = 400

    def __init__(self, processor: PolicyTemplateProcessor | None = None) -> None:
        self.processor = processor or PolicyTemplateProcessor.default()

    def before_transform(self, template: dict[str, Any]) -> None:
        resources = template.get("Resources") or {}
        for logical_id, resource in resources.items():
            if not isinstance(resource, dict) or resource.get("Type") not in POLICY_OWNER_TYPES:
                continue
            properties = resource.get("Properties")
            if not isinstance(properties, dict) or "Policies" not in properties:
                continue
            try:
                properties["Policies"] = self.processor.expand_policies(properties["Policies"])
            except SamTranslateError as e:
                raise ResourceConversionError(logical_id, e) from e
