"""Merge the ``Globals`` section into serverless resources."""

from __future__ import annotations

import logging
from typing import Any

from sam_translate.core.intrinsics import deep_copy
from sam_translate.models.template import GLOBALS_SECTIONS
from sam_translate.plugins.base import Plugin
from sam_translate.validation.exceptions import InvalidDocumentError

logger = logging.getLogger(__name__)

GLOBALS_KEY = "Globals"


class GlobalsPlugin(Plugin):
    """Fill missing resource properties from the matching ``Globals`` section.

    Properties set on a resource always win over global values. The
    ``Globals`` section is removed from the template once merged.
    """

    name = "GlobalsPlugin"
    priority = 100

    def before_transform(self, template: dict[str, Any]) -> None:
        if GLOBALS_KEY not in template:
            return
        global_sections = template[GLOBALS_KEY]
        if global_sections is None:
            del template[GLOBALS_KEY]
            return
        if not isinstance(global_sections, dict):
            raise InvalidDocumentError("Globals must be a map", path=GLOBALS_KEY)

        for section, values in global_sections.items():
            if section not in GLOBALS_SECTIONS:
                supported = ", ".join(GLOBALS_SECTIONS)
                raise InvalidDocumentError(
                    f"unsupported Globals section '{section}' (supported: {supported})",
                    path=f"{GLOBALS_KEY}.{section}",
                )
            if not isinstance(values, dict):
                raise InvalidDocumentError(
                    f"Globals section '{section}' must be a map",
                    path=f"{GLOBALS_KEY}.{section}",
                )

        resources = template.get("Resources") or {}
        for section, values in global_sections.items():
            resource_type = GLOBALS_SECTIONS[section]
            merged = 0
            for resource in resources.values():
                if not isinstance(resource, dict) or resource.get("Type") != resource_type:
                    continue
                if resource.get("Properties") is None:
                    resource["Properties"] = {}
                properties = resource["Properties"]
                if not isinstance(properties, dict):
                    continue
                merge_properties(properties, values)
                merged += 1
            logger.debug("Applied Globals.%s to %d resource(s)", section, merged)

        del template[GLOBALS_KEY]


def merge_properties(properties: dict[str, Any], global_values: dict[str, Any]) -> None:
    """Copy every global value whose key is absent from ``properties``."""
    for key, value in global_values.items():
        if key not in properties:
            properties[key] = deep_copy(value)
