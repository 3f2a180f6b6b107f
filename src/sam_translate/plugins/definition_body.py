"""Generate or extend the API definition of each REST and HTTP API."""

from __future__ import annotations

import logging
from typing import Any

from sam_translate.core.intrinsics import is_intrinsic
from sam_translate.models.template import SERVERLESS_API, SERVERLESS_HTTP_API
from sam_translate.openapi.generator import OpenApiGenerator
from sam_translate.openapi.routes import collect_routes
from sam_translate.plugins.base import Plugin

logger = logging.getLogger(__name__)


class DefinitionBodyPlugin(Plugin):
    """Derive ``DefinitionBody`` from the routes that target each API.

    APIs with neither ``DefinitionBody`` nor ``DefinitionUri`` get a generated
    document. An inline ``DefinitionBody`` is extended with the routes it
    does not declare yet. Must run after the implicit API plugins.
    """

    name = "DefinitionBodyPlugin"
    priority = 500

    def __init__(self, generator: OpenApiGenerator | None = None) -> None:
        self.generator = generator or OpenApiGenerator()

    def before_transform(self, template: dict[str, Any]) -> None:
        resources = template.get("Resources") or {}
        routes_by_api = collect_routes(resources)

        for logical_id, resource in resources.items():
            if not isinstance(resource, dict):
                continue
            resource_type = resource.get("Type")
            if resource_type not in (SERVERLESS_API, SERVERLESS_HTTP_API):
                continue
            if resource.get("Properties") is None:
                resource["Properties"] = {}
            properties = resource["Properties"]
            if not isinstance(properties, dict):
                continue

            routes = routes_by_api.get(logical_id, [])
            http = resource_type == SERVERLESS_HTTP_API
            body = properties.get("DefinitionBody")

            if body is None and "DefinitionUri" not in properties:
                properties["DefinitionBody"] = self.generator.generate(routes, http, properties)
                logger.debug(
                    "Generated definition for %s with %d route(s)", logical_id, len(routes)
                )
            elif isinstance(body, dict) and not is_intrinsic(body):
                properties["DefinitionBody"] = self.generator.merge(body, routes, properties)
                logger.debug("Merged %d route(s) into definition of %s", len(routes), logical_id)
