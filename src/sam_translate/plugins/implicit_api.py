"""Create the implicit REST and HTTP APIs that route events refer to."""

from __future__ import annotations

import logging
from typing import Any

from sam_translate.models.template import (
    SERVERLESS_API,
    SERVERLESS_FUNCTION,
    SERVERLESS_HTTP_API,
)
from sam_translate.openapi.routes import (
    API_EVENT,
    HTTP_API_EVENT,
    IMPLICIT_HTTP_API,
    IMPLICIT_REST_API,
)
from sam_translate.plugins.base import Plugin

logger = logging.getLogger(__name__)


class _ImplicitApiPlugin(Plugin):
    event_type: str
    api_id_property: str
    logical_id: str
    resource_type: str
    default_properties: dict[str, Any]

    def before_transform(self, template: dict[str, Any]) -> None:
        resources = template.get("Resources")
        if not isinstance(resources, dict) or self.logical_id in resources:
            return
        if not any(self._needs_implicit_api(r) for r in resources.values()):
            return
        resources[self.logical_id] = {
            "Type": self.resource_type,
            "Properties": dict(self.default_properties),
        }
        logger.debug("Created implicit API %s", self.logical_id)

    def _needs_implicit_api(self, resource: Any) -> bool:
        if not isinstance(resource, dict) or resource.get("Type") != SERVERLESS_FUNCTION:
            return False
        properties = resource.get("Properties")
        events = properties.get("Events") if isinstance(properties, dict) else None
        if not isinstance(events, dict):
            return False
        for event in events.values():
            if not isinstance(event, dict) or event.get("Type") != self.event_type:
                continue
            event_properties = event.get("Properties")
            if not isinstance(event_properties, dict):
                return True
            if self.api_id_property not in event_properties:
                return True
        return False


class ImplicitRestApiPlugin(_ImplicitApiPlugin):
    """Create ``ServerlessRestApi`` for ``Api`` events without ``RestApiId``."""

    name = "ImplicitRestApiPlugin"
    priority = 300
    event_type = API_EVENT
    api_id_property = "RestApiId"
    logical_id = IMPLICIT_REST_API
    resource_type = SERVERLESS_API
    default_properties = {"StageName": "Prod"}


class ImplicitHttpApiPlugin(_ImplicitApiPlugin):
    """Create ``ServerlessHttpApi`` for ``HttpApi`` events without ``ApiId``."""

    name = "ImplicitHttpApiPlugin"
    priority = 310
    event_type = HTTP_API_EVENT
    api_id_property = "ApiId"
    logical_id = IMPLICIT_HTTP_API
    resource_type = SERVERLESS_HTTP_API
    default_properties = {"StageName": "$default"}
