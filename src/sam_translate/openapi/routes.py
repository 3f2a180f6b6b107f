"""Route collection from function events."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sam_translate.core.intrinsics import ref, referenced_logical_id
from sam_translate.core.logical_id import LogicalIdGenerator
from sam_translate.models.template import SERVERLESS_FUNCTION

IMPLICIT_REST_API = "ServerlessRestApi"
IMPLICIT_HTTP_API = "ServerlessHttpApi"

API_EVENT = "Api"
HTTP_API_EVENT = "HttpApi"

HTTP_DEFAULT_ROUTE = "$default"
ANY_METHOD = "ANY"

_PATH_PARAMETER = re.compile(r"\{([^}+]+)(\+?)\}")

_IDS = LogicalIdGenerator()


@dataclass(frozen=True)
class Route:
    """One ``(path, method)`` pair bound to a function."""

    path: str
    method: str
    function_id: str
    api_id: str
    event_id: str = ""
    auth: Mapping[str, Any] | None = None
    payload_format_version: str | None = None
    invoke_target: Any = None

    @property
    def is_any_method(self) -> bool:
        return self.method.upper() == ANY_METHOD


def path_parameters(path: str) -> list[tuple[str, bool]]:
    """Return ``(name, greedy)`` for each ``{name}`` or ``{name+}`` path segment."""
    return [(match.group(1), bool(match.group(2))) for match in _PATH_PARAMETER.finditer(path)]


def _alias_target(function_id: str, properties: Mapping[str, Any]) -> Any:
    """``Ref`` of the alias an ``AutoPublishAlias`` function is invoked through."""
    alias = properties.get("AutoPublishAlias")
    if not isinstance(alias, str) or not alias:
        return None
    return ref(_IDS.generate(function_id, "Alias", alias))


def _event_route(
    function_id: str, event_id: str, event: Mapping[str, Any], invoke_target: Any = None
) -> Route | None:
    event_type = event.get("Type")
    props = event.get("Properties")
    if not isinstance(props, Mapping):
        props = {}

    if event_type == API_EVENT:
        api_id = referenced_logical_id(props.get("RestApiId")) or IMPLICIT_REST_API
        path = props.get("Path")
        method = props.get("Method")
        if not isinstance(path, str) or not isinstance(method, str):
            return None
        return Route(
            path=path,
            method=method.upper(),
            function_id=function_id,
            api_id=api_id,
            event_id=event_id,
            auth=props.get("Auth") if isinstance(props.get("Auth"), Mapping) else None,
            invoke_target=invoke_target,
        )

    if event_type == HTTP_API_EVENT:
        api_id = referenced_logical_id(props.get("ApiId")) or IMPLICIT_HTTP_API
        path = props.get("Path", HTTP_DEFAULT_ROUTE)
        method = props.get("Method", ANY_METHOD)
        if not isinstance(path, str) or not isinstance(method, str):
            return None
        payload_version = props.get("PayloadFormatVersion")
        return Route(
            path=path,
            method=method.upper(),
            function_id=function_id,
            api_id=api_id,
            event_id=event_id,
            auth=props.get("Auth") if isinstance(props.get("Auth"), Mapping) else None,
            invoke_target=invoke_target,
            payload_format_version=str(payload_version) if payload_version else None,
        )
    return None


def collect_routes(resources: Mapping[str, Any]) -> dict[str, list[Route]]:
    """Scan every function's ``Api``/``HttpApi`` events and group routes by target API.

    Args:
    ----
        resources: The template's ``Resources`` map.

    Returns:
    -------
        Target API logical ID to its routes, in template order. Events whose
        path or method is not a plain string are skipped.

    """
    grouped: dict[str, list[Route]] = {}
    for logical_id, resource in resources.items():
        if not isinstance(resource, Mapping) or resource.get("Type") != SERVERLESS_FUNCTION:
            continue
        props = resource.get("Properties")
        events = props.get("Events") if isinstance(props, Mapping) else None
        if not isinstance(events, Mapping):
            continue
        invoke_target = _alias_target(logical_id, props)
        for event_id, event in events.items():
            if not isinstance(event, Mapping):
                continue
            route = _event_route(logical_id, event_id, event, invoke_target)
            if route is not None:
                grouped.setdefault(route.api_id, []).append(route)
    return grouped
