"""Derived API definitions built from function route events."""

from sam_translate.openapi.generator import (
    OPENAPI_VERSION,
    SWAGGER_VERSION,
    OpenApiGenerator,
    http_cors_extension,
    invocation_uri,
    is_http_definition,
    method_key,
    security_scheme,
)
from sam_translate.openapi.routes import (
    IMPLICIT_HTTP_API,
    IMPLICIT_REST_API,
    Route,
    collect_routes,
    path_parameters,
)

__all__ = [
    "IMPLICIT_HTTP_API",
    "IMPLICIT_REST_API",
    "OPENAPI_VERSION",
    "SWAGGER_VERSION",
    "OpenApiGenerator",
    "Route",
    "collect_routes",
    "http_cors_extension",
    "invocation_uri",
    "is_http_definition",
    "method_key",
    "path_parameters",
    "security_scheme",
]
