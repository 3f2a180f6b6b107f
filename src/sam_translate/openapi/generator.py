"""Derived API definitions for REST (swagger 2.0) and HTTP (openapi 3.0.1) APIs.

A definition is generated from the routes that functions declare through
their ``Api``/``HttpApi`` events. An inline definition already present on the
API is merged with new routes without touching existing path/method entries.

Example:
-------
    >>> gen = OpenApiGenerator()
    >>> body = gen.generate_swagger([Route("/users", "GET", "UsersFn", "ServerlessRestApi")])
    >>> sorted(body["paths"]["/users"])
    ['get']

"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from sam_translate.core.arn import lambda_invocation_uri_sub
from sam_translate.core.intrinsics import deep_copy, is_intrinsic, ref, sub
from sam_translate.openapi.routes import Route, path_parameters

SWAGGER_VERSION = "2.0"
OPENAPI_VERSION = "3.0.1"
DEFAULT_PAYLOAD_FORMAT_VERSION = "2.0"

ANY_METHOD_KEY = "x-amazon-apigateway-any-method"
INTEGRATION_KEY = "x-amazon-apigateway-integration"
AUTHORIZER_KEY = "x-amazon-apigateway-authorizer"
AUTHTYPE_KEY = "x-amazon-apigateway-authtype"
HTTP_CORS_KEY = "x-amazon-apigateway-cors"

API_KEY_SCHEME = "api_key"
NO_AUTHORIZER = "NONE"

_CORS_HEADERS = (
    ("AllowHeaders", "Access-Control-Allow-Headers"),
    ("AllowMethods", "Access-Control-Allow-Methods"),
    ("AllowOrigin", "Access-Control-Allow-Origin"),
    ("MaxAge", "Access-Control-Max-Age"),
    ("AllowCredentials", "Access-Control-Allow-Credentials"),
)

_HTTP_CORS_FIELDS = (
    "AllowOrigins",
    "AllowHeaders",
    "AllowMethods",
    "ExposeHeaders",
    "MaxAge",
    "AllowCredentials",
)


def invocation_uri(function_id: str) -> dict[str, Any]:
    """Templated invoke address of a function for an ``aws_proxy`` integration."""
    return sub(
        "arn:${AWS::Partition}:apigateway:${AWS::Region}:lambda:path/2015-03-31/"
        f"functions/${{{function_id}.Arn}}/invocations"
    )


def method_key(method: str) -> str:
    """Map an HTTP method to its key under ``paths[path]``."""
    method = method.upper()
    if method == "ANY":
        return ANY_METHOD_KEY
    return method.lower()


def is_http_definition(body: Mapping[str, Any]) -> bool:
    """Detect an openapi 3.x document (HTTP API) versus a swagger 2.0 one (REST)."""
    return "openapi" in body and "swagger" not in body


class OpenApiGenerator:
    """Builds and merges API definitions from routes."""

    def __init__(self, title: Any = None) -> None:
        """Initialize the generator.

        Args:
        ----
            title: ``info.title`` of generated documents; the stack name by default.

        """
        self.title = title if title is not None else ref("AWS::StackName")

    # Generation

    def generate_swagger(
        self, routes: Iterable[Route], api_properties: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        """Generate a swagger 2.0 document for a REST API."""
        body: dict[str, Any] = {
            "swagger": SWAGGER_VERSION,
            "info": {"version": "1.0", "title": deep_copy(self.title)},
            "paths": {},
        }
        return self.merge(body, routes, api_properties)

    def generate_openapi3(
        self, routes: Iterable[Route], api_properties: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        """Generate an openapi 3.0.1 document for an HTTP API."""
        body: dict[str, Any] = {
            "openapi": OPENAPI_VERSION,
            "info": {"version": "1.0", "title": deep_copy(self.title)},
            "paths": {},
        }
        return self.merge(body, routes, api_properties)

    def generate(
        self,
        routes: Iterable[Route],
        http: bool,
        api_properties: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        if http:
            return self.generate_openapi3(routes, api_properties)
        return self.generate_swagger(routes, api_properties)

    # Merge

    def merge(
        self,
        existing: Mapping[str, Any],
        routes: Iterable[Route],
        api_properties: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Add routes missing from ``existing`` and return the merged copy.

        Existing paths, methods and security schemes are never replaced. The
        REST or HTTP shape is taken from the document's own version marker.

        Args:
        ----
            existing: An inline API definition.
            routes: Routes targeting the API.
            api_properties: The API's properties, for ``Auth`` and CORS.

        Returns:
        -------
            A new document; ``existing`` is not modified.

        """
        body = deep_copy(dict(existing))
        http = is_http_definition(body)
        api_properties = api_properties or {}
        api_auth = api_properties.get("Auth")
        api_auth = api_auth if isinstance(api_auth, Mapping) else {}

        paths = body.get("paths")
        if not isinstance(paths, dict):
            paths = {}
            body["paths"] = paths

        uses_api_key = False
        for route in routes:
            operations = paths.setdefault(route.path, {})
            if not isinstance(operations, dict) or is_intrinsic(operations):
                continue
            key = method_key(route.method)
            if key in operations:
                continue
            operation = self._operation(route, http)
            security = self._security(route, api_auth)
            if security:
                operation["security"] = security
                uses_api_key = uses_api_key or any(API_KEY_SCHEME in s for s in security)
            operations[key] = operation

        self._merge_security_schemes(body, api_auth, http, uses_api_key)

        if http:
            cors = api_properties.get("CorsConfiguration")
            if cors:
                body.setdefault(HTTP_CORS_KEY, http_cors_extension(cors))
        else:
            cors = api_properties.get("Cors")
            if cors:
                self._add_rest_cors(paths, cors)
        return body

    # Operations

    def _operation(self, route: Route, http: bool) -> dict[str, Any]:
        integration: dict[str, Any] = {
            "type": "aws_proxy",
            "httpMethod": "POST",
            "uri": invocation_uri(route.function_id),
        }
        if route.invoke_target is not None:
            integration["uri"] = lambda_invocation_uri_sub(deep_copy(route.invoke_target))
        if http:
            integration["payloadFormatVersion"] = (
                route.payload_format_version or DEFAULT_PAYLOAD_FORMAT_VERSION
            )

        operation: dict[str, Any] = {
            INTEGRATION_KEY: integration,
            "responses": {"200": {"description": "OK"}},
        }
        parameters = [self._path_parameter(name, http) for name, _ in path_parameters(route.path)]
        if parameters:
            operation["parameters"] = parameters
        return operation

    @staticmethod
    def _path_parameter(name: str, http: bool) -> dict[str, Any]:
        if http:
            return {"name": name, "in": "path", "required": True, "schema": {"type": "string"}}
        return {"name": name, "in": "path", "required": True, "type": "string"}

    @staticmethod
    def _security(route: Route, api_auth: Mapping[str, Any]) -> list[dict[str, list[Any]]]:
        auth: Mapping[str, Any] = route.auth or {}
        security: list[dict[str, list[Any]]] = []

        authorizer = auth.get("Authorizer", api_auth.get("DefaultAuthorizer"))
        if isinstance(authorizer, str) and authorizer and authorizer != NO_AUTHORIZER:
            scopes = auth.get("AuthorizationScopes", api_auth.get("DefaultAuthorizationScopes"))
            security.append({authorizer: list(scopes) if isinstance(scopes, list) else []})

        api_key_required = auth.get("ApiKeyRequired", api_auth.get("ApiKeyRequired"))
        if api_key_required is True:
            security.append({API_KEY_SCHEME: []})
        return security

    # Security schemes

    def _merge_security_schemes(
        self,
        body: dict[str, Any],
        api_auth: Mapping[str, Any],
        http: bool,
        uses_api_key: bool,
    ) -> None:
        authorizers = api_auth.get("Authorizers")
        schemes: dict[str, Any] = {}
        if isinstance(authorizers, Mapping):
            for name, config in authorizers.items():
                if isinstance(config, Mapping):
                    schemes[name] = security_scheme(config, http)
        if uses_api_key:
            schemes.setdefault(API_KEY_SCHEME, api_key_scheme())
        if not schemes:
            return

        if http:
            target = body.setdefault("components", {}).setdefault("securitySchemes", {})
        else:
            target = body.setdefault("securityDefinitions", {})
        for name, scheme in schemes.items():
            target.setdefault(name, scheme)

    # CORS

    @staticmethod
    def _add_rest_cors(paths: dict[str, Any], cors: Any) -> None:
        config: Mapping[str, Any] = {"AllowOrigin": cors} if isinstance(cors, str) else cors
        if not isinstance(config, Mapping):
            return
        for operations in paths.values():
            if not isinstance(operations, dict) or "options" in operations:
                continue
            settings = dict(config)
            if "AllowMethods" not in settings:
                settings["AllowMethods"] = _allowed_methods(operations)
            operations["options"] = rest_cors_operation(settings)


def _allowed_methods(operations: Mapping[str, Any]) -> str:
    methods = set()
    for key in operations:
        if key == ANY_METHOD_KEY:
            methods.update({"DELETE", "GET", "HEAD", "PATCH", "POST", "PUT"})
        elif not key.startswith("x-"):
            methods.add(key.upper())
    methods.add("OPTIONS")
    return "'" + ",".join(sorted(methods)) + "'"


def rest_cors_operation(settings: Mapping[str, Any]) -> dict[str, Any]:
    """``options`` mock integration answering CORS preflight requests."""
    response_parameters: dict[str, Any] = {}
    headers: dict[str, Any] = {}
    for field, header in _CORS_HEADERS:
        value = settings.get(field)
        if value is None:
            continue
        if field == "AllowCredentials":
            value = "'true'" if value is True else value
            if value is False:
                continue
        if field == "MaxAge" and isinstance(value, int):
            value = f"'{value}'"
        response_parameters[f"method.response.header.{header}"] = value
        headers[header] = {"type": "string"}

    return {
        "summary": "CORS support",
        "consumes": ["application/json"],
        "produces": ["application/json"],
        INTEGRATION_KEY: {
            "type": "mock",
            "requestTemplates": {"application/json": '{\n  "statusCode" : 200\n}\n'},
            "responses": {
                "default": {
                    "statusCode": "200",
                    "responseParameters": response_parameters,
                    "responseTemplates": {"application/json": "{}\n"},
                }
            },
        },
        "responses": {
            "200": {"description": "Default response for CORS method", "headers": headers}
        },
    }


def http_cors_extension(cors: Any) -> dict[str, Any]:
    """Top-level ``x-amazon-apigateway-cors`` block for an HTTP API."""
    if cors is True:
        return {"allowOrigins": ["*"], "allowMethods": ["*"], "allowHeaders": ["*"]}
    if isinstance(cors, str):
        return {"allowOrigins": [cors]}
    if isinstance(cors, Mapping):
        return {
            field[0].lower() + field[1:]: deep_copy(cors[field])
            for field in _HTTP_CORS_FIELDS
            if field in cors
        }
    return {}


def api_key_scheme() -> dict[str, Any]:
    return {"type": "apiKey", "name": "x-api-key", "in": "header"}


def security_scheme(config: Mapping[str, Any], http: bool) -> dict[str, Any]:
    """Map one ``Auth.Authorizers`` entry to a security scheme.

    Recognized shapes are ``UserPoolArn`` (Cognito), ``FunctionArn`` (Lambda
    token or request authorizer) and ``JwtConfiguration`` (JWT). Anything else
    becomes a plain API-key header scheme.
    """
    identity = config.get("Identity")
    identity = identity if isinstance(identity, Mapping) else {}
    header = identity.get("Header", "Authorization")

    if "UserPoolArn" in config:
        arns = config["UserPoolArn"]
        return {
            "type": "apiKey",
            "name": header,
            "in": "header",
            AUTHTYPE_KEY: "cognito_user_pools",
            AUTHORIZER_KEY: {
                "type": "cognito_user_pools",
                "providerARNs": deep_copy(arns) if isinstance(arns, list) else [deep_copy(arns)],
            },
        }

    if "FunctionArn" in config:
        payload = str(config.get("FunctionPayloadType", "TOKEN")).lower()
        authorizer: dict[str, Any] = {
            "type": "request" if http else payload,
            "authorizerUri": lambda_invocation_uri_sub(deep_copy(config["FunctionArn"])),
        }
        if http:
            authorizer["authorizerPayloadFormatVersion"] = str(
                config.get("AuthorizerPayloadFormatVersion", DEFAULT_PAYLOAD_FORMAT_VERSION)
            )
            if config.get("EnableSimpleResponses") is not None:
                authorizer["enableSimpleResponses"] = config["EnableSimpleResponses"]
        elif payload == "token":
            authorizer["identitySource"] = f"method.request.header.{header}"
        if "FunctionInvokeRole" in config:
            authorizer["authorizerCredentials"] = deep_copy(config["FunctionInvokeRole"])
        ttl = identity.get("ReauthorizeEvery")
        if ttl is not None:
            authorizer["authorizerResultTtlInSeconds"] = ttl
        return {
            "type": "apiKey",
            "name": header,
            "in": "header",
            AUTHTYPE_KEY: "custom",
            AUTHORIZER_KEY: authorizer,
        }

    if "JwtConfiguration" in config:
        return {
            "type": "oauth2",
            AUTHORIZER_KEY: {
                "type": "jwt",
                "jwtConfiguration": deep_copy(config["JwtConfiguration"]),
                "identitySource": config.get(
                    "IdentitySource", "$request.header.Authorization"
                ),
            },
        }

    return api_key_scheme()
