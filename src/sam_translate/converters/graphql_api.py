"""``AWS::Serverless::GraphQLApi`` to AppSync resources.

One GraphQL API expands into the API itself, its schema, data sources (each
with a service role scoped to the data it reaches), JavaScript pipeline
functions, resolvers, API keys, an optional cache and an optional logging
role. Data sources are declared per kind::

    DataSources:
      DynamoDb:
        Posts: {TableName: ..., TableArn: ..., Permissions: [Read]}
      Lambda:
        Backend: {FunctionArn: ...}

Resolvers are keyed by GraphQL type and field::

    Resolvers:
      Query:
        getPost: {Pipeline: [fetchPost]}
"""

from __future__ import annotations

import logging
from typing import Any

from sam_translate.converters.base import (
    ConversionContext,
    ResourceConverter,
    Resources,
    cfn_resource,
    copy_properties,
    tag_list,
)
from sam_translate.converters.iam import allow_statement, build_role, inline_policy
from sam_translate.core.intrinsics import get_att, is_intrinsic, ref, sub
from sam_translate.models.properties import GraphQLApiProperties, parse_properties
from sam_translate.models.template import APPSYNC_GRAPHQL_API, SERVERLESS_GRAPHQL_API
from sam_translate.validation.exceptions import MissingOrInvalidPropertyError

logger = logging.getLogger(__name__)

APPSYNC_SCHEMA = "AWS::AppSync::GraphQLSchema"
APPSYNC_DATA_SOURCE = "AWS::AppSync::DataSource"
APPSYNC_FUNCTION = "AWS::AppSync::FunctionConfiguration"
APPSYNC_RESOLVER = "AWS::AppSync::Resolver"
APPSYNC_API_KEY = "AWS::AppSync::ApiKey"
APPSYNC_API_CACHE = "AWS::AppSync::ApiCache"

API_KEY_AUTH = "API_KEY"
CLOUDWATCH_LOGS_POLICY = "service-role/AWSAppSyncPushToCloudWatchLogs"
DEFAULT_FIELD_LOG_LEVEL = "ALL"

DEFAULT_RUNTIME = {"Name": "APPSYNC_JS", "RuntimeVersion": "1.0.0"}
DEFAULT_RESOLVER_CODE = (
    "export function request(ctx) {\n"
    "  return {};\n"
    "}\n"
    "\n"
    "export function response(ctx) {\n"
    "  return ctx.prev.result;\n"
    "}\n"
)

DYNAMODB_DATA_SOURCES = "DynamoDb"
LAMBDA_DATA_SOURCES = "Lambda"

DYNAMODB_ACTIONS = {
    "Read": ["dynamodb:GetItem", "dynamodb:Query", "dynamodb:Scan", "dynamodb:BatchGetItem"],
    "Write": [
        "dynamodb:PutItem",
        "dynamodb:UpdateItem",
        "dynamodb:DeleteItem",
        "dynamodb:BatchWriteItem",
    ],
}

_AUTH_CONFIGS = ("UserPoolConfig", "OpenIDConnectConfig", "LambdaAuthorizerConfig")
_CACHE_FIELDS = (
    "Type",
    "TtlInSeconds",
    "ApiCachingBehavior",
    "AtRestEncryptionEnabled",
    "TransitEncryptionEnabled",
)


def _map(value: Any, path: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MissingOrInvalidPropertyError("must be a map", path=path)
    return value


def auth_provider(config: dict[str, Any]) -> dict[str, Any]:
    """``AuthenticationType`` plus its provider config from one ``Auth`` entry."""
    provider: dict[str, Any] = {"AuthenticationType": config.get("Type", API_KEY_AUTH)}
    copy_properties(config, provider, *_AUTH_CONFIGS)
    return provider


def runtime(value: Any) -> dict[str, Any]:
    """AppSync runtime, ``{Name, Version}`` in, ``{Name, RuntimeVersion}`` out."""
    if not isinstance(value, dict):
        return dict(DEFAULT_RUNTIME)
    return {
        "Name": value.get("Name", DEFAULT_RUNTIME["Name"]),
        "RuntimeVersion": value.get("Version", DEFAULT_RUNTIME["RuntimeVersion"]),
    }


def schema_location(value: Any) -> Any:
    """``DefinitionS3Location`` from an ``s3://`` URI or a ``{Bucket, Key}`` map."""
    if isinstance(value, dict) and "Bucket" in value and "Key" in value:
        bucket, key = value["Bucket"], value["Key"]
        if isinstance(bucket, str) and isinstance(key, str):
            return f"s3://{bucket}/{key}"
        return sub("s3://${Bucket}/${Key}", {"Bucket": bucket, "Key": key})
    if isinstance(value, str) or is_intrinsic(value):
        return value
    raise MissingOrInvalidPropertyError(
        "SchemaUri must be an S3 URI or a map with Bucket and Key", path="Properties.SchemaUri"
    )


class GraphQLApiConverter(ResourceConverter):
    """Builds the AppSync API and everything declared under it."""

    resource_type = SERVERLESS_GRAPHQL_API

    def convert(
        self, logical_id: str, resource: dict[str, Any], context: ConversionContext
    ) -> Resources:
        props = parse_properties(GraphQLApiProperties, resource.get("Properties"), logical_id)
        ids = context.id_generator
        api_id = get_att(logical_id, "ApiId")
        schema_id = ids.generate(logical_id, "Schema")

        auth = _map(props.auth, "Properties.Auth")
        additional = auth.get("Additional") or []
        if not isinstance(additional, list):
            raise MissingOrInvalidPropertyError(
                "Auth.Additional must be a list", path="Properties.Auth.Additional"
            )

        api: dict[str, Any] = {"Name": props.name if props.name is not None else logical_id}
        api.update(auth_provider(auth))
        if additional:
            api["AdditionalAuthenticationProviders"] = [auth_provider(a) for a in additional]
        if props.xray_enabled is not None:
            api["XrayEnabled"] = props.xray_enabled
        if props.tags:
            api["Tags"] = tag_list(props.tags)

        result: Resources = {logical_id: cfn_resource(APPSYNC_GRAPHQL_API, api)}
        result[schema_id] = cfn_resource(APPSYNC_SCHEMA, self._schema(props, api_id))

        if props.logging not in (None, False):
            api["LogConfig"] = self._log_config(logical_id, props.logging, result, context)

        data_sources = self._data_sources(logical_id, props, api_id, schema_id, result, context)
        functions = self._functions(logical_id, props, api_id, data_sources, result, context)
        self._resolvers(
            logical_id, props, api_id, schema_id, data_sources, functions, result, context
        )

        auth_types = [api["AuthenticationType"]] + [
            p["AuthenticationType"] for p in api.get("AdditionalAuthenticationProviders", [])
        ]
        if props.api_keys is not None:
            for name, config in _map(props.api_keys, "Properties.ApiKeys").items():
                key: dict[str, Any] = {"ApiId": api_id}
                config = _map(config, f"Properties.ApiKeys.{name}")
                copy_properties(config, key, "ApiKeyId", "Description")
                if config.get("ExpiresOn") is not None:
                    key["Expires"] = config["ExpiresOn"]
                key_id = ids.generate(logical_id, name, "ApiKey")
                result[key_id] = cfn_resource(APPSYNC_API_KEY, key)
        elif API_KEY_AUTH in auth_types:
            result[ids.generate(logical_id, "ApiKey")] = cfn_resource(
                APPSYNC_API_KEY, {"ApiId": api_id}
            )

        if props.cache is not None:
            cache: dict[str, Any] = {"ApiId": api_id}
            copy_properties(_map(props.cache, "Properties.Cache"), cache, *_CACHE_FIELDS)
            result[ids.generate(logical_id, "Cache")] = cfn_resource(APPSYNC_API_CACHE, cache)

        logger.debug("GraphQL API %s produced %d resources", logical_id, len(result))
        return result

    def _schema(self, props: GraphQLApiProperties, api_id: dict[str, Any]) -> dict[str, Any]:
        schema: dict[str, Any] = {"ApiId": api_id}
        if props.schema_inline is not None:
            schema["Definition"] = props.schema_inline
        elif props.schema_uri is not None:
            schema["DefinitionS3Location"] = schema_location(props.schema_uri)
        else:
            raise MissingOrInvalidPropertyError(
                "one of SchemaInline or SchemaUri is required", path="Properties.SchemaInline"
            )
        return schema

    def _log_config(
        self, logical_id: str, logging_config: Any, result: Resources, context: ConversionContext
    ) -> dict[str, Any]:
        config = logging_config if isinstance(logging_config, dict) else {}
        log_config: dict[str, Any] = {
            "FieldLogLevel": config.get("FieldLogLevel", DEFAULT_FIELD_LOG_LEVEL)
        }
        copy_properties(config, log_config, "ExcludeVerboseContent")
        if config.get("ServiceRole") is not None:
            log_config["CloudWatchLogsRoleArn"] = config["ServiceRole"]
        else:
            role_id = context.id_generator.generate(logical_id, "CloudWatchRole")
            policy_arn = context.arn_builder.iam_managed_policy(CLOUDWATCH_LOGS_POLICY)
            result[role_id] = build_role("appsync", managed_policy_arns=[policy_arn])
            log_config["CloudWatchLogsRoleArn"] = get_att(role_id, "Arn")
        return log_config

    def _data_sources(
        self,
        logical_id: str,
        props: GraphQLApiProperties,
        api_id: dict[str, Any],
        schema_id: str,
        result: Resources,
        context: ConversionContext,
    ) -> dict[str, str]:
        """Add data sources and their roles; return data source name to logical ID."""
        ids = context.id_generator
        declared: dict[str, str] = {}
        for kind, entries in props.data_sources.items():
            if kind not in (DYNAMODB_DATA_SOURCES, LAMBDA_DATA_SOURCES):
                raise MissingOrInvalidPropertyError(
                    f"unsupported data source kind '{kind}' "
                    f"(supported: {DYNAMODB_DATA_SOURCES}, {LAMBDA_DATA_SOURCES})",
                    path=f"Properties.DataSources.{kind}",
                )
            for name, config in _map(entries, f"Properties.DataSources.{kind}").items():
                path = f"Properties.DataSources.{kind}.{name}"
                config = _map(config, path)
                source_id = ids.generate(logical_id, name, "DataSource")
                role_id = ids.generate(logical_id, name, "DataSourceRole")

                source: dict[str, Any] = {"ApiId": api_id, "Name": config.get("Name", name)}
                copy_properties(config, source, "Description")
                if kind == DYNAMODB_DATA_SOURCES:
                    source["Type"] = "AMAZON_DYNAMODB"
                    source["DynamoDBConfig"], statement = self._dynamodb(config, path)
                else:
                    if config.get("FunctionArn") is None:
                        raise MissingOrInvalidPropertyError("FunctionArn is required", path=path)
                    source["Type"] = "AWS_LAMBDA"
                    source["LambdaConfig"] = {"LambdaFunctionArn": config["FunctionArn"]}
                    statement = allow_statement(["lambda:InvokeFunction"], config["FunctionArn"])

                if config.get("ServiceRoleArn") is not None:
                    source["ServiceRoleArn"] = config["ServiceRoleArn"]
                else:
                    source["ServiceRoleArn"] = get_att(role_id, "Arn")
                result[source_id] = cfn_resource(APPSYNC_DATA_SOURCE, source, DependsOn=schema_id)
                if config.get("ServiceRoleArn") is None:
                    result[role_id] = build_role(
                        "appsync", policies=[inline_policy(f"{role_id}Policy", [statement])]
                    )
                declared[name] = source_id
        return declared

    def _dynamodb(
        self, config: dict[str, Any], path: str
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        if config.get("TableName") is None:
            raise MissingOrInvalidPropertyError("TableName is required", path=path)
        dynamodb: dict[str, Any] = {
            "TableName": config["TableName"],
            "AwsRegion": config.get("Region", ref("AWS::Region")),
        }
        copy_properties(config, dynamodb, "UseCallerCredentials", "Versioned", "DeltaSyncConfig")

        table_arn = config.get("TableArn")
        if table_arn is None:
            table_arn = sub(
                "arn:${AWS::Partition}:dynamodb:${AWS::Region}:${AWS::AccountId}:table/${Table}",
                {"Table": config["TableName"]},
            )
        permissions = config.get("Permissions") or list(DYNAMODB_ACTIONS)
        actions: list[str] = []
        for permission in permissions:
            if permission not in DYNAMODB_ACTIONS:
                raise MissingOrInvalidPropertyError(
                    f"unsupported permission '{permission}' (supported: Read, Write)",
                    path=f"{path}.Permissions",
                )
            actions.extend(a for a in DYNAMODB_ACTIONS[permission] if a not in actions)
        resources = [table_arn, sub("${Arn}/index/*", {"Arn": table_arn})]
        return dynamodb, allow_statement(actions, resources)

    def _functions(
        self,
        logical_id: str,
        props: GraphQLApiProperties,
        api_id: dict[str, Any],
        data_sources: dict[str, str],
        result: Resources,
        context: ConversionContext,
    ) -> dict[str, str]:
        """Add pipeline functions; return function name to logical ID."""
        declared: dict[str, str] = {}
        for name, config in props.functions.items():
            path = f"Properties.Functions.{name}"
            config = _map(config, path)
            function: dict[str, Any] = {
                "ApiId": api_id,
                "Name": config.get("Name", name),
                "DataSourceName": self._data_source_name(config, data_sources, path),
                "Runtime": runtime(config.get("Runtime")),
            }
            copy_properties(config, function, "Description", "MaxBatchSize")
            if config.get("Sync") is not None:
                function["SyncConfig"] = config["Sync"]
            self._code(config, function, path, required=True)

            function_id = context.id_generator.generate(logical_id, name, "Function")
            source = config["DataSource"]
            depends_on = data_sources.get(source) if isinstance(source, str) else None
            result[function_id] = cfn_resource(APPSYNC_FUNCTION, function, DependsOn=depends_on)
            declared[name] = function_id
        return declared

    def _resolvers(
        self,
        logical_id: str,
        props: GraphQLApiProperties,
        api_id: dict[str, Any],
        schema_id: str,
        data_sources: dict[str, str],
        functions: dict[str, str],
        result: Resources,
        context: ConversionContext,
    ) -> None:
        for type_name, fields in props.resolvers.items():
            for field_name, config in _map(fields, f"Properties.Resolvers.{type_name}").items():
                path = f"Properties.Resolvers.{type_name}.{field_name}"
                config = _map(config, path)
                resolver: dict[str, Any] = {
                    "ApiId": api_id,
                    "TypeName": type_name,
                    "FieldName": config.get("FieldName", field_name),
                    "Runtime": runtime(config.get("Runtime")),
                }
                depends_on = [schema_id]
                pipeline = config.get("Pipeline")
                if pipeline is not None and not isinstance(pipeline, list):
                    raise MissingOrInvalidPropertyError(
                        "Pipeline must be a list", path=f"{path}.Pipeline"
                    )
                if pipeline is not None:
                    resolver["Kind"] = "PIPELINE"
                    resolver["PipelineConfig"] = {
                        "Functions": [self._function_id(f, functions, path) for f in pipeline]
                    }
                    if not self._code(config, resolver, path, required=False):
                        resolver["Code"] = DEFAULT_RESOLVER_CODE
                else:
                    resolver["Kind"] = "UNIT"
                    resolver["DataSourceName"] = self._data_source_name(config, data_sources, path)
                    source = config["DataSource"]
                    if isinstance(source, str) and source in data_sources:
                        depends_on.append(data_sources[source])
                    self._code(config, resolver, path, required=True)
                copy_properties(config, resolver, "MaxBatchSize")
                if config.get("Caching") is not None:
                    resolver["CachingConfig"] = config["Caching"]
                if config.get("Sync") is not None:
                    resolver["SyncConfig"] = config["Sync"]

                resolver_id = context.id_generator.generate(
                    logical_id, type_name, field_name, "Resolver"
                )
                result[resolver_id] = cfn_resource(APPSYNC_RESOLVER, resolver, DependsOn=depends_on)

    def _data_source_name(
        self, config: dict[str, Any], data_sources: dict[str, str], path: str
    ) -> Any:
        name = config.get("DataSource")
        if name is None:
            raise MissingOrInvalidPropertyError("DataSource is required", path=path)
        if isinstance(name, str) and name in data_sources:
            return get_att(data_sources[name], "Name")
        if name == "NONE" or is_intrinsic(name):
            return name
        raise MissingOrInvalidPropertyError(
            f"unknown data source '{name}'", path=f"{path}.DataSource"
        )

    def _function_id(self, name: Any, functions: dict[str, str], path: str) -> dict[str, Any]:
        if not isinstance(name, str) or name not in functions:
            raise MissingOrInvalidPropertyError(
                f"unknown function '{name}'", path=f"{path}.Pipeline"
            )
        return get_att(functions[name], "FunctionId")

    def _code(
        self, config: dict[str, Any], target: dict[str, Any], path: str, required: bool
    ) -> bool:
        if config.get("InlineCode") is not None:
            target["Code"] = config["InlineCode"]
        elif config.get("CodeUri") is not None:
            target["CodeS3Location"] = config["CodeUri"]
        elif required:
            raise MissingOrInvalidPropertyError(
                "one of InlineCode or CodeUri is required", path=path
            )
        else:
            return False
        return True
