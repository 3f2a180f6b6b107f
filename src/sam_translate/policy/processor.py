"""Policy template catalog and expander."""

from __future__ import annotations

import copy
import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field

from sam_translate.core.intrinsics import intrinsic_name
from sam_translate.validation.exceptions import (
    MissingMacroParameterError,
    MissingOrInvalidPropertyError,
    UnknownMacroError,
)

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).with_name("policy_templates.json")


class TemplateParameter(BaseModel):
    """A declared policy template parameter."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    description: Annotated[str, Field(alias="Description")] = ""


class PolicyTemplate(BaseModel):
    """A named, parameterized policy document fragment."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    description: Annotated[str, Field(alias="Description")] = ""
    parameters: Annotated[
        dict[str, TemplateParameter],
        Field(alias="Parameters", default_factory=dict),
    ]
    definition: Annotated[dict[str, Any], Field(alias="Definition")]


class PolicyTemplateCatalog(BaseModel):
    """The whole catalog file."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    version: Annotated[str, Field(alias="Version")]
    templates: Annotated[dict[str, PolicyTemplate], Field(alias="Templates")]


class PolicyTemplateProcessor:
    """Expands policy templates against a read-only catalog.

    One processor owns one catalog. The catalog is never mutated, so a
    single instance may be shared by any number of translations.

    Example:
    -------
        >>> processor = PolicyTemplateProcessor.default()
        >>> doc = processor.expand("S3ReadPolicy", {"BucketName": "my-bucket"})
        >>> len(doc["Statement"]) > 0
        True

    """

    def __init__(self, catalog: PolicyTemplateCatalog) -> None:
        self._catalog = catalog

    @classmethod
    def from_json(cls, data: str | bytes) -> PolicyTemplateProcessor:
        """Build a processor from catalog JSON text.

        Raises
        ------
            pydantic.ValidationError: If the catalog does not have the expected shape.

        """
        return cls(PolicyTemplateCatalog.model_validate_json(data))

    @classmethod
    def from_file(cls, path: Path) -> PolicyTemplateProcessor:
        with path.open("r", encoding="utf-8") as f:
            return cls(PolicyTemplateCatalog.model_validate(json.load(f)))

    @classmethod
    def default(cls) -> PolicyTemplateProcessor:
        """Processor for the catalog bundled with the package."""
        return _default_processor()

    def version(self) -> str:
        return self._catalog.version

    def template_names(self) -> list[str]:
        return sorted(self._catalog.templates)

    def has_template(self, name: str) -> bool:
        return name in self._catalog.templates

    def get_template(self, name: str) -> PolicyTemplate | None:
        return self._catalog.templates.get(name)

    def expand(self, name: str, params: dict[str, Any]) -> dict[str, Any]:
        """Expand a template with the given parameter values.

        Args:
        ----
            name: Catalog name, e.g. ``DynamoDBCrudPolicy``.
            params: Value for every declared parameter. Values may themselves
                be intrinsics such as ``{"Ref": "MyTable"}``.

        Returns:
        -------
            A fresh policy document; the catalog entry is left untouched.

        Raises:
        ------
            UnknownMacroError: If ``name`` is not in the catalog.
            MissingMacroParameterError: If a declared parameter is absent.

        """
        template = self._catalog.templates.get(name)
        if template is None:
            raise UnknownMacroError(name)

        for parameter in template.parameters:
            if parameter not in params:
                raise MissingMacroParameterError(name, parameter)

        return _substitute(template.definition, params)

    def expand_statements(self, name: str, params: dict[str, Any]) -> list[Any]:
        """Expand a template and return only its statement list."""
        statements = self.expand(name, params).get("Statement")
        if not isinstance(statements, list):
            raise MissingOrInvalidPropertyError(
                f"policy template '{name}' has no Statement list", path="Definition.Statement"
            )
        return statements

    def expand_policies(self, policies: Any) -> Any:
        """Expand every template reference in a ``Policies`` property value.

        A string (managed policy ARN or name) is returned unchanged. A single
        map becomes a one-element list. In a list, strings are kept, template
        maps are expanded, and every other shape passes through untouched.
        """
        if isinstance(policies, dict):
            return [self._expand_entry(policies)]
        if isinstance(policies, list):
            return [self._expand_entry(p) if isinstance(p, dict) else p for p in policies]
        return policies

    def _expand_entry(self, policy: dict[str, Any]) -> Any:
        if len(policy) != 1:
            return policy
        ((name, params),) = policy.items()
        if not self.has_template(name):
            return policy
        if not isinstance(params, dict):
            raise MissingOrInvalidPropertyError(
                f"parameters of policy template '{name}' must be a map",
                path=f"Policies.{name}",
            )
        logger.debug("Expanding policy template %s", name)
        return self.expand(name, params)


def _substitute(node: Any, params: dict[str, Any]) -> Any:
    """Deep-copy ``node`` replacing parameter references with their values."""
    name = intrinsic_name(node)
    if name == "Ref":
        target = node["Ref"]
        if isinstance(target, str) and target in params:
            return copy.deepcopy(params[target])
        return dict(node)
    if name == "Fn::Sub":
        return {"Fn::Sub": _substitute_sub(node["Fn::Sub"], params)}
    if isinstance(node, dict):
        return {key: _substitute(value, params) for key, value in node.items()}
    if isinstance(node, list):
        return [_substitute(item, params) for item in node]
    return node


def _substitute_sub(value: Any, params: dict[str, Any]) -> Any:
    # Only the variable map of the list form is substituted.
    if (
        isinstance(value, list)
        and len(value) == 2
        and isinstance(value[0], str)
        and isinstance(value[1], dict)
    ):
        return [value[0], {k: _substitute(v, params) for k, v in value[1].items()}]
    return copy.deepcopy(value)


@lru_cache(maxsize=1)
def _default_processor() -> PolicyTemplateProcessor:
    return PolicyTemplateProcessor.from_file(DEFAULT_CATALOG_PATH)
