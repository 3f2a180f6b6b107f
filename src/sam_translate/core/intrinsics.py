"""CloudFormation intrinsic function helpers.

Intrinsics live in the template tree as single-key maps (``{"Ref": "X"}``).
The small frozen dataclasses here build those maps in one place so that
converters never spell the long form by hand, and the predicates recognize
them wherever a tree is walked.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

INTRINSIC_KEYS = frozenset(
    {
        "Ref",
        "Condition",
        "Fn::Base64",
        "Fn::Cidr",
        "Fn::And",
        "Fn::Equals",
        "Fn::If",
        "Fn::Not",
        "Fn::Or",
        "Fn::FindInMap",
        "Fn::GetAtt",
        "Fn::GetAZs",
        "Fn::ImportValue",
        "Fn::Join",
        "Fn::Select",
        "Fn::Split",
        "Fn::Sub",
        "Fn::Transform",
    }
)


@dataclass(frozen=True)
class Ref:
    """``{"Ref": target}``."""

    target: str

    def to_json(self) -> dict[str, Any]:
        return {"Ref": self.target}


@dataclass(frozen=True)
class GetAtt:
    """``{"Fn::GetAtt": [resource, attribute]}``."""

    resource: str
    attribute: str

    def to_json(self) -> dict[str, Any]:
        return {"Fn::GetAtt": [self.resource, self.attribute]}


@dataclass(frozen=True)
class Sub:
    """``{"Fn::Sub": template}`` or ``{"Fn::Sub": [template, variables]}``."""

    template: str
    variables: dict[str, Any] | None = None

    def to_json(self) -> dict[str, Any]:
        if self.variables:
            return {"Fn::Sub": [self.template, dict(self.variables)]}
        return {"Fn::Sub": self.template}


def ref(target: str) -> dict[str, Any]:
    """Build a ``Ref`` map."""
    return Ref(target).to_json()


def get_att(resource: str, attribute: str) -> dict[str, Any]:
    """Build a ``Fn::GetAtt`` map."""
    return GetAtt(resource, attribute).to_json()


def sub(template: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
    """Build a ``Fn::Sub`` map."""
    return Sub(template, variables).to_json()


def intrinsic_name(value: Any) -> str | None:
    """Return the intrinsic key if ``value`` is a single-key intrinsic map."""
    if isinstance(value, dict) and len(value) == 1:
        (key,) = value
        if key in INTRINSIC_KEYS:
            return key
    return None


def is_intrinsic(value: Any) -> bool:
    """Check whether ``value`` is an intrinsic function map."""
    return intrinsic_name(value) is not None


def is_ref(value: Any) -> bool:
    return intrinsic_name(value) == "Ref"


def referenced_logical_id(value: Any) -> str | None:
    """Extract the logical ID from a plain name, a ``Ref`` or a ``Fn::GetAtt``.

    Args:
    ----
        value: A string, ``{"Ref": id}`` or ``{"Fn::GetAtt": [id, attr]}``.

    Returns:
    -------
        The referenced logical ID, or None if ``value`` names no resource.

    """
    if isinstance(value, str):
        return value or None
    name = intrinsic_name(value)
    if name == "Ref" and isinstance(value["Ref"], str):
        return value["Ref"]
    if name == "Fn::GetAtt":
        target = value["Fn::GetAtt"]
        if isinstance(target, list) and target and isinstance(target[0], str):
            return target[0]
        if isinstance(target, str):
            return target.split(".", 1)[0]
    return None


def rewrite_references(tree: Any, old_id: str, new_id: str) -> Any:
    """Return a copy of ``tree`` with every Ref/GetAtt to ``old_id`` pointing at ``new_id``."""
    if isinstance(tree, list):
        return [rewrite_references(item, old_id, new_id) for item in tree]
    if not isinstance(tree, dict):
        return tree

    name = intrinsic_name(tree)
    if name == "Ref" and tree["Ref"] == old_id:
        return {"Ref": new_id}
    if name == "Fn::GetAtt":
        target = tree["Fn::GetAtt"]
        if isinstance(target, list) and target and target[0] == old_id:
            return {"Fn::GetAtt": [new_id, *target[1:]]}
        if isinstance(target, str) and target.split(".", 1)[0] == old_id:
            return {"Fn::GetAtt": new_id + target[len(old_id) :]}
    return {key: rewrite_references(value, old_id, new_id) for key, value in tree.items()}


def deep_copy(tree: Any) -> Any:
    """Copy a template tree so that no list or map is shared with the source."""
    if isinstance(tree, dict):
        return {key: deep_copy(value) for key, value in tree.items()}
    if isinstance(tree, list):
        return [deep_copy(item) for item in tree]
    return tree
