"""YAML/JSON template loading and dumping.

The YAML loader understands CloudFormation short-form tags (``!Ref``,
``!GetAtt``, ``!Sub`` ...) and turns each one into its long-form map, so the
rest of the package only ever sees ``{"Ref": ...}``-style intrinsics.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from sam_translate.models.template import SamTemplate

SUPPORTED_SUFFIXES = {".yaml", ".yml", ".json", ".template"}

_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class LoaderError(Exception):
    """Error during template file loading."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        """Initialize LoaderError.

        Args:
        ----
            message: Error message describing what went wrong.
            path: Optional path to the file that caused the error.

        """
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class TemplateLoader(yaml.SafeLoader):
    """SafeLoader with CloudFormation tags and without timestamp parsing."""


# AWSTemplateFormatVersion: 2010-09-09 must stay a string.
TemplateLoader.yaml_implicit_resolvers = {
    first: [(tag, pattern) for tag, pattern in resolvers if tag != _TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _construct_intrinsic(loader: TemplateLoader, tag_suffix: str, node: yaml.Node) -> Any:
    if isinstance(node, yaml.ScalarNode):
        value: Any = loader.construct_scalar(node)
    elif isinstance(node, yaml.SequenceNode):
        value = loader.construct_sequence(node, deep=True)
    elif isinstance(node, yaml.MappingNode):
        value = loader.construct_mapping(node, deep=True)
    else:
        raise yaml.constructor.ConstructorError(
            None, None, f"unexpected node for tag !{tag_suffix}", node.start_mark
        )

    if tag_suffix in ("Ref", "Condition"):
        return {tag_suffix: value}
    if tag_suffix == "GetAtt" and isinstance(value, str):
        resource, _, attribute = value.partition(".")
        value = [resource, attribute]
    if tag_suffix == "GetAZs" and value is None:
        value = ""
    return {f"Fn::{tag_suffix}": value}


TemplateLoader.add_multi_constructor("!", _construct_intrinsic)


def parse_template_text(text: str) -> dict[str, Any]:
    """Parse template text (YAML or JSON) into a dictionary.

    Raises
    ------
        LoaderError: If the text is not valid YAML or has no mapping at its root.

    """
    try:
        data = yaml.load(text, Loader=TemplateLoader)  # noqa: S506 - SafeLoader subclass
    except yaml.YAMLError as e:
        raise LoaderError(f"YAML parsing error: {e}") from e
    return _check_root(data, None)


def load_template(path: Path | str) -> dict[str, Any]:
    """Load a template file and return the raw dictionary.

    Args:
    ----
        path: Path to the YAML or JSON template.

    Returns:
    -------
        Parsed dictionary from the file, with intrinsics in long form.

    Raises:
    ------
        LoaderError: If the file cannot be loaded or parsed.

    """
    path = Path(path)
    if not path.exists():
        raise LoaderError(f"File not found: {path}", path)

    if not path.is_file():
        raise LoaderError(f"Not a file: {path}", path)

    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise LoaderError(
            f"Unsupported file extension: {suffix}. Use .yaml, .yml, .json or .template",
            path,
        )

    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.load(f, Loader=TemplateLoader)  # noqa: S506 - SafeLoader subclass
    except yaml.YAMLError as e:
        raise LoaderError(f"YAML parsing error: {e}", path) from e
    except OSError as e:
        raise LoaderError(f"File read error: {e}", path) from e

    return _check_root(data, path)


def _check_root(data: Any, path: Path | None) -> dict[str, Any]:
    if data is None:
        raise LoaderError("File is empty", path)

    if not isinstance(data, dict):
        raise LoaderError(
            f"Expected dictionary at root level, got {type(data).__name__}",
            path,
        )
    return data


def dump_template(template: dict[str, Any], output_format: str = "json") -> str:
    """Serialize a translated template as pretty JSON or block-style YAML."""
    if output_format == "yaml":
        return yaml.safe_dump(template, sort_keys=False, default_flow_style=False)
    return json.dumps(template, indent=2) + "\n"


def output_format_for(path: Path | None) -> str:
    if path is not None and path.suffix.lower() in {".yaml", ".yml"}:
        return "yaml"
    return "json"


def load_sam_template(path: Path | str) -> SamTemplate:
    """Load a template file and check its overall shape.

    Raises
    ------
        LoaderError: If the file cannot be loaded.
        ValidationError: If the document does not have the shape of a SAM template.

    """
    return SamTemplate.model_validate(load_template(path))


def validate_sam_template(path: Path | str) -> list[str]:
    """Non-throwing version of :func:`load_sam_template`.

    Returns
    -------
        List of ``"location: message"`` strings (empty if the shape is valid).

    """
    try:
        data = load_template(path)
    except LoaderError as e:
        return [str(e)]

    errors: list[str] = []
    try:
        SamTemplate.model_validate(data)
    except ValidationError as e:
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            errors.append(f"{loc}: {error['msg']}")
    return errors
