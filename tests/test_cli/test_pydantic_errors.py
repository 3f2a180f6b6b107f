"""Tests for pydantic error translation."""

from typing import Any, Literal

import pytest
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from sam_translate.validation.pydantic_errors import (
    format_pydantic_location,
    get_suggestion_for_error,
    property_error,
    translate_pydantic_error,
)


class SampleProperties(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    handler: str = Field(alias="Handler")
    tracing: Literal["Active", "PassThrough"] | None = Field(default=None, alias="Tracing")
    layers: list[str] = Field(default_factory=list, alias="Layers")

    @field_validator("handler")
    @classmethod
    def _check_handler(cls, value: str) -> str:
        if "." not in value:
            raise ValueError("Handler must look like module.function")
        return value


def first_error(data: dict[str, Any]) -> Any:
    with pytest.raises(ValidationError) as exc_info:
        SampleProperties.model_validate(data)
    return exc_info.value.errors()[0]


class TestTranslatePydanticError:
    """Tests for translate_pydantic_error."""

    def test_missing(self) -> None:
        """Should describe a missing property."""
        assert translate_pydantic_error(first_error({})) == "is required but was not provided"

    def test_extra(self) -> None:
        """Should describe an unsupported property."""
        error = first_error({"Handler": "a.b", "Colour": "blue"})

        assert translate_pydantic_error(error) == "is not a supported property"

    def test_literal(self) -> None:
        """Should list the allowed values."""
        error = first_error({"Handler": "a.b", "Tracing": "On"})

        assert translate_pydantic_error(error) == "must be one of: 'Active' or 'PassThrough'"

    def test_value_error(self) -> None:
        """Should use the validator's own message."""
        error = first_error({"Handler": "main"})

        assert translate_pydantic_error(error) == "Handler must look like module.function"

    def test_unknown_type_uses_msg(self) -> None:
        """Should fall back to pydantic's message."""
        error = {"type": "something_new", "msg": "odd input", "loc": (), "input": None}

        assert translate_pydantic_error(error) == "odd input"  # type: ignore[arg-type]


class TestFormatPydanticLocation:
    """Tests for format_pydantic_location."""

    @pytest.mark.parametrize(
        ("loc", "expected"),
        [
            (("a", 0, "b"), "a[0].b"),
            (("Events", "Hello", "Type"), "Events.Hello.Type"),
            (("Layers", 2), "Layers[2]"),
            ((), ""),
        ],
    )
    def test_format(self, loc: tuple[Any, ...], expected: str) -> None:
        """Should join names with dots and indices with brackets."""
        assert format_pydantic_location(loc) == expected


class TestSuggestions:
    """Tests for get_suggestion_for_error."""

    def test_missing(self) -> None:
        """Should suggest adding the property."""
        assert get_suggestion_for_error(first_error({})) == (
            "Add the required property to the resource"
        )

    def test_literal(self) -> None:
        """Should suggest the allowed values."""
        error = first_error({"Handler": "a.b", "Tracing": "On"})

        assert get_suggestion_for_error(error) == "Use one of: 'Active' or 'PassThrough'"

    def test_none(self) -> None:
        """Should return None when there is nothing to suggest."""
        assert get_suggestion_for_error(first_error({"Handler": "main"})) is None


class TestPropertyError:
    """Tests for property_error."""

    def test_path_and_message(self) -> None:
        """Should name the property path under Properties."""
        with pytest.raises(ValidationError) as exc_info:
            SampleProperties.model_validate({"Handler": "a.b", "Layers": [1]})

        error = property_error(exc_info.value)

        assert error.path == "Properties.Layers[0]"
        assert error.message == "Layers[0] must be a string"

    def test_count_of_other_issues(self) -> None:
        """Should mention how many other issues were found."""
        with pytest.raises(ValidationError) as exc_info:
            SampleProperties.model_validate({"Tracing": "On"})

        error = property_error(exc_info.value, prefix="Globals.Function")

        assert error.path.startswith("Globals.Function.")
        assert error.message.endswith("(and 1 more issue(s))")
