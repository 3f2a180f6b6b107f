"""Tests for validation error types."""

import pytest

from sam_translate.validation.errors import (
    ErrorCodes,
    ValidationIssue,
    ValidationLocation,
    ValidationResult,
    ValidationSeverity,
)


class TestValidationLocation:
    """Tests for ValidationLocation."""

    def test_str_with_all_fields(self) -> None:
        """Should join section, logical ID and property path."""
        loc = ValidationLocation(logical_id="Fn", property_path="Properties.Handler")
        assert str(loc) == "Resources.Fn.Properties.Handler"

    def test_str_section_only(self) -> None:
        """Should format a section-level location."""
        loc = ValidationLocation(section="Globals")
        assert str(loc) == "Globals"

    def test_frozen(self) -> None:
        """Should be immutable."""
        loc = ValidationLocation(logical_id="Fn")
        with pytest.raises(AttributeError):
            loc.logical_id = "Other"  # type: ignore[misc]


class TestValidationIssue:
    """Tests for ValidationIssue."""

    def test_str_with_location_and_suggestion(self) -> None:
        """Should include code, severity, location and hint."""
        issue = ValidationIssue(
            code=ErrorCodes.E200_MISSING_OR_INVALID_PROPERTY,
            message="Handler is required",
            severity=ValidationSeverity.ERROR,
            location=ValidationLocation(logical_id="Fn"),
            suggestion="Add Handler",
        )

        assert str(issue) == "[E200] ERROR Handler is required at Resources.Fn (hint: Add Handler)"

    def test_str_minimal(self) -> None:
        """Should format an issue without location."""
        issue = ValidationIssue(code="W001", message="unused", severity=ValidationSeverity.WARNING)

        assert str(issue) == "[W001] WARNING unused"


class TestValidationResult:
    """Tests for ValidationResult."""

    def test_empty_is_valid(self) -> None:
        """Should be valid with no issues."""
        result = ValidationResult()

        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []

    def test_warnings_keep_valid(self) -> None:
        """Should stay valid when only warnings are present."""
        result = ValidationResult()
        result.add_warning(code="W001", message="unused", section="Globals")

        assert result.is_valid
        assert len(result.warnings) == 1
        assert result.warnings[0].location == ValidationLocation(section="Globals")

    def test_errors_invalidate(self) -> None:
        """Should be invalid with an error."""
        result = ValidationResult()
        result.add_error(code="E200", message="bad", logical_id="Fn", detail=1)

        assert not result.is_valid
        assert result.errors[0].context == {"detail": 1}

    def test_logical_ids_first_seen_order(self) -> None:
        """Should list each failing logical ID once."""
        result = ValidationResult()
        result.add_error(code="E200", message="a", logical_id="B")
        result.add_error(code="E200", message="b", logical_id="A")
        result.add_error(code="E201", message="c", logical_id="B")
        result.add_warning(code="W001", message="d", logical_id="C")

        assert result.logical_ids() == ["B", "A"]

    def test_merge(self) -> None:
        """Should append the other result's issues."""
        first = ValidationResult()
        first.add_error(code="E001", message="a")
        second = ValidationResult()
        second.add_warning(code="W002", message="b")

        first.merge(second)

        assert [issue.code for issue in first.issues] == ["E001", "W002"]


class TestErrorCodes:
    """Tests for ErrorCodes."""

    def test_codes_unique(self) -> None:
        """Should not reuse a code."""
        codes = [value for name, value in vars(ErrorCodes).items() if name[:1] in "EW"]

        assert len(codes) == len(set(codes))

    def test_code_prefix_matches_name(self) -> None:
        """Should start each name with its code."""
        for name, value in vars(ErrorCodes).items():
            if name[:1] in "EW" and name[1:4].isdigit():
                assert name.startswith(value + "_")
