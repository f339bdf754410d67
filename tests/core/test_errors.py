"""Tests for speclens.core.errors module."""

import pytest

from speclens.core.errors import (
    BusinessFunctionNotFoundError,
    ErrorCategory,
    ErrorContext,
    EventRulesNotFoundError,
    NotFoundError,
    SpecLensError,
    SpecParseError,
    TemplateNotFoundError,
    ValidationError,
)


class TestErrorContext:
    """Test ErrorContext dataclass."""

    def test_create_empty_context(self):
        """Create context with no fields set."""
        ctx = ErrorContext()
        assert ctx.spec_key is None
        assert ctx.template_name is None
        assert ctx.metadata == {}
        assert ctx.to_dict() == {}

    def test_to_dict_skips_none_and_merges_metadata(self):
        """Only set fields appear; metadata is flattened in."""
        ctx = ErrorContext(spec_key="EV1", table_name="F0101", metadata={"attempts": 4})
        assert ctx.to_dict() == {"spec_key": "EV1", "table_name": "F0101", "attempts": 4}


class TestSpecLensError:
    """Test the base error."""

    def test_default_category_is_internal(self):
        error = SpecLensError("boom")
        assert error.category == ErrorCategory.INTERNAL
        assert str(error) == "boom"

    def test_explicit_category_overrides_default(self):
        error = SpecLensError("boom", category=ErrorCategory.SOURCE)
        assert error.category == ErrorCategory.SOURCE

    def test_with_context_sets_known_fields_and_metadata(self):
        """Known keys land on the context, unknown keys in metadata."""
        error = SpecLensError("boom").with_context(spec_key="EV1", sequence=3)
        assert error.context.spec_key == "EV1"
        assert error.context.metadata == {"sequence": 3}

    def test_cause_is_chained(self):
        cause = ValueError("inner")
        error = SpecLensError("outer", cause=cause)
        assert error.__cause__ is cause
        assert error.to_dict()["cause"] == "inner"

    def test_to_dict(self):
        error = SpecLensError("boom").with_context(template_name="D0001")
        assert error.to_dict() == {
            "error_type": "SpecLensError",
            "message": "boom",
            "category": "INTERNAL",
            "context": {"template_name": "D0001"},
        }


class TestSubclasses:
    """Test category routing of concrete errors."""

    def test_validation_error(self):
        error = ValidationError("Template name is required.", field="template_name", value="  ")
        assert error.category == ErrorCategory.VALIDATION
        data = error.to_dict()
        assert data["field"] == "template_name"
        assert data["value"] == "'  '"

    def test_parse_error(self):
        assert SpecParseError("bad xml").category == ErrorCategory.PARSE

    @pytest.mark.parametrize(
        "error",
        [
            TemplateNotFoundError("D0001"),
            EventRulesNotFoundError("EV1"),
            BusinessFunctionNotFoundError("D0001", "B0001*"),
        ],
    )
    def test_not_found_errors_share_source_category(self, error):
        assert isinstance(error, NotFoundError)
        assert error.category == ErrorCategory.SOURCE

    def test_template_not_found_context(self):
        error = TemplateNotFoundError("D0001")
        assert error.template_name == "D0001"
        assert error.context.template_name == "D0001"
        assert "D0001" in str(error)

    def test_event_rules_not_found_context(self):
        error = EventRulesNotFoundError("EV1")
        assert error.context.spec_key == "EV1"

    def test_business_function_not_found_keeps_pattern(self):
        error = BusinessFunctionNotFoundError("D1234", "B1234*")
        assert error.search_pattern == "B1234*"
        assert error.context.metadata["search_pattern"] == "B1234*"
        assert "B1234*" in str(error)
