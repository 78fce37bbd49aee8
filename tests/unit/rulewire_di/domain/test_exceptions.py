"""Unit tests for domain exceptions."""

import pytest

from rulewire_di.domain.exceptions import (
    DIException,
    InstantiationError,
    MalformedRuleError,
    RuleFileError,
    TypeNotFoundError,
)


class TestDIException:
    """Test cases for the base DIException class."""

    def test_di_exception_is_exception(self):
        """Test that DIException inherits from Exception."""
        assert issubclass(DIException, Exception)

    def test_di_exception_can_be_raised(self):
        """Test that DIException can be raised with a message."""
        with pytest.raises(DIException, match="Test error"):
            raise DIException("Test error")

    @pytest.mark.parametrize(
        "exception_class",
        [TypeNotFoundError, InstantiationError, MalformedRuleError, RuleFileError],
    )
    def test_all_errors_derive_from_di_exception(self, exception_class):
        """Test that every container error can be caught as DIException."""
        assert issubclass(exception_class, DIException)


class TestTypeNotFoundError:
    """Test cases for TypeNotFoundError."""

    def test_message_names_string_identifier(self):
        """Test the message for a string identifier."""
        error = TypeNotFoundError("app.services.Missing")

        assert str(error) == "Cannot find type for identifier: app.services.Missing"
        assert error.identifier == "app.services.Missing"
        assert error.reason is None

    def test_message_uses_class_qualname(self):
        """Test that classes are shown by their qualified name."""

        class Service:
            pass

        error = TypeNotFoundError(Service)

        assert "Service" in str(error)
        assert error.identifier is Service

    def test_message_includes_reason(self):
        """Test that the reason is appended to the message."""
        error = TypeNotFoundError("logging.DEBUG", "identifier does not name a class")

        assert str(error) == (
            "Cannot find type for identifier: logging.DEBUG. Reason: identifier does not name a class"
        )
        assert error.reason == "identifier does not name a class"


class TestInstantiationError:
    """Test cases for InstantiationError."""

    def test_message_without_reason(self):
        """Test the message when no reason is given."""
        error = InstantiationError("app.Repository")

        assert str(error) == "Cannot instantiate: app.Repository"

    def test_message_with_reason(self):
        """Test the message when a reason is given."""
        error = InstantiationError("app.Repository", "Repository is abstract")

        assert str(error) == "Cannot instantiate: app.Repository. Reason: Repository is abstract"
        assert error.identifier == "app.Repository"


class TestRuleFileError:
    """Test cases for RuleFileError."""

    def test_message_includes_source_and_reason(self):
        """Test that the source and reason are part of the message."""
        error = RuleFileError("rules.json", "Could not decode json")

        assert str(error) == "Could not load rules from 'rules.json': Could not decode json"
        assert error.source == "rules.json"
        assert error.reason == "Could not decode json"

    def test_long_inline_source_is_truncated(self):
        """Test that long inline documents are shortened in the message."""
        source = "{" + '"a": 1, ' * 40 + "}"
        error = RuleFileError(source, "bad")

        assert "..." in str(error)
        assert len(str(error)) < len(source)
        assert error.source == source
