"""Type identifier normalization."""

from typing import Any

from rulewire_di.domain.exceptions import MalformedRuleError

WILDCARD = "*"

_SEPARATORS = ".\\"


def identifier_of(value: Any) -> str:
    """Return the display form of a type identifier.

    Classes are named by ``module.qualname``; strings lose any leading
    namespace separator.

    Raises:
        MalformedRuleError: If the value is neither a class nor a string.
    """
    if isinstance(value, type):
        return f"{value.__module__}.{value.__qualname__}"
    if isinstance(value, str):
        return value.lstrip(_SEPARATORS)
    raise MalformedRuleError(f"Not a type identifier: {value!r}")


def normalize_identifier(value: Any) -> str:
    """Return the case-insensitive key used for rules, strategies and instances."""
    return identifier_of(value).lower()


def is_identifier(value: Any) -> bool:
    return isinstance(value, (str, type))
