from typing import Any, Optional


def _describe(identifier: Any) -> str:
    if isinstance(identifier, type):
        return identifier.__qualname__
    return str(identifier)


class DIException(Exception):
    """Base exception for DI-related errors."""


class TypeNotFoundError(DIException):
    """Raised when a type identifier cannot be resolved to a class.

    This occurs when:
    - No class is known or importable under the identifier.
    - The identifier names something that is not a class.

    Attributes:
        identifier: The identifier that could not be resolved.
        reason: Optional reason for the failure.
    """

    def __init__(self, identifier: Any, reason: Optional[str] = None) -> None:
        self.identifier = identifier
        self.reason = reason
        message = f"Cannot find type for identifier: {_describe(identifier)}"
        if reason:
            message += f". Reason: {reason}"
        super().__init__(message)


class InstantiationError(DIException):
    """Raised when a resolved type cannot be constructed.

    This occurs when the target is an abstract class or a protocol and the
    rule provides no concrete ``instance_of`` override.

    Attributes:
        identifier: The identifier whose target could not be constructed.
        reason: Optional reason for the failure.
    """

    def __init__(self, identifier: Any, reason: Optional[str] = None) -> None:
        self.identifier = identifier
        self.reason = reason
        message = f"Cannot instantiate: {_describe(identifier)}"
        if reason:
            message += f". Reason: {reason}"
        super().__init__(message)


class MalformedRuleError(DIException):
    """Raised for structurally invalid rules, markers or callback specs."""


class RuleFileError(DIException):
    """Raised when a rule file cannot be read or decoded.

    Attributes:
        source: The file path or inline document that failed.
        reason: Why loading failed.
    """

    def __init__(self, source: Any, reason: str) -> None:
        self.source = source
        self.reason = reason
        shown = str(source)
        if len(shown) > 60:
            shown = shown[:57] + "..."
        super().__init__(f"Could not load rules from {shown!r}: {reason}")
