from enum import Enum


class ParameterKind(str, Enum):
    """Defines how a resolved argument is passed to its callable.

    Attributes:
        POSITIONAL: Passed positionally, in signature order.
        VARIADIC: The trailing ``*args`` parameter, receives every remaining value.
        KEYWORD: Keyword-only parameter, passed by name.
    """

    POSITIONAL = "positional"
    VARIADIC = "variadic"
    KEYWORD = "keyword"

    def __str__(self) -> str:
        return self.value
