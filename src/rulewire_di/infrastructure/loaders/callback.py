"""Parser for method-call specs such as ``"app.Config::get_value(timeout)"``."""

import functools
import re
from typing import Any, List, NamedTuple, Optional

from rulewire_di.domain import IContainer, Instance, MalformedRuleError

SEPARATOR = "::"

_SEGMENT = re.compile(r"^\s*([A-Za-z_]\w*)\s*(?:\((.*)\))?\s*$", re.DOTALL)
_INTEGER = re.compile(r"^[-+]?\d+$")
_FLOAT = re.compile(r"^[-+]?(\d+\.\d*|\.\d+|\d+)([eE][-+]?\d+)?$")


class Segment(NamedTuple):
    name: str
    args: List[Any]
    is_call: bool


def _split_outside_parens(text: str, separator: str) -> List[str]:
    parts = []
    depth = 0
    quote: Optional[str] = None
    start = 0
    index = 0
    while index < len(text):
        char = text[index]
        if quote:
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif depth == 0 and text.startswith(separator, index):
            parts.append(text[start:index])
            index += len(separator)
            start = index
            continue
        index += 1
    parts.append(text[start:])
    return parts


def _literal(token: str) -> Any:
    token = token.strip()
    if len(token) >= 2 and token[0] == token[-1] and token[0] in "\"'":
        return token[1:-1]
    if _INTEGER.match(token):
        return int(token)
    if _FLOAT.match(token):
        return float(token)
    return token


def parse_args(text: Optional[str]) -> List[Any]:
    """Parse a comma separated argument list into literals.

    Example:
        >>> parse_args("10, 2.5, 'a,b', name")
        [10, 2.5, 'a,b', 'name']
    """
    if text is None or not text.strip():
        return []
    return [_literal(token) for token in _split_outside_parens(text, ",")]


class Callback:
    """A method-call spec evaluated against objects built by a container.

    The first segment is a type identifier, created through the container.
    Each following segment is either a method call ``name(args)`` or an
    attribute read ``name``, applied to the previous result.

    Attributes:
        spec: The original spec string.
        identifier: The type identifier the chain starts from.
        segments: Parsed member accesses, in order.

    Example:
        >>> Callback("app.settings.Settings::database()::host").run(container)
        '127.0.0.1'
    """

    def __init__(self, spec: str) -> None:
        """Parse a spec.

        Raises:
            MalformedRuleError: If the spec cannot be parsed.
        """
        self.spec = spec
        parts = _split_outside_parens(spec.strip(), SEPARATOR)
        self.identifier = parts[0].strip()
        if not self.identifier:
            raise MalformedRuleError(f"Callback '{spec}' does not name a type")

        self.segments: List[Segment] = []
        for part in parts[1:]:
            match = _SEGMENT.match(part)
            if match is None:
                raise MalformedRuleError(f"Callback '{spec}' has an invalid member '{part}'")
            name, args = match.groups()
            self.segments.append(Segment(name, parse_args(args), args is not None))

    @staticmethod
    def is_callback(value: Any) -> bool:
        return isinstance(value, str) and SEPARATOR in value

    def run(self, container: IContainer) -> Any:
        """Evaluate the spec.

        Raises:
            MalformedRuleError: If a member does not exist or is not callable.
        """
        value = container.create(self.identifier)
        for segment in self.segments:
            member = getattr(value, segment.name, None)
            if member is None and not hasattr(value, segment.name):
                raise MalformedRuleError(f"Callback '{self.spec}': {type(value).__name__} has no '{segment.name}'")
            if segment.is_call:
                if not callable(member):
                    raise MalformedRuleError(f"Callback '{self.spec}': '{segment.name}' is not callable")
                value = member(*segment.args)
            else:
                value = member
        return value

    def to_instance(self, container: Optional[IContainer] = None) -> Instance:
        """Express the spec as a deferred-instance marker.

        A single method call becomes a ``(identifier, method)`` marker with the
        parsed arguments as params and needs no container. Longer chains and
        attribute reads are bound to ``container``.

        Raises:
            MalformedRuleError: If the chain needs a container and none is given.
        """
        if not self.segments:
            return Instance(self.identifier)

        if len(self.segments) == 1 and self.segments[0].is_call:
            segment = self.segments[0]
            return Instance((self.identifier, segment.name), params=segment.args)

        if container is None:
            raise MalformedRuleError(f"Callback '{self.spec}' needs a container to be deferred")
        return Instance(functools.partial(self.run, container))

    def __repr__(self) -> str:
        return f"Callback({self.spec!r})"
