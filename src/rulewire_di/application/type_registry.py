"""Application layer - Mapping type identifiers to classes."""

import builtins
import importlib
import logging
from typing import Any, Dict, Optional, Type

from rulewire_di.domain import MalformedRuleError, TypeNotFoundError, identifier_of, normalize_identifier

LOG = logging.getLogger(__name__)

_MISSING = object()


def _getattr_ignore_case(obj: Any, name: str) -> Any:
    value = getattr(obj, name, _MISSING)
    if value is not _MISSING:
        return value
    lowered = name.lower()
    for candidate in dir(obj):
        if candidate.lower() == lowered:
            return getattr(obj, candidate)
    return _MISSING


class TypeRegistry:
    """Resolves type identifiers to classes.

    Every class the container encounters is remembered under its normalized
    identifier, which is what makes identifiers case-insensitive. Unknown
    dotted names are resolved by importing the longest importable module
    prefix and walking the remaining attributes.

    Attributes:
        _types: Known classes keyed by normalized identifier.
    """

    def __init__(self) -> None:
        """Initialize the registry with no known types."""
        self._types: Dict[str, Type[Any]] = {}

    def register(self, cls: Type[Any]) -> None:
        """Remember a class under its normalized identifier."""
        self._types.setdefault(normalize_identifier(cls), cls)

    def find(self, identifier: Any) -> Optional[Type[Any]]:
        """Return the class for an identifier, or None if there is none.

        Args:
            identifier: A class or a string naming one.
        """
        if isinstance(identifier, type):
            self.register(identifier)
            return identifier
        if not isinstance(identifier, str):
            return None

        key = normalize_identifier(identifier)
        if key in self._types:
            return self._types[key]

        found = self.locate(identifier)
        if not isinstance(found, type):
            return None

        self._types[key] = found
        return found

    def lookup(self, identifier: Any) -> Type[Any]:
        """Return the class for an identifier.

        Raises:
            TypeNotFoundError: If the identifier does not name a class.
        """
        cls = self.find(identifier)
        if cls is None:
            if isinstance(identifier, str) and self.locate(identifier) is not _MISSING:
                raise TypeNotFoundError(identifier, "identifier does not name a class")
            raise TypeNotFoundError(identifier)
        return cls

    def locate(self, name: str) -> Any:
        """Return the object a dotted name refers to, or a sentinel if none.

        Example:
            >>> registry.locate("logging.DEBUG")
            10
        """
        parts = identifier_of(name).split(".")
        if not all(parts):
            return _MISSING

        if len(parts) == 1:
            return _getattr_ignore_case(builtins, parts[0])

        for split in range(len(parts) - 1, 0, -1):
            module_name = ".".join(parts[:split])
            try:
                obj: Any = importlib.import_module(module_name)
            except (ImportError, ValueError):
                continue

            for attribute in parts[split:]:
                obj = _getattr_ignore_case(obj, attribute)
                if obj is _MISSING:
                    break
            if obj is not _MISSING:
                LOG.debug("located %s in module %s", name, module_name)
                return obj

        return _MISSING

    def constant(self, name: str) -> Any:
        """Return the value of a named constant.

        Raises:
            MalformedRuleError: If the name cannot be resolved.
        """
        value = self.locate(name)
        if value is _MISSING:
            raise MalformedRuleError(f"Constant '{name}' cannot be resolved")
        return value

    def clear(self) -> None:
        """Forget every known class."""
        self._types.clear()
