"""Application layer - Expansion of deferred values."""

from typing import Any, Sequence

from rulewire_di.application.type_registry import TypeRegistry
from rulewire_di.domain import Constant, IContainer, Instance, MalformedRuleError
from rulewire_di.domain.identifiers import is_identifier


class LazyValueExpander:
    """Replaces deferred markers with the values they stand for.

    Plain values pass through unchanged. Lists, tuples and dicts are walked
    recursively so markers nested anywhere in a rule's values are resolved.

    Attributes:
        _container: Container used to create instances by identifier.
        _registry: Registry used to resolve named constants.
    """

    def __init__(self, container: IContainer, registry: TypeRegistry) -> None:
        self._container = container
        self._registry = registry

    def expand(self, value: Any, share: Sequence[Any] = (), create_strings: bool = False) -> Any:
        """Resolve every marker within a value.

        Args:
            value: Literal, marker, or a container of those.
            share: The current shared-instance pool.
            create_strings: Treat bare strings and classes as identifiers to create.

        Returns:
            The value with markers replaced.

        Example:
            >>> expander.expand([Instance(Logger), "literal", Constant("logging.DEBUG")])
            [<Logger ...>, 'literal', 10]
        """
        if isinstance(value, Constant):
            return self._registry.constant(value.name)

        if isinstance(value, Instance):
            return self._expand_instance(value, share)

        if isinstance(value, dict):
            return {key: self.expand(item, share) for key, item in value.items()}

        if isinstance(value, list):
            return [self.expand(item, share) for item in value]

        if isinstance(value, tuple):
            return tuple(self.expand(item, share) for item in value)

        if create_strings and is_identifier(value):
            return self._container.create(value, [], share)

        return value

    def _expand_instance(self, marker: Instance, share: Sequence[Any]) -> Any:
        target = marker.target
        params = self.expand(list(marker.params), share) if marker.params is not None else None

        if is_identifier(target):
            return self._container.create(target, params or [], share)

        if isinstance(target, tuple):
            subject = self.expand(target[0], share, create_strings=True)
            method_name = target[1]
            method = getattr(subject, method_name, None)
            if not callable(method):
                raise MalformedRuleError(f"{type(subject).__name__} has no callable '{method_name}'")
            return method(*params) if params is not None else method()

        if callable(target):
            return target(*params) if params is not None else target()

        raise MalformedRuleError(f"Cannot expand instance marker with target {target!r}")
