"""Application layer - Building construction strategies."""

import inspect
import logging
from typing import Any, Dict

from rulewire_di.application.expander import LazyValueExpander
from rulewire_di.application.introspection import SignatureInspector
from rulewire_di.application.resolver import ParameterResolver
from rulewire_di.application.strategies import (
    DefaultConstruction,
    FactoryConstruction,
    MethodCallStrategy,
    ParameterizedConstruction,
    ShareInstancesStrategy,
    SharedConstruction,
)
from rulewire_di.application.type_registry import TypeRegistry
from rulewire_di.domain import (
    IConstructionStrategy,
    IContainer,
    InstantiationError,
    Rule,
    identifier_of,
    normalize_identifier,
)

LOG = logging.getLogger(__name__)


def _is_abstract(cls: type) -> bool:
    return inspect.isabstract(cls) or bool(getattr(cls, "_is_protocol", False))


class StrategyBuilder:
    """Composes the construction strategy for an identifier from its rule.

    The base strategy depends on the rule and the target class: a factory,
    shared construction, parameter resolution, or a plain no-argument call.
    It is then wrapped to apply ``call`` and, outermost, to populate
    ``share_instances`` so the constructor and the method calls share one pool.

    Attributes:
        _container: Container used for nested creation.
        _registry: Registry resolving identifiers to classes.
        _inspector: Source of constructor and method signatures.
        _expander: Expander for markers in rule values.
        _instances: The container's shared-instance map.
    """

    def __init__(
        self,
        container: IContainer,
        registry: TypeRegistry,
        inspector: SignatureInspector,
        expander: LazyValueExpander,
        instances: Dict[str, Any],
    ) -> None:
        self._container = container
        self._registry = registry
        self._inspector = inspector
        self._expander = expander
        self._instances = instances

    def build(self, identifier: Any, rule: Rule) -> IConstructionStrategy:
        """Build the composed strategy for an identifier.

        Args:
            identifier: The requested class or string identifier.
            rule: The rule that applies to it.

        Returns:
            The strategy, ready to be cached.

        Raises:
            TypeNotFoundError: If the target does not name a class.
            InstantiationError: If the target class is abstract.
        """
        key = normalize_identifier(identifier)
        target = rule.instance_of if rule.instance_of is not None else identifier
        LOG.debug("building construction strategy for %s", identifier_of(identifier))

        strategy = self._base_strategy(key, identifier, target, rule)

        if rule.call:
            strategy = MethodCallStrategy(strategy, rule, self._container, self._expander, self._inspector)

        if rule.share_instances:
            strategy = ShareInstancesStrategy(strategy, rule, self._container)

        return strategy

    def _base_strategy(self, key: str, identifier: Any, target: Any, rule: Rule) -> IConstructionStrategy:
        if rule.has_factory:
            factory = FactoryConstruction(rule.instance_of)
            return SharedConstruction(key, factory, self._instances) if rule.shared else factory

        cls = self._registry.lookup(target)
        if _is_abstract(cls):
            raise InstantiationError(identifier, f"{cls.__qualname__} is abstract and no instance_of is configured")

        descriptor = self._inspector.describe_constructor(cls)
        resolver = None
        if descriptor is not None:
            resolver = ParameterResolver(descriptor, rule, self._container, self._expander)

        inner: IConstructionStrategy
        if resolver is not None:
            inner = ParameterizedConstruction(cls, resolver)
        else:
            inner = DefaultConstruction(cls)

        if rule.shared:
            return SharedConstruction(key, inner, self._instances, target=cls, resolver=resolver)
        return inner
