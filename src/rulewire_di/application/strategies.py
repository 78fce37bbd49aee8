"""Application layer - Construction strategies.

Each strategy is an explicit object holding what it needs to build one
identifier. Strategies compose: the base strategy builds the object and
wrappers add shared-pool population and post-construction calls.
"""

import logging
from typing import Any, Callable, Dict, Optional, Sequence, Type

from rulewire_di.application.expander import LazyValueExpander
from rulewire_di.application.introspection import SignatureInspector
from rulewire_di.application.resolver import ParameterResolver, extend_shared_pool
from rulewire_di.domain import IConstructionStrategy, IContainer, MalformedRuleError, MethodCall, Rule

LOG = logging.getLogger(__name__)


class DefaultConstruction(IConstructionStrategy):
    """Builds a class that has no constructor parameters to resolve."""

    def __init__(self, target: Type[Any]) -> None:
        self.target = target

    def __call__(self, args: Sequence[Any], share: Sequence[Any], force_new: bool = False) -> Any:
        return self.target()


class ParameterizedConstruction(IConstructionStrategy):
    """Builds a class by resolving its constructor arguments."""

    def __init__(self, target: Type[Any], resolver: ParameterResolver) -> None:
        self.target = target
        self.resolver = resolver

    def __call__(self, args: Sequence[Any], share: Sequence[Any], force_new: bool = False) -> Any:
        positional, keywords = self.resolver(args, share)
        return self.target(*positional, **keywords)


class FactoryConstruction(IConstructionStrategy):
    """Builds an object by calling a zero-argument factory."""

    def __init__(self, factory: Callable[[], Any]) -> None:
        self.factory = factory

    def __call__(self, args: Sequence[Any], share: Sequence[Any], force_new: bool = False) -> Any:
        return self.factory()


class SharedConstruction(IConstructionStrategy):
    """Builds an object once and stores it as the identifier's shared instance.

    When the class uses the default ``object.__new__``, an empty shell is
    allocated and stored before its dependencies are resolved, and only then
    is ``__init__`` run on it. A dependency that asks for this identifier
    while it is being built therefore receives the shell instead of recursing.
    Other classes are built normally and stored afterwards.

    A forced build never replaces the stored instance.

    Attributes:
        identifier: Normalized identifier the instance is stored under.
        inner: Strategy used for ordinary (non-shell) construction.
        instances: The container's shared-instance map.
    """

    def __init__(
        self,
        identifier: str,
        inner: IConstructionStrategy,
        instances: Dict[str, Any],
        target: Optional[Type[Any]] = None,
        resolver: Optional[ParameterResolver] = None,
    ) -> None:
        self.identifier = identifier
        self.inner = inner
        self.instances = instances
        self.target = target
        self.resolver = resolver

    @property
    def supports_shell(self) -> bool:
        return self.target is not None and self.resolver is not None and self.target.__new__ is object.__new__

    def __call__(self, args: Sequence[Any], share: Sequence[Any], force_new: bool = False) -> Any:
        if force_new:
            return self.inner(args, share, force_new)

        if not self.supports_shell:
            instance = self.inner(args, share, force_new)
            self.instances[self.identifier] = instance
            LOG.debug("stored shared instance for %s", self.identifier)
            return instance

        instance = self.target.__new__(self.target)
        self.instances[self.identifier] = instance
        try:
            positional, keywords = self.resolver(args, share)
            instance.__init__(*positional, **keywords)
        except Exception:
            self.instances.pop(self.identifier, None)
            raise

        LOG.debug("stored shared instance for %s", self.identifier)
        return instance


class ShareInstancesStrategy(IConstructionStrategy):
    """Populates the shared pool before the wrapped strategy runs."""

    def __init__(self, inner: IConstructionStrategy, rule: Rule, container: IContainer) -> None:
        self.inner = inner
        self.rule = rule
        self.container = container

    def __call__(self, args: Sequence[Any], share: Sequence[Any], force_new: bool = False) -> Any:
        pool = extend_shared_pool(self.container, self.rule.share_instances, share)
        return self.inner(args, pool, force_new)


class MethodCallStrategy(IConstructionStrategy):
    """Invokes the rule's method calls on each object the wrapped strategy builds.

    Call arguments are expanded and matched against the method signature
    with a rule that only carries ``share_instances``, so constructor params
    and substitutions of the class do not leak into method calls. The pool
    passed in is the one the constructor was resolved with, so a type listed
    in ``share_instances`` is the same object in both.

    Attributes:
        inner: Strategy that builds the object.
        calls: Method calls to apply, in order.
    """

    def __init__(
        self,
        inner: IConstructionStrategy,
        rule: Rule,
        container: IContainer,
        expander: LazyValueExpander,
        inspector: SignatureInspector,
    ) -> None:
        self.inner = inner
        self.calls = list(rule.call)
        self.call_rule = Rule(share_instances=rule.share_instances)
        self.container = container
        self.expander = expander
        self.inspector = inspector

    def __call__(self, args: Sequence[Any], share: Sequence[Any], force_new: bool = False) -> Any:
        instance = self.inner(args, share, force_new)
        for call in self.calls:
            self._apply(instance, call, share)
        return instance

    def _apply(self, instance: Any, call: MethodCall, share: Sequence[Any]) -> None:
        method = getattr(instance, call.method, None)
        if not callable(method):
            raise MalformedRuleError(f"{type(instance).__name__} has no callable '{call.method}' to call")

        resolver = ParameterResolver(
            self.inspector.describe_callable(method),
            self.call_rule,
            self.container,
            self.expander,
        )
        positional, keywords = resolver(self.expander.expand(list(call.args), share), share)
        result = method(*positional, **keywords)

        if call.callback is not None:
            call.callback(result)
