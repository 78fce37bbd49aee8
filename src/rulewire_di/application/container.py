from typing import Any, Dict, Mapping, Optional, Sequence

from rulewire_di.application.engine import StrategyBuilder
from rulewire_di.application.expander import LazyValueExpander
from rulewire_di.application.introspection import SignatureInspector
from rulewire_di.application.rule_store import RuleStore
from rulewire_di.application.type_registry import TypeRegistry
from rulewire_di.domain import (
    WILDCARD,
    IConstructionStrategy,
    IContainer,
    Rule,
    RuleFragment,
    SharedPool,
    normalize_identifier,
)


class DIContainer(IContainer):
    """Main dependency injection container.

    Builds object graphs from declarative rules, auto-wiring constructor
    parameters from their type hints. The first ``create`` of an identifier
    composes a construction strategy which is cached and reused afterwards.

    The container is not thread-safe: callers that share one across threads
    must serialize ``add_rule`` and ``create`` themselves.

    Attributes:
        _registry: Classes known by normalized identifier.
        _rule_store: Merged rules by normalized identifier.
        _strategies: Cached construction strategies by normalized identifier.
        _instances: Shared instances by normalized identifier.
        _inspector: Cached signature descriptors.
        _expander: Resolves deferred markers.
        _builder: Composes strategies from rules.
    """

    def __init__(self, default_rule: Optional[RuleFragment] = None) -> None:
        """Initialize the container.

        Args:
            default_rule: Optional rule applied to every identifier without a
                more specific one (registered under ``"*"``).
        """
        self._registry = TypeRegistry()
        self._rule_store = RuleStore(self._registry)
        self._strategies: Dict[str, IConstructionStrategy] = {}
        self._instances: Dict[str, Any] = {}
        self._inspector = SignatureInspector(self._registry)
        self._expander = LazyValueExpander(self, self._registry)
        self._builder = StrategyBuilder(self, self._registry, self._inspector, self._expander, self._instances)

        if default_rule:
            self.add_rule(WILDCARD, default_rule)

    def add_rule(self, identifier: Any, rule: RuleFragment) -> None:
        """Merge a rule fragment into the rule for an identifier.

        Args:
            identifier: Class, dotted class name, or virtual name such as ``"$Mailer"``.
            rule: A Rule, or a mapping of rule fields (camelCase aliases accepted).

        Raises:
            MalformedRuleError: If the fragment is not a valid rule.

        Example:
            >>> container.add_rule(Database, {"shared": True})
            >>> container.add_rule("$ReadOnlyDb", Rule(instance_of=Database, construct_params=["replica"]))
        """
        if isinstance(identifier, type):
            self._registry.register(identifier)
        self._rule_store.add_rule(identifier, rule)

    def add_rules(self, rules: Mapping[Any, RuleFragment]) -> None:
        """Add several rules at once, in mapping order.

        Example:
            >>> container.add_rules({
            ...     "*": {"shared": True},
            ...     UserService: {"new_instances": [RequestContext]},
            ... })
        """
        for identifier, rule in rules.items():
            self.add_rule(identifier, rule)

    def get_rule(self, identifier: Any) -> Rule:
        """Return the rule applying to an identifier.

        An exact rule wins, then the first registered rule for an ancestor
        class, then the ``"*"`` rule, then an empty rule.
        """
        return self._rule_store.get_rule(identifier)

    def create(
        self,
        identifier: Any,
        args: Optional[Sequence[Any]] = None,
        share: Optional[Sequence[Any]] = None,
        force_new_instance: bool = False,
    ) -> Any:
        """Create an instance of the specified identifier.

        Shared instances are returned directly. Otherwise the cached strategy
        for the identifier is invoked, building and caching it on first use.

        Args:
            identifier: Class or string identifier.
            args: Values offered to the constructor; matched by type first,
                untyped parameters take the rest in order.
            share: Instances shared within the current call tree.
            force_new_instance: Build a new object even for shared rules.

        Returns:
            The constructed object.

        Raises:
            TypeNotFoundError: If the identifier or a dependency names no class.
            InstantiationError: If the target or a dependency is abstract.

        Example:
            >>> service = container.create(UserService)
            >>> report = container.create("reports.MonthlyReport", ["2024-01", Printer()])
        """
        key = normalize_identifier(identifier)

        if not force_new_instance and key in self._instances:
            return self._instances[key]

        strategy = self._strategies.get(key)
        if strategy is None:
            if isinstance(identifier, type):
                self._registry.register(identifier)
            strategy = self._builder.build(identifier, self.get_rule(identifier))
            self._strategies[key] = strategy

        return strategy(list(args or ()), SharedPool.of(share), force_new_instance)

    def get_rules_copy(self) -> Dict[str, Rule]:
        """Get a copy of the registered rules.

        Returns:
            Rules keyed by normalized identifier.
        """
        return self._rule_store.copy()

    def clear(self) -> None:
        """Clear all rules, cached strategies and shared instances.

        Useful for testing or disposing of the container.
        """
        self._rule_store.clear()
        self._strategies.clear()
        self._instances.clear()
        self._inspector.clear()
        self._registry.clear()
