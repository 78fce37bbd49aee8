from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from rulewire_di.domain.models import Rule

RuleFragment = Union[Rule, Mapping[str, Any]]


class IContainer(ABC):
    """Abstract interface for dependency injection container operations."""

    @abstractmethod
    def add_rule(self, identifier: Any, rule: RuleFragment) -> None:
        """Merge a rule fragment into the rule stored for an identifier.

        Args:
            identifier: Class or string naming the (possibly virtual) type.
            rule: A Rule or a mapping of rule fields.
        """

    @abstractmethod
    def get_rule(self, identifier: Any) -> Rule:
        """Return the rule that applies to an identifier.

        Args:
            identifier: Class or string naming the type.
        """

    @abstractmethod
    def create(
        self,
        identifier: Any,
        args: Optional[Sequence[Any]] = None,
        share: Optional[Sequence[Any]] = None,
        force_new_instance: bool = False,
    ) -> Any:
        """Construct (or return the shared instance of) the requested type.

        Args:
            identifier: Class or string naming the type.
            args: Values offered to the constructor, matched by type then order.
            share: Instances shared within the current call tree.
            force_new_instance: Build a new object even when the rule is shared.
        """

    @abstractmethod
    def clear(self) -> None:
        """Clear all rules, cached strategies and shared instances."""

    @abstractmethod
    def get_rules_copy(self) -> Dict[str, Rule]:
        """Get a copy of the registered rules keyed by normalized identifier."""


class IConstructionStrategy(ABC):
    """Abstract interface for a cached, composed way to build one identifier."""

    @abstractmethod
    def __call__(self, args: Sequence[Any], share: Sequence[Any], force_new: bool = False) -> Any:
        """Build an object.

        Args:
            args: Values supplied by the caller.
            share: The current shared-instance pool.
            force_new: Whether shared caching must be bypassed.

        Returns:
            The constructed (or shared) object.
        """


class IRuleLoader(ABC):
    """Abstract interface for adapters that read rules from a file format."""

    @abstractmethod
    def load(self, source: Any, container: Optional[IContainer] = None) -> IContainer:
        """Read rules from a source and add them to a container.

        Args:
            source: File path, inline document, or a list of those.
            container: Container to add rules to. A new one is created if None.

        Returns:
            The container the rules were added to.
        """
