"""Application layer - Rule registration and lookup."""

import logging
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import ValidationError

from rulewire_di.application.type_registry import TypeRegistry
from rulewire_di.domain import (
    WILDCARD,
    MalformedRuleError,
    Rule,
    identifier_of,
    merge_rules,
    normalize_identifier,
)
from rulewire_di.domain.identifiers import is_identifier

LOG = logging.getLogger(__name__)


def coerce_rule(fragment: Union[Rule, Mapping[str, Any]]) -> Rule:
    """Validate a rule fragment given as a Rule or a mapping of fields.

    Raises:
        MalformedRuleError: If the fragment is not a valid rule.
    """
    if isinstance(fragment, Rule):
        return fragment
    if not isinstance(fragment, Mapping):
        raise MalformedRuleError(f"Rule fragment must be a Rule or a mapping, got {type(fragment).__name__}")
    try:
        return Rule.model_validate(dict(fragment))
    except ValidationError as e:
        raise MalformedRuleError(f"Invalid rule fragment: {e}") from e


class RuleStore:
    """Owns the merged rule for every registered identifier.

    Rules are kept in registration order, which decides the winner when more
    than one ancestor rule could apply to a class.

    Attributes:
        _rules: Merged rules keyed by normalized identifier.
        _sources: The identifier each key was registered with, used to find
            the class a key names.
        _registry: Type registry used for subclass matching.
    """

    def __init__(self, registry: TypeRegistry) -> None:
        """Initialize an empty store.

        Args:
            registry: Registry used to resolve identifiers to classes.
        """
        self._rules: Dict[str, Rule] = {}
        self._sources: Dict[str, Any] = {}
        self._registry = registry

    def add_rule(self, identifier: Any, fragment: Union[Rule, Mapping[str, Any]]) -> Rule:
        """Merge a fragment into the rule for an identifier and store it.

        A named rule (``instance_of`` set to an identifier) first inherits the
        rule of its target type unless ``inherit`` is explicitly False.

        Args:
            identifier: Class or string the rule applies to.
            fragment: Rule fields to merge.

        Returns:
            The stored, merged rule.

        Example:
            >>> store.add_rule("$Mailer", {"instance_of": SmtpMailer, "shared": True})
        """
        rule = coerce_rule(fragment)

        if is_identifier(rule.instance_of) and ("inherit" not in rule.model_fields_set or rule.inherit):
            rule = merge_rules(self.get_rule(rule.instance_of), rule)

        merged = merge_rules(self.get_rule(identifier), rule)
        key = normalize_identifier(identifier)
        self._rules[key] = merged
        self._sources.setdefault(key, identifier)

        LOG.debug("registered rule for %s (fields=%s)", identifier_of(identifier), sorted(rule.model_fields_set))
        return merged

    def get_rule(self, identifier: Any) -> Rule:
        """Return the rule that applies to an identifier.

        Lookup order: exact match, then the first registered type rule whose
        class is a strict ancestor of the identifier's class, then the
        wildcard rule, then an empty rule.
        """
        key = normalize_identifier(identifier)
        if key in self._rules:
            return self._rules[key]

        cls = self._registry.find(identifier)
        if cls is not None:
            for rule_key, rule in self._rules.items():
                if rule_key == WILDCARD or rule.is_named_instance or not rule.inherit:
                    continue
                parent = self._registry.find(self._sources[rule_key])
                if parent is None or parent is cls:
                    continue
                try:
                    if issubclass(cls, parent):
                        return rule
                except TypeError:
                    continue

        return self._rules.get(WILDCARD, Rule())

    def copy(self) -> Dict[str, Rule]:
        """Return a shallow copy of the stored rules."""
        return dict(self._rules)

    def replace(self, identifier: Any, rule: Rule) -> None:
        """Store a rule as-is, without merging."""
        key = normalize_identifier(identifier)
        self._rules[key] = rule
        self._sources.setdefault(key, identifier)

    def sources_copy(self) -> Dict[str, Any]:
        """Return the identifiers each rule key was registered with."""
        return dict(self._sources)

    def restore(self, rules: Mapping[str, Rule], sources: Optional[Mapping[str, Any]] = None) -> None:
        """Replace all rules with a previously copied set."""
        sources = sources or {}
        self._rules = dict(rules)
        self._sources = {key: sources.get(key, key) for key in self._rules}

    def clear(self) -> None:
        """Remove every rule."""
        self._rules.clear()
        self._sources.clear()
