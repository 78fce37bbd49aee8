"""
Application layer - Use cases and orchestration.

This layer resolves rules, inspects signatures and composes construction
strategies. It depends only on the Domain layer.
"""

from .container import DIContainer
from .engine import StrategyBuilder
from .expander import LazyValueExpander
from .introspection import SignatureInspector
from .resolver import ParameterResolver, extend_shared_pool
from .rule_store import RuleStore, coerce_rule
from .strategies import (
    DefaultConstruction,
    FactoryConstruction,
    MethodCallStrategy,
    ParameterizedConstruction,
    ShareInstancesStrategy,
    SharedConstruction,
)
from .type_registry import TypeRegistry

__all__ = [
    "DIContainer",
    "RuleStore",
    "coerce_rule",
    "TypeRegistry",
    "SignatureInspector",
    "ParameterResolver",
    "extend_shared_pool",
    "LazyValueExpander",
    "StrategyBuilder",
    "DefaultConstruction",
    "ParameterizedConstruction",
    "FactoryConstruction",
    "SharedConstruction",
    "ShareInstancesStrategy",
    "MethodCallStrategy",
]
