"""
Domain layer - Core business logic and models.

This layer contains rules, deferred-value markers, signature descriptors and
the exception taxonomy. It has no dependencies on other layers.
"""

from .enums import ParameterKind
from .exceptions import (
    DIException,
    InstantiationError,
    MalformedRuleError,
    RuleFileError,
    TypeNotFoundError,
)
from .identifiers import WILDCARD, identifier_of, normalize_identifier
from .interfaces import IConstructionStrategy, IContainer, IRuleLoader, RuleFragment
from .models import (
    Constant,
    Instance,
    MethodCall,
    ParameterDescriptor,
    Rule,
    SharedPool,
    SignatureDescriptor,
    merge_rules,
)

__all__ = [
    # Enums
    "ParameterKind",
    # Exceptions
    "DIException",
    "TypeNotFoundError",
    "InstantiationError",
    "MalformedRuleError",
    "RuleFileError",
    # Identifiers
    "WILDCARD",
    "identifier_of",
    "normalize_identifier",
    # Interfaces
    "IContainer",
    "IConstructionStrategy",
    "IRuleLoader",
    "RuleFragment",
    # Models
    "Rule",
    "MethodCall",
    "Instance",
    "Constant",
    "ParameterDescriptor",
    "SignatureDescriptor",
    "SharedPool",
    "merge_rules",
]
