"""
rulewire-di: Rule-based Dependency Injection container with auto-wiring.

Public API exports for the rulewire-di package.
"""

# Application exports
from rulewire_di.application.container import DIContainer

# Domain exports
from rulewire_di.domain.exceptions import (
    DIException,
    InstantiationError,
    MalformedRuleError,
    RuleFileError,
    TypeNotFoundError,
)
from rulewire_di.domain.models import Constant, Instance, MethodCall, Rule

# Infrastructure exports
from rulewire_di.infrastructure.loaders import JsonRuleLoader, XmlRuleLoader

__version__ = "0.1.0"

__all__ = [
    # Container
    "DIContainer",
    # Rules and markers
    "Rule",
    "MethodCall",
    "Instance",
    "Constant",
    # Loaders
    "JsonRuleLoader",
    "XmlRuleLoader",
    # Exceptions
    "DIException",
    "TypeNotFoundError",
    "InstantiationError",
    "MalformedRuleError",
    "RuleFileError",
]
