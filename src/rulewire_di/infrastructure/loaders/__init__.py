"""
Rule loaders module.

Reads rules from JSON and XML files and parses method-call specs.
"""

from .callback import Callback, parse_args
from .json_loader import JsonRuleLoader
from .markers import factory_for, instance_marker, translate
from .xml_loader import XmlRuleLoader

__all__ = [
    "JsonRuleLoader",
    "XmlRuleLoader",
    "Callback",
    "parse_args",
    "instance_marker",
    "factory_for",
    "translate",
]
