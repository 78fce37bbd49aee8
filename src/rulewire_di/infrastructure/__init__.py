"""
Infrastructure layer - External integrations.

This layer contains rule-file loaders and integrations with external
frameworks and tools. It depends on both Application and Domain layers.
"""

from . import fastapi_integration, loaders, testing

__all__ = [
    "fastapi_integration",
    "loaders",
    "testing",
]
