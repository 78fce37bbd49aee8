"""
FastAPI integration module.

Provides helpers and utilities for integrating rulewire-di with FastAPI.
"""

from .integration import (
    RequestScopeMiddleware,
    create_fastapi_dependency,
    create_scoped_dependency,
    inject_dependencies,
)

__all__ = [
    "create_fastapi_dependency",
    "create_scoped_dependency",
    "inject_dependencies",
    "RequestScopeMiddleware",
]
