"""
tools — Security capability registry.
"""

from .registry import AGENT_TOOL_CATEGORIES, SecurityToolRegistry, default_registry

__all__ = [
    "AGENT_TOOL_CATEGORIES",
    "SecurityToolRegistry",
    "default_registry",
]
