"""Name-based registries for delivery sinks and pickers."""
from __future__ import annotations

from nit.plugins.registry import (
    PluginAlreadyRegisteredError,
    PluginNotFoundError,
    PluginRegistry,
)

__all__ = [
    "PluginAlreadyRegisteredError",
    "PluginNotFoundError",
    "PluginRegistry",
]
