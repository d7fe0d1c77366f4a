"""
Runtime Configuration Module

Provides tree policy options and configuration loading.
"""

from .runtime import (
    RuntimeConfig,
    TreeOptions,
    configure_logging,
    get_default_config,
    set_default_config,
)

__all__ = [
    "RuntimeConfig",
    "TreeOptions",
    "configure_logging",
    "get_default_config",
    "set_default_config",
]
