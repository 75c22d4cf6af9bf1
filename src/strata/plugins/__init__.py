"""Plugin system: record transforms via pluggy.

- Base class: BaseTransform with lifecycle hooks
- Config: pydantic option models with strict validation
- Validation: configure-time checks without building plugins
- Manager: built-in discovery, registration and construction
- Hookspecs: pluggy hook definitions
"""

from strata.plugins.base import BaseTransform
from strata.plugins.config_base import PluginConfig, PluginConfigError, SchemaPluginConfig
from strata.plugins.context import PluginContext
from strata.plugins.hookspecs import hookimpl, hookspec
from strata.plugins.manager import PluginManager, PluginSpec
from strata.plugins.validation import PluginConfigValidator, ValidationError

__all__ = [
    # Base classes
    "BaseTransform",
    # Config
    "PluginConfig",
    "PluginConfigError",
    "SchemaPluginConfig",
    # Context
    "PluginContext",
    # Validation
    "PluginConfigValidator",
    "ValidationError",
    # Manager
    "PluginManager",
    "PluginSpec",
    # Hookspecs
    "hookimpl",
    "hookspec",
]
