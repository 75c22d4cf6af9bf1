# src/strata/plugins/manager.py
"""Plugin manager for discovery, registration, and construction.

Uses pluggy for hook-based plugin registration.
"""

from dataclasses import dataclass
from typing import Any

import pluggy

from strata.contracts import Determinism
from strata.plugins.base import BaseTransform
from strata.plugins.hookspecs import PROJECT_NAME, StrataTransformSpec


@dataclass(frozen=True)
class PluginSpec:
    """Registration record for a transform plugin.

    Frozen; plugin metadata does not change after registration.
    """

    name: str
    version: str
    determinism: Determinism
    creates_records: bool

    @classmethod
    def from_plugin(cls, plugin_cls: type[BaseTransform]) -> "PluginSpec":
        return cls(
            name=plugin_cls.name,
            version=plugin_cls.plugin_version,
            determinism=plugin_cls.determinism,
            creates_records=plugin_cls.creates_records,
        )


class PluginManager:
    """Manages plugin discovery, registration, and lookup.

    Usage:
        manager = PluginManager()
        manager.register_builtin_plugins()

        parser = manager.create_transform("parse_delimited", options)
    """

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(StrataTransformSpec)

        # Name -> plugin class, rebuilt on every registration
        self._transforms: dict[str, type[BaseTransform]] = {}

    def register_builtin_plugins(self) -> None:
        """Discover and register all built-in transforms.

        Call this once at startup to make built-in plugins available by name.
        """
        from strata.plugins.discovery import create_dynamic_hookimpl, discover_builtin_transforms

        self.register(create_dynamic_hookimpl(discover_builtin_transforms(), "strata_get_transforms"))

    def register(self, plugin: Any) -> None:
        """Register a plugin.

        Args:
            plugin: Plugin instance implementing hook methods

        Raises:
            ValueError: If a transform with the same name is already registered.
                The failing plugin is unregistered again.
        """
        self._pm.register(plugin)
        try:
            self._refresh_caches()
        except ValueError:
            self._pm.unregister(plugin)
            raise

    def _refresh_caches(self) -> None:
        new_transforms: dict[str, type[BaseTransform]] = {}

        for transforms in self._pm.hook.strata_get_transforms():
            for cls in transforms:
                name = cls.name
                if name in new_transforms:
                    raise ValueError(f"Duplicate transform plugin name: '{name}'. Already registered by {new_transforms[name].__name__}")
                new_transforms[name] = cls

        self._transforms = new_transforms

    # === Getters ===

    def get_transforms(self) -> list[type[BaseTransform]]:
        """Get all registered transform plugins, sorted by name."""
        return [self._transforms[name] for name in sorted(self._transforms)]

    def get_transform_by_name(self, name: str) -> type[BaseTransform] | None:
        """Get transform plugin by name."""
        return self._transforms.get(name)

    def get_specs(self) -> list[PluginSpec]:
        """Registration records for every transform, sorted by name."""
        return [PluginSpec.from_plugin(cls) for cls in self.get_transforms()]

    # === Construction ===

    def create_transform(self, name: str, options: dict[str, Any]) -> BaseTransform:
        """Build a configured transform instance.

        Args:
            name: Registered plugin name
            options: Plugin options (the 'options' block of a transform entry)

        Returns:
            Initialized transform

        Raises:
            ValueError: If no transform is registered under name
            PluginConfigError: If the options are invalid
        """
        plugin_cls = self._transforms.get(name)
        if plugin_cls is None:
            available = ", ".join(sorted(self._transforms)) or "(none)"
            raise ValueError(f"Unknown transform plugin: '{name}'. Available: {available}")
        return plugin_cls(options)
