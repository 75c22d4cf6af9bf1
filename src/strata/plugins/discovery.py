"""Built-in plugin discovery by folder scanning.

Scans the transforms package for classes that:
1. Inherit from BaseTransform
2. Have a non-empty `name` class attribute
3. Are not abstract
"""

import importlib
import inspect
from pathlib import Path
from typing import Any

import structlog

from strata.plugins.base import BaseTransform

logger = structlog.get_logger(__name__)

# Files that should never be scanned for plugins
EXCLUDED_FILES: frozenset[str] = frozenset({"__init__.py"})

TRANSFORMS_PACKAGE = "strata.plugins.transforms"


def discover_plugins_in_directory(
    directory: Path,
    package: str,
    base_class: type = BaseTransform,
) -> list[type]:
    """Discover plugin classes in a package directory.

    Scans all .py files in the directory (non-recursive), imports each as a
    submodule of `package`, and keeps the classes that inherit from
    base_class and have a `name` attribute.

    Args:
        directory: Path to scan for plugin files
        package: Dotted package name the directory corresponds to
        base_class: Base class that plugins must inherit from

    Returns:
        List of discovered plugin classes, ordered by file name
    """
    discovered: list[type] = []

    if not directory.exists():
        logger.warning("plugin_directory_missing", directory=str(directory))
        return discovered

    for py_file in sorted(directory.glob("*.py")):
        if py_file.name in EXCLUDED_FILES:
            continue

        # Plugin modules ship with the package: an import error is a bug
        # and propagates unchanged.
        module = importlib.import_module(f"{package}.{py_file.stem}")
        discovered.extend(_discover_in_module(module, base_class))

    return discovered


def _discover_in_module(module: Any, base_class: type) -> list[type]:
    discovered: list[type] = []
    for cls_name, obj in inspect.getmembers(module, inspect.isclass):
        # Must be defined in this module (not imported)
        if obj.__module__ != module.__name__:
            continue
        if not issubclass(obj, base_class) or obj is base_class:
            continue
        if inspect.isabstract(obj):
            continue

        plugin_name = getattr(obj, "name", None)
        if not plugin_name:
            logger.warning(
                "plugin_without_name",
                cls=cls_name,
                module=module.__name__,
                base_class=base_class.__name__,
            )
            continue

        discovered.append(obj)

    return discovered


def discover_builtin_transforms() -> list[type[BaseTransform]]:
    """Discover all built-in transforms.

    Raises:
        ValueError: If two built-in transforms share a name
    """
    directory = Path(__file__).parent / "transforms"
    discovered = discover_plugins_in_directory(directory, TRANSFORMS_PACKAGE)

    seen: dict[str, type] = {}
    for cls in discovered:
        cls_name: str = cls.name  # type: ignore[attr-defined]
        if cls_name in seen:
            raise ValueError(
                f"Duplicate transform plugin name '{cls_name}': "
                f"found in both {seen[cls_name].__module__} and {cls.__module__}. "
                f"Plugin names must be unique."
            )
        seen[cls_name] = cls

    return list(seen.values())


def get_plugin_description(plugin_cls: type) -> str:
    """Return the first non-empty line of the plugin's docstring.

    Falls back to "<name> plugin" when the class has no docstring.
    """
    if plugin_cls.__doc__:
        for line in plugin_cls.__doc__.strip().split("\n"):
            cleaned = line.strip()
            if cleaned:
                return cleaned

    name = getattr(plugin_cls, "name", plugin_cls.__name__)
    return f"{name} plugin"


def create_dynamic_hookimpl(plugin_classes: list[type], hook_method_name: str) -> object:
    """Create a pluggy hookimpl object returning the given plugin classes.

    Args:
        plugin_classes: Plugin classes to register
        hook_method_name: Name of the hook method (e.g., "strata_get_transforms")

    Returns:
        Object instance with the decorated hook method
    """
    from strata.plugins.hookspecs import hookimpl

    class DynamicHookImpl:
        """Dynamically generated hook implementer."""

    def hook_method(self: Any) -> list[type]:
        return plugin_classes

    setattr(DynamicHookImpl, hook_method_name, hookimpl(hook_method))

    return DynamicHookImpl()
