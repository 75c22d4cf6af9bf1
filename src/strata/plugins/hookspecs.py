# src/strata/plugins/hookspecs.py
"""pluggy hook specifications for strata plugins.

Plugins implement these hooks to register themselves with the framework.
The plugin manager calls these hooks during registration.

Usage (implementing a plugin):
    from strata.plugins.hookspecs import hookimpl

    class MyPlugin:
        @hookimpl  # NOT @hookspec - that's for defining specs
        def strata_get_transforms(self):
            return [MyTransform]
"""

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from strata.plugins.base import BaseTransform

PROJECT_NAME = "strata"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)

hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class StrataTransformSpec:
    """Hook specifications for transform plugins."""

    @hookspec
    def strata_get_transforms(self) -> list[type["BaseTransform"]]:  # type: ignore[empty-body]
        """Return transform plugin classes.

        Returns:
            List of Transform plugin classes (not instances)
        """
