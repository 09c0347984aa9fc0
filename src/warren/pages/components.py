"""Picking the component a page or layout module exports."""

import inspect
from collections.abc import Callable
from types import ModuleType
from typing import Any

COMPONENT_EXPORTS = ("default", "page")

# Module-level names with a fixed meaning that are never the component.
_NOT_COMPONENTS = frozenset({"get_metadata", "metadata", "middleware"})


def resolve_component(module: ModuleType) -> Callable[..., Any] | None:
    """The module's component, or ``None`` if it exports none.

    Tries ``default``, then ``page``, then the first public function
    defined in the module itself (imported helpers don't count).
    """
    for name in COMPONENT_EXPORTS:
        candidate = getattr(module, name, None)
        if callable(candidate):
            return candidate

    for name, value in vars(module).items():
        if name.startswith("_") or name in _NOT_COMPONENTS:
            continue
        if inspect.isfunction(value) and value.__module__ == module.__name__:
            return value
    return None


def describe_exports(module: ModuleType) -> str:
    """A one-line summary of a module's public names, for diagnostics."""
    public = sorted(name for name in vars(module) if not name.startswith("_"))
    return ", ".join(public) or "(none)"
