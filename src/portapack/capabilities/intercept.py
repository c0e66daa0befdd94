"""Opt-in import interception for capability modules.

Wraps ``builtins.__import__`` so that an ``import sqlite3`` / ``import
keyring`` / ``import bcrypt`` statement that fails yields a module-shaped
view of the registry's provider instead of raising. The original import
always runs first, and any other failing import propagates untouched.
``importlib.import_module`` does not pass through ``__import__`` and is
therefore never intercepted.

Prefer resolving capabilities explicitly through the registry; this exists
for code that cannot be changed to do so.
"""

from __future__ import annotations

import builtins
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any

from .registry import CapabilityRegistry

_builtin_import = builtins.__import__
_original_import: Callable[..., Any] | None = None
_registry: CapabilityRegistry | None = None


def is_installed() -> bool:
    return _original_import is not None


def install_import_fallbacks(registry: CapabilityRegistry | None = None) -> CapabilityRegistry:
    """Install the import hook; repeated calls only swap the registry."""
    global _original_import, _registry
    if registry is None:
        from .defaults import default_registry

        registry = default_registry()
    _registry = registry
    if _original_import is None:
        _original_import = builtins.__import__
        builtins.__import__ = _import_with_fallbacks
    return registry


def uninstall_import_fallbacks() -> None:
    global _original_import, _registry
    if _original_import is None:
        return
    builtins.__import__ = _original_import
    _original_import = None
    _registry = None


@contextmanager
def intercept_imports(registry: CapabilityRegistry | None = None) -> Iterator[CapabilityRegistry]:
    global _registry
    was_installed = is_installed()
    previous = _registry
    active = install_import_fallbacks(registry)
    try:
        yield active
    finally:
        if was_installed:
            _registry = previous
        else:
            uninstall_import_fallbacks()


def _import_with_fallbacks(
    name: str,
    globals: Mapping[str, Any] | None = None,
    locals: Mapping[str, Any] | None = None,
    fromlist: Sequence[str] | None = (),
    level: int = 0,
) -> Any:
    original = _original_import or _builtin_import
    try:
        return original(name, globals, locals, fromlist, level)
    except ImportError:
        registry = _registry
        if level != 0 or registry is None:
            raise
        descriptor = registry.descriptor_for_module(name)
        if descriptor is None:
            raise
        return descriptor.module()


__all__ = [
    "install_import_fallbacks",
    "intercept_imports",
    "is_installed",
    "uninstall_import_fallbacks",
]
