"""Named capability descriptors and the provider registry.

A capability is resolved at most once per descriptor: the native binding is
tried first and, on any acquisition failure, the eagerly built fallback is
used for the rest of the process.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Literal

logger = logging.getLogger(__name__)

ProviderSource = Literal["native", "fallback", "unresolved"]


class CapabilityName(StrEnum):
    STRUCTURED_STORAGE = "structured-storage"
    SECRET_STORE = "secret-store"
    PASSWORD_HASHER = "password-hasher"


class CapabilityUnavailableError(ImportError):
    """Raised by native loaders when a binding imports but cannot be used."""

    code = "E_CAPABILITY"


@dataclass(slots=True)
class CapabilityDescriptor:
    name: CapabilityName
    module_name: str
    load_native: Callable[[], object]
    fallback: object
    _provider: object | None = field(default=None, init=False, repr=False)
    _source: ProviderSource = field(default="unresolved", init=False, repr=False)
    _module: object | None = field(default=None, init=False, repr=False)

    @property
    def source(self) -> ProviderSource:
        return self._source

    def resolve(self) -> object:
        if self._source != "unresolved":
            return self._provider
        try:
            provider = self.load_native()
        except Exception as exc:  # noqa: BLE001 - any binding failure selects the fallback
            self._provider = self.fallback
            self._source = "fallback"
            level = logging.CRITICAL if getattr(self.fallback, "insecure", False) else logging.WARNING
            logger.log(
                level,
                "%s native module not available (%s: %s), using %s fallback",
                self.module_name,
                type(exc).__name__,
                exc,
                _variant_label(self.fallback),
            )
            return self._provider
        self._provider = provider
        self._source = "native"
        logger.debug("%s resolved to native module %s", self.name.value, self.module_name)
        return self._provider

    def module(self) -> object:
        """The resolved provider shaped like ``module_name`` itself.

        Used when code imported the module directly instead of asking the
        registry; providers expose that shape through ``module_api()``.
        """
        if self._module is None:
            provider = self.resolve()
            module_api = getattr(provider, "module_api", None)
            self._module = module_api() if callable(module_api) else provider
        return self._module


class CapabilityRegistry:
    """Explicit lookup point for optional native capabilities."""

    def __init__(self, descriptors: Iterable[CapabilityDescriptor] = ()) -> None:
        self._descriptors: dict[CapabilityName, CapabilityDescriptor] = {}
        for descriptor in descriptors:
            self.register(descriptor)

    @property
    def names(self) -> tuple[CapabilityName, ...]:
        return tuple(self._descriptors)

    def register(self, descriptor: CapabilityDescriptor) -> None:
        self._descriptors[descriptor.name] = descriptor

    def descriptor(self, name: str) -> CapabilityDescriptor:
        try:
            return self._descriptors[CapabilityName(name)]
        except ValueError as exc:
            raise KeyError(f"Unknown capability: {name}") from exc

    def descriptor_for_module(self, module_name: str) -> CapabilityDescriptor | None:
        for descriptor in self._descriptors.values():
            if descriptor.module_name == module_name:
                return descriptor
        return None

    def resolve(self, name: str) -> object:
        return self.descriptor(name).resolve()

    def fallback(self, name: str) -> object:
        return self.descriptor(name).fallback

    def report(self) -> dict[str, dict[str, str]]:
        """Which provider each capability uses, including the hasher variant."""
        summary: dict[str, dict[str, str]] = {}
        for name, descriptor in self._descriptors.items():
            entry = {"module": descriptor.module_name, "source": descriptor.source}
            if descriptor.source != "unresolved":
                variant = getattr(descriptor.resolve(), "variant", None)
                if variant is not None:
                    entry["variant"] = str(variant)
            summary[name.value] = entry
        return summary


def _variant_label(provider: object) -> str:
    variant = getattr(provider, "variant", None)
    return str(variant) if variant is not None else "in-memory"


__all__ = [
    "CapabilityDescriptor",
    "CapabilityName",
    "CapabilityRegistry",
    "CapabilityUnavailableError",
    "ProviderSource",
]
