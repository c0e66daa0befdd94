"""Process-wide default registry for the three built-in capabilities."""

from __future__ import annotations

from typing import cast

from .hashing import PasswordHasher, build_fallback_hasher, load_native_hasher
from .registry import CapabilityDescriptor, CapabilityName, CapabilityRegistry
from .secret_store import MemorySecretStore, SecretStore, load_native_secret_store
from .storage import MemoryStorage, StructuredStorage, load_native_storage

_default_registry: CapabilityRegistry | None = None


def build_default_registry() -> CapabilityRegistry:
    return CapabilityRegistry(
        [
            CapabilityDescriptor(
                name=CapabilityName.STRUCTURED_STORAGE,
                module_name="sqlite3",
                load_native=load_native_storage,
                fallback=MemoryStorage(),
            ),
            CapabilityDescriptor(
                name=CapabilityName.SECRET_STORE,
                module_name="keyring",
                load_native=load_native_secret_store,
                fallback=MemorySecretStore(),
            ),
            CapabilityDescriptor(
                name=CapabilityName.PASSWORD_HASHER,
                module_name="bcrypt",
                load_native=load_native_hasher,
                fallback=build_fallback_hasher(),
            ),
        ]
    )


def default_registry() -> CapabilityRegistry:
    global _default_registry
    if _default_registry is None:
        _default_registry = build_default_registry()
    return _default_registry


def resolve(name: str) -> object:
    return default_registry().resolve(name)


def structured_storage() -> StructuredStorage:
    return cast(StructuredStorage, resolve(CapabilityName.STRUCTURED_STORAGE))


def secret_store() -> SecretStore:
    return cast(SecretStore, resolve(CapabilityName.SECRET_STORE))


def password_hasher() -> PasswordHasher:
    return cast(PasswordHasher, resolve(CapabilityName.PASSWORD_HASHER))


__all__ = [
    "build_default_registry",
    "default_registry",
    "password_hasher",
    "resolve",
    "secret_store",
    "structured_storage",
]
