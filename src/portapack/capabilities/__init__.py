"""Native capability resolution with pure-software fallbacks.

This package imports only the standard library so that it can be copied
into packaged applications as-is.
"""

from .defaults import (
    build_default_registry,
    default_registry,
    password_hasher,
    resolve,
    secret_store,
    structured_storage,
)
from .hashing import (
    BcryptHasher,
    BcryptModuleAdapter,
    HasherVariant,
    IdentityHasher,
    PasslibHasher,
    PasswordHasher,
    build_fallback_hasher,
)
from .intercept import (
    install_import_fallbacks,
    intercept_imports,
    is_installed,
    uninstall_import_fallbacks,
)
from .registry import (
    CapabilityDescriptor,
    CapabilityName,
    CapabilityRegistry,
    CapabilityUnavailableError,
)
from .secret_store import Credential, KeyringSecretStore, MemorySecretStore, SecretStore
from .storage import (
    FallbackSqliteModule,
    MemoryDatabase,
    MemoryStorage,
    RunResult,
    SqliteStorage,
    StructuredStorage,
)

__all__ = [
    "BcryptHasher",
    "BcryptModuleAdapter",
    "CapabilityDescriptor",
    "CapabilityName",
    "CapabilityRegistry",
    "CapabilityUnavailableError",
    "Credential",
    "FallbackSqliteModule",
    "HasherVariant",
    "IdentityHasher",
    "KeyringSecretStore",
    "MemoryDatabase",
    "MemorySecretStore",
    "MemoryStorage",
    "PasslibHasher",
    "PasswordHasher",
    "RunResult",
    "SecretStore",
    "SqliteStorage",
    "StructuredStorage",
    "build_default_registry",
    "build_fallback_hasher",
    "default_registry",
    "install_import_fallbacks",
    "intercept_imports",
    "is_installed",
    "password_hasher",
    "resolve",
    "secret_store",
    "structured_storage",
    "uninstall_import_fallbacks",
]
