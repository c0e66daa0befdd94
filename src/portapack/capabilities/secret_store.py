"""Secret-store providers keyed by ``(service, account)``."""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from types import ModuleType
from typing import Protocol

from .registry import CapabilityUnavailableError


@dataclass(frozen=True, slots=True)
class Credential:
    account: str
    password: str


class SecretStore(Protocol):
    def get_password(self, service: str, account: str) -> str | None: ...

    def set_password(self, service: str, account: str, password: str) -> None: ...

    def delete_password(self, service: str, account: str) -> bool: ...

    def find_credentials(self, service: str) -> list[Credential]: ...


class MemorySecretStore:
    """Process-local secret store; nothing survives a restart."""

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], str] = {}

    def module_api(self) -> MemorySecretStore:
        # Already shaped like keyring's get/set/delete_password functions.
        return self

    def get_password(self, service: str, account: str) -> str | None:
        return self._entries.get((service, account))

    def set_password(self, service: str, account: str, password: str) -> None:
        self._entries[(service, account)] = password

    def delete_password(self, service: str, account: str) -> bool:
        return self._entries.pop((service, account), None) is not None

    def find_credentials(self, service: str) -> list[Credential]:
        return [
            Credential(account=account, password=password)
            for (entry_service, account), password in self._entries.items()
            if entry_service == service
        ]


class KeyringSecretStore:
    def __init__(self, module: ModuleType) -> None:
        self._keyring = module
        self._errors = importlib.import_module(f"{module.__name__}.errors")

    def module_api(self) -> ModuleType:
        return self._keyring

    def get_password(self, service: str, account: str) -> str | None:
        return self._keyring.get_password(service, account)

    def set_password(self, service: str, account: str, password: str) -> None:
        self._keyring.set_password(service, account, password)

    def delete_password(self, service: str, account: str) -> bool:
        try:
            self._keyring.delete_password(service, account)
        except self._errors.PasswordDeleteError:
            return False
        return True

    def find_credentials(self, service: str) -> list[Credential]:
        # Most keyring backends cannot enumerate; they expose one credential per service.
        credential = self._keyring.get_credential(service, None)
        if credential is None:
            return []
        return [Credential(account=credential.username, password=credential.password)]


def load_native_secret_store() -> KeyringSecretStore:
    module = importlib.import_module("keyring")
    fail_backend = importlib.import_module("keyring.backends.fail")
    if isinstance(module.get_keyring(), fail_backend.Keyring):
        raise CapabilityUnavailableError("keyring has no usable backend on this system")
    return KeyringSecretStore(module)


__all__ = [
    "Credential",
    "KeyringSecretStore",
    "MemorySecretStore",
    "SecretStore",
    "load_native_secret_store",
]
