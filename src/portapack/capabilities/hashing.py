"""Password hashers as a tagged variant: native, pure software, insecure identity.

``IdentityHasher`` is the last resort when no hashing library exists at all:
the hash of a value is the value itself and comparison is plain equality.
It keeps the host application running and is never suitable for production.
Selecting it is logged at CRITICAL and visible through ``variant``.
"""

from __future__ import annotations

import asyncio
import importlib
from enum import StrEnum
from types import ModuleType
from typing import Any, Protocol

DEFAULT_ROUNDS = 10

# passlib's own default for pbkdf2_sha256 matches bcrypt cost 10.
_PBKDF2_BASE_ROUNDS = 29000
_PBKDF2_MIN_ROUNDS = 1000


class HasherVariant(StrEnum):
    NATIVE = "native"
    PURE_SOFTWARE = "pure-software"
    INSECURE_IDENTITY = "insecure-identity"


class PasswordHasher(Protocol):
    variant: HasherVariant
    insecure: bool

    def gen_salt_sync(self, rounds: int = DEFAULT_ROUNDS) -> str: ...

    def hash_sync(self, data: str, salt_or_rounds: str | int = DEFAULT_ROUNDS) -> str: ...

    def compare_sync(self, data: str, hashed: str) -> bool: ...

    async def gen_salt(self, rounds: int = DEFAULT_ROUNDS) -> str: ...

    async def hash(self, data: str, salt_or_rounds: str | int = DEFAULT_ROUNDS) -> str: ...

    async def compare(self, data: str, hashed: str) -> bool: ...


class AsyncHashingMixin:
    """Async front-ends that run the synchronous primitives off the event loop."""

    def gen_salt_sync(self, rounds: int = DEFAULT_ROUNDS) -> str:
        raise NotImplementedError

    def hash_sync(self, data: str, salt_or_rounds: str | int = DEFAULT_ROUNDS) -> str:
        raise NotImplementedError

    def compare_sync(self, data: str, hashed: str) -> bool:
        raise NotImplementedError

    async def gen_salt(self, rounds: int = DEFAULT_ROUNDS) -> str:
        return await asyncio.to_thread(self.gen_salt_sync, rounds)

    async def hash(self, data: str, salt_or_rounds: str | int = DEFAULT_ROUNDS) -> str:
        return await asyncio.to_thread(self.hash_sync, data, salt_or_rounds)

    async def compare(self, data: str, hashed: str) -> bool:
        return await asyncio.to_thread(self.compare_sync, data, hashed)


class BcryptHasher(AsyncHashingMixin):
    variant = HasherVariant.NATIVE
    insecure = False

    def __init__(self, module: ModuleType) -> None:
        self._bcrypt = module

    def module_api(self) -> ModuleType:
        return self._bcrypt

    def gen_salt_sync(self, rounds: int = DEFAULT_ROUNDS) -> str:
        return self._bcrypt.gensalt(rounds).decode("ascii")

    def hash_sync(self, data: str, salt_or_rounds: str | int = DEFAULT_ROUNDS) -> str:
        salt = (
            self.gen_salt_sync(salt_or_rounds)
            if isinstance(salt_or_rounds, int)
            else salt_or_rounds
        )
        return self._bcrypt.hashpw(data.encode("utf-8"), salt.encode("ascii")).decode("ascii")

    def compare_sync(self, data: str, hashed: str) -> bool:
        try:
            return self._bcrypt.checkpw(data.encode("utf-8"), hashed.encode("ascii"))
        except ValueError:
            return False


class PasslibHasher(AsyncHashingMixin):
    """Salted PBKDF2-SHA256 from passlib; no compiled code involved.

    Salts are passlib configuration strings (``$pbkdf2-sha256$<rounds>$<salt>``)
    so that ``hash_sync(data, gen_salt_sync())`` is reproducible.
    """

    variant = HasherVariant.PURE_SOFTWARE
    insecure = False

    def __init__(self, handler: Any, binary: ModuleType) -> None:
        self._handler = handler
        self._binary = binary

    def module_api(self) -> BcryptModuleAdapter:
        return BcryptModuleAdapter(self)

    def gen_salt_sync(self, rounds: int = DEFAULT_ROUNDS) -> str:
        sample = self._handler.using(rounds=_pbkdf2_rounds(rounds)).hash("")
        return sample.rsplit("$", 1)[0]

    def hash_sync(self, data: str, salt_or_rounds: str | int = DEFAULT_ROUNDS) -> str:
        if isinstance(salt_or_rounds, int):
            return self._handler.using(rounds=_pbkdf2_rounds(salt_or_rounds)).hash(data)
        rounds, salt = _parse_config(salt_or_rounds)
        salt_bytes = self._binary.ab64_decode(salt.encode("ascii"))
        return self._handler.using(rounds=rounds, salt=salt_bytes).hash(data)

    def compare_sync(self, data: str, hashed: str) -> bool:
        try:
            return bool(self._handler.verify(data, hashed))
        except ValueError:
            return False


class IdentityHasher(AsyncHashingMixin):
    """NOT A HASH. ``hash_sync(x) == x``; ``compare_sync`` is string equality."""

    variant = HasherVariant.INSECURE_IDENTITY
    insecure = True

    def module_api(self) -> BcryptModuleAdapter:
        return BcryptModuleAdapter(self)

    def gen_salt_sync(self, rounds: int = DEFAULT_ROUNDS) -> str:
        return "fallback-salt"

    def hash_sync(self, data: str, salt_or_rounds: str | int = DEFAULT_ROUNDS) -> str:
        return data

    def compare_sync(self, data: str, hashed: str) -> bool:
        return data == hashed


class BcryptModuleAdapter:
    """``bcrypt``-shaped functions over a pure-software hasher.

    Handed to code that wrote ``import bcrypt`` when the binding is missing.
    Like bcrypt, it takes and returns bytes and rejects ``str`` input.
    """

    def __init__(self, hasher: PasswordHasher) -> None:
        self._hasher = hasher

    def gensalt(self, rounds: int = 12, prefix: bytes = b"2b") -> bytes:
        return self._hasher.gen_salt_sync(rounds).encode("utf-8")

    def hashpw(self, password: bytes, salt: bytes) -> bytes:
        return self._hasher.hash_sync(_text(password), _text(salt)).encode("utf-8")

    def checkpw(self, password: bytes, hashed_password: bytes) -> bool:
        return self._hasher.compare_sync(_text(password), _text(hashed_password))


def _text(value: bytes) -> str:
    if isinstance(value, str):
        raise TypeError("Strings must be encoded before hashing")
    return bytes(value).decode("utf-8")


def load_native_hasher() -> BcryptHasher:
    return BcryptHasher(importlib.import_module("bcrypt"))


def build_fallback_hasher() -> PasslibHasher | IdentityHasher:
    """Pick the best hasher that needs no compiled extension."""
    try:
        handler = importlib.import_module("passlib.hash").pbkdf2_sha256
        binary = importlib.import_module("passlib.utils.binary")
    except Exception:  # noqa: BLE001 - a broken passlib install means no pure hasher
        return IdentityHasher()
    return PasslibHasher(handler, binary)


def _pbkdf2_rounds(cost: int) -> int:
    return max(_PBKDF2_MIN_ROUNDS, _PBKDF2_BASE_ROUNDS * 2**cost // 2**DEFAULT_ROUNDS)


def _parse_config(config: str) -> tuple[int, str]:
    parts = config.split("$")
    # "", "pbkdf2-sha256", rounds, salt[, checksum]
    if len(parts) < 4 or parts[1] != "pbkdf2-sha256" or not parts[2].isdigit():
        raise ValueError(f"Invalid pbkdf2-sha256 salt: {config!r}")
    return int(parts[2]), parts[3]


__all__ = [
    "BcryptHasher",
    "BcryptModuleAdapter",
    "DEFAULT_ROUNDS",
    "HasherVariant",
    "IdentityHasher",
    "PasslibHasher",
    "PasswordHasher",
    "build_fallback_hasher",
    "load_native_hasher",
]
