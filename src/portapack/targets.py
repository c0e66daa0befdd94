"""Target platform resolution.

A target is written the way packaging tools spell it (``linux-x64``,
``win-x64``, ``macos-arm64``). Each target knows the pip ``--platform`` tag
used for cross-target wheel installs and whether the running host can build
native single-file binaries for it.
"""

from __future__ import annotations

import platform
import sys
from enum import StrEnum
from typing import Literal

from portapack.errors import ValidationError

OsFamily = Literal["linux", "windows", "macos"]

_PIP_PLATFORM_TAGS: dict[str, str] = {
    "linux-x64": "manylinux_2_17_x86_64",
    "linux-arm64": "manylinux_2_17_aarch64",
    "win-x64": "win_amd64",
    "macos-x64": "macosx_10_9_x86_64",
    "macos-arm64": "macosx_11_0_arm64",
}

_MACHINE_ARCH: dict[str, str] = {
    "x86_64": "x64",
    "amd64": "x64",
    "aarch64": "arm64",
    "arm64": "arm64",
}


class TargetPlatform(StrEnum):
    LINUX_X64 = "linux-x64"
    LINUX_ARM64 = "linux-arm64"
    WIN_X64 = "win-x64"
    MACOS_X64 = "macos-x64"
    MACOS_ARM64 = "macos-arm64"

    @classmethod
    def parse(cls, value: str) -> TargetPlatform:
        normalized = value.strip().lower()
        # Older invocations spell Windows out in full.
        if normalized.startswith("windows-"):
            normalized = "win-" + normalized.removeprefix("windows-")
        try:
            return cls(normalized)
        except ValueError as exc:
            raise ValidationError(
                f"Unsupported target platform {value!r}.",
                hint="Available targets: " + ", ".join(member.value for member in cls),
                context={"operation": "parse_target", "target": value},
            ) from exc

    @classmethod
    def host(cls) -> TargetPlatform | None:
        """Return the target describing the running machine, if supported."""
        if sys.platform.startswith("linux"):
            family = "linux"
        elif sys.platform == "win32":
            family = "win"
        elif sys.platform == "darwin":
            family = "macos"
        else:
            return None
        arch = _MACHINE_ARCH.get(platform.machine().lower())
        if arch is None:
            return None
        try:
            return cls(f"{family}-{arch}")
        except ValueError:
            return None

    @property
    def os_family(self) -> OsFamily:
        if self.value.startswith("win-"):
            return "windows"
        if self.value.startswith("macos-"):
            return "macos"
        return "linux"

    @property
    def is_windows(self) -> bool:
        return self.os_family == "windows"

    @property
    def short_name(self) -> str:
        """Suffix used in default artifact names (``linux``, ``win``, ``macos``)."""
        return {"linux": "linux", "windows": "win", "macos": "macos"}[self.os_family]

    @property
    def executable_suffix(self) -> str:
        return ".exe" if self.is_windows else ""

    @property
    def pip_platform_tag(self) -> str:
        return _PIP_PLATFORM_TAGS[self.value]

    def matches_host(self) -> bool:
        return self is TargetPlatform.host()


__all__ = ["OsFamily", "TargetPlatform"]
