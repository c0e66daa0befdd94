"""Emit the capability fallback layer into a packaged application.

The capability package only imports the standard library, so its sources
are copied under a standalone name and activated at interpreter start, by
``sitecustomize`` for launcher-based builds and by a runtime hook for
single-binary builds.
"""

from __future__ import annotations

import shutil
import textwrap
from dataclasses import dataclass
from pathlib import Path

SHIM_PACKAGE = "portapack_capabilities"
SITECUSTOMIZE = "sitecustomize.py"
RUNTIME_HOOK = "portapack_runtime_hook.py"

_CAPABILITIES_DIR = Path(__file__).resolve().parent / "capabilities"

ACTIVATION_SOURCE = textwrap.dedent(f"""\
    # Generated by portapack: substitute pure-software providers for
    # native capability modules that fail to import.
    try:
        import {SHIM_PACKAGE}
    except ImportError:
        pass
    else:
        {SHIM_PACKAGE}.install_import_fallbacks()
""")


@dataclass(frozen=True, slots=True)
class ShimEmission:
    destination: Path
    package_dir: Path
    sitecustomize: Path
    runtime_hook: Path
    modules: tuple[str, ...]


def emit_capability_shims(destination: Path) -> ShimEmission:
    package_dir = destination / SHIM_PACKAGE
    if package_dir.exists():
        shutil.rmtree(package_dir)
    package_dir.mkdir(parents=True)

    modules: list[str] = []
    for source in sorted(_CAPABILITIES_DIR.glob("*.py")):
        shutil.copy2(source, package_dir / source.name)
        modules.append(source.stem)

    sitecustomize = destination / SITECUSTOMIZE
    sitecustomize.write_text(ACTIVATION_SOURCE, encoding="utf-8")
    runtime_hook = destination / RUNTIME_HOOK
    runtime_hook.write_text(ACTIVATION_SOURCE, encoding="utf-8")

    return ShimEmission(
        destination=destination,
        package_dir=package_dir,
        sitecustomize=sitecustomize,
        runtime_hook=runtime_hook,
        modules=tuple(modules),
    )


__all__ = ["RUNTIME_HOOK", "SHIM_PACKAGE", "SITECUSTOMIZE", "ShimEmission", "emit_capability_shims"]
