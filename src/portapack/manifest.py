"""Packaging configuration injected into the staged ``pyproject.toml``.

The ``[tool.portapack.pack]`` table tells the single-binary packer what to
build: entry script, target, output directory, interpreter options, asset
globs (including native-binding binaries, which packers drop otherwise) and
the packages it must not try to analyse.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError

from portapack.config import BuildConfig
from portapack.errors import ManifestError
from portapack.models import BuildOptions
from portapack.workspace import Workspace

TOOL_NAME = "portapack"
PACK_TABLE = "pack"


@dataclass(frozen=True, slots=True)
class PackConfig:
    scripts: str
    targets: tuple[str, ...]
    output_path: str
    options: tuple[str, ...] = ()
    assets: tuple[str, ...] = ()
    excluded: tuple[str, ...] = ()


def patch_manifest(workspace: Workspace, options: BuildOptions, config: BuildConfig) -> PackConfig:
    path = workspace.manifest_path
    document = _load_document(path)

    tool = _ensure_table(document, "tool", path)
    portapack = _ensure_table(tool, TOOL_NAME, path)
    existing = portapack.get(PACK_TABLE)
    previous_excluded: list[str] = []
    if existing is not None:
        previous_excluded = [str(item) for item in existing.get("excluded", [])]

    excluded = tuple(dict.fromkeys((*previous_excluded, *config.problematic_packages)))
    pack_config = PackConfig(
        scripts=config.entry_script,
        targets=(options.target.value,),
        output_path=config.pack_output_path,
        options=config.pack_python_options,
        assets=config.asset_globs,
        excluded=excluded,
    )

    pack = tomlkit.table()
    pack.add("scripts", pack_config.scripts)
    pack.add("targets", _array(pack_config.targets))
    pack.add("output-path", pack_config.output_path)
    pack.add("options", _array(pack_config.options))
    pack.add("assets", _array(pack_config.assets, multiline=True))
    pack.add("excluded", _array(pack_config.excluded, multiline=True))
    portapack[PACK_TABLE] = pack

    try:
        path.write_text(tomlkit.dumps(document), encoding="utf-8")
    except OSError as exc:
        raise ManifestError(
            "Failed to write the staged manifest.",
            context={"operation": "patch_manifest", "path": str(path), "error": str(exc)},
        ) from exc
    return pack_config


def read_pack_config(path: Path) -> PackConfig:
    try:
        document = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ManifestError(
            "Unable to read packaging configuration from the manifest.",
            hint="Run the manifest patch step before packing.",
            context={"operation": "read_pack_config", "path": str(path), "error": str(exc)},
        ) from exc
    table = document.get("tool", {}).get(TOOL_NAME, {}).get(PACK_TABLE)
    if not isinstance(table, dict) or "scripts" not in table:
        raise ManifestError(
            "Manifest has no [tool.portapack.pack] table.",
            hint="Run the manifest patch step before packing.",
            context={"operation": "read_pack_config", "path": str(path)},
        )
    return PackConfig(
        scripts=str(table["scripts"]),
        targets=tuple(str(item) for item in table.get("targets", [])),
        output_path=str(table.get("output-path", "dist-pack")),
        options=tuple(str(item) for item in table.get("options", [])),
        assets=tuple(str(item) for item in table.get("assets", [])),
        excluded=tuple(str(item) for item in table.get("excluded", [])),
    )


def _load_document(path: Path) -> tomlkit.TOMLDocument:
    if not path.exists():
        raise ManifestError(
            "Staged manifest is missing.",
            hint=f"Ensure {path.name} exists in the project root.",
            context={"operation": "patch_manifest", "path": str(path)},
        )
    try:
        return tomlkit.parse(path.read_text(encoding="utf-8"))
    except (OSError, TOMLKitError) as exc:
        raise ManifestError(
            "Staged manifest could not be parsed.",
            hint=str(exc),
            context={"operation": "patch_manifest", "path": str(path)},
        ) from exc


def _ensure_table(container: Any, key: str, path: Path) -> Any:
    table = container.get(key)
    if table is None:
        table = tomlkit.table(is_super_table=True)
        container[key] = table
        return table
    if not isinstance(table, dict):
        raise ManifestError(
            f"Manifest key `{key}` is not a table.",
            context={"operation": "patch_manifest", "path": str(path)},
        )
    return table


def _array(values: tuple[str, ...], *, multiline: bool = False) -> Any:
    array = tomlkit.array()
    array.extend(values)
    if multiline and values:
        array.multiline(True)
    return array


__all__ = ["PackConfig", "patch_manifest", "read_pack_config"]
