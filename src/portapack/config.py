"""Build configuration defaults and project-level overrides."""

from __future__ import annotations

import dataclasses
import tomllib
from dataclasses import dataclass
from pathlib import Path

from portapack.errors import ManifestError, ValidationError

DEFAULT_DEPLOYABLE_ENTRIES = (
    "src",
    "pyproject.toml",
    "requirements.txt",
    "assets",
    "contracts",
)

# Compiled capability bindings: never bundled, shipped beside the bundle instead.
DEFAULT_NATIVE_PACKAGES = (
    "bcrypt",
    "keyring",
    "passlib",
)

# Packages that break static analysis by bundlers and packers.
DEFAULT_PROBLEMATIC_PACKAGES = (
    "web3",
    "websockets",
    "eth-account",
    "eth-abi",
    "eth-utils",
    "ckzg",
    "pycryptodome",
    "coincurve",
)

DEFAULT_ASSET_DIRS = ("assets", "contracts")

DEFAULT_CRUFT_FILE_PATTERNS = (
    "*.md",
    "*.rst",
    "CHANGELOG*",
    "HISTORY*",
    "README*",
    "*.pyi",
    "*.map",
    "*.c",
    "*.cc",
    "*.h",
    "*.pyx",
    "*.pxd",
    "Makefile",
    "*.pyc",
)

DEFAULT_CRUFT_DIR_NAMES = (
    "__pycache__",
    "test",
    "tests",
    "spec",
    "example",
    "examples",
    "demo",
    "docs",
    "documentation",
    "bench",
    "benchmark",
    "benchmarks",
)


@dataclass(frozen=True, slots=True)
class BuildConfig:
    project_root: Path
    app_name: str = "app"
    version: str = "0.0.0"
    workspace_name: str = "temp-build"
    output_root: str = "dist"
    archive_dir: str = "dist-portable"
    manifest_name: str = "pyproject.toml"
    lockfile_name: str = "requirements.txt"
    entry_script: str = "src/main.py"
    deployable_entries: tuple[str, ...] = DEFAULT_DEPLOYABLE_ENTRIES
    asset_dirs: tuple[str, ...] = DEFAULT_ASSET_DIRS
    native_packages: tuple[str, ...] = DEFAULT_NATIVE_PACKAGES
    problematic_packages: tuple[str, ...] = DEFAULT_PROBLEMATIC_PACKAGES
    pack_output_path: str = "dist-pack"
    pack_python_options: tuple[str, ...] = ("W ignore",)
    verify_args: tuple[str, ...] = ("--help",)
    verify_timeout: float = 10.0
    cruft_file_patterns: tuple[str, ...] = DEFAULT_CRUFT_FILE_PATTERNS
    cruft_dir_names: tuple[str, ...] = DEFAULT_CRUFT_DIR_NAMES

    @property
    def external_packages(self) -> tuple[str, ...]:
        """Packages marked external for bundlers: native bindings first."""
        return tuple(dict.fromkeys((*self.native_packages, *self.problematic_packages)))

    @property
    def asset_globs(self) -> tuple[str, ...]:
        globs = [f"{directory}/**/*" for directory in self.asset_dirs]
        globs.extend(f"site-packages/{package}/**/*" for package in self.native_packages)
        return tuple(globs)

    @property
    def entry_relpath(self) -> Path:
        """Entry script relative to ``src/``."""
        entry = Path(self.entry_script)
        if entry.parts and entry.parts[0] == "src":
            return Path(*entry.parts[1:])
        return entry

    @property
    def entry_module(self) -> str:
        return ".".join(self.entry_relpath.with_suffix("").parts)

    @classmethod
    def load(cls, project_root: str | Path) -> BuildConfig:
        """Load defaults overlaid with ``[tool.portapack.build]`` from the project manifest."""
        root = Path(project_root).resolve()
        manifest_path = root / "pyproject.toml"
        if not manifest_path.exists():
            return cls(project_root=root, app_name=root.name or "app")
        try:
            document = tomllib.loads(manifest_path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as exc:
            raise ManifestError(
                "Project manifest is not valid TOML.",
                hint=str(exc),
                context={"operation": "load_config", "path": str(manifest_path)},
            ) from exc

        project = document.get("project", {})
        overrides: dict[str, object] = {
            "app_name": str(project.get("name") or root.name or "app"),
            "version": str(project.get("version") or "0.0.0"),
        }
        build_table = document.get("tool", {}).get("portapack", {}).get("build", {})
        overrides.update(_parse_overrides(build_table, manifest_path))
        return cls(project_root=root, **overrides)


def _parse_overrides(table: dict[str, object], manifest_path: Path) -> dict[str, object]:
    known = {f.name: f for f in dataclasses.fields(BuildConfig)}
    parsed: dict[str, object] = {}
    for raw_key, value in table.items():
        key = raw_key.replace("-", "_")
        if key == "project_root" or key not in known:
            raise ValidationError(
                f"Unknown build setting `{raw_key}`.",
                hint="Remove the key from [tool.portapack.build].",
                context={"operation": "load_config", "path": str(manifest_path)},
            )
        parsed[key] = _coerce(raw_key, value, known[key].default, manifest_path)
    return parsed


def _coerce(raw_key: str, value: object, default: object, manifest_path: Path) -> object:
    """Check ``value`` against the kind of the field's default."""
    if isinstance(default, tuple):
        expected = "a list of strings"
        if isinstance(value, list) and all(isinstance(item, str) for item in value):
            return tuple(value)
    elif isinstance(default, float):
        expected = "a positive number"
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
            return float(value)
    else:
        expected = "a string"
        if isinstance(value, str) and value:
            return value
    raise ValidationError(
        f"Build setting `{raw_key}` must be {expected}.",
        hint="Fix the value in [tool.portapack.build].",
        context={"operation": "load_config", "path": str(manifest_path), "value": repr(value)},
    )


__all__ = [
    "BuildConfig",
    "DEFAULT_DEPLOYABLE_ENTRIES",
    "DEFAULT_NATIVE_PACKAGES",
    "DEFAULT_PROBLEMATIC_PACKAGES",
]
