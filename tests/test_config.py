from pathlib import Path

import pytest

from portapack.config import DEFAULT_NATIVE_PACKAGES, BuildConfig
from portapack.errors import ManifestError, ValidationError


def test_load_reads_project_metadata(project: Path) -> None:
    config = BuildConfig.load(project)
    assert config.app_name == "app"
    assert config.version == "1.2.3"
    assert config.project_root == project.resolve()
    assert config.entry_module == "main"
    assert config.native_packages == DEFAULT_NATIVE_PACKAGES


def test_load_without_manifest_uses_directory_name(tmp_path: Path) -> None:
    root = tmp_path / "service"
    root.mkdir()
    config = BuildConfig.load(root)
    assert config.app_name == "service"
    assert config.version == "0.0.0"


def test_build_table_overrides_defaults(project: Path) -> None:
    manifest = project / "pyproject.toml"
    manifest.write_text(
        manifest.read_text(encoding="utf-8")
        + '\n[tool.portapack.build]\nentry-script = "src/app/cli.py"\nverify-timeout = 3\n'
        + 'problematic-packages = ["grpcio"]\n',
        encoding="utf-8",
    )
    config = BuildConfig.load(project)
    assert config.entry_script == "src/app/cli.py"
    assert config.entry_module == "app.cli"
    assert config.verify_timeout == 3.0
    assert config.problematic_packages == ("grpcio",)
    assert config.external_packages == (*DEFAULT_NATIVE_PACKAGES, "grpcio")


def test_unknown_build_setting_is_rejected(project: Path) -> None:
    manifest = project / "pyproject.toml"
    manifest.write_text(
        manifest.read_text(encoding="utf-8") + "\n[tool.portapack.build]\ncolour = true\n",
        encoding="utf-8",
    )
    with pytest.raises(ValidationError, match="colour"):
        BuildConfig.load(project)


def test_invalid_manifest_raises_manifest_error(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text("[project\n", encoding="utf-8")
    with pytest.raises(ManifestError):
        BuildConfig.load(tmp_path)


def test_asset_globs_include_native_package_binaries(tmp_path: Path) -> None:
    config = BuildConfig(project_root=tmp_path)
    assert "assets/**/*" in config.asset_globs
    assert "site-packages/bcrypt/**/*" in config.asset_globs


@pytest.mark.parametrize(
    ("setting", "message"),
    [
        ('verify-timeout = "soon"', "a positive number"),
        ("verify-timeout = 0", "a positive number"),
        ("entry-script = 5", "a string"),
        ('problematic-packages = "grpcio"', "a list of strings"),
        ("verify-args = [1, 2]", "a list of strings"),
    ],
)
def test_mistyped_build_setting_is_rejected(project: Path, setting: str, message: str) -> None:
    manifest = project / "pyproject.toml"
    manifest.write_text(
        manifest.read_text(encoding="utf-8") + f"\n[tool.portapack.build]\n{setting}\n",
        encoding="utf-8",
    )

    with pytest.raises(ValidationError, match=message) as excinfo:
        BuildConfig.load(project)

    assert excinfo.value.context["operation"] == "load_config"
