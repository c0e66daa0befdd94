import tarfile
from pathlib import Path

import pytest

from portapack.config import BuildConfig
from portapack.distribution import package_distribution, strip_cruft
from portapack.errors import WorkspaceError
from portapack.models import BuildMethod, BuildResult
from portapack.targets import TargetPlatform


def _basic_result(tmp_path: Path, target: TargetPlatform = TargetPlatform.LINUX_X64) -> BuildResult:
    output_dir = tmp_path / "dist" / "app-linux"
    (output_dir / "src").mkdir(parents=True)
    (output_dir / "src" / "main.py").write_text("print('hi')\n", encoding="utf-8")
    package = output_dir / "lib" / "purepkg"
    (package / "tests").mkdir(parents=True)
    (package / "tests" / "test_core.py").write_text("", encoding="utf-8")
    (package / "__init__.py").write_text("", encoding="utf-8")
    (package / "README.md").write_text("docs", encoding="utf-8")
    (package / "core.pyi").write_text("", encoding="utf-8")
    return BuildResult(
        target=target,
        output_name="app-linux",
        method=BuildMethod.BASIC,
        artifact_path=tmp_path / "app-linux",
        output_dir=output_dir,
    )


def test_archive_layout_and_cruft_removal(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SOURCE_DATE_EPOCH", "1700000000")
    config = BuildConfig(project_root=tmp_path, app_name="app", version="1.2.3")

    archive = package_distribution(_basic_result(tmp_path), config=config, destination=tmp_path / "out")

    assert archive == tmp_path / "out" / "app-linux-x64-v1.2.3.tar.gz"
    assert not (tmp_path / "out" / "app-linux-x64").exists()
    with tarfile.open(archive, "r:gz") as tar:
        members = tar.getmembers()
        names = [member.name for member in members]
        launcher = tar.extractfile("app-linux-x64/app")
        assert launcher is not None
        launcher_text = launcher.read().decode("utf-8")

    assert "app-linux-x64/runtime/src/main.py" in names
    assert "app-linux-x64/runtime/lib/purepkg/__init__.py" in names
    assert not any("tests" in name or name.endswith((".md", ".pyi")) for name in names)
    assert all(member.mtime == 1700000000 for member in members)
    assert all(member.uid == 0 and member.gid == 0 for member in members)
    assert 'cd "$(dirname "$0")/runtime"' in launcher_text
    assert "python3 src/main.py" in launcher_text


def test_archives_are_reproducible(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SOURCE_DATE_EPOCH", "0")
    config = BuildConfig(project_root=tmp_path, app_name="app", version="1.0.0")
    result = _basic_result(tmp_path)

    first = package_distribution(result, config=config, destination=tmp_path / "a").read_bytes()
    second = package_distribution(result, config=config, destination=tmp_path / "b").read_bytes()

    assert first == second


def test_windows_archive_gets_batch_launcher(tmp_path: Path) -> None:
    config = BuildConfig(project_root=tmp_path, app_name="app", version="2.0.0")
    result = _basic_result(tmp_path, TargetPlatform.WIN_X64)

    archive = package_distribution(result, config=config, destination=tmp_path / "out")

    with tarfile.open(archive, "r:gz") as tar:
        launcher = tar.extractfile("app-win-x64/app.bat")
        assert launcher is not None
        assert b"@echo off" in launcher.read()


def test_packed_binary_is_shipped_as_is(tmp_path: Path) -> None:
    binary = tmp_path / "app-linux"
    binary.write_bytes(b"\x7fELF")
    binary.chmod(0o755)
    result = BuildResult(
        target=TargetPlatform.LINUX_X64,
        output_name="app-linux",
        method=BuildMethod.PACK,
        artifact_path=binary,
        output_dir=None,
    )
    config = BuildConfig(project_root=tmp_path, app_name="app", version="1.0.0")

    archive = package_distribution(result, config=config, destination=tmp_path / "out")

    with tarfile.open(archive, "r:gz") as tar:
        packed = tar.extractfile("app-linux-x64/runtime/app-linux")
        assert packed is not None
        assert packed.read() == b"\x7fELF"
        launcher = tar.extractfile("app-linux-x64/app")
        assert launcher is not None
        assert b"exec ./app-linux" in launcher.read()


def test_missing_output_directory_is_an_error(tmp_path: Path) -> None:
    result = BuildResult(
        target=TargetPlatform.LINUX_X64,
        output_name="app-linux",
        method=BuildMethod.BUNDLE,
        artifact_path=tmp_path / "app-linux",
        output_dir=tmp_path / "missing",
    )
    config = BuildConfig(project_root=tmp_path)

    with pytest.raises(WorkspaceError):
        package_distribution(result, config=config, destination=tmp_path / "out")
    assert not (tmp_path / "out" / "app-linux-x64").exists()


def test_strip_cruft_counts_removed_entries(tmp_path: Path) -> None:
    (tmp_path / "pkg" / "docs").mkdir(parents=True)
    (tmp_path / "pkg" / "CHANGELOG.rst").write_text("", encoding="utf-8")
    (tmp_path / "pkg" / "module.py").write_text("", encoding="utf-8")

    removed = strip_cruft(tmp_path, file_patterns=("CHANGELOG*",), dir_names=("docs",))

    assert removed == 2
    assert (tmp_path / "pkg" / "module.py").exists()
