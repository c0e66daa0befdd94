import subprocess
import sys
from pathlib import Path

from portapack.shims import SHIM_PACKAGE, emit_capability_shims


def test_emission_copies_capability_package(tmp_path: Path) -> None:
    emission = emit_capability_shims(tmp_path / "patches")

    assert emission.package_dir == tmp_path / "patches" / SHIM_PACKAGE
    assert {"__init__", "registry", "storage", "secret_store", "hashing", "intercept", "defaults"} <= set(
        emission.modules
    )
    assert (emission.package_dir / "registry.py").exists()
    for script in (emission.sitecustomize, emission.runtime_hook):
        content = script.read_text(encoding="utf-8")
        assert f"import {SHIM_PACKAGE}" in content
        assert "install_import_fallbacks()" in content


def test_emission_replaces_previous_package(tmp_path: Path) -> None:
    destination = tmp_path / "patches"
    emit_capability_shims(destination)
    stale = destination / SHIM_PACKAGE / "stale.py"
    stale.write_text("", encoding="utf-8")

    emit_capability_shims(destination)

    assert not stale.exists()


def test_emitted_package_imports_standalone(tmp_path: Path) -> None:
    emission = emit_capability_shims(tmp_path / "patches")
    script = (
        f"import {SHIM_PACKAGE} as caps\n"
        "db = caps.MemoryStorage().open()\n"
        "print(db.all('select 1'))\n"
    )

    completed = subprocess.run(
        [sys.executable, "-S", "-c", script],
        cwd=str(emission.destination),
        capture_output=True,
        text=True,
        check=False,
    )

    assert completed.returncode == 0, completed.stderr
    assert completed.stdout.strip() == "[]"
