import pytest

from portapack.errors import ErrorCode, ValidationError
from portapack.models import BuildOptions, default_output_name
from portapack.targets import TargetPlatform


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("linux-x64", TargetPlatform.LINUX_X64),
        ("LINUX-ARM64", TargetPlatform.LINUX_ARM64),
        ("win-x64", TargetPlatform.WIN_X64),
        ("windows-x64", TargetPlatform.WIN_X64),
        (" macos-arm64 ", TargetPlatform.MACOS_ARM64),
    ],
)
def test_parse_accepts_known_targets(value: str, expected: TargetPlatform) -> None:
    assert TargetPlatform.parse(value) is expected


def test_parse_rejects_unknown_target() -> None:
    with pytest.raises(ValidationError) as excinfo:
        TargetPlatform.parse("solaris-sparc")
    assert excinfo.value.code == ErrorCode.VALIDATION.value
    assert "linux-x64" in (excinfo.value.hint or "")


def test_target_properties() -> None:
    assert TargetPlatform.WIN_X64.is_windows
    assert TargetPlatform.WIN_X64.executable_suffix == ".exe"
    assert TargetPlatform.LINUX_X64.executable_suffix == ""
    assert TargetPlatform.MACOS_X64.os_family == "macos"
    assert TargetPlatform.LINUX_ARM64.pip_platform_tag == "manylinux_2_17_aarch64"
    assert TargetPlatform.WIN_X64.pip_platform_tag == "win_amd64"


def test_host_target_matches_host() -> None:
    host = TargetPlatform.host()
    if host is None:
        pytest.skip("Host platform is not a supported target.")
    assert host.matches_host()
    others = [target for target in TargetPlatform if target is not host]
    assert not any(target.matches_host() for target in others)


def test_windows_output_name_gets_exe_suffix() -> None:
    options = BuildOptions(target=TargetPlatform.WIN_X64, output_name="app-win")
    assert options.output_name == "app-win.exe"
    assert options.output_stem == "app-win"


def test_non_windows_output_name_drops_exe_suffix() -> None:
    options = BuildOptions(target=TargetPlatform.LINUX_X64, output_name="app.exe")
    assert options.output_name == "app"


def test_options_parse_string_target() -> None:
    options = BuildOptions(target="windows-x64", output_name="tool")  # type: ignore[arg-type]
    assert options.target is TargetPlatform.WIN_X64
    assert options.output_name == "tool.exe"


@pytest.mark.parametrize("name", ["../escape", "dir/app", "", ".", "..", "app name", "-flag"])
def test_unsafe_output_names_are_rejected(name: str) -> None:
    with pytest.raises(ValidationError):
        BuildOptions(target=TargetPlatform.LINUX_X64, output_name=name)


def test_default_output_names() -> None:
    assert default_output_name("app", TargetPlatform.LINUX_X64) == "app-linux"
    assert default_output_name("app", TargetPlatform.WIN_X64) == "app-win.exe"
    assert default_output_name("app", TargetPlatform.MACOS_ARM64) == "app-macos"
