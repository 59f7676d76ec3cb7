import pytest

from kuboprov.provision.errors import UnsupportedPlatform
from kuboprov.provision.fetcher import artifact_filename, build_download_url
from kuboprov.provision.platform import OsFamily, PlatformTarget, resolve_platform


@pytest.mark.parametrize(
    "os_name, machine, expected",
    [
        ("Linux", "x86_64", "kubo_v0.34.1_linux-amd64.tar.gz"),
        ("Linux", "aarch64", "kubo_v0.34.1_linux-arm64.tar.gz"),
        ("Linux", "armv7l", "kubo_v0.34.1_linux-arm.tar.gz"),
        ("Windows", "AMD64", "kubo_v0.34.1_windows-amd64.zip"),
        ("Windows", "ARM64", "kubo_v0.34.1_windows-arm64.zip"),
    ],
)
def test_known_platforms_map_to_artifact_names(os_name, machine, expected):
    target = resolve_platform(os_name, machine)
    assert artifact_filename("kubo", "v0.34.1", target) == expected


@pytest.mark.parametrize(
    "os_name, machine",
    [
        ("Linux", "riscv64"),
        ("Linux", "i686"),
        ("Linux", ""),
        ("Linux", None),
        ("Windows", "armv7l"),
        ("Darwin", "arm64"),
        ("", "x86_64"),
    ],
)
def test_unknown_platforms_raise(os_name, machine):
    with pytest.raises(UnsupportedPlatform) as exc:
        resolve_platform(os_name, machine)
    assert exc.value.stage == "platform"


def test_unsupported_arch_message_names_observed_value():
    with pytest.raises(UnsupportedPlatform, match="riscv64"):
        resolve_platform("linux", "riscv64")


def test_download_url_follows_distributor_layout():
    target = PlatformTarget(OsFamily.LINUX, "amd64")
    assert build_download_url("https://dist.ipfs.tech/", "kubo", "v0.34.1", target) == (
        "https://dist.ipfs.tech/kubo/v0.34.1/kubo_v0.34.1_linux-amd64.tar.gz"
    )


def test_binary_name_per_os():
    assert PlatformTarget(OsFamily.LINUX, "arm64").binary_name == "ipfs"
    assert PlatformTarget(OsFamily.WINDOWS, "amd64").binary_name == "ipfs.exe"
