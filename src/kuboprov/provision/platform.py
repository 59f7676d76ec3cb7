# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kuboprov/provision/platform.py
from __future__ import annotations

import os
import platform as _platform
from dataclasses import dataclass
from enum import Enum
from typing import Dict

from .errors import UnsupportedPlatform


class OsFamily(str, Enum):
    LINUX = "linux"
    WINDOWS = "windows"


# raw machine string (lowercased) -> distributor arch name, per OS family
ARCH_TABLE: Dict[OsFamily, Dict[str, str]] = {
    OsFamily.LINUX: {
        "x86_64": "amd64",
        "amd64": "amd64",
        "aarch64": "arm64",
        "arm64": "arm64",
        "armv7l": "arm",
        "armv7": "arm",
        "armhf": "arm",
    },
    OsFamily.WINDOWS: {
        "amd64": "amd64",
        "x86_64": "amd64",
        "arm64": "arm64",
        "aarch64": "arm64",
    },
}


@dataclass(frozen=True)
class PlatformTarget:
    os_family: OsFamily
    arch_name: str

    @property
    def archive_ext(self) -> str:
        return "tar.gz" if self.os_family is OsFamily.LINUX else "zip"

    @property
    def binary_name(self) -> str:
        return "ipfs.exe" if self.os_family is OsFamily.WINDOWS else "ipfs"

    def __str__(self) -> str:
        return f"{self.os_family.value}-{self.arch_name}"


def resolve_platform(os_name: str | None, machine: str | None) -> PlatformTarget:
    """
    Map the host's raw OS name and CPU architecture to the distributor's naming.

    Never guesses: anything outside ARCH_TABLE is an UnsupportedPlatform.
    """
    raw_os = (os_name or "").strip().lower()
    try:
        family = OsFamily(raw_os)
    except ValueError:
        supported = ", ".join(f.value for f in OsFamily)
        raise UnsupportedPlatform(
            f"unsupported OS {os_name!r} (expected one of: {supported})"
        ) from None

    raw_arch = (machine or "").strip().lower()
    table = ARCH_TABLE[family]
    if raw_arch not in table:
        raise UnsupportedPlatform(
            f"unsupported architecture {machine!r} on {family.value} "
            f"(expected one of: {', '.join(sorted(table))})"
        )
    return PlatformTarget(os_family=family, arch_name=table[raw_arch])


def detect_platform() -> PlatformTarget:
    return resolve_platform(_platform.system(), _platform.machine())


def is_privileged() -> bool:
    """True when running as root (POSIX) or as an administrator (Windows)."""
    if hasattr(os, "geteuid"):
        return os.geteuid() == 0
    try:
        import ctypes

        return bool(ctypes.windll.shell32.IsUserAnAdmin())  # type: ignore[attr-defined]
    except (AttributeError, OSError):
        return False


def powershell_literal(value: object) -> str:
    """Render a value as a single-quoted PowerShell string literal."""
    return "'" + str(value).replace("'", "''") + "'"
