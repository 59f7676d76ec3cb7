# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kuboprov/provision/search_path.py
from __future__ import annotations

import logging
import os
import subprocess
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Protocol

from .errors import InstallFailed
from .platform import OsFamily, powershell_literal

log = logging.getLogger("kuboprov")

MARKER = "# Added by kuboprov"
SYSTEM_PROFILE_SCRIPT = Path("/etc/profile.d/kubo.sh")


def current_search_path() -> str:
    return os.environ.get("PATH", "")


class SearchPathScope(str, Enum):
    SYSTEM = "system"
    USER = "user"


class SearchPathRegistry(Protocol):
    scope: SearchPathScope

    def register(self, directory: Path) -> bool:
        """Add directory to the search path. Returns False if it was already there."""
        ...


class ProfileScriptRegistry:
    """
    POSIX: persist PATH through a shell profile script.

    system scope -> /etc/profile.d/kubo.sh, user scope -> ~/.profile.
    """

    def __init__(
        self,
        scope: SearchPathScope,
        *,
        current_path: str = "",
        profile_path: Optional[Path] = None,
        home: Optional[Path] = None,
    ):
        self.scope = scope
        self.current_path = current_path
        if profile_path is None:
            if scope is SearchPathScope.SYSTEM:
                profile_path = SYSTEM_PROFILE_SCRIPT
            else:
                profile_path = (home or Path.home()) / ".profile"
        self.profile_path = profile_path

    def register(self, directory: Path) -> bool:
        entry = str(directory)
        if entry in self.current_path:
            log.debug("%s already on PATH", entry)
            return False

        try:
            existing = self.profile_path.read_text(encoding="utf-8") if self.profile_path.exists() else ""
        except OSError as exc:
            raise InstallFailed(f"cannot read {self.profile_path}: {exc}") from exc
        if entry in existing:
            log.debug("%s already registered in %s", entry, self.profile_path)
            return False

        line = f'export PATH="$PATH:{entry}"'
        try:
            self.profile_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.profile_path, "a", encoding="utf-8") as f:
                if existing and not existing.endswith("\n"):
                    f.write("\n")
                f.write(f"{MARKER}\n{line}\n")
        except OSError as exc:
            raise InstallFailed(
                f"cannot register {entry} on the {self.scope.value} search path via {self.profile_path}: {exc}"
            ) from exc

        log.info("Added %s to %s search path (%s)", entry, self.scope.value, self.profile_path)
        return True


Runner = Callable[..., subprocess.CompletedProcess]


class WindowsEnvironmentRegistry:
    """Windows: persist the User or Machine `Path` value through PowerShell."""

    def __init__(self, scope: SearchPathScope, *, runner: Optional[Runner] = None):
        self.scope = scope
        self.runner = runner or subprocess.run

    @property
    def _target(self) -> str:
        return "Machine" if self.scope is SearchPathScope.SYSTEM else "User"

    def _powershell(self, script: str) -> str:
        cp = self.runner(
            ["powershell", "-NoProfile", "-NonInteractive", "-Command", script],
            check=False,
            text=True,
            capture_output=True,
        )
        if cp.returncode != 0:
            raise InstallFailed(
                f"PowerShell failed (rc={cp.returncode}) updating {self._target} Path: {(cp.stderr or '').strip()}"
            )
        return cp.stdout or ""

    def register(self, directory: Path) -> bool:
        entry = str(directory)
        current = self._powershell(
            f"[Environment]::GetEnvironmentVariable('Path', '{self._target}')"
        ).strip()
        if entry in current:
            log.debug("%s already on %s Path", entry, self._target)
            return False

        updated = f"{current};{entry}" if current else entry
        self._powershell(
            f"[Environment]::SetEnvironmentVariable('Path', {powershell_literal(updated)}, '{self._target}')"
        )
        log.info("Added %s to %s Path", entry, self._target)
        return True


def registry_for(
    os_family: OsFamily,
    scope: SearchPathScope,
    *,
    current_path: str = "",
    home: Optional[Path] = None,
) -> SearchPathRegistry:
    if os_family is OsFamily.WINDOWS:
        return WindowsEnvironmentRegistry(scope)
    return ProfileScriptRegistry(scope, current_path=current_path, home=home)
