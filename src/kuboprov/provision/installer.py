# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kuboprov/provision/installer.py
from __future__ import annotations

import logging
import os
import shutil
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from .errors import BinaryNotFound, InstallFailed
from .extract import Extractor, extract_archive, extraction_strategies
from .fetcher import ArtifactLocation
from .platform import OsFamily, PlatformTarget
from .search_path import SearchPathRegistry, SearchPathScope
from ..observers.dispatcher import EventBus
from ..observers.events import SearchPathUpdated

log = logging.getLogger("kuboprov")

# top-level folder inside every kubo release archive
ARCHIVE_ROOT = "kubo"


@dataclass(frozen=True)
class InstallTarget:
    binary_path: Path
    install_dir: Path
    search_path_scope: SearchPathScope


def default_install_dir(
    os_family: OsFamily,
    privileged: bool,
    *,
    home: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Path:
    home = home or Path.home()
    env = os.environ if env is None else env
    if os_family is OsFamily.WINDOWS:
        if privileged:
            return Path(env.get("ProgramFiles", r"C:\Program Files")) / "kubo"
        local = env.get("LOCALAPPDATA") or str(home / "AppData" / "Local")
        return Path(local) / "Programs" / "kubo"
    if privileged:
        return Path("/usr/local/bin")
    return home / ".local" / "bin"


def choose_install_target(
    target: PlatformTarget,
    privileged: bool,
    *,
    install_dir: Optional[Path] = None,
    home: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> InstallTarget:
    """Pick the install location and search path scope once, from the privilege level."""
    scope = SearchPathScope.SYSTEM if privileged else SearchPathScope.USER
    directory = Path(install_dir).expanduser() if install_dir else default_install_dir(
        target.os_family, privileged, home=home, env=env
    )
    return InstallTarget(
        binary_path=directory / target.binary_name,
        install_dir=directory,
        search_path_scope=scope,
    )


def _listing(directory: Path) -> str:
    if not directory.is_dir():
        return "<missing>"
    names = sorted(p.name + ("/" if p.is_dir() else "") for p in directory.iterdir())
    return ", ".join(names) if names else "<empty>"


class ArchiveInstaller:
    """
    Extract a release archive, locate the daemon binary and place it in the
    install directory, then register that directory on the search path.
    """

    def __init__(
        self,
        target: PlatformTarget,
        install_target: InstallTarget,
        registry: SearchPathRegistry,
        *,
        strategies: Optional[Sequence[Extractor]] = None,
        bus: Optional[EventBus] = None,
        run_ctx: Optional[Dict] = None,
    ):
        if registry.scope is not install_target.search_path_scope:
            raise InstallFailed(
                f"search path scope mismatch: install target uses {install_target.search_path_scope.value}, "
                f"registry uses {registry.scope.value}"
            )
        self.target = target
        self.install_target = install_target
        self.registry = registry
        self.strategies: List[Extractor] = list(strategies) if strategies is not None else extraction_strategies(target)
        self.bus = bus or EventBus()
        self.run_ctx = run_ctx

    def extract(self, archive: Path, destination: Path) -> str:
        try:
            if destination.is_dir() and not destination.is_symlink():
                shutil.rmtree(destination)
            elif destination.exists() or destination.is_symlink():
                destination.unlink()
        except OSError as exc:
            raise InstallFailed(f"could not clear extraction directory {destination}: {exc}") from exc
        return extract_archive(archive, destination, self.strategies, bus=self.bus, run_ctx=self.run_ctx)

    def locate_binary(self, extracted: Path) -> Path:
        expected = extracted / ARCHIVE_ROOT / self.target.binary_name
        if expected.is_file():
            return expected

        detail = f"expected {expected}; found in {extracted}: {_listing(extracted)}"
        if (extracted / ARCHIVE_ROOT).is_dir():
            detail += f"; in {extracted / ARCHIVE_ROOT}: {_listing(extracted / ARCHIVE_ROOT)}"
        raise BinaryNotFound(detail)

    def place_binary(self, source: Path) -> Path:
        dest = self.install_target.binary_path
        try:
            self.install_target.install_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, dest)
            if self.target.os_family is not OsFamily.WINDOWS:
                os.chmod(dest, stat.S_IRWXU | stat.S_IRGRP | stat.S_IXGRP | stat.S_IROTH | stat.S_IXOTH)
        except OSError as exc:
            raise InstallFailed(f"could not copy {source} to {dest}: {exc}") from exc
        log.info("Installed %s", dest)
        return dest

    def install(self, artifact: ArtifactLocation, work_dir: Path) -> InstallTarget:
        self.extract(artifact.local_path, work_dir)
        binary = self.locate_binary(work_dir)
        self.place_binary(binary)

        changed = self.registry.register(self.install_target.install_dir)
        if self.run_ctx:
            self.bus.emit(
                SearchPathUpdated(
                    directory=str(self.install_target.install_dir),
                    scope=self.install_target.search_path_scope.value,
                    changed=changed,
                    **self.run_ctx,
                )
            )
        return self.install_target
