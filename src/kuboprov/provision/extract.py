# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kuboprov/provision/extract.py
from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tarfile
import zipfile
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence

from .errors import InstallFailed
from .platform import OsFamily, PlatformTarget, powershell_literal
from ..observers.dispatcher import EventBus
from ..observers.events import ExtractionAttempt

log = logging.getLogger("kuboprov")


class Extractor(Protocol):
    name: str

    def available(self) -> bool: ...

    def extract(self, archive: Path, destination: Path) -> None: ...


def _check_members(names: Sequence[str], destination: Path) -> None:
    root = os.path.realpath(destination)
    for name in names:
        target = os.path.realpath(os.path.join(root, name))
        if target != root and not target.startswith(root + os.sep):
            raise InstallFailed(f"refusing to extract {name!r}: path traversal detected")


def _check_tar_members(members: Sequence[tarfile.TarInfo], destination: Path) -> None:
    """Pre-extraction check for interpreters without tarfile's data filter.

    Release archives only hold regular files and directories, so links and
    device nodes are refused outright.
    """
    _check_members([m.name for m in members], destination)
    for member in members:
        if member.issym() or member.islnk():
            raise InstallFailed(
                f"refusing to extract {member.name!r}: link to {member.linkname!r} is not allowed"
            )
        if not (member.isfile() or member.isdir()):
            raise InstallFailed(f"refusing to extract {member.name!r}: unsupported member type")


def _has_data_filter() -> bool:
    return hasattr(tarfile, "data_filter")


class TarfileExtractor:
    name = "tarfile"

    def available(self) -> bool:
        return True

    def extract(self, archive: Path, destination: Path) -> None:
        with tarfile.open(archive, "r:gz") as tf:
            if _has_data_filter():
                try:
                    tf.extractall(destination, filter="data")
                except tarfile.FilterError as exc:
                    raise InstallFailed(f"refusing to extract {archive.name}: {exc}") from exc
            else:
                _check_tar_members(tf.getmembers(), destination)
                tf.extractall(destination)


class ZipfileExtractor:
    name = "zipfile"

    def available(self) -> bool:
        return True

    def extract(self, archive: Path, destination: Path) -> None:
        with zipfile.ZipFile(archive) as zf:
            _check_members(zf.namelist(), destination)
            zf.extractall(destination)


class ShellTarExtractor:
    name = "tar"

    def available(self) -> bool:
        return shutil.which("tar") is not None

    def _tar(self, args: List[str]) -> str:
        cp = subprocess.run(["tar"] + args, check=False, text=True, capture_output=True)
        if cp.returncode != 0:
            raise RuntimeError(f"tar failed (rc={cp.returncode}): {cp.stderr.strip()}")
        return cp.stdout

    def extract(self, archive: Path, destination: Path) -> None:
        names = [n for n in self._tar(["-tzf", str(archive)]).splitlines() if n]
        _check_members(names, destination)
        # verbose listings start with the mode string; anything but a file or dir is refused
        for line in self._tar(["-tvzf", str(archive)]).splitlines():
            if line and line[0] not in "-d":
                raise InstallFailed(f"refusing to extract {archive.name}: unsupported member {line.strip()!r}")
        self._tar(["-xzf", str(archive), "-C", str(destination)])


class PowerShellExpandExtractor:
    name = "powershell"

    def available(self) -> bool:
        return shutil.which("powershell") is not None

    def extract(self, archive: Path, destination: Path) -> None:
        script = (
            f"Expand-Archive -LiteralPath {powershell_literal(archive)} "
            f"-DestinationPath {powershell_literal(destination)} -Force"
        )
        cp = subprocess.run(
            ["powershell", "-NoProfile", "-NonInteractive", "-Command", script],
            check=False,
            text=True,
            capture_output=True,
        )
        if cp.returncode != 0:
            raise RuntimeError(f"Expand-Archive failed (rc={cp.returncode}): {cp.stderr.strip()}")


class ShutilUnpackExtractor:
    name = "shutil"

    def available(self) -> bool:
        return True

    def extract(self, archive: Path, destination: Path) -> None:
        if archive.suffix == ".zip":
            with zipfile.ZipFile(archive) as zf:
                _check_members(zf.namelist(), destination)
            shutil.unpack_archive(str(archive), str(destination))
            return

        if _has_data_filter():
            try:
                shutil.unpack_archive(str(archive), str(destination), filter="data")
            except tarfile.FilterError as exc:
                raise InstallFailed(f"refusing to extract {archive.name}: {exc}") from exc
            return

        with tarfile.open(archive) as tf:
            _check_tar_members(tf.getmembers(), destination)
        shutil.unpack_archive(str(archive), str(destination))


def extraction_strategies(target: PlatformTarget) -> List[Extractor]:
    """Preference order: native archive API, OS shell, second native library."""
    if target.os_family is OsFamily.WINDOWS:
        return [ZipfileExtractor(), PowerShellExpandExtractor(), ShutilUnpackExtractor()]
    return [TarfileExtractor(), ShellTarExtractor(), ShutilUnpackExtractor()]


def extract_archive(
    archive: Path,
    destination: Path,
    strategies: Sequence[Extractor],
    *,
    bus: Optional[EventBus] = None,
    run_ctx: Optional[Dict] = None,
) -> str:
    """
    Try each available strategy in order and stop at the first success.
    Returns the name of the strategy that worked.
    """
    bus = bus or EventBus()
    destination.mkdir(parents=True, exist_ok=True)
    errors: List[str] = []

    for strategy in strategies:
        if not strategy.available():
            log.debug("extractor %s not available, skipping", strategy.name)
            errors.append(f"{strategy.name}: not available")
            continue
        try:
            strategy.extract(archive, destination)
        except InstallFailed:
            # unsafe archive; no other strategy should touch it
            raise
        except Exception as exc:
            log.warning("extractor %s failed on %s: %s", strategy.name, archive, exc)
            errors.append(f"{strategy.name}: {exc}")
            if run_ctx:
                bus.emit(ExtractionAttempt(strategy=strategy.name, ok=False, error=str(exc), **run_ctx))
            continue

        log.info("Extracted %s with %s", archive, strategy.name)
        if run_ctx:
            bus.emit(ExtractionAttempt(strategy=strategy.name, ok=True, **run_ctx))
        return strategy.name

    raise InstallFailed(f"could not extract {archive}: " + "; ".join(errors))
