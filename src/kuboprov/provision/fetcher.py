# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kuboprov/provision/fetcher.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import requests

from .errors import DownloadFailed
from .platform import PlatformTarget
from ..observers.dispatcher import EventBus
from ..observers.events import DownloadAttempt, DownloadRejected, new_ctx

log = logging.getLogger("kuboprov")


@dataclass(frozen=True)
class ArtifactLocation:
    url: str
    local_path: Path
    size_bytes: int


def artifact_filename(package: str, version: str, target: PlatformTarget) -> str:
    return f"{package}_{version}_{target.os_family.value}-{target.arch_name}.{target.archive_ext}"


def build_download_url(base: str, package: str, version: str, target: PlatformTarget) -> str:
    return f"{base.rstrip('/')}/{package}/{version}/{artifact_filename(package, version, target)}"


class ArtifactFetcher:
    """
    Streams a release archive to disk.

    One attempt into the primary directory; on a transfer error or an undersized
    file, exactly one more attempt into the fallback directory. Mirrors have been
    seen answering 200 with a truncated body or an error page, so size is checked
    even when the transfer succeeds.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        *,
        base_url: str = "https://dist.ipfs.tech",
        package: str = "kubo",
        min_bytes: int = 20 * 1024 * 1024,
        timeout: int = 300,
        chunk_size: int = 1024 * 1024,
        bus: Optional[EventBus] = None,
        run_ctx: Optional[Dict] = None,
    ):
        self.session = session or requests.Session()
        self.base_url = base_url
        self.package = package
        self.min_bytes = min_bytes
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.bus = bus or EventBus()
        self.run_ctx = run_ctx

    # ------------------------- internal helpers -------------------------

    def _ctx(self, version: str, target: PlatformTarget) -> Dict:
        return self.run_ctx or new_ctx(version=version, platform=str(target))

    def _download(self, url: str, dest: Path) -> int:
        dest.parent.mkdir(parents=True, exist_ok=True)
        written = 0
        with self.session.get(url, stream=True, timeout=self.timeout) as resp:
            resp.raise_for_status()
            with open(dest, "wb") as fh:
                for chunk in resp.iter_content(chunk_size=self.chunk_size):
                    if chunk:
                        fh.write(chunk)
                        written += len(chunk)
        return written

    def _attempt(self, url: str, dest: Path) -> Optional[str]:
        """Returns None on success, otherwise the reason the attempt was rejected."""
        try:
            self._download(url, dest)
        except (requests.RequestException, OSError) as exc:
            self._discard(dest)
            return f"transfer failed: {exc}"

        size = dest.stat().st_size
        if size < self.min_bytes:
            self._discard(dest)
            return f"undersized: got {size} bytes, expected at least {self.min_bytes}"
        return None

    @staticmethod
    def _discard(dest: Path) -> None:
        try:
            dest.unlink(missing_ok=True)
        except OSError as exc:
            log.warning("could not remove rejected artifact %s: %s", dest, exc)

    # ------------------------- public -------------------------

    def fetch(
        self,
        target: PlatformTarget,
        version: str,
        primary_dir: Path,
        fallback_dir: Path,
    ) -> ArtifactLocation:
        url = build_download_url(self.base_url, self.package, version, target)
        filename = artifact_filename(self.package, version, target)
        ctx = self._ctx(version, target)

        reasons: List[str] = []
        for attempt, directory in enumerate((primary_dir, fallback_dir), start=1):
            dest = Path(directory) / filename
            log.info("Downloading %s -> %s (attempt %d)", url, dest, attempt)
            self.bus.emit(DownloadAttempt(url=url, destination=str(dest), attempt=attempt, **ctx))

            reason = self._attempt(url, dest)
            if reason is None:
                size = dest.stat().st_size
                log.info("Downloaded %s (%d bytes)", dest, size)
                return ArtifactLocation(url=url, local_path=dest, size_bytes=size)

            log.warning("Download to %s rejected: %s", dest, reason)
            self.bus.emit(DownloadRejected(destination=str(dest), reason=reason, **ctx))
            reasons.append(f"{dest}: {reason}")

        raise DownloadFailed(f"could not fetch {url}; " + "; ".join(reasons))
