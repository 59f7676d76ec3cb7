# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kuboprov/config/models.py

import tempfile
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr

DEFAULT_VERSION = "v0.34.1"
DEFAULT_BOOTSTRAP_PEER = (
    "/ip4/10.4.56.71/tcp/4001/p2p/12D3KooWB8e8PHhq1GbdeZk9Y6fLUBYu6AqZKjs15zQZaGrYHxu9"
)


class ProvisionSettings(BaseModel):
    """Tunables for a provisioning run. Unset paths resolve to OS defaults."""

    # Release
    version: str = DEFAULT_VERSION
    bootstrap_peer: str = DEFAULT_BOOTSTRAP_PEER
    distributor_base: str = "https://dist.ipfs.tech"
    package: str = "kubo"

    # Fetch
    min_artifact_bytes: int = Field(default=20 * 1024 * 1024, ge=1)
    download_timeout_seconds: int = 300
    command_timeout_seconds: int = 120

    # Daemon config
    routing_type: str = "dhtserver"

    # Paths
    state_dir: Optional[Path] = None
    download_dir: Optional[Path] = None
    fallback_download_dir: Optional[Path] = None
    work_dir: Optional[Path] = None
    install_dir: Optional[Path] = None
    log_dir: Optional[Path] = None

    def resolve_state_dir(self) -> Path:
        return (self.state_dir or Path.home() / ".ipfs").expanduser()

    def resolve_download_dir(self) -> Path:
        return (self.download_dir or Path(tempfile.gettempdir()) / "kuboprov").expanduser()

    def resolve_fallback_download_dir(self) -> Path:
        return (self.fallback_download_dir or Path.home() / "Downloads").expanduser()

    def resolve_work_dir(self) -> Path:
        return (self.work_dir or Path(tempfile.gettempdir()) / "kuboprov-work").expanduser()

    def resolve_log_dir(self) -> Path:
        return (self.log_dir or Path.home() / ".kuboprov" / "logs").expanduser()


class ProvisioningRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    version: str
    bootstrap_peer: str
    swarm_key: SecretStr = SecretStr("")
    privileged: bool = False
    start_daemon: bool = False

    @classmethod
    def from_settings(
        cls,
        settings: ProvisionSettings,
        *,
        swarm_key: Optional[str],
        privileged: bool,
        start_daemon: bool = False,
    ) -> "ProvisioningRequest":
        return cls(
            version=settings.version,
            bootstrap_peer=settings.bootstrap_peer,
            swarm_key=SecretStr(swarm_key or ""),
            privileged=privileged,
            start_daemon=start_daemon,
        )
