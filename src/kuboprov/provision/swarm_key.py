# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kuboprov/provision/swarm_key.py
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from .errors import InstallFailed, MissingSecret

log = logging.getLogger("kuboprov")

SWARM_KEY_FILENAME = "swarm.key"
SWARM_KEY_PREFIX = "/key/swarm/psk/"
EXPECTED_FORMAT = "/key/swarm/psk/1.0.0/\n/base16/\n<64-character-hex-key>"


def require_secret(secret: Optional[str]) -> str:
    if secret is None or not secret.strip():
        raise MissingSecret(
            "IPFS_SWARM_KEY is not set; export it before running, e.g. "
            "export IPFS_SWARM_KEY=\"$(printf '/key/swarm/psk/1.0.0/\\n/base16/\\n<64-hex-chars>')\""
        )
    return secret


def has_expected_format(content: str) -> bool:
    return content.startswith(SWARM_KEY_PREFIX)


def write_swarm_key(state_dir: Path, secret: str) -> Path:
    """
    Write the secret verbatim to <state_dir>/swarm.key, replacing any previous key.

    A secret without the psk prefix is still written; the daemon decides whether
    it is usable.
    """
    path = state_dir / SWARM_KEY_FILENAME
    try:
        state_dir.mkdir(parents=True, exist_ok=True)
        # surrogateescape gives back the raw bytes of a non-UTF-8 environment value
        path.write_bytes(secret.encode("utf-8", "surrogateescape"))
        if os.name == "posix":
            path.chmod(0o600)
    except (OSError, UnicodeError) as exc:
        raise InstallFailed(f"could not write swarm key to {path}: {exc}", stage="swarm-key") from exc
    log.info("Swarm key created at: %s", path)

    if not has_expected_format(secret):
        log.warning("Swarm key format may be invalid. Expected format:\n%s", EXPECTED_FORMAT)
    return path
