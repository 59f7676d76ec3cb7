# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kuboprov/provision/node.py
from __future__ import annotations

import logging
from pathlib import Path

from .errors import InitFailed, VerificationFailed
from ..kubo.errors import KuboError
from ..kubo.interface import IKubo

log = logging.getLogger("kuboprov")


def initialize_node(kubo: IKubo, state_dir: Path) -> bool:
    """
    Create node state unless it already exists, then smoke-test the binary.

    An existing state directory is never re-initialized: it holds the node's
    identity and keys. Returns True when `init` ran.
    """
    initialized = False
    if state_dir.exists():
        log.warning("IPFS already initialized at %s, skipping init", state_dir)
    else:
        try:
            kubo.init()
        except KuboError as exc:
            raise InitFailed(f"ipfs init failed for {state_dir}: {exc}") from exc
        initialized = True
        log.info("Initialized node state at %s", state_dir)

    try:
        version = kubo.version()
    except KuboError as exc:
        raise VerificationFailed(f"ipfs --version failed, expected a working binary: {exc}") from exc
    log.info("Verified installation: %s", version)
    return initialized
