# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kuboprov/provision/reconciler.py
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import List, Tuple

from .errors import ConfigWriteFailed
from ..kubo.errors import KuboError
from ..kubo.interface import IKubo

log = logging.getLogger("kuboprov")

BOOTSTRAP_KEY = "Bootstrap"


@dataclass(frozen=True)
class ConfigOverride:
    key: str
    value: str | bool
    mode: str = "json"   # "json" | "bool"

    def apply(self, kubo: IKubo) -> None:
        if self.mode == "bool":
            kubo.config_bool(self.key, bool(self.value))
        else:
            kubo.config_json(self.key, str(self.value))


def default_overrides(routing_type: str = "dhtserver") -> Tuple[ConfigOverride, ...]:
    return (
        ConfigOverride("Routing", json.dumps({"Type": routing_type})),
        ConfigOverride("AutoTLS.Enabled", False, mode="bool"),
        ConfigOverride("Swarm.Transports.Network.Websocket", "false"),
    )


def reconcile_config(kubo: IKubo, peer: str, routing_type: str = "dhtserver") -> List[str]:
    """
    Replace the bootstrap list with `peer` and apply the fixed overrides.

    Every step overwrites; re-running yields the same config. Returns the
    bootstrap list as reported by the daemon afterwards.
    """
    log.info("Configuring bootstrap nodes...")
    try:
        kubo.bootstrap_rm_all()
        kubo.bootstrap_add(peer)
    except KuboError as exc:
        raise ConfigWriteFailed(BOOTSTRAP_KEY, str(exc)) from exc

    log.info("Configuring IPFS settings...")
    for override in default_overrides(routing_type):
        try:
            override.apply(kubo)
        except KuboError as exc:
            raise ConfigWriteFailed(override.key, str(exc)) from exc
        log.debug("set %s = %s", override.key, override.value)

    try:
        peers = kubo.bootstrap_list()
    except KuboError as exc:
        raise ConfigWriteFailed(BOOTSTRAP_KEY, str(exc)) from exc
    if peers != [peer]:
        raise ConfigWriteFailed(BOOTSTRAP_KEY, f"expected bootstrap list [{peer}], got {peers}")
    return peers
