# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations
from typing import List, Protocol


class IKubo(Protocol):
    def version(self) -> str: ...
    def init(self) -> None: ...
    def bootstrap_rm_all(self) -> None: ...
    def bootstrap_add(self, peer: str) -> None: ...
    def bootstrap_list(self) -> List[str]: ...
    def config_json(self, key: str, value: str) -> None: ...
    def config_bool(self, key: str, value: bool) -> None: ...
    def swarm_peers(self) -> List[str]: ...
    def daemon(self) -> int: ...
