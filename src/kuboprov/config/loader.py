# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kuboprov/config/loader.py

import os
from pathlib import Path
from typing import Mapping, Optional

import yaml

from .models import ProvisionSettings

SWARM_KEY_ENV = "IPFS_SWARM_KEY"

# env var -> settings field
ENV_OVERRIDES = {
    "KUBOPROV_VERSION": "version",
    "KUBOPROV_BOOTSTRAP_PEER": "bootstrap_peer",
    "KUBOPROV_STATE_DIR": "state_dir",
    "KUBOPROV_INSTALL_DIR": "install_dir",
    "KUBOPROV_LOG_DIR": "log_dir",
}


def load_settings(
    path: Optional[str | Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> ProvisionSettings:
    env = os.environ if env is None else env
    data: dict = {}

    if path is not None:
        raw = Path(path).read_text()
        # expand environment variables like ${HOME}
        expanded = os.path.expandvars(raw)
        data = yaml.safe_load(expanded) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping at the top level")

    for var, field in ENV_OVERRIDES.items():
        value = env.get(var)
        if value:
            data[field] = value

    return ProvisionSettings.model_validate(data)


def read_swarm_key(env: Optional[Mapping[str, str]] = None) -> Optional[str]:
    env = os.environ if env is None else env
    return env.get(SWARM_KEY_ENV)
