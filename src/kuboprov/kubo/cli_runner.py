# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import List, Mapping, Optional

from .errors import KuboCommandError
from .interface import IKubo

log = logging.getLogger("kuboprov")


class KuboCliRunner(IKubo):
    """
    A thin wrapper around the `ipfs` CLI.
    - Every call runs the installed binary directly with IPFS_PATH pinned to the
      node's state directory, so nothing depends on the caller's PATH.
    - Testable by mocking subprocess.run.
    """

    def __init__(
        self,
        binary: str | Path = "ipfs",
        *,
        state_dir: Optional[Path] = None,
        timeout: int = 120,
        env: Optional[Mapping[str, str]] = None,
    ):
        self.binary = str(binary)
        self.state_dir = state_dir
        self.timeout = timeout
        self.env = dict(os.environ if env is None else env)
        if state_dir is not None:
            self.env["IPFS_PATH"] = str(state_dir)

    # ------------------------- internal helpers -------------------------

    def _run(self, args: List[str]) -> subprocess.CompletedProcess:
        argv = [self.binary] + args
        log.debug("$ %s", " ".join(argv))
        try:
            cp = subprocess.run(
                argv,
                check=False,
                text=True,
                capture_output=True,
                env=self.env,
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise KuboCommandError(argv, 127, str(exc)) from exc
        except subprocess.TimeoutExpired as exc:
            raise KuboCommandError(argv, -1, f"timed out after {self.timeout}s") from exc

        if cp.returncode != 0:
            output = "\n".join(s for s in ((cp.stdout or "").strip(), (cp.stderr or "").strip()) if s)
            raise KuboCommandError(argv, cp.returncode, output)
        if cp.stdout and cp.stdout.strip():
            log.debug(cp.stdout.rstrip())
        return cp

    # ------------------------- IKubo methods -------------------------

    def version(self) -> str:
        return self._run(["--version"]).stdout.strip()

    def init(self) -> None:
        self._run(["init"])

    def bootstrap_rm_all(self) -> None:
        self._run(["bootstrap", "rm", "--all"])

    def bootstrap_add(self, peer: str) -> None:
        self._run(["bootstrap", "add", peer])

    def bootstrap_list(self) -> List[str]:
        out = self._run(["bootstrap", "list"]).stdout
        return [line.strip() for line in out.splitlines() if line.strip()]

    def config_json(self, key: str, value: str) -> None:
        self._run(["config", "--json", key, value])

    def config_bool(self, key: str, value: bool) -> None:
        self._run(["config", key, "true" if value else "false", "--bool"])

    def swarm_peers(self) -> List[str]:
        out = self._run(["swarm", "peers"]).stdout
        return [line.strip() for line in out.splitlines() if line.strip()]

    def daemon(self) -> int:
        """Run the daemon in the foreground, inheriting stdio. Returns its exit code."""
        argv = [self.binary, "daemon"]
        log.info("$ %s", " ".join(argv))
        try:
            return subprocess.run(argv, check=False, env=self.env).returncode
        except FileNotFoundError as exc:
            raise KuboCommandError(argv, 127, str(exc)) from exc
