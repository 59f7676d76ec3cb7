# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kuboprov/kubo/errors.py
from typing import Sequence


class KuboError(RuntimeError):
    """Base class for ipfs CLI failures."""


class KuboCommandError(KuboError):
    """Raised when an ipfs invocation exits non-zero or cannot be started."""

    def __init__(self, argv: Sequence[str], returncode: int, output: str = ""):
        self.argv = list(argv)
        self.returncode = returncode
        self.output = output
        msg = f"ipfs failed (rc={returncode}) for {self.argv!r}"
        if output.strip():
            msg += f"\n{output.strip()}"
        super().__init__(msg)
