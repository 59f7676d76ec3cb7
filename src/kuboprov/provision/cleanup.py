# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kuboprov/provision/cleanup.py
from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Iterable, List

from .errors import CleanupWarning

log = logging.getLogger("kuboprov")


def cleanup(paths: Iterable[Path]) -> List[CleanupWarning]:
    """Best-effort removal of transient files and directories. Never raises."""
    warnings: List[CleanupWarning] = []
    for path in paths:
        try:
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            elif path.exists() or path.is_symlink():
                path.unlink()
            else:
                continue
            log.debug("removed %s", path)
        except OSError as exc:
            warning = CleanupWarning(str(path), str(exc))
            log.warning(str(warning))
            warnings.append(warning)
    return warnings
