# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kuboprov/observers/events.py

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import List, Dict, Any, Optional
from datetime import datetime, timezone
import uuid


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str                  # ISO timestamp
    run_id: str              # correlates all events in a single provisioning run
    version: str             # pinned kubo release
    platform: Optional[str]  # e.g. linux-amd64, None until resolved

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_ctx(version: str, platform: Optional[str] = None, run_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "ts": utc_timestamp(),
        "run_id": run_id or str(uuid.uuid4()),
        "version": version,
        "platform": platform,
    }


# ---------------------------------------------------------------------
# Stage lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class ProvisionStarted(BaseEvent):
    stages: List[str]

@dataclass(frozen=True)
class StageStarted(BaseEvent):
    stage: str

@dataclass(frozen=True)
class StageSucceeded(BaseEvent):
    stage: str
    duration_ms: int
    detail: Optional[str] = None

@dataclass(frozen=True)
class StageSkipped(BaseEvent):
    stage: str
    reason: str

@dataclass(frozen=True)
class StageFailed(BaseEvent):
    stage: str
    error: str


# ---------------------------------------------------------------------
# Fetch
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class DownloadAttempt(BaseEvent):
    url: str
    destination: str
    attempt: int

@dataclass(frozen=True)
class DownloadRejected(BaseEvent):
    destination: str
    reason: str


# ---------------------------------------------------------------------
# Install / key / cleanup
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class ExtractionAttempt(BaseEvent):
    strategy: str
    ok: bool
    error: Optional[str] = None

@dataclass(frozen=True)
class SearchPathUpdated(BaseEvent):
    directory: str
    scope: str
    changed: bool

@dataclass(frozen=True)
class SwarmKeyFormatWarning(BaseEvent):
    path: str

@dataclass(frozen=True)
class CleanupWarningRaised(BaseEvent):
    path: str
    error: str


# ---------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class ProvisionSummary(BaseEvent):
    status: str                  # "OK" | "FAILED"
    failed_stage: Optional[str] = None
    error: Optional[str] = None
