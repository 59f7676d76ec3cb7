# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kuboprov/provision/pipeline.py
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Sequence

import requests

from .cleanup import cleanup
from .errors import ProvisionError
from .extract import Extractor
from .fetcher import ArtifactFetcher, artifact_filename
from .installer import ArchiveInstaller, choose_install_target
from .node import initialize_node
from .platform import detect_platform, resolve_platform
from .reconciler import reconcile_config
from .search_path import SearchPathRegistry, current_search_path, registry_for
from .swarm_key import has_expected_format, require_secret, write_swarm_key
from ..config.models import ProvisionSettings, ProvisioningRequest
from ..kubo.cli_runner import KuboCliRunner
from ..kubo.interface import IKubo
from ..observers.dispatcher import EventBus
from ..observers.events import (
    new_ctx,
    ProvisionStarted,
    StageStarted,
    StageSucceeded,
    StageSkipped,
    StageFailed,
    SwarmKeyFormatWarning,
    CleanupWarningRaised,
    ProvisionSummary,
)

log = logging.getLogger("kuboprov")

STAGES = ["secret", "platform", "fetch", "install", "init", "swarm-key", "config", "cleanup"]

KuboFactory = Callable[[Path, Path], IKubo]


@dataclass
class StageOutcome:
    stage: str
    status: str                 # "OK" | "SKIPPED" | "FAILED" | "WARN"
    detail: Optional[str] = None
    error: Optional[str] = None


@dataclass
class ProvisionReport:
    outcomes: List[StageOutcome] = field(default_factory=list)
    binary_path: Optional[Path] = None
    swarm_key_path: Optional[Path] = None
    bootstrap_peers: List[str] = field(default_factory=list)

    def add(self, outcome: StageOutcome) -> None:
        self.outcomes.append(outcome)

    @property
    def ok(self) -> bool:
        return not any(o.status == "FAILED" for o in self.outcomes)

    @property
    def failed_stage(self) -> Optional[str]:
        return next((o.stage for o in self.outcomes if o.status == "FAILED"), None)

    def summary(self) -> str:
        counts = {s: sum(1 for o in self.outcomes if o.status == s) for s in ("OK", "SKIPPED", "FAILED", "WARN")}
        return " ".join(f"{k}={v}" for k, v in counts.items())


def _default_kubo_factory(settings: ProvisionSettings) -> KuboFactory:
    def factory(binary: Path, state_dir: Path) -> IKubo:
        return KuboCliRunner(binary, state_dir=state_dir, timeout=settings.command_timeout_seconds)
    return factory


@contextmanager
def _stage(name: str, report: ProvisionReport, bus: EventBus, ctx: Dict) -> Iterator[StageOutcome]:
    """Time a stage, record its outcome and emit lifecycle events."""
    outcome = StageOutcome(stage=name, status="OK")
    bus.emit(StageStarted(stage=name, **ctx))
    log.info("[%s] starting", name)
    t0 = time.time()
    try:
        yield outcome
    except Exception as e:
        outcome.status = "FAILED"
        outcome.error = str(e)
        report.add(outcome)
        bus.emit(StageFailed(stage=name, error=str(e), **ctx))
        log.error("[%s] failed: %s", name, e)
        if isinstance(e, ProvisionError):
            raise
        # keep the stage label on errors no step anticipated
        raise ProvisionError(f"{type(e).__name__}: {e}", stage=name) from e
    report.add(outcome)
    if outcome.status == "SKIPPED":
        bus.emit(StageSkipped(stage=name, reason=outcome.detail or "", **ctx))
    else:
        duration_ms = int((time.time() - t0) * 1000)
        bus.emit(StageSucceeded(stage=name, duration_ms=duration_ms, detail=outcome.detail, **ctx))


def provision(
    request: ProvisioningRequest,
    settings: Optional[ProvisionSettings] = None,
    *,
    os_name: Optional[str] = None,
    machine: Optional[str] = None,
    session: Optional[requests.Session] = None,
    kubo_factory: Optional[KuboFactory] = None,
    registry: Optional[SearchPathRegistry] = None,
    strategies: Optional[Sequence[Extractor]] = None,
    current_path: Optional[str] = None,
    home: Optional[Path] = None,
    observers: Optional[List] = None,
    run_id: Optional[str] = None,
) -> ProvisionReport:
    """
    Run the provisioning stages in order, failing fast.

    The first hard error is recorded, summarized and re-raised. Transient
    download/extraction artifacts are removed afterwards either way; cleanup
    problems only produce WARN outcomes.
    """
    settings = settings or ProvisionSettings()
    kubo_factory = kubo_factory or _default_kubo_factory(settings)
    report = ProvisionReport()
    bus = EventBus(observers or [])
    ctx = new_ctx(version=request.version, run_id=run_id)
    transient: List[Path] = []
    failure: Optional[BaseException] = None

    bus.emit(ProvisionStarted(stages=list(STAGES), **ctx))

    try:
        # 1) Secret: before any network or filesystem work
        with _stage("secret", report, bus, ctx):
            secret = require_secret(request.swarm_key.get_secret_value())

        # 2) Platform
        with _stage("platform", report, bus, ctx) as out:
            if os_name is None and machine is None:
                target = detect_platform()
            else:
                target = resolve_platform(os_name, machine)
            out.detail = str(target)
        ctx = {**ctx, "platform": str(target)}

        # 3) Fetch
        download_dir = settings.resolve_download_dir()
        work_dir = settings.resolve_work_dir()
        transient += [download_dir / artifact_filename(settings.package, request.version, target), work_dir]
        with _stage("fetch", report, bus, ctx) as out:
            fetcher = ArtifactFetcher(
                session,
                base_url=settings.distributor_base,
                package=settings.package,
                min_bytes=settings.min_artifact_bytes,
                timeout=settings.download_timeout_seconds,
                bus=bus,
                run_ctx=ctx,
            )
            artifact = fetcher.fetch(
                target,
                request.version,
                primary_dir=download_dir,
                fallback_dir=settings.resolve_fallback_download_dir(),
            )
            if artifact.local_path not in transient:
                transient.append(artifact.local_path)
            out.detail = f"{artifact.local_path} ({artifact.size_bytes} bytes)"

        # 4) Install
        with _stage("install", report, bus, ctx) as out:
            install_target = choose_install_target(
                target, request.privileged, install_dir=settings.install_dir, home=home
            )
            if registry is None:
                registry = registry_for(
                    target.os_family,
                    install_target.search_path_scope,
                    current_path=current_search_path() if current_path is None else current_path,
                    home=home,
                )
            installed = ArchiveInstaller(
                target, install_target, registry, strategies=strategies, bus=bus, run_ctx=ctx
            ).install(artifact, work_dir)
            report.binary_path = installed.binary_path
            out.detail = f"{installed.binary_path} (scope={installed.search_path_scope.value})"

        state_dir = settings.resolve_state_dir()
        kubo = kubo_factory(installed.binary_path, state_dir)

        # 5) Init + smoke test
        with _stage("init", report, bus, ctx) as out:
            if initialize_node(kubo, state_dir):
                out.detail = f"initialized {state_dir}"
            else:
                out.detail = f"{state_dir} already initialized; init skipped"

        # 6) Swarm key
        with _stage("swarm-key", report, bus, ctx) as out:
            report.swarm_key_path = write_swarm_key(state_dir, secret)
            out.detail = str(report.swarm_key_path)
            if not has_expected_format(secret):
                bus.emit(SwarmKeyFormatWarning(path=str(report.swarm_key_path), **ctx))

        # 7) Config
        with _stage("config", report, bus, ctx) as out:
            report.bootstrap_peers = reconcile_config(kubo, request.bootstrap_peer, settings.routing_type)
            out.detail = f"bootstrap={report.bootstrap_peers}"

        return report

    except Exception as e:
        failure = e
        raise

    finally:
        # 8) Cleanup: best effort, never changes the verdict
        if transient:
            warnings = cleanup(transient)
            status = "WARN" if warnings else "OK"
            report.add(StageOutcome(stage="cleanup", status=status, error="; ".join(str(w) for w in warnings) or None))
            for w in warnings:
                bus.emit(CleanupWarningRaised(path=w.path, error=w.error, **ctx))

        if failure is None:
            bus.emit(ProvisionSummary(status="OK", **ctx))
            log.info("Provisioning complete: %s", report.summary())
        else:
            stage = failure.stage if isinstance(failure, ProvisionError) else report.failed_stage
            bus.emit(ProvisionSummary(status="FAILED", failed_stage=stage, error=str(failure), **ctx))
