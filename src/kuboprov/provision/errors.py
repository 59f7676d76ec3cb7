# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kuboprov/provision/errors.py
from __future__ import annotations


class ProvisionError(RuntimeError):
    """Base class for hard provisioning failures. Carries the failing stage."""

    stage = "provision"

    def __init__(self, message: str, *, stage: str | None = None):
        if stage is not None:
            self.stage = stage
        super().__init__(f"[{self.stage}] {message}")


class MissingSecret(ProvisionError):
    stage = "secret"


class UnsupportedPlatform(ProvisionError):
    stage = "platform"


class DownloadFailed(ProvisionError):
    stage = "fetch"


class BinaryNotFound(ProvisionError):
    """Raised when the extracted archive does not hold the daemon binary."""

    stage = "install"


class InstallFailed(ProvisionError):
    stage = "install"


class InitFailed(InstallFailed):
    stage = "init"


class VerificationFailed(ProvisionError):
    stage = "verify"


class ConfigWriteFailed(ProvisionError):
    stage = "config"

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(f"failed to write {key}: {message}")


class CleanupWarning(UserWarning):
    """Non-fatal: a transient artifact could not be removed."""

    def __init__(self, path: str, error: str):
        self.path = path
        self.error = error
        super().__init__(f"[cleanup] could not remove {path}: {error}")
