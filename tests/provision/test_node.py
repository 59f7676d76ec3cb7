from pathlib import Path

import pytest

from kuboprov.kubo.errors import KuboCommandError
from kuboprov.provision.errors import InitFailed, VerificationFailed
from kuboprov.provision.node import initialize_node


class FakeKubo:
    def __init__(self, state_dir: Path, version_rc=0, init_rc=0):
        self.state_dir = state_dir
        self.version_rc = version_rc
        self.init_rc = init_rc
        self.calls = []

    def init(self):
        self.calls.append("init")
        if self.init_rc:
            raise KuboCommandError(["ipfs", "init"], self.init_rc, "boom")
        self.state_dir.mkdir()

    def version(self):
        self.calls.append("--version")
        if self.version_rc:
            raise KuboCommandError(["ipfs", "--version"], self.version_rc, "exec format error")
        return "ipfs version 0.34.1"


def test_fresh_state_runs_init_then_version(tmp_path: Path):
    kubo = FakeKubo(tmp_path / ".ipfs")
    assert initialize_node(kubo, tmp_path / ".ipfs") is True
    assert kubo.calls == ["init", "--version"]


def test_existing_state_skips_init_but_still_verifies(tmp_path: Path):
    state = tmp_path / ".ipfs"
    state.mkdir()
    kubo = FakeKubo(state)
    assert initialize_node(kubo, state) is False
    assert kubo.calls == ["--version"]


def test_version_failure_is_verification_failed(tmp_path: Path):
    state = tmp_path / ".ipfs"
    state.mkdir()
    with pytest.raises(VerificationFailed, match="exec format error") as exc:
        initialize_node(FakeKubo(state, version_rc=126), state)
    assert exc.value.stage == "verify"


def test_init_failure_is_reported(tmp_path: Path):
    with pytest.raises(InitFailed):
        initialize_node(FakeKubo(tmp_path / ".ipfs", init_rc=1), tmp_path / ".ipfs")
