import textwrap
from pathlib import Path

import pytest
from pydantic import ValidationError

from kuboprov.config.loader import load_settings, read_swarm_key
from kuboprov.config.models import DEFAULT_BOOTSTRAP_PEER, ProvisionSettings, ProvisioningRequest


def test_defaults_without_file():
    cfg = load_settings(env={})
    assert cfg.version == "v0.34.1"
    assert cfg.bootstrap_peer == DEFAULT_BOOTSTRAP_PEER
    assert cfg.routing_type == "dhtserver"
    assert cfg.resolve_state_dir() == Path.home() / ".ipfs"


def test_yaml_with_env_expansion(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("NODE_ROOT", str(tmp_path))
    f = tmp_path / "kuboprov.yaml"
    f.write_text(textwrap.dedent("""
        version: v0.35.0
        state_dir: ${NODE_ROOT}/ipfs
        min_artifact_bytes: 1048576
    """))
    cfg = load_settings(f, env={})
    assert cfg.version == "v0.35.0"
    assert cfg.resolve_state_dir() == tmp_path / "ipfs"
    assert cfg.min_artifact_bytes == 1048576


def test_env_overrides_file(tmp_path: Path):
    f = tmp_path / "kuboprov.yaml"
    f.write_text("version: v0.35.0\n")
    cfg = load_settings(f, env={"KUBOPROV_VERSION": "v0.36.0", "KUBOPROV_INSTALL_DIR": "/opt/kubo"})
    assert cfg.version == "v0.36.0"
    assert cfg.install_dir == Path("/opt/kubo")


def test_non_mapping_yaml_is_rejected(tmp_path: Path):
    f = tmp_path / "bad.yaml"
    f.write_text("- a\n- b\n")
    with pytest.raises(ValueError):
        load_settings(f, env={})


def test_min_bytes_must_be_positive():
    with pytest.raises(ValidationError):
        ProvisionSettings(min_artifact_bytes=0)


def test_request_hides_secret_and_is_frozen():
    req = ProvisioningRequest.from_settings(ProvisionSettings(), swarm_key="s3cret", privileged=True)
    assert "s3cret" not in repr(req)
    assert req.swarm_key.get_secret_value() == "s3cret"
    with pytest.raises(ValidationError):
        req.version = "v1"


def test_read_swarm_key():
    assert read_swarm_key({"IPFS_SWARM_KEY": "k"}) == "k"
    assert read_swarm_key({}) is None
