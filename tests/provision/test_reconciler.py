import json

import pytest

from kuboprov.kubo.errors import KuboCommandError
from kuboprov.provision.errors import ConfigWriteFailed
from kuboprov.provision.reconciler import default_overrides, reconcile_config

PEER = "/ip4/10.4.56.71/tcp/4001/p2p/12D3KooWB8e8PHhq1GbdeZk9Y6fLUBYu6AqZKjs15zQZaGrYHxu9"


class FakeKubo:
    """In-memory stand-in for the daemon's bootstrap list and config."""
    def __init__(self, bootstrap=None, fail_key=None):
        self.bootstrap = list(bootstrap or [])
        self.config = {}
        self.calls = []
        self.fail_key = fail_key

    def _maybe_fail(self, key, argv):
        if key == self.fail_key:
            raise KuboCommandError(argv, 1, "Error: config locked")

    def bootstrap_rm_all(self):
        self.calls.append("bootstrap rm --all")
        self._maybe_fail("Bootstrap", ["ipfs", "bootstrap", "rm", "--all"])
        self.bootstrap = []

    def bootstrap_add(self, peer):
        self.calls.append(f"bootstrap add {peer}")
        self.bootstrap.append(peer)

    def bootstrap_list(self):
        return list(self.bootstrap)

    def config_json(self, key, value):
        self.calls.append(f"config --json {key}")
        self._maybe_fail(key, ["ipfs", "config", "--json", key, value])
        self.config[key] = json.loads(value)

    def config_bool(self, key, value):
        self.calls.append(f"config {key} --bool")
        self._maybe_fail(key, ["ipfs", "config", key, str(value).lower(), "--bool"])
        self.config[key] = value


def test_bootstrap_list_is_exactly_the_supplied_peer():
    kubo = FakeKubo(bootstrap=["/dnsaddr/bootstrap.libp2p.io/p2p/A", "/dnsaddr/bootstrap.libp2p.io/p2p/B", "/ip4/1.2.3.4/tcp/4001/p2p/C"])
    assert reconcile_config(kubo, PEER) == [PEER]
    assert kubo.bootstrap == [PEER]


def test_steps_run_in_order_and_set_values():
    kubo = FakeKubo()
    reconcile_config(kubo, PEER)
    assert kubo.calls == [
        "bootstrap rm --all",
        f"bootstrap add {PEER}",
        "config --json Routing",
        "config AutoTLS.Enabled --bool",
        "config --json Swarm.Transports.Network.Websocket",
    ]
    assert kubo.config == {
        "Routing": {"Type": "dhtserver"},
        "AutoTLS.Enabled": False,
        "Swarm.Transports.Network.Websocket": False,
    }


def test_reapplying_is_idempotent():
    kubo = FakeKubo()
    reconcile_config(kubo, PEER)
    first = (list(kubo.bootstrap), dict(kubo.config))
    reconcile_config(kubo, PEER)
    assert (kubo.bootstrap, kubo.config) == first


@pytest.mark.parametrize("key", ["Bootstrap", "Routing", "AutoTLS.Enabled", "Swarm.Transports.Network.Websocket"])
def test_failure_names_the_key(key):
    with pytest.raises(ConfigWriteFailed) as exc:
        reconcile_config(FakeKubo(fail_key=key), PEER)
    assert exc.value.key == key
    assert key in str(exc.value)
    assert exc.value.stage == "config"


def test_overrides_use_routing_type():
    routing = default_overrides("dht")[0]
    assert routing.key == "Routing"
    assert json.loads(routing.value) == {"Type": "dht"}
