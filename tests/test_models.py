"""Tests for node naming and cluster records."""

import re

from hypothesis import given
from hypothesis import strategies as st

from swarm_manager.constants import DAEMON_API_VERSION
from swarm_manager.models import (
    ClusterResult,
    HostEndpoint,
    JoinTokens,
    NameGenerator,
    NodeRecord,
    NodeRole,
    SwarmEndpoint,
    Topology,
)

cluster_names = st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789_", min_size=1, max_size=20)


@given(name=cluster_names, other_managers=st.integers(0, 20), workers=st.integers(0, 20))
def test_generated_names_are_distinct_and_patterned(name, other_managers, workers):
    """Primary takes manager index 0, other managers follow, workers count from 0."""
    managers = NameGenerator.managers(name)
    worker_names = NameGenerator.workers(name)

    primary = managers.generate()
    others = managers.take(other_managers)
    workers_ = worker_names.take(workers)
    names = [primary, *others, *workers_]

    assert len(set(names)) == len(names)
    assert primary == f"{name}-manager-0"
    assert others == [f"{name}-manager-{i}" for i in range(1, other_managers + 1)]
    assert workers_ == [f"{name}-worker-{i}" for i in range(workers)]
    for generated in names:
        assert re.fullmatch(rf"{re.escape(name)}-(manager|worker)-\d+", generated)


def test_generators_do_not_resume_between_calls():
    assert NameGenerator.workers("c").generate() == "c-worker-0"
    assert NameGenerator.workers("c").generate() == "c-worker-0"


def test_join_token_for_role():
    tokens = JoinTokens(manager="m", worker="w")
    assert tokens.for_role(NodeRole.MANAGER) == "m"
    assert tokens.for_role(NodeRole.WORKER) == "w"


def test_topology_joiners_excludes_primary():
    primary = NodeRecord(NodeRole.PRIMARY, "c-manager-0", "p", "10.0.0.2")
    manager = NodeRecord(NodeRole.MANAGER, "c-manager-1", "m", "10.0.0.3")
    worker = NodeRecord(NodeRole.WORKER, "c-worker-0", "w", "10.0.0.4")

    topology = Topology(primary=primary, managers=[manager], workers=[worker], daemon_port="32768")

    assert topology.joiners == [manager, worker]


def test_swarm_endpoint_client_pins_the_node_api_version():
    client = SwarmEndpoint(host="localhost", port="32768").client(timeout=3)

    assert client.api.base_url == "http://localhost:32768"
    assert client.api.api_version == DAEMON_API_VERSION
    assert client.api.timeout == 3
    client.close()


def test_host_endpoint_client():
    client = HostEndpoint(host="tcp://10.1.2.3:2375").client(version="1.41")

    assert client.api.base_url == "http://10.1.2.3:2375"
    assert client.api.api_version == "1.41"
    client.close()


def test_cluster_record_exposes_both_endpoints():
    record = ClusterResult(
        name="demo",
        cluster=SwarmEndpoint(host="localhost", port="32768"),
        host=HostEndpoint(host="tcp://10.1.2.3:2375"),
    )

    assert record.cluster.client().api.base_url == "http://localhost:32768"
    assert record.host.client(version=DAEMON_API_VERSION).api.base_url == "http://10.1.2.3:2375"
