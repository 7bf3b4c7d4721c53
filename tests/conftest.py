"""Pytest configuration and in-memory fakes of the docker runtime."""

from __future__ import annotations

import tarfile
import threading
from dataclasses import dataclass, field
from pathlib import Path

import docker
import pytest
from hypothesis import Verbosity, settings

from swarm_manager.config import SindSettings
from swarm_manager.constants import DAEMON_PORT, LABEL_CLUSTER_NAME, LABEL_CLUSTER_ROLE
from swarm_manager.models import JoinTokens, NodeRecord, NodeRole

settings.register_profile("default", max_examples=50, verbosity=Verbosity.normal)
settings.register_profile("ci", max_examples=500, verbosity=Verbosity.verbose)
settings.load_profile("default")

MANAGER_TOKEN = "SWMTKN-manager"
WORKER_TOKEN = "SWMTKN-worker"
PRIMARY_HOST_PORT = "32768"


@dataclass
class Call:
    """One recorded runtime call."""

    method: str
    args: tuple
    kwargs: dict
    thread: str


@dataclass
class FakeContainer:
    id: str
    name: str
    labels: dict
    network: str
    ip: str
    ports: dict
    publish_all_ports: bool
    running: bool = True
    files: dict = field(default_factory=dict)


class FakeSwarmClient:
    """Swarm API of the primary node, backed by the fake runtime state."""

    def __init__(self, runtime: FakeRuntime) -> None:
        self.runtime = runtime

    def ping(self) -> bool:
        self.runtime.record("ping")
        if self.runtime.ping_failures > 0:
            self.runtime.ping_failures -= 1
            raise docker.errors.APIError("daemon not ready")
        return True

    def init(self, listen_addr: str) -> str:
        self.runtime.record("swarm_init", listen_addr)
        self.runtime.swarm_initialized = True
        return "primary-node-id"

    def join_tokens(self) -> JoinTokens:
        self.runtime.record("join_tokens")
        return JoinTokens(manager=MANAGER_TOKEN, worker=WORKER_TOKEN)

    def list_nodes(self) -> list[dict]:
        self.runtime.record("list_nodes")
        if self.runtime.list_nodes_failures > 0:
            self.runtime.list_nodes_failures -= 1
            raise docker.errors.APIError("swarm not reachable")
        nodes = [{"Spec": {"Role": "manager"}, "Status": {"State": "ready"}}]
        for role in self.runtime.joined.values():
            state = "down" if role in self.runtime.unready_roles else "ready"
            nodes.append({"Spec": {"Role": role}, "Status": {"State": state}})
        return nodes

    def close(self) -> None:
        self.runtime.record("swarm_close")


class FakeRuntime:
    """In-memory stand-in for :class:`swarm_manager.runtime.DockerRuntime`.

    Every method call is recorded with the name of the calling thread.
    ``fail_on(method, match, error)`` makes calls whose arguments contain
    ``match`` raise ``error``, a docker APIError by default.
    """

    daemon_host = "unix:///var/run/docker.sock"

    def __init__(self, images: tuple[str, ...] = ()) -> None:
        self.calls: list[Call] = []
        self.images = set(images)
        self.containers: dict[str, FakeContainer] = {}
        self.networks: dict[str, dict] = {}
        self.joined: dict[str, str] = {}
        self.unready_roles: set[str] = set()
        # exit code of execs, keyed by a substring of the container id
        self.exit_codes: dict[str, int] = {}
        self.failures: dict[str, list[tuple[str | None, Exception | None]]] = {}
        self.ping_failures = 0
        self.list_nodes_failures = 0
        self.swarm_initialized = False
        self.publish_daemon_port = True
        self.swarm = FakeSwarmClient(self)
        self._lock = threading.Lock()

    # -- Recording --

    def record(self, method: str, *args, **kwargs) -> None:
        with self._lock:
            self.calls.append(Call(method, args, kwargs, threading.current_thread().name))
            matches = self.failures.get(method, [])
        for match, error in matches:
            if match is None or any(match in str(arg) for arg in args):
                raise error or docker.errors.APIError(f"{method} failed")

    def fail_on(self, method: str, match: str | None = None, error: Exception | None = None) -> None:
        self.failures.setdefault(method, []).append((match, error))

    def calls_to(self, method: str) -> list[Call]:
        return [call for call in self.calls if call.method == method]

    def index_of(self, method: str) -> list[int]:
        return [i for i, call in enumerate(self.calls) if call.method == method]

    # -- Images --

    def image_exists(self, ref: str) -> bool:
        self.record("image_exists", ref)
        return ref in self.images

    def pull_image(self, ref: str) -> None:
        self.record("pull_image", ref)
        self.images.add(ref)

    def save_images(self, refs: list[str], output: Path) -> None:
        self.record("save_images", list(refs), output)
        Path(output).write_bytes(b"images:" + ",".join(refs).encode())

    # -- Networks --

    def create_network(self, name: str, labels: dict, subnet: str | None = None) -> str:
        self.record("create_network", name, labels, subnet)
        network_id = f"net-{name}"
        self.networks[network_id] = {"name": name, "labels": labels, "subnet": subnet}
        return network_id

    def list_networks(self, cluster_name: str) -> list[str]:
        self.record("list_networks", cluster_name)
        return [
            network_id for network_id, network in self.networks.items()
            if network["labels"].get(LABEL_CLUSTER_NAME) == cluster_name
        ]

    def remove_network(self, network_id: str) -> None:
        self.record("remove_network", network_id)
        del self.networks[network_id]

    # -- Containers --

    def run_container(self, name, image, labels, network, ports=None, publish_all_ports=False) -> str:
        self.record("run_container", name, image, labels, network, ports=ports, publish_all_ports=publish_all_ports)
        with self._lock:
            container_id = f"{len(self.containers):04d}{name}".ljust(64, "0")
            self.containers[container_id] = FakeContainer(
                id=container_id,
                name=name,
                labels=labels,
                network=network,
                ip=f"10.0.0.{len(self.containers) + 2}",
                ports=ports or {},
                publish_all_ports=publish_all_ports,
            )
        return container_id

    def inspect_container(self, container_id: str) -> dict:
        self.record("inspect_container", container_id)
        container = self.containers[container_id]
        ports = {}
        if container.publish_all_ports and self.publish_daemon_port:
            ports[DAEMON_PORT] = [{"HostIp": "0.0.0.0", "HostPort": PRIMARY_HOST_PORT}]
        return {
            "Id": container.id,
            "NetworkSettings": {
                "Ports": ports,
                "Networks": {container.network: {"IPAddress": container.ip}},
            },
        }

    def list_containers(self, cluster_name: str, all: bool = False) -> list[NodeRecord]:
        self.record("list_containers", cluster_name, all=all)
        return [
            NodeRecord(
                role=NodeRole(c.labels[LABEL_CLUSTER_ROLE]),
                name=c.name,
                container_id=c.id,
                endpoint=c.ip,
            )
            for c in self.containers.values()
            if c.labels.get(LABEL_CLUSTER_NAME) == cluster_name and (all or c.running)
        ]

    def exec(self, container_id: str, cmd: list[str]) -> tuple[int, str]:
        self.record("exec", container_id, list(cmd))
        exit_code = next((code for key, code in self.exit_codes.items() if key in container_id), 0)
        if exit_code != 0:
            return exit_code, "Error response from daemon: boom\n"
        if cmd[:3] == ["docker", "swarm", "join"]:
            token = cmd[cmd.index("--token") + 1]
            with self._lock:
                self.joined[container_id] = "manager" if token == MANAGER_TOKEN else "worker"
        return 0, ""

    def copy_to_container(self, container_id: str, path: str, archive: Path) -> None:
        self.record("copy_to_container", container_id, path, archive)
        with tarfile.open(archive) as tar:
            for member in tar.getmembers():
                self.containers[container_id].files[path.rstrip("/") + "/" + member.name] = (
                    member, tar.extractfile(member).read()
                )

    def start_container(self, container_id: str) -> None:
        self.record("start_container", container_id)
        self.containers[container_id].running = True

    def stop_container(self, container_id: str) -> None:
        self.record("stop_container", container_id)
        self.containers[container_id].running = False

    def remove_container(self, container_id: str) -> None:
        self.record("remove_container", container_id)
        del self.containers[container_id]

    # -- Swarm --

    def connect_swarm(self, host: str, port: str, timeout: int | None = None) -> FakeSwarmClient:
        self.record("connect_swarm", host, port, timeout=timeout)
        return self.swarm

    def close(self) -> None:
        self.record("close")


def add_container(runtime: FakeRuntime, cluster: str, name: str, role: NodeRole, running: bool = True) -> str:
    """Register an existing node container without recording a call."""
    container_id = f"{len(runtime.containers):04d}{name}".ljust(64, "0")
    runtime.containers[container_id] = FakeContainer(
        id=container_id,
        name=name,
        labels={LABEL_CLUSTER_NAME: cluster, LABEL_CLUSTER_ROLE: role.value},
        network=cluster,
        ip=f"10.0.0.{len(runtime.containers) + 2}",
        ports={},
        publish_all_ports=role is NodeRole.PRIMARY,
        running=running,
    )
    return container_id


@pytest.fixture
def runtime():
    """Fake runtime with the default node image already present."""
    return FakeRuntime(images=("docker:18.09-dind",))


@pytest.fixture
def fast_settings(tmp_path):
    """Settings with a temporary store and a short polling interval."""
    return SindSettings(home=tmp_path / "sind", poll_interval=0.01, timeout=5)
