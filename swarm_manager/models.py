# /*
# Copyright 2026 The Sind Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Node and cluster records produced while building a swarm."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import docker
from pydantic import BaseModel

from swarm_manager.constants import DAEMON_API_VERSION, MANAGER_NAME_PATTERN, WORKER_NAME_PATTERN


class NodeRole(str, Enum):
    """Role of a node container inside its cluster."""

    PRIMARY = "primary"
    MANAGER = "manager"
    WORKER = "worker"


@dataclass(frozen=True)
class NodeRecord:
    """A provisioned node container.

    Attributes:
        role: Role of the node in the cluster.
        name: Container name, also used as hostname.
        container_id: Identifier assigned by the runtime.
        endpoint: Address of the node on the cluster network.
    """

    role: NodeRole
    name: str
    container_id: str
    endpoint: str


@dataclass(frozen=True)
class JoinTokens:
    """Swarm join secrets read from the primary node."""

    manager: str
    worker: str

    def for_role(self, role: NodeRole) -> str:
        return self.manager if role is NodeRole.MANAGER else self.worker


class NameGenerator:
    """Sequential node names for one role of one cluster."""

    def __init__(self, pattern: str, cluster_name: str) -> None:
        self._pattern = pattern
        self._cluster_name = cluster_name
        self._index = 0

    @classmethod
    def managers(cls, cluster_name: str) -> NameGenerator:
        return cls(MANAGER_NAME_PATTERN, cluster_name)

    @classmethod
    def workers(cls, cluster_name: str) -> NameGenerator:
        return cls(WORKER_NAME_PATTERN, cluster_name)

    def generate(self) -> str:
        name = self._pattern.format(cluster=self._cluster_name, index=self._index)
        self._index += 1
        return name

    def take(self, count: int) -> list[str]:
        """Generate the next ``count`` names."""
        return [self.generate() for _ in range(count)]


class SwarmEndpoint(BaseModel):
    """Host and port of the primary node's exposed daemon."""

    host: str
    port: str

    @property
    def url(self) -> str:
        return f"tcp://{self.host}:{self.port}"

    def client(self, timeout: int | None = None) -> docker.DockerClient:
        """Build a client of the swarm's primary daemon.

        The API version is pinned so that building the client does not
        contact a daemon that may not be listening yet.

        Args:
            timeout: Per-request timeout in seconds, or None for the SDK default.
        """
        kwargs = {"base_url": self.url, "version": DAEMON_API_VERSION}
        if timeout is not None:
            kwargs["timeout"] = timeout
        return docker.DockerClient(**kwargs)


class HostEndpoint(BaseModel):
    """Docker daemon the cluster containers run on."""

    host: str

    def client(self, version: str | None = None) -> docker.DockerClient:
        """Build a client of the docker host, negotiating the API version unless given."""
        return docker.DockerClient(base_url=self.host, version=version)


class ClusterResult(BaseModel):
    """Durable record of a created cluster.

    Attributes:
        name: Cluster name.
        cluster: Endpoint of the swarm, reachable from the orchestrator.
        host: Endpoint of the docker host running the node containers.
    """

    name: str
    cluster: SwarmEndpoint
    host: HostEndpoint


@dataclass(frozen=True)
class Topology:
    """Node containers of a freshly provisioned cluster.

    Attributes:
        primary: The node the swarm is initialized on.
        managers: Other manager nodes.
        workers: Worker nodes.
        daemon_port: Host port bound to the primary's daemon port.
    """

    primary: NodeRecord
    managers: list[NodeRecord]
    workers: list[NodeRecord]
    daemon_port: str

    @property
    def joiners(self) -> list[NodeRecord]:
        """Every node that has to join the primary's swarm."""
        return [*self.managers, *self.workers]
