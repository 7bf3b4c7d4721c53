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

"""Thin adapters over the docker SDK for the host and the primary node daemons.

Orchestration code only talks to :class:`DockerRuntime` and
:class:`SwarmClient`; tests substitute in-memory fakes with the same methods.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import docker
import requests
import sh
from docker.types import IPAMConfig, IPAMPool
from docker.utils import parse_repository_tag

from swarm_manager import logger
from swarm_manager.constants import (
    DEFAULT_DOCKER_HOST,
    LABEL_CLUSTER_NAME,
    LABEL_CLUSTER_ROLE,
    NODE_ENVIRONMENT,
)
from swarm_manager.models import HostEndpoint, JoinTokens, NodeRecord, NodeRole, SwarmEndpoint
from swarm_manager.utils import require_command

# Errors docker-py raises when a daemon call fails, including raw transport errors.
REMOTE_ERRORS = (docker.errors.DockerException, requests.exceptions.RequestException)


def node_endpoint(attrs: dict, network_name: str | None = None) -> str:
    """Address of a container on its network, falling back to its short id.

    Args:
        attrs: Container inspection payload.
        network_name: Network to read the address from, or None for any.

    Returns:
        IP address of the container, or the first 12 characters of its id.
    """
    networks = attrs.get("NetworkSettings", {}).get("Networks") or {}
    if network_name is not None:
        networks = {network_name: networks.get(network_name) or {}}
    for settings in networks.values():
        address = (settings or {}).get("IPAddress")
        if address:
            return address
    return attrs["Id"][:12]


def published_port(attrs: dict, container_port: str) -> str | None:
    """Host port bound to ``container_port``, or None if it is not published."""
    bindings = (attrs.get("NetworkSettings", {}).get("Ports") or {}).get(container_port)
    if not bindings:
        return None
    return bindings[0].get("HostPort") or None


class SwarmClient:
    """Client of the docker daemon embedded in the primary node."""

    def __init__(self, client: docker.DockerClient) -> None:
        self._client = client

    def ping(self) -> bool:
        return self._client.ping()

    def init(self, listen_addr: str) -> str:
        """Initialize a new swarm with this daemon as its only manager."""
        return self._client.swarm.init(listen_addr=listen_addr)

    def join_tokens(self) -> JoinTokens:
        tokens = self._client.api.inspect_swarm()["JoinTokens"]
        return JoinTokens(manager=tokens["Manager"], worker=tokens["Worker"])

    def list_nodes(self) -> list[dict]:
        return [node.attrs for node in self._client.nodes.list()]

    def close(self) -> None:
        self._client.close()


class DockerRuntime:
    """Operations on the docker host that runs the node containers.

    Args:
        host: Docker host URL, or None to configure from the environment.
        client: Pre-built client, mostly for embedding programs.
    """

    def __init__(self, host: str | None = None, client: docker.DockerClient | None = None) -> None:
        if client is None:
            client = HostEndpoint(host=host).client() if host else docker.from_env()
        self._client = client
        self._host = host

    @property
    def daemon_host(self) -> str:
        return self._host or os.environ.get("DOCKER_HOST") or DEFAULT_DOCKER_HOST

    def close(self) -> None:
        self._client.close()

    # -- Images --

    def image_exists(self, ref: str) -> bool:
        try:
            return len(self._client.images.list(name=ref, all=True)) > 0
        except docker.errors.APIError:
            return False

    def pull_image(self, ref: str) -> None:
        """Pull an image and drain the progress stream until it completes.

        Raises:
            docker.errors.APIError: If the daemon rejects or aborts the pull.
        """
        repository, tag = parse_repository_tag(ref)
        for event in self._client.api.pull(repository, tag=tag, stream=True, decode=True):
            if "error" in event:
                raise docker.errors.APIError(event["error"])
            logger.debug("pull %s: %s", ref, event.get("status"))

    def save_images(self, refs: list[str], output: Path) -> None:
        """Write ``refs`` to a single archive at ``output`` via ``docker save``."""
        require_command("docker")
        env = {**os.environ, "DOCKER_HOST": self.daemon_host}
        try:
            sh.docker("save", "--output", str(output), *refs, _env=env)
        except sh.ErrorReturnCode as err:
            raise docker.errors.DockerException(err.stderr.decode(errors="replace").strip()) from err

    # -- Networks --

    def create_network(self, name: str, labels: dict[str, str], subnet: str | None = None) -> str:
        ipam = IPAMConfig(pool_configs=[IPAMPool(subnet=subnet)]) if subnet else None
        return self._client.networks.create(name, driver="bridge", ipam=ipam, labels=labels).id

    def list_networks(self, cluster_name: str) -> list[str]:
        networks = self._client.networks.list(filters={"label": f"{LABEL_CLUSTER_NAME}={cluster_name}"})
        return [network.id for network in networks]

    def remove_network(self, network_id: str) -> None:
        self._client.networks.get(network_id).remove()

    # -- Containers --

    def run_container(
        self,
        name: str,
        image: str,
        labels: dict[str, str],
        network: str,
        ports: dict[str, Any] | None = None,
        publish_all_ports: bool = False,
    ) -> str:
        """Create a privileged node container and start it.

        Returns:
            The container id.
        """
        container = self._client.containers.create(
            image,
            name=name,
            hostname=name,
            labels=labels,
            network=network,
            environment=NODE_ENVIRONMENT,
            privileged=True,
            ports=ports or {},
            publish_all_ports=publish_all_ports,
        )
        container.start()
        return container.id

    def inspect_container(self, container_id: str) -> dict:
        return self._client.api.inspect_container(container_id)

    def list_containers(self, cluster_name: str, all: bool = False) -> list[NodeRecord]:
        """List the containers labeled with ``cluster_name``.

        Args:
            cluster_name: Owning cluster.
            all: Include stopped containers.
        """
        containers = self._client.containers.list(
            all=all, filters={"label": f"{LABEL_CLUSTER_NAME}={cluster_name}"}
        )
        return [
            NodeRecord(
                role=NodeRole(c.labels.get(LABEL_CLUSTER_ROLE, NodeRole.WORKER.value)),
                name=c.name,
                container_id=c.id,
                endpoint=node_endpoint(c.attrs),
            )
            for c in containers
        ]

    def exec(self, container_id: str, cmd: list[str]) -> tuple[int, str]:
        """Run ``cmd`` inside a container and wait for it.

        Returns:
            Tuple of (exit_code, combined output).
        """
        result = self._client.containers.get(container_id).exec_run(cmd)
        output = result.output.decode(errors="replace") if result.output else ""
        return result.exit_code, output

    def copy_to_container(self, container_id: str, path: str, archive: Path) -> None:
        """Extract the tar ``archive`` into ``path`` inside a container.

        Raises:
            docker.errors.APIError: If the daemon refuses the archive.
        """
        with open(archive, "rb") as f:
            if not self._client.api.put_archive(container_id, path, f):
                raise docker.errors.APIError(f"archive rejected by container {container_id[:12]}")

    def start_container(self, container_id: str) -> None:
        self._client.api.start(container_id)

    def stop_container(self, container_id: str) -> None:
        self._client.api.stop(container_id)

    def remove_container(self, container_id: str) -> None:
        self._client.api.remove_container(container_id, v=True, force=True)

    # -- Swarm --

    def connect_swarm(self, host: str, port: str, timeout: int | None = None) -> SwarmClient:
        """Client of the daemon published by the primary node."""
        return SwarmClient(SwarmEndpoint(host=host, port=port).client(timeout=timeout))
