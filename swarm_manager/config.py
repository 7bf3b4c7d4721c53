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

"""Configuration classes and the validated cluster specification."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from swarm_manager.constants import (
    DEFAULT_CLUSTER_NAME,
    DEFAULT_HOME,
    DEFAULT_NETWORK_NAME,
    DEFAULT_NODE_IMAGE,
    DEFAULT_PROBE_TIMEOUT_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    POLL_INTERVAL_SECONDS,
)
from swarm_manager.exceptions import InvalidConfiguration
from swarm_manager.utils import parse_port_bindings

# -- Validation reasons --
ERR_EMPTY_CLUSTER_NAME = "empty-cluster-name"
ERR_EMPTY_NETWORK_NAME = "empty-network-name"
ERR_INVALID_MANAGER_COUNT = "invalid-manager-count"
ERR_INVALID_WORKER_COUNT = "invalid-worker-count"
ERR_INVALID_PORT_BINDING = "invalid-port-binding"


# ============================================================================
# Configuration classes
# ============================================================================

class SindSettings(BaseSettings):
    """Tool settings, auto-loaded from SIND_* env vars.

    Attributes:
        home: Directory holding the cluster records.
        cluster_name: Default cluster name for CLI commands.
        network_name: Default network name for new clusters.
        node_image: Default docker-in-docker image for nodes.
        timeout: Default deadline in seconds for a whole command.
        poll_interval: Readiness poll interval in seconds.
        probe_timeout: Per-request timeout of the client talking to the primary.
        max_parallel: Upper bound on concurrent fan-out tasks, or None for one
            task per node.
    """

    model_config = SettingsConfigDict(env_prefix="SIND_", extra="ignore")

    home: Path = DEFAULT_HOME
    cluster_name: str = DEFAULT_CLUSTER_NAME
    network_name: str = DEFAULT_NETWORK_NAME
    node_image: str = DEFAULT_NODE_IMAGE
    timeout: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    poll_interval: float = Field(default=POLL_INTERVAL_SECONDS, gt=0)
    probe_timeout: int = Field(default=DEFAULT_PROBE_TIMEOUT_SECONDS, ge=1)
    max_parallel: int | None = Field(default=None, ge=1)


# ============================================================================
# Cluster specification
# ============================================================================

@dataclass(frozen=True)
class ClusterSpec:
    """Parameters of a cluster to create.

    Attributes:
        cluster_name: Name of the cluster, used for labels and node names.
        network_name: Name of the network created for the cluster.
        managers: Number of manager nodes, primary included.
        workers: Number of worker nodes.
        network_subnet: Optional subnet (CIDR) for the network.
        image: Node image, or empty for the default dind image.
        pull_image: Whether to pull the image even if present locally.
        port_bindings: Host port specs published on the primary node.
    """

    cluster_name: str
    network_name: str
    managers: int = 1
    workers: int = 0
    network_subnet: str | None = None
    image: str = ""
    pull_image: bool = False
    port_bindings: tuple[str, ...] = field(default_factory=tuple)

    @property
    def image_name(self) -> str:
        return self.image or DEFAULT_NODE_IMAGE

    @property
    def managers_to_run(self) -> int:
        """Managers to create besides the primary."""
        return self.managers - 1

    def validate(self) -> None:
        """Check the spec before any side effect.

        Raises:
            InvalidConfiguration: With the reason of the first failed check.
        """
        if not self.cluster_name:
            raise InvalidConfiguration(ERR_EMPTY_CLUSTER_NAME)
        if not self.network_name:
            raise InvalidConfiguration(ERR_EMPTY_NETWORK_NAME)
        if self.managers < 1:
            raise InvalidConfiguration(ERR_INVALID_MANAGER_COUNT, "must be >= 1")
        if self.workers < 0:
            raise InvalidConfiguration(ERR_INVALID_WORKER_COUNT, "must be >= 0")
        try:
            parse_port_bindings(self.port_bindings)
        except ValueError as err:
            raise InvalidConfiguration(ERR_INVALID_PORT_BINDING, str(err)) from err
