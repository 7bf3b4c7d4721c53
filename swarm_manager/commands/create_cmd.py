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

"""Create subcommand."""

from __future__ import annotations

import typer

from swarm_manager import console
from swarm_manager.commands.options import ClusterOption, TimeoutOption, load_settings, resolve_cluster
from swarm_manager.config import ClusterSpec
from swarm_manager.orchestrator import run_create


def create(
    cluster: str | None = ClusterOption,
    managers: int = typer.Option(1, "--managers", "-m", help="Amount of managers in the created cluster"),
    workers: int = typer.Option(0, "--workers", "-w", help="Amount of workers in the created cluster"),
    network: str | None = typer.Option(
        None, "--network-name", "-n", help="Name of the network to create (default: SIND_NETWORK_NAME)"),
    subnet: str | None = typer.Option(None, "--subnet", help="Subnet of the network to create"),
    ports: list[str] | None = typer.Option(None, "--ports", "-p", help="Ingress network port binding"),
    image: str | None = typer.Option(
        None, "--image", "-i", help="Name of the image to use for the nodes (default: SIND_NODE_IMAGE)"),
    pull: bool = typer.Option(False, "--pull", help="Pull the node image even if present"),
    timeout: float | None = TimeoutOption,
) -> None:
    """Create a new swarm cluster."""
    settings = load_settings(timeout)
    spec = ClusterSpec(
        cluster_name=resolve_cluster(settings, cluster),
        network_name=network if network is not None else settings.network_name,
        managers=managers,
        workers=workers,
        network_subnet=subnet,
        image=image if image is not None else settings.node_image,
        pull_image=pull,
        port_bindings=tuple(ports or ()),
    )
    console.print(
        f"[yellow]ℹ️  Creating a new cluster '{spec.cluster_name}' with "
        f"{spec.managers} manager(s) and {spec.workers} worker(s)...[/yellow]"
    )
    result = run_create(spec, settings)
    console.print(f"[green]✅ Cluster {result.name} successfully created ({result.cluster.url})[/green]")
