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

"""Node provisioning and label-driven cluster lifecycle (start, stop, delete)."""

from __future__ import annotations

from collections.abc import Callable

from rich.panel import Panel

from swarm_manager import console, logger
from swarm_manager.config import ClusterSpec
from swarm_manager.constants import DAEMON_PORT, LABEL_CLUSTER_NAME, LABEL_CLUSTER_ROLE
from swarm_manager.context import Context
from swarm_manager.exceptions import ConnectivityFailure, LifecycleFailure, ProvisioningFailure
from swarm_manager.models import NameGenerator, NodeRecord, NodeRole, Topology
from swarm_manager.parallel import run_group
from swarm_manager.runtime import REMOTE_ERRORS, DockerRuntime, node_endpoint, published_port
from swarm_manager.utils import parse_port_bindings

ERR_PRIMARY_NODE_NOT_BOUND = "primary node is not exposing docker daemon port"


# ============================================================================
# Provisioning
# ============================================================================

def ensure_image(runtime: DockerRuntime, image: str, pull: bool) -> None:
    """Pull the node image when forced or missing locally.

    Args:
        runtime: Host runtime.
        image: Node image reference.
        pull: Pull even if the image is already present.

    Raises:
        ProvisioningFailure: If the pull fails.
    """
    if not pull and runtime.image_exists(image):
        logger.debug("Image %s already present", image)
        return

    console.print(f"[yellow]ℹ️  Pulling image {image}...[/yellow]")
    try:
        runtime.pull_image(image)
    except REMOTE_ERRORS as err:
        raise ProvisioningFailure(f"unable to pull the {image} image", str(err)) from err


def _labels(spec: ClusterSpec, role: NodeRole) -> dict[str, str]:
    return {LABEL_CLUSTER_NAME: spec.cluster_name, LABEL_CLUSTER_ROLE: role.value}


def _run_node(
    runtime: DockerRuntime,
    spec: ClusterSpec,
    role: NodeRole,
    name: str,
    **options,
) -> tuple[NodeRecord, dict]:
    container_id = runtime.run_container(
        name, spec.image_name, _labels(spec, role), spec.network_name, **options
    )
    attrs = runtime.inspect_container(container_id)
    record = NodeRecord(
        role=role,
        name=name,
        container_id=container_id,
        endpoint=node_endpoint(attrs, spec.network_name),
    )
    logger.debug("Started %s node %s (%s)", role.value, name, container_id[:12])
    return record, attrs


def run_primary(runtime: DockerRuntime, spec: ClusterSpec, name: str) -> tuple[NodeRecord, str]:
    """Create and start the primary node, the only node publishing ports.

    Args:
        runtime: Host runtime.
        spec: Validated cluster spec.
        name: Name of the primary node.

    Returns:
        Tuple of (primary node record, host port bound to its daemon).

    Raises:
        ProvisioningFailure: If the container cannot be created or started.
        ConnectivityFailure: If the daemon port is not published on the host.
    """
    try:
        primary, attrs = _run_node(
            runtime, spec, NodeRole.PRIMARY, name,
            ports=parse_port_bindings(spec.port_bindings),
            publish_all_ports=True,
        )
    except REMOTE_ERRORS as err:
        raise ProvisioningFailure("unable to create the primary node", str(err)) from err

    port = published_port(attrs, DAEMON_PORT)
    if port is None:
        raise ConnectivityFailure("unable to get the remote docker daemon port", ERR_PRIMARY_NODE_NOT_BOUND)
    return primary, port


def run_nodes(
    ctx: Context,
    runtime: DockerRuntime,
    spec: ClusterSpec,
    role: NodeRole,
    names: list[str],
    max_workers: int | None = None,
) -> list[NodeRecord]:
    """Create and start one node per name, concurrently.

    Names are assigned before any task starts. The first failure cancels the
    tasks that did not start yet; containers already created are left as is.

    Raises:
        ProvisioningFailure: If any node cannot be created or started.
    """

    def _task(name: str) -> Callable[[Context], NodeRecord]:
        return lambda task_ctx: _run_node(runtime, spec, role, name)[0]

    try:
        return run_group(ctx, [(name, _task(name)) for name in names], max_workers=max_workers)
    except REMOTE_ERRORS as err:
        raise ProvisioningFailure(f"unable to create {role.value} nodes", str(err)) from err


def provision_topology(
    ctx: Context,
    runtime: DockerRuntime,
    spec: ClusterSpec,
    max_workers: int | None = None,
) -> Topology:
    """Create the cluster network and every node container.

    The image is made available first, then the network, then the primary
    node alone, and finally the other managers and the workers in parallel.

    Args:
        ctx: Context bounding the whole operation.
        runtime: Host runtime.
        spec: Validated cluster spec.
        max_workers: Upper bound on concurrent node creations.

    Returns:
        The provisioned topology.
    """
    ctx.raise_if_done()
    console.print(Panel.fit(f"Provisioning nodes for cluster '{spec.cluster_name}'", style="bold blue"))
    ensure_image(runtime, spec.image_name, spec.pull_image)

    try:
        network_id = runtime.create_network(
            spec.network_name, {LABEL_CLUSTER_NAME: spec.cluster_name}, spec.network_subnet
        )
    except REMOTE_ERRORS as err:
        raise ProvisioningFailure("unable to create cluster network", str(err)) from err
    logger.debug("Created network %s (%s)", spec.network_name, network_id[:12])

    manager_names = NameGenerator.managers(spec.cluster_name)
    worker_names = NameGenerator.workers(spec.cluster_name)

    ctx.raise_if_done()
    primary, daemon_port = run_primary(runtime, spec, manager_names.generate())
    console.print(f"[green]  ✓ Primary node {primary.name} (daemon on port {daemon_port})[/green]")

    managers = run_nodes(ctx, runtime, spec, NodeRole.MANAGER, manager_names.take(spec.managers_to_run), max_workers)
    workers = run_nodes(ctx, runtime, spec, NodeRole.WORKER, worker_names.take(spec.workers), max_workers)
    console.print(
        f"[green]✅ Started {1 + len(managers)} manager(s) and {len(workers)} worker(s)[/green]"
    )
    return Topology(primary=primary, managers=managers, workers=workers, daemon_port=daemon_port)


# ============================================================================
# Lifecycle
# ============================================================================

def list_containers(runtime: DockerRuntime, cluster_name: str, all: bool = False) -> list[NodeRecord]:
    """List the node containers of a cluster.

    Args:
        runtime: Host runtime.
        cluster_name: Owning cluster.
        all: Include stopped containers.

    Raises:
        LifecycleFailure: If the runtime cannot list containers.
    """
    try:
        return runtime.list_containers(cluster_name, all=all)
    except REMOTE_ERRORS as err:
        raise LifecycleFailure("unable to list cluster containers", str(err)) from err


def _for_each(
    ctx: Context,
    nodes: list[NodeRecord],
    action: Callable[[str], None],
    max_workers: int | None,
) -> None:
    run_group(
        ctx,
        [(node.name, lambda task_ctx, cid=node.container_id: action(cid)) for node in nodes],
        max_workers=max_workers,
    )


def stop_cluster(ctx: Context, runtime: DockerRuntime, cluster_name: str, max_workers: int | None = None) -> int:
    """Stop every running container of a cluster.

    Returns:
        Number of containers stopped.

    Raises:
        LifecycleFailure: If a container cannot be stopped.
    """
    console.print(f"[yellow]ℹ️  Stopping cluster '{cluster_name}'...[/yellow]")
    nodes = list_containers(runtime, cluster_name)
    try:
        _for_each(ctx, nodes, runtime.stop_container, max_workers)
    except REMOTE_ERRORS as err:
        raise LifecycleFailure("unable to stop cluster", str(err)) from err
    console.print(f"[green]✅ Cluster '{cluster_name}' stopped ({len(nodes)} containers)[/green]")
    return len(nodes)


def start_cluster(
    ctx: Context,
    runtime: DockerRuntime,
    cluster_name: str,
    max_workers: int | None = None,
) -> str | None:
    """Start every container of a stopped cluster, primary first.

    Returns:
        Host port now bound to the primary's daemon, or None if the cluster
        has no primary container left.

    Raises:
        LifecycleFailure: If a container cannot be started.
    """
    console.print(f"[yellow]ℹ️  Starting cluster '{cluster_name}'...[/yellow]")
    nodes = list_containers(runtime, cluster_name, all=True)
    primaries = [node for node in nodes if node.role is NodeRole.PRIMARY]
    others = [node for node in nodes if node.role is not NodeRole.PRIMARY]
    try:
        for primary in primaries:
            runtime.start_container(primary.container_id)
        _for_each(ctx, others, runtime.start_container, max_workers)
        port = published_port(runtime.inspect_container(primaries[0].container_id), DAEMON_PORT) if primaries else None
    except REMOTE_ERRORS as err:
        raise LifecycleFailure("unable to start cluster", str(err)) from err
    console.print(f"[green]✅ Cluster '{cluster_name}' started ({len(nodes)} containers)[/green]")
    return port


def delete_cluster(ctx: Context, runtime: DockerRuntime, cluster_name: str, max_workers: int | None = None) -> int:
    """Remove every container and network labeled with the cluster name.

    Returns:
        Number of containers removed.

    Raises:
        LifecycleFailure: If a resource cannot be removed.
    """
    console.print(f"[yellow]ℹ️  Deleting cluster '{cluster_name}'...[/yellow]")
    nodes = list_containers(runtime, cluster_name, all=True)
    try:
        _for_each(ctx, nodes, runtime.remove_container, max_workers)
        for network_id in runtime.list_networks(cluster_name):
            runtime.remove_network(network_id)
    except REMOTE_ERRORS as err:
        raise LifecycleFailure("unable to delete cluster", str(err)) from err
    console.print(f"[green]✅ Cluster '{cluster_name}' deleted[/green]")
    return len(nodes)
