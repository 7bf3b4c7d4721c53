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

"""Swarm bootstrap: provision nodes, init the primary, fan out joins, converge."""

from __future__ import annotations

from collections.abc import Callable

from rich.panel import Panel

from swarm_manager import console, logger
from swarm_manager.cluster import provision_topology
from swarm_manager.config import ClusterSpec, SindSettings
from swarm_manager.constants import SWARM_LISTEN_ADDR, SWARM_PORT
from swarm_manager.context import Context, ContextError
from swarm_manager.exceptions import (
    BootstrapFailure,
    ConnectivityFailure,
    ConvergenceTimeout,
    JoinFailure,
    ProvisioningFailure,
)
from swarm_manager.models import (
    ClusterResult,
    HostEndpoint,
    JoinTokens,
    NodeRecord,
    SwarmEndpoint,
    Topology,
)
from swarm_manager.parallel import run_group
from swarm_manager.readiness import wait_cluster_ready, wait_daemon_ready
from swarm_manager.runtime import REMOTE_ERRORS, DockerRuntime, SwarmClient
from swarm_manager.utils import swarm_host


def join_command(token: str, manager_addr: str) -> list[str]:
    return ["docker", "swarm", "join", "--token", token, manager_addr]


def _join_node(runtime: DockerRuntime, node: NodeRecord, tokens: JoinTokens, manager_addr: str) -> None:
    try:
        exit_code, output = runtime.exec(node.container_id, join_command(tokens.for_role(node.role), manager_addr))
    except REMOTE_ERRORS as err:
        raise JoinFailure(f"unable to run join on node {node.name}", str(err)) from err
    if exit_code != 0:
        raise JoinFailure(f"node {node.name} failed to join (exit code {exit_code})", output.strip() or None)
    logger.debug("Node %s joined as %s", node.name, node.role.value)


def join_nodes(
    ctx: Context,
    runtime: DockerRuntime,
    topology: Topology,
    tokens: JoinTokens,
    max_workers: int | None = None,
) -> None:
    """Join every non-primary node to the primary's swarm, concurrently.

    Raises:
        JoinFailure: On the first node that fails to join, or when the
            context finishes before every join returned.
    """
    manager_addr = f"{topology.primary.endpoint}:{SWARM_PORT}"

    def _task(node: NodeRecord) -> Callable[[Context], None]:
        return lambda task_ctx: _join_node(runtime, node, tokens, manager_addr)

    try:
        run_group(ctx, [(node.name, _task(node)) for node in topology.joiners], max_workers=max_workers)
    except ContextError as err:
        raise JoinFailure("unable to build the cluster", str(err)) from err


def init_swarm(client: SwarmClient) -> JoinTokens:
    """Initialize the swarm on the primary and read its join tokens.

    Must be called exactly once per cluster, after the daemon answers and
    before any join.

    Raises:
        BootstrapFailure: If initialization or token retrieval fails.
    """
    try:
        client.init(SWARM_LISTEN_ADDR)
    except REMOTE_ERRORS as err:
        raise BootstrapFailure("unable to init the swarm", str(err)) from err
    try:
        return client.join_tokens()
    except (*REMOTE_ERRORS, KeyError) as err:
        raise BootstrapFailure("unable to collect join tokens", str(err)) from err


def _convergence_details(
    err: ContextError,
    spec: ClusterSpec,
    observed: dict[str, int],
    last_error: BaseException | None,
) -> str:
    details = (
        f"{err}; observed managers={observed.get('managers', 0)}/{spec.managers}, "
        f"workers={observed.get('workers', 0)}/{spec.workers}"
    )
    if last_error is not None:
        details += f"; last error: {last_error}"
    return details


def create_cluster(
    ctx: Context,
    spec: ClusterSpec,
    runtime: DockerRuntime,
    settings: SindSettings | None = None,
) -> ClusterResult:
    """Create a swarm cluster out of docker-in-docker containers.

    Steps run in a fixed order: validation, provisioning, daemon readiness,
    swarm init and token retrieval on the primary, concurrent joins, and
    finally convergence polling. Any failure aborts the whole operation;
    resources already created are left for the caller to delete.

    Args:
        ctx: Context bounding the whole operation.
        spec: Cluster parameters.
        runtime: Host runtime.
        settings: Tool settings, or None for defaults.

    Returns:
        The record of the converged cluster.

    Raises:
        InvalidConfiguration: If the spec is invalid; nothing was created.
        ProvisioningFailure: If the image, network, or nodes cannot be set up.
        ConnectivityFailure: If the primary daemon cannot be reached.
        BootstrapFailure: If the swarm cannot be initialized.
        JoinFailure: If a node fails to join.
        ConvergenceTimeout: If the expected topology is not observed in time.
    """
    spec.validate()
    if settings is None:
        settings = SindSettings()

    try:
        topology = provision_topology(ctx, runtime, spec, max_workers=settings.max_parallel)
    except ContextError as err:
        raise ProvisioningFailure("unable to provision the cluster nodes", str(err)) from err

    try:
        host = swarm_host(runtime.daemon_host)
    except ValueError as err:
        raise ConnectivityFailure("unable to get the remote docker daemon host", str(err)) from err

    console.print(Panel.fit("Bootstrapping swarm", style="bold blue"))
    client = runtime.connect_swarm(host, topology.daemon_port, timeout=settings.probe_timeout)
    try:
        last_error: list[BaseException] = []
        try:
            wait_daemon_ready(ctx, client, settings.poll_interval, on_failure=last_error.append)
        except ContextError as err:
            details = f"{err}; last error: {last_error[-1]}" if last_error else str(err)
            raise ConnectivityFailure("unable to connect to the swarm cluster", details) from err
        console.print(f"[green]  ✓ Primary daemon reachable on {host}:{topology.daemon_port}[/green]")

        tokens = init_swarm(client)
        console.print(f"[green]  ✓ Swarm initialized on {topology.primary.name}[/green]")

        join_nodes(ctx, runtime, topology, tokens, max_workers=settings.max_parallel)
        console.print(f"[green]  ✓ {len(topology.joiners)} node(s) joined[/green]")

        console.print("[yellow]ℹ️  Waiting for the swarm to converge...[/yellow]")
        observed: dict[str, int] = {}
        last_error.clear()
        try:
            wait_cluster_ready(
                ctx, client, spec.managers, spec.workers,
                settings.poll_interval, on_failure=last_error.append, observed=observed,
            )
        except ContextError as err:
            raise ConvergenceTimeout(
                "unable to check swarm cluster",
                _convergence_details(err, spec, observed, last_error[-1] if last_error else None),
            ) from err
    finally:
        client.close()

    console.print(f"[green]✅ Cluster '{spec.cluster_name}' is ready[/green]")
    return ClusterResult(
        name=spec.cluster_name,
        cluster=SwarmEndpoint(host=host, port=topology.daemon_port),
        host=HostEndpoint(host=runtime.daemon_host),
    )
