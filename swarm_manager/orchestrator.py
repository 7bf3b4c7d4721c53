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

"""Orchestration functions that compose domain modules into CLI workflows."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from swarm_manager.bootstrap import create_cluster
from swarm_manager.cluster import delete_cluster, start_cluster, stop_cluster
from swarm_manager.config import ClusterSpec, SindSettings
from swarm_manager.context import Context
from swarm_manager.images import push_images
from swarm_manager.models import ClusterResult
from swarm_manager.runtime import DockerRuntime
from swarm_manager.store import ClusterStore

# ============================================================================
# Internal helpers
# ============================================================================


@contextmanager
def _host_runtime(host: str | None, runtime: DockerRuntime | None) -> Iterator[DockerRuntime]:
    """Yield ``runtime`` if given, otherwise a runtime owned by the block."""
    if runtime is not None:
        yield runtime
        return
    owned = DockerRuntime(host=host)
    try:
        yield owned
    finally:
        owned.close()


def _context(settings: SindSettings) -> Context:
    return Context.with_timeout(settings.timeout)


# ============================================================================
# Public API
# ============================================================================


def run_create(
    spec: ClusterSpec,
    settings: SindSettings,
    *,
    runtime: DockerRuntime | None = None,
) -> ClusterResult:
    """Create a cluster and record it.

    The spec and the name are checked before the docker host is contacted.

    Args:
        spec: Cluster parameters.
        settings: Tool settings (store location, deadline, polling).
        runtime: Host runtime, or None to connect from the environment.

    Returns:
        The stored cluster record.
    """
    spec.validate()
    store = ClusterStore(settings.home)
    store.check_available(spec.cluster_name)

    ctx = _context(settings)
    with _host_runtime(None, runtime) as host_runtime:
        result = create_cluster(ctx, spec, host_runtime, settings)
    store.save(result)
    return result


def run_start(
    name: str,
    settings: SindSettings,
    *,
    runtime: DockerRuntime | None = None,
) -> ClusterResult:
    """Start a stopped cluster and refresh its record with the new daemon port."""
    store = ClusterStore(settings.home)
    record = store.load(name)
    ctx = _context(settings)
    with _host_runtime(record.host.host, runtime) as host_runtime:
        port = start_cluster(ctx, host_runtime, name, max_workers=settings.max_parallel)
    if port is not None and port != record.cluster.port:
        record = record.model_copy(update={"cluster": record.cluster.model_copy(update={"port": port})})
        store.save(record)
    return record


def run_stop(
    name: str,
    settings: SindSettings,
    *,
    runtime: DockerRuntime | None = None,
) -> int:
    """Stop every container of a recorded cluster."""
    record = ClusterStore(settings.home).load(name)
    ctx = _context(settings)
    with _host_runtime(record.host.host, runtime) as host_runtime:
        return stop_cluster(ctx, host_runtime, name, max_workers=settings.max_parallel)


def run_delete(
    name: str,
    settings: SindSettings,
    *,
    runtime: DockerRuntime | None = None,
) -> int:
    """Remove a recorded cluster's resources, then its record."""
    store = ClusterStore(settings.home)
    record = store.load(name)
    ctx = _context(settings)
    with _host_runtime(record.host.host, runtime) as host_runtime:
        removed = delete_cluster(ctx, host_runtime, name, max_workers=settings.max_parallel)
    store.delete(name)
    return removed


def run_push(
    name: str,
    refs: list[str],
    settings: SindSettings,
    *,
    runtime: DockerRuntime | None = None,
) -> int:
    """Push host images into every running node of a recorded cluster."""
    record = ClusterStore(settings.home).load(name)
    ctx = _context(settings)
    with _host_runtime(record.host.host, runtime) as host_runtime:
        return push_images(ctx, host_runtime, name, refs, max_workers=settings.max_parallel)
