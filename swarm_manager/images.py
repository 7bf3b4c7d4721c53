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

"""Image distribution: ship host images into every node of a cluster."""

from __future__ import annotations

import os
import tarfile
import tempfile
from collections.abc import Callable
from pathlib import Path

from rich.panel import Panel

from swarm_manager import console, logger
from swarm_manager.constants import ARCHIVE_MODE, ARCHIVE_PREFIX, CONTAINER_ARCHIVE_DIR, PACKAGE_PREFIX
from swarm_manager.context import Context, ContextError
from swarm_manager.exceptions import DistributionFailure
from swarm_manager.models import NodeRecord
from swarm_manager.parallel import run_group
from swarm_manager.runtime import REMOTE_ERRORS, DockerRuntime


def _temp_path(prefix: str) -> Path:
    fd, name = tempfile.mkstemp(prefix=prefix)
    os.close(fd)
    return Path(name)


def package_archive(archive: Path, package: Path) -> None:
    """Wrap ``archive`` as the single regular-file entry of a tar at ``package``.

    The archive is streamed into the tar, never read into memory at once.
    """
    info = tarfile.TarInfo(name=archive.name)
    info.size = archive.stat().st_size
    info.mode = ARCHIVE_MODE
    with tarfile.open(package, "w") as tar, open(archive, "rb") as f:
        tar.addfile(info, f)


def prepare_archive(runtime: DockerRuntime, refs: list[str]) -> tuple[str, Path]:
    """Save ``refs`` from the host and package them for a container copy.

    Args:
        runtime: Host runtime holding the images.
        refs: Image references to save.

    Returns:
        Tuple of (path of the saved images once extracted in a container,
        local path of the packaged tar). The caller removes the package.

    Raises:
        DistributionFailure: If saving or packaging fails.
    """
    archive = _temp_path(ARCHIVE_PREFIX)
    package = _temp_path(PACKAGE_PREFIX)
    try:
        try:
            runtime.save_images(refs, archive)
        except (*REMOTE_ERRORS, RuntimeError) as err:
            raise DistributionFailure("unable to save the images to disk", str(err)) from err
        try:
            package_archive(archive, package)
        except (OSError, tarfile.TarError) as err:
            raise DistributionFailure("unable to package the images archive", str(err)) from err
    except DistributionFailure:
        package.unlink(missing_ok=True)
        raise
    finally:
        archive.unlink(missing_ok=True)
    return f"{CONTAINER_ARCHIVE_DIR.rstrip('/')}/{archive.name}", package


def _copy(runtime: DockerRuntime, node: NodeRecord, package: Path) -> None:
    try:
        runtime.copy_to_container(node.container_id, CONTAINER_ARCHIVE_DIR, package)
    except (*REMOTE_ERRORS, OSError) as err:
        raise DistributionFailure(f"unable to copy the images to node {node.name}", str(err)) from err
    logger.debug("Copied images archive to %s", node.name)


def _load(runtime: DockerRuntime, node: NodeRecord, container_path: str) -> None:
    try:
        exit_code, output = runtime.exec(node.container_id, ["docker", "load", "-i", container_path])
    except REMOTE_ERRORS as err:
        raise DistributionFailure(f"unable to load the images on node {node.name}", str(err)) from err
    if exit_code != 0:
        raise DistributionFailure(
            f"unable to load the images on node {node.name} (exit code {exit_code})", output.strip() or None
        )
    logger.debug("Loaded images on %s", node.name)


def _fan_out(
    ctx: Context,
    nodes: list[NodeRecord],
    action: Callable[[NodeRecord], None],
    phase: str,
    max_workers: int | None,
) -> None:
    try:
        run_group(
            ctx,
            [(node.name, lambda task_ctx, node=node: action(node)) for node in nodes],
            max_workers=max_workers,
        )
    except ContextError as err:
        raise DistributionFailure(f"unable to {phase} the images", str(err)) from err


def push_images(
    ctx: Context,
    runtime: DockerRuntime,
    cluster_name: str,
    refs: list[str],
    max_workers: int | None = None,
) -> int:
    """Make host images available on every running node of a cluster.

    The images are saved once, then copied to all nodes in parallel; only
    when every copy succeeded are they loaded, again in parallel. Temporary
    files are removed whatever the outcome.

    Args:
        ctx: Context bounding the whole operation.
        runtime: Host runtime.
        cluster_name: Target cluster.
        refs: Image references present on the host.
        max_workers: Upper bound on concurrent copies or loads.

    Returns:
        Number of nodes the images were loaded on.

    Raises:
        DistributionFailure: If any phase fails.
    """
    if not refs:
        raise DistributionFailure("no image reference to push")

    console.print(Panel.fit(f"Pushing {len(refs)} image(s) to cluster '{cluster_name}'", style="bold blue"))
    container_path, package = prepare_archive(runtime, refs)
    try:
        try:
            nodes = runtime.list_containers(cluster_name)
        except REMOTE_ERRORS as err:
            raise DistributionFailure("unable to get container list", str(err)) from err

        _fan_out(ctx, nodes, lambda node: _copy(runtime, node, package), "copy", max_workers)
        console.print(f"[green]  ✓ Archive copied to {len(nodes)} node(s)[/green]")
        _fan_out(ctx, nodes, lambda node: _load(runtime, node, container_path), "load", max_workers)
    finally:
        package.unlink(missing_ok=True)

    console.print(f"[green]✅ Loaded {', '.join(refs)} on {len(nodes)} node(s)[/green]")
    return len(nodes)
