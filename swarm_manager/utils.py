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

"""Utility functions for port specs, daemon addresses, and command checks."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any
from urllib.parse import urlparse

import sh
from docker.utils.ports import split_port

from swarm_manager.constants import LOCAL_SCHEMES


def parse_port_bindings(specs: Iterable[str]) -> dict[str, Any]:
    """Convert ``[ip:][hostPort:]containerPort[/proto]`` specs to docker SDK ports.

    Args:
        specs: Port specs as accepted by ``docker run -p``.

    Returns:
        Mapping of container port to host binding(s), suitable for the
        ``ports`` argument of ``containers.create``.

    Raises:
        ValueError: If a spec cannot be parsed.
    """
    bindings: dict[str, list[Any]] = {}
    for spec in specs:
        internal, external = split_port(spec)
        if external is None:
            external = [None] * len(internal)
        for container_port, host_binding in zip(internal, external):
            bindings.setdefault(container_port, []).append(host_binding)
    return {port: hosts[0] if len(hosts) == 1 else hosts for port, hosts in bindings.items()}


def swarm_host(daemon_host: str) -> str:
    """Resolve the address under which the host publishes container ports.

    Ports published by a local daemon (unix socket or named pipe) are bound
    on localhost; for a remote daemon they are bound on the daemon's host.

    Args:
        daemon_host: Docker host URL (e.g. ``unix:///var/run/docker.sock``).

    Returns:
        Hostname to use when connecting to published ports.

    Raises:
        ValueError: If no hostname can be extracted from a remote URL.
    """
    parsed = urlparse(daemon_host)
    if parsed.scheme in LOCAL_SCHEMES:
        return "localhost"
    if not parsed.hostname:
        raise ValueError(f"unable to extract a host from {daemon_host!r}")
    return parsed.hostname


def require_command(cmd: str) -> None:
    """Check if a command exists on the system PATH.

    Args:
        cmd: Name of the CLI command to check.

    Raises:
        RuntimeError: If the command is not found.
    """
    try:
        sh.which(cmd)
    except sh.ErrorReturnCode as err:
        raise RuntimeError(f"Required command '{cmd}' not found. Please install it first.") from err
