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

"""Start and stop subcommands."""

from __future__ import annotations

from swarm_manager import console
from swarm_manager.commands.options import ClusterOption, TimeoutOption, load_settings, resolve_cluster
from swarm_manager.orchestrator import run_start, run_stop


def start(
    cluster: str | None = ClusterOption,
    timeout: float | None = TimeoutOption,
) -> None:
    """Start a stopped cluster."""
    settings = load_settings(timeout)
    record = run_start(resolve_cluster(settings, cluster), settings)
    console.print(f"[green]Swarm available on {record.cluster.url}[/green]")


def stop(
    cluster: str | None = ClusterOption,
    timeout: float | None = TimeoutOption,
) -> None:
    """Stop a cluster without removing it."""
    settings = load_settings(timeout)
    run_stop(resolve_cluster(settings, cluster), settings)
