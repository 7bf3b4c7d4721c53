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

"""Push subcommand."""

from __future__ import annotations

import typer

from swarm_manager.commands.options import ClusterOption, TimeoutOption, load_settings, resolve_cluster
from swarm_manager.orchestrator import run_push


def push(
    images: list[str] = typer.Argument(..., help="Image references present on the host"),
    cluster: str | None = ClusterOption,
    timeout: float | None = TimeoutOption,
) -> None:
    """Push images from the host to every node of a cluster."""
    settings = load_settings(timeout)
    run_push(resolve_cluster(settings, cluster), images, settings)
