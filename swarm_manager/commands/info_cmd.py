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

"""Informational subcommands (env, list)."""

from __future__ import annotations

import typer

from swarm_manager.commands.options import ClusterOption, resolve_cluster
from swarm_manager.config import SindSettings
from swarm_manager.store import ClusterStore


def env(cluster: str | None = ClusterOption) -> None:
    """Print the shell export pointing docker at the cluster.

    Usage: eval "$(sind env -c mycluster)"
    """
    settings = SindSettings()
    record = ClusterStore(settings.home).load(resolve_cluster(settings, cluster))
    typer.echo(f"export DOCKER_HOST={record.cluster.url}")


def list_clusters() -> None:
    """List the recorded clusters."""
    store = ClusterStore(SindSettings().home)
    for name in store.list():
        record = store.load(name)
        typer.echo(f"{record.name}\t{record.cluster.url}\t{record.host.host}")
