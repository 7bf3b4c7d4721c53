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

"""Options shared by several subcommands."""

from __future__ import annotations

import typer

from swarm_manager.config import SindSettings

ClusterOption = typer.Option(None, "--cluster", "-c", help="Cluster name (default: SIND_CLUSTER_NAME)")
TimeoutOption = typer.Option(None, "--timeout", "-t", help="Command timeout in seconds (default: SIND_TIMEOUT)")


def load_settings(timeout: float | None = None) -> SindSettings:
    """Load settings from the environment, applying a validated --timeout override."""
    settings = SindSettings()
    if timeout is not None:
        settings = SindSettings.model_validate({**settings.model_dump(), "timeout": timeout})
    return settings


def resolve_cluster(settings: SindSettings, cluster: str | None) -> str:
    return cluster if cluster is not None else settings.cluster_name
