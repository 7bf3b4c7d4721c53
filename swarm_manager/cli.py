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

"""
cli.py - Command line interface for swarm clusters in docker.

Subcommands:
    create    Create a new swarm cluster
    start     Start a stopped cluster
    stop      Stop a cluster
    delete    Delete a cluster and its record
    push      Push host images to every node of a cluster
    env       Print the DOCKER_HOST export for a cluster
    list      List recorded clusters

Environment Variables:
    Defaults can be overridden via SIND_* environment variables:
    - SIND_HOME (default: ~/.sind)
    - SIND_CLUSTER_NAME (default: sind_default)
    - SIND_TIMEOUT (default: 30 seconds)
    - SIND_MAX_PARALLEL (default: one task per node)

Examples:
    # Create a cluster with 3 managers and 2 workers
    sind create -c demo -m 3 -w 2

    # Use it
    eval "$(sind env -c demo)"

    # Ship a local image to every node
    sind push -c demo myapp:latest

    # Tear it down
    sind delete -c demo
"""

from __future__ import annotations

import logging
import sys

import typer

from swarm_manager import console
from swarm_manager.commands import create_cmd, delete_cmd, info_cmd, lifecycle_cmd, push_cmd

app = typer.Typer(
    help="Easily create swarm clusters on a docker host using swarm in docker.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Initialize logging for all subcommands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("docker").setLevel(logging.WARNING)


app.command("create")(create_cmd.create)
app.command("start")(lifecycle_cmd.start)
app.command("stop")(lifecycle_cmd.stop)
app.command("delete")(delete_cmd.delete)
app.command("push")(push_cmd.push)
app.command("env")(info_cmd.env)
app.command("list")(info_cmd.list_clusters)


def main() -> None:
    """Console script entry point."""
    try:
        app()
    except Exception as e:
        console.print(f"[red]❌ {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
