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

"""Fixed-interval readiness polling against a node daemon."""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, wait

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_not_exception_type,
    retry_if_result,
    wait_fixed,
)

from swarm_manager import logger
from swarm_manager.constants import (
    GROUP_WAIT_SLICE_SECONDS,
    NODE_STATE_READY,
    POLL_INTERVAL_SECONDS,
    SWARM_ROLE_MANAGER,
    SWARM_ROLE_WORKER,
)
from swarm_manager.context import Context, ContextError
from swarm_manager.runtime import SwarmClient


def wait_until(
    ctx: Context,
    check: Callable[[], bool],
    interval: float = POLL_INTERVAL_SECONDS,
    description: str = "condition",
    on_failure: Callable[[BaseException], None] | None = None,
) -> None:
    """Call ``check`` every ``interval`` seconds until it returns True.

    Errors raised by ``check`` count as "not ready yet" and are retried on
    the next tick. Each check runs on a helper thread while the caller waits
    on ``ctx``, so a check blocked on the network cannot hold the caller past
    the deadline; an abandoned check finishes in the background. Sleeping
    also happens on ``ctx``.

    Args:
        ctx: Context bounding the wait.
        check: Predicate to poll.
        interval: Fixed delay between two checks.
        description: What is being waited for, used in log messages.
        on_failure: Called with every error swallowed during polling.

    Raises:
        ContextError: The context error, as reported by ``ctx``.
    """
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="sind-poll")

    def _attempt() -> bool:
        ctx.raise_if_done()
        future = executor.submit(check)
        while not wait([future], timeout=GROUP_WAIT_SLICE_SECONDS).done:
            ctx.raise_if_done()
        return future.result()

    def _before_sleep(retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome
        if outcome is not None and outcome.failed:
            error = outcome.exception()
            logger.debug("Waiting for %s (attempt %d): %s", description, retry_state.attempt_number, error)
            if on_failure is not None:
                on_failure(error)

    retrying = Retrying(
        sleep=ctx.sleep,
        wait=wait_fixed(interval),
        stop=lambda retry_state: ctx.done(),
        retry=retry_if_result(lambda ready: not ready) | retry_if_not_exception_type(ContextError),
        before_sleep=_before_sleep,
    )
    try:
        retrying(_attempt)
    except RetryError:
        raise ctx.err() from None
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
    logger.debug("%s reached", description)


def count_nodes_per_role(nodes: list[dict]) -> tuple[int, int]:
    """Count ready swarm nodes by role.

    Args:
        nodes: Node inspection payloads as returned by the swarm API.

    Returns:
        Tuple of (ready_managers, ready_workers).
    """
    managers = workers = 0
    for node in nodes:
        if node.get("Status", {}).get("State") != NODE_STATE_READY:
            continue
        role = node.get("Spec", {}).get("Role")
        if role == SWARM_ROLE_MANAGER:
            managers += 1
        elif role == SWARM_ROLE_WORKER:
            workers += 1
    return managers, workers


def wait_daemon_ready(
    ctx: Context,
    client: SwarmClient,
    interval: float = POLL_INTERVAL_SECONDS,
    on_failure: Callable[[BaseException], None] | None = None,
) -> None:
    """Wait until the node daemon answers a ping."""
    wait_until(ctx, client.ping, interval, "daemon readiness", on_failure)


def wait_cluster_ready(
    ctx: Context,
    client: SwarmClient,
    expected_managers: int,
    expected_workers: int,
    interval: float = POLL_INTERVAL_SECONDS,
    on_failure: Callable[[BaseException], None] | None = None,
    observed: dict[str, int] | None = None,
) -> None:
    """Wait until the swarm lists exactly the expected ready managers and workers.

    Args:
        ctx: Context bounding the wait.
        client: Client of a swarm manager.
        expected_managers: Ready managers to observe, primary included.
        expected_workers: Ready workers to observe.
        interval: Fixed delay between two checks.
        on_failure: Called with every swallowed query error.
        observed: Updated with the last observed counts, if given.
    """

    def _converged() -> bool:
        managers, workers = count_nodes_per_role(client.list_nodes())
        if observed is not None:
            observed.update(managers=managers, workers=workers)
        return managers == expected_managers and workers == expected_workers

    wait_until(ctx, _converged, interval, "cluster convergence", on_failure)
