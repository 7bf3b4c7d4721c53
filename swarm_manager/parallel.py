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

"""Fan-out groups: one thread per target, shared cancellation, first error wins."""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import TypeVar

from swarm_manager import logger
from swarm_manager.constants import GROUP_WAIT_SLICE_SECONDS
from swarm_manager.context import Context

T = TypeVar("T")


class _Group:
    """Shared state of one fan-out: its context and its first error."""

    def __init__(self, ctx: Context) -> None:
        self.ctx = ctx
        self.error: BaseException | None = None
        self._lock = threading.Lock()

    def run(self, name: str, task: Callable[[Context], T]) -> T:
        self.ctx.raise_if_done()
        logger.debug("Starting task %s", name)
        try:
            result = task(self.ctx)
        except Exception as err:
            with self._lock:
                if self.error is None:
                    self.error = err
                    logger.debug("Task %s failed: %s", name, err)
            self.ctx.cancel()
            raise
        logger.debug("Task %s finished", name)
        return result


def run_group(
    ctx: Context,
    tasks: Sequence[tuple[str, Callable[[Context], T]]],
    max_workers: int | None = None,
) -> list[T]:
    """Run tasks concurrently and join on all of them.

    Each task receives a child context of ``ctx``. The first task to fail
    cancels that child context, so tasks that have not started yet never
    run; tasks already running are not interrupted, and whatever remote
    work they issued is not undone. The wait itself watches ``ctx`` so that
    an expired or cancelled caller gets control back promptly.

    Args:
        ctx: Caller context governing the whole group.
        tasks: ``(name, callable)`` pairs, each callable taking the group context.
        max_workers: Upper bound on concurrently running tasks, or None for
            one thread per task.

    Returns:
        Task results in submission order.

    Raises:
        Exception: The first task error, or the context error of ``ctx``.
    """
    if not tasks:
        return []

    group = _Group(ctx.child())
    workers = len(tasks) if max_workers is None else max(1, min(max_workers, len(tasks)))
    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="sind")
    futures: list[Future] = [executor.submit(group.run, name, task) for name, task in tasks]

    pending = set(futures)
    try:
        while pending:
            if ctx.done():
                group.ctx.cancel()
                raise group.error or ctx.err()
            _, pending = wait(pending, timeout=GROUP_WAIT_SLICE_SECONDS, return_when=FIRST_EXCEPTION)
            if group.error is not None:
                for future in pending:
                    future.cancel()
                pending = {future for future in pending if not future.cancelled()}
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    if group.error is not None:
        raise group.error
    return [future.result() for future in futures]
