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

"""Deadline and cancellation scopes shared by every blocking wait.

A :class:`Context` is handed to every top-level operation. Fan-out groups
derive child contexts from it, so cancelling or timing out the parent wakes
every sleeping poller and every group wait below it.
"""

from __future__ import annotations

import threading
import time


class ContextError(Exception):
    """Base class for errors reported by a finished context."""


class DeadlineExceeded(ContextError):
    """The context deadline elapsed."""

    def __init__(self) -> None:
        super().__init__("context deadline exceeded")


class Cancelled(ContextError):
    """The context was cancelled explicitly."""

    def __init__(self) -> None:
        super().__init__("context canceled")


class Context:
    """Cooperative cancellation scope with an optional deadline.

    Attributes:
        deadline: ``time.monotonic()`` value after which the context expires,
            or None for no deadline.
    """

    def __init__(self, deadline: float | None = None, parent: Context | None = None) -> None:
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self.deadline = deadline
        self._parent = parent
        self._done = threading.Event()
        self._lock = threading.Lock()
        self._error: ContextError | None = None
        self._children: list[Context] = []
        if parent is not None:
            parent._attach(self)

    @classmethod
    def background(cls) -> Context:
        """Return a context that is never done unless cancelled."""
        return cls()

    @classmethod
    def with_timeout(cls, seconds: float, parent: Context | None = None) -> Context:
        """Return a context that expires ``seconds`` from now.

        Args:
            seconds: Time budget of the new context.
            parent: Optional parent whose cancellation propagates down.

        Returns:
            The new context.
        """
        return cls(deadline=time.monotonic() + seconds, parent=parent)

    def child(self) -> Context:
        """Derive a context cancelled together with this one."""
        return Context(parent=self)

    def _attach(self, child: Context) -> None:
        with self._lock:
            error = self._error
            if error is None:
                self._children.append(child)
        if error is not None:
            child._finish(error)

    def _finish(self, error: ContextError) -> None:
        with self._lock:
            if self._error is not None:
                return
            self._error = error
            children, self._children = self._children, []
        self._done.set()
        for child in children:
            child._finish(error)

    def cancel(self) -> None:
        """Cancel this context and all contexts derived from it."""
        self._check_deadline()
        self._finish(Cancelled())

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None without a deadline."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def _check_deadline(self) -> None:
        if self.deadline is not None and time.monotonic() >= self.deadline:
            self._finish(DeadlineExceeded())

    def done(self) -> bool:
        """Return True once the context is cancelled or expired."""
        if not self._done.is_set():
            self._check_deadline()
        return self._done.is_set()

    def err(self) -> ContextError | None:
        """Return the error that finished this context, if any."""
        self.done()
        return self._error

    def raise_if_done(self) -> None:
        """Raise the context error if the context is finished.

        Raises:
            ContextError: The deadline elapsed or the context was cancelled.
        """
        error = self.err()
        if error is not None:
            raise error

    def sleep(self, seconds: float) -> bool:
        """Sleep for ``seconds`` or until the context finishes.

        Args:
            seconds: Maximum time to sleep.

        Returns:
            True if the context finished while sleeping.
        """
        remaining = self.remaining()
        timeout = seconds if remaining is None else min(seconds, remaining)
        self._done.wait(timeout)
        return self.done()
