"""Tests for fixed-interval readiness polling."""

import threading
import time

import docker
import pytest

from swarm_manager.context import Cancelled, Context, DeadlineExceeded
from swarm_manager.readiness import count_nodes_per_role, wait_cluster_ready, wait_daemon_ready, wait_until

from conftest import FakeRuntime


def _node(role, state="ready"):
    return {"Spec": {"Role": role}, "Status": {"State": state}}


def test_count_nodes_per_role_ignores_unready_nodes():
    nodes = [
        _node("manager"),
        _node("manager", "down"),
        _node("worker"),
        _node("worker"),
        _node("worker", "unknown"),
        {"Spec": {}, "Status": {"State": "ready"}},
    ]
    assert count_nodes_per_role(nodes) == (1, 2)


def test_transient_errors_are_retried():
    failures = iter([docker.errors.APIError("down"), ConnectionError("refused")])
    seen = []

    def check():
        error = next(failures, None)
        if error is not None:
            raise error
        return True

    wait_until(Context.with_timeout(2), check, interval=0.01, on_failure=seen.append)

    assert [type(error) for error in seen] == [docker.errors.APIError, ConnectionError]


def test_success_stops_polling():
    calls = []

    def check():
        calls.append(time.monotonic())
        return len(calls) == 3

    wait_until(Context.with_timeout(2), check, interval=0.01)
    time.sleep(0.05)

    assert len(calls) == 3


def test_deadline_is_respected():
    """A never-ready condition ends with the context error within one interval of the deadline."""
    interval = 0.05
    ctx = Context.with_timeout(0.2)
    started = time.monotonic()

    with pytest.raises(DeadlineExceeded):
        wait_until(ctx, lambda: False, interval=interval)

    assert time.monotonic() - started <= 0.2 + interval + 0.1


def test_cancellation_is_reported_verbatim():
    ctx = Context.background()
    threading.Timer(0.05, ctx.cancel).start()

    with pytest.raises(Cancelled):
        wait_until(ctx, lambda: False, interval=0.01)


def test_wait_daemon_ready_retries_pings():
    runtime = FakeRuntime()
    runtime.ping_failures = 3

    wait_daemon_ready(Context.with_timeout(2), runtime.swarm, interval=0.01)

    assert len(runtime.calls_to("ping")) == 4


def test_wait_cluster_ready_records_observed_counts():
    runtime = FakeRuntime()
    runtime.joined = {"a": "manager", "b": "worker"}
    runtime.list_nodes_failures = 2
    observed = {}

    wait_cluster_ready(Context.with_timeout(2), runtime.swarm, 2, 1, interval=0.01, observed=observed)

    assert observed == {"managers": 2, "workers": 1}
    assert len(runtime.calls_to("list_nodes")) == 3


def test_wait_cluster_ready_requires_exact_counts():
    runtime = FakeRuntime()
    runtime.joined = {"a": "worker", "b": "worker"}

    with pytest.raises(DeadlineExceeded):
        wait_cluster_ready(Context.with_timeout(0.1), runtime.swarm, 1, 1, interval=0.01)


def test_blocking_check_does_not_outlive_the_deadline():
    interval = 0.01
    ctx = Context.with_timeout(0.1)
    started = time.monotonic()

    with pytest.raises(DeadlineExceeded):
        wait_until(ctx, lambda: time.sleep(1.0) or False, interval=interval)

    assert time.monotonic() - started <= 0.1 + interval + 0.15


def test_blocking_check_is_interrupted_by_cancellation():
    ctx = Context.background()
    threading.Timer(0.05, ctx.cancel).start()
    started = time.monotonic()

    with pytest.raises(Cancelled):
        wait_until(ctx, lambda: time.sleep(1.0) or False, interval=0.01)

    assert time.monotonic() - started < 0.5
