"""Tests for image distribution to cluster nodes."""

from pathlib import Path

import pytest

from swarm_manager.context import Context
from swarm_manager.exceptions import DistributionFailure
from swarm_manager.images import push_images
from swarm_manager.models import NodeRole

from conftest import add_container


@pytest.fixture
def cluster(runtime):
    ids = [
        add_container(runtime, "demo", "demo-manager-0", NodeRole.PRIMARY),
        add_container(runtime, "demo", "demo-manager-1", NodeRole.MANAGER),
        add_container(runtime, "demo", "demo-worker-0", NodeRole.WORKER),
    ]
    add_container(runtime, "demo", "demo-worker-1", NodeRole.WORKER, running=False)
    add_container(runtime, "other", "other-manager-0", NodeRole.PRIMARY)
    return ids


def test_push_copies_everywhere_then_loads(runtime, cluster):
    loaded = push_images(Context.with_timeout(5), runtime, "demo", ["app:1", "db:2"])

    assert loaded == 3
    saves = runtime.calls_to("save_images")
    assert len(saves) == 1
    assert saves[0].args[0] == ["app:1", "db:2"]

    copies = runtime.calls_to("copy_to_container")
    loads = runtime.calls_to("exec")
    assert sorted(call.args[0] for call in copies) == sorted(cluster)
    assert sorted(call.args[0] for call in loads) == sorted(cluster)
    assert max(runtime.index_of("copy_to_container")) < min(runtime.index_of("exec"))

    archive = Path(saves[0].args[1])
    container_path = f"/{archive.name}"
    for call in loads:
        assert call.args[1] == ["docker", "load", "-i", container_path]
    assert not archive.exists()
    assert not Path(copies[0].args[2]).exists()


def test_archive_entry_header(runtime, cluster):
    push_images(Context.with_timeout(5), runtime, "demo", ["app:1"])

    archive = Path(runtime.calls_to("save_images")[0].args[1])
    member, payload = runtime.containers[cluster[0]].files[f"/{archive.name}"]
    assert member.isfile()
    assert member.name == archive.name
    assert member.mode == 0o664
    assert member.size == len(payload)
    assert payload == b"images:app:1"


def test_copy_failure_prevents_any_load(runtime, cluster):
    runtime.fail_on("copy_to_container", "demo-worker-0")

    with pytest.raises(DistributionFailure, match="copy"):
        push_images(Context.with_timeout(5), runtime, "demo", ["app:1"])

    assert runtime.calls_to("exec") == []
    assert not Path(runtime.calls_to("copy_to_container")[0].args[2]).exists()


def test_load_failure(runtime, cluster):
    runtime.exit_codes["demo-manager-1"] = 1

    with pytest.raises(DistributionFailure, match="demo-manager-1"):
        push_images(Context.with_timeout(5), runtime, "demo", ["app:1"])


def test_save_failure_cleans_up(runtime, cluster):
    runtime.fail_on("save_images")

    with pytest.raises(DistributionFailure, match="unable to save"):
        push_images(Context.with_timeout(5), runtime, "demo", ["app:1"])

    assert runtime.calls_to("list_containers") == []
    assert not Path(runtime.calls_to("save_images")[0].args[1]).exists()


def test_empty_reference_list(runtime, cluster):
    with pytest.raises(DistributionFailure):
        push_images(Context.with_timeout(5), runtime, "demo", [])
    assert runtime.calls == []


def test_push_to_empty_cluster(runtime):
    assert push_images(Context.with_timeout(5), runtime, "ghost", ["app:1"]) == 0
    assert runtime.calls_to("copy_to_container") == []
