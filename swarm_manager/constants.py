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

"""Constants shared by the provisioning, bootstrap, and lifecycle modules."""

from __future__ import annotations

from pathlib import Path

# -- Labels --
LABEL_CLUSTER_NAME = "com.sind.cluster.name"
LABEL_CLUSTER_ROLE = "com.sind.cluster.role"

# -- Node daemon --
DEFAULT_NODE_IMAGE = "docker:18.09-dind"
DAEMON_PORT = "2375/tcp"
DAEMON_API_VERSION = "1.39"
SWARM_PORT = 2377
SWARM_LISTEN_ADDR = f"0.0.0.0:{SWARM_PORT}"
NODE_ENVIRONMENT = {"DOCKER_TLS_CERTDIR": ""}

# -- Name patterns --
MANAGER_NAME_PATTERN = "{cluster}-manager-{index}"
WORKER_NAME_PATTERN = "{cluster}-worker-{index}"

# -- Polling --
POLL_INTERVAL_SECONDS = 0.1
GROUP_WAIT_SLICE_SECONDS = 0.05
NODE_STATE_READY = "ready"
SWARM_ROLE_MANAGER = "manager"
SWARM_ROLE_WORKER = "worker"

# -- Image distribution --
ARCHIVE_PREFIX = "img_sind"
PACKAGE_PREFIX = "tar_img_sind"
ARCHIVE_MODE = 0o664
CONTAINER_ARCHIVE_DIR = "/"

# -- Host daemon --
DEFAULT_DOCKER_HOST = "unix:///var/run/docker.sock"
LOCAL_SCHEMES = ("unix", "npipe", "http+unix", "http+docker")

# -- Defaults --
DEFAULT_CLUSTER_NAME = "sind_default"
DEFAULT_NETWORK_NAME = "sind_default"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_PROBE_TIMEOUT_SECONDS = 5
DEFAULT_HOME = Path.home() / ".sind"
STORE_SUFFIX = ".yaml"
