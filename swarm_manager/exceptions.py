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

"""Error taxonomy for cluster creation, image distribution, and lifecycle."""

from __future__ import annotations


class SindError(Exception):
    """Base exception for all sind errors."""

    def __init__(self, message: str, details: str | None = None) -> None:
        """Initialize the exception.

        Args:
            message: Main error message.
            details: Additional details, usually the underlying error.
        """
        self.message = message
        self.details = details
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format the complete error message.

        Returns:
            The message, followed by the details when present.
        """
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class InvalidConfiguration(SindError):
    """The cluster spec was rejected before any side effect."""

    def __init__(self, reason: str, details: str | None = None) -> None:
        self.reason = reason
        super().__init__(f"invalid configuration: {reason}", details)


class ProvisioningFailure(SindError):
    """Image pull, network creation, or container create/start failed."""


class ConnectivityFailure(SindError):
    """The primary node's daemon could not be resolved or reached."""


class BootstrapFailure(SindError):
    """Swarm initialization or join token retrieval failed on the primary."""


class JoinFailure(SindError):
    """A node failed to join the swarm."""


class ConvergenceTimeout(SindError):
    """The swarm did not report the expected topology before the deadline."""


class DistributionFailure(SindError):
    """Saving, packaging, copying, or loading images failed."""


class LifecycleFailure(SindError):
    """Starting, stopping, or deleting cluster resources failed."""


class StoreError(SindError):
    """Base class for cluster record store errors."""


class ClusterExists(StoreError):
    """A cluster record with this name is already stored."""


class ClusterNotFound(StoreError):
    """No cluster record is stored under this name."""
