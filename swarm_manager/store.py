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

"""On-disk cluster records, one YAML file per cluster."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from swarm_manager.constants import STORE_SUFFIX
from swarm_manager.exceptions import ClusterExists, ClusterNotFound, StoreError
from swarm_manager.models import ClusterResult


class ClusterStore:
    """Keyed store of :class:`ClusterResult` records.

    Args:
        home: Directory holding the records; created on first save.
    """

    def __init__(self, home: Path) -> None:
        self.home = Path(home).expanduser()

    def _path(self, name: str) -> Path:
        return self.home / f"{name}{STORE_SUFFIX}"

    def exists(self, name: str) -> bool:
        return self._path(name).is_file()

    def check_available(self, name: str) -> None:
        """Fail if a cluster named ``name`` is already recorded.

        Raises:
            ClusterExists: If the name is taken.
        """
        if self.exists(name):
            raise ClusterExists(f"cluster {name!r} already exists", str(self._path(name)))

    def save(self, result: ClusterResult) -> Path:
        self.home.mkdir(parents=True, exist_ok=True)
        path = self._path(result.name)
        with open(path, "w") as f:
            yaml.safe_dump(result.model_dump(), f, default_flow_style=False)
        return path

    def load(self, name: str) -> ClusterResult:
        """Read the record of cluster ``name``.

        Raises:
            ClusterNotFound: If no record exists.
            StoreError: If the record cannot be parsed.
        """
        path = self._path(name)
        if not path.is_file():
            raise ClusterNotFound(f"cluster {name!r} not found", str(path))
        try:
            with open(path) as f:
                return ClusterResult.model_validate(yaml.safe_load(f))
        except (yaml.YAMLError, ValidationError) as err:
            raise StoreError(f"unable to read cluster {name!r}", str(err)) from err

    def delete(self, name: str) -> None:
        self._path(name).unlink(missing_ok=True)

    def list(self) -> list[str]:
        if not self.home.is_dir():
            return []
        return sorted(path.stem for path in self.home.glob(f"*{STORE_SUFFIX}"))
