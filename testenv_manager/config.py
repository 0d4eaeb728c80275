# /*
# Copyright 2026 The Grove Authors.
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

"""Runner settings, test run identity, and the test configuration document."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.panel import Panel

from testenv_manager import console
from testenv_manager.constants import (
    DEFAULT_CERTS_DIR,
    DEFAULT_CONFIG_NAME,
    DEFAULT_CONFIGS_DIR,
    DEFAULT_NODES,
    DEFAULT_PARTITION_SIZE,
    DEFAULT_PARTITIONS,
    DEFAULT_TIMEOUT_SECONDS,
    POLL_INTERVAL_SECONDS,
    TEST_NAME_PREFIX,
)


# ============================================================================
# Settings
# ============================================================================

class RunnerSettings(BaseSettings):
    """Runner configuration, auto-loaded from ONOS_TEST_* env vars.

    Attributes:
        config_name: Name of the test configuration document (without ``.json``).
        configs_dir: Directory holding test configuration documents.
        certs_dir: Directory holding the TLS material for onos-config.
        nodes: Number of onos-config replicas.
        partitions: Number of Raft partitions.
        partition_size: Number of members per Raft partition.
        timeout: Deadline in seconds enforced by the cluster on the test job.
        poll_interval: Seconds between readiness checks.
        readiness_timeout: Overall limit in seconds for one readiness wait, or None to wait forever.
        cleanup_on_setup_failure: Whether to tear down the namespace when setup fails.
    """

    model_config = SettingsConfigDict(env_prefix="ONOS_TEST_", extra="ignore")

    config_name: str = DEFAULT_CONFIG_NAME
    configs_dir: Path = Path(DEFAULT_CONFIGS_DIR)
    certs_dir: Path = Path(DEFAULT_CERTS_DIR)
    nodes: int = Field(default=DEFAULT_NODES, ge=1)
    partitions: int = Field(default=DEFAULT_PARTITIONS, ge=1)
    partition_size: int = Field(default=DEFAULT_PARTITION_SIZE, ge=1)
    timeout: int = Field(default=DEFAULT_TIMEOUT_SECONDS, ge=1)
    poll_interval: float = Field(default=POLL_INTERVAL_SECONDS, gt=0)
    readiness_timeout: float | None = Field(default=None, gt=0)
    cleanup_on_setup_failure: bool = False


def resolve_settings(**overrides: Any) -> RunnerSettings:
    """Merge CLI overrides into env-backed settings.

    Resolution priority: CLI arguments > ONOS_TEST_* environment variables > defaults.
    Overrides whose value is None are ignored.

    Args:
        **overrides: Field name to CLI value.

    Returns:
        The resolved settings.
    """
    settings = RunnerSettings()
    update = {key: value for key, value in overrides.items() if value is not None}
    if update:
        settings = settings.model_copy(update=update)
    return settings


def display_config(settings: RunnerSettings, test_run: TestRun) -> None:
    """Print the resolved configuration for this run.

    Args:
        settings: Resolved runner settings.
        test_run: The test run being executed.
    """
    console.print(Panel.fit("Configuration", style="bold blue"))
    console.print("[yellow]Test run:[/yellow]")
    console.print(f"  test_id         : {test_run.test_id}")
    console.print(f"  namespace       : {test_run.test_name}")
    console.print("[yellow]Environment:[/yellow]")
    console.print(f"  config          : {settings.configs_dir / (settings.config_name + '.json')}")
    console.print(f"  certs           : {settings.certs_dir}")
    console.print(f"  nodes           : {settings.nodes}")
    console.print(f"  partitions      : {settings.partitions} x {settings.partition_size}")
    console.print(f"  job timeout     : {settings.timeout}s")
    if settings.readiness_timeout is not None:
        console.print(f"  ready timeout   : {settings.readiness_timeout}s")


# ============================================================================
# Test run identity
# ============================================================================

@dataclass(frozen=True)
class RunConfig:
    """Sizing of the provisioned environment.

    Attributes:
        nodes: Number of onos-config replicas.
        partitions: Number of Raft partitions.
        partition_size: Number of members per Raft partition.
        timeout: Job deadline in seconds.
    """

    nodes: int = DEFAULT_NODES
    partitions: int = DEFAULT_PARTITIONS
    partition_size: int = DEFAULT_PARTITION_SIZE
    timeout: int = DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def from_settings(cls, settings: RunnerSettings) -> RunConfig:
        return cls(
            nodes=settings.nodes,
            partitions=settings.partitions,
            partition_size=settings.partition_size,
            timeout=settings.timeout,
        )


@dataclass(frozen=True)
class TestRun:
    """One invocation of the runner.

    Attributes:
        test_id: Unique identifier of the run.
        config: Sizing of the environment.
    """

    __test__ = False

    test_id: str
    config: RunConfig

    @property
    def test_name(self) -> str:
        """Namespace name and resource prefix derived from the test ID."""
        return make_test_name(self.test_id)

    @classmethod
    def create(cls, config: RunConfig, test_id: str | None = None) -> TestRun:
        """Create a run, generating a time-based ID unless one is given."""
        return cls(test_id=test_id or str(uuid.uuid1()), config=config)


def make_test_name(test_id: str) -> str:
    """Return the Kubernetes-safe test name for a test ID."""
    return TEST_NAME_PREFIX + test_id


# ============================================================================
# Test configuration document
# ============================================================================

class ConfigDocument(BaseModel):
    """Test configuration document.

    Every key is optional. Whether a store key was present at all (even as
    ``null``) is tracked through ``model_fields_set`` so that a missing
    device or config store can be synthesized from the simulators.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    simulators: dict[str, Any] | None = None
    change_store: Any = Field(default=None, alias="changeStore")
    network_store: Any = Field(default=None, alias="networkStore")
    device_store: Any = Field(default=None, alias="deviceStore")
    config_store: Any = Field(default=None, alias="configStore")

    def has(self, field_name: str) -> bool:
        """Whether the document explicitly carried the given field."""
        return field_name in self.model_fields_set

    @property
    def device_ids(self) -> list[str]:
        """Simulated device IDs, in document order."""
        return list(self.simulators or {})


def load_config_document(configs_dir: Path, name: str) -> ConfigDocument:
    """Load and validate ``<configs_dir>/<name>.json``.

    Args:
        configs_dir: Directory holding test configuration documents.
        name: Document name without extension.

    Returns:
        The validated configuration document.

    Raises:
        FileNotFoundError: If the document does not exist.
        ValueError: If the document is not valid JSON or does not match the schema.
    """
    path = Path(configs_dir) / f"{name}.json"
    with open(path) as f:
        data = json.load(f)
    return ConfigDocument.model_validate(data)
