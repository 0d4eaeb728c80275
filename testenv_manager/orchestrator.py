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

"""Staged provisioning of a test environment and the run entry point.

Tiers are provisioned strictly in order. Each tier's objects are created
first, then its readiness predicate is polled; the next tier starts only once
the previous one is ready. A failure in any tier aborts the run before later
tiers are touched.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from rich.panel import Panel

from testenv_manager import console, logger, resources
from testenv_manager.cluster import ClusterClient
from testenv_manager.config import ConfigDocument, TestRun
from testenv_manager.constants import (
    ATOMIX_CONTROLLER_NAME,
    ATOMIX_CONTROLLER_REPLICAS,
    ATOMIX_CRDS,
    ONOS_CONFIG_NAME,
    PARTITION_SET_NAME,
)
from testenv_manager.errors import RunError, SetupError
from testenv_manager.gate import ReadinessGate
from testenv_manager.job import JobOutcome, JobRunner, first_container_status
from testenv_manager.provisioner import Provisioner
from testenv_manager.stores import resolve_store_documents, simulator_configs
from testenv_manager.teardown import TeardownManager


# ============================================================================
# Readiness predicates
# ============================================================================

def replicas_ready(replicas: int) -> Callable[[dict[str, Any]], bool]:
    """Predicate: a deployment reports exactly ``replicas`` ready replicas."""
    return lambda deployment: deployment.get("status", {}).get("readyReplicas", 0) == replicas


def partitions_ready(partitions: int) -> Callable[[dict[str, Any]], bool]:
    """Predicate: a partition set reports ``partitions`` ready partitions."""
    return lambda partition_set: (partition_set.get("status") or {}).get("readyPartitions", 0) == partitions


def container_ready(pod: dict[str, Any]) -> bool:
    """Predicate: the pod's first container reports ready."""
    status = first_container_status(pod)
    return status is not None and bool(status.get("ready"))


# ============================================================================
# Tiers
# ============================================================================

@dataclass(frozen=True)
class Tier:
    """One ordered stage of provisioning.

    Attributes:
        name: Human-readable tier name.
        kinds: Resource kinds the tier creates.
        create: Creates every object of the tier.
        await_ready: Blocks until the tier is ready, or None if creation is enough.
    """

    name: str
    kinds: tuple[str, ...]
    create: Callable[[], None]
    await_ready: Callable[[], Any] | None = None


class StageOrchestrator:
    """Provisions a test environment, runs the test job, and tears down.

    Args:
        test_run: Identity and sizing of the run.
        document: Validated test configuration document.
        cluster: Cluster client.
        certs_dir: Directory holding the onos-config TLS material.
        gate: Readiness gate shared by every tier.
        provisioner: Provisioner override, defaults to one over ``cluster``.
        job_runner: Job runner override, defaults to one over ``cluster``.
        teardown: Teardown manager override, defaults to one over ``cluster``.
        cleanup_on_setup_failure: Tear down a partially provisioned namespace
            when setup fails.
    """

    def __init__(
        self,
        test_run: TestRun,
        document: ConfigDocument,
        cluster: ClusterClient,
        *,
        certs_dir: Path,
        gate: ReadinessGate | None = None,
        provisioner: Provisioner | None = None,
        job_runner: JobRunner | None = None,
        teardown: TeardownManager | None = None,
        cleanup_on_setup_failure: bool = False,
    ) -> None:
        self.test_run = test_run
        self.document = document
        self.cluster = cluster
        self.certs_dir = Path(certs_dir)
        self.gate = gate or ReadinessGate()
        self.provisioner = provisioner or Provisioner(cluster)
        self.job_runner = job_runner or JobRunner(cluster, self.gate)
        self.teardown = teardown or TeardownManager(cluster)
        self.cleanup_on_setup_failure = cleanup_on_setup_failure
        self.namespace_created = False

    @property
    def test_name(self) -> str:
        return self.test_run.test_name

    def tiers(self, args: list[str]) -> list[Tier]:
        """The provisioning tiers in dependency order."""
        return [
            Tier("namespace", ("Namespace",), self._create_namespace),
            Tier(
                "Atomix controller",
                ("CustomResourceDefinition", "ClusterRole", "ClusterRoleBinding",
                 "ServiceAccount", "Deployment", "Service"),
                self._create_atomix_controller,
                self._await_atomix_controller,
            ),
            Tier("Raft partitions", ("PartitionSet",), self._create_partitions, self._await_partitions),
            Tier("simulators", ("ConfigMap", "Pod", "Service"), self._create_simulators, self._await_simulators),
            Tier(
                "onos-config",
                ("Secret", "ConfigMap", "Deployment", "Service"),
                self._create_onos_config,
                self._await_onos_config,
            ),
            Tier("test job", ("Job",), lambda: self._create_test_job(args), self._await_test_job),
        ]

    # -- namespace --

    def _create_namespace(self) -> None:
        console.print(Panel.fit(f"Setting up test namespace {self.test_name}", style="bold blue"))
        self.provisioner.create_namespace(resources.namespace(self.test_name))
        self.namespace_created = True
        console.print(f"[green]\u2705 Namespace {self.test_name} created[/green]")

    # -- Atomix controller --

    def _create_atomix_controller(self) -> None:
        console.print(Panel.fit(
            f"Setting up Atomix controller {ATOMIX_CONTROLLER_NAME}/{self.test_name}", style="bold blue",
        ))
        for plural, kind in ATOMIX_CRDS:
            self.provisioner.create_custom_resource_definition(resources.atomix_crd(plural, kind))
        self.provisioner.create_cluster_role(resources.atomix_cluster_role())
        self.provisioner.create_cluster_role_binding(resources.atomix_cluster_role_binding(self.test_name))
        self.provisioner.create_service_account(resources.atomix_service_account(self.test_name))
        self.provisioner.create_deployment(resources.atomix_deployment(self.test_name))
        self.provisioner.create_service(resources.atomix_service(self.test_name))

    def _await_atomix_controller(self) -> None:
        what = f"Atomix controller {ATOMIX_CONTROLLER_NAME}/{self.test_name}"
        console.print(f"[yellow]\u2139\ufe0f  Waiting for {what} to become ready...[/yellow]")
        self.gate.wait(
            lambda: self.cluster.get("Deployment", ATOMIX_CONTROLLER_NAME, self.test_name),
            replicas_ready(ATOMIX_CONTROLLER_REPLICAS),
            what=what,
        )
        console.print("[green]\u2705 Atomix controller is ready[/green]")

    # -- Raft partitions --

    def _create_partitions(self) -> None:
        config = self.test_run.config
        console.print(Panel.fit(
            f"Setting up partitions {PARTITION_SET_NAME}/{self.test_name} "
            f"({config.partitions} x {config.partition_size})",
            style="bold blue",
        ))
        self.provisioner.create_partition_set(
            resources.partition_set(self.test_name, config.partitions, config.partition_size)
        )

    def _await_partitions(self) -> None:
        what = f"partitions {PARTITION_SET_NAME}/{self.test_name}"
        console.print(f"[yellow]\u2139\ufe0f  Waiting for {what} to become ready...[/yellow]")
        self.gate.wait(
            lambda: self.cluster.get("PartitionSet", PARTITION_SET_NAME, self.test_name),
            partitions_ready(self.test_run.config.partitions),
            what=what,
        )
        console.print("[green]\u2705 Partitions are ready[/green]")

    # -- device simulators --

    def _create_simulators(self) -> None:
        configs = simulator_configs(self.document)
        console.print(Panel.fit(f"Setting up {len(configs)} simulators", style="bold blue"))
        for device_id, config_json in configs.items():
            console.print(f"[yellow]   Setting up simulator {device_id}/{self.test_name}[/yellow]")
            self.provisioner.create_config_map(
                resources.simulator_config_map(self.test_name, device_id, config_json)
            )
            self.provisioner.create_pod(resources.simulator_pod(self.test_name, device_id))
            self.provisioner.create_service(resources.simulator_service(self.test_name, device_id))

    def _await_simulators(self) -> None:
        for device_id in self.document.device_ids:
            what = f"simulator {device_id}/{self.test_name}"
            console.print(f"[yellow]\u2139\ufe0f  Waiting for {what} to become ready...[/yellow]")
            self.gate.wait(
                lambda name=device_id: self.cluster.get("Pod", name, self.test_name),
                container_ready,
                what=what,
            )
        if self.document.device_ids:
            console.print("[green]\u2705 Simulators are ready[/green]")

    # -- onos-config --

    def _create_onos_config(self) -> None:
        console.print(Panel.fit(
            f"Setting up onos-config cluster {ONOS_CONFIG_NAME}/{self.test_name}", style="bold blue",
        ))
        stores = resolve_store_documents(self.document)
        self.provisioner.create_tls_secret(self.test_name, self.certs_dir)
        self.provisioner.create_config_map(
            resources.onos_config_config_map(self.test_name, stores.as_config_map_data())
        )
        self.provisioner.create_deployment(
            resources.onos_config_deployment(self.test_name, self.test_run.config.nodes)
        )
        self.provisioner.create_service(resources.onos_config_service(self.test_name))

    def _await_onos_config(self) -> None:
        what = f"onos-config cluster {ONOS_CONFIG_NAME}/{self.test_name}"
        console.print(f"[yellow]\u2139\ufe0f  Waiting for {what} to become ready...[/yellow]")
        self.gate.wait(
            lambda: self.cluster.get("Deployment", ONOS_CONFIG_NAME, self.test_name),
            replicas_ready(self.test_run.config.nodes),
            what=what,
        )
        console.print("[green]\u2705 onos-config is ready[/green]")

    # -- test job --

    def _create_test_job(self, args: list[str]) -> None:
        console.print(Panel.fit(f"Starting test job {self.test_name}", style="bold blue"))
        self.provisioner.create_job(resources.integration_job(
            self.test_name, args, self.document.device_ids, self.test_run.config.timeout,
        ))

    def _await_test_job(self) -> dict[str, Any]:
        console.print(f"[yellow]\u2139\ufe0f  Waiting for test job {self.test_name} to start...[/yellow]")
        return self.job_runner.await_started(self.test_name, self.test_name)

    # ========================================================================
    # Public API
    # ========================================================================

    def setup(self, args: list[str]) -> dict[str, Any]:
        """Provision every tier and start the test job.

        Args:
            args: Arguments forwarded verbatim to the test container.

        Returns:
            The test job's started pod.

        Raises:
            SetupError: If any tier fails to provision or become ready.
        """
        started = None
        for tier in self.tiers(args):
            logger.debug("Provisioning tier %s (%s)", tier.name, ", ".join(tier.kinds))
            try:
                tier.create()
                started = tier.await_ready() if tier.await_ready is not None else None
            except Exception as err:
                raise SetupError(f"Failed to set up {tier.name} for {self.test_name}: {err}") from err
        return started

    def run(self, args: list[str]) -> JobOutcome:
        """Provision the environment, run the tests, and tear down.

        Teardown runs once the job has produced an outcome, whether the tests
        passed, failed, or could not be observed. A setup failure skips
        teardown unless ``cleanup_on_setup_failure`` is set and the namespace
        exists.

        Args:
            args: Arguments forwarded verbatim to the test container.

        Returns:
            The test outcome. Setup and observation failures yield exit code 1.
        """
        try:
            pod = self.setup(args)
        except SetupError as err:
            console.print(f"[red]\u274c {err}[/red]")
            if self.cleanup_on_setup_failure and self.namespace_created:
                self.teardown.teardown(self.test_name)
            return JobOutcome(message=str(err), exit_code=1)

        try:
            outcome = self.job_runner.collect(pod)
        except RunError as err:
            console.print(f"[red]\u274c {err}[/red]")
            outcome = JobOutcome(message=str(err), exit_code=1)

        self.teardown.teardown(self.test_name)
        return outcome
