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

"""Run subcommand: provision, test, and tear down."""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError

from testenv_manager import console
from testenv_manager.cluster import KubeClusterClient
from testenv_manager.config import (
    RunConfig,
    TestRun,
    display_config,
    load_config_document,
    resolve_settings,
)
from testenv_manager.gate import ReadinessGate
from testenv_manager.orchestrator import StageOrchestrator


def run(
    args: list[str] | None = typer.Argument(
        None, help="Arguments forwarded verbatim to the test container"),
    config_name: str | None = typer.Option(
        None, "--config", "-c", help="Test configuration name (overrides ONOS_TEST_CONFIG_NAME)"),
    nodes: int | None = typer.Option(
        None, "--nodes", "-n", min=1, help="onos-config replicas"),
    partitions: int | None = typer.Option(
        None, "--partitions", "-p", min=1, help="Number of Raft partitions"),
    partition_size: int | None = typer.Option(
        None, "--partition-size", "-s", min=1, help="Members per Raft partition"),
    timeout: int | None = typer.Option(
        None, "--timeout", "-t", min=1, help="Test job deadline in seconds"),
    test_id: str | None = typer.Option(
        None, "--test-id", help="Reuse a known test ID instead of generating one"),
    configs_dir: Path | None = typer.Option(
        None, "--configs-dir", help="Directory holding test configuration documents"),
    certs_dir: Path | None = typer.Option(
        None, "--certs-dir", help="Directory holding onos-config TLS material"),
    cleanup_on_failure: bool | None = typer.Option(
        None, "--cleanup-on-failure/--no-cleanup-on-failure",
        help="Tear down the namespace when setup fails"),
) -> None:
    """Set up a test environment, run the integration tests, and tear it down.

    Exits with the test container's exit code, or 1 if the environment could
    not be set up or the tests could not be observed.
    """
    try:
        settings = resolve_settings(
            config_name=config_name,
            nodes=nodes,
            partitions=partitions,
            partition_size=partition_size,
            timeout=timeout,
            configs_dir=configs_dir,
            certs_dir=certs_dir,
            cleanup_on_setup_failure=cleanup_on_failure,
        )
        document = load_config_document(settings.configs_dir, settings.config_name)
    except (OSError, ValueError, ValidationError) as err:
        console.print(f"[red]\u274c Invalid test configuration: {err}[/red]")
        raise typer.Exit(1) from err

    test_run = TestRun.create(RunConfig.from_settings(settings), test_id=test_id)
    display_config(settings, test_run)

    orchestrator = StageOrchestrator(
        test_run,
        document,
        KubeClusterClient.from_kubeconfig(),
        certs_dir=settings.certs_dir,
        gate=ReadinessGate(interval=settings.poll_interval, timeout=settings.readiness_timeout),
        cleanup_on_setup_failure=settings.cleanup_on_setup_failure,
    )
    outcome = orchestrator.run(list(args or []))
    if outcome.message:
        typer.echo(outcome.message)
    raise typer.Exit(outcome.exit_code)
