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

"""Test job observation: pod discovery, log streaming, and exit status."""

from __future__ import annotations

import sys
from dataclasses import dataclass, replace
from typing import Any, TextIO

from testenv_manager import console
from testenv_manager.cluster import ClusterClient
from testenv_manager.constants import LABEL_TEST, POD_FAILED, POD_RUNNING, POD_SUCCEEDED
from testenv_manager.errors import RunError
from testenv_manager.gate import ReadinessGate


@dataclass(frozen=True)
class JobOutcome:
    """Final status reported by the test container.

    Attributes:
        message: Termination message of the container.
        exit_code: Exit code of the container.
    """

    message: str
    exit_code: int


def first_container_status(pod: dict[str, Any]) -> dict[str, Any] | None:
    statuses = pod.get("status", {}).get("containerStatuses") or []
    return statuses[0] if statuses else None


def is_started(pod: dict[str, Any]) -> bool:
    """Whether a test pod is running and ready, or has already finished.

    A pod that fails or succeeds before its container ever reports ready
    counts as started, so instant failures are still observed.
    """
    phase = pod.get("status", {}).get("phase")
    if phase in (POD_SUCCEEDED, POD_FAILED):
        return True
    status = first_container_status(pod)
    return phase == POD_RUNNING and status is not None and bool(status.get("ready"))


def find_started_pod(pods: list[dict[str, Any]]) -> dict[str, Any] | None:
    return next((pod for pod in pods if is_started(pod)), None)


def terminated_state(pod: dict[str, Any]) -> dict[str, Any] | None:
    status = first_container_status(pod)
    if status is None:
        return None
    return (status.get("state") or {}).get("terminated")


class JobRunner:
    """Follows the test job's pod from start to termination."""

    def __init__(self, cluster: ClusterClient, gate: ReadinessGate, out: TextIO | None = None) -> None:
        self.cluster = cluster
        self.gate = gate
        self.out = out

    def await_started(self, namespace: str, test_name: str) -> dict[str, Any]:
        """Block until the job owns a started pod and return that pod.

        Args:
            namespace: Test namespace.
            test_name: Value of the job's ``test`` pod label.

        Returns:
            The first started pod.
        """
        selector = f"{LABEL_TEST}={test_name}"
        pods = self.gate.wait(
            lambda: self.cluster.list_pods(namespace, selector),
            lambda items: find_started_pod(items) is not None,
            what=f"test job {test_name}",
        )
        return find_started_pod(pods)

    def stream_logs(self, pod: dict[str, Any]) -> None:
        """Copy the pod's log output to the output stream until it ends."""
        out = self.out or sys.stdout
        meta = pod["metadata"]
        for chunk in self.cluster.stream_pod_logs(meta["namespace"], meta["name"]):
            out.write(chunk)
            out.flush()

    def await_outcome(self, pod: dict[str, Any]) -> JobOutcome:
        """Block until the pod's first container terminates and return its status.

        The readiness timeout does not apply here; the test's duration is
        bounded by the job's own deadline.
        """
        meta = pod["metadata"]
        observed = replace(self.gate, timeout=None).wait(
            lambda: self.cluster.get("Pod", meta["name"], meta["namespace"]),
            lambda current: terminated_state(current) is not None,
            what=f"test pod {meta['name']} to terminate",
        )
        terminated = terminated_state(observed)
        return JobOutcome(message=terminated.get("message") or "", exit_code=int(terminated.get("exitCode", 0)))

    def collect(self, pod: dict[str, Any]) -> JobOutcome:
        """Stream the pod's logs, then wait for its terminal status.

        Raises:
            RunError: If the logs or the pod status cannot be read.
        """
        name = pod["metadata"]["name"]
        console.print(f"[yellow]\u2139\ufe0f  Streaming logs from test pod {name}...[/yellow]")
        try:
            self.stream_logs(pod)
            return self.await_outcome(pod)
        except Exception as err:
            raise RunError(f"Failed to observe test pod {name}: {err}") from err
