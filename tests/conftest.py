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

"""Shared fixtures: an in-memory cluster and a sleep-free readiness gate."""

from __future__ import annotations

import copy
import json
from typing import Any

import pytest
from kubernetes.client.rest import ApiException

from testenv_manager.config import ConfigDocument, RunConfig, TestRun
from testenv_manager.gate import ReadinessGate
from testenv_manager.orchestrator import StageOrchestrator

NAMESPACED = {"ServiceAccount", "ConfigMap", "Secret", "Service", "Pod", "Deployment", "Job", "PartitionSet"}


def api_error(status: int, reason: str = "") -> ApiException:
    return ApiException(status=status, reason=reason)


class FakeCluster:
    """In-memory ClusterClient.

    Created objects report themselves ready on the next read. A Job spawns a
    single pod carrying the job's pod labels, already terminated with the
    configured exit code and message.
    """

    def __init__(
        self,
        *,
        fail_on: dict[str, Exception] | None = None,
        fail_delete: dict[str, Exception] | None = None,
        unready: set[str] | None = None,
        logs: list[str] | None = None,
        log_error: Exception | None = None,
        pod_phase: str = "Succeeded",
        exit_code: int = 0,
        message: str = "PASS",
    ) -> None:
        self.objects: dict[tuple[str, str | None, str], dict[str, Any]] = {}
        self.created: list[tuple[str, str]] = []
        self.bodies: list[dict[str, Any]] = []
        self.deleted: list[tuple[str, str]] = []
        self.fail_on = fail_on or {}
        self.fail_delete = fail_delete or {}
        self.unready = unready or set()
        self.logs = ["=== RUN TestDevices\n", "--- PASS: TestDevices\n"] if logs is None else logs
        self.log_error = log_error
        self.pod_phase = pod_phase
        self.exit_code = exit_code
        self.message = message

    @staticmethod
    def _key(kind: str, name: str, namespace: str | None) -> tuple[str, str | None, str]:
        return kind, namespace if kind in NAMESPACED else None, name

    def created_kinds(self) -> list[str]:
        return [kind for kind, _ in self.created]

    def created_body(self, kind: str, name: str) -> dict[str, Any]:
        """Last body submitted for ``kind``/``name``, even if since deleted."""
        return next(b for b in reversed(self.bodies) if b["kind"] == kind and b["metadata"]["name"] == name)

    def find(self, kind: str, name: str, namespace: str | None = None) -> dict[str, Any] | None:
        return self.objects.get(self._key(kind, name, namespace))

    def _ready_status(self, body: dict[str, Any]) -> dict[str, Any]:
        kind = body["kind"]
        if kind in self.unready:
            return {}
        if kind == "Deployment":
            return {"readyReplicas": body["spec"]["replicas"]}
        if kind == "PartitionSet":
            return {"readyPartitions": body["spec"]["partitions"]}
        if kind == "Pod":
            return {"phase": "Running", "containerStatuses": [{"name": "main", "ready": True}]}
        return {}

    def _spawn_job_pod(self, job: dict[str, Any]) -> None:
        namespace = job["metadata"]["namespace"]
        name = f"{job['metadata']['name']}-x7k2p"
        terminated = {"exitCode": self.exit_code, "message": self.message}
        self.objects[("Pod", namespace, name)] = {
            "kind": "Pod",
            "metadata": {
                "name": name,
                "namespace": namespace,
                "labels": dict(job["spec"]["template"]["metadata"]["labels"]),
            },
            "status": {
                "phase": self.pod_phase,
                "containerStatuses": [{"name": "test", "ready": False, "state": {"terminated": terminated}}],
            },
        }

    # -- ClusterClient --

    def create(self, body: dict[str, Any]) -> dict[str, Any]:
        kind, meta = body["kind"], body["metadata"]
        self.created.append((kind, meta["name"]))
        self.bodies.append(copy.deepcopy(body))
        if kind in self.fail_on:
            raise self.fail_on[kind]
        key = self._key(kind, meta["name"], meta.get("namespace"))
        if key in self.objects:
            raise api_error(409, "Conflict")
        stored = copy.deepcopy(body)
        stored["status"] = self._ready_status(body)
        self.objects[key] = stored
        if kind == "Job":
            self._spawn_job_pod(body)
        return copy.deepcopy(stored)

    def get(self, kind: str, name: str, namespace: str | None = None) -> dict[str, Any]:
        obj = self.find(kind, name, namespace)
        if obj is None:
            raise api_error(404, "Not Found")
        return copy.deepcopy(obj)

    def delete(self, kind: str, name: str, namespace: str | None = None) -> None:
        self.deleted.append((kind, name))
        if kind in self.fail_delete:
            raise self.fail_delete[kind]
        key = self._key(kind, name, namespace)
        if key not in self.objects:
            raise api_error(404, "Not Found")
        del self.objects[key]
        if kind == "Namespace":
            for owned in [k for k in self.objects if k[1] == name]:
                del self.objects[owned]

    def list_pods(self, namespace: str, label_selector: str) -> list[dict[str, Any]]:
        label, _, value = label_selector.partition("=")
        return [
            copy.deepcopy(obj)
            for (kind, ns, _), obj in self.objects.items()
            if kind == "Pod" and ns == namespace and obj["metadata"].get("labels", {}).get(label) == value
        ]

    def stream_pod_logs(self, namespace: str, name: str):
        if self.log_error is not None:
            raise self.log_error
        yield from self.logs


@pytest.fixture
def cluster() -> FakeCluster:
    return FakeCluster()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def gate(sleeps) -> ReadinessGate:
    return ReadinessGate(interval=0.1, sleep=sleeps.append)


@pytest.fixture
def certs_dir(tmp_path):
    certs = tmp_path / "certs"
    certs.mkdir()
    (certs / "tls.cacrt").write_text("CA")
    (certs / "tls.crt").write_text("CERT")
    (certs / "tls.key").write_text("KEY")
    return certs


@pytest.fixture
def two_simulators() -> ConfigDocument:
    return ConfigDocument.model_validate({"simulators": {"dev1": {"a": 1}, "dev2": {"b": 2}}})


@pytest.fixture
def test_run() -> TestRun:
    return TestRun.create(RunConfig(nodes=2, partitions=3, partition_size=1, timeout=300), test_id="abc")


@pytest.fixture
def make_orchestrator(test_run, gate, certs_dir, two_simulators):
    def _make(cluster, *, document=None, certs=None, cleanup=False) -> StageOrchestrator:
        return StageOrchestrator(
            test_run,
            document if document is not None else two_simulators,
            cluster,
            certs_dir=certs if certs is not None else certs_dir,
            gate=gate,
            cleanup_on_setup_failure=cleanup,
        )

    return _make


@pytest.fixture
def configs_dir(tmp_path):
    configs = tmp_path / "configs"
    configs.mkdir()
    (configs / "default.json").write_text(json.dumps({"simulators": {"dev1": {}, "dev2": {}}}))
    return configs
