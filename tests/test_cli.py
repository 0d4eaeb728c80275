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

"""Tests for the command-line interface."""

from __future__ import annotations

import pytest
from typer.testing import CliRunner

import cli
from conftest import FakeCluster
from testenv_manager import resources
from testenv_manager.cluster import KubeClusterClient

runner = CliRunner()


@pytest.fixture
def fake_cluster(monkeypatch):
    cluster = FakeCluster(exit_code=3, message="1 test failed")
    monkeypatch.setattr(KubeClusterClient, "from_kubeconfig", classmethod(lambda cls, config_file=None: cluster))
    return cluster


def test_run_exits_with_workload_code(fake_cluster, configs_dir, certs_dir):
    result = runner.invoke(cli.app, [
        "run",
        "--configs-dir", str(configs_dir),
        "--certs-dir", str(certs_dir),
        "--test-id", "abc",
        "--nodes", "2",
        "--",
        "-test.run", "TestDevices",
    ])

    assert result.exit_code == 3
    assert "--- PASS: TestDevices" in result.stdout
    assert "1 test failed" in result.stdout
    job = fake_cluster.created_body("Job", "onos-test-abc")
    assert job["spec"]["template"]["spec"]["containers"][0]["args"] == ["-test.run", "TestDevices"]
    assert fake_cluster.find("Namespace", "onos-test-abc") is None


def test_run_with_missing_config_touches_nothing(monkeypatch, tmp_path):
    def _unexpected(cls, config_file=None):
        raise AssertionError("cluster must not be contacted")

    monkeypatch.setattr(KubeClusterClient, "from_kubeconfig", classmethod(_unexpected))

    result = runner.invoke(cli.app, ["run", "--configs-dir", str(tmp_path), "--config", "missing"])

    assert result.exit_code == 1


def test_delete_tears_down_test_id(fake_cluster):
    fake_cluster.create(resources.namespace("onos-test-abc"))

    result = runner.invoke(cli.app, ["delete", "abc"])

    assert result.exit_code == 0
    assert fake_cluster.deleted == [("Namespace", "onos-test-abc"), ("ClusterRoleBinding", "atomix-controller")]


def test_delete_reports_failure(fake_cluster):
    fake_cluster.fail_delete["Namespace"] = RuntimeError("boom")

    result = runner.invoke(cli.app, ["delete", "abc"])

    assert result.exit_code == 1
