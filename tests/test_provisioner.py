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

"""Tests for idempotent resource creation."""

from __future__ import annotations

import base64

import pytest
from kubernetes.client.rest import ApiException

from conftest import FakeCluster, api_error
from testenv_manager import resources
from testenv_manager.provisioner import Provisioner, read_cert_files


def test_already_exists_is_success(cluster):
    provisioner = Provisioner(cluster)

    provisioner.create_namespace(resources.namespace("onos-test-abc"))
    provisioner.create_namespace(resources.namespace("onos-test-abc"))

    assert cluster.created == [("Namespace", "onos-test-abc")] * 2


def test_other_api_errors_propagate():
    cluster = FakeCluster(fail_on={"Service": api_error(403, "Forbidden")})

    with pytest.raises(ApiException) as excinfo:
        Provisioner(cluster).create_service(resources.onos_config_service("onos-test-abc"))
    assert excinfo.value.status == 403


def test_cluster_role_binding_is_replaced_once(cluster):
    provisioner = Provisioner(cluster)
    provisioner.create_cluster_role_binding(resources.atomix_cluster_role_binding("onos-test-old"))

    provisioner.create_cluster_role_binding(resources.atomix_cluster_role_binding("onos-test-new"))

    assert cluster.deleted == [("ClusterRoleBinding", "atomix-controller")]
    binding = cluster.find("ClusterRoleBinding", "atomix-controller")
    assert binding["subjects"][0]["namespace"] == "onos-test-new"


class _AlwaysConflicting(FakeCluster):
    def create(self, body):
        self.created.append((body["kind"], body["metadata"]["name"]))
        raise api_error(409, "Conflict")

    def delete(self, kind, name, namespace=None):
        self.deleted.append((kind, name))


def test_cluster_role_binding_second_conflict_raises():
    cluster = _AlwaysConflicting()

    with pytest.raises(ApiException) as excinfo:
        Provisioner(cluster).create_cluster_role_binding(resources.atomix_cluster_role_binding("onos-test-abc"))

    assert excinfo.value.status == 409
    assert len(cluster.created) == 2
    assert cluster.deleted == [("ClusterRoleBinding", "atomix-controller")]


def test_read_cert_files_walks_the_directory(tmp_path):
    (tmp_path / "nested").mkdir()
    (tmp_path / "tls.crt").write_text("CERT")
    (tmp_path / "nested" / "tls.key").write_text("KEY")

    assert read_cert_files(tmp_path) == {"tls.crt": b"CERT", "tls.key": b"KEY"}


def test_read_cert_files_missing_directory(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_cert_files(tmp_path / "missing")


def test_tls_secret_carries_every_file(cluster, certs_dir):
    Provisioner(cluster).create_tls_secret("onos-test-abc", certs_dir)

    secret = cluster.find("Secret", "onos-test-abc", "onos-test-abc")
    assert secret["data"] == {"tls.cacrt": "Q0E=", "tls.crt": "Q0VSVA==", "tls.key": "S0VZ"}


def test_tls_secret_carries_binary_files(cluster, certs_dir):
    der = b"\x30\x82\xff\xfe\x00"
    (certs_dir / "ca.der").write_bytes(der)

    Provisioner(cluster).create_tls_secret("onos-test-abc", certs_dir)

    secret = cluster.find("Secret", "onos-test-abc", "onos-test-abc")
    assert base64.b64decode(secret["data"]["ca.der"]) == der
