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

"""Idempotent creation of the cluster objects that make up a test environment."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from kubernetes.client.rest import ApiException

from testenv_manager import console, logger, resources
from testenv_manager.cluster import ClusterClient, is_already_exists, is_not_found


def read_cert_files(certs_dir: Path) -> dict[str, bytes]:
    """Read every regular file under ``certs_dir`` keyed by file name.

    Args:
        certs_dir: Directory holding the TLS material.

    Returns:
        Mapping of file name to raw file contents.

    Raises:
        FileNotFoundError: If ``certs_dir`` is not a directory.
    """
    certs_dir = Path(certs_dir)
    if not certs_dir.is_dir():
        raise FileNotFoundError(f"Certificate directory '{certs_dir}' not found")
    return {path.name: path.read_bytes() for path in sorted(certs_dir.rglob("*")) if path.is_file()}


class Provisioner:
    """Creates cluster objects, treating "already exists" as success.

    Any other API error propagates to the caller and aborts the run.
    """

    def __init__(self, cluster: ClusterClient) -> None:
        self.cluster = cluster

    def _create(self, body: dict[str, Any]) -> None:
        try:
            self.cluster.create(body)
        except ApiException as err:
            if not is_already_exists(err):
                raise
            logger.info("%s %s already exists", body["kind"], body["metadata"]["name"])

    def create_namespace(self, body: dict[str, Any]) -> None:
        self._create(body)

    def create_custom_resource_definition(self, body: dict[str, Any]) -> None:
        self._create(body)

    def create_cluster_role(self, body: dict[str, Any]) -> None:
        self._create(body)

    def create_cluster_role_binding(self, body: dict[str, Any]) -> None:
        """Create a cluster role binding, replacing a stale one once.

        The binding has a fixed name shared by all runs, so one left behind by
        an earlier run may point at another namespace. It is deleted and the
        create is retried a single time.
        """
        name = body["metadata"]["name"]
        try:
            self.cluster.create(body)
            return
        except ApiException as err:
            if not is_already_exists(err):
                raise
        console.print(f"[yellow]   Replacing existing cluster role binding '{name}'[/yellow]")
        self.delete_cluster_role_binding(name)
        self.cluster.create(body)

    def delete_cluster_role_binding(self, name: str) -> None:
        try:
            self.cluster.delete("ClusterRoleBinding", name)
        except ApiException as err:
            if not is_not_found(err):
                raise

    def create_service_account(self, body: dict[str, Any]) -> None:
        self._create(body)

    def create_deployment(self, body: dict[str, Any]) -> None:
        self._create(body)

    def create_service(self, body: dict[str, Any]) -> None:
        self._create(body)

    def create_config_map(self, body: dict[str, Any]) -> None:
        self._create(body)

    def create_secret(self, body: dict[str, Any]) -> None:
        self._create(body)

    def create_tls_secret(self, test_name: str, certs_dir: Path) -> None:
        """Create the onos-config TLS secret from the files in ``certs_dir``."""
        self.create_secret(resources.onos_config_secret(test_name, read_cert_files(certs_dir)))

    def create_pod(self, body: dict[str, Any]) -> None:
        self._create(body)

    def create_job(self, body: dict[str, Any]) -> None:
        self._create(body)

    def create_partition_set(self, body: dict[str, Any]) -> None:
        self._create(body)
