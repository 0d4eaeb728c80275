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

"""Kubernetes API access for the runner.

Every object crosses this boundary as a plain manifest dictionary in the
API's own camelCase shape, so templates, readiness predicates, and test
fakes all work on the same representation.
"""

from __future__ import annotations

import codecs
from collections.abc import Iterator
from typing import Any, Protocol

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from testenv_manager.constants import (
    ATOMIX_GROUP,
    ATOMIX_VERSION,
    HTTP_CONFLICT,
    HTTP_NOT_FOUND,
    PARTITION_SET_PLURAL,
)

LOG_CHUNK_SIZE = 1024

# kind -> (api, method suffix, namespaced)
BUILTIN_KINDS: dict[str, tuple[str, str, bool]] = {
    "Namespace": ("core", "namespace", False),
    "CustomResourceDefinition": ("extensions", "custom_resource_definition", False),
    "ClusterRole": ("rbac", "cluster_role", False),
    "ClusterRoleBinding": ("rbac", "cluster_role_binding", False),
    "ServiceAccount": ("core", "service_account", True),
    "ConfigMap": ("core", "config_map", True),
    "Secret": ("core", "secret", True),
    "Service": ("core", "service", True),
    "Pod": ("core", "pod", True),
    "Deployment": ("apps", "deployment", True),
    "Job": ("batch", "job", True),
}

# kind -> (group, version, plural)
CUSTOM_KINDS: dict[str, tuple[str, str, str]] = {
    "PartitionSet": (ATOMIX_GROUP, ATOMIX_VERSION, PARTITION_SET_PLURAL),
}


def is_already_exists(err: BaseException) -> bool:
    """Whether the API server rejected a create because the object exists."""
    return isinstance(err, ApiException) and err.status == HTTP_CONFLICT


def is_not_found(err: BaseException) -> bool:
    """Whether the API server reported the object as missing."""
    return isinstance(err, ApiException) and err.status == HTTP_NOT_FOUND


class ClusterClient(Protocol):
    """Primitives the runner needs from a cluster."""

    def create(self, body: dict[str, Any]) -> dict[str, Any]: ...

    def get(self, kind: str, name: str, namespace: str | None = None) -> dict[str, Any]: ...

    def delete(self, kind: str, name: str, namespace: str | None = None) -> None: ...

    def list_pods(self, namespace: str, label_selector: str) -> list[dict[str, Any]]: ...

    def stream_pod_logs(self, namespace: str, name: str) -> Iterator[str]: ...


class KubeClusterClient:
    """ClusterClient backed by the official kubernetes Python client."""

    def __init__(self, api_client: client.ApiClient) -> None:
        self._api_client = api_client
        self._apis = {
            "core": client.CoreV1Api(api_client),
            "apps": client.AppsV1Api(api_client),
            "batch": client.BatchV1Api(api_client),
            "rbac": client.RbacAuthorizationV1Api(api_client),
            "extensions": client.ApiextensionsV1Api(api_client),
        }
        self._custom = client.CustomObjectsApi(api_client)

    @classmethod
    def from_kubeconfig(cls, config_file: str | None = None) -> KubeClusterClient:
        """Build a client from a kubeconfig file.

        Args:
            config_file: Explicit kubeconfig path, or None to use ``$KUBECONFIG``
                and fall back to ``~/.kube/config``.

        Returns:
            A client bound to the kubeconfig's current context.
        """
        return cls(config.new_client_from_config(config_file=config_file))

    def _as_dict(self, obj: Any) -> dict[str, Any]:
        return self._api_client.sanitize_for_serialization(obj)

    def _method(self, verb: str, kind: str):
        try:
            api, suffix, namespaced = BUILTIN_KINDS[kind]
        except KeyError:
            raise ValueError(f"Unsupported resource kind '{kind}'") from None
        name = f"{verb}_namespaced_{suffix}" if namespaced else f"{verb}_{suffix}"
        return getattr(self._apis[api], name), namespaced

    def create(self, body: dict[str, Any]) -> dict[str, Any]:
        kind = body["kind"]
        namespace = body["metadata"].get("namespace")
        if kind in CUSTOM_KINDS:
            group, version, plural = CUSTOM_KINDS[kind]
            return self._custom.create_namespaced_custom_object(group, version, namespace, plural, body)
        method, namespaced = self._method("create", kind)
        if namespaced:
            return self._as_dict(method(namespace, body))
        return self._as_dict(method(body))

    def get(self, kind: str, name: str, namespace: str | None = None) -> dict[str, Any]:
        if kind in CUSTOM_KINDS:
            group, version, plural = CUSTOM_KINDS[kind]
            return self._custom.get_namespaced_custom_object(group, version, namespace, plural, name)
        method, namespaced = self._method("read", kind)
        if namespaced:
            return self._as_dict(method(name, namespace))
        return self._as_dict(method(name))

    def delete(self, kind: str, name: str, namespace: str | None = None) -> None:
        if kind in CUSTOM_KINDS:
            group, version, plural = CUSTOM_KINDS[kind]
            self._custom.delete_namespaced_custom_object(group, version, namespace, plural, name)
            return
        method, namespaced = self._method("delete", kind)
        if namespaced:
            method(name, namespace)
        else:
            method(name)

    def list_pods(self, namespace: str, label_selector: str) -> list[dict[str, Any]]:
        pods = self._apis["core"].list_namespaced_pod(namespace, label_selector=label_selector)
        return self._as_dict(pods).get("items", [])

    def stream_pod_logs(self, namespace: str, name: str) -> Iterator[str]:
        """Yield the pod's log output as it is written, until the stream ends."""
        resp = self._apis["core"].read_namespaced_pod_log(
            name, namespace, follow=True, _preload_content=False,
        )
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        try:
            for chunk in resp.stream(LOG_CHUNK_SIZE):
                text = decoder.decode(chunk)
                if text:
                    yield text
            tail = decoder.decode(b"", final=True)
            if tail:
                yield tail
        finally:
            resp.release_conn()
