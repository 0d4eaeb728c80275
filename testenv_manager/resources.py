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

"""Manifest templates for every resource the runner creates."""

from __future__ import annotations

import base64
from typing import Any

import yaml

from testenv_manager.constants import (
    ATOMIX_CONTROLLER_IMAGE,
    ATOMIX_CONTROLLER_NAME,
    ATOMIX_CONTROLLER_PORT,
    ATOMIX_CONTROLLER_READY_FILE,
    ATOMIX_CONTROLLER_REPLICAS,
    ATOMIX_GROUP,
    ATOMIX_VERSION,
    JOB_BACKOFF_LIMIT,
    LABEL_SIMULATOR,
    LABEL_TEST,
    ONOS_CONFIG_APP,
    ONOS_CONFIG_CERTS_MOUNT,
    ONOS_CONFIG_CONFIGS_MOUNT,
    ONOS_CONFIG_IMAGE,
    ONOS_CONFIG_NAME,
    ONOS_CONFIG_PORT,
    ONOS_CONFIG_PORT_NAME,
    PARTITION_SET_NAME,
    RAFT_PROTOCOL,
    RAFT_PROTOCOL_IMAGE,
    SIMULATOR_CONFIG_FILE,
    SIMULATOR_CONFIG_MOUNT,
    SIMULATOR_CONTAINER,
    SIMULATOR_IMAGE,
    SIMULATOR_PORT,
    SIMULATOR_PORT_NAME,
    TEST_CONTAINER,
    TEST_DEVICES_ENV,
    TEST_IMAGE,
)


def _metadata(name: str, namespace: str | None = None, labels: dict[str, str] | None = None) -> dict[str, Any]:
    meta: dict[str, Any] = {"name": name}
    if namespace is not None:
        meta["namespace"] = namespace
    if labels:
        meta["labels"] = labels
    return meta


def _tcp_probe(port: int, initial_delay: int, period: int) -> dict[str, Any]:
    return {"tcpSocket": {"port": port}, "initialDelaySeconds": initial_delay, "periodSeconds": period}


def _field_env(name: str, field_path: str) -> dict[str, Any]:
    return {"name": name, "valueFrom": {"fieldRef": {"fieldPath": field_path}}}


def _service(name: str, namespace: str, selector: dict[str, str], port_name: str, port: int) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": _metadata(name, namespace),
        "spec": {"selector": selector, "ports": [{"name": port_name, "port": port}]},
    }


# ============================================================================
# Namespace
# ============================================================================

def namespace(name: str) -> dict[str, Any]:
    return {"apiVersion": "v1", "kind": "Namespace", "metadata": _metadata(name)}


# ============================================================================
# Atomix controller
# ============================================================================

def atomix_crd(plural: str, kind: str) -> dict[str, Any]:
    """Build a namespaced Atomix custom resource definition.

    Args:
        plural: Plural resource name (e.g. ``partitionsets``).
        kind: Resource kind (e.g. ``PartitionSet``).

    Returns:
        CustomResourceDefinition manifest with a status subresource.
    """
    return {
        "apiVersion": "apiextensions.k8s.io/v1",
        "kind": "CustomResourceDefinition",
        "metadata": _metadata(f"{plural}.{ATOMIX_GROUP}"),
        "spec": {
            "group": ATOMIX_GROUP,
            "names": {
                "kind": kind,
                "listKind": f"{kind}List",
                "plural": plural,
                "singular": kind.lower(),
            },
            "scope": "Namespaced",
            "versions": [{
                "name": ATOMIX_VERSION,
                "served": True,
                "storage": True,
                "subresources": {"status": {}},
                "schema": {"openAPIV3Schema": {"type": "object", "x-kubernetes-preserve-unknown-fields": True}},
            }],
        },
    }


def atomix_cluster_role() -> dict[str, Any]:
    return {
        "apiVersion": "rbac.authorization.k8s.io/v1",
        "kind": "ClusterRole",
        "metadata": _metadata(ATOMIX_CONTROLLER_NAME),
        "rules": [
            {
                "apiGroups": [""],
                "resources": [
                    "pods", "services", "endpoints", "persistentvolumeclaims",
                    "events", "configmaps", "secrets",
                ],
                "verbs": ["*"],
            },
            {"apiGroups": [""], "resources": ["namespaces"], "verbs": ["get"]},
            {
                "apiGroups": ["apps"],
                "resources": ["deployments", "daemonsets", "replicasets", "statefulsets"],
                "verbs": ["*"],
            },
            {"apiGroups": ["policy"], "resources": ["poddisruptionbudgets"], "verbs": ["*"]},
            {"apiGroups": [ATOMIX_GROUP], "resources": ["*"], "verbs": ["*"]},
        ],
    }


def atomix_cluster_role_binding(test_name: str) -> dict[str, Any]:
    """Bind the controller cluster role to the test namespace's service account."""
    return {
        "apiVersion": "rbac.authorization.k8s.io/v1",
        "kind": "ClusterRoleBinding",
        "metadata": _metadata(ATOMIX_CONTROLLER_NAME),
        "subjects": [{"kind": "ServiceAccount", "name": ATOMIX_CONTROLLER_NAME, "namespace": test_name}],
        "roleRef": {
            "kind": "ClusterRole",
            "name": ATOMIX_CONTROLLER_NAME,
            "apiGroup": "rbac.authorization.k8s.io",
        },
    }


def atomix_service_account(test_name: str) -> dict[str, Any]:
    return {"apiVersion": "v1", "kind": "ServiceAccount", "metadata": _metadata(ATOMIX_CONTROLLER_NAME, test_name)}


def atomix_deployment(test_name: str) -> dict[str, Any]:
    labels = {"name": ATOMIX_CONTROLLER_NAME}
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": _metadata(ATOMIX_CONTROLLER_NAME, test_name),
        "spec": {
            "replicas": ATOMIX_CONTROLLER_REPLICAS,
            "selector": {"matchLabels": labels},
            "template": {
                "metadata": {"labels": labels},
                "spec": {
                    "serviceAccountName": ATOMIX_CONTROLLER_NAME,
                    "containers": [{
                        "name": ATOMIX_CONTROLLER_NAME,
                        "image": ATOMIX_CONTROLLER_IMAGE,
                        "imagePullPolicy": "IfNotPresent",
                        "command": [ATOMIX_CONTROLLER_NAME],
                        "env": [
                            {"name": "CONTROLLER_NAME", "value": ATOMIX_CONTROLLER_NAME},
                            _field_env("CONTROLLER_NAMESPACE", "metadata.namespace"),
                            _field_env("POD_NAME", "metadata.name"),
                            _field_env("POD_NAMESPACE", "metadata.namespace"),
                        ],
                        "ports": [{"name": "control", "containerPort": ATOMIX_CONTROLLER_PORT}],
                        "readinessProbe": {
                            "exec": {"command": ["stat", ATOMIX_CONTROLLER_READY_FILE]},
                            "initialDelaySeconds": 4,
                            "periodSeconds": 10,
                            "failureThreshold": 1,
                        },
                    }],
                },
            },
        },
    }


def atomix_service(test_name: str) -> dict[str, Any]:
    return _service(
        ATOMIX_CONTROLLER_NAME, test_name, {"name": ATOMIX_CONTROLLER_NAME}, "control", ATOMIX_CONTROLLER_PORT,
    )


def atomix_controller_address(test_name: str) -> str:
    """In-cluster address of the controller service for a test namespace."""
    return f"{ATOMIX_CONTROLLER_NAME}.{test_name}.svc.cluster.local:{ATOMIX_CONTROLLER_PORT}"


# ============================================================================
# Raft partitions
# ============================================================================

def raft_protocol_config() -> str:
    """Serialized default Raft protocol descriptor."""
    return yaml.safe_dump({})


def partition_set(test_name: str, partitions: int, partition_size: int) -> dict[str, Any]:
    """Build the Raft PartitionSet custom resource.

    Args:
        test_name: Test namespace.
        partitions: Number of partitions.
        partition_size: Number of members per partition.

    Returns:
        PartitionSet manifest.
    """
    return {
        "apiVersion": f"{ATOMIX_GROUP}/{ATOMIX_VERSION}",
        "kind": "PartitionSet",
        "metadata": _metadata(PARTITION_SET_NAME, test_name),
        "spec": {
            "partitions": partitions,
            "template": {
                "spec": {
                    "size": partition_size,
                    "protocol": RAFT_PROTOCOL,
                    "image": RAFT_PROTOCOL_IMAGE,
                    "config": raft_protocol_config(),
                },
            },
        },
    }


# ============================================================================
# Device simulators
# ============================================================================

def simulator_config_map(test_name: str, device_id: str, config_json: str) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": _metadata(device_id, test_name),
        "data": {SIMULATOR_CONFIG_FILE: config_json},
    }


def simulator_pod(test_name: str, device_id: str) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": _metadata(device_id, test_name, {LABEL_SIMULATOR: device_id}),
        "spec": {
            "containers": [{
                "name": SIMULATOR_CONTAINER,
                "image": SIMULATOR_IMAGE,
                "imagePullPolicy": "IfNotPresent",
                "ports": [{"name": SIMULATOR_PORT_NAME, "containerPort": SIMULATOR_PORT}],
                "readinessProbe": _tcp_probe(SIMULATOR_PORT, 5, 10),
                "livenessProbe": _tcp_probe(SIMULATOR_PORT, 15, 20),
                "volumeMounts": [{"name": "config", "mountPath": SIMULATOR_CONFIG_MOUNT, "readOnly": True}],
            }],
            "volumes": [{"name": "config", "configMap": {"name": device_id}}],
        },
    }


def simulator_service(test_name: str, device_id: str) -> dict[str, Any]:
    return _service(device_id, test_name, {LABEL_SIMULATOR: device_id}, SIMULATOR_PORT_NAME, SIMULATOR_PORT)


# ============================================================================
# onos-config
# ============================================================================

def onos_config_secret(test_name: str, files: dict[str, bytes]) -> dict[str, Any]:
    """TLS secret holding each certificate file, base64-encoded and keyed by file name.

    Files go under ``data`` rather than ``stringData`` so binary material
    such as DER certificates or keystores is carried unchanged.
    """
    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "metadata": _metadata(test_name, test_name),
        "data": {name: base64.b64encode(content).decode("ascii") for name, content in files.items()},
    }


def onos_config_config_map(test_name: str, stores: dict[str, str]) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": _metadata(ONOS_CONFIG_NAME, test_name),
        "data": stores,
    }


def onos_config_deployment(test_name: str, nodes: int) -> dict[str, Any]:
    """Build the onos-config Deployment wired to the test's Atomix controller.

    Args:
        test_name: Test namespace, also the TLS secret name.
        nodes: Number of replicas.

    Returns:
        Deployment manifest.
    """
    labels = {"app": ONOS_CONFIG_NAME}
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": _metadata(ONOS_CONFIG_NAME, test_name),
        "spec": {
            "replicas": nodes,
            "selector": {"matchLabels": labels},
            "template": {
                "metadata": {"labels": labels},
                "spec": {
                    "containers": [{
                        "name": ONOS_CONFIG_NAME,
                        "image": ONOS_CONFIG_IMAGE,
                        "imagePullPolicy": "IfNotPresent",
                        "env": [
                            {"name": "ATOMIX_CONTROLLER", "value": atomix_controller_address(test_name)},
                            {"name": "ATOMIX_APP", "value": ONOS_CONFIG_APP},
                            {"name": "ATOMIX_NAMESPACE", "value": test_name},
                        ],
                        "args": [
                            f"-caPath={ONOS_CONFIG_CERTS_MOUNT}/tls.cacrt",
                            f"-keyPath={ONOS_CONFIG_CERTS_MOUNT}/tls.key",
                            f"-certPath={ONOS_CONFIG_CERTS_MOUNT}/tls.crt",
                            f"-configStore={ONOS_CONFIG_CONFIGS_MOUNT}/configStore.json",
                            f"-changeStore={ONOS_CONFIG_CONFIGS_MOUNT}/changeStore.json",
                            f"-deviceStore={ONOS_CONFIG_CONFIGS_MOUNT}/deviceStore.json",
                            f"-networkStore={ONOS_CONFIG_CONFIGS_MOUNT}/networkStore.json",
                        ],
                        "ports": [{"name": ONOS_CONFIG_PORT_NAME, "containerPort": ONOS_CONFIG_PORT}],
                        "readinessProbe": _tcp_probe(ONOS_CONFIG_PORT, 5, 10),
                        "livenessProbe": _tcp_probe(ONOS_CONFIG_PORT, 15, 20),
                        "volumeMounts": [
                            {"name": "config", "mountPath": ONOS_CONFIG_CONFIGS_MOUNT, "readOnly": True},
                            {"name": "secret", "mountPath": ONOS_CONFIG_CERTS_MOUNT, "readOnly": True},
                        ],
                    }],
                    "volumes": [
                        {"name": "config", "configMap": {"name": ONOS_CONFIG_NAME}},
                        {"name": "secret", "secret": {"secretName": test_name}},
                    ],
                },
            },
        },
    }


def onos_config_service(test_name: str) -> dict[str, Any]:
    return _service(
        ONOS_CONFIG_NAME, test_name, {"app": ONOS_CONFIG_NAME}, ONOS_CONFIG_PORT_NAME, ONOS_CONFIG_PORT,
    )


# ============================================================================
# Test job
# ============================================================================

def integration_job(test_name: str, args: list[str], device_ids: list[str], timeout: int) -> dict[str, Any]:
    """Build the single-pod Job that runs the integration tests.

    Args:
        test_name: Test namespace, job name, and pod label value.
        args: Arguments forwarded verbatim to the test container.
        device_ids: Simulated device IDs exposed to the tests.
        timeout: Active deadline in seconds enforced by the cluster.

    Returns:
        Job manifest.
    """
    return {
        "apiVersion": "batch/v1",
        "kind": "Job",
        "metadata": _metadata(test_name, test_name),
        "spec": {
            "parallelism": 1,
            "completions": 1,
            "backoffLimit": JOB_BACKOFF_LIMIT,
            "activeDeadlineSeconds": timeout,
            "template": {
                "metadata": {"labels": {LABEL_TEST: test_name}},
                "spec": {
                    "restartPolicy": "Never",
                    "containers": [{
                        "name": TEST_CONTAINER,
                        "image": TEST_IMAGE,
                        "imagePullPolicy": "IfNotPresent",
                        "args": list(args),
                        "env": [{"name": TEST_DEVICES_ENV, "value": ",".join(device_ids)}],
                        "volumeMounts": [
                            {"name": "secret", "mountPath": ONOS_CONFIG_CERTS_MOUNT, "readOnly": True},
                        ],
                    }],
                    "volumes": [{"name": "secret", "secret": {"secretName": test_name}}],
                },
            },
        },
    }
