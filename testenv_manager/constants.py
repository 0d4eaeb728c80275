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

"""Resource names, images, ports, and runner defaults."""

from __future__ import annotations

# -- Test naming --
TEST_NAME_PREFIX = "onos-test-"
LABEL_TEST = "test"
LABEL_SIMULATOR = "simulator"

# -- Polling --
POLL_INTERVAL_SECONDS = 0.1

# -- Atomix controller --
ATOMIX_CONTROLLER_NAME = "atomix-controller"
ATOMIX_CONTROLLER_IMAGE = "atomix/atomix-k8s-controller:latest"
ATOMIX_CONTROLLER_PORT = 5679
ATOMIX_CONTROLLER_READY_FILE = "/tmp/atomix-controller-ready"
ATOMIX_CONTROLLER_REPLICAS = 1
ATOMIX_GROUP = "k8s.atomix.io"
ATOMIX_VERSION = "v1alpha1"
ATOMIX_CRDS = (
    ("partitionsets", "PartitionSet"),
    ("partitions", "Partition"),
)

# -- Raft partitions --
PARTITION_SET_NAME = "raft"
PARTITION_SET_PLURAL = "partitionsets"
RAFT_PROTOCOL = "raft"
RAFT_PROTOCOL_IMAGE = "atomix/atomix-raft-protocol:latest"

# -- Device simulators --
SIMULATOR_IMAGE = "onosproject/device-simulator:latest"
SIMULATOR_CONTAINER = "device-simulator"
SIMULATOR_PORT = 10161
SIMULATOR_PORT_NAME = "gnmi"
SIMULATOR_CONFIG_FILE = "config.json"
SIMULATOR_CONFIG_MOUNT = "/etc/simulator/configs"

# -- onos-config (system under test) --
ONOS_CONFIG_NAME = "onos-config"
ONOS_CONFIG_IMAGE = "onosproject/onos-config:latest"
ONOS_CONFIG_PORT = 5150
ONOS_CONFIG_PORT_NAME = "grpc"
ONOS_CONFIG_APP = "test"
ONOS_CONFIG_CONFIGS_MOUNT = "/etc/onos-config/configs"
ONOS_CONFIG_CERTS_MOUNT = "/etc/onos-config/certs"

# -- Test job --
TEST_IMAGE = "onosproject/onos-config-integration-tests:latest"
TEST_CONTAINER = "test"
TEST_DEVICES_ENV = "ONOS_CONFIG_TEST_DEVICES"
JOB_BACKOFF_LIMIT = 1

# -- Store documents --
STORE_VERSION = "1.0.0"
STORE_TYPE_DEVICE = "device"
STORE_TYPE_CONFIG = "config"
DEVICE_SOFTWARE_VERSION = "1.0.0"
DEVICE_TIMEOUT_SECONDS = 5
DEVICE_CONFIG_TYPE = "Devicesim"
DEVICE_CONFIG_TIMESTAMP = "2019-05-09T16:24:17Z"

# -- Pod phases --
POD_RUNNING = "Running"
POD_SUCCEEDED = "Succeeded"
POD_FAILED = "Failed"

# -- HTTP status codes reported by the API server --
HTTP_NOT_FOUND = 404
HTTP_CONFLICT = 409

# -- Runner defaults --
DEFAULT_CONFIG_NAME = "default"
DEFAULT_CONFIGS_DIR = "configs"
DEFAULT_CERTS_DIR = "certs"
DEFAULT_NODES = 1
DEFAULT_PARTITIONS = 1
DEFAULT_PARTITION_SIZE = 1
DEFAULT_TIMEOUT_SECONDS = 600
