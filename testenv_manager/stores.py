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

"""Store documents for onos-config and per-simulator configuration.

The test configuration document may describe the device and config stores
explicitly. When it only describes simulators, equivalent stores are
synthesized so onos-config always starts with an inventory matching the
simulators the runner deploys.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from testenv_manager.config import ConfigDocument
from testenv_manager.constants import (
    DEVICE_CONFIG_TIMESTAMP,
    DEVICE_CONFIG_TYPE,
    DEVICE_SOFTWARE_VERSION,
    DEVICE_TIMEOUT_SECONDS,
    SIMULATOR_PORT,
    STORE_TYPE_CONFIG,
    STORE_TYPE_DEVICE,
    STORE_VERSION,
)


def to_json(value: Any) -> str:
    """Serialize to compact JSON."""
    return json.dumps(value, separators=(",", ":"))


def device_address(device_id: str) -> str:
    return f"{device_id}:{SIMULATOR_PORT}"


def synthesize_device_store(device_ids: Iterable[str]) -> dict[str, Any]:
    """Build a device store with one entry per simulated device."""
    return {
        "Version": STORE_VERSION,
        "Storetype": STORE_TYPE_DEVICE,
        "Store": {
            device_id: {
                "ID": device_id,
                "Addr": device_address(device_id),
                "SoftwareVersion": DEVICE_SOFTWARE_VERSION,
                "Timeout": DEVICE_TIMEOUT_SECONDS,
            }
            for device_id in device_ids
        },
    }


def synthesize_config_store(device_ids: Iterable[str]) -> dict[str, Any]:
    """Build a config store with one empty configuration per simulated device."""
    store = {}
    for device_id in device_ids:
        name = f"{device_id}-{STORE_VERSION}"
        store[name] = {
            "Name": name,
            "Device": device_id,
            "Version": STORE_VERSION,
            "Type": DEVICE_CONFIG_TYPE,
            "Created": DEVICE_CONFIG_TIMESTAMP,
            "Updated": DEVICE_CONFIG_TIMESTAMP,
            "Changes": [],
        }
    return {"Version": STORE_VERSION, "Storetype": STORE_TYPE_CONFIG, "Store": store}


@dataclass(frozen=True)
class StoreDocuments:
    """Serialized onos-config store documents.

    Attributes:
        change_store: Change store JSON.
        network_store: Network store JSON.
        device_store: Device store JSON, or empty when there is nothing to describe.
        config_store: Config store JSON, or empty when there is nothing to describe.
    """

    change_store: str
    network_store: str
    device_store: str
    config_store: str

    def as_config_map_data(self) -> dict[str, str]:
        return {
            "changeStore.json": self.change_store,
            "configStore.json": self.config_store,
            "deviceStore.json": self.device_store,
            "networkStore.json": self.network_store,
        }


def _explicit_or_synthesized(doc: ConfigDocument, field_name: str, synthesize) -> str:
    if doc.has(field_name):
        return to_json(getattr(doc, field_name))
    if doc.simulators is not None:
        return to_json(synthesize(doc.device_ids))
    return ""


def resolve_store_documents(doc: ConfigDocument) -> StoreDocuments:
    """Serialize the four store documents from a test configuration document.

    Change and network stores are serialized as given (``null`` when absent).
    Device and config stores are serialized as given when present, otherwise
    synthesized from the simulators, otherwise left empty.

    Args:
        doc: Validated test configuration document.

    Returns:
        The serialized store documents.
    """
    return StoreDocuments(
        change_store=to_json(doc.change_store),
        network_store=to_json(doc.network_store),
        device_store=_explicit_or_synthesized(doc, "device_store", synthesize_device_store),
        config_store=_explicit_or_synthesized(doc, "config_store", synthesize_config_store),
    )


def simulator_configs(doc: ConfigDocument) -> dict[str, str]:
    """Serialized per-device simulator configuration, keyed by device ID."""
    return {device_id: to_json(config) for device_id, config in (doc.simulators or {}).items()}
