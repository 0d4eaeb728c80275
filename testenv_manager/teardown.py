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

"""Best-effort reclamation of a test environment."""

from __future__ import annotations

from rich.panel import Panel

from testenv_manager import console
from testenv_manager.cluster import ClusterClient, is_not_found
from testenv_manager.constants import ATOMIX_CONTROLLER_NAME


class TeardownManager:
    """Deletes the test namespace and the shared cluster role binding.

    Deleting the namespace cascades to every namespaced object of the run.
    The cluster role binding is cluster-scoped and survives namespace
    deletion, so it is removed separately by its fixed name.
    """

    def __init__(self, cluster: ClusterClient) -> None:
        self.cluster = cluster

    def _delete(self, kind: str, name: str) -> bool:
        try:
            self.cluster.delete(kind, name)
        except Exception as err:
            if is_not_found(err):
                console.print(f"[yellow]\u26a0\ufe0f  {kind} '{name}' not found or already deleted[/yellow]")
                return True
            console.print(f"[red]\u274c Failed to delete {kind} '{name}': {err}[/red]")
            return False
        console.print(f"[green]\u2705 {kind} '{name}' deleted[/green]")
        return True

    def teardown(self, test_name: str) -> bool:
        """Delete the test's resources, reporting but not raising failures.

        Args:
            test_name: Test namespace.

        Returns:
            True if every deletion succeeded or found nothing to delete.
        """
        console.print(Panel.fit(f"Tearing down test namespace {test_name}", style="bold blue"))
        namespace_ok = self._delete("Namespace", test_name)
        binding_ok = self._delete("ClusterRoleBinding", ATOMIX_CONTROLLER_NAME)
        return namespace_ok and binding_ok
