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

"""Delete subcommand."""

from __future__ import annotations

import typer

from testenv_manager.cluster import KubeClusterClient
from testenv_manager.config import make_test_name
from testenv_manager.teardown import TeardownManager


def delete(
    test_id: str = typer.Argument(..., help="ID of the test environment to delete"),
) -> None:
    """Delete the namespace and cluster role binding of a test environment."""
    if not TeardownManager(KubeClusterClient.from_kubeconfig()).teardown(make_test_name(test_id)):
        raise typer.Exit(1)
