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

"""Error types for the setup and run phases."""

from __future__ import annotations


class SetupError(RuntimeError):
    """A tier failed to provision or become ready. Later tiers are skipped."""


class RunError(RuntimeError):
    """The test job's logs or status could not be observed."""


class ReadinessTimeout(RuntimeError):
    """A readiness wait exceeded its configured limit."""
