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

"""Tests for the readiness gate."""

from __future__ import annotations

import pytest

from testenv_manager.errors import ReadinessTimeout
from testenv_manager.gate import ReadinessGate, await_ready


def _sequence(*states):
    calls = []
    remaining = list(states)

    def fetch():
        calls.append(1)
        return remaining.pop(0)

    return fetch, calls


@pytest.mark.parametrize("not_ready", [0, 1, 4])
def test_polls_until_ready(not_ready):
    fetch, calls = _sequence(*([{"ready": False}] * not_ready), {"ready": True, "n": 7})
    sleeps = []

    state = await_ready(fetch, lambda s: s["ready"], interval=0.1, sleep=sleeps.append)

    assert state == {"ready": True, "n": 7}
    assert len(calls) == not_ready + 1
    assert sleeps == [0.1] * not_ready


def test_fetch_error_propagates_without_sleeping():
    sleeps = []

    def fetch():
        raise ConnectionError("api server unreachable")

    with pytest.raises(ConnectionError, match="unreachable"):
        await_ready(fetch, lambda s: True, sleep=sleeps.append)
    assert sleeps == []


def test_fetch_error_after_not_ready_propagates():
    states = iter([False])

    def fetch():
        try:
            return next(states)
        except StopIteration:
            raise ValueError("gone") from None

    with pytest.raises(ValueError, match="gone"):
        await_ready(fetch, bool, sleep=lambda _: None)


def test_timeout_raises_readiness_timeout():
    with pytest.raises(ReadinessTimeout, match="partitions"):
        await_ready(lambda: False, bool, timeout=0, sleep=lambda _: None, what="partitions")


def test_gate_applies_its_parameters():
    sleeps = []
    fetch, calls = _sequence(1, 2, 3)
    gate = ReadinessGate(interval=0.5, sleep=sleeps.append)

    assert gate.wait(fetch, lambda n: n == 3) == 3
    assert len(calls) == 3
    assert sleeps == [0.5, 0.5]
