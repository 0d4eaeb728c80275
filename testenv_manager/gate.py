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

"""Blocking readiness gate shared by every provisioning tier."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from tenacity import RetryError, retry, retry_if_result, stop_after_delay, stop_never, wait_fixed

from testenv_manager import logger
from testenv_manager.constants import POLL_INTERVAL_SECONDS
from testenv_manager.errors import ReadinessTimeout

T = TypeVar("T")


def await_ready(
    fetch: Callable[[], T],
    is_ready: Callable[[T], bool],
    *,
    interval: float = POLL_INTERVAL_SECONDS,
    timeout: float | None = None,
    sleep: Callable[[float], None] = time.sleep,
    what: str = "resource",
) -> T:
    """Poll ``fetch`` until ``is_ready`` holds for the observed state.

    State is re-fetched on every check. An exception from ``fetch`` is
    propagated immediately without sleeping; only a not-ready observation is
    retried, after a fixed ``interval``.

    Args:
        fetch: Returns the current state of the observed object.
        is_ready: Readiness predicate over the fetched state.
        interval: Seconds to sleep between checks.
        timeout: Overall limit in seconds, or None to wait forever.
        sleep: Sleep function, replaceable in tests.
        what: Description of the observed object for log messages.

    Returns:
        The first observed state for which ``is_ready`` returned True.

    Raises:
        ReadinessTimeout: If ``timeout`` elapsed before the object became ready.
    """

    @retry(
        retry=retry_if_result(lambda state: not is_ready(state)),
        wait=wait_fixed(interval),
        stop=stop_never if timeout is None else stop_after_delay(timeout),
        sleep=sleep,
        before_sleep=lambda rs: logger.debug("%s not ready after %d checks", what, rs.attempt_number),
    )
    def _check() -> T:
        return fetch()

    try:
        return _check()
    except RetryError as err:
        raise ReadinessTimeout(f"Timed out after {timeout}s waiting for {what}") from err


@dataclass(frozen=True)
class ReadinessGate:
    """Polling parameters shared by all readiness waits of a run.

    Attributes:
        interval: Seconds to sleep between checks.
        timeout: Overall limit in seconds for one wait, or None to wait forever.
        sleep: Sleep function, replaceable in tests.
    """

    interval: float = POLL_INTERVAL_SECONDS
    timeout: float | None = None
    sleep: Callable[[float], None] = time.sleep

    def wait(self, fetch: Callable[[], T], is_ready: Callable[[T], bool], what: str = "resource") -> T:
        return await_ready(
            fetch, is_ready,
            interval=self.interval, timeout=self.timeout, sleep=self.sleep, what=what,
        )
