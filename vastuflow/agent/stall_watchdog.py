# Copyright 2025 Vijaykumar Singh <singhvjd@gmail.com>
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

"""Inactivity timer for a streaming read.

The orchestrator arms the watchdog when a round's request starts, pokes it
on every chunk, and clears it when the stream ends. If the timer elapses
first, ``on_stall`` runs (typically cancelling the read task); cancellation
is cooperative, the read loop unwinds as if the stream had ended.
"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class StallWatchdog:
    """Re-armable single-shot timer on the running event loop."""

    def __init__(self, timeout: float, on_stall: Callable[[], None]):
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")
        self.timeout = timeout
        self._on_stall = on_stall
        self._handle: Optional[asyncio.TimerHandle] = None
        self.fired = False

    @property
    def armed(self) -> bool:
        return self._handle is not None

    def arm(self) -> None:
        """Start (or restart) the countdown."""
        self._cancel_handle()
        self.fired = False
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.timeout, self._fire)

    def reset(self) -> None:
        """Activity seen: push the deadline out by a full timeout."""
        if self.fired:
            return
        self._cancel_handle()
        self._handle = asyncio.get_running_loop().call_later(self.timeout, self._fire)

    def clear(self) -> None:
        self._cancel_handle()

    def _cancel_handle(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self.fired = True
        logger.warning(f"[StallWatchdog] No data for {self.timeout:g}s, aborting read")
        self._on_stall()
