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

"""Tests for StallWatchdog."""

import asyncio

import pytest

from vastuflow.agent.stall_watchdog import StallWatchdog


class TestStallWatchdog:
    """Tests for the inactivity timer."""

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ValueError):
            StallWatchdog(0, lambda: None)

    @pytest.mark.asyncio
    async def test_fires_after_silence(self):
        """on_stall runs once the timeout elapses without activity."""
        calls = []
        watchdog = StallWatchdog(0.02, lambda: calls.append(1))
        watchdog.arm()
        assert watchdog.armed
        await asyncio.sleep(0.08)
        assert calls == [1]
        assert watchdog.fired
        assert not watchdog.armed

    @pytest.mark.asyncio
    async def test_reset_pushes_deadline(self):
        """Regular activity keeps the watchdog from firing."""
        calls = []
        watchdog = StallWatchdog(0.05, lambda: calls.append(1))
        watchdog.arm()
        for _ in range(4):
            await asyncio.sleep(0.02)
            watchdog.reset()
        assert calls == []
        watchdog.clear()

    @pytest.mark.asyncio
    async def test_clear_prevents_firing(self):
        calls = []
        watchdog = StallWatchdog(0.02, lambda: calls.append(1))
        watchdog.arm()
        watchdog.clear()
        await asyncio.sleep(0.05)
        assert calls == []
        assert not watchdog.fired

    @pytest.mark.asyncio
    async def test_reset_after_fire_is_noop(self):
        calls = []
        watchdog = StallWatchdog(0.01, lambda: calls.append(1))
        watchdog.arm()
        await asyncio.sleep(0.04)
        watchdog.reset()
        await asyncio.sleep(0.04)
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_rearm_after_fire(self):
        """arm() starts a fresh countdown and clears the fired flag."""
        calls = []
        watchdog = StallWatchdog(0.01, lambda: calls.append(1))
        watchdog.arm()
        await asyncio.sleep(0.04)
        watchdog.arm()
        assert not watchdog.fired
        await asyncio.sleep(0.04)
        assert calls == [1, 1]
