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

"""Guaranteed-generation fallback for a turn.

Some models never answer, or answer with chatter but no tool call, when
given a plain floor plan request. The controller starts a timer with the
turn; if neither a token nor a tool call shows up before it elapses, the
controller derives layout parameters from the user's own text and calls the
solver directly, so the user still gets a plan.

Usage:
    controller = FallbackController(config, backend, layout_state, on_event=emit)
    controller.start(user_text)
    ...
    controller.signal("first token")   # model is alive, stand down
    ...
    await controller.finish()          # cancel or await in-flight generation
"""

import asyncio
import logging
from typing import Callable, Optional

from vastuflow.agent.parameter_normalizer import GeneratedParameters, ParameterNormalizer
from vastuflow.agent.types import FallbackEvent
from vastuflow.core.errors import VastuFlowError
from vastuflow.tools.backend import LayoutBackendClient
from vastuflow.tools.layout import LayoutState, build_generation_payload, refresh_vastu_score

logger = logging.getLogger(__name__)

SUPERSEDED_MESSAGE = "Fallback layout discarded, model layout kept"


class FallbackController:
    """Turn-scoped fallback timer and the direct generation it triggers."""

    def __init__(
        self,
        timeout: float,
        backend: LayoutBackendClient,
        layout_state: LayoutState,
        on_event: Optional[Callable[[FallbackEvent], None]] = None,
        normalizer: Optional[ParameterNormalizer] = None,
        enabled: bool = True,
        validate: bool = True,
    ):
        self.timeout = timeout
        self.backend = backend
        self.layout_state = layout_state
        self.normalizer = normalizer or ParameterNormalizer()
        self.enabled = enabled
        self.validate = validate
        self._on_event = on_event
        self._handle: Optional[asyncio.TimerHandle] = None
        self._task: Optional["asyncio.Task[FallbackEvent]"] = None
        self._user_text = ""
        self._superseded = False
        self.fired = False
        self.event: Optional[FallbackEvent] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def start(self, user_text: str) -> None:
        if not self.enabled:
            return
        self._user_text = user_text or ""
        self._handle = asyncio.get_running_loop().call_later(self.timeout, self._fire)
        logger.debug(f"[FallbackController] Timer set for {self.timeout:g}s")

    def signal(self, reason: str) -> None:
        """The model produced output; the fallback is no longer needed."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            logger.debug(f"[FallbackController] Cancelled: {reason}")

    def supersede(self, reason: str) -> None:
        """The model produced its own layout; a late fallback result must not replace it."""
        self.signal(reason)
        self._superseded = True

    def abort(self) -> None:
        """Turn cancelled: drop the timer and any generation in flight."""
        self.signal("turn cancelled")
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def finish(self) -> Optional[FallbackEvent]:
        """End of turn: drop an unfired timer, or wait for the generation it started."""
        self.signal("turn finished")
        if self._task is not None:
            return await self._task
        return None

    def derive_parameters(self, text: str) -> GeneratedParameters:
        params = self.normalizer.normalize(text)
        if params is not None:
            return params
        return self.normalizer.heuristic(
            text, self.layout_state.plot_width, self.layout_state.plot_length
        )

    def _fire(self) -> None:
        self._handle = None
        self.fired = True
        logger.warning(
            f"[FallbackController] No token or tool call after {self.timeout:g}s, "
            "generating layout directly"
        )
        self._task = asyncio.get_running_loop().create_task(self._generate())

    async def _generate(self) -> FallbackEvent:
        params = self.derive_parameters(self._user_text)
        width, length = params.display_dimensions
        payload = build_generation_payload(
            {
                "rooms_needed": params.rooms,
                "plot_dimensions": [width, length],
                "orientation": params.orientation,
            }
        )
        try:
            data = await self.backend.generate(payload)
        except VastuFlowError as e:
            logger.error(f"[FallbackController] Fallback generation failed: {e.message}")
            return self._emit(FallbackEvent(succeeded=False, message="Fallback generation failed"))

        if self._superseded:
            logger.info("[FallbackController] Model layout arrived first, discarding fallback result")
            return self._emit(
                FallbackEvent(succeeded=False, message=SUPERSEDED_MESSAGE, result=data)
            )
        if not self.layout_state.apply_generation(data, payload):
            logger.error("[FallbackController] Backend returned no rooms")
            return self._emit(
                FallbackEvent(succeeded=False, message="Fallback generation failed", result=data)
            )
        if self.validate:
            await refresh_vastu_score(self.backend, self.layout_state)

        solver = data.get("solver_type") or payload["solver_type"]
        message = (
            f"Generated {len(self.layout_state.rooms)} rooms for "
            f"{width:g}×{length:g}m plot ({solver} solver)"
        )
        logger.info(f"[FallbackController] {message}")
        return self._emit(FallbackEvent(succeeded=True, message=message, result=data))

    def _emit(self, event: FallbackEvent) -> FallbackEvent:
        self.event = event
        if self._on_event is not None:
            self._on_event(event)
        return event
