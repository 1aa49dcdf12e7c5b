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

"""Conversation orchestrator: one user turn against a streaming chat endpoint.

A turn is a bounded sequence of rounds. Each round sends the working
message buffer, streams the reply, and dispatches every tool call found in
the stream. A round that handled a tool call appends the tool results plus
a steering message and loops; a round without one ends the turn. Tools are
offered only until the first tool result exists, so the follow-up round is
a narrative reply rather than another tool call.

Two timers run alongside:
- StallWatchdog (per round) cancels a read that went silent; the round is
  then retried once without streaming.
- FallbackController (per turn) generates a layout straight from the
  user's text if the model shows no sign of life at all.

Usage:
    orchestrator = ConversationOrchestrator(settings.to_orchestrator_config())
    messages = orchestrator.prepare_messages(previous, "3BHK 30x40 ft east facing")
    turn = orchestrator.start_turn(messages, user_text="3BHK 30x40 ft east facing")
    async for delta in turn.text_deltas():
        print(delta.text, end="")
    result = await turn.result()
"""

import asyncio
import json
import logging
import time
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

from vastuflow.agent.debug_logger import DebugLogger
from vastuflow.agent.fallback_controller import FallbackController
from vastuflow.agent.parameter_normalizer import ParameterNormalizer
from vastuflow.agent.prompts import TOOL_FOLLOWUP_STEERING, build_turn_messages, generation_summary
from vastuflow.agent.response_sanitizer import ResponseSanitizer
from vastuflow.agent.stall_watchdog import StallWatchdog
from vastuflow.agent.tool_call_extractor import ToolCallExtractor
from vastuflow.agent.types import (
    ConversationBuffer,
    RoundState,
    TextDelta,
    ToolCallEvent,
    TurnEvent,
    TurnResult,
)
from vastuflow.config.settings import OrchestratorConfig, Settings
from vastuflow.core.errors import ProviderError, TurnFailedError
from vastuflow.providers.base import (
    Dialect,
    Message,
    Role,
    ToolCallRequest,
    ToolCallResult,
    ToolDefinition,
)
from vastuflow.providers.chat_client import ChatEndpointClient
from vastuflow.providers.stream_decoder import StreamFrameDecoder
from vastuflow.tools.backend import LayoutBackendClient
from vastuflow.tools.base import ToolRegistry
from vastuflow.tools.layout import LayoutGenerationTool, LayoutState, refresh_vastu_score

logger = logging.getLogger(__name__)

_END = object()


class TurnStream:
    """Output channels of one running turn.

    ``text_deltas()`` and ``tool_events()`` are finite, one-shot async
    iterators that end when the turn ends (or is cancelled). ``result()``
    returns the TurnResult, or raises TurnFailedError.
    """

    def __init__(self) -> None:
        self._text_queue: "asyncio.Queue[Any]" = asyncio.Queue()
        self._event_queue: "asyncio.Queue[Any]" = asyncio.Queue()
        self._text_taken = False
        self._events_taken = False
        self._closed = False
        self._task: Optional["asyncio.Task[TurnResult]"] = None

    def _attach(self, task: "asyncio.Task[TurnResult]") -> None:
        self._task = task

    def _push_text(self, delta: TextDelta) -> None:
        if not self._closed:
            self._text_queue.put_nowait(delta)

    def _push_event(self, event: TurnEvent) -> None:
        if not self._closed:
            self._event_queue.put_nowait(event)

    def _close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._text_queue.put_nowait(_END)
        self._event_queue.put_nowait(_END)

    @property
    def closed(self) -> bool:
        return self._closed

    async def text_deltas(self) -> AsyncIterator[TextDelta]:
        if self._text_taken:
            raise RuntimeError("text_deltas() can only be consumed once per turn")
        self._text_taken = True
        while True:
            item = await self._text_queue.get()
            if item is _END:
                return
            yield item

    async def tool_events(self) -> AsyncIterator[TurnEvent]:
        if self._events_taken:
            raise RuntimeError("tool_events() can only be consumed once per turn")
        self._events_taken = True
        while True:
            item = await self._event_queue.get()
            if item is _END:
                return
            yield item

    async def result(self) -> TurnResult:
        if self._task is None:
            raise RuntimeError("Turn has not been started")
        return await self._task

    def cancel(self) -> None:
        """Stop the turn; both channels end immediately."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._close()


@dataclass
class _TurnContext:
    buffer: ConversationBuffer
    stream: TurnStream
    fallback: FallbackController
    tool_results: List[ToolCallResult] = field(default_factory=list)
    watchdog: Optional[StallWatchdog] = None


class ConversationOrchestrator:
    """Runs conversation turns: streaming, tool dispatch, retries, fallback.

    Only one turn should run per orchestrator at a time; LayoutState is
    shared across turns and updated by successful generations.
    """

    def __init__(
        self,
        config: OrchestratorConfig,
        chat_client: Optional[ChatEndpointClient] = None,
        backend: Optional[LayoutBackendClient] = None,
        registry: Optional[ToolRegistry] = None,
        layout_state: Optional[LayoutState] = None,
    ):
        self.config = config
        self.chat_client = chat_client or ChatEndpointClient(
            config.llm_endpoint, model=config.llm_model, llm_type=config.llm_type
        )
        self.backend = backend or LayoutBackendClient(config.backend_url)
        self.layout_state = layout_state or LayoutState(
            plot_width=config.default_plot_width, plot_length=config.default_plot_length
        )
        if registry is None:
            registry = ToolRegistry()
            registry.register(LayoutGenerationTool(self.backend))
        self.registry = registry

        self.extractor = ToolCallExtractor()
        self.sanitizer = ResponseSanitizer()
        self.normalizer = ParameterNormalizer()
        self.debug = DebugLogger()

    @classmethod
    def from_settings(cls, settings: Settings) -> "ConversationOrchestrator":
        return cls(settings.to_orchestrator_config())

    @property
    def dialect(self) -> Dialect:
        return self.chat_client.dialect

    def tool_definitions(self) -> List[ToolDefinition]:
        return self.registry.definitions()

    def prepare_messages(self, previous: Sequence[Message], user_text: str) -> List[Message]:
        """System prompt, layout context, prior turns and the new user message."""
        return build_turn_messages(
            previous, user_text, self.dialect, self.layout_state, self.normalizer
        )

    def start_turn(
        self,
        history: Sequence[Message],
        tools: Optional[List[ToolDefinition]] = None,
        user_text: Optional[str] = None,
    ) -> TurnStream:
        """Start a turn in the background and return its output channels.

        Args:
            history: Full message list (system, prior turns, new user message)
            tools: Tools to offer; None offers every registered tool, [] none
            user_text: Raw user text for the fallback generator; defaults to
                the content of the last user message in ``history``
        """
        stream = TurnStream()
        task = asyncio.get_running_loop().create_task(
            self._run_turn(list(history), tools, user_text, stream)
        )
        stream._attach(task)
        return stream

    async def generate_response(
        self,
        history: Sequence[Message],
        tools: Optional[List[ToolDefinition]] = None,
        user_text: Optional[str] = None,
    ) -> str:
        """Run a turn to completion and return the final text.

        Raises:
            TurnFailedError: the endpoint could not be reached even on retry
        """
        result = await self.start_turn(history, tools, user_text).result()
        return result.text

    async def close(self) -> None:
        await self.chat_client.close()
        await self.backend.close()

    # ------------------------------------------------------------------
    # Turn

    async def _run_turn(
        self,
        history: List[Message],
        tools: Optional[List[ToolDefinition]],
        user_text: Optional[str],
        stream: TurnStream,
    ) -> TurnResult:
        if user_text is None:
            user_text = next((m.content for m in reversed(history) if m.role == Role.USER), "")
        self.debug.reset()

        fallback = FallbackController(
            self.config.fallback_timeout,
            self.backend,
            self.layout_state,
            on_event=stream._push_event,
            normalizer=self.normalizer,
            enabled=self.config.fallback_enabled,
            validate=self.config.validate_layouts,
        )
        ctx = _TurnContext(buffer=ConversationBuffer(history), stream=stream, fallback=fallback)
        fallback.start(user_text)
        try:
            result = await self._run_rounds(ctx, self._offered_tools(tools))
            await fallback.finish()
            result.fallback_fired = fallback.fired
            return result
        except asyncio.CancelledError:
            fallback.abort()
            raise
        except TurnFailedError:
            await fallback.finish()
            raise
        finally:
            stream._close()

    def _offered_tools(self, tools: Optional[List[ToolDefinition]]) -> List[ToolDefinition]:
        if self.config.force_disable_tools:
            return []
        if self.dialect != Dialect.NDJSON:
            # OpenAI-compatible local servers get no tool schema
            return []
        return list(tools) if tools is not None else self.tool_definitions()

    async def _run_rounds(self, ctx: _TurnContext, offered: List[ToolDefinition]) -> TurnResult:
        text_parts: List[str] = []
        rounds = 0
        while rounds < self.config.max_rounds:
            state = RoundState(
                round_index=rounds,
                tools_enabled=bool(offered) and not ctx.tool_results,
                messages=ctx.buffer.messages,
            )
            payload = self.chat_client.build_payload(
                list(state.messages), offered if state.tools_enabled else None, stream=True
            )
            self.debug.log_round_start(rounds, state.tools_enabled, len(state.messages))

            await self._stream_round(state, payload, ctx)
            if state.needs_retry:
                await self._retry_round(state, payload, ctx)

            text_parts.append(state.contribution)
            self.debug.log_round_end(rounds, state.characters_streamed, state.encountered_tool_call)
            rounds += 1

            if not state.encountered_tool_call:
                break
            ctx.buffer.add(Role.ASSISTANT, TOOL_FOLLOWUP_STEERING)

        text = "".join(text_parts)
        if not text.strip():
            succeeded = [r for r in ctx.tool_results if r.succeeded]
            if succeeded:
                text = generation_summary(succeeded[-1].payload)
                logger.info("[Orchestrator] No reply text after tool success, using summary")

        final = self.sanitizer.sanitize(text).render()
        ctx.buffer.add(Role.ASSISTANT, final)
        self.debug.log_turn_end(final)
        return TurnResult(
            text=final,
            rounds=rounds,
            tool_results=list(ctx.tool_results),
            messages=list(ctx.buffer.messages),
        )

    # ------------------------------------------------------------------
    # Round

    async def _stream_round(
        self, state: RoundState, payload: Dict[str, Any], ctx: _TurnContext
    ) -> None:
        read_task: Optional[asyncio.Task] = None

        def on_stall() -> None:
            if read_task is not None:
                read_task.cancel()

        watchdog = StallWatchdog(self.config.stall_timeout, on_stall)
        ctx.watchdog = watchdog
        watchdog.arm()
        read_task = asyncio.get_running_loop().create_task(self._consume(state, payload, ctx))
        try:
            await read_task
        except asyncio.CancelledError:
            # a closed stream means the caller cancelled the turn, stall or not
            if not watchdog.fired or ctx.stream.closed:
                raise
            state.stalled = True
            self.debug.log_stall(state.round_index)
        except ProviderError as e:
            state.transport_error = e
            logger.warning(f"[Orchestrator] Round {state.round_index + 1} stream failed: {e.message}")
        finally:
            watchdog.clear()
            ctx.watchdog = None

    async def _consume(self, state: RoundState, payload: Dict[str, Any], ctx: _TurnContext) -> None:
        decoder = StreamFrameDecoder(self.dialect)
        async with aclosing(self.chat_client.stream(payload)) as chunks:
            async for chunk in chunks:
                if ctx.watchdog is not None:
                    ctx.watchdog.reset()
                for record in decoder.feed(chunk):
                    await self._handle_record(record, state, ctx)
        for record in decoder.finish():
            await self._handle_record(record, state, ctx)
        if decoder.lines_skipped:
            logger.debug(f"[Orchestrator] Skipped {decoder.lines_skipped} malformed line(s)")

    async def _handle_record(
        self, record: Dict[str, Any], state: RoundState, ctx: _TurnContext
    ) -> None:
        delta = self.extractor.extract(record, self.dialect)
        if delta.text:
            if state.characters_streamed == 0:
                ctx.fallback.signal("first token")
            state.text += delta.text
            state.characters_streamed += len(delta.text)
            ctx.stream._push_text(TextDelta(delta.text, state.round_index))

        for request in delta.tool_calls:
            state.encountered_tool_call = True
            ctx.fallback.signal("tool call detected")
            # tool execution time is not stream inactivity
            if ctx.watchdog is not None:
                ctx.watchdog.clear()
            await self._dispatch(request, state, ctx)
            if ctx.watchdog is not None:
                ctx.watchdog.arm()

    async def _dispatch(self, request: ToolCallRequest, state: RoundState, ctx: _TurnContext) -> None:
        self.debug.log_tool_call(request.tool_name, request.arguments)
        started = time.monotonic()
        result = await self.registry.execute(request.tool_name, request.arguments)
        self.debug.log_tool_result(
            request.tool_name, result.succeeded, (time.monotonic() - started) * 1000
        )
        if not result.succeeded:
            logger.warning(f"[Orchestrator] Tool {request.tool_name} failed: {result.error_message}")

        tool = self.registry.get(request.tool_name)
        if isinstance(tool, LayoutGenerationTool) and result.succeeded:
            ctx.fallback.supersede("model layout generated")
            await self._apply_layout(tool, result)

        ctx.buffer.add(Role.TOOL, json.dumps(result.payload, default=str), name=request.tool_name)
        ctx.tool_results.append(result)
        ctx.stream._push_event(ToolCallEvent(request, result, state.round_index))

    async def _apply_layout(self, tool: LayoutGenerationTool, result: ToolCallResult) -> None:
        if not self.layout_state.apply_generation(result.payload, tool.last_request or {}):
            return
        if self.config.validate_layouts:
            await refresh_vastu_score(self.backend, self.layout_state)

    async def _retry_round(
        self, state: RoundState, payload: Dict[str, Any], ctx: _TurnContext
    ) -> None:
        """One non-streaming attempt of the same request.

        Tool calls in the retry body are not dispatched; only its text is used.
        """
        if state.stalled:
            reason = "stalled"
        elif state.transport_error is not None:
            reason = "transport error"
        else:
            reason = "empty stream"
        self.debug.log_retry(state.round_index, reason)
        state.retried = True
        try:
            body = await self.chat_client.complete(payload)
        except ProviderError as e:
            if state.transport_error is not None:
                logger.error(
                    f"[Orchestrator] Round {state.round_index + 1} failed on stream and retry: {e.message}"
                )
                raise TurnFailedError(
                    "Failed to generate response", round_index=state.round_index, cause=e
                ) from e
            logger.warning(f"[Orchestrator] Non-stream retry failed: {e.message}")
            return

        text = self.extractor.extract_completion_text(body, self.dialect)
        if text:
            ctx.fallback.signal("first token")
            state.retry_text = text
            ctx.stream._push_text(TextDelta(text, state.round_index))
        else:
            logger.warning(f"[Orchestrator] Round {state.round_index + 1} retry returned no text")
