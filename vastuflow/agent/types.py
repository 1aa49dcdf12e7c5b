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

"""Turn-scoped state and the events a turn emits."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from vastuflow.providers.base import Message, Role, ToolCallRequest, ToolCallResult


class ConversationBuffer:
    """Append-only working copy of the message list for one turn.

    The caller's history is copied in; the caller's list is never touched,
    so a failed turn leaves it exactly as it was.
    """

    def __init__(self, history: Iterable[Message]):
        self._messages: List[Message] = list(history)

    def append(self, message: Message) -> None:
        self._messages.append(message)

    def add(self, role: Role, content: str, name: Optional[str] = None) -> Message:
        message = Message(role=role, content=content, name=name)
        self._messages.append(message)
        return message

    @property
    def messages(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)


@dataclass
class RoundState:
    """Bookkeeping for one request/response round."""

    round_index: int
    tools_enabled: bool
    messages: Tuple[Message, ...] = ()
    encountered_tool_call: bool = False
    characters_streamed: int = 0
    stalled: bool = False
    transport_error: Optional[Exception] = None
    retried: bool = False
    text: str = ""
    retry_text: str = ""

    @property
    def is_empty(self) -> bool:
        return self.characters_streamed == 0 and not self.encountered_tool_call

    @property
    def needs_retry(self) -> bool:
        """Empty or stalled rounds without a tool call get one non-streaming retry."""
        return not self.encountered_tool_call and (self.stalled or self.characters_streamed == 0)

    @property
    def contribution(self) -> str:
        """Text this round adds to the reply; a stalled stream's partial text is dropped."""
        streamed = "" if self.stalled else self.text
        return streamed + self.retry_text


@dataclass(frozen=True)
class TextDelta:
    text: str
    round_index: int


@dataclass(frozen=True)
class ToolCallEvent:
    """A tool call that was dispatched and resolved."""

    request: ToolCallRequest
    result: ToolCallResult
    round_index: int


@dataclass(frozen=True)
class FallbackEvent:
    """Notice from the fallback generator; ``result`` is the backend body when there was one."""

    succeeded: bool
    message: str
    result: Optional[Dict[str, Any]] = None


TurnEvent = Union[ToolCallEvent, FallbackEvent]


@dataclass
class TurnResult:
    """Final outcome of a turn."""

    text: str
    rounds: int
    tool_results: List[ToolCallResult] = field(default_factory=list)
    fallback_fired: bool = False
    messages: List[Message] = field(default_factory=list)
