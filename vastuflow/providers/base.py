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

"""Shared message and tool types used across providers, tools and the agent."""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Role(str, Enum):
    """Conversation roles accepted by both chat dialects."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


class Dialect(str, Enum):
    """Streaming wire formats.

    NDJSON: one JSON object per line (Ollama /api/chat)
    SSE: "data: " prefixed events ending with "data: [DONE]" (OpenAI-compatible)
    """

    NDJSON = "ndjson"
    SSE = "sse"


@dataclass(frozen=True)
class Message:
    """A single conversation message. Immutable once created."""

    role: Role
    content: str
    timestamp: float = field(default_factory=time.time)
    name: Optional[str] = None  # Tool name for tool-result messages

    def __post_init__(self) -> None:
        if not isinstance(self.role, Role):
            object.__setattr__(self, "role", Role(self.role))

    def to_wire(self) -> Dict[str, Any]:
        """Serialize for the chat endpoint (timestamps are client-side only)."""
        data: Dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.name:
            data["name"] = self.name
        return data


@dataclass(frozen=True)
class ToolDefinition:
    """A tool offered to the model. Read-only to the orchestrator."""

    name: str
    description: str = ""
    parameters: Dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )

    def to_wire(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


@dataclass(frozen=True)
class ToolCallRequest:
    """A tool invocation with arguments already resolved to a mapping."""

    tool_name: str
    arguments: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolCallResult:
    """Opaque structured result of a tool execution.

    Only the success signal is interpreted; everything else in ``payload``
    is tool specific and passed through untouched.
    """

    tool_name: str
    payload: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def error(cls, tool_name: str, message: str) -> "ToolCallResult":
        return cls(tool_name=tool_name, payload={"status": "error", "message": message})

    @property
    def succeeded(self) -> bool:
        status = self.payload.get("status")
        if status == "success" or self.payload.get("success") is True:
            return True
        if status == "error" or self.payload.get("success") is False:
            return False
        # Layout solver success bodies carry positioned rooms but no status
        return isinstance(self.payload.get("rooms"), list)

    @property
    def error_message(self) -> Optional[str]:
        if self.succeeded:
            return None
        message = self.payload.get("message") or self.payload.get("detail")
        return str(message) if message else "Unknown error during tool execution"


def messages_to_wire(messages: List[Message]) -> List[Dict[str, Any]]:
    return [m.to_wire() for m in messages]
