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

"""Tool call and text extraction from decoded stream records.

Different models emit the same logical tool call in different shapes:

- nested:  {"function": {"name": "...", "arguments": ...}}
- flat:    {"name": "...", "arguments": ...}

and the arguments themselves arrive either as a JSON-encoded string or as
an already-parsed object. Everything is normalized here, once, into
ToolCallRequest with a plain dict of arguments; nothing downstream ever
sees the raw variants.

Example:
    extractor = ToolCallExtractor()
    delta = extractor.extract(
        {"message": {"content": "", "tool_calls": [
            {"function": {"name": "generate_layout_hybrid",
                          "arguments": "{\\"orientation\\": \\"east\\"}"}}
        ]}},
        Dialect.NDJSON,
    )
    # delta.tool_calls[0].arguments == {"orientation": "east"}
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from vastuflow.providers.base import Dialect, ToolCallRequest

logger = logging.getLogger(__name__)


@dataclass
class RecordDelta:
    """What one decoded record contributes to a round."""

    text: str = ""
    tool_calls: List[ToolCallRequest] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.text and not self.tool_calls


def normalize_arguments(raw: Any) -> Dict[str, Any]:
    """Resolve a tool-call argument payload to a canonical dict.

    JSON strings are parsed, mappings pass through (copied), and anything
    unusable becomes an empty dict rather than an error.
    """
    if raw is None:
        return {}
    if isinstance(raw, dict):
        return dict(raw)
    if isinstance(raw, str):
        if not raw.strip():
            return {}
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(
                f"[ToolCallExtractor] Unparsable tool arguments, using empty args: {raw[:120]!r}"
            )
            return {}
        if isinstance(parsed, dict):
            return parsed
        logger.warning(
            f"[ToolCallExtractor] Tool arguments decoded to {type(parsed).__name__}, using empty args"
        )
        return {}
    logger.warning(
        f"[ToolCallExtractor] Unsupported argument type {type(raw).__name__}, using empty args"
    )
    return {}


class ToolCallExtractor:
    """Pulls text deltas and tool calls out of decoded records.

    Text and tool-call signalling may share one record; both are returned.
    Reasoning fields such as ``message.thinking`` are deliberately ignored.
    """

    # Root-level fallbacks some servers use instead of message.content
    NDJSON_TEXT_KEYS = ("response", "content", "text")

    def extract(self, record: Dict[str, Any], dialect: Dialect) -> RecordDelta:
        if dialect == Dialect.SSE:
            return self._extract_sse(record)
        return self._extract_ndjson(record)

    def extract_completion_text(self, body: Dict[str, Any], dialect: Dialect) -> str:
        """Text of a non-streaming completion body."""
        if dialect == Dialect.SSE:
            choice = self._first_choice(body)
            message = choice.get("message") if choice else None
            content = message.get("content") if isinstance(message, dict) else None
            return content if isinstance(content, str) else ""
        return self._ndjson_text(body)

    def _extract_ndjson(self, record: Dict[str, Any]) -> RecordDelta:
        delta = RecordDelta(text=self._ndjson_text(record))

        message = record.get("message")
        raw_calls = None
        if isinstance(message, dict):
            raw_calls = message.get("tool_calls")
        if not raw_calls:
            raw_calls = record.get("tool_calls")
        if isinstance(raw_calls, list) and raw_calls:
            delta.tool_calls = self.normalize_tool_calls(raw_calls)
            logger.debug(
                f"[ToolCallExtractor] {len(raw_calls)} raw tool call(s), "
                f"{len(delta.tool_calls)} usable"
            )
        return delta

    def _extract_sse(self, record: Dict[str, Any]) -> RecordDelta:
        choice = self._first_choice(record)
        if not choice:
            return RecordDelta()
        content = None
        delta = choice.get("delta")
        if isinstance(delta, dict):
            content = delta.get("content")
        if not content:
            message = choice.get("message")
            if isinstance(message, dict):
                content = message.get("content")
        return RecordDelta(text=content if isinstance(content, str) else "")

    def _ndjson_text(self, record: Dict[str, Any]) -> str:
        message = record.get("message")
        if isinstance(message, dict):
            content = message.get("content")
            if isinstance(content, str) and content:
                return content
        for key in self.NDJSON_TEXT_KEYS:
            value = record.get(key)
            if isinstance(value, str) and value:
                return value
        return ""

    @staticmethod
    def _first_choice(record: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        choices = record.get("choices")
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            return choices[0]
        return None

    def normalize_tool_calls(self, raw_calls: List[Any]) -> List[ToolCallRequest]:
        requests = []
        for raw in raw_calls:
            request = self.normalize_tool_call(raw)
            if request is not None:
                requests.append(request)
        return requests

    def normalize_tool_call(self, raw: Any) -> Optional[ToolCallRequest]:
        """Normalize one nested or flat tool-call entry. Entries without a name are dropped."""
        if not isinstance(raw, dict):
            return None
        function = raw.get("function")
        if isinstance(function, dict):
            name = function.get("name") or raw.get("name")
            raw_args = function.get("arguments", raw.get("arguments"))
        else:
            name = raw.get("name")
            raw_args = raw.get("arguments")

        if not isinstance(name, str) or not name.strip():
            logger.warning(f"[ToolCallExtractor] Dropping tool call without a name: {raw!r:.120}")
            return None
        return ToolCallRequest(tool_name=name.strip(), arguments=normalize_arguments(raw_args))
