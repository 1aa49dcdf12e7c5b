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

"""Agent module - conversation orchestration and its components.

This module contains:
- ConversationOrchestrator: runs a turn (rounds, tool calls, retries)
- ToolCallExtractor: text and tool calls out of stream records
- ResponseSanitizer: moves leaked reasoning into a collapsed block
- ParameterNormalizer: plot size, facing and rooms from user text
- StallWatchdog / FallbackController: the two turn timers
"""

from vastuflow.agent.fallback_controller import FallbackController
from vastuflow.agent.orchestrator import ConversationOrchestrator, TurnStream
from vastuflow.agent.parameter_normalizer import GeneratedParameters, ParameterNormalizer
from vastuflow.agent.response_sanitizer import ResponseSanitizer, SanitizedResponse
from vastuflow.agent.stall_watchdog import StallWatchdog
from vastuflow.agent.tool_call_extractor import RecordDelta, ToolCallExtractor
from vastuflow.agent.types import (
    ConversationBuffer,
    FallbackEvent,
    RoundState,
    TextDelta,
    ToolCallEvent,
    TurnResult,
)

__all__ = [
    "ConversationBuffer",
    "ConversationOrchestrator",
    "FallbackController",
    "FallbackEvent",
    "GeneratedParameters",
    "ParameterNormalizer",
    "RecordDelta",
    "ResponseSanitizer",
    "RoundState",
    "SanitizedResponse",
    "StallWatchdog",
    "TextDelta",
    "ToolCallEvent",
    "ToolCallExtractor",
    "TurnResult",
    "TurnStream",
]
