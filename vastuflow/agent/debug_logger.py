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

"""Compact turn logging and log level setup.

One line per meaningful event: round start/end, tool calls, retries,
stalls. Anything verbose stays at DEBUG.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict

# Third-party loggers that flood DEBUG output during streaming
NOISY_LOGGERS = [
    "httpcore",
    "httpx",
    "asyncio",
    "markdown_it",
]


def configure_logging_levels(log_level: str = "WARNING") -> None:
    """Set the vastuflow logger level and silence noisy third-party loggers."""
    level = getattr(logging, log_level.upper(), logging.WARNING)
    logging.getLogger("vastuflow").setLevel(level)
    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


@dataclass
class TurnStats:
    """Counters for one turn."""

    rounds: int = 0
    chars_streamed: int = 0
    tool_calls: int = 0
    retries: int = 0
    stalls: int = 0
    start_time: float = field(default_factory=time.time)

    @property
    def elapsed_seconds(self) -> float:
        return time.time() - self.start_time

    def summary(self) -> str:
        return (
            f"rounds={self.rounds} | chars={self.chars_streamed:,} | "
            f"tools={self.tool_calls} | retries={self.retries} | "
            f"stalls={self.stalls} | {self.elapsed_seconds:.1f}s"
        )


class DebugLogger:
    """Turn-level event logger used by the orchestrator."""

    def __init__(self, name: str = "vastuflow.turn", max_preview: int = 80):
        self.logger = logging.getLogger(name)
        self.max_preview = max_preview
        self.stats = TurnStats()

    def reset(self) -> None:
        self.stats = TurnStats()

    def _truncate(self, text: str, max_len: int = 0) -> str:
        max_len = max_len or self.max_preview
        text = text.replace("\n", " ").strip()
        if len(text) <= max_len:
            return text
        return f"{text[:max_len]}..."

    def log_round_start(self, round_index: int, tools_enabled: bool, message_count: int) -> None:
        self.stats.rounds = round_index + 1
        tools = "tools on" if tools_enabled else "tools off"
        self.logger.info(f"── ROUND {round_index + 1} ({tools}, {message_count} msgs) ──")

    def log_round_end(self, round_index: int, chars: int, tool_call: bool) -> None:
        self.stats.chars_streamed += chars
        status = "→ tools" if tool_call else "→ done"
        self.logger.info(f"   round {round_index + 1}: {chars} chars {status}")

    def log_tool_call(self, tool_name: str, args: Dict[str, Any]) -> None:
        self.stats.tool_calls += 1
        args_str = ", ".join(f"{k}={self._truncate(str(v), 30)}" for k, v in list(args.items())[:3])
        if len(args) > 3:
            args_str += f", +{len(args) - 3} more"
        self.logger.info(f"   ▶ {tool_name}({args_str})")

    def log_tool_result(self, tool_name: str, success: bool, elapsed_ms: float) -> None:
        icon = "✓" if success else "✗"
        self.logger.info(f"   {icon} {tool_name} ({elapsed_ms:.0f}ms)")

    def log_retry(self, round_index: int, reason: str) -> None:
        self.stats.retries += 1
        self.logger.info(f"   ↻ round {round_index + 1}: non-stream retry ({reason})")

    def log_stall(self, round_index: int) -> None:
        self.stats.stalls += 1
        self.logger.warning(f"   ⏸ round {round_index + 1}: stream stalled")

    def log_turn_end(self, text: str) -> None:
        self.logger.info(f"   {self.stats.summary()}")
        self.logger.debug(f"   final: {self._truncate(text)}")
