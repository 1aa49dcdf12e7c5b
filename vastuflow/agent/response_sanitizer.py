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

"""Response sanitization for model output.

Reasoning models leak chain-of-thought into their answers, either wrapped
in ``<think>`` tags or as plain prose that opens with "Okay," / "Let me
think" and similar. The sanitizer keeps that reasoning out of the primary
answer and moves it into a collapsed block the UI can expand on demand.
"""

import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

FALLBACK_RESPONSE = (
    "I've processed your request. The floor plan has been generated and is displayed in the viewer."
)

THINKING_BLOCK_TEMPLATE = (
    '<details class="thinking-container">\n'
    "<summary>💭 View AI Reasoning</summary>\n\n"
    "{reasoning}\n\n"
    "</details>\n\n"
)


@dataclass(frozen=True)
class SanitizedResponse:
    """Primary answer and relocated reasoning."""

    primary: str
    reasoning: str = ""
    used_fallback: bool = False

    def render(self) -> str:
        """Render as display text: collapsed reasoning block, then the answer."""
        if self.used_fallback:
            return FALLBACK_RESPONSE
        result = ""
        if self.reasoning:
            result += THINKING_BLOCK_TEMPLATE.format(reasoning=self.reasoning)
        if self.primary:
            result += self.primary
        return result.strip()


class ResponseSanitizer:
    """Separates reasoning prose from the primary answer."""

    THINK_SPAN = re.compile(r"<think>([\s\S]*?)</think>", re.IGNORECASE)

    # Openers that mark a whole response as thinking-out-loud
    REASONING_OPENERS = [
        r"Okay,",
        r"Wait,",
        r"Hmm,",
        r"Let me think",
        r"Let me check",
        r"I need to",
        r"First,",
        r"So,",
        r"Actually,",
        r"The user",
        r"They didn't",
        r"Since they",
        r"I should",
        r"I have to",
        r"I'll",
        r"Maybe I",
        r"Looking at",
        r"Checking",
        r"Analyzing",
        r"Processing",
        r"Thinking about",
    ]

    def __init__(self) -> None:
        self._opener_re = re.compile(
            r"^(?:" + "|".join(self.REASONING_OPENERS) + r")", re.IGNORECASE
        )

    def looks_like_reasoning(self, text: str) -> bool:
        """Whether the first sentence of ``text`` starts with a reasoning opener."""
        return bool(self._opener_re.match(text.lstrip()))

    def sanitize(self, text: str) -> SanitizedResponse:
        """Split ``text`` into primary answer and reasoning.

        Args:
            text: Raw accumulated model output

        Returns:
            SanitizedResponse; ``used_fallback`` is set when nothing usable
            remains on either side.
        """
        text = text or ""
        spans = self.THINK_SPAN.findall(text)
        if spans:
            reasoning = "\n\n".join(s.strip() for s in spans if s.strip())
            primary = self.THINK_SPAN.sub("", text).strip()
        else:
            reasoning = ""
            primary = text.strip()
            if primary and self.looks_like_reasoning(primary):
                logger.debug("[ResponseSanitizer] Leading reasoning detected, collapsing whole text")
                reasoning, primary = primary, ""

        if not reasoning and not primary:
            return SanitizedResponse(primary="", used_fallback=True)
        return SanitizedResponse(primary=primary, reasoning=reasoning)


def clean_thinking_content(text: str) -> str:
    """Sanitize and render in one step."""
    return ResponseSanitizer().sanitize(text).render()
