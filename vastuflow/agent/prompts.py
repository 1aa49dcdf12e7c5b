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

"""Prompt text and turn message assembly."""

from typing import Any, Dict, List, Optional, Sequence

from vastuflow.agent.parameter_normalizer import ParameterNormalizer, build_directive
from vastuflow.providers.base import Dialect, Message, Role
from vastuflow.tools.layout import LayoutState, finite_number

SYSTEM_PROMPT = """You are a Vastu-aware architecture AI assistant specializing in Indian residential design. Help users design floor plans that balance modern functionality with traditional Vastu Shastra principles.

**Key Vastu Principles:**
- Kitchen: Southeast (Agni corner) or Northwest
- Master Bedroom: Southwest (stability)
- Living Room: North, East, or Northeast
- Entrance: North, East, or Northeast (most auspicious)
- Bathroom: Northwest, West, or South (never Northeast)
- Pooja Room: Northeast (most auspicious)

**Important:**
- Explain Vastu principles in simple, user-friendly language
- Never output raw JSON; layouts are visualized automatically
- Be ready to modify layouts based on user feedback"""

SYSTEM_PROMPT_TOOLS = """You are a Vastu-compliant floor plan design assistant. You have ONE primary tool: generate_layout_hybrid.

## TOOL: generate_layout_hybrid
Use this tool whenever:
- User requests a new floor plan (e.g., "design a 3BHK", "create apartment layout")
- User provides plot dimensions or area
- User asks for modifications to a layout
- User says "go on", "continue", "yes", "proceed" after discussing requirements

Parameters:
- plot_dimensions: [width_meters, height_meters] - Convert feet to meters: ft × 0.3048
- rooms_needed: Array of room types based on BHK:
  - 2BHK: ["kitchen","living_room","bedroom","bedroom","bathroom"]
  - 3BHK: ["kitchen","living_room","master_bedroom","bedroom","bedroom","bathroom","bathroom"]
  - 4BHK: ["kitchen","living_room","master_bedroom","bedroom","bedroom","bedroom","bathroom","bathroom","pooja_room"]
- orientation: "north", "south", "east", or "west" (default: "north")

## UNIT CONVERSIONS
- Square feet to square meters: sqft ÷ 10.764
- Feet to meters: ft × 0.3048
- If only area given (e.g., "400 sq ft"), assume square plot: side = √(area in sq m)

## RESPONSE FORMAT
1. FIRST: Call generate_layout_hybrid with extracted parameters
2. THEN: Provide a conversational response with a summary, Vastu notes, 1-2 questions and 2-3 suggestions

Never output thinking or reasoning. Respond with tool calls first, explanations after."""

TOOL_FOLLOWUP_STEERING = """Tool execution complete. Now provide an INTERACTIVE response that includes:
1. A brief summary of what was created (room count, plot size, key features)
2. Vastu compliance highlights (what's good and what could be improved)
3. Ask 1-2 SPECIFIC questions like: "Do you prefer open or enclosed kitchen?" or "Would you like attached bathrooms?"
4. Offer 2-3 specific suggestions: "I can move the master bedroom to SW for better Vastu" or "Should I add a study room?"

Be conversational and engaging. Do NOT call any tools again."""

GENERATION_SUMMARY_STEPS = (
    "Summary: 1) Plot parsed and constraints applied; 2) Vastu potential mapping considered; "
    "3) Rule-guided placement optimized; 4) Final vector output rendered."
)


def system_prompt_for(dialect: Dialect) -> str:
    """Tool-calling servers get the tool-centric prompt."""
    return SYSTEM_PROMPT_TOOLS if dialect == Dialect.NDJSON else SYSTEM_PROMPT


def generation_summary(result: Dict[str, Any]) -> str:
    """Deterministic stand-in for a reply when the model said nothing after a successful generation."""
    solver = result.get("solver") or result.get("solver_type") or "graph"
    score = finite_number(result.get("score"))
    rooms = result.get("rooms")

    text = f"Generated layout using {solver} solver"
    if score is not None:
        text += f" (score {int(round(score))})"
    text += ". Visualized rooms"
    if isinstance(rooms, list) and rooms:
        text += f" ({len(rooms)})"
    return f"{text} have been updated. {GENERATION_SUMMARY_STEPS}"


def user_message_with_directive(
    user_text: str, normalizer: Optional[ParameterNormalizer] = None
) -> str:
    """Append a generation directive when the text carries a plot size."""
    params = (normalizer or ParameterNormalizer()).normalize(user_text)
    if params is None:
        return user_text
    return f"{user_text}\n\n{build_directive(params)}"


def build_turn_messages(
    previous: Sequence[Message],
    user_text: str,
    dialect: Dialect = Dialect.NDJSON,
    layout_state: Optional[LayoutState] = None,
    normalizer: Optional[ParameterNormalizer] = None,
) -> List[Message]:
    """Assemble the full history for a new turn.

    Order: system prompt, current floor plan (when one exists), prior
    messages, then the new user message with its directive.
    """
    messages = [Message(role=Role.SYSTEM, content=system_prompt_for(dialect))]
    context = layout_state.context_message() if layout_state else None
    if context:
        messages.append(Message(role=Role.SYSTEM, content=context))
    messages.extend(m for m in previous if m.role != Role.SYSTEM)
    messages.append(
        Message(role=Role.USER, content=user_message_with_directive(user_text, normalizer))
    )
    return messages
