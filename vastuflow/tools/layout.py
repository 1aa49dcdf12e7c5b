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

"""The generate_layout_hybrid tool and the layout state it produces.

The model asks for rooms by token ("kitchen", "master_bedroom", ...). Tokens
are expanded to unpositioned room boxes from presets; the backend solver
does the placement. Positioned rooms, plot size and the latest Vastu score
make up the LayoutState the caller renders and the model sees as context on
later turns.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from vastuflow.core.errors import ToolExecutionError
from vastuflow.providers.base import ToolCallResult
from vastuflow.tools.backend import CONSTRAINT_SOLVER, LayoutBackendClient
from vastuflow.tools.base import BaseTool

logger = logging.getLogger(__name__)

DEFAULT_PLOT_SIZE = 30.0


@dataclass(frozen=True)
class RoomPreset:
    width: float
    height: float
    type: str
    name: str


ROOM_PRESETS: Dict[str, RoomPreset] = {
    "living_room": RoomPreset(10, 10, "living", "Living Room"),
    "living": RoomPreset(10, 10, "living", "Living Room"),
    "kitchen": RoomPreset(8, 8, "kitchen", "Kitchen"),
    "master_bedroom": RoomPreset(14, 12, "master_bedroom", "Master Bedroom"),
    "bedroom": RoomPreset(12, 10, "bedroom", "Bedroom"),
    "bathroom": RoomPreset(6, 6, "bathroom", "Bathroom"),
    "pooja_room": RoomPreset(6, 6, "pooja", "Pooja Room"),
}
GENERIC_ROOM_SIZE = 8


def build_room_specs(tokens: List[Any]) -> List[Dict[str, Any]]:
    """Expand room tokens into unpositioned room boxes for the solver."""
    specs = []
    for idx, token in enumerate(tokens):
        raw = str(token)
        key = raw.lower()
        preset = ROOM_PRESETS.get(key) or ROOM_PRESETS.get("_".join(key.split(" ")))
        if preset is None:
            preset = RoomPreset(GENERIC_ROOM_SIZE, GENERIC_ROOM_SIZE, key, raw)
        specs.append(
            {
                "id": f"{key}_{idx + 1}",
                "name": preset.name,
                "type": preset.type,
                "width": preset.width,
                "height": preset.height,
                "x": 0,
                "y": 0,
            }
        )
    return specs


def finite_number(value: Any) -> Optional[float]:
    """Return ``value`` as a float when it is a real, finite JSON number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def _plot_dimension(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_PLOT_SIZE
    # 0, NaN and infinities fall back like a missing value
    return number if number and math.isfinite(number) else DEFAULT_PLOT_SIZE


def build_generation_payload(arguments: Dict[str, Any]) -> Dict[str, Any]:
    """Translate tool arguments into a /api/solvers/generate request body."""
    dims = arguments.get("plot_dimensions")
    if not isinstance(dims, (list, tuple)):
        dims = [DEFAULT_PLOT_SIZE, DEFAULT_PLOT_SIZE]
    width = _plot_dimension(dims[0] if len(dims) > 0 else None)
    length = _plot_dimension(dims[1] if len(dims) > 1 else None)

    rooms_needed = arguments.get("rooms_needed")
    if not isinstance(rooms_needed, list):
        rooms_needed = []

    payload: Dict[str, Any] = {
        "rooms": build_room_specs(rooms_needed),
        "plotWidth": width,
        "plotLength": length,
        "plotShape": "rectangular",
        "solver_type": CONSTRAINT_SOLVER,
    }
    orientation = arguments.get("orientation")
    if isinstance(orientation, str) and orientation:
        payload["constraints"] = {"house_facing": orientation}
    return payload


@dataclass
class VastuScore:
    """Vastu compliance percentages for a positioned layout."""

    overall: int
    entrance_compliance: int
    room_placement: int
    direction_alignment: int

    @classmethod
    def from_validation(cls, data: Optional[Dict[str, Any]]) -> Optional["VastuScore"]:
        """Build from a validation response; None without a numeric vastu_score."""
        if not data:
            return None
        overall = finite_number(data.get("vastu_score"))
        if overall is None:
            return None

        def sub(key: str) -> int:
            value = finite_number(data.get(key))
            return int(round(overall if value is None else value))

        return cls(
            overall=int(round(overall)),
            entrance_compliance=sub("entrance_compliance"),
            room_placement=sub("room_placement_score"),
            direction_alignment=sub("direction_alignment_score"),
        )


POSITIONED_ROOM_KEYS = ("id", "name", "type", "x", "y", "width", "height", "color")


@dataclass
class LayoutState:
    """The floor plan currently shown to the user."""

    plot_width: float = DEFAULT_PLOT_SIZE
    plot_length: float = DEFAULT_PLOT_SIZE
    plot_shape: str = "rectangular"
    rooms: List[Dict[str, Any]] = field(default_factory=list)
    vastu_score: Optional[VastuScore] = None
    house_facing: Optional[str] = None

    def apply_generation(self, result: Dict[str, Any], request: Dict[str, Any]) -> bool:
        """Adopt positioned rooms from a solver response.

        Returns False (state untouched) when the response carries no rooms.
        """
        rooms = result.get("rooms")
        if not isinstance(rooms, list):
            return False
        self.rooms = [
            {key: room.get(key) for key in POSITIONED_ROOM_KEYS}
            for room in rooms
            if isinstance(room, dict)
        ]
        self.plot_width = request.get("plotWidth", self.plot_width)
        self.plot_length = request.get("plotLength", self.plot_length)
        self.plot_shape = request.get("plotShape", self.plot_shape)
        self.house_facing = (request.get("constraints") or {}).get("house_facing")
        self.vastu_score = None
        return True

    def facing_constraints(self) -> Optional[Dict[str, Any]]:
        return {"house_facing": self.house_facing} if self.house_facing else None

    def context_message(self) -> Optional[str]:
        """Describe the current plan for the model, or None before any plan exists."""
        if not self.rooms:
            return None

        def fmt(value: Any, default: float) -> str:
            return f"{float(value if value is not None else default):.1f}"

        rooms = "; ".join(
            f"{r.get('name')} at ({fmt(r.get('x'), 0)}, {fmt(r.get('y'), 0)}) "
            f"size {fmt(r.get('width'), 5)}×{fmt(r.get('height'), 5)}m"
            for r in self.rooms
        )
        score = self.vastu_score.overall if self.vastu_score else "Not calculated"
        return (
            "CURRENT FLOOR PLAN STATE (use this context for modifications):\n"
            f"- Plot: {self.plot_width:g}m × {self.plot_length:g}m ({self.plot_shape})\n"
            f"- Rooms ({len(self.rooms)}): {rooms}\n"
            f"- Vastu Score: {score}\n"
            "\n"
            "When user asks to modify the layout, reference this existing state "
            "and make incremental changes where possible."
        )


class LayoutGenerationTool(BaseTool):
    """Executor for generate_layout_hybrid.

    The raw solver response is the result; nothing is reinterpreted. The
    request body of the most recent call is kept so callers can update
    LayoutState with the plot the rooms were placed on.
    """

    name = "generate_layout_hybrid"
    description = (
        "Generate a floor plan layout using hybrid solver (fast graph-based + reliable "
        "constraint-based with fallback). Use this tool whenever the user requests a floor "
        "plan design or modifications to room placement."
    )
    parameters = {
        "type": "object",
        "properties": {
            "rooms_needed": {
                "type": "array",
                "items": {"type": "string"},
                "description": (
                    'List of room names needed (e.g., ["kitchen", "living_room", '
                    '"master_bedroom", "bedroom_2", "bathroom_1", "bathroom_2"])'
                ),
            },
            "plot_dimensions": {
                "type": "array",
                "items": {"type": "number"},
                "description": "Plot dimensions in meters as [width, height]. Typical: [35, 40] for 3BHK",
            },
            "orientation": {
                "type": "string",
                "enum": ["north", "south", "east", "west"],
                "description": "Main entrance orientation",
            },
            "vastu_constraints": {
                "type": "object",
                "description": (
                    'Vastu constraints to enforce (e.g., {"kitchen_southeast": true, '
                    '"master_bedroom_southwest": true})'
                ),
            },
            "total_area": {
                "type": "number",
                "description": "Total building area in square meters (e.g., 150 for 3BHK)",
            },
        },
        "required": ["rooms_needed", "plot_dimensions", "orientation"],
    }

    def __init__(self, backend: LayoutBackendClient):
        self.backend = backend
        self.last_request: Optional[Dict[str, Any]] = None

    async def execute(self, arguments: Dict[str, Any]) -> ToolCallResult:
        payload = build_generation_payload(arguments)
        self.last_request = payload
        logger.info(
            f"[LayoutTool] {len(payload['rooms'])} rooms on "
            f"{payload['plotWidth']:g}×{payload['plotLength']:g}m"
        )
        try:
            data = await self.backend.generate(payload)
        except ToolExecutionError as e:
            logger.error(f"[LayoutTool] Backend generation failed: {e.message}")
            return ToolCallResult.error(self.name, e.message or "Backend generation failed")
        return ToolCallResult(tool_name=self.name, payload=data)


async def refresh_vastu_score(backend: LayoutBackendClient, state: LayoutState) -> Optional[VastuScore]:
    """Validate the current rooms and store the score on ``state``. Best effort."""
    if not state.rooms:
        return None
    try:
        data = await backend.validate(state.rooms, state.facing_constraints())
    except ToolExecutionError as e:
        logger.warning(f"[LayoutTool] Validation failed: {e.message}")
        return None
    state.vastu_score = VastuScore.from_validation(data)
    if state.vastu_score:
        logger.info(f"[LayoutTool] Vastu score {state.vastu_score.overall}")
    return state.vastu_score
