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

"""Layout parameter extraction from free-form user text.

Pattern based and best effort. Everything here is pure: no I/O, no state
beyond compiled patterns, so the rules can change without touching the
conversation state machine.

Recognized, in priority order:
    "30x40 ft", "30 by 40 feet", "30 × 40"   foot dimension pair
    "9m x 12m", "9 meters by 12 meters"      metric dimension pair
    "1200 sq ft", "1200 sqft"                foot area, square plot
    "110 sq m", "110 sqm"                    metric area, square plot
"""

import json
import logging
import math
import re
from dataclasses import dataclass, field
from typing import List, Optional

logger = logging.getLogger(__name__)

FEET_TO_METERS = 0.3048
SQFT_PER_SQM = 10.764

DEFAULT_ORIENTATION = "north"

ROOMS_3BHK = [
    "kitchen",
    "living_room",
    "master_bedroom",
    "bedroom",
    "bedroom",
    "bathroom",
    "bathroom",
]
ROOMS_2BHK = ["kitchen", "living_room", "bedroom", "bedroom", "bathroom"]

LAYOUT_TOOL_NAME = "generate_layout_hybrid"


def feet_to_meters(feet: float) -> float:
    """Convert feet to metres, rounded to millimetres."""
    return round(feet * FEET_TO_METERS, 3)


def sqft_to_sqm(sqft: float) -> float:
    return round(sqft / SQFT_PER_SQM, 3)


def round_display(value: float) -> float:
    """0.1 precision used for anything shown to the model or user."""
    return round(value, 1)


def _fmt(value: float) -> str:
    return f"{value:g}"


@dataclass
class GeneratedParameters:
    """Plot size, orientation and room tokens derived from user text."""

    width_m: float
    height_m: float
    orientation: Optional[str] = DEFAULT_ORIENTATION  # None: no facing constraint
    rooms: List[str] = field(default_factory=lambda: list(ROOMS_3BHK))
    bhk: Optional[int] = None

    @property
    def display_dimensions(self) -> List[float]:
        return [round_display(self.width_m), round_display(self.height_m)]


class ParameterNormalizer:
    """Extracts GeneratedParameters from raw text.

    Example:
        params = ParameterNormalizer().normalize("30x30 ft east facing 2BHK")
        # params.width_m == 9.144, params.orientation == "east", 5 rooms
    """

    _NUM = r"(\d+(?:\.\d+)?)"
    DIM_FEET = re.compile(
        _NUM
        + r"\s*(?:ft|feet|foot)?\s*(?:x|×|by)\s*"
        + _NUM
        + r"\s*(?:ft|feet|foot)?(?:\s*(?:sq\s*ft|sqft|square\s*feet))?",
        re.IGNORECASE,
    )
    DIM_METERS = re.compile(
        _NUM + r"\s*(?:m|meter|meters)\s*(?:x|×|by)\s*" + _NUM + r"\s*(?:m|meter|meters)",
        re.IGNORECASE,
    )
    AREA_FEET = re.compile(_NUM + r"\s*(?:sq\s*ft|sqft|square\s*feet)", re.IGNORECASE)
    AREA_METERS = re.compile(_NUM + r"\s*(?:sq\s*m|sqm|square\s*meters?)", re.IGNORECASE)

    FACING = re.compile(r"\b(east|west|north|south)\b\s*facing", re.IGNORECASE)
    CARDINAL = re.compile(r"\b(east|west|north|south)\b", re.IGNORECASE)
    BHK = re.compile(r"(\d+)\s*bhk", re.IGNORECASE)

    # Phrases understood by the fallback heuristic
    HEURISTIC_AREA = re.compile(r"(\d+\.?\d*)\s*(?:sq\s*ft|ft\^2)", re.IGNORECASE)
    HEURISTIC_WIDTH = re.compile(r"(\d+\.?\d*)\s*ft\s*width", re.IGNORECASE)
    MIN_HEURISTIC_LENGTH_M = 10.0

    def normalize(self, text: str) -> Optional[GeneratedParameters]:
        """Derive parameters from ``text``, or None when no plot size is found."""
        if not text:
            return None
        dims = self._dimensions(text)
        if dims is None:
            return None
        width_m, height_m = dims
        bhk = self.detect_bhk(text)
        params = GeneratedParameters(
            width_m=width_m,
            height_m=height_m,
            orientation=self.detect_orientation(text),
            rooms=self.rooms_for_bhk(bhk),
            bhk=bhk,
        )
        logger.debug(f"[ParameterNormalizer] {text[:60]!r} -> {params}")
        return params

    def _dimensions(self, text: str) -> Optional[tuple]:
        match = self.DIM_FEET.search(text)
        if match:
            width_ft = float(match.group(1))
            height_ft = float(match.group(2))
            # "30 ft by 3" is a cut-off "30 ft by 30"
            if match.group(0).lower().endswith("by 3"):
                height_ft = width_ft
            return feet_to_meters(width_ft), feet_to_meters(height_ft)

        match = self.DIM_METERS.search(text)
        if match:
            return float(match.group(1)), float(match.group(2))

        match = self.AREA_FEET.search(text)
        if match:
            side_m = feet_to_meters(math.sqrt(float(match.group(1))))
            return side_m, side_m

        match = self.AREA_METERS.search(text)
        if match:
            side_m = round(math.sqrt(float(match.group(1))), 3)
            return side_m, side_m

        return None

    def detect_orientation(self, text: str) -> str:
        """Cardinal followed by "facing", else the first cardinal, else north."""
        match = self.FACING.search(text) or self.CARDINAL.search(text)
        return match.group(1).lower() if match else DEFAULT_ORIENTATION

    def detect_facing(self, text: str) -> Optional[str]:
        """Only an explicit "<cardinal> facing" phrase; no default."""
        match = self.FACING.search(text)
        return match.group(1).lower() if match else None

    def detect_bhk(self, text: str) -> Optional[int]:
        match = self.BHK.search(text)
        return int(match.group(1)) if match else None

    @staticmethod
    def rooms_for_bhk(bhk: Optional[int]) -> List[str]:
        if bhk == 2:
            return list(ROOMS_2BHK)
        return list(ROOMS_3BHK)

    def heuristic(
        self, text: str, default_width_m: float, default_length_m: float
    ) -> GeneratedParameters:
        """Looser extraction used when the model never answered.

        Always returns parameters: the BHK count (default 2) drives the room
        list, "<area> sq ft" and "<w> ft width" phrases drive the plot, and
        anything missing comes from the current plot.
        """
        bhk = self.detect_bhk(text) or 2
        rooms = ["living_room", "kitchen", "master_bedroom"]
        rooms += ["bedroom"] * (bhk - 1)
        # half up, so 3 BHK gets two bathrooms
        rooms += ["bathroom"] * max(1, int(math.floor(bhk / 2 + 0.5)))

        area_match = self.HEURISTIC_AREA.search(text)
        width_match = self.HEURISTIC_WIDTH.search(text)
        area_sqm = (
            sqft_to_sqm(float(area_match.group(1)))
            if area_match
            else default_width_m * default_length_m
        )
        width_m = feet_to_meters(float(width_match.group(1))) if width_match else default_width_m
        if width_m <= 0:
            width_m = default_width_m
        length_m = max(self.MIN_HEURISTIC_LENGTH_M, round(area_sqm / width_m, 2))

        return GeneratedParameters(
            width_m=width_m,
            height_m=length_m,
            orientation=self.detect_facing(text),
            rooms=rooms,
            bhk=bhk,
        )


def build_directive(params: GeneratedParameters) -> str:
    """Tool-call hint appended to the user message.

    The room list is spelled out for 3BHK only; otherwise the model picks rooms.
    """
    width, height = params.display_dimensions
    rooms = ""
    if params.bhk == 3:
        rooms = f", rooms_needed={json.dumps(ROOMS_3BHK, separators=(',', ':'))}"
    return (
        f"CALL TOOL: {LAYOUT_TOOL_NAME}(plot_dimensions=[{_fmt(width)}, {_fmt(height)}]"
        f'{rooms}, orientation="{params.orientation}")'
    )
