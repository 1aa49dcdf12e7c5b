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

"""Tool executors and the layout solver backend client."""

from vastuflow.tools.backend import LayoutBackendClient
from vastuflow.tools.base import BaseTool, ToolRegistry
from vastuflow.tools.layout import (
    ROOM_PRESETS,
    LayoutGenerationTool,
    LayoutState,
    VastuScore,
    build_room_specs,
)

__all__ = [
    "BaseTool",
    "LayoutBackendClient",
    "LayoutGenerationTool",
    "LayoutState",
    "ROOM_PRESETS",
    "ToolRegistry",
    "VastuScore",
    "build_room_specs",
]
