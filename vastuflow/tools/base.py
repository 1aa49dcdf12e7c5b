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

"""Tool base class and name-keyed registry.

A tool maps a model-requested invocation to a backend call. Tools never
raise into the conversation loop: any failure becomes a ToolCallResult with
``status: "error"`` that is fed back to the model like any other result.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from vastuflow.core.errors import VastuFlowError
from vastuflow.providers.base import ToolCallResult, ToolDefinition

logger = logging.getLogger(__name__)


class BaseTool(ABC):
    """Base class for executors of model-requested tool calls."""

    name: str = ""
    description: str = ""
    parameters: Dict[str, Any] = {"type": "object", "properties": {}}

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name, description=self.description, parameters=self.parameters
        )

    @abstractmethod
    async def execute(self, arguments: Dict[str, Any]) -> ToolCallResult:
        """Run the tool with already-normalized arguments."""


class ToolRegistry:
    """Dispatches tool calls by name."""

    def __init__(self) -> None:
        self._tools: Dict[str, BaseTool] = {}

    def register(self, tool: BaseTool) -> None:
        if tool.name in self._tools:
            logger.debug(f"[ToolRegistry] Replacing tool {tool.name}")
        self._tools[tool.name] = tool

    def get(self, name: str) -> Optional[BaseTool]:
        return self._tools.get(name)

    def definitions(self) -> List[ToolDefinition]:
        return [tool.definition() for tool in self._tools.values()]

    async def execute(self, name: str, arguments: Dict[str, Any]) -> ToolCallResult:
        """Execute ``name`` with ``arguments``; unknown names and tool failures become error results."""
        tool = self._tools.get(name)
        if tool is None:
            logger.warning(f"[ToolRegistry] No handler for tool '{name}'")
            return ToolCallResult.error(name, f"No handler for tool '{name}'")
        try:
            return await tool.execute(arguments)
        except VastuFlowError as e:
            logger.warning(f"[ToolRegistry] Tool {name} failed: {e.message}")
            return ToolCallResult.error(name, e.message)
        except Exception as e:
            logger.exception(f"[ToolRegistry] Tool {name} raised an unexpected error")
            return ToolCallResult.error(name, f"{type(e).__name__}: {e}")
