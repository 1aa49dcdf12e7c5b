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

"""
VastuFlow - conversational Vastu-aware floor plan design over local LLMs.

Drives a streaming chat endpoint (Ollama or OpenAI-compatible), executes the
model's layout tool calls against a solver backend, and always hands the
caller a usable reply.

Usage:
    from vastuflow import ConversationOrchestrator, Settings

    settings = Settings.from_yaml()
    orchestrator = ConversationOrchestrator.from_settings(settings)
    messages = orchestrator.prepare_messages([], "Design a 3BHK, 30x40 ft, east facing")
    text = await orchestrator.generate_response(messages)
"""

__version__ = "0.1.0"
__author__ = "Vijaykumar Singh"
__email__ = "singhvjd@gmail.com"
__license__ = "Apache-2.0"

from vastuflow.agent.orchestrator import ConversationOrchestrator, TurnStream
from vastuflow.agent.types import TurnResult
from vastuflow.config.settings import OrchestratorConfig, Settings
from vastuflow.core.errors import TurnFailedError, VastuFlowError
from vastuflow.providers.base import Message, Role

__all__ = [
    "ConversationOrchestrator",
    "TurnStream",
    "TurnResult",
    "Settings",
    "OrchestratorConfig",
    "TurnFailedError",
    "VastuFlowError",
    "Message",
    "Role",
]
