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

"""Chat endpoint transport, stream framing and shared message types."""

from vastuflow.providers.base import (
    Dialect,
    Message,
    Role,
    ToolCallRequest,
    ToolCallResult,
    ToolDefinition,
)
from vastuflow.providers.chat_client import ChatEndpointClient, infer_dialect
from vastuflow.providers.stream_decoder import StreamFrameDecoder

__all__ = [
    "ChatEndpointClient",
    "Dialect",
    "Message",
    "Role",
    "StreamFrameDecoder",
    "ToolCallRequest",
    "ToolCallResult",
    "ToolDefinition",
    "infer_dialect",
]
