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

"""HTTP transport for streaming chat-completion endpoints.

Two server families are supported:
- Ollama (``/api/chat``), streaming newline-delimited JSON, with tool calling
- OpenAI-compatible servers such as llama.cpp and LM Studio
  (``/v1/chat/completions``), streaming server-sent events

The client only moves bytes. Framing lives in StreamFrameDecoder and record
interpretation in ToolCallExtractor.
"""

import logging
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from vastuflow.config.timeouts import Timeouts
from vastuflow.core.errors import (
    ProviderConnectionError,
    ProviderInvalidResponseError,
    ProviderTimeoutError,
)
from vastuflow.providers.base import Dialect, Message, ToolDefinition, messages_to_wire

logger = logging.getLogger(__name__)

OLLAMA_PORT = "11434"
DEFAULT_OLLAMA_MODEL = "gpt-oss:20b-cloud"
DEFAULT_OPENAI_MODEL = "default"

# Bounded, fairly deterministic decoding; stop sequences keep reasoning
# models from emitting <think> blocks as content.
OLLAMA_OPTIONS: Dict[str, Any] = {
    "num_predict": 1024,
    "temperature": 0.3,
    "stop": ["<think>", "</think>"],
    "repeat_penalty": 1.1,
    "num_ctx": 4096,
    "num_thread": 4,
    "top_k": 40,
    "top_p": 0.9,
}
OPENAI_TEMPERATURE = 0.4


def infer_dialect(endpoint: str, llm_type: Optional[str] = None) -> Dialect:
    """Pick the wire dialect from an explicit server type or the endpoint port."""
    if llm_type == "ollama" or OLLAMA_PORT in endpoint:
        return Dialect.NDJSON
    return Dialect.SSE


class ChatEndpointClient:
    """Sends chat requests in the dialect of the configured server.

    Usage:
        async with ChatEndpointClient("http://localhost:11434") as client:
            payload = client.build_payload(messages, tools, stream=True)
            async for chunk in client.stream(payload):
                ...
    """

    def __init__(
        self,
        endpoint: str,
        model: Optional[str] = None,
        llm_type: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.dialect = infer_dialect(self.endpoint, llm_type)
        if self.dialect == Dialect.NDJSON:
            self.url = f"{self.endpoint}/api/chat"
            self.model = model or DEFAULT_OLLAMA_MODEL
        else:
            self.url = f"{self.endpoint}/v1/chat/completions"
            self.model = model or DEFAULT_OPENAI_MODEL
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(Timeouts.HTTP_LLM_API, connect=Timeouts.HTTP_CONNECT)
        )

    def build_payload(
        self,
        messages: List[Message],
        tools: Optional[List[ToolDefinition]] = None,
        stream: bool = True,
    ) -> Dict[str, Any]:
        """Build the request body. ``tools`` of None or [] means tools are disabled."""
        if self.dialect == Dialect.SSE:
            return {
                "model": self.model,
                "messages": messages_to_wire(messages),
                "stream": stream,
                "temperature": OPENAI_TEMPERATURE,
            }

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages_to_wire(messages),
            "stream": stream,
            "tool_choice": "auto" if tools else "none",
            "options": dict(OLLAMA_OPTIONS),
            # Disable thinking mode for Qwen3 and similar models
            "think": False,
        }
        if tools:
            payload["tools"] = [t.to_wire() for t in tools]
        return payload

    async def stream(self, payload: Dict[str, Any]) -> AsyncIterator[bytes]:
        """POST ``payload`` and yield raw response bytes as they arrive.

        Raises:
            ProviderConnectionError: non-2xx status or network failure
            ProviderTimeoutError: httpx timeout
        """
        try:
            async with self._client.stream("POST", self.url, json=payload) as response:
                if not response.is_success:
                    await response.aread()
                    raise ProviderConnectionError(
                        f"Server responded with {response.status_code}",
                        endpoint=self.url,
                        status_code=response.status_code,
                    )
                logger.debug(f"[ChatClient] Stream opened ({response.status_code}) {self.url}")
                async for chunk in response.aiter_bytes():
                    yield chunk
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(
                f"Stream request timed out: {e}", endpoint=self.url, cause=e
            ) from e
        except httpx.HTTPError as e:
            raise ProviderConnectionError(
                f"Stream request failed: {e}", endpoint=self.url, cause=e
            ) from e

    async def complete(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST ``payload`` without streaming and return the decoded body."""
        body = dict(payload, stream=False)
        try:
            response = await self._client.post(self.url, json=body)
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(
                f"Request timed out: {e}", endpoint=self.url, cause=e
            ) from e
        except httpx.HTTPError as e:
            raise ProviderConnectionError(f"Request failed: {e}", endpoint=self.url, cause=e) from e

        if not response.is_success:
            raise ProviderConnectionError(
                f"Server responded with {response.status_code}",
                endpoint=self.url,
                status_code=response.status_code,
            )
        try:
            data = response.json()
        except ValueError as e:
            raise ProviderInvalidResponseError(
                "Response body is not valid JSON", endpoint=self.url, cause=e
            ) from e
        if not isinstance(data, dict):
            raise ProviderInvalidResponseError("Response body is not a JSON object", endpoint=self.url)
        return data

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "ChatEndpointClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
