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

"""Centralized error types for VastuFlow.

Most failures inside a conversation turn are recovered locally (retries,
empty-argument fallbacks, structured tool error results). The exceptions
here cover what still has to cross a module boundary:

- Provider errors raised by the chat endpoint transport
- Tool errors raised by backend clients (caught by the tool layer)
- Configuration errors raised while loading settings
- TurnFailedError, the single error a caller of the orchestrator sees
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(Enum):
    """Categories of errors for classification and handling."""

    # Provider errors
    PROVIDER_CONNECTION = "provider_connection"
    PROVIDER_TIMEOUT = "provider_timeout"
    PROVIDER_INVALID_RESPONSE = "provider_invalid_response"

    # Tool errors
    TOOL_EXECUTION = "tool_execution"

    # Configuration errors
    CONFIG_INVALID = "config_invalid"

    # Turn-level failure
    TURN_FAILED = "turn_failed"

    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class VastuFlowError(Exception):
    """Base exception for all VastuFlow errors.

    Carries a category, a severity, a short correlation id for matching log
    lines, an optional recovery hint and the original exception.
    """

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        details: Optional[Dict[str, Any]] = None,
        recovery_hint: Optional[str] = None,
        correlation_id: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.details = details or {}
        self.recovery_hint = recovery_hint
        self.correlation_id = correlation_id or str(uuid.uuid4())[:8]
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "correlation_id": self.correlation_id,
            "recovery_hint": self.recovery_hint,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        result = f"[{self.correlation_id}] {self.message}"
        if self.recovery_hint:
            result += f"\nRecovery hint: {self.recovery_hint}"
        return result


class ProviderError(VastuFlowError):
    """Errors raised by the chat-completion endpoint transport."""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs: Any,
    ):
        kwargs.setdefault("category", ErrorCategory.PROVIDER_CONNECTION)
        super().__init__(message, **kwargs)
        self.endpoint = endpoint
        self.status_code = status_code
        self.details["endpoint"] = endpoint
        if status_code is not None:
            self.details["status_code"] = status_code


class ProviderConnectionError(ProviderError):
    """Network failure or non-2xx response from the chat endpoint."""

    def __init__(self, message: str, endpoint: Optional[str] = None, **kwargs: Any):
        super().__init__(
            message,
            endpoint=endpoint,
            category=ErrorCategory.PROVIDER_CONNECTION,
            recovery_hint="Check that the model server is running and the endpoint URL is correct.",
            **kwargs,
        )


class ProviderTimeoutError(ProviderError):
    """Chat endpoint request timed out at the HTTP layer."""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        timeout: Optional[float] = None,
        **kwargs: Any,
    ):
        super().__init__(
            message,
            endpoint=endpoint,
            category=ErrorCategory.PROVIDER_TIMEOUT,
            recovery_hint=(
                f"Request timed out after {timeout} seconds. Try a smaller model or a longer timeout."
                if timeout
                else "Request timed out. Check model server load."
            ),
            **kwargs,
        )
        self.timeout = timeout
        self.details["timeout"] = timeout


class ProviderInvalidResponseError(ProviderError):
    """Non-streaming response body could not be decoded."""

    def __init__(self, message: str, endpoint: Optional[str] = None, **kwargs: Any):
        super().__init__(
            message,
            endpoint=endpoint,
            category=ErrorCategory.PROVIDER_INVALID_RESPONSE,
            **kwargs,
        )


class ToolError(VastuFlowError):
    """Errors related to tool execution."""

    def __init__(
        self,
        message: str,
        tool_name: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.tool_name = tool_name
        self.details["tool_name"] = tool_name


class ToolExecutionError(ToolError):
    """Layout backend failures (network, undecodable body)."""

    def __init__(
        self,
        message: str,
        tool_name: Optional[str] = None,
        status_code: Optional[int] = None,
        endpoint: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(
            message,
            tool_name=tool_name,
            category=ErrorCategory.TOOL_EXECUTION,
            **kwargs,
        )
        self.status_code = status_code
        if status_code is not None:
            self.details["status_code"] = status_code
        self.endpoint = endpoint
        if endpoint is not None:
            self.details["endpoint"] = endpoint


class ConfigurationError(VastuFlowError):
    """Configuration-related errors."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(
            message,
            category=ErrorCategory.CONFIG_INVALID,
            recovery_hint="Check ~/.vastuflow/settings.yaml and VASTUFLOW_* environment variables.",
            **kwargs,
        )
        self.config_key = config_key
        self.details["config_key"] = config_key


class TurnFailedError(VastuFlowError):
    """A conversation turn could not produce any response.

    Raised only when the primary request failed at the transport level and
    the non-streaming retry failed as well. The caller should show a generic
    failure notice and leave its conversation history untouched.
    """

    def __init__(self, message: str, round_index: Optional[int] = None, **kwargs: Any):
        super().__init__(
            message,
            category=ErrorCategory.TURN_FAILED,
            severity=ErrorSeverity.ERROR,
            recovery_hint="Failed to generate response. Please try again.",
            **kwargs,
        )
        self.round_index = round_index
        self.details["round_index"] = round_index
