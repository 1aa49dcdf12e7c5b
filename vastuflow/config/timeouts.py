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

"""Centralized HTTP timeout configuration for VastuFlow.

These are transport-level limits handed to httpx. Conversation timers
(stall and fallback) live in Settings because users tune them.

Usage:
    from vastuflow.config.timeouts import Timeouts

    async with httpx.AsyncClient(timeout=Timeouts.HTTP_BACKEND) as client:
        ...
"""

from dataclasses import dataclass
import os


@dataclass(frozen=True)
class TimeoutConfig:
    """Centralized timeout configuration.

    All values are in seconds. Environment variables can override defaults:
        VASTUFLOW_TIMEOUT_HTTP_CONNECT=5.0
        VASTUFLOW_TIMEOUT_HTTP_LLM_API=300.0
    """

    # Connection establishment for every client
    HTTP_CONNECT: float = 10.0

    # LLM API calls (non-streaming completions can be very slow on CPU)
    HTTP_LLM_API: float = 300.0

    # Layout solver and validation backend
    HTTP_BACKEND: float = 60.0

    @classmethod
    def from_env(cls) -> "TimeoutConfig":
        """Create config with environment variable overrides.

        Environment variables follow the pattern VASTUFLOW_TIMEOUT_{FIELD_NAME}.
        """

        def get_float(name: str, default: float) -> float:
            value = os.environ.get(f"VASTUFLOW_TIMEOUT_{name}")
            if value is not None:
                try:
                    return float(value)
                except ValueError:
                    pass
            return default

        return cls(
            HTTP_CONNECT=get_float("HTTP_CONNECT", cls.HTTP_CONNECT),
            HTTP_LLM_API=get_float("HTTP_LLM_API", cls.HTTP_LLM_API),
            HTTP_BACKEND=get_float("HTTP_BACKEND", cls.HTTP_BACKEND),
        )


# Default singleton instance with environment overrides
Timeouts = TimeoutConfig.from_env()
