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

"""Configuration management for VastuFlow.

Settings resolve from, highest priority first: the YAML store at
``~/.vastuflow/settings.yaml`` (when loaded through ``from_yaml``),
``VASTUFLOW_*`` environment variables, a local ``.env`` file, defaults.

The orchestrator never reads settings itself; it receives an
OrchestratorConfig built from them.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from vastuflow.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

GLOBAL_VASTUFLOW_DIR = Path.home() / ".vastuflow"
SETTINGS_FILE = GLOBAL_VASTUFLOW_DIR / "settings.yaml"


@dataclass(frozen=True)
class OrchestratorConfig:
    """Everything the conversation orchestrator is allowed to know about configuration."""

    llm_endpoint: str = "http://localhost:11434"
    llm_model: Optional[str] = None
    llm_type: Optional[str] = None
    backend_url: str = "http://localhost:8000"
    stall_timeout: float = 30.0
    fallback_enabled: bool = False
    fallback_timeout: float = 60.0
    max_rounds: int = 3
    force_disable_tools: bool = False
    validate_layouts: bool = True
    default_plot_width: float = 30.0
    default_plot_length: float = 30.0


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="VASTUFLOW_",
        env_file=".env" if not os.getenv("VASTUFLOW_SKIP_ENV_FILE") else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Chat endpoint. llm_type "ollama" forces NDJSON; anything else is
    # inferred from the endpoint port.
    llm_endpoint: str = "http://localhost:11434"
    llm_model: Optional[str] = None
    llm_type: Optional[str] = None

    # Layout solver backend
    backend_url: str = "http://localhost:8000"

    # Conversation timers (seconds)
    stall_timeout: float = 30.0
    fallback_enabled: bool = False
    fallback_timeout: float = 60.0

    max_rounds: int = 3
    force_disable_tools: bool = False
    validate_layouts: bool = True

    # Plot used when the user gives no dimensions (metres)
    default_plot_width: float = 30.0
    default_plot_length: float = 30.0

    log_level: str = "WARNING"

    @field_validator("stall_timeout", "fallback_timeout", "default_plot_width", "default_plot_length")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"must be positive, got {v}")
        return v

    @field_validator("max_rounds")
    @classmethod
    def validate_max_rounds(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_rounds must be at least 1, got {v}")
        return v

    @field_validator("llm_type")
    @classmethod
    def validate_llm_type(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip().lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @classmethod
    def from_yaml(cls, path: Optional[Union[str, Path]] = None) -> "Settings":
        """Load settings with overrides from a YAML file.

        A missing file is not an error; environment and defaults apply.

        Raises:
            ConfigurationError: unreadable YAML or invalid values
        """
        settings_file = Path(path) if path else SETTINGS_FILE
        data: Dict[str, Any] = {}
        if settings_file.exists():
            try:
                with open(settings_file, "r") as f:
                    data = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigurationError(
                    f"Failed to read {settings_file}: {e}", config_key=str(settings_file), cause=e
                ) from e
            if not isinstance(data, dict):
                raise ConfigurationError(
                    f"{settings_file} must contain a mapping", config_key=str(settings_file)
                )
            logger.debug(f"[Settings] Loaded {len(data)} key(s) from {settings_file}")

        try:
            return cls(**data)
        except ValidationError as e:
            key = ".".join(str(p) for p in e.errors()[0]["loc"]) if e.errors() else None
            raise ConfigurationError(f"Invalid settings: {e}", config_key=key, cause=e) from e

    def to_orchestrator_config(self) -> OrchestratorConfig:
        return OrchestratorConfig(
            llm_endpoint=self.llm_endpoint,
            llm_model=self.llm_model,
            llm_type=self.llm_type,
            backend_url=self.backend_url,
            stall_timeout=self.stall_timeout,
            fallback_enabled=self.fallback_enabled,
            fallback_timeout=self.fallback_timeout,
            max_rounds=self.max_rounds,
            force_disable_tools=self.force_disable_tools,
            validate_layouts=self.validate_layouts,
            default_plot_width=self.default_plot_width,
            default_plot_length=self.default_plot_length,
        )


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
    return Settings.from_yaml(path)
