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

"""Tests for settings loading and validation."""

import pytest
from pydantic import ValidationError

from vastuflow.config.settings import OrchestratorConfig, Settings
from vastuflow.config.timeouts import TimeoutConfig
from vastuflow.core.errors import ConfigurationError


class TestSettings:
    """Tests for Settings defaults, environment and validation."""

    def test_defaults(self):
        settings = Settings()
        assert settings.llm_endpoint == "http://localhost:11434"
        assert settings.stall_timeout == 30.0
        assert settings.fallback_enabled is False
        assert settings.fallback_timeout == 60.0
        assert settings.max_rounds == 3
        assert settings.log_level == "WARNING"

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("VASTUFLOW_STALL_TIMEOUT", "5")
        monkeypatch.setenv("VASTUFLOW_FALLBACK_ENABLED", "true")
        monkeypatch.setenv("VASTUFLOW_BACKEND_URL", "http://solver:9000")
        settings = Settings()
        assert settings.stall_timeout == 5.0
        assert settings.fallback_enabled is True
        assert settings.backend_url == "http://solver:9000"

    @pytest.mark.parametrize(
        "field,value",
        [("stall_timeout", 0), ("fallback_timeout", -1), ("max_rounds", 0), ("log_level", "LOUD")],
    )
    def test_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            Settings(**{field: value})

    def test_normalizes_text_fields(self):
        settings = Settings(llm_type=" Ollama ", log_level="debug")
        assert settings.llm_type == "ollama"
        assert settings.log_level == "DEBUG"
        assert Settings(llm_type="  ").llm_type is None

    def test_to_orchestrator_config(self):
        config = Settings(stall_timeout=12, max_rounds=2, llm_model="qwen3").to_orchestrator_config()
        assert isinstance(config, OrchestratorConfig)
        assert config.stall_timeout == 12.0
        assert config.max_rounds == 2
        assert config.llm_model == "qwen3"


class TestSettingsFromYaml:
    """Tests for the YAML settings file."""

    def test_missing_file_uses_defaults(self, tmp_path):
        settings = Settings.from_yaml(tmp_path / "absent.yaml")
        assert settings.max_rounds == 3

    def test_values_loaded(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("llm_endpoint: http://localhost:1234\nfallback_enabled: true\n")
        settings = Settings.from_yaml(path)
        assert settings.llm_endpoint == "http://localhost:1234"
        assert settings.fallback_enabled is True

    def test_yaml_beats_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("VASTUFLOW_MAX_ROUNDS", "5")
        path = tmp_path / "settings.yaml"
        path.write_text("max_rounds: 2\n")
        assert Settings.from_yaml(path).max_rounds == 2

    def test_empty_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("")
        assert Settings.from_yaml(path).max_rounds == 3

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("max_rounds: [1, 2\n")
        with pytest.raises(ConfigurationError):
            Settings.from_yaml(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("- one\n- two\n")
        with pytest.raises(ConfigurationError):
            Settings.from_yaml(path)

    def test_invalid_value_names_key(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("max_rounds: 0\n")
        with pytest.raises(ConfigurationError) as exc_info:
            Settings.from_yaml(path)
        assert exc_info.value.config_key == "max_rounds"


class TestTimeoutConfig:
    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("VASTUFLOW_TIMEOUT_HTTP_BACKEND", "15")
        monkeypatch.setenv("VASTUFLOW_TIMEOUT_HTTP_CONNECT", "soon")
        config = TimeoutConfig.from_env()
        assert config.HTTP_BACKEND == 15.0
        assert config.HTTP_CONNECT == 10.0
        assert config.HTTP_LLM_API == 300.0
