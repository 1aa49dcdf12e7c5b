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

"""Tests for ToolCallExtractor and argument normalization."""

import pytest

from vastuflow.agent.tool_call_extractor import ToolCallExtractor, normalize_arguments
from vastuflow.providers.base import Dialect


@pytest.fixture
def extractor():
    return ToolCallExtractor()


class TestNormalizeArguments:
    """Tests for normalize_arguments."""

    def test_dict_copied(self):
        raw = {"orientation": "east"}
        result = normalize_arguments(raw)
        assert result == raw
        assert result is not raw

    def test_json_string_parsed(self):
        assert normalize_arguments('{"plot_dimensions": [9.1, 9.1]}') == {
            "plot_dimensions": [9.1, 9.1]
        }

    @pytest.mark.parametrize("raw", [None, "", "   ", "{broken", "[1, 2]", "42", 42, ["a"]])
    def test_unusable_becomes_empty(self, raw):
        """Anything that is not an object decodes to empty args, never an error."""
        assert normalize_arguments(raw) == {}


class TestNdjsonExtraction:
    """Tests for Ollama-style records."""

    def test_message_content(self, extractor):
        delta = extractor.extract({"message": {"content": "Hello"}, "done": False}, Dialect.NDJSON)
        assert delta.text == "Hello"
        assert delta.tool_calls == []

    @pytest.mark.parametrize("key", ["response", "content", "text"])
    def test_root_text_fallback(self, extractor, key):
        delta = extractor.extract({key: "chunk"}, Dialect.NDJSON)
        assert delta.text == "chunk"

    def test_thinking_field_ignored(self, extractor):
        """Reasoning fields never become visible text."""
        delta = extractor.extract(
            {"message": {"content": "", "thinking": "hmm"}}, Dialect.NDJSON
        )
        assert delta.text == ""
        assert delta.is_empty

    def test_nested_tool_call_with_string_arguments(self, extractor):
        record = {
            "message": {
                "content": "",
                "tool_calls": [
                    {
                        "function": {
                            "name": "generate_layout_hybrid",
                            "arguments": '{"orientation": "east"}',
                        }
                    }
                ],
            }
        }
        delta = extractor.extract(record, Dialect.NDJSON)
        assert len(delta.tool_calls) == 1
        assert delta.tool_calls[0].tool_name == "generate_layout_hybrid"
        assert delta.tool_calls[0].arguments == {"orientation": "east"}

    def test_flat_root_tool_call(self, extractor):
        record = {"tool_calls": [{"name": "generate_layout_hybrid", "arguments": {"a": 1}}]}
        delta = extractor.extract(record, Dialect.NDJSON)
        assert delta.tool_calls[0].arguments == {"a": 1}

    def test_text_and_tool_call_in_one_record(self, extractor):
        record = {
            "message": {
                "content": "Generating now.",
                "tool_calls": [{"function": {"name": "t", "arguments": {}}}],
            },
            "done": True,
        }
        delta = extractor.extract(record, Dialect.NDJSON)
        assert delta.text == "Generating now."
        assert [c.tool_name for c in delta.tool_calls] == ["t"]

    def test_nameless_entries_dropped(self, extractor):
        record = {
            "message": {
                "tool_calls": [
                    {"function": {"arguments": {}}},
                    "garbage",
                    {"name": "  "},
                    {"name": "ok"},
                ]
            }
        }
        delta = extractor.extract(record, Dialect.NDJSON)
        assert [c.tool_name for c in delta.tool_calls] == ["ok"]

    def test_string_and_dict_arguments_equivalent(self, extractor):
        args = {"rooms_needed": ["kitchen"], "plot_dimensions": [9.1, 12.2]}
        as_dict = extractor.normalize_tool_call({"function": {"name": "t", "arguments": args}})
        as_str = extractor.normalize_tool_call(
            {"function": {"name": "t", "arguments": '{"rooms_needed": ["kitchen"], "plot_dimensions": [9.1, 12.2]}'}}
        )
        assert as_dict == as_str


class TestSseExtraction:
    """Tests for OpenAI-compatible records."""

    def test_delta_content(self, extractor):
        record = {"choices": [{"delta": {"content": "Hi"}, "finish_reason": None}]}
        delta = extractor.extract(record, Dialect.SSE)
        assert delta.text == "Hi"

    def test_message_content_fallback(self, extractor):
        record = {"choices": [{"message": {"content": "Full"}, "finish_reason": "stop"}]}
        delta = extractor.extract(record, Dialect.SSE)
        assert delta.text == "Full"

    def test_no_choices(self, extractor):
        assert extractor.extract({"id": "x"}, Dialect.SSE).is_empty

    def test_tool_calls_not_read(self, extractor):
        record = {"choices": [{"delta": {"tool_calls": [{"function": {"name": "t"}}]}}]}
        assert extractor.extract(record, Dialect.SSE).tool_calls == []


class TestCompletionText:
    """Tests for non-streaming response bodies."""

    def test_ndjson_body(self, extractor):
        body = {"message": {"role": "assistant", "content": "Done."}, "done": True}
        assert extractor.extract_completion_text(body, Dialect.NDJSON) == "Done."

    def test_sse_body(self, extractor):
        body = {"choices": [{"message": {"content": "Done."}}]}
        assert extractor.extract_completion_text(body, Dialect.SSE) == "Done."

    def test_sse_body_without_message(self, extractor):
        assert extractor.extract_completion_text({"choices": []}, Dialect.SSE) == ""
