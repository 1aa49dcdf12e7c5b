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

"""Property-based tests for stream framing and tool-call normalization.

Properties:
1. Chunk boundaries never change the decoded records
2. Every well-formed line yields exactly one record
3. String and mapping tool arguments normalize to the same dict
"""

import json

from hypothesis import Phase, given, settings, strategies as st

from vastuflow.agent.tool_call_extractor import ToolCallExtractor, normalize_arguments
from vastuflow.providers.base import Dialect
from vastuflow.providers.stream_decoder import StreamFrameDecoder

# ============================================================================
# Strategies
# ============================================================================

json_scalars = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(min_value=-(10**6), max_value=10**6),
    st.text(max_size=20),
)

records_strategy = st.lists(
    st.dictionaries(st.text(min_size=1, max_size=8), json_scalars, max_size=4),
    min_size=1,
    max_size=6,
)

arguments_strategy = st.dictionaries(
    st.text(min_size=1, max_size=12),
    st.one_of(json_scalars, st.lists(st.text(max_size=10), max_size=4)),
    max_size=5,
)


def split_at(data: bytes, cuts):
    points = sorted({c % (len(data) + 1) for c in cuts})
    pieces, last = [], 0
    for point in points:
        pieces.append(data[last:point])
        last = point
    pieces.append(data[last:])
    return pieces


def ndjson_bytes(records):
    # "done" would end the logical stream early; keep records plain
    cleaned = [{k: v for k, v in r.items() if k != "done"} for r in records]
    return cleaned, "".join(json.dumps(r, ensure_ascii=False) + "\n" for r in cleaned).encode("utf-8")


# ============================================================================
# Properties
# ============================================================================


class TestChunkBoundaryProperties:
    """Chunking of the byte stream is invisible to consumers."""

    @given(records=records_strategy, cuts=st.lists(st.integers(min_value=0), max_size=12))
    @settings(max_examples=100, phases=[Phase.generate])
    def test_ndjson_any_split(self, records, cuts):
        expected, data = ndjson_bytes(records)
        decoded = list(StreamFrameDecoder(Dialect.NDJSON).iter_decode(split_at(data, cuts)))
        assert decoded == expected

    @given(records=records_strategy, cuts=st.lists(st.integers(min_value=0), max_size=12))
    @settings(max_examples=100, phases=[Phase.generate])
    def test_sse_any_split(self, records, cuts):
        data = "".join(
            f"data: {json.dumps(r, ensure_ascii=False)}\n\n" for r in records
        ).encode("utf-8") + b"data: [DONE]\n\n"
        decoder = StreamFrameDecoder(Dialect.SSE)
        decoded = list(decoder.iter_decode(split_at(data, cuts)))
        assert decoded == records
        assert decoder.done

    @given(records=records_strategy)
    @settings(max_examples=50, phases=[Phase.generate])
    def test_missing_final_newline(self, records):
        """The last record is recovered from the residual buffer."""
        expected, data = ndjson_bytes(records)
        decoder = StreamFrameDecoder(Dialect.NDJSON)
        decoded = list(decoder.iter_decode([data.rstrip(b"\n")]))
        assert decoded == expected
        assert decoder.records_emitted == len(expected)


class TestArgumentProperties:
    """Tool arguments normalize the same way whatever their encoding."""

    @given(arguments=arguments_strategy)
    @settings(max_examples=100, phases=[Phase.generate])
    def test_string_and_dict_equivalent(self, arguments):
        assert normalize_arguments(json.dumps(arguments)) == normalize_arguments(arguments)

    @given(arguments=arguments_strategy, nested=st.booleans())
    @settings(max_examples=50, phases=[Phase.generate])
    def test_shape_does_not_matter(self, arguments, nested):
        raw = {"name": "generate_layout_hybrid", "arguments": json.dumps(arguments)}
        if nested:
            raw = {"function": raw}
        request = ToolCallExtractor().normalize_tool_call(raw)
        assert request.tool_name == "generate_layout_hybrid"
        assert request.arguments == arguments
