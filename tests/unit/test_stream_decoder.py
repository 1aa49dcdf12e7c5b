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

"""Tests for StreamFrameDecoder line framing."""

import pytest

from vastuflow.providers.base import Dialect
from vastuflow.providers.stream_decoder import StreamFrameDecoder


@pytest.fixture
def ndjson():
    return StreamFrameDecoder(Dialect.NDJSON)


@pytest.fixture
def sse():
    return StreamFrameDecoder(Dialect.SSE)


class TestNdjsonFraming:
    """Tests for newline-delimited JSON streams."""

    def test_complete_lines(self, ndjson):
        """Each terminated line becomes one record."""
        records = ndjson.feed(b'{"a": 1}\n{"b": 2}\n')
        assert records == [{"a": 1}, {"b": 2}]
        assert ndjson.pending == ""

    def test_record_split_across_chunks(self, ndjson):
        """A record is emitted only once its line is complete."""
        assert ndjson.feed(b'{"message": {"con') == []
        assert ndjson.pending == '{"message": {"con'
        assert ndjson.feed(b'tent": "Hi"}}\n') == [{"message": {"content": "Hi"}}]

    def test_residual_flushed_at_end(self, ndjson):
        """A final unterminated line is parsed on finish()."""
        assert ndjson.feed(b'{"a": 1}\n{"done": true}') == [{"a": 1}]
        assert ndjson.finish() == [{"done": True}]
        assert ndjson.done is True

    def test_whitespace_residual_ignored(self, ndjson):
        ndjson.feed(b'{"a": 1}\n  ')
        assert ndjson.finish() == []

    def test_malformed_line_skipped(self, ndjson):
        """Bad lines are counted and skipped; the stream continues."""
        records = ndjson.feed(b'{"a": 1}\nnot json\n[1, 2]\n{"b": 2}\n')
        assert records == [{"a": 1}, {"b": 2}]
        assert ndjson.lines_skipped == 2
        assert ndjson.records_emitted == 2

    def test_crlf_and_blank_lines(self, ndjson):
        records = ndjson.feed(b'{"a": 1}\r\n\r\n{"b": 2}\r\n')
        assert records == [{"a": 1}, {"b": 2}]

    def test_multibyte_character_split(self, ndjson):
        """A UTF-8 sequence cut between chunks decodes correctly."""
        raw = '{"message": {"content": "Vāstu ✓"}}\n'.encode("utf-8")
        cut = raw.index("✓".encode("utf-8")) + 1
        assert ndjson.feed(raw[:cut]) == []
        records = ndjson.feed(raw[cut:])
        assert records[0]["message"]["content"] == "Vāstu ✓"

    def test_reset_clears_state(self, ndjson):
        ndjson.feed(b'{"partial')
        ndjson.reset()
        assert ndjson.pending == ""
        assert ndjson.records_emitted == 0
        assert ndjson.finish() == []


class TestSseFraming:
    """Tests for server-sent event streams."""

    def test_data_lines_parsed(self, sse):
        records = sse.feed(b'data: {"choices": [{"delta": {"content": "Hi"}}]}\n\n')
        assert records == [{"choices": [{"delta": {"content": "Hi"}}]}]

    def test_done_sentinel_not_emitted(self, sse):
        """[DONE] ends the stream and later lines are ignored."""
        records = sse.feed(b'data: {"x": 1}\n\ndata: [DONE]\n\ndata: {"y": 2}\n')
        assert records == [{"x": 1}]
        assert sse.done is True

    def test_non_data_lines_ignored(self, sse):
        """Comments and event lines are not records and not errors."""
        records = sse.feed(b': keep-alive\nevent: message\ndata: {"x": 1}\n')
        assert records == [{"x": 1}]
        assert sse.lines_skipped == 0

    def test_data_prefix_without_space(self, sse):
        assert sse.feed(b'data:{"x": 1}\n') == [{"x": 1}]

    def test_residual_data_line(self, sse):
        sse.feed(b'data: {"x"')
        sse.feed(b": 1}")
        assert sse.finish() == [{"x": 1}]


class TestDecodeIterators:
    """Tests for the iterator helpers."""

    def test_iter_decode(self, ndjson):
        chunks = [b'{"a"', b': 1}\n{"b": ', b"2}"]
        assert list(ndjson.iter_decode(chunks)) == [{"a": 1}, {"b": 2}]

    @pytest.mark.asyncio
    async def test_async_decode(self, sse):
        async def chunks():
            yield b'data: {"a": 1}\n'
            yield b"data: [DO"
            yield b"NE]\n"

        records = [r async for r in sse.decode(chunks())]
        assert records == [{"a": 1}]
        assert sse.done is True

    @pytest.mark.asyncio
    async def test_decode_starts_clean(self, ndjson):
        """A reused decoder does not leak a previous partial line."""
        ndjson.feed(b'{"stale')

        async def chunks():
            yield b'{"fresh": true}\n'

        records = [r async for r in ndjson.decode(chunks())]
        assert records == [{"fresh": True}]
