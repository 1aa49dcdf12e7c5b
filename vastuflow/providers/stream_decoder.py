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

"""Line framing for streaming chat responses.

Transports deliver bytes in arbitrary chunks; a JSON record may be split
across any number of them, and so may a multi-byte UTF-8 character. The
decoder keeps the trailing partial line between chunks and only parses
complete lines, flushing whatever is left when the stream ends.

Example:
    decoder = StreamFrameDecoder(Dialect.NDJSON)
    async for record in decoder.decode(response.aiter_bytes()):
        print(record.get("message", {}).get("content", ""))
"""

import codecs
import json
import logging
import re
from typing import Any, AsyncIterable, AsyncIterator, Dict, Iterable, Iterator, List, Optional

from vastuflow.providers.base import Dialect

logger = logging.getLogger(__name__)

LINE_SPLIT = re.compile(r"\r?\n")


class StreamFrameDecoder:
    """Turns chunked bytes into complete protocol records.

    Malformed lines are skipped and counted; they never abort the stream.
    For the SSE dialect the ``data: [DONE]`` sentinel marks the stream as
    done and is not emitted as a record.
    """

    SSE_PREFIX = "data:"
    SSE_DONE = "[DONE]"

    def __init__(self, dialect: Dialect):
        self.dialect = Dialect(dialect)
        self.reset()

    def reset(self) -> None:
        """Discard buffered state so the decoder can be reused."""
        self._buffer = ""
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self.done = False
        self.records_emitted = 0
        self.lines_skipped = 0

    @property
    def pending(self) -> str:
        """Buffered partial line not yet terminated."""
        return self._buffer

    def feed(self, chunk: bytes) -> List[Dict[str, Any]]:
        """Add a chunk and return the records completed by it."""
        self._buffer += self._utf8.decode(chunk)
        segments = LINE_SPLIT.split(self._buffer)
        # keep the last incomplete segment in buffer
        self._buffer = segments.pop()
        return self._parse_lines(segments)

    def finish(self) -> List[Dict[str, Any]]:
        """Flush the residual buffer as one final record at end of stream."""
        self._buffer += self._utf8.decode(b"", final=True)
        residual, self._buffer = self._buffer, ""
        if not residual.strip():
            return []
        logger.debug(f"[StreamDecoder] Parsing residual buffer ({len(residual)} chars)")
        return self._parse_lines([residual])

    async def decode(self, chunks: AsyncIterable[bytes]) -> AsyncIterator[Dict[str, Any]]:
        """Decode an async byte stream. Each call starts from a clean state."""
        self.reset()
        async for chunk in chunks:
            for record in self.feed(chunk):
                yield record
        for record in self.finish():
            yield record

    def iter_decode(self, chunks: Iterable[bytes]) -> Iterator[Dict[str, Any]]:
        """Synchronous counterpart of :meth:`decode`."""
        self.reset()
        for chunk in chunks:
            yield from self.feed(chunk)
        yield from self.finish()

    def _parse_lines(self, lines: List[str]) -> List[Dict[str, Any]]:
        records = []
        for line in lines:
            record = self._parse_line(line.strip())
            if record is not None:
                records.append(record)
                self.records_emitted += 1
        return records

    def _parse_line(self, line: str) -> Optional[Dict[str, Any]]:
        if not line:
            return None
        if self.dialect == Dialect.SSE:
            if self.done or not line.startswith(self.SSE_PREFIX):
                # comments, "event:" lines and anything after [DONE]
                return None
            line = line[len(self.SSE_PREFIX) :].strip()
            if line == self.SSE_DONE:
                self.done = True
                return None
        try:
            parsed = json.loads(line)
        except json.JSONDecodeError:
            self.lines_skipped += 1
            logger.debug(f"[StreamDecoder] Skipping malformed line: {line[:80]!r}")
            return None
        if not isinstance(parsed, dict):
            self.lines_skipped += 1
            return None
        if self.dialect == Dialect.NDJSON and parsed.get("done") is True:
            self.done = True
        return parsed
