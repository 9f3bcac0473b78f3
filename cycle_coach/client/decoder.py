"""Incremental decoder for the relay's ``text/event-stream`` body.

Network chunks do not respect line boundaries, so bytes are accumulated in a
text buffer and only complete ``\\n``-terminated lines are interpreted:

- blank lines and ``:`` comment lines are skipped;
- lines without the ``data:`` prefix are skipped;
- ``data: [DONE]`` ends the stream;
- any other payload is JSON whose ``choices[0].delta.content`` is the delta.

A payload that fails to parse is pushed back onto the buffer and decoding of
the current chunk stops, in case the next bytes complete it. The same line
failing ``max_retries`` times in a row is dropped, so a genuinely malformed
frame cannot stall the stream forever.
"""

import codecs
import json
import logging
from typing import Any, AsyncIterable, AsyncIterator, List, Optional, Union

from cycle_coach.config.settings import settings
from cycle_coach.infrastructure.logging.logger import logger

DATA_PREFIX = "data:"
SENTINEL = "[DONE]"


def extract_delta(payload: Any) -> Optional[str]:
    """Return ``choices[0].delta.content`` if it is a non-empty string."""

    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    delta = choices[0].get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    if isinstance(content, str) and content:
        return content
    return None


class FrameDecoder:
    """Single-use decoder for one streamed turn."""

    def __init__(self, max_retries: Optional[int] = None):
        self._max_retries = max_retries or settings.max_frame_retries
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._pending_line: Optional[str] = None
        self._pending_failures = 0
        self.done = False
        self.quarantined: List[str] = []

    def feed(self, chunk: Union[bytes, str]) -> List[str]:
        """Consume one network chunk and return the deltas it completed."""

        if self.done:
            return []
        if isinstance(chunk, bytes):
            chunk = self._utf8.decode(chunk)
        self._buffer += chunk
        return self._drain()

    def close(self) -> List[str]:
        """Flush at end of stream; a trailing line without newline is still read."""

        if self.done:
            return []
        self._buffer += self._utf8.decode(b"", final=True)
        if self._buffer and not self._buffer.endswith("\n"):
            self._buffer += "\n"
        deltas = self._drain()
        # a pushed-back line with no more bytes coming can never complete
        while not self.done and self._buffer.strip():
            deltas.extend(self._drain())
        self.done = True
        return deltas

    def _drain(self) -> List[str]:
        deltas: List[str] = []
        while True:
            newline_index = self._buffer.find("\n")
            if newline_index == -1:
                break
            line = self._buffer[:newline_index]
            self._buffer = self._buffer[newline_index + 1:]

            if line.endswith("\r"):
                line = line[:-1]
            if line.startswith(":") or line.strip() == "":
                continue
            if not line.startswith(DATA_PREFIX):
                continue

            data = line[len(DATA_PREFIX):].strip()
            if data == SENTINEL:
                self.done = True
                self._buffer = ""
                break

            try:
                parsed = json.loads(data)
            except json.JSONDecodeError:
                if self._record_failure(line):
                    continue
                self._buffer = line + "\n" + self._buffer
                break

            self._pending_line = None
            self._pending_failures = 0
            delta = extract_delta(parsed)
            if delta:
                deltas.append(delta)
        return deltas

    def _record_failure(self, line: str) -> bool:
        """Count a parse failure; True means the line is given up on."""

        if line == self._pending_line:
            self._pending_failures += 1
        else:
            self._pending_line = line
            self._pending_failures = 1
        if self._pending_failures < self._max_retries:
            return False
        logger.log(
            logging.WARNING,
            "Discarding malformed stream frame",
            extra={"extra": {"attempts": self._pending_failures, "frame": line[:200]}},
        )
        self.quarantined.append(line)
        self._pending_line = None
        self._pending_failures = 0
        return True


async def iter_deltas(
    byte_stream: AsyncIterable[bytes],
    decoder: Optional[FrameDecoder] = None,
) -> AsyncIterator[str]:
    """Lazily yield text deltas from ``byte_stream`` until ``[DONE]`` or end of stream."""

    decoder = decoder or FrameDecoder()
    async for chunk in byte_stream:
        for delta in decoder.feed(chunk):
            yield delta
        if decoder.done:
            return
    for delta in decoder.close():
        yield delta
