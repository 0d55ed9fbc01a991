"""
Stream assembler: OpenAI-style SSE frames -> one accumulated assistant reply.

Buffers partial lines across chunks, skips keep-alive/comment lines and stops at
the [DONE] sentinel. A data frame whose JSON fails to parse is pushed back and
retried once after the next chunk arrives; if it fails again it is dropped and
the stream carries on.
"""

from __future__ import annotations

import codecs
import json
import logging
from typing import Any, AsyncIterable, AsyncIterator, Optional

from src.core.constants import SSE_DATA_PREFIX, SSE_DONE_SENTINEL
from .errors import StreamLimitError

logger = logging.getLogger(__name__)


def _delta_content(frame: Any) -> Optional[str]:
    """choices[0].delta.content, or None when the frame carries no text."""
    if not isinstance(frame, dict):
        return None
    choices = frame.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    return content if isinstance(content, str) else None


class StreamAssembler:
    """Accumulates content deltas for one assistant turn.

    The accumulator lives on the instance, so each turn owns its own state and
    the assembler can be driven chunk by chunk in tests without a network.
    """

    def __init__(self, max_chars: Optional[int] = None):
        self.max_chars = max_chars
        self.text = ""
        self.done = False
        self.dropped_frames = 0
        self._buffer = ""
        # Front line of _buffer already failed to parse once
        self._retry_pending = False

    def feed(self, chunk: str) -> list[str]:
        """Consume one chunk of stream text; return the deltas it completed."""
        if self.done or not chunk:
            return []
        self._buffer += chunk
        return self._drain(final=False)

    def close(self) -> list[str]:
        """Flush whatever is buffered at native end of stream."""
        if self.done:
            return []
        if self._buffer and not self._buffer.endswith("\n"):
            self._buffer += "\n"
        deltas = self._drain(final=True)
        self.done = True
        self._buffer = ""
        return deltas

    def _append(self, delta: str) -> None:
        size = len(self.text) + len(delta)
        if self.max_chars is not None and size > self.max_chars:
            raise StreamLimitError(self.max_chars, size)
        self.text += delta

    def _drain(self, final: bool) -> list[str]:
        deltas: list[str] = []
        while not self.done:
            newline_index = self._buffer.find("\n")
            if newline_index == -1:
                break
            line = self._buffer[:newline_index]
            self._buffer = self._buffer[newline_index + 1 :]
            retried = self._retry_pending
            self._retry_pending = False

            if line.endswith("\r"):
                line = line[:-1]
            if line.startswith(":") or not line.strip():
                continue
            if not line.startswith(SSE_DATA_PREFIX):
                continue

            payload = line[len(SSE_DATA_PREFIX) :].strip()
            if payload == SSE_DONE_SENTINEL:
                self.done = True
                break

            try:
                frame = json.loads(payload)
            except ValueError:
                if retried or final:
                    self.dropped_frames += 1
                    logger.warning("Dropping malformed stream frame: %s", payload[:200])
                    continue
                # Wait for more bytes, then try this line once more
                self._buffer = line + "\n" + self._buffer
                self._retry_pending = True
                break

            delta = _delta_content(frame)
            if delta:
                self._append(delta)
                deltas.append(delta)
        return deltas


async def assemble_stream(
    chunks: AsyncIterable[str | bytes],
    assembler: Optional[StreamAssembler] = None,
) -> AsyncIterator[str]:
    """
    Drive an assembler over an async chunk stream.

    Yields the growing accumulated reply each time a chunk adds content, so a
    client can render the assistant message incrementally. The last value
    yielded (or assembler.text) is the full reply. Stops reading as soon as
    [DONE] is seen.
    """
    assembler = assembler or StreamAssembler()
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    async for chunk in chunks:
        text = decoder.decode(chunk) if isinstance(chunk, bytes) else chunk
        if assembler.feed(text):
            yield assembler.text
        if assembler.done:
            return
    tail = decoder.decode(b"", final=True)
    added = assembler.feed(tail) if tail else []
    added += assembler.close()
    if added:
        yield assembler.text


async def collect_stream(
    chunks: AsyncIterable[str | bytes],
    max_chars: Optional[int] = None,
) -> str:
    """Assemble a whole stream and return the final reply text."""
    assembler = StreamAssembler(max_chars=max_chars)
    async for _ in assemble_stream(chunks, assembler):
        pass
    return assembler.text
