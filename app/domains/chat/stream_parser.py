"""Incremental parser for the chat function's event stream.

The stream is line oriented: ``data: <json>`` lines carry a content delta at
``choices[0].delta.content``, blank lines and ``:`` comment lines are ignored,
and ``data: [DONE]`` ends the stream. Network chunks can split a line (or a
multi-byte character) anywhere, so only complete lines are decoded and the
unterminated tail stays buffered until the next chunk arrives.
"""

import codecs
import json
import logging

from app.exceptions.ai import StreamProtocolError

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class SSEDeltaParser:
    """Turns raw stream chunks into content deltas."""

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")()
        self._buffer = ""
        self.finished = False

    def feed(self, chunk: bytes | str) -> list[str]:
        """Consume one chunk and return the deltas completed by it."""
        if self.finished:
            return []
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        self._buffer += chunk

        deltas: list[str] = []
        while not self.finished:
            newline = self._buffer.find("\n")
            if newline == -1:
                break
            line = self._buffer[:newline]
            self._buffer = self._buffer[newline + 1 :]
            delta = self._parse_line(line)
            if delta:
                deltas.append(delta)
        return deltas

    def close(self) -> list[str]:
        """Flush the decoder and parse a final line that had no trailing newline."""
        if self.finished:
            return []
        tail = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        if not tail.strip():
            return []
        delta = self._parse_line(tail)
        return [delta] if delta else []

    # Private helper methods
    def _parse_line(self, line: str) -> str | None:
        if line.endswith("\r"):
            line = line[:-1]
        if not line.strip() or line.startswith(":"):
            return None
        if not line.startswith(DATA_PREFIX):
            return None

        payload = line[len(DATA_PREFIX) :].strip()
        if payload == DONE_SENTINEL:
            self.finished = True
            return None

        try:
            frame = json.loads(payload)
        except json.JSONDecodeError as e:
            logger.warning("Malformed stream frame: %r", payload[:200])
            raise StreamProtocolError(details={"frame": payload[:200]}) from e

        if isinstance(frame, dict) and frame.get("error"):
            error = frame["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise StreamProtocolError(message or "AI stream reported an error")

        try:
            content = frame["choices"][0]["delta"].get("content")
        except (KeyError, IndexError, TypeError, AttributeError):
            return None
        return content if isinstance(content, str) else None
