"""
llmwire - Server-Sent Events Decoding

Incremental decoder for ``text/event-stream`` bodies.

Bytes arrive from the transport in chunks that do not line up with lines
or fields. ``LineDecoder`` turns chunks into complete lines and
``SSEDecoder`` turns lines into ``ServerSentEvent`` values, one per
blank-line terminator.

Usage:
    decoder = SSEDecoder()
    for chunk in response.iter_bytes():
        for sse in decoder.feed(chunk):
            handle(sse)
    last = decoder.flush()
    if last is not None:
        handle(last)
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional


DEFAULT_EVENT = "message"


@dataclass(frozen=True)
class ServerSentEvent:
    """A raw event: its name and the newline-joined ``data`` lines."""
    event: str
    data: str


class LineDecoder:
    """
    Buffers byte chunks and yields complete lines.

    Lines are split on ``\\n`` with a trailing ``\\r`` removed. Anything after
    the last line feed stays buffered until the next ``decode()`` call or
    ``flush()``. Splitting happens on bytes, so a multi-byte UTF-8 character
    cut across two chunks is decoded intact.
    """

    def __init__(self) -> None:
        self._buffer = bytearray()

    def decode(self, chunk: bytes) -> List[str]:
        self._buffer.extend(chunk)

        lines = []
        while True:
            newline = self._buffer.find(b"\n")
            if newline < 0:
                break
            raw = bytes(self._buffer[:newline])
            del self._buffer[:newline + 1]
            lines.append(self._to_text(raw))

        return lines

    def flush(self) -> Optional[str]:
        """Return whatever is left as a final line, or None if nothing is."""
        if not self._buffer:
            return None
        raw = bytes(self._buffer)
        self._buffer.clear()
        return self._to_text(raw)

    @property
    def has_buffered_data(self) -> bool:
        return bool(self._buffer)

    @staticmethod
    def _to_text(raw: bytes) -> str:
        if raw.endswith(b"\r"):
            raw = raw[:-1]
        return raw.decode("utf-8", errors="replace")


class SSEDecoder:
    """
    Stateful SSE field parser.

    Holds the current event name and pending ``data`` lines for one stream.
    Not shared between streams.
    """

    def __init__(self) -> None:
        self._lines = LineDecoder()
        self._event: Optional[str] = None
        self._data: List[str] = []

    def feed(self, chunk: bytes) -> List[ServerSentEvent]:
        """Decode a chunk of bytes into zero or more complete events."""
        events = []
        for line in self._lines.decode(chunk):
            sse = self.decode_line(line)
            if sse is not None:
                events.append(sse)
        return events

    def decode_line(self, line: str) -> Optional[ServerSentEvent]:
        """Advance the parser by one line; return an event on a terminator."""
        if not line:
            return self._emit()

        if line.startswith(":"):
            return None

        name, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if name == "event":
            self._event = value
        elif name == "data":
            self._data.append(value)
        elif name in ("id", "retry"):
            # Recognized, but reconnection is not supported so neither is used.
            pass

        return None

    def flush(self) -> Optional[ServerSentEvent]:
        """
        Finish the stream.

        Processes a trailing line that had no line feed, then emits the
        pending event as if a blank line had followed it.
        """
        remainder = self._lines.flush()
        if remainder is not None:
            sse = self.decode_line(remainder)
            if sse is not None:
                return sse
        return self._emit()

    @property
    def has_buffered_data(self) -> bool:
        return self._lines.has_buffered_data or bool(self._data)

    def _emit(self) -> Optional[ServerSentEvent]:
        if not self._data:
            self._event = None
            return None

        sse = ServerSentEvent(
            event=self._event if self._event is not None else DEFAULT_EVENT,
            data="\n".join(self._data),
        )
        self._event = None
        self._data = []
        return sse


def decode_all(chunks: Iterable[bytes]) -> List[ServerSentEvent]:
    """Decode a complete body given as chunks, including the final flush."""
    decoder = SSEDecoder()
    events: List[ServerSentEvent] = []
    for chunk in chunks:
        events.extend(decoder.feed(chunk))
    last = decoder.flush()
    if last is not None:
        events.append(last)
    return events
