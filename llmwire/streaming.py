"""
llmwire - Message Streams

Turns a streaming HTTP response into typed events and keeps a running
StreamState as they pass through.

Pipeline per chunk of bytes:
    SSEDecoder (lines -> raw events) -> parse_event (typed events)
    -> StreamState.update (accumulated text, stop reason, token count)

Key rules:
- A decode error ends the stream: it is raised from the iterator and no
  further events are produced.
- ``message_stop`` is the only normal end. A connection that closes before
  it leaves ``is_complete`` False.
- Closing a stream early releases the HTTP connection.
"""

from dataclasses import dataclass, replace
from typing import AsyncIterator, Iterator, Optional

import httpx

from .errors import DecodeError, StreamError
from .events import (
    ContentBlockDeltaEvent,
    MessageDeltaEvent,
    MessageStartEvent,
    MessageStopEvent,
    MessageStreamEvent,
    TextDelta,
    ThinkingDelta,
    parse_event,
)
from .logging import get_logger
from .models import Message, StopReason
from .retry import transport_error
from .sse import ServerSentEvent, SSEDecoder


logger = get_logger("stream")


@dataclass
class StreamState:
    """
    Running state of one message stream.

    Text and thinking only grow; ``is_complete`` only goes from False to
    True. ``output_tokens`` is the server's running total, so each
    ``message_delta`` replaces it.
    """
    message: Optional[Message] = None
    text: str = ""
    thinking: str = ""
    is_complete: bool = False
    stop_reason: Optional[StopReason] = None
    output_tokens: int = 0

    def update(self, event: MessageStreamEvent) -> None:
        """Fold one event into the state in place."""
        if isinstance(event, MessageStartEvent):
            self.message = event.message
        elif isinstance(event, MessageDeltaEvent):
            if event.delta.stop_reason is not None:
                self.stop_reason = event.delta.stop_reason
            self.output_tokens = event.usage.output_tokens
        elif isinstance(event, ContentBlockDeltaEvent):
            if isinstance(event.delta, TextDelta):
                self.text += event.delta.text
            elif isinstance(event.delta, ThinkingDelta):
                self.thinking += event.delta.thinking
        elif isinstance(event, MessageStopEvent):
            self.is_complete = True

    def into_message(self) -> Optional[Message]:
        """
        The announced message with the final stop reason and output tokens.

        Content blocks are left as ``message_start`` announced them; use
        ``text`` and ``thinking`` for the streamed content. Returns None if
        no ``message_start`` was seen.
        """
        if self.message is None:
            return None

        usage = self.message.usage.model_copy(
            update={"output_tokens": self.output_tokens}
        )
        return self.message.model_copy(
            update={"stop_reason": self.stop_reason, "usage": usage}
        )


def fold(state: StreamState, event: MessageStreamEvent) -> StreamState:
    """Return a new state with ``event`` applied; ``state`` is left untouched."""
    new_state = replace(state)
    new_state.update(event)
    return new_state


class _BaseStream:
    """State and accessors shared by the sync and async streams."""

    def __init__(self, response: httpx.Response):
        self.response = response
        self.state = StreamState()
        self._decoder = SSEDecoder()
        self._finished = False
        self._closed = False
        self._decode_failed = False

    @property
    def request_id(self) -> Optional[str]:
        return self.response.headers.get("request-id")

    @property
    def text(self) -> str:
        """Text accumulated so far."""
        return self.state.text

    @property
    def thinking(self) -> str:
        """Thinking accumulated so far."""
        return self.state.thinking

    @property
    def is_complete(self) -> bool:
        """True once ``message_stop`` has been received."""
        return self.state.is_complete

    def _process(self, sse: ServerSentEvent) -> MessageStreamEvent:
        try:
            event = parse_event(sse)
        except DecodeError as exc:
            self._finished = True
            self._decode_failed = True
            if exc.request_id is None:
                exc.request_id = self.request_id
            raise

        self.state.update(event)
        if isinstance(event, MessageStopEvent):
            self._finished = True
        return event

    def _log_end(self) -> None:
        if self.state.is_complete:
            logger.debug(
                f"Stream complete: stop_reason={self.state.stop_reason}, "
                f"output_tokens={self.state.output_tokens}"
            )
        elif self._closed:
            logger.debug(
                f"Stream closed by caller before message_stop "
                f"(request_id={self.request_id})"
            )
        elif self._decode_failed:
            logger.debug(f"Stream stopped on an undecodable event (request_id={self.request_id})")
        else:
            logger.warning(
                f"Stream ended before message_stop "
                f"(request_id={self.request_id}, received {len(self.state.text)} chars)"
            )

    def _final_message(self) -> Message:
        message = self.state.into_message()
        if message is None:
            raise StreamError(
                "Stream ended without a message_start event",
                request_id=self.request_id,
            )
        return message


class MessageStream(_BaseStream):
    """
    Iterator over the typed events of a streaming response.

    Example:
        with client.messages.stream(params) as stream:
            for event in stream:
                if isinstance(event, ContentBlockDeltaEvent):
                    print(event.delta.as_text() or "", end="")
        print(stream.text)
    """

    def __init__(self, response: httpx.Response):
        super().__init__(response)
        self._iterator = self._iter_events()

    def __iter__(self) -> Iterator[MessageStreamEvent]:
        return self

    def __next__(self) -> MessageStreamEvent:
        return next(self._iterator)

    def __enter__(self) -> "MessageStream":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        """Stop reading and release the connection."""
        self._closed = True
        self._finished = True
        self._iterator.close()
        self.response.close()

    def collect_text(self) -> str:
        """Consume the rest of the stream and return the accumulated text."""
        for _ in self:
            pass
        return self.state.text

    def get_final_message(self) -> Message:
        """Consume the rest of the stream and return the final message."""
        for _ in self:
            pass
        return self._final_message()

    def _iter_events(self) -> Iterator[MessageStreamEvent]:
        try:
            for chunk in self.response.iter_bytes():
                for sse in self._decoder.feed(chunk):
                    yield self._process(sse)
                    if self._finished:
                        return

            sse = self._decoder.flush()
            if sse is not None:
                yield self._process(sse)
        except httpx.TransportError as exc:
            raise transport_error(exc) from exc
        finally:
            self._finished = True
            self.response.close()
            self._log_end()


class AsyncMessageStream(_BaseStream):
    """
    Async iterator over the typed events of a streaming response.

    Example:
        async with await client.messages.stream(params) as stream:
            async for event in stream:
                ...
        print(stream.text)
    """

    def __init__(self, response: httpx.Response):
        super().__init__(response)
        self._iterator = self._iter_events()

    def __aiter__(self) -> AsyncIterator[MessageStreamEvent]:
        return self

    async def __anext__(self) -> MessageStreamEvent:
        return await self._iterator.__anext__()

    async def __aenter__(self) -> "AsyncMessageStream":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def close(self) -> None:
        """Stop reading and release the connection."""
        self._closed = True
        self._finished = True
        await self._iterator.aclose()
        await self.response.aclose()

    async def collect_text(self) -> str:
        """Consume the rest of the stream and return the accumulated text."""
        async for _ in self:
            pass
        return self.state.text

    async def get_final_message(self) -> Message:
        """Consume the rest of the stream and return the final message."""
        async for _ in self:
            pass
        return self._final_message()

    async def _iter_events(self) -> AsyncIterator[MessageStreamEvent]:
        try:
            async for chunk in self.response.aiter_bytes():
                for sse in self._decoder.feed(chunk):
                    yield self._process(sse)
                    if self._finished:
                        return

            sse = self._decoder.flush()
            if sse is not None:
                yield self._process(sse)
        except httpx.TransportError as exc:
            raise transport_error(exc) from exc
        finally:
            self._finished = True
            await self.response.aclose()
            self._log_end()
