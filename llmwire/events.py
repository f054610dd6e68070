"""
llmwire - Stream Event Types

Typed events decoded from the Messages API event stream.

The event vocabulary is closed: ``MessageStreamEvent`` and
``ContentBlockDelta`` are pydantic discriminated unions keyed on ``type``,
so a payload with an unknown ``type`` fails to decode instead of being
silently dropped.
"""

import json
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from .errors import DecodeError
from .models import ContentBlock, Message, StopReason
from .sse import ServerSentEvent


# ============================================================
# Content block deltas
# ============================================================

class _Delta(BaseModel):
    """Accessors shared by every delta variant."""

    def as_text(self) -> Optional[str]:
        return None

    def as_thinking(self) -> Optional[str]:
        return None

    def as_input_json(self) -> Optional[str]:
        return None


class TextDelta(_Delta):
    type: Literal["text_delta"] = "text_delta"
    text: str

    def as_text(self) -> Optional[str]:
        return self.text


class InputJsonDelta(_Delta):
    """A fragment of a tool call's JSON input."""
    type: Literal["input_json_delta"] = "input_json_delta"
    partial_json: str

    def as_input_json(self) -> Optional[str]:
        return self.partial_json


class ThinkingDelta(_Delta):
    type: Literal["thinking_delta"] = "thinking_delta"
    thinking: str

    def as_thinking(self) -> Optional[str]:
        return self.thinking


class SignatureDelta(_Delta):
    type: Literal["signature_delta"] = "signature_delta"
    signature: str


class CitationsDelta(_Delta):
    type: Literal["citations_delta"] = "citations_delta"
    citation: Any


ContentBlockDelta = Annotated[
    Union[TextDelta, InputJsonDelta, ThinkingDelta, SignatureDelta, CitationsDelta],
    Field(discriminator="type"),
]


# ============================================================
# Stream events
# ============================================================

class MessageDelta(BaseModel):
    """Top-level message fields that change at the end of a response."""
    stop_reason: Optional[StopReason] = None
    stop_sequence: Optional[str] = None


class MessageDeltaUsage(BaseModel):
    """Output tokens generated so far (a running total, not an increment)."""
    output_tokens: int


class StreamErrorDetail(BaseModel):
    """Payload of an ``error`` event."""
    type: str
    message: str


class MessageStartEvent(BaseModel):
    type: Literal["message_start"] = "message_start"
    message: Message


class MessageDeltaEvent(BaseModel):
    type: Literal["message_delta"] = "message_delta"
    delta: MessageDelta
    usage: MessageDeltaUsage


class MessageStopEvent(BaseModel):
    type: Literal["message_stop"] = "message_stop"


class ContentBlockStartEvent(BaseModel):
    type: Literal["content_block_start"] = "content_block_start"
    index: int
    content_block: ContentBlock


class ContentBlockDeltaEvent(BaseModel):
    type: Literal["content_block_delta"] = "content_block_delta"
    index: int
    delta: ContentBlockDelta


class ContentBlockStopEvent(BaseModel):
    type: Literal["content_block_stop"] = "content_block_stop"
    index: int


class PingEvent(BaseModel):
    """Keep-alive sent by the server; carries nothing."""
    type: Literal["ping"] = "ping"


class ErrorEvent(BaseModel):
    """An error reported in-band by the server after the stream started."""
    type: Literal["error"] = "error"
    error: StreamErrorDetail


MessageStreamEvent = Annotated[
    Union[
        MessageStartEvent,
        MessageDeltaEvent,
        MessageStopEvent,
        ContentBlockStartEvent,
        ContentBlockDeltaEvent,
        ContentBlockStopEvent,
        PingEvent,
        ErrorEvent,
    ],
    Field(discriminator="type"),
]

_event_adapter = TypeAdapter(MessageStreamEvent)


def parse_event(sse: ServerSentEvent) -> MessageStreamEvent:
    """
    Map a raw server-sent event to its typed event.

    ``ping`` events are returned without looking at the payload. ``error``
    events are decoded from ``{"type", "message"}`` (a nested ``error``
    envelope is also accepted). Everything else is decoded as JSON by its
    ``type`` field, which is filled in from the event name when the payload
    leaves it out.

    Raises:
        DecodeError: The payload is not JSON or does not match any event.
    """
    if sse.event == "ping":
        return PingEvent()

    payload = _load_json(sse)

    if sse.event == "error":
        if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
            payload = payload["error"]
        try:
            return ErrorEvent(error=StreamErrorDetail.model_validate(payload))
        except ValidationError as exc:
            raise DecodeError(f"Invalid error event: {exc}", data=sse.data) from exc

    if not isinstance(payload, dict):
        raise DecodeError(
            f"Expected a JSON object for event {sse.event!r}",
            data=sse.data,
        )

    if "type" not in payload:
        payload["type"] = sse.event

    try:
        return _event_adapter.validate_python(payload)
    except ValidationError as exc:
        raise DecodeError(
            f"Could not decode {payload['type']!r} event: {exc}",
            data=sse.data,
        ) from exc


def _load_json(sse: ServerSentEvent) -> Any:
    try:
        return json.loads(sse.data)
    except json.JSONDecodeError as exc:
        raise DecodeError(
            f"Invalid JSON in {sse.event!r} event: {exc.msg}",
            data=sse.data,
        ) from exc
