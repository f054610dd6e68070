"""
llmwire - Event Parsing Tests
"""

import json

import pytest

from llmwire.errors import DecodeError
from llmwire.events import (
    CitationsDelta,
    ContentBlockDeltaEvent,
    ContentBlockStartEvent,
    ContentBlockStopEvent,
    ErrorEvent,
    InputJsonDelta,
    MessageDeltaEvent,
    MessageStartEvent,
    MessageStopEvent,
    PingEvent,
    SignatureDelta,
    TextDelta,
    ThinkingDelta,
    parse_event,
)
from llmwire.models import StopReason
from llmwire.sse import ServerSentEvent


def raw(event, payload):
    data = payload if isinstance(payload, str) else json.dumps(payload)
    return ServerSentEvent(event=event, data=data)


class TestParseEvent:
    """Tests for parse_event."""

    def test_message_start(self):
        event = parse_event(raw("message_start", {
            "type": "message_start",
            "message": {
                "id": "msg_1",
                "type": "message",
                "role": "assistant",
                "content": [],
                "model": "claude-test",
                "usage": {"input_tokens": 25, "output_tokens": 1},
            },
        }))

        assert isinstance(event, MessageStartEvent)
        assert event.message.id == "msg_1"
        assert event.message.usage.input_tokens == 25

    def test_content_block_start(self):
        event = parse_event(raw("content_block_start", {
            "type": "content_block_start",
            "index": 1,
            "content_block": {"type": "tool_use", "id": "tu_1", "name": "lookup", "input": {}},
        }))

        assert isinstance(event, ContentBlockStartEvent)
        assert event.index == 1
        assert event.content_block.as_tool_use() == ("tu_1", "lookup", {})

    @pytest.mark.parametrize("delta,expected_type", [
        ({"type": "text_delta", "text": "Hi"}, TextDelta),
        ({"type": "input_json_delta", "partial_json": "{\"a\":"}, InputJsonDelta),
        ({"type": "thinking_delta", "thinking": "hmm"}, ThinkingDelta),
        ({"type": "signature_delta", "signature": "sig"}, SignatureDelta),
        ({"type": "citations_delta", "citation": {"cited_text": "x"}}, CitationsDelta),
    ])
    def test_content_block_delta_variants(self, delta, expected_type):
        """Test each delta variant is selected by its type."""
        event = parse_event(raw("content_block_delta", {
            "type": "content_block_delta",
            "index": 0,
            "delta": delta,
        }))

        assert isinstance(event, ContentBlockDeltaEvent)
        assert isinstance(event.delta, expected_type)

    def test_delta_accessors(self):
        """Test as_text / as_thinking / as_input_json only answer for their variant."""
        text = TextDelta(text="a")
        thinking = ThinkingDelta(thinking="b")
        partial = InputJsonDelta(partial_json="{")

        assert (text.as_text(), text.as_thinking(), text.as_input_json()) == ("a", None, None)
        assert (thinking.as_text(), thinking.as_thinking()) == (None, "b")
        assert (partial.as_text(), partial.as_input_json()) == (None, "{")
        assert SignatureDelta(signature="s").as_text() is None

    def test_content_block_stop(self):
        event = parse_event(raw("content_block_stop", {"type": "content_block_stop", "index": 2}))

        assert isinstance(event, ContentBlockStopEvent)
        assert event.index == 2

    def test_message_delta(self):
        event = parse_event(raw("message_delta", {
            "type": "message_delta",
            "delta": {"stop_reason": "max_tokens", "stop_sequence": None},
            "usage": {"output_tokens": 42},
        }))

        assert isinstance(event, MessageDeltaEvent)
        assert event.delta.stop_reason == StopReason.MAX_TOKENS
        assert event.usage.output_tokens == 42

    def test_message_stop(self):
        assert isinstance(parse_event(raw("message_stop", {"type": "message_stop"})), MessageStopEvent)

    def test_ping_ignores_payload(self):
        """Test ping never fails, whatever its data."""
        assert isinstance(parse_event(raw("ping", "not json at all")), PingEvent)
        assert isinstance(parse_event(raw("ping", {"type": "ping"})), PingEvent)

    def test_error_event(self):
        event = parse_event(raw("error", {"type": "overloaded_error", "message": "Overloaded"}))

        assert isinstance(event, ErrorEvent)
        assert event.error.type == "overloaded_error"
        assert event.error.message == "Overloaded"

    def test_error_event_with_envelope(self):
        """Test the nested {"type": "error", "error": {...}} form."""
        event = parse_event(raw("error", {
            "type": "error",
            "error": {"type": "api_error", "message": "boom"},
        }))

        assert isinstance(event, ErrorEvent)
        assert event.error.type == "api_error"
        assert event.error.message == "boom"

    def test_type_taken_from_event_name(self):
        """Test a payload without 'type' uses the SSE event name."""
        event = parse_event(raw("content_block_stop", {"index": 0}))

        assert isinstance(event, ContentBlockStopEvent)

    def test_invalid_json(self):
        with pytest.raises(DecodeError) as exc_info:
            parse_event(raw("message_delta", "{not json"))

        assert exc_info.value.data == "{not json"
        assert not exc_info.value.retryable

    def test_unknown_type(self):
        """Test an unknown event type is a decode error."""
        with pytest.raises(DecodeError):
            parse_event(raw("mystery", {"type": "mystery"}))

    def test_missing_required_field(self):
        with pytest.raises(DecodeError):
            parse_event(raw("message_delta", {"type": "message_delta", "delta": {}}))

    def test_unknown_delta_type(self):
        with pytest.raises(DecodeError):
            parse_event(raw("content_block_delta", {
                "type": "content_block_delta",
                "index": 0,
                "delta": {"type": "sparkle_delta"},
            }))

    def test_non_object_payload(self):
        with pytest.raises(DecodeError):
            parse_event(raw("message_stop", "[1, 2]"))

    def test_malformed_error_event(self):
        with pytest.raises(DecodeError):
            parse_event(raw("error", {"unexpected": True}))
