"""
llmwire - Pytest Configuration

Shared helpers:
- SSE body builders for the canonical message stream
- httpx.MockTransport-backed clients
- Patched sleeps so retry tests run instantly
"""

import json
from typing import Any, Callable, Dict, Iterable, List, Optional
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from llmwire import AsyncLLMWire, LLMWire


# ============================================================
# SSE builders
# ============================================================

def sse(event: str, data: Any) -> bytes:
    """Encode one server-sent event; dict data is JSON-encoded."""
    if not isinstance(data, str):
        data = json.dumps(data)
    return f"event: {event}\ndata: {data}\n\n".encode("utf-8")


def message_start(message_id: str = "msg_1", input_tokens: int = 10) -> bytes:
    return sse("message_start", {
        "type": "message_start",
        "message": {
            "id": message_id,
            "type": "message",
            "role": "assistant",
            "content": [],
            "model": "claude-test",
            "stop_reason": None,
            "stop_sequence": None,
            "usage": {"input_tokens": input_tokens, "output_tokens": 1},
        },
    })


def text_delta(text: str, index: int = 0) -> bytes:
    return sse("content_block_delta", {
        "type": "content_block_delta",
        "index": index,
        "delta": {"type": "text_delta", "text": text},
    })


def message_delta(stop_reason: Optional[str] = "end_turn", output_tokens: int = 5) -> bytes:
    return sse("message_delta", {
        "type": "message_delta",
        "delta": {"stop_reason": stop_reason, "stop_sequence": None},
        "usage": {"output_tokens": output_tokens},
    })


def message_stop() -> bytes:
    return sse("message_stop", {"type": "message_stop"})


def canonical_stream(texts: Iterable[str] = ("Hello", " world")) -> bytes:
    """message_start, one text block, message_delta and message_stop."""
    parts = [
        message_start(),
        sse("content_block_start", {
            "type": "content_block_start",
            "index": 0,
            "content_block": {"type": "text", "text": ""},
        }),
        sse("ping", {"type": "ping"}),
    ]
    parts.extend(text_delta(t) for t in texts)
    parts.extend([
        sse("content_block_stop", {"type": "content_block_stop", "index": 0}),
        message_delta("end_turn", 5),
        message_stop(),
    ])
    return b"".join(parts)


def split_every(data: bytes, size: int) -> List[bytes]:
    return [data[i:i + size] for i in range(0, len(data), size)]


MESSAGE_JSON: Dict[str, Any] = {
    "id": "msg_01",
    "type": "message",
    "role": "assistant",
    "content": [{"type": "text", "text": "Hello!"}],
    "model": "claude-test",
    "stop_reason": "end_turn",
    "stop_sequence": None,
    "usage": {"input_tokens": 12, "output_tokens": 3},
}


def error_body(error_type: str, message: str) -> Dict[str, Any]:
    return {"type": "error", "error": {"type": error_type, "message": message}}


# ============================================================
# Clients
# ============================================================

@pytest.fixture
def make_client() -> Callable[..., LLMWire]:
    """Build a sync client whose requests go to ``handler``."""
    clients = []

    def factory(handler: Callable[[httpx.Request], httpx.Response], **kwargs) -> LLMWire:
        kwargs.setdefault("api_key", "test_key")
        http_client = httpx.Client(transport=httpx.MockTransport(handler))
        client = LLMWire(http_client=http_client, **kwargs)
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.close()


@pytest.fixture
def make_async_client() -> Callable[..., AsyncLLMWire]:
    """Build an async client whose requests go to ``handler``."""

    def factory(handler: Callable[[httpx.Request], httpx.Response], **kwargs) -> AsyncLLMWire:
        kwargs.setdefault("api_key", "test_key")
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return AsyncLLMWire(http_client=http_client, **kwargs)

    return factory


# ============================================================
# Sleeps
# ============================================================

@pytest.fixture
def no_sleep():
    """Patch the retry loop's sleep and record requested delays."""
    with patch("llmwire.retry.time.sleep") as mock_sleep:
        yield mock_sleep


@pytest.fixture
def no_async_sleep():
    with patch("llmwire.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep


@pytest.fixture
def mock_response() -> Callable[..., MagicMock]:
    """A stand-in for httpx.Response with a status code and headers."""

    def factory(status_code: int = 200, headers: Optional[Dict[str, str]] = None) -> MagicMock:
        response = MagicMock(spec=httpx.Response)
        response.status_code = status_code
        response.headers = httpx.Headers(headers or {})
        response.aclose = AsyncMock()
        return response

    return factory
