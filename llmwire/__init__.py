"""
llmwire Python SDK

Client for the Messages API with incremental streaming and retries.

Quick Start:
    from llmwire import LLMWire, MessageCreateParams, MessageParam

    client = LLMWire(api_key="sk-...")
    params = MessageCreateParams(
        model="claude-sonnet-4-5",
        max_tokens=1024,
        messages=[MessageParam.user("Hello!")],
    )

    # Whole response
    message = client.messages.create(params)
    print(message.text())

    # Streaming
    with client.messages.stream(params) as stream:
        for event in stream:
            ...
    print(stream.text, stream.state.stop_reason)

    # Async usage
    async with AsyncLLMWire(api_key="sk-...") as client:
        message = await client.messages.create(params)
"""

import logging as _logging

from .client import LLMWire, Messages, __version__
from .async_client import AsyncLLMWire, AsyncMessages
from .config import ClientConfig
from .models import (
    Role,
    StopReason,
    Usage,
    ContentBlock,
    Message,
    MessageParam,
    MessageCreateParams,
)
from .events import (
    TextDelta,
    InputJsonDelta,
    ThinkingDelta,
    SignatureDelta,
    CitationsDelta,
    MessageStartEvent,
    MessageDeltaEvent,
    MessageStopEvent,
    ContentBlockStartEvent,
    ContentBlockDeltaEvent,
    ContentBlockStopEvent,
    PingEvent,
    ErrorEvent,
    MessageStreamEvent,
    parse_event,
)
from .sse import ServerSentEvent, SSEDecoder
from .streaming import StreamState, MessageStream, AsyncMessageStream, fold
from .retry import RetryPolicy, RetryHandler, calculate_backoff
from .errors import (
    LLMWireError,
    BadRequestError,
    AuthenticationError,
    PermissionDeniedError,
    NotFoundError,
    ConflictError,
    RequestTooLargeError,
    UnprocessableEntityError,
    RateLimitError,
    InternalServerError,
    OverloadedError,
    ConnectionError,
    TimeoutError,
    InvalidResponseError,
    DecodeError,
    StreamError,
    is_retryable_error,
)

_logging.getLogger("llmwire").addHandler(_logging.NullHandler())

__all__ = [
    # Clients
    "LLMWire",
    "AsyncLLMWire",
    "Messages",
    "AsyncMessages",
    "ClientConfig",
    # Models
    "Role",
    "StopReason",
    "Usage",
    "ContentBlock",
    "Message",
    "MessageParam",
    "MessageCreateParams",
    # Events
    "TextDelta",
    "InputJsonDelta",
    "ThinkingDelta",
    "SignatureDelta",
    "CitationsDelta",
    "MessageStartEvent",
    "MessageDeltaEvent",
    "MessageStopEvent",
    "ContentBlockStartEvent",
    "ContentBlockDeltaEvent",
    "ContentBlockStopEvent",
    "PingEvent",
    "ErrorEvent",
    "MessageStreamEvent",
    "parse_event",
    # Streaming
    "ServerSentEvent",
    "SSEDecoder",
    "StreamState",
    "MessageStream",
    "AsyncMessageStream",
    "fold",
    # Retry
    "RetryPolicy",
    "RetryHandler",
    "calculate_backoff",
    # Errors
    "LLMWireError",
    "BadRequestError",
    "AuthenticationError",
    "PermissionDeniedError",
    "NotFoundError",
    "ConflictError",
    "RequestTooLargeError",
    "UnprocessableEntityError",
    "RateLimitError",
    "InternalServerError",
    "OverloadedError",
    "ConnectionError",
    "TimeoutError",
    "InvalidResponseError",
    "DecodeError",
    "StreamError",
    "is_retryable_error",
]
