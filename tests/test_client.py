"""
llmwire - Client Tests
"""

import json
from unittest.mock import MagicMock

import httpx
import pytest

from llmwire import LLMWire, MessageCreateParams, MessageParam
from llmwire.config import API_VERSION, ClientConfig
from llmwire.errors import (
    AuthenticationError,
    BadRequestError,
    ConnectionError,
    DecodeError,
    OverloadedError,
    PermissionDeniedError,
    RateLimitError,
)
from llmwire.models import StopReason
from llmwire.retry import RetryPolicy

from conftest import MESSAGE_JSON, canonical_stream, error_body


def params(**kwargs):
    return MessageCreateParams(
        model="claude-test",
        max_tokens=256,
        messages=[MessageParam.user("Hello")],
        **kwargs,
    )


def stream_response(body=None, **headers):
    return httpx.Response(
        200,
        content=body if body is not None else canonical_stream(),
        headers={"content-type": "text/event-stream", **headers},
    )


class TestLLMWireClient:
    """Tests for LLMWire client construction."""

    def test_requires_credentials(self):
        """Test a client without api_key or auth_token is rejected."""
        with pytest.raises(AuthenticationError):
            LLMWire()

    def test_accepts_auth_token(self):
        client = LLMWire(auth_token="tok")
        assert client.base_url == "https://api.anthropic.com"
        client.close()

    def test_custom_base_url(self):
        client = LLMWire(api_key="k", base_url="http://localhost:8080/")
        assert client.base_url == "http://localhost:8080"
        client.close()

    def test_base_url_with_config_object(self):
        """Test an explicit base_url wins over the config without changing it."""
        config = ClientConfig(api_key="k")
        client = LLMWire(config=config, base_url="http://localhost:9/")

        assert client.base_url == "http://localhost:9"
        assert client.config.api_key == "k"
        assert config.base_url == "https://api.anthropic.com"
        client.close()

    def test_config_object(self):
        config = ClientConfig(api_key="k", max_retries=5)
        client = LLMWire(config=config)

        assert client.config is config
        assert client._retry_handler.policy.max_retries == 5
        client.close()

    def test_explicit_retry_policy(self):
        policy = RetryPolicy(max_retries=7)
        client = LLMWire(config=ClientConfig(api_key="k", retry_policy=policy))

        assert client._retry_handler.policy is policy
        client.close()

    def test_context_manager(self):
        with LLMWire(api_key="k") as client:
            assert client is not None
        assert client._client.is_closed


class TestMessagesCreate:
    """Tests for messages.create."""

    def test_request_shape(self, make_client):
        """Test URL, headers and body of a create request."""
        captured = {}

        def handler(request):
            captured["request"] = request
            return httpx.Response(200, json=MESSAGE_JSON)

        client = make_client(handler, default_headers={"x-trace": "t1"})
        client.messages.create(params(temperature=0.2, extra={"stream": True}))

        request = captured["request"]
        body = json.loads(request.content)
        assert request.method == "POST"
        assert str(request.url) == "https://api.anthropic.com/v1/messages"
        assert request.headers["x-api-key"] == "test_key"
        assert request.headers["anthropic-version"] == API_VERSION
        assert request.headers["content-type"] == "application/json"
        assert request.headers["x-trace"] == "t1"
        assert body["model"] == "claude-test"
        assert body["max_tokens"] == 256
        assert body["messages"] == [{"role": "user", "content": "Hello"}]
        assert body["temperature"] == 0.2
        assert "stream" not in body
        assert "top_p" not in body

    def test_bearer_token(self, make_client):
        captured = {}

        def handler(request):
            captured["request"] = request
            return httpx.Response(200, json=MESSAGE_JSON)

        client = make_client(handler, api_key=None, auth_token="tok")
        client.messages.create(params())

        assert captured["request"].headers["authorization"] == "Bearer tok"
        assert "x-api-key" not in captured["request"].headers

    def test_returns_message(self, make_client):
        client = make_client(lambda request: httpx.Response(200, json=MESSAGE_JSON))

        message = client.messages.create(params())

        assert message.id == "msg_01"
        assert message.text() == "Hello!"
        assert message.stop_reason == StopReason.END_TURN
        assert message.usage.input_tokens == 12

    def test_accepts_dict_params(self, make_client):
        captured = {}

        def handler(request):
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json=MESSAGE_JSON)

        client = make_client(handler)
        client.messages.create({
            "model": "claude-test",
            "max_tokens": 10,
            "messages": [{"role": "user", "content": "Hi"}],
            "stream": True,
        })

        assert captured["body"]["max_tokens"] == 10
        assert "stream" not in captured["body"]

    def test_api_error(self, make_client):
        """Test a 400 raises BadRequestError with the server message."""
        def handler(request):
            return httpx.Response(
                400,
                json=error_body("invalid_request_error", "messages: required"),
                headers={"request-id": "req_400"},
            )

        client = make_client(handler)

        with pytest.raises(BadRequestError) as exc_info:
            client.messages.create(params())

        assert exc_info.value.message == "messages: required"
        assert exc_info.value.request_id == "req_400"
        assert exc_info.value.status_code == 400

    def test_non_retryable_not_retried(self, make_client, no_sleep):
        handler = MagicMock(side_effect=lambda request: httpx.Response(
            401, json=error_body("authentication_error", "bad key")
        ))
        client = make_client(handler)

        with pytest.raises(AuthenticationError):
            client.messages.create(params())

        assert handler.call_count == 1

    def test_retry_then_success(self, make_client, no_sleep):
        """Test a 529 is retried and the next 200 returned."""
        handler = MagicMock(side_effect=[
            httpx.Response(529, json=error_body("overloaded_error", "Overloaded")),
            httpx.Response(200, json=MESSAGE_JSON),
        ])
        on_retry = MagicMock()
        client = make_client(handler, on_retry=on_retry)

        message = client.messages.create(params())

        assert message.id == "msg_01"
        assert handler.call_count == 2
        assert isinstance(on_retry.call_args[0][1], OverloadedError)

    def test_retries_exhausted(self, make_client, no_sleep):
        """Test max_retries + 1 attempts, then the final error is raised."""
        handler = MagicMock(side_effect=lambda request: httpx.Response(
            429,
            json=error_body("rate_limit_error", "Slow down"),
            headers={"retry-after": "2"},
        ))
        client = make_client(handler, max_retries=2)

        with pytest.raises(RateLimitError) as exc_info:
            client.messages.create(params())

        assert handler.call_count == 3
        assert exc_info.value.retry_after == 2.0
        assert exc_info.value.message == "Slow down"
        assert [c[0][0] for c in no_sleep.call_args_list] == [2.0, 2.0]

    def test_connection_error(self, make_client, no_sleep):
        handler = MagicMock(side_effect=httpx.ConnectError("refused"))
        client = make_client(handler, max_retries=1)

        with pytest.raises(ConnectionError):
            client.messages.create(params())

        assert handler.call_count == 2

    def test_invalid_json(self, make_client):
        client = make_client(lambda request: httpx.Response(200, content=b"not json"))

        with pytest.raises(DecodeError):
            client.messages.create(params())

    def test_invalid_message_shape(self, make_client):
        client = make_client(lambda request: httpx.Response(200, json={"content": "x"}))

        with pytest.raises(DecodeError):
            client.messages.create(params())

    def test_invalid_message_shape_carries_request_id(self, make_client):
        client = make_client(lambda request: httpx.Response(
            200, json={"content": "x"}, headers={"request-id": "req_bad"}
        ))

        with pytest.raises(DecodeError) as exc_info:
            client.messages.create(params())

        assert exc_info.value.request_id == "req_bad"


class TestMessagesStream:
    """Tests for messages.stream."""

    def test_stream_request(self, make_client):
        captured = {}

        def handler(request):
            captured["body"] = json.loads(request.content)
            return stream_response()

        client = make_client(handler)
        with client.messages.stream(params()) as stream:
            list(stream)

        assert captured["body"]["stream"] is True

    def test_stream_events(self, make_client):
        client = make_client(lambda request: stream_response(**{"request-id": "req_s"}))

        with client.messages.stream(params()) as stream:
            events = list(stream)

        assert len(events) == 8
        assert stream.text == "Hello world"
        assert stream.is_complete
        assert stream.state.stop_reason == StopReason.END_TURN
        assert stream.request_id == "req_s"

    def test_stream_final_message(self, make_client):
        client = make_client(lambda request: stream_response())

        with client.messages.stream(params()) as stream:
            message = stream.get_final_message()

        assert message.id == "msg_1"
        assert message.usage.output_tokens == 5

    def test_stream_error_status(self, make_client):
        """Test a non-2xx stream response raises before any event."""
        client = make_client(lambda request: httpx.Response(
            403,
            json=error_body("permission_error", "no access"),
        ))

        with pytest.raises(PermissionDeniedError) as exc_info:
            client.messages.stream(params())

        assert exc_info.value.status_code == 403
        assert exc_info.value.message == "no access"

    def test_stream_connect_retried(self, make_client, no_sleep):
        """Test stream establishment is retried on a retryable status."""
        handler = MagicMock(side_effect=[
            httpx.Response(503, text="unavailable"),
            stream_response(),
        ])
        client = make_client(handler)

        with client.messages.stream(params()) as stream:
            text = stream.collect_text()

        assert text == "Hello world"
        assert handler.call_count == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
