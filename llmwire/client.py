"""
llmwire - Synchronous Client

Main client for synchronous API interactions.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, Optional, Tuple, Union

import httpx

from .config import ClientConfig, DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT
from .errors import DecodeError, LLMWireError
from .logging import get_logger
from .models import Message, MessageCreateParams, params_to_dict
from .retry import OnRetry, RetryHandler, parse_retry_after
from .streaming import MessageStream


__version__ = "0.3.0"

logger = get_logger("http")


class LLMWire:
    """
    Client for the Messages API.

    Args:
        api_key: API key, sent as ``x-api-key``.
        auth_token: Bearer token, used instead of or with ``api_key``.
        base_url: API root. Defaults to https://api.anthropic.com
        timeout: Request timeout in seconds. Defaults to 600.
        max_retries: Retries after the first attempt. Defaults to 2.
        default_headers: Extra headers for every request.
        config: A complete ClientConfig; replaces the arguments above,
            except that an explicit ``base_url`` still takes precedence.
        on_retry: Callback ``(attempt, error, delay)`` called before each retry.
        http_client: A preconfigured ``httpx.Client`` to send requests with.

    Example:
        >>> client = LLMWire(api_key="sk-...")
        >>> message = client.messages.create(MessageCreateParams(
        ...     model="claude-sonnet-4-5",
        ...     max_tokens=1024,
        ...     messages=[MessageParam.user("Hello!")],
        ... ))
        >>> print(message.text())
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        auth_token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        default_headers: Optional[Dict[str, str]] = None,
        config: Optional[ClientConfig] = None,
        on_retry: Optional[OnRetry] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        if config is None:
            config = ClientConfig(
                api_key=api_key,
                auth_token=auth_token,
                timeout=timeout,
                max_retries=max_retries,
                default_headers=default_headers or {},
            )
        if base_url:
            config = replace(config, base_url=base_url)
        config.validate()

        self.config = config
        self._base_url = config.base_url.rstrip("/")
        self._headers = config.build_headers()
        self._headers["User-Agent"] = f"llmwire-python/{__version__}"
        self._retry_handler = RetryHandler(config.get_retry_policy(), on_retry=on_retry)
        self._client = http_client or httpx.Client(timeout=config.timeout)

        self.messages = Messages(self)

    @property
    def base_url(self) -> str:
        """Base URL for API requests."""
        return self._base_url

    # ============================================================
    # Private methods
    # ============================================================

    def _post(self, path: str, body: Dict[str, Any]) -> Tuple[Dict[str, Any], Optional[str]]:
        """POST a JSON body with retries; return the decoded JSON and the request id."""
        response = self._send_with_retry("POST", path, body, stream=False)
        return self._handle_response(response), response.headers.get("request-id")

    def _post_stream(self, path: str, body: Dict[str, Any]) -> httpx.Response:
        """
        POST a JSON body with retries and return the open streaming response.

        Retries cover establishing the stream only. A final non-2xx
        response is read, closed and raised here.
        """
        response = self._send_with_retry("POST", path, body, stream=True)
        if response.is_success:
            return response

        try:
            response.read()
        finally:
            response.close()
        raise self._make_status_error(response)

    def _send_with_retry(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]],
        stream: bool
    ) -> httpx.Response:
        url = f"{self._base_url}/v1{path}"
        request = self._client.build_request(method, url, json=body, headers=self._headers)

        def do_request() -> httpx.Response:
            return self._client.send(request, stream=stream)

        response = self._retry_handler.execute(do_request)
        logger.debug(f"{method} {url} -> {response.status_code}")
        return response

    def _handle_response(self, response: httpx.Response) -> Dict[str, Any]:
        """Decode a successful response or raise the matching error."""
        if not response.is_success:
            raise self._make_status_error(response)

        try:
            return response.json()
        except ValueError as exc:
            raise DecodeError(
                f"Response body is not valid JSON: {exc}",
                data=response.text,
                request_id=response.headers.get("request-id"),
            ) from exc

    def _make_status_error(self, response: httpx.Response) -> LLMWireError:
        return LLMWireError.from_status(
            response.status_code,
            response.text,
            request_id=response.headers.get("request-id"),
            retry_after=parse_retry_after(response.headers),
        )

    # ============================================================
    # Context Manager
    # ============================================================

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> LLMWire:
        return self

    def __exit__(self, *args) -> None:
        self.close()


class Messages:
    """The ``/v1/messages`` resource."""

    def __init__(self, client: LLMWire):
        self._client = client

    def create(self, params: Union[MessageCreateParams, Dict[str, Any]]) -> Message:
        """
        Create a message and wait for the whole response.

        Args:
            params: Request parameters, as MessageCreateParams or a dict.

        Returns:
            The Message returned by the API.
        """
        body = params_to_dict(params)
        body.pop("stream", None)
        data, request_id = self._client._post("/messages", body)
        return Message.from_dict(data, request_id=request_id)

    def stream(self, params: Union[MessageCreateParams, Dict[str, Any]]) -> MessageStream:
        """
        Create a message and stream its events as they arrive.

        Example:
            >>> with client.messages.stream(params) as stream:
            ...     for event in stream:
            ...         ...
            >>> print(stream.text)
        """
        body = params_to_dict(params)
        body["stream"] = True
        response = self._client._post_stream("/messages", body)
        return MessageStream(response)

    create_stream = stream
