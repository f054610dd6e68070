"""
llmwire - Async Client

Async client for non-blocking API interactions.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, Optional, Tuple, Union

import httpx

from .client import __version__
from .config import ClientConfig, DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT
from .errors import DecodeError, LLMWireError
from .logging import get_logger
from .models import Message, MessageCreateParams, params_to_dict
from .retry import OnRetry, RetryHandler, parse_retry_after
from .streaming import AsyncMessageStream


logger = get_logger("http")


class AsyncLLMWire:
    """
    Async client for the Messages API.

    Takes the same arguments as ``LLMWire``; ``http_client`` must be an
    ``httpx.AsyncClient``. Backoff sleeps only suspend the calling task.

    Example:
        >>> async with AsyncLLMWire(api_key="sk-...") as client:
        ...     message = await client.messages.create(params)
        ...     print(message.text())
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
        http_client: Optional[httpx.AsyncClient] = None,
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
        self.base_url = config.base_url.rstrip("/")
        self._headers = config.build_headers()
        self._headers["User-Agent"] = f"llmwire-python-async/{__version__}"
        self._retry_handler = RetryHandler(config.get_retry_policy(), on_retry=on_retry)
        self._client = http_client

        self.messages = AsyncMessages(self)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.config.timeout)
        return self._client

    async def _post(self, path: str, body: Dict[str, Any]) -> Tuple[Dict[str, Any], Optional[str]]:
        """POST a JSON body with retries; return the decoded JSON and the request id."""
        response = await self._send_with_retry("POST", path, body, stream=False)
        return self._handle_response(response), response.headers.get("request-id")

    async def _post_stream(self, path: str, body: Dict[str, Any]) -> httpx.Response:
        """POST with retries and return the open streaming response."""
        response = await self._send_with_retry("POST", path, body, stream=True)
        if response.is_success:
            return response

        try:
            await response.aread()
        finally:
            await response.aclose()
        raise self._make_status_error(response)

    async def _send_with_retry(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]],
        stream: bool
    ) -> httpx.Response:
        client = await self._get_client()
        url = f"{self.base_url}/v1{path}"
        request = client.build_request(method, url, json=body, headers=self._headers)

        async def do_request() -> httpx.Response:
            return await client.send(request, stream=stream)

        response = await self._retry_handler.execute_async(do_request)
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

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> AsyncLLMWire:
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()


class AsyncMessages:
    """The ``/v1/messages`` resource, async."""

    def __init__(self, client: AsyncLLMWire):
        self._client = client

    async def create(self, params: Union[MessageCreateParams, Dict[str, Any]]) -> Message:
        """Create a message and wait for the whole response."""
        body = params_to_dict(params)
        body.pop("stream", None)
        data, request_id = await self._client._post("/messages", body)
        return Message.from_dict(data, request_id=request_id)

    async def stream(
        self,
        params: Union[MessageCreateParams, Dict[str, Any]]
    ) -> AsyncMessageStream:
        """
        Create a message and stream its events as they arrive.

        Example:
            >>> stream = await client.messages.stream(params)
            >>> async with stream:
            ...     async for event in stream:
            ...         ...
        """
        body = params_to_dict(params)
        body["stream"] = True
        response = await self._client._post_stream("/messages", body)
        return AsyncMessageStream(response)

    create_stream = stream
