"""
llmwire - Error Classes

Exception hierarchy for API, transport and stream failures, plus the
classifier that maps an HTTP status and body to the right error.
"""

import json
from typing import Any, Dict, Optional, Union


class LLMWireError(Exception):
    """
    Base exception for the llmwire SDK.

    All SDK errors inherit from this class.

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        status_code: HTTP status code if applicable (0 when no response)
        request_id: Value of the ``request-id`` response header, if any
        retryable: Whether the request can be retried
        details: Additional error details
    """

    code_name = "unknown"
    default_status = 0
    default_retryable = False

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        request_id: Optional[str] = None,
        retryable: Optional[bool] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code or self.code_name
        self.status_code = self.default_status if status_code is None else status_code
        self.request_id = request_id
        self.retryable = self.default_retryable if retryable is None else retryable
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"status_code={self.status_code}, "
            f"request_id={self.request_id!r})"
        )

    @classmethod
    def from_status(
        cls,
        status_code: int,
        body: Union[str, bytes, None] = None,
        request_id: Optional[str] = None,
        retry_after: Optional[float] = None
    ) -> "LLMWireError":
        """
        Create the error matching an HTTP status code and response body.

        The body is parsed as the ``{"type": "error", "error": {"type", "message"}}``
        envelope when possible; otherwise the raw text is used as the message.

        Args:
            status_code: HTTP status of the failed response
            body: Raw response body
            request_id: Value of the ``request-id`` header
            retry_after: Server retry hint in seconds (kept for 429)

        Returns:
            An instance of the matching LLMWireError subclass
        """
        text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else (body or "")
        message, error_type = _parse_error_body(text)
        details = {"type": error_type} if error_type else {}

        if status_code == 429:
            return RateLimitError(
                message,
                retry_after=retry_after,
                request_id=request_id,
                details=details,
            )

        error_class = _STATUS_ERRORS.get(status_code)
        if error_class is not None:
            return error_class(
                message,
                status_code=status_code,
                request_id=request_id,
                details=details,
            )

        if 500 <= status_code <= 599:
            return InternalServerError(
                message,
                status_code=status_code,
                request_id=request_id,
                details=details,
            )

        return InvalidResponseError(
            f"Unexpected status {status_code}: {message}",
            status_code=status_code,
            body=text,
            request_id=request_id,
        )


class BadRequestError(LLMWireError):
    """The request was malformed or had invalid parameters (400)."""

    code_name = "invalid_request_error"
    default_status = 400


class AuthenticationError(LLMWireError):
    """
    Credentials are invalid or missing (401).

    Also raised by client construction when no API key or auth token
    was provided.
    """

    code_name = "authentication_error"
    default_status = 401

    def __init__(self, message: str = "Invalid or missing API key", **kwargs):
        super().__init__(message, **kwargs)


class PermissionDeniedError(LLMWireError):
    """The credentials do not grant access to the resource (403)."""

    code_name = "permission_error"
    default_status = 403


class NotFoundError(LLMWireError):
    """The requested resource does not exist (404)."""

    code_name = "not_found_error"
    default_status = 404


class ConflictError(LLMWireError):
    """The request conflicts with the current state of the resource (409)."""

    code_name = "conflict_error"
    default_status = 409
    default_retryable = True


class RequestTooLargeError(LLMWireError):
    """The request body exceeds the maximum allowed size (413)."""

    code_name = "request_too_large"
    default_status = 413


class UnprocessableEntityError(LLMWireError):
    """The request was well-formed but semantically invalid (422)."""

    code_name = "unprocessable_entity_error"
    default_status = 422


class RateLimitError(LLMWireError):
    """
    Rate limit exceeded (429).

    Attributes:
        retry_after: Seconds the server asked us to wait, if it said
    """

    code_name = "rate_limit_error"
    default_status = 429
    default_retryable = True

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: Optional[float] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class InternalServerError(LLMWireError):
    """The server failed to handle the request (any 5xx except 529)."""

    code_name = "api_error"
    default_status = 500
    default_retryable = True


class OverloadedError(LLMWireError):
    """The API is temporarily overloaded (529)."""

    code_name = "overloaded_error"
    default_status = 529
    default_retryable = True


class ConnectionError(LLMWireError):
    """
    Failed to reach the API.

    This error occurs when:
    - Network is unavailable
    - DNS resolution fails
    - Connection is refused or dropped mid-response
    """

    code_name = "connection_error"
    default_retryable = True

    def __init__(self, message: str = "Failed to connect to API", **kwargs):
        super().__init__(message, **kwargs)


class TimeoutError(LLMWireError):
    """The request exceeded the configured transport timeout."""

    code_name = "timeout"
    default_retryable = True

    def __init__(self, message: str = "Request timed out", **kwargs):
        super().__init__(message, **kwargs)


class InvalidResponseError(LLMWireError):
    """
    The API answered with something we cannot interpret.

    Attributes:
        body: Raw response body text
    """

    code_name = "invalid_response"

    def __init__(self, message: str, body: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.body = body


class DecodeError(LLMWireError):
    """A JSON payload could not be decoded into the expected shape."""

    code_name = "decode_error"

    def __init__(self, message: str, data: str = "", **kwargs):
        kwargs["retryable"] = False
        super().__init__(message, **kwargs)
        self.data = data


class StreamError(LLMWireError):
    """
    The stream was used incorrectly or ended in an unusable state.

    Never retryable: once bytes have arrived the request is not replayed.
    """

    code_name = "stream_error"

    def __init__(self, message: str = "Stream error", **kwargs):
        kwargs["retryable"] = False
        super().__init__(message, **kwargs)


_STATUS_ERRORS = {
    400: BadRequestError,
    401: AuthenticationError,
    403: PermissionDeniedError,
    404: NotFoundError,
    409: ConflictError,
    413: RequestTooLargeError,
    422: UnprocessableEntityError,
    529: OverloadedError,
}


def _parse_error_body(text: str):
    """Return (message, error_type) from an error envelope, or the raw text."""
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return text, None

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"], error.get("type")

    return text, None


def is_retryable_error(error: Any) -> bool:
    """
    Check if an error is retryable.

    Infrastructure errors (rate limits, overload, 5xx, timeouts, connection
    issues) are retryable. Request errors (bad request, authentication,
    not found) and decode failures are not.

    Args:
        error: The error to check

    Returns:
        True if the error is retryable, False otherwise
    """
    if isinstance(error, LLMWireError):
        return error.retryable

    return False
