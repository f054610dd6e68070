"""
llmwire - Retry Logic

Bounded retry loop with exponential backoff and jitter, honoring the
server's ``retry-after-ms`` / ``retry-after`` hints.

The loop wraps one logical request. Transport failures and responses with
a retryable status are retried; every other response, successful or not,
is handed back to the caller to interpret.
"""

import asyncio
import random
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, FrozenSet, Mapping, Optional

import httpx

from .errors import (
    LLMWireError,
    ConnectionError,
    TimeoutError,
)
from .logging import get_logger


logger = get_logger("http")


RETRYABLE_STATUS_CODES = frozenset({408, 409, 429, 500, 502, 503, 504, 529})

_MAX_EXPONENT = 1000

OnRetry = Callable[[int, LLMWireError, float], None]


@dataclass
class RetryPolicy:
    """
    Configuration for retry behavior.

    ``max_retries`` counts retries, not attempts: a request is issued at
    most ``max_retries + 1`` times.
    """
    max_retries: int = 2
    base_delay: float = 0.5  # seconds
    max_delay: float = 8.0  # seconds
    jitter_fraction: float = 0.25
    max_retry_after: float = 60.0  # server hints above this are ignored
    retryable_status_codes: FrozenSet[int] = field(
        default_factory=lambda: RETRYABLE_STATUS_CODES
    )

    def is_retryable_status(self, status_code: int) -> bool:
        return status_code in self.retryable_status_codes


def calculate_backoff(
    attempt: int,
    base_delay: float = 0.5,
    max_delay: float = 8.0,
    jitter_fraction: float = 0.25,
    jitter: bool = True
) -> float:
    """
    Calculate delay for exponential backoff with optional jitter.

    ``min(base_delay * 2**attempt, max_delay)``, reduced by up to
    ``jitter_fraction`` of itself. Jitter only ever shortens the delay, so
    the result stays within ``[0, max_delay]``.

    Args:
        attempt: Current retry attempt (0-based)
        base_delay: Delay before the first retry, in seconds
        max_delay: Maximum delay in seconds
        jitter_fraction: Largest share of the delay removed by jitter
        jitter: Whether to apply random jitter

    Returns:
        Delay in seconds
    """
    # 2.0 ** 1024 does not fit in a float.
    exponent = min(attempt, _MAX_EXPONENT)
    delay = min(base_delay * (2 ** exponent), max_delay)

    if jitter:
        delay = delay * (1 - jitter_fraction * random.random())

    return max(0.0, delay)


def parse_retry_after(headers: Mapping[str, str]) -> Optional[float]:
    """
    Read the server's retry hint, in seconds.

    ``retry-after-ms`` (milliseconds) wins over ``retry-after`` (seconds).
    Values that are not non-negative numbers are ignored.
    """
    value = _parse_number(headers.get("retry-after-ms"))
    if value is not None:
        return value / 1000.0

    return _parse_number(headers.get("retry-after"))


def _parse_number(raw: Optional[str]) -> Optional[float]:
    if raw is None:
        return None
    try:
        value = float(raw.strip())
    except ValueError:
        return None
    if value < 0 or value != value:
        return None
    return value


def calculate_delay(
    attempt: int,
    retry_after: Optional[float] = None,
    policy: Optional[RetryPolicy] = None
) -> float:
    """
    Delay before the next attempt.

    A server hint is used verbatim when it is at most
    ``policy.max_retry_after`` seconds; otherwise exponential backoff applies.
    """
    policy = policy or RetryPolicy()

    if retry_after is not None and retry_after <= policy.max_retry_after:
        return retry_after

    return calculate_backoff(
        attempt,
        base_delay=policy.base_delay,
        max_delay=policy.max_delay,
        jitter_fraction=policy.jitter_fraction,
    )


def transport_error(exc: httpx.HTTPError) -> LLMWireError:
    """Wrap an httpx transport exception in the matching SDK error."""
    if isinstance(exc, httpx.TimeoutException):
        return TimeoutError(f"Request timed out: {exc}")
    return ConnectionError(f"Connection error: {exc}")


class RetryHandler:
    """
    Runs a request-issuing function under a RetryPolicy.

    The function must be safe to call again: every attempt issues a fresh
    request.

    Example:
        handler = RetryHandler(RetryPolicy(max_retries=3))
        response = handler.execute(lambda: client.send(request))
    """

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        on_retry: Optional[OnRetry] = None
    ):
        self.policy = policy or RetryPolicy()
        self.on_retry = on_retry

    def execute(self, send: Callable[[], httpx.Response]) -> httpx.Response:
        """
        Issue ``send()`` until it yields a final response.

        Returns:
            The first response whose status is not retryable, or the last
            response once retries are exhausted.

        Raises:
            TimeoutError, ConnectionError: The transport failed on the last
                allowed attempt.
        """
        max_retries = self.policy.max_retries

        for attempt in range(max_retries + 1):
            try:
                response = send()
            except httpx.TransportError as exc:
                error = transport_error(exc)
                if attempt >= max_retries:
                    raise error from exc
                delay = calculate_delay(attempt, None, self.policy)
                self._before_retry(attempt, error, delay)
                time.sleep(delay)
                continue

            if not self._should_retry(response, attempt):
                return response

            error, delay = self._status_retry(response, attempt)
            response.close()
            self._before_retry(attempt, error, delay)
            time.sleep(delay)

        raise RuntimeError("Retry logic error")

    async def execute_async(
        self,
        send: Callable[[], Awaitable[httpx.Response]]
    ) -> httpx.Response:
        """Same as ``execute`` for an async request-issuing function."""
        max_retries = self.policy.max_retries

        for attempt in range(max_retries + 1):
            try:
                response = await send()
            except httpx.TransportError as exc:
                error = transport_error(exc)
                if attempt >= max_retries:
                    raise error from exc
                delay = calculate_delay(attempt, None, self.policy)
                self._before_retry(attempt, error, delay)
                await asyncio.sleep(delay)
                continue

            if not self._should_retry(response, attempt):
                return response

            error, delay = self._status_retry(response, attempt)
            await response.aclose()
            self._before_retry(attempt, error, delay)
            await asyncio.sleep(delay)

        raise RuntimeError("Retry logic error")

    def _should_retry(self, response: httpx.Response, attempt: int) -> bool:
        return (
            attempt < self.policy.max_retries
            and self.policy.is_retryable_status(response.status_code)
        )

    def _status_retry(self, response: httpx.Response, attempt: int):
        retry_after = parse_retry_after(response.headers)
        delay = calculate_delay(attempt, retry_after, self.policy)
        error = LLMWireError.from_status(
            response.status_code,
            f"HTTP {response.status_code}",
            request_id=response.headers.get("request-id"),
            retry_after=retry_after,
        )
        return error, delay

    def _before_retry(self, attempt: int, error: LLMWireError, delay: float) -> None:
        logger.warning(
            f"Retry {attempt + 1}/{self.policy.max_retries} "
            f"after {delay:.2f}s - {error.__class__.__name__}: {error.message}"
        )
        if self.on_retry:
            self.on_retry(attempt, error, delay)
