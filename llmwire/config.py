"""
llmwire - Client Configuration
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from .errors import AuthenticationError
from .retry import RetryPolicy


DEFAULT_BASE_URL = "https://api.anthropic.com"
API_VERSION = "2023-06-01"
DEFAULT_TIMEOUT = 600.0  # seconds
DEFAULT_MAX_RETRIES = 2


@dataclass
class ClientConfig:
    """
    Configuration shared by the sync and async clients.

    Args:
        api_key: Sent as the ``x-api-key`` header.
        auth_token: Sent as ``Authorization: Bearer <token>``.
        base_url: API root, without the ``/v1`` prefix.
        timeout: Transport timeout in seconds. This is the only deadline
            on a stalled stream.
        max_retries: Retries after the first attempt.
        default_headers: Extra headers sent with every request.
        retry_policy: Full retry settings. When given, its own
            ``max_retries`` is used instead of the field above.
    """
    api_key: Optional[str] = None
    auth_token: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    default_headers: Dict[str, str] = field(default_factory=dict)
    retry_policy: Optional[RetryPolicy] = None

    def validate(self) -> None:
        """Raise AuthenticationError if no credential was provided."""
        if not self.api_key and not self.auth_token:
            raise AuthenticationError(
                "API key required. Pass api_key or auth_token to the client."
            )

    def get_retry_policy(self) -> RetryPolicy:
        if self.retry_policy is None:
            return RetryPolicy(max_retries=self.max_retries)
        return self.retry_policy

    def build_headers(self) -> Dict[str, str]:
        """Headers sent with every request."""
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "anthropic-version": API_VERSION,
        }
        if self.api_key:
            headers["x-api-key"] = self.api_key
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        headers.update(self.default_headers)
        return headers
