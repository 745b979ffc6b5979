"""Provider error hierarchy.

All provider errors inherit from BenchError for consistent exception handling.
Only MissingCredentialError is fatal to a session; the rest abort a single turn.
"""

from __future__ import annotations

from toolbench.exceptions import BenchError, ConfigError

_RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


class ProviderError(BenchError):
    """Base for all provider call errors."""


class MissingCredentialError(ProviderError, ConfigError):
    """No API key configured for the provider.

    Raised before any network attempt.
    """

    def __init__(self, provider: str, env_var: str | None = None) -> None:
        self.provider = provider
        self.env_var = env_var
        message = f"No API key configured for provider '{provider}'"
        if env_var:
            message += f" (set {env_var})"
        super().__init__(message)


class EmptyHistoryError(ProviderError):
    """A provider call was attempted with an empty conversation."""


class ProviderNetworkError(ProviderError):
    """Connection failure or timeout talking to the provider."""


class ProviderHTTPStatusError(ProviderError):
    """Provider answered with a non-2xx status.

    Attributes:
        status_code: HTTP status code of the response.
        body: Response body text (possibly truncated).
    """

    def __init__(self, status_code: int, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        message = f"HTTP {status_code}"
        if body:
            message += f" - {body}"
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        """True for rate limiting and transient server errors."""
        return self.status_code in _RETRYABLE_STATUS_CODES


class ProviderMalformedError(ProviderError):
    """Response body does not match the provider's expected schema."""
