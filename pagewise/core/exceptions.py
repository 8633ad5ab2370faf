"""Custom exception hierarchy."""

from __future__ import annotations


class PagewiseError(Exception):
    """Base exception for all library errors."""

    pass


class ConfigError(PagewiseError, ValueError):
    """Retrieval configuration violates an invariant."""

    pass


class FetchError(PagewiseError):
    """Transport-level failure raised by a fetcher."""

    pass


class ProviderError(FetchError):
    """Error returned by the remote API."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(ProviderError):
    """Remote rate limit exceeded."""

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        super().__init__(message, status_code=429)
        self.retry_after = retry_after


class AuthenticationError(ProviderError):
    """Credentials rejected by the remote API."""

    pass


class RequestTimeoutError(FetchError):
    """A single fetch attempt did not finish within the request timeout."""

    def __init__(self, message: str, timeout: float | None = None) -> None:
        super().__init__(message)
        self.timeout = timeout


class ValidationError(PagewiseError):
    """A fetcher returned a response that is not a valid page."""

    pass


class InvalidTokenError(PagewiseError):
    """Continuation token is malformed or from an incompatible version."""

    pass


class TokenEncodingError(PagewiseError):
    """Retrieval state could not be serialized into a continuation token."""

    pass


class FetcherRegistrationError(PagewiseError):
    """Fetcher could not be registered (e.g. duplicate name)."""

    pass


class UnknownFetcherError(PagewiseError, KeyError):
    """No fetcher is registered under the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"No fetcher registered under name '{name}'")
        self.name = name

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0])
