"""Core components."""

from .config import DEFAULT_CONFIG, OFFERS_CONFIG, STATS_CONFIG, RetrievalConfig
from .enums import ErrorKind, IntendedUse, RetrievalStatus
from .exceptions import (
    AuthenticationError,
    ConfigError,
    FetcherRegistrationError,
    FetchError,
    InvalidTokenError,
    PagewiseError,
    ProviderError,
    RateLimitError,
    RequestTimeoutError,
    TokenEncodingError,
    UnknownFetcherError,
    ValidationError,
)

__all__ = [
    "RetrievalConfig",
    "DEFAULT_CONFIG",
    "OFFERS_CONFIG",
    "STATS_CONFIG",
    "RetrievalStatus",
    "IntendedUse",
    "ErrorKind",
    "PagewiseError",
    "ConfigError",
    "FetchError",
    "ProviderError",
    "RateLimitError",
    "AuthenticationError",
    "RequestTimeoutError",
    "ValidationError",
    "InvalidTokenError",
    "TokenEncodingError",
    "FetcherRegistrationError",
    "UnknownFetcherError",
]
