"""Pagewise - progressive retrieval of paginated analytics datasets."""

from .core import (
    DEFAULT_CONFIG,
    OFFERS_CONFIG,
    STATS_CONFIG,
    AuthenticationError,
    ConfigError,
    ErrorKind,
    FetcherRegistrationError,
    FetchError,
    IntendedUse,
    InvalidTokenError,
    PagewiseError,
    ProviderError,
    RateLimitError,
    RequestTimeoutError,
    RetrievalConfig,
    RetrievalStatus,
    TokenEncodingError,
    UnknownFetcherError,
    ValidationError,
)
from .models import ProgressUpdate, RetrievalPage, RetrievalRequest, RetrievalResult
from .rest import HTTPClient, RESTPageFetcher, ResponseLayout
from .runtime import (
    CallableFetcher,
    ContinuationState,
    FetcherRegistry,
    PageFetcher,
    RequestMetrics,
    RetrievalEngine,
    decode_token,
    encode_token,
    fetcher,
)

__version__ = "0.1.0"

__all__ = [
    # Engine
    "RetrievalEngine",
    "RetrievalConfig",
    "DEFAULT_CONFIG",
    "OFFERS_CONFIG",
    "STATS_CONFIG",
    # Fetchers
    "PageFetcher",
    "CallableFetcher",
    "FetcherRegistry",
    "fetcher",
    "HTTPClient",
    "RESTPageFetcher",
    "ResponseLayout",
    # Models
    "RetrievalRequest",
    "RetrievalPage",
    "RetrievalResult",
    "ProgressUpdate",
    "RequestMetrics",
    # Tokens
    "ContinuationState",
    "encode_token",
    "decode_token",
    # Enums
    "RetrievalStatus",
    "IntendedUse",
    "ErrorKind",
    # Exceptions
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
