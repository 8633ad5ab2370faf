"""REST-backed fetchers."""

from .fetcher import RESTPageFetcher, ResponseLayout, encode_query
from .http_client import HTTPClient

__all__ = [
    "HTTPClient",
    "RESTPageFetcher",
    "ResponseLayout",
    "encode_query",
]
