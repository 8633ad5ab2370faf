"""Data models for requests, pages, progress and results.

Architecture:
    Request, page and result types are Pydantic v2 models frozen after
    construction, so a result handed to the caller cannot change under it.
    ProgressUpdate is a plain frozen dataclass because it never crosses a
    serialization boundary.

Model Categories:
    - Paging: RetrievalRequest, RetrievalPage
    - Outcome: RetrievalResult
    - Events: ProgressUpdate
"""

from .page import RetrievalPage, RetrievalRequest
from .progress import ProgressUpdate
from .result import RetrievalResult

__all__ = [
    "RetrievalRequest",
    "RetrievalPage",
    "RetrievalResult",
    "ProgressUpdate",
]
