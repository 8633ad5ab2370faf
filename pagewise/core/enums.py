"""Core enumerations shared by the retrieval engine and its results.

Architecture:
    String enums so values serialize directly into results, logs and
    continuation tokens without custom encoders.

Key Types:
    - RetrievalStatus: Outcome of a retrieve/resume call
    - IntendedUse: What the caller plans to do with the data
    - ErrorKind: Machine-readable failure category attached to results
"""

from enum import Enum


class RetrievalStatus(str, Enum):
    """Status of a RetrievalResult at a decision point."""

    SAMPLE = "sample"
    COMPLETE = "complete"
    ERROR = "error"
    CONFIRMATION_REQUIRED = "confirmation_required"

    def __str__(self) -> str:
        """String representation returns the value."""
        return self.value


class IntendedUse(str, Enum):
    """Caller intent, used by the decision policy.

    EXPLORE and MONITOR can be satisfied by a sample. ANALYZE and EXPORT
    always need the complete dataset.
    """

    EXPLORE = "explore"
    ANALYZE = "analyze"
    EXPORT = "export"
    MONITOR = "monitor"

    def __str__(self) -> str:
        """String representation returns the value."""
        return self.value

    @property
    def requires_completeness(self) -> bool:
        """Whether this intent can never be satisfied by a sample."""
        return self in (IntendedUse.ANALYZE, IntendedUse.EXPORT)

    @classmethod
    def from_str(cls, value: "str | IntendedUse") -> "IntendedUse":
        """Parse an intent, accepting enum members and case-insensitive strings.

        Raises:
            ValueError: If value is not a known intent
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(member.value for member in cls)
            raise ValueError(f"Unknown intended use {value!r} (expected one of: {valid})") from None


class ErrorKind(str, Enum):
    """Failure category recorded on error and partial results."""

    SAMPLE_FETCH_FAILURE = "sample_fetch_failure"
    PAGE_FETCH_FAILURE = "page_fetch_failure"
    ABORT_ERROR_RATE_EXCEEDED = "abort_error_rate_exceeded"
    INVALID_CONTINUATION_TOKEN = "invalid_continuation_token"
    UNKNOWN_FETCHER = "unknown_fetcher"

    def __str__(self) -> str:
        """String representation returns the value."""
        return self.value
