"""Continuation token codec.

A token is URL-safe base64 (padding stripped) over compact JSON of a
ContinuationState: the fetcher name, the caller's parameters, the page size
used for the sample and the sample result. It is self-contained, so a caller can store it and resume later in
the same deployment; tokens are only guaranteed to decode with the library
version that produced them.
"""

from __future__ import annotations

import base64
import binascii
import json
from datetime import UTC, datetime
from typing import Any

import pydantic
from pydantic import BaseModel, ConfigDict, Field
from pydantic_core import PydanticSerializationError

from ..core.enums import RetrievalStatus
from ..core.exceptions import InvalidTokenError, TokenEncodingError
from ..models.result import RetrievalResult
from .telemetry import log_token_rejected

TOKEN_VERSION = 1


class ContinuationState(BaseModel):
    """Everything needed to resume retrieval after the sample."""

    version: int = TOKEN_VERSION
    fetcher_name: str = Field(..., min_length=1)
    params: dict[str, Any] = Field(default_factory=dict)
    sample_limit: int = Field(..., ge=1)
    sample: RetrievalResult
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = ConfigDict(frozen=True, extra="forbid")


def encode_token(state: ContinuationState) -> str:
    """Serialize a state into an opaque URL-safe string.

    Raises:
        TokenEncodingError: If params or sample items are not JSON-representable
    """
    try:
        payload = state.model_dump(mode="json")
        raw = json.dumps(payload, separators=(",", ":"), allow_nan=False)
    except (PydanticSerializationError, TypeError, ValueError) as e:
        raise TokenEncodingError(f"Retrieval state is not serializable: {e}") from e
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")


def decode_token(token: str) -> ContinuationState:
    """Parse a token produced by encode_token.

    Raises:
        InvalidTokenError: If the token is not valid base64, not JSON, has the
            wrong shape, or was produced by an incompatible version
    """
    if not isinstance(token, str) or not token.strip():
        raise _reject("Continuation token is empty")

    text = token.strip()
    padded = text + "=" * (-len(text) % 4)
    try:
        raw = base64.b64decode(padded, altchars=b"-_", validate=True)
        payload = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise _reject(f"Continuation token is not decodable: {e}") from e

    if not isinstance(payload, dict):
        raise _reject("Continuation token payload is not an object")
    if payload.get("version") != TOKEN_VERSION:
        raise _reject(f"Unsupported continuation token version {payload.get('version')!r}")

    try:
        state = ContinuationState.model_validate(payload)
    except pydantic.ValidationError as e:
        raise _reject(
            f"Continuation token has an invalid structure ({e.error_count()} error(s))"
        ) from e

    if state.sample.status is RetrievalStatus.ERROR:
        raise _reject("Continuation token does not hold a usable sample")
    return state


def _reject(reason: str) -> InvalidTokenError:
    log_token_rejected(reason=reason)
    return InvalidTokenError(reason)
