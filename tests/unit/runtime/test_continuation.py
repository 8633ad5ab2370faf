"""Unit tests for the continuation token codec."""

from __future__ import annotations

import base64
import json

import pytest

from pagewise.core import InvalidTokenError, RetrievalStatus, TokenEncodingError
from pagewise.models import RetrievalResult
from pagewise.runtime.continuation import (
    TOKEN_VERSION,
    ContinuationState,
    decode_token,
    encode_token,
)


def make_state(**overrides) -> ContinuationState:
    sample = RetrievalResult(
        status=RetrievalStatus.SAMPLE,
        items=[{"id": 1}, {"id": 2}],
        sample_items=[{"id": 1}, {"id": 2}],
        total_items=40,
        total_pages=20,
        items_retrieved=2,
        pages_processed=1,
        request_count=1,
    )
    fields = {
        "fetcher_name": "offers",
        "params": {"region": "eu", "tags": ["a", "b"]},
        "sample_limit": 2,
        "sample": sample,
    }
    fields.update(overrides)
    return ContinuationState(**fields)


def encode_payload(payload) -> str:
    raw = json.dumps(payload).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


class TestRoundTrip:
    """Test encode/decode."""

    def test_round_trip(self):
        """Test decoding restores the state."""
        state = make_state()
        decoded = decode_token(encode_token(state))
        assert decoded.fetcher_name == "offers"
        assert decoded.params == {"region": "eu", "tags": ["a", "b"]}
        assert decoded.sample_limit == 2
        assert decoded.sample.items == [{"id": 1}, {"id": 2}]
        assert decoded.sample.total_items == 40
        assert decoded.version == TOKEN_VERSION

    def test_token_is_url_safe(self):
        """Test tokens carry no padding or URL-unsafe characters."""
        token = encode_token(make_state(params={"q": "??>>" * 20}))
        assert "=" not in token
        assert "+" not in token and "/" not in token


class TestEncodeErrors:
    """Test unserializable state."""

    def test_unserializable_params(self):
        with pytest.raises(TokenEncodingError):
            encode_token(make_state(params={"handle": object()}))


class TestDecodeErrors:
    """Test token rejection."""

    @pytest.mark.parametrize("token", ["", "   ", "%%%not-base64%%%", "aGVsbG8"])
    def test_garbage(self, token):
        """Test empty, non-base64 and non-JSON tokens."""
        with pytest.raises(InvalidTokenError):
            decode_token(token)

    def test_not_an_object(self):
        with pytest.raises(InvalidTokenError, match="not an object"):
            decode_token(encode_payload([1, 2, 3]))

    def test_wrong_version(self):
        payload = make_state().model_dump(mode="json")
        payload["version"] = TOKEN_VERSION + 1
        with pytest.raises(InvalidTokenError, match="version"):
            decode_token(encode_payload(payload))

    def test_missing_fields(self):
        with pytest.raises(InvalidTokenError, match="invalid structure"):
            decode_token(encode_payload({"version": TOKEN_VERSION, "fetcher_name": "offers"}))

    def test_unexpected_fields(self):
        payload = make_state().model_dump(mode="json")
        payload["cursor"] = "abc"
        with pytest.raises(InvalidTokenError, match="invalid structure"):
            decode_token(encode_payload(payload))

    def test_error_sample_rejected(self):
        payload = make_state().model_dump(mode="json")
        payload["sample"]["status"] = "error"
        with pytest.raises(InvalidTokenError, match="usable sample"):
            decode_token(encode_payload(payload))
