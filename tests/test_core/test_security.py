"""Tests for bearer-token verification."""

import pytest

from src.core.security import extract_bearer_token, verify_bearer_token
from src.domain.errors import AuthFailed


class TestExtractBearerToken:
    def test_extracts_token(self):
        assert extract_bearer_token("Bearer abc.def") == "abc.def"

    @pytest.mark.parametrize("header", [None, "", "Basic abc", "bearer abc", "Bearer"])
    def test_rejects_missing_or_malformed(self, header):
        with pytest.raises(AuthFailed, match="Missing or invalid API key"):
            extract_bearer_token(header)


class TestVerifyBearerToken:
    def test_accepts_exact_match(self):
        verify_bearer_token("Bearer s3cret", "s3cret")

    def test_rejects_wrong_token(self):
        with pytest.raises(AuthFailed, match="Invalid API key"):
            verify_bearer_token("Bearer nope", "s3cret")

    def test_match_is_exact(self):
        with pytest.raises(AuthFailed):
            verify_bearer_token("Bearer s3cret ", "s3cret")

    def test_rejects_everything_when_unconfigured(self):
        with pytest.raises(AuthFailed, match="Invalid API key"):
            verify_bearer_token("Bearer ", "")

    def test_missing_header_checked_first(self):
        with pytest.raises(AuthFailed, match="Missing"):
            verify_bearer_token(None, "s3cret")
