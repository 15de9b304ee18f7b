"""
Unit tests for fingerprinting and bearer masking.
"""

import re

import pytest

from web_audit.utils import (
    FINGERPRINT_LENGTH,
    SHORT_TOKEN_PLACEHOLDER,
    extract_bearer_token,
    fingerprint,
    is_bearer_header,
    mask_bearer_header,
    truncate_display,
)

LONG_TOKEN = "eyJhbGciOiJIUzI1NiJ9.MIDDLE-SECRET-PART.sig12345"


def test_fingerprint_is_deterministic_hex():
    """Same input, same 12-char lowercase hex output."""
    a = fingerprint("some-secret")
    b = fingerprint("some-secret")

    assert a == b
    assert len(a) == FINGERPRINT_LENGTH
    assert re.fullmatch(r"[0-9a-f]{12}", a)


def test_fingerprint_known_value():
    """Fingerprint is a SHA-256 prefix."""
    assert fingerprint("abc") == "ba7816bf8f01"


def test_fingerprint_differs_for_different_values():
    assert fingerprint("token-a") != fingerprint("token-b")


def test_fingerprint_handles_empty_and_none():
    assert len(fingerprint("")) == FINGERPRINT_LENGTH
    assert fingerprint(None) == fingerprint("")


@pytest.mark.parametrize("value", [None, "", "Basic dXNlcjpwYXNz", "Token abc", "Bearer"])
def test_non_bearer_values(value):
    """Absent or non-Bearer headers yield no mask and no token."""
    assert not is_bearer_header(value)
    assert mask_bearer_header(value) is None
    assert extract_bearer_token(value) is None


@pytest.mark.parametrize("prefix", ["Bearer ", "bearer ", "BEARER ", "BeArEr "])
def test_bearer_prefix_is_case_insensitive(prefix):
    assert extract_bearer_token(prefix + LONG_TOKEN) == LONG_TOKEN
    assert mask_bearer_header(prefix + LONG_TOKEN) is not None


def test_short_token_uses_placeholder():
    """Short tokens never leak any of their characters."""
    token = "abcXYZ123456789"  # 15 chars
    masked = mask_bearer_header(f"Bearer {token}")

    assert masked == SHORT_TOKEN_PLACEHOLDER
    assert token[:3] not in masked
    assert token[-3:] not in masked


def test_token_of_exactly_twenty_chars_is_masked():
    token = "A" * 12 + "B" * 8
    assert mask_bearer_header(f"Bearer {token}") == f"Bearer {'A' * 12}...{'B' * 8}"


def test_long_token_shows_head_and_tail_only():
    masked = mask_bearer_header(f"Bearer {LONG_TOKEN}")

    assert masked == f"Bearer {LONG_TOKEN[:12]}...{LONG_TOKEN[-8:]}"
    assert "MIDDLE-SECRET-PART" not in masked
    assert LONG_TOKEN not in masked


def test_extract_trims_whitespace():
    assert extract_bearer_token(f"Bearer   {LONG_TOKEN}  ") == LONG_TOKEN


def test_truncate_display():
    assert truncate_display("short") == "short"
    assert truncate_display("x" * 50) == "x" * 50
    value = "a" * 30 + "MIDDLE" * 10 + "z" * 15
    assert truncate_display(value) == "a" * 30 + "..." + "z" * 15
    assert truncate_display(None) == ""
