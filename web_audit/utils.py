"""
Hashing and masking helpers for sensitive values.

Everything the auditor prints or logs about a secret goes through this module:
- Short SHA-256 fingerprints so an auditor can tell "same token reused"
  without seeing the token
- Masked display form of an ``Authorization: Bearer`` header
- Truncated display form of long storage values

``extract_bearer_token`` is the only function here that returns a raw secret.
Its output is meant for the capture file, never for console or log output.
"""
import hashlib
from typing import Optional

FINGERPRINT_LENGTH = 12

BEARER_PREFIX = "bearer "
SHORT_TOKEN_LENGTH = 20
SHORT_TOKEN_PLACEHOLDER = "Bearer [short_token]"
MASK_HEAD = 12
MASK_TAIL = 8

DISPLAY_LIMIT = 50
DISPLAY_HEAD = 30
DISPLAY_TAIL = 15


def fingerprint(value: str) -> str:
    """
    Compute a short, deterministic, one-way fingerprint of a value.

    The fingerprint is the first 12 hex characters (48 bits) of the SHA-256
    digest of the UTF-8 encoded value. It is meant for human comparison in
    reports, not for security decisions.

    Args:
        value: Sensitive string to fingerprint

    Returns:
        str: 12 lowercase hex characters

    Example:
        >>> fingerprint("abc")
        'ba7816bf8f01'
    """
    if value is None:
        value = ""
    digest = hashlib.sha256(str(value).encode("utf-8", errors="surrogatepass"))
    return digest.hexdigest()[:FINGERPRINT_LENGTH]


def is_bearer_header(value: Optional[str]) -> bool:
    """Return True if an Authorization header value carries a Bearer credential."""
    if not value:
        return False
    return str(value).lower().startswith(BEARER_PREFIX)


def extract_bearer_token(value: Optional[str]) -> Optional[str]:
    """
    Return the raw token of a ``Bearer`` Authorization header.

    Args:
        value: Raw Authorization header value (may be None)

    Returns:
        str or None: Token with surrounding whitespace removed, or None when the
        header is absent or uses another scheme
    """
    if not is_bearer_header(value):
        return None
    return str(value)[len(BEARER_PREFIX):].strip()


def mask_bearer_header(value: Optional[str]) -> Optional[str]:
    """
    Build a display-safe form of a ``Bearer`` Authorization header.

    Tokens shorter than 20 characters are replaced by a fixed placeholder:
    showing a prefix and suffix of such a token would reveal most of it.
    Longer tokens keep their first 12 and last 8 characters only.

    Args:
        value: Raw Authorization header value (may be None)

    Returns:
        str or None: Masked header, or None when not a Bearer header

    Example:
        >>> mask_bearer_header("Bearer abc")
        'Bearer [short_token]'
        >>> mask_bearer_header("Bearer " + "a" * 12 + "SECRET" + "b" * 8)
        'Bearer aaaaaaaaaaaa...bbbbbbbb'
    """
    token = extract_bearer_token(value)
    if token is None:
        return None
    if len(token) < SHORT_TOKEN_LENGTH:
        return SHORT_TOKEN_PLACEHOLDER
    return f"Bearer {token[:MASK_HEAD]}...{token[-MASK_TAIL:]}"


def truncate_display(value: Optional[str], limit=DISPLAY_LIMIT, head=DISPLAY_HEAD, tail=DISPLAY_TAIL) -> str:
    """Shorten long values to ``head...tail`` for console output."""
    text = "" if value is None else str(value)
    if len(text) <= limit:
        return text
    return f"{text[:head]}...{text[-tail:]}"
