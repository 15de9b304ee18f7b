"""
Request header classification.

Extracts the bearer credential and tenant identifier carried by a single
request and turns them into the display-safe fields stored on a Hit.
"""
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from ..config import TENANT_HEADER_PRIORITY
from ..utils import extract_bearer_token, fingerprint, is_bearer_header, mask_bearer_header


@dataclass(frozen=True)
class HeaderClassification:
    """Bearer/tenant fields of one request, before it is placed in a log."""

    has_bearer: bool = False
    bearer_masked: Optional[str] = None
    bearer_hash: Optional[str] = None
    bearer_token: Optional[str] = None
    tenant_id: Optional[str] = None
    tenant_hash: Optional[str] = None
    origin: Optional[str] = None
    referer: Optional[str] = None


def normalize_headers(headers) -> dict:
    """
    Lower-case header names.

    Accepts any mapping (or None). Non-string values are converted with
    ``str``; ``None`` values are dropped.
    """
    if not headers:
        return {}
    try:
        items = headers.items()
    except AttributeError:
        return {}
    out = {}
    for name, value in items:
        if name is None or value is None:
            continue
        out[str(name).lower()] = str(value)
    return out


def pick_tenant(headers: Mapping[str, str], priority: Sequence[str] = TENANT_HEADER_PRIORITY) -> Optional[str]:
    """Return the first present, non-empty tenant header value by priority."""
    for name in priority:
        value = headers.get(name.lower())
        if value:
            return value
    return None


def classify_headers(headers, tenant_headers: Sequence[str] = TENANT_HEADER_PRIORITY) -> HeaderClassification:
    """
    Classify one request's headers.

    The bearer fields are either all set or all None; a present
    ``Authorization`` header that uses another scheme counts as no bearer.
    The bearer fingerprint covers the full raw header value (scheme included),
    so it matches fingerprints computed from copied ``Authorization`` lines.

    Args:
        headers: Mapping of header names to values (any case, may be None)
        tenant_headers: Tenant header names in priority order

    Returns:
        HeaderClassification
    """
    normalized = normalize_headers(headers)
    auth = normalized.get("authorization")
    tenant = pick_tenant(normalized, tenant_headers)

    bearer = {}
    if is_bearer_header(auth):
        bearer = {
            "has_bearer": True,
            "bearer_masked": mask_bearer_header(auth),
            "bearer_hash": fingerprint(auth),
            "bearer_token": extract_bearer_token(auth),
        }

    return HeaderClassification(
        tenant_id=tenant,
        tenant_hash=fingerprint(tenant) if tenant else None,
        origin=normalized.get("origin") or None,
        referer=normalized.get("referer") or None,
        **bearer,
    )
