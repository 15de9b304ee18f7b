"""
Client-side storage classification.

Flags localStorage, sessionStorage and cookie entries that look like
credentials or tenant identifiers. The checks are shape heuristics only:
a "JWT" is any long value with exactly three dot-separated segments and a
"GUID" is any 8-4-4-4-12 hex string. Nothing is decoded or verified.
"""
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from ..utils import fingerprint, truncate_display

TOKEN_KEY_HINTS = ("token", "jwt", "auth")
TENANT_KEY_HINTS = ("tenant", "organization")
JWT_MIN_LENGTH = 100

GUID_RE = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)

SOURCES = ("localStorage", "sessionStorage", "cookie")


def _text(value) -> str:
    return "" if value is None else str(value)


def looks_like_token(key, value) -> bool:
    """Key mentions token/jwt/auth, or the value has the shape of a JWT."""
    name = _text(key).lower()
    if any(hint in name for hint in TOKEN_KEY_HINTS):
        return True
    text = _text(value)
    return len(text) > JWT_MIN_LENGTH and len(text.split(".")) == 3


def looks_like_tenant(key, value) -> bool:
    """Key mentions tenant/organization, or the whole value is a GUID."""
    name = _text(key).lower()
    if any(hint in name for hint in TENANT_KEY_HINTS):
        return True
    return GUID_RE.fullmatch(_text(value)) is not None


@dataclass(frozen=True)
class StorageEntry:
    """One classified storage item or cookie."""

    source: str
    key: str
    value: str
    domain: Optional[str] = None
    http_only: Optional[bool] = None
    secure: Optional[bool] = None
    same_site: Optional[str] = None

    @property
    def looks_like_token(self):
        return looks_like_token(self.key, self.value)

    @property
    def looks_like_tenant(self):
        return looks_like_tenant(self.key, self.value)

    @property
    def value_hash(self):
        return fingerprint(self.value)

    @property
    def display_value(self):
        return truncate_display(self.value)

    @property
    def length(self):
        return len(self.value)

    @property
    def is_cookie(self):
        return self.source == "cookie"

    def to_dict(self) -> Dict[str, Any]:
        """Report form: display value and fingerprint, never the full value."""
        data = {
            "source": self.source,
            "key": self.key,
            "display_value": self.display_value,
            "value_hash": self.value_hash,
            "length": self.length,
            "looks_like_token": self.looks_like_token,
            "looks_like_tenant": self.looks_like_tenant,
        }
        if self.is_cookie:
            data.update({
                "domain": self.domain,
                "http_only": self.http_only,
                "secure": self.secure,
                "same_site": self.same_site,
            })
        return data


def classify_storage(items: Optional[Mapping[str, Any]], source: str = "localStorage") -> Tuple[StorageEntry, ...]:
    """
    Classify a key/value storage snapshot.

    Args:
        items: Mapping of storage keys to values (None behaves like empty)
        source: "localStorage" or "sessionStorage"

    Returns:
        tuple of StorageEntry, one per item, in input order
    """
    if not items:
        return ()
    return tuple(
        StorageEntry(source=source, key=_text(key), value=_text(value))
        for key, value in items.items()
    )


def classify_cookies(cookies: Optional[Iterable[Mapping[str, Any]]]) -> Tuple[StorageEntry, ...]:
    """
    Classify cookie records as returned by ``BrowserContext.cookies()``.

    Records are dicts with ``name``, ``value``, ``domain``, ``httpOnly``,
    ``secure`` and ``sameSite``; missing attributes become None.
    """
    if not cookies:
        return ()
    entries = []
    for cookie in cookies:
        entries.append(StorageEntry(
            source="cookie",
            key=_text(cookie.get("name")),
            value=_text(cookie.get("value")),
            domain=cookie.get("domain"),
            http_only=cookie.get("httpOnly"),
            secure=cookie.get("secure"),
            same_site=cookie.get("sameSite"),
        ))
    return tuple(entries)


@dataclass(frozen=True)
class StorageReport:
    """
    Classified storage snapshot.

    A section left as None was never checked; an empty tuple was checked and
    found empty.
    """

    local_storage: Optional[Tuple[StorageEntry, ...]] = None
    session_storage: Optional[Tuple[StorageEntry, ...]] = None
    cookies: Optional[Tuple[StorageEntry, ...]] = None

    def sections(self):
        return (
            ("localStorage", self.local_storage),
            ("sessionStorage", self.session_storage),
            ("cookies", self.cookies),
        )

    def entries(self):
        out = []
        for _, section in self.sections():
            out.extend(section or ())
        return out

    def token_candidates(self):
        return [e for e in self.entries() if e.looks_like_token]

    def tenant_candidates(self):
        return [e for e in self.entries() if e.looks_like_tenant]

    def to_dict(self):
        return {
            name: None if section is None else [e.to_dict() for e in section]
            for name, section in self.sections()
        }


def classify_snapshot(snapshot: Mapping[str, Any]) -> StorageReport:
    """
    Classify a snapshot dict with ``localStorage``, ``sessionStorage`` and
    ``cookies`` keys. Missing keys stay unchecked (None) in the report.
    """
    def section(key, classify):
        if key not in snapshot or snapshot[key] is None:
            return None
        return classify(snapshot[key])

    return StorageReport(
        local_storage=section("localStorage", lambda v: classify_storage(v, "localStorage")),
        session_storage=section("sessionStorage", lambda v: classify_storage(v, "sessionStorage")),
        cookies=section("cookies", classify_cookies),
    )
