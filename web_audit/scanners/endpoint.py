"""
Target endpoint matching.

A URL refers to the audited API operation when it equals the configured target
exactly or contains one of the configured hints (case-insensitive). Hint
matching over-matches on purpose: the same operation is often reached through
other hosts, paths or query strings while exploring an application, and a
missed call is worse than an extra one in the report.
"""
from typing import Iterable, List, Optional, Sequence


def matches_target(url: Optional[str], target_url: Optional[str], hints: Iterable[str] = ()) -> bool:
    """
    Check whether ``url`` refers to the target endpoint.

    Args:
        url: Request URL
        target_url: Exact target URL
        hints: Substrings compared case-insensitively; empty hints are ignored

    Returns:
        bool
    """
    if not url:
        return False
    if target_url and url == target_url:
        return True
    lower = url.lower()
    return any(hint and str(hint).lower() in lower for hint in hints)


class EndpointMatcher:
    """Endpoint matcher bound to the immutable audit settings."""

    def __init__(self, settings):
        self.target_url = settings.target_url
        self.hints = tuple(settings.target_hints)
        self.methods = tuple(m.upper() for m in settings.target_methods)

    def __call__(self, url):
        return matches_target(url, self.target_url, self.hints)

    def is_exact(self, url):
        return bool(url) and url == self.target_url

    def select(self, hits, methods: Optional[Sequence[str]] = None) -> List:
        """
        Return the hits that hit the target endpoint with a target method.

        Args:
            hits: Iterable of Hit records
            methods: Override of the configured methods; an empty sequence
                disables method filtering

        Returns:
            list: Matching hits in log order
        """
        if methods is None:
            methods = self.methods
        wanted = {m.upper() for m in methods}
        return [
            h for h in hits
            if (not wanted or (h.method or "").upper() in wanted) and self(h.url)
        ]
