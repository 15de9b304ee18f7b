"""
Web Audit - passive auditing of browser traffic credentials.

This library provides:
- Bearer token and tenant header classification with masking and fingerprints
- Target endpoint matching (exact URL or case-insensitive hints)
- An append-only recorder for Playwright request events
- Heuristic classification of localStorage, sessionStorage and cookies
- An append-only capture file for tenant/token pairs of target requests

Quick Start:
    >>> from web_audit import AuditSettings, AuditRecorder, RequestEvent
    >>>
    >>> recorder = AuditRecorder("manual", AuditSettings())
    >>> recorder.observe(RequestEvent("POST", "http://localhost/api", {"x-tenantid": "t1"}))
    >>> recorder.hits[0].tenant_hash

For CLI usage:
    $ web-audit run --config web-audit.yaml
    $ web-audit captures ./bearer_tenant.txt
"""

from .__version__ import (
    __version__,
    __version_info__,
    __title__,
    __description__,
    __author__,
    __license__,
)


# Lazy imports so the classifiers work without Playwright installed
def __getattr__(name):
    """Lazy import for heavy dependencies."""
    if name in ["fingerprint", "mask_bearer_header", "extract_bearer_token"]:
        from . import utils
        return getattr(utils, name)

    elif name in ["AuditSettings", "RetryPolicy", "settings_from_env", "validate_settings"]:
        from . import config
        return getattr(config, name)

    elif name in ["classify_headers", "EndpointMatcher", "matches_target", "AuditRecorder",
                  "Hit", "RequestEvent", "classify_storage", "classify_cookies",
                  "classify_snapshot", "CapturePersister", "parse_captures", "persist_hits"]:
        from . import scanners
        return getattr(scanners, name)

    elif name in ["run_audit", "run_session", "AuditSession", "snapshot_storage"]:
        from .scanners import browser_scanner
        return getattr(browser_scanner, name)

    elif name in ["summarize", "build_report"]:
        from . import report
        return getattr(report, name)

    elif name in ["WebAuditError", "ConfigurationError", "ValidationError", "CaptureError",
                  "BrowserError", "NavigationError", "LoginError"]:
        from . import exceptions
        return getattr(exceptions, name)

    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = [
    # Version
    "__version__",
    "__version_info__",
    "__title__",
    "__description__",
    "__author__",
    "__license__",

    # Hashing / masking
    "fingerprint",
    "mask_bearer_header",
    "extract_bearer_token",

    # Settings
    "AuditSettings",
    "RetryPolicy",
    "settings_from_env",
    "validate_settings",

    # Core
    "classify_headers",
    "EndpointMatcher",
    "matches_target",
    "AuditRecorder",
    "Hit",
    "RequestEvent",
    "classify_storage",
    "classify_cookies",
    "classify_snapshot",
    "CapturePersister",
    "parse_captures",
    "persist_hits",

    # Browser
    "run_audit",
    "run_session",
    "AuditSession",
    "snapshot_storage",

    # Reporting
    "summarize",
    "build_report",

    # Exceptions
    "WebAuditError",
    "ConfigurationError",
    "ValidationError",
    "CaptureError",
    "BrowserError",
    "NavigationError",
    "LoginError",
]
