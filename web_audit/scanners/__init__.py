"""
Traffic and storage scanners.

Provides:
- Header classification (bearer token, tenant id)
- Target endpoint matching
- Audit recorder for browser request events
- Client-side storage classification
- Capture file persistence

The Playwright-driven session lives in ``browser_scanner`` and is imported on
demand so the classifiers can be used without a browser installed.
"""

from .headers import HeaderClassification, classify_headers, pick_tenant
from .endpoint import EndpointMatcher, matches_target
from .recorder import AuditRecorder, Hit, RequestEvent
from .storage import StorageEntry, StorageReport, classify_cookies, classify_snapshot, classify_storage
from .capture import CapturedPair, CapturePersister, parse_captures, persist_hits

__all__ = [
    'HeaderClassification',
    'classify_headers',
    'pick_tenant',
    'EndpointMatcher',
    'matches_target',
    'AuditRecorder',
    'Hit',
    'RequestEvent',
    'StorageEntry',
    'StorageReport',
    'classify_cookies',
    'classify_snapshot',
    'classify_storage',
    'CapturedPair',
    'CapturePersister',
    'parse_captures',
    'persist_hits',
]
