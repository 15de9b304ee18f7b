"""
Audit recorder for outgoing browser requests.

One ``AuditRecorder`` covers one observation phase. It subscribes to a
Playwright page's ``request`` event, classifies each request's headers and
appends a ``Hit`` to an append-only log in arrival order.

Playwright's sync API delivers events on the thread that is waiting on the
page (``page.goto`` / ``page.wait_for_timeout``), so ``observe`` always runs to
completion before the next event and needs no locking.
"""
import logging
import time
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from .endpoint import EndpointMatcher
from .headers import classify_headers

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestEvent:
    """Method, URL and headers of one outgoing request."""

    method: str
    url: str
    headers: Mapping[str, str]

    @classmethod
    def from_request(cls, request) -> "RequestEvent":
        """Adapt a Playwright ``Request``."""
        return cls(
            method=request.method or "",
            url=request.url or "",
            headers=dict(request.headers or {}),
        )


@dataclass(frozen=True)
class Hit:
    """One classified outgoing request."""

    offset_ms: int
    label: str
    method: str
    url: str
    has_bearer: bool
    bearer_masked: Optional[str]
    bearer_hash: Optional[str]
    bearer_token: Optional[str]
    tenant_id: Optional[str]
    tenant_hash: Optional[str]
    origin: Optional[str]
    referer: Optional[str]

    def to_dict(self, include_secret: bool = False) -> Dict[str, Any]:
        """JSON-safe representation; the raw token is dropped unless requested."""
        data = asdict(self)
        if not include_secret:
            data.pop("bearer_token")
        return data


class AuditRecorder:
    """
    Append-only log of classified requests for one observation phase.

    Attributes:
        label (str): Phase tag copied onto every Hit
        settings (AuditSettings): Target URL and tenant header priority
        only_target (bool): Drop events whose URL is not exactly the target URL

    Example:
        >>> recorder = AuditRecorder("erp-all", settings)
        >>> recorder.attach(page)
        >>> page.wait_for_timeout(12000)
        >>> recorder.detach()
        >>> len(recorder.hits)
    """

    def __init__(self, label, settings, only_target=False, clock: Callable[[], float] = time.monotonic):
        self.label = label
        self.settings = settings
        self.only_target = only_target
        self.matcher = EndpointMatcher(settings)
        self._clock = clock
        self._start = clock()
        self._hits = []
        self._page = None
        self.dropped = 0

    @property
    def hits(self):
        """Snapshot of the log in arrival order."""
        return tuple(self._hits)

    def __len__(self):
        return len(self._hits)

    def __iter__(self):
        return iter(tuple(self._hits))

    def observe(self, event: RequestEvent) -> Optional[Hit]:
        """
        Classify one request event and append it to the log.

        Returns:
            Hit or None: The appended hit, or None when the event was filtered
            out by ``only_target``
        """
        url = event.url or ""
        if self.only_target and not self.matcher.is_exact(url):
            self.dropped += 1
            return None

        offset = max(0, int((self._clock() - self._start) * 1000))
        # Never let the log go backwards even if the clock does
        if self._hits and offset < self._hits[-1].offset_ms:
            offset = self._hits[-1].offset_ms

        info = classify_headers(event.headers, self.settings.tenant_headers)
        hit = Hit(
            offset_ms=offset,
            label=self.label,
            method=event.method or "",
            url=url,
            has_bearer=info.has_bearer,
            bearer_masked=info.bearer_masked,
            bearer_hash=info.bearer_hash,
            bearer_token=info.bearer_token,
            tenant_id=info.tenant_id,
            tenant_hash=info.tenant_hash,
            origin=info.origin,
            referer=info.referer,
        )
        self._hits.append(hit)
        logger.debug(
            "[%s] +%dms %s %s bearer=%s tenant=%s",
            self.label, offset, hit.method, url,
            hit.bearer_hash or "-", hit.tenant_hash or "-",
        )
        return hit

    def _on_request(self, request):
        self.observe(RequestEvent.from_request(request))

    def attach(self, page):
        """Start receiving ``request`` events from a Playwright page."""
        if self._page is not None:
            self.detach()
        page.on("request", self._on_request)
        self._page = page
        return self

    def detach(self):
        """Stop receiving events; the log is frozen from here on."""
        if self._page is None:
            return
        try:
            self._page.remove_listener("request", self._on_request)
        except Exception:
            # Page or browser already closed
            logger.debug("Could not detach recorder %s", self.label, exc_info=True)
        self._page = None
