"""
Browser-driven audit session using Playwright.

Drives a real Chromium instance through the observation phases and hands the
request stream to the audit recorder:

1. Frontend: open the local frontend and watch its traffic
2. Swagger (optional): open the Swagger UI and watch its traffic
3. ERP: log in, open the stock route, watch the authenticated traffic and
   inspect localStorage, sessionStorage and cookies

After every phase the recorded hits are summarized, matched against the target
endpoint, and the tenant/token pairs of target hits are appended to the
capture file.

Prerequisites:
    - playwright library installed (pip install playwright)
    - Playwright browsers installed (python -m playwright install chromium)
"""
import logging
import re
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from ..config import ERROR_SCREENSHOT, AuditSettings, RetryPolicy
from ..exceptions import BrowserError, LoginError, NavigationError
from ..report import format_storage_report, format_summary, format_target_hits, summarize
from .capture import CapturePersister, persist_hits
from .endpoint import EndpointMatcher
from .recorder import AuditRecorder
from .storage import StorageReport, classify_snapshot

logger = logging.getLogger(__name__)

FRONTEND_NAV_TIMEOUT_MS = 15000
LOGIN_SETTLE_MS = 2000

LOCAL_STORAGE_JS = """() => {
    const r = {};
    for (let i = 0; i < localStorage.length; i++) {
        const k = localStorage.key(i);
        r[k] = localStorage.getItem(k);
    }
    return r;
}"""

SESSION_STORAGE_JS = """() => {
    const r = {};
    for (let i = 0; i < sessionStorage.length; i++) {
        const k = sessionStorage.key(i);
        r[k] = sessionStorage.getItem(k);
    }
    return r;
}"""

USER_LABEL_RE = re.compile(r"username|usu[aá]rio|login|user", re.IGNORECASE)
PASS_LABEL_RE = re.compile(r"password|senha", re.IGNORECASE)
SUBMIT_NAME_RE = re.compile(r"login|entrar|acessar|sign in", re.IGNORECASE)


@dataclass
class PhaseResult:
    """Outcome of one observation phase."""

    label: str
    title: str
    hits: tuple = ()
    target_hits: list = field(default_factory=list)
    captured: int = 0
    error: Optional[str] = None


@dataclass
class AuditResult:
    """Outcome of one browser session."""

    phases: List[PhaseResult] = field(default_factory=list)
    storage: Optional[StorageReport] = None
    login_failed: bool = False

    @property
    def captured(self):
        return sum(p.captured for p in self.phases)

    def hits_by_phase(self):
        return {p.label: p.hits for p in self.phases}

    def target_hits(self):
        out = []
        for p in self.phases:
            out.extend(p.target_hits)
        return out


def _emit_lines(emit, lines):
    for line in lines:
        emit(line)


def navigate(page, url, timeout_ms, retry: RetryPolicy = RetryPolicy(), sleep: Optional[Callable[[int], None]] = None):
    """
    Open ``url`` with a fixed-delay retry policy.

    Args:
        page: Playwright page
        url: Destination URL
        timeout_ms: Per-attempt navigation timeout
        retry: Attempts and delay between them
        sleep: Called with the delay in ms between attempts; defaults to
            ``page.wait_for_timeout`` so request events keep flowing

    Raises:
        NavigationError: After the last failed attempt
    """
    if sleep is None:
        sleep = page.wait_for_timeout
    attempts = max(1, retry.max_attempts)
    last_error = None
    for attempt in range(1, attempts + 1):
        try:
            page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
            return
        except PlaywrightError as e:
            last_error = e
            logger.warning("Could not open %s (attempt %d/%d): %s", url, attempt, attempts, e)
            if attempt < attempts and retry.delay_ms > 0:
                sleep(retry.delay_ms)
    raise NavigationError(f"Could not open {url} after {attempts} attempt(s): {last_error}") from last_error


def login_url(erp_url):
    """Point an ERP URL at its ``#/login`` route."""
    if "#/login" in erp_url:
        return erp_url
    return re.sub(r"#.*$", "", erp_url) + "#/login"


def resolve_stock_url(erp_url, route):
    """
    Build the post-login URL.

    Absolute routes are used as-is; otherwise the route is appended as a hash
    route to the ERP base URL.
    """
    if route.startswith("http"):
        return route
    base = re.sub(r"#.*$", "", erp_url)
    return base + (route if route.startswith("#") else f"#{route}")


def _fill_first(locators, value, label):
    for loc in locators:
        try:
            if loc.count() > 0:
                logger.info("Found %s field", label)
                loc.first.fill(value)
                return True
        except PlaywrightError:
            logger.debug("Locator for %s failed, trying next", label, exc_info=True)
    return False


def login(page, settings: AuditSettings, sleep: Optional[Callable[[int], None]] = None):
    """
    Log in to the ERP by guessing the login form's fields.

    Raises:
        LoginError: Missing credentials, or a field/button could not be found
        NavigationError: The login page could not be opened
    """
    if not settings.erp_user or not settings.erp_password:
        raise LoginError("ERP credentials are not configured (set ERP_USER and ERP_PASS)")

    url = login_url(settings.erp_url)
    logger.info("Logging in to ERP: %s", url)
    navigate(page, url, settings.nav_timeout_ms, settings.retry, sleep=sleep)
    page.wait_for_timeout(LOGIN_SETTLE_MS)

    user_locators = [
        page.get_by_label(USER_LABEL_RE),
        page.locator('input[name="username"], input[name="user"], input[id*="user" i], input[id*="login" i]'),
        page.locator('input[placeholder*="username" i], input[placeholder*="usu" i], input[placeholder*="email" i]'),
        page.locator('input[type="email"]'),
    ]
    pass_locators = [
        page.get_by_label(PASS_LABEL_RE),
        page.locator('input[name="password"], input[id*="pass" i]'),
        page.locator('input[placeholder*="password" i], input[placeholder*="senha" i]'),
        page.locator('input[type="password"]'),
    ]
    if not _fill_first(user_locators, settings.erp_user, "user"):
        raise LoginError("Could not find the user input on the login page")
    if not _fill_first(pass_locators, settings.erp_password, "password"):
        raise LoginError("Could not find the password input on the login page")

    buttons = [
        page.get_by_role("button", name=SUBMIT_NAME_RE),
        page.locator('button[type="submit"]'),
        page.locator('input[type="submit"]'),
    ]
    for button in buttons:
        if button.count():
            button.first.click()
            break
    else:
        raise LoginError("Could not find the login button")

    logger.info("Waiting %dms for login to complete", settings.login_wait_ms)
    page.wait_for_timeout(settings.login_wait_ms)


def snapshot_storage(page):
    """
    Read localStorage, sessionStorage and cookies from the page.

    Returns:
        dict: ``localStorage`` and ``sessionStorage`` mappings and the
        ``cookies`` list of the page's browser context
    """
    return {
        "localStorage": page.evaluate(LOCAL_STORAGE_JS) or {},
        "sessionStorage": page.evaluate(SESSION_STORAGE_JS) or {},
        "cookies": page.context.cookies() or [],
    }


class AuditSession:
    """
    One browser session worth of observation phases.

    Attributes:
        settings (AuditSettings): Immutable audit settings
        matcher (EndpointMatcher): Target endpoint matcher
        persister (CapturePersister): Capture file writer
        emit (callable): Receives each console line of the phase reports
    """

    def __init__(self, settings, persister=None, emit=None):
        self.settings = settings
        self.matcher = EndpointMatcher(settings)
        self.persister = persister or CapturePersister(settings.output_file)
        self.emit = emit or logger.info

    def finish_phase(self, recorder, title, error=None):
        """Freeze a recorder's log, report it and capture target pairs."""
        recorder.detach()
        hits = recorder.hits
        _emit_lines(self.emit, format_summary(summarize(hits), title))
        target_hits = self.matcher.select(hits)
        _emit_lines(self.emit, format_target_hits(target_hits, self.settings.target_url))
        captured = persist_hits(self.persister, target_hits)
        return PhaseResult(
            label=recorder.label,
            title=title,
            hits=hits,
            target_hits=target_hits,
            captured=captured,
            error=error,
        )

    def observe_page(self, page, label, title, url, dwell_ms, extra_wait_ms=0):
        """Open ``url`` and record its traffic for ``dwell_ms``."""
        recorder = AuditRecorder(label, self.settings).attach(page)
        error = None
        try:
            navigate(page, url, FRONTEND_NAV_TIMEOUT_MS, RetryPolicy(max_attempts=1, delay_ms=0))
            logger.info("Observing %s traffic for %dms", label, dwell_ms)
            page.wait_for_timeout(dwell_ms)
            if extra_wait_ms > 0:
                logger.info("Interactive wait: %dms to use the app", extra_wait_ms)
                page.wait_for_timeout(extra_wait_ms)
        except (BrowserError, PlaywrightError) as e:
            error = str(e)
            logger.warning("Could not observe %s: %s", url, e)
        return self.finish_phase(recorder, title, error)

    def observe_erp(self, page, result):
        """Log in, open the stock route and record the authenticated traffic."""
        s = self.settings
        recorder = AuditRecorder("erp-all", s).attach(page)
        try:
            login(page, s)
        except (BrowserError, PlaywrightError) as e:
            logger.error("ERP login failed: %s", e)
            try:
                page.screenshot(path=ERROR_SCREENSHOT, full_page=True)
                logger.info("Screenshot saved to %s", ERROR_SCREENSHOT)
            except PlaywrightError:
                logger.debug("Screenshot failed", exc_info=True)
            result.login_failed = True
            result.phases.append(self.finish_phase(recorder, "ERP (login failed)", str(e)))
            return

        stock_url = resolve_stock_url(s.erp_url, s.erp_stock_route)
        try:
            logger.info("Opening ERP stock route: %s", stock_url)
            navigate(page, stock_url, s.nav_timeout_ms, s.retry)
        except (NavigationError, PlaywrightError) as e:
            logger.warning("Could not open the stock route, observing anyway: %s", e)

        error = None
        try:
            logger.info("Observing post-login traffic for %dms", s.observe_ms)
            page.wait_for_timeout(s.observe_ms)
        except (BrowserError, PlaywrightError) as e:
            error = str(e)
            logger.warning("ERP observation interrupted: %s", e)
        phase = self.finish_phase(recorder, "ERP post-login (all requests)", error)

        if error is None:
            try:
                result.storage = classify_snapshot(snapshot_storage(page))
                _emit_lines(self.emit, format_storage_report(result.storage))
            except PlaywrightError as e:
                logger.warning("Could not read browser storage: %s", e)

        result.phases.append(phase)

    def run(self, page) -> AuditResult:
        s = self.settings
        result = AuditResult()
        if s.frontend_url:
            result.phases.append(self.observe_page(
                page, "frontend", f"Frontend ({s.frontend_url})",
                s.frontend_url, s.frontend_observe_ms, s.wait_interactive_ms,
            ))
        if s.swagger_url and s.swagger_url.strip():
            result.phases.append(self.observe_page(
                page, "swagger", f"Swagger ({s.swagger_url})",
                s.swagger_url.strip(), s.swagger_observe_ms,
            ))
        if s.audit_erp:
            self.observe_erp(page, result)
        else:
            logger.info("AUDIT_ERP=false: skipping the ERP phase")
        return result


def run_session(settings: AuditSettings, playwright, persister=None, emit=None) -> AuditResult:
    """Launch Chromium, run all phases and close the browser."""
    browser = playwright.chromium.launch(headless=settings.headless)
    try:
        context = browser.new_context()
        page = context.new_page()
        return AuditSession(settings, persister=persister, emit=emit).run(page)
    finally:
        browser.close()


def run_audit(settings: AuditSettings, emit=None, iterations=None, sleep=time.sleep) -> List[AuditResult]:
    """
    Run the audit once, or repeatedly when ``repeat_interval_ms`` is set.

    Every repetition starts a fresh browser session with fresh recorders; only
    the capture file carries over.

    Args:
        settings: Audit settings
        emit: Console line sink (defaults to the module logger)
        iterations: Stop after this many sessions in repeat mode (None = until interrupted)
        sleep: Called with seconds between repetitions

    Returns:
        list of AuditResult, one per session
    """
    persister = CapturePersister(settings.output_file)
    results = []
    with sync_playwright() as p:
        while True:
            results.append(run_session(settings, p, persister=persister, emit=emit))
            if settings.repeat_interval_ms <= 0:
                break
            if iterations is not None and len(results) >= iterations:
                break
            logger.info("Next run in %dms", settings.repeat_interval_ms)
            sleep(settings.repeat_interval_ms / 1000)
    return results
