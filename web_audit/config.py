"""
Audit settings and their defaults.

Settings are resolved once at startup into an immutable ``AuditSettings``
value which is then passed to the recorder, the endpoint matcher and the
browser orchestration. Resolution order (later wins):

1. Defaults in this module
2. YAML configuration file (see ``web_audit.cli.config``)
3. Environment variables (``ENV_VARS`` below)
4. Command-line flags
"""
import logging
import os
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Mapping, Optional, Tuple

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# -------- TARGET ENDPOINT --------

DEFAULT_TARGET_API = "http://localhost:5214/api/InventoryStock/GetInventoryStockSummary"

# Case-insensitive substring hints. "GetInventoryStock" already covers the
# trailing-slash, query-string and lower-case variants of the summary route.
DEFAULT_TARGET_HINTS = (
    "GetInventoryStockSummary",
    "GetInventoryStock",
)

DEFAULT_TARGET_METHODS = ("POST",)

# -------- HEADERS --------

# First present, non-empty header wins
TENANT_HEADER_PRIORITY = (
    "x-tenantid",
    "x-tenant-id",
    "tenantid",
    "tenant_id",
)

# -------- ORCHESTRATION --------

DEFAULT_OUTPUT_FILE = "./bearer_tenant.txt"
DEFAULT_FRONTEND_URL = "http://localhost:4200"
DEFAULT_ERP_URL = "https://erp.dev.inovepic.dev/#/login"
DEFAULT_STOCK_ROUTE = "#/stock"
ERROR_SCREENSHOT = "erp-error.png"


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed-delay retry policy for page navigation."""

    max_attempts: int = 2
    delay_ms: int = 1500


@dataclass(frozen=True)
class AuditSettings:
    """
    Immutable audit configuration.

    Attributes:
        target_url: Exact URL of the API operation under audit
        target_hints: Case-insensitive substrings that also identify the target
        target_methods: HTTP methods considered when selecting target hits
        tenant_headers: Tenant header names in priority order (lower-case)
        output_file: Append-only capture file for tenant/token pairs
        headless: Launch the browser without a window
        frontend_url: Page observed in the first phase (empty to skip)
        frontend_observe_ms: Dwell time on the frontend page
        wait_interactive_ms: Extra dwell time for manual interaction
        swagger_url: Optional Swagger UI observed in its own phase
        swagger_observe_ms: Dwell time on the Swagger page
        audit_erp: Run the authenticated ERP phase
        erp_url: ERP login page
        erp_user, erp_password: ERP credentials
        erp_stock_route: Route (hash or absolute URL) opened after login
        nav_timeout_ms: Navigation timeout for ERP pages
        login_wait_ms: Wait after submitting the login form
        observe_ms: Post-login observation window
        retry: Navigation retry policy
        repeat_interval_ms: Delay between repeated runs (0 runs once)
    """

    target_url: str = DEFAULT_TARGET_API
    target_hints: Tuple[str, ...] = DEFAULT_TARGET_HINTS
    target_methods: Tuple[str, ...] = DEFAULT_TARGET_METHODS
    tenant_headers: Tuple[str, ...] = TENANT_HEADER_PRIORITY
    output_file: str = DEFAULT_OUTPUT_FILE
    headless: bool = True
    frontend_url: str = DEFAULT_FRONTEND_URL
    frontend_observe_ms: int = 20000
    wait_interactive_ms: int = 0
    swagger_url: str = ""
    swagger_observe_ms: int = 6000
    audit_erp: bool = True
    erp_url: str = DEFAULT_ERP_URL
    erp_user: str = ""
    erp_password: str = field(default="", repr=False)
    erp_stock_route: str = DEFAULT_STOCK_ROUTE
    nav_timeout_ms: int = 60000
    login_wait_ms: int = 4000
    observe_ms: int = 12000
    retry: RetryPolicy = RetryPolicy()
    repeat_interval_ms: int = 0


# Environment variable -> settings field
ENV_VARS = {
    "TARGET_API": "target_url",
    "TARGET_API_HINTS": "target_hints",
    "TARGET_METHODS": "target_methods",
    "TENANT_HEADERS": "tenant_headers",
    "OUTPUT_FILE": "output_file",
    "HEADLESS": "headless",
    "FRONTEND_URL": "frontend_url",
    "FRONTEND_OBSERVE_MS": "frontend_observe_ms",
    "WAIT_INTERACTIVE_MS": "wait_interactive_ms",
    "SWAGGER_URL": "swagger_url",
    "SWAGGER_OBSERVE_MS": "swagger_observe_ms",
    "AUDIT_ERP": "audit_erp",
    "ERP_URL": "erp_url",
    "ERP_USER": "erp_user",
    "ERP_PASS": "erp_password",
    "ERP_STOCK_ROUTE": "erp_stock_route",
    "TIMEOUT_NAV_ERP": "nav_timeout_ms",
    "TIMEOUT_LOGIN": "login_wait_ms",
    "TIMEOUT_OBSERVE": "observe_ms",
    "NAV_RETRY_ATTEMPTS": "retry.max_attempts",
    "NAV_RETRY_DELAY_MS": "retry.delay_ms",
    "REPEAT_INTERVAL_MS": "repeat_interval_ms",
}

_TUPLE_FIELDS = {"target_hints", "target_methods", "tenant_headers"}
_BOOL_FIELDS = {"headless", "audit_erp"}
_INT_FIELDS = {
    "frontend_observe_ms", "wait_interactive_ms", "swagger_observe_ms",
    "nav_timeout_ms", "login_wait_ms", "observe_ms", "repeat_interval_ms",
    "retry.max_attempts", "retry.delay_ms",
}


def _split_list(value):
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = str(value).split(",")
    return tuple(str(item).strip() for item in items if str(item).strip())


def _parse_bool(name, value):
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    # Any value other than an explicit "false" keeps the feature on
    if name == "headless":
        return text != "false"
    return text == "true"


def _coerce(name: str, value: Any, default: Any) -> Any:
    """Convert a raw YAML/env value into the type of the settings field."""
    if name in _TUPLE_FIELDS:
        items = _split_list(value)
        if name == "tenant_headers":
            items = tuple(item.lower() for item in items)
        elif name == "target_methods":
            items = tuple(item.upper() for item in items)
        return items or default
    if name in _BOOL_FIELDS:
        return _parse_bool(name, value)
    if name in _INT_FIELDS:
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring non-numeric value %r for %s (using %s)", value, name, default)
            return default
    return "" if value is None else str(value)


def apply_overrides(settings: AuditSettings, overrides: Mapping[str, Any]) -> AuditSettings:
    """
    Return a copy of ``settings`` with field overrides applied.

    Keys are settings field names; ``retry.max_attempts`` and
    ``retry.delay_ms`` address the nested retry policy. ``None`` values are
    skipped so unset CLI flags do not clobber lower layers. Unknown keys
    raise ``ConfigurationError``.
    """
    known = {f.name for f in fields(AuditSettings)}
    top = {}
    retry = {}
    for key, value in overrides.items():
        if value is None:
            continue
        if key.startswith("retry."):
            sub = key.split(".", 1)[1]
            if sub not in ("max_attempts", "delay_ms"):
                raise ConfigurationError(f"Unknown setting: {key}")
            retry[sub] = _coerce(key, value, getattr(settings.retry, sub))
        elif key in known and key != "retry":
            top[key] = _coerce(key, value, getattr(settings, key))
        else:
            raise ConfigurationError(f"Unknown setting: {key}")
    if retry:
        top["retry"] = replace(settings.retry, **retry)
    return replace(settings, **top)


def settings_from_env(environ: Optional[Mapping[str, str]] = None, base: Optional[AuditSettings] = None) -> AuditSettings:
    """
    Overlay environment variables onto ``base`` (defaults when omitted).

    Empty variables are treated as unset, except ``SWAGGER_URL`` and
    ``FRONTEND_URL`` where an empty value disables the phase.
    """
    if environ is None:
        environ = os.environ
    if base is None:
        base = AuditSettings()
    overrides = {}
    for var, name in ENV_VARS.items():
        if var not in environ:
            continue
        value = environ[var]
        if value == "" and name not in ("swagger_url", "frontend_url"):
            continue
        overrides[name] = value
    return apply_overrides(base, overrides)


def validate_settings(settings: AuditSettings) -> AuditSettings:
    """Raise ``ConfigurationError`` if settings cannot drive an audit."""
    if not settings.target_url and not settings.target_hints:
        raise ConfigurationError("A target URL or at least one target hint is required")
    for name in _INT_FIELDS:
        if name.startswith("retry."):
            value = getattr(settings.retry, name.split(".", 1)[1])
        else:
            value = getattr(settings, name)
        if value < 0:
            raise ConfigurationError(f"{name} must not be negative (got {value})")
    if settings.retry.max_attempts < 1:
        raise ConfigurationError("retry.max_attempts must be at least 1")
    if not settings.output_file:
        raise ConfigurationError("output_file must not be empty")
    return settings


def settings_to_dict(settings: AuditSettings) -> Dict[str, Any]:
    """Flatten settings to plain types (password omitted) for reports and YAML."""
    out = {}
    for f in fields(AuditSettings):
        if f.name == "erp_password":
            continue
        value = getattr(settings, f.name)
        if f.name == "retry":
            out["retry"] = {"max_attempts": value.max_attempts, "delay_ms": value.delay_ms}
        elif isinstance(value, tuple):
            out[f.name] = list(value)
        else:
            out[f.name] = value
    return out
