"""
Test the public API to ensure clean imports and usage.
"""

import pytest


def test_version_exports():
    import web_audit

    assert web_audit.__version__
    assert web_audit.__version_info__ == tuple(int(i) for i in web_audit.__version__.split("."))


def test_lazy_core_imports():
    from web_audit import (
        AuditRecorder,
        AuditSettings,
        CapturePersister,
        EndpointMatcher,
        RequestEvent,
        classify_headers,
        classify_storage,
        fingerprint,
        mask_bearer_header,
        parse_captures,
        summarize,
    )

    recorder = AuditRecorder("api", AuditSettings())
    recorder.observe(RequestEvent("GET", "http://host", {"x-tenantid": "t"}))
    assert recorder.hits[0].tenant_hash == fingerprint("t")
    assert callable(classify_headers)
    assert callable(classify_storage)
    assert callable(mask_bearer_header)
    assert callable(parse_captures)
    assert callable(summarize)
    assert EndpointMatcher and CapturePersister


def test_exception_hierarchy():
    from web_audit import (
        BrowserError,
        CaptureError,
        ConfigurationError,
        LoginError,
        NavigationError,
        ValidationError,
        WebAuditError,
    )

    assert issubclass(ConfigurationError, WebAuditError)
    assert issubclass(ValidationError, WebAuditError)
    assert issubclass(CaptureError, WebAuditError)
    assert issubclass(NavigationError, BrowserError)
    assert issubclass(LoginError, BrowserError)
    assert issubclass(BrowserError, WebAuditError)


def test_browser_entry_points():
    from web_audit import run_audit, run_session

    assert callable(run_audit)
    assert callable(run_session)


def test_unknown_attribute():
    import web_audit

    with pytest.raises(AttributeError):
        web_audit.does_not_exist
