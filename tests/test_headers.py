"""
Unit tests for request header classification.
"""

from web_audit.scanners.headers import classify_headers, normalize_headers, pick_tenant
from web_audit.utils import fingerprint

TOKEN = "eyJhbGciOiJSUzI1NiIsInR5cCI6IkpXVCJ9.payload.signature"
TENANT = "3fa85f64-5717-4562-b3fc-2c963f66afa6"


def test_no_authorization_header():
    """Without Authorization all bearer fields are empty."""
    info = classify_headers({"accept": "application/json"})

    assert info.has_bearer is False
    assert info.bearer_masked is None
    assert info.bearer_hash is None
    assert info.bearer_token is None


def test_non_bearer_authorization_header():
    info = classify_headers({"authorization": "Basic dXNlcjpwYXNz"})

    assert info.has_bearer is False
    assert info.bearer_masked is None
    assert info.bearer_hash is None
    assert info.bearer_token is None


def test_bearer_fields_set_together():
    auth = f"Bearer {TOKEN}"
    info = classify_headers({"Authorization": auth})

    assert info.has_bearer is True
    assert info.bearer_token == TOKEN
    assert info.bearer_hash == fingerprint(auth)
    assert info.bearer_masked == f"Bearer {TOKEN[:12]}...{TOKEN[-8:]}"


def test_tenant_priority_order():
    headers = {
        "tenant_id": "fourth",
        "tenantid": "third",
        "x-tenant-id": "second",
        "x-tenantid": "first",
    }
    assert pick_tenant(headers) == "first"

    del headers["x-tenantid"]
    assert pick_tenant(headers) == "second"

    del headers["x-tenant-id"]
    assert pick_tenant(headers) == "third"

    del headers["tenantid"]
    assert pick_tenant(headers) == "fourth"


def test_empty_tenant_header_falls_through():
    assert pick_tenant({"x-tenantid": "", "x-tenant-id": "t-2"}) == "t-2"


def test_tenant_fields():
    info = classify_headers({"X-TenantId": TENANT})

    assert info.tenant_id == TENANT
    assert info.tenant_hash == fingerprint(TENANT)


def test_no_tenant():
    info = classify_headers({"authorization": f"Bearer {TOKEN}"})

    assert info.tenant_id is None
    assert info.tenant_hash is None


def test_custom_tenant_priority():
    info = classify_headers({"x-org": "org-1", "x-tenantid": "t-1"}, tenant_headers=("x-org",))
    assert info.tenant_id == "org-1"


def test_origin_and_referer():
    info = classify_headers({"Origin": "http://localhost:4200", "Referer": "http://localhost:4200/stock"})

    assert info.origin == "http://localhost:4200"
    assert info.referer == "http://localhost:4200/stock"


def test_malformed_inputs_degrade():
    """None or non-mapping headers never raise."""
    for headers in (None, {}, [], "not-a-mapping"):
        info = classify_headers(headers)
        assert info.has_bearer is False
        assert info.tenant_id is None


def test_normalize_headers_drops_none_values():
    assert normalize_headers({"A": "1", "B": None}) == {"a": "1"}
