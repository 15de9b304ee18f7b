"""
Unit tests for client storage classification.
"""

from web_audit.scanners.storage import (
    StorageReport,
    classify_cookies,
    classify_snapshot,
    classify_storage,
    looks_like_tenant,
    looks_like_token,
)
from web_audit.utils import fingerprint

GUID = "3fa85f64-5717-4562-b3fc-2c963f66afa6"


def jwt_shaped(length=150):
    body = "a" * (length - 2)
    return body[:50] + "." + body[50:100] + "." + body[100:]


def test_auth_token_key_with_jwt_value():
    value = jwt_shaped(150)
    assert len(value) == 150 and value.count(".") == 2

    entry = classify_storage({"auth_token": value})[0]
    assert entry.looks_like_token


def test_token_key_hints():
    for key in ("access_token", "JWT", "oidc.Auth.user", "MyTokenStore"):
        assert looks_like_token(key, "x")
    assert not looks_like_token("theme", "dark")


def test_jwt_shape_without_key_hint():
    assert looks_like_token("session", jwt_shaped(150))
    # Too short
    assert not looks_like_token("session", "a.b.c")
    # Wrong number of segments
    assert not looks_like_token("session", "a" * 120 + ".b")
    assert not looks_like_token("session", "a" * 120 + ".b.c.d")


def test_guid_value_is_tenant_regardless_of_key():
    assert looks_like_tenant("whatever", GUID)
    assert looks_like_tenant("whatever", GUID.upper())
    entry = classify_storage({"x": GUID})[0]
    assert entry.looks_like_tenant


def test_tenant_key_hints():
    assert looks_like_tenant("currentTenant", "1")
    assert looks_like_tenant("Organization_Id", "1")
    assert not looks_like_tenant("language", "pt-BR")


def test_guid_must_be_whole_value():
    assert not looks_like_tenant("x", GUID + "-extra")
    assert not looks_like_tenant("x", " " + GUID)
    assert not looks_like_tenant("x", GUID + "\n")


def test_display_value_and_hash():
    long_value = "h" * 30 + "m" * 40 + "t" * 15
    short, long_entry = classify_storage({"short": "v" * 50, "long": long_value})

    assert short.display_value == "v" * 50
    assert long_entry.display_value == "h" * 30 + "..." + "t" * 15
    assert long_entry.value_hash == fingerprint(long_value)
    assert long_entry.length == len(long_value)


def test_no_entries_dropped_and_order_kept():
    items = {"b": "1", "a": "2", "c": "3"}
    entries = classify_storage(items, "sessionStorage")

    assert [e.key for e in entries] == ["b", "a", "c"]
    assert all(e.source == "sessionStorage" for e in entries)


def test_empty_storage():
    assert classify_storage({}) == ()
    assert classify_storage(None) == ()
    assert classify_cookies([]) == ()


def test_none_values_are_treated_as_empty():
    entry = classify_storage({"k": None})[0]
    assert entry.value == ""
    assert not entry.looks_like_tenant


def test_cookies():
    cookies = [
        {"name": "tenant", "value": "acme", "domain": ".example.com",
         "httpOnly": True, "secure": True, "sameSite": "Lax"},
        {"name": "_ga", "value": "GA1.2.3"},
    ]
    tenant, ga = classify_cookies(cookies)

    assert tenant.is_cookie
    assert tenant.looks_like_tenant
    assert tenant.domain == ".example.com"
    assert tenant.http_only is True
    assert tenant.same_site == "Lax"
    assert ga.http_only is None
    assert not ga.looks_like_token


def test_snapshot_distinguishes_empty_from_unchecked():
    report = classify_snapshot({"localStorage": {}, "cookies": [{"name": "auth", "value": "x"}]})

    assert report.local_storage == ()
    assert report.session_storage is None
    assert len(report.cookies) == 1
    assert report.to_dict()["localStorage"] == []
    assert report.to_dict()["sessionStorage"] is None


def test_report_candidates():
    report = classify_snapshot({
        "localStorage": {"access_token": "secret", "tenantId": GUID, "theme": "dark"},
        "sessionStorage": {},
        "cookies": [],
    })

    assert [e.key for e in report.token_candidates()] == ["access_token"]
    assert [e.key for e in report.tenant_candidates()] == ["tenantId"]


def test_entry_dict_never_contains_full_long_value():
    value = "s" * 40 + "SECRET-MIDDLE" + "e" * 40
    data = classify_storage({"k": value})[0].to_dict()

    assert "SECRET-MIDDLE" not in str(data)
    assert "value" not in data


def test_unchecked_report():
    assert StorageReport().entries() == []
