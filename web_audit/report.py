"""
Summary reporting for audit phases.

Only masked headers, fingerprints and truncated storage values are rendered
here. Raw tokens never reach these functions' output.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .__version__ import __version__

RULE = "=" * 60
RECENT_LIMIT = 20
TARGET_LIMIT = 10


@dataclass(frozen=True)
class HitSummary:
    total: int
    with_bearer: int
    with_tenant: int
    recent: Tuple


def summarize(hits: Sequence, recent: int = RECENT_LIMIT) -> HitSummary:
    """Count hits with bearer/tenant and keep the last ``recent`` ones."""
    hits = tuple(hits)
    return HitSummary(
        total=len(hits),
        with_bearer=sum(1 for h in hits if h.has_bearer),
        with_tenant=sum(1 for h in hits if h.tenant_id),
        recent=hits[-recent:] if recent > 0 else (),
    )


def _header(title):
    return ["", RULE, f"=== {title} ===", RULE]


def format_hit(hit) -> List[str]:
    return [
        f"[+{hit.offset_ms:>5}ms] {hit.method} {hit.url}",
        f"   Bearer: {hit.bearer_masked or 'no'} (hash:{hit.bearer_hash or '-'})",
        f"   Tenant: {hit.tenant_id or 'no'} (hash:{hit.tenant_hash or '-'})",
        f"   Origin: {hit.origin or '-'} | Referer: {hit.referer or '-'}",
    ]


def format_summary(summary: HitSummary, title: str) -> List[str]:
    """Render a phase summary as console lines."""
    lines = _header(title)
    lines.append(f"Total captured: {summary.total}")
    lines.append(f"With Bearer:    {summary.with_bearer}")
    lines.append(f"With tenant:    {summary.with_tenant}")
    if summary.total == 0:
        lines.append("No requests captured!")
        return lines
    lines.append("")
    lines.append(f"Last {len(summary.recent)} requests:")
    for hit in summary.recent:
        lines.append("")
        lines.extend(format_hit(hit))
    return lines


def format_target_hits(hits: Sequence, target_url: str, limit: int = TARGET_LIMIT) -> List[str]:
    """Render the target-endpoint view (last ``limit`` matches)."""
    lines = _header("Target endpoint only")
    lines.append(f"Endpoint (base): {target_url}")
    lines.append(f"Occurrences: {len(hits)}")
    if not hits:
        lines.append("No request to the target endpoint was captured!")
        return lines
    for hit in list(hits)[-limit:]:
        lines.append("")
        lines.append(f"{hit.method} {hit.url}")
        lines.append(f"   Bearer: {hit.bearer_masked or 'no'}")
        lines.append(f"   Tenant: {hit.tenant_id or 'no'}")
    return lines


def format_storage_report(report) -> List[str]:
    """Render a classified storage snapshot."""
    lines = _header("LocalStorage, SessionStorage and Cookies")
    for name, section in report.sections():
        lines.append("")
        lines.append(f"{name}:")
        if section is None:
            lines.append("   (not checked)")
            continue
        if not section:
            lines.append("   (empty)")
            continue
        for entry in section:
            lines.append("")
            lines.append(f"   {'Name' if entry.is_cookie else 'Key'}: {entry.key}")
            if entry.is_cookie:
                lines.append(f"      Domain: {entry.domain}")
            lines.append(f"      Value: {entry.display_value}")
            lines.append(f"      Hash: {entry.value_hash}")
            lines.append(f"      Length: {entry.length} chars")
            if entry.is_cookie:
                lines.append(f"      HttpOnly: {entry.http_only}")
                lines.append(f"      Secure: {entry.secure}")
                lines.append(f"      SameSite: {entry.same_site}")
            if entry.looks_like_token:
                lines.append("      LOOKS LIKE TOKEN")
            if entry.looks_like_tenant:
                lines.append("      LOOKS LIKE TENANT ID")
    return lines


def build_report(phases: Dict[str, Sequence], storage=None, target_hits: Optional[Sequence] = None,
                 settings: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Build a JSON-safe audit report.

    Args:
        phases: Phase label -> hits
        storage: StorageReport or None
        target_hits: Hits selected by the endpoint matcher
        settings: Flattened settings to embed

    Returns:
        dict: Report with masked values only
    """
    report = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
        "settings": settings or {},
        "phases": {},
        "target_hits": [h.to_dict() for h in (target_hits or ())],
        "storage": storage.to_dict() if storage is not None else None,
    }
    for label, hits in phases.items():
        summary = summarize(hits, recent=0)
        report["phases"][label] = {
            "total": summary.total,
            "with_bearer": summary.with_bearer,
            "with_tenant": summary.with_tenant,
            "hits": [h.to_dict() for h in hits],
        }
    return report
