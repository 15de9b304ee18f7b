"""
Capture file for tenant/token pairs seen on the target endpoint.

The file is append-only UTF-8 text; each record is a six-line block::

    tenantId
    <tenant id>
    bearer
    <token>
    ---
    <blank line>

Records are never rewritten or deduplicated, across runs included.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from ..exceptions import CaptureError
from ..utils import fingerprint

logger = logging.getLogger(__name__)

TENANT_MARKER = "tenantId"
BEARER_MARKER = "bearer"
SEPARATOR = "---"


@dataclass(frozen=True)
class CapturedPair:
    """Tenant id and raw bearer token captured from one target request."""

    tenant_id: str
    bearer_token: str
    url: Optional[str] = None


def format_block(tenant_id: str, token: str) -> str:
    return "\n".join([TENANT_MARKER, tenant_id, BEARER_MARKER, token, SEPARATOR, "", ""])


class CapturePersister:
    """
    Appends captured pairs to the capture file.

    Attributes:
        path (Path): Capture file location (resolved against the working directory)
        written (int): Blocks written by this instance
    """

    def __init__(self, path):
        self.path = Path(path).expanduser().resolve()
        self.written = 0

    def capture(self, tenant_id, token, url=None) -> bool:
        """
        Append one tenant/token block.

        Args:
            tenant_id: Tenant identifier (skipped when None or empty)
            token: Raw bearer token (skipped when None or empty)
            url: Request URL, logged for provenance

        Returns:
            bool: True if a block was written, False if the pair was incomplete

        Raises:
            CaptureError: If the file cannot be written
        """
        if not tenant_id or not token:
            logger.debug("Skipping incomplete capture for %s", url)
            return False
        block = format_block(str(tenant_id), str(token))
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(block)
        except OSError as e:
            raise CaptureError(f"Could not write capture to {self.path}: {e}") from e
        self.written += 1
        logger.info(
            "Captured tenant=%s token=%s from %s",
            fingerprint(str(tenant_id)), fingerprint(str(token)), url,
        )
        return True


def persist_hits(persister: CapturePersister, hits: Iterable) -> int:
    """
    Capture the tenant/token pair of each hit.

    Write failures are logged and skipped; the remaining hits are still
    processed.

    Returns:
        int: Number of blocks written
    """
    written = 0
    for hit in hits:
        try:
            if persister.capture(hit.tenant_id, hit.bearer_token, hit.url):
                written += 1
        except CaptureError as e:
            logger.warning("%s", e)
    return written


def parse_captures(path) -> List[CapturedPair]:
    """
    Read a capture file back into pairs.

    Blank lines between blocks are optional, so files written without the
    trailing blank line parse the same way. A block cut short at the end of
    the file is ignored.

    Args:
        path: Capture file path

    Returns:
        list of CapturedPair in file order (empty if the file does not exist)
    """
    capture_file = Path(path)
    if not capture_file.exists():
        return []

    with capture_file.open("r", encoding="utf-8") as f:
        lines = [line.rstrip("\r\n") for line in f]

    pairs = []
    i = 0
    while i < len(lines):
        if lines[i] != TENANT_MARKER:
            i += 1
            continue
        block = lines[i:i + 5]
        if len(block) == 5 and block[2] == BEARER_MARKER and block[4] == SEPARATOR:
            pairs.append(CapturedPair(tenant_id=block[1], bearer_token=block[3]))
            i += 5
        else:
            logger.debug("Malformed capture block at line %d", i + 1)
            i += 1
    return pairs
