"""
Process-wide rate-limit snapshot.

The service reports its quota on each response through the
``x-ratelimit-*`` headers.  The most recent complete snapshot is kept in a
single module-level cell: every response carrying all three headers
replaces it wholesale, and a response without them leaves it untouched.
Readers get either the previous or the new snapshot, never a mix, because
the cell only ever holds an immutable RateLimitInfo.

The cell starts empty; get_rate_limit_info() returns ``None`` until the
first response with rate-limit headers arrives.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone

from .config import (
    RATE_LIMIT_LIMIT_HEADER,
    RATE_LIMIT_REMAINING_HEADER,
    RATE_LIMIT_RESET_HEADER,
    RETRY_AFTER_HEADER,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitInfo:
    limit: int
    remaining: int
    reset: datetime


_current: RateLimitInfo | None = None


def _header_int(headers: Mapping[str, str], name: str) -> int | None:
    raw = headers.get(name)
    if raw is None:
        return None
    try:
        return int(str(raw).strip())
    except ValueError:
        logger.warning("Ignoring non-integer %s header: %r", name, raw)
        return None


def parse_rate_limit_headers(headers: Mapping[str, str]) -> RateLimitInfo | None:
    """
    Build a RateLimitInfo from response headers.

    Args:
        headers: Response headers.  ``requests`` supplies a case-insensitive
                 mapping; plain dicts must use lower-case names.

    Returns:
        RateLimitInfo when limit, remaining and reset are all present and
        numeric, otherwise ``None``.
    """
    limit = _header_int(headers, RATE_LIMIT_LIMIT_HEADER)
    remaining = _header_int(headers, RATE_LIMIT_REMAINING_HEADER)
    reset_epoch = _header_int(headers, RATE_LIMIT_RESET_HEADER)

    if limit is None or remaining is None or reset_epoch is None:
        return None

    try:
        reset = datetime.fromtimestamp(reset_epoch, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        logger.warning("Ignoring out-of-range %s header: %r", RATE_LIMIT_RESET_HEADER, reset_epoch)
        return None

    return RateLimitInfo(limit=limit, remaining=remaining, reset=reset)


def parse_retry_after(headers: Mapping[str, str]) -> int | None:
    """Seconds from the ``retry-after`` header, or ``None`` if absent/invalid."""
    return _header_int(headers, RETRY_AFTER_HEADER)


def get_rate_limit_info() -> RateLimitInfo | None:
    return _current


def set_rate_limit_info(info: RateLimitInfo | None) -> None:
    """Replace the snapshot (last writer wins).  ``None`` clears it."""
    global _current
    _current = info


def update_rate_limit_info(headers: Mapping[str, str]) -> RateLimitInfo | None:
    """
    Overwrite the snapshot from ``headers`` if they carry rate-limit data.

    Returns:
        The snapshot in effect after the update (possibly the old one).
    """
    info = parse_rate_limit_headers(headers)
    if info is not None:
        set_rate_limit_info(info)
        logger.info(
            "Rate limit: %d/%d (resets: %s)",
            info.remaining,
            info.limit,
            info.reset.isoformat(),
        )
    return get_rate_limit_info()
