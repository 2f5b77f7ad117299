"""
Mapping response parsing and contract checks.

No I/O occurs here; functions take decoded JSON (or a response object) and
return plain dicts so they can be unit-tested without a server.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from .errors import FigiApiError
from .validators import mapping_response_issues

logger = logging.getLogger(__name__)


def decode_json(response: requests.Response) -> Any:
    """
    Decode a 2xx response body.

    Raises:
        FigiApiError: The body is not valid JSON.
    """
    try:
        return response.json()
    except ValueError as exc:
        raise FigiApiError(
            f"Invalid API response: body is not valid JSON ({exc})",
            response.status_code,
            response.text,
        ) from exc


def parse_mapping_payload(payload: Any, expected_count: int, status_code: int | None = None) -> list[dict]:
    """
    Check a decoded mapping response against the request it answers.

    The body must be a JSON array with exactly one item per submitted job.
    A shorter or longer array is a contract violation and is never padded or
    truncated.  Items that do not match the MappingResponse schema are
    logged and passed through unchanged.

    Args:
        payload: Decoded JSON body.
        expected_count: Number of jobs in the request.
        status_code: HTTP status, attached to any raised error.

    Returns:
        List of mapping response dicts, in request order.

    Raises:
        FigiApiError: Payload is not an array, or its length is wrong.
    """
    if not isinstance(payload, list):
        raise FigiApiError(
            f"Invalid API response: expected array but got {type(payload).__name__}",
            status_code,
            payload,
        )

    if len(payload) != expected_count:
        raise FigiApiError(
            f"Invalid API response: expected {expected_count} result(s) "
            f"but got {len(payload)}",
            status_code,
            payload,
        )

    for index, item in enumerate(payload):
        issues = mapping_response_issues(item)
        if issues:
            logger.warning("Invalid response at index %d: %s", index, "; ".join(issues))

    return payload


def has_data(response: dict | None) -> bool:
    """``True`` when a mapping response carries a non-empty ``data`` array."""
    if not isinstance(response, dict):
        return False
    data = response.get("data")
    return isinstance(data, list) and len(data) > 0
