"""
Validation of client configuration, outbound mapping requests, and inbound
mapping response items.

Outbound problems raise ValidationError before any network call is made.
Inbound problems are only reported (see parser.py): a response item that
does not match the documented schema is logged and passed through as-is.
"""

from __future__ import annotations

from numbers import Real
from typing import Any
from urllib.parse import urlparse

from .config import (
    FILTER_FIELDS,
    ID_TYPES,
    MARKET_SECTORS,
    MAX_JOBS_PER_CALL,
    MAX_RETRY_LIMIT,
    MIN_JOBS_PER_CALL,
    OPTION_TYPES,
    SECURITY_TYPES,
    ClientConfig,
)
from .errors import ValidationError

# FigiResult fields that must be strings when present
_FIGI_RESULT_STRING_FIELDS: tuple[str, ...] = (
    "ticker",
    "name",
    "exchCode",
    "shareClassFIGI",
    "compositeFIGI",
    "securityType2",
    "securityDescription",
    "metadata",
)


# ---------------------------------------------------------------------------
# Client configuration
# ---------------------------------------------------------------------------

def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def validate_client_config(config: ClientConfig) -> ClientConfig:
    """
    Fail fast on configuration that could never produce a working call.

    Args:
        config: Candidate configuration.

    Returns:
        The same ``config``, for chaining.

    Raises:
        ValidationError: Listing every invalid field.
    """
    issues: list[str] = []

    parsed = urlparse(config.base_url or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        issues.append(f"base_url: not a valid http(s) URL: '{config.base_url}'")

    if not _is_int(config.retry_limit) or not 0 <= config.retry_limit <= MAX_RETRY_LIMIT:
        issues.append(
            f"retry_limit: must be an integer between 0 and {MAX_RETRY_LIMIT}, "
            f"got {config.retry_limit!r}"
        )

    for name in ("timeout_ms", "retry_delay_ms", "max_delay_ms"):
        value = getattr(config, name)
        if not _is_number(value) or value <= 0:
            issues.append(f"{name}: must be a positive number, got {value!r}")

    if config.api_key is not None and not isinstance(config.api_key, str):
        issues.append("api_key: must be a string")

    if issues:
        raise ValidationError(
            f"Invalid client configuration: {', '.join(issues)}",
            errors=issues,
        )
    return config


# ---------------------------------------------------------------------------
# Mapping requests
# ---------------------------------------------------------------------------

def _request_issues(request: dict) -> list[str]:
    issues: list[str] = []

    id_type = request.get("idType")
    if id_type not in ID_TYPES:
        issues.append(f"idType: invalid value {id_type!r}")

    id_value = request.get("idValue")
    if not isinstance(id_value, str) or not id_value:
        issues.append("idValue: must be a non-empty string")

    for name in ("exchCode", "micCode", "securityType2"):
        if name in request and not isinstance(request[name], str):
            issues.append(f"{name}: must be a string")

    currency = request.get("currency")
    if currency is not None and (not isinstance(currency, str) or len(currency) != 3):
        issues.append("currency: must be exactly 3 characters")

    state_code = request.get("stateCode")
    if state_code is not None and (not isinstance(state_code, str) or len(state_code) != 2):
        issues.append("stateCode: must be exactly 2 characters")

    if "marketSecDes" in request and request["marketSecDes"] not in MARKET_SECTORS:
        issues.append(f"marketSecDes: invalid value {request['marketSecDes']!r}")

    if "securityType" in request and request["securityType"] not in SECURITY_TYPES:
        issues.append(f"securityType: invalid value {request['securityType']!r}")

    if "optionType" in request and request["optionType"] not in OPTION_TYPES:
        issues.append("optionType: must be 'Put' or 'Call'")

    if "includeUnlistedEquities" in request and not isinstance(
        request["includeUnlistedEquities"], bool
    ):
        issues.append("includeUnlistedEquities: must be a boolean")

    if "contractSize" in request and not _is_number(request["contractSize"]):
        issues.append("contractSize: must be a number")

    for name in ("strike", "coupon", "expiration", "maturity"):
        if name in request:
            value = request[name]
            if not isinstance(value, list) or not all(_is_number(v) for v in value):
                issues.append(f"{name}: must be a list of numbers")

    return issues


def validate_mapping_request(request: dict, index: int = 0) -> dict:
    """
    Validate one mapping request and return its wire form.

    Keys with ``None`` values are dropped, as are keys that are not part of
    the mapping request schema.

    Args:
        request: Mapping request dict (camelCase wire field names).
        index: Position within the batch, used in the error message.

    Returns:
        Cleaned request dict ready to be JSON-encoded.

    Raises:
        ValidationError: Naming the index and every offending field.
    """
    if not isinstance(request, dict):
        raise ValidationError(
            f"Invalid mapping request at index {index}: expected an object, "
            f"got {type(request).__name__}"
        )

    allowed = ("idType", "idValue", *FILTER_FIELDS)
    cleaned = {
        key: request[key]
        for key in allowed
        if key in request and request[key] is not None
    }

    issues = _request_issues(cleaned)
    if issues:
        raise ValidationError(
            f"Invalid mapping request at index {index}: {', '.join(issues)}",
            errors=issues,
        )
    return cleaned


def validate_mapping_requests(requests: list[dict]) -> list[dict]:
    """
    Validate a whole batch against the protocol's absolute per-call bounds.

    The tier cap (10 or 100) is not checked here; batches are already sized
    by the planner.  Only the hard 1..100 bounds apply.

    Raises:
        ValidationError: Empty batch, more than 100 jobs, or any invalid
                         request.
    """
    if not isinstance(requests, (list, tuple)) or len(requests) < MIN_JOBS_PER_CALL:
        raise ValidationError(
            "Requests must be a non-empty array. Provide at least one mapping request."
        )

    if len(requests) > MAX_JOBS_PER_CALL:
        raise ValidationError(
            f"Too many requests: {len(requests)}. Maximum {MAX_JOBS_PER_CALL} requests "
            "allowed per call. Split into multiple batches."
        )

    return [validate_mapping_request(req, i) for i, req in enumerate(requests)]


# ---------------------------------------------------------------------------
# Mapping responses
# ---------------------------------------------------------------------------

def mapping_response_issues(item: Any) -> list[str]:
    """
    List schema problems in one inbound mapping response item.

    Returns:
        Human-readable issues; empty when the item matches the schema.
    """
    if not isinstance(item, dict):
        return [f"expected an object, got {type(item).__name__}"]

    issues: list[str] = []
    for name in ("warning", "error"):
        if name in item and not isinstance(item[name], str):
            issues.append(f"{name}: must be a string")

    if "data" not in item:
        return issues

    data = item["data"]
    if not isinstance(data, list):
        issues.append("data: must be an array")
        return issues

    for i, result in enumerate(data):
        if not isinstance(result, dict):
            issues.append(f"data[{i}]: expected an object")
            continue
        if not isinstance(result.get("figi"), str):
            issues.append(f"data[{i}].figi: must be a string")
        for name in _FIGI_RESULT_STRING_FIELDS:
            if result.get(name) is not None and not isinstance(result[name], str):
                issues.append(f"data[{i}].{name}: must be a string")
        if result.get("securityType") not in (None, *SECURITY_TYPES):
            issues.append(f"data[{i}].securityType: invalid value {result['securityType']!r}")
        if result.get("marketSector") not in (None, *MARKET_SECTORS):
            issues.append(f"data[{i}].marketSector: invalid value {result['marketSector']!r}")

    return issues
