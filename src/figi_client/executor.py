"""
Request construction, mapping call execution, and typed single-identifier
searches.

Every public call goes through mapping(): validate the jobs, then POST them
as one JSON array through retry.dispatch_with_retry, then check that the
response array lines up with the request.  One call is in flight at a time.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable

import requests

from .config import API_KEY_HEADER, MAPPING_PATH, ClientConfig, get_client_config
from .errors import ValidationError
from .parser import decode_json, parse_mapping_payload
from .retry import dispatch_with_retry
from .validators import validate_client_config, validate_mapping_requests

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Request construction
# ---------------------------------------------------------------------------

def build_request_headers(config: ClientConfig) -> dict:
    """
    Construct HTTP headers for a mapping call.

    The API key header is only sent when a key is configured; without it
    the service applies the lower no-key quota.
    """
    headers = {
        "Content-Type": "application/json",
        "User-Agent": config.user_agent,
    }
    if config.api_key:
        headers[API_KEY_HEADER] = config.api_key
    return headers


def build_endpoint_url(config: ClientConfig) -> str:
    return f"{config.base_url.rstrip('/')}/{MAPPING_PATH}"


def send_mapping_request(
    jobs: list[dict],
    config: ClientConfig,
    session: requests.Session | None = None,
) -> requests.Response:
    """
    Perform exactly one POST of ``jobs``; no retry, no status handling.

    Args:
        jobs: Validated mapping requests.
        config: Endpoint, credentials and timeout.
        session: Optional ``requests.Session``; module-level ``requests``
                 is used when omitted.

    Returns:
        The raw response, whatever its status.
    """
    http = session or requests
    url = build_endpoint_url(config)
    logger.info("Request: POST %s (%d job(s))", url, len(jobs))
    return http.post(
        url,
        headers=build_request_headers(config),
        json=jobs,
        timeout=config.timeout_ms / 1000,
    )


# ---------------------------------------------------------------------------
# Mapping calls
# ---------------------------------------------------------------------------

def mapping(
    mapping_requests: list[dict],
    config: ClientConfig | None = None,
    session: requests.Session | None = None,
    sleep: Callable[[float], None] = time.sleep,
    rng: random.Random | None = None,
) -> list[dict]:
    """
    Map up to 100 identifiers to FIGIs in a single call.

    Args:
        mapping_requests: Mapping request dicts (max 100).
        config: Client configuration; read from the environment if omitted.
        session: Optional ``requests.Session`` to reuse connections.
        sleep: Backoff sleep, injectable for tests.
        rng: Random source for backoff jitter.

    Returns:
        One mapping response dict per request, in request order.

    Raises:
        ValidationError: Invalid requests or configuration (no call made),
                         or a 400 from the service.
        RateLimitError: Still throttled after all retries.
        FigiApiError: Any other failure, or a malformed response body.
    """
    config = validate_client_config(config) if config is not None else get_client_config()
    jobs = validate_mapping_requests(mapping_requests)

    logger.info("Mapping %d identifier(s)", len(jobs))
    response = dispatch_with_retry(
        lambda: send_mapping_request(jobs, config, session),
        config,
        sleep=sleep,
        rng=rng,
    )
    results = parse_mapping_payload(decode_json(response), len(jobs), response.status_code)
    logger.info("Mapped %d identifier(s) successfully", len(results))
    return results


def mapping_single(request: dict, config: ClientConfig | None = None, **kwargs) -> dict:
    """Map one identifier; see :func:`mapping` for keyword arguments."""
    return mapping([request], config, **kwargs)[0]


# ---------------------------------------------------------------------------
# Typed searches
# ---------------------------------------------------------------------------

def _require_value(value: str, label: str) -> str:
    if not value or not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} must be a non-empty string")
    return value.strip()


def search_by_isin(
    isin: str,
    filters: dict | None = None,
    config: ClientConfig | None = None,
    **kwargs,
) -> dict:
    """Search by ISIN, e.g. ``'US0378331005'``."""
    request = {"idType": "ID_ISIN", "idValue": _require_value(isin, "ISIN"), **(filters or {})}
    return mapping_single(request, config, **kwargs)


def search_by_cusip(
    cusip: str,
    filters: dict | None = None,
    config: ClientConfig | None = None,
    **kwargs,
) -> dict:
    """Search by CUSIP, e.g. ``'037833100'``."""
    request = {"idType": "ID_CUSIP", "idValue": _require_value(cusip, "CUSIP"), **(filters or {})}
    return mapping_single(request, config, **kwargs)


def search_by_sedol(
    sedol: str,
    filters: dict | None = None,
    config: ClientConfig | None = None,
    **kwargs,
) -> dict:
    """Search by SEDOL, e.g. ``'2046251'``."""
    request = {"idType": "ID_SEDOL", "idValue": _require_value(sedol, "SEDOL"), **(filters or {})}
    return mapping_single(request, config, **kwargs)


def search_by_bloomberg_id(
    bbg_id: str,
    filters: dict | None = None,
    config: ClientConfig | None = None,
    **kwargs,
) -> dict:
    """Search by Bloomberg global ID, e.g. ``'BBG000B9XRY4'``."""
    request = {
        "idType": "ID_BB_GLOBAL",
        "idValue": _require_value(bbg_id, "Bloomberg ID"),
        **(filters or {}),
    }
    return mapping_single(request, config, **kwargs)


def search_by_ticker(
    ticker: str,
    exch_code: str | None = None,
    filters: dict | None = None,
    config: ClientConfig | None = None,
    **kwargs,
) -> dict:
    """
    Search by exchange ticker.

    Args:
        ticker: Ticker symbol; upper-cased before sending.
        exch_code: Optional exchange code, e.g. ``'US'``.
        filters: Extra mapping request fields (``securityType2``, ...).
        config: Client configuration.

    Returns:
        Mapping response dict.
    """
    request = {
        "idType": "ID_EXCH_SYMBOL",
        "idValue": _require_value(ticker, "Ticker").upper(),
        "exchCode": exch_code.strip() if exch_code else None,
        **(filters or {}),
    }
    return mapping_single(request, config, **kwargs)
