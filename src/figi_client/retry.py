"""
Status classification, exponential backoff, and the retry loop around a
single mapping call.

Retry arithmetic:

    attempts     = retry_limit + 1
    backoff(n)   = min(retry_delay_ms * 2**n, max_delay_ms) + jitter
    jitter       ∈ [0, 0.1 * computed delay)

where ``n`` is the 1-based retry number.  Retries are strictly sequential:
wait, then try again.  Rate-limit headers are recorded after every response,
including the transient failures that get retried.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable

import requests

from .config import JITTER_RATIO, TRANSIENT_STATUS_CODES, ClientConfig
from .errors import FigiApiError, RateLimitError, ValidationError
from .rate_limit import parse_retry_after, update_rate_limit_info

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Status classification
# ---------------------------------------------------------------------------

class ErrorCategory:
    """
    Category constants and classification of HTTP statuses.

    Categories drive retry decisions: RETRIABLE categories are retried with
    backoff until the retry limit is spent; every other failure surfaces
    immediately.
    """

    SUCCESS = "success"
    TRANSIENT = "transient"
    RATE_LIMIT = "rate_limit_exceeded"
    BAD_REQUEST = "bad_request"
    AUTHENTICATION = "authentication_failed"
    NOT_FOUND = "not_found"
    API_ERROR = "api_error"

    RETRIABLE: frozenset[str] = frozenset({TRANSIENT, RATE_LIMIT})

    @staticmethod
    def categorize_status(status_code: int) -> str:
        if 200 <= status_code < 300:
            return ErrorCategory.SUCCESS
        if status_code == 429:
            return ErrorCategory.RATE_LIMIT
        if status_code in TRANSIENT_STATUS_CODES:
            return ErrorCategory.TRANSIENT
        if status_code == 400:
            return ErrorCategory.BAD_REQUEST
        if status_code == 401:
            return ErrorCategory.AUTHENTICATION
        if status_code == 404:
            return ErrorCategory.NOT_FOUND
        return ErrorCategory.API_ERROR


def should_retry(category: str, attempt: int, retry_limit: int) -> bool:
    """
    Decide whether a failed attempt is retried.

    Args:
        category: Category from :meth:`ErrorCategory.categorize_status`.
        attempt: The 1-based attempt number that just failed.
        retry_limit: Retries allowed after the first attempt.

    Returns:
        ``True`` if another attempt should be made.
    """
    return category in ErrorCategory.RETRIABLE and attempt <= retry_limit


# ---------------------------------------------------------------------------
# Backoff
# ---------------------------------------------------------------------------

def exponential_backoff(
    attempt: int,
    base_delay_ms: float = 1000,
    max_delay_ms: float = 30000,
    rng: random.Random | None = None,
) -> int:
    """
    Return the wait in milliseconds before retry number ``attempt``.

    Args:
        attempt: 1-based retry number.
        base_delay_ms: Delay unit; doubled per retry.
        max_delay_ms: Cap applied before jitter is added.
        rng: Random source for the jitter (module ``random`` if omitted).

    Returns:
        ``min(base * 2**attempt, max) + jitter``, floored to whole ms.
    """
    delay = min(base_delay_ms * 2 ** attempt, max_delay_ms)
    jitter = (rng or random).random() * JITTER_RATIO * delay
    return int(delay + jitter)


# ---------------------------------------------------------------------------
# Failure construction
# ---------------------------------------------------------------------------

def build_failure(response: requests.Response) -> FigiApiError:
    """Map a non-2xx response to the matching exception (not raised here)."""
    status = response.status_code
    category = ErrorCategory.categorize_status(status)
    body = response.text

    if category == ErrorCategory.RATE_LIMIT:
        return RateLimitError(
            "Rate limit exceeded. Please wait before making more requests.",
            retry_after=parse_retry_after(response.headers),
            status_code=status,
        )

    if category == ErrorCategory.BAD_REQUEST:
        return ValidationError(
            f"Bad request: {body or 'Invalid request format'}",
            errors=body,
            status_code=status,
        )

    if category == ErrorCategory.AUTHENTICATION:
        return FigiApiError("Authentication failed. Check your API key.", status, body)

    if category == ErrorCategory.NOT_FOUND:
        return FigiApiError("Endpoint not found. Please check the API version.", status, body)

    return FigiApiError(
        f"Request failed with status {status}: {response.reason or 'unknown error'}",
        status,
        body,
    )


# ---------------------------------------------------------------------------
# Retry loop
# ---------------------------------------------------------------------------

def dispatch_with_retry(
    send: Callable[[], requests.Response],
    config: ClientConfig,
    sleep: Callable[[float], None] = time.sleep,
    rng: random.Random | None = None,
) -> requests.Response:
    """
    Run ``send`` until it succeeds, fails permanently, or retries run out.

    Transient statuses (408, 413, 429, 500, 502, 503, 504) and transport
    errors (timeouts, refused connections) are retried up to
    ``config.retry_limit`` times.  Everything else fails on the spot.

    Args:
        send: Performs one HTTP attempt and returns the response.
        config: Supplies retry_limit, retry_delay_ms and max_delay_ms.
        sleep: Called with the backoff in seconds before each retry.
        rng: Random source for the backoff jitter.

    Returns:
        The first 2xx response.

    Raises:
        RateLimitError: 429 on the final attempt.
        ValidationError: 400 from the service.
        FigiApiError: Any other failure, including transport errors on the
                      final attempt (``status_code`` is then ``None``).
    """
    max_attempts = config.retry_limit + 1

    for attempt in range(1, max_attempts + 1):
        try:
            response = send()
        except (requests.Timeout, requests.ConnectionError) as exc:
            if attempt > config.retry_limit:
                raise FigiApiError(
                    f"Request failed after {attempt} attempt(s): {exc}",
                    response=str(exc),
                ) from exc
            reason = type(exc).__name__
        else:
            logger.info("Response: %s %s", response.status_code, response.reason or "")
            update_rate_limit_info(response.headers)

            category = ErrorCategory.categorize_status(response.status_code)
            if category == ErrorCategory.SUCCESS:
                return response
            if not should_retry(category, attempt, config.retry_limit):
                raise build_failure(response)
            reason = f"HTTP {response.status_code}"

        delay_ms = exponential_backoff(
            attempt,
            base_delay_ms=config.retry_delay_ms,
            max_delay_ms=config.max_delay_ms,
            rng=rng,
        )
        logger.warning(
            "Retry attempt %d/%d after %dms (%s)",
            attempt,
            config.retry_limit,
            delay_ms,
            reason,
        )
        sleep(delay_ms / 1000)

    # Unreachable: the final attempt either returns or raises.
    raise FigiApiError("Retry loop exited without a response")
