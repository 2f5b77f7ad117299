"""
Exception taxonomy for the OpenFIGI client.

    FigiApiError       any non-2xx after retries, transport failure after
                       retries, or a response body that breaks the contract
    ├── RateLimitError  429 after retries; carries retry_after seconds
    └── ValidationError malformed local input or configuration, or a 400
                        from the service; never retried

Transient statuses are retried inside retry.dispatch_with_retry and only
surface as one of these once the retry budget is spent.
"""

from __future__ import annotations

from typing import Any


class FigiApiError(Exception):
    """Generic API failure, with the HTTP status and body when known."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response = response


class RateLimitError(FigiApiError):
    def __init__(
        self,
        message: str,
        retry_after: int | None = None,
        status_code: int | None = 429,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.retry_after = retry_after


class ValidationError(FigiApiError):
    def __init__(
        self,
        message: str,
        errors: Any = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, response=errors)
        self.errors = errors
