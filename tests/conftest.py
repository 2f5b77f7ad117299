"""
Shared pytest fixtures and builders for the identifier and client tests.

No test touches the network: HTTP responses are real ``requests.Response``
objects built in memory by make_response() and fed to the client either
through a mocked session or by patching ``requests.post``.
"""

from __future__ import annotations

import json
from http import HTTPStatus

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from figi_client.config import ClientConfig
from figi_client.rate_limit import set_rate_limit_info


# ---------------------------------------------------------------------------
# Sample payloads
# ---------------------------------------------------------------------------

AAPL_COMMON = {
    "figi": "BBG000B9XRY4",
    "name": "APPLE INC",
    "ticker": "AAPL",
    "exchCode": "US",
    "compositeFIGI": "BBG000B9XRY4",
    "securityType": "Common Stock",
    "marketSector": "Equity",
    "shareClassFIGI": "BBG001S5N8V8",
    "securityType2": "Common Stock",
}

AAPL_ISIN = {**AAPL_COMMON, "figi": "BBG000B9Y5X2", "exchCode": "UW"}

RATE_LIMIT_HEADERS = {
    "X-RateLimit-Limit": "25",
    "X-RateLimit-Remaining": "24",
    "X-RateLimit-Reset": "1700000000",
}

NO_MATCH = {"warning": "No identifier found."}


def data_response(*results: dict) -> dict:
    """Mapping response carrying the given FIGI results."""
    return {"data": list(results)}


# ---------------------------------------------------------------------------
# HTTP response builder
# ---------------------------------------------------------------------------

def make_response(
    status: int = 200,
    payload=None,
    headers: dict | None = None,
    text: str | None = None,
) -> requests.Response:
    """Build an in-memory ``requests.Response``."""
    if text is None:
        text = json.dumps(payload) if payload is not None else ""

    response = requests.Response()
    response.status_code = status
    try:
        response.reason = HTTPStatus(status).phrase
    except ValueError:
        response.reason = "Unknown"
    response._content = text.encode("utf-8")
    response.encoding = "utf-8"
    response.headers = CaseInsensitiveDict(headers or {})
    return response


def echo_payload(responses: list[dict]):
    """Return a post() side effect answering each call with ``responses``."""
    def _post(url, headers=None, json=None, timeout=None):
        return make_response(200, responses[: len(json)])
    return _post


class SleepRecorder:
    """Stand-in for time.sleep that records requested delays."""

    def __init__(self):
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FixedRandom:
    """Stand-in for random.Random with a constant draw."""

    def __init__(self, value: float = 0.0):
        self.value = value

    def random(self) -> float:
        return self.value


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def clear_rate_limit_snapshot():
    """Each test starts and ends with no rate-limit snapshot."""
    set_rate_limit_info(None)
    yield
    set_rate_limit_info(None)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Keep OPENFIGI_* variables from the host environment out of tests."""
    for name in (
        "OPENFIGI_API_KEY",
        "OPENFIGI_BASE_URL",
        "OPENFIGI_TIMEOUT_MS",
        "OPENFIGI_RETRY_LIMIT",
        "OPENFIGI_RETRY_DELAY_MS",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def no_key_config():
    """No API key: 10 jobs per call."""
    return ClientConfig(retry_limit=3, retry_delay_ms=10)


@pytest.fixture
def key_config():
    """API key configured: 100 jobs per call."""
    return ClientConfig(api_key="test-key", retry_limit=3, retry_delay_ms=10)


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()
