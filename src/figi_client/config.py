"""
OpenFIGI client configuration: endpoint, protocol limits, retry parameters,
wire-format enumerations, and the ClientConfig record.

All constants used across the figi_client modules are centralized here so
that config is separated from logic.

Environment variables read by get_client_config():
    OPENFIGI_API_KEY         — optional; raises the per-call cap from 10 to 100
    OPENFIGI_BASE_URL        — override the production endpoint
    OPENFIGI_TIMEOUT_MS      — HTTP timeout per attempt
    OPENFIGI_RETRY_LIMIT     — retries after the first attempt (0–10)
    OPENFIGI_RETRY_DELAY_MS  — base delay of the exponential backoff
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from .errors import ValidationError

# ---------------------------------------------------------------------------
# Endpoint and authentication
# ---------------------------------------------------------------------------

DEFAULT_BASE_URL = "https://api.openfigi.com"
MAPPING_PATH = "v3/mapping"
API_KEY_HEADER = "X-OPENFIGI-APIKEY"
DEFAULT_USER_AGENT = "figi-resolve/0.1.0"

API_KEY_ENV = "OPENFIGI_API_KEY"
BASE_URL_ENV = "OPENFIGI_BASE_URL"
TIMEOUT_ENV = "OPENFIGI_TIMEOUT_MS"
RETRY_LIMIT_ENV = "OPENFIGI_RETRY_LIMIT"
RETRY_DELAY_ENV = "OPENFIGI_RETRY_DELAY_MS"

# ---------------------------------------------------------------------------
# Protocol limits
# ---------------------------------------------------------------------------

# Jobs per mapping call, by caller privilege
TIER_CAP_WITH_KEY: int = 100
TIER_CAP_WITHOUT_KEY: int = 10

# Absolute bounds enforced on every call regardless of tier
MIN_JOBS_PER_CALL: int = 1
MAX_JOBS_PER_CALL: int = 100

# ---------------------------------------------------------------------------
# Retry parameters
# ---------------------------------------------------------------------------

DEFAULT_TIMEOUT_MS: int = 30_000
DEFAULT_RETRY_LIMIT: int = 3
MAX_RETRY_LIMIT: int = 10
DEFAULT_RETRY_DELAY_MS: int = 1_000
DEFAULT_MAX_DELAY_MS: int = 30_000

# Jitter is drawn from [0, JITTER_RATIO * delay)
JITTER_RATIO: float = 0.1

# Statuses retried transparently before any failure is surfaced
TRANSIENT_STATUS_CODES: frozenset[int] = frozenset({408, 413, 429, 500, 502, 503, 504})

# Rate-limit response headers
RATE_LIMIT_LIMIT_HEADER = "x-ratelimit-limit"
RATE_LIMIT_REMAINING_HEADER = "x-ratelimit-remaining"
RATE_LIMIT_RESET_HEADER = "x-ratelimit-reset"
RETRY_AFTER_HEADER = "retry-after"

# ---------------------------------------------------------------------------
# Wire-format enumerations
# ---------------------------------------------------------------------------

ID_TYPES: frozenset[str] = frozenset({
    "ID_ISIN",
    "ID_BB_UNIQUE",
    "ID_SEDOL",
    "ID_COMMON",
    "ID_WERTPAPIER",
    "ID_CUSIP",
    "ID_BB",
    "ID_ITALY",
    "ID_EXCH_SYMBOL",
    "ID_FULL_EXCHANGE_SYMBOL",
    "COMPOSITE_ID_BB_GLOBAL",
    "ID_BB_GLOBAL_SHARE_CLASS_LEVEL",
    "ID_BB_GLOBAL",
    "ID_BB_SEC_NUM_DES",
    "ID_BB_SEC_NUM",
    "ID_CINS",
    "ID_BELGIUM",
    "ID_DENMARK",
    "ID_FRANCE",
    "ID_JAPAN",
    "ID_LUXEMBOURG",
    "ID_NETHERLANDS",
    "ID_POLAND",
    "ID_PORTUGAL",
    "ID_SWEDEN",
    "ID_SHORT_CODE",
})

SECURITY_TYPES: frozenset[str] = frozenset({
    "Common Stock",
    "Preference",
    "ADR",
    "Open-End Fund",
    "Closed-End Fund",
    "ETF",
    "ETN",
    "Unit",
    "Mutual Fund",
    "Money Market",
    "Commodity",
    "Currency",
    "Option",
    "Index",
})

MARKET_SECTORS: frozenset[str] = frozenset({
    "All",
    "Comdty",
    "Curncy",
    "Equity",
    "Govt",
    "Corp",
    "Index",
    "Money",
    "Mtge",
    "Muni",
    "Pref",
})

OPTION_TYPES: frozenset[str] = frozenset({"Put", "Call"})

# Detected identifier kind → OpenFIGI idType
ID_TYPE_BY_KIND: dict[str, str] = {
    "ISIN": "ID_ISIN",
    "CUSIP": "ID_CUSIP",
    "SEDOL": "ID_SEDOL",
    "BLOOMBERG_ID": "ID_BB_GLOBAL",
    "TICKER": "ID_EXCH_SYMBOL",
    "UNKNOWN": "ID_EXCH_SYMBOL",
}

# securityType2 guesses tried for every ticker, in order of likelihood
TICKER_VARIANTS: tuple[str, ...] = ("Common Stock", "Preference")

# Optional filter fields accepted alongside idType / idValue
FILTER_FIELDS: tuple[str, ...] = (
    "exchCode",
    "micCode",
    "currency",
    "marketSecDes",
    "securityType",
    "securityType2",
    "includeUnlistedEquities",
    "optionType",
    "strike",
    "contractSize",
    "coupon",
    "expiration",
    "maturity",
    "stateCode",
)


# ---------------------------------------------------------------------------
# Client configuration record
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ClientConfig:
    api_key: str | None = None
    base_url: str = DEFAULT_BASE_URL
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    retry_limit: int = DEFAULT_RETRY_LIMIT
    retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS
    max_delay_ms: int = DEFAULT_MAX_DELAY_MS
    user_agent: str = DEFAULT_USER_AGENT

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)


def get_tier_cap(config: ClientConfig) -> int:
    """Jobs allowed per mapping call: 100 with an API key, 10 without."""
    return TIER_CAP_WITH_KEY if config.has_api_key else TIER_CAP_WITHOUT_KEY


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(
            f"Invalid client configuration: {name} must be an integer, got '{raw}'"
        ) from None


def get_client_config() -> ClientConfig:
    """
    Build a validated ClientConfig from ``OPENFIGI_*`` environment variables.

    Returns:
        ClientConfig with defaults for anything unset.

    Raises:
        ValidationError: A numeric variable is not an integer, or the
                         resulting configuration is invalid.
    """
    from .validators import validate_client_config  # noqa: PLC0415

    config = ClientConfig(
        api_key=os.getenv(API_KEY_ENV) or None,
        base_url=os.getenv(BASE_URL_ENV) or DEFAULT_BASE_URL,
        timeout_ms=_env_int(TIMEOUT_ENV, DEFAULT_TIMEOUT_MS),
        retry_limit=_env_int(RETRY_LIMIT_ENV, DEFAULT_RETRY_LIMIT),
        retry_delay_ms=_env_int(RETRY_DELAY_ENV, DEFAULT_RETRY_DELAY_MS),
    )
    validate_client_config(config)
    return config


# ---------------------------------------------------------------------------
# Debug logging
# ---------------------------------------------------------------------------

LOG_FORMAT = "[figi_client] [%(levelname)s] %(message)s"

_debug_handler: logging.Handler | None = None


def set_debug_mode(enabled: bool) -> None:
    """
    Turn request/retry/rate-limit logging on or off for the package.

    Attaches a single stderr handler to the ``figi_client`` logger the first
    time it is enabled; disabling raises the level back to WARNING.
    """
    global _debug_handler
    package_logger = logging.getLogger("figi_client")

    if enabled and _debug_handler is None:
        _debug_handler = logging.StreamHandler()
        _debug_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(_debug_handler)

    package_logger.setLevel(logging.DEBUG if enabled else logging.WARNING)
