"""
src/figi_client — OpenFIGI mapping client with batch planning and retries.

Module layout
-------------
config.py      — Endpoint, protocol limits, retry constants, enumerations,
                 ClientConfig, tier cap, debug logging switch
errors.py      — FigiApiError / RateLimitError / ValidationError
validators.py  — Config, mapping request and mapping response validation
rate_limit.py  — RateLimitInfo and the process-wide last-seen snapshot
retry.py       — Status categorization, exponential backoff, retry loop
executor.py    — Request construction, mapping(), typed searches
parser.py      — Response body contract checks
batch.py       — Ticker variant expansion, chunking, sequential dispatch,
                 best-result merge, resolve_batch / resolve_one
reports.py     — Text reports and pandas result tables
runner.py      — figi-resolve command line

Public interface
----------------
Detect and parse identifiers (no network):
    detect("AAPL US")
    parse_batch("Ticker\\nAAPL US\\nMSFT US")

Resolve identifiers:
    resolve_one("US0378331005")
    resolve_batch(parse_batch(text).identifiers)
    search_text(text)

Inspect the quota reported by the service:
    get_rate_limit_snapshot()
"""

import logging

from identifiers import detect_identifier as detect
from identifiers import parse_identifiers as parse_batch

from .batch import (
    batch_mapping,
    merge_results,
    plan_requests,
    resolve_batch,
    resolve_one,
    search_text,
)
from .config import ClientConfig, get_client_config, get_tier_cap, set_debug_mode
from .errors import FigiApiError, RateLimitError, ValidationError
from .executor import (
    mapping,
    mapping_single,
    search_by_bloomberg_id,
    search_by_cusip,
    search_by_isin,
    search_by_sedol,
    search_by_ticker,
)
from .rate_limit import RateLimitInfo
from .rate_limit import get_rate_limit_info as get_rate_limit_snapshot

__all__ = [
    # Detection
    "detect",
    "parse_batch",
    # Resolution
    "resolve_one",
    "resolve_batch",
    "search_text",
    "batch_mapping",
    "plan_requests",
    "merge_results",
    # Raw mapping calls
    "mapping",
    "mapping_single",
    "search_by_isin",
    "search_by_cusip",
    "search_by_sedol",
    "search_by_bloomberg_id",
    "search_by_ticker",
    # Configuration
    "ClientConfig",
    "get_client_config",
    "get_tier_cap",
    "set_debug_mode",
    # Rate limits
    "RateLimitInfo",
    "get_rate_limit_snapshot",
    # Errors
    "FigiApiError",
    "RateLimitError",
    "ValidationError",
]

# Silent unless the application configures logging or set_debug_mode(True)
logging.getLogger(__name__).addHandler(logging.NullHandler())
