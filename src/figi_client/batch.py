"""
Batch planning, sequential dispatch, and best-result merging.

Flow for a list of detected identifiers:

    expand_identifiers   one PlannedRequest per lookup, each tagged with the
                         position of the identifier it came from; a ticker
                         becomes one request per TICKER_VARIANTS entry
    plan_requests        slice the expanded list into batches of at most
                         tier_cap requests, order preserved
    dispatch_batches     one mapping() call per batch, strictly sequential
    merge_results        collapse the tagged responses back to exactly one
                         response per identifier, in input order

The two variants of a ticker can land in different batches.  Merging keys
on the origin index rather than on array position, so that split is safe.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from identifiers import DetectedIdentifier, IdentifierKind, detect_identifier, parse_identifiers

from .config import ID_TYPE_BY_KIND, TICKER_VARIANTS, ClientConfig, get_client_config, get_tier_cap
from .errors import ValidationError
from .executor import (
    mapping,
    search_by_bloomberg_id,
    search_by_cusip,
    search_by_isin,
    search_by_sedol,
    search_by_ticker,
)
from .parser import has_data
from .validators import validate_client_config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlannedRequest:
    request: dict
    original_index: int
    variant: str | None = None


@dataclass(frozen=True)
class DispatchResult:
    response: dict
    original_index: int
    variant: str | None = None


@dataclass
class BatchSearchResult:
    summary: str
    identifiers: list[DetectedIdentifier] = field(default_factory=list)
    responses: list[dict] = field(default_factory=list)
    variants: list[str | None] = field(default_factory=list)

    @property
    def found(self) -> list[str]:
        return [i.label for i, r in zip(self.identifiers, self.responses) if has_data(r)]

    @property
    def not_found(self) -> list[str]:
        return [i.label for i, r in zip(self.identifiers, self.responses) if not has_data(r)]


def _resolve_config(config: ClientConfig | None) -> ClientConfig:
    return validate_client_config(config) if config is not None else get_client_config()


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------

def chunk(items: list, size: int) -> list[list]:
    """Split ``items`` into consecutive slices of at most ``size``."""
    if size < 1:
        raise ValidationError(f"Batch size must be at least 1, got {size}")
    return [items[i:i + size] for i in range(0, len(items), size)]


def build_requests(identifier: DetectedIdentifier, index: int) -> list[PlannedRequest]:
    """
    Turn one detected identifier into its candidate mapping requests.

    Tickers have no inherent security type, so each one yields a request
    per TICKER_VARIANTS entry, all sharing the same exchange code.  Every
    other kind yields exactly one request.

    Raises:
        ValidationError: The identifier value is empty.
    """
    if not identifier.value:
        raise ValidationError(f"Identifier at index {index} has an empty value")

    base = {
        "idType": ID_TYPE_BY_KIND[identifier.kind.value],
        "idValue": identifier.value,
    }
    if identifier.exch_code:
        base["exchCode"] = identifier.exch_code

    if identifier.kind is IdentifierKind.TICKER:
        return [
            PlannedRequest({**base, "securityType2": variant}, index, variant)
            for variant in TICKER_VARIANTS
        ]
    return [PlannedRequest(base, index)]


def expand_identifiers(identifiers: list[DetectedIdentifier]) -> list[PlannedRequest]:
    planned: list[PlannedRequest] = []
    for index, identifier in enumerate(identifiers):
        planned.extend(build_requests(identifier, index))
    return planned


def plan_requests(
    identifiers: list[DetectedIdentifier],
    tier_cap: int,
) -> list[list[PlannedRequest]]:
    """
    Expand identifiers into tagged requests and chunk them by ``tier_cap``.

    Args:
        identifiers: Detected identifiers, in caller order.
        tier_cap: Maximum requests per call (100 with an API key, 10 without).

    Returns:
        Batches of PlannedRequest; no batch is longer than ``tier_cap`` and
        concatenating them gives the expanded sequence in order.
    """
    return chunk(expand_identifiers(identifiers), tier_cap)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

def dispatch_batches(
    batches: list[list[PlannedRequest]],
    config: ClientConfig,
    **kwargs,
) -> list[DispatchResult]:
    """
    Run each batch through :func:`executor.mapping`, one call at a time.

    Batches are never sent in parallel: the service's tolerance for
    concurrent calls within a quota window is unknown.  Calls block, so
    there is no overall deadline for the sequence; each HTTP attempt is
    bounded by ``config.timeout_ms`` and nothing else.

    Args:
        batches: Output of :func:`plan_requests`.
        config: Client configuration.
        **kwargs: Passed to :func:`executor.mapping` (session, sleep, rng).

    Returns:
        One DispatchResult per planned request, carrying its origin index
        and variant label.
    """
    results: list[DispatchResult] = []
    for number, batch in enumerate(batches, start=1):
        logger.info("Dispatching batch %d/%d (%d job(s))", number, len(batches), len(batch))
        responses = mapping([p.request for p in batch], config, **kwargs)
        results.extend(
            DispatchResult(response, planned.original_index, planned.variant)
            for planned, response in zip(batch, responses)
        )
    return results


# ---------------------------------------------------------------------------
# Merge policy
# ---------------------------------------------------------------------------

def pick_best_results(count: int, results: list[DispatchResult]) -> list[DispatchResult | None]:
    """
    Choose one result per origin index.

    The first result carrying data wins and is never replaced by a later
    one.  Without any data, the first result seen is kept.  Indices no
    result refers to stay ``None``.
    """
    best: list[DispatchResult | None] = [None] * count
    for result in results:
        current = best[result.original_index]
        if current is None or (has_data(result.response) and not has_data(current.response)):
            best[result.original_index] = result
    return best


def not_found_response(identifier: DetectedIdentifier) -> dict:
    return {"warning": f"No identifier found for {identifier.value}"}


def merge_results(
    identifiers: list[DetectedIdentifier],
    results: list[DispatchResult],
) -> list[dict]:
    """
    Collapse variant responses into one response per identifier.

    Args:
        identifiers: The identifiers that were planned, in caller order.
        results: Dispatch results tagged with origin index, in any order.

    Returns:
        Mapping responses aligned 1:1 with ``identifiers``.  An identifier
        no result refers to gets a warning-only response.
    """
    best = pick_best_results(len(identifiers), results)
    return [
        chosen.response if chosen is not None else not_found_response(identifier)
        for identifier, chosen in zip(identifiers, best)
    ]


# ---------------------------------------------------------------------------
# Caller-facing operations
# ---------------------------------------------------------------------------

def _resolve_known(
    identifiers: list[DetectedIdentifier],
    config: ClientConfig,
    **kwargs,
) -> tuple[list[dict], list[str | None]]:
    batches = plan_requests(identifiers, get_tier_cap(config))
    results = dispatch_batches(batches, config, **kwargs)
    best = pick_best_results(len(identifiers), results)
    responses = merge_results(identifiers, results)
    variants = [chosen.variant if chosen is not None else None for chosen in best]
    return responses, variants


def resolve_batch(
    identifiers: list[DetectedIdentifier],
    config: ClientConfig | None = None,
    **kwargs,
) -> list[dict]:
    """
    Resolve detected identifiers to mapping responses.

    Unknown identifiers are not sent to the service; their slot holds a
    warning response.  Tickers are tried as every TICKER_VARIANTS entry and
    the first variant with data is kept.

    Args:
        identifiers: Detected identifiers, in caller order.
        config: Client configuration; read from the environment if omitted.
        **kwargs: Passed to :func:`executor.mapping`.

    Returns:
        One mapping response per identifier, in input order.
    """
    config = _resolve_config(config)
    responses: list[dict] = [
        {"warning": f"Unrecognized identifier format: {i.value}"} for i in identifiers
    ]

    positions = [n for n, i in enumerate(identifiers) if i.kind is not IdentifierKind.UNKNOWN]
    if not positions:
        return responses

    known = [identifiers[n] for n in positions]
    resolved, _ = _resolve_known(known, config, **kwargs)
    for position, response in zip(positions, resolved):
        responses[position] = response
    return responses


def batch_mapping(
    mapping_requests: list[dict],
    config: ClientConfig | None = None,
    **kwargs,
) -> list[dict]:
    """
    Map an explicit request list of any length, chunked by tier cap.

    No variant expansion is done; responses are concatenated in request
    order.
    """
    config = _resolve_config(config)
    if not mapping_requests:
        raise ValidationError(
            "Requests must be a non-empty array. Provide at least one mapping request."
        )

    responses: list[dict] = []
    for batch in chunk(list(mapping_requests), get_tier_cap(config)):
        responses.extend(mapping(batch, config, **kwargs))
    return responses


def resolve_one(
    identifier: str | DetectedIdentifier,
    config: ClientConfig | None = None,
    filters: dict | None = None,
    **kwargs,
) -> dict:
    """
    Detect the type of a single identifier and search for it.

    Tickers are searched once, with their exchange code if any; there is no
    variant expansion for single lookups.

    Raises:
        ValidationError: The identifier type cannot be determined.
    """
    detected = identifier if isinstance(identifier, DetectedIdentifier) else detect_identifier(identifier)
    kind = detected.kind

    if kind is IdentifierKind.UNKNOWN:
        raise ValidationError(
            f'Could not determine identifier type for "{detected.value}". '
            "Please use a specific search or provide more context."
        )

    if kind is IdentifierKind.ISIN:
        return search_by_isin(detected.value, filters, config, **kwargs)
    if kind is IdentifierKind.CUSIP:
        return search_by_cusip(detected.value, filters, config, **kwargs)
    if kind is IdentifierKind.SEDOL:
        return search_by_sedol(detected.value, filters, config, **kwargs)
    if kind is IdentifierKind.BLOOMBERG_ID:
        return search_by_bloomberg_id(detected.value, filters, config, **kwargs)
    return search_by_ticker(detected.value, detected.exch_code, filters, config, **kwargs)


def search_text(
    text: str,
    config: ClientConfig | None = None,
    **kwargs,
) -> BatchSearchResult:
    """
    Parse identifiers from text/CSV and resolve all of them.

    Unknown identifiers are dropped before planning; the result covers the
    searchable identifiers only, along with the variant that produced each
    chosen response.

    Args:
        text: Free text or CSV, optionally with a header row.
        config: Client configuration; read from the environment if omitted.
        **kwargs: Passed to :func:`executor.mapping`.

    Returns:
        BatchSearchResult; no call is made when nothing is searchable.
    """
    parsed = parse_identifiers(text)
    searchable = parsed.searchable()
    if not searchable:
        return BatchSearchResult(summary=parsed.summary)

    responses, variants = _resolve_known(searchable, _resolve_config(config), **kwargs)
    return BatchSearchResult(
        summary=parsed.summary,
        identifiers=searchable,
        responses=responses,
        variants=variants,
    )
