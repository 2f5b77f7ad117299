"""
Human-readable and tabular renderings of detection and mapping results.

Pure transformations; nothing here touches the network.
"""

from __future__ import annotations

import pandas as pd

from identifiers import DetectedIdentifier

from .parser import has_data
from .rate_limit import RateLimitInfo

# Columns of the DataFrame produced by results_to_frame()
RESULT_COLUMNS: list[str] = [
    "identifier",
    "kind",
    "exch_code",
    "confidence",
    "status",
    "figi",
    "name",
    "ticker",
    "security_type",
    "market_sector",
    "match_count",
    "message",
]

SEPARATOR = "\n\n---\n\n"


# ---------------------------------------------------------------------------
# Text reports
# ---------------------------------------------------------------------------

def format_figi_result(result: dict) -> str:
    lines = [f"FIGI: {result.get('figi')}"]
    for key, label in (
        ("name", "Name"),
        ("ticker", "Ticker"),
        ("exchCode", "Exchange"),
        ("securityType", "Security Type"),
        ("marketSector", "Market Sector"),
        ("compositeFIGI", "Composite FIGI"),
        ("shareClassFIGI", "Share Class FIGI"),
    ):
        if result.get(key):
            lines.append(f"  {label}: {result[key]}")
    return "\n".join(lines)


def format_response(response: dict) -> str:
    """Render one mapping response; error beats warning beats data."""
    if response.get("error"):
        return f"Error: {response['error']}"
    if response.get("warning"):
        return f"Warning: {response['warning']}"
    if not has_data(response):
        return "No results found"
    return "\n".join(format_figi_result(r) for r in response["data"])


def format_detection_details(identifiers: list[DetectedIdentifier]) -> str:
    """Numbered list: value, kind, exchange and confidence of each identifier."""
    lines = []
    for number, identifier in enumerate(identifiers, start=1):
        exch = f" (Exchange: {identifier.exch_code})" if identifier.exch_code else ""
        lines.append(
            f'{number}. "{identifier.value}" → {identifier.kind.value}{exch} '
            f"[{identifier.confidence.value} confidence]"
        )
    return "\n".join(lines)


def format_search_report(
    summary: str,
    identifiers: list[DetectedIdentifier],
    responses: list[dict],
    variants: list[str | None] | None = None,
) -> str:
    """
    Render a batch search: detection summary, one block per identifier, and
    a found / not-found tally.
    """
    if not identifiers:
        return f"{summary}\n\nNo valid identifiers found to search."

    variants = variants or [None] * len(identifiers)
    blocks = []
    not_found: list[str] = []

    for number, (identifier, response, variant) in enumerate(
        zip(identifiers, responses, variants), start=1
    ):
        if has_data(response):
            status = f" ({variant})" if variant else ""
        else:
            status = " NOT FOUND"
            not_found.append(identifier.label)
        blocks.append(
            f"[{number}] {identifier.kind.value}: {identifier.label}{status}\n"
            f"{format_response(response)}"
        )

    tally = f"Results: {len(identifiers) - len(not_found)} found, {len(not_found)} not found"
    if not_found:
        tally += "\nNot found:\n" + "\n".join(f"  - {label}" for label in not_found)

    return f"{summary}\n\n{SEPARATOR.join(blocks)}\n\n---\n{tally}"


def format_rate_limit_status(info: RateLimitInfo | None) -> str:
    if info is None:
        return "No rate limit information available. Make a request first to get rate limit data."
    return "\n".join([
        "OpenFIGI API Rate Limit Status:",
        f"  Limit: {info.limit} requests",
        f"  Remaining: {info.remaining} requests",
        f"  Resets: {info.reset.isoformat()}",
    ])


# ---------------------------------------------------------------------------
# Tabular output
# ---------------------------------------------------------------------------

def _status(response: dict) -> str:
    if response.get("error"):
        return "error"
    if has_data(response):
        return "found"
    if response.get("warning"):
        return "warning"
    return "not_found"


def results_to_frame(
    identifiers: list[DetectedIdentifier],
    responses: list[dict],
) -> pd.DataFrame:
    """
    One row per identifier, showing the first FIGI of each response.

    Args:
        identifiers: Identifiers in caller order.
        responses: Mapping responses aligned with ``identifiers``.

    Returns:
        DataFrame with columns RESULT_COLUMNS.
    """
    rows = []
    for identifier, response in zip(identifiers, responses):
        first = response["data"][0] if has_data(response) else {}
        rows.append({
            "identifier": identifier.value,
            "kind": identifier.kind.value,
            "exch_code": identifier.exch_code,
            "confidence": identifier.confidence.value,
            "status": _status(response),
            "figi": first.get("figi"),
            "name": first.get("name"),
            "ticker": first.get("ticker"),
            "security_type": first.get("securityType"),
            "market_sector": first.get("marketSector"),
            "match_count": len(response["data"]) if has_data(response) else 0,
            "message": response.get("error") or response.get("warning"),
        })
    return pd.DataFrame(rows, columns=RESULT_COLUMNS)
