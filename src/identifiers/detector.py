"""
Identifier type detection for single raw tokens.

detect_identifier() is a total function: every input, however malformed,
yields a DetectedIdentifier.  Tokens that match no known shape come back as
IdentifierKind.UNKNOWN with low confidence, so a batch never aborts on one
bad line.

Classification order (first match wins, most specific first):

  1. ISIN          2 letters + 9 alphanumerics + 1 digit    high
  2. Bloomberg ID  "BBG" + 9 alphanumerics                  high
  3. CUSIP         9 alphanumerics                          medium
  4. SEDOL         7 alphanumerics                          medium
  5. Ticker + exchange, e.g. "AAPL US"                      high
  6. Bare ticker, 1-5 upper-case letters                    low
  7. Ticker-like, <= 10 letters/digits/dots                 low
  8. Anything else                                          unknown / low

Check digits are never verified.  A correctly shaped ISIN with a wrong
check digit is still an ISIN with high confidence; callers should read the
result as "shape-valid".

A Bloomberg ID also fits the ISIN shape ("BB" + 9 + digit), so a token
matching the Bloomberg pattern is never reported as an ISIN.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .config import (
    BARE_TICKER_PATTERN,
    BLOOMBERG_ID_PATTERN,
    CUSIP_PATTERN,
    EXPECTED_FORMATS,
    ISIN_PATTERN,
    SEDOL_PATTERN,
    TICKER_LIKE_PATTERN,
    TICKER_WITH_EXCHANGE_PATTERN,
)


class IdentifierKind(str, Enum):
    ISIN = "ISIN"
    CUSIP = "CUSIP"
    SEDOL = "SEDOL"
    BLOOMBERG_ID = "BLOOMBERG_ID"
    TICKER = "TICKER"
    UNKNOWN = "UNKNOWN"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class DetectedIdentifier:
    value: str
    kind: IdentifierKind
    confidence: Confidence
    exch_code: str | None = None

    @property
    def label(self) -> str:
        """Display label, e.g. ``'AAPL [US]'``."""
        if self.exch_code:
            return f"{self.value} [{self.exch_code}]"
        return self.value


# ---------------------------------------------------------------------------
# Shape validators
# ---------------------------------------------------------------------------

def is_valid_isin(value: str) -> bool:
    return bool(ISIN_PATTERN.match(value))


def is_valid_cusip(value: str) -> bool:
    return bool(CUSIP_PATTERN.match(value))


def is_valid_sedol(value: str) -> bool:
    return bool(SEDOL_PATTERN.match(value))


def is_valid_bloomberg_id(value: str) -> bool:
    return bool(BLOOMBERG_ID_PATTERN.match(value))


_SHAPE_CHECKS = {
    IdentifierKind.ISIN: is_valid_isin,
    IdentifierKind.CUSIP: is_valid_cusip,
    IdentifierKind.SEDOL: is_valid_sedol,
    IdentifierKind.BLOOMBERG_ID: is_valid_bloomberg_id,
}


def validate_identifier(value: str, kind: IdentifierKind | str) -> tuple[bool, str]:
    """
    Check whether ``value`` has the shape of the given identifier kind.

    Only ISIN, CUSIP, SEDOL and Bloomberg ID have a fixed shape to check.

    Args:
        value: Raw identifier string (not trimmed or case-folded).
        kind: Identifier kind or its string name.

    Returns:
        Tuple of (is_shape_valid, message).  On failure the message names
        the expected format.

    Raises:
        ValueError: If ``kind`` has no fixed shape (ticker, unknown).
    """
    kind = IdentifierKind(kind)
    check = _SHAPE_CHECKS.get(kind)
    if check is None:
        raise ValueError(
            f"Identifier kind '{kind.value}' has no fixed shape to validate. "
            f"Use one of: {', '.join(k.value for k in _SHAPE_CHECKS)}"
        )

    if check(value):
        return True, f'Valid {kind.value}: "{value}"'
    return False, (
        f'Invalid {kind.value}: "{value}"\n'
        f"Expected format: {EXPECTED_FORMATS[kind.value]}"
    )


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------

def detect_identifier(raw: str) -> DetectedIdentifier:
    """
    Classify one token into a typed, confidence-scored identifier.

    Args:
        raw: Candidate token.  Surrounding whitespace is ignored.

    Returns:
        DetectedIdentifier; ``IdentifierKind.UNKNOWN`` when nothing matches.
    """
    token = (raw or "").strip()

    if is_valid_isin(token) and not is_valid_bloomberg_id(token):
        return DetectedIdentifier(token, IdentifierKind.ISIN, Confidence.HIGH)

    if is_valid_bloomberg_id(token):
        return DetectedIdentifier(token, IdentifierKind.BLOOMBERG_ID, Confidence.HIGH)

    if is_valid_cusip(token):
        return DetectedIdentifier(token, IdentifierKind.CUSIP, Confidence.MEDIUM)

    if is_valid_sedol(token):
        return DetectedIdentifier(token, IdentifierKind.SEDOL, Confidence.MEDIUM)

    match = TICKER_WITH_EXCHANGE_PATTERN.match(token)
    if match:
        return DetectedIdentifier(
            value=match.group(1).upper(),
            kind=IdentifierKind.TICKER,
            confidence=Confidence.HIGH,
            exch_code=match.group(2).upper(),
        )

    if BARE_TICKER_PATTERN.match(token):
        return DetectedIdentifier(token, IdentifierKind.TICKER, Confidence.LOW)

    if TICKER_LIKE_PATTERN.match(token):
        return DetectedIdentifier(token.upper(), IdentifierKind.TICKER, Confidence.LOW)

    return DetectedIdentifier(token, IdentifierKind.UNKNOWN, Confidence.LOW)
