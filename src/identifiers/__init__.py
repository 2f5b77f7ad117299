"""
src/identifiers — Identifier detection and free-text parsing.

Module layout
-------------
config.py       — Shape patterns, header keywords, summary labels
detector.py     — IdentifierKind / Confidence, DetectedIdentifier,
                  detect_identifier(), shape validators
text_parser.py  — Line / CSV splitting, header skipping, per-kind summary

Public interface
----------------
Classify a single token:
    detect_identifier("AAPL US")

Parse pasted text or CSV:
    parse_identifiers("Ticker\\nAAPL US\\nMSFT US")

Check an identifier's shape (no checksum verification):
    validate_identifier("US0378331005", "ISIN")
"""

from .detector import (
    Confidence,
    DetectedIdentifier,
    IdentifierKind,
    detect_identifier,
    is_valid_bloomberg_id,
    is_valid_cusip,
    is_valid_isin,
    is_valid_sedol,
    validate_identifier,
)
from .text_parser import ParsedIdentifiers, parse_identifiers, summarize_kinds

__all__ = [
    # Detection
    "IdentifierKind",
    "Confidence",
    "DetectedIdentifier",
    "detect_identifier",
    # Shape validation
    "is_valid_isin",
    "is_valid_cusip",
    "is_valid_sedol",
    "is_valid_bloomberg_id",
    "validate_identifier",
    # Text parsing
    "ParsedIdentifiers",
    "parse_identifiers",
    "summarize_kinds",
]
