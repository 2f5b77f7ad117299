"""
Detection-layer configuration: identifier shape patterns, header keywords,
and display constants.

All constants used by detector.py and text_parser.py are centralized here so
that the classification rules can be read in one place.
"""

import re

# ---------------------------------------------------------------------------
# Identifier shape patterns
# ---------------------------------------------------------------------------

# Shapes only.  No checksum digit is verified for any format, so a match
# means "shape-valid", not "valid".
ISIN_PATTERN = re.compile(r"^[A-Z]{2}[A-Z0-9]{9}[0-9]$")
BLOOMBERG_ID_PATTERN = re.compile(r"^BBG[A-Z0-9]{9}$")
CUSIP_PATTERN = re.compile(r"^[A-Z0-9]{9}$")
SEDOL_PATTERN = re.compile(r"^[A-Z0-9]{7}$")

# "AAPL US", "ABLI  SS": ticker, whitespace, two-letter exchange code
TICKER_WITH_EXCHANGE_PATTERN = re.compile(r"^([A-Z0-9]+)\s+([A-Z]{2})$", re.IGNORECASE)

# Plain upper-case ticker, e.g. "MSFT"
BARE_TICKER_PATTERN = re.compile(r"^[A-Z]{1,5}$")

# Tickers with digits or share-class dots, e.g. "BRK.A", "tsla3"
TICKER_LIKE_PATTERN = re.compile(r"^[A-Z0-9.]{1,10}$", re.IGNORECASE)

# Human-readable format descriptions reported by validate_identifier()
EXPECTED_FORMATS: dict[str, str] = {
    "ISIN": "2 letter country code + 9 alphanumeric characters + 1 check digit",
    "CUSIP": "9 alphanumeric characters",
    "SEDOL": "7 alphanumeric characters",
    "BLOOMBERG_ID": "BBG + 9 alphanumeric characters",
}

# ---------------------------------------------------------------------------
# Text / CSV parsing
# ---------------------------------------------------------------------------

# A first line containing any of these (case-insensitive) is a header row.
HEADER_KEYWORDS: tuple[str, ...] = (
    "ticker",
    "isin",
    "cusip",
    "sedol",
    "symbol",
    "identifier",
)

# Splits on CR, LF or CRLF
LINE_SPLIT_PATTERN = re.compile(r"\r\n|\r|\n")

# Column delimiters; only the first column is read
COLUMN_SPLIT_PATTERN = re.compile(r"[,\t]")

# Kind order and labels used in the per-kind summary
SUMMARY_LABELS: dict[str, str] = {
    "ISIN": "ISIN",
    "CUSIP": "CUSIP",
    "SEDOL": "SEDOL",
    "BLOOMBERG_ID": "Bloomberg ID",
    "TICKER": "Ticker",
    "UNKNOWN": "Unknown",
}
