"""
Free-text / CSV identifier parsing.

Turns pasted spreadsheet columns, CSV exports or newline-separated lists
into a sequence of DetectedIdentifier records plus a per-kind summary.

Header handling is a heuristic: a first line containing one of
HEADER_KEYWORDS is skipped.  A data row that happens to contain one of those
words is therefore taken for a header; there is no declared schema to check
against.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

from .config import COLUMN_SPLIT_PATTERN, HEADER_KEYWORDS, LINE_SPLIT_PATTERN, SUMMARY_LABELS
from .detector import DetectedIdentifier, IdentifierKind, detect_identifier


@dataclass(frozen=True)
class ParsedIdentifiers:
    identifiers: list[DetectedIdentifier] = field(default_factory=list)
    summary: str = ""

    def searchable(self) -> list[DetectedIdentifier]:
        """Identifiers whose kind is known, in input order."""
        return [i for i in self.identifiers if i.kind is not IdentifierKind.UNKNOWN]


def looks_like_header(line: str) -> bool:
    lowered = line.strip().lower()
    return any(keyword in lowered for keyword in HEADER_KEYWORDS)


def first_column(line: str) -> str:
    """Return the trimmed first comma- or tab-delimited column of ``line``."""
    return COLUMN_SPLIT_PATTERN.split(line, maxsplit=1)[0].strip()


def summarize_kinds(identifiers: list[DetectedIdentifier]) -> str:
    """
    Render per-kind counts as human-readable lines.

    Kinds appear in a fixed order (ISIN, CUSIP, SEDOL, Bloomberg ID, Ticker,
    Unknown); kinds with a zero count are omitted.

    Args:
        identifiers: Detection results.

    Returns:
        Multi-line summary string.
    """
    counts = Counter(i.kind.value for i in identifiers)
    lines = [f"Detected {len(identifiers)} identifiers:"]
    for kind, label in SUMMARY_LABELS.items():
        if counts[kind] > 0:
            lines.append(f"  - {label}: {counts[kind]}")
    return "\n".join(lines)


def parse_identifiers(text: str) -> ParsedIdentifiers:
    """
    Parse free text or CSV into detected identifiers.

    Lines are split on CR, LF or CRLF and blank lines are dropped.  If the
    first remaining line looks like a header it is skipped.  The first
    column of every other line is passed to :func:`detect_identifier`.
    Never raises on malformed content; unrecognised tokens come back as
    ``IdentifierKind.UNKNOWN``.

    Args:
        text: Raw input text.

    Returns:
        ParsedIdentifiers with the identifiers in input order and a summary.
    """
    lines = [line for line in LINE_SPLIT_PATTERN.split(text or "") if line.strip()]

    if lines and looks_like_header(lines[0]):
        lines = lines[1:]

    identifiers: list[DetectedIdentifier] = []
    for line in lines:
        token = first_column(line)
        if token:
            identifiers.append(detect_identifier(token))

    return ParsedIdentifiers(identifiers=identifiers, summary=summarize_kinds(identifiers))
