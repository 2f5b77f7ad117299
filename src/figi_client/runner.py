"""
Command-line entry point.

Usage:
    figi-resolve detect "AAPL US"
    figi-resolve parse --file holdings.csv
    figi-resolve search US0378331005
    figi-resolve batch --file holdings.csv --format table
    figi-resolve rate-limit

Text input for ``parse`` and ``batch`` comes from --file, a positional
argument, or stdin.  Set OPENFIGI_API_KEY to raise the per-call limit
from 10 to 100 identifiers.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from identifiers import detect_identifier, parse_identifiers

from .batch import resolve_one, search_text
from .config import get_client_config, set_debug_mode
from .errors import FigiApiError
from .rate_limit import get_rate_limit_info
from .reports import (
    format_detection_details,
    format_rate_limit_status,
    format_response,
    format_search_report,
    results_to_frame,
)


def _read_text(args: argparse.Namespace) -> str:
    if args.file:
        return Path(args.file).read_text(encoding="utf-8")
    if args.text:
        return args.text
    return sys.stdin.read()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="figi-resolve",
        description="Detect financial identifiers and resolve them to FIGIs via OpenFIGI.",
    )
    parser.add_argument("--debug", action="store_true", help="log requests, retries and rate limits")
    sub = parser.add_subparsers(dest="command", required=True)

    detect = sub.add_parser("detect", help="classify a single identifier (no network)")
    detect.add_argument("identifier")

    for name, help_text in (
        ("parse", "detect identifiers in text/CSV (no network)"),
        ("batch", "detect and resolve every identifier in text/CSV"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("text", nargs="?", help="inline text; stdin if omitted")
        cmd.add_argument("--file", help="read input from this file")
        if name == "batch":
            cmd.add_argument(
                "--format",
                choices=("text", "table", "csv"),
                default="text",
                help="output format (default: text)",
            )

    search = sub.add_parser("search", help="detect and resolve a single identifier")
    search.add_argument("identifier")

    sub.add_parser("rate-limit", help="show the last rate-limit snapshot")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    set_debug_mode(args.debug)

    try:
        if args.command == "detect":
            detected = detect_identifier(args.identifier)
            print(format_detection_details([detected]))

        elif args.command == "parse":
            parsed = parse_identifiers(_read_text(args))
            print(f"{parsed.summary}\n\nDetails:\n{format_detection_details(parsed.identifiers)}")

        elif args.command == "search":
            detected = detect_identifier(args.identifier)
            response = resolve_one(detected, get_client_config())
            exch = f" (Exchange: {detected.exch_code})" if detected.exch_code else ""
            print(
                f"Detected type: {detected.kind.value}{exch} "
                f"[{detected.confidence.value} confidence]\n"
            )
            print(format_response(response))

        elif args.command == "batch":
            result = search_text(_read_text(args), get_client_config())
            if args.format == "text" or not result.identifiers:
                print(format_search_report(
                    result.summary, result.identifiers, result.responses, result.variants
                ))
            else:
                frame = results_to_frame(result.identifiers, result.responses)
                if args.format == "csv":
                    print(frame.to_csv(index=False), end="")
                else:
                    print(frame.to_string(index=False))

        elif args.command == "rate-limit":
            print(format_rate_limit_status(get_rate_limit_info()))

    except FigiApiError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Error: cannot read input: {exc}", file=sys.stderr)
        return 1

    return 0


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(main())
