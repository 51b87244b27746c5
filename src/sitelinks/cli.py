"""
Command-line interface for the crawler.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional, Sequence, Tuple

from sitelinks.core import CrawlResult, crawl
from sitelinks.fetcher import DEFAULT_TIMEOUT_S, DEFAULT_USER_AGENT

REPORT_RULE = "=" * 29


def positive_int(value: str) -> int:
    """argparse type for integers >= 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid positive integer: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {number}")
    return number


def non_negative_int(value: str) -> int:
    """argparse type for integers >= 0."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid non-negative integer: {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {number}")
    return number


def format_report(base_url: str, ranked: Sequence[Tuple[str, int]]) -> str:
    """Render the inbound link report, one line per page."""
    lines = [
        REPORT_RULE,
        f"  REPORT for {base_url}",
        REPORT_RULE,
    ]
    lines.extend(f"Found {count} internal links to {url}" for url, count in ranked)
    return "\n".join(lines) + "\n"


def format_json(result: CrawlResult) -> str:
    payload = {
        "base_url": result.base_url,
        "started_at": result.started_at,
        "finished_at": result.finished_at,
        "pages": [{"url": url, "inbound_links": count} for url, count in result.ranked()],
    }
    return json.dumps(payload, ensure_ascii=False, indent=2)


def print_summary(result: CrawlResult) -> None:
    """Print crawl summary to stderr."""
    stats = result.stats
    sys.stderr.write("=" * 50 + "\n")
    sys.stderr.write("CRAWL SUMMARY\n")
    sys.stderr.write("=" * 50 + "\n\n")

    sys.stderr.write(f"Started:                {result.started_at}\n")
    sys.stderr.write(f"Finished:               {result.finished_at}\n")
    sys.stderr.write(f"Pages fetched:          {stats.pages_fetched}\n")
    sys.stderr.write(f"Unparseable URLs:       {stats.invalid_urls}\n")
    sys.stderr.write(f"Skipped (page limit):   {stats.skipped_over_cap}\n")
    sys.stderr.write(f"Skipped (depth limit):  {stats.skipped_too_deep}\n\n")

    if stats.error_counts:
        sys.stderr.write("Errors by type:\n")
        for error_type, count in sorted(stats.error_counts.items()):
            label = "Connection errors" if error_type == "connection_error" else f"HTTP {error_type}"
            sys.stderr.write(f"  {label}: {count}\n")
    else:
        sys.stderr.write("No errors encountered.\n")

    sys.stderr.write("\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sitelinks",
        description=(
            "Crawl every page on the host of BASE_URL and report how many internal "
            "links point at each one. Pages are identified by their canonical URL: "
            "lowercased scheme and host, no trailing slash, no default port, no "
            "fragment, query string kept as-is."
        ),
    )
    parser.add_argument("base_url", help="Start URL (e.g. https://example.com)")
    parser.add_argument("max_concurrency", type=positive_int, help="Maximum concurrent requests")
    parser.add_argument("max_pages", type=positive_int, help="Soft limit on distinct pages")
    parser.add_argument(
        "--timeout", type=float, default=DEFAULT_TIMEOUT_S,
        help=f"Request timeout in seconds (default: {DEFAULT_TIMEOUT_S:g})",
    )
    parser.add_argument(
        "--max-depth", type=non_negative_int, default=None,
        help="Follow links at most this many hops from BASE_URL (default: unlimited)",
    )
    parser.add_argument("--user-agent", default=DEFAULT_USER_AGENT, help="User-Agent header")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging and crawl summary")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the crawler CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        result = crawl(
            base_url=args.base_url,
            max_concurrency=args.max_concurrency,
            max_pages=args.max_pages,
            timeout_s=args.timeout,
            user_agent=args.user_agent,
            max_depth=args.max_depth,
        )
    except ValueError as e:
        parser.error(str(e))

    if args.verbose:
        print_summary(result)

    if args.json:
        print(format_json(result))
    else:
        sys.stdout.write(format_report(args.base_url, result.ranked()))

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
