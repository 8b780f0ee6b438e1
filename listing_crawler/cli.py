"""Command-line interface for the listing scraper."""

from __future__ import annotations

import argparse
import logging
import sys

from . import __version__
from .config import DEFAULT_PATTERN, OUTPUT_FORMATS, PARSER_CHOICES, ScrapeConfig
from .engine import ScrapeEngine
from .exceptions import EXIT_OK, EXIT_RUNTIME, EXIT_USAGE, ScrapeError, UsageError

_EPILOG = """\
Output formats:
  plain:  Match! (hit1)(hit2) URL - Title
  tsv:    Match! <TAB> (hit1)(hit2) <TAB> URL <TAB> Title
  block:  Match! (hit1)(hit2) / URL: ... / Title: ... / blank line

Exit codes:
  0 success, 1 usage/dependency error, 2 runtime/network error
"""


class _ArgumentParser(argparse.ArgumentParser):
    """Report bad flags with the usage exit code instead of argparse's 2."""

    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(EXIT_USAGE, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    defaults = ScrapeConfig()
    p = _ArgumentParser(
        prog="listing-crawler",
        description=(
            "Scrape classified search results, fetch each posting, "
            "and report postings matching a keyword regex."
        ),
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument(
        "--city", default=defaults.city,
        help=f"City subdomain (default: {defaults.city})",
    )
    p.add_argument(
        "--domain", default=defaults.domain,
        help=f"Site domain under the city subdomain (default: {defaults.domain})",
    )
    p.add_argument(
        "--section", default=defaults.section,
        help=f"Section path (default: {defaults.section})",
    )
    p.add_argument(
        "--pages", type=int, default=defaults.pages,
        help=f"Number of search pages to fetch (default: {defaults.pages})",
    )
    p.add_argument(
        "--start", type=int, default=defaults.start,
        help=f"Starting offset (default: {defaults.start})",
    )
    p.add_argument(
        "--step", type=int, default=defaults.step,
        help=f"Offset step per page (default: {defaults.step})",
    )
    p.add_argument(
        "--sort", default=defaults.sort,
        help=f"Sort order (default: {defaults.sort})",
    )
    p.add_argument(
        "--query", default=defaults.query,
        help="Search query parameter (default: empty)",
    )
    p.add_argument(
        "--regex", default=DEFAULT_PATTERN,
        help="Regex to match, case-insensitive (default: mario|ps[34]|xbox|...)",
    )
    p.add_argument(
        "-o", "--output", default=defaults.output,
        help=f"Output file (default: {defaults.output})",
    )
    p.add_argument(
        "--append", action="store_true",
        help="Append to output file (default: overwrite)",
    )
    p.add_argument(
        "-f", "--format", choices=OUTPUT_FORMATS, default=defaults.output_format,
        help=f"Output format (default: {defaults.output_format})",
    )
    p.add_argument(
        "--print-urls", action="store_true",
        help="Only print the unique URLs found (do not fetch posts)",
    )
    p.add_argument(
        "--delay", type=float, default=defaults.delay,
        help=f"Delay between HTTP requests in seconds (default: {defaults.delay:g})",
    )
    p.add_argument(
        "--timeout", type=float, default=defaults.timeout,
        help=f"HTTP request timeout in seconds (default: {defaults.timeout:g})",
    )
    p.add_argument(
        "--retries", type=int, default=defaults.retries,
        help=f"Max retries per request (default: {defaults.retries})",
    )
    p.add_argument(
        "--user-agent", default=defaults.user_agent,
        help="User-Agent header (default: program name/version)",
    )
    p.add_argument(
        "--parser", choices=PARSER_CHOICES, default=defaults.parser,
        help=f"Parsing backend (default: {defaults.parser})",
    )
    p.add_argument(
        "--workers", type=int, default=defaults.workers,
        help=f"Parallel post fetches (default: {defaults.workers})",
    )
    p.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable verbose logging",
    )
    p.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    return p


def config_from_args(args: argparse.Namespace) -> ScrapeConfig:
    return ScrapeConfig(
        city=args.city,
        domain=args.domain,
        section=args.section,
        pages=args.pages,
        start=args.start,
        step=args.step,
        sort=args.sort,
        query=args.query,
        pattern=args.regex,
        output=args.output,
        append=args.append,
        output_format=args.format,
        delay=args.delay,
        timeout=args.timeout,
        retries=args.retries,
        user_agent=args.user_agent,
        parser=args.parser,
        print_urls=args.print_urls,
        verbose=args.verbose,
        workers=args.workers,
    )


def run(argv: list[str] | None = None) -> int:
    """Parse *argv*, run the scrape and return the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    engine = ScrapeEngine(config_from_args(args))
    try:
        summary = engine.run()
    except UsageError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return EXIT_USAGE
    except ScrapeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return exc.exit_code
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME

    if not args.print_urls:
        print(
            f"\nScrape complete: {summary.total_urls} listings, "
            f"{summary.matched} matched, {summary.total_failed} failed",
            file=sys.stderr,
        )
    return EXIT_OK


def main(argv: list[str] | None = None) -> None:
    sys.exit(run(argv))


if __name__ == "__main__":
    main()
