"""log-query: filter, search, and summarize structured request logs."""

import os
import sys
from argparse import ArgumentParser, ArgumentTypeError
from datetime import datetime

from requestlog.config import load_config
from requestlog.query.filters import FilterOptions, filter_entries
from requestlog.query.formatter import (
    format_error_summary,
    format_performance_summary,
    get_formatter,
)
from requestlog.query.reader import list_log_files, parse_timestamp, read_all
from requestlog.query.stats import PERFORMANCE_CATEGORIES, aggregate_errors, performance_summary


def _csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _timestamp(value: str) -> datetime:
    parsed = parse_timestamp(value)
    if parsed is None:
        raise ArgumentTypeError(f"invalid ISO timestamp: {value!r}")
    return parsed


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(
        prog="log-query",
        description="Filter, search, and summarize structured log files.",
    )
    parser.add_argument("--level", type=_csv, default=[],
                        help="Comma-separated levels (error,warn,info,debug,verbose)")
    parser.add_argument("--category", type=_csv, default=[],
                        help="Comma-separated categories (API,GENERATION,...)")
    parser.add_argument("--search", help="Search in messages and full records (case-insensitive)")
    parser.add_argument("--since", type=_timestamp, help="Only entries at or after this ISO time")
    parser.add_argument("--until", type=_timestamp, help="Only entries at or before this ISO time")
    parser.add_argument("--limit", type=int, default=100, help="Max entries shown (default: 100)")
    parser.add_argument("--file", dest="file_pattern",
                        help='Glob on log file names, e.g. "error-*.log"')
    parser.add_argument("--errors", action="store_true", help="Show only errors, plus an error summary")
    parser.add_argument("--performance", action="store_true",
                        help="Show PERFORMANCE/API entries, plus a latency summary")
    parser.add_argument("--log-dir", help="Log directory (default: LOG_DIR or ./logs)")
    parser.add_argument("--output", choices=["text", "json"], default="text",
                        help="Output format (default: text)")
    parser.add_argument("--color", action="store_true", help="Colorize levels (ANSI)")
    return parser


def options_from_args(args) -> FilterOptions:
    levels = list(args.level)
    categories = list(args.category)
    if args.errors:
        levels = ["error"]
    if args.performance:
        categories = list(PERFORMANCE_CATEGORIES)
    return FilterOptions(
        levels=levels,
        categories=categories,
        search=args.search,
        since=args.since,
        until=args.until,
        limit=args.limit,
    )


def run(args, out=None) -> int:
    """Execute a query. Returns the process exit code."""
    out = out or sys.stdout
    log_dir = args.log_dir or load_config().log_dir

    try:
        paths = list_log_files(log_dir, args.file_pattern)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not paths:
        print("No log files found.", file=out)
        return 0

    print(f"Reading {len(paths)} log file(s)...", file=sys.stderr)
    entries = read_all(paths)
    print(f"Found {len(entries)} log entries", file=sys.stderr)

    options = options_from_args(args)
    filtered = filter_entries(entries, options)

    if not filtered:
        print("No entries match the filter criteria.", file=out)
    else:
        formatter = get_formatter(args.output, color=args.color,
                                  show_stack=bool(os.environ.get("DEBUG")))
        if args.output == "text":
            print(f"Showing {len(filtered)} entries:\n", file=out)
        for entry in filtered:
            print(formatter(entry), file=out)
            if args.output == "text":
                print("", file=out)

    if args.output == "text":
        wanted_levels = [level.lower() for level in options.levels]
        if args.errors or "error" in wanted_levels:
            print(format_error_summary(aggregate_errors(entries)), file=out)
        wanted_categories = [c.upper() for c in options.categories]
        if args.performance or any(c in PERFORMANCE_CATEGORIES for c in wanted_categories):
            print(format_performance_summary(performance_summary(entries)), file=out)

    return 0


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    sys.exit(run(args))


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit(0)
    except BrokenPipeError:
        sys.exit(0)
