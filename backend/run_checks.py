#!/usr/bin/env python3
"""CLI tool to run feed-quality checks (or search-term mining) on a TSV feed.

Usage:
    python run_checks.py <feed.tsv>                          # Run every check
    python run_checks.py <feed.tsv> --checks check_gtin,check_price_is_set
    python run_checks.py <feed.tsv> --trace                  # Run with FEEDAUDIT_TRACE
    python run_checks.py <feed.tsv> --json                   # Output raw JSON
    python run_checks.py <feed.tsv> --search-terms           # Mine search terms instead
    python run_checks.py --list                              # List available checks

Exit codes:
    0  pass completed (findings or not)
    1  pass truncated (cancelled or failed chunks)
    2  feed unreadable or unknown check name
"""

import argparse
import json
import os
import sys
from pathlib import Path

# Ensure the backend package is importable
sys.path.insert(0, str(Path(__file__).resolve().parent))

from feedaudit.pipeline.schemas import FeedAuditError


def _registry(use_spelling: bool):
    from feedaudit.pipeline.check_registry import build_registry
    from feedaudit.pipeline.fuzzy_matcher import FuzzyMatcher
    return build_registry(FuzzyMatcher() if use_spelling else None)


def list_checks():
    """Print every registered check in reporting order."""
    print(f"\n{'Check':<42} {'Family':<20} {'Label'}")
    print("─" * 100)
    for c in _registry(use_spelling=True).describe():
        print(f"{c['name']:<42} {c['family']:<20} {c['label']}")
    print()


def _print_progress(event):
    if event.status == "chunk":
        print(f"  … chunk {event.chunk_index + 1}/{event.total_chunks}: "
              f"{event.processed}/{event.total} records", file=sys.stderr)
    elif event.status == "error":
        print(f"  ✗ {event.message}", file=sys.stderr)


def run_checks(
    feed_path: str,
    enabled: list[str] | None = None,
    chunk_size: int | None = None,
    use_spelling: bool = True,
    output_json: bool = False,
) -> int:
    """Run a feed-quality pass and print the report. Returns the exit code."""
    from feedaudit.config import CHUNK_SIZE
    from feedaudit.pipeline.feed_reader import read_feed
    from feedaudit.pipeline.orchestrator import FeedQualityPipeline

    registry = _registry(use_spelling).select(enabled)
    pipeline = FeedQualityPipeline(registry)
    report = pipeline.run(
        lambda: read_feed(feed_path),
        chunk_size or CHUNK_SIZE,
        None if output_json else _print_progress,
    )

    if output_json:
        print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
        return 1 if report.truncated else 0

    # ── Pretty print results ──
    print(f"\n{'═' * 70}")
    print(f"  Feed Audit — {Path(feed_path).name}: {report.total_products} of "
          f"{report.expected_products} record(s), {len(registry)} check(s)")
    print(f"{'═' * 70}\n")

    if report.error_counts:
        print(f"  FINDINGS BY TYPE ({len(report.errors)} total)")
        print(f"  {'─' * 60}")
        for error_type, count in sorted(report.error_counts.items(), key=lambda kv: (-kv[1], kv[0])):
            print(f"  {count:>7}  {error_type}")
        print()

        print("  FIRST FINDINGS")
        print(f"  {'─' * 60}")
        for e in report.errors[:20]:
            print(f"  ✗ [{e.id}] {e.error_type}")
            print(f"    {e.details[:120]}")
            if e.value:
                print(f"    Value: {e.value[:100]}")
            print()
    else:
        print("  No findings.\n")

    print(f"{'═' * 70}")
    status = "TRUNCATED" if report.truncated else "complete"
    print(f"  Summary: {len(report.errors)} finding(s) across "
          f"{len(report.error_counts)} type(s), pass {status}")
    print(f"{'═' * 70}\n")
    return 1 if report.truncated else 0


def run_search_terms(feed_path: str, chunk_size: int | None = None, output_json: bool = False) -> int:
    """Run a search-term pass and print the terms found."""
    from feedaudit.config import SEARCH_TERMS_CHUNK_SIZE
    from feedaudit.pipeline.feed_reader import read_feed
    from feedaudit.pipeline.keyword_volume import default_provider
    from feedaudit.pipeline.search_terms import SearchTermsAnalyzer

    provider = default_provider()
    try:
        terms = SearchTermsAnalyzer(keyword_provider=provider).run(
            lambda: read_feed(feed_path), chunk_size or SEARCH_TERMS_CHUNK_SIZE,
        )
    finally:
        if provider is not None:
            provider.close()

    if output_json:
        print(json.dumps([t.to_dict() for t in terms], indent=2, ensure_ascii=False))
        return 0

    print(f"\n{'═' * 70}")
    print(f"  Search Terms — {Path(feed_path).name}: {len(terms)} term(s)")
    print(f"{'═' * 70}\n")
    for t in sorted(terms, key=lambda t: -len(t.matching_products))[:50]:
        volume = t.keyword_metrics.avg_monthly_searches if t.keyword_metrics else "—"
        print(f"  {len(t.matching_products):>6} products  {t.search_term:<40} {volume}")
        print(f"          {t.pattern}")
    print()
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Feed Audit CLI — Run quality checks on a product feed",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("feed", nargs="?", help="Tab-separated feed file")
    parser.add_argument("--list", action="store_true", help="List available checks")
    parser.add_argument("--checks", help="Comma-separated check names to enable (default: all)")
    parser.add_argument("--chunk-size", type=int, help="Records per chunk")
    parser.add_argument("--no-spelling", action="store_true", help="Skip dictionary spelling checks")
    parser.add_argument("--search-terms", action="store_true", help="Mine search terms instead of checking quality")
    parser.add_argument("--trace", action="store_true", help="Enable FEEDAUDIT_TRACE debug output")
    parser.add_argument("--json", action="store_true", help="Output raw JSON instead of pretty print")

    args = parser.parse_args()

    if args.trace:
        os.environ["FEEDAUDIT_TRACE"] = "1"
        import importlib
        import feedaudit.config
        importlib.reload(feedaudit.config)
        import feedaudit.pipeline.orchestrator
        importlib.reload(feedaudit.pipeline.orchestrator)

    import logging
    if args.trace:
        logging.basicConfig(level=logging.DEBUG, format="%(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    if args.list:
        list_checks()
        return

    if not args.feed:
        parser.print_help()
        return

    if args.chunk_size is not None and args.chunk_size < 1:
        parser.error("--chunk-size must be positive")

    try:
        if args.search_terms:
            code = run_search_terms(args.feed, args.chunk_size, output_json=args.json)
        else:
            enabled = [c.strip() for c in args.checks.split(",") if c.strip()] if args.checks else None
            code = run_checks(
                args.feed, enabled, args.chunk_size,
                use_spelling=not args.no_spelling, output_json=args.json,
            )
    except FeedAuditError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    sys.exit(code)


if __name__ == "__main__":
    main()
