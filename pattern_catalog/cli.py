#!/usr/bin/env python3
"""
Build, validate and query the anti-pattern catalog.

This script:
1. Reads every .md/.mdx document under a source directory
2. Parses examples, code blocks and diff views
3. Reconciles each diff view with its avoid/good snippets
4. Builds the ordered catalog and validates it
5. Writes catalog.json and catalog.report.json

Usage:
    pattern-catalog build docs/ output/catalog.json
    pattern-catalog validate docs/
    pattern-catalog show output/catalog.json --pattern pattern-003

Exit status:
    0  no findings at or above the --fail-on severity
    1  findings at or above the --fail-on severity
    2  no readable documents, missing or corrupt catalog, or bad configuration
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from .builder import CatalogBuilder
from .config import FAIL_ON_CHOICES, PipelineConfig, load_config
from .errors import CatalogNotFoundError, NoContentFoundError
from .pipeline import PipelineResult, run_pipeline
from .query import CatalogReader
from .validator import Severity

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FINDINGS = 1
EXIT_NO_CONTENT = 2
SEVERITY_MARKERS = {"error": "✗", "warning": "⚠", "info": "•"}


def _add_pipeline_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "source_dir",
        type=Path,
        help="Directory with .md/.mdx pattern documents"
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Parallel workers (default: PATTERN_CATALOG_WORKERS or 1)"
    )
    parser.add_argument(
        "--processes",
        action="store_true",
        default=None,
        help="Use a process pool instead of threads"
    )
    parser.add_argument(
        "--fail-on",
        choices=FAIL_ON_CHOICES,
        help="Lowest severity that makes the exit status non-zero (default: error)"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show every finding and debug logging"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pattern-catalog",
        description="Build and validate the anti-pattern catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Build catalog and report
    pattern-catalog build docs/ output/catalog.json

    # Validate only, treat warnings as failures
    pattern-catalog validate docs/ --fail-on warning

    # Look up a pattern in a saved catalog
    pattern-catalog show output/catalog.json --pattern pattern-003
        """
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Build the catalog and write artifacts")
    _add_pipeline_options(build)
    build.add_argument(
        "output",
        type=Path,
        help="Catalog JSON artifact to write"
    )
    build.add_argument(
        "--report",
        type=Path,
        help="Report JSON artifact (default: <output stem>.report.json)"
    )

    validate = subparsers.add_parser("validate", help="Validate documents without writing artifacts")
    _add_pipeline_options(validate)

    show = subparsers.add_parser("show", help="Query a saved catalog")
    show.add_argument("catalog", type=Path, help="Catalog JSON artifact")
    show.add_argument("--pattern", help="Show one pattern by id (e.g. pattern-003)")
    show.add_argument("--title", help="Filter patterns by title substring")
    show.add_argument(
        "--warnings",
        action="store_true",
        help="List examples with reconciliation warnings"
    )
    return parser


def _configure_logging(config: PipelineConfig, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, config.log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _print_findings(result: PipelineResult, verbose: bool) -> None:
    grouped = result.report.by_severity()
    for severity, findings in grouped.items():
        if not findings:
            continue
        if severity != Severity.ERROR.value and not verbose:
            print(f"  {SEVERITY_MARKERS[severity]} {len(findings)} {severity}(s) (use --verbose to list)")
            continue
        for finding in findings:
            print(f"  {SEVERITY_MARKERS[severity]} [{finding.code}] {finding.entity_id}: {finding.message}")


def _print_summary(result: PipelineResult) -> None:
    stats = result.catalog.statistics()
    counts = result.report.counts()
    print("\n" + "=" * 70)
    print("CATALOG SUMMARY")
    print("=" * 70)
    print(f"  Documents read: {result.sources_read}")
    print(f"  Patterns: {stats['patterns']}")
    print(f"  Examples: {stats['examples']}")
    print(f"  Failed documents: {stats['failures']}")
    print(f"  With occurrence stats: {stats['with_occurrence_stats']}")
    print(f"  Errors: {counts['error']}  Warnings: {counts['warning']}")


def _run(args: argparse.Namespace, write: bool) -> int:
    try:
        config = load_config(
            workers=args.workers,
            use_processes=args.processes,
            fail_on=args.fail_on,
        )
    except ValueError as e:
        print(f"\n✗ Configuration error: {e}")
        return EXIT_NO_CONTENT

    _configure_logging(config, args.verbose)

    print("\n" + "=" * 70)
    print("Pattern Catalog Builder" if write else "Pattern Catalog Validator")
    print("=" * 70)
    print(f"Input: {args.source_dir}")
    if write:
        print(f"Output: {args.output}")

    builder = CatalogBuilder(args.output, args.report) if write else CatalogBuilder()
    try:
        result = run_pipeline(args.source_dir, config, builder)
    except NoContentFoundError as e:
        print(f"\n✗ Error: {e.message}")
        return EXIT_NO_CONTENT

    print("\nFindings:")
    _print_findings(result, args.verbose)
    _print_summary(result)

    if write:
        stats = builder.save(result.catalog, result.report)
        print(f"\nCatalog location: {stats['catalog_file']}")
        print(f"  • {Path(stats['catalog_file']).name:<28}- Pattern catalog")
        print(f"  • {Path(stats['report_file']).name:<28}- Validation report")

    failed = result.report.exceeds(config.fail_on)
    print("\n" + ("✗ Findings at or above '" + config.fail_on + "'" if failed else "✓ Catalog is clean"))
    print("=" * 70 + "\n")
    return EXIT_FINDINGS if failed else EXIT_OK


def _show(args: argparse.Namespace) -> int:
    reader = CatalogReader(args.catalog)
    try:
        if args.pattern:
            pattern = reader.get_pattern(args.pattern)
            print(f"{pattern.pattern_id}  {pattern.category_id}. {pattern.title}")
            if pattern.occurrence_stat:
                stat = pattern.occurrence_stat
                total = f" out of {stat.total_opportunities}" if stat.total_opportunities is not None else ""
                print(f"  Occurrences: {stat.occurrences}{total}")
            for ref in pattern.references:
                print(f"  Reference: {ref}")
            for example in pattern.examples:
                diff = example.diff
                counts = f"+{len(diff.added_lines)}/-{len(diff.removed_lines)}" if diff else "no diff"
                print(f"  {example.index}. {example.label} ({counts}, {len(example.warnings)} warning(s))")
        elif args.warnings:
            for example in reader.examples_with_warnings():
                print(f"{example.example_id}: {example.label}")
                for warning in example.warnings:
                    print(f"  ⚠ [{warning.kind}] {warning.message}")
        else:
            patterns = reader.search_patterns(title_contains=args.title) if args.title else reader.model.patterns
            for pattern in patterns:
                print(f"  • {pattern.title} (id: {pattern.pattern_id}, {len(pattern.examples)} example(s))")
    except CatalogNotFoundError as e:
        print(f"\n✗ Error: {e.message}")
        return EXIT_NO_CONTENT
    except ValidationError as e:
        print(f"\n✗ Error: {args.catalog} is not a valid catalog ({e.error_count()} problem(s))")
        return EXIT_NO_CONTENT
    except KeyError as e:
        print(f"\n✗ Error: {e.args[0]}")
        return EXIT_FINDINGS
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "build":
        return _run(args, write=True)
    if args.command == "validate":
        return _run(args, write=False)
    return _show(args)


if __name__ == "__main__":
    sys.exit(main())
