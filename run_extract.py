#!/usr/bin/env python3
"""
Command line entry point for PowerShell definition extraction.

Parses each script into a syntax tree (never executing it) and writes one
record per function/filter definition.

Usage:
    python run_extract.py Tools.psm1
    python run_extract.py ./scripts --include-nested --format table
    find . -name '*.ps1' | python run_extract.py - --output out/defs.jsonl
"""

import argparse
import json
import logging
import os
import sys
from typing import IO, Iterable, List, Optional

from core.run_artifacts import build_run_report, write_run_report
from core.scan_config import OUTPUT_FORMATS, ConfigValidationError, load_scan_config
from core.structured_logging import configure_structured_logging, set_run_id
from extraction.errors import FrontEndUnavailable
from extraction.extractor import ExtractionStats, expand_inputs, extract_paths
from extraction.models import DefinitionRecord, FileExtractionResult

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_PATH_ERROR = 1
EXIT_CONFIG_ERROR = 2


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        description="List function and filter definitions in PowerShell scripts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python run_extract.py Tools.psm1\n"
            "  python run_extract.py ./scripts --include-nested --format table\n"
            "  find . -name '*.ps1' | python run_extract.py -\n"
        )
    )

    parser.add_argument(
        "paths",
        nargs="+",
        help="Script files or directories. Use '-' to read paths from stdin."
    )
    parser.add_argument(
        "--include-nested",
        action="store_true",
        default=None,
        help="Also report definitions declared inside other definitions."
    )
    parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Output format. Default: jsonl (or the config file's output_format)."
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Write records to this file instead of stdout."
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Optional YAML scan configuration file."
    )
    parser.add_argument(
        "--fail-fast",
        action="store_true",
        default=False,
        help="Stop at the first unreadable path instead of skipping it."
    )
    parser.add_argument(
        "--report-dir",
        default=None,
        help="If set, write a JSON run report into this directory."
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level. Default: WARNING"
    )

    return parser.parse_args(argv)


def read_input_paths(paths: Iterable[str], stdin: IO[str]) -> List[str]:
    """Replace '-' with the newline separated paths read from ``stdin``."""
    resolved: List[str] = []
    for path in paths:
        if path == "-":
            resolved.extend(line.strip() for line in stdin if line.strip())
        else:
            resolved.append(path)
    return resolved


def format_table(records: List[DefinitionRecord]) -> str:
    """Render records as an aligned plain-text table."""
    rows = [("NAME", "KIND", "LINE", "PARAMETERS", "FILE")]
    for record in records:
        rows.append((
            record.name,
            record.keyword,
            str(record.line_number),
            ", ".join(record.parameter_names),
            record.file_path,
        ))
    widths = [max(len(row[i]) for row in rows) for i in range(len(rows[0]) - 1)]
    lines = []
    for row in rows:
        cells = [cell.ljust(widths[i]) for i, cell in enumerate(row[:-1])]
        lines.append("  ".join(cells + [row[-1]]))
    return "\n".join(lines)


def write_records(
    results: List[FileExtractionResult],
    output_format: str,
    out: IO[str],
) -> int:
    """Write the records of all successful results; return how many."""
    records = [record for result in results if result.ok for record in result.records]
    if output_format == "json":
        json.dump([r.to_dict() for r in records], out, indent=2, ensure_ascii=False)
        out.write("\n")
    elif output_format == "table":
        if records:
            out.write(format_table(records) + "\n")
    else:
        for record in records:
            out.write(json.dumps(record.to_dict(), ensure_ascii=False) + "\n")
    return len(records)


def run(
    args: argparse.Namespace,
    stdin: Optional[IO[str]] = None,
    stdout: Optional[IO[str]] = None,
) -> int:
    """Execute a scan and return the process exit code."""
    stdin = sys.stdin if stdin is None else stdin
    stdout = sys.stdout if stdout is None else stdout
    config = load_scan_config(args.config)
    include_nested = config.include_nested if args.include_nested is None else args.include_nested
    output_format = args.format or config.output_format
    continue_on_error = config.continue_on_error and not args.fail_fast
    set_run_id()

    sources = read_input_paths(args.paths, stdin)
    paths = list(expand_inputs(sources, set(config.extensions), set(config.exclude_dirs)))
    logger.info("Scanning %d scripts (include_nested=%s)", len(paths), include_nested)

    stats = ExtractionStats()
    results: List[FileExtractionResult] = []
    for result in extract_paths(
        paths,
        include_nested=include_nested,
        continue_on_error=continue_on_error,
    ):
        stats.record(result)
        results.append(result)
        if not result.ok:
            logger.error("Cannot read %s: %s", result.file_path, result.error)
        for diagnostic in result.syntax_errors:
            logger.warning("%s:%s", result.file_path, diagnostic)
        for message in result.diagnostics:
            logger.warning("Malformed definition: %s", message)

    if args.output:
        os.makedirs(os.path.dirname(os.path.abspath(args.output)), exist_ok=True)
        with open(args.output, "w", encoding="utf-8") as f:
            written = write_records(results, output_format, f)
    else:
        written = write_records(results, output_format, stdout)
    logger.info("Wrote %d records: %s", written, stats)

    if args.report_dir:
        report_path = write_run_report(
            build_run_report(results, stats.to_dict()),
            output_dir=args.report_dir,
        )
        logger.info("Run report written to %s", report_path)

    return EXIT_PATH_ERROR if stats.files_failed else EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the command line."""
    args = parse_args(argv)
    configure_structured_logging(args.log_level)

    try:
        return run(args)
    except FileNotFoundError as e:
        logger.error(f"File error: {e}")
        return EXIT_PATH_ERROR
    except (FrontEndUnavailable, ConfigValidationError) as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    sys.exit(main())
