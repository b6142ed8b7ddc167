"""
High-level orchestrator for PowerShell definition extraction.

This module provides the main entry points for extracting definitions from
single scripts, batches of paths or entire directory trees.
"""

import logging
import os
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set, Tuple

from core.structured_logging import file_scope
from extraction.config import (
    DEFAULT_CONTINUE_ON_ERROR,
    DEFAULT_INCLUDE_NESTED,
    EXCLUDED_DIRECTORIES,
    SCRIPT_EXTENSIONS,
)
from extraction.errors import PathNotFound
from extraction.models import DefinitionRecord, FileExtractionResult
from extraction.parser import parse_file
from extraction.projector import to_record
from extraction.source import strip_provider_prefix
from extraction.traversal import collect_definitions

logger = logging.getLogger(__name__)


class ExtractionStats:
    """Statistics for an extraction operation."""

    def __init__(self):
        self.files_processed = 0
        self.files_failed = 0
        self.definitions_extracted = 0
        self.syntax_errors = 0
        self.malformed_definitions = 0

    def record(self, result: FileExtractionResult) -> None:
        """Account for one file result."""
        if not result.ok:
            self.files_failed += 1
            return
        self.files_processed += 1
        self.definitions_extracted += len(result.records)
        self.syntax_errors += len(result.syntax_errors)
        self.malformed_definitions += len(result.diagnostics)

    def to_dict(self) -> Dict[str, int]:
        """Convert stats to dictionary."""
        return {
            "files_processed": self.files_processed,
            "files_failed": self.files_failed,
            "definitions_extracted": self.definitions_extracted,
            "syntax_errors": self.syntax_errors,
            "malformed_definitions": self.malformed_definitions,
        }

    def __str__(self) -> str:
        """String representation of stats."""
        return (
            f"ExtractionStats(processed={self.files_processed}, "
            f"failed={self.files_failed}, definitions={self.definitions_extracted}, "
            f"syntax_errors={self.syntax_errors}, "
            f"malformed={self.malformed_definitions})"
        )


def extract_file(
    file_path: str,
    include_nested: bool = DEFAULT_INCLUDE_NESTED,
) -> FileExtractionResult:
    """Extract all definitions from a single PowerShell script.

    Syntax errors in the script do not fail the call: they are returned on
    the result next to whatever definitions the recovery parse kept.

    Args:
        file_path: Relative, absolute or provider-qualified script path.
        include_nested: Whether nested definitions are reported.

    Returns:
        FileExtractionResult with records in source order.

    Raises:
        PathNotFound: If the file does not exist or cannot be read.
        FrontEndUnavailable: If the PowerShell grammar cannot be loaded.

    Example:
        >>> result = extract_file("Tools.psm1", include_nested=True)
        >>> [r.name for r in result.records]
        ['Get-Thing', 'Set-Thing']
    """
    with file_scope(file_path):
        try:
            tree, unit = parse_file(file_path)
        except PathNotFound as e:
            logger.error("File not found: %s", e)
            raise

        definitions, malformed = collect_definitions(
            tree,
            unit.source_bytes,
            unit.path,
            include_nested=include_nested,
        )
        records = [to_record(definition) for definition in definitions]
        logger.info("Extracted %d definitions from %s", len(records), unit.path)

        return FileExtractionResult(
            file_path=unit.path,
            records=records,
            syntax_errors=list(unit.syntax_errors),
            diagnostics=[str(e) for e in malformed],
        )


def iter_definitions(
    file_path: str,
    include_nested: bool = DEFAULT_INCLUDE_NESTED,
) -> Iterator[DefinitionRecord]:
    """Lazily yield the definition records of one script.

    Nothing is read until iteration starts. Re-invoke to restart.

    Raises:
        PathNotFound: On first iteration, if the file cannot be read.
    """
    result = extract_file(file_path, include_nested=include_nested)
    yield from result.records


def extract_paths(
    paths: Iterable[str],
    include_nested: bool = DEFAULT_INCLUDE_NESTED,
    continue_on_error: bool = DEFAULT_CONTINUE_ON_ERROR,
) -> Iterator[FileExtractionResult]:
    """Extract definitions from each path independently.

    Args:
        paths: Script paths, processed in the given order.
        include_nested: Whether nested definitions are reported.
        continue_on_error: If True, an unreadable path yields a result whose
            ``error`` is set and processing moves on. If False, the
            PathNotFound is raised.

    Yields:
        One FileExtractionResult per input path.

    Raises:
        FrontEndUnavailable: Always propagated; the run cannot proceed.
    """
    for path in paths:
        try:
            yield extract_file(path, include_nested=include_nested)
        except PathNotFound as e:
            if not continue_on_error:
                raise
            yield FileExtractionResult(file_path=e.path, error=str(e))


def discover_script_files(
    directory: str,
    extensions: Optional[Set[str]] = None,
    exclude_dirs: Optional[Set[str]] = None,
) -> List[str]:
    """Recursively discover PowerShell scripts in a directory.

    Args:
        directory: Root directory to search.
        extensions: File extensions to pick up (default .ps1 and .psm1).
        exclude_dirs: Directory names never descended into.

    Returns:
        Sorted list of absolute paths.

    Example:
        >>> files = discover_script_files("/path/to/module")
        >>> len(files)
        12
    """
    extensions = {e.lower() for e in (extensions or SCRIPT_EXTENSIONS)}
    exclude_dirs = EXCLUDED_DIRECTORIES if exclude_dirs is None else exclude_dirs
    script_files = []
    directory = os.path.abspath(strip_provider_prefix(directory))

    logger.info(f"Discovering PowerShell scripts in {directory}")

    for root, dirs, files in os.walk(directory):
        # Skip hidden directories and excluded build/cache directories
        dirs[:] = [d for d in dirs if not d.startswith('.') and d not in exclude_dirs]

        for file in files:
            ext = os.path.splitext(file)[1].lower()
            if ext in extensions:
                script_files.append(os.path.join(root, file))

    logger.info(f"Found {len(script_files)} PowerShell scripts")
    return sorted(script_files)


def extract_directory(
    directory: str,
    include_nested: bool = DEFAULT_INCLUDE_NESTED,
    continue_on_error: bool = DEFAULT_CONTINUE_ON_ERROR,
    extensions: Optional[Set[str]] = None,
    exclude_dirs: Optional[Set[str]] = None,
) -> Tuple[List[FileExtractionResult], ExtractionStats]:
    """Extract definitions from all scripts in a directory tree.

    Args:
        directory: Root directory to process.
        include_nested: Whether nested definitions are reported.
        continue_on_error: If True, keep going when a file cannot be read.
        extensions: File extensions to pick up.
        exclude_dirs: Directory names to skip.

    Returns:
        A tuple of (results, stats) with one result per discovered file.

    Raises:
        PathNotFound: If directory does not exist.
    """
    directory = os.path.abspath(strip_provider_prefix(directory))

    if not os.path.isdir(directory):
        raise PathNotFound(directory, "directory not found")

    stats = ExtractionStats()
    results: List[FileExtractionResult] = []

    script_files = discover_script_files(directory, extensions, exclude_dirs)
    if not script_files:
        logger.warning(f"No PowerShell scripts found in {directory}")
        return results, stats

    logger.info(f"Processing {len(script_files)} scripts from {directory}")

    for result in extract_paths(
        script_files,
        include_nested=include_nested,
        continue_on_error=continue_on_error,
    ):
        stats.record(result)
        results.append(result)

    logger.info(f"Extraction complete: {stats}")
    return results, stats


def expand_inputs(
    sources: Iterable[str],
    extensions: Optional[Set[str]] = None,
    exclude_dirs: Optional[Set[str]] = None,
) -> Iterator[str]:
    """Expand directories into the scripts they contain; pass files through.

    Paths that are neither are passed through unchanged so the extractor can
    report them as PathNotFound.
    """
    for source in sources:
        directory = strip_provider_prefix(source)
        if os.path.isdir(directory):
            yield from discover_script_files(directory, extensions, exclude_dirs)
        else:
            yield source


def iter_extract_to_dict_list(
    source: str,
    include_nested: bool = DEFAULT_INCLUDE_NESTED,
) -> Iterator[Dict[str, Any]]:
    """Stream record dictionaries for a file or a directory tree.

    Unreadable files inside a directory are logged and skipped.
    """
    for result in extract_paths(expand_inputs([source]), include_nested=include_nested):
        if not result.ok:
            logger.error("Skipping %s: %s", result.file_path, result.error)
            continue
        for record in result.records:
            yield record.to_dict()


def extract_to_dict_list(
    source: str,
    include_nested: bool = DEFAULT_INCLUDE_NESTED,
) -> List[Dict[str, Any]]:
    """Extract definitions and return them as a list of dictionaries.

    Detects whether ``source`` is a file or a directory and returns results
    ready for JSON serialization.

    Raises:
        PathNotFound: If source does not exist.

    Example:
        >>> records = extract_to_dict_list("scripts/")
        >>> import json
        >>> json.dump(records, open("definitions.json", "w"), indent=2)
    """
    if os.path.isfile(source):
        return [record.to_dict() for record in iter_definitions(source, include_nested)]
    if os.path.isdir(source):
        results, stats = extract_directory(source, include_nested=include_nested)
        logger.info(f"Extraction stats: {stats}")
        return [record.to_dict() for result in results for record in result.records]
    raise PathNotFound(os.path.abspath(source), "source not found")
