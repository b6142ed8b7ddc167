"""
PowerShell Definition Extraction

Tree-sitter-based PowerShell parser and definition extractor.
Reports function, filter and workflow definitions without executing code.
"""

from extraction.errors import (
    ExtractionError,
    FrontEndUnavailable,
    MalformedDefinition,
    PathNotFound,
)
from extraction.models import (
    DefinitionNode,
    DefinitionRecord,
    FileExtractionResult,
    SourceSpan,
    SourceUnit,
    SyntaxDiagnostic,
)
from extraction.source import load_source
from extraction.parser import (
    build_tree,
    collect_syntax_errors,
    count_error_nodes,
    create_parser,
    parse_bytes,
    parse_file,
    parse_text,
)
from extraction.traversal import (
    DefinitionCollector,
    NodeKind,
    collect_definitions,
    is_definition_node,
    walk_tree,
)
from extraction.projector import project_definition, to_record
from extraction.extractor import (
    ExtractionStats,
    discover_script_files,
    extract_directory,
    extract_file,
    extract_paths,
    extract_to_dict_list,
    iter_definitions,
    iter_extract_to_dict_list,
)

__all__ = [
    # Errors
    "ExtractionError",
    "FrontEndUnavailable",
    "MalformedDefinition",
    "PathNotFound",
    # Data models
    "DefinitionNode",
    "DefinitionRecord",
    "FileExtractionResult",
    "SourceSpan",
    "SourceUnit",
    "SyntaxDiagnostic",
    "ExtractionStats",
    # Loading and parsing
    "load_source",
    "build_tree",
    "collect_syntax_errors",
    "count_error_nodes",
    "create_parser",
    "parse_bytes",
    "parse_file",
    "parse_text",
    # Traversal and projection
    "DefinitionCollector",
    "NodeKind",
    "collect_definitions",
    "is_definition_node",
    "walk_tree",
    "project_definition",
    "to_record",
    # High-level orchestration
    "discover_script_files",
    "extract_directory",
    "extract_file",
    "extract_paths",
    "extract_to_dict_list",
    "iter_definitions",
    "iter_extract_to_dict_list",
]
