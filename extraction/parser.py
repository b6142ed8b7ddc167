"""
Tree-sitter parser initialization and script parsing utilities.

This module loads the PowerShell grammar, parses script text into a syntax
tree and collects the syntax diagnostics left by the recovery parse.
"""

import importlib
import logging
import re
from functools import lru_cache
from typing import List, Optional, Tuple

from tree_sitter import Language, Node, Parser, Tree

from extraction.config import ERROR_NODE, GRAMMAR_MODULE
from extraction.errors import FrontEndUnavailable
from extraction.models import SourceUnit, SyntaxDiagnostic
from extraction.source import load_source

# Configure logging
logger = logging.getLogger(__name__)

_BLOCK_COMMENT_RE = re.compile(rb"<#.*?#>", re.DOTALL)


@lru_cache(maxsize=1)
def get_language() -> Language:
    """Load the tree-sitter PowerShell language.

    Raises:
        FrontEndUnavailable: If the grammar package is not installed or was
            built for an incompatible tree-sitter runtime.
    """
    try:
        grammar = importlib.import_module(GRAMMAR_MODULE)
    except ImportError as e:
        raise FrontEndUnavailable(
            f"PowerShell grammar '{GRAMMAR_MODULE}' is not installed: {e}"
        ) from e

    try:
        return Language(grammar.language())
    except (AttributeError, TypeError, ValueError) as e:
        raise FrontEndUnavailable(
            f"PowerShell grammar '{GRAMMAR_MODULE}' cannot be loaded: {e}"
        ) from e


def create_parser() -> Parser:
    """Create and configure a tree-sitter parser for PowerShell.

    Returns:
        A Parser instance configured with the PowerShell language.

    Raises:
        FrontEndUnavailable: If the grammar cannot be loaded.

    Example:
        >>> parser = create_parser()
        >>> tree = parser.parse(b"function Get-Foo { }")
    """
    parser = Parser(get_language())
    logger.debug("Created tree-sitter PowerShell parser")
    return parser


def parse_bytes(source: bytes) -> Optional[Tree]:
    """Parse raw bytes of PowerShell source code.

    Invalid input never raises: tree-sitter recovers and marks the damaged
    regions with ERROR or MISSING nodes.

    Args:
        source: UTF-8 encoded bytes of PowerShell source code.

    Returns:
        The parsed Tree, or None if the parser produced no tree at all.

    Raises:
        TypeError: If source is not bytes.
    """
    if not isinstance(source, bytes):
        raise TypeError(f"Source must be bytes, got {type(source).__name__}")

    parser = create_parser()
    tree = parser.parse(source)

    if tree is None:
        logger.warning("Parser returned no tree for %d bytes", len(source))
        return None

    if tree.root_node.has_error:
        logger.warning("Parsed tree contains syntax errors")

    logger.debug(f"Parsed {len(source)} bytes of PowerShell code")
    return tree


def parse_text(text: str) -> Optional[Tree]:
    """Parse PowerShell source text (encoded as UTF-8 for the parser)."""
    if text is None:
        raise TypeError("Source text must not be None")
    return parse_bytes(text.encode("utf-8"))


def is_trivia_only(source: bytes) -> bool:
    """True when ``source`` holds only comments, whitespace and NUL padding.

    The grammar cannot reduce an empty statement list to ``program``, so
    blank and comment-only scripts come back as a root ERROR node.
    """
    stripped = _BLOCK_COMMENT_RE.sub(b"", source)
    for line in stripped.split(b"\n"):
        line = line.strip(b" \t\r\f\v\x00")
        if line and not line.startswith(b"#"):
            return False
    return True


def _diagnostic_for(node: Node, kind: str, message: str) -> SyntaxDiagnostic:
    return SyntaxDiagnostic(
        line=node.start_point[0] + 1,
        column=node.start_point[1] + 1,
        end_line=node.end_point[0] + 1,
        end_column=node.end_point[1] + 1,
        kind=kind,
        message=message,
    )


def collect_syntax_errors(tree: Optional[Tree]) -> List[SyntaxDiagnostic]:
    """Collect syntax diagnostics from a recovery-parsed tree.

    Reports each outermost ERROR region once and every MISSING node, in
    source order. Only subtrees flagged ``has_error`` are visited.

    Args:
        tree: The parsed tree, or None.

    Returns:
        Ordered list of diagnostics; empty for a well-formed script.
    """
    if tree is None:
        return [SyntaxDiagnostic(1, 1, 1, 1, "no_tree", "parser produced no syntax tree")]

    root = tree.root_node
    if root.type == ERROR_NODE and is_trivia_only(root.text or b""):
        return []

    diagnostics: List[SyntaxDiagnostic] = []
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_missing:
            diagnostics.append(_diagnostic_for(node, "missing", f"missing '{node.type}'"))
            continue
        if node.type == ERROR_NODE:
            snippet = (node.text or b"").decode("utf-8", errors="replace").strip()
            snippet = snippet.splitlines()[0][:40] if snippet else ""
            message = f"unexpected syntax near '{snippet}'" if snippet else "unexpected syntax"
            diagnostics.append(_diagnostic_for(node, "error", message))
            continue
        if node.has_error:
            stack.extend(reversed(node.children))

    return diagnostics


def count_error_nodes(tree: Optional[Tree]) -> int:
    """Return the number of syntax diagnostics in ``tree``."""
    return len(collect_syntax_errors(tree))


def build_tree(unit: SourceUnit) -> Tuple[Optional[Tree], SourceUnit]:
    """Parse a loaded source unit.

    Args:
        unit: The SourceUnit produced by the source loader.

    Returns:
        A tuple of (tree, unit) where unit carries the syntax diagnostics.
        The tree is None only when the parser produced nothing.

    Raises:
        FrontEndUnavailable: If the grammar cannot be loaded.
    """
    tree = parse_bytes(unit.source_bytes)
    syntax_errors = collect_syntax_errors(tree)

    if syntax_errors:
        logger.warning(
            "File %s contains syntax errors (%d diagnostics)",
            unit.path,
            len(syntax_errors),
        )

    return tree, unit.with_syntax_errors(syntax_errors)


def parse_file(file_path: str) -> Tuple[Optional[Tree], SourceUnit]:
    """Load and parse a PowerShell script from disk.

    Args:
        file_path: Path to the .ps1 or .psm1 file.

    Returns:
        A tuple of (Tree, SourceUnit).

    Raises:
        PathNotFound: If the file does not exist or cannot be read.
        FrontEndUnavailable: If the grammar cannot be loaded.

    Example:
        >>> tree, unit = parse_file("profile.ps1")
        >>> tree.root_node.type
        'program'
    """
    unit = load_source(file_path)
    tree, unit = build_tree(unit)
    logger.info(f"Successfully parsed file: {unit.path}")
    return tree, unit
