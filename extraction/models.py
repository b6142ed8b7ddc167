"""
Data models for extracted PowerShell definitions.
"""

from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

from tree_sitter import Node


@dataclass(frozen=True)
class SyntaxDiagnostic:
    """A syntax problem reported by the recovery parse.

    Attributes:
        line: 1-indexed start line
        column: 1-indexed start column
        end_line: 1-indexed end line
        end_column: 1-indexed end column
        kind: One of: error, missing, no_tree
        message: Human readable description
    """

    line: int
    column: int
    end_line: int
    end_column: int
    kind: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def __str__(self) -> str:
        return f"{self.line}:{self.column}: {self.message}"


@dataclass(frozen=True)
class SourceUnit:
    """One input script being analyzed.

    ``raw_text`` is exactly the text read from ``path``; the unit is never
    mutated, ``with_syntax_errors`` returns a copy.
    """

    path: str
    raw_text: str
    syntax_errors: Tuple[SyntaxDiagnostic, ...] = ()

    @property
    def source_bytes(self) -> bytes:
        """UTF-8 bytes the tree-sitter offsets refer to."""
        return self.raw_text.encode("utf-8")

    def with_syntax_errors(self, syntax_errors) -> "SourceUnit":
        return replace(self, syntax_errors=tuple(syntax_errors))


@dataclass(frozen=True)
class SourceSpan:
    """Location of a definition in its file (lines and columns 1-indexed)."""

    file_path: str
    start_line: int
    start_column: int
    end_line: int
    end_column: int
    start_byte: int
    end_byte: int


@dataclass(frozen=True)
class DefinitionNode:
    """A definition found during traversal, before projection to a record.

    Attributes:
        name: Declared name, never empty
        keyword: Declaration keyword (function, filter, workflow)
        is_alternate_form: True for filter-style definitions
        parameters: Parameter names in declaration order
        span: Source location of the definition
        body_text: Literal source text of the whole definition
        nesting_depth: Number of enclosing definitions (0 for top level)
        node: The read-only tree-sitter node
    """

    name: str
    keyword: str
    is_alternate_form: bool
    parameters: Tuple[str, ...]
    span: SourceSpan
    body_text: str
    nesting_depth: int
    node: Optional[Node] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class DefinitionRecord:
    """The reported unit, one per selected definition.

    ``line_number`` and ``file_path`` together relocate the definition in
    its original file.
    """

    name: str
    is_alternate_form: bool
    parameter_names: List[str]
    line_number: int
    file_path: str
    source_text: str
    keyword: str = "function"
    column: int = 1
    end_line: int = 0
    nesting_depth: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert the record to a dictionary suitable for JSON serialization."""
        return asdict(self)


@dataclass
class FileExtractionResult:
    """Outcome of extracting one input path.

    ``error`` is the per-file failure marker: set when the path could not be
    read, in which case ``records`` is empty.
    """

    file_path: str
    records: List[DefinitionRecord] = field(default_factory=list)
    syntax_errors: List[SyntaxDiagnostic] = field(default_factory=list)
    diagnostics: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def has_syntax_errors(self) -> bool:
        return bool(self.syntax_errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_path": self.file_path,
            "records": [record.to_dict() for record in self.records],
            "syntax_errors": [diag.to_dict() for diag in self.syntax_errors],
            "diagnostics": list(self.diagnostics),
            "error": self.error,
        }
