"""
Error taxonomy for definition extraction.

Syntax problems in the analyzed script are not errors of the extractor: they
travel as data on ``SourceUnit.syntax_errors``.
"""

from typing import Optional


class ExtractionError(Exception):
    """Base class for all extractor failures."""


class PathNotFound(ExtractionError, FileNotFoundError):
    """Raised when an input path cannot be resolved to a readable file.

    Fatal for that single input only; batch callers decide whether to skip
    the file and continue.
    """

    def __init__(self, path: str, reason: str = "file not found"):
        self.path = path
        self.reason = reason
        super().__init__(f"{reason}: {path}")

    def __str__(self) -> str:
        return f"{self.reason}: {self.path}"


class FrontEndUnavailable(ExtractionError, RuntimeError):
    """Raised when the tree-sitter PowerShell front-end cannot be loaded."""


class MalformedDefinition(ExtractionError):
    """Raised when a matched definition node has no resolvable name.

    Contained by the extractor: the node is skipped and the message is
    attached to the file result.
    """

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ):
        self.file_path = file_path
        self.line = line
        self.column = column
        super().__init__(message)

    def __str__(self) -> str:
        message = super().__str__()
        if self.line is None:
            return message
        location = f"{self.file_path or '<source>'}:{self.line}"
        if self.column is not None:
            location = f"{location}:{self.column}"
        return f"{location}: {message}"
