"""
Configuration constants for PowerShell definition extraction.

Defines the tree-sitter node type strings used for definition extraction.
"""

from typing import FrozenSet, Set, Tuple

# Python module shipping the tree-sitter PowerShell grammar
GRAMMAR_MODULE: str = "tree_sitter_powershell"

# Definition node type (function, filter and workflow statements)
DEFINITION_NODE: str = "function_statement"

# Name child of a definition node
FUNCTION_NAME_NODE: str = "function_name"

# Inline parameter list: function Foo($a, $b) { }
INLINE_PARAMETERS_NODE: str = "function_parameter_declaration"

# Body of a definition, may open with a param block
SCRIPT_BLOCK_NODE: str = "script_block"

# param(...) block
PARAM_BLOCK_NODE: str = "param_block"

# One declared parameter inside either form of parameter list
SCRIPT_PARAMETER_NODE: str = "script_parameter"

# Variable token ($name, ${name})
VARIABLE_NODE: str = "variable"

# Node type emitted by tree-sitter for unparseable regions
ERROR_NODE: str = "ERROR"

# Declaration keywords (matched case-insensitively)
FUNCTION_KEYWORD: str = "function"
FILTER_KEYWORD: str = "filter"
WORKFLOW_KEYWORD: str = "workflow"

DEFINITION_KEYWORDS: FrozenSet[str] = frozenset({
    FUNCTION_KEYWORD,
    FILTER_KEYWORD,
    WORKFLOW_KEYWORD,
})

# Keywords producing the pipeline-oriented alternate form
ALTERNATE_FORM_KEYWORDS: FrozenSet[str] = frozenset({FILTER_KEYWORD})

# Scope modifiers that may qualify a variable name ($script:Name)
SCOPE_MODIFIERS: FrozenSet[str] = frozenset({
    "global",
    "local",
    "private",
    "script",
    "using",
    "workflow",
})

# Provider-qualified path prefixes accepted by the source loader
PROVIDER_PREFIXES: Tuple[str, ...] = (
    "Microsoft.PowerShell.Core\\FileSystem::",
    "FileSystem::",
)

# PowerShell script extensions picked up by directory discovery
SCRIPT_EXTENSIONS: Set[str] = {
    ".ps1",
    ".psm1",
}

# Directories never descended into during discovery
EXCLUDED_DIRECTORIES: Set[str] = {
    "node_modules",
    "venv",
    "__pycache__",
    "bin",
    "obj",
    "out",
}

# Extraction policy defaults
DEFAULT_INCLUDE_NESTED: bool = False
DEFAULT_CONTINUE_ON_ERROR: bool = True
