"""
Metadata projection for definition nodes.

Each reported attribute has its own extraction function. The tree paths they
read, for a ``function_statement`` node:

- keyword: first child token (``function`` / ``filter`` / ``workflow``)
- name: ``function_name`` child
- parameters: ``function_parameter_declaration`` > ``script_parameter`` >
  ``variable``, or else ``script_block`` > ``param_block`` >
  ``script_parameter`` > ``variable``
- span and line number: the keyword token and the statement end
"""

import logging
from typing import Iterator, List, Optional

from tree_sitter import Node

from extraction.config import (
    ALTERNATE_FORM_KEYWORDS,
    DEFINITION_KEYWORDS,
    DEFINITION_NODE,
    FUNCTION_KEYWORD,
    FUNCTION_NAME_NODE,
    INLINE_PARAMETERS_NODE,
    PARAM_BLOCK_NODE,
    SCRIPT_BLOCK_NODE,
    SCOPE_MODIFIERS,
    SCRIPT_PARAMETER_NODE,
    VARIABLE_NODE,
)
from extraction.errors import MalformedDefinition
from extraction.models import DefinitionNode, DefinitionRecord, SourceSpan

logger = logging.getLogger(__name__)


def _node_text(node: Node, source_bytes: bytes) -> str:
    return source_bytes[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


def _first_child_of_type(node: Node, node_type: str) -> Optional[Node]:
    for child in node.children:
        if child.type == node_type:
            return child
    return None


def keyword_node(node: Node) -> Optional[Node]:
    """Return the declaration keyword token of a definition node."""
    if not node.children:
        return None
    first = node.children[0]
    if first.is_missing:
        return None
    return first


def definition_keyword(node: Node, source_bytes: bytes) -> str:
    """Read the declaration keyword, lower-cased.

    Falls back to ``function`` when the keyword token is damaged.
    """
    token = keyword_node(node)
    if token is None:
        return FUNCTION_KEYWORD
    for candidate in (token.type, _node_text(token, source_bytes)):
        keyword = candidate.strip().lower()
        if keyword in DEFINITION_KEYWORDS:
            return keyword
    return FUNCTION_KEYWORD


def is_alternate_form(node: Node, source_bytes: bytes) -> bool:
    """True exactly when the definition uses the ``filter`` keyword."""
    return definition_keyword(node, source_bytes) in ALTERNATE_FORM_KEYWORDS


def definition_name(node: Node, source_bytes: bytes) -> Optional[str]:
    """Read the name from the ``function_name`` child.

    Returns:
        The verbatim name, or None when absent, missing or blank.
    """
    name_node = _first_child_of_type(node, FUNCTION_NAME_NODE)
    if name_node is None or name_node.is_missing:
        return None
    name = _node_text(name_node, source_bytes).strip()
    return name or None


def clean_variable_name(text: str) -> str:
    """Strip the sigil, braces and scope modifier from a variable token.

    Example:
        >>> clean_variable_name("${Log Path}")
        'Log Path'
        >>> clean_variable_name("$script:Count")
        'Count'
    """
    name = text.strip()
    if name.startswith("$") or name.startswith("@"):
        name = name[1:]
    if name.startswith("{") and name.endswith("}"):
        name = name[1:-1]
    scope, sep, rest = name.partition(":")
    if sep and rest and scope.lower() in SCOPE_MODIFIERS:
        name = rest
    return name


def _iter_script_parameters(container: Node) -> Iterator[Node]:
    """Yield ``script_parameter`` nodes below ``container`` in order.

    Does not descend into a parameter (default values may hold script
    blocks) nor into nested definitions.
    """
    stack = list(reversed(container.children))
    while stack:
        child = stack.pop()
        if child.type == SCRIPT_PARAMETER_NODE:
            yield child
        elif child.type not in (DEFINITION_NODE, SCRIPT_BLOCK_NODE):
            stack.extend(reversed(child.children))


def _parameter_name(parameter: Node, source_bytes: bytes) -> Optional[str]:
    variable = _first_child_of_type(parameter, VARIABLE_NODE)
    if variable is None or variable.is_missing:
        return None
    return clean_variable_name(_node_text(variable, source_bytes)) or None


def _names_from(container: Node, source_bytes: bytes) -> List[str]:
    names = []
    for parameter in _iter_script_parameters(container):
        name = _parameter_name(parameter, source_bytes)
        if name:
            names.append(name)
    return names


def parameter_names(node: Node, source_bytes: bytes) -> List[str]:
    """Parameter names in declared left-to-right order.

    Uses the inline ``Name($a, $b)`` list when present, otherwise the
    definition's own ``param(...)`` block. Always returns a list.
    """
    inline = _first_child_of_type(node, INLINE_PARAMETERS_NODE)
    if inline is not None:
        return _names_from(inline, source_bytes)

    param_block = _first_child_of_type(node, PARAM_BLOCK_NODE)
    if param_block is None:
        body = _first_child_of_type(node, SCRIPT_BLOCK_NODE)
        if body is not None:
            param_block = _first_child_of_type(body, PARAM_BLOCK_NODE)
    if param_block is not None:
        return _names_from(param_block, source_bytes)
    return []


def definition_span(node: Node, file_path: str) -> SourceSpan:
    """Source span starting at the keyword token of the definition."""
    start = keyword_node(node) or node
    return SourceSpan(
        file_path=file_path,
        start_line=start.start_point[0] + 1,
        start_column=start.start_point[1] + 1,
        end_line=node.end_point[0] + 1,
        end_column=node.end_point[1] + 1,
        start_byte=start.start_byte,
        end_byte=node.end_byte,
    )


def definition_source_text(node: Node, source_bytes: bytes) -> str:
    """Literal source text covering the definition."""
    return _node_text(node, source_bytes)


def project_definition(
    node: Node,
    source_bytes: bytes,
    file_path: str,
    nesting_depth: int = 0,
) -> DefinitionNode:
    """Build a DefinitionNode from a matched ``function_statement``.

    Raises:
        MalformedDefinition: If the node has no resolvable name.
    """
    span = definition_span(node, file_path)
    name = definition_name(node, source_bytes)
    if not name:
        raise MalformedDefinition(
            "definition has no resolvable name",
            file_path=file_path,
            line=span.start_line,
            column=span.start_column,
        )

    keyword = definition_keyword(node, source_bytes)
    return DefinitionNode(
        name=name,
        keyword=keyword,
        is_alternate_form=keyword in ALTERNATE_FORM_KEYWORDS,
        parameters=tuple(parameter_names(node, source_bytes)),
        span=span,
        body_text=definition_source_text(node, source_bytes),
        nesting_depth=nesting_depth,
        node=node,
    )


def to_record(definition: DefinitionNode) -> DefinitionRecord:
    """Flatten a DefinitionNode into the reported DefinitionRecord."""
    return DefinitionRecord(
        name=definition.name,
        is_alternate_form=definition.is_alternate_form,
        parameter_names=list(definition.parameters),
        line_number=definition.span.start_line,
        file_path=definition.span.file_path,
        source_text=definition.body_text,
        keyword=definition.keyword,
        column=definition.span.start_column,
        end_line=definition.span.end_line,
        nesting_depth=definition.nesting_depth,
    )


def project_record(
    node: Node,
    source_bytes: bytes,
    file_path: str,
    nesting_depth: int = 0,
) -> DefinitionRecord:
    """Project a matched node straight to its record."""
    definition = project_definition(node, source_bytes, file_path, nesting_depth)
    logger.debug(
        "Projected %s %s at %s:%d",
        definition.keyword,
        definition.name,
        file_path,
        definition.span.start_line,
    )
    return to_record(definition)

