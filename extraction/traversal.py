"""
AST traversal and definition collection logic.

This module walks the PowerShell syntax tree in pre-order and collects the
function, filter and workflow definitions it contains, tracking how deeply
each one is nested inside other definitions.
"""

import enum
import logging
from typing import List, Optional, Protocol, Tuple

from tree_sitter import Node, Tree

from extraction.config import (
    DEFAULT_INCLUDE_NESTED,
    DEFINITION_NODE,
    ERROR_NODE,
    PARAM_BLOCK_NODE,
    SCRIPT_BLOCK_NODE,
)
from extraction.errors import MalformedDefinition
from extraction.models import DefinitionNode
from extraction.projector import project_definition

logger = logging.getLogger(__name__)


class NodeKind(enum.Enum):
    """Closed set of node kinds the extractor distinguishes."""

    DEFINITION = "definition"
    SCRIPT_BLOCK = "script_block"
    PARAMETER_BLOCK = "parameter_block"
    ERROR = "error"
    OTHER = "other"


_KIND_BY_TYPE = {
    DEFINITION_NODE: NodeKind.DEFINITION,
    SCRIPT_BLOCK_NODE: NodeKind.SCRIPT_BLOCK,
    PARAM_BLOCK_NODE: NodeKind.PARAMETER_BLOCK,
    ERROR_NODE: NodeKind.ERROR,
}


def classify_node(node: Node) -> NodeKind:
    """Map a tree-sitter node to its NodeKind."""
    return _KIND_BY_TYPE.get(node.type, NodeKind.OTHER)


def is_definition_node(node: Node) -> bool:
    """Check if a node is a function/filter/workflow definition."""
    return classify_node(node) is NodeKind.DEFINITION


class TreeVisitor(Protocol):
    """Visitor driven by ``walk_tree``."""

    def visit(self, node: Node, depth: int) -> bool:
        """Visit ``node`` nested inside ``depth`` definitions.

        Returns:
            True to descend into the node's children.
        """
        ...


def walk_tree(root: Node, visitor: TreeVisitor) -> None:
    """Pre-order walk of ``root`` in source order.

    The depth passed to the visitor counts the definitions enclosing the
    visited node, so a top-level definition is visited at depth 0 and a
    definition declared in its body at depth 1.
    """
    stack: List[Tuple[Node, int]] = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        if not visitor.visit(node, depth):
            continue
        child_depth = depth + 1 if is_definition_node(node) else depth
        for child in reversed(node.children):
            stack.append((child, child_depth))


class DefinitionCollector:
    """Visitor collecting every definition node with its nesting depth.

    Always descends: nested definitions are discovered even when they will
    not be reported, so a damaged inner definition never hides the outer
    one. Malformed definitions are skipped and remembered in
    ``diagnostics``.
    """

    def __init__(self, source_bytes: bytes, file_path: str):
        self.source_bytes = source_bytes
        self.file_path = file_path
        self.definitions: List[DefinitionNode] = []
        self.diagnostics: List[MalformedDefinition] = []

    def visit(self, node: Node, depth: int) -> bool:
        if not is_definition_node(node):
            return True
        try:
            definition = project_definition(
                node, self.source_bytes, self.file_path, nesting_depth=depth
            )
        except MalformedDefinition as e:
            logger.warning("Skipping malformed definition: %s", e)
            self.diagnostics.append(e)
            return True
        self.definitions.append(definition)
        return True

    def selected(self, include_nested: bool) -> List[DefinitionNode]:
        """Definitions reported under the nesting policy, in source order."""
        if include_nested:
            return list(self.definitions)
        return [d for d in self.definitions if d.nesting_depth == 0]


def collect_definitions(
    tree: Optional[Tree],
    source_bytes: bytes,
    file_path: str,
    include_nested: bool = DEFAULT_INCLUDE_NESTED,
) -> Tuple[List[DefinitionNode], List[MalformedDefinition]]:
    """Collect definition nodes from a parsed PowerShell tree.

    This is the main entry point for definition extraction.

    Args:
        tree: The parsed tree, or None after a failed parse.
        source_bytes: UTF-8 bytes the tree was parsed from.
        file_path: Path recorded on each definition.
        include_nested: Whether definitions declared inside another
            definition's body are reported.

    Returns:
        A tuple of (definitions, malformed) where definitions are in
        pre-order source order.
    """
    if tree is None:
        logger.info(f"No syntax tree for {file_path}; nothing to extract")
        return [], []

    collector = DefinitionCollector(source_bytes, file_path)
    walk_tree(tree.root_node, collector)
    definitions = collector.selected(include_nested)

    logger.info(
        "Found %d definitions in %s (%d reported, include_nested=%s)",
        len(collector.definitions),
        file_path,
        len(definitions),
        include_nested,
    )
    return definitions, collector.diagnostics
