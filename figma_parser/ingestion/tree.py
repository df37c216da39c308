"""
Tree Walking

Explicit-stack traversal over Figma node trees. Depth is bounded so a
malformed or hostile document cannot grow the walk without limit.
"""

import logging
from typing import TYPE_CHECKING, Any, Iterator, List, Optional, Tuple

from ..errors import TreeTooDeep

if TYPE_CHECKING:
    from .models import Node

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 200


def check_payload_depth(payload: Any, max_depth: int = DEFAULT_MAX_DEPTH) -> int:
    """
    Measure the nesting of a raw node payload before it is validated.

    Args:
        payload: Raw JSON node (dict with an optional "children" list)
        max_depth: Deepest nesting accepted, the root counts as depth 1

    Returns:
        Deepest nesting found

    Raises:
        TreeTooDeep: If the payload nests deeper than max_depth
    """
    if not isinstance(payload, dict):
        return 0

    deepest = 0
    stack: List[Tuple[Any, int]] = [(payload, 1)]
    while stack:
        item, depth = stack.pop()
        if depth > max_depth:
            raise TreeTooDeep(max_depth)
        deepest = max(deepest, depth)
        children = item.get("children")
        if isinstance(children, list):
            stack.extend((child, depth + 1) for child in children if isinstance(child, dict))
    return deepest


def iter_nodes(root: "Node", max_depth: int = DEFAULT_MAX_DEPTH) -> Iterator[Tuple["Node", int]]:
    """
    Walk a node tree in pre-order, parents before children.

    Siblings come out in document order, matching a recursive depth-first walk.

    Args:
        root: Node to start from (depth 1)
        max_depth: Deepest nesting accepted

    Yields:
        (node, depth) pairs

    Raises:
        TreeTooDeep: If the tree nests deeper than max_depth
    """
    stack: List[Tuple["Node", int]] = [(root, 1)]
    while stack:
        node, depth = stack.pop()
        if depth > max_depth:
            raise TreeTooDeep(max_depth)
        yield node, depth
        for child in reversed(node.children):
            stack.append((child, depth + 1))


def find_node_by_id(
    root: "Node",
    node_id: str,
    max_depth: int = DEFAULT_MAX_DEPTH
) -> Optional["Node"]:
    """Linear search for the first node carrying node_id."""
    for node, _ in iter_nodes(root, max_depth):
        if node.id == node_id:
            return node
    return None
