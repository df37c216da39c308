"""
Deduplication

Collapses repeated records that share a Figma node id. The first occurrence
wins and survivors keep their input order; provisional references are later
assigned from these positions, so the order must not change.
"""

import logging
from typing import List, Sequence, TypeVar

from ..config import ConflictPolicy
from ..records import Component

logger = logging.getLogger(__name__)

T = TypeVar("T")


def deduplicate(items: Sequence[T]) -> List[T]:
    """
    Keep the first item per node_id.

    Args:
        items: Records exposing a node_id attribute

    Returns:
        New list with at most one record per node_id, in first-seen order
    """
    seen = set()
    unique: List[T] = []
    for item in items:
        node_id = getattr(item, "node_id")
        if node_id in seen:
            continue
        seen.add(node_id)
        unique.append(item)

    dropped = len(items) - len(unique)
    if dropped:
        logger.debug(f"Dropped {dropped} duplicate records")
    return unique


def merge_component_sources(
    api_components: Sequence[Component],
    tree_components: Sequence[Component],
    policy: ConflictPolicy = ConflictPolicy.API_FIRST
) -> List[Component]:
    """
    Concatenate both component sources in policy order and deduplicate.

    Args:
        api_components: Components built from the file-level maps
        tree_components: Components found by walking the node tree
        policy: Which source survives when both describe the same node

    Returns:
        Deduplicated component list
    """
    if policy == ConflictPolicy.TREE_FIRST:
        ordered = list(tree_components) + list(api_components)
    else:
        ordered = list(api_components) + list(tree_components)
    return deduplicate(ordered)
