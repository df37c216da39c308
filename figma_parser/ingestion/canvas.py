"""
Canvas Dimension Calculator

Infers the overall design surface size of a Figma document.
"""

import logging
from typing import Optional

from ..errors import InvalidRoot
from .models import CANVAS, DOCUMENT, CanvasDimensions, Node
from .tree import DEFAULT_MAX_DEPTH, iter_nodes

logger = logging.getLogger(__name__)

FALLBACK_WIDTH = 1920.0
FALLBACK_HEIGHT = 1080.0


def calculate_canvas_dimensions(
    document: Node,
    max_depth: int = DEFAULT_MAX_DEPTH,
    fallback_width: float = FALLBACK_WIDTH,
    fallback_height: float = FALLBACK_HEIGHT
) -> CanvasDimensions:
    """
    Calculate the canvas size of a document.

    The first direct CANVAS child with geometry wins outright. Without one,
    the size is the furthest right and bottom edge over every node carrying
    geometry. A tree with no geometry at all gets the fallback size.

    Args:
        document: Root node of the tree, must be of type DOCUMENT
        max_depth: Deepest nesting accepted while scanning
        fallback_width: Width returned when no node carries geometry
        fallback_height: Height returned when no node carries geometry

    Returns:
        CanvasDimensions

    Raises:
        InvalidRoot: If document is not a DOCUMENT node
        TreeTooDeep: If the tree nests deeper than max_depth
    """
    if document.type != DOCUMENT:
        raise InvalidRoot(document.type)

    for child in document.children:
        if child.type == CANVAS and child.absolute_bounding_box is not None:
            box = child.absolute_bounding_box
            logger.debug(f"Canvas size taken from canvas node {child.id}: {box.width}x{box.height}")
            return CanvasDimensions(width=box.width, height=box.height)

    max_x: Optional[float] = None
    max_y: Optional[float] = None
    for node, _ in iter_nodes(document, max_depth):
        box = node.absolute_bounding_box
        if box is None:
            continue
        max_x = box.right if max_x is None else max(max_x, box.right)
        max_y = box.bottom if max_y is None else max(max_y, box.bottom)

    if max_x is None or max_y is None:
        logger.debug("No geometry found in document, using fallback canvas size")
        return CanvasDimensions(width=fallback_width, height=fallback_height)

    return CanvasDimensions(width=max_x, height=max_y)
