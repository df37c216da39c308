"""
Ingestion Module

Fetches Figma documents and extracts components and instances from their
node trees. Canvas inference, tree walking and the parser live here.
"""

from .canvas import calculate_canvas_dimensions
from .figma_client import FigmaClient, extract_file_key
from .manager import FigmaManager
from .models import FigmaAPIResponse, Node, ParsedBatch
from .parser import FigmaParser

__all__ = [
    "calculate_canvas_dimensions",
    "FigmaClient",
    "extract_file_key",
    "FigmaManager",
    "FigmaAPIResponse",
    "Node",
    "ParsedBatch",
    "FigmaParser"
]
