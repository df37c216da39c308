"""
Figma Parser - Design File Extraction Service

Fetches a Figma document, walks its node tree into component and instance
records, reconciles cross-references and persists the result as one file
record with its components and instances.
"""

__version__ = "0.1.0"
__author__ = "Figma Parser Team"
