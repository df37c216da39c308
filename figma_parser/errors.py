"""
Error Taxonomy

Exceptions raised by the extraction and persistence pipeline. Everything the
core raises derives from ExtractionError so callers can catch one type.
"""

from typing import Any, Optional


class ExtractionError(Exception):
    """Base class for all extraction pipeline failures."""


class InvalidInput(ExtractionError):
    """Malformed or absent source response, root node, URL or credential."""


class InvalidRoot(InvalidInput):
    """The node handed to the canvas calculator is not a DOCUMENT."""

    def __init__(self, node_type: str):
        self.node_type = node_type
        super().__init__(f"root node must be of type DOCUMENT, got {node_type or 'empty type'}")


class TreeTooDeep(InvalidInput):
    """The node tree nests deeper than the configured bound."""

    def __init__(self, max_depth: int):
        self.max_depth = max_depth
        super().__init__(f"node tree exceeds maximum depth of {max_depth}")


class UpstreamFailure(ExtractionError):
    """
    The document source was unreachable or rejected the request.

    Args:
        message: Description surfaced verbatim from the source
        status_code: HTTP status of the rejected request, None for network errors
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class ResolutionMiss(ExtractionError):
    """An instance's provisional component reference has no real identity."""

    def __init__(self, position: int, node_id: str):
        self.position = position
        self.node_id = node_id
        super().__init__(
            f"could not resolve provisional component {position} for instance {node_id}"
        )


class PersistenceFailure(ExtractionError):
    """
    A storage write failed; the batch stops at the given stage.

    Args:
        stage: Stage that failed ("file", "components", "instances" or "commit")
        message: Description of the failure
        summary: Batch summary as it stood when the failure happened
    """

    def __init__(self, stage: str, message: str, summary: Optional[Any] = None):
        self.stage = stage
        self.summary = summary
        super().__init__(f"failed to save {stage}: {message}")


class IdentityMapMismatch(PersistenceFailure):
    """Saved components do not line up with the submitted component list."""

    def __init__(self, message: str, summary: Optional[Any] = None):
        super().__init__("instances", message, summary=summary)


class StorageError(Exception):
    """Raised by storage collaborators when a read or write fails."""


class RecordNotFound(StorageError):
    """No active record exists for the requested identity."""

    def __init__(self, kind: str, record_id: int):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} {record_id} not found")
