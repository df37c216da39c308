"""
Figma Manager

Combines the API client and the parser into the fetch-and-parse operations
used by the service layer.
"""

import logging
from typing import List, Optional

from ..config import ExtractionConfig, FigmaCredentials
from ..errors import InvalidInput
from ..records import Component
from ..reconciler.dedup import deduplicate
from ..reconciler.provisional import InstanceDraft
from .figma_client import FigmaClient, extract_file_key
from .models import ParsedBatch
from .parser import FigmaParser

logger = logging.getLogger(__name__)


class FigmaManager:
    """Fetches Figma documents and parses them into batches."""

    def __init__(
        self,
        client: Optional[FigmaClient] = None,
        parser: Optional[FigmaParser] = None,
        config: Optional[ExtractionConfig] = None
    ):
        """
        Initialize the manager.

        Args:
            client: Figma API client, a default one is built when omitted
            parser: Parser, a default one is built from config when omitted
            config: Extraction settings used for default collaborators
        """
        config = config or ExtractionConfig()
        self.client = client or FigmaClient(max_depth=config.max_depth)
        self.parser = parser or FigmaParser(config)

    def parse_file_from_url(self, figma_url: str, credentials: FigmaCredentials) -> ParsedBatch:
        """
        Fetch and parse the file a Figma URL points at.

        The original URL is kept on the file record.

        Raises:
            InvalidInput: If the URL is not a Figma file URL or the document is malformed
            UpstreamFailure: If Figma cannot be reached or rejects the request
        """
        file_key = extract_file_key(figma_url)
        api_response = self.client.get_file(file_key, credentials)
        return self.parser.parse_file(api_response, file_key, figma_url)

    def parse_file_from_key(self, file_key: str, credentials: FigmaCredentials) -> ParsedBatch:
        """Fetch and parse a file by key; the file record gets no URL."""
        self._require_key(file_key)
        api_response = self.client.get_file(file_key, credentials)
        return self.parser.parse_file(api_response, file_key, "")

    def extract_components_from_file(
        self,
        file_key: str,
        credentials: FigmaCredentials
    ) -> List[Component]:
        """Components found by walking the tree only, without the API maps."""
        self._require_key(file_key)
        api_response = self.client.get_file(file_key, credentials)
        return self.parser.extract_components(api_response.document)

    def extract_instances_from_file(
        self,
        file_key: str,
        credentials: FigmaCredentials
    ) -> List[InstanceDraft]:
        """Instance drafts referencing the tree-only component list."""
        self._require_key(file_key)
        api_response = self.client.get_file(file_key, credentials)
        components = deduplicate(self.parser.extract_components(api_response.document))
        return self.parser.extract_instances(api_response.document, components)

    def validate_file_access(self, file_key: str, credentials: FigmaCredentials) -> None:
        """Raise unless the file can be fetched with these credentials."""
        self._require_key(file_key)
        self.client.get_file(file_key, credentials)
        logger.info(f"File {file_key} is accessible")

    def validate_token(self, token: str) -> None:
        self.client.validate_token(token)

    @staticmethod
    def _require_key(file_key: str) -> None:
        if not file_key:
            raise InvalidInput("file key cannot be empty")
