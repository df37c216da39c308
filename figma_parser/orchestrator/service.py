"""
Parser Service

Top-level operations: fetch, parse and persist a Figma file, and read saved
files back with their components and instances.
"""

import logging
from typing import List, Optional

from ..config import AppConfig, FigmaCredentials
from ..errors import PersistenceFailure, StorageError
from ..ingestion.figma_client import FigmaClient
from ..ingestion.manager import FigmaManager
from ..ingestion.models import ParsedBatch
from ..records import Component, DesignFile, FileDetails, Instance
from ..storage.base import DesignRepository
from ..storage.graph_client import GraphClient
from ..storage.mock_store import MockDesignStore
from ..storage.neo4j_repository import Neo4jDesignRepository
from .persistence import PersistenceOrchestrator
from .results import BatchSummary

logger = logging.getLogger(__name__)

COMMIT_STAGE = "commit"


class ParserService:
    """Coordinates the Figma manager, the orchestrator and the repository."""

    def __init__(
        self,
        manager: FigmaManager,
        repository: DesignRepository,
        config: Optional[AppConfig] = None
    ):
        """
        Initialize the service.

        Args:
            manager: Fetches and parses Figma files
            repository: Storage for parsed records
            config: Service settings, defaults when omitted
        """
        self.manager = manager
        self.repository = repository
        self.config = config or AppConfig()
        self.orchestrator = PersistenceOrchestrator(repository)

    def parse_and_persist(self, figma_url: str, credentials: FigmaCredentials) -> DesignFile:
        """
        Parse a Figma file and save it with its components and instances.

        Args:
            figma_url: Figma file or design URL
            credentials: Token used for the fetch

        Returns:
            The saved DesignFile

        Raises:
            InvalidInput: If the URL or the fetched document is malformed
            UpstreamFailure: If Figma cannot be reached or rejects the request
            PersistenceFailure: If a storage write fails
        """
        summary = self.parse_and_persist_with_summary(figma_url, credentials)
        return summary.file

    def parse_and_persist_with_summary(
        self,
        figma_url: str,
        credentials: FigmaCredentials
    ) -> BatchSummary:
        """Same as parse_and_persist, returning the per-row batch summary."""
        batch = self.manager.parse_file_from_url(figma_url, credentials)
        logger.info(f"Parsed {batch.file.file_key}: {len(batch.components)} components, "
                    f"{len(batch.instances)} instances")
        return self._persist(batch)

    def _persist(self, batch: ParsedBatch) -> BatchSummary:
        if not self.config.atomic_persistence:
            return self.orchestrator.persist(batch)

        summary: Optional[BatchSummary] = None
        try:
            with self.repository.unit_of_work():
                summary = self.orchestrator.persist(batch)
        except StorageError as e:
            # rows reported as saved were discarded with the transaction
            logger.error(f"Commit of batch {batch.file.file_key} failed: {e}")
            if summary is not None:
                summary.fail(COMMIT_STAGE)
            raise PersistenceFailure(COMMIT_STAGE, str(e), summary=summary) from e
        return summary

    def get_file_details(self, file_id: int) -> FileDetails:
        """
        Load a saved file with its active components and instances.

        Raises:
            RecordNotFound: If no active file has this identity
        """
        design_file = self.repository.get_file(file_id)
        return FileDetails(
            file=design_file,
            components=self.repository.list_components_by_file(file_id),
            instances=self.repository.list_instances_by_file(file_id),
        )

    def get_components_by_file(self, file_id: int) -> List[Component]:
        return self.repository.list_components_by_file(file_id)

    def get_instances_by_component(self, component_id: int) -> List[Instance]:
        return self.repository.list_instances_by_component(component_id)

    def get_instances_by_file(self, file_id: int) -> List[Instance]:
        return self.repository.list_instances_by_file(file_id)

    def validate_url(self, figma_url: str, credentials: FigmaCredentials) -> None:
        """Fetch and parse without saving; raises if either step fails."""
        self.manager.parse_file_from_url(figma_url, credentials)


def build_repository(config: AppConfig) -> DesignRepository:
    """
    Create the repository selected by config.storage_backend.

    Raises:
        ServiceUnavailable: If the Neo4j backend is selected and unreachable
    """
    if config.storage_backend == "neo4j":
        client = GraphClient(
            uri=config.neo4j_uri,
            user=config.neo4j_user,
            password=config.neo4j_password.get_secret_value()
        )
        client.initialize_schema()
        return Neo4jDesignRepository(client)

    return MockDesignStore(config.mock_store_path)


def build_service(config: AppConfig) -> ParserService:
    """Wire the Figma client, manager and repository described by config."""
    client = FigmaClient(
        base_url=config.figma_base_url,
        timeout=config.figma_timeout,
        max_depth=config.extraction.max_depth
    )
    manager = FigmaManager(client=client, config=config.extraction)
    repository = build_repository(config)
    logger.info(f"ParserService ready with {config.storage_backend} storage")
    return ParserService(manager, repository, config)
