"""
Persistence Orchestrator

Writes one ParsedBatch to storage in three stages:

    parsed -> file_saved -> components_saved -> instances_saved

The file is saved first because components reference it. Components are
saved one by one in submission order; their identities are then paired with
the provisional positions carried by the instance drafts. A storage error
fails the current stage and stops the run. Rows already written are not
rolled back here; callers wanting all-or-nothing wrap persist() in the
repository's unit of work.
"""

import logging
from typing import List, Sequence

from ..errors import IdentityMapMismatch, PersistenceFailure, ResolutionMiss, StorageError
from ..ingestion.models import ParsedBatch
from ..records import Component, DesignFile
from ..reconciler.provisional import InstanceDraft
from ..reconciler.resolver import ComponentIdentityMap
from ..storage.base import DesignRepository
from .results import BatchStage, BatchSummary, RowStatus

logger = logging.getLogger(__name__)

FILE_STAGE = "file"
COMPONENTS_STAGE = "components"
INSTANCES_STAGE = "instances"


class PersistenceOrchestrator:
    """Sequences the storage writes of one extraction batch."""

    def __init__(self, repository: DesignRepository):
        """
        Initialize the orchestrator.

        Args:
            repository: Storage collaborator receiving the writes
        """
        self.repository = repository

    def persist(self, batch: ParsedBatch) -> BatchSummary:
        """
        Persist a batch: file, then components, then resolved instances.

        Args:
            batch: Output of FigmaParser.parse_file

        Returns:
            BatchSummary in stage instances_saved, with one row per record

        Raises:
            PersistenceFailure: If a storage write fails; carries the failed
                stage and the summary as it stood
        """
        summary = BatchSummary(file_key=batch.file.file_key)
        logger.info(f"Persisting batch {summary.file_key}: {len(batch.components)} components, "
                    f"{len(batch.instances)} instances")

        saved_file = self._save_file(batch.file, summary)
        saved_components = self._save_components(batch.components, saved_file.id, summary)
        self._save_instances(batch.components, saved_components, batch.instances, summary)

        logger.info(f"Batch {summary.file_key} persisted: file {saved_file.id}, "
                    f"{summary.components_saved} components, {summary.instances_saved} instances, "
                    f"{summary.instances_skipped} instances skipped")
        return summary

    def _save_file(self, design_file: DesignFile, summary: BatchSummary) -> DesignFile:
        try:
            saved = self.repository.create_file(design_file)
        except StorageError as e:
            summary.record("file", design_file.file_key, RowStatus.FAILED, reason=str(e))
            raise self._failure(FILE_STAGE, e, summary) from e

        summary.file = saved
        summary.record("file", saved.file_key, RowStatus.SAVED, storage_id=saved.id)
        summary.advance(BatchStage.FILE_SAVED)
        return saved

    def _save_components(
        self,
        components: Sequence[Component],
        file_id: int,
        summary: BatchSummary
    ) -> List[Component]:
        saved_components = []
        for component in components:
            try:
                saved = self.repository.create_component(
                    component.model_copy(update={"file_id": file_id})
                )
            except StorageError as e:
                summary.record("component", component.node_id, RowStatus.FAILED, reason=str(e))
                raise self._failure(COMPONENTS_STAGE, e, summary) from e

            saved_components.append(saved)
            summary.record("component", saved.node_id, RowStatus.SAVED, storage_id=saved.id)

        summary.advance(BatchStage.COMPONENTS_SAVED)
        return saved_components

    def _save_instances(
        self,
        submitted: Sequence[Component],
        saved: Sequence[Component],
        drafts: Sequence[InstanceDraft],
        summary: BatchSummary
    ) -> None:
        try:
            identities = ComponentIdentityMap.build(submitted, saved)
        except IdentityMapMismatch as e:
            logger.error(f"Cannot resolve instances of {summary.file_key}: {e}")
            summary.fail(INSTANCES_STAGE)
            e.summary = summary
            raise

        for draft in drafts:
            try:
                instance = identities.resolve(draft)
            except ResolutionMiss as e:
                logger.warning(f"Skipping instance {draft.name} ({draft.node_id}): {e}")
                summary.record("instance", draft.node_id, RowStatus.SKIPPED, reason=str(e))
                continue

            try:
                stored = self.repository.create_instance(instance)
            except StorageError as e:
                summary.record("instance", draft.node_id, RowStatus.FAILED, reason=str(e))
                raise self._failure(INSTANCES_STAGE, e, summary) from e

            summary.record("instance", stored.node_id, RowStatus.SAVED, storage_id=stored.id)

        summary.advance(BatchStage.INSTANCES_SAVED)

    @staticmethod
    def _failure(stage: str, error: StorageError, summary: BatchSummary) -> PersistenceFailure:
        logger.error(f"Batch {summary.file_key} failed at {stage} stage: {error}")
        summary.fail(stage)
        return PersistenceFailure(stage, str(error), summary=summary)
