"""
Batch Results

Per-row outcome reporting for one persistence run. Every file, component and
instance handed to the orchestrator ends up as exactly one RowResult, so
skipped instances are visible to callers and not only in the logs.
"""

import logging
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from ..records import DesignFile

logger = logging.getLogger(__name__)


class BatchStage(str, Enum):
    """States of one persistence run."""
    PARSED = "parsed"
    FILE_SAVED = "file_saved"
    COMPONENTS_SAVED = "components_saved"
    INSTANCES_SAVED = "instances_saved"
    FAILED = "failed"


_NEXT_STAGE = {
    BatchStage.PARSED: BatchStage.FILE_SAVED,
    BatchStage.FILE_SAVED: BatchStage.COMPONENTS_SAVED,
    BatchStage.COMPONENTS_SAVED: BatchStage.INSTANCES_SAVED,
}


class RowStatus(str, Enum):
    """Outcome of a single row."""
    SAVED = "saved"
    SKIPPED = "skipped"
    FAILED = "failed"


class RowResult(BaseModel):
    """Outcome of persisting one record."""
    kind: str = Field(..., description="file, component or instance")
    node_id: str = ""
    status: RowStatus
    storage_id: Optional[int] = None
    reason: Optional[str] = None


class BatchSummary(BaseModel):
    """Aggregated outcome of one persistence run."""
    file_key: str = ""
    stage: BatchStage = BatchStage.PARSED
    failed_stage: Optional[str] = None
    file: Optional[DesignFile] = None
    rows: List[RowResult] = Field(default_factory=list)

    def advance(self, stage: BatchStage) -> None:
        """
        Move to the next stage.

        Raises:
            ValueError: If stage is not the successor of the current stage
        """
        expected = _NEXT_STAGE.get(self.stage)
        if stage != expected:
            raise ValueError(f"cannot move batch from {self.stage.value} to {stage.value}")
        logger.debug(f"Batch {self.file_key}: {self.stage.value} -> {stage.value}")
        self.stage = stage

    def fail(self, stage_name: str) -> None:
        self.stage = BatchStage.FAILED
        self.failed_stage = stage_name

    def record(
        self,
        kind: str,
        node_id: str,
        status: RowStatus,
        storage_id: Optional[int] = None,
        reason: Optional[str] = None
    ) -> RowResult:
        result = RowResult(
            kind=kind,
            node_id=node_id,
            status=status,
            storage_id=storage_id,
            reason=reason
        )
        self.rows.append(result)
        return result

    def count(self, kind: str, status: RowStatus) -> int:
        return sum(1 for row in self.rows if row.kind == kind and row.status == status)

    @property
    def succeeded(self) -> bool:
        return self.stage == BatchStage.INSTANCES_SAVED

    @property
    def components_saved(self) -> int:
        return self.count("component", RowStatus.SAVED)

    @property
    def instances_saved(self) -> int:
        return self.count("instance", RowStatus.SAVED)

    @property
    def instances_skipped(self) -> int:
        return self.count("instance", RowStatus.SKIPPED)

    def skipped_rows(self) -> List[RowResult]:
        return [row for row in self.rows if row.status == RowStatus.SKIPPED]
