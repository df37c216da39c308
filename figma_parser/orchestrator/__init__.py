"""
Orchestrator Module

Sequences the storage writes of a parsed batch and exposes the service-level
operations.
"""

from .persistence import PersistenceOrchestrator
from .results import BatchStage, BatchSummary, RowResult, RowStatus
from .service import ParserService, build_repository, build_service

__all__ = [
    'PersistenceOrchestrator',
    'BatchStage',
    'BatchSummary',
    'RowResult',
    'RowStatus',
    'ParserService',
    'build_repository',
    'build_service',
]
