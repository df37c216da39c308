"""
Storage Module

Repository interface for design records and its Neo4j and JSON-file
implementations.
"""

from .base import DesignRepository
from .graph_client import GraphClient
from .mock_store import MockDesignStore
from .neo4j_repository import Neo4jDesignRepository

__all__ = ["DesignRepository", "GraphClient", "MockDesignStore", "Neo4jDesignRepository"]
