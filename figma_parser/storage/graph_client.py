"""
Neo4j Graph Client

Manages connections to Neo4j and provides low-level query execution,
including explicit transactions for multi-statement units of work.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from neo4j import Driver, GraphDatabase, Session, Transaction
from neo4j.exceptions import AuthError, DriverError, Neo4jError, ServiceUnavailable

from ..errors import StorageError

logger = logging.getLogger(__name__)

SCHEMA_STATEMENTS = [
    "CREATE CONSTRAINT design_file_id IF NOT EXISTS FOR (f:DesignFile) REQUIRE f.id IS UNIQUE",
    "CREATE CONSTRAINT component_id IF NOT EXISTS FOR (c:Component) REQUIRE c.id IS UNIQUE",
    "CREATE CONSTRAINT instance_id IF NOT EXISTS FOR (i:Instance) REQUIRE i.id IS UNIQUE",
    "CREATE CONSTRAINT id_sequence_name IF NOT EXISTS FOR (s:IdSequence) REQUIRE s.name IS UNIQUE",
    "CREATE INDEX component_node_id IF NOT EXISTS FOR (c:Component) ON (c.file_id, c.node_id)",
]


class GraphClient:
    """
    Neo4j database client for managing connections, queries and transactions.
    """

    def __init__(self, uri: str, user: str, password: str, database: Optional[str] = None):
        """
        Initialize Neo4j connection.

        Args:
            uri: Neo4j connection URI (e.g., bolt://localhost:7687)
            user: Database username
            password: Database password
            database: Database name, server default when None

        Raises:
            ServiceUnavailable: If cannot connect to Neo4j
            AuthError: If authentication fails
        """
        self.uri = uri
        self.user = user
        self.database = database
        self._driver: Optional[Driver] = None
        logger.info(f"Initializing GraphClient for {uri}")

        try:
            self._driver = GraphDatabase.driver(uri, auth=(user, password))
            self._driver.verify_connectivity()
            logger.info("Successfully connected to Neo4j")
        except ServiceUnavailable as e:
            logger.error(f"Cannot connect to Neo4j at {uri}: {e}")
            raise
        except AuthError as e:
            logger.error(f"Authentication failed for Neo4j: {e}")
            raise

    def close(self) -> None:
        """Close the Neo4j driver connection."""
        if self._driver:
            self._driver.close()
            self._driver = None
            logger.info("Neo4j connection closed")

    @contextmanager
    def get_session(self) -> Iterator[Session]:
        """
        Context manager for Neo4j sessions.

        Yields:
            Neo4j Session object
        """
        if not self._driver:
            raise StorageError("GraphClient not connected to Neo4j")

        session = self._driver.session(database=self.database)
        try:
            yield session
        finally:
            session.close()

    @contextmanager
    def transaction(self) -> Iterator[Transaction]:
        """
        Context manager for an explicit transaction.

        Commits when the block exits normally and rolls back when it raises.

        Yields:
            Neo4j Transaction object

        Raises:
            StorageError: If the transaction cannot be opened or committed
        """
        with self.get_session() as session:
            try:
                tx = session.begin_transaction()
            except (Neo4jError, DriverError) as e:
                logger.error(f"Failed to open transaction: {e}")
                raise StorageError(f"Failed to open transaction: {e}") from e

            try:
                yield tx
            except Exception:
                logger.warning("Rolling back Neo4j transaction")
                if not tx.closed():
                    try:
                        tx.rollback()
                    except (Neo4jError, DriverError) as rollback_error:
                        logger.error(f"Rollback failed: {rollback_error}")
                raise

            try:
                tx.commit()
            except (Neo4jError, DriverError) as e:
                logger.error(f"Transaction commit failed: {e}")
                raise StorageError(f"Failed to commit transaction: {e}") from e
            logger.debug("Transaction committed")

    def execute_query(
        self,
        query: str,
        parameters: Optional[Dict[str, Any]] = None,
        tx: Optional[Transaction] = None
    ) -> List[Dict[str, Any]]:
        """
        Execute a Cypher query and return results as a list of dictionaries.

        Args:
            query: Cypher query string
            parameters: Optional query parameters
            tx: Open transaction to run in; an auto-commit session is used when None

        Returns:
            List of result records as dictionaries

        Raises:
            StorageError: If query execution fails
        """
        logger.debug(f"Executing query: {query[:100]}...")

        try:
            if tx is not None:
                return [record.data() for record in tx.run(query, parameters or {})]

            with self.get_session() as session:
                result = session.run(query, parameters or {})
                records = [record.data() for record in result]
                logger.debug(f"Query returned {len(records)} records")
                return records
        except (Neo4jError, DriverError) as e:
            logger.error(f"Query execution failed: {e}")
            raise StorageError(f"Failed to execute query: {e}") from e

    def execute_write(
        self,
        query: str,
        parameters: Optional[Dict[str, Any]] = None,
        tx: Optional[Transaction] = None
    ) -> List[Dict[str, Any]]:
        """
        Execute a write query in its own managed transaction, or in tx if given.

        Raises:
            StorageError: If the transaction fails
        """
        if tx is not None:
            return self.execute_query(query, parameters, tx=tx)

        logger.debug(f"Executing write transaction: {query[:100]}...")

        try:
            with self.get_session() as session:
                return session.execute_write(
                    lambda work: work.run(query, parameters or {}).data()
                )
        except (Neo4jError, DriverError) as e:
            logger.error(f"Write transaction failed: {e}")
            raise StorageError(f"Failed to execute write transaction: {e}") from e

    def initialize_schema(self) -> None:
        """Create the uniqueness constraints and lookup indexes."""
        logger.info("Initializing Neo4j schema")
        for statement in SCHEMA_STATEMENTS:
            self.execute_query(statement)
        logger.info("Schema initialized successfully")

    def health_check(self) -> bool:
        """
        Check if the Neo4j connection is healthy.

        Returns:
            True if connection is healthy, False otherwise
        """
        try:
            result = self.execute_query("RETURN 1 as health")
            return len(result) > 0 and result[0].get('health') == 1
        except StorageError as e:
            logger.error(f"Health check failed: {e}")
            return False

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
