"""
Integration tests for the Neo4j design repository.

Skipped unless NEO4J_URI (and optionally NEO4J_USER / NEO4J_PASSWORD) point
at a disposable database; every test deletes the nodes it created.
"""

import os

import pytest

from figma_parser.errors import PersistenceFailure, RecordNotFound, StorageError
from figma_parser.ingestion.models import ParsedBatch
from figma_parser.orchestrator import PersistenceOrchestrator
from figma_parser.records import Component, DesignFile, Instance
from figma_parser.reconciler import InstanceDraft, ProvisionalRef

pytestmark = pytest.mark.skipif(
    not os.getenv("NEO4J_URI"),
    reason="NEO4J_URI not set"
)

CLEANUP = """
MATCH (n) WHERE n:DesignFile OR n:Component OR n:Instance OR n:IdSequence
DETACH DELETE n
"""


@pytest.fixture
def repository():
    from figma_parser.storage.graph_client import GraphClient
    from figma_parser.storage.neo4j_repository import Neo4jDesignRepository

    client = GraphClient(
        uri=os.getenv("NEO4J_URI"),
        user=os.getenv("NEO4J_USER", "neo4j"),
        password=os.getenv("NEO4J_PASSWORD", "password")
    )
    client.initialize_schema()
    client.execute_write(CLEANUP)
    repo = Neo4jDesignRepository(client)
    yield repo
    client.execute_write(CLEANUP)
    repo.close()


class TestNeo4jDesignRepository:
    """Round trips through the graph."""

    def test_health_check(self, repository):
        """The connection answers."""
        assert repository.client.health_check()

    def test_file_component_instance(self, repository):
        """Records come back with identities and decoded property bags."""
        design_file = repository.create_file(DesignFile(name="Landing", file_key="abcDEF123456"))
        component = repository.create_component(Component(
            file_id=design_file.id, node_id="1:1", name="Button",
            properties={"visible": True, "nodeType": "COMPONENT"}
        ))
        instance = repository.create_instance(Instance(
            component_id=component.id, node_id="2:1", name="Button#1",
            properties={"figmaComponentId": "1:1"}
        ))

        assert repository.get_file(design_file.id).name == "Landing"
        assert repository.get_component(component.id).properties["nodeType"] == "COMPONENT"
        assert repository.get_instance(instance.id).properties == {"figmaComponentId": "1:1"}
        assert [i.id for i in repository.list_instances_by_file(design_file.id)] == [instance.id]

    def test_duplicate_component(self, repository):
        """A node id may exist once per file."""
        design_file = repository.create_file(DesignFile(name="Landing"))
        repository.create_component(Component(file_id=design_file.id, node_id="1:1"))

        with pytest.raises(StorageError):
            repository.create_component(Component(file_id=design_file.id, node_id="1:1"))

    def test_missing_record(self, repository):
        """Unknown identities raise RecordNotFound."""
        with pytest.raises(RecordNotFound):
            repository.get_component(12345)

    def test_unit_of_work_rolls_back(self, repository):
        """A failed batch inside a unit of work leaves no rows."""
        batch = ParsedBatch(
            file=DesignFile(name="Rolled back"),
            components=[Component(node_id="1:1"), Component(node_id="1:1")],
            instances=[InstanceDraft(component_ref=ProvisionalRef(position=1), node_id="2:1")],
        )

        with pytest.raises(PersistenceFailure):
            with repository.unit_of_work():
                PersistenceOrchestrator(repository).persist(batch)

        with pytest.raises(RecordNotFound):
            repository.get_file(1)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
