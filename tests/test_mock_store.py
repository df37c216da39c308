"""
Tests for the JSON-file design store.
"""

import json

import pytest

from figma_parser.errors import RecordNotFound, StorageError
from figma_parser.records import Component, DesignFile, Instance
from figma_parser.storage.mock_store import MockDesignStore


@pytest.fixture
def saved_file(mock_store):
    return mock_store.create_file(DesignFile(name="Landing", file_key="abcDEF123456"))


class TestMockDesignStore:
    """CRUD behaviour."""

    def test_creates_store_file(self, tmp_path):
        """An empty snapshot is written on first use."""
        path = tmp_path / "nested" / "store.json"

        MockDesignStore(str(path))

        data = json.loads(path.read_text())
        assert data["files"] == []
        assert data["next_ids"] == {}

    def test_create_file_assigns_identity(self, mock_store, saved_file):
        """Identities are sequential and timestamps are set."""
        second = mock_store.create_file(DesignFile(name="Other"))

        assert saved_file.id == 1
        assert second.id == 2
        assert saved_file.created_at is not None
        assert mock_store.get_file(1).name == "Landing"

    def test_persists_between_instances(self, tmp_path):
        """A new store on the same path sees earlier writes."""
        path = str(tmp_path / "store.json")
        MockDesignStore(path).create_file(DesignFile(name="Kept"))

        assert MockDesignStore(path).get_file(1).name == "Kept"

    def test_missing_file(self, mock_store):
        """Unknown identities raise RecordNotFound."""
        with pytest.raises(RecordNotFound) as exc_info:
            mock_store.get_file(42)

        assert exc_info.value.kind == "file"
        assert isinstance(exc_info.value, StorageError)

    def test_components_ordered_by_z_index(self, mock_store, saved_file):
        """Components come back ordered by z_index, then id."""
        for node_id, z_index in (("a", 2), ("b", 0), ("c", 1)):
            mock_store.create_component(
                Component(file_id=saved_file.id, node_id=node_id, z_index=z_index)
            )

        listed = mock_store.list_components_by_file(saved_file.id)

        assert [c.node_id for c in listed] == ["b", "c", "a"]
        assert all(c.active for c in listed)

    def test_component_node_id_unique_per_file(self, mock_store, saved_file):
        """A second active component with the same node id is rejected."""
        mock_store.create_component(Component(file_id=saved_file.id, node_id="1:1"))

        with pytest.raises(StorageError):
            mock_store.create_component(Component(file_id=saved_file.id, node_id="1:1"))

        other = mock_store.create_file(DesignFile(name="Other"))
        assert mock_store.create_component(Component(file_id=other.id, node_id="1:1")).id == 2

    def test_component_requires_file(self, mock_store):
        """A component for an unknown file is rejected."""
        with pytest.raises(StorageError):
            mock_store.create_component(Component(file_id=9, node_id="1:1"))

    def test_instances(self, mock_store, saved_file):
        """Instances are listed per component and per file."""
        component = mock_store.create_component(Component(file_id=saved_file.id, node_id="1:1"))
        instance = mock_store.create_instance(
            Instance(component_id=component.id, node_id="2:1", properties={"figmaComponentId": "1:1"})
        )

        assert mock_store.get_instance(instance.id).properties == {"figmaComponentId": "1:1"}
        assert [i.id for i in mock_store.list_instances_by_component(component.id)] == [instance.id]
        assert [i.id for i in mock_store.list_instances_by_file(saved_file.id)] == [instance.id]
        assert mock_store.list_instances_by_file(999) == []

    def test_instance_requires_component(self, mock_store):
        """An instance for an unknown component is rejected."""
        with pytest.raises(StorageError):
            mock_store.create_instance(Instance(component_id=5, node_id="2:1"))


class TestUnitOfWork:
    """All-or-nothing writes."""

    def test_commit(self, mock_store):
        """Writes inside a successful unit of work are saved."""
        with mock_store.unit_of_work():
            design_file = mock_store.create_file(DesignFile(name="Committed"))
            mock_store.create_component(Component(file_id=design_file.id, node_id="1:1"))

        assert mock_store.get_file(design_file.id).name == "Committed"
        assert len(mock_store.list_components_by_file(design_file.id)) == 1

    def test_rollback(self, mock_store):
        """A failing unit of work leaves the store untouched."""
        with pytest.raises(StorageError):
            with mock_store.unit_of_work():
                design_file = mock_store.create_file(DesignFile(name="Lost"))
                mock_store.create_component(Component(file_id=design_file.id, node_id="1:1"))
                mock_store.create_component(Component(file_id=design_file.id, node_id="1:1"))

        with pytest.raises(RecordNotFound):
            mock_store.get_file(1)

        assert mock_store.create_file(DesignFile(name="Next")).id == 1

    def test_reads_see_uncommitted_writes(self, mock_store):
        """Inside a unit of work reads see the working copy."""
        with mock_store.unit_of_work():
            design_file = mock_store.create_file(DesignFile(name="Pending"))
            assert mock_store.get_file(design_file.id).name == "Pending"

    def test_nested_joins_outer(self, mock_store):
        """A nested unit of work commits with the outer one."""
        with pytest.raises(RuntimeError):
            with mock_store.unit_of_work():
                with mock_store.unit_of_work():
                    mock_store.create_file(DesignFile(name="Inner"))
                raise RuntimeError("outer fails")

        with pytest.raises(RecordNotFound):
            mock_store.get_file(1)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
