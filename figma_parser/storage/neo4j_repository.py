"""
Neo4j Design Repository

Stores files, components and instances as Neo4j nodes:

    (:Instance)-[:INSTANCE_OF]->(:Component)-[:PART_OF]->(:DesignFile)

Integer identities come from one IdSequence node per label. A unit of work
runs every write inside a single explicit transaction.
"""

import json
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional

from neo4j import Transaction

from ..errors import RecordNotFound, StorageError
from ..records import Component, DesignFile, Instance
from .base import DesignRepository
from .graph_client import GraphClient

logger = logging.getLogger(__name__)

_NEXT_ID = """
MERGE (seq:IdSequence {name: $sequence})
ON CREATE SET seq.current = 0
SET seq.current = seq.current + 1
WITH seq.current AS new_id
"""

CREATE_FILE = _NEXT_ID + """
CREATE (f:DesignFile {
    id: new_id, name: $name, url: $url, file_key: $file_key, image_url: $image_url,
    thumbnails: $thumbnails, canvas_width: $canvas_width, canvas_height: $canvas_height,
    parsed_at: $parsed_at, created_at: $now, updated_at: $now, active: true
})
RETURN f
"""

GET_FILE = "MATCH (f:DesignFile {id: $id, active: true}) RETURN f"

FIND_COMPONENT_BY_NODE = """
MATCH (c:Component {file_id: $file_id, node_id: $node_id, active: true})
RETURN c.id AS id
"""

CREATE_COMPONENT = _NEXT_ID + """
MATCH (f:DesignFile {id: $file_id})
CREATE (c:Component {
    id: new_id, file_id: $file_id, node_id: $node_id, name: $name, type: $type,
    description: $description, x: $x, y: $y, width: $width, height: $height,
    z_index: $z_index, properties_json: $properties_json,
    created_at: $now, updated_at: $now, active: true
})-[:PART_OF]->(f)
RETURN c
"""

GET_COMPONENT = "MATCH (c:Component {id: $id, active: true}) RETURN c"

LIST_COMPONENTS_BY_FILE = """
MATCH (c:Component {file_id: $file_id, active: true})
RETURN c ORDER BY c.z_index ASC, c.id ASC
"""

CREATE_INSTANCE = _NEXT_ID + """
MATCH (c:Component {id: $component_id})
CREATE (i:Instance {
    id: new_id, component_id: $component_id, node_id: $node_id, name: $name,
    x: $x, y: $y, width: $width, height: $height, properties_json: $properties_json,
    created_at: $now, updated_at: $now, active: true
})-[:INSTANCE_OF]->(c)
RETURN i
"""

GET_INSTANCE = "MATCH (i:Instance {id: $id, active: true}) RETURN i"

LIST_INSTANCES_BY_COMPONENT = """
MATCH (i:Instance {component_id: $component_id, active: true})
RETURN i ORDER BY i.created_at ASC, i.id ASC
"""

LIST_INSTANCES_BY_FILE = """
MATCH (i:Instance {active: true})-[:INSTANCE_OF]->(c:Component {file_id: $file_id, active: true})
RETURN i ORDER BY i.created_at ASC, i.id ASC
"""


def _decode(row: Dict[str, Any]) -> Dict[str, Any]:
    data = dict(row)
    raw = data.pop("properties_json", None)
    data["properties"] = json.loads(raw) if raw else {}
    return data


class Neo4jDesignRepository(DesignRepository):
    """DesignRepository backed by a Neo4j graph."""

    def __init__(self, client: GraphClient):
        """
        Initialize the repository.

        Args:
            client: Connected GraphClient
        """
        self.client = client
        self._current_tx: ContextVar[Optional[Transaction]] = ContextVar(
            "design_repository_tx", default=None
        )
        logger.info("Neo4jDesignRepository initialized")

    @contextmanager
    def unit_of_work(self) -> Iterator[None]:
        if self._current_tx.get() is not None:
            yield
            return

        with self.client.transaction() as tx:
            token = self._current_tx.set(tx)
            try:
                yield
            finally:
                self._current_tx.reset(token)

    def create_file(self, design_file: DesignFile) -> DesignFile:
        rows = self._write(CREATE_FILE, {
            "sequence": "DesignFile",
            "name": design_file.name,
            "url": design_file.url,
            "file_key": design_file.file_key,
            "image_url": design_file.image_url,
            "thumbnails": design_file.thumbnails,
            "canvas_width": design_file.canvas_width,
            "canvas_height": design_file.canvas_height,
            "parsed_at": design_file.parsed_at.isoformat(),
            "now": datetime.now().isoformat(),
        })
        return DesignFile.model_validate(self._single(rows, "f", "file"))

    def get_file(self, file_id: int) -> DesignFile:
        rows = self._read(GET_FILE, {"id": file_id})
        if not rows:
            raise RecordNotFound("file", file_id)
        return DesignFile.model_validate(rows[0]["f"])

    def create_component(self, component: Component) -> Component:
        existing = self._read(FIND_COMPONENT_BY_NODE, {
            "file_id": component.file_id,
            "node_id": component.node_id,
        })
        if existing:
            raise StorageError(
                f"component {component.node_id} already exists in file {component.file_id}"
            )

        rows = self._write(CREATE_COMPONENT, {
            "sequence": "Component",
            "file_id": component.file_id,
            "node_id": component.node_id,
            "name": component.name,
            "type": component.type,
            "description": component.description,
            "x": component.x,
            "y": component.y,
            "width": component.width,
            "height": component.height,
            "z_index": component.z_index,
            "properties_json": json.dumps(component.properties),
            "now": datetime.now().isoformat(),
        })
        return Component.model_validate(_decode(self._single(rows, "c", "component")))

    def get_component(self, component_id: int) -> Component:
        rows = self._read(GET_COMPONENT, {"id": component_id})
        if not rows:
            raise RecordNotFound("component", component_id)
        return Component.model_validate(_decode(rows[0]["c"]))

    def list_components_by_file(self, file_id: int) -> List[Component]:
        rows = self._read(LIST_COMPONENTS_BY_FILE, {"file_id": file_id})
        return [Component.model_validate(_decode(row["c"])) for row in rows]

    def create_instance(self, instance: Instance) -> Instance:
        rows = self._write(CREATE_INSTANCE, {
            "sequence": "Instance",
            "component_id": instance.component_id,
            "node_id": instance.node_id,
            "name": instance.name,
            "x": instance.x,
            "y": instance.y,
            "width": instance.width,
            "height": instance.height,
            "properties_json": json.dumps(instance.properties),
            "now": datetime.now().isoformat(),
        })
        return Instance.model_validate(_decode(self._single(rows, "i", "instance")))

    def get_instance(self, instance_id: int) -> Instance:
        rows = self._read(GET_INSTANCE, {"id": instance_id})
        if not rows:
            raise RecordNotFound("instance", instance_id)
        return Instance.model_validate(_decode(rows[0]["i"]))

    def list_instances_by_component(self, component_id: int) -> List[Instance]:
        rows = self._read(LIST_INSTANCES_BY_COMPONENT, {"component_id": component_id})
        return [Instance.model_validate(_decode(row["i"])) for row in rows]

    def list_instances_by_file(self, file_id: int) -> List[Instance]:
        rows = self._read(LIST_INSTANCES_BY_FILE, {"file_id": file_id})
        return [Instance.model_validate(_decode(row["i"])) for row in rows]

    def close(self) -> None:
        self.client.close()

    def _read(self, query: str, parameters: Dict[str, Any]) -> List[Dict[str, Any]]:
        return self.client.execute_query(query, parameters, tx=self._current_tx.get())

    def _write(self, query: str, parameters: Dict[str, Any]) -> List[Dict[str, Any]]:
        return self.client.execute_write(query, parameters, tx=self._current_tx.get())

    @staticmethod
    def _single(rows: List[Dict[str, Any]], key: str, kind: str) -> Dict[str, Any]:
        # an empty result means the MATCH on the parent record found nothing
        if not rows:
            raise StorageError(f"failed to create {kind}: parent record not found")
        return rows[0][key]
