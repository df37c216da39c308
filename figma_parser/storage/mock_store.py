"""
Mock Design Store

DesignRepository backed by a single JSON file. Used for local runs without a
database and for tests. Every operation loads and saves the whole snapshot;
inside a unit of work the snapshot is loaded once and saved only on success.
"""

import json
import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, TypeVar

from pydantic import BaseModel, Field

from ..errors import RecordNotFound, StorageError
from ..records import Component, DesignFile, Instance
from .base import DesignRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StoreState(BaseModel):
    """Complete store snapshot."""
    last_updated: str = Field(default_factory=lambda: datetime.now().isoformat())
    next_ids: Dict[str, int] = Field(default_factory=dict)
    files: List[DesignFile] = Field(default_factory=list)
    components: List[Component] = Field(default_factory=list)
    instances: List[Instance] = Field(default_factory=list)


class MockDesignStore(DesignRepository):
    """
    JSON-file design store.

    Mirrors the database behaviour the pipeline relies on: sequential integer
    identities, active-only reads and per-file uniqueness of component node ids.
    """

    def __init__(self, store_file_path: str):
        """
        Initialize the mock store.

        Args:
            store_file_path: Path to the JSON file holding the store snapshot
        """
        self.store_file = Path(store_file_path)
        self._lock = threading.RLock()
        self._working: Optional[StoreState] = None
        logger.info(f"MockDesignStore initialized with file: {store_file_path}")

        if not self.store_file.exists() or self.store_file.stat().st_size == 0:
            logger.info("Creating empty store file")
            self._save_state(StoreState())

    def _load_state(self) -> StoreState:
        try:
            with open(self.store_file, 'r') as f:
                data = json.load(f)
            return StoreState(**data)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load store: {e}")
            raise StorageError(f"Failed to load store: {e}") from e

    def _save_state(self, state: StoreState) -> None:
        try:
            self.store_file.parent.mkdir(parents=True, exist_ok=True)
            state.last_updated = datetime.now().isoformat()
            with open(self.store_file, 'w') as f:
                json.dump(state.model_dump(mode="json"), f, indent=2)
            logger.debug("Store saved successfully")
        except OSError as e:
            logger.error(f"Failed to save store: {e}")
            raise StorageError(f"Failed to save store: {e}") from e

    @contextmanager
    def unit_of_work(self) -> Iterator[None]:
        with self._lock:
            if self._working is not None:
                yield
                return

            self._working = self._load_state()
            try:
                yield
                self._save_state(self._working)
            except Exception:
                logger.warning("Discarding uncommitted store changes")
                raise
            finally:
                self._working = None

    def _mutate(self, change: Callable[[StoreState], T]) -> T:
        with self._lock:
            if self._working is not None:
                return change(self._working)
            state = self._load_state()
            result = change(state)
            self._save_state(state)
            return result

    def _snapshot(self) -> StoreState:
        with self._lock:
            return self._working if self._working is not None else self._load_state()

    @staticmethod
    def _next_id(state: StoreState, kind: str) -> int:
        state.next_ids[kind] = state.next_ids.get(kind, 0) + 1
        return state.next_ids[kind]

    def create_file(self, design_file: DesignFile) -> DesignFile:
        def change(state: StoreState) -> DesignFile:
            now = datetime.now()
            saved = design_file.model_copy(update={
                "id": self._next_id(state, "file"),
                "created_at": now,
                "updated_at": now,
                "active": True,
            })
            state.files.append(saved)
            return saved

        saved = self._mutate(change)
        logger.debug(f"Created file {saved.id} ({saved.file_key})")
        return saved

    def get_file(self, file_id: int) -> DesignFile:
        for design_file in self._snapshot().files:
            if design_file.id == file_id and design_file.active:
                return design_file
        raise RecordNotFound("file", file_id)

    def create_component(self, component: Component) -> Component:
        def change(state: StoreState) -> Component:
            if not any(f.id == component.file_id for f in state.files):
                raise StorageError(f"file {component.file_id} does not exist")
            if any(c.file_id == component.file_id and c.node_id == component.node_id and c.active
                   for c in state.components):
                raise StorageError(
                    f"component {component.node_id} already exists in file {component.file_id}"
                )
            now = datetime.now()
            saved = component.model_copy(update={
                "id": self._next_id(state, "component"),
                "created_at": now,
                "updated_at": now,
                "active": True,
            })
            state.components.append(saved)
            return saved

        return self._mutate(change)

    def get_component(self, component_id: int) -> Component:
        for component in self._snapshot().components:
            if component.id == component_id and component.active:
                return component
        raise RecordNotFound("component", component_id)

    def list_components_by_file(self, file_id: int) -> List[Component]:
        components = [
            c for c in self._snapshot().components
            if c.file_id == file_id and c.active
        ]
        return sorted(components, key=lambda c: (c.z_index, c.id))

    def create_instance(self, instance: Instance) -> Instance:
        def change(state: StoreState) -> Instance:
            if not any(c.id == instance.component_id for c in state.components):
                raise StorageError(f"component {instance.component_id} does not exist")
            now = datetime.now()
            saved = instance.model_copy(update={
                "id": self._next_id(state, "instance"),
                "created_at": now,
                "updated_at": now,
                "active": True,
            })
            state.instances.append(saved)
            return saved

        return self._mutate(change)

    def get_instance(self, instance_id: int) -> Instance:
        for instance in self._snapshot().instances:
            if instance.id == instance_id and instance.active:
                return instance
        raise RecordNotFound("instance", instance_id)

    def list_instances_by_component(self, component_id: int) -> List[Instance]:
        return [
            i for i in self._snapshot().instances
            if i.component_id == component_id and i.active
        ]

    def list_instances_by_file(self, file_id: int) -> List[Instance]:
        state = self._snapshot()
        component_ids = {
            c.id for c in state.components
            if c.file_id == file_id and c.active
        }
        return [
            i for i in state.instances
            if i.component_id in component_ids and i.active
        ]
