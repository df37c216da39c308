"""
Design Repository Interface

Abstract storage collaborator for files, components and instances, so the
persistence flow does not depend on a particular database.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, List

from ..records import Component, DesignFile, Instance

logger = logging.getLogger(__name__)


class DesignRepository(ABC):
    """
    Abstract base class for design record storage.

    Implementations assign positive integer identities on create, return only
    active rows on read and raise StorageError (RecordNotFound for missing
    rows) on failure.

    Implementations:
    - MockDesignStore (JSON file, local runs and tests)
    - Neo4jDesignRepository
    """

    @abstractmethod
    def create_file(self, design_file: DesignFile) -> DesignFile:
        """
        Store a file record.

        Args:
            design_file: File draft, id is ignored

        Returns:
            Copy of the record with id and timestamps set
        """

    @abstractmethod
    def get_file(self, file_id: int) -> DesignFile:
        """Fetch an active file by identity."""

    @abstractmethod
    def create_component(self, component: Component) -> Component:
        """
        Store a component.

        Args:
            component: Component with file_id set to a saved file

        Returns:
            Copy of the record with id and timestamps set and active = True

        Raises:
            StorageError: If the file already has an active component with this node_id
        """

    @abstractmethod
    def get_component(self, component_id: int) -> Component:
        """Fetch an active component by identity."""

    @abstractmethod
    def list_components_by_file(self, file_id: int) -> List[Component]:
        """Active components of a file, ordered by z_index."""

    @abstractmethod
    def create_instance(self, instance: Instance) -> Instance:
        """Store an instance whose component_id is a saved component."""

    @abstractmethod
    def get_instance(self, instance_id: int) -> Instance:
        """Fetch an active instance by identity."""

    @abstractmethod
    def list_instances_by_component(self, component_id: int) -> List[Instance]:
        """Active instances of a component, oldest first."""

    @abstractmethod
    def list_instances_by_file(self, file_id: int) -> List[Instance]:
        """Active instances whose active component belongs to the file, oldest first."""

    @abstractmethod
    @contextmanager
    def unit_of_work(self) -> Iterator[None]:
        """
        Group writes so they commit together or not at all.

        Nested use joins the outer unit of work.
        """

    def close(self) -> None:
        """Release any resources held by the repository."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
