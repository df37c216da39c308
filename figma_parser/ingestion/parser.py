"""
Figma Parser Module

Turns a Figma API file response into a ParsedBatch: the file record, the
deduplicated components and the instance drafts that point at them.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..config import ExtractionConfig
from ..errors import InvalidInput
from ..records import Component, DesignFile
from ..reconciler.dedup import deduplicate, merge_component_sources
from ..reconciler.provisional import InstanceDraft, ProvisionalRef
from ..reconciler.resolver import ProvisionalIndex
from .canvas import calculate_canvas_dimensions
from .models import (
    COMPONENT,
    COMPONENT_SET,
    INSTANCE,
    ComponentMeta,
    FigmaAPIResponse,
    Node,
    ParsedBatch,
)
from .tree import find_node_by_id, iter_nodes

logger = logging.getLogger(__name__)

COMPONENT_TYPES = (COMPONENT, COMPONENT_SET)


class FigmaParser:
    """
    Extracts components and instances from a Figma node tree.

    Components come from two sources: the file-level components and
    componentSets maps, and COMPONENT / COMPONENT_SET nodes found while walking
    the tree. Both are merged and deduplicated before instances are extracted,
    because each instance records the position of its component in that list.
    """

    def __init__(self, config: Optional[ExtractionConfig] = None):
        """
        Initialize the parser.

        Args:
            config: Extraction settings (depth bound, conflict policy, fallback size)
        """
        self.config = config or ExtractionConfig()
        logger.info(f"FigmaParser initialized (max_depth={self.config.max_depth}, "
                    f"conflict_policy={self.config.conflict_policy.value})")

    def parse_file(
        self,
        api_response: Optional[FigmaAPIResponse],
        file_key: str,
        original_url: str = ""
    ) -> ParsedBatch:
        """
        Parse a complete Figma API response.

        Args:
            api_response: Response of the file endpoint
            file_key: Figma file key the response belongs to
            original_url: URL the caller asked for, stored on the file record

        Returns:
            ParsedBatch with the file draft, components and instance drafts

        Raises:
            InvalidInput: If the response is missing or its root is not a DOCUMENT
            TreeTooDeep: If the tree nests deeper than the configured bound
        """
        if api_response is None:
            raise InvalidInput("API response cannot be empty")

        document = api_response.document
        dimensions = calculate_canvas_dimensions(
            document,
            max_depth=self.config.max_depth,
            fallback_width=self.config.fallback_width,
            fallback_height=self.config.fallback_height
        )

        design_file = DesignFile(
            name=api_response.name,
            url=original_url,
            file_key=file_key,
            image_url=api_response.thumbnail_url,
            canvas_width=dimensions.width,
            canvas_height=dimensions.height,
            parsed_at=datetime.now(),
            active=True
        )

        api_components = self.extract_components_from_api(api_response)
        tree_components = self.extract_components(document)
        components = merge_component_sources(
            api_components,
            tree_components,
            self.config.conflict_policy
        )

        instances = deduplicate(self.extract_instances(document, components))

        logger.info(f"Parsed file {file_key}: canvas={dimensions.width}x{dimensions.height}, "
                    f"{len(components)} components ({len(api_components)} from API maps, "
                    f"{len(tree_components)} from tree), {len(instances)} instances")

        return ParsedBatch(file=design_file, components=components, instances=instances)

    def extract_components(self, root: Node, file_id: int = 0) -> List[Component]:
        """
        Collect COMPONENT and COMPONENT_SET nodes in pre-order.

        Children are always visited, so components nested inside components
        are extracted too.

        Args:
            root: Node to start from
            file_id: Owning file identity, 0 while the file is unsaved

        Returns:
            Components in traversal order (not deduplicated)
        """
        components = []
        for node, depth in iter_nodes(root, self.config.max_depth):
            if node.type not in COMPONENT_TYPES:
                continue
            if not node.id:
                logger.debug(f"Skipping {node.type} node without id at depth {depth}")
                continue
            components.append(self.node_to_component(node, file_id))
        return components

    def extract_instances(self, root: Node, components: List[Component]) -> List[InstanceDraft]:
        """
        Collect INSTANCE nodes whose component is in the given list.

        Args:
            root: Node to start from
            components: Deduplicated components, fully extracted beforehand

        Returns:
            Instance drafts carrying provisional component references
        """
        index = ProvisionalIndex(components)
        instances = []

        for node, _ in iter_nodes(root, self.config.max_depth):
            if node.type != INSTANCE or not node.component_id:
                continue
            if not node.id:
                logger.debug(f"Skipping instance without id (component {node.component_id})")
                continue

            ref = index.lookup(node.component_id)
            if not ref.is_resolved:
                logger.debug(f"Skipping instance {node.id}: component {node.component_id} "
                             f"not found")
                continue

            instances.append(self.node_to_instance(node, ref))

        return instances

    def extract_components_from_api(
        self,
        api_response: FigmaAPIResponse,
        file_id: int = 0
    ) -> List[Component]:
        """
        Build components from the file-level components and componentSets maps.

        Geometry is borrowed from the tree node with the same id when one exists.

        Args:
            api_response: Response holding the maps and the document tree
            file_id: Owning file identity, 0 while the file is unsaved

        Returns:
            Components, component map entries first, then component sets
        """
        components = []
        sources = (
            (COMPONENT, api_response.components),
            (COMPONENT_SET, api_response.component_sets)
        )
        for component_type, entries in sources:
            for node_id, meta in entries.items():
                components.append(
                    self._meta_to_component(api_response.document, node_id, meta,
                                            component_type, file_id)
                )
        return components

    def node_to_component(self, node: Node, file_id: int = 0) -> Component:
        """Convert a tree node into a component draft."""
        return Component(
            file_id=file_id,
            node_id=node.id,
            name=node.name,
            type=node.type,
            z_index=0,
            properties=self._node_properties(node),
            active=True,
            **self._geometry(node)
        )

    def node_to_instance(self, node: Node, ref: ProvisionalRef) -> InstanceDraft:
        """Convert an INSTANCE node into a draft holding a provisional reference."""
        properties: Dict[str, Any] = {"figmaComponentId": node.component_id}
        if node.visible is not None:
            properties["visible"] = node.visible

        return InstanceDraft(
            component_ref=ref,
            node_id=node.id,
            name=node.name,
            properties=properties,
            **self._geometry(node)
        )

    def _meta_to_component(
        self,
        document: Node,
        node_id: str,
        meta: ComponentMeta,
        component_type: str,
        file_id: int
    ) -> Component:
        component = Component(
            file_id=file_id,
            node_id=node_id,
            name=meta.name,
            type=component_type,
            description=meta.description,
            active=True
        )

        node = find_node_by_id(document, node_id, self.config.max_depth)
        if node is None:
            logger.debug(f"Component {node_id} from API map has no node in the tree")
            return component

        return component.model_copy(
            update={"properties": self._node_properties(node), **self._geometry(node)}
        )

    @staticmethod
    def _geometry(node: Node) -> Dict[str, float]:
        box = node.absolute_bounding_box
        if box is None:
            return {}
        return {"x": box.x, "y": box.y, "width": box.width, "height": box.height}

    @staticmethod
    def _node_properties(node: Node) -> Dict[str, Any]:
        properties: Dict[str, Any] = {}
        if node.visible is not None:
            properties["visible"] = node.visible
        if node.type:
            properties["nodeType"] = node.type
        return properties
