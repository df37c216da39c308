"""
Figma Document Models

Pydantic representation of the Figma REST API file response: the recursive
node tree plus the component and component-set maps. Individual nodes are
validated leniently so a malformed node degrades to empty fields instead of
failing the whole document.
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import InvalidInput
from ..records import Component, DesignFile
from ..reconciler.provisional import InstanceDraft
from .tree import DEFAULT_MAX_DEPTH, check_payload_depth

logger = logging.getLogger(__name__)

DOCUMENT = "DOCUMENT"
CANVAS = "CANVAS"
COMPONENT = "COMPONENT"
COMPONENT_SET = "COMPONENT_SET"
INSTANCE = "INSTANCE"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class BoundingBox(BaseModel):
    """Absolute position and size of a node."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


class Node(BaseModel):
    """A node in the Figma document tree."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = ""
    name: str = ""
    type: str = ""
    visible: Optional[bool] = None
    component_id: str = Field("", alias="componentId")
    absolute_bounding_box: Optional[BoundingBox] = Field(None, alias="absoluteBoundingBox")
    children: List["Node"] = Field(default_factory=list)

    @field_validator("id", "name", "type", "component_id", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    @field_validator("visible", mode="before")
    @classmethod
    def _coerce_visible(cls, value: Any) -> Optional[bool]:
        return value if isinstance(value, bool) else None

    @field_validator("absolute_bounding_box", mode="before")
    @classmethod
    def _drop_incomplete_box(cls, value: Any) -> Any:
        if isinstance(value, BoundingBox):
            return value
        if not isinstance(value, dict):
            return None
        if not all(_is_number(value.get(key)) for key in ("x", "y", "width", "height")):
            return None
        return value

    @field_validator("children", mode="before")
    @classmethod
    def _drop_malformed_children(cls, value: Any) -> List[Any]:
        if not isinstance(value, list):
            return []
        return [child for child in value if isinstance(child, (dict, Node))]

    @property
    def has_geometry(self) -> bool:
        return self.absolute_bounding_box is not None


Node.model_rebuild()


class ComponentMeta(BaseModel):
    """Entry of the file-level components / componentSets maps."""
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    description: str = ""

    @field_validator("name", "description", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)


class FigmaAPIResponse(BaseModel):
    """Raw response of GET /v1/files/:key."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = ""
    thumbnail_url: str = Field("", alias="thumbnailUrl")
    document: Node
    components: Dict[str, ComponentMeta] = Field(default_factory=dict)
    component_sets: Dict[str, ComponentMeta] = Field(default_factory=dict, alias="componentSets")

    @field_validator("name", "thumbnail_url", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    @field_validator("components", "component_sets", mode="before")
    @classmethod
    def _drop_malformed_entries(cls, value: Any) -> Dict[str, Any]:
        if not isinstance(value, dict):
            return {}
        return {
            str(key): entry for key, entry in value.items()
            if isinstance(entry, (dict, ComponentMeta))
        }

    @classmethod
    def from_payload(cls, payload: Any, max_depth: int = DEFAULT_MAX_DEPTH) -> "FigmaAPIResponse":
        """
        Validate a decoded JSON payload into a response.

        Args:
            payload: Decoded JSON body of the file endpoint
            max_depth: Deepest node nesting accepted

        Returns:
            FigmaAPIResponse

        Raises:
            InvalidInput: If the payload is absent, not an object, has no
                document node or nests deeper than max_depth
        """
        if not isinstance(payload, dict):
            raise InvalidInput("Figma API response must be a JSON object")
        if not isinstance(payload.get("document"), dict):
            raise InvalidInput("Figma API response has no document node")

        check_payload_depth(payload["document"], max_depth)

        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            logger.error(f"Figma API response failed validation: {e}")
            raise InvalidInput(f"Invalid Figma API response: {e}") from e


class CanvasDimensions(BaseModel):
    """Overall size of the design surface."""
    width: float
    height: float


class ParsedBatch(BaseModel):
    """Everything extracted from one document, ready for persistence."""
    file: DesignFile
    components: List[Component] = Field(default_factory=list)
    instances: List[InstanceDraft] = Field(default_factory=list)
