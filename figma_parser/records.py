"""
Persisted Records

Shapes of the rows written to and read from storage: one DesignFile per
parsed document, its Components, and the Instances placed from them.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class DesignFile(BaseModel):
    """A parsed Figma document."""
    id: Optional[int] = Field(None, description="Storage identity, None until saved")
    name: str = ""
    url: str = Field("", description="Original URL the file was parsed from")
    file_key: str = ""
    image_url: str = Field("", description="Thumbnail URL reported by Figma")
    thumbnails: str = ""
    canvas_width: float = 0.0
    canvas_height: float = 0.0
    parsed_at: datetime = Field(default_factory=datetime.now)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    active: bool = True


class Component(BaseModel):
    """A reusable design element extracted from a file."""
    id: Optional[int] = None
    file_id: int = Field(0, description="Owning file identity, 0 before the file is saved")
    node_id: str = Field(..., description="Figma node id, unique per file")
    name: str = ""
    type: str = "COMPONENT"
    description: str = ""
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    z_index: int = 0
    properties: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    active: bool = True


class Instance(BaseModel):
    """A placed usage of a saved Component."""
    id: Optional[int] = None
    component_id: int = Field(..., description="Storage identity of the owning component")
    node_id: str
    name: str = ""
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    properties: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    active: bool = True


class FileDetails(BaseModel):
    """A saved file assembled with its components and instances for display."""
    file: DesignFile
    components: List[Component] = Field(default_factory=list)
    instances: List[Instance] = Field(default_factory=list)
