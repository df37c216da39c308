"""
Provisional References

Placeholder component identities used between extraction and persistence.
Position 0 means unresolved; 1..N is the 1-based position of the referenced
component in the deduplicated component list. These values are never written
to storage.
"""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field

from ..records import Instance


class ProvisionalRef(BaseModel):
    """Position-based stand-in for a component's storage identity."""
    model_config = ConfigDict(frozen=True)

    position: int = Field(0, ge=0)

    @property
    def is_resolved(self) -> bool:
        return self.position > 0


UNRESOLVED = ProvisionalRef(position=0)


class InstanceDraft(BaseModel):
    """An extracted instance whose component reference is still provisional."""
    component_ref: ProvisionalRef = UNRESOLVED
    node_id: str
    name: str = ""
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    properties: Dict[str, Any] = Field(default_factory=dict)
    active: bool = True

    def to_instance(self, component_id: int) -> Instance:
        """Build the persistable instance once the real identity is known."""
        return Instance(
            component_id=component_id,
            node_id=self.node_id,
            name=self.name,
            x=self.x,
            y=self.y,
            width=self.width,
            height=self.height,
            properties=dict(self.properties),
            active=self.active,
        )
