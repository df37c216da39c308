"""
Reference Resolver

Two-phase resolution of instance -> component references.

Phase 1 runs at extraction time, before anything is stored: an instance gets
the 1-based position of its component in the deduplicated component list.
Phase 2 runs after every component has been saved in submission order: the
positions are paired with the storage identities and each instance draft is
rewritten with the real identity.
"""

import logging
from typing import Dict, Sequence

from ..errors import IdentityMapMismatch, ResolutionMiss
from ..records import Component, Instance
from .provisional import UNRESOLVED, InstanceDraft, ProvisionalRef

logger = logging.getLogger(__name__)


class ProvisionalIndex:
    """
    Phase 1 lookup from Figma node id to provisional reference.

    Built once over the deduplicated component list, so lookups do not rescan it.
    """

    def __init__(self, components: Sequence[Component]):
        self._positions: Dict[str, int] = {}
        for position, component in enumerate(components, start=1):
            self._positions.setdefault(component.node_id, position)

    def __len__(self) -> int:
        return len(self._positions)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._positions

    def lookup(self, node_id: str) -> ProvisionalRef:
        """Return the provisional reference for node_id, UNRESOLVED if unknown."""
        position = self._positions.get(node_id)
        if position is None:
            return UNRESOLVED
        return ProvisionalRef(position=position)


class ComponentIdentityMap:
    """Phase 2 mapping from provisional position to storage identity."""

    def __init__(self, identities: Dict[int, int]):
        self._identities = dict(identities)

    def __len__(self) -> int:
        return len(self._identities)

    @classmethod
    def build(
        cls,
        submitted: Sequence[Component],
        saved: Sequence[Component]
    ) -> "ComponentIdentityMap":
        """
        Pair each submitted position with the identity storage assigned to it.

        Args:
            submitted: Components in the order they were handed to storage
            saved: Stored components, one per submitted component, same order

        Returns:
            ComponentIdentityMap

        Raises:
            IdentityMapMismatch: If the saved list was reordered, filtered or is
                missing identities; positions can no longer be trusted
        """
        if len(submitted) != len(saved):
            raise IdentityMapMismatch(
                f"submitted {len(submitted)} components but {len(saved)} were saved"
            )

        identities: Dict[int, int] = {}
        for position, (draft, stored) in enumerate(zip(submitted, saved), start=1):
            if stored.id is None:
                raise IdentityMapMismatch(f"component {draft.node_id} has no storage identity")
            if stored.node_id != draft.node_id:
                raise IdentityMapMismatch(
                    f"position {position} holds {stored.node_id}, expected {draft.node_id}"
                )
            identities[position] = stored.id

        logger.debug(f"Built identity map for {len(identities)} components")
        return cls(identities)

    def resolve(self, draft: InstanceDraft) -> Instance:
        """
        Rewrite an instance draft with its component's storage identity.

        Raises:
            ResolutionMiss: If the draft's provisional reference is 0 or out of range
        """
        position = draft.component_ref.position
        identity = self._identities.get(position)
        if identity is None:
            raise ResolutionMiss(position, draft.node_id)
        return draft.to_instance(identity)
