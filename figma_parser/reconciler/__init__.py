"""
Reconciler Module

Deduplicates extracted records and resolves instance references from
provisional positions to storage identities.
"""

from .dedup import deduplicate, merge_component_sources
from .provisional import UNRESOLVED, InstanceDraft, ProvisionalRef
from .resolver import ComponentIdentityMap, ProvisionalIndex

__all__ = [
    "deduplicate",
    "merge_component_sources",
    "UNRESOLVED",
    "InstanceDraft",
    "ProvisionalRef",
    "ComponentIdentityMap",
    "ProvisionalIndex"
]
