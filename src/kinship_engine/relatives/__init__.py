"""Population-scale relative discovery.

- Ancestor enumeration and the derived ancestor cache
- Shared-ancestor matching with privacy filtering
- Connection request workflow
"""
from .ancestors import DEFAULT_ANCESTOR_DEPTH, enumerate_ancestors, parent_provider_from_facts
from .cache import AncestorCache
from .connections import ConnectionRequestService
from .matcher import RelativeMatcher

__all__ = [
    "DEFAULT_ANCESTOR_DEPTH",
    "enumerate_ancestors",
    "parent_provider_from_facts",
    "AncestorCache",
    "RelativeMatcher",
    "ConnectionRequestService",
]
