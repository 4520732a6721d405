"""
Collaborator clients: the Databricks workspace, the registry API and state stores.
"""

from .registry import RegistryClient
from .state import InMemoryStateStore, RegistryStateStore, StateStore
from .workspace import WorkspaceCatalogClient

__all__ = [
    "WorkspaceCatalogClient",
    "RegistryClient",
    "StateStore",
    "InMemoryStateStore",
    "RegistryStateStore",
]
