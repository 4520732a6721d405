"""
brickmesh: a Databricks connector for Data Mesh Manager.

Two independent jobs:

- AssetSynchronizer mirrors Unity Catalog schemas and tables into the
  registry asset catalog, incrementally by ``updated_at`` watermark.
- AccessGrantOrchestrator turns registry access grants into an
  ``access-{id}`` group holding the consumer and SELECT on the provider's
  output port schema, and deletes that group on revocation.
"""

from brickmesh.access import AccessGrantOrchestrator, GroupProvisioner, SchemaPermissions
from brickmesh.app import Connector, build_connector
from brickmesh.clients import InMemoryStateStore, RegistryClient, RegistryStateStore, WorkspaceCatalogClient
from brickmesh.config import ConnectorSettings, load_settings
from brickmesh.errors import (
    AlreadyExistsError,
    ConfigurationError,
    ConnectorError,
    NotFoundError,
    OutputPortError,
    UpstreamCallError,
)
from brickmesh.events import AccessEventHandler, EventListener
from brickmesh.results import ExecutionResult, SyncResult
from brickmesh.sync import AssetSynchronizer, FixedDelayScheduler

__version__ = "0.1.0"

__all__ = [
    "AccessGrantOrchestrator",
    "GroupProvisioner",
    "SchemaPermissions",
    "AssetSynchronizer",
    "FixedDelayScheduler",
    "AccessEventHandler",
    "EventListener",
    "Connector",
    "build_connector",
    "WorkspaceCatalogClient",
    "RegistryClient",
    "InMemoryStateStore",
    "RegistryStateStore",
    "ConnectorSettings",
    "load_settings",
    "ExecutionResult",
    "SyncResult",
    "ConnectorError",
    "NotFoundError",
    "AlreadyExistsError",
    "ConfigurationError",
    "OutputPortError",
    "UpstreamCallError",
]
