"""
Connector data models.

Module organization:
- enums: All enumerations and fixed names (ConsumerType, OperationType, etc.)
- base: BaseConnectorModel with the shared Pydantic configuration
- workspace: CatalogNode, SchemaNode, TableNode as read from Unity Catalog
- registry: Asset, AccessGrant, DataProduct, Team, RegistryEvent
- principals: WorkspaceGroup, WorkspaceServicePrincipal and group naming
"""

from .base import BaseConnectorModel
from .enums import (
    DATABRICKS_OUTPUT_PORT_TYPE,
    INFORMATION_SCHEMA,
    MANAGED_CATALOG,
    AssetType,
    ConsumerType,
    OperationType,
    Privilege,
    RegistryEventType,
    SecurableType,
)
from .principals import (
    WorkspaceGroup,
    WorkspaceServicePrincipal,
    access_group_name,
    data_product_principal_id,
    team_group_name,
)
from .registry import (
    AccessConsumer,
    AccessGrant,
    AccessProvider,
    Asset,
    AssetColumn,
    AssetRelationship,
    DataProduct,
    OutputPort,
    RegistryEvent,
    Team,
    TeamMember,
)
from .workspace import CatalogNode, ColumnNode, SchemaNode, TableNode

__all__ = [
    # Base
    "BaseConnectorModel",
    # Enums and constants
    "DATABRICKS_OUTPUT_PORT_TYPE",
    "INFORMATION_SCHEMA",
    "MANAGED_CATALOG",
    "AssetType",
    "ConsumerType",
    "OperationType",
    "Privilege",
    "RegistryEventType",
    "SecurableType",
    # Workspace nodes
    "CatalogNode",
    "SchemaNode",
    "TableNode",
    "ColumnNode",
    # Registry resources
    "Asset",
    "AssetColumn",
    "AssetRelationship",
    "AccessGrant",
    "AccessProvider",
    "AccessConsumer",
    "DataProduct",
    "OutputPort",
    "Team",
    "TeamMember",
    "RegistryEvent",
    # Principals
    "WorkspaceGroup",
    "WorkspaceServicePrincipal",
    "access_group_name",
    "team_group_name",
    "data_product_principal_id",
]
