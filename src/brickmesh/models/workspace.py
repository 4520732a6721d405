"""
Workspace namespace nodes.

Read-only snapshots of Unity Catalog catalogs, schemas and tables as reported
by the workspace. They are rebuilt from the workspace on every synchronization
pass and never persisted.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from .base import BaseConnectorModel
from .enums import INFORMATION_SCHEMA, MANAGED_CATALOG


class CatalogNode(BaseConnectorModel):
    """A Unity Catalog catalog, the root of the namespace hierarchy."""

    # The workspace exposes no stable catalog id, so this is usually None
    id: Optional[str] = None
    name: str
    full_name: str
    catalog_type: Optional[str] = None
    comment: Optional[str] = None
    updated_at: int = 0

    @property
    def is_managed(self) -> bool:
        return self.catalog_type == MANAGED_CATALOG


class SchemaNode(BaseConnectorModel):
    """A schema inside a catalog."""

    id: str
    name: str
    full_name: str
    catalog_name: str
    catalog_type: Optional[str] = None
    comment: Optional[str] = None
    updated_at: int = 0

    @property
    def is_system_schema(self) -> bool:
        return self.name == INFORMATION_SCHEMA


class ColumnNode(BaseConnectorModel):
    """A table column."""

    name: str
    type_text: Optional[str] = None
    comment: Optional[str] = None


class TableNode(BaseConnectorModel):
    """A table or view inside a schema."""

    id: str
    name: str
    full_name: str
    schema_name: str
    catalog_name: str
    table_type: Optional[str] = None
    comment: Optional[str] = None
    updated_at: int = 0
    deleted_at: Optional[int] = Field(default=None, description="Deletion marker, set once the table was dropped")
    columns: List[ColumnNode] = Field(default_factory=list)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
