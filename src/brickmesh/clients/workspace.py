"""
Workspace catalog client.

Thin adapter over the Databricks SDK exposing exactly the calls the connector
needs, returning connector models and translating SDK errors:

- ``NotFound`` / ``ResourceDoesNotExist`` become ``NotFoundError``
- ``AlreadyExists`` / ``ResourceConflict`` become ``AlreadyExistsError``
- any other ``DatabricksError`` becomes ``UpstreamCallError``

Groups are managed through the account API when an ``AccountClient`` is
given, since Unity Catalog grants cannot reference workspace-local groups.
"""

import logging
from typing import Any, Callable, List, Optional

from databricks.sdk import AccountClient, WorkspaceClient
from databricks.sdk.errors import (
    AlreadyExists,
    DatabricksError,
    NotFound,
    ResourceAlreadyExists,
    ResourceConflict,
    ResourceDoesNotExist,
)
from databricks.sdk.service.catalog import CatalogInfo, PermissionsChange, SchemaInfo, TableInfo
from databricks.sdk.service.catalog import Privilege as SdkPrivilege
from databricks.sdk.service.iam import Patch, PatchOp, PatchSchema

from brickmesh.errors import AlreadyExistsError, ConfigurationError, NotFoundError, UpstreamCallError
from brickmesh.models import (
    CatalogNode,
    ColumnNode,
    Privilege,
    SchemaNode,
    SecurableType,
    TableNode,
    WorkspaceGroup,
    WorkspaceServicePrincipal,
)

logger = logging.getLogger(__name__)


def _get_enum_value(val) -> Optional[str]:
    """Safely get value from enum or return string as-is."""
    if val is None:
        return None
    return val.value if hasattr(val, "value") else str(val)


class WorkspaceCatalogClient:
    """
    Unity Catalog and identity operations against one workspace.

    Example:
        ```python
        client = WorkspaceCatalogClient(WorkspaceClient())
        for catalog in client.list_catalogs():
            for schema in client.list_schemas(catalog.name):
                tables = client.list_tables(catalog.name, schema.name)
        ```
    """

    def __init__(
        self,
        workspace_client: WorkspaceClient,
        account_client: Optional[AccountClient] = None,
        workspace_host: Optional[str] = None,
    ):
        """
        Initialize the client.

        Args:
            workspace_client: Pre-configured Databricks workspace client
            account_client: Optional account client; when set, groups are account groups
            workspace_host: Host to report instead of the workspace client's configured host
        """
        self.workspace_client = workspace_client
        self.account_client = account_client
        self._workspace_host = workspace_host

    @property
    def _groups(self):
        if self.account_client is not None:
            return self.account_client.groups
        return self.workspace_client.groups

    def _call(self, operation: str, resource_type: str, resource_id: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run an SDK call, translating its errors."""
        try:
            return fn(*args, **kwargs)
        except (NotFound, ResourceDoesNotExist) as e:
            logger.debug(f"{resource_type} {resource_id} not found during {operation}: {e}")
            raise NotFoundError(resource_type, resource_id) from e
        except (AlreadyExists, ResourceAlreadyExists, ResourceConflict) as e:
            logger.debug(f"{resource_type} {resource_id} already exists during {operation}: {e}")
            raise AlreadyExistsError(resource_type, resource_id) from e
        except DatabricksError as e:
            logger.error(f"Workspace call {operation} for {resource_type} {resource_id} failed: {e}")
            raise UpstreamCallError(operation, e) from e

    # -------------------------------------------------------------------------
    # Namespace
    # -------------------------------------------------------------------------

    def get_workspace_host(self) -> str:
        host = self._workspace_host or self.workspace_client.config.host
        if not host:
            raise ConfigurationError("Workspace host is not configured")
        return host

    def list_catalogs(self) -> List[CatalogNode]:
        infos = self._call("list_catalogs", "Catalog", "*", lambda: list(self.workspace_client.catalogs.list()))
        return [self._catalog_from_info(info) for info in infos]

    def list_schemas(self, catalog_name: str) -> List[SchemaNode]:
        infos = self._call(
            "list_schemas", "Catalog", catalog_name,
            lambda: list(self.workspace_client.schemas.list(catalog_name=catalog_name)),
        )
        return [self._schema_from_info(info) for info in infos]

    def list_tables(self, catalog_name: str, schema_name: str) -> List[TableNode]:
        infos = self._call(
            "list_tables", "Schema", f"{catalog_name}.{schema_name}",
            lambda: list(self.workspace_client.tables.list(catalog_name=catalog_name, schema_name=schema_name)),
        )
        return [self._table_from_info(info) for info in infos]

    def get_schema(self, full_name: str) -> SchemaNode:
        info = self._call("get_schema", "Schema", full_name, self.workspace_client.schemas.get, full_name)
        return self._schema_from_info(info)

    def update_schema_grants(self, full_name: str, principal: str, privileges: List[Privilege]) -> None:
        """Add privileges on a schema for a principal. Grants are additive, so repeating this is harmless."""
        changes = [PermissionsChange(principal=principal, add=[SdkPrivilege(p.value) for p in privileges])]
        self._call(
            "update_schema_grants", "Schema", full_name,
            self.workspace_client.grants.update,
            securable_type=SecurableType.SCHEMA.value,
            full_name=full_name,
            changes=changes,
        )

    # -------------------------------------------------------------------------
    # Service principals
    # -------------------------------------------------------------------------

    def get_service_principal(self, principal_id: str) -> WorkspaceServicePrincipal:
        result = self._call(
            "get_service_principal", "ServicePrincipal", principal_id,
            self.workspace_client.service_principals.get, principal_id,
        )
        return WorkspaceServicePrincipal.from_sdk(result)

    def create_service_principal(self, principal_id: str, display_name: str, external_id: str) -> WorkspaceServicePrincipal:
        result = self._call(
            "create_service_principal", "ServicePrincipal", principal_id,
            self.workspace_client.service_principals.create,
            id=principal_id,
            display_name=display_name,
            external_id=external_id,
            active=True,
        )
        return WorkspaceServicePrincipal.from_sdk(result)

    # -------------------------------------------------------------------------
    # Groups
    # -------------------------------------------------------------------------

    def list_groups_by_name(self, display_name: str) -> List[WorkspaceGroup]:
        groups = self._call(
            "list_groups_by_name", "Group", display_name,
            lambda: list(self._groups.list(filter=f'displayName eq "{display_name}"')),
        )
        return [WorkspaceGroup.from_sdk(group) for group in groups]

    def get_group(self, group_id: str) -> WorkspaceGroup:
        result = self._call("get_group", "Group", group_id, self._groups.get, group_id)
        return WorkspaceGroup.from_sdk(result)

    def create_group(self, display_name: str) -> WorkspaceGroup:
        result = self._call("create_group", "Group", display_name, self._groups.create, display_name=display_name)
        return WorkspaceGroup.from_sdk(result)

    def update_group_members(self, group_id: str, members: List[str]) -> None:
        """Add members to a group with a SCIM PATCH; existing members are left untouched."""
        if not members:
            return
        operations = [Patch(op=PatchOp.ADD, path="members", value=[{"value": m} for m in members])]
        self._call(
            "update_group_members", "Group", group_id,
            self._groups.patch,
            id=group_id,
            operations=operations,
            schemas=[PatchSchema.URN_IETF_PARAMS_SCIM_API_MESSAGES_2_0_PATCH_OP],
        )

    def delete_group(self, group_id: str) -> None:
        self._call("delete_group", "Group", group_id, self._groups.delete, group_id)

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    @staticmethod
    def _catalog_from_info(info: CatalogInfo) -> CatalogNode:
        return CatalogNode(
            name=info.name,
            full_name=info.full_name or info.name,
            catalog_type=_get_enum_value(info.catalog_type),
            comment=info.comment,
            updated_at=info.updated_at or 0,
        )

    @staticmethod
    def _schema_from_info(info: SchemaInfo) -> SchemaNode:
        return SchemaNode(
            id=info.schema_id,
            name=info.name,
            full_name=info.full_name,
            catalog_name=info.catalog_name,
            catalog_type=_get_enum_value(info.catalog_type),
            comment=info.comment,
            updated_at=info.updated_at or 0,
        )

    @staticmethod
    def _table_from_info(info: TableInfo) -> TableNode:
        return TableNode(
            id=info.table_id,
            name=info.name,
            full_name=info.full_name,
            schema_name=info.schema_name,
            catalog_name=info.catalog_name,
            table_type=_get_enum_value(info.table_type),
            comment=info.comment,
            updated_at=info.updated_at or 0,
            deleted_at=info.deleted_at,
            columns=[
                ColumnNode(name=column.name, type_text=column.type_text, comment=column.comment)
                for column in (info.columns or [])
            ],
        )
