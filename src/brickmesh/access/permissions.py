"""
Schema-level privilege grants.
"""

import logging
from typing import Optional

from brickmesh.clients.workspace import WorkspaceCatalogClient
from brickmesh.errors import NotFoundError
from brickmesh.models import OperationType, Privilege
from brickmesh.results import ExecutionResult

logger = logging.getLogger(__name__)


class SchemaPermissions:
    """Grants read access on a Unity Catalog schema to a principal."""

    def __init__(self, workspace: WorkspaceCatalogClient):
        self.workspace = workspace

    def check_schema(self, schema_full_name: str, principal: str) -> Optional[ExecutionResult]:
        """
        Verify a schema exists before granting on it.

        Returns None when it exists, otherwise a failed GRANT result. A missing
        schema usually means the output port was declared before the schema
        was provisioned, so it is reported rather than raised.
        """
        try:
            self.workspace.get_schema(schema_full_name)
        except NotFoundError:
            logger.error(f"Schema {schema_full_name} not found in Databricks, cannot grant to {principal}")
            return ExecutionResult(
                success=False,
                operation=OperationType.GRANT,
                resource_type="Schema",
                resource_name=f"SELECT on {schema_full_name} to {principal}",
                message=f"Schema {schema_full_name} not found",
            )
        return None

    def grant_select(self, schema_full_name: str, principal: str) -> ExecutionResult:
        """Grant SELECT on a schema, after checking that it exists."""
        description = f"SELECT on {schema_full_name} to {principal}"
        missing = self.check_schema(schema_full_name, principal)
        if missing is not None:
            return missing

        logger.info(f"Granting SELECT permission to principal {principal} on schema {schema_full_name}")
        self.workspace.update_schema_grants(schema_full_name, principal, [Privilege.SELECT])
        return ExecutionResult(
            success=True,
            operation=OperationType.GRANT,
            resource_type="Schema",
            resource_name=description,
            message="Granted successfully",
        )
