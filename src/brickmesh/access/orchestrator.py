"""
Access grant orchestration.

Translates registry access grants into Unity Catalog permissions through one
workspace group per grant:

    activate(g1)    -> group access-g1 exists, consumer is a member,
                       SELECT on the output port schema granted to access-g1
    deactivate(g1)  -> group access-g1 deleted

The group is the only state. Its existence means the grant is applied; there
is no local bookkeeping to drift out of sync.
"""

import logging
import time
from typing import List, Optional
from urllib.parse import urlparse

from brickmesh.access.groups import GroupProvisioner
from brickmesh.access.permissions import SchemaPermissions
from brickmesh.clients.registry import RegistryClient
from brickmesh.clients.workspace import WorkspaceCatalogClient
from brickmesh.errors import ConfigurationError, NotFoundError, OutputPortError
from brickmesh.locks import KeyedLock
from brickmesh.models import (
    AccessGrant,
    ConsumerType,
    DataProduct,
    OperationType,
    OutputPort,
    WorkspaceGroup,
    access_group_name,
    data_product_principal_id,
    team_group_name,
)
from brickmesh.results import ExecutionResult

logger = logging.getLogger(__name__)


def network_host(url: Optional[str]) -> Optional[str]:
    """Extract the lower-cased host name from a URL; a bare host name is accepted as well."""
    if not url:
        return None
    value = url.strip()
    if "://" not in value:
        value = f"https://{value}"
    hostname = urlparse(value).hostname
    return hostname.lower() if hostname else None


class AccessGrantOrchestrator:
    """
    Applies and revokes access grants in the workspace.

    Both transitions are idempotent: activating twice adds nothing new and
    deactivating twice deletes at most once. Calls for the same grant id are
    serialized; different grants run concurrently.

    Example:
        ```python
        orchestrator = AccessGrantOrchestrator(workspace, registry)
        orchestrator.activate("g1")
        orchestrator.deactivate("g1")
        ```
    """

    def __init__(
        self,
        workspace: WorkspaceCatalogClient,
        registry: RegistryClient,
        data_product_principal_field: Optional[str] = None,
        groups: Optional[GroupProvisioner] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            workspace: Workspace catalog client
            registry: Registry client to read grants, data products and teams
            data_product_principal_field: Data product custom field holding the
                consumer's service principal id. When unset the synthetic id
                ``dataproduct-{id}`` is used.
            groups: Group provisioner (created from ``workspace`` if omitted)
        """
        self.workspace = workspace
        self.registry = registry
        self.data_product_principal_field = data_product_principal_field
        self.groups = groups or GroupProvisioner(workspace)
        self.permissions = SchemaPermissions(workspace)
        self._grant_locks = KeyedLock()

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def activate(self, grant_id: str) -> ExecutionResult:
        """
        Apply an access grant.

        Returns:
            ExecutionResult; SKIPPED when the grant is unknown, inactive or
            not handled by this workspace

        Raises:
            OutputPortError: If the output port server doesn't name a catalog and schema
            ConfigurationError: If the consumer can't be mapped to a principal
            ConnectorError: If any collaborator call fails
        """
        with self._grant_locks.acquire(grant_id):
            return self._activate(grant_id)

    def deactivate(self, grant_id: str) -> ExecutionResult:
        """
        Revoke an access grant by deleting its group.

        The workspace takes a few seconds until the permissions also disappear
        from the schema; that delay is not awaited.
        """
        with self._grant_locks.acquire(grant_id):
            start_time = time.time()
            group_name = access_group_name(grant_id)
            logger.info(f"Processing deactivation of access {grant_id}")
            deleted = self.groups.delete_by_name(group_name)
            if deleted is None:
                return ExecutionResult(
                    success=True,
                    operation=OperationType.NO_OP,
                    resource_type="Access",
                    resource_name=grant_id,
                    message=f"Group {group_name} does not exist",
                    duration_seconds=time.time() - start_time,
                )
            logger.info(f"Access group {group_name} deleted for access {grant_id}")
            return ExecutionResult(
                success=True,
                operation=OperationType.REVOKE,
                resource_type="Access",
                resource_name=grant_id,
                message=f"Deleted group {group_name}",
                duration_seconds=time.time() - start_time,
                changes={"group": group_name, "groupId": deleted.id},
            )

    def _activate(self, grant_id: str) -> ExecutionResult:
        start_time = time.time()
        logger.info(f"Processing activation of access {grant_id}")

        try:
            grant = self.registry.get_access(grant_id)
        except NotFoundError:
            logger.info(f"Access {grant_id} not found, skip granting permissions")
            return self._skipped(grant_id, "Access not found", start_time)

        output_port = self.get_applicable_output_port(grant)
        if output_port is None:
            return self._skipped(grant_id, "Not applicable for this workspace", start_time)

        # Events can be stale or reordered; trust the grant's current state
        if not grant.active:
            logger.info(f"Access {grant_id} is not active, skip granting permissions")
            return self._skipped(grant_id, "Access is not active", start_time)

        schema_full_name = self.resolve_schema_full_name(grant, output_port)
        consumer_type = self.resolve_consumer_type(grant)
        group_name = access_group_name(grant.id)

        # The access group must only exist once SELECT can be granted to it
        missing = self.permissions.check_schema(schema_full_name, group_name)
        if missing is not None:
            return ExecutionResult(
                success=False,
                operation=OperationType.GRANT,
                resource_type="Access",
                resource_name=grant_id,
                message=missing.message,
                duration_seconds=time.time() - start_time,
                changes={"schema": schema_full_name, "consumerType": consumer_type.value},
            )

        access_group = self.groups.find_or_create(group_name)
        added = self._add_consumer(access_group, grant, consumer_type)

        grant_result = self.permissions.grant_select(schema_full_name, access_group.display_name)
        return ExecutionResult(
            success=grant_result.success,
            operation=OperationType.GRANT,
            resource_type="Access",
            resource_name=grant_id,
            message=grant_result.message,
            duration_seconds=time.time() - start_time,
            changes={
                "group": access_group.display_name,
                "schema": schema_full_name,
                "consumerType": consumer_type.value,
                "membersAdded": added,
            },
        )

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def get_applicable_output_port(self, grant: AccessGrant) -> Optional[OutputPort]:
        """
        Return the grant's output port if this connector is responsible for it.

        Only Databricks output ports whose server host is this workspace's host
        are handled; anything else belongs to another connector.
        """
        data_product_id = grant.provider.data_product_id
        output_port_id = grant.provider.output_port_id
        try:
            data_product = self.registry.get_data_product(data_product_id)
        except NotFoundError:
            logger.info(f"Provider data product {data_product_id} of access {grant.id} not found")
            return None

        output_port = data_product.get_output_port(output_port_id)
        if output_port is None:
            logger.info(f"Output port {output_port_id} not found in data product {data_product_id}")
            return None
        if not output_port.is_databricks:
            logger.info(f"Output port type is not databricks for dataProductId {data_product_id}, outputPortId: {output_port_id}")
            return None

        server_host = output_port.server_value("host")
        if server_host is None:
            logger.warning(f"Server host is undefined for dataProductId {data_product_id}, outputPortId: {output_port_id}")
            return None

        workspace_host = self.workspace.get_workspace_host()
        if network_host(workspace_host) != network_host(server_host):
            logger.info(f"Hostnames do not match: workspace host={workspace_host} and outputport.server.host={server_host}")
            return None

        return output_port

    def resolve_schema_full_name(self, grant: AccessGrant, output_port: OutputPort) -> str:
        catalog = output_port.server_value("catalog")
        schema = output_port.server_value("schema")
        if catalog is None or schema is None:
            logger.error(f"Output port {output_port.id} of access {grant.id} does not define catalog and schema")
            raise OutputPortError(
                grant.provider.data_product_id,
                output_port.id,
                "Output port server must define both catalog and schema",
            )
        return f"{catalog}.{schema}"

    def resolve_consumer_type(self, grant: AccessGrant) -> ConsumerType:
        consumer_type = grant.consumer.consumer_type
        if consumer_type is None:
            logger.error(f"Access {grant.id} has no data product, team or user consumer")
            raise ConfigurationError(f"Unknown consumer type for access {grant.id}")
        return consumer_type

    def resolve_data_product_principal_id(self, data_product: DataProduct) -> str:
        field = self.data_product_principal_field
        if not field:
            return data_product_principal_id(data_product.id)

        value = data_product.custom.get(field)
        if value is None or str(value).strip() == "":
            logger.error(f"Data product {data_product.id} has no value for custom field {field}")
            raise ConfigurationError(
                f"Data product {data_product.id} does not define custom field '{field}' "
                f"required to resolve its service principal"
            )
        return str(value).strip()

    # -------------------------------------------------------------------------
    # Membership
    # -------------------------------------------------------------------------

    def _add_consumer(self, access_group: WorkspaceGroup, grant: AccessGrant, consumer_type: ConsumerType) -> List[str]:
        consumer = grant.consumer

        if consumer_type == ConsumerType.DATA_PRODUCT:
            logger.info(f"Adding consumer data product {consumer.data_product_id} to access group {access_group.display_name}")
            consumer_data_product = self.registry.get_data_product(consumer.data_product_id)
            principal_id = self.ensure_data_product_principal(consumer_data_product)
            added = self.groups.add_members(access_group, [principal_id])

            team_id = consumer.team_id or consumer_data_product.owner
            if not team_id:
                logger.warning(f"Consumer data product {consumer_data_product.id} has no team, only its service principal gets access")
                return added
            team_group = self.ensure_team_group(team_id)
            return added + self.groups.add_members(access_group, [team_group.id])

        if consumer_type == ConsumerType.TEAM:
            team_group = self.ensure_team_group(consumer.team_id)
            return self.groups.add_members(access_group, [team_group.id])

        return self.groups.add_members(access_group, [consumer.user_id])

    def ensure_data_product_principal(self, data_product: DataProduct) -> str:
        """Return the service principal id for a consumer data product, creating the principal if needed."""
        principal_id = self.resolve_data_product_principal_id(data_product)
        try:
            self.workspace.get_service_principal(principal_id)
            logger.info(f"Service principal {principal_id} already exists")
        except NotFoundError:
            logger.info(f"Creating service principal {principal_id} for data product {data_product.id}")
            self.workspace.create_service_principal(
                principal_id,
                display_name=f"Data Product {data_product.title or data_product.id}",
                external_id=data_product.id,
            )
        return principal_id

    def ensure_team_group(self, team_id: str) -> WorkspaceGroup:
        """Find or create the team group and add the team's members by email address."""
        team = self.registry.get_team(team_id)
        team_group = self.groups.find_or_create(team_group_name(team.id))
        self.groups.add_members(team_group, team.member_email_addresses)
        return team_group

    def _skipped(self, grant_id: str, message: str, start_time: float) -> ExecutionResult:
        return ExecutionResult(
            success=True,
            operation=OperationType.SKIPPED,
            resource_type="Access",
            resource_name=grant_id,
            message=message,
            duration_seconds=time.time() - start_time,
        )
