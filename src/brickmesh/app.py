"""
Connector assembly.

Builds the clients and the two jobs from ``ConnectorSettings``. Either job can
be disabled independently; a connector with both disabled does nothing.
"""

import logging
from typing import Optional

from databricks.sdk import AccountClient, WorkspaceClient

from brickmesh.access.orchestrator import AccessGrantOrchestrator
from brickmesh.clients.registry import RegistryClient
from brickmesh.clients.state import RegistryStateStore, StateStore
from brickmesh.clients.workspace import WorkspaceCatalogClient
from brickmesh.config import AccountSettings, ConnectorSettings, WorkspaceSettings
from brickmesh.events import AccessEventHandler, EventListener
from brickmesh.sync.assets import AssetSynchronizer
from brickmesh.sync.scheduler import FixedDelayScheduler

logger = logging.getLogger(__name__)


def _normalize_host(host: Optional[str]) -> Optional[str]:
    if host and not host.startswith("https://") and "://" not in host:
        return f"https://{host}"
    return host


def create_workspace_client(settings: WorkspaceSettings) -> WorkspaceClient:
    """
    Create a workspace client.

    Values left unset fall back to the SDK's unified authentication
    (``DATABRICKS_*`` environment variables or ``~/.databrickscfg``).
    """
    return WorkspaceClient(
        host=_normalize_host(settings.host),
        client_id=settings.client_id,
        client_secret=settings.client_secret,
    )


def create_account_client(settings: AccountSettings) -> AccountClient:
    return AccountClient(
        host=_normalize_host(settings.host),
        account_id=settings.account_id,
        client_id=settings.client_id,
        client_secret=settings.client_secret,
    )


class Connector:
    """The configured jobs plus their schedulers."""

    def __init__(
        self,
        workspace: WorkspaceCatalogClient,
        registry: RegistryClient,
        synchronizer: Optional[AssetSynchronizer] = None,
        orchestrator: Optional[AccessGrantOrchestrator] = None,
        listener: Optional[EventListener] = None,
        sync_scheduler: Optional[FixedDelayScheduler] = None,
    ):
        self.workspace = workspace
        self.registry = registry
        self.synchronizer = synchronizer
        self.orchestrator = orchestrator
        self.listener = listener
        self.sync_scheduler = sync_scheduler

    def start(self) -> None:
        if self.sync_scheduler is not None:
            self.sync_scheduler.start()
        else:
            logger.info("Asset synchronization is disabled")
        if self.listener is not None:
            self.listener.start()
        else:
            logger.info("Access management is disabled")

    def stop(self, timeout: Optional[float] = None) -> None:
        if self.sync_scheduler is not None:
            self.sync_scheduler.stop(timeout)
        if self.listener is not None:
            self.listener.stop(timeout)

    def close(self) -> None:
        """Release the registry connection. Call once, after stop()."""
        self.registry.close()


def build_connector(
    settings: ConnectorSettings,
    workspace_client: Optional[WorkspaceClient] = None,
    account_client: Optional[AccountClient] = None,
    registry_client: Optional[RegistryClient] = None,
    state_store: Optional[StateStore] = None,
) -> Connector:
    """
    Wire up a connector from settings.

    Clients can be passed in to override the ones built from settings.
    """
    if workspace_client is None:
        workspace_client = create_workspace_client(settings.workspace)
    if account_client is None and settings.account.enabled:
        logger.info(f"Managing groups through account {settings.account.account_id}")
        account_client = create_account_client(settings.account)

    workspace = WorkspaceCatalogClient(
        workspace_client,
        account_client=account_client,
        workspace_host=_normalize_host(settings.workspace.host),
    )
    registry = registry_client or RegistryClient(
        settings.registry.host,
        api_key=settings.registry.api_key,
        timeout_seconds=settings.registry.timeout_seconds,
    )
    state_store = state_store or RegistryStateStore(registry)

    synchronizer = None
    sync_scheduler = None
    if settings.assets.enabled:
        synchronizer = AssetSynchronizer(
            workspace,
            registry,
            state_store,
            settings.assets.connector_id,
            include_catalog_assets=settings.assets.include_catalog_assets,
        )
        sync_scheduler = FixedDelayScheduler(
            synchronizer.run,
            settings.assets.poll_interval,
            name=f"assets-{settings.assets.connector_id}",
        )

    orchestrator = None
    listener = None
    access_settings = settings.access_management
    if access_settings.enabled:
        orchestrator = AccessGrantOrchestrator(
            workspace,
            registry,
            data_product_principal_field=access_settings.mapping.data_product.custom_field,
        )
        handler = AccessEventHandler(orchestrator.activate, orchestrator.deactivate)
        listener = EventListener(
            registry,
            state_store,
            access_settings.connector_id,
            handler,
            max_workers=access_settings.max_workers,
            poll_interval=access_settings.poll_interval,
        )

    return Connector(
        workspace,
        registry,
        synchronizer=synchronizer,
        orchestrator=orchestrator,
        listener=listener,
        sync_scheduler=sync_scheduler,
    )
