"""
Incremental asset synchronization from Unity Catalog into the registry.

One pass walks catalogs, schemas and tables, turns every node updated since
the last watermark into an Asset, and upserts it into the registry keyed by
its stable id. The watermark (the highest table ``updated_at`` seen) is saved
only after the whole pass succeeded, so an interrupted pass is simply redone
from the same point; the idempotent upsert absorbs the duplicates.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

from brickmesh.clients.registry import RegistryClient
from brickmesh.clients.state import StateStore
from brickmesh.clients.workspace import WorkspaceCatalogClient
from brickmesh.errors import NotFoundError
from brickmesh.models import (
    Asset,
    AssetColumn,
    AssetRelationship,
    AssetType,
    CatalogNode,
    OperationType,
    SchemaNode,
    TableNode,
)
from brickmesh.results import ExecutionResult, SyncResult

logger = logging.getLogger(__name__)

WATERMARK_KEY = "lastUpdatedAt"
PARENT_RELATIONSHIP = "parent"


def include_managed_catalogs(catalog: CatalogNode) -> bool:
    """Default catalog predicate: only catalogs managed by Unity Catalog."""
    return catalog.is_managed


def exclude_information_schema(schema: SchemaNode) -> bool:
    """Default schema predicate: everything but the system ``information_schema``."""
    return not schema.is_system_schema


def include_all_tables(table: TableNode) -> bool:
    """Default table predicate."""
    return True


def parse_watermark(value: Any) -> int:
    """
    Read a stored watermark.

    State stores round-trip through JSON, so the value may come back as an
    int or a numeric string. Anything unreadable counts as 0, which means the
    next pass reprocesses everything.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        logger.warning(f"Ignoring boolean watermark {value!r}")
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            logger.warning(f"Failed to parse {WATERMARK_KEY} from state: {value!r}")
            return 0
    logger.warning(f"Unsupported {WATERMARK_KEY} type in state: {type(value).__name__}")
    return 0


def _properties(**values: Optional[Any]) -> Dict[str, str]:
    """Build an ordered string property map, dropping absent values."""
    return {key: str(value) for key, value in values.items() if value is not None}


class AssetSynchronizer:
    """
    Mirrors workspace metadata into the registry asset catalog.

    One call to ``run()`` is one complete pass. Passes on the same instance
    never overlap; a call made while a pass is running returns a skipped
    result immediately.

    Inclusion can be customized by passing predicates or by overriding
    ``include_catalog``, ``include_schema`` and ``include_table``.

    Example:
        ```python
        synchronizer = AssetSynchronizer(workspace, registry, state_store, "databricks-assets")
        result = synchronizer.run()
        print(result.get_summary())
        ```
    """

    def __init__(
        self,
        workspace: WorkspaceCatalogClient,
        registry: RegistryClient,
        state_store: StateStore,
        connector_id: str,
        include_catalog_assets: bool = False,
        catalog_filter: Callable[[CatalogNode], bool] = include_managed_catalogs,
        schema_filter: Callable[[SchemaNode], bool] = exclude_information_schema,
        table_filter: Callable[[TableNode], bool] = include_all_tables,
    ):
        """
        Initialize the synchronizer.

        Args:
            workspace: Workspace catalog client to read the namespace from
            registry: Registry client to write assets to
            state_store: Store holding the watermark
            connector_id: Key of this connector's state in the store
            include_catalog_assets: Also emit one asset per catalog
            catalog_filter: Predicate selecting catalogs to walk
            schema_filter: Predicate selecting schemas to walk
            table_filter: Predicate selecting tables to synchronize
        """
        self.workspace = workspace
        self.registry = registry
        self.state_store = state_store
        self.connector_id = connector_id
        self.include_catalog_assets = include_catalog_assets
        self._catalog_filter = catalog_filter
        self._schema_filter = schema_filter
        self._table_filter = table_filter
        self._run_lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Inclusion
    # -------------------------------------------------------------------------

    def include_catalog(self, catalog: CatalogNode) -> bool:
        return self._catalog_filter(catalog)

    def include_schema(self, schema: SchemaNode) -> bool:
        return self._schema_filter(schema)

    def include_table(self, table: TableNode) -> bool:
        return self._table_filter(table)

    # -------------------------------------------------------------------------
    # Watermark
    # -------------------------------------------------------------------------

    def get_watermark(self) -> int:
        state = self.state_store.get_state(self.connector_id) or {}
        return parse_watermark(state.get(WATERMARK_KEY))

    def save_watermark(self, watermark: int) -> None:
        self.state_store.save_state(self.connector_id, {WATERMARK_KEY: watermark})

    # -------------------------------------------------------------------------
    # Pass
    # -------------------------------------------------------------------------

    def run(self) -> SyncResult:
        """
        Execute one synchronization pass.

        Returns:
            SyncResult with the watermark movement and per-asset outcomes

        Raises:
            ConnectorError: If any workspace or registry call fails; the
                watermark is left unchanged
        """
        if not self._run_lock.acquire(blocking=False):
            logger.warning(f"Synchronization {self.connector_id} already in progress, skipping")
            return SyncResult(watermark_before=self.get_watermark(), skipped=True)
        try:
            return self._synchronize()
        finally:
            self._run_lock.release()

    def _synchronize(self) -> SyncResult:
        start_time = time.time()
        watermark = self.get_watermark()
        result = SyncResult(watermark_before=watermark)
        max_updated_at = watermark
        host = self.workspace.get_workspace_host()
        logger.info(f"Starting asset synchronization {self.connector_id} from watermark {watermark}")

        for catalog in self.workspace.list_catalogs():
            if not self.include_catalog(catalog):
                logger.debug(f"Skipping catalog {catalog.full_name} (type {catalog.catalog_type})")
                continue

            logger.info(f"Synchronizing catalog {catalog.full_name}")
            if self.include_catalog_assets and catalog.updated_at > watermark:
                result.add(self._save_asset(self.catalog_to_asset(catalog, host)))

            schemas_count = 0
            for schema in self.workspace.list_schemas(catalog.name):
                if not self.include_schema(schema):
                    logger.debug(f"Skipping schema {schema.full_name}")
                    continue

                if schema.updated_at > watermark:
                    result.add(self._save_asset(self.schema_to_asset(schema, catalog, host)))
                else:
                    logger.debug(f"Schema {schema.full_name} already synchronized")

                tables_count = 0
                for table in self.workspace.list_tables(schema.catalog_name, schema.name):
                    if not self.include_table(table):
                        logger.debug(f"Skipping table {table.full_name}")
                        continue
                    max_updated_at = max(max_updated_at, table.updated_at)
                    tables_count += 1

                    if table.updated_at <= watermark:
                        logger.debug(f"Table {table.full_name} already synchronized")
                        continue
                    if table.is_deleted:
                        logger.info(f"Table {table.full_name} was deleted")
                        result.add(self._delete_asset(table.id, table.full_name))
                        continue
                    result.add(self._save_asset(self.table_to_asset(table, schema, host)))

                logger.info(f"Synchronized {tables_count} tables in schema {schema.full_name}")
                schemas_count += 1
            logger.info(f"Synchronized {schemas_count} schemas in catalog {catalog.full_name}")

        self.save_watermark(max_updated_at)
        result.watermark_after = max_updated_at
        result.duration_seconds = time.time() - start_time
        logger.info(f"Finished asset synchronization {self.connector_id}, watermark {watermark} -> {max_updated_at}")
        return result

    # -------------------------------------------------------------------------
    # Mapping
    # -------------------------------------------------------------------------

    @staticmethod
    def catalog_asset_id(catalog: CatalogNode) -> str:
        # Unity Catalog has no stable catalog id; a renamed catalog becomes a new asset
        return catalog.id or catalog.name

    def catalog_to_asset(self, catalog: CatalogNode, host: str) -> Asset:
        return Asset(
            id=self.catalog_asset_id(catalog),
            name=catalog.name,
            qualified_name=catalog.full_name,
            type=AssetType.CATALOG.value,
            description=catalog.comment,
            properties=_properties(
                host=host,
                catalogType=catalog.catalog_type,
                updatedAt=catalog.updated_at,
            ),
        )

    def schema_to_asset(self, schema: SchemaNode, catalog: CatalogNode, host: str) -> Asset:
        return Asset(
            id=schema.id,
            name=schema.full_name,
            qualified_name=schema.full_name,
            type=AssetType.SCHEMA.value,
            description=schema.comment,
            properties=_properties(
                host=host,
                catalog=schema.catalog_name,
                catalogType=schema.catalog_type,
                schema=schema.name,
                updatedAt=schema.updated_at,
            ),
            relationships=[
                AssetRelationship(relationship_type=PARENT_RELATIONSHIP, asset_id=self.catalog_asset_id(catalog)),
            ],
        )

    def table_to_asset(self, table: TableNode, schema: SchemaNode, host: str) -> Asset:
        return Asset(
            id=table.id,
            name=table.name,
            qualified_name=table.full_name,
            type=AssetType.TABLE.value,
            description=table.comment,
            properties=_properties(
                host=host,
                catalog=table.catalog_name,
                schema=table.schema_name,
                table=table.name,
                tableType=table.table_type,
                updatedAt=table.updated_at,
            ),
            columns=[
                AssetColumn(name=column.name, type=column.type_text, description=column.comment)
                for column in table.columns
            ],
            relationships=[
                AssetRelationship(relationship_type=PARENT_RELATIONSHIP, asset_id=schema.id),
            ],
        )

    # -------------------------------------------------------------------------
    # Registry writes
    # -------------------------------------------------------------------------

    def _save_asset(self, asset: Asset) -> ExecutionResult:
        """Upsert an asset unless the registry already holds an identical copy."""
        try:
            existing: Optional[Asset] = self.registry.get_asset(asset.id)
        except NotFoundError:
            logger.debug(f"Asset {asset.id} does not exist, so continue")
            existing = None

        if existing == asset:
            logger.info(f"Asset {asset.id} already exists and unchanged")
            return ExecutionResult(
                success=True,
                operation=OperationType.NO_OP,
                resource_type="Asset",
                resource_name=asset.qualified_name,
                message="Unchanged",
            )

        logger.info(f"Saving asset {asset.id} ({asset.qualified_name})")
        self.registry.add_asset(asset.id, asset)
        return ExecutionResult(
            success=True,
            operation=OperationType.CREATE if existing is None else OperationType.UPDATE,
            resource_type="Asset",
            resource_name=asset.qualified_name,
            message="Saved",
            changes={"id": asset.id},
        )

    def _delete_asset(self, asset_id: str, qualified_name: str) -> ExecutionResult:
        logger.info(f"Deleting asset {asset_id} ({qualified_name})")
        try:
            self.registry.delete_asset(asset_id)
        except NotFoundError:
            logger.info(f"Asset {asset_id} was already deleted")
            return ExecutionResult(
                success=True,
                operation=OperationType.NO_OP,
                resource_type="Asset",
                resource_name=qualified_name,
                message="Already deleted",
            )
        return ExecutionResult(
            success=True,
            operation=OperationType.DELETE,
            resource_type="Asset",
            resource_name=qualified_name,
            message="Deleted",
            changes={"id": asset_id},
        )
