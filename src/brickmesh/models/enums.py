"""
Enum definitions for the connector.

This module contains all enumeration types and fixed names used throughout
asset synchronization and access management.
"""

from enum import Enum

# Catalog type reported by Unity Catalog for catalogs it manages itself
MANAGED_CATALOG = "MANAGED_CATALOG"

# System schema present in every catalog, never synchronized
INFORMATION_SCHEMA = "information_schema"

# Output port type handled by this connector (compared case-insensitively)
DATABRICKS_OUTPUT_PORT_TYPE = "databricks"


class SecurableType(str, Enum):
    """Unity Catalog object types this connector grants privileges on."""
    SCHEMA = "SCHEMA"


class Privilege(str, Enum):
    """
    Unity Catalog privileges applied by access management.

    Privileges are ALWAYS ADDITIVE - repeated grants are idempotent.
    """
    SELECT = "SELECT"


class AssetType(str, Enum):
    """Asset type labels written to the registry."""
    CATALOG = "unity_catalog"
    SCHEMA = "unity_schema"
    TABLE = "unity_table"


class ConsumerType(str, Enum):
    """Kind of consumer an access grant is issued to, in resolution precedence order."""
    DATA_PRODUCT = "DATA_PRODUCT"
    TEAM = "TEAM"
    USER = "USER"


class OperationType(str, Enum):
    """Types of operations that can be performed."""
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    GRANT = "GRANT"
    REVOKE = "REVOKE"
    NO_OP = "NO_OP"
    SKIPPED = "SKIPPED"


class RegistryEventType(str, Enum):
    """Registry lifecycle events consumed by access management."""
    ACCESS_ACTIVATED = "AccessActivatedEvent"
    ACCESS_DEACTIVATED = "AccessDeactivatedEvent"

    @classmethod
    def from_wire(cls, value: str):
        """
        Resolve a wire event type such as ``com.datamesh-manager.events.AccessActivatedEvent``.

        Returns None for event types this connector does not handle.
        """
        if not value:
            return None
        short_name = value.rsplit(".", 1)[-1]
        for member in cls:
            if member.value == short_name:
                return member
        return None
