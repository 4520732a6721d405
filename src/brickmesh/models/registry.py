"""
Registry resource models.

Mirrors the subset of the Data Mesh Manager API this connector reads and
writes: assets (written), access grants, data products and teams (read-only),
and lifecycle events.

The registry nests descriptive fields under an ``info`` object; the models
here keep them flat and translate at the wire boundary.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import Field, model_validator

from .base import BaseConnectorModel
from .enums import DATABRICKS_OUTPUT_PORT_TYPE, ConsumerType, RegistryEventType

logger = logging.getLogger(__name__)


def _lift_info(data: Any, *fields: str) -> Any:
    """Copy selected keys from a nested ``info`` object to the top level."""
    if not isinstance(data, dict) or not isinstance(data.get("info"), dict):
        return data
    lifted = dict(data)
    for key in fields:
        if key in data["info"] and key not in lifted:
            lifted[key] = data["info"][key]
    return lifted


# =============================================================================
# ASSETS
# =============================================================================

class AssetColumn(BaseConnectorModel):
    """A column of a table asset."""

    name: str
    type: Optional[str] = None
    description: Optional[str] = None


class AssetRelationship(BaseConnectorModel):
    """A typed link from one asset to another (e.g. ``parent``)."""

    relationship_type: str
    asset_id: str


class Asset(BaseConnectorModel):
    """
    Canonical asset record pushed to the registry.

    ``id`` is stable across passes and is the key for idempotent upserts. Two
    assets compare equal when every field matches, which is what the
    synchronizer uses to skip unchanged writes.
    """

    id: str
    name: str
    qualified_name: str
    type: str
    status: str = "active"
    source: str = "unity"
    description: Optional[str] = None
    properties: Dict[str, str] = Field(default_factory=dict)
    columns: List[AssetColumn] = Field(default_factory=list)
    relationships: List[AssetRelationship] = Field(default_factory=list)

    def to_payload(self) -> dict:
        info = {
            "name": self.name,
            "source": self.source,
            "qualifiedName": self.qualified_name,
            "type": self.type,
            "status": self.status,
        }
        if self.description is not None:
            info["description"] = self.description
        return {
            "id": self.id,
            "info": info,
            "properties": dict(self.properties),
            "columns": [column.to_payload() for column in self.columns],
            "relationships": [relationship.to_payload() for relationship in self.relationships],
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Asset":
        info = payload.get("info") or {}
        return cls.model_validate({
            "id": payload["id"],
            "name": info.get("name"),
            "qualifiedName": info.get("qualifiedName"),
            "type": info.get("type"),
            "status": info.get("status") or "active",
            "source": info.get("source") or "unity",
            "description": info.get("description"),
            "properties": {k: str(v) for k, v in (payload.get("properties") or {}).items()},
            "columns": payload.get("columns") or [],
            "relationships": payload.get("relationships") or [],
        })


# =============================================================================
# ACCESS GRANTS
# =============================================================================

class AccessProvider(BaseConnectorModel):
    """The data product output port an access grant exposes."""

    data_product_id: str
    output_port_id: str


class AccessConsumer(BaseConnectorModel):
    """
    Who receives access. The registry sets exactly one of the three ids, but
    data product consumers usually carry their owning team as well.
    """

    data_product_id: Optional[str] = None
    team_id: Optional[str] = None
    user_id: Optional[str] = None

    @property
    def consumer_type(self) -> Optional[ConsumerType]:
        """Resolve the consumer kind by precedence: data product, then team, then user."""
        if self.data_product_id:
            return ConsumerType.DATA_PRODUCT
        if self.team_id:
            return ConsumerType.TEAM
        if self.user_id:
            return ConsumerType.USER
        return None


class AccessGrant(BaseConnectorModel):
    """An access grant owned by the registry; read-only for this connector."""

    id: str
    provider: AccessProvider
    consumer: AccessConsumer
    active: bool = False

    @model_validator(mode="before")
    @classmethod
    def _flatten_info(cls, data: Any) -> Any:
        return _lift_info(data, "active")


# =============================================================================
# DATA PRODUCTS AND TEAMS
# =============================================================================

class OutputPort(BaseConnectorModel):
    """Declaration of where a data product's data physically resides."""

    id: str
    name: Optional[str] = None
    type: Optional[str] = None
    server: Optional[Dict[str, Any]] = None

    @property
    def is_databricks(self) -> bool:
        return (self.type or "").lower() == DATABRICKS_OUTPUT_PORT_TYPE

    def server_value(self, key: str) -> Optional[str]:
        """Return a server descriptor field as a string, or None when absent or blank."""
        if not self.server:
            return None
        value = self.server.get(key)
        if value is None or str(value).strip() == "":
            return None
        return str(value).strip()


class DataProduct(BaseConnectorModel):
    """A registry data product."""

    id: str
    title: Optional[str] = None
    owner: Optional[str] = Field(default=None, description="Id of the owning team")
    custom: Dict[str, Any] = Field(default_factory=dict)
    output_ports: List[OutputPort] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _flatten_info(cls, data: Any) -> Any:
        data = _lift_info(data, "title", "owner")
        if isinstance(data, dict):
            # The registry sends null for empty collections
            data = {k: v for k, v in data.items() if not (k in ("custom", "outputPorts") and v is None)}
        return data

    def get_output_port(self, output_port_id: str) -> Optional[OutputPort]:
        for output_port in self.output_ports:
            if output_port.id == output_port_id:
                return output_port
        return None


class TeamMember(BaseConnectorModel):
    email_address: Optional[str] = None
    role: Optional[str] = None


class Team(BaseConnectorModel):
    """A registry team."""

    id: str
    name: Optional[str] = None
    members: List[TeamMember] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _null_members(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("members") is None:
            data = {k: v for k, v in data.items() if k != "members"}
        return data

    @property
    def member_email_addresses(self) -> List[str]:
        return [member.email_address for member in self.members if member.email_address]


# =============================================================================
# EVENTS
# =============================================================================

class RegistryEvent(BaseConnectorModel):
    """
    A lifecycle event delivered by the registry (CloudEvents envelope).

    ``data.id`` holds the id of the resource the event is about.
    """

    id: str
    type: str
    data: Dict[str, Any] = Field(default_factory=dict)

    @property
    def event_type(self) -> Optional[RegistryEventType]:
        return RegistryEventType.from_wire(self.type)

    @property
    def resource_id(self) -> Optional[str]:
        value = self.data.get("id")
        return str(value) if value is not None else None
