"""
Workspace principal models for groups and service principals.

Access management provisions two kinds of groups:

- an access group ``access-{grantId}``, created 1:1 per access grant; its
  existence is the only record that the grant is applied
- a team group ``team-{teamId}``, derived from registry team membership and
  shared by every grant issued to that team
"""

from __future__ import annotations

import logging
from typing import List, Optional

from databricks.sdk.service.iam import Group as SdkGroup
from databricks.sdk.service.iam import ServicePrincipal as SdkServicePrincipal
from pydantic import Field

from .base import BaseConnectorModel

logger = logging.getLogger(__name__)

ACCESS_GROUP_PREFIX = "access-"
TEAM_GROUP_PREFIX = "team-"
DATA_PRODUCT_PRINCIPAL_PREFIX = "dataproduct-"


def access_group_name(grant_id: str) -> str:
    """Display name of the group backing an access grant."""
    return f"{ACCESS_GROUP_PREFIX}{grant_id}"


def team_group_name(team_id: str) -> str:
    """Display name of the group mirroring a registry team."""
    return f"{TEAM_GROUP_PREFIX}{team_id}"


def data_product_principal_id(data_product_id: str) -> str:
    """Synthetic service principal id for a consumer data product."""
    return f"{DATA_PRODUCT_PRINCIPAL_PREFIX}{data_product_id}"


class WorkspaceGroup(BaseConnectorModel):
    """
    A workspace (or account) group as seen by the connector.

    ``members`` holds member values: user names, service principal ids or
    nested group ids.
    """

    id: str
    display_name: str
    external_id: Optional[str] = None
    members: List[str] = Field(default_factory=list)

    def has_member(self, value: str) -> bool:
        return value in self.members

    @classmethod
    def from_sdk(cls, group: SdkGroup) -> "WorkspaceGroup":
        if not group.id:
            raise ValueError(f"Group {group.display_name} has no ID")
        return cls(
            id=group.id,
            display_name=group.display_name or "",
            external_id=group.external_id,
            members=[m.value for m in (group.members or []) if m.value],
        )


class WorkspaceServicePrincipal(BaseConnectorModel):
    """A workspace service principal representing a consumer data product."""

    id: str
    display_name: Optional[str] = None
    external_id: Optional[str] = None
    active: bool = True

    @classmethod
    def from_sdk(cls, principal: SdkServicePrincipal) -> "WorkspaceServicePrincipal":
        if not principal.id:
            raise ValueError(f"Service principal {principal.display_name} has no ID")
        return cls(
            id=principal.id,
            display_name=principal.display_name,
            external_id=principal.external_id,
            active=principal.active if principal.active is not None else True,
        )
