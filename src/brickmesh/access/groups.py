"""
Group provisioning for access management.

Groups are looked up by display name before they are created, and membership
is only ever added to, never rewritten. Revocation deletes the whole group.
"""

import logging
from typing import Iterable, List, Optional

from brickmesh.clients.workspace import WorkspaceCatalogClient
from brickmesh.errors import AlreadyExistsError
from brickmesh.locks import KeyedLock
from brickmesh.models import WorkspaceGroup

logger = logging.getLogger(__name__)


class GroupProvisioner:
    """
    Find-or-create, membership and deletion of workspace groups.

    The workspace does not enforce unique display names, so lookup-then-create
    could create duplicates under concurrency. Creation is serialized per
    display name within this process; across processes the race remains.

    Example:
        ```python
        provisioner = GroupProvisioner(workspace)
        group = provisioner.find_or_create("access-g1")
        provisioner.add_members(group, ["alice@company.com"])
        ```
    """

    def __init__(self, workspace: WorkspaceCatalogClient, locks: Optional[KeyedLock] = None):
        self.workspace = workspace
        self._locks = locks or KeyedLock()

    def find_by_name(self, display_name: str) -> Optional[WorkspaceGroup]:
        groups = self.workspace.list_groups_by_name(display_name)
        if not groups:
            return None
        if len(groups) > 1:
            logger.warning(f"Found {len(groups)} groups named {display_name}, using {groups[0].id}")
        return groups[0]

    def find_or_create(self, display_name: str) -> WorkspaceGroup:
        """Return the group with this display name, creating it if it doesn't exist."""
        with self._locks.acquire(display_name):
            existing = self.find_by_name(display_name)
            if existing:
                logger.info(f"Group {display_name} already exists")
                return existing

            logger.info(f"Creating group {display_name}")
            try:
                group = self.workspace.create_group(display_name)
            except AlreadyExistsError:
                # Created by another writer between our check and create
                existing = self.find_by_name(display_name)
                if existing is None:
                    raise
                return existing
            logger.info(f"Created group ID={group.id}, Name={group.display_name}")
            return group

    def add_members(self, group: WorkspaceGroup, members: Iterable[str]) -> List[str]:
        """
        Add members that are not in the group yet.

        Args:
            group: The group to extend
            members: Member values (user names, service principal ids, group ids)

        Returns:
            The members actually added (empty when all were present)
        """
        current = self.workspace.get_group(group.id)
        to_add: List[str] = []
        for member in dict.fromkeys(members):
            if not member:
                continue
            if current.has_member(member):
                logger.info(f"Member {member} already in group {group.display_name}")
                continue
            to_add.append(member)

        if not to_add:
            return []

        logger.info(f"Adding {len(to_add)} member(s) to group {group.display_name}: {to_add}")
        self.workspace.update_group_members(group.id, to_add)
        return to_add

    def delete_by_name(self, display_name: str) -> Optional[WorkspaceGroup]:
        """
        Delete the group with this display name.

        Returns:
            The deleted group, or None when no such group exists
        """
        with self._locks.acquire(display_name):
            existing = self.find_by_name(display_name)
            if existing is None:
                logger.info(f"Group {display_name} does not exist or was already deleted")
                return None
            logger.info(f"Deleting group {display_name} ({existing.id})")
            self.workspace.delete_group(existing.id)
            return existing
