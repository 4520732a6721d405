"""
Access grant management: group provisioning, schema permissions and the
grant lifecycle orchestrator.
"""

from .groups import GroupProvisioner
from .orchestrator import AccessGrantOrchestrator, network_host
from .permissions import SchemaPermissions

__all__ = [
    "AccessGrantOrchestrator",
    "GroupProvisioner",
    "SchemaPermissions",
    "network_host",
]
