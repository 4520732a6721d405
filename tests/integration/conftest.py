"""
Integration test fixtures for brickmesh.

Provides a workspace client, the catalog client adapter, and cleanup of
groups created during a test. Tests are skipped when no workspace is reachable.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Generator, List

import pytest
from databricks.sdk import WorkspaceClient
from databricks.sdk.errors import NotFound, ResourceDoesNotExist

from brickmesh.clients import WorkspaceCatalogClient

logger = logging.getLogger(__name__)


def generate_test_prefix() -> str:
    """
    Generate a unique prefix for test resources.

    Format: brickmesh-test-{timestamp}-{short_uuid}
    """
    timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
    return f"brickmesh-test-{timestamp}-{uuid.uuid4().hex[:6]}"


@dataclass
class ResourceTracker:
    """Tracks group ids created by a test for cleanup."""

    groups: List[str] = field(default_factory=list)

    def add_group(self, group_id: str) -> None:
        if group_id not in self.groups:
            self.groups.append(group_id)


@pytest.fixture(scope="session")
def test_prefix() -> str:
    return generate_test_prefix()


@pytest.fixture(scope="session")
def workspace_client() -> WorkspaceClient:
    """
    Session-scoped WorkspaceClient using SDK auto-configuration.

    Respects DATABRICKS_HOST, DATABRICKS_CLIENT_ID/SECRET, or CLI profile.
    """
    try:
        client = WorkspaceClient()
        current_user = client.current_user.me()
        logger.info(f"Connected to Databricks as {current_user.user_name}")
    except Exception as e:
        pytest.skip(f"Could not connect to Databricks: {e}")
    return client


@pytest.fixture
def catalog_client(workspace_client: WorkspaceClient) -> WorkspaceCatalogClient:
    return WorkspaceCatalogClient(workspace_client)


@pytest.fixture
def resource_tracker() -> ResourceTracker:
    return ResourceTracker()


@pytest.fixture(autouse=True)
def cleanup_resources(
    workspace_client: WorkspaceClient,
    resource_tracker: ResourceTracker,
) -> Generator[None, None, None]:
    """Delete tracked groups after each test. Failed cleanups are logged but don't fail the test."""
    yield

    for group_id in reversed(resource_tracker.groups):
        try:
            workspace_client.groups.delete(group_id)
            logger.info(f"Cleaned up group: {group_id}")
        except (NotFound, ResourceDoesNotExist):
            pass  # Already gone
        except Exception as e:
            logger.warning(f"Failed to cleanup group {group_id}: {e}")
