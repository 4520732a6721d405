"""
Shared pytest fixtures for brickmesh tests.

Provides in-memory workspace and registry fakes, a state store, and the two
jobs wired against them.
"""

import logging
from typing import Generator

import pytest

from brickmesh.access import AccessGrantOrchestrator
from brickmesh.clients import InMemoryStateStore
from brickmesh.sync import AssetSynchronizer
from tests.fixtures import ASSETS_CONNECTOR_ID, FakeRegistryClient, FakeWorkspaceCatalogClient


@pytest.fixture
def workspace() -> FakeWorkspaceCatalogClient:
    """Empty in-memory workspace at the default test host."""
    return FakeWorkspaceCatalogClient()


@pytest.fixture
def registry() -> FakeRegistryClient:
    """Empty in-memory registry."""
    return FakeRegistryClient()


@pytest.fixture
def state_store() -> InMemoryStateStore:
    return InMemoryStateStore()


@pytest.fixture
def synchronizer(workspace, registry, state_store) -> AssetSynchronizer:
    """Asset synchronizer with default inclusion predicates."""
    return AssetSynchronizer(workspace, registry, state_store, ASSETS_CONNECTOR_ID)


@pytest.fixture
def orchestrator(workspace, registry) -> AccessGrantOrchestrator:
    """Access orchestrator using synthetic data product principal ids."""
    return AccessGrantOrchestrator(workspace, registry)


@pytest.fixture(autouse=True)
def brickmesh_logging() -> Generator[None, None, None]:
    """Keep library logging at INFO so caplog sees skip reasons."""
    logger = logging.getLogger("brickmesh")
    original = logger.level
    logger.setLevel(logging.INFO)
    yield
    logger.setLevel(original)
