"""Test fixtures for brickmesh."""

from .fakes import FakeRegistryClient, FakeWorkspaceCatalogClient
from .model_factories import (
    ACCESS_CONNECTOR_ID,
    ASSETS_CONNECTOR_ID,
    WORKSPACE_HOST,
    make_access,
    make_catalog,
    make_data_product,
    make_event,
    make_output_port,
    make_schema,
    make_table,
    make_team,
)

__all__ = [
    "ACCESS_CONNECTOR_ID",
    "ASSETS_CONNECTOR_ID",
    "FakeRegistryClient",
    "FakeWorkspaceCatalogClient",
    "WORKSPACE_HOST",
    "make_access",
    "make_catalog",
    "make_data_product",
    "make_event",
    "make_output_port",
    "make_schema",
    "make_table",
    "make_team",
]
