"""
Unit tests for configuration loading.
"""

from datetime import timedelta

import pytest

from brickmesh.config import DEFAULT_REGISTRY_HOST, ConnectorSettings, load_settings
from brickmesh.errors import ConfigurationError

FULL_CONFIG = """
workspace:
  host: https://dbc-1234.cloud.databricks.com
  client_id: connector-sp
account:
  account_id: 0d26daa6-5e44-4c97-a497-ef015f91254a
registry:
  host: https://dmm.company.com
assets:
  enabled: true
  poll_interval: PT5M
  include_catalog_assets: true
access_management:
  enabled: true
  connector_id: acme-access
  max_workers: 8
  mapping:
    data_product:
      custom_field: databricksServicePrincipal
"""


class TestLoadSettings:
    """Tests for load_settings."""

    def test_full_file(self, tmp_path) -> None:
        path = tmp_path / "connector.yaml"
        path.write_text(FULL_CONFIG)

        settings = load_settings(path, environ={})

        assert settings.workspace.host == "https://dbc-1234.cloud.databricks.com"
        assert settings.account.enabled is True
        assert settings.registry.host == "https://dmm.company.com"
        assert settings.assets.enabled is True
        assert settings.assets.poll_interval == timedelta(minutes=5)
        assert settings.assets.include_catalog_assets is True
        assert settings.access_management.connector_id == "acme-access"
        assert settings.access_management.max_workers == 8
        assert settings.access_management.mapping.data_product.custom_field == "databricksServicePrincipal"

    def test_defaults(self) -> None:
        """Without file or environment every job is disabled."""
        settings = load_settings(environ={})

        assert settings == ConnectorSettings()
        assert settings.registry.host == DEFAULT_REGISTRY_HOST
        assert settings.assets.enabled is False
        assert settings.assets.connector_id == "databricks-assets"
        assert settings.assets.poll_interval == timedelta(minutes=60)
        assert settings.assets.include_catalog_assets is False
        assert settings.access_management.connector_id == "databricks-access-management"
        assert settings.access_management.mapping.data_product.custom_field is None
        assert settings.account.enabled is False

    def test_environment_overrides_file(self, tmp_path) -> None:
        path = tmp_path / "connector.yaml"
        path.write_text(FULL_CONFIG)

        settings = load_settings(path, environ={
            "BRICKMESH_WORKSPACE_HOST": "https://dbc-9999.cloud.databricks.com",
            "BRICKMESH_REGISTRY_API_KEY": "secret",
            "BRICKMESH_ASSETS_ENABLED": "false",
        })

        assert settings.workspace.host == "https://dbc-9999.cloud.databricks.com"
        assert settings.workspace.client_id == "connector-sp"
        assert settings.registry.api_key == "secret"
        assert settings.assets.enabled is False

    def test_empty_environment_values_ignored(self) -> None:
        settings = load_settings(environ={"BRICKMESH_WORKSPACE_HOST": ""})
        assert settings.workspace.host is None

    def test_empty_file(self, tmp_path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_settings(path, environ={}) == ConnectorSettings()

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "missing.yaml", environ={})

    def test_invalid_yaml(self, tmp_path) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text("workspace: [unclosed")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_settings(path, environ={})

    def test_non_mapping(self, tmp_path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError, match="must contain a mapping"):
            load_settings(path, environ={})

    def test_invalid_values(self, tmp_path) -> None:
        path = tmp_path / "invalid.yaml"
        path.write_text("access_management:\n  max_workers: 0\n")

        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            load_settings(path, environ={})
