"""
Connector configuration.

Settings are read from a YAML file and can be overridden by environment
variables, so secrets never need to live in the file:

    workspace:
      host: https://dbc-1234.cloud.databricks.com
      client_id: ...
    registry:
      host: https://api.datamesh-manager.com
    assets:
      enabled: true
      connector_id: databricks-assets
      poll_interval: PT60M
    access_management:
      enabled: true
      connector_id: databricks-access-management
      mapping:
        data_product:
          custom_field: databricksServicePrincipal
"""

from __future__ import annotations

import logging
import os
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml
from pydantic import BaseModel, Field, ValidationError

from brickmesh.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_ACCOUNT_HOST = "https://accounts.cloud.databricks.com"
DEFAULT_REGISTRY_HOST = "https://api.datamesh-manager.com"

# Environment variable -> (section, key)
ENVIRONMENT_OVERRIDES: Dict[str, Tuple[str, str]] = {
    "BRICKMESH_WORKSPACE_HOST": ("workspace", "host"),
    "BRICKMESH_WORKSPACE_CLIENT_ID": ("workspace", "client_id"),
    "BRICKMESH_WORKSPACE_CLIENT_SECRET": ("workspace", "client_secret"),
    "BRICKMESH_ACCOUNT_HOST": ("account", "host"),
    "BRICKMESH_ACCOUNT_ID": ("account", "account_id"),
    "BRICKMESH_ACCOUNT_CLIENT_ID": ("account", "client_id"),
    "BRICKMESH_ACCOUNT_CLIENT_SECRET": ("account", "client_secret"),
    "BRICKMESH_REGISTRY_HOST": ("registry", "host"),
    "BRICKMESH_REGISTRY_API_KEY": ("registry", "api_key"),
    "BRICKMESH_ASSETS_ENABLED": ("assets", "enabled"),
    "BRICKMESH_ACCESS_MANAGEMENT_ENABLED": ("access_management", "enabled"),
}


class WorkspaceSettings(BaseModel):
    """Databricks workspace connection."""
    host: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None


class AccountSettings(BaseModel):
    """
    Databricks account connection.

    Unity Catalog grants only resolve account-level groups, so when an
    account id is configured groups are managed through the account API.
    """
    host: str = DEFAULT_ACCOUNT_HOST
    account_id: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None

    @property
    def enabled(self) -> bool:
        return bool(self.account_id)


class RegistrySettings(BaseModel):
    """Data Mesh Manager API connection."""
    host: str = DEFAULT_REGISTRY_HOST
    api_key: Optional[str] = None
    timeout_seconds: float = 30.0


class AssetsSettings(BaseModel):
    """Asset synchronization."""
    enabled: bool = False
    connector_id: str = "databricks-assets"
    poll_interval: timedelta = Field(default=timedelta(minutes=60), description="Delay between passes")
    include_catalog_assets: bool = Field(default=False, description="Also emit one asset per catalog")


class DataProductMapping(BaseModel):
    custom_field: Optional[str] = Field(
        default=None,
        description="Data product custom field holding the consumer service principal id",
    )


class PrincipalMapping(BaseModel):
    data_product: DataProductMapping = Field(default_factory=DataProductMapping)


class AccessManagementSettings(BaseModel):
    """Access grant lifecycle handling."""
    enabled: bool = False
    connector_id: str = "databricks-access-management"
    poll_interval: timedelta = Field(default=timedelta(seconds=5), description="Delay between event polls")
    max_workers: int = Field(default=4, ge=1)
    mapping: PrincipalMapping = Field(default_factory=PrincipalMapping)


class ConnectorSettings(BaseModel):
    """Root configuration object."""
    workspace: WorkspaceSettings = Field(default_factory=WorkspaceSettings)
    account: AccountSettings = Field(default_factory=AccountSettings)
    registry: RegistrySettings = Field(default_factory=RegistrySettings)
    assets: AssetsSettings = Field(default_factory=AssetsSettings)
    access_management: AccessManagementSettings = Field(default_factory=AccessManagementSettings)


def _apply_environment(data: Dict[str, Any], environ: Mapping[str, str]) -> Dict[str, Any]:
    """Overlay environment variable values onto raw settings data."""
    for variable, (section, key) in ENVIRONMENT_OVERRIDES.items():
        value = environ.get(variable)
        if value is None or value == "":
            continue
        section_data = data.get(section) or {}
        if not isinstance(section_data, dict):
            raise ConfigurationError(f"Configuration section '{section}' must be a mapping")
        section_data[key] = value
        data[section] = section_data
        logger.debug(f"Configuration {section}.{key} overridden by {variable}")
    return data


def load_settings(
    path: Optional[str | Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ConnectorSettings:
    """
    Load connector settings from a YAML file and environment variables.

    Args:
        path: Path to YAML file (optional; environment alone is enough)
        environ: Environment mapping (defaults to os.environ)

    Returns:
        ConnectorSettings instance

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigurationError: If the content is not valid YAML or fails validation
    """
    data: Dict[str, Any] = {}
    if path is not None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r") as f:
            try:
                loaded = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

        if loaded is not None and not isinstance(loaded, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a mapping")
        data = loaded or {}

    data = _apply_environment(data, os.environ if environ is None else environ)

    try:
        settings = ConnectorSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    if path is not None:
        logger.info(f"Loaded configuration from {path}")
    return settings
