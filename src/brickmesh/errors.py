"""
Exception hierarchy for the connector.

Collaborator adapters translate SDK and HTTP failures into these classes so
the synchronizer and the access orchestrator only ever handle one vocabulary.
"""

from typing import Optional


class ConnectorError(Exception):
    """Base class for all connector errors."""


class NotFoundError(ConnectorError):
    """Raised when a registry or workspace resource does not exist."""

    def __init__(self, resource_type: str, resource_id: str):
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(f"{resource_type} '{resource_id}' not found")


class AlreadyExistsError(ConnectorError):
    """Raised when creating a resource that another writer created first."""

    def __init__(self, resource_type: str, resource_id: str):
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(f"{resource_type} '{resource_id}' already exists")


class ConfigurationError(ConnectorError):
    """Raised when required configuration or mapping data is missing or inconsistent."""


class OutputPortError(ConfigurationError):
    """Raised when an output port server lacks the fields needed to locate a schema."""

    def __init__(self, data_product_id: str, output_port_id: str, message: str):
        self.data_product_id = data_product_id
        self.output_port_id = output_port_id
        super().__init__(f"{message} (dataProductId={data_product_id}, outputPortId={output_port_id})")


class UpstreamCallError(ConnectorError):
    """Raised when a collaborator call fails for any reason other than not-found."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        message = f"{operation} failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)

