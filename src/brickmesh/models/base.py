"""
Base model for connector data objects.

Workspace nodes, registry resources and principals all share the same
Pydantic v2 configuration: camelCase aliases for the registry wire format,
population by field name for code, and tolerance for fields the registry adds
over time.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class BaseConnectorModel(BaseModel):
    """
    Base model for all connector objects with common configuration.

    Field names are snake_case in Python and camelCase on the wire, e.g.
    ``qualified_name`` is read from and written to ``qualifiedName``.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,  # Registry JSON is camelCase
        populate_by_name=True,  # Allow field population by name
        extra="ignore",  # Registry resources carry many fields we don't model
        use_enum_values=False,  # Keep enums as enum objects
        str_strip_whitespace=True,  # Strip whitespace from strings
    )

    def to_payload(self) -> dict:
        """Serialize to the camelCase JSON shape used by the registry."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
