"""
Asset synchronization from the workspace into the registry.
"""

from .assets import (
    AssetSynchronizer,
    exclude_information_schema,
    include_all_tables,
    include_managed_catalogs,
    parse_watermark,
)
from .scheduler import FixedDelayScheduler

__all__ = [
    "AssetSynchronizer",
    "FixedDelayScheduler",
    "include_managed_catalogs",
    "exclude_information_schema",
    "include_all_tables",
    "parse_watermark",
]
