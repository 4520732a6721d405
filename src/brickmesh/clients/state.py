"""
Connector state stores.

A state store persists a small key-value map per connector id, e.g. the asset
watermark ``{"lastUpdatedAt": 1718000000000}`` or the event cursor
``{"lastEventId": "..."}``.
"""

import copy
import logging
import threading
from typing import Any, Dict, Protocol

from brickmesh.clients.registry import RegistryClient

logger = logging.getLogger(__name__)


class StateStore(Protocol):
    """Minimal get/save interface for connector state."""

    def get_state(self, connector_id: str) -> Dict[str, Any]:
        ...

    def save_state(self, connector_id: str, state: Dict[str, Any]) -> None:
        ...


class InMemoryStateStore:
    """
    State kept in process memory. Lost on restart, so a fresh process starts
    from an empty state and reprocesses everything once.
    """

    def __init__(self) -> None:
        self._states: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def get_state(self, connector_id: str) -> Dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self._states.get(connector_id, {}))

    def save_state(self, connector_id: str, state: Dict[str, Any]) -> None:
        with self._lock:
            self._states[connector_id] = copy.deepcopy(state)


class RegistryStateStore:
    """State persisted in the registry, durable across restarts."""

    def __init__(self, client: RegistryClient) -> None:
        self.client = client

    def get_state(self, connector_id: str) -> Dict[str, Any]:
        return self.client.get_state(connector_id)

    def save_state(self, connector_id: str, state: Dict[str, Any]) -> None:
        logger.debug(f"Saving state for connector {connector_id}: {state}")
        self.client.save_state(connector_id, state)
