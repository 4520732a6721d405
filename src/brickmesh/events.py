"""
Registry event consumption for access management.

The registry delivers access lifecycle events in order. The listener polls
them in batches, routes each event to the orchestrator, and advances its
cursor only once the whole batch was handled, so a failure means the batch is
redelivered. Redelivery is safe because both transitions are idempotent.
"""

import logging
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from typing import Any, Callable, Dict, List, Optional, Union

from brickmesh.clients.registry import RegistryClient
from brickmesh.clients.state import StateStore
from brickmesh.locks import KeyedLock
from brickmesh.models import RegistryEvent, RegistryEventType
from brickmesh.sync.scheduler import FixedDelayScheduler

logger = logging.getLogger(__name__)

CURSOR_KEY = "lastEventId"


class AccessEventHandler:
    """Dispatches access events to an activation or deactivation callback."""

    def __init__(self, on_activated: Callable[[str], Any], on_deactivated: Callable[[str], Any]):
        self.on_activated = on_activated
        self.on_deactivated = on_deactivated

    def handle(self, event: RegistryEvent) -> Optional[Any]:
        event_type = event.event_type
        grant_id = event.resource_id
        if event_type == RegistryEventType.ACCESS_ACTIVATED:
            logger.info(f"Received AccessActivatedEvent for access {grant_id}")
            return self.on_activated(grant_id)
        if event_type == RegistryEventType.ACCESS_DEACTIVATED:
            logger.info(f"Received AccessDeactivatedEvent for access {grant_id}")
            return self.on_deactivated(grant_id)
        logger.debug(f"Ignoring event {event.id} of type {event.type}")
        return None


class EventListener:
    """
    Polls registry events and hands them to an ``AccessEventHandler``.

    Events for the same grant run one after another in delivery order; events
    for different grants run concurrently on a thread pool.

    Example:
        ```python
        listener = EventListener(registry, state_store, "databricks-access-management", handler)
        listener.poll_once()   # one batch
        listener.start()       # background polling
        ```
    """

    def __init__(
        self,
        registry: RegistryClient,
        state_store: StateStore,
        connector_id: str,
        handler: AccessEventHandler,
        max_workers: int = 4,
        poll_interval: Union[timedelta, float] = timedelta(seconds=5),
    ):
        self.registry = registry
        self.state_store = state_store
        self.connector_id = connector_id
        self.handler = handler
        self.max_workers = max_workers
        self._grant_locks = KeyedLock()
        self._scheduler = FixedDelayScheduler(self.poll_once, poll_interval, name=f"events-{connector_id}")

    def get_cursor(self) -> Optional[str]:
        state = self.state_store.get_state(self.connector_id) or {}
        cursor = state.get(CURSOR_KEY)
        return str(cursor) if cursor else None

    def save_cursor(self, event_id: str) -> None:
        self.state_store.save_state(self.connector_id, {CURSOR_KEY: event_id})

    def poll_once(self) -> int:
        """
        Fetch and handle one batch of events.

        Returns:
            Number of events in the batch

        Raises:
            ConnectorError: If polling or any handler fails; the cursor is not advanced
        """
        cursor = self.get_cursor()
        events = self.registry.poll_events(cursor)
        if not events:
            logger.debug(f"No new events after {cursor}")
            return 0

        logger.info(f"Received {len(events)} event(s) after {cursor}")
        by_grant: Dict[str, List[RegistryEvent]] = OrderedDict()
        for event in events:
            grant_id = event.resource_id
            if grant_id is None:
                logger.debug(f"Event {event.id} of type {event.type} carries no resource id")
                continue
            by_grant.setdefault(grant_id, []).append(event)

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="access") as executor:
            futures = [
                executor.submit(self._handle_grant_events, grant_id, grant_events)
                for grant_id, grant_events in by_grant.items()
            ]
        # All tasks have finished here; re-raise the first failure
        for future in futures:
            future.result()

        self.save_cursor(events[-1].id)
        return len(events)

    def _handle_grant_events(self, grant_id: str, events: List[RegistryEvent]) -> None:
        with self._grant_locks.acquire(grant_id):
            for event in events:
                result = self.handler.handle(event)
                if result is not None:
                    logger.info(f"Event {event.id}: {result}")

    def start(self) -> None:
        self._scheduler.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._scheduler.stop(timeout)
