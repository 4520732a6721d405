"""
Unit tests for AccessEventHandler and EventListener.
"""

import threading
from typing import List, Optional, Tuple

import pytest

from brickmesh.errors import UpstreamCallError
from brickmesh.events import CURSOR_KEY, AccessEventHandler, EventListener
from tests.fixtures import (
    ACCESS_CONNECTOR_ID,
    make_access,
    make_catalog,
    make_data_product,
    make_event,
    make_schema,
)


class RecordingHandler(AccessEventHandler):
    """Handler whose callbacks record (transition, grant id) pairs."""

    def __init__(self, fail_on: Optional[str] = None):
        self.seen: List[Tuple[str, str]] = []
        self._lock = threading.Lock()
        self.fail_on = fail_on
        super().__init__(self._activated, self._deactivated)

    def _record(self, transition: str, grant_id: str) -> None:
        if grant_id == self.fail_on:
            raise UpstreamCallError(f"{transition} {grant_id}")
        with self._lock:
            self.seen.append((transition, grant_id))

    def _activated(self, grant_id: str) -> None:
        self._record("activate", grant_id)

    def _deactivated(self, grant_id: str) -> None:
        self._record("deactivate", grant_id)


@pytest.fixture
def handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def listener(registry, state_store, handler) -> EventListener:
    return EventListener(registry, state_store, ACCESS_CONNECTOR_ID, handler, max_workers=4, poll_interval=0.01)


class TestAccessEventHandler:
    """Tests for event dispatch."""

    def test_dispatch_by_type(self, handler) -> None:
        handler.handle(make_event("e1", "AccessActivatedEvent", "g1"))
        handler.handle(make_event("e2", "AccessDeactivatedEvent", "g1"))

        assert handler.seen == [("activate", "g1"), ("deactivate", "g1")]

    def test_unknown_type_ignored(self, handler) -> None:
        assert handler.handle(make_event("e1", "DataProductUpdatedEvent", "dp1")) is None
        assert handler.seen == []


class TestEventListener:
    """Tests for polling and cursor handling."""

    def test_poll_advances_cursor(self, registry, state_store, handler, listener) -> None:
        """All events are handled and the cursor moves to the last event."""
        registry.events = [
            make_event("e1", "AccessActivatedEvent", "g1"),
            make_event("e2", "AccessActivatedEvent", "g2"),
        ]

        assert listener.poll_once() == 2

        assert sorted(handler.seen) == [("activate", "g1"), ("activate", "g2")]
        assert state_store.get_state(ACCESS_CONNECTOR_ID) == {CURSOR_KEY: "e2"}

    def test_next_poll_starts_after_cursor(self, registry, handler, listener) -> None:
        registry.events = [make_event("e1", "AccessActivatedEvent", "g1")]
        listener.poll_once()
        registry.events.append(make_event("e2", "AccessDeactivatedEvent", "g1"))

        assert listener.poll_once() == 1
        assert handler.seen == [("activate", "g1"), ("deactivate", "g1")]

    def test_empty_poll_keeps_cursor(self, state_store, listener) -> None:
        assert listener.poll_once() == 0
        assert state_store.get_state(ACCESS_CONNECTOR_ID) == {}

    def test_same_grant_keeps_order(self, registry, handler, listener) -> None:
        """Events for one grant are handled in delivery order."""
        registry.events = [
            make_event("e1", "AccessActivatedEvent", "g1"),
            make_event("e2", "AccessDeactivatedEvent", "g1"),
            make_event("e3", "AccessActivatedEvent", "g1"),
        ]

        listener.poll_once()

        assert handler.seen == [("activate", "g1"), ("deactivate", "g1"), ("activate", "g1")]

    def test_events_without_resource_id_skipped(self, registry, state_store, handler, listener) -> None:
        registry.events = [make_event("e1", "AccessActivatedEvent", None)]

        assert listener.poll_once() == 1
        assert handler.seen == []
        assert state_store.get_state(ACCESS_CONNECTOR_ID) == {CURSOR_KEY: "e1"}

    def test_failure_keeps_cursor(self, registry, state_store) -> None:
        """A failing grant fails the batch and the batch is redelivered."""
        handler = RecordingHandler(fail_on="g2")
        listener = EventListener(registry, state_store, ACCESS_CONNECTOR_ID, handler)
        registry.events = [
            make_event("e1", "AccessActivatedEvent", "g1"),
            make_event("e2", "AccessActivatedEvent", "g2"),
        ]

        with pytest.raises(UpstreamCallError):
            listener.poll_once()

        assert state_store.get_state(ACCESS_CONNECTOR_ID) == {}
        assert ("activate", "g1") in handler.seen

        handler.fail_on = None
        assert listener.poll_once() == 2
        assert state_store.get_state(ACCESS_CONNECTOR_ID) == {CURSOR_KEY: "e2"}

    def test_poll_failure_propagates(self, registry, listener) -> None:
        registry.fail_on.add("poll_events")

        with pytest.raises(UpstreamCallError):
            listener.poll_once()

    def test_start_and_stop(self, registry, handler, listener) -> None:
        """The background loop handles events until stopped."""
        registry.events = [make_event("e1", "AccessActivatedEvent", "g1")]

        listener.start()
        try:
            for _ in range(200):
                if handler.seen:
                    break
                threading.Event().wait(0.01)
        finally:
            listener.stop(timeout=5)

        assert handler.seen == [("activate", "g1")]


class TestWithOrchestrator:
    """Event handling wired to the real orchestrator."""

    def test_activation_then_revocation(self, workspace, registry, state_store, orchestrator) -> None:
        workspace.add_catalog(make_catalog("sales"))
        workspace.add_schema(make_schema("orders", catalog_name="sales"))
        registry.data_products["dp-orders"] = make_data_product("dp-orders")
        registry.accesses["g1"] = make_access("g1", consumer={"userId": "u1"})
        registry.events = [
            make_event("e1", "AccessActivatedEvent", "g1"),
            make_event("e2", "AccessDeactivatedEvent", "g1"),
        ]
        handler = AccessEventHandler(orchestrator.activate, orchestrator.deactivate)
        listener = EventListener(registry, state_store, ACCESS_CONNECTOR_ID, handler)

        listener.poll_once()

        assert workspace.call_names() == [
            "create_group",
            "update_group_members",
            "update_schema_grants",
            "delete_group",
        ]
        assert workspace.group_named("access-g1") is None
        assert len(listener._grant_locks) == 0
        assert len(orchestrator._grant_locks) == 0
