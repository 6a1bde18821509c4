"""Tests for EventLogService."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from app.core.redaction import REDACTED
from app.schemas.event_log import LogDirection, LogEntry
from app.services.event_log_service import LOGS_KEY, EventLogService
from app.stores import MemoryKeyValueStore


def _record(service, n, status=200):
    return service.record(
        direction=LogDirection.INBOUND_WEBHOOK,
        method="POST",
        path="/webhook/instagram",
        status=status,
        outcome=f"Event {n}",
        payload={"n": n},
    )


def test_list_is_most_recent_first():
    service = EventLogService(MemoryKeyValueStore(), capacity=10)
    for n in range(3):
        _record(service, n)
    assert [e.outcome for e in service.list()] == ["Event 2", "Event 1", "Event 0"]


def test_capacity_evicts_oldest():
    store = MemoryKeyValueStore()
    service = EventLogService(store, capacity=50)
    for n in range(51):
        _record(service, n)
    entries = service.list()
    assert len(entries) == 50
    assert entries[0].outcome == "Event 50"
    assert entries[-1].outcome == "Event 1"
    assert len(store.get(LOGS_KEY)) == 50


def test_entries_are_immutable():
    service = EventLogService(MemoryKeyValueStore())
    entry = _record(service, 1)
    with pytest.raises(Exception):
        entry.status = 500
    _record(service, 2)
    assert service.list()[1] == entry


def test_record_redacts_url_and_payload():
    service = EventLogService(MemoryKeyValueStore())
    entry = service.record(
        direction=LogDirection.OUTBOUND_API,
        method="GET",
        path="https://graph.test/v24.0/123?fields=name&access_token=EAAsecret",
        status=200,
        outcome="Profile Fetch",
        payload={"access_token": "EAAsecret", "note": "called with EAAsecret"},
        secrets=["EAAsecret"],
    )
    stored = service.list()[0]
    assert stored == entry
    assert "EAAsecret" not in stored.path
    assert stored.payload["access_token"] == REDACTED
    assert stored.payload["note"] == f"called with {REDACTED}"


def test_errors_are_echoed_to_process_log(caplog):
    service = EventLogService(MemoryKeyValueStore())
    with caplog.at_level(logging.INFO, logger="app.services.event_log_service"):
        _record(service, 1, status=403)
    assert any(r.levelno == logging.ERROR and "403" in r.getMessage() for r in caplog.records)


def test_clear():
    service = EventLogService(MemoryKeyValueStore())
    _record(service, 1)
    service.clear()
    assert service.list() == []


def test_list_entries_serialize_camel_case():
    service = EventLogService(MemoryKeyValueStore())
    _record(service, 1)
    dumped = service.list()[0].model_dump(mode="json", by_alias=True)
    assert set(dumped) == {
        "id",
        "timestamp",
        "direction",
        "method",
        "path",
        "status",
        "outcome",
        "source",
        "payload",
    }
    assert isinstance(service.list()[0], LogEntry)


class SlowReadStore(MemoryKeyValueStore):
    """Yields the GIL between read and write so unguarded updates interleave."""

    def get(self, key):
        value = super().get(key)
        time.sleep(0.001)
        return value


def test_concurrent_appends_from_threads_are_all_kept():
    service = EventLogService(SlowReadStore(), capacity=500)
    with ThreadPoolExecutor(max_workers=16) as pool:
        list(pool.map(lambda n: _record(service, n), range(200)))
    outcomes = {e.outcome for e in service.list()}
    assert len(outcomes) == 200
