"""Unit tests for the in-memory incident store and its reader/writer lock."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from src.errors import IncidentNotFoundError
from src.incidents.locks import ReadWriteLock
from src.incidents.models import Incident, IncidentStatus, Severity
from src.incidents.store import IncidentStore


def _incident(title: str = "Disk full", **kwargs: object) -> Incident:
    return Incident(title=title, description="Root volume at 100%", **kwargs)  # type: ignore[arg-type]


class TestInsertAndGet:
    def test_insert_assigns_id(self, store: IncidentStore) -> None:
        stored = store.insert(_incident())
        assert stored.id.startswith("INC-")
        assert store.get(stored.id) == stored

    def test_ids_are_unique(self, store: IncidentStore) -> None:
        ids = {store.insert(_incident()).id for _ in range(50)}
        assert len(ids) == 50

    def test_insert_ignores_caller_id(self, store: IncidentStore) -> None:
        stored = store.insert(_incident(id="INC-mine"))
        assert stored.id != "INC-mine"
        assert store.get("INC-mine") is None

    def test_get_missing(self, store: IncidentStore) -> None:
        assert store.get("INC-0-0") is None

    def test_len(self, store: IncidentStore) -> None:
        assert len(store) == 0
        store.insert(_incident())
        store.insert(_incident())
        assert len(store) == 2


class TestIsolation:
    def test_mutating_returned_copy_does_not_affect_store(self, store: IncidentStore) -> None:
        stored = store.insert(_incident(logs=["a"]))
        fetched = store.get(stored.id)
        assert fetched is not None
        fetched.title = "changed"
        fetched.logs.append("b")
        again = store.get(stored.id)
        assert again is not None
        assert again.title == "Disk full"
        assert again.logs == ["a"]

    def test_mutating_inserted_object_does_not_affect_store(self, store: IncidentStore) -> None:
        original = _incident(tags=["db"])
        stored = store.insert(original)
        original.tags.append("changed")
        fetched = store.get(stored.id)
        assert fetched is not None
        assert fetched.tags == ["db"]

    def test_list_returns_copies(self, store: IncidentStore) -> None:
        stored = store.insert(_incident())
        store.list()[0].title = "changed"
        fetched = store.get(stored.id)
        assert fetched is not None
        assert fetched.title == "Disk full"


class TestUpdate:
    def test_applies_mutator(self, store: IncidentStore) -> None:
        stored = store.insert(_incident())

        def set_status(incident: Incident) -> None:
            incident.status = IncidentStatus.IN_PROGRESS

        updated = store.update(stored.id, set_status)
        assert updated.status == IncidentStatus.IN_PROGRESS
        fetched = store.get(stored.id)
        assert fetched is not None
        assert fetched.status == IncidentStatus.IN_PROGRESS

    def test_missing_raises(self, store: IncidentStore) -> None:
        with pytest.raises(IncidentNotFoundError):
            store.update("INC-0-0", lambda i: None)

    def test_failing_mutator_leaves_record_unchanged(self, store: IncidentStore) -> None:
        stored = store.insert(_incident())

        def half_update(incident: Incident) -> None:
            incident.title = "partially written"
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            store.update(stored.id, half_update)
        fetched = store.get(stored.id)
        assert fetched is not None
        assert fetched.title == "Disk full"


class TestDelete:
    def test_delete(self, store: IncidentStore) -> None:
        stored = store.insert(_incident())
        store.delete(stored.id)
        assert store.get(stored.id) is None
        assert len(store) == 0

    def test_delete_missing_raises(self, store: IncidentStore) -> None:
        with pytest.raises(IncidentNotFoundError):
            store.delete("INC-0-0")

    def test_delete_twice_raises(self, store: IncidentStore) -> None:
        stored = store.insert(_incident())
        store.delete(stored.id)
        with pytest.raises(IncidentNotFoundError):
            store.delete(stored.id)


class TestList:
    def test_predicate(self, store: IncidentStore) -> None:
        store.insert(_incident("a", severity=Severity.HIGH))
        store.insert(_incident("b", severity=Severity.LOW))
        store.insert(_incident("c", severity=Severity.HIGH))
        titles = [i.title for i in store.list(lambda i: i.severity == Severity.HIGH)]
        assert sorted(titles) == ["a", "c"]

    def test_no_predicate_returns_all(self, store: IncidentStore) -> None:
        for title in ("a", "b", "c"):
            store.insert(_incident(title))
        assert len(store.list()) == 3

    def test_ordered_by_creation(self, store: IncidentStore) -> None:
        first = store.insert(_incident("first"))
        second = store.insert(_incident("second"))
        assert [i.id for i in store.list()] == [first.id, second.id]

    def test_empty(self, store: IncidentStore) -> None:
        assert store.list() == []


class TestConcurrency:
    def test_concurrent_inserts_produce_distinct_ids(self, store: IncidentStore) -> None:
        with ThreadPoolExecutor(max_workers=16) as pool:
            ids = list(pool.map(lambda n: store.insert(_incident(f"t{n}")).id, range(500)))
        assert len(set(ids)) == 500
        assert len(store) == 500

    def test_concurrent_updates_are_not_lost(self, store: IncidentStore) -> None:
        stored = store.insert(_incident())

        def add_log(n: int) -> None:
            store.update(stored.id, lambda i: i.logs.append(f"line {n}"))

        with ThreadPoolExecutor(max_workers=16) as pool:
            list(pool.map(add_log, range(200)))

        fetched = store.get(stored.id)
        assert fetched is not None
        assert len(fetched.logs) == 200


class TestReadWriteLock:
    def test_readers_share(self) -> None:
        lock = ReadWriteLock()
        inside = threading.Barrier(2, timeout=2)

        def reader() -> None:
            with lock.read_locked():
                inside.wait()  # both readers must be inside at once

        threads = [threading.Thread(target=reader) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=3)
        assert not inside.broken

    def test_writer_excludes_readers(self) -> None:
        lock = ReadWriteLock()
        events: list[str] = []
        writer_in = threading.Event()

        def writer() -> None:
            with lock.write_locked():
                writer_in.set()
                time.sleep(0.05)
                events.append("writer done")

        def reader() -> None:
            writer_in.wait()
            with lock.read_locked():
                events.append("reader")

        w = threading.Thread(target=writer)
        r = threading.Thread(target=reader)
        w.start()
        r.start()
        w.join(timeout=2)
        r.join(timeout=2)
        assert events == ["writer done", "reader"]
