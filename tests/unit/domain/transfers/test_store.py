"""
Unit tests for TransferStore

Covers register/get/consume/expire/subscribe semantics with manual expiry
timers and a mocked storage repository.
"""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from quickdrop.domain.errors import DuplicateTransferError, EntropyUnavailableError
from quickdrop.domain.transfers import TransferEvent, TransferStore, is_valid_identifier
from tests.fixtures.doubles import FailingSink, RecordingSink


class TestRegister:
    def test_register_returns_new_identifier(self, store, ttl):
        identifier = store.register("/uploads/a", "report.pdf", ttl)

        assert is_valid_identifier(identifier)
        assert identifier in store
        assert len(store) == 1

    def test_register_arms_one_timer_with_ttl(self, store, timer_factory, ttl):
        store.register("/uploads/a", "report.pdf", ttl)

        assert len(timer_factory.live()) == 1
        assert timer_factory.live()[0].interval == 60.0

    def test_register_with_given_identifier(self, store, ttl):
        identifier = "ab" * 16

        assert store.register("/uploads/x", "", ttl, identifier=identifier) == identifier
        assert store.get(identifier).location == "/uploads/x"

    def test_register_duplicate_identifier_rejected(self, store, ttl, timer_factory):
        identifier = "cd" * 16
        store.register("/uploads/1", "one", ttl, identifier=identifier)

        with pytest.raises(DuplicateTransferError):
            store.register("/uploads/2", "two", ttl, identifier=identifier)

        assert store.get(identifier).location == "/uploads/1"
        assert len(timer_factory.live()) == 1

    def test_register_propagates_entropy_failure(self, store, ttl, monkeypatch):
        def broken():
            raise EntropyUnavailableError("no entropy")

        monkeypatch.setattr("quickdrop.domain.transfers.store.generate_identifier", broken)

        with pytest.raises(EntropyUnavailableError):
            store.register("/uploads/a", "a", ttl)
        assert len(store) == 0

    def test_identifiers_are_distinct(self, store, ttl):
        identifiers = {store.register(f"/uploads/{i}", "", ttl) for i in range(200)}
        assert len(identifiers) == 200


class TestGet:
    def test_get_returns_registered_record(self, mock_storage, scheduler, ttl):
        created = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        store = TransferStore(mock_storage, scheduler, clock=lambda: created)

        identifier = store.register("/uploads/a", "report.pdf", ttl)
        record = store.get(identifier)

        assert record.identifier == identifier
        assert record.location == "/uploads/a"
        assert record.display_name == "report.pdf"
        assert record.created_at == created
        assert record.expires_at == created + ttl

    def test_get_unknown_identifier_returns_none(self, store):
        assert store.get("0" * 32) is None

    def test_get_does_not_remove(self, store, ttl):
        identifier = store.register("/uploads/a", "a", ttl)
        store.get(identifier)
        store.get(identifier)
        assert identifier in store


class TestConsume:
    def test_consume_returns_record_once(self, store, ttl):
        identifier = store.register("/uploads/a", "a.txt", ttl)

        record = store.consume(identifier)

        assert record.location == "/uploads/a"
        assert record.display_name == "a.txt"
        assert store.get(identifier) is None
        assert store.consume(identifier) is None

    def test_consume_unknown_returns_none(self, store):
        assert store.consume("f" * 32) is None

    def test_consume_cancels_expiry_timer(self, store, timer_factory, ttl):
        identifier = store.register("/uploads/a", "a", ttl)
        store.consume(identifier)

        assert timer_factory.timers[0].cancelled
        assert store.scheduler.pending() == 0

    def test_consume_notifies_watchers_delivered(self, store, ttl):
        identifier = store.register("/uploads/a", "a", ttl)
        first, second = RecordingSink("first"), RecordingSink("second")
        store.subscribe(identifier, first)
        store.subscribe(identifier, second)

        store.consume(identifier)

        assert first.events == ["delivered"]
        assert second.events == ["delivered"]
        assert first.notifications[0].identifier == identifier
        assert store.watcher_count(identifier) == 0

    def test_consume_does_not_delete_bytes(self, store, mock_storage, ttl):
        identifier = store.register("/uploads/a", "a", ttl)
        store.consume(identifier)
        mock_storage.delete.assert_not_called()

    def test_failing_watcher_does_not_block_others(self, store, ttl):
        identifier = store.register("/uploads/a", "a", ttl)
        failing, healthy = FailingSink(), RecordingSink()
        store.subscribe(identifier, failing)
        store.subscribe(identifier, healthy)

        record = store.consume(identifier)

        assert record is not None
        assert failing.attempts == 1
        assert healthy.events == ["delivered"]


class TestExpire:
    def test_timer_expires_transfer(self, store, timer_factory, mock_storage, ttl):
        identifier = store.register("/uploads/a", "a", ttl)
        sink = RecordingSink()
        store.subscribe(identifier, sink)

        timer_factory.fire_all()

        assert store.get(identifier) is None
        mock_storage.delete.assert_called_once_with("/uploads/a")
        assert sink.events == ["expired"]

    def test_expire_twice_is_harmless(self, store, mock_storage, ttl):
        identifier = store.register("/uploads/a", "a", ttl)

        assert store.expire(identifier) is True
        assert store.expire(identifier) is False
        mock_storage.delete.assert_called_once()

    def test_expire_after_consume_is_noop(self, store, mock_storage, ttl):
        identifier = store.register("/uploads/a", "a", ttl)
        sink = RecordingSink()
        store.subscribe(identifier, sink)

        store.consume(identifier)

        assert store.expire(identifier) is False
        mock_storage.delete.assert_not_called()
        assert sink.events == ["delivered"]

    def test_storage_delete_failure_still_removes_and_notifies(
        self, store, mock_storage, ttl
    ):
        mock_storage.delete.return_value = False
        identifier = store.register("/uploads/a", "a", ttl)
        sink = RecordingSink()
        store.subscribe(identifier, sink)

        assert store.expire(identifier) is True
        assert identifier not in store
        assert sink.events == ["expired"]

    def test_consume_after_expire_returns_none(self, store, ttl):
        identifier = store.register("/uploads/a", "a", ttl)
        store.expire(identifier)
        assert store.consume(identifier) is None


class TestSubscribe:
    def test_subscribe_live_transfer(self, store, ttl):
        identifier = store.register("/uploads/a", "a", ttl)
        sink = RecordingSink()

        assert store.subscribe(identifier, sink) is True
        assert store.watcher_count(identifier) == 1
        assert sink.events == []

    def test_subscribe_after_removal_gets_gone(self, store, ttl):
        identifier = store.register("/uploads/a", "a", ttl)
        store.consume(identifier)
        late = RecordingSink()

        assert store.subscribe(identifier, late) is False
        assert late.events == ["gone"]
        assert store.watcher_count(identifier) == 0

    def test_subscribe_unknown_gets_gone(self, store):
        sink = RecordingSink()
        assert store.subscribe("1" * 32, sink) is False
        assert sink.events == ["gone"]

    def test_subscribe_after_removal_with_failing_sink(self, store):
        assert store.subscribe("1" * 32, FailingSink()) is False

    def test_unsubscribe_stops_notifications(self, store, ttl):
        identifier = store.register("/uploads/a", "a", ttl)
        sink = RecordingSink()
        store.subscribe(identifier, sink)

        assert store.unsubscribe(identifier, sink) is True
        assert store.unsubscribe(identifier, sink) is False

        store.consume(identifier)
        assert sink.events == []

    def test_unsubscribe_removes_single_entry(self, store, ttl):
        identifier = store.register("/uploads/a", "a", ttl)
        sink = RecordingSink()
        store.subscribe(identifier, sink)
        store.subscribe(identifier, sink)

        store.unsubscribe(identifier, sink)

        assert store.watcher_count(identifier) == 1


class TestBroadcast:
    def test_broadcast_download_started(self, store, ttl):
        identifier = store.register("/uploads/a", "a", ttl)
        sink = RecordingSink()
        store.subscribe(identifier, sink)

        assert store.broadcast(identifier, TransferEvent.DOWNLOAD_STARTED) == 1
        assert sink.events == ["download_started"]
        assert identifier in store
        assert store.watcher_count(identifier) == 1

    def test_broadcast_without_watchers(self, store, ttl):
        identifier = store.register("/uploads/a", "a", ttl)
        assert store.broadcast(identifier, TransferEvent.DOWNLOAD_STARTED) == 0

    @pytest.mark.parametrize(
        "event", [TransferEvent.DELIVERED, TransferEvent.EXPIRED, TransferEvent.GONE]
    )
    def test_broadcast_rejects_terminal_events(self, store, ttl, event):
        identifier = store.register("/uploads/a", "a", ttl)
        with pytest.raises(ValueError):
            store.broadcast(identifier, event)


class TestScenarios:
    """Timeline scenarios with a one-minute TTL."""

    def test_download_before_expiry(self, mock_storage, timer_factory, scheduler):
        now = [datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)]
        store = TransferStore(mock_storage, scheduler, clock=lambda: now[0])
        identifier = store.register("/uploads/a", "a", timedelta(minutes=1))
        watcher = RecordingSink()
        store.subscribe(identifier, watcher)

        now[0] += timedelta(seconds=45)
        assert store.consume(identifier) is not None

        # a timer firing at 60s finds nothing to do
        now[0] += timedelta(seconds=15)
        assert store.expire(identifier) is False
        assert timer_factory.timers[0].cancelled
        assert watcher.events == ["delivered"]
        mock_storage.delete.assert_not_called()

    def test_expiry_then_late_download(self, mock_storage, timer_factory, scheduler):
        store = TransferStore(mock_storage, scheduler)
        identifier = store.register("/uploads/a", "a", timedelta(minutes=1))
        watcher = RecordingSink()
        store.subscribe(identifier, watcher)

        timer_factory.timers[0].fire()

        assert store.consume(identifier) is None
        assert watcher.events == ["expired"]
        mock_storage.delete.assert_called_once_with("/uploads/a")


class TestConcurrency:
    def test_concurrent_consumes_yield_one_winner(self, store, ttl):
        identifier = store.register("/uploads/a", "a", ttl)
        watcher = RecordingSink()
        store.subscribe(identifier, watcher)

        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(store.consume(identifier))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(1 for r in results if r is not None) == 1
        assert watcher.events == ["delivered"]

    def test_consume_races_expire(self, store, mock_storage, ttl):
        identifier = store.register("/uploads/a", "a", ttl)
        watcher = RecordingSink()
        store.subscribe(identifier, watcher)

        outcomes = {}
        barrier = threading.Barrier(2)

        def consumer():
            barrier.wait()
            outcomes["consume"] = store.consume(identifier) is not None

        def expirer():
            barrier.wait()
            outcomes["expire"] = store.expire(identifier)

        threads = [threading.Thread(target=consumer), threading.Thread(target=expirer)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert outcomes["consume"] != outcomes["expire"]
        assert len(watcher.events) == 1
        if outcomes["expire"]:
            assert watcher.events == ["expired"]
            mock_storage.delete.assert_called_once()
        else:
            assert watcher.events == ["delivered"]
            mock_storage.delete.assert_not_called()

    @pytest.mark.parametrize("removal,terminal", [("consume", "delivered"), ("expire", "expired")])
    def test_subscribers_racing_removal_each_get_one_terminal_event(
        self, store, ttl, removal, terminal
    ):
        identifier = store.register("/uploads/a", "a", ttl)
        sinks = [RecordingSink(str(i)) for i in range(16)]
        registered = {}
        barrier = threading.Barrier(len(sinks) + 1)

        def subscriber(sink):
            barrier.wait()
            registered[sink.name] = store.subscribe(identifier, sink)

        def remover():
            barrier.wait()
            getattr(store, removal)(identifier)

        threads = [threading.Thread(target=subscriber, args=(s,)) for s in sinks]
        threads.append(threading.Thread(target=remover))
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        for sink in sinks:
            expected = terminal if registered[sink.name] else "gone"
            assert sink.events == [expected]
        assert store.watcher_count(identifier) == 0
        assert store.get(identifier) is None


def test_close_cancels_pending_timers(store, timer_factory, ttl):
    store.register("/uploads/a", "a", ttl)
    store.register("/uploads/b", "b", ttl)

    store.close()

    assert all(t.cancelled for t in timer_factory.timers)
    assert store.scheduler.pending() == 0
