"""
Transfer Store

In-memory registry of pending one-time transfers.

Each identifier moves through absent -> registered -> consumed | expired.
Removal is decided under a single lock covering both the records and the
watcher registry, so exactly one of consume()/expire() wins and the losing
call sees "not found". Watcher delivery and byte deletion always run after
the lock is released.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from quickdrop.domain.errors import DuplicateTransferError

from .entities import TransferRecord, utcnow
from .events import TransferEvent, TransferNotification
from .identifiers import generate_identifier
from .scheduler import ExpiryScheduler
from .storage_repository import IFileStorageRepository
from .watchers import NotificationSink, WatcherRegistry, deliver

logger = logging.getLogger(__name__)


class TransferStore:
    """
    Arbitrates register/consume/expire/subscribe for in-flight transfers.

    Constructed once by the application factory and handed to the
    components that need it.
    """

    def __init__(
        self,
        storage: IFileStorageRepository,
        scheduler: Optional[ExpiryScheduler] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Args:
            storage: Repository used to delete the bytes of expired transfers
            scheduler: Expiry scheduler (a threading.Timer based one by default)
            clock: Source of creation timestamps
        """
        self.storage = storage
        self.scheduler = scheduler or ExpiryScheduler()
        self._clock = clock
        self._records: Dict[str, TransferRecord] = {}
        self._watchers = WatcherRegistry()
        self._lock = threading.Lock()

    def register(
        self,
        location: str,
        display_name: str,
        ttl: timedelta,
        identifier: Optional[str] = None,
    ) -> str:
        """
        Register uploaded bytes and arm their expiry.

        Args:
            location: Where the bytes were written
            display_name: Original filename, may be empty
            ttl: Time before an unclaimed transfer expires
            identifier: Identifier the upload already generated to name its
                bytes; a new one is generated when omitted

        Returns:
            The transfer identifier

        Raises:
            EntropyUnavailableError: If no identifier could be generated
            DuplicateTransferError: If identifier already names a live transfer
        """
        if identifier is None:
            identifier = generate_identifier()

        record = TransferRecord(
            identifier=identifier,
            location=location,
            display_name=display_name or "",
            created_at=self._clock(),
            ttl=ttl,
        )

        with self._lock:
            if identifier in self._records:
                raise DuplicateTransferError(
                    f"Transfer {identifier[:8]} is already registered"
                )
            self._records[identifier] = record

        self.scheduler.schedule(identifier, ttl, self.expire)
        logger.debug(f"Registered transfer {identifier[:8]} (ttl={ttl})")
        return identifier

    def get(self, identifier: str) -> Optional[TransferRecord]:
        """Look up a live transfer without changing it."""
        with self._lock:
            return self._records.get(identifier)

    def consume(self, identifier: str) -> Optional[TransferRecord]:
        """
        Remove a transfer for download and notify its watchers.

        The caller owns the returned record's bytes: it streams them and
        deletes them afterwards.

        Returns:
            The removed record, or None if it was already consumed, expired
            or never existed
        """
        record, watchers = self._remove(identifier)
        if record is None:
            logger.debug(f"Consume of {identifier[:8]} found nothing")
            return None

        self.scheduler.cancel(identifier)
        self._fan_out(identifier, watchers, TransferEvent.DELIVERED)
        logger.info(f"Transfer {identifier[:8]} consumed")
        return record

    def expire(self, identifier: str) -> bool:
        """
        Remove an unclaimed transfer, delete its bytes and notify its watchers.

        Returns:
            True if this call removed the transfer, False if it was already gone
        """
        record, watchers = self._remove(identifier)
        if record is None:
            logger.debug(f"Expiry of {identifier[:8]} is a no-op, already removed")
            return False

        if not self.storage.delete(record.location):
            logger.error(f"Failed to delete bytes of expired transfer {identifier[:8]}")
        self._fan_out(identifier, watchers, TransferEvent.EXPIRED)
        logger.info(f"Transfer {identifier[:8]} expired")
        return True

    def subscribe(self, identifier: str, sink: NotificationSink) -> bool:
        """
        Attach a watcher to a live transfer.

        A watcher arriving after the transfer is gone is told so immediately
        instead of being registered.

        Returns:
            True if the watcher was registered, False if it was sent a gone event
        """
        with self._lock:
            live = identifier in self._records
            if live:
                self._watchers.add(identifier, sink)

        if not live:
            deliver([sink], TransferNotification(TransferEvent.GONE, identifier))
        return live

    def unsubscribe(self, identifier: str, sink: NotificationSink) -> bool:
        """Detach a watcher. Returns False if it was not attached."""
        with self._lock:
            return self._watchers.remove(identifier, sink)

    def broadcast(self, identifier: str, event: TransferEvent) -> int:
        """
        Send a non-terminal event to the current watchers of a transfer.

        Returns:
            Number of watchers that accepted the event

        Raises:
            ValueError: If event is terminal; those are only sent on removal
        """
        if event.is_terminal:
            raise ValueError(f"{event.value} can only be sent when a transfer is removed")

        with self._lock:
            watchers = self._watchers.snapshot(identifier)
        return deliver(watchers, TransferNotification(event, identifier))

    def watcher_count(self, identifier: str) -> int:
        with self._lock:
            return self._watchers.count(identifier)

    def pending_count(self) -> int:
        with self._lock:
            return len(self._records)

    def __len__(self) -> int:
        return self.pending_count()

    def __contains__(self, identifier: str) -> bool:
        return self.get(identifier) is not None

    def close(self) -> None:
        """Stop all expiry timers. Pending records stay in memory until the process exits."""
        self.scheduler.shutdown()

    def _remove(self, identifier: str):
        with self._lock:
            record = self._records.pop(identifier, None)
            if record is None:
                return None, []
            return record, self._watchers.pop(identifier)

    def _fan_out(self, identifier: str, watchers, event: TransferEvent) -> None:
        if not watchers:
            return
        notification = TransferNotification(event, identifier)
        delivered = deliver(watchers, notification)
        logger.debug(
            f"Sent {event.value} for {identifier[:8]} to {delivered}/{len(watchers)} watcher(s)"
        )
