"""
Transfer Watchers

Notification sink interface and the per-identifier watcher bookkeeping
owned by the transfer store.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List

from .events import TransferNotification

logger = logging.getLogger(__name__)


class NotificationSink(ABC):
    """
    A live channel to one watcher.

    The registry holds sinks by reference only. A sink decides for itself
    what to do after a terminal notification (for example closing its
    connection); the core simply stops delivering to it.
    """

    @abstractmethod
    def notify(self, notification: TransferNotification) -> None:
        """
        Deliver a notification to the watcher.

        Raises:
            NotificationDeliveryError: (or any exception) if delivery failed
        """
        pass  # pragma: no cover


class WatcherRegistry:
    """
    Mapping of identifier -> watchers interested in that transfer.

    Not synchronised on its own: the transfer store calls it only while
    holding its lock.
    """

    def __init__(self):
        self._watchers: Dict[str, List[NotificationSink]] = {}

    def add(self, identifier: str, sink: NotificationSink) -> None:
        self._watchers.setdefault(identifier, []).append(sink)

    def remove(self, identifier: str, sink: NotificationSink) -> bool:
        """Remove one matching entry. Returns False when there was none."""
        sinks = self._watchers.get(identifier)
        if not sinks:
            return False
        try:
            sinks.remove(sink)
        except ValueError:
            return False
        if not sinks:
            del self._watchers[identifier]
        return True

    def snapshot(self, identifier: str) -> List[NotificationSink]:
        """Copy of the current watchers, safe to iterate outside the lock."""
        return list(self._watchers.get(identifier, ()))

    def pop(self, identifier: str) -> List[NotificationSink]:
        """Detach and return every watcher of an identifier."""
        return self._watchers.pop(identifier, [])

    def count(self, identifier: str) -> int:
        return len(self._watchers.get(identifier, ()))

    def __len__(self) -> int:
        return sum(len(sinks) for sinks in self._watchers.values())


def deliver(sinks: Iterable[NotificationSink], notification: TransferNotification) -> int:
    """
    Deliver a notification to each sink.

    A failing sink is logged and skipped so the others still receive the event.

    Returns:
        Number of sinks that accepted the notification
    """
    delivered = 0
    for sink in sinks:
        try:
            sink.notify(notification)
            delivered += 1
        except Exception as e:
            logger.warning(
                f"Failed to deliver {notification.event.value} for transfer "
                f"{notification.identifier[:8]} to {sink!r}: {e}"
            )
    return delivered
