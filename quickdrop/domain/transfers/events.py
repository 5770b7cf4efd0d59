"""
Transfer Events

Immutable notifications delivered to watchers of a transfer.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class TransferEvent(str, Enum):
    """Kinds of events a watcher can receive."""

    # Terminal: the record is gone after these
    DELIVERED = "delivered"
    EXPIRED = "expired"
    GONE = "gone"

    # Non-terminal
    DOWNLOAD_STARTED = "download_started"

    @property
    def is_terminal(self) -> bool:
        return self is not TransferEvent.DOWNLOAD_STARTED


@dataclass(frozen=True)
class TransferNotification:
    """
    Event payload sent to watchers.

    Attributes:
        event: What happened
        identifier: Transfer the event refers to
    """
    event: TransferEvent
    identifier: str

    @property
    def is_terminal(self) -> bool:
        return self.event.is_terminal

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire shape watchers receive."""
        return {"event": self.event.value, "identifier": self.identifier}
