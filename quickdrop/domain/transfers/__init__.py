"""
Transfers Domain

In-memory registry of one-time transfers: identifiers, records, watchers,
expiry scheduling and the store that ties them together.
"""

from .entities import TransferRecord
from .events import TransferEvent, TransferNotification
from .identifiers import generate_identifier, is_valid_identifier
from .scheduler import ExpiryScheduler
from .storage_repository import IFileStorageRepository, StoredFile
from .store import TransferStore
from .watchers import NotificationSink, WatcherRegistry

__all__ = [
    "TransferRecord",
    "TransferEvent",
    "TransferNotification",
    "generate_identifier",
    "is_valid_identifier",
    "ExpiryScheduler",
    "IFileStorageRepository",
    "StoredFile",
    "TransferStore",
    "NotificationSink",
    "WatcherRegistry",
]
