"""
File Storage Repository Interface

Abstract interface for the bytes behind a transfer. The transfer store
only decides when bytes are deleted; implementations decide how they are
written, read and removed.

Contract Guarantees:
- save() writes the whole stream or nothing (partial files are removed)
- open() returns None for missing files instead of raising
- delete() is idempotent and never raises for a missing file
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO, Optional


@dataclass(frozen=True)
class StoredFile:
    """Result of writing an upload to storage."""
    location: str
    size: int


class IFileStorageRepository(ABC):
    """Contract for physical transfer storage."""

    @abstractmethod
    def save(self, name: str, content: BinaryIO, max_bytes: Optional[int] = None) -> StoredFile:
        """
        Write a stream under the given name.

        Args:
            name: Storage name (the transfer identifier)
            content: Binary stream positioned at its start
            max_bytes: Reject the upload once more than this many bytes were read

        Returns:
            StoredFile with the location token and the number of bytes written

        Raises:
            FileTooLargeError: If the stream exceeds max_bytes
            StorageError: If the bytes could not be written
        """
        pass  # pragma: no cover

    @abstractmethod
    def open(self, location: str) -> Optional[BinaryIO]:
        """Open stored bytes for reading, or None if they are missing."""
        pass  # pragma: no cover

    @abstractmethod
    def delete(self, location: str) -> bool:
        """
        Remove stored bytes.

        Returns:
            True if the bytes are gone (including when they never existed),
            False if removal failed
        """
        pass  # pragma: no cover

    @abstractmethod
    def exists(self, location: str) -> bool:
        """Check whether bytes exist at location."""
        pass  # pragma: no cover
