"""
Transfer Entities

Domain entity for a pending one-time transfer.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TransferRecord:
    """
    Entity representing an uploaded file waiting for its single download.

    Records are immutable: they are created once at registration and only
    ever removed, never updated, so a reference obtained from the store is
    always a consistent snapshot.
    """
    identifier: str
    location: str
    display_name: str = ""
    created_at: datetime = field(default_factory=utcnow)
    ttl: timedelta = timedelta(minutes=10)

    @property
    def expires_at(self) -> datetime:
        return self.created_at + self.ttl

    def get_remaining_seconds(self, now: Optional[datetime] = None) -> int:
        """
        Get remaining seconds until expiration.

        Returns:
            Seconds remaining (0 once the TTL has elapsed)
        """
        remaining = self.expires_at - (now or utcnow())
        return max(0, int(remaining.total_seconds()))

    def download_name(self) -> str:
        """Name offered to the downloader, falling back to the identifier."""
        return self.display_name or self.identifier

    def to_dict(self) -> dict:
        """Public view of the record; the storage location is never exposed."""
        return {
            "identifier": self.identifier,
            "file_name": self.download_name(),
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "remaining_seconds": self.get_remaining_seconds(),
        }
