"""
Upload Result Value Object

Outcome of a successful upload, handed to the API layer for formatting.
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class UploadResult:
    """
    Attributes:
        identifier: Transfer identifier (the secret part of the download link)
        file_name: Name the downloader will receive
        file_size: Number of bytes stored
        expires_at: When the transfer expires if nobody downloads it
    """
    identifier: str
    file_name: str
    file_size: int
    expires_at: datetime
