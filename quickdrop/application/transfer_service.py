"""
Transfer Service

Application service that orchestrates uploads, one-time downloads and
watcher subscriptions around the transfer store.
"""

import logging
import threading
from datetime import timedelta
from typing import BinaryIO, Callable, Iterator, Optional, Tuple

from quickdrop.domain.errors import StorageError, TransferNotFoundError
from quickdrop.domain.transfers import (
    IFileStorageRepository,
    NotificationSink,
    TransferEvent,
    TransferRecord,
    TransferStore,
    generate_identifier,
)

from .upload_result import UploadResult

logger = logging.getLogger(__name__)

DOWNLOAD_CHUNK_SIZE = 64 * 1024


class DownloadStream:
    """
    Chunked iterator over the bytes of a consumed transfer.

    WSGI servers call close() on the response iterable once the response
    is finished, including when no chunk was ever read (HEAD, aborted
    connections). close() releases the file and runs on_close exactly once.
    """

    def __init__(self, stream: BinaryIO, on_close: Callable[[], None]):
        self._stream = stream
        self._on_close = on_close
        self._lock = threading.Lock()
        self.closed = False

    def __iter__(self) -> Iterator[bytes]:
        return self

    def __next__(self) -> bytes:
        if self.closed:
            raise StopIteration
        chunk = self._stream.read(DOWNLOAD_CHUNK_SIZE)
        if not chunk:
            self.close()
            raise StopIteration
        return chunk

    def close(self) -> None:
        with self._lock:
            if self.closed:
                return
            self.closed = True
        try:
            self._stream.close()
        finally:
            self._on_close()


class TransferService:
    """
    Coordinates the storage repository and the transfer store.

    Responsibilities:
    - Upload: generate identifier, write bytes, register the transfer
    - Download: consume the transfer, stream its bytes, delete them once
    - Watchers: subscribe/unsubscribe notification sinks
    """

    def __init__(
        self,
        store: TransferStore,
        storage: IFileStorageRepository,
        ttl: timedelta,
        max_file_bytes: Optional[int] = None,
    ):
        """
        Args:
            store: Transfer store shared by every request
            storage: Repository holding the uploaded bytes
            ttl: Lifetime of an unclaimed transfer
            max_file_bytes: Upload size limit (None for unlimited)
        """
        self.store = store
        self.storage = storage
        self.ttl = ttl
        self.max_file_bytes = max_file_bytes

    def upload(self, content: BinaryIO, filename: str = "") -> UploadResult:
        """
        Store an upload and register it for a single download.

        Raises:
            EntropyUnavailableError: If no identifier could be generated
            FileTooLargeError: If the content exceeds max_file_bytes
            StorageError: If the bytes could not be written
        """
        identifier = generate_identifier()
        stored = self.storage.save(identifier, content, self.max_file_bytes)

        try:
            self.store.register(stored.location, filename, self.ttl, identifier=identifier)
        except Exception:
            self.storage.delete(stored.location)
            raise

        record = self.store.get(identifier)
        expires_at = record.expires_at if record else None
        logger.info(
            f"File uploaded: {identifier[:8]} (original: {filename or '-'}, size: {stored.size} bytes)"
        )
        return UploadResult(
            identifier=identifier,
            file_name=filename or identifier,
            file_size=stored.size,
            expires_at=expires_at,
        )

    def get_transfer(self, identifier: str) -> TransferRecord:
        """
        Raises:
            TransferNotFoundError: If the transfer is not live
        """
        record = self.store.get(identifier)
        if record is None:
            raise TransferNotFoundError(f"Transfer not found: {identifier[:8]}")
        return record

    def start_download(self, identifier: str) -> Tuple[TransferRecord, Iterator[bytes]]:
        """
        Claim a transfer and return an iterator over its bytes.

        Watchers get download_started before the transfer is consumed and
        delivered right after. The bytes are deleted when the iterator is
        exhausted or closed, whether or not streaming completed.

        Raises:
            TransferNotFoundError: If the transfer was already consumed or expired
            StorageError: If the bytes of a claimed transfer are missing
        """
        self.get_transfer(identifier)
        self.store.broadcast(identifier, TransferEvent.DOWNLOAD_STARTED)

        record = self.store.consume(identifier)
        if record is None:
            raise TransferNotFoundError(f"Transfer not found: {identifier[:8]}")

        stream = self.storage.open(record.location)
        if stream is None:
            self.finish_download(record)
            raise StorageError(f"Bytes missing for transfer {identifier[:8]}")

        return record, DownloadStream(stream, lambda: self.finish_download(record))

    def finish_download(self, record: TransferRecord) -> None:
        """Delete the bytes of a consumed transfer. Failures are logged only."""
        if self.storage.delete(record.location):
            logger.info(f"File downloaded and deleted: {record.identifier[:8]}")
        else:
            logger.error(f"Failed to delete downloaded file for {record.identifier[:8]}")

    def watch(self, identifier: str, sink: NotificationSink) -> bool:
        """Subscribe a sink. Returns False when the transfer was already gone."""
        return self.store.subscribe(identifier, sink)

    def unwatch(self, identifier: str, sink: NotificationSink) -> bool:
        return self.store.unsubscribe(identifier, sink)
