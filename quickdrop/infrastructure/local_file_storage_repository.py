"""
Local File Storage Repository Implementation

Concrete implementation of IFileStorageRepository for the local filesystem.
Every transfer is a single flat file named after its identifier inside the
upload directory.
"""

import logging
import os
from pathlib import Path
from typing import BinaryIO, Optional

from quickdrop.domain.errors import FileTooLargeError, StorageError
from quickdrop.domain.transfers.storage_repository import (
    IFileStorageRepository,
    StoredFile,
)

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class LocalFileStorageRepository(IFileStorageRepository):
    """
    Local filesystem implementation of IFileStorageRepository.

    Attributes:
        base_path: Directory uploads are written to
    """

    def __init__(self, base_path: str = "./uploads"):
        """
        Initialize the local file storage repository.

        Args:
            base_path: Upload directory (created if missing)
        """
        self.base_path = Path(base_path).resolve()
        self._ensure_base_directory()

    def _ensure_base_directory(self) -> None:
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except PermissionError as e:
            raise PermissionError(
                f"Insufficient permissions to create upload directory: {self.base_path}"
            ) from e
        except OSError as e:
            raise OSError(f"Failed to create upload directory: {self.base_path}") from e

    def _resolve(self, name: str) -> Path:
        if not name or not name.strip() or Path(name).name != name or name in (".", ".."):
            raise ValueError(f"Invalid storage name: {name!r}")
        return self.base_path / name

    def save(self, name: str, content: BinaryIO, max_bytes: Optional[int] = None) -> StoredFile:
        """
        Stream content to <base_path>/<name>.

        At most max_bytes + 1 bytes are read so an oversized upload is
        detected without consuming the whole stream; the partial file is
        removed before FileTooLargeError is raised.
        """
        path = self._resolve(name)
        written = 0
        limit = None if max_bytes is None else max_bytes + 1

        try:
            with open(path, "wb") as f:
                while limit is None or written < limit:
                    size = CHUNK_SIZE if limit is None else min(CHUNK_SIZE, limit - written)
                    chunk = content.read(size)
                    if not chunk:
                        break
                    f.write(chunk)
                    written += len(chunk)
        except OSError as e:
            self._remove_quietly(path)
            raise StorageError(f"Failed to save file: {e}", original_error=e) from e

        if max_bytes is not None and written > max_bytes:
            self._remove_quietly(path)
            raise FileTooLargeError(max_bytes)

        return StoredFile(location=str(path), size=written)

    def open(self, location: str) -> Optional[BinaryIO]:
        try:
            return open(location, "rb")
        except FileNotFoundError:
            return None
        except IsADirectoryError:
            return None

    def delete(self, location: str) -> bool:
        try:
            os.remove(location)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Error removing file {location}: {e}")
            return False
        return True

    def exists(self, location: str) -> bool:
        try:
            return Path(location).is_file()
        except (OSError, ValueError):
            return False

    def _remove_quietly(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove partial upload {path}: {e}")
