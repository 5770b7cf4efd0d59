"""Infrastructure layer for local storage and Socket.IO delivery."""

from .local_file_storage_repository import LocalFileStorageRepository
from .socketio_watcher import SocketIOWatcher

__all__ = [
    "LocalFileStorageRepository",
    "SocketIOWatcher",
]
