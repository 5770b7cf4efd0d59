"""
WebSocket Event Handlers

Handles Socket.IO connections of clients watching a transfer, so an
uploader learns when their file was downloaded or expired.
"""

import logging
import threading
from typing import Dict, Set

from flask import current_app, request
from flask_socketio import emit

from quickdrop.config.socketio_config import get_socketio
from quickdrop.infrastructure.socketio_watcher import SocketIOWatcher

logger = logging.getLogger(__name__)


class WatchSessions:
    """Identifiers each Socket.IO session is watching, for cleanup on disconnect."""

    def __init__(self):
        self._sessions: Dict[str, Set[str]] = {}
        self._lock = threading.Lock()

    def add(self, sid: str, identifier: str) -> bool:
        """Returns False if the session was already watching the identifier."""
        with self._lock:
            identifiers = self._sessions.setdefault(sid, set())
            if identifier in identifiers:
                return False
            identifiers.add(identifier)
            return True

    def discard(self, sid: str, identifier: str) -> None:
        with self._lock:
            identifiers = self._sessions.get(sid)
            if identifiers is None:
                return
            identifiers.discard(identifier)
            if not identifiers:
                del self._sessions[sid]

    def pop(self, sid: str) -> Set[str]:
        with self._lock:
            return self._sessions.pop(sid, set())

    def watching(self, sid: str) -> Set[str]:
        with self._lock:
            return set(self._sessions.get(sid, ()))


def _identifier_from(data) -> str:
    if not isinstance(data, dict):
        return ""
    return str(data.get("identifier") or "").strip()


def register_socketio_events(app):
    """
    Register WebSocket event handlers with the Flask-SocketIO instance.

    Args:
        app: Flask application instance

    Returns:
        The WatchSessions tracker, or None when SocketIO is not initialized
    """
    socketio = get_socketio()

    if socketio is None:
        logger.warning("SocketIO not initialized, skipping event registration")
        return None

    sessions = WatchSessions()
    app.watch_sessions = sessions

    def _watcher(sid: str) -> SocketIOWatcher:
        return SocketIOWatcher(socketio, sid)

    @socketio.on("connect")
    def handle_connect():
        """Handle client connection."""
        logger.debug(f"Client connected: {request.sid}")

    @socketio.on("disconnect")
    def handle_disconnect(reason=None):
        """Drop every subscription held by the departing client."""
        client_id = request.sid
        identifiers = sessions.pop(client_id)
        service = current_app.transfer_service
        for identifier in identifiers:
            service.unwatch(identifier, _watcher(client_id))
        logger.debug(
            f"Client disconnected: {client_id} ({len(identifiers)} subscription(s) removed)"
        )

    @socketio.on("watch_transfer")
    def handle_watch_transfer(data):
        """
        Watch a transfer until it is downloaded or expires.

        Args:
            data: dict with 'identifier' field
        """
        identifier = _identifier_from(data)
        if not identifier:
            emit("error", {"message": "Missing identifier"})
            return

        client_id = request.sid
        service = current_app.transfer_service

        if not sessions.add(client_id, identifier):
            logger.debug(f"Client {client_id} already watching {identifier[:8]}")
        elif not service.watch(identifier, _watcher(client_id)):
            # The watcher was already sent "gone" and disconnected
            sessions.discard(client_id, identifier)
            logger.info(f"Client {client_id} watched finished transfer {identifier[:8]}")
            return
        else:
            logger.info(f"Client {client_id} watching transfer {identifier[:8]}")

        record = service.store.get(identifier)
        if record is None:
            return

        emit(
            "watching",
            {
                "identifier": identifier,
                "remaining_seconds": record.get_remaining_seconds(),
            },
        )

    @socketio.on("unwatch_transfer")
    def handle_unwatch_transfer(data):
        """
        Stop watching a transfer.

        Args:
            data: dict with 'identifier' field
        """
        identifier = _identifier_from(data)
        if not identifier:
            emit("error", {"message": "Missing identifier"})
            return

        client_id = request.sid
        sessions.discard(client_id, identifier)
        current_app.transfer_service.unwatch(identifier, _watcher(client_id))

        logger.info(f"Client {client_id} stopped watching transfer {identifier[:8]}")
        emit("unwatched", {"identifier": identifier})

    logger.info("SocketIO event handlers registered")
    return sessions
