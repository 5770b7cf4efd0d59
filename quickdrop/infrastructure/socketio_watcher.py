"""
Socket.IO Watcher

Notification sink that forwards transfer events to one Socket.IO client.
"""

import logging

from quickdrop.domain.errors import NotificationDeliveryError
from quickdrop.domain.transfers.events import TransferNotification
from quickdrop.domain.transfers.watchers import NotificationSink

logger = logging.getLogger(__name__)

TRANSFER_EVENT = "transfer_event"


class SocketIOWatcher(NotificationSink):
    """
    Sink bound to a single Socket.IO session.

    After a terminal event the client is disconnected, so a watcher page
    sees exactly one final message followed by the close.

    Two watchers are equal when they point at the same session and
    namespace, which lets a disconnect handler unsubscribe with a freshly
    built instance.
    """

    def __init__(self, socketio, sid: str, namespace: str = "/", close_on_terminal: bool = True):
        """
        Args:
            socketio: flask_socketio.SocketIO instance
            sid: Session id of the watching client
            namespace: Socket.IO namespace of the session
            close_on_terminal: Disconnect the client after a terminal event
        """
        self.socketio = socketio
        self.sid = sid
        self.namespace = namespace
        self.close_on_terminal = close_on_terminal

    def notify(self, notification: TransferNotification) -> None:
        try:
            self.socketio.emit(
                TRANSFER_EVENT,
                notification.to_dict(),
                to=self.sid,
                namespace=self.namespace,
            )
        except Exception as e:
            raise NotificationDeliveryError(
                f"Could not emit to session {self.sid}: {e}", original_error=e
            ) from e

        if notification.is_terminal and self.close_on_terminal:
            self._disconnect()

    def _disconnect(self) -> None:
        try:
            self.socketio.server.disconnect(self.sid, namespace=self.namespace)
        except Exception as e:
            logger.debug(f"Session {self.sid} already closed: {e}")

    def __eq__(self, other) -> bool:
        if not isinstance(other, SocketIOWatcher):
            return NotImplemented
        return (self.sid, self.namespace) == (other.sid, other.namespace)

    def __hash__(self) -> int:
        return hash((self.sid, self.namespace))

    def __repr__(self) -> str:
        return f"SocketIOWatcher(sid={self.sid!r}, namespace={self.namespace!r})"
