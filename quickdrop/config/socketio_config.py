"""
SocketIO Configuration

Configures Flask-SocketIO for watcher connections.
"""

import logging

from flask_socketio import SocketIO

logger = logging.getLogger(__name__)

# Global SocketIO instance
socketio = None


def init_socketio(app, cors_allowed_origins="*"):
    """
    Initialize Flask-SocketIO.

    The threading async mode is used because expiry timers, uploads and
    downloads all run on ordinary threads; no monkey patching is involved.
    Transfers live in process memory, so no message queue is configured.

    Args:
        app: Flask application instance
        cors_allowed_origins: Allowed origins for the Socket.IO handshake

    Returns:
        SocketIO instance
    """
    global socketio

    try:
        socketio = SocketIO(
            app,
            cors_allowed_origins=cors_allowed_origins,
            async_mode="threading",
            logger=False,
            engineio_logger=False,
            ping_timeout=60,
            ping_interval=25,
        )

        logger.info("SocketIO initialized (threading mode)")
        return socketio

    except Exception as e:
        logger.error(f"Failed to initialize SocketIO: {e}")
        raise


def get_socketio():
    """
    Get the global SocketIO instance.

    Returns:
        SocketIO instance or None if not initialized
    """
    return socketio


def is_socketio_enabled():
    """
    Check if SocketIO is initialized.

    Returns:
        bool: True if SocketIO is available
    """
    return socketio is not None
