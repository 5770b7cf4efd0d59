"""
Logging Configuration

Single stream handler on the root logger, installed once per process.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"

_configured = False


def configure_logging(level: str = "INFO") -> logging.Logger:
    """
    Configure root logging for the server.

    Calling it again only updates the level.

    Args:
        level: Level name such as "INFO" or "DEBUG"

    Returns:
        The application logger
    """
    global _configured

    root = logging.getLogger()
    root.setLevel(getattr(logging, (level or "INFO").upper(), logging.INFO))

    if not _configured:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

        # Engine.IO and Socket.IO log every packet at INFO
        logging.getLogger("engineio.server").setLevel(logging.WARNING)
        logging.getLogger("socketio.server").setLevel(logging.WARNING)
        _configured = True

    return logging.getLogger("quickdrop")
