"""
main.py

QuickDrop: a one-time file transfer server. Upload a file, share the link,
and the file is deleted after its first download or when it expires.

Dependencies:
  - Python packages: Flask, flask-restx, flask-cors, flask-socketio

Notes:
  - Transfers are held in process memory; run a single process
  - API v1 endpoints available at /api/v1/ with Swagger docs at /api/v1/docs
  - Uses application factory pattern for better testability
"""

from app_factory import create_app
from quickdrop.config.socketio_config import get_socketio, is_socketio_enabled

app = create_app()

if __name__ == "__main__":
    config = app.server_config

    # Use SocketIO.run if available, otherwise fall back to app.run
    if is_socketio_enabled():
        socketio = get_socketio()
        socketio.run(
            app,
            host=config.host,
            port=config.port,
            debug=config.debug,
            use_reloader=False,
            allow_unsafe_werkzeug=True,
        )
    else:
        app.run(host=config.host, port=config.port, debug=config.debug, use_reloader=False)
