"""
Application Factory

Creates and configures the QuickDrop Flask application with all dependencies.
This factory pattern improves testability by allowing dependency injection
and configuration overrides.
"""

import logging
import os
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS

from quickdrop.api.upload_handler import handle_upload
from quickdrop.api.websocket_events import register_socketio_events
from quickdrop.application import TransferService
from quickdrop.config import ServerConfig
from quickdrop.config.logging_config import configure_logging
from quickdrop.config.socketio_config import init_socketio, is_socketio_enabled
from quickdrop.domain.transfers import ExpiryScheduler, TransferStore
from quickdrop.infrastructure import LocalFileStorageRepository
from quickdrop.tasks import cleanup_orphaned_files

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[ServerConfig] = None,
    scheduler: Optional[ExpiryScheduler] = None,
) -> Flask:
    """
    Create and configure Flask application.

    Args:
        config: Server configuration, read from the environment if None
        scheduler: Expiry scheduler override (tests pass one with manual timers)

    Returns:
        Configured Flask application

    Raises:
        ConfigurationError: If the configuration is invalid
    """
    if config is None:
        config = ServerConfig()

    configure_logging(config.log_level)
    config.validate()

    # Create Flask app
    app = Flask(__name__)
    app.server_config = config

    # Configure CORS
    origins = config.cors_origins
    if origins != "*":
        origins = [origin.strip() for origin in origins.split(",") if origin.strip()]
    CORS(
        app,
        resources={
            r"/*": {
                "origins": origins,
                "methods": ["GET", "POST", "PUT", "OPTIONS"],
                "allow_headers": ["Content-Type", "X-Upload-Password"],
                "expose_headers": ["Content-Type", "Content-Disposition"],
                "max_age": 3600,
            }
        },
    )

    # Initialize services
    _initialize_services(app, config, scheduler)

    # Initialize SocketIO (optional)
    _initialize_socketio(app, config)

    # Register blueprints
    _register_blueprints(app, config)

    # Register root upload shortcuts for curl
    _register_upload_shortcuts(app)

    # Register health check endpoint
    _register_health_endpoint(app)

    for line in config.log_summary():
        logger.info(line)

    return app


def _initialize_services(
    app: Flask, config: ServerConfig, scheduler: Optional[ExpiryScheduler]
) -> None:
    """
    Build the storage repository, transfer store and transfer service and
    attach them to the app.

    Files left over from a previous run are swept first; the store always
    starts empty.

    Args:
        app: Flask application
        config: Server configuration
        scheduler: Expiry scheduler override
    """
    os.makedirs(config.upload_dir, exist_ok=True)

    try:
        cleanup_orphaned_files(config.upload_dir, config.file_expiry_minutes)
    except Exception as e:
        logger.warning(f"Startup cleanup failed: {e}")

    storage = LocalFileStorageRepository(config.upload_dir)
    store = TransferStore(storage, scheduler or ExpiryScheduler())
    transfer_service = TransferService(
        store,
        storage,
        ttl=config.file_ttl,
        max_file_bytes=config.max_file_bytes,
    )

    # Attach services directly to app for access in API routes and events
    app.transfer_store = store
    app.transfer_service = transfer_service

    logger.info("Transfer services initialized")


def _initialize_socketio(app: Flask, config: ServerConfig) -> None:
    """
    Initialize Flask-SocketIO and its event handlers when enabled.

    Args:
        app: Flask application
        config: Server configuration
    """
    app.socketio = None
    if not config.socketio_enabled:
        logger.info("SocketIO disabled - transfer watching unavailable")
        return

    try:
        app.socketio = init_socketio(app, cors_allowed_origins=config.cors_origins)
        register_socketio_events(app)
    except Exception as e:
        logger.warning(f"Could not initialize SocketIO: {e}")
        logger.warning("WebSocket support disabled - transfer watching unavailable")


def _register_blueprints(app: Flask, config: ServerConfig) -> None:
    """
    Register API blueprints.

    Args:
        app: Flask application
        config: Server configuration
    """
    from quickdrop.api.v1 import api_v1_bp

    app.register_blueprint(api_v1_bp)

    logger.info(
        f"API {config.api_version} registered at /api/{config.api_version} "
        f"with Swagger UI at /api/{config.api_version}/docs"
    )


def _register_upload_shortcuts(app: Flask) -> None:
    """
    Register root-level upload routes.

    `curl -F file=@x http://host/` and `curl -T x http://host/` work
    without knowing the API prefix.

    Args:
        app: Flask application
    """

    @app.route("/", methods=["POST"])
    def upload_root():
        body, status_code = handle_upload()
        return jsonify(body), status_code

    @app.route("/<string:filename>", methods=["PUT", "POST"])
    def upload_named(filename):
        body, status_code = handle_upload(filename)
        return jsonify(body), status_code


def _get_health_status(app: Flask) -> tuple[dict, int]:
    """
    Get health status of the transfer store and SocketIO.

    Args:
        app: Flask application instance

    Returns:
        Tuple of (health_status_dict, http_status_code)
    """
    health_status = {
        "status": "ok",
        "message": "quickdrop ready",
        "pending_transfers": 0,
        "socketio": "unknown",
    }

    store = getattr(app, "transfer_store", None)
    if store is not None:
        health_status["pending_transfers"] = store.pending_count()
    else:
        health_status["status"] = "degraded"

    # Check SocketIO availability (optional - not critical)
    if getattr(app, "socketio", None) is not None and is_socketio_enabled():
        health_status["socketio"] = "available"
    else:
        health_status["socketio"] = "not_configured"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code


def _register_health_endpoint(app: Flask) -> None:
    """
    Register health check endpoint.

    Args:
        app: Flask application
    """

    @app.route("/health", methods=["GET"])
    def health():
        """
        Health check endpoint.
        Returns overall health status of the application.
        """
        health_status, status_code = _get_health_status(app)
        return jsonify(health_status), status_code
