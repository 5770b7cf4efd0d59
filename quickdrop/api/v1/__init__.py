"""
API v1 - QuickDrop REST API

This module contains the versioned API endpoints with OpenAPI/Swagger documentation.
"""

import os

from flask import Blueprint
from flask_restx import Api

# Get API version from environment
API_VERSION = os.getenv("API_VERSION", "v1")

# Create blueprint for API v1
api_v1_bp = Blueprint("api_v1", __name__, url_prefix=f"/api/{API_VERSION}")

# Initialize Flask-RESTX API with Swagger documentation
api = Api(
    api_v1_bp,
    version="1.0",
    title="QuickDrop API",
    description="One-time file transfer API: upload once, download once",
    doc="/docs",  # Swagger UI will be available at /api/v1/docs
    contact="QuickDrop Team",
    license="MIT",
)

# Import namespaces after api is created to avoid circular imports
from .namespaces import auth_ns, config_ns, download_ns, transfer_ns  # noqa: E402

# Register namespaces
api.add_namespace(transfer_ns, path="/transfers")
api.add_namespace(download_ns, path="/downloads")
api.add_namespace(auth_ns, path="/auth")
api.add_namespace(config_ns, path="/config")
