"""
API Models for request/response validation and Swagger documentation
"""

from flask_restx import fields

from quickdrop.api.v1 import api

# =============================================================================
# Request Models
# =============================================================================

login_request = api.model(
    "LoginRequest",
    {
        "password": fields.String(
            required=False,
            description="Upload password (the X-Upload-Password header is preferred)",
            example="demo",
        )
    },
)

# =============================================================================
# Response Models
# =============================================================================

upload_response = api.model(
    "UploadResponse",
    {
        "identifier": fields.String(description="Transfer identifier"),
        "file_name": fields.String(description="Name the downloader will receive"),
        "file_size": fields.Integer(description="Stored size in bytes"),
        "file_size_display": fields.String(
            description="Human-readable size", example="1.5 MB"
        ),
        "download_url": fields.String(description="One-time download URL"),
        "curl_command": fields.String(description="Ready-to-run cURL command"),
        "expires_at": fields.String(
            description="When the transfer expires if unclaimed (ISO timestamp)"
        ),
    },
)

transfer_response = api.model(
    "TransferResponse",
    {
        "identifier": fields.String(description="Transfer identifier"),
        "file_name": fields.String(description="Name the downloader will receive"),
        "created_at": fields.String(description="Upload time (ISO timestamp)"),
        "expires_at": fields.String(description="Expiry time (ISO timestamp)"),
        "remaining_seconds": fields.Integer(description="Seconds until expiry", min=0),
    },
)

login_response = api.model(
    "LoginResponse",
    {"success": fields.Boolean(description="Whether the password was accepted")},
)

config_response = api.model(
    "ConfigResponse",
    {
        "isDefaultPassword": fields.Boolean(
            description="True when the server still uses the default password"
        ),
        "fileExpiryMinutes": fields.Integer(description="Transfer lifetime in minutes"),
        "maxFileSizeMB": fields.Integer(description="Upload size limit in MB"),
    },
)

error_response = api.model(
    "ErrorResponse",
    {
        "error": fields.String(description="Error category"),
        "title": fields.String(description="Short error title"),
        "message": fields.String(description="User-facing error message"),
        "action": fields.String(description="Suggested next step"),
    },
)
