"""
Upload Handler

Shared request handling for every upload route: the versioned API
endpoints and the root shortcuts used by `curl -T` and `curl -F`.
"""

import os
from typing import Optional, Tuple

from flask import current_app, request

from quickdrop.domain.errors import (
    EntropyUnavailableError,
    ErrorCategory,
    FileTooLargeError,
    StorageError,
    create_error_response,
)

PASSWORD_HEADER = "X-Upload-Password"


def format_file_size(size: int) -> str:
    """Format a byte count as B, KB, MB, ... with one decimal above 1 KB."""
    unit = 1024
    if size < unit:
        return f"{size} B"
    div, exp = unit, 0
    n = size // unit
    while n >= unit:
        div *= unit
        exp += 1
        n //= unit
    return f"{size / div:.1f} {'KMGTPE'[exp]}B"


def is_multipart_request() -> bool:
    return (request.mimetype or "").startswith("multipart/form-data")


def provided_password() -> Optional[str]:
    """
    Password from the X-Upload-Password header, else the 'password' form field.

    The form is only parsed for form submissions so raw bodies are left unread.
    """
    password = request.headers.get(PASSWORD_HEADER)
    if not password and request.mimetype in (
        "multipart/form-data",
        "application/x-www-form-urlencoded",
    ):
        password = request.form.get("password")
    return password


def build_download_url(identifier: str) -> str:
    """Absolute download URL, honouring X-Forwarded-Proto behind a proxy."""
    from quickdrop.api.v1 import api_v1_bp

    scheme = request.headers.get("X-Forwarded-Proto") or request.scheme
    return f"{scheme}://{request.host}{api_v1_bp.url_prefix}/downloads/{identifier}"


def _clean_name(name: Optional[str]) -> str:
    if not name:
        return ""
    return os.path.basename(name.replace("\\", "/"))


def handle_upload(filename: Optional[str] = None) -> Tuple[dict, int]:
    """
    Authenticate, store and register one upload.

    Multipart requests use their first file part; anything else is a raw
    body named by `filename` (taken from the URL path).

    Returns:
        Tuple of (response_dict, http_status_code)
    """
    config = current_app.server_config
    service = current_app.transfer_service

    if not config.check_password(provided_password()):
        current_app.logger.warning(
            f"[UPLOAD_V1] Upload attempt with invalid password from {request.remote_addr}"
        )
        return create_error_response(
            ErrorCategory.UNAUTHORIZED, "Invalid or missing password", status_code=401
        )

    if is_multipart_request():
        file_part = next(iter(request.files.values()), None)
        if file_part is None:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST,
                "No file part in multipart form",
                status_code=400,
            )
        display_name = _clean_name(file_part.filename)
        content = file_part.stream
    else:
        declared = request.content_length
        if declared is not None and declared > config.max_file_bytes:
            current_app.logger.warning(
                f"[UPLOAD_V1] Rejected upload: Content-Length {declared} exceeds "
                f"max {config.max_file_bytes} bytes"
            )
            return create_error_response(
                ErrorCategory.FILE_TOO_LARGE,
                f"Content-Length {declared} exceeds limit",
                status_code=413,
            )
        if not declared and not request.environ.get("wsgi.input_terminated"):
            return create_error_response(
                ErrorCategory.INVALID_REQUEST, "Empty request body", status_code=400
            )
        display_name = _clean_name(filename)
        content = request.stream

    try:
        result = service.upload(content, display_name)

    except FileTooLargeError as e:
        current_app.logger.warning(f"[UPLOAD_V1] Rejected upload: {e}")
        return create_error_response(
            ErrorCategory.FILE_TOO_LARGE, str(e), status_code=413
        )
    except (EntropyUnavailableError, StorageError) as e:
        current_app.logger.error(f"[UPLOAD_V1] Upload failed: {e}", exc_info=True)
        return create_error_response(
            ErrorCategory.SYSTEM_ERROR, str(e), status_code=500
        )
    except Exception as e:
        current_app.logger.exception(f"[UPLOAD_V1] Unexpected upload error: {e}")
        return create_error_response(
            ErrorCategory.SYSTEM_ERROR,
            f"Unexpected error: {str(e)}",
            status_code=500,
        )

    download_url = build_download_url(result.identifier)
    return {
        "identifier": result.identifier,
        "file_name": result.file_name,
        "file_size": result.file_size,
        "file_size_display": format_file_size(result.file_size),
        "download_url": download_url,
        "curl_command": f'curl -o "{result.file_name}" {download_url}',
        "expires_at": result.expires_at.isoformat() if result.expires_at else None,
    }, 201
