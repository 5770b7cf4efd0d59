"""
API Namespaces - Organized endpoint groups
"""

import unicodedata
from urllib.parse import quote

from flask import Response, current_app, request
from flask_restx import Namespace, Resource

from quickdrop.api.upload_handler import handle_upload, provided_password
from quickdrop.api.v1.models import (
    config_response,
    error_response,
    login_request,
    login_response,
    transfer_response,
    upload_response,
)
from quickdrop.domain.errors import (
    ErrorCategory,
    StorageError,
    TransferNotFoundError,
    create_error_response,
)
from quickdrop.domain.transfers import is_valid_identifier


def sanitize_filename(name: str) -> str:
    """Remove control characters that could break or inject into headers."""
    return "".join(ch for ch in name if ord(ch) >= 32 and ord(ch) != 127)


def content_disposition_options(name: str) -> dict:
    """
    Options for an attachment Content-Disposition header.

    Non-ASCII names get an ASCII approximation plus an RFC 5987 filename*.
    """
    try:
        name.encode("ascii")
    except UnicodeEncodeError:
        simple = unicodedata.normalize("NFKD", name)
        simple = simple.encode("ascii", "ignore").decode("ascii")
        return {
            "filename": simple or "download",
            "filename*": f"UTF-8''{quote(name, safe='!#$&+^`|~')}",
        }
    return {"filename": name}


def _attachment_response(record, chunks=()):
    response = Response(chunks, mimetype="application/octet-stream")
    response.headers.set(
        "Content-Disposition",
        "attachment",
        **content_disposition_options(sanitize_filename(record.download_name())),
    )
    response.headers["Cache-Control"] = "no-store"
    return response


def _not_found(identifier: str):
    return create_error_response(
        ErrorCategory.TRANSFER_NOT_FOUND,
        f"Transfer {identifier[:8]} not found",
        status_code=404,
    )


# =============================================================================
# Transfer Namespace - Uploads and pending transfer metadata
# =============================================================================

transfer_ns = Namespace("transfers", description="Upload and transfer operations")


@transfer_ns.route("/")
class TransferCollection(Resource):
    """Upload a file"""

    @transfer_ns.doc("upload_file")
    @transfer_ns.response(201, "Uploaded", upload_response)
    @transfer_ns.response(400, "Bad Request", error_response)
    @transfer_ns.response(401, "Unauthorized", error_response)
    @transfer_ns.response(413, "File Too Large", error_response)
    @transfer_ns.response(500, "Internal Server Error", error_response)
    def post(self):
        """
        Upload a file for a single download

        Accepts multipart/form-data (the first file part is used) or a raw
        request body. The password goes in the X-Upload-Password header or a
        'password' form field.
        """
        return handle_upload()


@transfer_ns.route("/<string:name>")
@transfer_ns.param("name", "Transfer identifier (GET) or file name (PUT/POST)")
class TransferItem(Resource):
    """Raw uploads by file name and pending transfer lookup"""

    @transfer_ns.doc("get_transfer")
    @transfer_ns.response(200, "Success", transfer_response)
    @transfer_ns.response(404, "Transfer Not Found", error_response)
    def get(self, name):
        """
        Get a pending transfer

        Returns the file name and expiry of a transfer that has not been
        downloaded yet. Looking a transfer up does not consume it.
        """
        if not is_valid_identifier(name):
            return _not_found(name)

        try:
            record = current_app.transfer_service.get_transfer(name)
        except TransferNotFoundError:
            current_app.logger.debug(f"[TRANSFER_V1] Lookup of unknown transfer {name[:8]}")
            return _not_found(name)

        return record.to_dict(), 200

    @transfer_ns.doc("upload_named_file")
    @transfer_ns.response(201, "Uploaded", upload_response)
    @transfer_ns.response(400, "Bad Request", error_response)
    @transfer_ns.response(401, "Unauthorized", error_response)
    @transfer_ns.response(413, "File Too Large", error_response)
    def put(self, name):
        """
        Upload a raw request body under the given file name

        Suited to `curl -T file.txt`.
        """
        return handle_upload(name)

    @transfer_ns.doc("post_named_file")
    @transfer_ns.response(201, "Uploaded", upload_response)
    @transfer_ns.response(401, "Unauthorized", error_response)
    def post(self, name):
        """Same as PUT"""
        return handle_upload(name)


# =============================================================================
# Download Namespace - One-time downloads
# =============================================================================

download_ns = Namespace("downloads", description="Download operations")


@download_ns.route("/<string:identifier>")
@download_ns.param("identifier", "The transfer identifier")
class DownloadFile(Resource):
    """Download a file exactly once"""

    @download_ns.doc("download_file")
    @download_ns.response(200, "File content")
    @download_ns.response(404, "Transfer Not Found", error_response)
    @download_ns.response(500, "Internal Server Error", error_response)
    def get(self, identifier):
        """
        Download a transfer

        The first request streams the file and deletes it from the server.
        Every later request, and any request after expiry, gets a 404.
        Watchers are told the file was delivered.
        """
        if not is_valid_identifier(identifier):
            return _not_found(identifier)

        try:
            current_app.logger.debug(
                f"[DOWNLOAD_V1] Claiming transfer {identifier[:8]}..."
            )
            record, chunks = current_app.transfer_service.start_download(identifier)

        except TransferNotFoundError:
            current_app.logger.info(
                f"[DOWNLOAD_V1] Transfer not found or already claimed: {identifier[:8]}"
            )
            return _not_found(identifier)
        except StorageError as e:
            current_app.logger.error(f"[DOWNLOAD_V1] {e}")
            return create_error_response(
                ErrorCategory.SYSTEM_ERROR, str(e), status_code=500
            )
        except Exception as e:
            current_app.logger.exception(
                f"[DOWNLOAD_V1] Error serving transfer {identifier[:8]}: {str(e)}"
            )
            return create_error_response(
                ErrorCategory.SYSTEM_ERROR,
                f"Internal server error: {str(e)}",
                status_code=500,
            )

        current_app.logger.info(
            f"[DOWNLOAD_V1] Serving {record.download_name()} for {identifier[:8]}"
        )

        return _attachment_response(record, chunks)

    @download_ns.doc("check_download")
    @download_ns.response(200, "Transfer is available")
    @download_ns.response(404, "Transfer Not Found")
    def head(self, identifier):
        """
        Check that a transfer can still be downloaded

        Answers with the download headers only. The transfer is not consumed.
        """
        if not is_valid_identifier(identifier):
            return _not_found(identifier)

        try:
            record = current_app.transfer_service.get_transfer(identifier)
        except TransferNotFoundError:
            return _not_found(identifier)

        return _attachment_response(record)


# =============================================================================
# Auth Namespace - Password check for the upload page
# =============================================================================

auth_ns = Namespace("auth", description="Authentication operations")


@auth_ns.route("/login")
class Login(Resource):
    """Validate the upload password"""

    @auth_ns.doc("login")
    @auth_ns.expect(login_request)
    @auth_ns.response(200, "Password accepted", login_response)
    @auth_ns.response(401, "Unauthorized", error_response)
    def post(self):
        """
        Check the upload password

        Lets the web client verify a password before the first upload.
        """
        password = provided_password()
        if not password and request.is_json:
            password = (request.get_json(silent=True) or {}).get("password")

        if current_app.server_config.check_password(password):
            return {"success": True}, 200

        current_app.logger.warning(
            f"[AUTH_V1] Failed login attempt from {request.remote_addr}"
        )
        return create_error_response(
            ErrorCategory.UNAUTHORIZED, "Invalid password", status_code=401
        )


# =============================================================================
# Config Namespace - Public settings
# =============================================================================

config_ns = Namespace("config", description="Public configuration")


@config_ns.route("")
class PublicConfig(Resource):
    """Non-sensitive server settings"""

    @config_ns.doc("get_config")
    @config_ns.response(200, "Success", config_response)
    def get(self):
        """Get the settings the web client needs to render the upload page"""
        return current_app.server_config.public_dict(), 200
