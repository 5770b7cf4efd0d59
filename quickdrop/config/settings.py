"""
Server Configuration

Loads QuickDrop settings from environment variables with sensible defaults.
"""

import hmac
import os
from datetime import timedelta
from typing import List, Optional

DEFAULT_PASSWORD = "demo"


class ConfigurationError(Exception):
    """Raised when configuration values are invalid."""
    pass


def _get_int(name: str, default: int) -> int:
    """Positive integer from the environment; anything else falls back to default."""
    value = os.getenv(name)
    if not value:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


class ServerConfig:
    """Application configuration."""

    def __init__(self):
        password = os.getenv("UPLOAD_PASSWORD", "")
        self.is_default_password = password in ("", DEFAULT_PASSWORD)
        self.upload_password = password or DEFAULT_PASSWORD

        self.upload_dir = os.getenv("UPLOAD_DIR", "./uploads")
        self.max_file_size_mb = _get_int("MAX_FILE_SIZE_MB", 100)
        self.file_expiry_minutes = _get_int("FILE_EXPIRY_MINUTES", 10)

        self.host = os.getenv("FLASK_HOST", "0.0.0.0")
        self.port = _get_int("PORT", 8088)
        self.debug = os.getenv("FLASK_DEBUG", "false").lower() == "true"
        self.api_version = os.getenv("API_VERSION", "v1")
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.cors_origins = os.getenv("CORS_ORIGINS", "*")

        # SocketIO configuration
        self.socketio_enabled = os.getenv("SOCKETIO_ENABLED", "true").lower() == "true"

    @property
    def max_file_bytes(self) -> int:
        return self.max_file_size_mb << 20

    @property
    def file_ttl(self) -> timedelta:
        return timedelta(minutes=self.file_expiry_minutes)

    def validate(self) -> None:
        """
        Check that all configuration values are usable.

        Raises:
            ConfigurationError: On the first invalid value
        """
        if not self.upload_password:
            raise ConfigurationError("upload password cannot be empty")
        if self.max_file_size_mb <= 0:
            raise ConfigurationError(
                f"max file size must be positive, got {self.max_file_size_mb}"
            )
        if self.file_expiry_minutes <= 0:
            raise ConfigurationError(
                f"file expiry minutes must be positive, got {self.file_expiry_minutes}"
            )
        if not self.upload_dir:
            raise ConfigurationError("upload directory cannot be empty")

    def check_password(self, provided: Optional[str]) -> bool:
        if not provided:
            return False
        return hmac.compare_digest(
            provided.encode("utf-8"), self.upload_password.encode("utf-8")
        )

    def public_dict(self) -> dict:
        """Non-sensitive settings exposed to the frontend."""
        return {
            "isDefaultPassword": self.is_default_password,
            "fileExpiryMinutes": self.file_expiry_minutes,
            "maxFileSizeMB": self.max_file_size_mb,
        }

    def log_summary(self) -> List[str]:
        """Configuration lines for the startup log, password masked."""
        return [
            "Password: ***" + (" (default)" if self.is_default_password else ""),
            f"Max file size: {self.max_file_size_mb} MB",
            f"File expiry: {self.file_expiry_minutes} minutes",
            f"Listen: {self.host}:{self.port}",
            f"Upload directory: {self.upload_dir}",
            f"SocketIO: {'enabled' if self.socketio_enabled else 'disabled'}",
        ]
