"""Configuration: environment settings, logging and Socket.IO setup."""

from .settings import ConfigurationError, ServerConfig

__all__ = ["ConfigurationError", "ServerConfig"]
