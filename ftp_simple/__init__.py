"""
FTP Simple - asynchronous FTP client.

This package provides a single-session FTP client that exchanges commands
over a control connection, optionally wrapped in TLS, and moves listings
and file payloads over passive-mode data connections.
"""

__version__ = "0.1.0"

from .client import FTPClient, create_ssl_context
from .config import FTPConfig
from .exceptions import (
    FTPError, FTPConnectionError, FTPProtocolError, FTPListingError,
    FTPReplyError, FTPAuthError, FTPConfigError, FTPStateError
)
from .listing import DirectoryEntry, month_to_number, parse_listing
from .log import LoggingConfig, setup_logging
from .protocol import PassiveEndpoint, Response, ResponseKind, parse_pasv
from .state import SessionState, SessionStats

__all__ = [
    "FTPClient",
    "FTPConfig",
    "create_ssl_context",
    "FTPError",
    "FTPConnectionError",
    "FTPProtocolError",
    "FTPListingError",
    "FTPReplyError",
    "FTPAuthError",
    "FTPConfigError",
    "FTPStateError",
    "DirectoryEntry",
    "month_to_number",
    "parse_listing",
    "LoggingConfig",
    "setup_logging",
    "PassiveEndpoint",
    "Response",
    "ResponseKind",
    "parse_pasv",
    "SessionState",
    "SessionStats",
]
