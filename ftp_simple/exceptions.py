from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .protocol import Response


class FTPError(Exception):
    """Base exception class for FTP operations

    All FTP-related exceptions should inherit from this class.
    """
    def __init__(self, message: str = "FTP operation error"):
        """Initialize exception with message

        Args:
            message: Error message
        """
        self.message = message
        super().__init__(self.message)


class FTPConnectionError(FTPError):
    """Connection-related exceptions

    Raised when the control or data connection cannot be opened, is
    reset, or is closed by the server while a reply is expected.
    """
    def __init__(self, message: str = "FTP connection error"):
        super().__init__(message)


class FTPProtocolError(FTPError):
    """Malformed server replies

    Raised for replies without a three-digit code and for PASV replies
    that carry no address.
    """
    def __init__(self, message: str = "FTP protocol error"):
        super().__init__(message)


class FTPListingError(FTPProtocolError):
    """Directory listing lines that name a file but cannot be parsed"""
    def __init__(self, message: str = "FTP listing error"):
        super().__init__(message)


class FTPReplyError(FTPError):
    """Negative reply to a command

    Only raised when the client is configured with ``raise_on_error``.
    """
    def __init__(self, response: "Response", message: Optional[str] = None):
        """Initialize exception with the offending reply

        Args:
            response: Reply that triggered the error
            message: Optional override for the error message
        """
        self.response = response
        super().__init__(message or f"{response.code} {response.message}")


class FTPAuthError(FTPReplyError):
    """Authentication rejected by the server"""


class FTPConfigError(FTPError):
    """Configuration-related exceptions"""
    def __init__(self, message: str = "FTP configuration error"):
        super().__init__(message)


class FTPStateError(FTPError):
    """Operation issued in the wrong session state"""
    def __init__(self, message: str = "FTP session state error"):
        super().__init__(message)
