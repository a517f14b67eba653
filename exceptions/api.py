"""
Exceptions raised by the HTTP client for the Pakety API.
"""

from .base import PaketyException


class CartApiException(PaketyException):
    """Base exception for failed calls to the remote API."""

    def __init__(self, message: str, method: str, path: str, details: dict | None = None):
        super().__init__(message, details={'method': method, 'path': path, **(details or {})})
        self.method = method
        self.path = path


class CartApiTransportException(CartApiException):
    """Raised when the request never reached the server or the response never came back."""

    def __init__(self, method: str, path: str, reason: str):
        super().__init__(
            f"{method} {path} failed: {reason}",
            method=method,
            path=path,
            details={'reason': reason}
        )
        self.reason = reason


class CartApiResponseException(CartApiException):
    """Raised when the server answered with a non-success status."""

    def __init__(self, method: str, path: str, status: int, server_message: str | None = None):
        message = f"{method} {path} returned HTTP {status}"
        if server_message:
            message = f"{message}: {server_message}"
        super().__init__(
            message,
            method=method,
            path=path,
            details={'status': status}
        )
        self.status = status
        self.server_message = server_message
