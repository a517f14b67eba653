"""
Cart-related exceptions.
"""

from .base import PaketyException


class CartException(PaketyException):
    """Base exception for cart-related errors."""
    pass


class CartLineNotFoundException(CartException):
    """Raised when a cart line does not exist (locally or remotely)."""

    def __init__(self, line_id: int):
        super().__init__(
            f"Cart line {line_id} not found",
            details={'line_id': line_id}
        )
        self.line_id = line_id


class InvalidQuantityException(CartException):
    """Raised before any mutation when a requested quantity is not usable."""

    def __init__(self, quantity, reason: str = "quantity must be greater than zero"):
        super().__init__(
            f"Invalid quantity {quantity!r}: {reason}",
            details={'quantity': str(quantity), 'reason': reason}
        )
        self.quantity = quantity
        self.reason = reason


class CartSyncException(CartException):
    """
    Raised by the cart store when a remote mutation failed.

    The local state has already been reloaded from the server when this
    is raised; `cause` carries the underlying API error.
    """

    def __init__(self, operation: str, cause: Exception):
        super().__init__(
            f"Cart {operation} failed: {cause}",
            details={'operation': operation}
        )
        self.operation = operation
        self.cause = cause
