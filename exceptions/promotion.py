"""
Promotion-related exceptions.
"""

from .base import PaketyException


class PromotionException(PaketyException):
    """Base exception for promotion-related errors."""
    pass


class PromotionTierNotFoundException(PromotionException):
    """Raised when a promotion tier is not found in database."""

    def __init__(self, tier_id: int):
        super().__init__(
            f"Promotion tier {tier_id} not found",
            details={'tier_id': tier_id}
        )
        self.tier_id = tier_id


class InvalidPromotionTierException(PromotionException):
    """Raised when tier data is rejected (negative threshold, missing discount value, ...)."""

    def __init__(self, reason: str, tier_id: int | None = None):
        super().__init__(
            f"Invalid promotion tier: {reason}",
            details={'tier_id': tier_id, 'reason': reason}
        )
        self.tier_id = tier_id
        self.reason = reason
