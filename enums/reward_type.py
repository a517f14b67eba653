from enum import Enum


class RewardType(str, Enum):
    """
    Reward unlocked by a promotion tier.

    Values are stored in the database and sent over the wire as-is.
    """

    FREE_DELIVERY = "free_delivery"   # Delivery fee waived
    DISCOUNT = "discount"             # Fixed amount off the order total
