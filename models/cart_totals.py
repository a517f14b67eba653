from decimal import Decimal

from models.base import CamelModel


class CartTotalsDTO(CamelModel):
    """Derived cart totals shown in the cart drawer and at checkout."""
    subtotal: Decimal
    delivery_fee: Decimal
    base_delivery_fee: Decimal
    discount: Decimal
    total: Decimal
    has_free_delivery: bool
    has_discount: bool
    current_tier_label: str | None = None
