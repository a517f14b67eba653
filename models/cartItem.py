# A cart item is one line of the cart: a single product and the requested
# quantity. Quantity is stored as a decimal string so weight-based products
# (1.5 kg) keep exact values. Anonymous carts use user_id NULL.
from decimal import Decimal, InvalidOperation

from pydantic import field_validator
from sqlalchemy import Column, Integer, String, ForeignKey

from models.base import Base, CamelModel
from models.product import ProductDTO
from utils.quantity import format_quantity


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    quantity = Column(String, nullable=False, default="1")
    added_at = Column(String, nullable=False)


class CartItemDTO(CamelModel):
    """Cart line as stored, without the product snapshot."""
    id: int | None = None
    user_id: int | None = None
    product_id: int
    quantity: str = "1"
    added_at: str | None = None

    @field_validator("quantity", mode="before")
    @classmethod
    def normalize_quantity(cls, value) -> str:
        try:
            return format_quantity(value)
        except (InvalidOperation, ValueError):
            raise ValueError(f"quantity {value!r} is not a number")


class CartLineDTO(CartItemDTO):
    """Cart line as returned by GET /api/cart, with embedded product snapshot."""
    product: ProductDTO | None = None


class AddCartItemRequest(CamelModel):
    product_id: int
    quantity: Decimal = Decimal("1")


class UpdateCartItemRequest(CamelModel):
    quantity: Decimal
