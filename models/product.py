from decimal import Decimal

from sqlalchemy import Column, Integer, String, Numeric, Boolean, ForeignKey, CheckConstraint

from enums.product_unit import ProductUnit
from models.base import Base, CamelModel


class Product(Base):
    """
    Grocery product offered in the storefront.

    Cart reads embed a snapshot of this row into every cart line, the cart
    core treats that snapshot as read-only.
    """
    __tablename__ = 'products'

    id = Column(Integer, primary_key=True, unique=True)
    name = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    unit = Column(String(10), nullable=False, default=ProductUnit.PIECE.value)
    image_url = Column(String, nullable=False, default="")
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    # 1 = shown first in its category, NULL = no explicit order
    display_order = Column(Integer, nullable=True)
    is_available = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint('price >= 0', name='check_product_price_non_negative'),
        CheckConstraint('display_order IS NULL OR (display_order >= 1 AND display_order <= 10)',
                        name='check_product_display_order_range'),
    )


class ProductDTO(CamelModel):
    id: int | None = None
    name: str
    price: Decimal
    unit: str = ProductUnit.PIECE.value
    image_url: str = ""
    category_id: int | None = None
    display_order: int | None = None
    is_available: bool = True
