from sqlalchemy import Integer, Column, String, Boolean

from models.base import Base


class Category(Base):
    """Storefront category, products reference it through category_id."""
    __tablename__ = 'categories'

    id = Column(Integer, primary_key=True, unique=True)
    name = Column(String, nullable=False, unique=True)
    icon = Column(String, nullable=False, default="")
    is_selected = Column(Boolean, nullable=False, default=False)
