"""
Models Package

This file ensures all SQLAlchemy models are imported and registered,
which is required for relationships and create_all to work correctly.
"""

from models.base import Base
from models.category import Category
from models.product import Product
from models.cartItem import CartItem
from models.promotion_tier import PromotionTier
from models.system_settings import SystemSettings
