"""
Pytest configuration and fixtures for tests.

This file is automatically loaded by pytest and provides shared fixtures
and configuration for all tests.
"""

import sys
import os

# Test environment must be in place before config is imported anywhere
os.environ["RUNTIME_ENVIRONMENT"] = "TEST"
os.environ["DB_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["STORE_LANGUAGE"] = "en"
os.environ["ADMIN_API_TOKEN"] = ""
os.environ["DEFAULT_DELIVERY_FEE"] = "3500"

# Add parent directory to Python path so tests can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from enums.reward_type import RewardType
from models.base import Base
from models.cartItem import CartLineDTO
from models.product import ProductDTO
from models.promotion_tier import PromotionTierDTO


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def engine():
    """In-memory SQLite database with all tables."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    """Sync session, accepted by every repository (AsyncSession/Session dual-mode)."""
    session = Session(engine)
    yield session
    session.rollback()
    session.close()


# ============================================================================
# Domain Fixtures
# ============================================================================

def _make_tier(min_amount, reward_type=RewardType.DISCOUNT, reward_value=0, is_enabled=True, tier_rank=0, id=None):
    return PromotionTierDTO(
        id=id,
        tier_rank=tier_rank,
        min_amount=min_amount,
        reward_type=reward_type,
        reward_value=reward_value,
        is_enabled=is_enabled
    )


def _make_line(line_id, product_id, quantity, price="1000", unit="piece"):
    return CartLineDTO(
        id=line_id,
        product_id=product_id,
        quantity=quantity,
        added_at="2024-01-01T00:00:00+00:00",
        product=ProductDTO(id=product_id, name=f"Product {product_id}", price=Decimal(price), unit=unit)
    )


@pytest.fixture
def default_tiers():
    """Tier table used across tests: 15k free delivery, 20k 1000 off, 50k 3000 off."""
    return [
        _make_tier(15000, RewardType.FREE_DELIVERY, tier_rank=1, id=1),
        _make_tier(20000, RewardType.DISCOUNT, 1000, tier_rank=2, id=2),
        _make_tier(50000, RewardType.DISCOUNT, 3000, tier_rank=3, id=3),
    ]


@pytest.fixture
def make_tier():
    """Factory for PromotionTierDTO: make_tier(min_amount, reward_type, reward_value, ...)."""
    return _make_tier


@pytest.fixture
def make_line():
    """Factory for CartLineDTO with a product snapshot: make_line(line_id, product_id, quantity, price)."""
    return _make_line
