from datetime import datetime
from decimal import Decimal

from pydantic import Field
from sqlalchemy import Column, Integer, Boolean, DateTime, String, CheckConstraint

from enums.reward_type import RewardType
from models.base import Base, CamelModel


class PromotionTier(Base):
    """
    Cart-total threshold that unlocks a reward.

    Example configuration (amounts in IQD):
    - 15,000+: free delivery
    - 35,000+: 2,000 off
    - 50,000+: 5,000 off

    tier_rank orders tiers for display (progress bar), min_amount is the
    inclusive threshold, reward_value is only meaningful for discounts.
    """
    __tablename__ = 'promotion_tiers'

    id = Column(Integer, primary_key=True, autoincrement=True)
    tier_rank = Column(Integer, nullable=False)
    min_amount = Column(Integer, nullable=False)
    reward_type = Column(String(20), nullable=False)
    reward_value = Column(Integer, nullable=False, default=0)
    is_enabled = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint('min_amount >= 0', name='check_tier_min_amount_non_negative'),
        CheckConstraint('reward_value >= 0', name='check_tier_reward_value_non_negative'),
    )


class PromotionTierDTO(CamelModel):
    """DTO for promotion tier data transfer."""
    id: int | None = None
    tier_rank: int = 0
    min_amount: int = Field(ge=0)
    reward_type: RewardType
    reward_value: int = Field(default=0, ge=0)
    is_enabled: bool = True


class PromotionTierUpdateDTO(CamelModel):
    """Partial update for a tier, unset fields are left untouched."""
    tier_rank: int | None = None
    min_amount: int | None = Field(default=None, ge=0)
    reward_type: RewardType | None = None
    reward_value: int | None = Field(default=None, ge=0)
    is_enabled: bool | None = None


class PromotionResultDTO(CamelModel):
    """Reward a cart subtotal qualifies for, plus progress hints for the UI."""
    free_delivery: bool = False
    discount_amount: int = 0
    current_tier: PromotionTierDTO | None = None
    next_tier: PromotionTierDTO | None = None
    amount_to_next: Decimal = Decimal(0)
    current_tier_label: str | None = None


class ProgressStepDTO(CamelModel):
    """One step of the promotion progress bar ("Start" is always step 0)."""
    id: int
    label: str
    amount: int


class PromotionProgressDTO(CamelModel):
    steps: list[ProgressStepDTO]
    current_step_index: int
    progress_percent: float
