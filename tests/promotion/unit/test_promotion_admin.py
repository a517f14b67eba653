"""
Unit Tests: PromotionAdminService / PromotionTierRepository

Uses an in-memory SQLite database (sync Session, dual-mode repositories).
"""

import pytest

from enums.reward_type import RewardType
from exceptions.promotion import InvalidPromotionTierException, PromotionTierNotFoundException
from models.promotion_tier import PromotionTierUpdateDTO
from services.promotion import PromotionService
from services.promotion_admin import PromotionAdminService


class TestPromotionAdminService:

    @pytest.mark.asyncio
    async def test_create_and_list_ordered_by_rank(self, session, make_tier):
        await PromotionAdminService.create_tier(make_tier(50000, RewardType.DISCOUNT, 3000, tier_rank=3), session)
        await PromotionAdminService.create_tier(make_tier(15000, RewardType.FREE_DELIVERY, tier_rank=1), session)

        tiers = await PromotionAdminService.get_tiers(session)

        assert [t.tier_rank for t in tiers] == [1, 3]
        assert tiers[0].reward_type == RewardType.FREE_DELIVERY
        assert all(t.id is not None for t in tiers)

    @pytest.mark.asyncio
    async def test_discount_without_value_is_rejected(self, session, make_tier):
        with pytest.raises(InvalidPromotionTierException):
            await PromotionAdminService.create_tier(make_tier(20000, RewardType.DISCOUNT, 0), session)

    @pytest.mark.asyncio
    async def test_disable_tier_removes_it_from_evaluation(self, session, make_tier):
        tier = await PromotionAdminService.create_tier(make_tier(10000, RewardType.FREE_DELIVERY), session)

        updated = await PromotionAdminService.update_tier(
            tier.id, PromotionTierUpdateDTO(is_enabled=False), session
        )

        assert updated.is_enabled is False
        tiers = await PromotionAdminService.get_tiers(session)
        assert PromotionService.evaluate(20000, tiers).free_delivery is False

    @pytest.mark.asyncio
    async def test_update_to_discount_requires_value(self, session, make_tier):
        tier = await PromotionAdminService.create_tier(make_tier(10000, RewardType.FREE_DELIVERY), session)

        with pytest.raises(InvalidPromotionTierException):
            await PromotionAdminService.update_tier(
                tier.id, PromotionTierUpdateDTO(reward_type=RewardType.DISCOUNT), session
            )

    @pytest.mark.asyncio
    async def test_unknown_tier(self, session):
        with pytest.raises(PromotionTierNotFoundException):
            await PromotionAdminService.update_tier(99, PromotionTierUpdateDTO(min_amount=1), session)
        with pytest.raises(PromotionTierNotFoundException):
            await PromotionAdminService.delete_tier(99, session)
