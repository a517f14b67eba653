import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_commit
from enums.reward_type import RewardType
from exceptions.promotion import PromotionTierNotFoundException, InvalidPromotionTierException
from models.promotion_tier import PromotionTierDTO, PromotionTierUpdateDTO
from repositories.promotion_tier import PromotionTierRepository

logger = logging.getLogger(__name__)


class PromotionAdminService:
    """Admin panel operations on the promotion tier table."""

    @staticmethod
    async def get_tiers(session: AsyncSession | Session) -> list[PromotionTierDTO]:
        return await PromotionTierRepository.get_all(session)

    @staticmethod
    async def create_tier(tier: PromotionTierDTO, session: AsyncSession | Session) -> PromotionTierDTO:
        """
        Raises:
            InvalidPromotionTierException: discount tier without a reward value
        """
        PromotionAdminService._validate(tier.reward_type, tier.reward_value)
        created = await PromotionTierRepository.create(tier, session)
        await session_commit(session)
        logger.info(
            f"[Promotions] Tier {created.id} created: {created.reward_type.value} "
            f"from {created.min_amount} (rank {created.tier_rank})"
        )
        return created

    @staticmethod
    async def update_tier(
        tier_id: int,
        changes: PromotionTierUpdateDTO,
        session: AsyncSession | Session
    ) -> PromotionTierDTO:
        """
        Raises:
            PromotionTierNotFoundException: tier does not exist
            InvalidPromotionTierException: resulting tier would be a discount without value
        """
        existing = await PromotionTierRepository.get_by_id(tier_id, session)
        if existing is None:
            raise PromotionTierNotFoundException(tier_id)

        reward_type = changes.reward_type or existing.reward_type
        reward_value = changes.reward_value if changes.reward_value is not None else existing.reward_value
        PromotionAdminService._validate(reward_type, reward_value, tier_id)

        updated = await PromotionTierRepository.update(tier_id, changes, session)
        await session_commit(session)
        logger.info(f"[Promotions] Tier {tier_id} updated: {changes.model_dump(exclude_unset=True)}")
        return updated

    @staticmethod
    async def delete_tier(tier_id: int, session: AsyncSession | Session) -> None:
        """
        Raises:
            PromotionTierNotFoundException: tier does not exist
        """
        deleted = await PromotionTierRepository.delete(tier_id, session)
        if deleted == 0:
            raise PromotionTierNotFoundException(tier_id)
        await session_commit(session)
        logger.info(f"[Promotions] Tier {tier_id} deleted")

    @staticmethod
    def _validate(reward_type: RewardType, reward_value: int, tier_id: int | None = None) -> None:
        if reward_type == RewardType.DISCOUNT and reward_value <= 0:
            raise InvalidPromotionTierException("discount tiers need a positive reward value", tier_id)
