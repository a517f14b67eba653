from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.promotion_tier import PromotionTier, PromotionTierDTO, PromotionTierUpdateDTO


class PromotionTierRepository:
    """Repository for promotion tier operations."""

    @staticmethod
    async def get_all(session: Session | AsyncSession) -> list[PromotionTierDTO]:
        """
        Get all promotion tiers (enabled and disabled), sorted by tier_rank ASC.

        Disabled tiers are returned too: the evaluator ignores them, the
        admin panel needs them to switch them back on.
        """
        stmt = select(PromotionTier).order_by(PromotionTier.tier_rank.asc(), PromotionTier.id.asc())
        result = await session_execute(stmt, session)
        return [PromotionTierDTO.model_validate(tier, from_attributes=True) for tier in result.scalars().all()]

    @staticmethod
    async def get_by_id(tier_id: int, session: Session | AsyncSession) -> PromotionTierDTO | None:
        stmt = select(PromotionTier).where(PromotionTier.id == tier_id)
        result = await session_execute(stmt, session)
        tier = result.scalar()

        if tier is None:
            return None

        return PromotionTierDTO.model_validate(tier, from_attributes=True)

    @staticmethod
    async def create(tier_dto: PromotionTierDTO, session: Session | AsyncSession) -> PromotionTierDTO:
        tier = PromotionTier(
            tier_rank=tier_dto.tier_rank,
            min_amount=tier_dto.min_amount,
            reward_type=tier_dto.reward_type.value,
            reward_value=tier_dto.reward_value,
            is_enabled=tier_dto.is_enabled
        )
        session.add(tier)
        await session_flush(session)
        return PromotionTierDTO.model_validate(tier, from_attributes=True)

    @staticmethod
    async def update(
        tier_id: int,
        changes: PromotionTierUpdateDTO,
        session: Session | AsyncSession
    ) -> PromotionTierDTO | None:
        """
        Apply a partial update. Returns None if the tier does not exist.
        """
        values = changes.model_dump(exclude_unset=True, exclude_none=True)
        if "reward_type" in values:
            values["reward_type"] = values["reward_type"].value
        if values:
            stmt = update(PromotionTier).where(PromotionTier.id == tier_id).values(**values)
            await session_execute(stmt, session)
        return await PromotionTierRepository.get_by_id(tier_id, session)

    @staticmethod
    async def delete(tier_id: int, session: Session | AsyncSession) -> int:
        """
        Delete a tier.

        Returns:
            Number of tiers deleted (0 or 1)
        """
        stmt = delete(PromotionTier).where(PromotionTier.id == tier_id)
        result = await session_execute(stmt, session)
        return result.rowcount
